"""Price quotes with a layered fallback: router, pool reserves, reference price"""

import logging
from dataclasses import dataclass
from enum import Enum

from ..core.exceptions import PoolError, QuoteError
from ..core.wallet import wallet_logger
from ..utils.math import convert_at_price, from_units, implied_price, quote_from_reserves

logger = logging.getLogger(__name__)


class QuoteSource(Enum):
    """Where a quote came from, most to least trustworthy"""

    DIRECT_ROUTE = "direct_route"
    RESERVE_DERIVED = "reserve_derived"
    REFERENCE_FALLBACK = "reference_fallback"


@dataclass(frozen=True)
class AssetPairQuote:
    """Amount of the output asset matching a known amount of the input asset"""

    input_amount: int
    output_amount: int
    source: QuoteSource

    @property
    def is_best_effort(self):
        """True when the price did not come from the live pool"""
        return self.source is QuoteSource.REFERENCE_FALLBACK


class PriceOracle:
    """
    Resolve how much of token_out matches a known amount of token_in.

    Sources are tried in order and the first success wins:

    1. Router getAmountsOut over the direct path [token_in, token_out]
    2. Pair reserves via the factory, using the constant-product quote
       (rejected when the token_out reserve is below min_reserve_out)
    3. A fixed reference price, which always answers but may be stale
    """

    def __init__(self, router, token_in, token_out, decimals_in, decimals_out,
                 reference_price, min_reserve_out):
        """
        Args:
            router: Router wrapper
            token_in: Address of the asset whose amount is known
            token_out: Address of the asset to quote
            decimals_in: Decimals of token_in
            decimals_out: Decimals of token_out
            reference_price: Fallback price, token_in per one token_out (human units)
            min_reserve_out: Smallest healthy token_out reserve, in smallest units
        """
        self.router = router
        self.token_in = token_in
        self.token_out = token_out
        self.decimals_in = decimals_in
        self.decimals_out = decimals_out
        self.reference_price = reference_price
        self.min_reserve_out = min_reserve_out

    async def quote(self, known_amount, wallet=None):
        """
        Quote token_out for known_amount of token_in.

        Args:
            known_amount: Input amount in smallest units
            wallet: WalletJob, only used to tag log lines

        Returns:
            AssetPairQuote, or None if every source failed
        """
        if known_amount <= 0:
            raise ValueError(f"Amount to quote must be positive, got {known_amount}")

        log = wallet_logger(logger, wallet)
        steps = (
            (QuoteSource.DIRECT_ROUTE, self._direct_route),
            (QuoteSource.RESERVE_DERIVED, self._reserve_derived),
            (QuoteSource.REFERENCE_FALLBACK, self._reference_fallback),
        )

        for source, step in steps:
            try:
                amount = await step(known_amount, log)
            except Exception as e:
                log.warning("Quote via %s failed: %s", source.value, e)
                continue

            quote = AssetPairQuote(input_amount=known_amount, output_amount=amount, source=source)
            self._log_quote(log, quote)
            return quote

        log.error("Every quote source failed for %s units", known_amount)
        return None

    async def _direct_route(self, known_amount, log):
        amounts = await self.router.get_amounts_out(known_amount, [self.token_in, self.token_out])
        if not amounts or amounts[-1] <= 0:
            raise QuoteError(f"Router returned no output: {amounts}")
        return amounts[-1]

    async def _reserve_derived(self, known_amount, log):
        pair = await self.router.get_pair(self.token_in, self.token_out)
        if pair is None:
            raise PoolError("No pair exists for these tokens")

        reserves = await pair.reserves()
        reserve_in = reserves.reserve_of(self.token_in)
        reserve_out = reserves.reserve_of(self.token_out)
        log.info(
            "Pool reserves: %s in / %s out",
            from_units(reserve_in, self.decimals_in),
            from_units(reserve_out, self.decimals_out),
        )

        if reserve_out < self.min_reserve_out:
            raise PoolError(
                f"Output reserve {from_units(reserve_out, self.decimals_out)} is below "
                f"{from_units(self.min_reserve_out, self.decimals_out)}; not the primary pool"
            )

        amount = quote_from_reserves(known_amount, reserve_in, reserve_out)
        if amount <= 0:
            raise QuoteError("Reserve quote rounds down to zero")
        return amount

    async def _reference_fallback(self, known_amount, log):
        amount = convert_at_price(known_amount, self.reference_price, self.decimals_in, self.decimals_out)
        if amount <= 0:
            raise QuoteError("Reference conversion rounds down to zero")
        return amount

    def _log_quote(self, log, quote):
        price = implied_price(quote.input_amount, quote.output_amount, self.decimals_in, self.decimals_out)
        if quote.is_best_effort:
            log.warning(
                "LIVE PRICE UNAVAILABLE - using reference price %s; deposit amounts may be off",
                self.reference_price,
            )
        log.info(
            "Quote (%s): %s in -> %s out, implied price %s",
            quote.source.value,
            from_units(quote.input_amount, self.decimals_in),
            from_units(quote.output_amount, self.decimals_out),
            f"{price:.4f}" if price is not None else "n/a",
        )
