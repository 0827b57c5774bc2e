"""Integer math for amounts, slippage and constant-product quoting"""

from decimal import Decimal
from fractions import Fraction

# Slippage protection applied even when a lower tolerance is configured
MIN_SLIPPAGE_PERCENT = 5


def to_units(amount, decimals):
    """
    Convert a human-readable amount to smallest units, rounding down.

    Args:
        amount: Decimal, int or numeric string (never float)
        decimals: Token decimals

    Returns:
        Integer amount in smallest units
    """
    exact = Fraction(Decimal(amount)) * 10 ** decimals
    return exact.numerator // exact.denominator


def from_units(units, decimals):
    """Convert smallest units to an exact Decimal"""
    return Decimal(units).scaleb(-decimals)


def apply_percent_reduction(amount, percent):
    """
    Reduce amount by percent, rounding down.

    Args:
        amount: Integer amount in smallest units
        percent: Percentage to remove (Decimal, int or string)

    Returns:
        floor(amount * (100 - percent) / 100)
    """
    keep = (100 - Fraction(Decimal(percent))) / 100
    return amount * keep.numerator // keep.denominator


def effective_slippage(tolerance_percent, floor_percent=MIN_SLIPPAGE_PERCENT):
    """Configured tolerance, raised to the protective floor when lower"""
    return max(Decimal(tolerance_percent), Decimal(floor_percent))


def compute_minimums(desired_a, desired_b, tolerance_percent, floor_percent=MIN_SLIPPAGE_PERCENT):
    """
    Calculate minimum acceptable amounts with slippage protection.

    Args:
        desired_a: Desired amount of asset A in smallest units
        desired_b: Desired amount of asset B in smallest units
        tolerance_percent: Configured slippage tolerance (0-50)
        floor_percent: Protective minimum tolerance

    Returns:
        (min_a, min_b) in smallest units
    """
    tolerance = effective_slippage(tolerance_percent, floor_percent)
    return (
        apply_percent_reduction(desired_a, tolerance),
        apply_percent_reduction(desired_b, tolerance),
    )


def quote_from_reserves(amount_a, reserve_a, reserve_b):
    """
    Constant-product quote: amount of B matching amount_a of A at pool ratio.

    Same as UniswapV2Library.quote.
    """
    if amount_a <= 0:
        raise ValueError(f"Amount must be positive, got {amount_a}")
    if reserve_a <= 0 or reserve_b <= 0:
        raise ValueError("Pool has no liquidity")
    return amount_a * reserve_b // reserve_a


def convert_at_price(amount_in, price, decimals_in, decimals_out):
    """
    Convert amount_in using a fixed price quoted as input units per output unit.

    Example: 2.7 USDT at 168.44 USDT/OKB -> 0.016029... OKB

    Args:
        amount_in: Input amount in smallest units
        price: Human price, input per one output (Decimal or string)
        decimals_in: Input token decimals
        decimals_out: Output token decimals

    Returns:
        Output amount in smallest units, rounded down
    """
    price = Fraction(Decimal(price))
    if price <= 0:
        raise ValueError(f"Price must be positive, got {price}")
    exact = Fraction(amount_in, 10 ** decimals_in) / price * 10 ** decimals_out
    return exact.numerator // exact.denominator


def implied_price(amount_in, amount_out, decimals_in, decimals_out):
    """Human price (input per one output) implied by a quote, for display"""
    if amount_out == 0:
        return None
    return from_units(amount_in, decimals_in) / from_units(amount_out, decimals_out)
