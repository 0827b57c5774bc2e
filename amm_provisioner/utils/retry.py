"""Bounded retry for transient RPC and network failures"""

import asyncio
import logging

import aiohttp
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

logger = logging.getLogger(__name__)

# JSON-RPC codes X Layer nodes return for overload and rate limiting
TRANSIENT_RPC_CODES = frozenset({-32011, -32005})

TRANSIENT_HTTP_STATUSES = frozenset({429, 502, 503, 504})


def rpc_error_code(exc):
    """
    Extract the JSON-RPC error code from a web3 error, if there is one.

    web3 >= 7 raises Web3RPCError carrying the raw response; older paths
    raise ValueError with the error dict as the first argument.
    """
    response = getattr(exc, "rpc_response", None)
    if isinstance(response, dict):
        error = response.get("error")
        if isinstance(error, dict):
            return error.get("code")
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0].get("code")
    return None


class TransientErrorClassifier:
    """
    Decide whether an error is worth retrying.

    An error is transient when it carries one of the configured JSON-RPC
    codes, an HTTP status from the configured set, or is a connection-level
    failure. Everything else (reverts, bad arguments, shortfalls) is fatal.
    """

    def __init__(
        self,
        rpc_codes=TRANSIENT_RPC_CODES,
        http_statuses=TRANSIENT_HTTP_STATUSES,
        network_errors=(aiohttp.ClientConnectionError, asyncio.TimeoutError),
    ):
        self.rpc_codes = frozenset(rpc_codes)
        self.http_statuses = frozenset(http_statuses)
        self.network_errors = tuple(network_errors)

    def __call__(self, exc):
        if isinstance(exc, aiohttp.ClientResponseError):
            return exc.status in self.http_statuses
        if self.network_errors and isinstance(exc, self.network_errors):
            return True
        return rpc_error_code(exc) in self.rpc_codes


is_transient_error = TransientErrorClassifier()


async def run_with_retry(
    operation,
    max_attempts=3,
    delay=2.0,
    is_transient=is_transient_error,
    sleep=asyncio.sleep,
    label="operation",
):
    """
    Run an async operation, retrying transient failures with a fixed delay.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_attempts: Total attempts including the first
        delay: Seconds to wait between attempts (no growth)
        is_transient: Predicate classifying an exception as retryable
        sleep: Awaitable sleep function
        label: Name used in log lines

    Returns:
        The operation's result

    Raises:
        The last error, unchanged, when it is not transient or attempts run out
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    async def wait_between(seconds):
        await sleep(seconds)

    def log_retry(retry_state):
        logger.warning(
            "%s hit a transient error (attempt %d/%d): %s; retrying in %ss",
            label, retry_state.attempt_number, max_attempts,
            retry_state.outcome.exception(), delay,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(delay),
        retry=retry_if_exception(is_transient),
        sleep=wait_between,
        before_sleep=log_retry,
        reraise=True,
    )
    try:
        return await retrying(operation)
    except Exception as e:
        if is_transient(e):
            logger.error("%s failed after %d attempts: %s", label, max_attempts, e)
        raise
