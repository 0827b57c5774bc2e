"""Run independent wallet jobs in fixed-size concurrent groups"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobOutcome:
    """Result of one wallet job"""

    wallet_index: int
    success: bool
    transaction_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, wallet_index, transaction_id):
        return cls(wallet_index=wallet_index, success=True, transaction_id=transaction_id)

    @classmethod
    def failed(cls, wallet_index, error):
        return cls(wallet_index=wallet_index, success=False, error=describe_error(error))

    def to_dict(self):
        return {
            "wallet": self.wallet_index + 1,
            "success": self.success,
            "tx_hash": self.transaction_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class BatchSummary:
    """All outcomes of a run, in job order"""

    outcomes: Tuple[JobOutcome, ...]

    @property
    def total(self):
        return len(self.outcomes)

    @property
    def succeeded(self):
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failures(self):
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def all_succeeded(self):
        return self.succeeded == self.total

    def to_dict(self):
        return {
            "succeeded": self.succeeded,
            "total": self.total,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


def describe_error(error):
    """Readable reason for a failed job"""
    if isinstance(error, BaseException):
        message = str(error)
        return message if message else type(error).__name__
    return str(error)


def partition(jobs, size):
    """Split jobs into consecutive groups of at most size"""
    if size < 1:
        raise ValueError(f"Group size must be at least 1, got {size}")
    jobs = list(jobs)
    return [jobs[i:i + size] for i in range(0, len(jobs), size)]


async def run_batched(jobs, operation, concurrency_limit=3, group_delay=2.0, sleep=asyncio.sleep):
    """
    Run operation(job) for every job, concurrency_limit jobs at a time.

    Each group runs concurrently and must fully settle before the next one
    starts; a fixed delay separates groups. A failing job never cancels
    its siblings or stops the run: its exception becomes a failed outcome.

    Args:
        jobs: Ordered jobs, each with an ``index`` attribute
        operation: Async callable returning a transaction id for one job
        concurrency_limit: Maximum jobs in flight
        group_delay: Seconds to pause between groups
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        List of JobOutcome in the same order as jobs
    """
    groups = partition(jobs, concurrency_limit)
    outcomes = []

    for group_number, group in enumerate(groups, start=1):
        logger.info(
            "Starting group %d/%d: wallets %s",
            group_number, len(groups), ", ".join(str(job.index + 1) for job in group),
        )
        results = await asyncio.gather(*(operation(job) for job in group), return_exceptions=True)

        for job, result in zip(group, results):
            if isinstance(result, Exception):
                logger.error("[wallet %d] failed: %s", job.index + 1, describe_error(result))
                outcomes.append(JobOutcome.failed(job.index, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(JobOutcome.succeeded(job.index, result))

        if group_number < len(groups):
            logger.info("Waiting %ss before next group", group_delay)
            await sleep(group_delay)

    return outcomes
