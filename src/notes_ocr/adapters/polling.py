"""Fixed-interval polling with an absolute deadline."""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from notes_ocr.adapters.base import JobCancelledError, JobFailedError, JobTimeoutError
from notes_ocr.models.job import JobState, JobStatusSnapshot

logger = structlog.get_logger(__name__)

StatusCheck = Callable[[], Awaitable[JobStatusSnapshot]]
Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


async def _wait(
    delay: float, sleep: Sleep, cancel_event: Optional[asyncio.Event]
) -> None:
    if cancel_event is None:
        await sleep(delay)
        return

    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


async def poll_until_terminal(
    check_status: StatusCheck,
    interval: float = 2.0,
    max_wait: float = 90.0,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleep = asyncio.sleep,
    cancel_event: Optional[asyncio.Event] = None,
) -> JobStatusSnapshot:
    """
    Check a job's status until it reaches a terminal state.

    Non-terminal states (Accepted, Pending, Running) wait ``interval`` seconds
    and check again. There is no backoff. The wait before the deadline is
    shortened so the loop never sleeps past it.

    Args:
        check_status: Coroutine function returning the current snapshot.
        interval: Seconds between checks.
        max_wait: Absolute budget in seconds, measured from the first call.
        clock: Monotonic clock in seconds.
        sleep: Sleep coroutine, used when no cancel event is given.
        cancel_event: Optional event; when set, polling stops at the next
            iteration boundary, interrupting any pending wait.

    Returns:
        The snapshot of a Completed or PartiallyCompleted job.

    Raises:
        JobFailedError: If the job reaches Failed.
        JobTimeoutError: If the deadline passes first.
        JobCancelledError: If ``cancel_event`` is set.
    """
    deadline = clock() + max_wait
    attempts = 0

    while clock() < deadline:
        if cancel_event is not None and cancel_event.is_set():
            raise JobCancelledError("OCR job polling was cancelled")

        snapshot = await check_status()
        attempts += 1

        logger.debug(
            "job_status_polled",
            job_id=snapshot.job_id,
            state=snapshot.job_state.value,
            attempt=attempts,
            pages_processed=sum(d.pages_processed for d in snapshot.job_details),
            total_pages=snapshot.total_pages,
        )

        if snapshot.job_state.is_success:
            return snapshot

        if snapshot.job_state is JobState.FAILED:
            message = snapshot.error_message or "unknown error"
            logger.error("job_failed", job_id=snapshot.job_id, error=message)
            raise JobFailedError(message)

        remaining = deadline - clock()
        if remaining <= 0:
            break
        await _wait(min(interval, remaining), sleep, cancel_event)

    if cancel_event is not None and cancel_event.is_set():
        raise JobCancelledError("OCR job polling was cancelled")

    logger.warning("job_polling_timed_out", attempts=attempts, max_wait=max_wait)
    raise JobTimeoutError(f"OCR job timed out after {max_wait:g} seconds")
