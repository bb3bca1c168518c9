"""
Fetch Pool Module
Bounded concurrent fetches whose results are handed back one at a time.
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..core.config import FETCH_CONFIG

logger = logging.getLogger(__name__)

Job = Tuple[str, Callable[[], Any]]


@dataclass
class FetchOutcome:
    """Result of one job: either a value or the error it raised."""
    key: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchPool:
    """
    Runs fetch jobs with at most `max_workers` in flight.

    `run` is a generator: outcomes are yielded in completion order from the
    calling thread, so whatever the caller does with them (store writes)
    stays serialized. A job that raises does not affect the others. Once
    the deadline has passed no new job is started; jobs already in flight
    are still collected.
    """

    def __init__(self, max_workers: Optional[int] = None, deadline: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        if max_workers is None:
            max_workers = FETCH_CONFIG["MAX_WORKERS"]
        if deadline is None:
            deadline = FETCH_CONFIG["DEADLINE_SECONDS"]
        self.max_workers = max(1, min(int(max_workers), FETCH_CONFIG["MAX_WORKERS_LIMIT"]))
        self.deadline = deadline
        self.clock = clock
        self.unscheduled: List[str] = []

    def _expired(self, started: float) -> bool:
        return self.deadline is not None and self.clock() - started >= self.deadline

    def run(self, jobs: Iterable[Job]) -> Iterator[FetchOutcome]:
        """
        Execute jobs and yield their outcomes as they complete.

        Args:
            jobs: (key, zero-argument callable) pairs

        Yields:
            FetchOutcome per started job
        """
        pending_jobs = iter(jobs)
        self.unscheduled = []
        started = self.clock()
        in_flight: Dict[concurrent.futures.Future, str] = {}

        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:

            def fill() -> None:
                while len(in_flight) < self.max_workers:
                    job = next(pending_jobs, None)
                    if job is None:
                        return
                    key, func = job
                    if self._expired(started):
                        self.unscheduled.append(key)
                        continue
                    in_flight[executor.submit(func)] = key

            fill()
            while in_flight:
                done, _ = concurrent.futures.wait(in_flight, return_when=concurrent.futures.FIRST_COMPLETED)
                for future in done:
                    key = in_flight.pop(future)
                    error = future.exception()
                    if error is not None:
                        logger.debug(f"Fetch {key} failed: {error}")
                        yield FetchOutcome(key=key, error=error)
                    else:
                        yield FetchOutcome(key=key, value=future.result())
                fill()

        if self.unscheduled:
            logger.warning(f"Deadline reached; {len(self.unscheduled)} fetches were not started")
