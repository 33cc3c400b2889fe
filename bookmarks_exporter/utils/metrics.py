"""Data structures passed between the collection stages."""

from dataclasses import dataclass, field
from typing import Optional
import itertools
import time

from .status import FAILURE_STATUS, RunState, TRANSITIONS


_run_ids = itertools.count(1)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing one URL. Consumed exactly once by the result sink."""

    url: str
    status_code: int
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        """True when the probe produced the sentinel instead of an HTTP status."""
        return self.status_code == FAILURE_STATUS


@dataclass
class CollectionRun:
    """Bookkeeping for one scrape-triggered collection."""

    deadline_seconds: float
    run_id: int = field(default_factory=lambda: next(_run_ids))
    state: RunState = RunState.IDLE
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    urls_dispatched: int = 0
    urls_probed: int = 0
    results_applied: int = 0
    probe_failures: int = 0

    def transition(self, new_state: RunState) -> None:
        """
        Move the run to a new state.

        Args:
            new_state: Target state

        Raises:
            ValueError: If the transition is not allowed from the current state
        """
        if new_state not in TRANSITIONS[self.state]:
            raise ValueError(
                f"Illegal run transition {self.state.value} -> {new_state.value}"
            )

        if new_state == RunState.RUNNING:
            self.started_at = time.monotonic()
        if new_state.is_terminal():
            self.finished_at = time.monotonic()

        self.state = new_state

    @property
    def timed_out(self) -> bool:
        return self.state == RunState.TIMED_OUT

    @property
    def duration_seconds(self) -> float:
        """Elapsed time of the run, up to now if it is still in progress."""
        if self.started_at is None:
            return 0.0
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at
