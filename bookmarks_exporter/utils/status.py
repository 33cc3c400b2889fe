"""Collection run states and probe status constants."""

from enum import Enum


# Recorded when a probe did not yield a real HTTP status
FAILURE_STATUS = 0


class RunState(Enum):
    """Lifecycle state of a single collection run."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    DONE = "done"
    TIMED_OUT = "timed_out"

    def is_terminal(self) -> bool:
        """
        Check whether the run can no longer change state.

        Returns:
            bool: True for DONE and TIMED_OUT
        """
        return self in (RunState.DONE, RunState.TIMED_OUT)


# Allowed transitions; TIMED_OUT can interrupt RUNNING or DRAINING
TRANSITIONS = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.DRAINING, RunState.TIMED_OUT},
    RunState.DRAINING: {RunState.DONE, RunState.TIMED_OUT},
    RunState.DONE: set(),
    RunState.TIMED_OUT: set(),
}
