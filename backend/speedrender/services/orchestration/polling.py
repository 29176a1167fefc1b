"""Poll state machine for remote render jobs.

The transition function is pure: it only looks at the last reported status
and how many status checks have been made. Sleeping and HTTP live in the
orchestrator.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

STATUS_IN_QUEUE = "IN_QUEUE"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_COMPLETED = "COMPLETED"


class PollState(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    BUDGET_EXHAUSTED = "budget_exhausted"

    @property
    def is_terminal(self) -> bool:
        return self not in (PollState.QUEUED, PollState.IN_PROGRESS)


_PENDING = {
    STATUS_IN_QUEUE: PollState.QUEUED,
    STATUS_IN_PROGRESS: PollState.IN_PROGRESS,
}


def next_poll_state(status: Optional[str], attempt: int, max_attempts: int) -> PollState:
    """Map (reported status, checks made so far) to the next poll state.

    attempt is the number of status checks already performed (0 for the
    status returned by submission). Unknown or missing statuses are FAILED.
    """
    if status == STATUS_COMPLETED:
        return PollState.COMPLETED
    pending = _PENDING.get(status or "")
    if pending is None:
        return PollState.FAILED
    if attempt >= max_attempts:
        return PollState.BUDGET_EXHAUSTED
    return pending
