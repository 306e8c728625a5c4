"""Upload status value object.

ONLY upload status - the file record lifecycle state machine.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ...utils import utc_now
from ..exceptions import InvalidStateTransitionError


class UploadState(Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"
    ARCHIVED = "archived"


_TRANSITIONS: Dict[UploadState, FrozenSet[UploadState]] = {
    UploadState.PENDING: frozenset({UploadState.UPLOADING, UploadState.FAILED}),
    UploadState.UPLOADING: frozenset({UploadState.COMPLETED, UploadState.FAILED}),
    UploadState.COMPLETED: frozenset({UploadState.ARCHIVED, UploadState.FAILED}),
    UploadState.FAILED: frozenset({UploadState.PENDING}),
    UploadState.ARCHIVED: frozenset(),
}


@dataclass(frozen=True)
class UploadStatus:
    """Upload status value object.

    Immutable; ``transition_to`` returns a new status stamped with the time
    of the transition and leaves the receiver untouched.
    """

    state: UploadState = UploadState.PENDING
    changed_at: datetime = field(default_factory=utc_now)

    @classmethod
    def pending(cls) -> 'UploadStatus':
        return cls(UploadState.PENDING)

    def can_transition_to(self, target: UploadState) -> bool:
        return target in _TRANSITIONS[self.state]

    def transition_to(self, target: UploadState, at: Optional[datetime] = None) -> 'UploadStatus':
        """Return the status after moving to ``target``.

        Raises:
            InvalidStateTransitionError: If the transition is not legal
        """
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                f"Cannot transition upload status from {self.state.value} to {target.value}",
                from_state=self.state.value,
                to_state=target.value,
            )
        return UploadStatus(target, at or utc_now())

    @property
    def is_terminal(self) -> bool:
        return self.state is UploadState.ARCHIVED

    def __str__(self) -> str:
        return self.state.value
