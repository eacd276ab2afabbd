"""Submission statuses and reports."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SubmissionStatus(Enum):
    PENDING = "pending"
    SIGNING = "signing"
    DONE = "done"
    ERROR = "error"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepOutcome:
    sequence: int
    status: SubmissionStatus
    order_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "status": self.status.value,
            "order_id": self.order_id,
            "error": self.error,
        }


@dataclass(frozen=True)
class SubmissionReport:
    outcomes: Tuple[StepOutcome, ...]
    cancelled: bool = False

    def _with_status(self, status: SubmissionStatus) -> Tuple[StepOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.status == status)

    @property
    def succeeded(self) -> Tuple[StepOutcome, ...]:
        return self._with_status(SubmissionStatus.DONE)

    @property
    def failed(self) -> Tuple[StepOutcome, ...]:
        return self._with_status(SubmissionStatus.ERROR)

    @property
    def skipped(self) -> Tuple[StepOutcome, ...]:
        return self._with_status(SubmissionStatus.SKIPPED)

    @property
    def first_error(self) -> Optional[str]:
        failed = self.failed
        return failed[0].error if failed else None

    @property
    def order_ids(self) -> Tuple[str, ...]:
        return tuple(outcome.order_id for outcome in self.succeeded if outcome.order_id)

    def to_dict(self) -> dict:
        return {
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "first_error": self.first_error,
            "cancelled": self.cancelled,
        }
