from .models import StepOutcome, SubmissionReport, SubmissionStatus
from .sequencer import OrderSubmissionSequencer, SubmissionValidationError

__all__ = [
    "OrderSubmissionSequencer",
    "StepOutcome",
    "SubmissionReport",
    "SubmissionStatus",
    "SubmissionValidationError",
]
