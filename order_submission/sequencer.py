"""Strictly sequential, fail-fast order submission."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from order_engine.models import OrderRequest
from order_engine.planner import PlanValidationError, validate_requests
from order_engine.triggers import require_submittable

from .models import StepOutcome, SubmissionReport, SubmissionStatus

logger = logging.getLogger(__name__)

CreateOrder = Callable[[OrderRequest], Awaitable[str]]
ProgressCallback = Callable[[StepOutcome], None]


class SubmissionValidationError(ValueError):
    """Raised before any order is created when a request cannot be submitted."""


class OrderSubmissionSequencer:
    """Submits planned requests one at a time, stopping at the first failure.

    Orders created before a failure stay created; the remaining requests are
    reported as skipped and never reach ``create_order``.
    """

    def __init__(self, on_progress: Optional[ProgressCallback] = None) -> None:
        self._on_progress = on_progress

    async def submit(
        self,
        requests: Sequence[OrderRequest],
        create_order: CreateOrder,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionReport:
        requests = tuple(requests)
        self.validate(requests)

        outcomes: List[StepOutcome] = [
            StepOutcome(sequence=request.sequence, status=SubmissionStatus.PENDING)
            for request in requests
        ]
        cancelled = False
        stop_at = len(requests)

        for position, request in enumerate(requests):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Submission cancelled before order %d", request.sequence)
                cancelled = True
                stop_at = position
                break

            self._record(outcomes, position, StepOutcome(request.sequence, SubmissionStatus.SIGNING))
            try:
                order_id = await create_order(request)
            except Exception as exc:
                message = str(exc) or exc.__class__.__name__
                logger.warning("Order %d failed: %s", request.sequence, message)
                self._record(
                    outcomes,
                    position,
                    StepOutcome(request.sequence, SubmissionStatus.ERROR, error=message),
                )
                stop_at = position + 1
                break

            logger.info("Order %d created: %s", request.sequence, order_id)
            self._record(
                outcomes,
                position,
                StepOutcome(request.sequence, SubmissionStatus.DONE, order_id=str(order_id)),
            )

        for position in range(stop_at, len(requests)):
            self._record(
                outcomes, position, StepOutcome(requests[position].sequence, SubmissionStatus.SKIPPED)
            )

        return SubmissionReport(outcomes=tuple(outcomes), cancelled=cancelled)

    def validate(self, requests: Sequence[OrderRequest]) -> None:
        if not requests:
            raise SubmissionValidationError("No orders to submit.")
        try:
            validate_requests(tuple(requests))
            for request in requests:
                require_submittable(request.triggers)
        except PlanValidationError as exc:
            raise SubmissionValidationError(str(exc)) from exc

    def _record(self, outcomes: List[StepOutcome], position: int, outcome: StepOutcome) -> None:
        outcomes[position] = outcome
        if self._on_progress is not None:
            self._on_progress(outcome)
