"""Dry-run order creation without network calls."""

import logging
from typing import List, Optional

from order_engine.config import PlannerSettings, get_settings
from order_engine.models import OrderRequest

from .models import OrderPayload
from .payloads import request_to_payload

logger = logging.getLogger(__name__)


class OrderRejectedError(RuntimeError):
    """Raised when the gateway refuses to create an order."""


class DryRunOrderGateway:
    """Builds and records payloads instead of sending them.

    ``fail_at`` rejects the request with that sequence number, which lets
    operators rehearse a partial batch.
    """

    def __init__(
        self,
        owner: str,
        settings: Optional[PlannerSettings] = None,
        fail_at: Optional[int] = None,
    ) -> None:
        self._owner = owner
        self._settings = settings or get_settings()
        self._fail_at = fail_at
        self.attempted: List[int] = []
        self.submitted: List[OrderPayload] = []

    async def create_order(self, request: OrderRequest) -> str:
        self.attempted.append(request.sequence)
        payload = request_to_payload(request, self._owner, self._settings)
        if self._fail_at is not None and request.sequence == self._fail_at:
            raise OrderRejectedError(f"Order {request.sequence} rejected by dry-run gateway.")

        self.submitted.append(payload)
        order_id = f"dry-run-{len(self.submitted)}"
        logger.debug("Recorded %s for order %d", order_id, request.sequence)
        return order_id
