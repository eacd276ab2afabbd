from .gateway import DryRunOrderGateway, OrderRejectedError
from .models import OrderPayload
from .payloads import PayloadError, request_to_payload, requests_to_payloads

__all__ = [
    "DryRunOrderGateway",
    "OrderPayload",
    "OrderRejectedError",
    "PayloadError",
    "request_to_payload",
    "requests_to_payloads",
]
