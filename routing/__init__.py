from .comparator import describe_route, pick_best_route, price_impact_percent, security_level
from .models import Quote, RouteSummary, SecurityLevel

__all__ = [
    "Quote",
    "RouteSummary",
    "SecurityLevel",
    "describe_route",
    "pick_best_route",
    "price_impact_percent",
    "security_level",
]
