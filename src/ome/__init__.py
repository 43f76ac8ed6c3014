from .models import CallerIdentity, OrderLineView, OrderPlacement, OrderView, OrderWithMeal
from .repository import OrderRepository
from .service import OmeService, validate_quantity
from .state_machine import ALLOWED_TRANSITIONS, ORDER_STATUS_FIELDS, TERMINAL_STATUSES, resolve_target_status

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ORDER_STATUS_FIELDS",
    "TERMINAL_STATUSES",
    "CallerIdentity",
    "OmeService",
    "OrderLineView",
    "OrderPlacement",
    "OrderRepository",
    "OrderView",
    "OrderWithMeal",
    "resolve_target_status",
    "validate_quantity",
]
