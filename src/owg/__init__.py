from .constants import WEEKDAY_ORDER_WINDOWS, WEEKEND_BRUNCH_WINDOW, WEEKEND_DINNER_WINDOW, WEEKEND_ORDER_WINDOWS
from .models import OrderWindow
from .rules import active_order_window, is_within_order_window, next_window_opening

__all__ = [
    "OrderWindow",
    "WEEKDAY_ORDER_WINDOWS",
    "WEEKEND_BRUNCH_WINDOW",
    "WEEKEND_DINNER_WINDOW",
    "WEEKEND_ORDER_WINDOWS",
    "active_order_window",
    "is_within_order_window",
    "next_window_opening",
]
