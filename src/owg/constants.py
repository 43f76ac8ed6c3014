from datetime import time as dt_time

from .models import OrderWindow

WEEKDAYS = frozenset({0, 1, 2, 3, 4})
WEEKEND_DAYS = frozenset({5, 6})

WEEKDAY_ORDER_WINDOWS: tuple[OrderWindow, ...] = (
    OrderWindow(name="breakfast", start=dt_time(6, 30), end=dt_time(8, 30)),
    OrderWindow(name="lunch", start=dt_time(10, 0), end=dt_time(11, 0)),
    OrderWindow(name="dinner", start=dt_time(15, 30), end=dt_time(16, 30)),
)

WEEKEND_BRUNCH_WINDOW = OrderWindow(name="brunch", start=dt_time(7, 30), end=dt_time(11, 0))
WEEKEND_DINNER_WINDOW = OrderWindow(name="dinner", start=dt_time(14, 30), end=dt_time(15, 30))
WEEKEND_ORDER_WINDOWS: tuple[OrderWindow, ...] = (WEEKEND_BRUNCH_WINDOW, WEEKEND_DINNER_WINDOW)
