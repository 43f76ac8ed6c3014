"""Admission windows for new orders.

Weekday windows are compared on the full wall-clock time, both ends
inclusive. Weekend windows are compared on the hour only
(``start.hour <= hour < end.hour``): Saturday 07:05 is inside brunch even
though brunch nominally opens at 07:30, and 11:00 is already outside. This
coarser weekend check is intentional and kept apart from the weekday one.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .constants import WEEKDAY_ORDER_WINDOWS, WEEKDAYS, WEEKEND_DAYS, WEEKEND_ORDER_WINDOWS
from .models import OrderWindow


def _within_weekday_window(now: datetime, window: OrderWindow) -> bool:
    current = now.time().replace(microsecond=0, tzinfo=None)
    return window.start <= current <= window.end


def _within_weekend_window(now: datetime, window: OrderWindow) -> bool:
    return window.start.hour <= now.hour < window.end.hour


def is_within_order_window(now: datetime) -> bool:
    weekday = now.weekday()
    if weekday in WEEKDAYS:
        return any(_within_weekday_window(now, window) for window in WEEKDAY_ORDER_WINDOWS)
    if weekday in WEEKEND_DAYS:
        return any(_within_weekend_window(now, window) for window in WEEKEND_ORDER_WINDOWS)
    return False


def active_order_window(now: datetime) -> OrderWindow | None:
    weekday = now.weekday()
    if weekday in WEEKDAYS:
        return next((window for window in WEEKDAY_ORDER_WINDOWS if _within_weekday_window(now, window)), None)
    if weekday in WEEKEND_DAYS:
        return next((window for window in WEEKEND_ORDER_WINDOWS if _within_weekend_window(now, window)), None)
    return None


def next_window_opening(now: datetime) -> datetime:
    """First instant after ``now`` at which ordering opens, within a week."""
    for day_offset in range(0, 8):
        day = (now + timedelta(days=day_offset)).date()
        if day.weekday() in WEEKDAYS:
            openings = [window.start for window in WEEKDAY_ORDER_WINDOWS]
        else:
            openings = [window.start.replace(minute=0) for window in WEEKEND_ORDER_WINDOWS]
        for opening in openings:
            candidate = datetime.combine(day, opening, tzinfo=now.tzinfo)
            if candidate > now:
                return candidate
    raise RuntimeError("no order window configured")
