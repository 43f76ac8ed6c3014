from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from owg.rules import active_order_window, is_within_order_window, next_window_opening

# 2026-10-20 is a Tuesday, 2026-10-24 a Saturday.


def _tue(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2026, 10, 20, hour, minute, second)


def _sat(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 24, hour, minute)


def _sun(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 10, 25, hour, minute)


def test_reference_instants() -> None:
    assert is_within_order_window(_tue(7, 0)) is True
    assert is_within_order_window(_tue(9, 0)) is False
    assert is_within_order_window(_sat(8, 0)) is True
    assert is_within_order_window(_sun(13, 0)) is False


def test_weekday_windows_are_inclusive_to_the_second() -> None:
    assert is_within_order_window(_tue(6, 29, 59)) is False
    assert is_within_order_window(_tue(6, 30)) is True
    assert is_within_order_window(_tue(8, 30)) is True
    assert is_within_order_window(_tue(8, 30, 1)) is False
    assert is_within_order_window(_tue(10, 0)) is True
    assert is_within_order_window(_tue(11, 0)) is True
    assert is_within_order_window(_tue(15, 45)) is True
    assert is_within_order_window(_tue(16, 31)) is False


def test_weekend_windows_use_hour_granularity() -> None:
    assert is_within_order_window(_sat(7, 5)) is True
    assert is_within_order_window(_sat(10, 59)) is True
    assert is_within_order_window(_sat(11, 0)) is False
    assert is_within_order_window(_sun(14, 0)) is True
    assert is_within_order_window(_sun(15, 30)) is False
    assert is_within_order_window(_sun(6, 59)) is False


def test_aware_timestamps_use_their_own_wall_clock() -> None:
    assert is_within_order_window(datetime(2026, 10, 20, 7, 0, tzinfo=timezone.utc)) is True


def test_active_order_window_names_the_meal() -> None:
    assert active_order_window(_tue(10, 30)).name == "lunch"
    assert active_order_window(_sat(14, 10)).name == "dinner"
    assert active_order_window(_tue(12, 0)) is None


def test_next_window_opening() -> None:
    assert next_window_opening(_tue(9, 0)) == _tue(10, 0)
    assert next_window_opening(_tue(17, 0)) == datetime(2026, 10, 21, 6, 30)
    assert next_window_opening(datetime(2026, 10, 23, 17, 0)) == _sat(7, 0)
    assert next_window_opening(_sun(16, 0)) == datetime(2026, 10, 26, 6, 30)
