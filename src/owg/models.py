from __future__ import annotations

from dataclasses import dataclass
from datetime import time as dt_time


@dataclass(frozen=True)
class OrderWindow:
    name: str
    start: dt_time
    end: dt_time
