from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Literal

from dps.models import MealView

OrderStatus = Literal[
    "CREATED",
    "READY_FOR_PICKUP",
    "PICKED_UP",
    "CANCELED",
]


@dataclass(frozen=True)
class OrderView:
    order_id: int
    customer_id: int
    dfac_id: int
    comments: str | None
    to_go: bool
    order_timestamp: datetime
    ready_time: datetime | None
    picked_up_time: datetime | None
    canceled: bool
    canceled_at: datetime | None
    favorite: bool
    deleted_at: datetime | None = None

    @property
    def status(self) -> OrderStatus:
        if self.canceled:
            return "CANCELED"
        if self.picked_up_time is not None:
            return "PICKED_UP"
        if self.ready_time is not None:
            return "READY_FOR_PICKUP"
        return "CREATED"


@dataclass(frozen=True)
class OrderLineView:
    order_line_id: int
    order_id: int
    meal_id: int
    quantity: int
    special_instructions: str | None
    price_at_order: Decimal | None


@dataclass(frozen=True)
class OrderPlacement:
    meal: MealView
    order: OrderView
    order_line: OrderLineView


@dataclass(frozen=True)
class OrderWithMeal:
    order: OrderView
    meal: MealView


@dataclass(frozen=True)
class CallerIdentity:
    username: str
    is_admin: bool = False
    is_manager: bool = False
    capabilities: frozenset[str] = field(default_factory=frozenset)
