from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class CustomerView:
    customer_id: int
    username: str
    first_name: str | None
    last_name: str | None
    email: str | None
    created_at: datetime


@dataclass(frozen=True)
class DfacView:
    dfac_id: int
    dfac_name: str
    street: str | None
    city: str | None
    state: str | None
    zip: str | None
    dfac_phone: str | None
    flash_msg1: str | None
    flash_msg2: str | None
    hours: DfacHoursView
    created_at: datetime
    updated_at: datetime | None


@dataclass(frozen=True)
class DfacHoursView:
    """Serving hours and order cut-off times per meal period, kept as display text."""

    bf_hours: str | None = None
    lu_hours: str | None = None
    dn_hours: str | None = None
    bch_hours: str | None = None
    sup_hours: str | None = None
    order_bf: str | None = None
    order_lu: str | None = None
    order_dn: str | None = None
    order_bch: str | None = None
    order_sup: str | None = None


@dataclass(frozen=True)
class MealView:
    meal_id: int
    dfac_id: int
    meal_name: str
    description: str | None
    type: str | None
    price: Decimal
    img_pic: str | None
    likes: int
    created_at: datetime
    updated_at: datetime | None
