from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OrderCreateRequest(BaseModel):
    customerID: int
    dfacID: int
    mealID: int
    comments: str | None = Field(default=None, max_length=500)
    toGo: bool = True
    quantity: int = Field(default=1, strict=True, gt=0)
    specialInstructions: str | None = Field(default=None, max_length=500)


class OrderStatusUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    readyTime: datetime | None = None
    pickedUpTime: datetime | None = None
    canceled: bool | None = None
    favorite: bool | None = None
    comments: str | None = None
    toGo: bool | None = None


class MealUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mealName: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    type: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    imgPic: str | None = None


class DfacUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dfacName: str | None = Field(default=None, min_length=1, max_length=100)
    street: str | None = None
    city: str | None = None
    state: str | None = Field(default=None, max_length=2)
    zip: str | None = Field(default=None, max_length=10)
    dfacPhone: str | None = None
    flashMsg1: str | None = None
    flashMsg2: str | None = None


class DfacHoursUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bfHours: str | None = Field(default=None, max_length=50)
    luHours: str | None = Field(default=None, max_length=50)
    dnHours: str | None = Field(default=None, max_length=50)
    bchHours: str | None = Field(default=None, max_length=50)
    supHours: str | None = Field(default=None, max_length=50)
    orderBf: str | None = Field(default=None, max_length=50)
    orderLu: str | None = Field(default=None, max_length=50)
    orderDn: str | None = Field(default=None, max_length=50)
    orderBch: str | None = Field(default=None, max_length=50)
    orderSup: str | None = Field(default=None, max_length=50)


def build_success_envelope(*, request_id: str, data: dict[str, Any]) -> dict[str, Any]:
    return {
        "success": True,
        "requestId": request_id,
        "data": data,
        "meta": {"timestamp": datetime.now().astimezone().isoformat()},
    }


def build_error_envelope(
    *,
    request_id: str,
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    retryable: bool = False,
) -> dict[str, Any]:
    return {
        "success": False,
        "requestId": request_id,
        "error": {
            "code": code,
            "message": message,
            "retryable": retryable,
            "source": "DAG",
            "details": details or [],
        },
        "meta": {"timestamp": datetime.now().astimezone().isoformat()},
    }
