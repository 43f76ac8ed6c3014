from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from dps.errors import InvalidTransitionError, OrderAlreadyTerminalError, ValidationError

from .models import OrderStatus, OrderView

ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    "CREATED": {"READY_FOR_PICKUP", "CANCELED"},
    "READY_FOR_PICKUP": {"PICKED_UP", "CANCELED"},
    "PICKED_UP": set(),
    "CANCELED": set(),
}

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

ORDER_STATUS_FIELDS: dict[str, str] = {
    "readyTime": "ready_for_pickup",
    "pickedUpTime": "picked_up",
    "canceled": "canceled",
    "favorite": "favorite",
    "comments": "comments",
    "toGo": "to_go",
}

_TIMESTAMP_FIELDS = ("readyTime", "pickedUpTime")
_BOOLEAN_FIELDS = ("canceled", "favorite", "toGo")


def _parse_timestamp(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    raise ValidationError(f"{name} must be an ISO-8601 timestamp", field=name, value=value)


def normalize_status_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    normalized = dict(fields)
    for name in _TIMESTAMP_FIELDS:
        if name in normalized and normalized[name] is not None:
            normalized[name] = _parse_timestamp(name, normalized[name])
    for name in _BOOLEAN_FIELDS:
        if name in normalized and not isinstance(normalized[name], bool):
            raise ValidationError(f"{name} must be a boolean", field=name, value=normalized[name])
    return normalized


def _precedes(later: datetime, earlier: datetime) -> bool:
    try:
        return later < earlier
    except TypeError:
        raise ValidationError(
            "readyTime and pickedUpTime must both carry a timezone or both omit it",
            field="pickedUpTime",
            value=later.isoformat(),
        ) from None


def _require(order: OrderView, target: OrderStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[order.status]:
        raise InvalidTransitionError(
            f"invalid transition: {order.status} -> {target}",
            field="status",
            value={"orderID": order.order_id, "from": order.status, "to": target},
        )


def resolve_target_status(order: OrderView, changes: Mapping[str, Any]) -> OrderStatus:
    """Check ``changes`` against ``order``'s current state and return the resulting status.

    ``favorite`` is orthogonal and accepted in every state. Every other field
    is rejected once the order is picked up or canceled. Raises
    ``InvalidTransitionError`` for moves the lifecycle does not allow.
    """
    if order.status in TERMINAL_STATUSES and set(changes) - {"favorite"}:
        raise OrderAlreadyTerminalError(
            f"order {order.order_id} is already {order.status}",
            field="status",
            value={"orderID": order.order_id, "status": order.status},
        )

    for name in _TIMESTAMP_FIELDS:
        if name in changes and changes[name] is None:
            raise InvalidTransitionError(f"{name} cannot be cleared", field=name, value=None)
    if changes.get("canceled") is False:
        raise InvalidTransitionError("a canceled flag cannot be withdrawn", field="canceled", value=False)

    ready_time = changes.get("readyTime")
    picked_up_time = changes.get("pickedUpTime")
    canceling = changes.get("canceled") is True

    if canceling and picked_up_time is not None:
        raise InvalidTransitionError(
            "an order cannot be canceled and picked up at once",
            field="canceled",
            value={"orderID": order.order_id},
        )

    status = order.status
    if ready_time is not None:
        _require(order, "READY_FOR_PICKUP")
        status = "READY_FOR_PICKUP"

    if picked_up_time is not None:
        if status != "READY_FOR_PICKUP":
            _require(order, "PICKED_UP")
        effective_ready = ready_time if ready_time is not None else order.ready_time
        if effective_ready is not None and _precedes(picked_up_time, effective_ready):
            raise InvalidTransitionError(
                "pickedUpTime precedes readyTime",
                field="pickedUpTime",
                value={"readyTime": effective_ready.isoformat(), "pickedUpTime": picked_up_time.isoformat()},
            )
        status = "PICKED_UP"

    if canceling:
        if status != order.status:
            raise InvalidTransitionError(
                "an order cannot be marked ready and canceled at once",
                field="canceled",
                value={"orderID": order.order_id},
            )
        _require(order, "CANCELED")
        status = "CANCELED"

    return status
