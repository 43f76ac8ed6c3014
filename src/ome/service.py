from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Callable, Mapping

from dps.bootstrap import transaction
from dps.error_mapper import map_datastore_error
from dps.errors import (
    BadReferenceError,
    DfacError,
    IntegrityViolationError,
    NotFoundError,
    OrderWindowClosedError,
    ValidationError,
)
from dps.partial_update import compile_update
from dps.repository import CatalogRepository
from owg.rules import is_within_order_window, next_window_opening

from .models import CallerIdentity, OrderPlacement, OrderView, OrderWithMeal
from .repository import OrderRepository
from .state_machine import ORDER_STATUS_FIELDS, normalize_status_fields, resolve_target_status


def _local_now() -> datetime:
    return datetime.now().astimezone()


def validate_quantity(quantity: object) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer", field="quantity", value=quantity)
    return quantity


class OmeService:
    """Order creation, lookup, removal and status updates over one sqlite connection.

    ``enforce_order_window`` turns the admission gate on for ``create_order``;
    it is off by default so tests and admin tooling can place orders at any
    hour. ``clock`` supplies every timestamp the service writes.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        enforce_order_window: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._logger = logging.getLogger("dfacdash.ome")
        self.conn = conn
        self.catalog = CatalogRepository(conn=conn)
        self.orders = OrderRepository(conn)
        self.enforce_order_window = enforce_order_window
        self.clock = clock or _local_now

    def create_order(
        self,
        *,
        customer_id: int,
        dfac_id: int,
        meal_id: int,
        comments: str | None = None,
        to_go: bool = True,
        quantity: int = 1,
        special_instructions: str | None = None,
    ) -> OrderPlacement:
        validate_quantity(quantity)
        now = self.clock()
        if self.enforce_order_window and not is_within_order_window(now):
            opens_at = next_window_opening(now)
            raise OrderWindowClosedError(
                f"Ordering is not allowed at {now.isoformat()}; next window opens at {opens_at.isoformat()}",
                field="orderTimestamp",
                value=now.isoformat(),
            )

        try:
            with transaction(self.conn):
                if not self.catalog.customer_exists(customer_id):
                    raise BadReferenceError("customerID", customer_id)
                if not self.catalog.dfac_exists(dfac_id):
                    raise BadReferenceError("dfacID", dfac_id)

                order = self.orders.insert_order(
                    customer_id=customer_id,
                    dfac_id=dfac_id,
                    comments=comments,
                    to_go=to_go,
                    order_timestamp=now,
                )

                meal = self.catalog.get_meal(meal_id, include_deleted=False)
                if meal is None:
                    raise NotFoundError(f"Meal not found: {meal_id}", field="mealID", value=meal_id)

                order_line = self.orders.insert_order_line(
                    order_id=order.order_id,
                    meal_id=meal_id,
                    quantity=quantity,
                    special_instructions=special_instructions,
                )
        except sqlite3.Error as exc:
            self._logger.exception("Order creation failed in datastore: customer_id=%s meal_id=%s", customer_id, meal_id)
            raise map_datastore_error(exc) from exc
        except DfacError as exc:
            self._logger.info(
                "Order creation rejected: customer_id=%s dfac_id=%s meal_id=%s code=%s",
                customer_id,
                dfac_id,
                meal_id,
                exc.code,
            )
            raise

        self._logger.info(
            "Order created: order_id=%s customer_id=%s dfac_id=%s meal_id=%s quantity=%s price_at_order=%s",
            order.order_id,
            customer_id,
            dfac_id,
            meal_id,
            quantity,
            order_line.price_at_order,
        )
        return OrderPlacement(meal=meal, order=order, order_line=order_line)

    def get_order(self, order_id: int) -> OrderWithMeal:
        order = self.orders.get_order(order_id)
        if order is None:
            raise NotFoundError(f"No orderID: {order_id}", field="orderID", value=order_id)

        meal = self.orders.get_order_meal(order_id)
        if meal is None:
            raise IntegrityViolationError(f"No meal in orderID: {order_id}", field="orderID", value=order_id)

        return OrderWithMeal(order=order, meal=meal)

    def list_orders(self, *, customer_id: int | None = None, include_deleted: bool = False) -> list[OrderView]:
        return self.orders.list_orders(customer_id=customer_id, include_deleted=include_deleted)

    def remove_order(self, order_id: int) -> int:
        try:
            with transaction(self.conn):
                removed = self.orders.soft_delete(order_id, deleted_at=self.clock())
                if not removed:
                    raise NotFoundError(f"No order: {order_id}", field="orderID", value=order_id)
        except sqlite3.Error as exc:
            raise map_datastore_error(exc) from exc

        self._logger.info("Order removed: order_id=%s", order_id)
        return order_id

    def update_status(
        self,
        order_id: int,
        fields: Mapping[str, Any],
        *,
        caller: CallerIdentity | None = None,
    ) -> OrderView:
        changes = normalize_status_fields(fields)
        compiled = compile_update(changes, ORDER_STATUS_FIELDS)

        try:
            with transaction(self.conn):
                order = self.orders.get_order(order_id)
                if order is None:
                    raise NotFoundError(f"No orderID: {order_id}", field="orderID", value=order_id)

                target = resolve_target_status(order, changes)
                canceled_at = self.clock() if target == "CANCELED" and order.status != "CANCELED" else None
                updated = self.orders.apply_update(order_id, compiled, canceled_at=canceled_at)
        except sqlite3.Error as exc:
            raise map_datastore_error(exc) from exc
        except DfacError as exc:
            self._logger.warning(
                "Order status update rejected: order_id=%s fields=%s code=%s",
                order_id,
                sorted(changes),
                exc.code,
            )
            raise

        self._logger.info(
            "Order status updated: order_id=%s %s -> %s fields=%s caller=%s",
            order_id,
            order.status,
            updated.status,
            sorted(changes),
            caller.username if caller else None,
        )
        return updated
