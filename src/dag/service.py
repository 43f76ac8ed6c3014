from __future__ import annotations

import logging
from contextlib import closing, contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterator

from dps.bootstrap import get_connection, initialize_database
from dps.errors import DfacError
from dps.models import DfacView, MealView
from dps.repository import CatalogRepository
from ome.models import OrderLineView, OrderView
from ome.service import OmeService


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def to_decimal_string(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return format(value, "f")


def serialize_order(order: OrderView) -> dict[str, Any]:
    return {
        "orderID": order.order_id,
        "customerID": order.customer_id,
        "dfacID": order.dfac_id,
        "comments": order.comments,
        "toGo": order.to_go,
        "orderTimestamp": order.order_timestamp.isoformat(),
        "readyTime": _iso(order.ready_time),
        "pickedUpTime": _iso(order.picked_up_time),
        "canceled": order.canceled,
        "canceledAtTime": _iso(order.canceled_at),
        "favorite": order.favorite,
        "status": order.status,
    }


def serialize_order_line(order_line: OrderLineView) -> dict[str, Any]:
    return {
        "orderLineID": order_line.order_line_id,
        "orderID": order_line.order_id,
        "mealID": order_line.meal_id,
        "quantity": order_line.quantity,
        "specialInstructions": order_line.special_instructions,
        "priceAtOrder": to_decimal_string(order_line.price_at_order),
    }


def serialize_meal(meal: MealView) -> dict[str, Any]:
    return {
        "mealID": meal.meal_id,
        "dfacID": meal.dfac_id,
        "mealName": meal.meal_name,
        "description": meal.description,
        "type": meal.type,
        "price": to_decimal_string(meal.price),
        "imgPic": meal.img_pic,
        "likes": meal.likes,
        "updatedAt": _iso(meal.updated_at),
    }


def serialize_dfac(dfac: DfacView) -> dict[str, Any]:
    hours = dfac.hours
    return {
        "dfacID": dfac.dfac_id,
        "dfacName": dfac.dfac_name,
        "street": dfac.street,
        "city": dfac.city,
        "state": dfac.state,
        "zip": dfac.zip,
        "dfacPhone": dfac.dfac_phone,
        "flashMsg1": dfac.flash_msg1,
        "flashMsg2": dfac.flash_msg2,
        "bfHours": hours.bf_hours,
        "luHours": hours.lu_hours,
        "dnHours": hours.dn_hours,
        "bchHours": hours.bch_hours,
        "supHours": hours.sup_hours,
        "orderBf": hours.order_bf,
        "orderLu": hours.order_lu,
        "orderDn": hours.order_dn,
        "orderBch": hours.order_bch,
        "orderSup": hours.order_sup,
        "updatedAt": _iso(dfac.updated_at),
    }


class DagService:
    def __init__(
        self,
        *,
        db_path: str = "runtime/state/dfacdash.db",
        enforce_order_window: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._logger = logging.getLogger("dfacdash.dag")
        self.db_path = db_path
        self.enforce_order_window = enforce_order_window
        self.clock = clock
        initialize_database(db_path).close()

    @contextmanager
    def _ome_service(self) -> Iterator[OmeService]:
        with closing(get_connection(self.db_path)) as conn:
            yield OmeService(conn, enforce_order_window=self.enforce_order_window, clock=self.clock)

    @contextmanager
    def _catalog(self) -> Iterator[CatalogRepository]:
        with closing(get_connection(self.db_path)) as conn:
            yield CatalogRepository(conn=conn)

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        with self._ome_service() as ome_service:
            placement = ome_service.create_order(
                customer_id=payload["customerID"],
                dfac_id=payload["dfacID"],
                meal_id=payload["mealID"],
                comments=payload.get("comments"),
                to_go=payload.get("toGo", True),
                quantity=payload.get("quantity", 1),
                special_instructions=payload.get("specialInstructions"),
            )
        return {
            "meal": serialize_meal(placement.meal),
            "order": serialize_order(placement.order),
            "orderLine": serialize_order_line(placement.order_line),
        }

    def list_orders(self, *, customer_id: int | None) -> dict[str, Any]:
        with self._ome_service() as ome_service:
            orders = ome_service.list_orders(customer_id=customer_id)
        return {"orders": [serialize_order(order) for order in orders]}

    def get_order(self, order_id: int) -> dict[str, Any]:
        with self._ome_service() as ome_service:
            found = ome_service.get_order(order_id)
        return {"order": serialize_order(found.order), "meal": serialize_meal(found.meal)}

    def update_order_status(self, order_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        with self._ome_service() as ome_service:
            order = ome_service.update_status(order_id, fields)
        return {"order": serialize_order(order)}

    def remove_order(self, order_id: int) -> dict[str, Any]:
        with self._ome_service() as ome_service:
            removed = ome_service.remove_order(order_id)
        return {"deleted": removed}

    def update_meal(self, meal_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        with self._catalog() as catalog:
            meal = catalog.update_meal(meal_id, fields)
        return {"meal": serialize_meal(meal)}

    def update_dfac(self, dfac_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        with self._catalog() as catalog:
            dfac = catalog.update_dfac(dfac_id, fields)
        return {"dfac": serialize_dfac(dfac)}

    def update_dfac_hours(self, dfac_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        with self._catalog() as catalog:
            dfac = catalog.update_dfac_hours(dfac_id, fields)
        return {"dfac": serialize_dfac(dfac)}

    def shutdown(self) -> None:
        self._logger.info("Shutdown requested: db_path=%s", self.db_path)


def map_dfac_error(error: DfacError) -> int:
    status_by_code = {
        "DFAC_VALIDATION_FAILED": 400,
        "DFAC_BAD_REFERENCE": 400,
        "DFAC_NOT_FOUND": 404,
        "ORDER_INVALID_TRANSITION": 409,
        "ORDER_ALREADY_TERMINAL": 409,
        "ORDER_WINDOW_CLOSED": 403,
        "DFAC_INTEGRITY_VIOLATION": 500,
        "DFAC_DATASTORE_UNAVAILABLE": 503,
    }
    return status_by_code.get(error.code, 500)
