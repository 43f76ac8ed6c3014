from __future__ import annotations

import sqlite3
from datetime import datetime
from decimal import Decimal

from dps.errors import NotFoundError
from dps.models import MealView
from dps.partial_update import CompiledUpdate
from dps.repository import row_to_meal

from .models import OrderLineView, OrderView

_ORDER_COLUMNS = """
    id, customer_id, dfac_id, comments, to_go, order_timestamp, ready_for_pickup,
    picked_up, canceled, canceled_at, favorite, deleted_at
"""

_ORDER_LINE_COLUMNS = """
    id, order_id, meal_id, quantity, special_instructions, price_at_order
"""


def _to_datetime(value) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _row_to_order(row: sqlite3.Row) -> OrderView:
    return OrderView(
        order_id=int(row["id"]),
        customer_id=int(row["customer_id"]),
        dfac_id=int(row["dfac_id"]),
        comments=row["comments"],
        to_go=bool(row["to_go"]),
        order_timestamp=datetime.fromisoformat(row["order_timestamp"]),
        ready_time=_to_datetime(row["ready_for_pickup"]),
        picked_up_time=_to_datetime(row["picked_up"]),
        canceled=bool(row["canceled"]),
        canceled_at=_to_datetime(row["canceled_at"]),
        favorite=bool(row["favorite"]),
        deleted_at=_to_datetime(row["deleted_at"]),
    )


def _row_to_order_line(row: sqlite3.Row) -> OrderLineView:
    price = row["price_at_order"]
    return OrderLineView(
        order_line_id=int(row["id"]),
        order_id=int(row["order_id"]),
        meal_id=int(row["meal_id"]),
        quantity=int(row["quantity"]),
        special_instructions=row["special_instructions"],
        price_at_order=Decimal(str(price)) if price is not None else None,
    )


class OrderRepository:
    """SQL for ``orders`` and ``order_meals``.

    Write methods never commit: they run inside the caller's
    ``dps.bootstrap.transaction`` scope.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def insert_order(
        self,
        *,
        customer_id: int,
        dfac_id: int,
        comments: str | None,
        to_go: bool,
        order_timestamp: datetime,
    ) -> OrderView:
        cursor = self.conn.execute(
            """
            INSERT INTO orders(customer_id, dfac_id, comments, to_go, order_timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (customer_id, dfac_id, comments, 1 if to_go else 0, order_timestamp.isoformat()),
        )
        row = self.conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ?",
            (cursor.lastrowid,),
        ).fetchone()
        return _row_to_order(row)

    def insert_order_line(
        self,
        *,
        order_id: int,
        meal_id: int,
        quantity: int,
        special_instructions: str | None,
    ) -> OrderLineView:
        # price_at_order is filled by trg_order_meals_price_at_order
        cursor = self.conn.execute(
            """
            INSERT INTO order_meals(order_id, meal_id, quantity, special_instructions)
            VALUES (?, ?, ?, ?)
            """,
            (order_id, meal_id, quantity, special_instructions),
        )
        row = self.conn.execute(
            f"SELECT {_ORDER_LINE_COLUMNS} FROM order_meals WHERE id = ?",
            (cursor.lastrowid,),
        ).fetchone()
        return _row_to_order_line(row)

    def get_order(self, order_id: int, *, include_deleted: bool = False) -> OrderView | None:
        deleted_sql = "" if include_deleted else "AND deleted_at IS NULL"
        row = self.conn.execute(
            f"SELECT {_ORDER_COLUMNS} FROM orders WHERE id = ? {deleted_sql}",
            (order_id,),
        ).fetchone()
        if not row:
            return None
        return _row_to_order(row)

    def get_order_meal(self, order_id: int) -> MealView | None:
        row = self.conn.execute(
            """
            SELECT m.id, m.dfac_id, m.meal_name, m.description, m.type, m.price,
                   m.img_pic, m.likes, m.created_at, m.updated_at
            FROM meals m
            JOIN order_meals om ON m.id = om.meal_id
            WHERE om.order_id = ?
            ORDER BY om.id ASC
            LIMIT 1
            """,
            (order_id,),
        ).fetchone()
        if not row:
            return None
        return row_to_meal(row)

    def list_order_lines(self, order_id: int) -> list[OrderLineView]:
        rows = self.conn.execute(
            f"SELECT {_ORDER_LINE_COLUMNS} FROM order_meals WHERE order_id = ? ORDER BY id ASC",
            (order_id,),
        ).fetchall()
        return [_row_to_order_line(row) for row in rows]

    def list_orders(self, *, customer_id: int | None = None, include_deleted: bool = False) -> list[OrderView]:
        clauses: list[str] = []
        args: list[object] = []

        if customer_id is not None:
            clauses.append("customer_id = ?")
            args.append(customer_id)
        if not include_deleted:
            clauses.append("deleted_at IS NULL")

        where_sql = ""
        if clauses:
            where_sql = "WHERE " + " AND ".join(clauses)

        rows = self.conn.execute(
            f"""
            SELECT {_ORDER_COLUMNS}
            FROM orders
            {where_sql}
            ORDER BY id ASC
            """,
            tuple(args),
        ).fetchall()
        return [_row_to_order(row) for row in rows]

    def apply_update(
        self,
        order_id: int,
        compiled: CompiledUpdate,
        *,
        canceled_at: datetime | None = None,
    ) -> OrderView:
        set_clause = compiled.set_clause
        params = compiled.bind(order_id)
        if canceled_at is not None:
            set_clause = f"canceled_at = ?, {set_clause}"
            params = (canceled_at.isoformat(), *params)

        self.conn.execute(
            f"UPDATE orders SET {set_clause} WHERE id = ? AND deleted_at IS NULL",
            params,
        )
        order = self.get_order(order_id)
        if order is None:
            raise NotFoundError(f"No orderID: {order_id}", field="orderID", value=order_id)
        return order

    def soft_delete(self, order_id: int, *, deleted_at: datetime) -> bool:
        cursor = self.conn.execute(
            "UPDATE orders SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
            (deleted_at.isoformat(), order_id),
        )
        return cursor.rowcount > 0
