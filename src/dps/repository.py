from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping

from .bootstrap import initialize_database
from .error_mapper import map_datastore_error
from .errors import NotFoundError
from .models import CustomerView, DfacHoursView, DfacView, MealView
from .partial_update import CompiledUpdate, compile_update, to_sql_value

MEAL_UPDATE_FIELDS: dict[str, str] = {
    "mealName": "meal_name",
    "description": "description",
    "type": "type",
    "price": "price",
    "imgPic": "img_pic",
}

DFAC_UPDATE_FIELDS: dict[str, str] = {
    "dfacName": "dfac_name",
    "street": "street_address",
    "city": "city",
    "state": "state_abb",
    "zip": "zip",
    "dfacPhone": "dfac_phone",
    "flashMsg1": "flash_msg1",
    "flashMsg2": "flash_msg2",
}

DFAC_HOURS_FIELDS: dict[str, str] = {
    "bfHours": "bf_hours",
    "luHours": "lu_hours",
    "dnHours": "dn_hours",
    "bchHours": "bch_hours",
    "supHours": "sup_hours",
    "orderBf": "order_timebf",
    "orderLu": "order_timelu",
    "orderDn": "order_timedn",
    "orderBch": "order_timebch",
    "orderSup": "order_timesup",
}

_MEAL_COLUMNS = """
    id, dfac_id, meal_name, description, type, price, img_pic, likes, created_at, updated_at
"""

_DFAC_COLUMNS = """
    id, dfac_name, street_address, city, state_abb, zip, dfac_phone,
    flash_msg1, flash_msg2, bf_hours, lu_hours, dn_hours, bch_hours, sup_hours,
    order_timebf, order_timelu, order_timedn, order_timebch, order_timesup,
    created_at, updated_at
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _to_datetime(value) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def row_to_meal(row: sqlite3.Row) -> MealView:
    return MealView(
        meal_id=int(row["id"]),
        dfac_id=int(row["dfac_id"]),
        meal_name=row["meal_name"],
        description=row["description"],
        type=row["type"],
        price=_to_decimal(row["price"]),
        img_pic=row["img_pic"],
        likes=int(row["likes"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


def _row_to_dfac(row: sqlite3.Row) -> DfacView:
    return DfacView(
        dfac_id=int(row["id"]),
        dfac_name=row["dfac_name"],
        street=row["street_address"],
        city=row["city"],
        state=row["state_abb"],
        zip=row["zip"],
        dfac_phone=row["dfac_phone"],
        flash_msg1=row["flash_msg1"],
        flash_msg2=row["flash_msg2"],
        hours=DfacHoursView(
            bf_hours=row["bf_hours"],
            lu_hours=row["lu_hours"],
            dn_hours=row["dn_hours"],
            bch_hours=row["bch_hours"],
            sup_hours=row["sup_hours"],
            order_bf=row["order_timebf"],
            order_lu=row["order_timelu"],
            order_dn=row["order_timedn"],
            order_bch=row["order_timebch"],
            order_sup=row["order_timesup"],
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=_to_datetime(row["updated_at"]),
    )


class CatalogRepository:
    """Customers, dfacs and meals: the entities orders reference but never own."""

    def __init__(self, conn: sqlite3.Connection | None = None, db_path: str = "runtime/state/dfacdash.db") -> None:
        self.conn = conn or initialize_database(db_path)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "CatalogRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def add_customer(
        self,
        *,
        username: str,
        first_name: str | None = None,
        last_name: str | None = None,
        email: str | None = None,
    ) -> CustomerView:
        created_at = _utc_now()
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO customers(username, first_name, last_name, email, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (username, first_name, last_name, email, created_at.isoformat()),
            )
        return CustomerView(
            customer_id=int(cursor.lastrowid),
            username=username,
            first_name=first_name,
            last_name=last_name,
            email=email,
            created_at=created_at,
        )

    def add_dfac(
        self,
        *,
        dfac_name: str,
        street: str | None = None,
        city: str | None = None,
        state: str | None = None,
        zip: str | None = None,
        dfac_phone: str | None = None,
    ) -> DfacView:
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO dfacs(dfac_name, street_address, city, state_abb, zip, dfac_phone, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (dfac_name, street, city, state, zip, dfac_phone, _utc_now().isoformat()),
            )
        return self.get_dfac(int(cursor.lastrowid))

    def add_meal(
        self,
        *,
        dfac_id: int,
        meal_name: str,
        price: Decimal,
        description: str | None = None,
        type: str | None = None,
        img_pic: str | None = None,
    ) -> MealView:
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT INTO meals(dfac_id, meal_name, description, type, price, img_pic, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (dfac_id, meal_name, description, type, str(price), img_pic, _utc_now().isoformat()),
            )
        return self._require_meal(int(cursor.lastrowid))

    def customer_exists(self, customer_id: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM customers WHERE id = ? AND deleted_at IS NULL LIMIT 1",
            (customer_id,),
        ).fetchone()
        return row is not None

    def dfac_exists(self, dfac_id: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM dfacs WHERE id = ? AND deleted_at IS NULL LIMIT 1",
            (dfac_id,),
        ).fetchone()
        return row is not None

    def get_meal(self, meal_id: int, *, include_deleted: bool = True) -> MealView | None:
        deleted_sql = "" if include_deleted else "AND deleted_at IS NULL"
        row = self.conn.execute(
            f"SELECT {_MEAL_COLUMNS} FROM meals WHERE id = ? {deleted_sql}",
            (meal_id,),
        ).fetchone()
        if not row:
            return None
        return row_to_meal(row)

    def get_dfac(self, dfac_id: int) -> DfacView:
        row = self.conn.execute(
            f"SELECT {_DFAC_COLUMNS} FROM dfacs WHERE id = ?",
            (dfac_id,),
        ).fetchone()
        if not row:
            raise NotFoundError(f"No dfac: {dfac_id}", field="dfacID", value=dfac_id)
        return _row_to_dfac(row)

    def update_meal(self, meal_id: int, data: Mapping[str, Any]) -> MealView:
        compiled = compile_update(data, MEAL_UPDATE_FIELDS)
        self._apply_update("meals", meal_id, compiled, field="mealID")
        return self._require_meal(meal_id)

    def update_dfac(self, dfac_id: int, data: Mapping[str, Any]) -> DfacView:
        compiled = compile_update(data, DFAC_UPDATE_FIELDS)
        self._apply_update("dfacs", dfac_id, compiled, field="dfacID")
        return self.get_dfac(dfac_id)

    def update_dfac_hours(self, dfac_id: int, data: Mapping[str, Any]) -> DfacView:
        compiled = compile_update(data, DFAC_HOURS_FIELDS)
        self._apply_update("dfacs", dfac_id, compiled, field="dfacID")
        return self.get_dfac(dfac_id)

    def _require_meal(self, meal_id: int) -> MealView:
        meal = self.get_meal(meal_id)
        if meal is None:
            raise NotFoundError(f"No meal: {meal_id}", field="mealID", value=meal_id)
        return meal

    def _apply_update(self, table: str, row_id: int, compiled: CompiledUpdate, *, field: str) -> None:
        try:
            with self.conn:
                cursor = self.conn.execute(
                    f"""
                    UPDATE {table}
                    SET updated_at = ?, {compiled.set_clause}
                    WHERE id = ? AND deleted_at IS NULL
                    """,
                    (to_sql_value(_utc_now()), *compiled.bind(row_id)),
                )
        except sqlite3.Error as exc:
            raise map_datastore_error(exc) from exc
        if cursor.rowcount == 0:
            raise NotFoundError(f"No {table[:-1]}: {row_id}", field=field, value=row_id)

    def remove_customer(self, customer_id: int) -> None:
        self._soft_delete("customers", customer_id, field="customerID")

    def remove_dfac(self, dfac_id: int) -> None:
        self._soft_delete("dfacs", dfac_id, field="dfacID")

    def remove_meal(self, meal_id: int) -> None:
        self._soft_delete("meals", meal_id, field="mealID")

    def _soft_delete(self, table: str, row_id: int, *, field: str) -> None:
        with self.conn:
            cursor = self.conn.execute(
                f"UPDATE {table} SET deleted_at = ? WHERE id = ? AND deleted_at IS NULL",
                (_utc_now().isoformat(), row_id),
            )
        if cursor.rowcount == 0:
            raise NotFoundError(f"No {table[:-1]}: {row_id}", field=field, value=row_id)
