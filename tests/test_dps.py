from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from dps.bootstrap import run_migrations, transaction
from dps.error_mapper import map_datastore_error
from dps.errors import (
    DatastoreUnavailableError,
    IntegrityViolationError,
    NotFoundError,
    ValidationError,
)
from dps.partial_update import compile_update
from dps.repository import CatalogRepository


def create_repo() -> CatalogRepository:
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    run_migrations(conn)
    return CatalogRepository(conn=conn)


def test_compile_update_rejects_empty_changes() -> None:
    with pytest.raises(ValidationError):
        compile_update({}, {"price": "price"})


def test_compile_update_rejects_fields_outside_allow_list() -> None:
    with pytest.raises(ValidationError) as exc_info:
        compile_update({"foo": 1}, {"bar": "bar_col"})

    assert exc_info.value.code == "DFAC_VALIDATION_FAILED"
    assert exc_info.value.value == ["foo"]


def test_compile_update_single_field_binds_row_id_last() -> None:
    compiled = compile_update({"price": 5}, {"price": "price_col"})

    assert compiled.assignments == ('"price_col" = ?',)
    assert compiled.values == (5,)
    assert compiled.bind(42) == (5, 42)


def test_compile_update_keeps_caller_order_and_explicit_nulls() -> None:
    ready = datetime(2026, 10, 20, 7, 15, tzinfo=timezone.utc)
    compiled = compile_update(
        {"favorite": True, "readyTime": ready, "comments": None, "price": Decimal("4.25")},
        {"favorite": "favorite", "readyTime": "ready_for_pickup", "comments": "comments", "price": "price"},
    )

    assert compiled.set_clause == '"favorite" = ?, "ready_for_pickup" = ?, "comments" = ?, "price" = ?'
    assert compiled.values == (1, ready.isoformat(), None, "4.25")


def test_compile_update_refuses_unsafe_column_names() -> None:
    with pytest.raises(ValueError):
        compile_update({"price": 5}, {"price": "price; DROP TABLE meals"})


def test_soft_deleted_references_are_not_active() -> None:
    repo = create_repo()
    try:
        customer = repo.add_customer(username="pvt.jones")
        dfac = repo.add_dfac(dfac_name="Warrior Inn")

        assert repo.customer_exists(customer.customer_id) is True
        assert repo.dfac_exists(dfac.dfac_id) is True

        repo.remove_customer(customer.customer_id)
        repo.remove_dfac(dfac.dfac_id)

        assert repo.customer_exists(customer.customer_id) is False
        assert repo.dfac_exists(dfac.dfac_id) is False
        row = repo.conn.execute("SELECT COUNT(*) AS n FROM customers").fetchone()
        assert row["n"] == 1

        with pytest.raises(NotFoundError):
            repo.remove_customer(customer.customer_id)
    finally:
        repo.close()


def test_update_meal_uses_allow_list() -> None:
    repo = create_repo()
    try:
        dfac = repo.add_dfac(dfac_name="Warrior Inn")
        meal = repo.add_meal(dfac_id=dfac.dfac_id, meal_name="Chili Mac", price=Decimal("6.50"))

        updated = repo.update_meal(meal.meal_id, {"price": Decimal("7.25"), "description": None})
        assert updated.price == Decimal("7.25")
        assert updated.description is None
        assert updated.updated_at is not None
        assert updated.meal_name == "Chili Mac"

        with pytest.raises(ValidationError):
            repo.update_meal(meal.meal_id, {"likes": 1000})

        with pytest.raises(NotFoundError):
            repo.update_meal(9999, {"price": Decimal("1")})
    finally:
        repo.close()


def test_update_dfac_renames_logical_fields() -> None:
    repo = create_repo()
    try:
        dfac = repo.add_dfac(dfac_name="Warrior Inn", city="Fort Drum")

        updated = repo.update_dfac(dfac.dfac_id, {"street": "10 Main St", "flashMsg1": "Closed Sunday"})
        assert updated.street == "10 Main St"
        assert updated.flash_msg1 == "Closed Sunday"
        assert updated.city == "Fort Drum"
    finally:
        repo.close()


def test_update_dfac_hours_touches_only_hour_columns() -> None:
    repo = create_repo()
    try:
        dfac = repo.add_dfac(dfac_name="Warrior Inn", city="Fort Drum")
        assert dfac.hours.bf_hours is None

        updated = repo.update_dfac_hours(
            dfac.dfac_id,
            {"bfHours": "0630-0830", "orderBf": "0600-0800", "supHours": None},
        )
        assert updated.hours.bf_hours == "0630-0830"
        assert updated.hours.order_bf == "0600-0800"
        assert updated.hours.sup_hours is None
        assert updated.hours.lu_hours is None
        assert updated.city == "Fort Drum"
        assert updated.updated_at is not None

        with pytest.raises(ValidationError):
            repo.update_dfac_hours(dfac.dfac_id, {"city": "Watertown"})
        with pytest.raises(ValidationError):
            repo.update_dfac(dfac.dfac_id, {"bfHours": "0700-0900"})
        with pytest.raises(NotFoundError):
            repo.update_dfac_hours(9999, {"luHours": "1100-1300"})
    finally:
        repo.close()


def test_update_violating_constraint_maps_to_integrity_violation() -> None:
    repo = create_repo()
    try:
        dfac = repo.add_dfac(dfac_name="Warrior Inn")
        meal = repo.add_meal(dfac_id=dfac.dfac_id, meal_name="Chili Mac", price=Decimal("6.50"))

        with pytest.raises(IntegrityViolationError):
            repo.update_meal(meal.meal_id, {"mealName": None})
    finally:
        repo.close()


def test_transaction_rolls_back_and_closes_scope() -> None:
    repo = create_repo()
    try:
        with pytest.raises(RuntimeError):
            with transaction(repo.conn):
                repo.conn.execute(
                    "INSERT INTO customers(username, created_at) VALUES (?, ?)",
                    ("ghost", "2026-10-20T07:00:00+00:00"),
                )
                raise RuntimeError("boom")

        assert repo.conn.in_transaction is False
        row = repo.conn.execute("SELECT COUNT(*) AS n FROM customers").fetchone()
        assert row["n"] == 0

        with transaction(repo.conn):
            repo.conn.execute(
                "INSERT INTO customers(username, created_at) VALUES (?, ?)",
                ("kept", "2026-10-20T07:00:00+00:00"),
            )
        assert repo.conn.in_transaction is False
        row = repo.conn.execute("SELECT COUNT(*) AS n FROM customers").fetchone()
        assert row["n"] == 1
    finally:
        repo.close()


def test_map_datastore_error_kinds() -> None:
    assert isinstance(map_datastore_error(sqlite3.IntegrityError("fk")), IntegrityViolationError)
    unavailable = map_datastore_error(sqlite3.OperationalError("database is locked"))
    assert isinstance(unavailable, DatastoreUnavailableError)
    assert unavailable.retryable is True

    original = NotFoundError("No meal: 1")
    assert map_datastore_error(original) is original
