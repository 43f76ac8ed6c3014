from __future__ import annotations

import sqlite3

from .errors import DatastoreUnavailableError, DfacError, IntegrityViolationError


def map_datastore_error(exc: Exception) -> DfacError:
    if isinstance(exc, DfacError):
        return exc
    if isinstance(exc, sqlite3.IntegrityError):
        return IntegrityViolationError(f"datastore constraint failed: {exc}")
    if isinstance(exc, sqlite3.OperationalError):
        return DatastoreUnavailableError(f"datastore unavailable: {exc}")
    if isinstance(exc, sqlite3.Error):
        return IntegrityViolationError(f"datastore error: {exc}")
    raise TypeError(f"not a datastore error: {exc!r}")
