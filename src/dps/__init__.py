from .bootstrap import initialize_database, run_migrations, transaction
from .error_mapper import map_datastore_error
from .errors import (
    BadReferenceError,
    DatastoreUnavailableError,
    DfacError,
    IntegrityViolationError,
    InvalidTransitionError,
    NotFoundError,
    OrderAlreadyTerminalError,
    OrderWindowClosedError,
    ValidationError,
)
from .models import CustomerView, DfacHoursView, DfacView, MealView
from .partial_update import CompiledUpdate, compile_update
from .repository import CatalogRepository

__all__ = [
    "initialize_database",
    "run_migrations",
    "transaction",
    "map_datastore_error",
    "compile_update",
    "CompiledUpdate",
    "CatalogRepository",
    "CustomerView",
    "DfacView",
    "DfacHoursView",
    "MealView",
    "DfacError",
    "ValidationError",
    "BadReferenceError",
    "NotFoundError",
    "IntegrityViolationError",
    "InvalidTransitionError",
    "OrderAlreadyTerminalError",
    "OrderWindowClosedError",
    "DatastoreUnavailableError",
]
