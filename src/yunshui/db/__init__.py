"""Database module."""

from .base import Base, get_engine, get_session_factory, init_db
from .models import MaterialRow, OrderItemRow, OrderRow, ProjectRow, StatusUpdateRow

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "MaterialRow",
    "OrderRow",
    "OrderItemRow",
    "ProjectRow",
    "StatusUpdateRow",
]
