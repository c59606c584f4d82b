"""Abstract base repository for catalog, order, project and status storage."""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from yunshui.models import (
    Material,
    MaterialCreate,
    MaterialFilters,
    MaterialType,
    Order,
    OrderFilters,
    OrderItem,
    OrderStatus,
    Project,
    StatusType,
    StatusUpdate,
    StatusUpdateFilters,
)


class MaterialsRepository(ABC):
    """Abstract repository for all persisted entities.

    This allows easy swapping between storage backends
    (in-memory lists, PostgreSQL, etc.). Every method is a single
    best-effort write or read; callers sequence multi-step operations
    themselves and nothing here spans more than one entity write,
    except `delete_order`, which cascades.
    """

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_material(self, material_id: str) -> Optional[Material]:
        pass

    @abstractmethod
    async def list_materials(
        self, filters: MaterialFilters, page: int, limit: int
    ) -> Tuple[List[Material], int]:
        """List materials matching filters.

        Returns:
            (items on the requested page, total matching count)
        """
        pass

    @abstractmethod
    async def create_material(self, data: MaterialCreate) -> Material:
        pass

    @abstractmethod
    async def update_material(
        self, material_id: str, changes: Dict[str, Any]
    ) -> Optional[Material]:
        """Apply changes and refresh updated_at. Returns None if missing."""
        pass

    @abstractmethod
    async def delete_material(self, material_id: str) -> bool:
        pass

    @abstractmethod
    async def list_categories(self, material_type: Optional[MaterialType] = None) -> List[str]:
        pass

    @abstractmethod
    async def list_suppliers(self, material_type: Optional[MaterialType] = None) -> List[str]:
        pass

    # ------------------------------------------------------------------
    # Orders and order items
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_order(
        self,
        user_id: str,
        total_amount: Decimal,
        name: Optional[str] = None,
        order_type: Optional[MaterialType] = None,
        project_id: Optional[str] = None,
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Order:
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def update_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Order]:
        pass

    @abstractmethod
    async def delete_order(self, order_id: str) -> bool:
        """Delete an order with its items, its project and that project's history."""
        pass

    @abstractmethod
    async def list_orders(self, filters: OrderFilters) -> List[Order]:
        """List orders matching filters, newest first."""
        pass

    @abstractmethod
    async def create_order_item(
        self, order_id: str, material_id: str, quantity: int, unit_price: Decimal
    ) -> OrderItem:
        pass

    @abstractmethod
    async def list_order_items(self, order_id: str) -> List[OrderItem]:
        pass

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_project(
        self,
        project_name: str,
        order_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Project:
        """Create an ACTIVE project. No uniqueness check on order_id."""
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Project]:
        pass

    @abstractmethod
    async def find_project_by_order_id(self, order_id: str) -> Optional[Project]:
        """Return the first project linked to the order, if any."""
        pass

    @abstractmethod
    async def list_projects(self) -> List[Project]:
        """List all projects, oldest first."""
        pass

    @abstractmethod
    async def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        pass

    @abstractmethod
    async def delete_project(self, project_id: str) -> bool:
        """Delete a project and its status history. Orders are left untouched."""
        pass

    # ------------------------------------------------------------------
    # Status updates
    # ------------------------------------------------------------------

    @abstractmethod
    async def create_status_update(
        self,
        project_id: str,
        updated_by: str,
        status_type: StatusType,
        status_value: str,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> StatusUpdate:
        """Append a new row. Never overwrites an earlier row."""
        pass

    @abstractmethod
    async def list_status_updates(self, project_id: str) -> List[StatusUpdate]:
        """All rows for a project in insertion order."""
        pass

    @abstractmethod
    async def query_status_updates(
        self, filters: StatusUpdateFilters, page: int, limit: int
    ) -> Tuple[List[StatusUpdate], int]:
        """Filtered rows across projects, newest first."""
        pass

    @abstractmethod
    async def count_status_updates_by_type(self) -> Dict[str, int]:
        pass

    @abstractmethod
    async def count_status_updates_since(self, since: datetime) -> int:
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if storage backend is accessible."""
        pass

    async def close(self) -> None:
        """Release backend resources. No-op unless overridden."""
        return None
