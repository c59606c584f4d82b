"""In-memory repository with optional JSON snapshot persistence."""

import json
import uuid
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from yunshui.core.logger import setup_logger
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
    ProjectStatus,
    StatusType,
    StatusUpdate,
    StatusUpdateFilters,
    as_utc,
    utcnow,
)
from yunshui.repositories.base import MaterialsRepository

logger = setup_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _paginate(rows: list, page: int, limit: int) -> list:
    start = (page - 1) * limit
    return rows[start:start + limit]


class MemoryRepository(MaterialsRepository):
    """List-backed storage for a single process.

    Reads observe writes immediately. When `snapshot_path` is given the
    whole store is loaded from that JSON file on construction and
    rewritten after every mutation.
    """

    def __init__(self, snapshot_path: Optional[str] = None):
        self.snapshot_path = Path(snapshot_path) if snapshot_path else None
        self.materials: List[Material] = []
        self.orders: List[Order] = []
        self.order_items: List[OrderItem] = []
        self.projects: List[Project] = []
        self.status_updates: List[StatusUpdate] = []

        if self.snapshot_path:
            self._load_snapshot()

    # ------------------------------------------------------------------
    # Snapshot persistence
    # ------------------------------------------------------------------

    def _load_snapshot(self) -> None:
        if not self.snapshot_path.exists():
            logger.info(f"No snapshot at {self.snapshot_path}, starting empty")
            return

        try:
            with open(self.snapshot_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load snapshot {self.snapshot_path}: {e}")
            return

        self.materials = [Material.model_validate(m) for m in data.get("materials", [])]
        self.orders = [Order.model_validate(o) for o in data.get("orders", [])]
        self.order_items = [OrderItem.model_validate(i) for i in data.get("order_items", [])]
        self.projects = [Project.model_validate(p) for p in data.get("projects", [])]
        self.status_updates = [
            StatusUpdate.model_validate(s) for s in data.get("status_updates", [])
        ]

        logger.info(
            f"Loaded snapshot: {len(self.materials)} materials, {len(self.orders)} orders, "
            f"{len(self.projects)} projects, {len(self.status_updates)} status updates"
        )

    def _save_snapshot(self) -> None:
        if not self.snapshot_path:
            return

        data = {
            "materials": [m.model_dump(mode="json") for m in self.materials],
            "orders": [o.model_dump(mode="json") for o in self.orders],
            "order_items": [i.model_dump(mode="json") for i in self.order_items],
            "projects": [p.model_dump(mode="json") for p in self.projects],
            "status_updates": [
                s.model_dump(mode="json", by_alias=True) for s in self.status_updates
            ],
            "last_saved": utcnow().isoformat(),
        }

        # Written to a sibling file, then swapped in atomically
        tmp_path = self.snapshot_path.with_name(self.snapshot_path.name + ".tmp")
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.snapshot_path)
        except OSError as e:
            logger.error(f"Failed to save snapshot {self.snapshot_path}: {e}")

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    async def get_material(self, material_id: str) -> Optional[Material]:
        return next((m for m in self.materials if m.id == material_id), None)

    async def list_materials(
        self, filters: MaterialFilters, page: int, limit: int
    ) -> Tuple[List[Material], int]:
        rows = list(self.materials)

        if filters.type:
            rows = [m for m in rows if m.type == filters.type]
        if filters.category:
            rows = [m for m in rows if filters.category in m.category]
        if filters.name:
            needle = filters.name.lower()
            rows = [m for m in rows if needle in m.name.lower()]
        if filters.supplier:
            rows = [m for m in rows if m.supplier == filters.supplier]

        return _paginate(rows, page, limit), len(rows)

    async def create_material(self, data: MaterialCreate) -> Material:
        now = utcnow()
        material = Material(id=_new_id(), created_at=now, updated_at=now, **data.model_dump())
        self.materials.append(material)
        self._save_snapshot()
        return material

    async def update_material(
        self, material_id: str, changes: Dict[str, Any]
    ) -> Optional[Material]:
        for index, material in enumerate(self.materials):
            if material.id == material_id:
                updated = material.model_copy(update={**changes, "updated_at": utcnow()})
                self.materials[index] = updated
                self._save_snapshot()
                return updated
        return None

    async def delete_material(self, material_id: str) -> bool:
        before = len(self.materials)
        self.materials = [m for m in self.materials if m.id != material_id]
        if len(self.materials) == before:
            return False
        self._save_snapshot()
        return True

    async def list_categories(self, material_type: Optional[MaterialType] = None) -> List[str]:
        rows = [m for m in self.materials if material_type is None or m.type == material_type]
        return sorted({m.category for m in rows if m.category})

    async def list_suppliers(self, material_type: Optional[MaterialType] = None) -> List[str]:
        rows = [m for m in self.materials if material_type is None or m.type == material_type]
        return sorted({m.supplier for m in rows if m.supplier})

    # ------------------------------------------------------------------
    # Orders and order items
    # ------------------------------------------------------------------

    async def create_order(
        self,
        user_id: str,
        total_amount: Decimal,
        name: Optional[str] = None,
        order_type: Optional[MaterialType] = None,
        project_id: Optional[str] = None,
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Order:
        now = utcnow()
        order = Order(
            id=_new_id(),
            user_id=user_id,
            name=name,
            status=status,
            order_type=order_type,
            total_amount=total_amount,
            project_id=project_id,
            created_at=now,
            updated_at=now,
        )
        self.orders.append(order)
        self._save_snapshot()
        return order

    async def get_order(self, order_id: str) -> Optional[Order]:
        return next((o for o in self.orders if o.id == order_id), None)

    async def update_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Order]:
        for index, order in enumerate(self.orders):
            if order.id == order_id:
                updated = order.model_copy(update={**changes, "updated_at": utcnow()})
                self.orders[index] = updated
                self._save_snapshot()
                return updated
        return None

    async def delete_order(self, order_id: str) -> bool:
        if await self.get_order(order_id) is None:
            return False

        self.orders = [o for o in self.orders if o.id != order_id]
        self.order_items = [i for i in self.order_items if i.order_id != order_id]

        project = await self.find_project_by_order_id(order_id)
        if project:
            self.status_updates = [s for s in self.status_updates if s.project_id != project.id]
            self.projects = [p for p in self.projects if p.id != project.id]

        self._save_snapshot()
        return True

    async def list_orders(self, filters: OrderFilters) -> List[Order]:
        rows = list(self.orders)

        if filters.user_id:
            rows = [o for o in rows if o.user_id == filters.user_id]
        if filters.status:
            rows = [o for o in rows if o.status == filters.status]
        if filters.order_type:
            rows = [o for o in rows if o.order_type == filters.order_type]
        if filters.project_id:
            rows = [o for o in rows if o.project_id == filters.project_id]

        # Newest first; reversed() keeps later inserts ahead on equal timestamps
        return sorted(reversed(rows), key=lambda o: o.created_at, reverse=True)

    async def create_order_item(
        self, order_id: str, material_id: str, quantity: int, unit_price: Decimal
    ) -> OrderItem:
        item = OrderItem(
            id=_new_id(),
            order_id=order_id,
            material_id=material_id,
            quantity=quantity,
            unit_price=unit_price,
        )
        self.order_items.append(item)
        self._save_snapshot()
        return item

    async def list_order_items(self, order_id: str) -> List[OrderItem]:
        return [i for i in self.order_items if i.order_id == order_id]

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        project_name: str,
        order_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Project:
        now = utcnow()
        project = Project(
            id=_new_id(),
            order_id=order_id,
            project_name=project_name,
            overall_status=ProjectStatus.ACTIVE,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        self.projects.append(project)
        self._save_snapshot()
        return project

    async def get_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    async def find_project_by_order_id(self, order_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.order_id == order_id), None)

    async def list_projects(self) -> List[Project]:
        return list(self.projects)

    async def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        for index, project in enumerate(self.projects):
            if project.id == project_id:
                updated = project.model_copy(update={**changes, "updated_at": utcnow()})
                self.projects[index] = updated
                self._save_snapshot()
                return updated
        return None

    async def delete_project(self, project_id: str) -> bool:
        before = len(self.projects)
        self.projects = [p for p in self.projects if p.id != project_id]
        if len(self.projects) == before:
            return False
        self.status_updates = [s for s in self.status_updates if s.project_id != project_id]
        self._save_snapshot()
        return True

    # ------------------------------------------------------------------
    # Status updates
    # ------------------------------------------------------------------

    async def create_status_update(
        self,
        project_id: str,
        updated_by: str,
        status_type: StatusType,
        status_value: str,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> StatusUpdate:
        update = StatusUpdate.model_validate(
            {
                "id": _new_id(),
                "project_id": project_id,
                "updated_by": updated_by,
                "status_type": status_type,
                "status_value": status_value,
                "additional_data": additional_data,
                "created_at": utcnow(),
            }
        )
        self.status_updates.append(update)
        self._save_snapshot()
        return update

    async def list_status_updates(self, project_id: str) -> List[StatusUpdate]:
        return [s for s in self.status_updates if s.project_id == project_id]

    async def query_status_updates(
        self, filters: StatusUpdateFilters, page: int, limit: int
    ) -> Tuple[List[StatusUpdate], int]:
        rows = list(self.status_updates)

        if filters.project_id:
            rows = [s for s in rows if s.project_id == filters.project_id]
        if filters.status_type:
            rows = [s for s in rows if s.status_type == filters.status_type]
        if filters.updated_by:
            rows = [s for s in rows if s.updated_by == filters.updated_by]
        if filters.date_from:
            date_from = as_utc(filters.date_from)
            rows = [s for s in rows if s.created_at >= date_from]
        if filters.date_to:
            date_to = as_utc(filters.date_to)
            rows = [s for s in rows if s.created_at <= date_to]

        rows = sorted(reversed(rows), key=lambda s: s.created_at, reverse=True)
        return _paginate(rows, page, limit), len(rows)

    async def count_status_updates_by_type(self) -> Dict[str, int]:
        counts = {track.value: 0 for track in StatusType}
        for update in self.status_updates:
            counts[update.status_type.value] += 1
        return counts

    async def count_status_updates_since(self, since: datetime) -> int:
        since = as_utc(since)
        return sum(1 for s in self.status_updates if s.created_at >= since)

    async def health_check(self) -> bool:
        return True
