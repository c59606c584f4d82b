"""Links orders to the projects that anchor their status history."""

import asyncio
from typing import Dict, List, Optional, Tuple

from yunshui.config.constants import PROJECT_CATEGORY_LABELS
from yunshui.core.exceptions import (
    DuplicateProjectName,
    OrderNotFound,
    ProjectNotFound,
    ValidationError,
)
from yunshui.core.logger import setup_logger
from yunshui.models import Order, OrderFilters, Project
from yunshui.repositories.base import MaterialsRepository

logger = setup_logger(__name__)


def project_name_for(order: Order) -> str:
    """Deterministic name for an order's auto-created project.

    Format: "{category}專案-{YYYY-MM-DD}-{order id}", where the category
    label follows the order's material type.
    """
    label = PROJECT_CATEGORY_LABELS.get(order.order_type.value, "") if order.order_type else ""
    return f"{label}專案-{order.created_at.strftime('%Y-%m-%d')}-{order.id}"


class ProjectLinker:
    """Ensures every tracked order has a project.

    Lookup-then-create is serialised per order id within this process.
    Nothing prevents another process from racing the same order; readers
    then resolve to the first project found.
    """

    def __init__(self, repository: MaterialsRepository):
        self.repository = repository
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    async def get_or_create_project(
        self, order: Order, created_by: Optional[str] = None
    ) -> Tuple[Project, bool]:
        """Return the order's project and whether this call created it."""
        lock = self._locks.setdefault(order.id, asyncio.Lock())
        self._lock_users[order.id] = self._lock_users.get(order.id, 0) + 1
        try:
            async with lock:
                project = await self.repository.find_project_by_order_id(order.id)
                if project:
                    return project, False

                project = await self.repository.create_project(
                    project_name_for(order),
                    order_id=order.id,
                    created_by=created_by or order.user_id,
                )
                logger.info(
                    f"Created project {project.id} ({project.project_name}) for order {order.id}"
                )
                return project, True
        finally:
            # The last caller out drops the lock so the map only holds in-flight orders
            self._lock_users[order.id] -= 1
            if not self._lock_users[order.id]:
                del self._lock_users[order.id]
                del self._locks[order.id]

    async def ensure_project_for_order(
        self, order: Order, created_by: Optional[str] = None
    ) -> Project:
        """Return the order's project, creating it on first call."""
        project, _ = await self.get_or_create_project(order, created_by)
        return project

    async def ensure_project(self, order_id: str, created_by: Optional[str] = None) -> Project:
        order = await self.repository.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return await self.ensure_project_for_order(order, created_by)

    async def find_project_for_order(self, order_id: str) -> Optional[Project]:
        """Read-only lookup; never creates."""
        return await self.repository.find_project_by_order_id(order_id)

    async def get_project(self, project_id: str) -> Project:
        project = await self.repository.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)
        return project

    async def _available_name(self, project_name: str, project_id: Optional[str] = None) -> str:
        """Trimmed name, unless blank or taken (case-insensitively) by another project."""
        name = (project_name or "").strip()
        if not name:
            raise ValidationError("Project name is required")

        existing = await self.repository.list_projects()
        if any(
            p.project_name.lower() == name.lower() and p.id != project_id for p in existing
        ):
            logger.warning(f"Project name already exists: {name}")
            raise DuplicateProjectName(name)
        return name

    async def create_standalone_project(
        self, project_name: str, created_by: Optional[str] = None
    ) -> Project:
        """Create a project with no order, rejecting case-insensitive duplicate names."""
        name = await self._available_name(project_name)
        project = await self.repository.create_project(name, order_id=None, created_by=created_by)
        logger.info(f"Created standalone project {project.id} ({name})")
        return project

    async def list_projects(self, search: Optional[str] = None) -> List[Project]:
        projects = await self.repository.list_projects()
        if search:
            needle = search.lower()
            projects = [p for p in projects if needle in p.project_name.lower()]
        return projects

    async def rename_project(self, project_id: str, project_name: str) -> Project:
        await self.get_project(project_id)
        name = await self._available_name(project_name, project_id)
        project = await self.repository.update_project(project_id, {"project_name": name})
        logger.info(f"Renamed project {project_id} to {name}")
        return project

    async def list_project_orders(self, project_id: str) -> List[Order]:
        """Orders assigned to the project, plus the order it tracks, newest first."""
        project = await self.get_project(project_id)
        orders = await self.repository.list_orders(OrderFilters(project_id=project_id))

        if project.order_id and all(o.id != project.order_id for o in orders):
            tracked = await self.repository.get_order(project.order_id)
            if tracked:
                orders.append(tracked)
                orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders

    async def delete_project(self, project_id: str) -> int:
        """
        Delete a project and its status history.

        Orders assigned to it are detached first; the orders themselves stay.

        Returns:
            Number of orders detached
        """
        await self.get_project(project_id)

        assigned = await self.repository.list_orders(OrderFilters(project_id=project_id))
        for order in assigned:
            await self.repository.update_order(order.id, {"project_id": None})

        await self.repository.delete_project(project_id)
        logger.info(f"Deleted project {project_id}, detached {len(assigned)} orders")
        return len(assigned)
