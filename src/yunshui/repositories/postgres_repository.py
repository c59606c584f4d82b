"""PostgreSQL repository implementation over SQLAlchemy async sessions."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from yunshui.core.exceptions import StorageError
from yunshui.core.logger import setup_logger
from yunshui.db.models import MaterialRow, OrderItemRow, OrderRow, ProjectRow, StatusUpdateRow
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


def _plain(value: Any) -> Any:
    """Unwrap enums for column assignment."""
    return value.value if hasattr(value, "value") else value


def _to_status_update(row: StatusUpdateRow) -> StatusUpdate:
    return StatusUpdate.model_validate(
        {
            "id": row.id,
            "project_id": row.project_id,
            "updated_by": row.updated_by,
            "status_type": row.status_type,
            "status_value": row.status_value,
            "additional_data": row.additional_data,
            "created_at": row.created_at,
        }
    )


class PostgresRepository(MaterialsRepository):
    """SQL storage implementation.

    Every method runs in its own session and commits before returning,
    so a multi-step service operation is a sequence of independent writes.
    Driver errors are re-raised as StorageError.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
    ):
        """Initialize repository with an async session factory.

        Args:
            session_factory: Factory from yunshui.db.get_session_factory
            engine: Engine to dispose on close, if this repository owns it
        """
        self.session_factory = session_factory
        self.engine = engine

    async def _run(self, operation: str, work):
        try:
            async with self.session_factory() as session:
                return await work(session)
        except SQLAlchemyError as e:
            logger.error(f"Database error during {operation}: {e}", exc_info=True)
            raise StorageError(f"Database error during {operation}") from e

    # ------------------------------------------------------------------
    # Materials
    # ------------------------------------------------------------------

    async def get_material(self, material_id: str) -> Optional[Material]:
        async def work(session: AsyncSession):
            row = await session.get(MaterialRow, material_id)
            return Material.model_validate(row) if row else None

        return await self._run("get_material", work)

    async def list_materials(
        self, filters: MaterialFilters, page: int, limit: int
    ) -> Tuple[List[Material], int]:
        conditions = []
        if filters.type:
            conditions.append(MaterialRow.type == filters.type.value)
        if filters.category:
            conditions.append(MaterialRow.category.contains(filters.category))
        if filters.name:
            conditions.append(func.lower(MaterialRow.name).contains(filters.name.lower()))
        if filters.supplier:
            conditions.append(MaterialRow.supplier == filters.supplier)

        async def work(session: AsyncSession):
            total = await session.scalar(
                select(func.count()).select_from(MaterialRow).where(*conditions)
            )
            query = (
                select(MaterialRow)
                .where(*conditions)
                .order_by(MaterialRow.created_at)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            rows = (await session.execute(query)).scalars().all()
            return [Material.model_validate(r) for r in rows], total or 0

        return await self._run("list_materials", work)

    async def create_material(self, data: MaterialCreate) -> Material:
        async def work(session: AsyncSession):
            now = utcnow()
            values = {k: _plain(v) for k, v in data.model_dump().items()}
            row = MaterialRow(id=_new_id(), created_at=now, updated_at=now, **values)
            session.add(row)
            await session.commit()
            return Material.model_validate(row)

        return await self._run("create_material", work)

    async def update_material(
        self, material_id: str, changes: Dict[str, Any]
    ) -> Optional[Material]:
        async def work(session: AsyncSession):
            row = await session.get(MaterialRow, material_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, _plain(value))
            row.updated_at = utcnow()
            await session.commit()
            return Material.model_validate(row)

        return await self._run("update_material", work)

    async def delete_material(self, material_id: str) -> bool:
        async def work(session: AsyncSession):
            result = await session.execute(delete(MaterialRow).where(MaterialRow.id == material_id))
            await session.commit()
            return result.rowcount > 0

        return await self._run("delete_material", work)

    async def _distinct_material_values(self, column, material_type: Optional[MaterialType]):
        async def work(session: AsyncSession):
            query = select(column).distinct().where(column.is_not(None), column != "")
            if material_type:
                query = query.where(MaterialRow.type == material_type.value)
            values = (await session.execute(query)).scalars().all()
            return sorted(values)

        return await self._run("list_distinct_materials", work)

    async def list_categories(self, material_type: Optional[MaterialType] = None) -> List[str]:
        return await self._distinct_material_values(MaterialRow.category, material_type)

    async def list_suppliers(self, material_type: Optional[MaterialType] = None) -> List[str]:
        return await self._distinct_material_values(MaterialRow.supplier, material_type)

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
        async def work(session: AsyncSession):
            now = utcnow()
            row = OrderRow(
                id=_new_id(),
                user_id=user_id,
                name=name,
                status=status.value,
                order_type=_plain(order_type),
                total_amount=total_amount,
                project_id=project_id,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            await session.commit()
            return Order.model_validate(row)

        return await self._run("create_order", work)

    async def get_order(self, order_id: str) -> Optional[Order]:
        async def work(session: AsyncSession):
            row = await session.get(OrderRow, order_id)
            return Order.model_validate(row) if row else None

        return await self._run("get_order", work)

    async def update_order(self, order_id: str, changes: Dict[str, Any]) -> Optional[Order]:
        async def work(session: AsyncSession):
            row = await session.get(OrderRow, order_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, _plain(value))
            row.updated_at = utcnow()
            await session.commit()
            return Order.model_validate(row)

        return await self._run("update_order", work)

    async def delete_order(self, order_id: str) -> bool:
        async def work(session: AsyncSession):
            row = await session.get(OrderRow, order_id)
            if row is None:
                return False

            project_id = await session.scalar(
                select(ProjectRow.id)
                .where(ProjectRow.order_id == order_id)
                .order_by(ProjectRow.created_at)
                .limit(1)
            )
            if project_id:
                await session.execute(
                    delete(StatusUpdateRow).where(StatusUpdateRow.project_id == project_id)
                )
                await session.execute(delete(ProjectRow).where(ProjectRow.id == project_id))

            await session.execute(delete(OrderItemRow).where(OrderItemRow.order_id == order_id))
            await session.delete(row)
            await session.commit()
            return True

        return await self._run("delete_order", work)

    async def list_orders(self, filters: OrderFilters) -> List[Order]:
        conditions = []
        if filters.user_id:
            conditions.append(OrderRow.user_id == filters.user_id)
        if filters.status:
            conditions.append(OrderRow.status == filters.status.value)
        if filters.order_type:
            conditions.append(OrderRow.order_type == filters.order_type.value)
        if filters.project_id:
            conditions.append(OrderRow.project_id == filters.project_id)

        async def work(session: AsyncSession):
            query = select(OrderRow).where(*conditions).order_by(OrderRow.created_at.desc())
            rows = (await session.execute(query)).scalars().all()
            return [Order.model_validate(r) for r in rows]

        return await self._run("list_orders", work)

    async def create_order_item(
        self, order_id: str, material_id: str, quantity: int, unit_price: Decimal
    ) -> OrderItem:
        async def work(session: AsyncSession):
            row = OrderItemRow(
                id=_new_id(),
                order_id=order_id,
                material_id=material_id,
                quantity=quantity,
                unit_price=unit_price,
            )
            session.add(row)
            await session.commit()
            return OrderItem.model_validate(row)

        return await self._run("create_order_item", work)

    async def list_order_items(self, order_id: str) -> List[OrderItem]:
        async def work(session: AsyncSession):
            query = select(OrderItemRow).where(OrderItemRow.order_id == order_id)
            rows = (await session.execute(query)).scalars().all()
            return [OrderItem.model_validate(r) for r in rows]

        return await self._run("list_order_items", work)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        project_name: str,
        order_id: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> Project:
        async def work(session: AsyncSession):
            now = utcnow()
            row = ProjectRow(
                id=_new_id(),
                order_id=order_id,
                project_name=project_name,
                overall_status=ProjectStatus.ACTIVE.value,
                created_by=created_by,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            await session.commit()
            return Project.model_validate(row)

        return await self._run("create_project", work)

    async def get_project(self, project_id: str) -> Optional[Project]:
        async def work(session: AsyncSession):
            row = await session.get(ProjectRow, project_id)
            return Project.model_validate(row) if row else None

        return await self._run("get_project", work)

    async def find_project_by_order_id(self, order_id: str) -> Optional[Project]:
        async def work(session: AsyncSession):
            query = (
                select(ProjectRow)
                .where(ProjectRow.order_id == order_id)
                .order_by(ProjectRow.created_at)
                .limit(1)
            )
            row = (await session.execute(query)).scalars().first()
            return Project.model_validate(row) if row else None

        return await self._run("find_project_by_order_id", work)

    async def list_projects(self) -> List[Project]:
        async def work(session: AsyncSession):
            rows = (await session.execute(select(ProjectRow).order_by(ProjectRow.created_at))).scalars().all()
            return [Project.model_validate(r) for r in rows]

        return await self._run("list_projects", work)

    async def update_project(self, project_id: str, changes: Dict[str, Any]) -> Optional[Project]:
        async def work(session: AsyncSession):
            row = await session.get(ProjectRow, project_id)
            if row is None:
                return None
            for key, value in changes.items():
                setattr(row, key, _plain(value))
            row.updated_at = utcnow()
            await session.commit()
            return Project.model_validate(row)

        return await self._run("update_project", work)

    async def delete_project(self, project_id: str) -> bool:
        async def work(session: AsyncSession):
            await session.execute(
                delete(StatusUpdateRow).where(StatusUpdateRow.project_id == project_id)
            )
            result = await session.execute(delete(ProjectRow).where(ProjectRow.id == project_id))
            await session.commit()
            return result.rowcount > 0

        return await self._run("delete_project", work)

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
        async def work(session: AsyncSession):
            row = StatusUpdateRow(
                id=_new_id(),
                project_id=project_id,
                updated_by=updated_by,
                status_type=status_type.value,
                status_value=status_value,
                additional_data=additional_data,
                created_at=utcnow(),
            )
            session.add(row)
            await session.commit()
            return _to_status_update(row)

        return await self._run("create_status_update", work)

    async def list_status_updates(self, project_id: str) -> List[StatusUpdate]:
        async def work(session: AsyncSession):
            query = (
                select(StatusUpdateRow)
                .where(StatusUpdateRow.project_id == project_id)
                .order_by(StatusUpdateRow.created_at, StatusUpdateRow.seq)
            )
            rows = (await session.execute(query)).scalars().all()
            return [_to_status_update(r) for r in rows]

        return await self._run("list_status_updates", work)

    async def query_status_updates(
        self, filters: StatusUpdateFilters, page: int, limit: int
    ) -> Tuple[List[StatusUpdate], int]:
        conditions = []
        if filters.project_id:
            conditions.append(StatusUpdateRow.project_id == filters.project_id)
        if filters.status_type:
            conditions.append(StatusUpdateRow.status_type == filters.status_type.value)
        if filters.updated_by:
            conditions.append(StatusUpdateRow.updated_by == filters.updated_by)
        if filters.date_from:
            conditions.append(StatusUpdateRow.created_at >= as_utc(filters.date_from))
        if filters.date_to:
            conditions.append(StatusUpdateRow.created_at <= as_utc(filters.date_to))

        async def work(session: AsyncSession):
            total = await session.scalar(
                select(func.count()).select_from(StatusUpdateRow).where(*conditions)
            )
            query = (
                select(StatusUpdateRow)
                .where(*conditions)
                .order_by(StatusUpdateRow.created_at.desc(), StatusUpdateRow.seq.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            rows = (await session.execute(query)).scalars().all()
            return [_to_status_update(r) for r in rows], total or 0

        return await self._run("query_status_updates", work)

    async def count_status_updates_by_type(self) -> Dict[str, int]:
        async def work(session: AsyncSession):
            query = select(StatusUpdateRow.status_type, func.count()).group_by(
                StatusUpdateRow.status_type
            )
            counts = {track.value: 0 for track in StatusType}
            for status_type, count in (await session.execute(query)).all():
                counts[status_type] = count
            return counts

        return await self._run("count_status_updates_by_type", work)

    async def count_status_updates_since(self, since: datetime) -> int:
        async def work(session: AsyncSession):
            total = await session.scalar(
                select(func.count())
                .select_from(StatusUpdateRow)
                .where(StatusUpdateRow.created_at >= as_utc(since))
            )
            return total or 0

        return await self._run("count_status_updates_since", work)

    async def health_check(self) -> bool:
        try:
            async with self.session_factory() as session:
                await session.execute(select(1))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")
