"""Latest-per-track views over status history."""

from datetime import timedelta
from typing import Dict, Iterable, Optional

from yunshui.config.constants import (
    DEFAULT_PAGE_SIZE,
    RECENT_UPDATES_HOURS,
    STATUS_NOT_SET,
    STATUS_TRACKS,
)
from yunshui.core.exceptions import ProjectNotFound
from yunshui.core.logger import setup_logger
from yunshui.models import (
    EnrichedOrder,
    MaterialType,
    Order,
    OrderFilters,
    OrderStatus,
    Page,
    ProjectStatusHistory,
    StatusStatistics,
    StatusSummary,
    StatusUpdate,
    StatusUpdateFilters,
    utcnow,
)
from yunshui.repositories.base import MaterialsRepository
from yunshui.services.catalog_service import clamp_paging
from yunshui.services.order_builder import attach_items

logger = setup_logger(__name__)


def select_latest(updates: Iterable[StatusUpdate]) -> Dict[str, Optional[StatusUpdate]]:
    """
    Pick the newest update of each track.

    Updates must arrive in insertion order; on equal created_at the later
    one wins.
    """
    latest: Dict[str, Optional[StatusUpdate]] = {track: None for track in STATUS_TRACKS}
    for update in updates:
        current = latest[update.status_type.value]
        if current is None or update.created_at >= current.created_at:
            latest[update.status_type.value] = update
    return latest


def summary_from_latest(latest: Dict[str, Optional[StatusUpdate]]) -> StatusSummary:
    def label(track: str) -> str:
        update = latest.get(track)
        return update.status_value if update else STATUS_NOT_SET

    return StatusSummary(
        order=label("ORDER"),
        pickup=label("PICKUP"),
        delivery=label("DELIVERY"),
        check=label("CHECK"),
    )


class StatusQuery:
    """Derives current track values on every call; nothing is cached."""

    def __init__(self, repository: MaterialsRepository):
        self.repository = repository

    async def latest_per_track(self, project_id: str) -> Dict[str, Optional[StatusUpdate]]:
        return select_latest(await self.repository.list_status_updates(project_id))

    async def summarize(self, order: Order) -> StatusSummary:
        project = await self.repository.find_project_by_order_id(order.id)
        if project is None:
            return StatusSummary()
        return summary_from_latest(await self.latest_per_track(project.id))

    async def enrich_order(self, order: Order) -> EnrichedOrder:
        """Attach lines, project and status views. Never creates a project."""
        with_items = await attach_items(self.repository, order)
        project = await self.repository.find_project_by_order_id(order.id)

        if project is None:
            latest = {track: None for track in STATUS_TRACKS}
        else:
            latest = await self.latest_per_track(project.id)

        return EnrichedOrder(
            **dict(with_items),
            project=project,
            status_summary=summary_from_latest(latest),
            latest_statuses=latest,
        )

    async def get_project_status_history(self, project_id: str) -> ProjectStatusHistory:
        project = await self.repository.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)

        history = await self.repository.list_status_updates(project_id)
        return ProjectStatusHistory(
            project=project,
            status_history=history,
            latest_statuses=select_latest(history),
        )

    async def list_orders_with_status(
        self,
        order_type: Optional[MaterialType] = None,
        owner_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[EnrichedOrder]:
        """
        List orders of one material type with their status summaries.

        Args:
            order_type: AUXILIARY or FINISHED; None lists both
            owner_id: Restrict to one user's orders
            status: Restrict to one order status
            page: 1-based page number
            limit: Page size

        Returns:
            Page of enriched orders, newest first
        """
        page, limit = clamp_paging(page, limit)
        orders = await self.repository.list_orders(
            OrderFilters(user_id=owner_id, status=status, order_type=order_type)
        )
        start = (page - 1) * limit
        enriched = [await self.enrich_order(order) for order in orders[start:start + limit]]
        return Page[EnrichedOrder].build(enriched, len(orders), page, limit)

    async def status_statistics(self) -> StatusStatistics:
        by_type = await self.repository.count_status_updates_by_type()
        since = utcnow() - timedelta(hours=RECENT_UPDATES_HOURS)
        return StatusStatistics(
            total=sum(by_type.values()),
            by_type=by_type,
            recent_updates=await self.repository.count_status_updates_since(since),
        )

    async def list_status_updates(
        self,
        filters: Optional[StatusUpdateFilters] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[StatusUpdate]:
        page, limit = clamp_paging(page, limit)
        items, total = await self.repository.query_status_updates(
            filters or StatusUpdateFilters(), page, limit
        )
        return Page[StatusUpdate].build(items, total, page, limit)
