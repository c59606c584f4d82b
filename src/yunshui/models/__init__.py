"""Pydantic models for catalog, order, project and status data."""

from yunshui.models.common import Page, as_utc, utcnow
from yunshui.models.material import (
    Material,
    MaterialCreate,
    MaterialFilters,
    MaterialType,
    MaterialUpdate,
)
from yunshui.models.order import (
    Order,
    OrderFilters,
    OrderItem,
    OrderItemDetail,
    OrderLine,
    OrderStatus,
    OrderWithItems,
    ProjectSelection,
)
from yunshui.models.project import Project, ProjectStatus
from yunshui.models.status import (
    CheckTrackInput,
    DeliveryTrackData,
    DeliveryTrackInput,
    EnrichedOrder,
    OrderTrackData,
    OrderTrackInput,
    PickupTrackData,
    PickupTrackInput,
    ProjectStatusHistory,
    StatusStatistics,
    StatusSummary,
    StatusType,
    StatusUpdate,
    StatusUpdateFilters,
    UserRole,
)

__all__ = [
    "Page",
    "utcnow",
    "as_utc",
    "Material",
    "MaterialCreate",
    "MaterialFilters",
    "MaterialType",
    "MaterialUpdate",
    "Order",
    "OrderFilters",
    "OrderItem",
    "OrderItemDetail",
    "OrderLine",
    "OrderStatus",
    "OrderWithItems",
    "ProjectSelection",
    "Project",
    "ProjectStatus",
    "CheckTrackInput",
    "DeliveryTrackData",
    "DeliveryTrackInput",
    "EnrichedOrder",
    "OrderTrackData",
    "OrderTrackInput",
    "PickupTrackData",
    "PickupTrackInput",
    "ProjectStatusHistory",
    "StatusStatistics",
    "StatusSummary",
    "StatusType",
    "StatusUpdate",
    "StatusUpdateFilters",
    "UserRole",
]
