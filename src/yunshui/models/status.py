"""Pydantic models for the four-track status pipeline."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from yunshui.config.constants import STATUS_NOT_SET
from yunshui.models.order import OrderWithItems
from yunshui.models.project import Project


class StatusType(str, Enum):
    """The four independent status tracks of a project."""

    ORDER = "ORDER"
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    CHECK = "CHECK"


class UserRole(str, Enum):
    PM = "PM"
    AM = "AM"
    WAREHOUSE = "WAREHOUSE"
    ADMIN = "ADMIN"


# ==============================================================================
# TRACK INPUTS (what callers post)
# ==============================================================================


class OrderTrackInput(BaseModel):
    primary_status: str = Field(alias="primaryStatus")
    secondary_status: Optional[str] = Field(default=None, alias="secondaryStatus")

    class Config:
        populate_by_name = True


class PickupTrackInput(BaseModel):
    primary_status: str = Field(alias="primaryStatus")
    secondary_status: str = Field(alias="secondaryStatus")

    class Config:
        populate_by_name = True


class DeliveryTrackInput(BaseModel):
    """Delivery post; the detail fields only matter for "Delivered"."""

    status: str
    time: Optional[str] = None
    address: Optional[str] = None
    po: Optional[str] = None
    delivered_by: Optional[str] = Field(default=None, alias="deliveredBy")

    class Config:
        populate_by_name = True


class CheckTrackInput(BaseModel):
    status: str


# ==============================================================================
# ADDITIONAL DATA (tagged by the owning update's status_type)
# ==============================================================================


class OrderTrackData(BaseModel):
    primary_status: str = Field(alias="primaryStatus")
    secondary_status: Optional[str] = Field(default=None, alias="secondaryStatus")

    class Config:
        populate_by_name = True


class PickupTrackData(BaseModel):
    primary_status: str = Field(alias="primaryStatus")
    secondary_status: str = Field(alias="secondaryStatus")

    class Config:
        populate_by_name = True


class DeliveryTrackData(BaseModel):
    time: str
    address: str
    po: str
    delivered_by: str = Field(alias="deliveredBy")

    class Config:
        populate_by_name = True


TrackData = Union[OrderTrackData, PickupTrackData, DeliveryTrackData]

TRACK_DATA_MODELS = {
    StatusType.ORDER: OrderTrackData,
    StatusType.PICKUP: PickupTrackData,
    StatusType.DELIVERY: DeliveryTrackData,
}


class StatusUpdate(BaseModel):
    """One append-only row of a project's status history."""

    id: str
    project_id: str
    updated_by: str
    status_type: StatusType
    status_value: str
    additional_data: Optional[TrackData] = None
    created_at: datetime

    @model_validator(mode="before")
    @classmethod
    def _parse_additional_data(cls, data):
        # Stored payloads are plain dicts; pick the variant from status_type
        if isinstance(data, dict) and isinstance(data.get("additional_data"), dict):
            model = TRACK_DATA_MODELS.get(StatusType(data["status_type"]))
            payload = model.model_validate(data["additional_data"]) if model else None
            data = {**data, "additional_data": payload}
        return data


class StatusUpdateFilters(BaseModel):
    project_id: Optional[str] = None
    status_type: Optional[StatusType] = None
    updated_by: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


# ==============================================================================
# READ MODELS
# ==============================================================================


class StatusSummary(BaseModel):
    """Latest value per track as shown in listing columns."""

    order: str = STATUS_NOT_SET
    pickup: str = STATUS_NOT_SET
    delivery: str = STATUS_NOT_SET
    check: str = STATUS_NOT_SET


LatestStatuses = Dict[str, Optional[StatusUpdate]]


class EnrichedOrder(OrderWithItems):
    project: Optional[Project] = None
    status_summary: StatusSummary = Field(default_factory=StatusSummary)
    latest_statuses: LatestStatuses = Field(default_factory=dict)


class ProjectStatusHistory(BaseModel):
    project: Project
    status_history: List[StatusUpdate]
    latest_statuses: LatestStatuses


class StatusStatistics(BaseModel):
    total: int
    by_type: Dict[str, int]
    recent_updates: int
