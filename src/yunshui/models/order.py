"""Pydantic models for orders and their line items."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from yunshui.models.material import Material, MaterialType


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderLine(BaseModel):
    """One requested line: which material and how many."""

    material_id: str = Field(alias="materialId")
    quantity: int = Field(ge=1)

    class Config:
        populate_by_name = True


class ProjectSelection(BaseModel):
    """How the caller wants the new order attached to a project.

    Either an existing project id, a name for a new standalone project,
    or neither (the tracking project is then created lazily).
    """

    project_id: Optional[str] = Field(default=None, alias="projectId")
    new_project_name: Optional[str] = Field(default=None, alias="newProjectName")

    class Config:
        populate_by_name = True


class Order(BaseModel):
    """Order header as stored."""

    id: str
    user_id: str
    name: Optional[str] = None
    status: OrderStatus = OrderStatus.PENDING
    order_type: Optional[MaterialType] = None
    total_amount: Decimal
    project_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderItem(BaseModel):
    """Order line as stored, with the unit price frozen at order time."""

    id: str
    order_id: str
    material_id: str
    quantity: int = Field(ge=1)
    unit_price: Decimal

    class Config:
        from_attributes = True


class OrderItemDetail(OrderItem):
    """Order line joined with the current catalog entry (None if deleted)."""

    material: Optional[Material] = None


class OrderWithItems(Order):
    items: List[OrderItemDetail] = Field(default_factory=list)


class OrderFilters(BaseModel):
    """Order listing filters."""

    user_id: Optional[str] = None
    status: Optional[OrderStatus] = None
    order_type: Optional[MaterialType] = None
    project_id: Optional[str] = None
