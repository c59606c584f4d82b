"""Pydantic models for tracking projects."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProjectStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Project(BaseModel):
    """Tracking anchor for an order's status history.

    `order_id` is None for standalone projects created by name.
    """

    id: str
    order_id: Optional[str] = None
    project_name: str
    overall_status: ProjectStatus = ProjectStatus.ACTIVE
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
