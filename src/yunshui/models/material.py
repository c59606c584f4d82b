"""Pydantic models for catalog materials."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MaterialType(str, Enum):
    """Material category; also the type of the order that buys it."""

    AUXILIARY = "AUXILIARY"
    FINISHED = "FINISHED"


class MaterialCreate(BaseModel):
    """Data for creating a catalog material."""

    name: str = Field(min_length=1)
    category: str = ""
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    supplier: Optional[str] = None
    type: MaterialType
    image_url: Optional[str] = None


class MaterialUpdate(BaseModel):
    """Partial update; unset fields keep their stored value."""

    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    quantity: Optional[int] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    type: Optional[MaterialType] = None
    image_url: Optional[str] = None


class Material(MaterialCreate):
    """Material as stored."""

    id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MaterialFilters(BaseModel):
    """Catalog listing filters; `name` matches case-insensitive substrings."""

    type: Optional[MaterialType] = None
    category: Optional[str] = None
    name: Optional[str] = None
    supplier: Optional[str] = None
