"""Material catalog service."""

from typing import List, Optional

from yunshui.config.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from yunshui.core.exceptions import MaterialNotFound, ValidationError
from yunshui.core.logger import setup_logger
from yunshui.models import (
    Material,
    MaterialCreate,
    MaterialFilters,
    MaterialType,
    MaterialUpdate,
    Page,
)
from yunshui.repositories.base import MaterialsRepository

logger = setup_logger(__name__)


def clamp_paging(page: int, limit: int) -> tuple:
    """Normalise page/limit to 1-based page and 1..MAX_PAGE_SIZE limit."""
    page = max(page or 1, 1)
    limit = min(max(limit or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)
    return page, limit


class CatalogService:
    """Reads and edits the material catalog.

    Price and quantity are plain non-negative numbers; the pydantic
    schemas enforce that on create and update.
    """

    def __init__(self, repository: MaterialsRepository):
        self.repository = repository

    async def get(self, material_id: str) -> Optional[Material]:
        return await self.repository.get_material(material_id)

    async def require(self, material_id: str) -> Material:
        material = await self.repository.get_material(material_id)
        if material is None:
            logger.warning(f"Material {material_id} not found")
            raise MaterialNotFound(material_id)
        return material

    async def list(
        self,
        filters: Optional[MaterialFilters] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Material]:
        page, limit = clamp_paging(page, limit)
        items, total = await self.repository.list_materials(
            filters or MaterialFilters(), page, limit
        )
        return Page[Material].build(items, total, page, limit)

    async def create(self, data: MaterialCreate) -> Material:
        material = await self.repository.create_material(data)
        logger.info(f"Created material {material.id} ({material.name}, {material.type.value})")
        return material

    async def update(self, material_id: str, data: MaterialUpdate) -> Material:
        changes = data.model_dump(exclude_unset=True)
        material = await self.repository.update_material(material_id, changes)
        if material is None:
            raise MaterialNotFound(material_id)
        logger.info(f"Updated material {material_id}: {sorted(changes)}")
        return material

    async def update_quantity(self, material_id: str, quantity: int) -> Material:
        if quantity < 0:
            raise ValidationError("Quantity must be a non-negative integer", material_id)
        material = await self.repository.update_material(material_id, {"quantity": quantity})
        if material is None:
            raise MaterialNotFound(material_id)
        logger.info(f"Material {material_id} quantity set to {quantity}")
        return material

    async def delete(self, material_id: str) -> None:
        if not await self.repository.delete_material(material_id):
            raise MaterialNotFound(material_id)
        logger.info(f"Deleted material {material_id}")

    async def categories(self, material_type: Optional[MaterialType] = None) -> List[str]:
        return await self.repository.list_categories(material_type)

    async def suppliers(self, material_type: Optional[MaterialType] = None) -> List[str]:
        return await self.repository.list_suppliers(material_type)
