"""API routes for service info, the material catalog and projects."""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from yunshui import __version__
from yunshui.config.constants import (
    CATALOG_MANAGER_ROLES,
    DEFAULT_PAGE_SIZE,
    DELETE_ROLES,
    PROJECT_EDITOR_ROLES,
    PROJECT_STATUS_ROLES,
    STATUS_AUDIT_ROLES,
    STOCK_MANAGER_ROLES,
)
from yunshui.config.settings import settings
from yunshui.core.logger import setup_logger
from yunshui.models import (
    MaterialCreate,
    MaterialFilters,
    MaterialType,
    MaterialUpdate,
    StatusType,
    StatusUpdateFilters,
)
from yunshui.server.auth import Caller, get_caller, require_roles
from yunshui.server.common import get_services, ok
from yunshui.services import Services

logger = setup_logger(__name__)
router = APIRouter()


class QuantityUpdate(BaseModel):
    quantity: int


class ProjectCreate(BaseModel):
    project_name: str = Field(alias="projectName")

    class Config:
        populate_by_name = True


class ProjectTrackPost(BaseModel):
    status_type: StatusType = Field(alias="statusType")
    status_value: str = Field(default="", alias="statusValue")
    additional_data: Optional[Dict[str, Any]] = Field(default=None, alias="additionalData")

    class Config:
        populate_by_name = True


@router.get("/")
async def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Yunshui Materials",
        "version": __version__,
        "endpoints": {
            "health": "GET /health",
            "materials": "/api/materials",
            "orders": "/api/orders",
            "projects": "/api/projects",
            "status": "/api/status",
            "docs": "GET /docs",
        },
    }


@router.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint for monitoring."""
    storage_ok = await services.repository.health_check()
    health_status = {
        "status": "healthy" if storage_ok else "degraded",
        "service": "yunshui",
        "environment": settings.environment,
        "checks": {
            "storage": {
                "backend": settings.storage_backend,
                "status": "ok" if storage_ok else "unavailable",
            },
        },
    }
    if not storage_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=health_status)
    return health_status


# ==============================================================================
# MATERIALS
# ==============================================================================


@router.get("/api/materials")
async def list_materials(
    type: Optional[MaterialType] = Query(default=None, description="AUXILIARY or FINISHED"),
    category: Optional[str] = Query(default=None),
    name: Optional[str] = Query(default=None, description="Case-insensitive substring"),
    supplier: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    filters = MaterialFilters(type=type, category=category, name=name, supplier=supplier)
    return ok(await services.catalog.list(filters, page, limit))


@router.get("/api/materials/categories")
async def list_categories(
    type: Optional[MaterialType] = Query(default=None),
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.catalog.categories(type))


@router.get("/api/materials/suppliers")
async def list_suppliers(
    type: Optional[MaterialType] = Query(default=None),
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.catalog.suppliers(type))


@router.get("/api/materials/{material_id}")
async def get_material(
    material_id: str,
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.catalog.require(material_id))


@router.post("/api/materials", status_code=status.HTTP_201_CREATED)
async def create_material(
    data: MaterialCreate,
    _: Caller = Depends(require_roles(*CATALOG_MANAGER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.catalog.create(data), "Material created")


@router.put("/api/materials/{material_id}")
async def update_material(
    material_id: str,
    data: MaterialUpdate,
    _: Caller = Depends(require_roles(*CATALOG_MANAGER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.catalog.update(material_id, data), "Material updated")


@router.put("/api/materials/{material_id}/quantity")
async def update_material_quantity(
    material_id: str,
    data: QuantityUpdate,
    _: Caller = Depends(require_roles(*STOCK_MANAGER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    material = await services.catalog.update_quantity(material_id, data.quantity)
    return ok(material, "Quantity updated")


@router.delete("/api/materials/{material_id}")
async def delete_material(
    material_id: str,
    _: Caller = Depends(require_roles(*DELETE_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    await services.catalog.delete(material_id)
    return ok(message="Material deleted")


# ==============================================================================
# PROJECTS
# ==============================================================================


@router.get("/api/projects")
async def list_projects(
    search: Optional[str] = Query(default=None, description="Case-insensitive name filter"),
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.projects.list_projects(search))


@router.post("/api/projects", status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    project = await services.projects.create_standalone_project(data.project_name, caller.id)
    return ok(project, "Project created")


@router.put("/api/projects/{project_id}")
async def rename_project(
    project_id: str,
    data: ProjectCreate,
    _: Caller = Depends(require_roles(*PROJECT_EDITOR_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    project = await services.projects.rename_project(project_id, data.project_name)
    return ok(project, "Project updated")


@router.delete("/api/projects/{project_id}")
async def delete_project(
    project_id: str,
    _: Caller = Depends(require_roles(*DELETE_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    detached = await services.projects.delete_project(project_id)
    return ok({"detached_orders": detached}, "Project deleted")


@router.get("/api/projects/{project_id}/orders")
async def list_project_orders(
    project_id: str,
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.projects.list_project_orders(project_id))


@router.put("/api/projects/{project_id}/status")
async def post_project_status(
    project_id: str,
    data: ProjectTrackPost,
    caller: Caller = Depends(require_roles(*PROJECT_STATUS_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Append a raw value to one of the project's tracks."""
    update = await services.pipeline.post_project_status(
        project_id, caller.id, data.status_type, data.status_value, data.additional_data
    )
    return ok(update, "Status updated")


@router.get("/api/projects/{project_id}/status")
async def get_project_status(
    project_id: str,
    _: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.query.get_project_status_history(project_id))


# ==============================================================================
# STATUS FEED
# ==============================================================================


@router.get("/api/status/statistics")
async def get_status_statistics(
    _: Caller = Depends(require_roles(*STATUS_AUDIT_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.query.status_statistics())


@router.get("/api/status/updates")
async def list_status_updates(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    status_type: Optional[StatusType] = Query(default=None, alias="statusType"),
    updated_by: Optional[str] = Query(default=None, alias="updatedBy"),
    date_from: Optional[datetime] = Query(default=None, alias="dateFrom", description="ISO 8601"),
    date_to: Optional[datetime] = Query(default=None, alias="dateTo", description="ISO 8601"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    _: Caller = Depends(require_roles(*STATUS_AUDIT_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    filters = StatusUpdateFilters(
        project_id=project_id,
        status_type=status_type,
        updated_by=updated_by,
        date_from=date_from,
        date_to=date_to,
    )
    return ok(await services.query.list_status_updates(filters, page, limit))
