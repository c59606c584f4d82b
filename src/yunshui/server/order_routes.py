"""
Order Routes

Order creation and listing per material type, order maintenance, project
linkage and posting to the four status tracks.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, Field

from yunshui.config.constants import (
    DEFAULT_PAGE_SIZE,
    DELETE_ROLES,
    ORDER_CREATOR_ROLES,
    ORDER_LIST_ROLES,
    ORDER_MANAGER_ROLES,
    ORDER_OVERRIDE_ROLES,
    ORDER_VIEW_ALL_ROLES,
    STATUS_UPDATER_ROLES,
)
from yunshui.core.logger import setup_logger
from yunshui.models import MaterialType, OrderLine, OrderStatus, ProjectSelection, StatusType
from yunshui.server.auth import Caller, ensure_owner_or_roles, get_caller, require_roles
from yunshui.server.common import get_services, ok
from yunshui.services import Services

logger = setup_logger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


class CreateOrderRequest(BaseModel):
    items: List[OrderLine]
    name: Optional[str] = None
    project_id: Optional[str] = Field(default=None, alias="projectId")
    new_project_name: Optional[str] = Field(default=None, alias="newProjectName")

    class Config:
        populate_by_name = True


class RenameRequest(BaseModel):
    name: str


class OrderStatusRequest(BaseModel):
    status: OrderStatus


class AssignProjectRequest(BaseModel):
    project_id: str = Field(alias="projectId")

    class Config:
        populate_by_name = True


class Track(str, Enum):
    order = "order"
    pickup = "pickup"
    delivery = "delivery"
    check = "check"


async def _create_order(
    order_type: MaterialType, data: CreateOrderRequest, caller: Caller, services: Services
) -> Dict[str, Any]:
    order = await services.orders.create_order(
        caller_id=caller.id,
        role=caller.role,
        items=data.items,
        selection=ProjectSelection(
            project_id=data.project_id, new_project_name=data.new_project_name
        ),
        order_type=order_type,
        name=data.name,
    )
    return ok(order, "Order created")


async def _list_orders(
    order_type: MaterialType,
    status: Optional[OrderStatus],
    page: int,
    limit: int,
    caller: Caller,
    services: Services,
) -> Dict[str, Any]:
    # PM and AM only ever see their own orders
    owner_id = None if caller.has_role(ORDER_VIEW_ALL_ROLES) else caller.id
    result = await services.query.list_orders_with_status(
        order_type=order_type, owner_id=owner_id, status=status, page=page, limit=limit
    )
    return ok(result)


@router.post("/auxiliary", status_code=201)
async def create_auxiliary_order(
    data: CreateOrderRequest,
    caller: Caller = Depends(require_roles(*ORDER_CREATOR_ROLES["AUXILIARY"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _create_order(MaterialType.AUXILIARY, data, caller, services)


@router.post("/finished", status_code=201)
async def create_finished_order(
    data: CreateOrderRequest,
    caller: Caller = Depends(require_roles(*ORDER_CREATOR_ROLES["FINISHED"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _create_order(MaterialType.FINISHED, data, caller, services)


@router.get("/auxiliary")
async def list_auxiliary_orders(
    status: Optional[OrderStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    caller: Caller = Depends(require_roles(*ORDER_LIST_ROLES["AUXILIARY"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _list_orders(MaterialType.AUXILIARY, status, page, limit, caller, services)


@router.get("/finished")
async def list_finished_orders(
    status: Optional[OrderStatus] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1),
    caller: Caller = Depends(require_roles(*ORDER_LIST_ROLES["FINISHED"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _list_orders(MaterialType.FINISHED, status, page, limit, caller, services)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_VIEW_ALL_ROLES)
    return ok(await services.query.enrich_order(order))


@router.delete("/{order_id}")
async def cancel_order(
    order_id: str,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Cancel a PENDING or CONFIRMED order; owner or ADMIN only."""
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_OVERRIDE_ROLES)
    return ok(await services.orders.cancel_order(order_id), "Order cancelled")


@router.delete("/{order_id}/delete")
async def delete_order(
    order_id: str,
    _: Caller = Depends(require_roles(*DELETE_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Remove the order with its lines, tracking project and status history."""
    await services.orders.delete_order(order_id)
    return ok(message="Order deleted")


async def _confirm_order(
    order_id: str, order_type: MaterialType, caller: Caller, services: Services
) -> Dict[str, Any]:
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_OVERRIDE_ROLES)
    order, project = await services.orders.confirm_order(order_id, caller.id, order_type)
    return ok({"order": order, "project": project}, "Order confirmed")


@router.put("/{order_id}/confirm")
async def confirm_auxiliary_order(
    order_id: str,
    caller: Caller = Depends(require_roles(*ORDER_CREATOR_ROLES["AUXILIARY"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _confirm_order(order_id, MaterialType.AUXILIARY, caller, services)


@router.put("/{order_id}/confirm-finished")
async def confirm_finished_order(
    order_id: str,
    caller: Caller = Depends(require_roles(*ORDER_CREATOR_ROLES["FINISHED"])),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return await _confirm_order(order_id, MaterialType.FINISHED, caller, services)


@router.put("/{order_id}/name")
async def rename_order(
    order_id: str,
    data: RenameRequest,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_MANAGER_ROLES)
    return ok(await services.orders.rename_order(order_id, data.name), "Order renamed")


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    data: OrderStatusRequest,
    _: Caller = Depends(require_roles(*ORDER_MANAGER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    order = await services.orders.update_order_status(order_id, data.status)
    return ok(order, "Order status updated")


@router.put("/{order_id}/project")
async def assign_project(
    order_id: str,
    data: AssignProjectRequest,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_MANAGER_ROLES)
    order = await services.orders.assign_order_to_project(order_id, data.project_id)
    return ok(order, "Order assigned to project")


@router.delete("/{order_id}/project")
async def remove_project(
    order_id: str,
    caller: Caller = Depends(get_caller),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    order = await services.orders.get_order(order_id)
    ensure_owner_or_roles(caller, order.user_id, ORDER_MANAGER_ROLES)
    order = await services.orders.remove_order_from_project(order_id)
    return ok(order, "Order removed from project")


@router.post("/{order_id}/project/ensure")
async def ensure_project(
    order_id: str,
    caller: Caller = Depends(require_roles(*STATUS_UPDATER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return ok(await services.projects.ensure_project(order_id, caller.id))


@router.put("/{order_id}/status/{track}")
async def post_track_status(
    order_id: str,
    track: Track,
    payload: Dict[str, Any] = Body(...),
    caller: Caller = Depends(require_roles(*STATUS_UPDATER_ROLES)),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """
    Append a status update to one of the order's project tracks.

    Body shape depends on the track:
    - order: {"primaryStatus", "secondaryStatus"?}
    - pickup: {"primaryStatus", "secondaryStatus"}
    - delivery: {"status", "time"?, "address"?, "po"?, "deliveredBy"?}
    - check: {"status"}
    """
    update = await services.pipeline.post_status(
        order_id, caller.id, StatusType(track.value.upper()), payload
    )
    return ok(update, f"{track.value.capitalize()} status updated")
