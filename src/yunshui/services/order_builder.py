"""Order creation and order maintenance."""

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from yunshui.config.constants import (
    CANCELLABLE_ORDER_STATUSES,
    ORDER_NAME_PREFIXES,
    PROJECT_CATEGORY_LABELS,
    ROLE_ORDER_TYPES,
)
from yunshui.core.exceptions import (
    EmptyOrder,
    MaterialNotFound,
    OrderNotFound,
    ProjectNotFound,
    ValidationError,
    WrongMaterialType,
)
from yunshui.core.logger import setup_logger
from yunshui.models import (
    Material,
    MaterialType,
    Order,
    OrderItemDetail,
    OrderLine,
    OrderStatus,
    OrderWithItems,
    Project,
    ProjectSelection,
    UserRole,
    utcnow,
)
from yunshui.repositories.base import MaterialsRepository
from yunshui.services.project_linker import ProjectLinker
from yunshui.services.status_pipeline import StatusPipeline

logger = setup_logger(__name__)


async def attach_items(repository: MaterialsRepository, order: Order) -> OrderWithItems:
    """Join an order with its lines and each line's current catalog entry."""
    items = []
    for item in await repository.list_order_items(order.id):
        material = await repository.get_material(item.material_id)
        items.append(OrderItemDetail(**item.model_dump(), material=material))
    # `order` may already be an OrderWithItems; rebuild from the header fields only
    return OrderWithItems(**order.model_dump(include=set(Order.model_fields)), items=items)


def default_order_name(order_type: Optional[MaterialType]) -> Optional[str]:
    if order_type is None:
        return None
    return f"{ORDER_NAME_PREFIXES[order_type.value]}-{utcnow().strftime('%Y-%m-%d')}"


class OrderBuilder:
    """Builds orders from catalog lines and maintains them afterwards.

    Order type policy: every order has exactly one material type. It is
    taken from the explicit `order_type`, else from the caller's role
    (PM buys AUXILIARY, AM buys FINISHED), else from the first line's
    material. Every line must match it.
    """

    def __init__(
        self,
        repository: MaterialsRepository,
        project_linker: ProjectLinker,
        pipeline: StatusPipeline,
    ):
        self.repository = repository
        self.project_linker = project_linker
        self.pipeline = pipeline

    async def _resolve_materials(self, items: List[OrderLine]) -> List[Material]:
        materials = []
        for line in items:
            material = await self.repository.get_material(line.material_id)
            if material is None:
                logger.warning(f"Order line references missing material {line.material_id}")
                raise MaterialNotFound(line.material_id)
            materials.append(material)
        return materials

    @staticmethod
    def _resolve_order_type(
        role: Optional[UserRole],
        order_type: Optional[MaterialType],
        materials: List[Material],
    ) -> MaterialType:
        if order_type:
            return order_type
        if role and role.value in ROLE_ORDER_TYPES:
            return MaterialType(ROLE_ORDER_TYPES[role.value])
        return materials[0].type

    async def _resolve_project(
        self, caller_id: str, selection: Optional[ProjectSelection]
    ) -> Optional[str]:
        if selection is None:
            return None

        new_name = (selection.new_project_name or "").strip()
        if new_name:
            project = await self.project_linker.create_standalone_project(new_name, caller_id)
            return project.id

        if selection.project_id:
            if await self.repository.get_project(selection.project_id) is None:
                raise ProjectNotFound(selection.project_id)
            return selection.project_id

        return None

    async def create_order(
        self,
        caller_id: str,
        role: Optional[Union[UserRole, str]],
        items: List[OrderLine],
        selection: Optional[ProjectSelection] = None,
        order_type: Optional[MaterialType] = None,
        name: Optional[str] = None,
    ) -> OrderWithItems:
        """
        Create an order with prices frozen from the catalog.

        Args:
            caller_id: Owning user
            role: Caller's role, used to infer the order type
            items: Requested (material, quantity) lines
            selection: Existing project id or new standalone project name
            order_type: Explicit material type for the whole order
            name: Order name; defaults to "{type label}-{date}"

        Returns:
            The stored order with its lines

        Raises:
            EmptyOrder, MaterialNotFound, WrongMaterialType,
            DuplicateProjectName, ProjectNotFound
        """
        if not items:
            raise EmptyOrder()

        role = UserRole(role) if role else None
        materials = await self._resolve_materials(items)
        expected_type = self._resolve_order_type(role, order_type, materials)

        for material in materials:
            if material.type != expected_type:
                logger.warning(
                    f"Material {material.name} is {material.type.value}, "
                    f"order expects {expected_type.value}"
                )
                raise WrongMaterialType(material.name, expected_type.value)

        total_amount = sum(
            (Decimal(line.quantity) * material.price for line, material in zip(items, materials)),
            Decimal("0"),
        )

        project_id = await self._resolve_project(caller_id, selection)

        order = await self.repository.create_order(
            user_id=caller_id,
            total_amount=total_amount,
            name=name or default_order_name(expected_type),
            order_type=expected_type,
            project_id=project_id,
            status=OrderStatus.PENDING,
        )

        # Not atomic with the header write; a failure here leaves the order without lines
        for line, material in zip(items, materials):
            await self.repository.create_order_item(
                order_id=order.id,
                material_id=material.id,
                quantity=line.quantity,
                unit_price=material.price,
            )

        logger.info(
            f"Created {expected_type.value} order {order.id} for {caller_id}: "
            f"{len(items)} items, total {total_amount}",
            extra={"order_id": order.id, "caller_id": caller_id},
        )
        return await attach_items(self.repository, order)

    async def get_order(self, order_id: str) -> Order:
        order = await self.repository.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def get_order_with_items(self, order_id: str) -> OrderWithItems:
        return await attach_items(self.repository, await self.get_order(order_id))

    async def _update(self, order_id: str, changes: dict) -> Order:
        order = await self.repository.update_order(order_id, changes)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def rename_order(self, order_id: str, name: str) -> Order:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Order name is required", order_id)
        return await self._update(order_id, {"name": name})

    async def update_order_status(self, order_id: str, status: OrderStatus) -> Order:
        order = await self._update(order_id, {"status": OrderStatus(status)})
        logger.info(f"Order {order_id} status set to {order.status.value}")
        return order

    async def confirm_order(
        self, order_id: str, caller_id: str, order_type: MaterialType
    ) -> Tuple[Order, Project]:
        """
        Confirm a pending order and make sure it has a tracking project.

        A project created here starts with every track at the seed value;
        an existing project keeps its history.

        Raises:
            OrderNotFound, ValidationError (wrong order type or not PENDING)
        """
        order = await self.get_order(order_id)
        if order.order_type != order_type:
            label = PROJECT_CATEGORY_LABELS[order_type.value]
            raise ValidationError(f"Order {order_id} is not a {label} order", order_id)
        if order.status != OrderStatus.PENDING:
            raise ValidationError("Only pending orders can be confirmed", order_id)

        order = await self._update(order_id, {"status": OrderStatus.CONFIRMED})
        project, created = await self.project_linker.get_or_create_project(order, caller_id)
        if created:
            await self.pipeline.seed_tracks(project, caller_id)

        logger.info(
            f"Confirmed order {order_id} (project {project.id})",
            extra={"order_id": order_id, "project_id": project.id, "caller_id": caller_id},
        )
        return order, project

    async def cancel_order(self, order_id: str) -> Order:
        """Move a PENDING or CONFIRMED order to CANCELLED. Stock is not touched."""
        order = await self.get_order(order_id)
        if order.status.value not in CANCELLABLE_ORDER_STATUSES:
            raise ValidationError("Only pending or confirmed orders can be cancelled", order_id)

        order = await self._update(order_id, {"status": OrderStatus.CANCELLED})
        logger.info(f"Cancelled order {order_id}", extra={"order_id": order_id})
        return order

    async def delete_order(self, order_id: str) -> None:
        """Delete the order, its lines, its project and the project's history."""
        if not await self.repository.delete_order(order_id):
            raise OrderNotFound(order_id)
        logger.info(f"Deleted order {order_id}")

    async def assign_order_to_project(self, order_id: str, project_id: str) -> Order:
        await self.get_order(order_id)
        if await self.repository.get_project(project_id) is None:
            raise ProjectNotFound(project_id)
        order = await self._update(order_id, {"project_id": project_id})
        logger.info(f"Order {order_id} assigned to project {project_id}")
        return order

    async def remove_order_from_project(self, order_id: str) -> Order:
        order = await self._update(order_id, {"project_id": None})
        logger.info(f"Order {order_id} removed from its project")
        return order
