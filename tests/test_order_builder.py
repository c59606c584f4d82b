from decimal import Decimal

import pytest

from yunshui.core.exceptions import (
    DuplicateProjectName,
    EmptyOrder,
    MaterialNotFound,
    OrderNotFound,
    ProjectNotFound,
    ValidationError,
    WrongMaterialType,
)
from yunshui.models import (
    MaterialType,
    MaterialUpdate,
    OrderLine,
    OrderStatus,
    ProjectSelection,
    ProjectStatus,
)


async def test_total_is_sum_of_frozen_prices(services, bolt, glue):
    order = await services.orders.create_order(
        caller_id="pm-1",
        role="PM",
        items=[
            OrderLine(material_id=bolt.id, quantity=2),
            OrderLine(material_id=glue.id, quantity=2),
        ],
    )

    assert order.total_amount == Decimal("7.50")
    assert order.status == OrderStatus.PENDING
    assert order.order_type == MaterialType.AUXILIARY
    assert order.user_id == "pm-1"
    assert order.name.startswith("輔材訂單-")
    assert [item.unit_price for item in order.items] == [Decimal("2.50"), Decimal("1.25")]


async def test_unit_price_does_not_follow_catalog_changes(services, order, bolt):
    await services.catalog.update(bolt.id, MaterialUpdate(price=Decimal("9.99")))
    stored = await services.orders.get_order_with_items(order.id)

    assert stored.items[0].unit_price == Decimal("2.50")
    assert stored.items[0].material.price == Decimal("9.99")
    assert stored.total_amount == Decimal("7.50")


async def test_empty_order_rejected(services):
    with pytest.raises(EmptyOrder):
        await services.orders.create_order(caller_id="pm-1", role="PM", items=[])


async def test_missing_material_writes_nothing(services, repository, bolt):
    with pytest.raises(MaterialNotFound):
        await services.orders.create_order(
            caller_id="pm-1",
            role="PM",
            items=[
                OrderLine(material_id=bolt.id, quantity=1),
                OrderLine(material_id="ghost", quantity=1),
            ],
        )
    assert repository.orders == []


async def test_wrong_material_type_for_role(services, repository, panel):
    with pytest.raises(WrongMaterialType) as excinfo:
        await services.orders.create_order(
            caller_id="pm-1",
            role="PM",
            items=[OrderLine(material_id=panel.id, quantity=1)],
        )
    assert excinfo.value.expected_type == "AUXILIARY"
    assert repository.orders == []


async def test_mixed_types_rejected_for_admin(services, bolt, panel):
    with pytest.raises(WrongMaterialType):
        await services.orders.create_order(
            caller_id="admin-1",
            role="ADMIN",
            items=[
                OrderLine(material_id=bolt.id, quantity=1),
                OrderLine(material_id=panel.id, quantity=1),
            ],
        )


async def test_admin_order_type_from_first_material(services, panel):
    order = await services.orders.create_order(
        caller_id="admin-1",
        role="ADMIN",
        items=[OrderLine(material_id=panel.id, quantity=2)],
    )
    assert order.order_type == MaterialType.FINISHED
    assert order.total_amount == Decimal("240.00")
    assert order.name.startswith("完成材訂單-")


async def test_new_project_name_creates_standalone_project(services, bolt):
    order = await services.orders.create_order(
        caller_id="pm-1",
        role="PM",
        items=[OrderLine(material_id=bolt.id, quantity=1)],
        selection=ProjectSelection(new_project_name="Harbor Tower"),
    )

    project = await services.projects.get_project(order.project_id)
    assert project.project_name == "Harbor Tower"
    assert project.order_id is None


async def test_duplicate_project_name_rejected_before_writing(services, repository, bolt):
    await services.projects.create_standalone_project("Harbor Tower", "pm-1")

    with pytest.raises(DuplicateProjectName):
        await services.orders.create_order(
            caller_id="pm-1",
            role="PM",
            items=[OrderLine(material_id=bolt.id, quantity=1)],
            selection=ProjectSelection(new_project_name="harbor tower"),
        )
    assert repository.orders == []


async def test_unknown_project_id_rejected(services, bolt):
    with pytest.raises(ProjectNotFound):
        await services.orders.create_order(
            caller_id="pm-1",
            role="PM",
            items=[OrderLine(material_id=bolt.id, quantity=1)],
            selection=ProjectSelection(project_id="nope"),
        )


async def test_rename_and_status(services, order):
    renamed = await services.orders.rename_order(order.id, "  Lobby bolts ")
    assert renamed.name == "Lobby bolts"

    with pytest.raises(ValidationError):
        await services.orders.rename_order(order.id, "   ")

    approved = await services.orders.update_order_status(order.id, OrderStatus.APPROVED)
    assert approved.status == OrderStatus.APPROVED


async def test_assign_and_remove_project(services, order):
    standalone = await services.projects.create_standalone_project("Site A", "pm-1")

    assigned = await services.orders.assign_order_to_project(order.id, standalone.id)
    assert assigned.project_id == standalone.id

    removed = await services.orders.remove_order_from_project(order.id)
    assert removed.project_id is None

    with pytest.raises(ProjectNotFound):
        await services.orders.assign_order_to_project(order.id, "nope")


async def test_delete_cascades_to_project_and_history(services, repository, order, project):
    await services.pipeline.post_status(order.id, "wh-1", "CHECK", {"status": "OK"})

    await services.orders.delete_order(order.id)

    assert repository.order_items == []
    assert repository.projects == []
    assert repository.status_updates == []
    with pytest.raises(OrderNotFound):
        await services.orders.get_order(order.id)


async def test_confirm_creates_and_seeds_project(services, repository, order):
    confirmed, project = await services.orders.confirm_order(
        order.id, "pm-1", MaterialType.AUXILIARY
    )

    assert confirmed.status == OrderStatus.CONFIRMED
    assert project.order_id == order.id
    history = await repository.list_status_updates(project.id)
    assert sorted(u.status_type.value for u in history) == ["CHECK", "DELIVERY", "ORDER", "PICKUP"]
    assert {u.status_value for u in history} == {"PENDING"}
    assert (await repository.get_project(project.id)).overall_status == ProjectStatus.ACTIVE

    with pytest.raises(ValidationError):
        await services.orders.confirm_order(order.id, "pm-1", MaterialType.AUXILIARY)


async def test_confirm_keeps_existing_project_history(services, repository, order, project):
    _, confirmed_project = await services.orders.confirm_order(
        order.id, "pm-1", MaterialType.AUXILIARY
    )

    assert confirmed_project.id == project.id
    assert await repository.list_status_updates(project.id) == []


async def test_confirm_checks_order_type(services, repository, order):
    with pytest.raises(ValidationError):
        await services.orders.confirm_order(order.id, "am-1", MaterialType.FINISHED)
    assert (await services.orders.get_order(order.id)).status == OrderStatus.PENDING
    assert repository.projects == []


async def test_cancel_order(services, bolt, order):
    cancelled = await services.orders.cancel_order(order.id)

    assert cancelled.status == OrderStatus.CANCELLED
    assert (await services.catalog.get(bolt.id)).quantity == 100
    with pytest.raises(ValidationError):
        await services.orders.cancel_order(order.id)


async def test_confirmed_order_can_be_cancelled(services, order):
    await services.orders.confirm_order(order.id, "pm-1", MaterialType.AUXILIARY)

    assert (await services.orders.cancel_order(order.id)).status == OrderStatus.CANCELLED
