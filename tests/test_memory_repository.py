import json
from decimal import Decimal

from yunshui.models import (
    MaterialCreate,
    MaterialType,
    OrderFilters,
    OrderStatus,
    PickupTrackData,
    StatusType,
)
from yunshui.repositories import MemoryRepository


async def test_snapshot_round_trip(tmp_path):
    path = tmp_path / "state.json"
    repository = MemoryRepository(snapshot_path=str(path))

    material = await repository.create_material(
        MaterialCreate(name="Bolt", price=Decimal("2.50"), type=MaterialType.AUXILIARY)
    )
    order = await repository.create_order(user_id="pm-1", total_amount=Decimal("7.50"))
    project = await repository.create_project("Site", order_id=order.id, created_by="pm-1")
    await repository.create_status_update(
        project_id=project.id,
        updated_by="wh-1",
        status_type=StatusType.PICKUP,
        status_value="Picked (B.T.W)",
        additional_data={"primaryStatus": "Picked", "secondaryStatus": "(B.T.W)"},
    )
    assert path.exists()

    reloaded = MemoryRepository(snapshot_path=str(path))

    assert (await reloaded.get_material(material.id)).price == Decimal("2.50")
    assert (await reloaded.get_order(order.id)).status == OrderStatus.PENDING
    history = await reloaded.list_status_updates(project.id)
    assert len(history) == 1
    assert isinstance(history[0].additional_data, PickupTrackData)


async def test_corrupt_snapshot_starts_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    repository = MemoryRepository(snapshot_path=str(path))

    assert repository.materials == []


async def test_list_orders_newest_first(repository):
    first = await repository.create_order(user_id="pm-1", total_amount=Decimal("1"))
    second = await repository.create_order(user_id="pm-1", total_amount=Decimal("2"))

    orders = await repository.list_orders(OrderFilters(user_id="pm-1"))
    assert [o.id for o in orders] == [second.id, first.id]


async def test_snapshot_leaves_no_temp_file(tmp_path):
    path = tmp_path / "state.json"
    repository = MemoryRepository(snapshot_path=str(path))

    await repository.create_order(user_id="pm-1", total_amount=Decimal("1"))
    await repository.create_order(user_id="pm-1", total_amount=Decimal("2"))

    assert not (tmp_path / "state.json.tmp").exists()
    assert len(json.loads(path.read_text(encoding="utf-8"))["orders"]) == 2


async def test_delete_project_keeps_orders(repository):
    order = await repository.create_order(user_id="pm-1", total_amount=Decimal("1"))
    project = await repository.create_project("Site", created_by="pm-1")
    await repository.update_order(order.id, {"project_id": project.id})
    await repository.create_status_update(
        project_id=project.id,
        updated_by="wh-1",
        status_type=StatusType.CHECK,
        status_value="OK",
    )

    assert [o.id for o in await repository.list_orders(OrderFilters(project_id=project.id))] == [
        order.id
    ]
    assert await repository.delete_project(project.id) is True
    assert await repository.get_project(project.id) is None
    assert await repository.list_status_updates(project.id) == []
    assert await repository.get_order(order.id) is not None
    assert await repository.delete_project(project.id) is False
