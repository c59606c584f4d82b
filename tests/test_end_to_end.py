"""Full flow: catalog, order, project, four tracks, listing."""

from decimal import Decimal

from yunshui.models import (
    CheckTrackInput,
    DeliveryTrackInput,
    MaterialCreate,
    MaterialType,
    OrderLine,
    OrderTrackInput,
    PickupTrackInput,
    ProjectStatus,
)


async def test_order_to_completion(services):
    material = await services.catalog.create(
        MaterialCreate(name="Screw", price=Decimal("2.50"), quantity=50, type=MaterialType.AUXILIARY)
    )
    order = await services.orders.create_order(
        caller_id="pm-1", role="PM", items=[OrderLine(material_id=material.id, quantity=3)]
    )
    assert order.total_amount == Decimal("7.50")

    project = await services.projects.ensure_project_for_order(order)

    pipeline = services.pipeline
    await pipeline.post_order_status(
        order.id, "wh-1", OrderTrackInput(primary_status="Ordered", secondary_status="Processing")
    )
    await pipeline.post_pickup_status(
        order.id, "wh-1", PickupTrackInput(primary_status="Picked", secondary_status="(B.T.W)")
    )
    await pipeline.post_delivery_status(
        order.id,
        "wh-1",
        DeliveryTrackInput(
            status="Delivered", time="09:30", address="1 Main St", po="PO-1", delivered_by="Lee"
        ),
    )
    await pipeline.post_check_status(order.id, "wh-1", CheckTrackInput(status="OK"))

    listing = await services.query.list_orders_with_status(
        order_type=MaterialType.AUXILIARY, owner_id="pm-1"
    )
    summary = listing.items[0].status_summary
    assert summary.order == "Ordered - Processing"
    assert summary.pickup == "Picked (B.T.W)"
    assert summary.delivery == "Delivered"
    assert summary.check == "OK"
    assert listing.items[0].project.overall_status == ProjectStatus.COMPLETED

    history = await services.query.get_project_status_history(project.id)
    assert len(history.status_history) == 4


async def test_done_check_completes_twenty_unit_order(services):
    material = await services.catalog.create(
        MaterialCreate(name="Tile", price=Decimal("10"), type=MaterialType.FINISHED)
    )
    order = await services.orders.create_order(
        caller_id="am-1", role="AM", items=[OrderLine(material_id=material.id, quantity=2)]
    )
    assert order.total_amount == Decimal("20")

    project = await services.projects.ensure_project_for_order(order)
    await services.pipeline.post_order_status(
        order.id, "am-1", OrderTrackInput(primary_status="Ordered", secondary_status="Processing")
    )
    await services.pipeline.post_check_status(order.id, "wh-1", CheckTrackInput(status="Done"))

    latest = await services.query.latest_per_track(project.id)
    assert latest["ORDER"].status_value == "Ordered - Processing"
    assert latest["CHECK"].status_value == "Done"
    stored = await services.repository.get_project(project.id)
    assert stored.overall_status == ProjectStatus.COMPLETED
