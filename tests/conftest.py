"""Shared fixtures: a fresh in-memory repository and services per test."""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from yunshui.models import MaterialCreate, MaterialType, OrderLine  # noqa: E402
from yunshui.repositories import MemoryRepository  # noqa: E402
from yunshui.services import build_services  # noqa: E402


@pytest.fixture
def repository():
    return MemoryRepository()


@pytest.fixture
def services(repository):
    return build_services(repository)


@pytest.fixture
async def bolt(services):
    return await services.catalog.create(
        MaterialCreate(
            name="Bolt",
            category="Fasteners",
            price=Decimal("2.50"),
            quantity=100,
            supplier="Acme",
            type=MaterialType.AUXILIARY,
        )
    )


@pytest.fixture
async def glue(services):
    return await services.catalog.create(
        MaterialCreate(
            name="Glue",
            category="Adhesives",
            price=Decimal("1.25"),
            quantity=40,
            supplier="Stick Co",
            type=MaterialType.AUXILIARY,
        )
    )


@pytest.fixture
async def panel(services):
    return await services.catalog.create(
        MaterialCreate(
            name="Panel",
            category="Boards",
            price=Decimal("120.00"),
            quantity=5,
            supplier="Acme",
            type=MaterialType.FINISHED,
        )
    )


@pytest.fixture
async def order(services, bolt):
    """A PM's auxiliary order of three bolts (total 7.50)."""
    return await services.orders.create_order(
        caller_id="pm-1",
        role="PM",
        items=[OrderLine(material_id=bolt.id, quantity=3)],
    )


@pytest.fixture
async def project(services, order):
    return await services.projects.ensure_project_for_order(order)
