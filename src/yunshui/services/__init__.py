"""Business services and their wiring."""

from dataclasses import dataclass

from yunshui.repositories.base import MaterialsRepository
from yunshui.services.catalog_service import CatalogService
from yunshui.services.order_builder import OrderBuilder
from yunshui.services.project_linker import ProjectLinker
from yunshui.services.status_pipeline import StatusPipeline
from yunshui.services.status_query import StatusQuery


@dataclass
class Services:
    """All services sharing one repository."""

    repository: MaterialsRepository
    catalog: CatalogService
    projects: ProjectLinker
    orders: OrderBuilder
    pipeline: StatusPipeline
    query: StatusQuery


def build_services(repository: MaterialsRepository) -> Services:
    projects = ProjectLinker(repository)
    pipeline = StatusPipeline(repository)
    return Services(
        repository=repository,
        catalog=CatalogService(repository),
        projects=projects,
        orders=OrderBuilder(repository, projects, pipeline),
        pipeline=pipeline,
        query=StatusQuery(repository),
    )


__all__ = [
    "Services",
    "build_services",
    "CatalogService",
    "OrderBuilder",
    "ProjectLinker",
    "StatusPipeline",
    "StatusQuery",
]
