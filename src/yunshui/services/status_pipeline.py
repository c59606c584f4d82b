"""Four-track status pipeline.

Each project carries four independent, append-only tracks (ORDER, PICKUP,
DELIVERY, CHECK). Posting never rewrites history and never checks the
order in which tracks are posted; the only stored state change is the
project's completion when a non-empty CHECK status arrives.
"""

from typing import Any, Dict, List, Optional, Tuple

import pydantic

from yunshui.config.constants import (
    DELIVERY_DELIVERED,
    DELIVERY_DETAIL_FIELDS,
    ORDER_PRIMARY_COMBINED,
    STATUS_VALUE_MAX_LENGTH,
    TRACK_SEED_VALUE,
)
from yunshui.core.exceptions import InvalidStatusInput, ProjectNotFound
from yunshui.core.logger import setup_logger
from yunshui.core.monitoring import set_status_context
from yunshui.models import (
    CheckTrackInput,
    DeliveryTrackData,
    DeliveryTrackInput,
    OrderTrackData,
    OrderTrackInput,
    PickupTrackData,
    PickupTrackInput,
    Project,
    ProjectStatus,
    StatusType,
    StatusUpdate,
)
from yunshui.models.status import TRACK_DATA_MODELS
from yunshui.repositories.base import MaterialsRepository

logger = setup_logger(__name__)

TRACK_INPUT_MODELS = {
    StatusType.ORDER: OrderTrackInput,
    StatusType.PICKUP: PickupTrackInput,
    StatusType.DELIVERY: DeliveryTrackInput,
    StatusType.CHECK: CheckTrackInput,
}


def order_track_value(inputs: OrderTrackInput) -> Tuple[str, OrderTrackData]:
    value = inputs.primary_status
    if inputs.primary_status == ORDER_PRIMARY_COMBINED and inputs.secondary_status:
        value = f"{inputs.primary_status} - {inputs.secondary_status}"
    data = OrderTrackData(
        primary_status=inputs.primary_status,
        secondary_status=inputs.secondary_status,
    )
    return value, data


def pickup_track_value(inputs: PickupTrackInput) -> Tuple[str, PickupTrackData]:
    if not inputs.primary_status or not inputs.secondary_status:
        raise InvalidStatusInput("Pickup status needs both primary and secondary status")
    value = f"{inputs.primary_status} {inputs.secondary_status}"
    data = PickupTrackData(
        primary_status=inputs.primary_status,
        secondary_status=inputs.secondary_status,
    )
    return value, data


def delivery_track_value(inputs: DeliveryTrackInput) -> Tuple[str, Optional[DeliveryTrackData]]:
    if inputs.status != DELIVERY_DELIVERED:
        return inputs.status, None

    details = inputs.model_dump(by_alias=True)
    missing = [field for field in DELIVERY_DETAIL_FIELDS if not details.get(field)]
    if missing:
        raise InvalidStatusInput(
            f"{', '.join(missing)} required when status is \"{DELIVERY_DELIVERED}\""
        )
    data = DeliveryTrackData(
        time=inputs.time,
        address=inputs.address,
        po=inputs.po,
        delivered_by=inputs.delivered_by,
    )
    return inputs.status, data


class StatusPipeline:
    """Appends status updates to a project's tracks."""

    def __init__(self, repository: MaterialsRepository):
        self.repository = repository

    async def _resolve_project(self, order_id: str) -> Project:
        project = await self.repository.find_project_by_order_id(order_id)
        if project is None:
            logger.warning(f"No project linked to order {order_id}")
            raise ProjectNotFound(order_id, by_order=True)
        return project

    async def _append(
        self,
        order_id: str,
        caller_id: str,
        track: StatusType,
        status_value: str,
        data: Optional[pydantic.BaseModel],
    ) -> Tuple[Project, StatusUpdate]:
        project = await self._resolve_project(order_id)
        update = await self._write(project, caller_id, track, status_value, data, order_id)
        return project, update

    async def _write(
        self,
        project: Project,
        caller_id: str,
        track: StatusType,
        status_value: str,
        data: Optional[pydantic.BaseModel],
        order_id: Optional[str] = None,
    ) -> StatusUpdate:
        if len(status_value) > STATUS_VALUE_MAX_LENGTH:
            raise InvalidStatusInput(
                f"Status value cannot exceed {STATUS_VALUE_MAX_LENGTH} characters"
            )

        set_status_context(track.value, order_id=order_id, project_id=project.id)

        update = await self.repository.create_status_update(
            project_id=project.id,
            updated_by=caller_id,
            status_type=track,
            status_value=status_value,
            additional_data=data.model_dump(by_alias=True) if data else None,
        )
        logger.info(
            f"Posted {track.value} status '{status_value}' to project {project.id}",
            extra={
                "order_id": order_id,
                "project_id": project.id,
                "track": track.value,
                "caller_id": caller_id,
            },
        )
        return update

    async def post_order_status(
        self, order_id: str, caller_id: str, inputs: OrderTrackInput
    ) -> StatusUpdate:
        value, data = order_track_value(inputs)
        _, update = await self._append(order_id, caller_id, StatusType.ORDER, value, data)
        return update

    async def post_pickup_status(
        self, order_id: str, caller_id: str, inputs: PickupTrackInput
    ) -> StatusUpdate:
        value, data = pickup_track_value(inputs)
        _, update = await self._append(order_id, caller_id, StatusType.PICKUP, value, data)
        return update

    async def post_delivery_status(
        self, order_id: str, caller_id: str, inputs: DeliveryTrackInput
    ) -> StatusUpdate:
        value, data = delivery_track_value(inputs)
        _, update = await self._append(order_id, caller_id, StatusType.DELIVERY, value, data)
        return update

    async def post_check_status(
        self, order_id: str, caller_id: str, inputs: CheckTrackInput
    ) -> StatusUpdate:
        """Post a CHECK status; a non-empty value completes the project."""
        project, update = await self._append(
            order_id, caller_id, StatusType.CHECK, inputs.status, None
        )

        await self._complete_on_check(project, inputs.status)
        return update

    async def _complete_on_check(self, project: Project, status_value: str) -> None:
        if status_value:
            await self.repository.update_project(
                project.id, {"overall_status": ProjectStatus.COMPLETED}
            )
            logger.info(f"Project {project.id} completed by check '{status_value}'")

    async def post_status(
        self, order_id: str, caller_id: str, track: StatusType, payload: Dict[str, Any]
    ) -> StatusUpdate:
        """Parse a raw track payload and post it to the matching track."""
        track = StatusType(track)
        try:
            inputs = TRACK_INPUT_MODELS[track].model_validate(payload)
        except pydantic.ValidationError as e:
            raise InvalidStatusInput(f"Invalid {track.value} status input: {e.errors()[0]['msg']}") from e

        handlers = {
            StatusType.ORDER: self.post_order_status,
            StatusType.PICKUP: self.post_pickup_status,
            StatusType.DELIVERY: self.post_delivery_status,
            StatusType.CHECK: self.post_check_status,
        }
        return await handlers[track](order_id, caller_id, inputs)

    async def post_project_status(
        self,
        project_id: str,
        caller_id: str,
        track: StatusType,
        status_value: str,
        additional_data: Optional[Dict[str, Any]] = None,
    ) -> StatusUpdate:
        """
        Append a raw status value to a project's track, addressed by project id.

        The value is stored verbatim; `additional_data` must fit the track's
        detail model and is dropped for CHECK. A non-empty CHECK value
        completes the project, as on the order-addressed path.

        Raises:
            ProjectNotFound, InvalidStatusInput
        """
        track = StatusType(track)
        project = await self.repository.get_project(project_id)
        if project is None:
            raise ProjectNotFound(project_id)

        data = None
        model = TRACK_DATA_MODELS.get(track)
        if additional_data and model:
            try:
                data = model.model_validate(additional_data)
            except pydantic.ValidationError as e:
                raise InvalidStatusInput(
                    f"Invalid {track.value} additional data: {e.errors()[0]['msg']}"
                ) from e

        update = await self._write(project, caller_id, track, status_value or "", data)
        if track == StatusType.CHECK:
            await self._complete_on_check(project, status_value)
        return update

    async def seed_tracks(self, project: Project, caller_id: str) -> List[StatusUpdate]:
        """Start all four tracks at the seed value. Never completes the project."""
        return [
            await self._write(project, caller_id, track, TRACK_SEED_VALUE, None)
            for track in StatusType
        ]
