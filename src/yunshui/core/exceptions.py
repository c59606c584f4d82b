"""Error types raised by the services.

Routes translate these into HTTP responses; services never swallow them.
"""

from typing import Optional


class YunshuiError(Exception):
    """Base class for all domain errors."""

    kind = "Internal"

    def __init__(self, message: str, identifier: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.identifier = identifier


class NotFoundError(YunshuiError):
    """A caller-supplied id has no matching record."""

    kind = "Not found"


class MaterialNotFound(NotFoundError):
    def __init__(self, material_id: str):
        super().__init__(f"Material {material_id} not found", material_id)


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found", order_id)


class ProjectNotFound(NotFoundError):
    def __init__(self, identifier: str, by_order: bool = False):
        if by_order:
            message = f"Project not found for order {identifier}"
        else:
            message = f"Project {identifier} not found"
        super().__init__(message, identifier)


class ValidationError(YunshuiError):
    """Input is structurally valid JSON but breaks a business rule."""

    kind = "Validation error"


class WrongMaterialType(ValidationError):
    def __init__(self, material_name: str, expected_type: str):
        super().__init__(
            f"Material {material_name} is not of type {expected_type}", material_name
        )
        self.expected_type = expected_type


class DuplicateProjectName(ValidationError):
    def __init__(self, project_name: str):
        super().__init__(f"Project name already exists: {project_name}", project_name)


class InvalidStatusInput(ValidationError):
    pass


class EmptyOrder(ValidationError):
    def __init__(self):
        super().__init__("An order needs at least one item")


class StorageError(YunshuiError):
    """The storage backend failed."""

    kind = "Internal server error"
