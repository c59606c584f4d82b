"""Helpers shared by the route modules."""

from typing import Any, Optional

from fastapi import Request
from pydantic import BaseModel

from yunshui.services import Services


def get_services(request: Request) -> Services:
    """Services built at startup and stored on app.state."""
    return request.app.state.services


def to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [to_json(item) for item in value]
    if isinstance(value, dict):
        return {key: to_json(item) for key, item in value.items()}
    return value


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """Success envelope."""
    body = {"success": True, "data": to_json(data)}
    if message:
        body["message"] = message
    return body
