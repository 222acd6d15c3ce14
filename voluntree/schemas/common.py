"""Shared pydantic building blocks: camelCase models and the response envelope."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(CamelModel, Generic[T]):
    status_code: int = 200
    data: T | None = None
    message: str = "success"
    success: bool = True


def ok(data: Any = None, message: str = "success", status_code: int = 200) -> ApiResponse[Any]:
    return ApiResponse(status_code=status_code, data=data, message=message, success=status_code < 400)
