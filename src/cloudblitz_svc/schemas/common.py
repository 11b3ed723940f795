from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire.

    Python code keeps snake_case attribute names; either form is accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class ApiResponse(CamelModel, Generic[T]):
    status: str = "success"
    message: Optional[str] = None
    data: Optional[T] = None


class PaginatedResponse(CamelModel, Generic[T]):
    status: str = "success"
    message: Optional[str] = "Data retrieved successfully"
    data: List[T]
    meta: PageMeta


def page_meta(page: int, limit: int, total: int) -> PageMeta:
    total_pages = (total + limit - 1) // limit if limit else 0
    return PageMeta(page=page, limit=limit, total=total, total_pages=total_pages)
