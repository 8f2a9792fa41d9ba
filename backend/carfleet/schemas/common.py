from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for API models: snake_case in Python, camelCase on the wire."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    limit: int


class Page(CamelModel, Generic[T]):
    """Standard paged list envelope."""

    data: list[T]
    pagination: Pagination

    @classmethod
    def build(
        cls, data: list[T], page: int, limit: int, total_items: int, total_pages: int
    ) -> "Page[T]":
        return cls(
            data=data,
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_items=total_items,
                limit=limit,
            ),
        )


class ErrorResponse(BaseModel):
    error: str
    fields: list[str] | None = None
