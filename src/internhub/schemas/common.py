"""Shared API schema building blocks.

Every response is wrapped in an Envelope:
    {"status": "success", "data": {...}}
    {"status": "error", "message": "...", "code": "..."}

JSON keys are camelCase on the wire; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from internhub.services.unit_of_work import PageQuery

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model with camelCase aliases that also accepts snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    """Uniform response envelope."""

    status: Literal["success", "error"] = "success"
    data: T | None = None
    message: str | None = None
    code: str | None = None

    @model_serializer(mode="wrap")
    def _drop_empty_meta(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        body = handler(self)
        for key in ("message", "code"):
            if body.get(key) is None:
                body.pop(key, None)
        return body


class Page(CamelModel, Generic[T]):
    """One page of a newest-first listing."""

    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int = Field(..., ge=1)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    notifications: str


def page_of(model: type[CamelModel], items: list, total: int, query: PageQuery) -> Page:
    """Wrap ORM rows from a paged query into a Page of `model`."""
    return Page[model](
        items=[model.model_validate(item) for item in items],
        total=total,
        page=query.page,
        page_size=query.page_size,
        total_pages=query.total_pages(total),
    )
