"""Standardized JSON response envelope helpers."""


import math
from typing import Generic, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from vendorbank.core.pagination import PageMeta, PaginationParams

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """Single-item response envelope: `{ data: {...} }`"""

    data: T

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


class ListResponse(BaseModel, Generic[T]):
    """Paginated list response envelope: `{ data: [...], meta: {...} }`"""

    data: list[T]
    meta: PageMeta

    model_config = {
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


def paginated(items: list, pagination: PaginationParams) -> dict:
    """Slice the full, already-ordered list into one page for ListResponse."""
    total = len(items)
    return {
        "data": pagination.slice(items),
        "meta": {
            "total": total,
            "page": pagination.page,
            "limit": pagination.limit,
            "pages": max(1, math.ceil(total / pagination.limit)),
        },
    }
