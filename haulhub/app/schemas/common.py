"""
Shared Pydantic schema pieces.

Request and response bodies use camelCase keys; snake_case is accepted on input.
"""

from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {success, data, message}."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Page(CamelModel, Generic[T]):
    """Paginated list."""
    items: List[T]
    total: int
    page: int
    page_size: int


def normalize_upper(value):
    """Statuses arrive in any case ("Active", "running"); store them upper-case."""
    if isinstance(value, str):
        return value.strip().upper()
    return value
