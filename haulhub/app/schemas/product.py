"""
Manufacturer product Pydantic schemas.
"""

from pydantic import AliasChoices, Field, field_validator
from datetime import datetime
from typing import List, Optional
from haulhub.app.schemas.common import CamelModel


class ProductCreate(CamelModel):
    """
    Schema for listing a product.

    The owning manufacturer comes from the authenticated account, never
    from the body. priceAmount / priceRange are accepted for price.
    """
    name: str = Field(..., min_length=1, max_length=255)
    category: str = Field("General", max_length=100)
    price: float = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("price", "priceAmount", "price_amount", "priceRange", "price_range"),
    )
    image_url: str = Field("", max_length=500)
    quality_rating: float = Field(4.0, ge=0, le=5)
    offer: str = Field("", max_length=255)
    buyers_count: int = Field(0, ge=0)
    return_exchange: bool = False
    cash_on_delivery: bool = False
    payment_options: List[str] = Field(default_factory=list)
    description: str = ""
    stock_quantity: int = Field(10000, ge=0)
    min_order_quantity: int = Field(1, ge=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("Product name is required")
        return value


class ProductUpdate(CamelModel):
    """Partial product update; only supplied fields change."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(
        None,
        gt=0,
        validation_alias=AliasChoices("price", "priceAmount", "price_amount", "priceRange", "price_range"),
    )
    image_url: Optional[str] = Field(None, max_length=500)
    quality_rating: Optional[float] = Field(None, ge=0, le=5)
    offer: Optional[str] = Field(None, max_length=255)
    buyers_count: Optional[int] = Field(None, ge=0)
    return_exchange: Optional[bool] = None
    cash_on_delivery: Optional[bool] = None
    payment_options: Optional[List[str]] = None
    description: Optional[str] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    min_order_quantity: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Product name cannot be blank")
        return value


class ProductResponse(CamelModel):
    """Product as returned by the API."""
    id: int
    manufacturer_id: int
    name: str
    category: str
    price: float
    image_url: str
    quality_rating: float
    offer: str
    buyers_count: int
    return_exchange: bool
    cash_on_delivery: bool
    payment_options: List[str]
    description: str
    stock_quantity: int
    min_order_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
