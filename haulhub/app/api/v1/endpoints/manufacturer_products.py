"""
Manufacturer Product API Endpoints.

Catalog CRUD for manufacturers plus read/search for any signed-in user.
The owning manufacturer always comes from the authenticated account.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from haulhub.app.db.session import get_db
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.manufacturer_product import ManufacturerProduct
from haulhub.app.schemas.common import ApiResponse
from haulhub.app.schemas.product import ProductCreate, ProductUpdate, ProductResponse
from haulhub.app.core.dependencies import get_current_user
from haulhub.app.core.exceptions import DomainValidationError, ResourceNotFoundError
from haulhub.app.core.guards import get_current_manufacturer, OwnershipGuard
from haulhub.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manufacturer-products", tags=["Manufacturer Products"])
ownership_guard = OwnershipGuard()


async def _audit(db: AsyncSession, action: str, current_user: dict, **metadata):
    await log_event(
        db,
        action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        metadata=metadata
    )


@router.post("", response_model=ApiResponse[ProductResponse], status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    manufacturer: Manufacturer = Depends(get_current_manufacturer),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List a new product for the caller's manufacturer profile.

    The profile must already exist (it is created when the account is
    approved); it is never created here.
    """
    product = ManufacturerProduct(manufacturer_id=manufacturer.id, **product_data.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)

    logger.info("Product %s created for manufacturer %s", product.id, manufacturer.id)
    await _audit(db, AuditAction.PRODUCT_CREATED, current_user, product_id=product.id, manufacturer_id=manufacturer.id)

    return ApiResponse(data=ProductResponse.model_validate(product), message="Product created successfully")


@router.get("/user/{user_id}", response_model=ApiResponse[List[ProductResponse]])
async def list_products_for_user(
    user_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Products of the manufacturer profile owned by user_id, newest first."""
    result = await db.execute(select(Manufacturer).where(Manufacturer.user_id == user_id))
    manufacturer = result.scalar_one_or_none()
    if not manufacturer:
        raise ResourceNotFoundError("Manufacturer", message=f"No manufacturer profile for user {user_id}")

    result = await db.execute(
        select(ManufacturerProduct)
        .where(ManufacturerProduct.manufacturer_id == manufacturer.id)
        .order_by(ManufacturerProduct.created_at.desc(), ManufacturerProduct.id.desc())
    )
    products = result.scalars().all()
    return ApiResponse(data=[ProductResponse.model_validate(product) for product in products])


@router.get("/search/{manufacturer_id}", response_model=ApiResponse[List[ProductResponse]])
async def search_products(
    manufacturer_id: int,
    name: Optional[str] = Query(None, description="Case-insensitive substring of the name"),
    category: Optional[str] = Query(None, description="Case-insensitive substring of the category"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Search one manufacturer's catalog by name, category and price range."""
    if min_price is not None and max_price is not None and min_price > max_price:
        raise DomainValidationError(
            "min_price cannot be greater than max_price",
            details={"min_price": min_price, "max_price": max_price}
        )

    query = select(ManufacturerProduct).where(ManufacturerProduct.manufacturer_id == manufacturer_id)
    if name:
        query = query.where(func.lower(ManufacturerProduct.name).contains(name.strip().lower(), autoescape=True))
    if category:
        query = query.where(
            func.lower(ManufacturerProduct.category).contains(category.strip().lower(), autoescape=True)
        )
    if min_price is not None:
        query = query.where(ManufacturerProduct.price >= min_price)
    if max_price is not None:
        query = query.where(ManufacturerProduct.price <= max_price)

    result = await db.execute(query.order_by(ManufacturerProduct.price, ManufacturerProduct.id))
    products = result.scalars().all()
    return ApiResponse(data=[ProductResponse.model_validate(product) for product in products])


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(
    product_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    product = await db.get(ManufacturerProduct, product_id)
    if not product:
        raise ResourceNotFoundError("Product", product_id)
    return ApiResponse(data=ProductResponse.model_validate(product))


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    manufacturer: Manufacturer = Depends(get_current_manufacturer),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Partially update one of the caller's products."""
    product = ownership_guard.enforce(
        await db.get(ManufacturerProduct, product_id), manufacturer.id, "Product", owner_attr="manufacturer_id"
    )

    changes = product_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is not None:
            setattr(product, field, value)

    await db.commit()
    await db.refresh(product)

    await _audit(db, AuditAction.PRODUCT_UPDATED, current_user, product_id=product.id, fields=sorted(changes))
    return ApiResponse(data=ProductResponse.model_validate(product), message="Product updated successfully")


@router.delete("/{product_id}", response_model=ApiResponse[dict])
async def delete_product(
    product_id: int,
    manufacturer: Manufacturer = Depends(get_current_manufacturer),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the caller's products. Order lines keep their snapshot."""
    product = ownership_guard.enforce(
        await db.get(ManufacturerProduct, product_id), manufacturer.id, "Product", owner_attr="manufacturer_id"
    )

    await db.delete(product)
    await db.commit()

    logger.info("Product %s deleted by manufacturer %s", product_id, manufacturer.id)
    await _audit(db, AuditAction.PRODUCT_DELETED, current_user, product_id=product_id)
    return ApiResponse(data={"id": product_id}, message="Product deleted successfully")
