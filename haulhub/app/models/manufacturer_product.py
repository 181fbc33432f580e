"""
Manufacturer Product database model.

Catalog items listed by a Manufacturer and ordered by buyers.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Numeric, Text, JSON
from sqlalchemy.sql import func
from haulhub.app.db.session import Base


class ManufacturerProduct(Base):
    """
    Manufacturer Product model.

    Ownership is the only cross-entity rule: a product belongs to exactly
    one Manufacturer and only that manufacturer may change it.
    """
    __tablename__ = "manufacturer_products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    manufacturer_id = Column(Integer, ForeignKey('manufacturers.id'), nullable=False, index=True)

    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=False, default="General", index=True)
    price = Column(Numeric(12, 2), nullable=False)
    image_url = Column(String(500), nullable=False, default="")

    quality_rating = Column(Float, nullable=False, default=4.0)
    offer = Column(String(255), nullable=False, default="")
    buyers_count = Column(Integer, nullable=False, default=0)
    return_exchange = Column(Boolean, nullable=False, default=False)
    cash_on_delivery = Column(Boolean, nullable=False, default=False)
    payment_options = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=False, default="")

    stock_quantity = Column(Integer, nullable=False, default=10000)
    min_order_quantity = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<ManufacturerProduct(id={self.id}, name='{self.name}', manufacturer_id={self.manufacturer_id})>"
