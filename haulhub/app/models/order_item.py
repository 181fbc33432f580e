"""
Order line item database model.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Numeric
from haulhub.app.db.session import Base


class OrderItem(Base):
    """Line item with a product-name and price snapshot taken at order time."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(String(64), ForeignKey('orders.id'), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey('manufacturer_products.id', ondelete="SET NULL"), nullable=True)

    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id='{self.order_id}', qty={self.quantity})>"
