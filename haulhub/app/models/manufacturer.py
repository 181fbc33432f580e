"""
Manufacturer database model.

One Manufacturer profile per MANUFACTURER account, created at approval time.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from haulhub.app.db.session import Base


class Manufacturer(Base):
    """Manufacturer profile that owns catalog products."""
    __tablename__ = "manufacturers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False, index=True)

    company_name = Column(String(255), nullable=False)
    business_type = Column(String(100), nullable=False, default="General")
    is_verified = Column(Boolean, default=False, nullable=False)
    rating = Column(Float, default=4.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Manufacturer(id={self.id}, user_id={self.user_id}, company='{self.company_name}')>"
