"""Asset model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from simpleit.db.base import Base


class Asset(Base):
    """Tracked hardware or equipment item."""
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_tag = Column(String(50), unique=True, nullable=False, index=True)
    type = Column(String(50), nullable=False)
    brand = Column(String(100), nullable=True)
    model_number = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    status = Column(String(30), nullable=False, default="Available")
    assigned_employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
