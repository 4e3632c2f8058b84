"""Employee model."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from simpleit.db.base import Base


class Employee(Base):
    """HR record of a person; may be linked to a login account."""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_code = Column(String(50), unique=True, nullable=False, index=True)
    english_name = Column(String(255), nullable=False)
    arabic_name = Column(String(255), nullable=True)
    department = Column(String(100), nullable=True)
    title = Column(String(100), nullable=True)
    status = Column(String(30), nullable=False, default="Active")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
