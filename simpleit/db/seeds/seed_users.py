"""Seed the default admin and a small sample organisation."""

from sqlalchemy.orm import Session

from simpleit.core.config import settings
from simpleit.core.roles import Role
from simpleit.core.security import hash_password
from simpleit.models.user import User
from simpleit.models.employee import Employee
from simpleit.models.asset import Asset


def seed_admin(db: Session) -> User:
    """Create the default admin if it doesn't already exist."""
    existing = db.query(User).filter(User.username == settings.DEFAULT_ADMIN_USERNAME).first()
    if existing:
        return existing

    admin = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        email=settings.DEFAULT_ADMIN_EMAIL,
        hashed_password=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        role=Role.admin.value,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def seed_sample_data(db: Session, password: str = "changeme123") -> int:
    """Insert a manager, an agent and an employee reporting to the manager."""
    if db.query(User).filter(User.username == "manager").first():
        return 0

    hashed = hash_password(password)
    manager = User(username="manager", hashed_password=hashed, role=Role.manager.value)
    agent = User(username="agent", hashed_password=hashed, role=Role.agent.value)
    db.add_all([manager, agent])
    db.flush()

    employee_user = User(
        username="employee",
        hashed_password=hashed,
        role=Role.employee.value,
        manager_id=manager.id,
    )
    db.add(employee_user)
    db.flush()

    employee = Employee(
        employee_code="EMP-0001",
        english_name="Sample Employee",
        arabic_name="موظف تجريبي",
        department="IT",
        title="Analyst",
        user_id=employee_user.id,
    )
    db.add(employee)
    db.flush()
    employee_user.employee_id = employee.id

    db.add(Asset(
        asset_tag="AST-0001",
        type="Laptop",
        brand="Dell",
        model_number="Latitude 5440",
        status="In Use",
        assigned_employee_id=employee.id,
    ))
    db.commit()
    return 3
