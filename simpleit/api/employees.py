"""Employees API router."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import EmployeeCreate, EmployeeOut
from simpleit.services.auth_service import auth_service
from simpleit.services.audit_service import audit_service
from simpleit.models.employee import Employee
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal, can_access_resource
from simpleit.core.roles import Permission, has_permission
from simpleit.core.security import RequirePermission, require_agent, require_auth
from simpleit.core.exceptions import AuthorizationError, ResourceConflictError, ResourceNotFoundError

router = APIRouter(prefix="/employees", tags=["employees"])


def _get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise ResourceNotFoundError(f"Employee {employee_id} not found")
    return employee


@router.get("/")
async def list_employees(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_agent),
):
    """List employees (agents and above)."""
    employees = db.query(Employee).order_by(Employee.id).all()
    return [EmployeeOut.model_validate(e) for e in employees]


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """Get one employee: the linked user, their manager, or a viewer of all."""
    employee = _get_employee(db, employee_id)
    if not (
        has_permission(principal.role, Permission.EMPLOYEES_VIEW_ALL)
        or can_access_resource(
            principal,
            resource_owner_id=employee.user_id,
            resource_manager_id=auth_service.get_manager_id(db, employee.user_id),
        )
    ):
        raise AuthorizationError(
            "Insufficient permissions",
            required=Permission.EMPLOYEES_VIEW_ALL.value,
            user_role=principal.role,
        )
    return employee


@router.post("/", response_model=EmployeeOut, status_code=201)
async def create_employee(
    body: EmployeeCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.EMPLOYEES_CREATE)),
):
    """Create an employee, optionally linked to a login."""
    if db.query(Employee).filter(Employee.employee_code == body.employee_code).first():
        raise ResourceConflictError(f"Employee code {body.employee_code} already exists")

    employee = Employee(**body.model_dump())
    db.add(employee)
    db.flush()
    if body.user_id is not None:
        auth_service.get_user(db, body.user_id).employee_id = employee.id
    db.commit()
    db.refresh(employee)

    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.CREATE,
        entity_type=EntityType.EMPLOYEE,
        entity_id=employee.id,
        details={"employee_code": employee.employee_code},
    )
    return employee
