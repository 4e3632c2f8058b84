"""Assets API router."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.schemas.schemas import AssetCreate, AssetAssign, AssetOut
from simpleit.services.auth_service import auth_service
from simpleit.services.audit_service import audit_service
from simpleit.services.notification_service import notification_service
from simpleit.models.asset import Asset
from simpleit.models.employee import Employee
from simpleit.models.audit_log import AuditAction, EntityType
from simpleit.core.rbac import Principal, can_access_resource, filter_by_permissions
from simpleit.core.roles import Permission, has_permission
from simpleit.core.security import RequirePermission, require_auth
from simpleit.core.exceptions import AuthorizationError, ResourceConflictError, ResourceNotFoundError

router = APIRouter(prefix="/assets", tags=["assets"])


def _asset_out(asset: Asset, assigned_user_id=None) -> dict:
    return AssetOut(
        id=asset.id,
        asset_tag=asset.asset_tag,
        type=asset.type,
        brand=asset.brand,
        model_number=asset.model_number,
        serial_number=asset.serial_number,
        status=asset.status,
        assigned_employee_id=asset.assigned_employee_id,
        assigned_user_id=assigned_user_id,
    ).model_dump()


def _get_asset(db: Session, asset_id: int):
    row = (
        db.query(Asset, Employee.user_id)
        .outerjoin(Employee, Asset.assigned_employee_id == Employee.id)
        .filter(Asset.id == asset_id)
        .first()
    )
    if not row:
        raise ResourceNotFoundError(f"Asset {asset_id} not found")
    return row


@router.get("/")
async def list_assets(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.ASSETS_VIEW_OWN)),
):
    """List assets; employees only see assets assigned to them."""
    rows = (
        db.query(Asset, Employee.user_id)
        .outerjoin(Employee, Asset.assigned_employee_id == Employee.id)
        .order_by(Asset.id)
        .all()
    )
    records = [_asset_out(asset, user_id) for asset, user_id in rows]
    strategies, team_member_ids = auth_service.list_scope(db, principal)
    return filter_by_permissions(
        records, principal.role, principal.id, owner_field="assigned_user_id",
        strategies=strategies, team_member_ids=team_member_ids,
    )


@router.get("/{asset_id}", response_model=AssetOut)
async def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_auth),
):
    """Get one asset: its holder, the holder's manager, or a viewer of all."""
    asset, user_id = _get_asset(db, asset_id)
    if not (
        has_permission(principal.role, Permission.ASSETS_VIEW_ALL)
        or can_access_resource(
            principal,
            resource_owner_id=user_id,
            resource_manager_id=auth_service.get_manager_id(db, user_id),
        )
    ):
        raise AuthorizationError(
            "Insufficient permissions",
            required=Permission.ASSETS_VIEW_ALL.value,
            user_role=principal.role,
        )
    return _asset_out(asset, user_id)


@router.post("/", response_model=AssetOut, status_code=201)
async def create_asset(
    body: AssetCreate,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.ASSETS_CREATE)),
):
    """Register a new asset."""
    if db.query(Asset).filter(Asset.asset_tag == body.asset_tag).first():
        raise ResourceConflictError(f"Asset tag {body.asset_tag} already exists")

    asset = Asset(**body.model_dump(), status="Available")
    db.add(asset)
    db.commit()
    db.refresh(asset)
    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.CREATE,
        entity_type=EntityType.ASSET,
        entity_id=asset.id,
        details={"asset_tag": asset.asset_tag},
    )
    return _asset_out(asset)


@router.put("/{asset_id}/assign", response_model=AssetOut)
async def assign_asset(
    asset_id: int,
    body: AssetAssign,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.ASSETS_ASSIGN)),
):
    """Assign an asset to an employee, or unassign it with a null employee."""
    asset, _ = _get_asset(db, asset_id)
    previous = asset.assigned_employee_id
    employee = None
    if body.employee_id is not None:
        employee = db.query(Employee).filter(Employee.id == body.employee_id).first()
        if not employee:
            raise ResourceNotFoundError(f"Employee {body.employee_id} not found")

    asset.assigned_employee_id = employee.id if employee else None
    asset.status = "In Use" if employee else "Available"
    db.commit()
    db.refresh(asset)

    audit_service.log_from_request(
        db, request,
        user_id=principal.id,
        action=AuditAction.ASSIGN if employee else AuditAction.UNASSIGN,
        entity_type=EntityType.ASSET,
        entity_id=asset.id,
        details={"employee_id": {"from": previous, "to": asset.assigned_employee_id}},
    )
    if employee and employee.user_id and employee.id != previous:
        notification_service.notify_asset_assignment(db, asset, employee.user_id)
    return _asset_out(asset, employee.user_id if employee else None)
