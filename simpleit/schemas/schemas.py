"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


class MessageResponse(BaseModel):
    message: str


# ---- Auth ----
class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=4)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[Dict[str, Any]] = None

class MeResponse(BaseModel):
    id: int
    username: str
    role: str
    role_display_name: Dict[str, str]
    employee_id: Optional[int] = None
    manager_id: Optional[int] = None
    permissions: List[str]


# ---- Role ----
class RoleOut(BaseModel):
    id: str
    level: int
    display_name: Dict[str, str]
    permissions: List[str]


# ---- User ----
class UserOut(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str
    employee_id: Optional[int] = None
    manager_id: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    email: Optional[str] = None
    role: str = "employee"
    manager_id: Optional[int] = None
    employee_id: Optional[int] = None

class UserRoleUpdate(BaseModel):
    role: str


# ---- Employee ----
class EmployeeCreate(BaseModel):
    employee_code: str = Field(..., min_length=1)
    english_name: str = Field(..., min_length=1)
    arabic_name: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    user_id: Optional[int] = None

class EmployeeOut(BaseModel):
    id: int
    employee_code: str
    english_name: str
    arabic_name: Optional[str] = None
    department: Optional[str] = None
    title: Optional[str] = None
    status: str
    user_id: Optional[int] = None

    class Config:
        from_attributes = True


# ---- Asset ----
class AssetCreate(BaseModel):
    asset_tag: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)
    brand: Optional[str] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None

class AssetAssign(BaseModel):
    employee_id: Optional[int] = None

class AssetOut(BaseModel):
    id: int
    asset_tag: str
    type: str
    brand: Optional[str] = None
    model_number: Optional[str] = None
    serial_number: Optional[str] = None
    status: str
    assigned_employee_id: Optional[int] = None
    assigned_user_id: Optional[int] = None


# ---- Ticket ----
class TicketCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: str = "Medium"
    category: Optional[str] = None
    related_asset_id: Optional[int] = None

class TicketUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    assigned_to_id: Optional[int] = None

    @field_validator("title", "priority", "status")
    @classmethod
    def not_null(cls, v):
        # May be omitted but not cleared
        if v is None:
            raise ValueError("may not be null")
        return v

class TicketOut(BaseModel):
    id: int
    ticket_code: Optional[str] = None
    title: str
    description: Optional[str] = None
    priority: str
    status: str
    category: Optional[str] = None
    submitted_by_id: int
    assigned_to_id: Optional[int] = None
    related_asset_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    details_json: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Notification ----
class NotificationOut(BaseModel):
    id: int
    title: str
    message: str
    type: str
    priority: str
    category: str
    entity_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class NotificationPreferencesIn(BaseModel):
    ticket_assignments: Optional[bool] = None
    ticket_status_changes: Optional[bool] = None
    asset_assignments: Optional[bool] = None
    maintenance_alerts: Optional[bool] = None
    upgrade_requests: Optional[bool] = None
    system_announcements: Optional[bool] = None
    employee_changes: Optional[bool] = None
    dnd_enabled: Optional[bool] = None
    dnd_start_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    dnd_end_time: Optional[str] = Field(None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    dnd_days: Optional[List[int]] = None

class NotificationPreferencesOut(BaseModel):
    ticket_assignments: bool
    ticket_status_changes: bool
    asset_assignments: bool
    maintenance_alerts: bool
    upgrade_requests: bool
    system_announcements: bool
    employee_changes: bool
    dnd_enabled: bool
    dnd_start_time: Optional[str] = None
    dnd_end_time: Optional[str] = None
    dnd_days: List[int] = []

class BroadcastRequest(BaseModel):
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    priority: str = "medium"
