"""Password hashing, tokens, and the per-route RBAC gates."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterator, Optional, Set

import bcrypt
from fastapi import Depends, FastAPI, Request
from fastapi.routing import APIRoute
from jose import JWTError, jwt

from simpleit.core.config import settings
from simpleit.core.exceptions import AuthenticationError, AuthorizationError
from simpleit.core.rbac import Principal
from simpleit.core.roles import (
    Role,
    get_role_definition,
    has_permission,
    is_at_least_as_privileged,
    permissions_of,
)

logger = logging.getLogger("simpleit")

SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token; None when invalid or expired."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def get_session_user_id(request: Request) -> Optional[int]:
    """User id from the session cookie, else from a bearer token."""
    session = request.scope.get("session")
    if session and session.get(SESSION_USER_KEY) is not None:
        try:
            return int(session[SESSION_USER_KEY])
        except (TypeError, ValueError):
            logger.warning("Ignoring malformed session user id %r", session[SESSION_USER_KEY])
            return None

    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    payload = decode_token(token.strip())
    if not payload or payload.get("type") != "access" or payload.get("sub") is None:
        logger.debug("Ignoring invalid bearer token")
        return None
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        return None


# ---- Gates ----

def get_principal(request: Request) -> Optional[Principal]:
    """Principal attached by AttachUserInfoMiddleware, if any."""
    return getattr(request.state, "user", None)


def require_auth(principal: Optional[Principal] = Depends(get_principal)) -> Principal:
    """Dependency: reject requests without an authenticated user."""
    if principal is None:
        raise AuthenticationError()
    return principal


class RequirePermission:
    """Dependency that checks the user's role grants a permission."""

    def __init__(self, permission):
        self.permission = getattr(permission, "value", permission)

    async def __call__(self, principal: Principal = Depends(require_auth)) -> Principal:
        if not has_permission(principal.role, self.permission):
            raise AuthorizationError(
                "Insufficient permissions",
                required=self.permission,
                user_role=principal.role,
            )
        return principal


class RequireRole:
    """Dependency that checks the user ranks at least ``min_role``."""

    def __init__(self, min_role):
        definition = get_role_definition(min_role)
        if definition is None:
            raise ValueError(f"Unknown role {min_role!r}")
        self.min_role = definition.id

    async def __call__(self, principal: Principal = Depends(require_auth)) -> Principal:
        if not is_at_least_as_privileged(principal.role, self.min_role):
            raise AuthorizationError(
                "Insufficient role level",
                required=self.min_role,
                user_role=principal.role,
            )
        return principal


# Convenience dependency factories
require_admin = RequireRole(Role.admin)
require_manager = RequireRole(Role.manager)
require_agent = RequireRole(Role.agent)


def _iter_dependency_calls(dependant) -> Iterator:
    for dep in dependant.dependencies:
        yield dep.call
        yield from _iter_dependency_calls(dep)


def find_unreachable_permissions(app: FastAPI) -> Set[str]:
    """Permissions required by some route that no role is granted."""
    granted = set()
    for role in Role:
        granted |= permissions_of(role)

    missing = set()
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        for call in _iter_dependency_calls(route.dependant):
            if isinstance(call, RequirePermission) and call.permission not in granted:
                missing.add(call.permission)
    return missing
