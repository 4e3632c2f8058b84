"""Auth service: login, user lookup, user management."""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Mapping, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpleit.models.user import User
from simpleit.core.config import settings
from simpleit.core.rbac import (
    DEFAULT_SCOPE_STRATEGIES,
    Principal,
    ScopeStrategy,
    scope_strategy_for,
)
from simpleit.core.roles import (
    Role,
    get_role_definition,
    get_role_display_name,
    is_at_least_as_privileged,
    normalize_role_id,
)
from simpleit.core.security import hash_password, verify_password, create_access_token
from simpleit.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ResourceConflictError,
    ResourceNotFoundError,
    UserLookupError,
    ValidationError,
)

logger = logging.getLogger("simpleit")


class AuthService:
    """Handles authentication and user management."""

    @staticmethod
    def authenticate(db: Session, username: str, password: str) -> Dict[str, Any]:
        """Check credentials and return an access token plus the user summary.

        Raises:
            AuthenticationError: If credentials are invalid.
        """
        user = db.query(User).filter(User.username == username).first()
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid username or password")

        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        db.commit()

        role = get_role_definition(user.role)
        role_name = role.id if role else user.role
        access_token = create_access_token({"sub": str(user.id), "role": role_name})

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": {
                "id": user.id,
                "username": user.username,
                "role": role_name,
                "role_display_name": get_role_display_name(role_name),
            },
        }

    @staticmethod
    def lookup_user(user_id: int) -> Optional[Dict[str, Any]]:
        """Fetch the fields the request principal needs, in its own session.

        Returns None when the user does not exist or is deactivated.

        Raises:
            UserLookupError: If the database cannot be queried.
        """
        from simpleit.db.session import SessionLocal

        db = SessionLocal()
        try:
            user = db.query(User).filter(User.id == user_id).first()
            if user is None or not user.is_active:
                return None
            return {
                "id": user.id,
                "username": user.username,
                "role": user.role,
                "employee_id": user.employee_id,
                "manager_id": user.manager_id,
            }
        except SQLAlchemyError as e:
            raise UserLookupError(f"Could not load user {user_id}: {e}") from e
        finally:
            db.close()

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        """Get a user by id."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    @staticmethod
    def list_users(db: Session, page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        """List all users with pagination."""
        total = db.query(User).count()
        users = (
            db.query(User)
            .order_by(User.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"users": users, "total": total, "page": page}

    @staticmethod
    def get_subordinate_ids(db: Session, manager_id: int) -> List[int]:
        """Ids of users whose supervisor is ``manager_id``."""
        rows = db.query(User.id).filter(User.manager_id == manager_id).all()
        return [row.id for row in rows]

    @staticmethod
    def list_scope(
        db: Session, principal: Principal
    ) -> Tuple[Mapping[str, ScopeStrategy], Optional[List[int]]]:
        """Scope strategies in force and, under team scoping, the principal's reports."""
        strategies = dict(DEFAULT_SCOPE_STRATEGIES)
        for role, strategy in settings.LIST_SCOPE_STRATEGIES.items():
            strategies[normalize_role_id(role)] = ScopeStrategy(strategy)

        team_member_ids = None
        if scope_strategy_for(principal.role, strategies) is ScopeStrategy.team:
            team_member_ids = AuthService.get_subordinate_ids(db, principal.id)
        return strategies, team_member_ids

    @staticmethod
    def get_manager_id(db: Session, user_id: Optional[int]) -> Optional[int]:
        """Supervisor of ``user_id``, used as a resource's manager attribution."""
        if user_id is None:
            return None
        row = db.query(User.manager_id).filter(User.id == user_id).first()
        return row.manager_id if row else None

    @staticmethod
    def _check_assignable(actor_role: str, role: str) -> str:
        definition = get_role_definition(role)
        if definition is None:
            raise ValidationError(f"Unknown role '{role}'")
        if not is_at_least_as_privileged(actor_role, definition.role):
            raise AuthorizationError(
                "Insufficient role level",
                required=definition.id,
                user_role=actor_role,
            )
        return definition.id

    @staticmethod
    def create_user(
        db: Session,
        actor_role: str,
        username: str,
        password: str,
        email: Optional[str] = None,
        role: str = Role.employee.value,
        manager_id: Optional[int] = None,
        employee_id: Optional[int] = None,
    ) -> User:
        """Create a user. The actor may not hand out a role above their own."""
        role_id = AuthService._check_assignable(actor_role, role)

        existing = db.query(User).filter(User.username == username).first()
        if existing:
            raise ResourceConflictError(f"User '{username}' already exists")
        if manager_id is not None:
            AuthService.get_user(db, manager_id)

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            role=role_id,
            manager_id=manager_id,
            employee_id=employee_id,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s with role %s", username, role_id)
        return user

    @staticmethod
    def change_role(db: Session, actor_role: str, user_id: int, role: str) -> User:
        """Change a user's role, subject to the same ceiling as create_user."""
        role_id = AuthService._check_assignable(actor_role, role)
        user = AuthService.get_user(db, user_id)
        # Nor may the actor demote someone who outranks them
        current = get_role_definition(user.role)
        if current is not None and not is_at_least_as_privileged(actor_role, current.role):
            raise AuthorizationError(
                "Insufficient role level",
                required=current.id,
                user_role=actor_role,
            )
        user.role = role_id
        db.commit()
        db.refresh(user)
        return user


auth_service = AuthService()
