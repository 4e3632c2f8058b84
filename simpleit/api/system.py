"""System API router."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from simpleit.db.session import get_db
from simpleit.core.rbac import Principal
from simpleit.core.roles import Permission
from simpleit.core.security import RequirePermission

logger = logging.getLogger("simpleit")

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(Permission.SYSTEM_HEALTH)),
):
    """System health check: database reachability."""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.exception("Database health check failed")

    return {
        "database": "ok" if db_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }
