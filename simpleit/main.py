"""FastAPI main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from simpleit import __version__
from simpleit.core.config import settings
from simpleit.core.exceptions import setup_exception_handlers
from simpleit.core.middleware import setup_middleware
from simpleit.core.security import find_unreachable_permissions

from simpleit.api.auth import router as auth_router
from simpleit.api.roles import router as roles_router
from simpleit.api.users import router as users_router
from simpleit.api.employees import router as employees_router
from simpleit.api.assets import router as assets_router
from simpleit.api.tickets import router as tickets_router
from simpleit.api.audit import router as audit_router
from simpleit.api.notifications import router as notifications_router
from simpleit.api.system import router as system_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("simpleit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting %s API", settings.APP_NAME)

    missing = find_unreachable_permissions(app)
    if missing:
        logger.error(
            "Routes require permissions no role is granted; they are unreachable: %s",
            ", ".join(sorted(missing)),
        )
    if settings.FAIL_CLOSED_ON_LOOKUP_ERROR:
        logger.info("User lookup errors will fail requests closed")
    else:
        logger.warning("User lookup errors degrade requests to anonymous")

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


app = FastAPI(
    title="SimpleIT API",
    description="IT asset, employee and ticket management",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Middleware
setup_middleware(app)

# Exception handlers
setup_exception_handlers(app)

# Register routers
app.include_router(auth_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(employees_router, prefix="/api")
app.include_router(assets_router, prefix="/api")
app.include_router(tickets_router, prefix="/api")
app.include_router(audit_router, prefix="/api")
app.include_router(notifications_router, prefix="/api")
app.include_router(system_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/api/health")
async def health():
    """Quick health check endpoint."""
    return {"status": "ok"}
