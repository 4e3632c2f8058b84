"""CORS, session, request-id, and user-attachment middleware."""

import uuid
import time
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from simpleit.core.config import settings
from simpleit.core.rbac import Principal
from simpleit.core.roles import Role, normalize_role_id
from simpleit.core.security import get_session_user_id

logger = logging.getLogger("simpleit")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a unique request ID to every request/response."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        response: Response = await call_next(request)

        duration = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        logger.info(
            "%s %s %s %sms",
            request.method,
            request.url.path,
            response.status_code,
            duration,
        )
        return response


def principal_from_user(user) -> Principal:
    """Build a Principal from a user record (ORM row or mapping)."""
    if not isinstance(user, dict):
        user = {k: getattr(user, k, None) for k in ("id", "username", "role", "employee_id", "manager_id")}
    return Principal(
        id=int(user["id"]),
        username=user.get("username"),
        role=normalize_role_id(user.get("role")) or Role.employee.value,
        employee_id=user.get("employee_id") or None,
        manager_id=user.get("manager_id") or None,
    )


class AttachUserInfoMiddleware(BaseHTTPMiddleware):
    """Attach the session's user to ``request.state.user``.

    A missing user leaves the request anonymous; the route gates reject it
    where authentication is needed. A failing user store is logged and, unless
    ``fail_closed_on_lookup_error`` is set, also leaves the request anonymous.
    """

    def __init__(
        self,
        app,
        user_lookup: Optional[Callable] = None,
        fail_closed_on_lookup_error: Optional[bool] = None,
    ):
        super().__init__(app)
        if user_lookup is None:
            from simpleit.services.auth_service import auth_service
            user_lookup = auth_service.lookup_user
        self.user_lookup = user_lookup
        if fail_closed_on_lookup_error is None:
            fail_closed_on_lookup_error = settings.FAIL_CLOSED_ON_LOOKUP_ERROR
        self.fail_closed = fail_closed_on_lookup_error

    async def dispatch(self, request: Request, call_next):
        request.state.user = None
        user_id = get_session_user_id(request)

        if user_id is not None:
            try:
                user = await run_in_threadpool(self.user_lookup, user_id)
                if user is not None:
                    request.state.user = principal_from_user(user)
                else:
                    logger.info("Session user %s not found; continuing anonymously", user_id)
            except Exception:
                logger.exception("Error attaching user info for user %s", user_id)
                if self.fail_closed:
                    return JSONResponse(status_code=503, content={"message": "User lookup failed"})

        return await call_next(request)


def setup_middleware(app: FastAPI, user_lookup: Optional[Callable] = None) -> None:
    """Configure all middleware for the application."""
    # Innermost first: the session must be decoded before users are attached
    app.add_middleware(AttachUserInfoMiddleware, user_lookup=user_lookup)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
    )

    # Request ID + timing
    app.add_middleware(RequestIdMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
