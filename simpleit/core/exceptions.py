"""Custom exception classes and their HTTP translation."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger("simpleit")


class SimpleITError(Exception):
    """Base exception for SimpleIT."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(SimpleITError):
    """Raised when a request carries no authenticated user."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(SimpleITError):
    """Raised when the user lacks a permission or role level."""

    def __init__(self, message: str, required: str, user_role: str):
        super().__init__(message)
        self.required = required
        self.user_role = user_role


class ResourceNotFoundError(SimpleITError):
    """Raised when a requested resource is not found."""
    pass


class ResourceConflictError(SimpleITError):
    """Raised when a resource already exists."""
    pass


class ValidationError(SimpleITError):
    """Raised when input validation fails."""
    pass


class UserLookupError(SimpleITError):
    """Raised when the user store cannot be queried."""
    pass


def setup_exception_handlers(app: FastAPI) -> None:
    """Translate SimpleIT exceptions into JSON responses."""

    @app.exception_handler(AuthenticationError)
    async def authentication_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"message": exc.message},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_handler(request: Request, exc: AuthorizationError):
        logger.info(
            "Forbidden %s %s: required=%s role=%s",
            request.method, request.url.path, exc.required, exc.user_role,
        )
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "message": exc.message,
                "required": exc.required,
                "userRole": exc.user_role,
            },
        )

    @app.exception_handler(ResourceNotFoundError)
    async def not_found_handler(request: Request, exc: ResourceNotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    @app.exception_handler(ResourceConflictError)
    async def conflict_handler(request: Request, exc: ResourceConflictError):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": exc.message},
        )

    @app.exception_handler(SimpleITError)
    async def simpleit_handler(request: Request, exc: SimpleITError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message},
        )
