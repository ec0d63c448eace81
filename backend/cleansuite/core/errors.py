"""Domain exceptions and their HTTP mapping."""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for business rule violations."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class ValidationFailed(DomainError):
    """Input rejected before any write. Carries per-field messages."""

    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    code = "validation_failed"

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message, "fields": self.errors}


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PermissionDenied(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class InvalidTransition(DomainError):
    """A status change that is not allowed from the current status."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"

    def __init__(self, entity: str, current: str, target: str, message: Optional[str] = None):
        super().__init__(message or f"Cannot move {entity} from {current} to {target}")
        self.entity = entity
        self.current = current
        self.target = target


def register_error_handlers(app: FastAPI) -> None:
    """Map domain and storage errors onto JSON responses."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "server_error", "detail": "The operation could not be completed"},
        )
