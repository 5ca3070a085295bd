"""
Error taxonomy shared by services, guards and routers.

Services raise these; the handlers registered in `register_exception_handlers`
turn them into the JSON bodies the API documents:

    {"message": "<code>"}
    {"errors": [{"field": "<dotted.path>", "message": "<code>"}]}

`NotFoundError` is used both for rows that do not exist and for rows that
live in another workspace, so a caller can never tell the two apart.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "internal_server_error"

    def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
        self.message = message or self.default_message
        # Internal reason, logged but never rendered.
        self.reason = reason or self.message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.message}


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "invalid_token"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "forbidden"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not_found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "conflict"


class DomainRuleError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "domain_rule_violated"


class UpstreamNotificationError(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "sms_send_failed"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "validation_failed"

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__()

    @classmethod
    def for_field(cls, field: str, message: str | None = None) -> "ValidationError":
        return cls([FieldError(field=field, message=message or f"{field}_is_required")])

    def to_payload(self) -> dict[str, Any]:
        return {"errors": [{"field": error.field, "message": error.message} for error in self.errors]}


_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}


def _field_path(loc: Iterable[Any]) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in {"body", "query", "path", "header"}:
        parts = parts[1:]
    return ".".join(parts) or "body"


def field_errors_from_pydantic(errors: Iterable[dict[str, Any]]) -> list[FieldError]:
    collected: list[FieldError] = []
    seen: set[str] = set()
    for error in errors:
        field = _field_path(error.get("loc", ()))
        if field in seen:
            continue
        seen.add(field)
        suffix = "is_required" if error.get("type") in _REQUIRED_ERROR_TYPES else "is_invalid"
        collected.append(FieldError(field=field, message=f"{field}_{suffix}"))
    return collected


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed (%s): status=%s endpoint=%s %s",
        exc.reason,
        exc.status_code,
        request.method,
        request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    payload = ValidationError(field_errors_from_pydantic(exc.errors())).to_payload()
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: endpoint=%s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "internal_server_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
