from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

from mail_relay.application.errors import AppError, InfrastructureError, ValidationError
from mail_relay.domain.models.email_message import SUBJECT_MAX_LENGTH

logger = logging.getLogger(__name__)

# Friendlier wording for the common schema violations, keyed by (field, error type)
_FIELD_MESSAGES: dict[tuple[str, str], str] = {
    ("to", "missing"): "Recipients are required",
    ("to", "list_type"): "Recipients must be an array",
    ("to", "too_short"): "At least one recipient is required",
    ("subject", "missing"): "Subject is required",
    ("subject", "string_type"): "Subject must be a string",
    ("subject", "string_too_short"): "Subject cannot be empty",
    ("subject", "string_too_long"): f"Subject cannot exceed {SUBJECT_MAX_LENGTH} characters",
}


def _render_loc(loc: Sequence[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def format_validation_errors(errors: Sequence[dict[str, Any]]) -> list[str]:
    messages: list[str] = []
    for err in errors:
        loc = [p for p in err.get("loc", ()) if p != "body"]
        kind = err.get("type", "")
        if kind == "json_invalid":
            messages.append("Request body must be valid JSON")
            continue
        if not loc:
            messages.append("Request body is required" if kind == "missing" else err["msg"])
            continue
        path = _render_loc(loc)
        if len(loc) == 1 and (loc[0], kind) in _FIELD_MESSAGES:
            messages.append(_FIELD_MESSAGES[(loc[0], kind)])
        elif kind == "email_format":
            messages.append(f"Invalid email format at {path}: {err.get('input')}")
        elif kind in ("subject_blank", "attachment_encoding"):
            messages.append(err["msg"])
        else:
            messages.append(f"{path}: {err['msg']}")
    return messages


def _error_payload(request: Request, exc: AppError) -> dict[str, Any]:
    settings = getattr(request.app.state, "settings", None)
    payload: dict[str, Any] = {"success": False, "message": exc.title}
    if exc.expose_detail or (settings is not None and settings.is_development):
        payload["error"] = exc.message
    return payload


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(  # noqa: WPS430
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = format_validation_errors(exc.errors())
        logger.info(
            "Request validation failed: %s",
            "; ".join(messages),
            extra={"path": request.url.path, "method": request.method},
        )
        payload = {"success": False, "message": ValidationError.title, "errors": messages}
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:  # noqa: WPS430
        log = logger.info if exc.status_code < 500 else logger.error
        log(
            "Application error handled: %s - %s (status: %d)",
            exc.code,
            exc.message,
            exc.status_code,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(status_code=exc.status_code, content=_error_payload(request, exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(  # noqa: WPS430
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            path = request.url.path
            if request.url.query:
                path = f"{path}?{request.url.query}"
            payload = {
                "success": False,
                "message": "Endpoint not found",
                "path": path,
                "method": request.method,
            }
        else:
            payload = {"success": False, "message": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:  # noqa: WPS430
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        error = InfrastructureError(str(exc) or exc.__class__.__name__)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_payload(request, error),
        )
