from __future__ import annotations

from typing import Any, Mapping


class AppError(Exception):
    code = "app_error"
    status_code = 400
    title = "Request failed"
    # Whether ``message`` may be returned to clients outside development mode
    expose_detail = True

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    code = "validation_error"
    status_code = 400
    title = "Validation failed"


class TransportError(AppError):
    code = "transport_unavailable"
    status_code = 503
    title = "Email service unavailable"
    expose_detail = False


class InfrastructureError(AppError):
    code = "infrastructure_error"
    status_code = 500
    title = "Internal server error"
    expose_detail = False
