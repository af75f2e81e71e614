from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette import status

from mail_relay.application.use_cases.email import check_connection
from mail_relay.application.use_cases.email.send_email import SendEmailUseCase
from mail_relay.config.settings import SERVICE_VERSION, Settings
from mail_relay.infrastructure.email.models import EmailService
from mail_relay.interfaces.http.deps import (
    get_app_settings,
    get_email_service,
    get_send_email_use_case,
)
from mail_relay.interfaces.http.schemas.email import (
    EnvelopeResponse,
    ErrorResponse,
    HealthResponse,
    SendEmailRequest,
    SendEmailResponse,
    SentEmailSchema,
)

router = APIRouter(prefix="/email", tags=["email"])


@router.post(
    "/send",
    response_model=SendEmailResponse,
    summary="Send an email",
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
        503: {"model": ErrorResponse, "description": "Email service unavailable"},
    },
)
async def send_email(
    payload: SendEmailRequest,
    *,
    use_case: SendEmailUseCase = Depends(get_send_email_use_case),
):
    result = await use_case.execute(payload.to_fields())
    if not result.success or result.data is None:
        raise result.to_error()
    return SendEmailResponse(
        message=result.message,
        data=SentEmailSchema(
            message_id=result.data.message_id,
            to=result.data.to,
            subject=result.data.subject,
            sent_at=result.data.sent_at.isoformat(),
        ),
    )


@router.get(
    "/test",
    response_model=EnvelopeResponse,
    summary="Test email service connection",
    responses={503: {"model": EnvelopeResponse, "description": "Connection failed"}},
)
async def test_connection(
    *,
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings),
):
    check = await check_connection.execute(email_service, include_detail=settings.is_development)
    if not check.success:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "message": check.message},
        )
    return EnvelopeResponse(success=True, message=check.message)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health() -> HealthResponse:
    return HealthResponse(
        success=True,
        message="Email service is running",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=SERVICE_VERSION,
    )
