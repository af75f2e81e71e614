from __future__ import annotations

import sys
from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from mail_relay.config.settings import Settings
from mail_relay.interfaces.http.main import create_app
from tests.stubs import StubEmailService


@pytest.fixture()
def test_settings() -> Settings:
    return Settings.model_validate(
        {
            "environment": "test",
            "log_level": "INFO",
            "api_version": "v1",
            "email_host": "smtp.test.local",
            "email_user": "sender@example.com",
        }
    )


@pytest.fixture()
def email_service() -> StubEmailService:
    return StubEmailService()


@pytest.fixture()
def app(test_settings: Settings, email_service: StubEmailService):
    return create_app(settings=test_settings, email_service=email_service)


@pytest.fixture()
async def client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
