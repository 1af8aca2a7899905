"""API fixtures - app built by create_app() with a fake model client."""

import httpx
import pytest

from calmish.config import Settings
from calmish.main import create_app
from tests.fakes import FakeMessageClient


@pytest.fixture
def settings():
    return Settings(
        anthropic_api_key="sk-ant-test-fake-key",
        chat_model="test-model",
        chat_rate_limit_max=3,
        log_format="text",
    )


@pytest.fixture
def model_client():
    return FakeMessageClient()


@pytest.fixture
def app(settings, model_client):
    return create_app(settings, model_client=model_client)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
