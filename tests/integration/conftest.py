"""
Integration Test Fixtures.

Fixtures for integration tests - the real FastAPI application over the
test database, with the Telegram transport replaced by a recording double.
These fixtures build on the root conftest.py fixtures.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.database import get_db_session
from botbuilder.backend.core.dependencies import get_transport, get_webhook_secret


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(db_session: AsyncSession, transport) -> FastAPI:
    """
    Create the application with test dependency overrides.

    - Database session: the test session (fresh schema per test)
    - Telegram transport: the recording double from the `transport` fixture
    - Webhook secret: disabled; override again to test the secret check
    """
    from botbuilder.backend.main import create_app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_transport] = lambda: transport
    app.dependency_overrides[get_webhook_secret] = lambda: ""
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client for the application.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def create_bot(client: AsyncClient, api: "ApiAssertions"):
    """
    Register a bot through the API and return its JSON.

    Usage:
        bot = await create_bot(token="1:abc", menu=faq_menu)
    """
    async def create(
        token: str = "123456:AAtest",
        name: str = "Support",
        menu: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        response = await client.post("/api/v1/bots", json={"name": name, "token": token})
        bot = api.assert_success(response, 201)["data"]
        if menu is not None:
            response = await client.put(f"/api/v1/bots/{bot['id']}/menu", json={"menu_structure": menu})
            bot = api.assert_success(response)["data"]
        return bot

    return create


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is a request validation error (422).

        Returns:
            Response JSON data
        """
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
