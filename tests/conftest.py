"""
Pytest fixtures for testing.

Provides:
- A provider registry holding the in-memory providers, isolated from
  the global one
- The orders API document used across tests
- Helper modules on disk for passwordCheck resolution
- Test app and client wired with the security middleware
"""

import copy
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from specauth.api.middleware.security import SpecSecurity
from specauth.core.config import SecuritySettings
from specauth.core.plugins.registry import PluginRegistry

from _providers import (
    ORDERS_DOCUMENT,
    ApiKeyResource,
    MemoryOAuth,
    create_not_a_resource,
    create_test_app,
)


@pytest.fixture
def document() -> dict[str, Any]:
    """Fresh copy of the orders API document."""
    return copy.deepcopy(ORDERS_DOCUMENT)


@pytest.fixture
def registry() -> PluginRegistry:
    """Provider registry holding the fake providers."""
    registry = PluginRegistry("security-test")
    registry.register("memory-oauth", MemoryOAuth)
    registry.register("api-key", ApiKeyResource)
    registry.register("not-a-resource", create_not_a_resource)
    return registry


@pytest.fixture
def helpers_dir(tmp_path):
    """Helper directory with a password check module."""
    directory = tmp_path / "helpers"
    directory.mkdir()
    (directory / "passwords.py").write_text(
        "def check(username, password):\n"
        "    return username == 'alice' and password == 'secret'\n"
        "\n"
        "NOT_CALLABLE = 42\n"
    )
    (directory / "broken.py").write_text("def check(:\n")
    return directory


@pytest.fixture
def settings(helpers_dir) -> SecuritySettings:
    return SecuritySettings(helpers_path=str(helpers_dir), log_format="text")


# ============ Client ============


@pytest.fixture
def security(document, settings, registry) -> SpecSecurity:
    return SpecSecurity(document, settings=settings, registry=registry)


@pytest_asyncio.fixture
async def client(security: SpecSecurity) -> AsyncGenerator[AsyncClient, None]:
    """Test client over the security-wrapped app."""
    app = create_test_app(security)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
