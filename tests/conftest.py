"""Shared fixtures: the fake Grievance API, API wrappers and signed-in consoles."""

from typing import Optional

import httpx
import pytest
import pytest_asyncio

from grievance_console.console.shell import ConsoleRegistry
from grievance_console.grievance.client import GrievanceAPI
from tests.fake_api import ADMIN, BASE_URL, CUSTOMER, FakeGrievanceServer


@pytest.fixture
def server() -> FakeGrievanceServer:
    return FakeGrievanceServer()


@pytest_asyncio.fixture
async def grievance_client(server):
    async with httpx.AsyncClient(
        base_url=BASE_URL,
        headers={"Content-Type": "application/json"},
        transport=httpx.MockTransport(server.handle),
    ) as client:
        yield client


class TokenHolder:
    def __init__(self, token: Optional[str] = None) -> None:
        self.token = token


@pytest.fixture
def token() -> TokenHolder:
    return TokenHolder()


@pytest.fixture
def api(grievance_client, token) -> GrievanceAPI:
    return GrievanceAPI(grievance_client, token_getter=lambda: token.token)


@pytest.fixture
def admin_api(grievance_client) -> GrievanceAPI:
    return GrievanceAPI(grievance_client, token_getter=lambda: "token-1")


@pytest.fixture
def customer_api(grievance_client) -> GrievanceAPI:
    return GrievanceAPI(grievance_client, token_getter=lambda: "token-3")


@pytest.fixture
def registry(grievance_client) -> ConsoleRegistry:
    return ConsoleRegistry(grievance_client)


async def _signed_in(registry: ConsoleRegistry, credentials: dict):
    _, shell = registry.create()
    await shell.login(credentials["email"], credentials["password"])
    return await shell.ensure_dashboard()


@pytest_asyncio.fixture
async def admin_dashboard(registry):
    return await _signed_in(registry, ADMIN)


@pytest_asyncio.fixture
async def customer_dashboard(registry):
    return await _signed_in(registry, CUSTOMER)
