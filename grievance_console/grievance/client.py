"""
Async httpx client wrapper for the Grievance API.

One shared `httpx.AsyncClient` carries the base URL, JSON content type and
timeout. Each console talks through its own `GrievanceAPI`, whose
`BearerTokenAuth` attaches the token stored for that console to every call.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Generator, Optional

import httpx
from pydantic import BaseModel

from grievance_console.config import settings
from grievance_console.grievance.errors import (
    AuthenticationError,
    BusinessError,
    HTTPStatusError,
    ShapeError,
    TransportError,
)
from grievance_console.grievance.schemas import (
    Assignment,
    Mail,
    MailDraft,
    NewRequest,
    Priority,
    Registration,
    Request,
    RequestType,
    StatusUpdate,
    User,
    parse_many,
)

logger = logging.getLogger(__name__)

TokenGetter = Callable[[], Optional[str]]


def make_grievance_client() -> httpx.AsyncClient:
    cfg = settings.grievance
    return httpx.AsyncClient(
        base_url=cfg.api_url,
        headers={"Content-Type": "application/json"},
        timeout=cfg.timeout,
    )


@asynccontextmanager
async def lifespan_grievance_client() -> AsyncIterator[httpx.AsyncClient]:
    """Used in the FastAPI lifespan to keep a single client alive."""
    async with make_grievance_client() as client:
        yield client


class BearerTokenAuth(httpx.Auth):
    def __init__(self, token_getter: TokenGetter) -> None:
        self._token_getter = token_getter

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        token = self._token_getter()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        yield request


def _server_message(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message:
            return message
    return None


class GrievanceAPI:
    def __init__(self, client: httpx.AsyncClient, token_getter: Optional[TokenGetter] = None) -> None:
        self._client = client
        self._auth = BearerTokenAuth(token_getter or (lambda: None))

    async def _call(self, method: str, path: str, payload: Optional[dict] = None) -> dict:
        try:
            resp = await self._client.request(
                method,
                path,
                content=json.dumps(payload) if payload is not None else None,
                auth=self._auth,
            )
        except httpx.HTTPError as exc:
            logger.warning("grievance.api.transport_failed", extra={"method": method, "path": path, "error": str(exc)})
            raise TransportError(f"Could not reach the Grievance API: {exc}", path=path) from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.is_error:
            logger.warning(
                "grievance.api.status_failed",
                extra={"method": method, "path": path, "status_code": resp.status_code},
            )
            raise HTTPStatusError(
                _server_message(body) or f"Grievance API answered {resp.status_code}",
                status_code=resp.status_code,
                path=path,
            )
        if body is None and not resp.content:
            return {}
        if not isinstance(body, dict):
            raise ShapeError("Grievance API answered with something other than a JSON object", path=path)
        if body.get("success") is False:
            raise BusinessError(_server_message(body) or "The request was not successful", path=path)
        return body

    def _records(self, body: dict, key: str, model: type[BaseModel], path: str) -> list:
        raw_items = body.get(key)
        if not isinstance(raw_items, list):
            raise ShapeError(f"expected a list under {key!r}", path=path)
        values, errors = parse_many(model, raw_items)
        for error in errors:
            logger.warning(
                "grievance.api.record_skipped",
                extra={"path": path, "model": model.__name__, "error": str(error)},
            )
        return values

    # ── Auth ──────────────────────────────────────────────────────────────────

    async def login(self, email: str, password: str) -> dict:
        try:
            body = await self._call("POST", "/auth/login", {"email": email, "password": password})
        except (HTTPStatusError, BusinessError) as exc:
            raise AuthenticationError(exc.message or "Invalid credentials", path=exc.path) from exc
        if not body.get("accessToken") or not body.get("user"):
            raise AuthenticationError(_server_message(body) or "Invalid credentials", path="/auth/login")
        return body

    async def register(self, registration: Registration) -> dict:
        try:
            return await self._call("POST", "/auth/register", registration.to_payload())
        except (HTTPStatusError, BusinessError) as exc:
            raise AuthenticationError(exc.message or "Registration failed", path=exc.path) from exc

    # ── Requests ──────────────────────────────────────────────────────────────

    async def fetch_requests(self, user_id: Optional[int], page: int = 1, page_size: int = 10) -> list[Request]:
        path = "/request-fetch/fetch"
        body = await self._call("POST", path, {"userId": user_id, "page": page, "pageSize": page_size})
        return self._records(body, "requests", Request, path)

    async def save_request(self, new_request: NewRequest) -> dict:
        return await self._call("POST", "/request/save", new_request.to_payload())

    async def update_status(self, update: StatusUpdate) -> dict:
        return await self._call("PUT", "/request/status", update.to_payload())

    async def assign(self, request_id: int, assignment: Assignment) -> dict:
        return await self._call("PUT", "/request/assign", {"requestId": request_id, **assignment.to_payload()})

    # ── Reference data ────────────────────────────────────────────────────────

    async def priority_list(self) -> list[Priority]:
        path = "/master/priority-list"
        return self._records(await self._call("GET", path), "priorities", Priority, path)

    async def request_type_list(self) -> list[RequestType]:
        path = "/master/request-type-list"
        return self._records(await self._call("GET", path), "requestTypes", RequestType, path)

    async def list_users(self) -> list[User]:
        path = "/users"
        return self._records(await self._call("GET", path), "users", User, path)

    # ── Mail ──────────────────────────────────────────────────────────────────

    async def list_mails(self) -> list[Mail]:
        path = "/mails"
        return self._records(await self._call("GET", path), "mails", Mail, path)

    async def send_mail(self, draft: MailDraft) -> dict:
        return await self._call("POST", "/mail/send", draft.to_payload())

    async def star_mail(self, mail_id: int) -> dict:
        return await self._call("PUT", f"/mail/{mail_id}/star")

    async def archive_mail(self, mail_id: int) -> dict:
        return await self._call("PUT", f"/mail/{mail_id}/archive")

    async def delete_mail(self, mail_id: int) -> dict:
        return await self._call("DELETE", f"/mail/{mail_id}")
