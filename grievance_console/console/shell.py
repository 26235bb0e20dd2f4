"""
Console shell and the registry of live consoles.

A shell gates the screens on the session: "loading" until the stored session
was restored, "auth" while signed out, the dashboard otherwise. Each console
owns its own `GrievanceAPI` over the process-wide `httpx.AsyncClient`, so the
bearer token of one console never leaks into another.
"""

import asyncio
import logging
import re
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import httpx

from grievance_console.console.dashboard import ConsoleView, DashboardController, NotSignedIn
from grievance_console.grievance.client import GrievanceAPI
from grievance_console.grievance.mails import MailStore
from grievance_console.grievance.requests import RequestStore
from grievance_console.grievance.schemas import ROLE_USER, Registration, User
from grievance_console.grievance.session import (
    AuthSession,
    JsonFileSessionRepository,
    MemorySessionRepository,
    SessionRepository,
)

logger = logging.getLogger(__name__)

_CONSOLE_ID = re.compile(r"[0-9a-f]{32}")


def viewer_id_for(user: User) -> Optional[int]:
    """Customers only see their own requests; staff see everything."""
    return user.user_id if user.role == ROLE_USER else None


class ConsoleShell:
    def __init__(self, api: GrievanceAPI, session: AuthSession) -> None:
        self.api = api
        self.session = session
        self.dashboard: Optional[DashboardController] = None
        self._building = asyncio.Lock()

    @property
    def user(self) -> Optional[User]:
        return self.session.user

    async def ensure_dashboard(self) -> DashboardController:
        user = self.session.user
        if not self.session.state.is_authenticated or user is None:
            raise NotSignedIn("Sign in to use the console")
        async with self._building:
            if self.dashboard is None or self.dashboard.user.user_id != user.user_id:
                dashboard = DashboardController(
                    user,
                    RequestStore(self.api, viewer_id=viewer_id_for(user)),
                    MailStore(self.api),
                )
                await dashboard.start()
                self.dashboard = dashboard
                logger.info("console.dashboard_started", extra={"user_id": user.user_id, "role": user.role})
            return self.dashboard

    async def render(self, now: Optional[datetime] = None) -> ConsoleView:
        if self.session.state.is_loading:
            return ConsoleView(screen="loading", loading=True)
        if not self.session.state.is_authenticated:
            return ConsoleView(screen="auth")
        dashboard = await self.ensure_dashboard()
        return dashboard.render(now)

    async def login(self, email: str, password: str) -> User:
        self.dashboard = None
        return await self.session.login(email, password)

    async def register(self, registration: Registration) -> User:
        self.dashboard = None
        return await self.session.register(registration)

    def logout(self) -> None:
        self.session.logout()
        self.dashboard = None


class ConsoleRegistry:
    """
    Live consoles by id; sessions go to `session_dir` when one is configured.

    The map is kept in least-recently-used order. Consoles idle for longer
    than `idle_timeout` seconds are dropped, and so is the oldest one once
    `max_consoles` is exceeded. A dropped console with a session file comes
    back on its next call.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        session_dir: Optional[Path] = None,
        max_consoles: int = 1000,
        idle_timeout: float = 3600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._session_dir = session_dir
        self._max_consoles = max_consoles
        self._idle_timeout = idle_timeout
        self._clock = clock
        self._consoles: OrderedDict[str, tuple[ConsoleShell, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._consoles)

    def _repository(self, console_id: str) -> SessionRepository:
        if self._session_dir is None:
            return MemorySessionRepository()
        return JsonFileSessionRepository(self._session_dir / f"{console_id}.json")

    def _prune(self) -> None:
        deadline = self._clock() - self._idle_timeout
        while self._consoles:
            console_id, (_, last_seen) = next(iter(self._consoles.items()))
            if last_seen > deadline and len(self._consoles) <= self._max_consoles:
                break
            del self._consoles[console_id]
            logger.info("console.dropped", extra={"console_id": console_id})

    def _touch(self, console_id: str, shell: ConsoleShell) -> None:
        self._consoles[console_id] = (shell, self._clock())
        self._consoles.move_to_end(console_id)

    def _build(self, console_id: str) -> ConsoleShell:
        holder: dict[str, AuthSession] = {}
        api = GrievanceAPI(self._client, token_getter=lambda: holder["session"].token)
        session = AuthSession(api, self._repository(console_id))
        holder["session"] = session
        session.restore()
        shell = ConsoleShell(api, session)
        self._touch(console_id, shell)
        self._prune()
        return shell

    def create(self) -> tuple[str, ConsoleShell]:
        console_id = uuid.uuid4().hex
        shell = self._build(console_id)
        logger.info("console.created", extra={"console_id": console_id})
        return console_id, shell

    def get(self, console_id: Optional[str]) -> Optional[ConsoleShell]:
        if not console_id or not _CONSOLE_ID.fullmatch(console_id):
            return None
        self._prune()
        entry = self._consoles.get(console_id)
        if entry is not None:
            self._touch(console_id, entry[0])
            return entry[0]
        # A console persisted before a restart comes back from its session file
        if self._session_dir is not None and (self._session_dir / f"{console_id}.json").exists():
            logger.info("console.reloaded", extra={"console_id": console_id})
            return self._build(console_id)
        return None

    def get_or_create(self, console_id: Optional[str]) -> tuple[str, ConsoleShell]:
        shell = self.get(console_id)
        if shell is not None:
            return console_id, shell
        return self.create()

    def discard(self, console_id: str) -> None:
        self._consoles.pop(console_id, None)
