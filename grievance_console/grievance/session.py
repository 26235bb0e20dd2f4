"""
Authentication session of one console.

The signed-in user and the access token live in a `SessionRepository` under
the same keys the browser client used in local storage (`auth_user`,
`accessToken`), so a console restarted on the same repository comes back
signed in.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from pydantic import BaseModel

from grievance_console.grievance.client import GrievanceAPI
from grievance_console.grievance.errors import AuthenticationError, GrievanceAPIError
from grievance_console.grievance.schemas import Registration, User, parse_model

logger = logging.getLogger(__name__)

AUTH_USER_KEY = "auth_user"
ACCESS_TOKEN_KEY = "accessToken"


class SessionRepository(Protocol):
    def load(self) -> dict[str, str]: ...

    def save(self, values: dict[str, str]) -> None: ...

    def clear(self) -> None: ...


class MemorySessionRepository:
    def __init__(self, values: Optional[dict[str, str]] = None) -> None:
        self._values: dict[str, str] = dict(values or {})

    def load(self) -> dict[str, str]:
        return dict(self._values)

    def save(self, values: dict[str, str]) -> None:
        self._values.update(values)

    def clear(self) -> None:
        self._values.clear()


class JsonFileSessionRepository:
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("session.repository.unreadable", extra={"path": str(self.path), "error": str(exc)})
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def save(self, values: dict[str, str]) -> None:
        data = self.load()
        data.update(values)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionState(BaseModel):
    user: Optional[User] = None
    is_authenticated: bool = False
    is_loading: bool = True


class AuthSession:
    def __init__(self, api: GrievanceAPI, repository: SessionRepository) -> None:
        self._api = api
        self._repository = repository
        self._token: Optional[str] = None
        self.state = SessionState()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[User]:
        return self.state.user

    def restore(self) -> SessionState:
        """Load the persisted session; must run before the first render."""
        stored = self._repository.load()
        user = None
        raw_user = stored.get(AUTH_USER_KEY)
        if raw_user:
            try:
                result = parse_model(User, json.loads(raw_user))
            except ValueError:
                result = None
            if result is not None and result.ok:
                user = result.value
            else:
                logger.warning("session.restore.discarded_user")
        self._token = stored.get(ACCESS_TOKEN_KEY) if user is not None else None
        self.state = SessionState(user=user, is_authenticated=user is not None, is_loading=False)
        return self.state

    def _signed_out(self) -> None:
        self._repository.clear()
        self._token = None
        self.state = SessionState(is_loading=False)

    def _authenticate(self, body: dict) -> User:
        result = parse_model(User, body.get("user"))
        if not result.ok:
            raise AuthenticationError("The server returned an unreadable user record")
        user = result.value
        token = body["accessToken"]
        self._repository.save(
            {
                ACCESS_TOKEN_KEY: token,
                AUTH_USER_KEY: user.model_dump_json(by_alias=True, exclude_none=True),
            }
        )
        self._token = token
        self.state = SessionState(user=user, is_authenticated=True, is_loading=False)
        logger.info("session.login", extra={"user_id": user.user_id, "role": user.role})
        return user

    async def login(self, email: str, password: str) -> User:
        try:
            body = await self._api.login(email, password)
            return self._authenticate(body)
        except GrievanceAPIError:
            self._signed_out()
            raise

    async def register(self, registration: Registration) -> User:
        try:
            body = await self._api.register(registration)
        except GrievanceAPIError:
            self._signed_out()
            raise
        logger.info("session.registered", extra={"email": registration.email})
        if body.get("accessToken") and body.get("user"):
            return self._authenticate(body)
        return await self.login(registration.email, registration.password)

    def logout(self) -> None:
        user_id = self.user.user_id if self.user else None
        self._signed_out()
        logger.info("session.logout", extra={"user_id": user_id})
