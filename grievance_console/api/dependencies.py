from contextlib import contextmanager
from dataclasses import dataclass
from typing import Annotated, Iterator, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import APIKeyHeader
from pydantic import ValidationError

from grievance_console.console.dashboard import (
    AdminOnly,
    ConsoleError,
    DashboardController,
    NotFound,
    NotSignedIn,
)
from grievance_console.console.shell import ConsoleRegistry, ConsoleShell
from grievance_console.grievance.errors import AuthenticationError, GrievanceAPIError

CONSOLE_HEADER = "X-Console-Session"

_console_header = APIKeyHeader(name=CONSOLE_HEADER, auto_error=False)

_CONSOLE_ERROR_STATUS = (
    (NotSignedIn, status.HTTP_401_UNAUTHORIZED),
    (AdminOnly, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
)


def _registry(request: Request) -> ConsoleRegistry:
    """Pull the console registry stored in app state."""
    return request.app.state.consoles


@dataclass
class Console:
    id: str
    shell: ConsoleShell

    @property
    def headers(self) -> dict[str, str]:
        return {CONSOLE_HEADER: self.id}

    def fail(self, status_code: int, detail) -> HTTPException:
        return HTTPException(status_code=status_code, detail=detail, headers=self.headers)

    @contextmanager
    def guard(self) -> Iterator[None]:
        """Translate console and upstream failures into HTTP errors."""
        try:
            yield
        except ConsoleError as exc:
            code = next(
                (c for kind, c in _CONSOLE_ERROR_STATUS if isinstance(exc, kind)),
                status.HTTP_400_BAD_REQUEST,
            )
            raise self.fail(code, str(exc)) from exc
        except AuthenticationError as exc:
            raise self.fail(status.HTTP_401_UNAUTHORIZED, exc.message) from exc
        except ValidationError as exc:
            raise self.fail(
                422,
                exc.errors(include_url=False, include_context=False),
            ) from exc
        except GrievanceAPIError as exc:
            raise self.fail(status.HTTP_502_BAD_GATEWAY, exc.message) from exc

    async def dashboard(self) -> DashboardController:
        return await self.shell.ensure_dashboard()

    async def view(self) -> dict:
        rendered = await self.shell.render()
        return rendered.model_dump(mode="json", by_alias=True)


async def get_console(
    response: Response,
    registry: Annotated[ConsoleRegistry, Depends(_registry)],
    console_id: Annotated[Optional[str], Depends(_console_header)],
) -> Console:
    """Resolve the caller's console, creating one for a missing or unknown id."""
    console_id, shell = registry.get_or_create(console_id)
    response.headers[CONSOLE_HEADER] = console_id
    return Console(id=console_id, shell=shell)


CurrentConsole = Annotated[Console, Depends(get_console)]
Consoles = Annotated[ConsoleRegistry, Depends(_registry)]
