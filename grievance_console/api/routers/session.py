"""
Session router: who is signed in to the calling console.

  GET    /session            → current session
  POST   /session/login      → sign in with email and password
  POST   /session/register   → create a customer account and sign in
  POST   /session/logout     → forget the stored session and drop the console
"""

from fastapi import APIRouter, status

from grievance_console.api.dependencies import Console, Consoles, CurrentConsole
from grievance_console.api.schemas import LoginRequest, SessionResponse
from grievance_console.grievance.errors import AuthenticationError, GrievanceAPIError
from grievance_console.grievance.schemas import Registration

router = APIRouter(prefix="/session", tags=["session"])


def _session(console: Console) -> dict:
    state = console.shell.session.state
    return SessionResponse(
        authenticated=state.is_authenticated,
        is_loading=state.is_loading,
        user=state.user,
    ).model_dump(mode="json", by_alias=True, exclude_none=True)


@router.get("")
async def get_session(console: CurrentConsole) -> dict:
    return _session(console)


@router.post("/login")
async def login(body: LoginRequest, console: CurrentConsole) -> dict:
    """Sign in; a refused login answers 401 with the server's message."""
    with console.guard():
        await console.shell.login(body.email, body.password)
    return _session(console)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: Registration, console: CurrentConsole) -> dict:
    try:
        await console.shell.register(body)
    except AuthenticationError as exc:
        raise console.fail(status.HTTP_400_BAD_REQUEST, exc.message) from exc
    except GrievanceAPIError as exc:
        raise console.fail(status.HTTP_502_BAD_GATEWAY, exc.message) from exc
    return _session(console)


@router.post("/logout")
async def logout(console: CurrentConsole, consoles: Consoles) -> dict:
    console.shell.logout()
    consoles.discard(console.id)
    return _session(console)
