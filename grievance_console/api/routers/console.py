"""
Console router: navigation and request actions of the calling console.
Every endpoint answers with the freshly rendered console view.

  GET    /console                                 → current screen
  POST   /console/tabs/{tab}                      → sidebar navigation
  POST   /console/sidebar/toggle                  → open/close the sidebar
  POST   /console/requests/{request_id}/open      → request detail
  POST   /console/detail/{mode}                   → plain / status-update / assign-form
  POST   /console/requests                        → create a request
  PUT    /console/requests/{request_id}/status    → update status (admin)
  PUT    /console/requests/{request_id}/assign    → assign with phase dates (admin)
"""

from fastapi import APIRouter

from grievance_console.api.dependencies import Console, CurrentConsole
from grievance_console.api.schemas import StatusUpdateRequest
from grievance_console.console.dashboard import DashboardController, DetailMode, Tab
from grievance_console.grievance.schemas import Assignment, NewRequest

router = APIRouter(prefix="/console", tags=["console"])


async def _action_result(console: Console, ok: bool) -> dict:
    return {"ok": ok, "console": await console.view()}


def _select(dashboard: DashboardController, request_id: int) -> None:
    selected = dashboard.selected_request
    if selected is None or selected.request_id != request_id:
        dashboard.open_request(request_id)


@router.get("")
async def get_console(console: CurrentConsole) -> dict:
    with console.guard():
        return await console.view()


# ── 1. Navigation ─────────────────────────────────────────────────────────────

@router.post("/tabs/{tab}")
async def navigate(tab: Tab, console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).navigate(tab)
        return await console.view()


@router.post("/sidebar/toggle")
async def toggle_sidebar(console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).toggle_sidebar()
        return await console.view()


@router.post("/requests/{request_id}/open")
async def open_request(request_id: int, console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).open_request(request_id)
        return await console.view()


@router.post("/detail/{mode}")
async def show_detail(mode: DetailMode, console: CurrentConsole) -> dict:
    with console.guard():
        (await console.dashboard()).show_detail(mode)
        return await console.view()


# ── 2. Request mutations ──────────────────────────────────────────────────────

@router.post("/requests")
async def create_request(body: NewRequest, console: CurrentConsole) -> dict:
    """Submit a new request; the outcome is reported as a notice on the view."""
    with console.guard():
        ok = await (await console.dashboard()).submit_create(body)
        return await _action_result(console, ok)


@router.put("/requests/{request_id}/status")
async def update_status(request_id: int, body: StatusUpdateRequest, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        _select(dashboard, request_id)
        ok = await dashboard.submit_status(body.status_id, body.remark)
        return await _action_result(console, ok)


@router.put("/requests/{request_id}/assign")
async def assign_request(request_id: int, body: Assignment, console: CurrentConsole) -> dict:
    with console.guard():
        dashboard = await console.dashboard()
        _select(dashboard, request_id)
        ok = await dashboard.submit_assignment(body)
        return await _action_result(console, ok)
