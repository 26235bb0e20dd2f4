"""
Dashboard controller: the screen state of a signed-in console.

State is a tab tag, the selected request with its detail sub-state, an
orthogonal messages overlay and the compose form. Navigation never waits for
in-flight calls; a mutation that succeeds moves the console back to the
dashboard, one that fails leaves the screen as it was.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import SerializeAsAny

from grievance_console.console.analytics import analytics_page, dashboard_stats
from grievance_console.console.formatting import tab_title
from grievance_console.console.messages import (
    ComposeFormView,
    ComposeMode,
    MailListView,
    compose_new,
    draft_from_form,
    forward_draft,
    mail_list,
    message_thread,
    reply_all_draft,
    reply_draft,
)
from grievance_console.console.views import (
    DashboardOverview,
    HeaderView,
    PlaceholderView,
    RequestDetailView,
    SidebarView,
    ViewModel,
    assign_form,
    create_request_form,
    header,
    request_detail,
    request_list,
    sidebar,
    status_update_form,
    user_directory,
)
from grievance_console.grievance.errors import BusinessError, GrievanceAPIError, HTTPStatusError
from grievance_console.grievance.mails import MailStore
from grievance_console.grievance.requests import RequestStore
from grievance_console.grievance.schemas import Assignment, MailDraft, NewRequest, Request, User

logger = logging.getLogger(__name__)


class Tab(str, Enum):
    DASHBOARD = "dashboard"
    MY_REQUESTS = "my-requests"
    ALL_REQUESTS = "all-requests"
    PENDING = "pending"
    ACTIVE = "active"
    CREATE_REQUEST = "create-request"
    ANALYTICS = "analytics"
    USERS = "users"
    REQUEST_DETAIL = "request-detail"


class DetailMode(str, Enum):
    PLAIN = "plain"
    STATUS_UPDATE = "status-update"
    ASSIGN_FORM = "assign-form"


class ConsoleError(Exception):
    pass


class NotSignedIn(ConsoleError):
    pass


class AdminOnly(ConsoleError):
    pass


class NotFound(ConsoleError):
    pass


class Notice(ViewModel):
    level: Literal["success", "error"]
    message: str


class ConsoleView(ViewModel):
    screen: str
    header: Optional[HeaderView] = None
    sidebar: Optional[SidebarView] = None
    content: Optional[SerializeAsAny[ViewModel]] = None
    notice: Optional[Notice] = None
    loading: bool = False
    error: Optional[str] = None


class RequestDetailScreen(ViewModel):
    kind: str = "request-detail-screen"
    detail: RequestDetailView
    messages: MailListView


class DashboardController:
    def __init__(self, user: User, requests: RequestStore, mails: MailStore) -> None:
        self.user = user
        self.requests = requests
        self.mails = mails
        self.active_tab = Tab.DASHBOARD
        self.selected_request: Optional[Request] = None
        self.detail_mode = DetailMode.PLAIN
        self.show_messages = False
        self.sidebar_open = False
        self.selected_mail_id: Optional[int] = None
        self.compose: Optional[ComposeFormView] = None
        self.notice: Optional[Notice] = None

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin

    async def start(self) -> None:
        await asyncio.gather(self.requests.load(), self.mails.refresh())

    def _require_admin(self) -> None:
        if not self.is_admin:
            raise AdminOnly("Only administrators can do this")

    def _require_selection(self) -> Request:
        if self.selected_request is None:
            raise NotFound("No request is selected")
        return self.selected_request

    def _back_to_dashboard(self) -> None:
        self.detail_mode = DetailMode.PLAIN
        self.selected_request = None
        self.active_tab = Tab.DASHBOARD

    # ── Navigation ────────────────────────────────────────────────────────────

    def navigate(self, tab: Tab) -> None:
        if tab is Tab.REQUEST_DETAIL:
            self._require_selection()
        self.active_tab = tab
        self.sidebar_open = False

    def toggle_sidebar(self) -> None:
        self.sidebar_open = not self.sidebar_open

    def open_request(self, request_id: int) -> Request:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFound(f"Request {request_id} is not in the current list")
        self.selected_request = request
        self.detail_mode = DetailMode.PLAIN
        self.active_tab = Tab.REQUEST_DETAIL
        return request

    def show_detail(self, mode: DetailMode) -> None:
        self._require_selection()
        if mode is not DetailMode.PLAIN:
            self._require_admin()
        self.detail_mode = mode

    # ── Request mutations ─────────────────────────────────────────────────────

    async def submit_create(self, new_request: NewRequest) -> bool:
        if new_request.user_id is None:
            new_request = new_request.model_copy(update={"user_id": self.user.user_id})
        try:
            await self.requests.create_request(new_request)
        except (BusinessError, HTTPStatusError) as exc:
            self.notice = Notice(level="error", message=exc.message or "Failed to save request")
            return False
        except GrievanceAPIError:
            self.notice = Notice(level="error", message="Error saving request")
            return False
        self.notice = Notice(level="success", message="Request saved successfully!")
        self.active_tab = Tab.MY_REQUESTS
        return True

    async def submit_status(self, status_id: int, remark: Optional[str] = None) -> bool:
        self._require_admin()
        request = self._require_selection()
        try:
            await self.requests.update_request_status(request.request_id, status_id, remark)
        except GrievanceAPIError as exc:
            logger.error("dashboard.status_update_failed", extra={"request_id": request.request_id, "error": exc.message})
            return False
        self._back_to_dashboard()
        return True

    async def submit_assignment(self, assignment: Assignment) -> bool:
        self._require_admin()
        request = self._require_selection()
        try:
            await self.requests.assign_request(request.request_id, assignment)
        except GrievanceAPIError as exc:
            logger.error("dashboard.assign_failed", extra={"request_id": request.request_id, "error": exc.message})
            return False
        self._back_to_dashboard()
        return True

    # ── Messages ──────────────────────────────────────────────────────────────

    def open_messages(self) -> None:
        self.show_messages = True

    def close_messages(self) -> None:
        self.show_messages = False
        self.compose = None

    def select_mail(self, mail_id: int) -> None:
        if self.mails.get(mail_id) is None:
            raise NotFound(f"Mail {mail_id} does not exist")
        self.selected_mail_id = mail_id

    def start_compose(self, mode: ComposeMode, mail_id: Optional[int] = None) -> ComposeFormView:
        if mode == "compose":
            self.compose = compose_new(self.selected_request)
            return self.compose
        mail = self.mails.get(mail_id) if mail_id is not None else None
        if mail is None:
            raise NotFound(f"Mail {mail_id} does not exist")
        if mode == "reply":
            self.compose = reply_draft(mail)
        elif mode == "replyAll":
            self.compose = reply_all_draft(mail, self.user)
        else:
            self.compose = forward_draft(mail)
        return self.compose

    def close_compose(self) -> None:
        self.compose = None

    def build_draft(self, body: str, **overrides) -> MailDraft:
        form = self.compose or compose_new(self.selected_request)
        return draft_from_form(form, body, **overrides)

    async def send_mail(self, draft: MailDraft) -> bool:
        try:
            await self.mails.send_mail(draft)
        except GrievanceAPIError as exc:
            logger.error("dashboard.send_failed", extra={"request_id": draft.request_id, "error": exc.message})
            return False
        self.compose = None
        return True

    async def toggle_star(self, mail_id: int) -> bool:
        try:
            await self.mails.toggle_star(mail_id)
        except GrievanceAPIError as exc:
            logger.error("dashboard.star_failed", extra={"mail_id": mail_id, "error": exc.message})
            return False
        return True

    async def archive_mail(self, mail_id: int) -> bool:
        try:
            await self.mails.archive_mail(mail_id)
        except GrievanceAPIError as exc:
            logger.error("dashboard.archive_failed", extra={"mail_id": mail_id, "error": exc.message})
            return False
        return True

    async def delete_mail(self, mail_id: int) -> bool:
        try:
            await self.mails.delete_mail(mail_id)
        except GrievanceAPIError as exc:
            logger.error("dashboard.delete_failed", extra={"mail_id": mail_id, "error": exc.message})
            return False
        if self.selected_mail_id == mail_id:
            self.selected_mail_id = None
        return True

    # ── Rendering ─────────────────────────────────────────────────────────────

    def _messages_content(self, now: Optional[datetime]) -> ViewModel:
        selected = self.mails.get(self.selected_mail_id) if self.selected_mail_id is not None else None
        return message_thread(
            self.mails.get_all_mails(),
            selected=selected,
            thread=self.mails.get_thread(selected.mail_id) if selected else None,
            compose=self.compose,
            request=self.selected_request,
            now=now,
        )

    def _detail_content(self, now: Optional[datetime]) -> ViewModel:
        request = self._require_selection()
        if self.detail_mode is DetailMode.STATUS_UPDATE:
            return status_update_form(request, self.requests.statuses)
        if self.detail_mode is DetailMode.ASSIGN_FORM:
            return assign_form(request, self.requests.assignable_users())
        return RequestDetailScreen(
            detail=request_detail(request, is_admin=self.is_admin),
            messages=mail_list(self.mails.get_request_messages(request.request_id), self.selected_mail_id, now=now),
        )

    def _tab_content(self, now: Optional[datetime]) -> ViewModel:
        tab = self.active_tab
        requests = self.requests.requests
        if tab is Tab.DASHBOARD:
            return DashboardOverview(
                stats=dashboard_stats(requests, self.is_admin, self.requests.users),
                lists=[
                    request_list("Recent Pending Requests", self.requests.with_status("Pending")[:5]),
                    request_list("Active Requests", self.requests.with_status("Active", "Dev")[:5]),
                ],
            )
        if tab in (Tab.MY_REQUESTS, Tab.ALL_REQUESTS):
            return request_list("All Requests" if self.is_admin else "My Requests", requests)
        if tab is Tab.PENDING:
            return request_list("Pending Requests", self.requests.with_status("Pending"))
        if tab is Tab.ACTIVE:
            return request_list("Active Requests", self.requests.with_status("Active"))
        if tab is Tab.CREATE_REQUEST:
            return create_request_form(self.requests.priorities, self.requests.request_types)
        if tab is Tab.ANALYTICS:
            return analytics_page(requests, now=now)
        if tab is Tab.USERS and self.is_admin:
            return user_directory(self.requests.users)
        if tab is Tab.REQUEST_DETAIL:
            return self._detail_content(now)
        return PlaceholderView(title=tab_title(tab.value))

    def render(self, now: Optional[datetime] = None) -> ConsoleView:
        """Build the current screen; a pending notice is shown once."""
        notice, self.notice = self.notice, None
        if self.show_messages:
            screen = "messages"
            content = self._messages_content(now)
        else:
            screen = self.active_tab.value
            content = self._tab_content(now)
        return ConsoleView(
            screen=screen,
            header=header(self.user),
            sidebar=sidebar(self.user, self.active_tab.value, self.sidebar_open),
            content=content,
            notice=notice,
            loading=self.requests.loading,
            error=self.requests.error,
        )
