"""
View models for the request side of the console and the functions that build
them. Builders are pure: they take domain objects and return models the
browser renders as-is.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from grievance_console.console.formatting import (
    format_date,
    format_datetime,
    format_kilobytes,
)
from grievance_console.console.styles import (
    card_tone,
    priority_icon,
    priority_tone,
    request_type_tone,
    status_tone,
)
from grievance_console.grievance.schemas import (
    Priority,
    Request,
    RequestType,
    Status,
    User,
)

ACCEPTED_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".jpg", ".jpeg", ".png", ".gif", ".txt")
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024
DEFAULT_COMPANY = "Team Elogisol"


class ViewModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Shared pieces ─────────────────────────────────────────────────────────────

class Badge(ViewModel):
    label: str
    tone: str


class Option(ViewModel):
    value: Union[int, str]
    label: str


class StatsCardView(ViewModel):
    title: str
    value: Union[int, str]
    color: str
    icon: Optional[str] = None


class AttachmentView(ViewModel):
    attachment_id: Optional[int] = None
    file_name: str
    file_path: str
    size: Optional[str] = None


def stats_card(
    title: Optional[str] = None,
    value: Union[int, str, None] = None,
    color: Optional[str] = None,
    icon: Optional[str] = None,
) -> StatsCardView:
    return StatsCardView(
        title=title or "N/A",
        value=value if value is not None else 0,
        color=card_tone(color or ""),
        icon=icon,
    )


def status_badge(status_name: str) -> Badge:
    return Badge(label=status_name, tone=status_tone(status_name))


def attachment_view(attachment) -> AttachmentView:
    return AttachmentView(
        attachment_id=attachment.attachment_id,
        file_name=attachment.file_name,
        file_path=attachment.file_path,
        size=format_kilobytes(attachment.file_size),
    )


# ── Layout ────────────────────────────────────────────────────────────────────

class MenuItem(ViewModel):
    id: str
    label: str
    icon: str
    active: bool = False


class SidebarView(ViewModel):
    portal_title: str
    company_name: str
    is_open: bool
    items: list[MenuItem]


class HeaderView(ViewModel):
    user_name: str
    email: str
    role: str


CUSTOMER_MENU = (
    ("dashboard", "Dashboard", "home"),
    ("my-requests", "My Requests", "file-text"),
    ("create-request", "New Request", "plus"),
)

ADMIN_MENU = (
    ("dashboard", "Dashboard", "home"),
    ("analytics", "Analytics", "bar-chart"),
    ("all-requests", "All Requests", "file-text"),
    ("pending", "Pending", "filter"),
    ("active", "Active", "star"),
    ("users", "Users", "users"),
)


def sidebar(user: User, active_tab: str, is_open: bool = False) -> SidebarView:
    menu = ADMIN_MENU if user.is_admin else CUSTOMER_MENU
    return SidebarView(
        portal_title="Admin Portal" if user.is_admin else "Customer Portal",
        company_name=user.display_company or DEFAULT_COMPANY,
        is_open=is_open,
        items=[MenuItem(id=tab, label=label, icon=icon, active=tab == active_tab) for tab, label, icon in menu],
    )


def header(user: User) -> HeaderView:
    return HeaderView(user_name=user.user_name, email=user.email, role=user.role)


# ── Request lists ─────────────────────────────────────────────────────────────

class RequestRowView(ViewModel):
    request_id: int
    subject: str
    message: str
    created_by: str
    created_on: str
    request_type: str
    priority: Badge
    priority_icon: str
    status: Badge
    mail_count: Optional[int] = None


class RequestListView(ViewModel):
    kind: str = "request-list"
    title: str
    rows: list[RequestRowView]
    empty_message: str = "No requests found"


def _creator_name(request: Request) -> str:
    if request.created_by_user is not None:
        return request.created_by_user.user_name
    return str(request.created_by or "")


def request_row(request: Request) -> RequestRowView:
    return RequestRowView(
        request_id=request.request_id,
        subject=request.subject,
        message=request.message,
        created_by=_creator_name(request),
        created_on=format_date(request.created_on.date()) if request.created_on else "",
        request_type=request.request_type,
        priority=Badge(label=request.priority_name, tone=priority_tone(request.priority_name)),
        priority_icon=priority_icon(request.priority_name),
        status=status_badge(request.status_name),
        mail_count=request.mail_count or None,
    )


def request_list(title: str, requests: list[Request]) -> RequestListView:
    return RequestListView(title=title, rows=[request_row(r) for r in requests])


# ── Request detail ────────────────────────────────────────────────────────────

class PhaseView(ViewModel):
    name: str
    target_date: str
    remark: Optional[str] = None


class AssignmentPanel(ViewModel):
    assignee: str
    assignee_email: str
    assigned_on: Optional[str] = None
    phases: list[PhaseView]


class TimelineEntry(ViewModel):
    label: str
    at: str


class RequestDetailView(ViewModel):
    kind: str = "request-detail"
    request_id: int
    subject: str
    status: Badge
    priority: Badge
    request_type: Badge
    message: str
    remark: Optional[str] = None
    assignment: Optional[AssignmentPanel] = None
    attachments: list[AttachmentView] = Field(default_factory=list)
    created_by: str
    created_on: str
    updated_on: Optional[str] = None
    timeline: list[TimelineEntry]
    actions: list[str] = Field(default_factory=list)


def _phases(request: Request) -> list[PhaseView]:
    phases = []
    for name, target, remark in (
        ("Development", request.dev_target_date, request.dev_remark),
        ("UAT", request.uat_target_date, request.uat_remark),
        ("Live", request.live_target_date, request.live_remark),
    ):
        if target is not None:
            phases.append(PhaseView(name=name, target_date=format_date(target), remark=remark))
    return phases


def request_detail(request: Request, is_admin: bool = False) -> RequestDetailView:
    assignment = None
    if request.assigned_to_user is not None:
        assignment = AssignmentPanel(
            assignee=request.assigned_to_user.user_name,
            assignee_email=request.assigned_to_user.email,
            assigned_on=format_datetime(request.assigned_on) if request.assigned_on else None,
            phases=_phases(request),
        )

    timeline = [TimelineEntry(label="Request created", at=format_datetime(request.created_on))]
    if request.assigned_on:
        timeline.append(TimelineEntry(label="Request assigned", at=format_datetime(request.assigned_on)))
    if request.updated_on:
        timeline.append(TimelineEntry(label="Last updated", at=format_datetime(request.updated_on)))

    return RequestDetailView(
        request_id=request.request_id,
        subject=request.subject,
        status=status_badge(request.status_name),
        priority=Badge(label=f"{request.priority_name} Priority", tone=priority_tone(request.priority_name)),
        request_type=Badge(label=request.request_type, tone=request_type_tone(request.request_type)),
        message=request.message,
        remark=request.remark or None,
        assignment=assignment,
        attachments=[attachment_view(a) for a in request.attachments],
        created_by=_creator_name(request),
        created_on=format_datetime(request.created_on),
        updated_on=format_datetime(request.updated_on) if request.updated_on else None,
        timeline=timeline,
        actions=["assign", "update-status"] if is_admin else [],
    )


# ── Admin forms ───────────────────────────────────────────────────────────────

class StatusUpdateFormView(ViewModel):
    kind: str = "status-update-form"
    request_id: int
    subject: str
    current_status: Badge
    options: list[Option]
    selected_status_id: Optional[int] = None
    remark: str = ""


def status_update_form(request: Request, statuses: list[Status]) -> StatusUpdateFormView:
    return StatusUpdateFormView(
        request_id=request.request_id,
        subject=request.subject,
        current_status=status_badge(request.status_name),
        options=[Option(value=s.status_id, label=s.status_name) for s in statuses if s.status_id is not None],
        selected_status_id=request.status_id,
        remark=request.remark or "",
    )


class PhaseFields(ViewModel):
    target_date: str = ""
    remark: str = ""


class AssignFormView(ViewModel):
    kind: str = "assign-form"
    request_id: int
    subject: str
    request_type: str
    user_options: list[Option]
    assigned_to: int = 0
    dev: PhaseFields
    uat: PhaseFields
    live: PhaseFields


def _phase_fields(target, remark) -> PhaseFields:
    return PhaseFields(target_date=target.isoformat() if target else "", remark=remark or "")


def assign_form(request: Request, users: list[User]) -> AssignFormView:
    options = [Option(value=0, label="Select a user")]
    options.extend(Option(value=u.user_id, label=f"{u.user_name} ({u.email})") for u in users)
    return AssignFormView(
        request_id=request.request_id,
        subject=request.subject,
        request_type=request.request_type,
        user_options=options,
        assigned_to=request.assigned_to or 0,
        dev=_phase_fields(request.dev_target_date, request.dev_remark),
        uat=_phase_fields(request.uat_target_date, request.uat_remark),
        live=_phase_fields(request.live_target_date, request.live_remark),
    )


# ── Customer forms and screens ────────────────────────────────────────────────

class CreateRequestFormView(ViewModel):
    kind: str = "create-request-form"
    request_type_options: list[Option]
    priority_options: list[Option]
    request_type: str = ""
    priority_id: int = 0
    accepted_extensions: list[str] = Field(default_factory=lambda: list(ACCEPTED_EXTENSIONS))
    max_attachment_bytes: int = MAX_ATTACHMENT_BYTES
    can_cancel: bool = True


def create_request_form(priorities: list[Priority], request_types: list[RequestType]) -> CreateRequestFormView:
    priority_options = [Option(value=p.priority_id, label=p.priority_name) for p in priorities if p.priority_id is not None]
    type_options = [Option(value=rt.name, label=rt.name) for rt in request_types]
    return CreateRequestFormView(
        request_type_options=type_options,
        priority_options=priority_options,
        request_type=type_options[0].value if type_options else "",
        priority_id=priority_options[0].value if priority_options else 0,
    )


class UserRowView(ViewModel):
    user_id: int
    user_name: str
    email: str
    role: str
    company_name: Optional[str] = None
    is_active: bool


class UserDirectoryView(ViewModel):
    kind: str = "user-directory"
    title: str = "Users"
    rows: list[UserRowView]


def user_directory(users: list[User]) -> UserDirectoryView:
    return UserDirectoryView(
        rows=[
            UserRowView(
                user_id=u.user_id,
                user_name=u.user_name,
                email=u.email,
                role=u.role,
                company_name=u.display_company,
                is_active=u.is_active,
            )
            for u in users
        ]
    )


class DashboardOverview(ViewModel):
    kind: str = "dashboard"
    stats: list[StatsCardView]
    lists: list[RequestListView]


class PlaceholderView(ViewModel):
    kind: str = "placeholder"
    title: str
