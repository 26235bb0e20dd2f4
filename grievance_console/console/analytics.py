"""
Counters behind the dashboard cards and the analytics page.

All numbers derive from the request list the viewer last fetched. Percentages
are rounded half up and are 0 for an empty list.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from grievance_console.config import settings
from grievance_console.console.formatting import format_date
from grievance_console.console.styles import priority_tone, request_type_tone, status_tone
from grievance_console.console.views import StatsCardView, ViewModel, stats_card
from grievance_console.grievance.schemas import (
    PRIORITY_NAMES,
    REQUEST_TYPE_NAMES,
    Request,
    User,
)

IN_PROGRESS_STATUSES = ("Active", "Dev", "Stag", "Uat")

STATUS_FLOW = (
    ("Pending", "Pending"),
    ("Active", "Active"),
    ("Dev", "Development"),
    ("Stag", "Staging"),
    ("Uat", "UAT"),
    ("Live", "Live"),
    ("Closed", "Closed"),
)


def percent(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return math.floor(part * 100 / total + 0.5)


def count_status(requests: Iterable[Request], *status_names: str) -> int:
    return sum(1 for r in requests if r.status_name in status_names)


def count_priority(requests: Iterable[Request], priority_name: str) -> int:
    return sum(1 for r in requests if r.priority_name == priority_name)


def count_request_type(requests: Iterable[Request], request_type: str) -> int:
    return sum(1 for r in requests if r.request_type == request_type)


def recent_requests(
    requests: Iterable[Request],
    now: Optional[datetime] = None,
    window: Optional[timedelta] = None,
) -> list[Request]:
    """Requests created within the window; a request exactly on the edge counts."""
    current = now or datetime.now(timezone.utc)
    cutoff = current - (window if window is not None else timedelta(days=settings.analytics.recent_days))
    return [r for r in requests if r.created_on is not None and r.created_on >= cutoff]


# ── Dashboard cards ───────────────────────────────────────────────────────────

def dashboard_stats(requests: list[Request], is_admin: bool, users: Optional[list[User]] = None) -> list[StatsCardView]:
    if is_admin:
        active_users = sum(1 for u in users or [] if u.is_active)
        return [
            stats_card("Total Requests", len(requests), "blue", "file-text"),
            stats_card("Pending", count_status(requests, "Pending"), "yellow", "clock"),
            stats_card("Active", count_status(requests, "Active"), "blue", "trending-up"),
            stats_card("Closed", count_status(requests, "Closed"), "green", "check-circle"),
            stats_card("High Priority", count_priority(requests, "High"), "red", "alert-triangle"),
            stats_card("Active Users", active_users, "purple", "users"),
        ]
    return [
        stats_card("My Requests", len(requests), "blue", "file-text"),
        stats_card("Pending", count_status(requests, "Pending"), "yellow", "clock"),
        stats_card("In Progress", count_status(requests, *IN_PROGRESS_STATUSES), "blue", "trending-up"),
        stats_card("Resolved", count_status(requests, "Closed"), "green", "check-circle"),
    ]


# ── Analytics page ────────────────────────────────────────────────────────────

class BreakdownRow(ViewModel):
    label: str
    count: int
    percent: int
    tone: str


class Breakdown(ViewModel):
    title: str
    rows: list[BreakdownRow]


class FlowStep(ViewModel):
    status: str
    label: str
    count: int
    tone: str


class RecentItem(ViewModel):
    request_id: int
    subject: str
    request_type: str
    created_by: str
    created_on: str
    tone: str


class AnalyticsView(ViewModel):
    kind: str = "analytics"
    stats: list[StatsCardView]
    breakdowns: list[Breakdown]
    status_flow: list[FlowStep]
    recent: list[RecentItem]
    recent_empty_message: str = "No requests created in the last 7 days"


def _recent_item(request: Request) -> RecentItem:
    creator = request.created_by_user.user_name if request.created_by_user else ""
    return RecentItem(
        request_id=request.request_id,
        subject=request.subject,
        request_type=request.request_type or "Unknown",
        created_by=creator or "Unknown",
        created_on=format_date(request.created_on.date()) if request.created_on else "",
        tone=request_type_tone(request.request_type),
    )


def analytics_page(requests: list[Request], now: Optional[datetime] = None) -> AnalyticsView:
    total = len(requests)
    recent = recent_requests(requests, now=now)

    stats = [
        stats_card("Total Requests", total, "blue", "file-text"),
        stats_card("Pending", count_status(requests, "Pending"), "yellow", "clock"),
        stats_card("Active", count_status(requests, "Active"), "blue", "trending-up"),
        stats_card("In Development", count_status(requests, "Dev"), "purple", "bar-chart"),
        stats_card("In UAT", count_status(requests, "Uat"), "red", "alert-triangle"),
        stats_card("Live", count_status(requests, "Live"), "green", "check-circle"),
        stats_card("Closed", count_status(requests, "Closed"), "gray", "check-circle"),
        stats_card("This Week", len(recent), "indigo", "calendar"),
    ]

    type_rows = []
    for name in REQUEST_TYPE_NAMES:
        count = count_request_type(requests, name)
        type_rows.append(BreakdownRow(label=name, count=count, percent=percent(count, total), tone=request_type_tone(name)))
    priority_rows = []
    for name in PRIORITY_NAMES:
        count = count_priority(requests, name)
        priority_rows.append(
            BreakdownRow(label=f"{name} Priority", count=count, percent=percent(count, total), tone=priority_tone(name))
        )

    return AnalyticsView(
        stats=stats,
        breakdowns=[
            Breakdown(title="Request Types", rows=type_rows),
            Breakdown(title="Priority Distribution", rows=priority_rows),
        ],
        status_flow=[
            FlowStep(status=status, label=label, count=count_status(requests, status), tone=status_tone(status))
            for status, label in STATUS_FLOW
        ],
        recent=[_recent_item(r) for r in recent[:5]],
        recent_empty_message=f"No requests created in the last {settings.analytics.recent_days} days",
    )
