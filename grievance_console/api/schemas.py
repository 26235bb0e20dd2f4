"""
Lean Pydantic models for request bodies and responses exposed to the browser.
Bodies take camelCase keys like every response; snake_case is accepted too.
Request and assignment bodies reuse the domain payloads directly.
"""

from typing import Optional

from pydantic import Field

from grievance_console.console.messages import ComposeMode
from grievance_console.console.views import ViewModel
from grievance_console.grievance.schemas import EncodedAttachment, User


# ── Requests ──────────────────────────────────────────────────────────────────

class LoginRequest(ViewModel):
    email: str
    password: str


class StatusUpdateRequest(ViewModel):
    status_id: int
    remark: Optional[str] = None


class ComposeRequest(ViewModel):
    mode: ComposeMode = "compose"
    mail_id: Optional[int] = None


class SendMailRequest(ViewModel):
    """What the user typed into the compose form; blanks keep the prefilled values."""
    body: str
    subject: Optional[str] = None
    to_addresses: Optional[str] = None
    cc_addresses: Optional[str] = None
    bcc_addresses: Optional[str] = None
    attachments: list[EncodedAttachment] = Field(default_factory=list)


# ── Responses ─────────────────────────────────────────────────────────────────

class SessionResponse(ViewModel):
    authenticated: bool
    is_loading: bool
    user: Optional[User] = None
