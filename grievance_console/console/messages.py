"""Mail list, mail view and compose drafts of the message thread."""

from datetime import datetime
from typing import Literal, Optional

from grievance_console.console.formatting import (
    format_datetime,
    format_mail_timestamp,
    join_addresses,
    truncate_text,
)
from grievance_console.console.views import AttachmentView, ViewModel, attachment_view
from grievance_console.grievance.schemas import Mail, MailDraft, Request, User

ComposeMode = Literal["compose", "reply", "replyAll", "forward"]

COMPOSE_TITLES = {
    "compose": "Compose Message",
    "reply": "Reply",
    "replyAll": "Reply All",
    "forward": "Forward",
}


def _prefixed(subject: str, prefix: str) -> str:
    return subject if subject.startswith(prefix) else f"{prefix} {subject}"


# ── Mail list ─────────────────────────────────────────────────────────────────

class MailRowView(ViewModel):
    mail_id: int
    request_id: int
    sender: str
    sent: str
    subject: str
    preview: str
    is_read: bool
    is_starred: bool
    has_attachment: bool
    selected: bool = False


class MailListView(ViewModel):
    rows: list[MailRowView]
    empty_message: str = "No messages"


def mail_list(mails: list[Mail], selected_mail_id: Optional[int] = None, now: Optional[datetime] = None) -> MailListView:
    return MailListView(
        rows=[
            MailRowView(
                mail_id=mail.mail_id,
                request_id=mail.request_id,
                sender=mail.sender_name,
                sent=format_mail_timestamp(mail.sent_on, now=now),
                subject=truncate_text(mail.subject, 50),
                preview=truncate_text(mail.body, 80),
                is_read=mail.is_read,
                is_starred=mail.is_starred,
                has_attachment=mail.has_attachment,
                selected=mail.mail_id == selected_mail_id,
            )
            for mail in mails
        ]
    )


# ── Mail view ─────────────────────────────────────────────────────────────────

class ThreadEntry(ViewModel):
    mail_id: int
    sender: str
    subject: str
    sent_on: str


class MailDetailView(ViewModel):
    mail_id: int
    request_id: int
    subject: str
    sender: str
    from_address: str
    sent_on: str
    is_read: bool
    is_starred: bool
    recipients: str
    cc: Optional[str] = None
    body: str
    attachments: list[AttachmentView]
    thread: list[ThreadEntry]


def mail_view(mail: Mail, thread: Optional[list[Mail]] = None) -> MailDetailView:
    ancestors = [m for m in thread or [] if m.mail_id != mail.mail_id]
    return MailDetailView(
        mail_id=mail.mail_id,
        request_id=mail.request_id,
        subject=mail.subject,
        sender=mail.sender_name,
        from_address=mail.from_address,
        sent_on=format_datetime(mail.sent_on),
        is_read=mail.is_read,
        is_starred=mail.is_starred,
        recipients=join_addresses(mail.to_addresses) or "No recipients",
        cc=join_addresses(mail.cc_addresses) or None,
        body=mail.body,
        attachments=[attachment_view(a) for a in mail.attachments],
        thread=[
            ThreadEntry(mail_id=m.mail_id, sender=m.sender_name, subject=m.subject, sent_on=format_datetime(m.sent_on))
            for m in ancestors
        ],
    )


# ── Compose ───────────────────────────────────────────────────────────────────

class ComposeFormView(ViewModel):
    kind: str = "compose"
    mode: ComposeMode
    title: str
    request_id: Optional[int] = None
    parent_mail_id: Optional[int] = None
    subject: str = ""
    to_addresses: str = ""
    cc_addresses: str = ""
    bcc_addresses: str = ""
    body: str = ""
    original_body: Optional[str] = None


def _compose(mode: ComposeMode, **fields) -> ComposeFormView:
    return ComposeFormView(mode=mode, title=COMPOSE_TITLES[mode], **fields)


def compose_new(request: Optional[Request] = None) -> ComposeFormView:
    if request is None:
        return _compose("compose")
    creator = request.created_by_user
    return _compose(
        "compose",
        request_id=request.request_id,
        subject=_prefixed(request.subject, "Re:"),
        to_addresses=creator.email if creator else "",
    )


def reply_draft(mail: Mail) -> ComposeFormView:
    return _compose(
        "reply",
        request_id=mail.request_id,
        parent_mail_id=mail.mail_id,
        subject=_prefixed(mail.subject, "Re:"),
        to_addresses=mail.from_address,
        original_body=mail.body,
    )


def reply_all_draft(mail: Mail, current_user: User) -> ComposeFormView:
    recipients: list[str] = []
    for address in [mail.from_address, *mail.to_list, *mail.cc_list]:
        if address and address != current_user.email and address not in recipients:
            recipients.append(address)
    return _compose(
        "replyAll",
        request_id=mail.request_id,
        parent_mail_id=mail.mail_id,
        subject=_prefixed(mail.subject, "Re:"),
        to_addresses=", ".join(recipients),
        original_body=mail.body,
    )


def forward_draft(mail: Mail) -> ComposeFormView:
    return _compose(
        "forward",
        request_id=mail.request_id,
        subject=_prefixed(mail.subject, "Fwd:"),
        original_body=mail.body,
    )


def draft_from_form(form: ComposeFormView, body: str, **overrides) -> MailDraft:
    """Combine a prefilled compose form with what the user typed."""
    fields = {
        "request_id": form.request_id,
        "parent_mail_id": form.parent_mail_id,
        "subject": form.subject,
        "to_addresses": form.to_addresses,
        "cc_addresses": form.cc_addresses or None,
        "bcc_addresses": form.bcc_addresses or None,
        "body": body,
    }
    fields.update({k: v for k, v in overrides.items() if v is not None})
    return MailDraft(**fields)


# ── Thread ────────────────────────────────────────────────────────────────────

class ThreadRequestHeader(ViewModel):
    request_id: int
    subject: str


class MessageThreadView(ViewModel):
    kind: str = "messages"
    request: Optional[ThreadRequestHeader] = None
    mail_list: MailListView
    mail: Optional[MailDetailView] = None
    compose: Optional[ComposeFormView] = None


def message_thread(
    mails: list[Mail],
    selected: Optional[Mail] = None,
    thread: Optional[list[Mail]] = None,
    compose: Optional[ComposeFormView] = None,
    request: Optional[Request] = None,
    now: Optional[datetime] = None,
) -> MessageThreadView:
    return MessageThreadView(
        request=ThreadRequestHeader(request_id=request.request_id, subject=request.subject) if request else None,
        mail_list=mail_list(mails, selected.mail_id if selected else None, now=now),
        mail=mail_view(selected, thread) if selected else None,
        compose=compose,
    )
