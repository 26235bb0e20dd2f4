"""
Domain types of the Grievance API and the single boundary that turns raw
JSON into them.

The API is not consistent about key casing: `/request-fetch/fetch` answers in
PascalCase (`RequestId`, `PriorityName`, `CreatedByUserName`) while users and
mails come back in camelCase. Every model accepts camelCase, PascalCase and
snake_case keys, drops explicit nulls so field defaults apply, and serializes
back to camelCase for outgoing payloads.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

ROLE_ADMIN = "Admin"
ROLE_USER = "User"
ROLE_SUPPORT = "Support"

PRIORITY_NAMES = ("High", "Medium", "Low")
STATUS_NAMES = ("Pending", "Active", "Dev", "Stag", "Uat", "Live", "Closed")
REQUEST_TYPE_NAMES = ("New Development", "Data Change", "System Bug")


def _camel_keys(data: dict) -> dict:
    normalized = {}
    for key, value in data.items():
        if value is None:
            continue
        if not isinstance(key, str):
            normalized[key] = value
        elif "_" in key:
            normalized[to_camel(key)] = value
        else:
            normalized[key[:1].lower() + key[1:]] = value
    return normalized


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _date_part(value: Any) -> Any:
    # Phase dates arrive either as "2025-07-10" or as a full ISO timestamp
    if isinstance(value, str):
        value = value.strip()
        return value[:10] or None
    if isinstance(value, datetime):
        return value.date()
    return value


def parse_addresses(addresses: Optional[str]) -> list[str]:
    """Split a comma-separated address list, trimming blanks away."""
    if not addresses:
        return []
    return [addr.strip() for addr in addresses.split(",") if addr.strip()]


class DomainModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return _camel_keys(data)
        return data

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Reference data ────────────────────────────────────────────────────────────

class Company(DomainModel):
    company_id: int
    company_name: str
    company_email: Optional[str] = None
    address: Optional[str] = None
    mobile: Optional[str] = None
    is_active: bool = True
    del_mark: Optional[bool] = None
    created_by: Optional[int] = None
    created_on: Optional[datetime] = None


class User(DomainModel):
    user_id: int
    user_name: str = ""
    email: str = ""
    mobile: Optional[str] = None
    role: str = ROLE_USER
    role_id: int = 1
    company_id: Optional[int] = None
    company_name: Optional[str] = None
    password_expiry_date: Optional[str] = None
    company: Optional[Company] = None
    is_active: bool = True
    del_mark: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_user_type(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = _camel_keys(data)
            if "role" not in data and "userType" in data:
                data["role"] = data.pop("userType")
        return data

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def display_company(self) -> Optional[str]:
        if self.company_name:
            return self.company_name
        return self.company.company_name if self.company else None


class Priority(DomainModel):
    priority_id: Optional[int] = None
    priority_name: str = ""
    is_active: bool = True

    @model_validator(mode="before")
    @classmethod
    def _accept_master_shape(cls, data: Any) -> Any:
        # /master/priority-list answers {"id": 1, "name": "High"}
        if isinstance(data, dict):
            data = _camel_keys(data)
            data.setdefault("priorityId", data.get("id"))
            data.setdefault("priorityName", data.get("name", ""))
            data = {k: v for k, v in data.items() if v is not None}
        return data


class Status(DomainModel):
    status_id: Optional[int] = None
    status_name: str = ""
    is_active: bool = True


class RequestType(DomainModel):
    id: int
    name: str


DEFAULT_PRIORITIES = tuple(
    Priority(priority_id=idx, priority_name=name) for idx, name in enumerate(PRIORITY_NAMES, start=1)
)
DEFAULT_STATUSES = tuple(
    Status(status_id=idx, status_name=name) for idx, name in enumerate(STATUS_NAMES, start=1)
)


# ── Requests and mail ─────────────────────────────────────────────────────────

class Attachment(DomainModel):
    attachment_id: Optional[int] = None
    request_id: Optional[int] = None
    mail_id: Optional[int] = None
    file_name: str
    file_path: str = ""
    file_size: Optional[int] = None
    content_type: Optional[str] = None
    created_on: Optional[datetime] = None

    @model_validator(mode="after")
    def _single_owner(self) -> "Attachment":
        if self.request_id is not None and self.mail_id is not None:
            raise ValueError("an attachment belongs to a request or to a mail, not both")
        return self


def _is_user_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and value.isdigit())


def _user_stub(user_id: Any, name: Any, email: Any, role: Any = None, role_id: Any = None) -> dict:
    stub = {
        "userId": user_id,
        "userName": str(name) if name else str(user_id),
        "email": email or "",
        "role": role or ROLE_USER,
    }
    if role_id is not None:
        stub["roleId"] = role_id
    return stub


class Request(DomainModel):
    request_id: int
    subject: str = ""
    message: str = ""
    request_type: str = ""
    request_type_id: Optional[int] = None
    remark: Optional[str] = None
    priority_id: Optional[int] = None
    priority: Priority = Field(default_factory=Priority)
    status_id: Optional[int] = None
    status: Status = Field(default_factory=Status)
    created_by: Optional[Union[int, str]] = None
    created_by_user: Optional[User] = None
    created_on: Optional[datetime] = None
    updated_by: Optional[Union[int, str]] = None
    updated_on: Optional[datetime] = None
    assigned_to: Optional[int] = None
    assigned_to_user: Optional[User] = None
    assigned_on: Optional[datetime] = None
    dev_target_date: Optional[date] = None
    dev_remark: Optional[str] = None
    uat_target_date: Optional[date] = None
    uat_remark: Optional[str] = None
    live_target_date: Optional[date] = None
    live_remark: Optional[str] = None
    attachments: list[Attachment] = Field(default_factory=list)
    mail_count: int = 0
    last_activity: Optional[datetime] = None
    is_active: bool = True
    del_mark: bool = False

    @model_validator(mode="before")
    @classmethod
    def _embed_snapshots(cls, data: Any) -> Any:
        """Copy the flat priority/status/user columns into embedded snapshots."""
        if not isinstance(data, dict):
            return data
        data = _camel_keys(data)

        priority = data.get("priority")
        if not isinstance(priority, (dict, Priority)):
            data["priority"] = {
                "priorityId": data.get("priorityId"),
                "priorityName": data.get("priorityName") or priority or "",
            }
        status = data.get("status")
        if not isinstance(status, (dict, Status)):
            data["status"] = {
                "statusId": data.get("statusId"),
                "statusName": data.get("statusName") or status or "",
            }

        if "createdByUser" not in data and _is_user_id(data.get("createdBy")):
            data["createdByUser"] = _user_stub(
                data["createdBy"],
                data.get("createdByUserName"),
                data.get("createdByEmail"),
                role_id=data.get("createdByRoleId"),
            )
        if "assignedToUser" not in data and _is_user_id(data.get("assignedTo")):
            data["assignedToUser"] = _user_stub(
                data["assignedTo"],
                data.get("assignedToUserName"),
                data.get("assignedToEmail"),
                role_id=data.get("assignedToRoleId"),
            )
        return data

    @model_validator(mode="after")
    def _sync_ids(self) -> "Request":
        if self.priority_id is None:
            self.priority_id = self.priority.priority_id
        if self.status_id is None:
            self.status_id = self.status.status_id
        return self

    @field_validator("dev_target_date", "uat_target_date", "live_target_date", mode="before")
    @classmethod
    def _phase_date(cls, value: Any) -> Any:
        return _date_part(value)

    @field_validator("created_on", "updated_on", "assigned_on", "last_activity")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def status_name(self) -> str:
        return self.status.status_name

    @property
    def priority_name(self) -> str:
        return self.priority.priority_name


class Mail(DomainModel):
    mail_id: int
    request_id: int
    parent_mail_id: Optional[int] = None
    subject: str = ""
    body: str = ""
    from_address: str = ""
    to_addresses: Optional[str] = None
    cc_addresses: Optional[str] = None
    sent_on: Optional[datetime] = None
    is_read: bool = False
    is_starred: bool = False
    is_archived: bool = False
    has_attachment: bool = False
    attachments: list[Attachment] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_by_user: Optional[User] = None

    @model_validator(mode="before")
    @classmethod
    def _embed_sender(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = _camel_keys(data)
        if "createdByUser" not in data and _is_user_id(data.get("createdBy")):
            data["createdByUser"] = _user_stub(
                data["createdBy"],
                data.get("createdByUserName"),
                data.get("createdByEmail"),
                role=data.get("createdByRole"),
                role_id=data.get("createdByRoleId"),
            )
        return data

    @field_validator("sent_on")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def to_list(self) -> list[str]:
        return parse_addresses(self.to_addresses)

    @property
    def cc_list(self) -> list[str]:
        return parse_addresses(self.cc_addresses)

    @property
    def sender_name(self) -> str:
        if self.created_by_user and self.created_by_user.user_name:
            return self.created_by_user.user_name
        return self.from_address


# ── Outgoing payloads ─────────────────────────────────────────────────────────

class EncodedAttachment(DomainModel):
    file_name: str
    file_type: str = "application/octet-stream"
    file_size: int = Field(ge=0)
    base64: str


class NewRequest(DomainModel):
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)
    request_type: str
    request_type_id: Optional[int] = None
    priority_id: int
    user_id: Optional[int] = None
    attachments: list[EncodedAttachment] = Field(default_factory=list)


class StatusUpdate(DomainModel):
    request_id: int
    status_id: int
    remark: Optional[str] = None


class Assignment(DomainModel):
    assigned_to: int = Field(gt=0)
    dev_target_date: Optional[date] = None
    dev_remark: Optional[str] = None
    uat_target_date: Optional[date] = None
    uat_remark: Optional[str] = None
    live_target_date: Optional[date] = None
    live_remark: Optional[str] = None

    @field_validator("dev_target_date", "uat_target_date", "live_target_date", mode="before")
    @classmethod
    def _phase_date(cls, value: Any) -> Any:
        return _date_part(value)


class MailDraft(DomainModel):
    request_id: Optional[int] = None
    parent_mail_id: Optional[int] = None
    subject: str = Field(min_length=1)
    body: str = Field(min_length=1)
    to_addresses: str = Field(min_length=1)
    cc_addresses: Optional[str] = None
    bcc_addresses: Optional[str] = None
    attachments: list[EncodedAttachment] = Field(default_factory=list)


class Registration(DomainModel):
    user_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    mobile: Optional[str] = None
    company_name: str
    role: Literal["User"] = ROLE_USER


# ── Validation results ────────────────────────────────────────────────────────

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Result(Generic[ModelT]):
    value: Optional[ModelT] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_model(model: type[ModelT], raw: Any) -> Result[ModelT]:
    try:
        return Result(value=model.model_validate(raw))
    except ValidationError as exc:
        return Result(error=exc)


def parse_many(model: type[ModelT], raw_items: list) -> tuple[list[ModelT], list[ValidationError]]:
    """Validate each item independently; a bad record never hides the good ones."""
    values: list[ModelT] = []
    errors: list[ValidationError] = []
    for raw in raw_items:
        result = parse_model(model, raw)
        if result.ok:
            values.append(result.value)
        else:
            errors.append(result.error)
    return values, errors
