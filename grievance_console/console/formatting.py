import re
from datetime import date, datetime, timezone
from typing import Optional

from grievance_console.grievance.schemas import parse_addresses

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """Human readable size with at most two decimals: 1536 -> "1.5 KB"."""
    if size < 0:
        raise ValueError("file size cannot be negative")
    if size == 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def format_kilobytes(size: Optional[int]) -> Optional[str]:
    # Attachment rows show a fixed one-decimal KB figure
    if not size:
        return None
    return f"{size / 1024:.1f} KB"


def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return f"{value:%a}, {value:%b} {value.day}, {value.year}, {value:%I:%M %p}"


def format_date(value: Optional[date]) -> str:
    if value is None:
        return ""
    return f"{value.month}/{value.day}/{value.year}"


def format_mail_timestamp(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Clock time today, weekday this week, month and day before that."""
    if value is None:
        return ""
    current = now or datetime.now(timezone.utc)
    hours = (current - value).total_seconds() / 3600.0
    if hours < 24:
        return f"{value:%I:%M %p}"
    if hours < 168:
        return f"{value:%a}"
    return f"{value:%b} {value.day}"


def truncate_text(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def join_addresses(addresses: Optional[str]) -> str:
    return ", ".join(parse_addresses(addresses))


def tab_title(tab: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), tab.replace("-", " ", 1))
