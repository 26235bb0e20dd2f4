"""
Semantic tones for badges and cards. The browser maps a tone to its own
palette; unknown names always resolve to the default tone.
"""

DEFAULT_TONE = "gray"

STATUS_TONES = {
    "Pending": "yellow",
    "Active": "blue",
    "Dev": "purple",
    "Stag": "indigo",
    "Uat": "orange",
    "Live": "green",
    "Closed": "gray",
}

PRIORITY_TONES = {
    "High": "red",
    "Medium": "yellow",
    "Low": "green",
}

PRIORITY_ICONS = {
    "High": "alert-triangle",
    "Medium": "clock",
    "Low": "check-circle",
}

REQUEST_TYPE_TONES = {
    "New Development": "blue",
    "Data Change": "orange",
    "System Bug": "red",
}

CARD_TONES = ("blue", "green", "yellow", "red", "purple", "indigo", "gray")


def status_tone(status_name: str) -> str:
    return STATUS_TONES.get(status_name, DEFAULT_TONE)


def priority_tone(priority_name: str) -> str:
    return PRIORITY_TONES.get(priority_name, DEFAULT_TONE)


def priority_icon(priority_name: str) -> str:
    return PRIORITY_ICONS.get(priority_name, PRIORITY_ICONS["Low"])


def request_type_tone(request_type: str) -> str:
    return REQUEST_TYPE_TONES.get(request_type, DEFAULT_TONE)


def card_tone(color: str) -> str:
    return color if color in CARD_TONES else DEFAULT_TONE
