import re
from enum import Enum
from typing import Optional


class ServiceIcon(str, Enum):
    SCISSORS = "scissors"
    HEART = "heart"
    MESSAGE_SQUARE = "message-square"
    USER = "user"
    SETTINGS = "settings"


DEFAULT_ICON = ServiceIcon.SCISSORS


def resolve_icon(name: Optional[str]) -> ServiceIcon:
    """Map a free-text icon tag ("Scissors", "message_square", ...) onto ServiceIcon.

    Unknown or empty tags fall back to scissors, like the salon UI always did.
    """
    if isinstance(name, ServiceIcon):
        return name
    if not name:
        return DEFAULT_ICON
    key = re.sub(r"(?<=[a-z])(?=[A-Z])|[\s_]+", "-", name.strip()).lower()
    try:
        return ServiceIcon(key)
    except ValueError:
        return DEFAULT_ICON
