import re

from app.core.exceptions import InvalidIdentifier

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


def is_uuid(value) -> bool:
    """True if value is an 8-4-4-4-12 hex string. Never raises."""
    if not isinstance(value, str):
        return False
    return _UUID_RE.fullmatch(value) is not None


def normalize_uuid(value) -> str:
    if not is_uuid(value):
        raise InvalidIdentifier()
    return value.lower()
