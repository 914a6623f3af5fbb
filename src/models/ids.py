import re
import secrets
from datetime import datetime, timezone

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_object_id() -> str:
    """24 hex characters, 12 random bytes."""
    return secrets.token_hex(12)


def is_object_id(value: str) -> bool:
    return bool(value) and OBJECT_ID_PATTERN.match(value) is not None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
