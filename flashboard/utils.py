import re
import uuid
from typing import Optional

# RFC 4122 UUID, versions 1-5, variant bits 10xx.
DEVICE_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def new_uuid() -> str:
    return str(uuid.uuid4())


def is_device_id(value: Optional[str]) -> bool:
    return bool(value) and DEVICE_ID_RE.match(value) is not None


def move_item(items: list, old_index: int, new_index: int) -> list:
    """Return a copy of ``items`` with the element at ``old_index`` moved to ``new_index``."""
    result = list(items)
    result.insert(new_index, result.pop(old_index))
    return result
