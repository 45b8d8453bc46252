from typing import Optional

from fastapi import Header

from .errors import ValidationError
from .utils import is_device_id


def get_device_id(x_device_id: Optional[str] = Header(default=None, alias="X-Device-Id")) -> str:
    """Resolve the caller's device identifier.

    The identifier is an opaque client-generated UUID standing in for an
    account. It is trusted and stored exactly as sent, so a board is keyed
    by the header value without case folding. There is no signature to verify.
    """
    if not is_device_id(x_device_id):
        raise ValidationError("Missing or invalid X-Device-Id header")
    return x_device_id
