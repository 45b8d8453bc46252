from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .config import get_settings
from .utils import is_device_id, new_uuid

logger = logging.getLogger(__name__)


class DeviceIdentity:
    """Stable anonymous device token persisted to a file.

    The token stands in for an account: the server scopes every board to it.
    A missing or corrupt file is replaced with a freshly generated UUID.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = Path(path) if path is not None else get_settings().identity_path
        self._device_id: Optional[str] = None

    def device_id(self) -> str:
        if self._device_id is None:
            self._device_id = self._load() or self._provision()
        return self._device_id

    def _load(self) -> Optional[str]:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        if not is_device_id(value):
            logger.warning("ignoring invalid device id in %s", self.path)
            return None
        return value

    def _provision(self) -> str:
        value = new_uuid()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(value + "\n", encoding="utf-8")
        logger.info("provisioned new device id in %s", self.path)
        return value
