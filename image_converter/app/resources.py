"""Revocable locators for in-memory image blobs.

A locator (``image://blob/<n>``) stands in for a blob's bytes and its decoded
QImage while the view renders it. Each display role ("original", "converted")
owns at most one live locator. Replacing a role's locator switches the rendered
reference first and revokes the old locator right after, so nothing ever
renders a revoked locator.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from PySide6.QtGui import QImage

from image_converter.logger import get_logger

_logger = get_logger("resources")

LOCATOR_PREFIX = "image://blob/"

ROLE_ORIGINAL = "original"
ROLE_CONVERTED = "converted"


@dataclass
class _Entry:
    data: bytes
    image: QImage | None


class BlobRegistry:
    """Locator table for blobs published for display."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._roles: dict[str, str] = {}
        self._next_id = 1

    # ---- plain publish/release ----
    def publish(self, data: bytes, image: QImage | None = None) -> str:
        locator = f"{LOCATOR_PREFIX}{self._next_id}"
        self._next_id += 1
        self._entries[locator] = _Entry(bytes(data), image)
        _logger.debug("publish: %s (%s bytes)", locator, len(data))
        return locator

    def release(self, locator: str | None) -> bool:
        """Revoke a locator. Unknown or already released locators are ignored."""
        if not locator:
            return False
        entry = self._entries.pop(locator, None)
        if entry is None:
            _logger.debug("release ignored (not live): %s", locator)
            return False
        for role, loc in list(self._roles.items()):
            if loc == locator:
                del self._roles[role]
        _logger.debug("release: %s", locator)
        return True

    def is_live(self, locator: str | None) -> bool:
        return bool(locator) and locator in self._entries

    def data(self, locator: str | None) -> bytes | None:
        entry = self._entries.get(locator or "")
        return entry.data if entry is not None else None

    def image(self, locator: str | None) -> QImage | None:
        entry = self._entries.get(locator or "")
        return entry.image if entry is not None else None

    def live_count(self) -> int:
        return len(self._entries)

    # ---- role slots ----
    def locator_for(self, role: str) -> str | None:
        return self._roles.get(role)

    def replace(
        self,
        role: str,
        data: bytes,
        image: QImage | None,
        switch: Callable[[str], None],
    ) -> str:
        """Publish a new blob for `role`, hand it to `switch`, then revoke the old one."""
        new_locator = self.publish(data, image)
        old_locator = self._roles.get(role)
        self._roles[role] = new_locator
        switch(new_locator)
        if old_locator is not None:
            self.release(old_locator)
        return new_locator

    def clear(self, role: str, switch: Callable[[str], None]) -> None:
        """Stop rendering `role` and revoke its locator."""
        old_locator = self._roles.pop(role, None)
        switch("")
        if old_locator is not None:
            self.release(old_locator)

    def release_all(self) -> None:
        for locator in list(self._entries):
            self.release(locator)
        self._roles.clear()
