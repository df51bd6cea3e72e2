"""
Save-status indicator.

idle is the resting state. saved and failed are transient: each carries its
own expiry timer that reverts to idle after the display window, unless a
newer transition has replaced it first.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

STATUS_DISPLAY_S = 3.0


class SaveStatus(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    FAILED = "failed"

    @property
    def is_transient(self) -> bool:
        return self in (SaveStatus.SAVED, SaveStatus.FAILED)


class StatusIndicator:
    def __init__(
        self,
        display_s: float = STATUS_DISPLAY_S,
        on_change: Optional[Callable[[SaveStatus], None]] = None,
    ):
        self._display_s = display_s
        self._on_change = on_change
        self._status = SaveStatus.IDLE
        self._version = 0
        self._expiry: Optional[asyncio.TimerHandle] = None

    @property
    def status(self) -> SaveStatus:
        return self._status

    def set(self, status: SaveStatus) -> None:
        self._version += 1
        self._cancel_expiry()
        self._apply(status)
        if status.is_transient:
            loop = asyncio.get_running_loop()
            self._expiry = loop.call_later(self._display_s, self._expire, self._version)

    def _expire(self, version: int) -> None:
        self._expiry = None
        if version == self._version:
            self._apply(SaveStatus.IDLE)

    def _apply(self, status: SaveStatus) -> None:
        self._status = status
        if self._on_change:
            self._on_change(status)

    def _cancel_expiry(self) -> None:
        if self._expiry:
            self._expiry.cancel()
            self._expiry = None

    def reset(self) -> None:
        """Back to idle without notifying; used when the owner starts over."""
        self._version += 1
        self._cancel_expiry()
        self._status = SaveStatus.IDLE

    def close(self) -> None:
        self._cancel_expiry()
