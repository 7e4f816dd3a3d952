from __future__ import annotations

from typing import Optional, Protocol

from .model import ShiftConfig


class ShiftConfigRepository(Protocol):
    def get_active(self) -> Optional[ShiftConfig]:
        """Return the organization's shift configuration, or None if not configured."""

        raise NotImplementedError
