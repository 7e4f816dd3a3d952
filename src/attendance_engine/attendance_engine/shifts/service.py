from __future__ import annotations

from ..core.exceptions import ConfigMissing
from .model import ShiftConfig
from .repository import ShiftConfigRepository


def load_shift_config(shifts: ShiftConfigRepository) -> ShiftConfig:
    """Load the shift configuration for one request/job invocation."""
    config = shifts.get_active()
    if config is None:
        raise ConfigMissing("Attendance is disabled: no shift configuration found")
    return config
