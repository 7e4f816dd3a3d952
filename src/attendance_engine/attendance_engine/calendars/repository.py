from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import Holiday, LeaveInterval


class HolidayCalendar(Protocol):
    def list_active(self, start: date, end: date) -> Sequence[Holiday]:
        """Active holidays overlapping [start, end]."""

        raise NotImplementedError


class LeaveCalendar(Protocol):
    def list_approved(self, start: date, end: date) -> Sequence[LeaveInterval]:
        """Approved leave intervals overlapping [start, end], all employees."""

        raise NotImplementedError
