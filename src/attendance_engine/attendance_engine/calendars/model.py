from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Holiday:
    name: str
    start_date: date
    end_date: Optional[date] = None

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= (self.end_date or self.start_date)


@dataclass(frozen=True)
class LeaveInterval:
    employee_id: int
    start_date: date
    end_date: date
    work_from_home: bool = False

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
