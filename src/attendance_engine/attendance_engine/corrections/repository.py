from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import AppliedCorrection, ApprovalOutcome, AttendanceSnapshot, CorrectionRequest


class CorrectionRepository(Protocol):
    def create_if_no_pending(self, request: CorrectionRequest) -> Optional[int]:
        """Insert a pending request; None when one is already pending for the same record."""

        raise NotImplementedError

    def get(self, request_id: int) -> Optional[CorrectionRequest]:
        raise NotImplementedError

    def list(
        self,
        *,
        employee_ids: Optional[set[int]] = None,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[CorrectionRequest]:
        """Newest first. ``employee_ids=None`` means every employee."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
    ) -> bool:
        """Move a pending request to a terminal status; False if it was not pending."""

        raise NotImplementedError

    def approve(
        self,
        *,
        request_id: int,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
        expected: AttendanceSnapshot,
        change: AppliedCorrection,
        applied: AttendanceSnapshot,
    ) -> ApprovalOutcome:
        """Approve and apply in one transaction.

        The record is only written while its check-in, check-out and status
        still equal ``expected``; otherwise nothing is written and the request
        stays pending.
        """

        raise NotImplementedError
