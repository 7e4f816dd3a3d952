from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import GeofenceObservation, GeofenceSettings, GeofenceZone


class GeofenceZoneRepository(Protocol):
    def get_settings(self) -> Optional[GeofenceSettings]:
        raise NotImplementedError

    def list_zones(self, *, active_only: bool = True) -> Sequence[GeofenceZone]:
        raise NotImplementedError

    def get_zone(self, zone_id: int) -> Optional[GeofenceZone]:
        raise NotImplementedError

    def create_zone(self, zone: GeofenceZone) -> int:
        """Persist a new zone (``zone.zone_id`` is ignored); returns the new id."""

        raise NotImplementedError

    def update_zone(self, zone: GeofenceZone) -> bool:
        raise NotImplementedError


class GeofenceObservationRepository(Protocol):
    def create(self, observation: GeofenceObservation) -> int:
        """Persist an observation (``observation_id`` is ignored); returns the new id."""

        raise NotImplementedError

    def get(self, observation_id: int) -> Optional[GeofenceObservation]:
        raise NotImplementedError

    def list(
        self,
        *,
        employee_ids: Optional[set[int]] = None,
        request_status: Optional[RequestStatus] = None,
        limit: int = 50,
    ) -> Sequence[GeofenceObservation]:
        """Newest first. ``employee_ids=None`` means every employee."""

        raise NotImplementedError

    def decide_request(
        self,
        *,
        observation_id: int,
        status: RequestStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str] = None,
    ) -> bool:
        """Decide the embedded out-of-premises request only while it is pending."""

        raise NotImplementedError
