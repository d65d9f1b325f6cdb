from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_GEOFENCE_RADIUS_METERS, MAX_GEOFENCE_RADIUS_METERS, MIN_GEOFENCE_RADIUS_METERS
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Geofence:
    """Circular check-in boundary around a branch."""

    latitude: float
    longitude: float
    radius_meters: int = DEFAULT_GEOFENCE_RADIUS_METERS

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValidationError("Latitude must be between -90 and 90")
        if not -180 <= self.longitude <= 180:
            raise ValidationError("Longitude must be between -180 and 180")
        if not MIN_GEOFENCE_RADIUS_METERS <= self.radius_meters <= MAX_GEOFENCE_RADIUS_METERS:
            raise ValidationError(
                f"Radius must be between {MIN_GEOFENCE_RADIUS_METERS} and {MAX_GEOFENCE_RADIUS_METERS} metres"
            )


@dataclass(frozen=True)
class Branch:
    branch_id: int
    branch_name: str
    address: str
    geofence: Optional[Geofence] = None
