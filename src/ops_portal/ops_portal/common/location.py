from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Location:
    """GPS fix supplied by the client."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    address: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], *, required: bool = True) -> Optional["Location"]:
        if not data:
            if required:
                raise ValidationError("Location is required")
            return None
        try:
            latitude = float(data["latitude"])
            longitude = float(data["longitude"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError("Location must include numeric latitude and longitude")
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValidationError("Location coordinates are out of range")

        accuracy = data.get("accuracy")
        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy=float(accuracy) if accuracy is not None else None,
            address=(data.get("address") or None),
        )

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "address": self.address,
        }
