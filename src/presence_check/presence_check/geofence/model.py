from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from ..core.exceptions import InvalidCoordinate


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float

    @classmethod
    def of(cls, lat: Any, lng: Any) -> "Coordinate":
        """Build a validated coordinate from raw (possibly string) values."""
        try:
            lat_f, lng_f = float(lat), float(lng)
        except (TypeError, ValueError):
            raise InvalidCoordinate(f"Tọa độ không hợp lệ: ({lat!r}, {lng!r})")
        coord = cls(lat=lat_f, lng=lng_f)
        coord.validate()
        return coord

    def validate(self) -> None:
        if math.isnan(self.lat) or math.isnan(self.lng):
            raise InvalidCoordinate("Tọa độ không hợp lệ (NaN)")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidCoordinate(f"Vĩ độ ngoài phạm vi: {self.lat}")
        if not -180.0 <= self.lng <= 180.0:
            raise InvalidCoordinate(f"Kinh độ ngoài phạm vi: {self.lng}")
