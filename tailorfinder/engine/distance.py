"""Great-circle distance helpers."""

import math
from typing import Optional

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push a a hair past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance(distance_km: Optional[float]) -> Optional[str]:
    """Render a distance label: metres under 1 km, one decimal of km above."""
    if distance_km is None or not math.isfinite(distance_km):
        return None
    metres = round(distance_km * 1000)
    if metres < 1000:
        return f"{metres:d} m"
    return f"{distance_km:.1f} km"
