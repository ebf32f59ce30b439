"""ZIP proximity utilities.

Distances come from a static table of ZIP centroids and the haversine
formula. ZIPs missing from the table have no known distance; the SCF prefix
(first three digits) is used as a coarse fallback for those.
"""
from math import atan2, cos, floor, radians, sin, sqrt
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple
import json
import logging
import re

from ..enums import ProximityReasonEnum

logger = logging.getLogger(__name__)

EARTH_RADIUS_MI = 3958.8
SCF_PREFIX_LENGTH = 3

DEFAULT_CENTROIDS_PATH = Path(__file__).resolve().parent.parent / "data" / "zip_centroids.json"

_ZIP_PATTERN = re.compile(r"\d{5}")


class Proximity(NamedTuple):
    nearby: bool
    distance: Optional[float]
    reason: Optional[ProximityReasonEnum]


class NearbyZip(NamedTuple):
    zip: str
    distance: Optional[float]
    reason: ProximityReasonEnum


def load_zip_centroids(path=None) -> Mapping[str, Tuple[float, float]]:
    """
    Load ZIP centroids from a JSON file shaped like {"30303": {"lat": .., "lng": ..}}.

    Args:
        path: File to read. Defaults to the bundled dataset.

    Returns:
        Mapping: Read-only mapping of ZIP to (latitude, longitude).
    """
    source = Path(path) if path else DEFAULT_CENTROIDS_PATH
    with open(source, encoding="utf-8") as f:
        raw = json.load(f)

    centroids: Dict[str, Tuple[float, float]] = {}
    for zip_code, point in raw.items():
        centroids[str(zip_code)] = (float(point["lat"]), float(point["lng"]))

    logger.info(f"Loaded {len(centroids)} ZIP centroids from {source}")
    return MappingProxyType(centroids)


def normalize_zip(value: Optional[str]) -> Optional[str]:
    """Return the first 5-digit run of value (handles ZIP+4), or None."""
    if not value:
        return None
    match = _ZIP_PATTERN.search(str(value))
    return match.group(0) if match else None


def scf_prefix(zip_code: str) -> str:
    return zip_code[:SCF_PREFIX_LENGTH]


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_MI * c


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def format_distance_text(distance: Optional[float]) -> str:
    """Distance phrase used in notification messages."""
    if distance is None:
        return "nearby"
    return f"~{round_half_up(distance)} mi away"


class ZipDistanceResolver:
    """Resolves distances between ZIPs using an injected centroid table."""

    def __init__(self, centroids: Mapping[str, Tuple[float, float]]):
        self.centroids = centroids

    def distance(self, zip_a: str, zip_b: str) -> Optional[float]:
        """
        Great-circle distance in miles between two ZIP centroids.

        Returns None when either ZIP is not in the table. The value is not rounded.
        """
        point_a = self.centroids.get(zip_a)
        point_b = self.centroids.get(zip_b)
        if point_a is None or point_b is None:
            return None
        return haversine_miles(point_a[0], point_a[1], point_b[0], point_b[1])

    def same_region(self, zip_a: str, zip_b: str) -> bool:
        return scf_prefix(zip_a) == scf_prefix(zip_b)

    def proximity(self, zip_a: str, zip_b: str, radius_miles: float) -> Proximity:
        if zip_a == zip_b:
            return Proximity(True, 0.0, ProximityReasonEnum.SCF)

        distance = self.distance(zip_a, zip_b)
        if self.same_region(zip_a, zip_b):
            return Proximity(True, distance, ProximityReasonEnum.SCF)

        if distance is not None and distance <= radius_miles:
            return Proximity(True, distance, ProximityReasonEnum.RADIUS)

        return Proximity(False, distance, None)

    def find_nearby(self, zip_code: str, radius_miles: float) -> List[NearbyZip]:
        """List every other known ZIP near zip_code, closest first, unknown distances last."""
        nearby = []
        for other in self.centroids:
            if other == zip_code:
                continue
            result = self.proximity(zip_code, other, radius_miles)
            if result.nearby:
                nearby.append(NearbyZip(other, result.distance, result.reason))

        nearby.sort(key=lambda item: (item.distance is None, item.distance or 0.0))
        return nearby
