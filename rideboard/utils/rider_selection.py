from typing import List
import logging

from .notification_schema import RiderCandidate
from .zip_distance import ZipDistanceResolver

logger = logging.getLogger(__name__)


# Function to find riders near the driver's ZIP
def select_candidates(
    driver_zip: str,
    riders: List[RiderCandidate],
    resolver: ZipDistanceResolver,
    radius_miles: float = 25.0,
) -> List[RiderCandidate]:
    """
    Filter riders to those within radius_miles of the driver or in the driver's SCF area.

    The SCF match is an independent inclusion path: a rider sharing the prefix is
    selected even when the distance is unknown or beyond the radius.
    """
    candidates = []
    for rider in riders:
        if not rider.postal_code:
            continue

        distance = resolver.distance(rider.postal_code, driver_zip)
        if distance is not None and distance <= radius_miles:
            candidates.append(rider)
        elif resolver.same_region(rider.postal_code, driver_zip):
            candidates.append(rider)

    logger.info(f"Found {len(candidates)} nearby riders out of {len(riders)} for ZIP {driver_zip}")
    return candidates
