from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List

from ..config import settings
from ..schemas import NearbyZipResponse
from ..utils.dependencies import get_zip_resolver
from ..utils.zip_distance import ZipDistanceResolver, normalize_zip

router = APIRouter()


@router.get("/{zip_code}/nearby", response_model=List[NearbyZipResponse])
async def list_nearby_zips(
    zip_code: str,
    radius_miles: float = Query(settings.NEARBY_RADIUS_MI, gt=0),
    resolver: ZipDistanceResolver = Depends(get_zip_resolver),
):
    """
    List known ZIPs near zip_code, closest first.

    ZIPs in the same SCF area are included even when their distance is unknown.
    """
    normalized = normalize_zip(zip_code)
    if not normalized:
        raise HTTPException(status_code=400, detail="Enter a valid ZIP (5 digits, e.g., 30117)")

    return [
        NearbyZipResponse(zip=item.zip, distance_miles=item.distance, reason=item.reason)
        for item in resolver.find_nearby(normalized, radius_miles)
    ]
