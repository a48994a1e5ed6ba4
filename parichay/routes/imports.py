"""
Route for the Google Business import used by the onboarding wizard
"""

import logging
from fastapi import APIRouter, HTTPException, Depends

from parichay import config
from parichay.models import GoogleBusinessImport
from parichay.services.permissions import require_permission
from parichay.services.activity_logger import log_activity
from parichay.services.google_business import (
    extract_place_id_from_url,
    fetch_google_business_data,
    transform_to_microsite_data,
    get_mock_google_business_data,
)

logger = logging.getLogger("imports")

router = APIRouter(prefix="/import", tags=["Import"])

MOCK_WARNING = "Google Places API key not configured. Showing sample data."


@router.post("/google-business")
async def import_google_business(
    data: GoogleBusinessImport,
    user: dict = Depends(require_permission("import.google"))
):
    """
    Resolve a place (URL or place_id), fetch it from Places Details
    and return it shaped as brand/branch/microsite fields.
    Without an API key, sample data is returned with mock=true.
    """
    api_key = config.GOOGLE_PLACES_API_KEY

    if data.use_mock_data or not api_key:
        mock = get_mock_google_business_data(data.business_name or "Demo Business")
        result = {"success": True, "data": mock, "source": "mock", "mock": True}
        if not api_key:
            result["warning"] = MOCK_WARNING
        return result

    place_id = data.place_id or (extract_place_id_from_url(data.url) if data.url else None)
    if not place_id:
        raise HTTPException(
            status_code=400,
            detail="Could not extract a place ID from the URL. Provide a Google Maps place URL or a place_id."
        )

    google_data = await fetch_google_business_data(place_id, api_key)
    if not google_data:
        raise HTTPException(status_code=502, detail="Failed to fetch business data from Google")

    microsite_data = transform_to_microsite_data(google_data, api_key)

    await log_activity(
        user=user,
        action="import",
        entity_type="brand",
        entity_name=microsite_data.get("brand_name"),
        details={"place_id": place_id}
    )

    return {"success": True, "data": microsite_data, "source": "google", "mock": False}
