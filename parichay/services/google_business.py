"""
Google Business importer
Fetches a place from the Google Places Details API and reshapes it into
the brand/branch/microsite fields used by the onboarding wizard.

The Places API answers in snake_case (place_id, address_components[].long_name,
opening_hours.periods[].open.{day,time}, photos[].photo_reference, ...).
"""

import re
import httpx
import logging
from typing import Optional

from parichay.config import generate_slug

logger = logging.getLogger("google_business")

PLACES_DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
PLACES_PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

DETAIL_FIELDS = [
    "place_id",
    "name",
    "business_status",
    "formatted_address",
    "address_components",
    "geometry",
    "formatted_phone_number",
    "international_phone_number",
    "opening_hours",
    "website",
    "photos",
    "rating",
    "user_ratings_total",
    "reviews",
    "types",
    "price_level",
    "url",
    "utc_offset",
    "vicinity",
]

PLACE_ID_PATTERNS = [
    re.compile(r"place/[^/]+/data=.*!1s([^!]+)"),       # data parameter
    re.compile(r"place/[^/]+/.*@.*/data=.*!1s([^!]+)"),  # with coordinates
    re.compile(r"maps/place/[^/]+/.*cid=(\d+)"),         # CID inside place path
    re.compile(r"\?cid=(\d+)"),                          # direct CID
]

# Periods use 0 = Sunday
PERIOD_DAYS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

MAX_PHOTOS = 10
MAX_KEYWORDS = 10
STOP_WORDS = {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for"}

INDUSTRY_MAP = {
    # Food & Beverage
    "restaurant": "Restaurant",
    "cafe": "Cafe",
    "bar": "Bar & Lounge",
    "bakery": "Bakery",
    "food": "Food & Beverage",
    # Healthcare
    "hospital": "Healthcare",
    "doctor": "Healthcare - Medical",
    "dentist": "Healthcare - Dentistry",
    "pharmacy": "Healthcare - Pharmacy",
    "physiotherapist": "Healthcare - Physiotherapy",
    # Retail
    "store": "Retail",
    "clothing_store": "Retail - Fashion",
    "shoe_store": "Retail - Footwear",
    "jewelry_store": "Retail - Jewelry",
    "electronics_store": "Retail - Electronics",
    "book_store": "Retail - Books",
    # Services
    "beauty_salon": "Beauty & Wellness",
    "hair_care": "Beauty & Wellness - Salon",
    "spa": "Beauty & Wellness - Spa",
    "gym": "Fitness & Gym",
    "lawyer": "Professional Services - Legal",
    "accounting": "Professional Services - Accounting",
    "real_estate_agency": "Real Estate",
    # Education
    "school": "Education",
    "university": "Education - Higher",
    "library": "Education - Library",
    # Automotive
    "car_dealer": "Automotive - Sales",
    "car_repair": "Automotive - Repair",
    "car_wash": "Automotive - Wash",
    # Hospitality
    "lodging": "Hospitality",
    "hotel": "Hospitality - Hotel",
    "travel_agency": "Travel & Tourism",
}


def extract_place_id_from_url(url: str) -> Optional[str]:
    """Place id (or CID) from a Google Maps URL, None when no format matches"""
    for pattern in PLACE_ID_PATTERNS:
        match = pattern.search(url or "")
        if match and match.group(1):
            return match.group(1)
    return None


async def fetch_google_business_data(place_id: str, api_key: str) -> Optional[dict]:
    """Places Details `result`, or None when the API answers anything but OK"""
    params = {
        "place_id": place_id,
        "fields": ",".join(DETAIL_FIELDS),
        "key": api_key,
    }
    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.get(PLACES_DETAILS_URL, params=params)
            data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Error fetching Google Business data for {place_id}: {str(e)}")
        return None

    if data.get("status") == "OK" and data.get("result"):
        return data["result"]

    logger.error(f"Google Places API error: {data.get('status')} {data.get('error_message', '')}")
    return None


def get_photo_url(photo_reference: str, api_key: str, max_width: int = 800) -> str:
    return f"{PLACES_PHOTO_URL}?maxwidth={max_width}&photo_reference={photo_reference}&key={api_key}"


def format_time(time: str) -> str:
    """'0930' -> '09:30 AM', '1800' -> '06:00 PM', '0000' -> '12:00 AM'"""
    hours = int(time[0:2])
    minutes = time[2:4]
    period = "PM" if hours >= 12 else "AM"
    if hours > 12:
        display = hours - 12
    elif hours == 0:
        display = 12
    else:
        display = hours
    return f"{display:02d}:{minutes} {period}"


def parse_business_hours(opening_hours: Optional[dict]) -> Optional[dict]:
    if not opening_hours or not opening_hours.get("periods"):
        return None

    result = {}
    for period in opening_hours["periods"]:
        day_name = PERIOD_DAYS[period["open"]["day"]]
        close = period.get("close")
        result[day_name] = {
            "open": format_time(period["open"]["time"]),
            "close": format_time(close["time"]) if close else "11:59 PM",
            "closed": False,
        }

    # Days without periods are closed
    for day in PERIOD_DAYS:
        if day not in result:
            result[day] = {"open": "09:00 AM", "close": "06:00 PM", "closed": True}

    return result


def map_google_type_to_industry(place_type: str) -> str:
    return INDUSTRY_MAP.get(place_type, "General Business")


def extract_keywords(data: dict) -> list:
    keywords = data.get("name", "").lower().split()
    keywords += [t.replace("_", " ") for t in data.get("types") or []]

    seen = []
    for keyword in keywords:
        if keyword in seen or len(keyword) <= 2 or keyword in STOP_WORDS:
            continue
        seen.append(keyword)
    return seen[:MAX_KEYWORDS]


def transform_to_microsite_data(google_data: dict, api_key: str) -> dict:
    components = google_data.get("address_components") or []

    def component(kind):
        for c in components:
            if kind in c.get("types", []):
                return c.get("long_name", "")
        return ""

    street = " ".join(filter(None, [component("street_number"), component("route")]))
    city = component("locality") or component("administrative_area_level_2")

    photos = [
        get_photo_url(p["photo_reference"], api_key)
        for p in (google_data.get("photos") or [])[:MAX_PHOTOS]
    ]

    types = google_data.get("types") or []
    primary_type = types[0] if types else "business"
    phone = google_data.get("formatted_phone_number") or google_data.get("international_phone_number")
    location = (google_data.get("geometry") or {}).get("location") or {}

    return {
        "brand_name": google_data["name"],
        "branch_name": google_data["name"],
        "slug": generate_slug(google_data["name"]),
        "category": primary_type,
        "industry": map_google_type_to_industry(primary_type),
        "address": {
            "street": street or google_data.get("vicinity") or "",
            "city": city,
            "state": component("administrative_area_level_1"),
            "zip_code": component("postal_code"),
            "country": component("country") or "India",
        },
        "contact": {
            "phone": phone,
            "website": google_data.get("website"),
            # WhatsApp defaults to the phone, editable afterwards
            "whatsapp": phone,
        },
        "location": {
            "lat": location.get("lat", 0),
            "lng": location.get("lng", 0),
        },
        "business_hours": parse_business_hours(google_data.get("opening_hours")),
        "photos": photos,
        "rating": google_data.get("rating"),
        "review_count": google_data.get("user_ratings_total"),
        "keywords": extract_keywords(google_data),
        "specialties": types,
    }


def get_mock_google_business_data(business_name: str = "Demo Business") -> dict:
    """Canned import result for development without a Places API key"""
    weekday = {"open": "09:00 AM", "close": "06:00 PM", "closed": False}
    return {
        "brand_name": business_name,
        "branch_name": f"{business_name} - Main Branch",
        "slug": generate_slug(business_name),
        "category": "restaurant",
        "industry": "Restaurant",
        "description": f"Welcome to {business_name}! We provide excellent service and quality products.",
        "address": {
            "street": "123 Main Street",
            "city": "Mumbai",
            "state": "Maharashtra",
            "zip_code": "400001",
            "country": "India",
        },
        "contact": {
            "phone": "+91 22 1234 5678",
            "email": "contact@business.com",
            "whatsapp": "+91 98765 43210",
            "website": "https://business.com",
        },
        "location": {"lat": 19.0760, "lng": 72.8777},
        "business_hours": {
            "monday": dict(weekday),
            "tuesday": dict(weekday),
            "wednesday": dict(weekday),
            "thursday": dict(weekday),
            "friday": dict(weekday),
            "saturday": {"open": "10:00 AM", "close": "04:00 PM", "closed": False},
            "sunday": {"open": "09:00 AM", "close": "06:00 PM", "closed": True},
        },
        "photos": [
            "https://picsum.photos/800/600?random=1",
            "https://picsum.photos/800/600?random=2",
            "https://picsum.photos/800/600?random=3",
        ],
        "rating": 4.5,
        "review_count": 127,
        "keywords": ["quality", "service", "professional", "trusted"],
        "specialties": ["restaurant", "food", "dining"],
    }
