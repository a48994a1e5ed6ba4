from typing import Optional
from pydantic import BaseModel


class GoogleBusinessImport(BaseModel):
    """Either a Google Maps URL or a place id; business_name only feeds mock data"""
    url: Optional[str] = None
    place_id: Optional[str] = None
    business_name: Optional[str] = None
    use_mock_data: bool = False
