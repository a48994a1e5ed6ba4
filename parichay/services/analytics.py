"""
Parichay - Analytics events

Single function to call from any route/service.
Callers treat it as best effort: a failed write is logged, never raised.
"""

import logging
from parichay.config import db, now_iso, new_id

logger = logging.getLogger("analytics")

VCARD_DOWNLOAD = "VCARD_DOWNLOAD"
LEAD_SUBMIT = "LEAD_SUBMIT"
REVIEW_SUBMIT = "REVIEW_SUBMIT"
SHORT_LINK_CLICK = "SHORT_LINK_CLICK"


async def track_event(
    event_type: str,
    brand_id: str = None,
    branch_id: str = None,
    metadata: dict = None
):
    """
    Write a single event to the analytics_events collection.

    Args:
        event_type: VCARD_DOWNLOAD | LEAD_SUBMIT | REVIEW_SUBMIT | SHORT_LINK_CLICK
        brand_id / branch_id: tenant the event belongs to
        metadata: free-form dict (user agent, lead id, rating, ...)

    Returns the event id, or None when the write failed.
    """
    event_id = new_id()
    try:
        await db.analytics_events.insert_one({
            "id": event_id,
            "event_type": event_type,
            "brand_id": brand_id,
            "branch_id": branch_id,
            "metadata": metadata or {},
            "created_at": now_iso()
        })
    except Exception as e:
        logger.error(f"Error tracking {event_type}: {str(e)}")
        return None
    return event_id
