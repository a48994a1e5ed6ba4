"""
Lead routing to the branch contact channels

Flow (sequential, each channel independent):
1. Email     -> contact.email    if preferences.email
2. WhatsApp  -> contact.whatsapp if preferences.whatsapp
3. In-app    -> branch admins    if preferences.in_app

A failing channel is logged and the next one still runs.
No retry, no queue: the lead row is already stored when routing starts.
"""

import logging
from datetime import datetime
from fastapi.concurrency import run_in_threadpool

from parichay.models import DEFAULT_NOTIFICATION_PREFERENCES
from parichay.services import notifications, whatsapp_service
from parichay.services.email_service import email_service

logger = logging.getLogger("lead_router")

SENT = "sent"
FAILED = "failed"
DISABLED = "disabled"


def get_notification_preferences(branch: dict) -> dict:
    microsite_config = branch.get("microsite_config") or {}
    prefs = microsite_config.get("notification_preferences")
    if not prefs:
        return dict(DEFAULT_NOTIFICATION_PREFERENCES)
    return {
        "email": prefs.get("email", DEFAULT_NOTIFICATION_PREFERENCES["email"]),
        "whatsapp": prefs.get("whatsapp", DEFAULT_NOTIFICATION_PREFERENCES["whatsapp"]),
        "in_app": prefs.get("in_app", prefs.get("inApp", DEFAULT_NOTIFICATION_PREFERENCES["in_app"])),
    }


def _format_submitted_at(created_at: str) -> str:
    try:
        return datetime.fromisoformat(created_at).strftime("%d/%m/%Y %H:%M:%S UTC")
    except (TypeError, ValueError):
        return created_at or ""


def build_lead_info(lead: dict) -> dict:
    return {
        "lead_id": lead["id"],
        "name": lead.get("name"),
        "email": lead.get("email"),
        "phone": lead.get("phone"),
        "message": lead.get("message"),
        "source": lead.get("source"),
        "submitted_at": _format_submitted_at(lead.get("created_at")),
    }


async def route_lead_to_contacts(lead: dict, branch: dict, brand: dict, branch_contact: dict = None) -> dict:
    """
    Fan a freshly stored lead out to the branch channels.

    Returns: {"email": status, "whatsapp": status, "in_app": status}
      status: "sent" | "failed" | "disabled"
    """
    contact = branch_contact or branch.get("contact") or {}
    prefs = get_notification_preferences(branch)
    brand_name = (brand or {}).get("name", "")
    branch_name = branch.get("name", "")
    lead_info = build_lead_info(lead)

    routed = {"email": DISABLED, "whatsapp": DISABLED, "in_app": DISABLED}

    # 1. Email
    if contact.get("email") and prefs["email"]:
        try:
            ok = await run_in_threadpool(
                email_service.send_lead_notification,
                contact["email"], lead_info, brand_name, branch_name
            )
            routed["email"] = SENT if ok else FAILED
        except Exception as e:
            routed["email"] = FAILED
            logger.error(f"Email notification failed for lead {lead['id']}: {str(e)}")

    # 2. WhatsApp
    if contact.get("whatsapp") and prefs["whatsapp"]:
        try:
            message = whatsapp_service.format_lead_message(lead_info, brand_name, branch_name)
            ok = await whatsapp_service.send_whatsapp_message(contact["whatsapp"], message)
            routed["whatsapp"] = SENT if ok else FAILED
        except Exception as e:
            routed["whatsapp"] = FAILED
            logger.error(f"WhatsApp notification failed for lead {lead['id']}: {str(e)}")

    # 3. In-app
    if prefs["in_app"]:
        try:
            await notifications.notify_new_lead(branch["id"], lead_info, brand_name, branch_name)
            routed["in_app"] = SENT
        except Exception as e:
            routed["in_app"] = FAILED
            logger.error(f"In-app notification failed for lead {lead['id']}: {str(e)}")

    logger.info(
        f"Lead routed: lead={lead['id']} branch={branch_name} brand={brand_name} "
        f"email={routed['email']} whatsapp={routed['whatsapp']} in_app={routed['in_app']}"
    )
    return routed
