"""
WhatsApp notifications for branch contacts

API: WhatsApp Business Cloud API
- Endpoint: POST https://graph.facebook.com/{version}/{phone_number_id}/messages
- Auth: Header Authorization: Bearer {token}
- Body: {"messaging_product": "whatsapp", "to": ..., "type": "text", "text": {"body": ...}}

Without WHATSAPP_ACCESS_TOKEN / WHATSAPP_PHONE_NUMBER_ID the message is only logged.
"""

import httpx
import logging

from parichay import config

logger = logging.getLogger("whatsapp_service")

GRAPH_API_URL = "https://graph.facebook.com"


def format_lead_message(lead_info: dict, brand_name: str, branch_name: str) -> str:
    """WhatsApp text (markdown-ish *bold*, _italic_) announcing a new lead"""
    lines = [
        "🎯 *New Lead Received!*",
        "",
        f"*Branch:* {branch_name}",
        f"*Brand:* {brand_name}",
        f"*Source:* {lead_info.get('source')}",
        f"*Time:* {lead_info.get('submitted_at')}",
        "",
        "*Lead Details:*",
        f"👤 *Name:* {lead_info.get('name')}",
        f"📧 *Email:* {lead_info.get('email') or 'Not provided'}",
        f"📱 *Phone:* {lead_info.get('phone') or 'Not provided'}",
    ]
    if lead_info.get("message"):
        lines.append(f"💬 *Message:* {lead_info['message']}")
    lines += [
        "",
        "⚡ Please follow up with this lead as soon as possible!",
        "",
        f"_Lead ID: {lead_info.get('lead_id')}_",
    ]
    return "\n".join(lines)


def normalize_whatsapp_number(number: str) -> str:
    """Cloud API expects digits only, country code included"""
    return "".join(filter(str.isdigit, number or ""))


def is_configured() -> bool:
    return bool(config.WHATSAPP_ACCESS_TOKEN and config.WHATSAPP_PHONE_NUMBER_ID)


async def send_whatsapp_message(to_number: str, message: str) -> bool:
    """
    Send a text message.
    Returns True when delivered to the API (or logged in stub mode).
    """
    to = normalize_whatsapp_number(to_number)
    if not to:
        logger.warning(f"WhatsApp number without digits: {to_number!r}")
        return False

    if not is_configured():
        logger.info(f"[WHATSAPP_STUB] to={to} message={message!r}")
        return True

    url = f"{GRAPH_API_URL}/{config.WHATSAPP_API_VERSION}/{config.WHATSAPP_PHONE_NUMBER_ID}/messages"
    payload = {
        "messaging_product": "whatsapp",
        "to": to,
        "type": "text",
        "text": {"body": message},
    }

    try:
        async with httpx.AsyncClient(timeout=30.0) as client:
            resp = await client.post(
                url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {config.WHATSAPP_ACCESS_TOKEN}",
                    "Content-Type": "application/json"
                }
            )
    except httpx.TimeoutException:
        logger.error(f"WhatsApp API timeout for {to}")
        return False
    except httpx.HTTPError as e:
        logger.error(f"WhatsApp API error for {to}: {str(e)}")
        return False

    if resp.status_code in (200, 201):
        logger.info(f"WhatsApp message sent to {to}")
        return True

    logger.error(f"WhatsApp API {resp.status_code}: {resp.text}")
    return False
