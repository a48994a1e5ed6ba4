"""
vCard 3.0 generator for branch contact cards

Input shape (plain dicts, as stored on the branch/brand documents):
{
    "branch": {
        "name": "...",
        "contact": {"phone", "whatsapp", "email"},
        "address": {"street", "city", "state", "zip_code", "country"},
        "social_media": {"facebook", "instagram", "linkedin", "twitter"},
        "business_hours": {"monday": {"open", "close", "closed"}, ...}
    },
    "brand": {"name", "logo", "tagline"},
    "microsite_url": "https://..."
}
"""

import re

CRLF = "\r\n"

DAYS_ORDER = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

SOCIAL_URL_TYPES = [
    ("facebook", "Facebook"),
    ("instagram", "Instagram"),
    ("linkedin", "LinkedIn"),
    ("twitter", "Twitter"),
]


def escape_vcard_value(value) -> str:
    """Escape \\ ; , and newlines; carriage returns are dropped"""
    if not value:
        return ""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
        .replace("\r", "")
    )


def format_business_hours(business_hours: dict) -> str:
    """'Business Hours:' then one line per known day, '' when no day is set"""
    lines = ["Business Hours:"]
    for day in DAYS_ORDER:
        hours = business_hours.get(day)
        if hours is None:
            continue
        day_name = day.capitalize()
        if hours.get("closed"):
            lines.append(f"{day_name}: Closed")
        else:
            lines.append(f"{day_name}: {hours.get('open', '')} - {hours.get('close', '')}")
    return "\n".join(lines) if len(lines) > 1 else ""


def generate_vcard(data: dict) -> str:
    branch = data["branch"]
    brand = data["brand"]
    contact = branch.get("contact") or {}
    address = branch.get("address")
    social_media = branch.get("social_media")
    business_hours = branch.get("business_hours")

    lines = [
        "BEGIN:VCARD",
        "VERSION:3.0",
        f"FN:{escape_vcard_value(branch.get('name'))}",
        f"ORG:{escape_vcard_value(brand.get('name'))}",
    ]

    if brand.get("tagline"):
        lines.append(f"TITLE:{escape_vcard_value(brand['tagline'])}")

    phone = contact.get("phone")
    whatsapp = contact.get("whatsapp")
    if phone:
        lines.append(f"TEL;TYPE=WORK,VOICE:{escape_vcard_value(phone)}")
    if whatsapp and whatsapp != phone:
        lines.append(f"TEL;TYPE=CELL:{escape_vcard_value(whatsapp)}")

    if contact.get("email"):
        lines.append(f"EMAIL;TYPE=INTERNET,WORK:{escape_vcard_value(contact['email'])}")

    if address is not None:
        # ADR: PO box;extended;street;city;state;zip;country
        adr = ";".join([
            "",
            "",
            escape_vcard_value(address.get("street")),
            escape_vcard_value(address.get("city")),
            escape_vcard_value(address.get("state")),
            escape_vcard_value(address.get("zip_code")),
            escape_vcard_value(address.get("country")),
        ])
        lines.append(f"ADR;TYPE=WORK:{adr}")

        label = (
            f"{address.get('street', '')}, {address.get('city', '')}, "
            f"{address.get('state', '')} {address.get('zip_code', '')}, {address.get('country', '')}"
        )
        lines.append(f"LABEL;TYPE=WORK:{escape_vcard_value(label)}")

    lines.append(f"URL:{escape_vcard_value(data.get('microsite_url'))}")

    if social_media is not None:
        for key, label in SOCIAL_URL_TYPES:
            if social_media.get(key):
                lines.append(f"URL;TYPE={label}:{escape_vcard_value(social_media[key])}")

    if business_hours is not None:
        hours_text = format_business_hours(business_hours)
        if hours_text:
            lines.append(f"NOTE:{escape_vcard_value(hours_text)}")

    if brand.get("logo"):
        lines.append(f"PHOTO;VALUE=URI:{escape_vcard_value(brand['logo'])}")

    lines.append("END:VCARD")
    return CRLF.join(lines)


def vcard_filename(branch_name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", branch_name or "") + ".vcf"
