"""
Lead CSV export

CSV COLUMNS (exact order):
Date, Name, Email, Phone, Message, Source, Branch, Brand, Metadata
Empty values are written as N/A, metadata as compact JSON.
"""

import csv
import io
import json
from datetime import datetime, timezone
from typing import Dict, List

CSV_COLUMNS = [
    "Date",
    "Name",
    "Email",
    "Phone",
    "Message",
    "Source",
    "Branch",
    "Brand",
    "Metadata",
]


def lead_to_row(lead: Dict, branch: Dict, brand: Dict) -> Dict:
    return {
        "Date": lead.get("created_at", ""),
        "Name": lead.get("name", ""),
        "Email": lead.get("email") or "N/A",
        "Phone": lead.get("phone") or "N/A",
        "Message": lead.get("message") or "N/A",
        "Source": lead.get("source", ""),
        "Branch": (branch or {}).get("name", ""),
        "Brand": (brand or {}).get("name", ""),
        "Metadata": json.dumps(lead.get("metadata") or {}, ensure_ascii=False),
    }


def generate_csv_content(rows: List[Dict]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return output.getvalue()


def generate_csv_filename() -> str:
    """leads_export_YYYY-MM-DD.csv"""
    return f"leads_export_{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.csv"
