"""CSV parsing for bulk lead import."""

import csv
import io
import json
import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Synonym columns, checked in order; the first column present in the header wins
COMPANY_COLUMNS = ("company", "company_name", "name")
WEBSITE_COLUMNS = ("website", "domain")
EMAIL_COLUMNS = ("email",)
PHONE_COLUMNS = ("phone", "phone_number")

BASE_COLUMNS = frozenset(
    COMPANY_COLUMNS + WEBSITE_COLUMNS + EMAIL_COLUMNS + PHONE_COLUMNS + ("meta",)
)


def decode_csv_bytes(content: bytes) -> str:
    """Decode an uploaded file, trying UTF-8 first."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def parse_meta_text(text: str) -> Dict[str, Any]:
    """JSON object from text, or ``{"raw": text}`` when it is not one."""
    try:
        parsed = json.loads(text)
    except ValueError:
        return {"raw": text}
    if isinstance(parsed, dict):
        return parsed
    return {"raw": text}


def normalize_header(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip().lower())


def _first_present(record: Dict[str, str], columns) -> str:
    for column in columns:
        if column in record:
            return record[column].strip()
    return ""


def parse_leads_csv(text: str) -> List[Dict[str, Any]]:
    """
    Parse comma-separated lead data into import rows.

    A doubled quote inside a quoted field is one literal quote. Cells are
    trimmed, blank lines are ignored and rows with no company are skipped.
    Unrecognized columns are folded into ``meta`` unless a ``meta`` column
    carries a value.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    if not text:
        return []

    lines = [
        [cell.strip() for cell in cells]
        for cells in csv.reader(io.StringIO(text))
        if any(cell.strip() for cell in cells)
    ]
    if not lines:
        return []

    header = [normalize_header(name) for name in lines[0]]
    rows = []

    for cells in lines[1:]:
        record = {
            key: cells[idx] if idx < len(cells) else ""
            for idx, key in enumerate(header)
        }

        company = _first_present(record, COMPANY_COLUMNS)
        if not company:
            continue

        meta: Optional[Dict[str, Any]]
        meta_raw = record.get("meta", "").strip()
        if meta_raw:
            meta = parse_meta_text(meta_raw)
        else:
            extras = {
                key: value.strip()
                for key, value in record.items()
                if key not in BASE_COLUMNS and value.strip()
            }
            meta = extras or None

        rows.append({
            "company": company,
            "website": _first_present(record, WEBSITE_COLUMNS) or None,
            "email": _first_present(record, EMAIL_COLUMNS) or None,
            "phone": _first_present(record, PHONE_COLUMNS) or None,
            "meta": meta,
        })

    logger.debug(f"Parsed {len(rows)} lead rows from {len(lines) - 1} CSV lines")
    return rows


def preview_leads_csv(text: str, limit: int = 25) -> Dict[str, Any]:
    """Parsed row count plus the first `limit` rows."""
    rows = parse_leads_csv(text)
    return {"total": len(rows), "rows": rows[:limit]}
