"""Keyset cursor for listing pages.

Listings are ordered by (listed_at DESC, id DESC). The cursor is
{"ts": "<listed_at ISO>", "id": "<listing_id>"} encoded as Base64 JSON.
"""

import base64
import json
from datetime import datetime

from src.pm_trade.domain.models import Listing


def cursor_encode(last_listing: Listing) -> str:
    """Encode composite cursor from last listing in page."""
    payload = {
        "ts": last_listing.listed_at.isoformat(),
        "id": last_listing.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[datetime | None, str | None]:
    """Decode composite cursor -> (listed_at, listing_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(data["ts"]), str(data["id"])
    except Exception:
        return None, None
