"""
Profile analytics: event classification on the way in, summaries on the way out.
"""
import hashlib
import re
from datetime import datetime, timedelta, timezone

EVENT_VIEW = "view"
EVENT_VCARD_DOWNLOAD = "vcard_download"
EVENT_LINK_CLICK = "link_click"

RECENT_EVENTS_LIMIT = 20

_TABLET_RE = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.IGNORECASE)
_MOBILE_RE = re.compile(
    r"Mobile|Android|iP(hone|od)|IEMobile|BlackBerry|Kindle|Silk-Accelerated|(hpw|web)OS|Opera M(obi|ini)"
)


def detect_device_type(user_agent: str | None) -> str:
    """Classify a User-Agent as 'tablet', 'mobile' or 'desktop'."""
    if not user_agent:
        return "desktop"
    if _TABLET_RE.search(user_agent):
        return "tablet"
    if _MOBILE_RE.search(user_agent):
        return "mobile"
    return "desktop"


def hash_ip(ip: str | None) -> str:
    """One-way hash of the visitor IP; raw addresses are never stored."""
    if not ip:
        return ""
    return hashlib.sha256(ip.encode("utf-8")).hexdigest()


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _count(events: list[dict]) -> dict:
    return {
        "views": sum(1 for e in events if e["event_type"] == EVENT_VIEW),
        "downloads": sum(1 for e in events if e["event_type"] == EVENT_VCARD_DOWNLOAD),
        "clicks": sum(1 for e in events if e["event_type"] == EVENT_LINK_CLICK),
    }


def summarize(events: list[dict], now: datetime | None = None) -> dict:
    """Aggregate a profile's events (newest first) for the analytics dashboard.

    Periods are computed in UTC: today since midnight, this week as the
    last 7 days, this month since the 1st.
    """
    now = now or datetime.now(timezone.utc)
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = now - timedelta(days=7)
    month_start = today_start.replace(day=1)

    totals = _count(events)
    conversion_rate = (totals["downloads"] / totals["views"]) * 100 if totals["views"] else 0.0

    def since(start: datetime) -> dict:
        return _count([e for e in events if _parse_timestamp(e["created_at"]) >= start])

    return {
        "total_views": totals["views"],
        "total_downloads": totals["downloads"],
        "total_link_clicks": totals["clicks"],
        "conversion_rate": round(conversion_rate, 2),
        "device_breakdown": {
            device: sum(1 for e in events if e.get("device_type") == device)
            for device in ("mobile", "desktop", "tablet")
        },
        "recent_events": events[:RECENT_EVENTS_LIMIT],
        "periods": {
            "today": since(today_start),
            "this_week": since(week_start),
            "this_month": since(month_start),
            "total": totals,
        },
    }
