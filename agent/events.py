"""
Recent-events view: filtering and pagination over the newest events.
"""

import json
import math
from typing import Any, Dict, List, Sequence, TypeVar

from api.models import AnalyticsEvent
from agent.aggregator import UNKNOWN_VARIANT, resolve_variant

KNOWN_EVENT_TYPES = ("pageview", "click", "scroll")

T = TypeVar("T")


def _type_matches(event: AnalyticsEvent, event_type: str) -> bool:
    event_type = event_type.lower()
    if event_type == "all":
        return True
    actual = event.event_type.lower()
    if event_type == "other":
        return actual not in KNOWN_EVENT_TYPES
    return actual == event_type


def _variant_matches(event: AnalyticsEvent, variant: str) -> bool:
    if variant.lower() == "all":
        return True
    bucket = resolve_variant(event.variant_id, strict=True)
    if variant.lower() == UNKNOWN_VARIANT:
        return bucket == UNKNOWN_VARIANT
    return bucket == variant.upper()


def _payload_matches(event: AnalyticsEvent, search: str) -> bool:
    if not search:
        return True
    payload_text = json.dumps(event.payload, default=str).lower()
    return search.lower() in payload_text


def filter_events(
    events: Sequence[AnalyticsEvent],
    event_type: str = "all",
    variant: str = "all",
    search: str = "",
) -> List[AnalyticsEvent]:
    """
    Filter events for display.

    Args:
        events: Newest-first events
        event_type: "all", "pageview", "click", "scroll" or "other"
        variant: "all", "A", "B" or "unknown" (strict buckets)
        search: Case-insensitive substring searched in the JSON payload

    Returns:
        Matching events, order preserved
    """
    return [
        e
        for e in events
        if _type_matches(e, event_type)
        and _variant_matches(e, variant)
        and _payload_matches(e, search)
    ]


def paginate(items: Sequence[T], page: int, page_size: int) -> Dict[str, Any]:
    """
    Slice one page out of items.

    Out-of-range pages are clamped, so the response always describes a page
    that exists (page 0 of 1 for an empty list).
    """
    page_size = max(1, page_size)
    total_pages = max(1, math.ceil(len(items) / page_size))
    safe_page = min(max(page, 0), total_pages - 1)
    start = safe_page * page_size
    return {
        "items": list(items[start:start + page_size]),
        "page": safe_page,
        "pageSize": page_size,
        "totalPages": total_pages,
        "totalItems": len(items),
    }
