"""
Event aggregation for the cMindX agent

Turns a bounded, newest-first window of analytics events into the
statistics the dashboard, the heuristic scorer and the AI prompts consume.

Two views of the variant id exist side by side:
- aggregate-with-default: anything that is not "A"/"B" counts as "A"
  (used for the per-variant statistics)
- aggregate-strict: anything that is not "A"/"B" is "unknown"
  (used for event-level filtering)
"""

import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from api.models import (
    AnalyticsEvent,
    BehaviourSummary,
    SessionStats,
    SimpleStats,
    VariantStats,
)

VARIANT_IDS = ("A", "B")
DEFAULT_VARIANT = "A"
UNKNOWN_VARIANT = "unknown"

# Session buckets used by the persona/landing generators
SKIMMER_MAX_SCROLL = 30
DEEP_READER_MIN_SCROLL = 70
CLICKY_MIN_CLICKS = 3


def resolve_variant(variant_id: Optional[str], strict: bool = False) -> str:
    """
    Map a raw variant id onto a bucket.

    Args:
        variant_id: Variant id as recorded on the event (may be missing)
        strict: If True, unrecognized ids map to "unknown" instead of "A"

    Returns:
        "A", "B", or "unknown" (strict only)
    """
    normalized = str(variant_id).strip().upper() if variant_id is not None else ""
    if normalized in VARIANT_IDS:
        return normalized
    return UNKNOWN_VARIANT if strict else DEFAULT_VARIANT


def scroll_percent(event: AnalyticsEvent) -> Optional[float]:
    """Numeric scrollPercent of a scroll event, or None when absent/non-numeric."""
    value: Any = event.payload.get("scrollPercent")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def _is(event: AnalyticsEvent, event_type: str) -> bool:
    return event.event_type.lower() == event_type


def compute_variant_stats(events: Iterable[AnalyticsEvent]) -> List[VariantStats]:
    """
    Per-variant statistics for "A" and "B" (aggregate-with-default).

    Always returns one entry per variant, zero-filled when a variant has no
    events. avgScrollPercent stays None when there is no numeric scroll
    reading, so "no data" is distinguishable from zero engagement.
    """
    by_variant: Dict[str, List[AnalyticsEvent]] = {v: [] for v in VARIANT_IDS}
    for event in events:
        by_variant[resolve_variant(event.variant_id)].append(event)

    stats = []
    for variant_id in VARIANT_IDS:
        variant_events = by_variant[variant_id]
        scroll_events = [e for e in variant_events if _is(e, "scroll")]
        readings = [p for p in (scroll_percent(e) for e in scroll_events) if p is not None]

        stats.append(
            VariantStats(
                variant_id=variant_id,
                total_events=len(variant_events),
                sessions=len({e.session_id for e in variant_events}),
                scroll_events=len(scroll_events),
                avg_scroll_percent=sum(readings) / len(readings) if readings else None,
                click_events=sum(1 for e in variant_events if _is(e, "click")),
            )
        )
    return stats


def compute_strict_variant_counts(events: Iterable[AnalyticsEvent]) -> Dict[str, int]:
    """Event counts per strict bucket: A, B and unknown."""
    counts = {v: 0 for v in (*VARIANT_IDS, UNKNOWN_VARIANT)}
    for event in events:
        counts[resolve_variant(event.variant_id, strict=True)] += 1
    return counts


def to_simple_stats(stats: Sequence[VariantStats]) -> List[SimpleStats]:
    """Reduced view handed to the scorer and the AI prompt."""
    return [
        SimpleStats(
            variant_id=s.variant_id,
            avg_scroll=s.avg_scroll_percent,
            clicks=s.click_events,
        )
        for s in stats
    ]


def compute_session_stats(events: Iterable[AnalyticsEvent]) -> List[SessionStats]:
    """
    Per-session scroll depth and click count.

    The scroll depth is a two-term running average: each new reading is
    averaged with the previous value, (old + new) / 2. It weights recent
    readings more heavily than a true mean; existing dashboards and stored
    behaviour summaries were produced with this rule.
    """
    by_session: Dict[str, SessionStats] = {}

    for event in events:
        session = by_session.get(event.session_id)
        if session is None:
            session = SessionStats(session_id=event.session_id)
            by_session[event.session_id] = session

        if _is(event, "scroll"):
            value = scroll_percent(event)
            if value is not None:
                if session.avg_scroll is None:
                    session.avg_scroll = value
                else:
                    session.avg_scroll = (session.avg_scroll + value) / 2

        if _is(event, "click"):
            session.clicks += 1

    return list(by_session.values())


def summarize_behaviour(sessions: Sequence[SessionStats]) -> BehaviourSummary:
    """High-level behaviour summary of a set of sessions."""
    count = len(sessions)
    with_scroll = [s.avg_scroll for s in sessions if s.avg_scroll is not None]

    return BehaviourSummary(
        total_sessions=count,
        avg_scroll_all=sum(with_scroll) / len(with_scroll) if with_scroll else None,
        avg_clicks_all=sum(s.clicks for s in sessions) / count if count else 0.0,
        skimmers=sum(1 for s in sessions if (s.avg_scroll or 0) < SKIMMER_MAX_SCROLL),
        deep_readers=sum(1 for s in sessions if (s.avg_scroll or 0) >= DEEP_READER_MIN_SCROLL),
        clicky=sum(1 for s in sessions if s.clicks >= CLICKY_MIN_CLICKS),
    )


def scroll_leader(stats: Sequence[VariantStats]) -> Optional[str]:
    """
    Variant with the deeper average scroll, when both variants have data.

    Ties go to the second variant.
    """
    if len(stats) != 2 or any(s.avg_scroll_percent is None for s in stats):
        return None
    first, second = stats
    if first.avg_scroll_percent > second.avg_scroll_percent:
        return first.variant_id
    return second.variant_id


def build_overview(events: Sequence[AnalyticsEvent]) -> Dict[str, Any]:
    """Dashboard headline numbers over the whole event window."""
    stats = compute_variant_stats(events)
    return {
        "totalEvents": len(events),
        "uniqueSessions": len({e.session_id for e in events}),
        "variantStats": [s.to_dict() for s in stats],
        "winner": scroll_leader(stats),
    }
