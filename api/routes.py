import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from api.errors import ApiError
from api.models import (
    AgentVariantSuggestion,
    AnalyticsEvent,
    AutoModeRequest,
    EventIn,
    PromoteLandingRequest,
    PromoteVariantRequest,
)
from agent.aggregator import (
    build_overview,
    compute_session_stats,
    compute_strict_variant_counts,
    compute_variant_stats,
    summarize_behaviour,
    to_simple_stats,
)
from agent.events import filter_events, paginate
from agent.landing import LandingRegistry
from agent.suggestions import SuggestionAgent
from agent.variants import VariantRegistry
from core.config import Settings, get_settings
from core.store import EVENTS, LANDING_PAGES, PERSONA_PAGES, DocumentNotFound, DocumentStore

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


# ======================
# Dependencies
# ======================

def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_agent(request: Request) -> SuggestionAgent:
    return request.app.state.agent


def get_variants(store: DocumentStore = Depends(get_store)) -> VariantRegistry:
    return VariantRegistry(store)


def get_landing(store: DocumentStore = Depends(get_store)) -> LandingRegistry:
    return LandingRegistry(store)


async def load_events(store: DocumentStore, settings: Settings) -> List[AnalyticsEvent]:
    """Newest-first event window used by every aggregation."""
    documents = await store.recent(EVENTS, settings.EVENT_WINDOW_LIMIT)
    return [AnalyticsEvent.from_document(d) for d in documents]


async def require_events(store: DocumentStore, settings: Settings, message: str) -> List[AnalyticsEvent]:
    events = await load_events(store, settings)
    if not events:
        raise ApiError(400, message)
    return events


# ======================
# Service
# ======================

@router.get("/")
async def root():
    return {
        "service": "cMindX Agent",
        "status": "running",
        "endpoints": {
            "agent": "/api/agent (GET, POST)",
            "dashboard": "/api/dashboard (GET)",
            "events": "/api/events (GET, POST)",
        },
    }


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/status/detailed")
async def detailed_status_check(
    request: Request,
    store: DocumentStore = Depends(get_store),
):
    """
    Redis connectivity and AI configuration.

    The service stays usable without AI (heuristic copy), so only Redis
    decides the overall status.
    """
    status_info = {
        "api": "healthy",
        "redis": "unknown",
        "ai": "configured" if request.app.state.agent.generator is not None else "heuristic-only",
    }

    if await store.ping():
        status_info["redis"] = "connected"
        status_info["redis_stats"] = await store.get_stats()
    else:
        status_info["redis"] = "disconnected"

    status_info["overall_status"] = "healthy" if status_info["redis"] == "connected" else "degraded"
    return status_info


# ======================
# Events & dashboard
# ======================

@router.post("/api/events")
async def ingest_event(event: EventIn, store: DocumentStore = Depends(get_store)):
    """Append one analytics event to the event log."""
    event_id = await store.add(EVENTS, event.to_event().to_dict())
    return {"ok": True, "id": event_id}


@router.get("/api/events")
async def recent_events(
    event_type: str = Query("all", alias="type", description="all, pageview, click, scroll or other"),
    variant: str = Query("all", description="all, A, B or unknown"),
    search: str = Query("", description="Substring searched in the payload"),
    page: int = Query(0, ge=0),
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Recent events for the dashboard table.

    Only the newest DASHBOARD_DISPLAY_LIMIT events are listed. Events whose
    variant is neither A nor B show up under "unknown" here.
    """
    events = (await load_events(store, settings))[:settings.DASHBOARD_DISPLAY_LIMIT]
    filtered = filter_events(events, event_type=event_type, variant=variant, search=search)
    result = paginate(filtered, page, settings.DASHBOARD_PAGE_SIZE)

    return {
        "ok": True,
        **result,
        "items": [e.to_dict() for e in result["items"]],
        "variantCounts": compute_strict_variant_counts(events),
    }


@router.get("/api/dashboard")
async def dashboard(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Headline numbers and per-variant stats over the event window."""
    events = await load_events(store, settings)
    return {"ok": True, **build_overview(events)}


# ======================
# Variant agent
# ======================

@router.api_route("/api/agent", methods=["GET", "POST"])
async def run_agent(
    store: DocumentStore = Depends(get_store),
    agent: SuggestionAgent = Depends(get_agent),
    settings: Settings = Depends(get_settings),
):
    """
    Aggregate the event window and propose a Build C hero variant.

    The suggestion comes from the AI when possible, otherwise from the
    heuristic scorer; aiUsed/aiError say which and why.
    """
    events = await require_events(store, settings, "Not enough events yet.")
    stats = to_simple_stats(compute_variant_stats(events))
    result = await agent.suggest_variant(stats)

    return {
        "ok": True,
        "stats": [s.to_dict() for s in stats],
        "suggestedVariant": result.value.to_dict(),
        **result.provenance(),
    }


@router.get("/api/variants")
async def list_variants(variants: VariantRegistry = Depends(get_variants)):
    return {"ok": True, "variants": [v.to_dict() for v in await variants.list()]}


@router.post("/api/variants")
async def save_variant(
    suggestion: AgentVariantSuggestion,
    variants: VariantRegistry = Depends(get_variants),
):
    """Save a suggested variant in the testing state."""
    variant = await variants.create(suggestion, created_by="ai")
    return {"ok": True, "id": variant.id, "variant": variant.to_dict()}


@router.post("/api/variants/{variant_id}/promote")
async def promote_stored_variant(
    variant_id: str,
    variants: VariantRegistry = Depends(get_variants),
):
    try:
        variant = await variants.promote(variant_id)
    except DocumentNotFound:
        raise ApiError(404, f"Variant {variant_id} not found")
    return {"ok": True, "variantId": variant.id, "variant": variant.to_dict()}


@router.post("/api/promote-variant")
async def promote_variant(
    body: PromoteVariantRequest,
    variants: VariantRegistry = Depends(get_variants),
):
    """
    Promote a variant to live.

    Pass ``variantId`` to promote a stored variant, or ``variant`` with the
    copy fields to save it as a manual variant and promote it right away.
    A body carrying both is rejected.
    """
    variant_id: Optional[str] = body.variant_id

    if variant_id is not None and body.variant is not None:
        raise ApiError(400, "Pass either variantId or variant, not both")

    if variant_id is None:
        if body.variant is None:
            raise ApiError(400, "Invalid variant payload")
        created = await variants.create(body.variant, created_by="manual")
        variant_id = created.id

    try:
        variant = await variants.promote(variant_id)
    except DocumentNotFound:
        raise ApiError(404, f"Variant {variant_id} not found")
    return {"ok": True, "variantId": variant.id, "variant": variant.to_dict()}


@router.post("/api/disable-live")
async def disable_live(variants: VariantRegistry = Depends(get_variants)):
    result = await variants.disable_live()
    return {
        "ok": True,
        "noop": result.noop,
        "disabled": result.disabled,
        "message": "No live variant to disable" if result.noop else "Live variant disabled",
    }


@router.get("/api/active-variant")
async def active_variant(variants: VariantRegistry = Depends(get_variants)):
    variant = await variants.get_live()
    if variant is None:
        return {"ok": True, "variant": None, "message": "No live variant set"}
    return {"ok": True, "id": variant.id, "variant": variant.to_dict()}


@router.get("/api/get-live-variant")
async def live_variant_pointer(variants: VariantRegistry = Depends(get_variants)):
    return {"ok": True, "variant": await variants.get_live_pointer()}


# ======================
# Landing & persona pages
# ======================

@router.post("/api/landing-agent")
async def landing_agent(
    store: DocumentStore = Depends(get_store),
    agent: SuggestionAgent = Depends(get_agent),
    settings: Settings = Depends(get_settings),
):
    """Propose full home-page content (hero, system, pillars, stack, edit cards)."""
    events = await require_events(store, settings, "Not enough events yet.")
    stats = to_simple_stats(compute_variant_stats(events))
    result = await agent.design_landing_spec(stats)

    return {
        "ok": True,
        "stats": [s.to_dict() for s in stats],
        "spec": result.value.to_dict(),
        **result.provenance(),
    }


@router.post("/api/landing-page")
async def generate_landing_page(
    store: DocumentStore = Depends(get_store),
    agent: SuggestionAgent = Depends(get_agent),
    landing: LandingRegistry = Depends(get_landing),
    settings: Settings = Depends(get_settings),
):
    """Generate an experimental landing build and store it under its slug."""
    events = await require_events(store, settings, "Not enough data to build a landing page yet.")
    summary = summarize_behaviour(compute_session_stats(events))
    result = await agent.design_landing_page(summary)
    await landing.save_generated(LANDING_PAGES, result.value, summary, result.ai_used)

    return {
        "ok": True,
        "slug": result.value.slug,
        "landingPage": result.value.to_dict(),
        "behaviourSummary": summary.to_dict(),
        **result.provenance(),
    }


@router.post("/api/persona-page")
async def generate_persona_page(
    store: DocumentStore = Depends(get_store),
    agent: SuggestionAgent = Depends(get_agent),
    landing: LandingRegistry = Depends(get_landing),
    settings: Settings = Depends(get_settings),
):
    """Generate a page for the dominant visitor persona and store it under its slug."""
    events = await require_events(store, settings, "Not enough data to build personas yet.")
    summary = summarize_behaviour(compute_session_stats(events))
    result = await agent.design_persona_page(summary)
    await landing.save_generated(PERSONA_PAGES, result.value, summary, result.ai_used)

    return {
        "ok": True,
        "slug": result.value.slug,
        "personaPage": result.value.to_dict(),
        "behaviourSummary": summary.to_dict(),
        **result.provenance(),
    }


@router.post("/api/promote-landing")
async def promote_landing(
    body: PromoteLandingRequest,
    landing: LandingRegistry = Depends(get_landing),
):
    if body.spec is None:
        raise ApiError(400, "Missing spec")
    slug = await landing.promote_spec(body.spec, slug=body.slug, source=body.source)
    return {"ok": True, "slug": slug}


@router.get("/api/active-landing")
async def active_landing(landing: LandingRegistry = Depends(get_landing)):
    active = await landing.get_active()
    if active is None:
        return {"ok": True, "spec": None, "message": "No landing page spec set"}
    return {"ok": True, "slug": active.get("slug"), "spec": active.get("spec")}


@router.get("/api/landing-pages/{slug}")
async def get_landing_page(slug: str, landing: LandingRegistry = Depends(get_landing)):
    page = await landing.get_page(LANDING_PAGES, slug)
    if page is None:
        raise ApiError(404, f"Landing page {slug} not found")
    return {"ok": True, "page": page}


@router.get("/api/persona-pages/{slug}")
async def get_persona_page(slug: str, landing: LandingRegistry = Depends(get_landing)):
    page = await landing.get_page(PERSONA_PAGES, slug)
    if page is None:
        raise ApiError(404, f"Persona page {slug} not found")
    return {"ok": True, "page": page}


# ======================
# Agent settings
# ======================

@router.get("/api/auto-mode")
async def get_auto_mode(landing: LandingRegistry = Depends(get_landing)):
    return {"ok": True, "autoMode": await landing.get_auto_mode()}


@router.post("/api/auto-mode")
async def set_auto_mode(body: AutoModeRequest, landing: LandingRegistry = Depends(get_landing)):
    return {"ok": True, "autoMode": await landing.set_auto_mode(body.auto_mode)}
