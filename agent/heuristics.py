"""
Heuristic scorer and fallback copy generator.

Used whenever the AI call is unavailable or returns something unusable.
Every function here is deterministic: the same statistics always produce
the same winner and the same text.

Scoring rule: score = avgScroll (0 when unknown) + W * clicks, where W is
the single configured click weight. The first variant reaching the
maximum score wins.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from api.models import (
    AgentVariantSuggestion,
    BehaviourSummary,
    EditCard,
    Hero,
    LandingBuildPage,
    LandingPageSpec,
    PageSection,
    PersonaPage,
    Pillar,
    SimpleStats,
    SuggestionMeta,
    SystemBlock,
)

DEFAULT_CLICK_WEIGHT = 2.0
DEFAULT_PRODUCT_NAME = "cMindX"

BUILD_C_BADGE = "AGENT MODE • EVOLUTION"
BUILD_C_PRIMARY_CTA = "▶ Deploy Build C"
BUILD_C_SECONDARY_CTA = "◎ Inspect experiment logs"


def score(stats: SimpleStats, click_weight: float = DEFAULT_CLICK_WEIGHT) -> float:
    return (stats.avg_scroll or 0.0) + click_weight * stats.clicks


def pick_winner(
    stats: Sequence[SimpleStats], click_weight: float = DEFAULT_CLICK_WEIGHT
) -> Optional[SimpleStats]:
    """Highest-scoring variant; ties keep the earliest one. None if empty."""
    winner = None
    best = None
    for candidate in stats:
        candidate_score = score(candidate, click_weight)
        if best is None or candidate_score > best:
            winner, best = candidate, candidate_score
    return winner


def describe_rule(click_weight: float) -> str:
    return f"avg scroll + {click_weight:g}×clicks"


# ======================
# Build C hero suggestion
# ======================

def build_fallback_suggestion(
    stats: Sequence[SimpleStats], click_weight: float = DEFAULT_CLICK_WEIGHT
) -> AgentVariantSuggestion:
    """
    Build C suggestion derived from the best-scoring variant.

    With no statistics at all a neutral Build C based on variant A is
    returned, with ``meta.basedOn`` left empty.
    """
    winner = pick_winner(stats, click_weight)

    if winner is None:
        return AgentVariantSuggestion(
            from_variant="A",
            hero_title="SELF-EVOLVING WEBSITE // BUILD C",
            hero_subtitle=(
                "New variant evolved from the current winner, tuned to push visitors "
                "deeper into the page and increase interaction based on live analytics."
            ),
            primary_cta=BUILD_C_PRIMARY_CTA,
            secondary_cta=BUILD_C_SECONDARY_CTA,
            badge=BUILD_C_BADGE,
            meta=SuggestionMeta(
                based_on=None,
                explanation=(
                    "Heuristic agent: no variant statistics yet, so Build C starts from "
                    "variant A and assumes that high scroll + clicks correlate with "
                    "better engagement."
                ),
            ),
        )

    return AgentVariantSuggestion(
        from_variant=winner.variant_id,
        hero_title="AUTONOMOUS GROWTH AGENT // BUILD C",
        hero_subtitle=(
            f"New variant evolved from variant {winner.variant_id}, tuned from live "
            "scroll and click behaviour to drive deeper engagement."
        ),
        primary_cta=BUILD_C_PRIMARY_CTA,
        secondary_cta=BUILD_C_SECONDARY_CTA,
        badge=BUILD_C_BADGE,
        meta=SuggestionMeta(
            based_on=winner,
            explanation=(
                f"Heuristic agent: uses a score ({describe_rule(click_weight)}) to choose "
                "the best-performing variant and then proposes Build C from it."
            ),
        ),
    )


# ======================
# Landing page spec
# ======================

def build_fallback_landing_spec(
    stats: Sequence[SimpleStats],
    click_weight: float = DEFAULT_CLICK_WEIGHT,
    product_name: str = DEFAULT_PRODUCT_NAME,
) -> LandingPageSpec:
    """Full home-page content built around the best-scoring variant."""
    winner = pick_winner(stats, click_weight)

    if winner is None:
        strip = "Experiment-first landing • A/B variants with live telemetry"
        variant_label = "Variant A"
    else:
        avg_scroll = winner.avg_scroll if winner.avg_scroll is not None else 0.0
        strip = (
            f"Based on variant {winner.variant_id} · Scroll {avg_scroll:.1f}% · "
            f"Clicks {winner.clicks}"
        )
        variant_label = f"Variant {winner.variant_id}"

    return LandingPageSpec(
        hero=Hero(
            title="A landing page that rewrites itself from live behaviour.",
            subtitle=(
                f"Instead of shipping static copy, {product_name} watches how visitors "
                "scroll, click and drop off, then quietly evolves your hero, CTAs and "
                "above-the-fold layout based on what actually performs."
            ),
            primary_cta="View live dashboard",
            secondary_cta="See how it works",
            badge="Self-evolving website agent",
            strip=strip,
        ),
        system=SystemBlock(
            current_variant_label=variant_label,
            data_source_label="Redis events & variants",
            agent_label="Claude-powered evolution",
            description=(
                f"{product_name} doesn't replace your CMS. It sits in front of your "
                "marketing site and keeps answering one question: what should this "
                "page say right now?"
            ),
        ),
        pillars=[
            Pillar(
                label="Live traffic",
                title="Your traffic becomes training data.",
                body=(
                    "Every scroll, click and exit event is tracked with the active "
                    "variant ID and stored as clean analytics."
                ),
            ),
            Pillar(
                label="Analytics → agent",
                title="Behaviour becomes decisions.",
                body=(
                    "The agent reads engagement patterns per variant and infers which "
                    "stories keep people on the page."
                ),
            ),
            Pillar(
                label="New variants",
                title="Copy evolves on its own.",
                body=(
                    "The agent proposes new hero layouts and CTAs you can inspect, "
                    "approve or let auto-deploy."
                ),
            ),
        ],
        stack_points=[
            "Frontend: this landing page with a lightweight analytics hook.",
            "Storage: Redis collections for events, variants and landing builds.",
            "Agent: Claude turns behaviour into new hero concepts.",
            "Control: dashboard to see performance, approve variants or enable auto-mode.",
        ],
        edit_cards=[
            EditCard(
                title="Hero headline & subcopy",
                body="The core promise of your product, tuned from real traffic instead of guesswork.",
            ),
            EditCard(
                title="Primary & secondary CTAs",
                body="Button labels and framing that reflect what people actually click.",
            ),
            EditCard(
                title="Above-the-fold layout",
                body="The first screen visitors see, optimised to reduce bounce and drive scroll.",
            ),
            EditCard(
                title="Variant history",
                body="Every AI build is stored with context so you can promote, roll back or compare.",
            ),
        ],
    )


# ======================
# Persona pages
# ======================

HIGH_INTENT = "high-intent"
EXPLORERS = "explorers"
SKIMMERS = "skimmers"
LURKERS = "lurkers"

# Precedence for ties
PERSONA_ORDER = (HIGH_INTENT, EXPLORERS, SKIMMERS, LURKERS)

PERSONA_COPY: Dict[str, Dict[str, str]] = {
    HIGH_INTENT: {
        "name": "High-intent clickers",
        "headline": "Turn intent into action on every visit.",
        "pitch": "These visitors know what they want and click fast. {product} keeps the path to action short and the promise unmistakable.",
        "primary": "Start optimising high-intent traffic",
        "secondary": "See how it works for your funnel",
        "why": "They generate most of your clicks. Small wording changes in their path move conversion directly.",
        "bullets": "Shortens the route from hero to primary CTA|Tests CTA labels against real click-through|Keeps proof points next to every button",
    },
    EXPLORERS: {
        "name": "Explorers / deep readers",
        "headline": "Give deep readers a story worth finishing.",
        "pitch": "Explorers scroll most of the page before they decide. {product} shapes the narrative so every section earns the next scroll.",
        "primary": "Build a page for deep readers",
        "secondary": "Explore the agent's reasoning",
        "why": "They read everything and decide late. The order and depth of your sections matter more than the hero.",
        "bullets": "Orders sections by measured scroll depth|Adds detail where readers slow down|Places a CTA where attention peaks",
    },
    SKIMMERS: {
        "name": "Bouncers / skimmers",
        "headline": "Win the first five seconds.",
        "pitch": "Most visitors barely scroll. {product} rewrites the first screen until it holds attention long enough to matter.",
        "primary": "Fix my above-the-fold",
        "secondary": "See the bounce data",
        "why": "They leave before the second section. Everything they will ever see sits above the fold.",
        "bullets": "Tightens the headline to a single promise|Moves the primary CTA into the first screen|Tests shorter subcopy against live bounce rates",
    },
    LURKERS: {
        "name": "Lurkers",
        "headline": "Turn quiet interest into a first click.",
        "pitch": "Lurkers read halfway and never click. {product} finds the nudge that turns passive attention into a first interaction.",
        "primary": "Convert passive visitors",
        "secondary": "See where they stall",
        "why": "They are interested but unconvinced. A lower-commitment next step often unlocks them.",
        "bullets": "Introduces softer secondary CTAs|Surfaces social proof mid-page|Tests low-commitment offers against no offer",
    },
}


def infer_persona(summary: BehaviourSummary) -> str:
    """
    Dominant persona of a behaviour summary.

    Lurkers are the sessions that are neither skimmers nor deep readers.
    Ties resolve in PERSONA_ORDER.
    """
    lurkers = max(0, summary.total_sessions - summary.skimmers - summary.deep_readers)
    counts = {
        HIGH_INTENT: summary.clicky,
        EXPLORERS: summary.deep_readers,
        SKIMMERS: summary.skimmers,
        LURKERS: lurkers,
    }
    persona = PERSONA_ORDER[0]
    for candidate in PERSONA_ORDER[1:]:
        if counts[candidate] > counts[persona]:
            persona = candidate
    return persona


def _describe_summary(summary: BehaviourSummary) -> str:
    scroll = "no scroll data yet" if summary.avg_scroll_all is None else f"{summary.avg_scroll_all:.1f}% average scroll depth"
    return (
        f"Across {summary.total_sessions} recent sessions we measured {scroll} and "
        f"{summary.avg_clicks_all:.1f} clicks per session."
    )


def build_fallback_persona_page(
    summary: BehaviourSummary, product_name: str = DEFAULT_PRODUCT_NAME
) -> PersonaPage:
    """Persona page for the dominant persona of the summary."""
    persona = infer_persona(summary)
    copy = PERSONA_COPY[persona]

    return PersonaPage(
        slug=f"persona-{persona}",
        persona_name=copy["name"],
        page_title=f"{product_name} for {copy['name']}",
        hero_title=copy["headline"],
        hero_subtitle=copy["pitch"].format(product=product_name),
        primary_cta=copy["primary"],
        secondary_cta=copy["secondary"],
        sections=[
            PageSection(type="section", title="Why this persona matters", body=f"{copy['why']} {_describe_summary(summary)}"),
            PageSection(type="bullets", title=f"What {product_name} does for them", items=copy["bullets"].split("|")),
            PageSection(
                type="section",
                title="How it works behind the scenes",
                body=(
                    "Every visit is logged with its variant. The agent groups sessions by "
                    "behaviour, writes copy for the group that matters most and stores it "
                    "as a page you can review before it goes live."
                ),
            ),
            PageSection(
                type="cta",
                title="Ready to let your website adapt?",
                body="Promote this page, watch the numbers move, and let the next build start from what worked.",
            ),
        ],
    )


# ======================
# Landing builds
# ======================

def _build_focus(summary: BehaviourSummary) -> Tuple[str, str, List[str]]:
    """(focus name, hero title, bullets) for a landing build."""
    if summary.avg_scroll_all is None or summary.avg_scroll_all < 50:
        return (
            "sharper hero",
            "Say it in one line. Prove it in the next.",
            [
                "A single-promise headline above the fold",
                "Primary CTA visible without scrolling",
                "Proof points pulled up from lower sections",
            ],
        )
    if summary.avg_clicks_all < 1:
        return (
            "clearer calls to action",
            "You've read this far. Here's the next step.",
            [
                "CTAs repeated where readers slow down",
                "Action-first button labels",
                "One decision per section",
            ],
        )
    return (
        "deeper narrative",
        "The page that learns what your visitors want to read.",
        [
            "Longer story sections for engaged readers",
            "Case-study style proof mid-page",
            "A closing CTA that recaps the promise",
        ],
    )


def build_fallback_landing_page(
    summary: BehaviourSummary, product_name: str = DEFAULT_PRODUCT_NAME
) -> LandingBuildPage:
    """Experimental Build C landing page tuned from the behaviour summary."""
    focus, hero_title, bullets = _build_focus(summary)

    return LandingBuildPage(
        slug="build-c",
        name=f"Build C – {focus}",
        page_title=f"{product_name} · Build C",
        hero_title=hero_title,
        hero_subtitle=(
            f"{product_name} rewrites your landing page from live behaviour. "
            f"This build focuses on a {focus}."
        ),
        primary_cta="Start your first experiment",
        secondary_cta="See the live dashboard",
        sections=[
            PageSection(type="section", title="What we learned from your visitors", body=_describe_summary(summary)),
            PageSection(type="bullets", title="What this version focuses on", items=bullets),
            PageSection(
                type="section",
                title=f"How {product_name} uses live analytics",
                body=(
                    "Scroll depth and clicks are recorded per variant, aggregated per "
                    "session and turned into a new build. Nothing ships until you "
                    "promote it."
                ),
            ),
            PageSection(
                type="cta",
                title="Ready to evolve your site?",
                body="Promote Build C and let the next round of traffic decide what comes after it.",
            ),
        ],
    )
