import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel
from typing_extensions import Annotated

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def slugify(value: str) -> str:
    """Lower-case kebab-case slug suitable for a URL segment."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Analytics
class AnalyticsEvent(CamelModel):
    id: Optional[str] = None  # store-assigned, absent before ingestion
    session_id: str = "unknown"
    event_type: str = "unknown"
    payload: Dict[str, Any] = Field(default_factory=dict)
    ts: str = Field(default_factory=utc_now_iso)
    variant_id: Optional[str] = None

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "AnalyticsEvent":
        """Build an event from a stored document, tolerating null fields."""
        cleaned = {k: v for k, v in data.items() if v is not None}
        if not isinstance(cleaned.get("payload", {}), dict):
            cleaned["payload"] = {}
        for key in ("sessionId", "eventType"):
            if key in cleaned:
                cleaned[key] = str(cleaned[key])
        return cls.model_validate(cleaned)


class EventIn(CamelModel):
    session_id: NonEmptyStr
    event_type: NonEmptyStr
    payload: Dict[str, Any] = Field(default_factory=dict)
    ts: Optional[datetime] = None
    variant_id: Optional[str] = None

    def to_event(self) -> AnalyticsEvent:
        ts = self.ts or datetime.now(timezone.utc)
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return AnalyticsEvent(
            session_id=self.session_id,
            event_type=self.event_type,
            payload=self.payload,
            ts=ts.isoformat(),
            variant_id=self.variant_id,
        )


class VariantStats(CamelModel):
    variant_id: str
    total_events: int = 0
    sessions: int = 0
    scroll_events: int = 0
    avg_scroll_percent: Optional[float] = None
    click_events: int = 0


class SimpleStats(CamelModel):
    variant_id: str
    avg_scroll: Optional[float] = None
    clicks: int = 0


class SessionStats(CamelModel):
    session_id: str
    avg_scroll: Optional[float] = None
    clicks: int = 0


class BehaviourSummary(CamelModel):
    total_sessions: int
    avg_scroll_all: Optional[float] = None
    avg_clicks_all: float = 0.0
    skimmers: int = 0
    deep_readers: int = 0
    clicky: int = 0


# Variants
class VariantStatus(str, Enum):
    TESTING = "testing"
    LIVE = "live"
    ARCHIVED = "archived"


class SuggestionMeta(CamelModel):
    based_on: Optional[SimpleStats] = None
    explanation: str = ""


class AgentVariantSuggestion(CamelModel):
    from_variant: str
    hero_title: NonEmptyStr
    hero_subtitle: NonEmptyStr
    primary_cta: NonEmptyStr
    secondary_cta: NonEmptyStr
    badge: NonEmptyStr
    meta: SuggestionMeta


class VariantPayload(CamelModel):
    """Copy fields an operator submits when saving or promoting a variant."""

    hero_title: NonEmptyStr
    hero_subtitle: NonEmptyStr
    primary_cta: NonEmptyStr
    secondary_cta: NonEmptyStr
    badge: str = "AI Variant"
    from_variant: Optional[str] = None
    meta: Optional[SuggestionMeta] = None


class Variant(CamelModel):
    id: str
    hero_title: str
    hero_subtitle: str
    primary_cta: str
    secondary_cta: str
    badge: str = "AI Variant"
    status: VariantStatus = VariantStatus.TESTING
    created_by: str = "ai"
    from_variant: Optional[str] = None
    meta: Optional[SuggestionMeta] = None
    created_at: str = Field(default_factory=utc_now_iso)


class PromoteVariantRequest(CamelModel):
    variant_id: Optional[str] = None
    variant: Optional[VariantPayload] = None


# Landing page spec (the home page content blocks)
class Hero(CamelModel):
    title: NonEmptyStr
    subtitle: NonEmptyStr
    primary_cta: NonEmptyStr
    secondary_cta: NonEmptyStr
    badge: NonEmptyStr
    strip: NonEmptyStr


class SystemBlock(CamelModel):
    current_variant_label: NonEmptyStr
    data_source_label: NonEmptyStr
    agent_label: NonEmptyStr
    description: NonEmptyStr


class Pillar(CamelModel):
    label: NonEmptyStr
    title: NonEmptyStr
    body: NonEmptyStr


class EditCard(CamelModel):
    title: NonEmptyStr
    body: NonEmptyStr


class LandingPageSpec(CamelModel):
    hero: Hero
    system: SystemBlock
    pillars: List[Pillar]
    stack_points: List[NonEmptyStr]
    edit_cards: List[EditCard]


class PromoteLandingRequest(CamelModel):
    spec: Optional[LandingPageSpec] = None
    slug: Optional[str] = None
    source: str = "agent"


# Generated pages (landing builds and persona pages)
class PageSection(CamelModel):
    type: Literal["section", "bullets", "cta"]
    title: NonEmptyStr
    body: Optional[str] = None
    items: Optional[List[str]] = None


class GeneratedPage(CamelModel):
    slug: NonEmptyStr
    page_title: NonEmptyStr
    hero_title: NonEmptyStr
    hero_subtitle: NonEmptyStr
    primary_cta: NonEmptyStr
    secondary_cta: NonEmptyStr
    sections: List[PageSection] = Field(default_factory=list)

    @field_validator("slug")
    @classmethod
    def _kebab_slug(cls, value: str) -> str:
        slug = slugify(value)
        if not slug:
            raise ValueError("slug must contain at least one letter or digit")
        return slug


class LandingBuildPage(GeneratedPage):
    name: NonEmptyStr


class PersonaPage(GeneratedPage):
    persona_name: NonEmptyStr


class AutoModeRequest(CamelModel):
    auto_mode: bool
