# API package - FastAPI components
# The router lives in api.routes; import it from there to avoid import cycles
from .models import (
    AgentVariantSuggestion,
    AnalyticsEvent,
    LandingPageSpec,
    SimpleStats,
    Variant,
    VariantStats,
    VariantStatus,
)

__all__ = [
    "AgentVariantSuggestion",
    "AnalyticsEvent",
    "LandingPageSpec",
    "SimpleStats",
    "Variant",
    "VariantStats",
    "VariantStatus",
]
