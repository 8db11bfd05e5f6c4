# Agent package - analytics aggregation and copy generation
from .aggregator import compute_variant_stats, compute_session_stats, summarize_behaviour
from .heuristics import build_fallback_suggestion, pick_winner
from .suggestions import SuggestionAgent, AgentResult
from .variants import VariantRegistry
from .landing import LandingRegistry

__all__ = [
    "compute_variant_stats",
    "compute_session_stats",
    "summarize_behaviour",
    "build_fallback_suggestion",
    "pick_winner",
    "SuggestionAgent",
    "AgentResult",
    "VariantRegistry",
    "LandingRegistry",
]
