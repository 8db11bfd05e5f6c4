"""
AI suggestion adapter.

Asks the text generator for new copy and validates the answer. Any failure
(no credential, failed call, unusable answer) falls back to the heuristic
generator; the reason is reported next to the result so callers can show
where the copy came from.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from api.models import (
    AgentVariantSuggestion,
    BehaviourSummary,
    LandingBuildPage,
    LandingPageSpec,
    PersonaPage,
    SimpleStats,
)
from agent import heuristics, prompts
from agent.aggregator import VARIANT_IDS
from utils.clients.anthropic import TextGenerationError, TextGenerator
from utils.parsing.json import parse_model_json

logger = logging.getLogger(__name__)

AI_USED = "ai"
FALLBACK_USED = "fallback"

MISSING_CREDENTIAL = "missing credential"
INVALID_RESPONSE = "invalid response shape"

T = TypeVar("T", bound=BaseModel)


@dataclass
class AgentResult(Generic[T]):
    """Generated value plus its provenance."""

    value: T
    ai_used: str
    ai_error: Optional[str] = None

    def provenance(self) -> Dict[str, Any]:
        return {"aiUsed": self.ai_used, "aiError": self.ai_error}


class AgentFailure(Exception):
    """Tagged reason why the AI answer cannot be used"""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class SuggestionAgent:
    """
    Produces copy suggestions from analytics, AI first, heuristics second.

    Args:
        generator: Text generation capability, or None when no credential
            is configured
        click_weight: Weight W used by the heuristic scorer
        product_name: Product name used in prompts and fallback copy
    """

    def __init__(
        self,
        generator: Optional[TextGenerator],
        click_weight: float = heuristics.DEFAULT_CLICK_WEIGHT,
        product_name: str = heuristics.DEFAULT_PRODUCT_NAME,
    ):
        self.generator = generator
        self.click_weight = click_weight
        self.product_name = product_name

    async def _ask(
        self,
        prompt: str,
        model: Type[T],
        repair: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    ) -> T:
        if self.generator is None:
            raise AgentFailure(MISSING_CREDENTIAL)

        try:
            text = await self.generator.generate(prompt)
        except TextGenerationError as e:
            logger.error(f"❌ AI call failed: {str(e)}")
            raise AgentFailure(f"call failed: {str(e)}") from e

        try:
            data = parse_model_json(text)
            if repair:
                data = repair(data)
            return model.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.warning(f"⚠️  AI response rejected for {model.__name__}: {str(e)}")
            raise AgentFailure(INVALID_RESPONSE) from e

    async def _generate(
        self,
        prompt: str,
        model: Type[T],
        fallback: Callable[[], T],
        repair: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    ) -> AgentResult[T]:
        try:
            value = await self._ask(prompt, model, repair)
        except AgentFailure as failure:
            logger.info(f"🔁 Using heuristic {model.__name__} ({failure.reason})")
            return AgentResult(fallback(), FALLBACK_USED, failure.reason)

        logger.info(f"✅ AI generated {model.__name__}")
        return AgentResult(value, AI_USED)

    # ======================
    # Operations
    # ======================

    async def suggest_variant(self, stats: Sequence[SimpleStats]) -> AgentResult[AgentVariantSuggestion]:
        """Build C hero suggestion from per-variant stats."""
        winner = heuristics.pick_winner(stats, self.click_weight)

        def repair(data: Dict[str, Any]) -> Dict[str, Any]:
            # fromVariant and meta are bookkeeping: fill them from the
            # heuristic winner instead of rejecting otherwise good copy
            from_variant = str(data.get("fromVariant") or "").strip().upper()
            if from_variant not in VARIANT_IDS:
                from_variant = winner.variant_id if winner else "A"

            meta = data.get("meta") if isinstance(data.get("meta"), dict) else {}
            try:
                based_on = SimpleStats.model_validate(meta["basedOn"]).to_dict()
            except (KeyError, ValidationError):
                based_on = winner.to_dict() if winner else None

            explanation = meta.get("explanation")
            if not isinstance(explanation, str) or not explanation.strip():
                explanation = "AI agent: proposed Build C from the aggregated A/B behaviour."

            return {
                **data,
                "fromVariant": from_variant,
                "meta": {"basedOn": based_on, "explanation": explanation},
            }

        return await self._generate(
            prompts.get_variant_prompt([s.to_dict() for s in stats], self.product_name),
            AgentVariantSuggestion,
            lambda: heuristics.build_fallback_suggestion(stats, self.click_weight),
            repair,
        )

    async def design_landing_spec(self, stats: Sequence[SimpleStats]) -> AgentResult[LandingPageSpec]:
        """Full home-page content from per-variant stats."""
        return await self._generate(
            prompts.get_landing_spec_prompt([s.to_dict() for s in stats], self.product_name),
            LandingPageSpec,
            lambda: heuristics.build_fallback_landing_spec(stats, self.click_weight, self.product_name),
        )

    async def design_persona_page(self, summary: BehaviourSummary) -> AgentResult[PersonaPage]:
        """Page for the dominant visitor persona."""
        return await self._generate(
            prompts.get_persona_page_prompt(summary.to_dict(), self.product_name),
            PersonaPage,
            lambda: heuristics.build_fallback_persona_page(summary, self.product_name),
        )

    async def design_landing_page(self, summary: BehaviourSummary) -> AgentResult[LandingBuildPage]:
        """Experimental landing build from the behaviour summary."""
        return await self._generate(
            prompts.get_landing_page_prompt(summary.to_dict(), self.product_name),
            LandingBuildPage,
            lambda: heuristics.build_fallback_landing_page(summary, self.product_name),
        )
