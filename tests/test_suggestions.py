"""
AI-first suggestion agent with heuristic fallback.
"""

import json

import pytest

from agent.heuristics import build_fallback_suggestion
from agent.suggestions import AI_USED, FALLBACK_USED, INVALID_RESPONSE, MISSING_CREDENTIAL, SuggestionAgent
from api.models import BehaviourSummary
from conftest import FakeGenerator
from utils.clients.anthropic import GenerationTimeout, GenerationUnavailable

VALID_SUGGESTION = {
    "fromVariant": "B",
    "heroTitle": "YOUR SITE, REWRITTEN BY TRAFFIC",
    "heroSubtitle": "Build C keeps the deep-scroll narrative of B.",
    "primaryCta": "Start evolving",
    "secondaryCta": "Read the logs",
    "badge": "BUILD C",
    "meta": {
        "basedOn": {"variantId": "B", "avgScroll": 90, "clicks": 0},
        "explanation": "B held attention longest.",
    },
}

VALID_PAGE = {
    "slug": "Build C!",
    "name": "Build C – higher intent",
    "pageTitle": "cMindX · Build C",
    "heroTitle": "Hero",
    "heroSubtitle": "Sub",
    "primaryCta": "Go",
    "secondaryCta": "Later",
    "sections": [{"type": "cta", "title": "Ready?", "body": "Go now."}],
}


@pytest.fixture
def summary():
    return BehaviourSummary(total_sessions=5, avg_scroll_all=40.0, avg_clicks_all=0.4, skimmers=3)


class TestVariantSuggestion:
    @pytest.mark.asyncio
    async def test_missing_credential_falls_back(self, ab_stats):
        result = await SuggestionAgent(None).suggest_variant(ab_stats)

        assert result.ai_used == FALLBACK_USED
        assert result.ai_error == MISSING_CREDENTIAL
        assert result.value == build_fallback_suggestion(ab_stats)
        assert result.provenance() == {"aiUsed": "fallback", "aiError": "missing credential"}

    @pytest.mark.asyncio
    async def test_failed_call_falls_back_with_reason(self, ab_stats):
        generator = FakeGenerator(error=GenerationUnavailable("Claude request failed: overloaded"))
        result = await SuggestionAgent(generator).suggest_variant(ab_stats)

        assert result.ai_used == FALLBACK_USED
        assert result.ai_error == "call failed: Claude request failed: overloaded"
        assert result.value.from_variant == "B"

    @pytest.mark.asyncio
    async def test_timeout_is_a_failed_call(self, ab_stats):
        generator = FakeGenerator(error=GenerationTimeout("timed out"))
        result = await SuggestionAgent(generator).suggest_variant(ab_stats)
        assert result.ai_error == "call failed: timed out"

    @pytest.mark.asyncio
    async def test_missing_field_is_invalid_shape(self, ab_stats):
        answer = {k: v for k, v in VALID_SUGGESTION.items() if k != "heroTitle"}
        result = await SuggestionAgent(FakeGenerator(json.dumps(answer))).suggest_variant(ab_stats)

        assert result.ai_used == FALLBACK_USED
        assert result.ai_error == INVALID_RESPONSE
        assert result.value.hero_title == "AUTONOMOUS GROWTH AGENT // BUILD C"

    @pytest.mark.asyncio
    async def test_unparsable_answer_is_invalid_shape(self, ab_stats):
        result = await SuggestionAgent(FakeGenerator("I would rather not")).suggest_variant(ab_stats)
        assert result.ai_error == INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_fenced_answer_is_accepted(self, ab_stats):
        generator = FakeGenerator(f"```json\n{json.dumps(VALID_SUGGESTION)}\n```")
        result = await SuggestionAgent(generator).suggest_variant(ab_stats)

        assert result.ai_used == AI_USED
        assert result.ai_error is None
        assert result.value.hero_title == "YOUR SITE, REWRITTEN BY TRAFFIC"
        assert result.value.meta.based_on.avg_scroll == 90

    @pytest.mark.asyncio
    async def test_prompt_carries_stats(self, ab_stats):
        generator = FakeGenerator(json.dumps(VALID_SUGGESTION))
        await SuggestionAgent(generator, product_name="Acme").suggest_variant(ab_stats)

        (prompt,) = generator.prompts
        assert "Acme" in prompt
        assert '"avgScroll": 90.0' in prompt

    @pytest.mark.asyncio
    async def test_bookkeeping_fields_are_repaired(self, ab_stats):
        answer = {**VALID_SUGGESTION, "fromVariant": "c"}
        del answer["meta"]
        result = await SuggestionAgent(FakeGenerator(json.dumps(answer))).suggest_variant(ab_stats)

        assert result.ai_used == AI_USED
        assert result.value.from_variant == "B"
        assert result.value.meta.based_on == ab_stats[1]
        assert result.value.meta.explanation

    @pytest.mark.asyncio
    async def test_blank_copy_is_rejected(self, ab_stats):
        answer = {**VALID_SUGGESTION, "primaryCta": "   "}
        result = await SuggestionAgent(FakeGenerator(json.dumps(answer))).suggest_variant(ab_stats)
        assert result.ai_error == INVALID_RESPONSE


class TestLandingSpec:
    @pytest.mark.asyncio
    async def test_fallback_spec(self, ab_stats):
        result = await SuggestionAgent(None, product_name="Acme").design_landing_spec(ab_stats)

        assert result.ai_used == FALLBACK_USED
        assert result.value.hero.strip.startswith("Based on variant B")

    @pytest.mark.asyncio
    async def test_incomplete_spec_is_rejected(self, ab_stats):
        generator = FakeGenerator(json.dumps({"hero": {"title": "Only a title"}}))
        result = await SuggestionAgent(generator).design_landing_spec(ab_stats)
        assert result.ai_error == INVALID_RESPONSE


class TestGeneratedPages:
    @pytest.mark.asyncio
    async def test_persona_page_falls_back(self, summary):
        generator = FakeGenerator(error=GenerationUnavailable("down"))
        result = await SuggestionAgent(generator).design_persona_page(summary)

        assert result.ai_used == FALLBACK_USED
        assert result.value.slug == "persona-skimmers"

    @pytest.mark.asyncio
    async def test_landing_page_slug_is_normalized(self, summary):
        result = await SuggestionAgent(FakeGenerator(json.dumps(VALID_PAGE))).design_landing_page(summary)

        assert result.ai_used == AI_USED
        assert result.value.slug == "build-c"
        assert result.value.sections[0].type == "cta"

    @pytest.mark.asyncio
    async def test_unknown_section_type_is_rejected(self, summary):
        page = {**VALID_PAGE, "sections": [{"type": "carousel", "title": "Nope"}]}
        result = await SuggestionAgent(FakeGenerator(json.dumps(page))).design_landing_page(summary)

        assert result.ai_error == INVALID_RESPONSE
        assert result.value.slug == "build-c"
