"""
Redis document store, variant lifecycle and landing page registry.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
import redis

from agent.landing import LandingRegistry
from agent.heuristics import build_fallback_landing_spec, build_fallback_persona_page
from agent.variants import VariantRegistry
from api.models import BehaviourSummary, VariantPayload, VariantStatus
from core import store as store_module
from core.store import EVENTS, PERSONA_PAGES, SETTINGS, VARIANTS, DocumentNotFound, StoreError, ts_score


def payload(title: str) -> VariantPayload:
    return VariantPayload(
        hero_title=title,
        hero_subtitle="Subtitle",
        primary_cta="Go",
        secondary_cta="Later",
    )


async def statuses(store):
    return {d["id"]: d["status"] for d in await store.list(VARIANTS)}


class TestDocumentStore:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        await store.set(SETTINGS, "agent", {"autoMode": True})
        assert await store.get(SETTINGS, "agent") == {"autoMode": True, "id": "agent"}
        assert await store.get(SETTINGS, "missing") is None

    @pytest.mark.asyncio
    async def test_recent_is_newest_first(self, store):
        for second in (3, 1, 4, 2):
            await store.add(EVENTS, {"ts": f"2024-05-01T10:00:0{second}+00:00", "n": second})

        recent = await store.recent(EVENTS, 3)
        assert [d["n"] for d in recent] == [4, 3, 2]

    @pytest.mark.asyncio
    async def test_recent_on_empty_collection(self, store):
        assert await store.recent(EVENTS, 10) == []

    @pytest.mark.asyncio
    async def test_list_filters_and_orders(self, store):
        await store.set(VARIANTS, "v1", {"status": "testing", "createdAt": "2024-01-01"})
        await store.set(VARIANTS, "v2", {"status": "live", "createdAt": "2024-01-03"})
        await store.set(VARIANTS, "v3", {"status": "testing", "createdAt": "2024-01-02"})

        testing = await store.list(VARIANTS, where={"status": "testing"}, order_by="createdAt", descending=True)
        assert [d["id"] for d in testing] == ["v3", "v1"]
        assert len(await store.list(VARIANTS, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_update_requires_existing_document(self, store):
        with pytest.raises(DocumentNotFound):
            await store.update(SETTINGS, "agent", {"autoMode": True})

    @pytest.mark.asyncio
    async def test_update_with_upsert_merges(self, store):
        await store.update(SETTINGS, "agent", {"autoMode": True}, upsert=True)
        await store.update(SETTINGS, "agent", {"lastRun": "now"})
        assert await store.get(SETTINGS, "agent") == {"autoMode": True, "lastRun": "now", "id": "agent"}

    @pytest.mark.asyncio
    async def test_failed_plan_writes_nothing(self, store):
        def plan(snapshot):
            raise StoreError("abort")

        with pytest.raises(StoreError):
            await store.transaction([SETTINGS], plan)
        assert await store.list(SETTINGS) == []

    @pytest.mark.asyncio
    async def test_plan_errors_are_not_retried(self, store):
        calls = []

        def plan(snapshot):
            calls.append(1)
            raise DocumentNotFound(SETTINGS, "x")

        with pytest.raises(DocumentNotFound):
            await store.transaction([SETTINGS], plan)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_conflicts_are_retried_then_give_up(self, store, monkeypatch):
        monkeypatch.setattr(store_module, "MAX_TRANSACTION_ATTEMPTS", 3)
        monkeypatch.setattr(store_module, "TRANSACTION_BACKOFF_MAX", 0)
        cycle = AsyncMock(side_effect=redis.WatchError("conflict"))
        monkeypatch.setattr(store, "_watch_and_apply", cycle)

        with pytest.raises(StoreError, match="kept conflicting"):
            await store.transaction([SETTINGS], lambda snapshot: [])
        assert cycle.await_count == 3

    @pytest.mark.asyncio
    async def test_conflict_then_success(self, store, monkeypatch):
        monkeypatch.setattr(store_module, "TRANSACTION_BACKOFF_MAX", 0)
        writes = [(SETTINGS, "agent", {"autoMode": True})]
        cycle = AsyncMock(side_effect=[redis.WatchError("conflict"), writes])
        monkeypatch.setattr(store, "_watch_and_apply", cycle)

        assert await store.transaction([SETTINGS], lambda snapshot: writes) == writes
        assert cycle.await_count == 2

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True

    def test_ts_score(self):
        assert ts_score("1970-01-01T00:01:00Z") == 60.0
        assert ts_score("1970-01-01T00:01:00") == 60.0
        assert ts_score("yesterday") == 0.0
        assert ts_score(None) == 0.0


class TestVariantRegistry:
    @pytest.mark.asyncio
    async def test_create_starts_in_testing(self, store):
        variant = await VariantRegistry(store).create(payload("One"), created_by="manual")

        assert variant.status == VariantStatus.TESTING
        assert variant.created_by == "manual"
        stored = await VariantRegistry(store).get(variant.id)
        assert stored.hero_title == "One"

    @pytest.mark.asyncio
    async def test_promote_leaves_exactly_one_live(self, store):
        registry = VariantRegistry(store)
        first = await registry.create(payload("One"))
        second = await registry.create(payload("Two"))
        third = await registry.create(payload("Three"))

        await registry.promote(first.id)
        promoted = await registry.promote(second.id)

        assert promoted.status == VariantStatus.LIVE
        assert await statuses(store) == {
            first.id: "archived",
            second.id: "live",
            third.id: "archived",
        }
        live = await registry.get_live()
        assert live.id == second.id

        pointer = await registry.get_live_pointer()
        assert pointer["variantId"] == second.id
        assert pointer["heroTitle"] == "Two"

    @pytest.mark.asyncio
    async def test_promote_unknown_variant(self, store):
        registry = VariantRegistry(store)
        existing = await registry.create(payload("One"))

        with pytest.raises(DocumentNotFound):
            await registry.promote("nope")
        assert await statuses(store) == {existing.id: "testing"}
        assert await registry.get_live_pointer() is None

    @pytest.mark.asyncio
    async def test_disable_live(self, store):
        registry = VariantRegistry(store)
        variant = await registry.create(payload("One"))
        await registry.promote(variant.id)

        result = await registry.disable_live()

        assert result.disabled == [variant.id]
        assert not result.noop
        assert await statuses(store) == {variant.id: "archived"}
        assert await registry.get_live() is None
        assert await registry.get_live_pointer() is None

    @pytest.mark.asyncio
    async def test_disable_without_live_variant_is_noop(self, store):
        registry = VariantRegistry(store)
        variant = await registry.create(payload("One"))

        result = await registry.disable_live()

        assert result.noop
        assert await statuses(store) == {variant.id: "testing"}

    @pytest.mark.asyncio
    async def test_concurrent_promotions_leave_one_live(self, store):
        registry = VariantRegistry(store)
        variants = [await registry.create(payload(f"Variant {i}")) for i in range(6)]

        promoted = await asyncio.gather(*(registry.promote(v.id) for v in variants))

        assert len(promoted) == 6
        live = [doc_id for doc_id, status in (await statuses(store)).items() if status == "live"]
        assert len(live) == 1
        pointer = await registry.get_live_pointer()
        assert pointer["variantId"] == live[0]

    @pytest.mark.asyncio
    async def test_concurrent_promote_and_disable_stay_consistent(self, store):
        registry = VariantRegistry(store)
        variants = [await registry.create(payload(f"Variant {i}")) for i in range(4)]

        await asyncio.gather(
            *(registry.promote(v.id) for v in variants),
            registry.disable_live(),
            *(registry.promote(v.id) for v in reversed(variants)),
        )

        live = [doc_id for doc_id, status in (await statuses(store)).items() if status == "live"]
        pointer = await registry.get_live_pointer()
        assert len(live) <= 1
        if live:
            assert pointer["variantId"] == live[0]
        else:
            assert pointer is None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store):
        registry = VariantRegistry(store)
        await store.set(VARIANTS, "old", {**payload("Old").to_dict(), "createdAt": "2024-01-01T00:00:00+00:00"})
        await store.set(VARIANTS, "new", {**payload("New").to_dict(), "createdAt": "2024-02-01T00:00:00+00:00"})

        assert [v.id for v in await registry.list()] == ["new", "old"]


class TestLandingRegistry:
    @pytest.mark.asyncio
    async def test_promote_spec_sets_active_landing(self, store):
        registry = LandingRegistry(store)
        spec = build_fallback_landing_spec([])

        slug = await registry.promote_spec(spec, slug="Spring Launch")

        assert slug == "spring-launch"
        active = await registry.get_active()
        assert active["slug"] == "spring-launch"
        assert active["spec"] == spec.to_dict()

    @pytest.mark.asyncio
    async def test_generated_slug(self, store):
        slug = await LandingRegistry(store).promote_spec(build_fallback_landing_spec([]))
        assert slug.startswith("landing-build-")

    @pytest.mark.asyncio
    async def test_save_generated_page(self, store):
        registry = LandingRegistry(store)
        summary = BehaviourSummary(total_sessions=2, skimmers=2)
        page = build_fallback_persona_page(summary)

        await registry.save_generated(PERSONA_PAGES, page, summary, "fallback")

        stored = await registry.get_page(PERSONA_PAGES, page.slug)
        assert stored["personaName"] == page.persona_name
        assert stored["behaviourSummary"]["totalSessions"] == 2
        assert stored["aiUsed"] == "fallback"

    @pytest.mark.asyncio
    async def test_get_page_rejects_other_collections(self, store):
        with pytest.raises(ValueError):
            await LandingRegistry(store).get_page(VARIANTS, "x")

    @pytest.mark.asyncio
    async def test_auto_mode(self, store):
        registry = LandingRegistry(store)
        assert await registry.get_auto_mode() is False
        await registry.set_auto_mode(True)
        assert await registry.get_auto_mode() is True
