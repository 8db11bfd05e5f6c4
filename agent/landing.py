"""
Landing pages, persona pages and the agent settings documents.
"""

import logging
import time
from typing import Any, Dict, Optional

from api.models import BehaviourSummary, GeneratedPage, LandingPageSpec, slugify, utc_now_iso
from core.store import LANDING_PAGES, PERSONA_PAGES, SETTINGS, DocumentStore

logger = logging.getLogger(__name__)

ACTIVE_LANDING_KEY = "landingPage"
AGENT_SETTINGS_KEY = "agent"

PAGE_COLLECTIONS = (LANDING_PAGES, PERSONA_PAGES)


class LandingRegistry:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def save_generated(
        self,
        collection: str,
        page: GeneratedPage,
        summary: BehaviourSummary,
        ai_used: str,
    ) -> Dict[str, Any]:
        """Store a generated page under its slug, replacing any previous build."""
        document = {
            **page.to_dict(),
            "behaviourSummary": summary.to_dict(),
            "aiUsed": ai_used,
            "createdAt": utc_now_iso(),
        }
        await self.store.set(collection, page.slug, document)
        logger.info(f"✅ Saved {collection}/{page.slug}")
        return document

    async def get_page(self, collection: str, slug: str) -> Optional[Dict[str, Any]]:
        if collection not in PAGE_COLLECTIONS:
            raise ValueError(f"Not a page collection: {collection}")
        return await self.store.get(collection, slug)

    async def promote_spec(
        self,
        spec: LandingPageSpec,
        slug: Optional[str] = None,
        source: str = "agent",
    ) -> str:
        """
        Save a landing spec and make it the active home page.

        Both documents are written in one batch. Without a slug a
        timestamped one is generated.
        """
        slug = slugify(slug or "") or f"landing-build-{int(time.time())}"
        now = utc_now_iso()
        spec_data = spec.to_dict()

        await self.store.batch([
            (LANDING_PAGES, slug, {"slug": slug, "spec": spec_data, "createdAt": now, "source": source}),
            (SETTINGS, ACTIVE_LANDING_KEY, {"slug": slug, "spec": spec_data, "promotedAt": now}),
        ])
        logger.info(f"🚀 Landing spec {slug} is now active")
        return slug

    async def get_active(self) -> Optional[Dict[str, Any]]:
        return await self.store.get(SETTINGS, ACTIVE_LANDING_KEY)

    async def get_auto_mode(self) -> bool:
        document = await self.store.get(SETTINGS, AGENT_SETTINGS_KEY)
        return bool(document and document.get("autoMode"))

    async def set_auto_mode(self, enabled: bool) -> bool:
        await self.store.update(SETTINGS, AGENT_SETTINGS_KEY, {"autoMode": enabled}, upsert=True)
        logger.info(f"Agent auto mode {'enabled' if enabled else 'disabled'}")
        return enabled
