"""
Variant lifecycle: testing -> live -> archived.

At most one variant is live at any time. Promotion and disabling are single
store transactions, so readers never observe zero-then-one or two live
variants half-way through a change.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from api.models import AgentVariantSuggestion, Variant, VariantPayload, VariantStatus, utc_now_iso
from core.store import SETTINGS, VARIANTS, DocumentNotFound, DocumentStore

logger = logging.getLogger(__name__)

LIVE_VARIANT_KEY = "liveVariant"

POINTER_FIELDS = ("heroTitle", "heroSubtitle", "primaryCta", "secondaryCta", "badge")


@dataclass
class DisableResult:
    disabled: List[str] = field(default_factory=list)

    @property
    def noop(self) -> bool:
        return not self.disabled


class VariantRegistry:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def create(
        self,
        payload: Union[AgentVariantSuggestion, VariantPayload],
        created_by: str = "ai",
    ) -> Variant:
        """Persist copy as a new variant in the testing state."""
        document = {
            **payload.to_dict(),
            "status": VariantStatus.TESTING.value,
            "createdBy": created_by,
            "createdAt": utc_now_iso(),
        }
        variant_id = await self.store.add(VARIANTS, document)
        logger.info(f"✅ Saved variant {variant_id} (testing, from {document.get('fromVariant')})")
        return Variant.model_validate({**document, "id": variant_id})

    async def get(self, variant_id: str) -> Optional[Variant]:
        document = await self.store.get(VARIANTS, variant_id)
        return Variant.model_validate(document) if document else None

    async def list(self) -> List[Variant]:
        documents = await self.store.list(VARIANTS, order_by="createdAt", descending=True)
        return [Variant.model_validate(d) for d in documents]

    async def get_live(self) -> Optional[Variant]:
        documents = await self.store.list(VARIANTS, where={"status": VariantStatus.LIVE.value}, limit=1)
        return Variant.model_validate(documents[0]) if documents else None

    async def get_live_pointer(self) -> Optional[dict]:
        """The settings document describing the promoted copy."""
        return await self.store.get(SETTINGS, LIVE_VARIANT_KEY)

    async def promote(self, variant_id: str) -> Variant:
        """
        Make one variant live and archive every other variant.

        The status changes and the live-variant pointer are written in one
        transaction.

        Raises:
            DocumentNotFound: if the variant does not exist
        """
        promoted_at = utc_now_iso()

        def plan(snapshot):
            variants = snapshot[VARIANTS]
            if variant_id not in variants:
                raise DocumentNotFound(VARIANTS, variant_id)

            chosen = variants[variant_id]
            writes = [(VARIANTS, variant_id, {
                **chosen,
                "status": VariantStatus.LIVE.value,
                "promotedAt": promoted_at,
            })]
            for doc_id, document in variants.items():
                if doc_id != variant_id and document.get("status") != VariantStatus.ARCHIVED.value:
                    writes.append((VARIANTS, doc_id, {**document, "status": VariantStatus.ARCHIVED.value}))

            pointer = {key: chosen.get(key) for key in POINTER_FIELDS}
            pointer.update(variantId=variant_id, promotedAt=promoted_at)
            writes.append((SETTINGS, LIVE_VARIANT_KEY, pointer))
            return writes

        writes = await self.store.transaction([VARIANTS, SETTINGS], plan)
        archived = sum(1 for collection, doc_id, _ in writes if collection == VARIANTS and doc_id != variant_id)
        logger.info(f"🚀 Promoted variant {variant_id} to live ({archived} archived)")
        return Variant.model_validate({**writes[0][2], "id": variant_id})

    async def disable_live(self) -> DisableResult:
        """
        Archive every live variant and clear the live-variant pointer.

        Nothing is written when no variant is live.
        """

        def plan(snapshot):
            live_ids = [
                doc_id
                for doc_id, document in snapshot[VARIANTS].items()
                if document.get("status") == VariantStatus.LIVE.value
            ]
            if not live_ids:
                return []
            writes = [
                (VARIANTS, doc_id, {**snapshot[VARIANTS][doc_id], "status": VariantStatus.ARCHIVED.value})
                for doc_id in live_ids
            ]
            writes.append((SETTINGS, LIVE_VARIANT_KEY, None))
            return writes

        writes = await self.store.transaction([VARIANTS, SETTINGS], plan)
        result = DisableResult(disabled=[doc_id for collection, doc_id, _ in writes if collection == VARIANTS])
        if result.noop:
            logger.info("No live variant to disable")
        else:
            logger.info(f"⏹️  Disabled live variant(s): {', '.join(result.disabled)}")
        return result
