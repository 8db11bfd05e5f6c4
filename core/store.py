"""
Redis document store for the cMindX agent service
Handles JSON documents grouped in collections, newest-first event reads
and atomic multi-document writes
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import redis
import redis.asyncio as aioredis
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

logger = logging.getLogger(__name__)

# Collection names
EVENTS = "events"
VARIANTS = "variants"
LANDING_PAGES = "landingPages"
PERSONA_PAGES = "personaPages"
SETTINGS = "settings"

# (collection, document id, document) - a None document deletes it
Write = Tuple[str, str, Optional[Dict[str, Any]]]

# Optimistic-lock retries (jittered exponential backoff, seconds)
MAX_TRANSACTION_ATTEMPTS = 30
TRANSACTION_BACKOFF_MULTIPLIER = 0.01
TRANSACTION_BACKOFF_MAX = 0.5


class StoreError(RuntimeError):
    """Raised when a store operation cannot be completed"""


class DocumentNotFound(StoreError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


def ts_score(value: Any) -> float:
    """Sort score (epoch seconds) for an ISO-8601 timestamp; 0.0 if unparsable."""
    if not isinstance(value, str):
        return 0.0
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


class DocumentStore:
    """
    Collections of JSON documents kept in Redis hashes.

    Every collection is a hash ``{prefix}:{collection}`` of id -> JSON.
    Documents carrying a ``ts`` field are also indexed in the sorted set
    ``{prefix}:{collection}:ts`` so the newest N can be read cheaply.
    """

    def __init__(self, client: aioredis.Redis, prefix: str = "cmindx"):
        self.client = client
        self.prefix = prefix

    def _key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}"

    def _index_key(self, collection: str) -> str:
        return f"{self.prefix}:{collection}:ts"

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[Dict[str, Any]]:
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Skipping undecodable document")
            return None
        return value if isinstance(value, dict) else None

    def _decode_all(self, raw: Dict[str, str]) -> Dict[str, Dict[str, Any]]:
        documents = {}
        for doc_id, value in raw.items():
            document = self._decode(value)
            if document is not None:
                documents[doc_id] = document
        return documents

    def _queue_write(self, pipe, collection: str, doc_id: str, document: Optional[Dict[str, Any]]):
        if document is None:
            pipe.hdel(self._key(collection), doc_id)
            pipe.zrem(self._index_key(collection), doc_id)
            return
        document = {k: v for k, v in document.items() if k != "id"}
        pipe.hset(self._key(collection), doc_id, json.dumps(document))
        if "ts" in document:
            pipe.zadd(self._index_key(collection), {doc_id: ts_score(document["ts"])})

    # ======================
    # Single-document operations
    # ======================

    async def ping(self) -> bool:
        """Check if Redis is available"""
        try:
            return bool(await self.client.ping())
        except redis.RedisError:
            return False

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Read one document; the returned dict carries its id under ``id``."""
        document = self._decode(await self.client.hget(self._key(collection), doc_id))
        if document is None:
            return None
        return {**document, "id": doc_id}

    async def set(self, collection: str, doc_id: str, document: Dict[str, Any]) -> str:
        """Create or overwrite a document."""
        await self.batch([(collection, doc_id, document)])
        return doc_id

    async def add(self, collection: str, document: Dict[str, Any]) -> str:
        """Create a document under a fresh id and return the id."""
        return await self.set(collection, uuid.uuid4().hex, document)

    async def update(
        self,
        collection: str,
        doc_id: str,
        fields: Dict[str, Any],
        upsert: bool = False,
    ) -> Dict[str, Any]:
        """
        Merge fields into an existing document.

        Raises:
            DocumentNotFound: if the document is missing and upsert is False
        """

        def plan(snapshot):
            current = snapshot[collection].get(doc_id)
            if current is None and not upsert:
                raise DocumentNotFound(collection, doc_id)
            return [(collection, doc_id, {**(current or {}), **fields})]

        writes = await self.transaction([collection], plan)
        return {**writes[0][2], "id": doc_id}

    # ======================
    # Queries
    # ======================

    async def list(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Read documents matching simple equality filters.

        Args:
            collection: Collection name
            where: Field -> value equality filters (all must match)
            order_by: Field to sort on (missing values sort first)
            descending: Reverse the sort order
            limit: Maximum number of documents returned

        Returns:
            List of documents, each carrying its id under ``id``
        """
        raw = await self.client.hgetall(self._key(collection))
        documents = [
            {**document, "id": doc_id}
            for doc_id, document in self._decode_all(raw).items()
            if all(document.get(field) == value for field, value in (where or {}).items())
        ]
        if order_by:
            documents.sort(key=lambda d: str(d.get(order_by) or ""), reverse=descending)
        if limit is not None:
            documents = documents[:limit]
        return documents

    async def recent(self, collection: str, limit: int) -> List[Dict[str, Any]]:
        """Newest-first documents by ``ts``, at most ``limit`` of them."""
        if limit <= 0:
            return []
        ids = await self.client.zrevrange(self._index_key(collection), 0, limit - 1)
        if not ids:
            return []
        values = await self.client.hmget(self._key(collection), ids)
        documents = []
        for doc_id, value in zip(ids, values):
            document = self._decode(value)
            if document is not None:
                documents.append({**document, "id": doc_id})
        return documents

    # ======================
    # Atomic writes
    # ======================

    async def batch(self, writes: Sequence[Write]):
        """Apply blind writes all-or-nothing (MULTI/EXEC)."""
        async with self.client.pipeline(transaction=True) as pipe:
            for collection, doc_id, document in writes:
                self._queue_write(pipe, collection, doc_id, document)
            await pipe.execute()

    async def transaction(
        self,
        collections: Sequence[str],
        plan: Callable[[Dict[str, Dict[str, Dict[str, Any]]]], List[Write]],
    ) -> List[Write]:
        """
        Read-modify-write over whole collections with optimistic locking.

        The collections are WATCHed and read into a snapshot
        ``{collection: {id: document}}``; ``plan`` turns the snapshot into
        writes which are applied in one MULTI/EXEC. A concurrent change to
        any watched collection restarts the cycle after a jittered
        exponential backoff. Exceptions raised by ``plan`` abort the
        transaction without writing anything.

        Returns:
            The writes that were applied

        Raises:
            StoreError: if the cycle keeps conflicting after
                MAX_TRANSACTION_ATTEMPTS attempts
        """
        names = ", ".join(collections)

        def log_conflict(retry_state):
            logger.warning(
                f"🔄 Concurrent write on {names}, retrying "
                f"(attempt {retry_state.attempt_number}/{MAX_TRANSACTION_ATTEMPTS})"
            )

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(MAX_TRANSACTION_ATTEMPTS),
                wait=wait_random_exponential(
                    multiplier=TRANSACTION_BACKOFF_MULTIPLIER, max=TRANSACTION_BACKOFF_MAX
                ),
                retry=retry_if_exception_type(redis.WatchError),
                before_sleep=log_conflict,
            ):
                with attempt:
                    return await self._watch_and_apply(collections, plan)
        except RetryError as e:
            raise StoreError(f"Transaction on {names} kept conflicting") from e

    async def _watch_and_apply(self, collections: Sequence[str], plan) -> List[Write]:
        """One WATCH / read / plan / MULTI-EXEC cycle; raises WatchError on conflict."""
        keys = [self._key(collection) for collection in collections]
        async with self.client.pipeline(transaction=True) as pipe:
            await pipe.watch(*keys)
            snapshot = {}
            for collection, key in zip(collections, keys):
                snapshot[collection] = self._decode_all(await pipe.hgetall(key))
            writes = plan(snapshot)
            pipe.multi()
            for collection, doc_id, document in writes:
                self._queue_write(pipe, collection, doc_id, document)
            await pipe.execute()
            return writes

    # ======================
    # Diagnostics
    # ======================

    async def get_stats(self) -> dict:
        """
        Get Redis connection and memory stats.

        Returns:
            Dictionary with Redis statistics
        """
        try:
            info = await self.client.info()
            return {
                "connected_clients": info.get("connected_clients", 0),
                "used_memory_human": info.get("used_memory_human", "unknown"),
                "total_commands_processed": info.get("total_commands_processed", 0),
            }
        except redis.RedisError as e:
            logger.error(f"Failed to get Redis stats: {str(e)}")
            return {"error": str(e)}

    async def close(self):
        """Close the Redis connection pool"""
        try:
            await self.client.aclose()
            logger.info("Redis connection closed")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {str(e)}")


def connect_store(redis_url: str, prefix: str = "cmindx", max_connections: int = 20) -> DocumentStore:
    """
    Create a document store with its own connection pool.

    The connection is established lazily on the first command.
    """
    client = aioredis.Redis.from_url(
        redis_url,
        max_connections=max_connections,
        decode_responses=True,  # Auto-decode bytes to strings
        socket_timeout=5,
        socket_connect_timeout=5,
        retry_on_timeout=True,
    )
    return DocumentStore(client, prefix=prefix)
