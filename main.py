"""
cMindX Agent Service - Main Application

FastAPI backend for a self-evolving marketing site: it collects A/B
behaviour events, aggregates them into per-variant statistics and asks
Claude (Anthropic) for new hero copy, falling back to a deterministic
heuristic generator whenever the AI is unavailable.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before settings are read
load_dotenv()

from api.errors import register_error_handlers  # noqa: E402
from api.routes import router  # noqa: E402
from agent.suggestions import SuggestionAgent  # noqa: E402
from core.config import settings  # noqa: E402
from core.logging import setup_logging  # noqa: E402
from core.store import connect_store  # noqa: E402
from utils.clients.anthropic import build_text_generator  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the per-process resources: document store and copy agent.

    Resources already placed on app.state (tests, embedding) are left alone.
    """
    setup_logging()
    owned = []

    if getattr(app.state, "store", None) is None:
        app.state.store = connect_store(
            settings.REDIS_URL,
            prefix=settings.REDIS_KEY_PREFIX,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
        )
        owned.append(app.state.store)
        if await app.state.store.ping():
            logger.info(f"✅ Redis connected successfully: {settings.REDIS_URL}")
        else:
            logger.error(f"❌ Redis not reachable at {settings.REDIS_URL}")

    if getattr(app.state, "agent", None) is None:
        generator = build_text_generator(settings)
        app.state.agent = SuggestionAgent(
            generator,
            click_weight=settings.SCORE_CLICK_WEIGHT,
            product_name=settings.PRODUCT_NAME,
        )
        if generator is not None:
            owned.append(generator)

    yield

    for resource in owned:
        await resource.close()
    if owned:
        app.state.store = None
        app.state.agent = None


# Initialize FastAPI app
app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include all routes
app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, timeout_keep_alive=60)
