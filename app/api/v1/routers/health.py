# app/api/v1/routers/health.py
import time
from typing import Awaitable, Callable, Dict
from fastapi import APIRouter, Depends
from app.api.deps import embedding_index
from app.core.config import get_settings
from app.db import mongo
from app.db.redis import get_redis
from app.domain.services.vector_index_svc import EmbeddingIndexClient

router = APIRouter(tags=["health"])
START_TIME = time.time()

OK_VALUES = ("ok", "skipped", True)


async def _check_status(check: Callable[[], Awaitable[object]]) -> str:
    try:
        await check()
        return "ok"
    except Exception as e:
        return f"error: {e}"


async def _redis_status() -> str:
    r = get_redis()
    if r is None:
        return "skipped"
    return await _check_status(r.ping)


@router.get("/health")
async def health(index: EmbeddingIndexClient = Depends(embedding_index)):
    """
    Never fails itself: every dependency is checked and reported.
    status is "ok" only when Mongo, Redis (or skipped), the embedding index
    and the OpenAI key all check out.
    """
    settings = get_settings()
    deps: Dict[str, object] = {
        "mongodb": await _check_status(mongo.ping),
        "redis": await _redis_status(),
        "embedding_index": "ok" if await index.is_healthy() else "error",
        "openai_api_key_set": bool(settings.OPENAI_API_KEY),
    }
    status = "ok" if all(v in OK_VALUES for v in deps.values()) else "error"

    return {
        "status": status,
        "checks": {
            "app_name": settings.APP_NAME,
            "env": settings.APP_ENV,
            "version": settings.GIT_SHA,
            "uptime_seconds": int(time.time() - START_TIME),
            **deps,
        },
        "timestamp": int(time.time()),
    }
