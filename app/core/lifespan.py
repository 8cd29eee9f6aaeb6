# app/core/lifespan.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.db import mongo, redis as r
from app.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is required (catalog + embedding index)
    try:
        await mongo.connect()
    except Exception as e:
        logger.error(f"Mongo connection failed: {e}")
        raise

    # Redis is optional
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.warning("No REDIS_URL provided, skipping Redis connection")

    yield

    # --- Shutdown ---
    await r.disconnect()
    await mongo.disconnect()
    logger.info("Connections closed")
