# app/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from app.core.config import get_settings
import certifi

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None

CONNECT_TIMEOUT_MS = 6000


def get_db() -> AsyncIOMotorDatabase:
    if _db is None:
        raise RuntimeError("Mongo not connected: call app.db.mongo.connect() first")
    return _db


async def ping() -> None:
    """Round-trip to the server; raises on failure."""
    await get_db().client.admin.command("ping")


async def connect():
    """
    Build the Motor client for the catalog and embedding collections.
    A failed startup ping is only logged: Motor connects lazily and requests
    will surface CollaboratorUnavailableError until the cluster is reachable.
    """
    global _client, _db
    settings = get_settings()

    _client = AsyncIOMotorClient(
        settings.MONGO_URI,
        tlsCAFile=certifi.where(),          # Atlas TLS in slim containers
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=CONNECT_TIMEOUT_MS,
        connectTimeoutMS=CONNECT_TIMEOUT_MS,
    )
    _db = _client[settings.MONGO_DB]
    try:
        await ping()
        logger.info(f"Mongo connected db={settings.MONGO_DB}")
    except Exception as e:
        logger.warning(f"Mongo ping at startup failed, connecting lazily: {e}")


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
        logger.info("Mongo disconnected")
    _client = None
    _db = None
