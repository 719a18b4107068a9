from functools import lru_cache
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from recruitflow import config


@lru_cache(maxsize=1)
def get_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(config.MONGODB_URI, serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS)


# helper accessors
def get_collection(name: str) -> AsyncIOMotorCollection:
    return get_client()[config.MONGO_DB][name]


def get_parse_log_collection() -> AsyncIOMotorCollection:
    return get_collection("parse_logs")
