"""MongoDB Client - Shared connection, collections and indexes"""
from typing import Any, Dict, List, Optional, Tuple
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# One client per process
_client: Optional[MongoClient] = None

# (keys, options) per collection setting name
_INDEXES: Dict[str, List[Tuple[Any, Dict[str, Any]]]] = {
    "workflows_collection": [
        ("workflow_id", {"unique": True}),
        # Codes are assigned after validation; documents without one stay out of the index
        ([("company_id", ASCENDING), ("code", ASCENDING)],
         {"unique": True, "partialFilterExpression": {"code": {"$type": "string"}}}),
        ([("company_id", ASCENDING), ("name", ASCENDING)], {}),
        ([("company_id", ASCENDING), ("is_active", ASCENDING), ("is_draft", ASCENDING),
          ("priority", ASCENDING), ("created_at", DESCENDING)], {}),
        ("departments", {}),
        ("categories", {}),
    ],
    # Requisitions belong to the host system; only the lookups made here are indexed
    "requisitions_collection": [
        ([("workflow_id", ASCENDING), ("status", ASCENDING)], {}),
        ([("workflow_id", ASCENDING), ("created_at", DESCENDING)], {}),
    ],
}


def get_client() -> MongoClient:
    """Get or create the MongoDB client, failing fast if the server is unreachable"""
    global _client
    if _client is None:
        client = MongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
        )
        try:
            client.admin.command("ping")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}", extra={"database": settings.mongo_db})
            client.close()
            raise
        logger.info("Connected to MongoDB", extra={"database": settings.mongo_db})
        _client = client
    return _client


def get_database() -> Database:
    return get_client()[settings.mongo_db]


def get_collection(name: str) -> Collection:
    """Collection of the configured database"""
    return get_database()[name]


def close_connection() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")


def create_indexes() -> None:
    """Create the indexes workflow lookups, matching and statistics rely on"""
    db = get_database()
    for setting_name, indexes in _INDEXES.items():
        collection = db[getattr(settings, setting_name)]
        for keys, options in indexes:
            collection.create_index(keys, **options)
        logger.info(f"Indexes ensured on {collection.name}", extra={"indexes": len(indexes)})


def health_check() -> Dict[str, Any]:
    """Ping the server; never raises"""
    try:
        get_client().admin.command("ping")
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {"status": "unhealthy", "database": settings.mongo_db, "error": str(e)}
    return {
        "status": "healthy",
        "database": settings.mongo_db,
        "collections": [settings.workflows_collection, settings.requisitions_collection],
    }
