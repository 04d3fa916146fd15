"""
MongoDB Connection Utility

MongoDB stores:
- Users and login sessions
- Candidate profiles (AI-parsed or edited)
- Job postings
- Match history (cached AI match results per candidate)

WHY MongoDB for these?
- Key-value access by entity id covers every query we make
- AI outputs are stored as documents without schema migrations
- Single-document writes are atomic, which is all the consistency we need
"""
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from zhide.core.config import Settings
from zhide.core.logging import get_logger

logger = get_logger(__name__)

SESSION_TTL_SECONDS = 24 * 60 * 60

# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "sessions": "sessions",
    "candidates": "candidates",
    "jobs": "jobs",
    "match_history": "match_history",
}


def create_mongo_client(settings: Settings) -> MongoClient:
    """
    Create a MongoDB client. Connection pooling is handled internally by pymongo
    and no connection is opened until the first operation.
    """
    return MongoClient(settings.mongodb_uri, tz_aware=True)


def get_mongo_db(client: MongoClient, settings: Settings) -> Database:
    """Get the application database"""
    return client[settings.mongodb_db]


def test_mongo_connection(client: MongoClient) -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


def init_mongo_indexes(db: Database) -> None:
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db[COLLECTIONS["users"]].create_index("email", unique=True)

    # Sessions expire 24h after creation
    db[COLLECTIONS["sessions"]].create_index(
        "created_at", expireAfterSeconds=SESSION_TTL_SECONDS
    )

    # One profile per candidate account; pool candidates have no user_id
    db[COLLECTIONS["candidates"]].create_index(
        "user_id", unique=True, partialFilterExpression={"user_id": {"$type": "string"}}
    )
    db[COLLECTIONS["candidates"]].create_index([("updated_at", ASCENDING)])

    db[COLLECTIONS["jobs"]].create_index([("active", ASCENDING), ("post_date", ASCENDING)])

    logger.info("MongoDB indexes created successfully")
