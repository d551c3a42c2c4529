import logging
import os

import motor.motor_asyncio
from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING

load_dotenv()

logger = logging.getLogger(__name__)

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DATABASE_NAME", "recipedia")
MONGODB_TLS = os.getenv("MONGODB_TLS", "False").lower() == "true"

# ASYNC MongoDB client (Motor), connects lazily on first operation
client = motor.motor_asyncio.AsyncIOMotorClient(
    MONGODB_URI,
    tls=MONGODB_TLS,
    serverSelectionTimeoutMS=30000,
)
db = client[DB_NAME]

RECIPES = "recipes"
USERS = "users"


def get_database():
    """FastAPI dependency returning the application database (overridden in tests)"""
    return db


async def ensure_indexes(database) -> None:
    """
    Create the indexes the recipe and user queries rely on.
    Failures are logged, the app keeps serving.
    """
    try:
        recipes = database[RECIPES]
        await recipes.create_index([("createdAt", DESCENDING)])
        await recipes.create_index([("createdBy", ASCENDING), ("createdAt", DESCENDING)])
        await recipes.create_index("likedBy")
        await recipes.create_index("category")

        await database[USERS].create_index("email", unique=True)
        logger.info("✅ Recipe and user indexes created successfully")
    except Exception as e:
        logger.warning(f"⚠️ Index creation failed (may already exist): {e}")
