"""
Database module - MongoDB connection helpers.
"""
from zhide.db.mongodb import create_mongo_client, get_mongo_db, test_mongo_connection

__all__ = [
    "create_mongo_client",
    "get_mongo_db",
    "test_mongo_connection"
]
