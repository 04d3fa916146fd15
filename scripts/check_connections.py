#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB and the AI endpoint are reachable.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from zhide.core.config import get_settings
from zhide.db.mongodb import create_mongo_client, test_mongo_connection
from zhide.services.ai_client import AIClient


def main():
    settings = get_settings()
    print("=" * 50)
    print("ZHIDE RECRUIT - CONNECTION CHECK")
    print("=" * 50)

    # Test MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection(create_mongo_client(settings)):
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # Test AI endpoint (only if API key is set)
    print("\n[2] Testing AI endpoint...")
    if settings.ai_configured:
        print(f"    Base URL: {settings.ai_base_url}")
        print(f"    Model: {settings.ai_model}")
        if AIClient(settings).test_connection():
            print("    ✅ AI: CONNECTED")
        else:
            print("    ❌ AI: FAILED")
    else:
        print("    ⚠️  AI: API key not configured (resume parsing falls back to placeholders)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
