"""
MongoDB Setup Script
Checks the connection and creates the engine's indexes.
"""
import asyncio
from salescoach.repositories import db_manager
from salescoach.config import settings
from salescoach.utils.observability import configure_logging

COLLECTIONS = (
    "activities",
    "prescriptions",
    "accounts",
    "behavior_scores",
    "outcomes",
    "coaching_signals",
    "competitor_signals",
)


async def setup_mongodb():
    """Connect, create indexes and print what exists."""
    print("🔄 Connecting to MongoDB...")
    print(f"   Database: {settings.mongodb_database}")
    print()

    try:
        await db_manager.connect()
        if not await db_manager.ping():
            raise RuntimeError(f"MongoDB at {settings.mongodb_uri} did not answer a ping")
        db = db_manager.database

        existing_collections = await db.list_collection_names()
        print(f"📦 Existing collections: {existing_collections or 'None'}")
        print()

        print("🔨 Creating indexes...")
        await db_manager.create_indexes()
        print("✅ Indexes created successfully!")
        print()

        print("📊 Verifying indexes:")
        total = 0
        for name in COLLECTIONS:
            indexes = await db[name].index_information()
            total += len(indexes)
            print(f"   {name}: {len(indexes)} indexes")
            for idx_name in indexes:
                print(f"      - {idx_name}")

        print()
        print("📝 Summary:")
        print(f"   ✅ Database: {settings.mongodb_database}")
        print(f"   ✅ Collections: {', '.join(COLLECTIONS)}")
        print(f"   ✅ Indexes: {total} total")
        print()

    except Exception as e:
        print(f"❌ Error: {e}")
        print()
        print("💡 Troubleshooting:")
        print("   1. Check MONGODB_URI points at a reachable server")
        print("   2. Check that the credentials in the URI are correct")
        raise

    finally:
        await db_manager.disconnect()
        print("👋 Disconnected from MongoDB")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(setup_mongodb())
