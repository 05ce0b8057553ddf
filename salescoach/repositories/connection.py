"""
MongoDB Connection Management
One Motor client per process, shared by the engine repositories.
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from typing import Optional
from ..config import settings
from ..utils.observability import logger


class DatabaseManager:
    """
    Singleton owner of the Motor client.

    Usage:
        await db_manager.connect()
        await db_manager.create_indexes()
        repo = ActivityRepository(db_manager.database)
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[AsyncIOMotorClient] = None
    _database: Optional[AsyncIOMotorDatabase] = None

    def __new__(cls) -> "DatabaseManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @staticmethod
    def _build_client() -> AsyncIOMotorClient:
        # tz_aware keeps window bounds and stored timestamps comparable
        return AsyncIOMotorClient(
            settings.mongodb_uri,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,
        )

    async def ping(self) -> bool:
        """True if a client exists and the server answers."""
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
        except (RuntimeError, PyMongoError) as e:
            # RuntimeError: the client was bound to an event loop that has closed
            logger.warning(f"MongoDB ping failed: {type(e).__name__}")
            return False
        return True

    async def connect(self) -> None:
        """Create the client, or keep the current one if it still answers."""
        if self._client is not None:
            if await self.ping():
                return
            logger.warning("Discarding unhealthy MongoDB client")
            self._client = None
            self._database = None

        logger.bind(
            database=settings.mongodb_database,
            max_pool_size=settings.mongodb_max_pool_size,
            environment=settings.environment,
        ).info("Connecting to MongoDB")

        self._client = self._build_client()
        self._database = self._client[settings.mongodb_database]

    async def disconnect(self) -> None:
        if self._client is not None:
            logger.info("Closing MongoDB connection")
            self._client.close()
        self._client = None
        self._database = None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """Raises RuntimeError if not connected."""
        if self._database is None:
            raise RuntimeError("Database not connected. Call await db_manager.connect() first.")
        return self._database

    async def create_indexes(self) -> None:
        """
        Create the indexes the engine queries rely on.

        The outcome key index is unique so that concurrent recomputations of
        the same window cannot leave duplicate rows behind.
        """
        db = self.database

        logger.info("Creating MongoDB indexes")

        await db.activities.create_index(
            [("owner_id", 1), ("performed_at", -1)],
            name="idx_owner_performed"
        )
        await db.activities.create_index(
            [("account_id", 1), ("performed_at", -1)],
            name="idx_account_performed"
        )

        await db.prescriptions.create_index(
            [("prescription_date", -1)],
            name="idx_prescription_date"
        )
        await db.prescriptions.create_index(
            [("account_id", 1), ("prescription_date", -1)],
            name="idx_account_prescription_date"
        )

        await db.behavior_scores.create_index(
            [("owner_id", 1), ("period_start", 1), ("period_end", 1), ("behavior", 1)],
            name="idx_behavior_score_window"
        )

        await db.outcomes.create_index(
            [
                ("owner_id", 1),
                ("period_type", 1),
                ("period_start", 1),
                ("period_end", 1),
                ("account_id", 1),
            ],
            unique=True,
            name="idx_outcome_key_unique"
        )

        await db.coaching_signals.create_index(
            [("owner_id", 1), ("is_resolved", 1), ("created_at", -1)],
            name="idx_signal_owner_open"
        )

        await db.competitor_signals.create_index(
            [("account_id", 1), ("detected_at", -1)],
            name="idx_competitor_account_detected"
        )

        logger.info("MongoDB indexes created successfully")


# Singleton instance
db_manager = DatabaseManager()


async def get_database() -> AsyncIOMotorDatabase:
    """Return the connected database instance."""
    return db_manager.database
