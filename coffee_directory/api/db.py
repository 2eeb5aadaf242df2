"""
Catalog store connection and initialization.
"""

import asyncpg
from typing import Optional
import logging

from coffee_directory.config import CatalogSettings, get_catalog_settings
from coffee_directory.error_handling.exceptions import StorageNotInitializedError
from coffee_directory.storage import CatalogStore, InMemoryCatalogStore, PostgresCatalogStore

logger = logging.getLogger(__name__)

# Global connection pool and store
pg_pool: Optional[asyncpg.Pool] = None
catalog_store: Optional[CatalogStore] = None


async def init_db(settings: Optional[CatalogSettings] = None):
    """Initialize the catalog store selected by configuration"""
    global pg_pool, catalog_store

    settings = settings or get_catalog_settings()
    storage_type = settings.storage.storage_type

    if storage_type == "memory":
        if not settings.storage.snapshot_path:
            raise ValueError("CATALOG_SNAPSHOT must be set when STORAGE_TYPE=memory")
        catalog_store = InMemoryCatalogStore.from_snapshot(settings.storage.snapshot_path)
        logger.info("In-memory catalog store loaded")
        return

    if storage_type != "postgres":
        raise ValueError(f"Unknown STORAGE_TYPE: {storage_type}")

    try:
        pg_pool = await asyncpg.create_pool(
            settings.database.url,
            min_size=settings.database.min_pool_size,
            max_size=settings.database.max_pool_size,
        )
        logger.info("PostgreSQL connection pool created")
    except Exception as e:
        logger.error(f"Failed to connect to PostgreSQL: {e}")
        raise

    catalog_store = PostgresCatalogStore(
        pg_pool,
        relation=settings.database.relation,
        roaster_table=settings.database.roaster_table,
    )


async def close_db():
    """Close database connections"""
    global pg_pool, catalog_store

    if pg_pool:
        await pg_pool.close()
        pg_pool = None
        logger.info("PostgreSQL connection pool closed")

    catalog_store = None


def use_catalog_store(store: Optional[CatalogStore]):
    """Install a catalog store directly, bypassing configuration"""
    global catalog_store
    catalog_store = store


def get_catalog_store() -> CatalogStore:
    """Get the active catalog store"""
    if catalog_store is None:
        raise StorageNotInitializedError("Catalog store not initialized")
    return catalog_store
