"""Tests for configuration module."""

from coffee_directory.config import (
    CATALOG_CONFIG,
    CatalogSettings,
    DatabaseConfig,
    StorageConfig,
    DirectoryConfig,
    ClientConfig,
    get_catalog_settings,
)


def test_catalog_config_exists():
    """Test that CATALOG_CONFIG dictionary is properly defined."""
    assert isinstance(CATALOG_CONFIG, dict)
    assert "database" in CATALOG_CONFIG
    assert "storage" in CATALOG_CONFIG
    assert "directory" in CATALOG_CONFIG
    assert "client" in CATALOG_CONFIG


def test_catalog_config_defaults():
    """Test that CATALOG_CONFIG has correct default values."""
    assert CATALOG_CONFIG["database"]["relation"] == "coffee_directory_mv"
    assert CATALOG_CONFIG["database"]["roaster_table"] == "roasters"
    assert CATALOG_CONFIG["database"]["min_pool_size"] == 2
    assert CATALOG_CONFIG["database"]["max_pool_size"] == 10
    assert CATALOG_CONFIG["directory"]["search_debounce_ms"] == 300
    assert CATALOG_CONFIG["directory"]["price_floor"] == 0
    assert CATALOG_CONFIG["directory"]["price_ceiling"] == 10000


def test_get_catalog_settings():
    """Test that get_catalog_settings returns proper CatalogSettings object."""
    settings = get_catalog_settings()

    assert isinstance(settings, CatalogSettings)

    assert isinstance(settings.database, DatabaseConfig)
    assert settings.database.relation == "coffee_directory_mv"

    assert isinstance(settings.storage, StorageConfig)
    assert settings.storage.storage_type in ("postgres", "memory")

    assert isinstance(settings.directory, DirectoryConfig)
    assert settings.directory.search_debounce_ms == 300

    assert isinstance(settings.client, ClientConfig)
    assert settings.client.max_retries == 3


def test_catalog_settings_with_custom_values():
    """Test creating CatalogSettings with custom values."""
    custom_directory = DirectoryConfig(
        search_debounce_ms=150,
        price_floor=100,
        price_ceiling=5000
    )

    settings = CatalogSettings(directory=custom_directory)

    assert settings.directory.search_debounce_ms == 150
    assert settings.directory.price_floor == 100
    assert settings.directory.price_ceiling == 5000


def test_catalog_settings_post_init():
    """Test that CatalogSettings initializes nested configs when not provided."""
    settings = CatalogSettings()

    assert isinstance(settings.database, DatabaseConfig)
    assert isinstance(settings.storage, StorageConfig)
    assert isinstance(settings.directory, DirectoryConfig)
    assert isinstance(settings.client, ClientConfig)
    assert settings.storage.snapshot_path is None
