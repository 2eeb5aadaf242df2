"""Configuration module for the coffee directory."""

from .catalog_config import (
    CATALOG_CONFIG,
    CatalogSettings,
    DatabaseConfig,
    StorageConfig,
    DirectoryConfig,
    ClientConfig,
    get_catalog_settings,
)

__all__ = [
    'CATALOG_CONFIG',
    'CatalogSettings',
    'DatabaseConfig',
    'StorageConfig',
    'DirectoryConfig',
    'ClientConfig',
    'get_catalog_settings',
]
