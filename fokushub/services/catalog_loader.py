"""Catalog loader service with caching and validation.

This module loads the YAML catalogs (admin setting definitions and notice
templates), validates them against Pydantic schemas, and caches the results.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, Type, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from fokushub.config import get_settings
from fokushub.schemas.admin import SettingCatalog
from fokushub.schemas.notices import NoticeCatalog
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

CatalogT = TypeVar("CatalogT", bound=BaseModel)


class CatalogNotFoundError(Exception):
    """Raised when a catalog file is not found."""
    pass


class CatalogValidationError(Exception):
    """Raised when a catalog fails validation."""
    pass


class CatalogLoader:
    """Service for loading and caching YAML catalogs."""

    @lru_cache(maxsize=32)
    def load(self, path: str, schema: Type[CatalogT]) -> CatalogT:
        """Load and validate a catalog from a YAML file.

        Results are cached per (path, schema). Clear cache with
        clear_cache() if catalogs change at runtime.

        Args:
            path: Path of the YAML file
            schema: Pydantic model the file must match

        Returns:
            Validated catalog

        Raises:
            CatalogNotFoundError: If the file doesn't exist
            CatalogValidationError: If the file is not valid YAML or fails validation
        """
        yaml_path = Path(path)

        if not yaml_path.exists():
            logger.error(f"Catalog file not found: {yaml_path}")
            raise CatalogNotFoundError(f"Catalog not found at {yaml_path}")

        try:
            with open(yaml_path, "r") as f:
                raw_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error for {yaml_path}: {e}")
            raise CatalogValidationError(f"Invalid YAML in catalog {yaml_path}: {e}")
        except OSError as e:
            logger.error(f"Error reading catalog file {yaml_path}: {e}")
            raise CatalogValidationError(f"Error reading catalog {yaml_path}: {e}")

        if not isinstance(raw_data, dict):
            raise CatalogValidationError(f"Catalog {yaml_path} must be a mapping")

        try:
            catalog = schema(**raw_data)
        except ValidationError as e:
            logger.error(f"Validation error for catalog {yaml_path}: {e}")
            raise CatalogValidationError(f"Validation failed for catalog {yaml_path}: {e}")

        logger.info(f"Loaded catalog {yaml_path.name} ({schema.__name__})")
        return catalog

    def clear_cache(self):
        """Clear the catalog cache."""
        self.load.cache_clear()
        logger.info("Catalog cache cleared")


# Global singleton instance
_loader_instance: Optional[CatalogLoader] = None


def get_catalog_loader() -> CatalogLoader:
    """Get global CatalogLoader instance.

    Returns:
        Global CatalogLoader instance
    """
    global _loader_instance
    if _loader_instance is None:
        _loader_instance = CatalogLoader()
    return _loader_instance


def load_setting_catalog(path: Optional[str] = None) -> SettingCatalog:
    """Load the admin setting catalog (configured path by default)."""
    return get_catalog_loader().load(path or get_settings().settings_catalog_path, SettingCatalog)


def load_notice_catalog(path: Optional[str] = None) -> NoticeCatalog:
    """Load the notice template catalog (configured path by default)."""
    return get_catalog_loader().load(path or get_settings().notices_catalog_path, NoticeCatalog)
