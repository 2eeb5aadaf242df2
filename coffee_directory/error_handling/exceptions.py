"""Exception hierarchy for catalog queries."""

from typing import Optional


class CatalogError(Exception):
    """Base class for coffee directory errors."""


class CatalogQueryError(CatalogError):
    """
    A catalog query failed.

    Attributes:
        stage: Pipeline stage that failed ("resolve", "list", "facets", ...)
        dimension: Facet dimension being computed, if any
    """

    def __init__(self, message: str, stage: str, dimension: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.dimension = dimension

    def __str__(self) -> str:
        base = super().__str__()
        if self.dimension:
            return f"{self.stage}[{self.dimension}]: {base}"
        return f"{self.stage}: {base}"


class UnresolvedFilterError(CatalogError):
    """A filter still carries public identifiers that were never resolved."""


class StorageNotInitializedError(CatalogError, RuntimeError):
    """The catalog store was used before init_db() ran."""
