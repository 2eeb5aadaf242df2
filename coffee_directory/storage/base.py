"""
Read contract between the query engine and catalog storage.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, Tuple

if TYPE_CHECKING:
    from coffee_directory.catalog.dimensions import IdentifierSource, JoinTable
    from coffee_directory.catalog.predicate import Predicate


Row = Dict[str, Any]


@dataclass(frozen=True)
class OrderTerm:
    """
    One sort key.

    Attributes:
        column: Column of the wide relation
        descending: Sort direction
        nulls_last: Place NULL values after every non-NULL value
    """
    column: str
    descending: bool = False
    nulls_last: bool = True


@dataclass(frozen=True)
class JoinRow:
    """
    One (coffee, entity) pair from a dimension join.

    Attributes:
        item_id: Coffee id
        value: Entity id, or entity key for key-addressed joins
        label: Entity display label
        key: Entity public identifier, if any
    """
    item_id: str
    value: str
    label: Optional[str]
    key: Optional[str] = None


class CatalogStore(Protocol):
    """Storage operations the catalog engine depends on."""

    async def fetch_page(
        self,
        predicate: "Predicate",
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        """Return one page of matching rows and the total match count."""
        ...

    async def fetch_rows(self, predicate: "Predicate", columns: Sequence[str]) -> List[Row]:
        """Return the given columns (plus coffee_id) of every matching row."""
        ...

    async def fetch_join_rows(self, join: "JoinTable", item_ids: Sequence[str]) -> List[JoinRow]:
        """Return the join rows of a dimension for exactly the given coffees."""
        ...

    async def resolve_identifiers(
        self,
        source: "IdentifierSource",
        keys: Sequence[str],
    ) -> Dict[str, str]:
        """Map public identifiers to internal IDs; unknown keys are omitted."""
        ...

    async def count_active_roasters(self, item_ids: Sequence[str]) -> int:
        """Count distinct active roasters among the given coffees."""
        ...

    async def fetch_search_index(self) -> List[Row]:
        """Return the rows backing the client-side name search."""
        ...

    async def fetch_roaster_page(
        self,
        predicate: "Predicate",
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        """Return one page of roaster rows, with coffee stats, and the total."""
        ...

    async def fetch_roaster_rows(self, predicate: "Predicate", columns: Sequence[str]) -> List[Row]:
        """Return the given columns (plus id) of every matching roaster."""
        ...
