"""
Predicate construction for catalog queries.

A Predicate is an immutable conjunction of clauses over the wide catalog
relation. It renders to a parameterized SQL WHERE fragment for asyncpg and
can also be evaluated directly against a row mapping.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from coffee_directory.catalog.dimensions import DIMENSIONS, FacetDimension
from coffee_directory.error_handling.exceptions import UnresolvedFilterError
from coffee_directory.models import FilterSpec


PRICE_COLUMN = "best_normalized_250g"

# (FilterSpec field, relation column)
CATEGORICAL_COLUMNS = (
    ("roast_levels", "roast_level"),
    ("processes", "process"),
    ("statuses", "status"),
    ("species", "bean_species"),
    ("roaster_ids", "roaster_id"),
)

# Any-of tag filters: (FilterSpec field, array column)
OVERLAP_COLUMNS = (
    ("region_ids", "region_ids"),
    ("estate_ids", "estate_ids"),
    ("brew_method_ids", "brew_method_ids"),
    ("canon_flavor_ids", "canon_flavor_ids"),
)

# All-of tag filters
CONTAINS_COLUMNS = (
    ("flavor_keys", "flavor_keys"),
)

FLAG_COLUMNS = (
    ("has_250g_only", "has_250g_bool"),
    ("limited_only", "is_limited"),
    ("decaf_only", "decaf"),
    ("has_sensory_only", "has_sensory"),
    ("works_with_milk", "works_with_milk"),
)


def _values(values: Sequence[Any]) -> Tuple[str, ...]:
    return tuple(getattr(v, "value", v) for v in values)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user text matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Clause:
    """One condition of a predicate."""

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        """Render with placeholders numbered from ``index``."""
        raise NotImplementedError

    def matches(self, row: Mapping[str, Any]) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class TextMatch(Clause):
    """Case-insensitive substring match."""
    column: str
    text: str

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column} ILIKE ${index} ESCAPE '\\'", [f"%{escape_like(self.text)}%"]

    def matches(self, row: Mapping[str, Any]) -> bool:
        return self.text.lower() in (row.get(self.column) or "").lower()


@dataclass(frozen=True)
class ValueIn(Clause):
    """Scalar column equals one of the values."""
    column: str
    values: Tuple[str, ...]

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column}::text = ANY(${index}::text[])", [list(self.values)]

    def matches(self, row: Mapping[str, Any]) -> bool:
        value = row.get(self.column)
        return value is not None and str(value) in self.values


@dataclass(frozen=True)
class ValueInIgnoreCase(Clause):
    """Text column equals one of the values, ignoring case; optionally NULL too."""
    column: str
    values: Tuple[str, ...]
    or_null: bool = False

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        sql = f"lower({self.column}) = ANY(${index}::text[])"
        if self.or_null:
            sql = f"({sql} OR {self.column} IS NULL)"
        return sql, [[value.lower() for value in self.values]]

    def matches(self, row: Mapping[str, Any]) -> bool:
        value = row.get(self.column)
        if value is None:
            return self.or_null
        return str(value).lower() in {v.lower() for v in self.values}


@dataclass(frozen=True)
class TagOverlap(Clause):
    """Array column shares at least one element with the values (any-of)."""
    column: str
    values: Tuple[str, ...]

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column}::text[] && ${index}::text[]", [list(self.values)]

    def matches(self, row: Mapping[str, Any]) -> bool:
        tags = row.get(self.column) or ()
        return any(str(tag) in self.values for tag in tags)


@dataclass(frozen=True)
class TagContains(Clause):
    """Array column contains every one of the values (all-of)."""
    column: str
    values: Tuple[str, ...]

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column}::text[] @> ${index}::text[]", [list(self.values)]

    def matches(self, row: Mapping[str, Any]) -> bool:
        tags = {str(tag) for tag in (row.get(self.column) or ())}
        return all(value in tags for value in self.values)


@dataclass(frozen=True)
class Range(Clause):
    """Inclusive numeric range; a missing bound is unconstrained."""
    column: str
    low: Optional[float] = None
    high: Optional[float] = None

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        parts, params = [], []
        if self.low is not None:
            parts.append(f"{self.column} >= ${index + len(params)}")
            params.append(self.low)
        if self.high is not None:
            parts.append(f"{self.column} <= ${index + len(params)}")
            params.append(self.high)
        return " AND ".join(parts), params

    def matches(self, row: Mapping[str, Any]) -> bool:
        value = row.get(self.column)
        if value is None:
            return False
        if self.low is not None and value < self.low:
            return False
        if self.high is not None and value > self.high:
            return False
        return True


@dataclass(frozen=True)
class FlagTrue(Clause):
    """Boolean column is true."""
    column: str

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column} IS TRUE", []

    def matches(self, row: Mapping[str, Any]) -> bool:
        return row.get(self.column) is True


@dataclass(frozen=True)
class Positive(Clause):
    """Numeric column is strictly positive."""
    column: str

    def to_sql(self, index: int) -> Tuple[str, List[Any]]:
        return f"{self.column} > 0", []

    def matches(self, row: Mapping[str, Any]) -> bool:
        return (row.get(self.column) or 0) > 0


@dataclass(frozen=True)
class Predicate:
    """Conjunction of clauses. An empty predicate matches every row."""
    clauses: Tuple[Clause, ...] = ()

    def to_sql(self, start: int = 1) -> Tuple[str, List[Any]]:
        """
        Render as a WHERE fragment.

        Args:
            start: Number of the first positional placeholder

        Returns:
            Tuple of (sql, params); the sql is "TRUE" for an empty predicate
        """
        parts, params = [], []
        for clause in self.clauses:
            sql, clause_params = clause.to_sql(start + len(params))
            parts.append(sql)
            params.extend(clause_params)
        if not parts:
            return "TRUE", []
        return " AND ".join(parts), params

    def matches(self, row: Mapping[str, Any]) -> bool:
        return all(clause.matches(row) for clause in self.clauses)

    def __len__(self) -> int:
        return len(self.clauses)


def build_predicate(spec: FilterSpec, exclude: Optional[FacetDimension] = None) -> Predicate:
    """
    Build the predicate for a resolved FilterSpec.

    Args:
        spec: Filter intent with public identifiers already resolved
        exclude: Dimension whose constraint is dropped entirely

    Returns:
        Predicate over the wide catalog relation

    Raises:
        UnresolvedFilterError: If slug or key fields are still set
    """
    if not spec.is_resolved:
        raise UnresolvedFilterError("FilterSpec carries unresolved public identifiers")

    if exclude is not None:
        spec = spec.cleared(DIMENSIONS[exclude].filter_fields)

    clauses: List[Clause] = []

    # An explicit id list replaces text matching
    if spec.coffee_ids:
        clauses.append(ValueIn("coffee_id", _values(spec.coffee_ids)))
    elif spec.text_query:
        clauses.append(TextMatch("name", spec.text_query))

    for field_name, column in CATEGORICAL_COLUMNS:
        values = getattr(spec, field_name)
        if values:
            clauses.append(ValueIn(column, _values(values)))

    for field_name, column in OVERLAP_COLUMNS:
        values = getattr(spec, field_name)
        if values:
            clauses.append(TagOverlap(column, _values(values)))

    for field_name, column in CONTAINS_COLUMNS:
        values = getattr(spec, field_name)
        if values:
            clauses.append(TagContains(column, _values(values)))

    if spec.min_price is not None or spec.max_price is not None:
        clauses.append(Range(PRICE_COLUMN, spec.min_price, spec.max_price))

    if spec.in_stock_only:
        clauses.append(Positive("in_stock_count"))

    for field_name, column in FLAG_COLUMNS:
        if getattr(spec, field_name):
            clauses.append(FlagTrue(column))

    return Predicate(tuple(clauses))
