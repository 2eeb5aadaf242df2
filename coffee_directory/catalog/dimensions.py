"""
Filterable dimensions of the coffee catalog.

Each facet dimension knows which FilterSpec fields constrain it and where its
values live: a column on the wide catalog relation (categorical) or a join
table keyed by coffee id (relational).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from coffee_directory.filtering.labels import (
    PROCESS_LABELS,
    ROAST_LEVEL_LABELS,
    SPECIES_LABELS,
    STATUS_LABELS,
)


class FacetDimension(str, Enum):
    """Facet dimensions, valued by their key in the filter meta payload."""
    ROAST_LEVELS = "roastLevels"
    PROCESSES = "processes"
    STATUSES = "statuses"
    SPECIES = "species"
    ROASTERS = "roasters"
    REGIONS = "regions"
    ESTATES = "estates"
    BREW_METHODS = "brewMethods"
    FLAVOR_NOTES = "flavorNotes"
    CANONICAL_FLAVORS = "canonicalFlavors"


@dataclass(frozen=True)
class JoinTable:
    """
    A per-dimension join between coffees and a tag entity.

    Attributes:
        name: Junction table with one row per (coffee, entity)
        value_column: Entity id column on the junction table
        entity_table: Table holding the entity display data
        label_column: Display label column on the entity table
        key_column: Public identifier column on the entity table, if any
        tag_column: Array column on the wide relation mirroring this join
        by_key: Filters, tags and buckets use the entity key instead of its id
    """
    name: str
    value_column: str
    entity_table: str
    label_column: str
    key_column: Optional[str]
    tag_column: str
    by_key: bool = False


@dataclass(frozen=True)
class DimensionSpec:
    """
    How one facet dimension is filtered and tallied.

    Attributes:
        dimension: The facet dimension
        filter_fields: FilterSpec fields cleared when the dimension is excluded
        column: Column on the wide relation (categorical dimensions)
        labels: Static label table for column values
        label_column: Column on the wide relation holding the display label
        slug_column: Column on the wide relation holding the public slug
        join: Join table (relational dimensions)
    """
    dimension: FacetDimension
    filter_fields: Tuple[str, ...]
    column: Optional[str] = None
    labels: Optional[Dict[str, str]] = None
    label_column: Optional[str] = None
    slug_column: Optional[str] = None
    join: Optional[JoinTable] = None

    @property
    def is_relational(self) -> bool:
        return self.join is not None

    @property
    def has_entity_buckets(self) -> bool:
        """True if buckets carry an entity id rather than a plain value."""
        return self.join is not None or self.label_column is not None

    @property
    def read_columns(self) -> Tuple[str, ...]:
        """Columns of the wide relation needed to tally this dimension."""
        return tuple(c for c in (self.column, self.label_column, self.slug_column) if c)


DIMENSIONS: Dict[FacetDimension, DimensionSpec] = {
    FacetDimension.ROAST_LEVELS: DimensionSpec(
        dimension=FacetDimension.ROAST_LEVELS,
        filter_fields=("roast_levels",),
        column="roast_level",
        labels=ROAST_LEVEL_LABELS,
    ),
    FacetDimension.PROCESSES: DimensionSpec(
        dimension=FacetDimension.PROCESSES,
        filter_fields=("processes",),
        column="process",
        labels=PROCESS_LABELS,
    ),
    FacetDimension.STATUSES: DimensionSpec(
        dimension=FacetDimension.STATUSES,
        filter_fields=("statuses",),
        column="status",
        labels=STATUS_LABELS,
    ),
    FacetDimension.SPECIES: DimensionSpec(
        dimension=FacetDimension.SPECIES,
        filter_fields=("species",),
        column="bean_species",
        labels=SPECIES_LABELS,
    ),
    FacetDimension.ROASTERS: DimensionSpec(
        dimension=FacetDimension.ROASTERS,
        filter_fields=("roaster_ids", "roaster_slugs"),
        column="roaster_id",
        label_column="roaster_name",
        slug_column="roaster_slug",
    ),
    FacetDimension.REGIONS: DimensionSpec(
        dimension=FacetDimension.REGIONS,
        filter_fields=("region_ids", "region_slugs"),
        join=JoinTable(
            name="coffee_regions",
            value_column="region_id",
            entity_table="regions",
            label_column="display_name",
            key_column="slug",
            tag_column="region_ids",
        ),
    ),
    FacetDimension.ESTATES: DimensionSpec(
        dimension=FacetDimension.ESTATES,
        filter_fields=("estate_ids", "estate_keys"),
        join=JoinTable(
            name="coffee_estates",
            value_column="estate_id",
            entity_table="estates",
            label_column="name",
            key_column="estate_key",
            tag_column="estate_ids",
        ),
    ),
    FacetDimension.BREW_METHODS: DimensionSpec(
        dimension=FacetDimension.BREW_METHODS,
        filter_fields=("brew_method_ids",),
        join=JoinTable(
            name="coffee_brew_methods",
            value_column="brew_method_id",
            entity_table="brew_methods",
            label_column="label",
            key_column="canonical_key",
            tag_column="brew_method_ids",
        ),
    ),
    FacetDimension.FLAVOR_NOTES: DimensionSpec(
        dimension=FacetDimension.FLAVOR_NOTES,
        filter_fields=("flavor_keys",),
        join=JoinTable(
            name="coffee_flavor_notes",
            value_column="flavor_note_id",
            entity_table="flavor_notes",
            label_column="label",
            key_column="key",
            tag_column="flavor_keys",
            by_key=True,
        ),
    ),
    FacetDimension.CANONICAL_FLAVORS: DimensionSpec(
        dimension=FacetDimension.CANONICAL_FLAVORS,
        filter_fields=("canon_flavor_ids", "canon_flavor_slugs"),
        join=JoinTable(
            name="coffee_canon_flavors",
            value_column="canon_node_id",
            entity_table="canon_sensory_nodes",
            label_column="descriptor",
            key_column="slug",
            tag_column="canon_flavor_ids",
        ),
    ),
}


class IdentifierFamily(str, Enum):
    """Families of public identifiers that resolve to internal IDs."""
    ROASTER = "roaster"
    REGION = "region"
    ESTATE = "estate"
    CANON_FLAVOR = "canon_flavor"


@dataclass(frozen=True)
class IdentifierSource:
    """
    Where a family of public identifiers is looked up.

    Attributes:
        family: Identifier family
        slug_field: FilterSpec field holding public identifiers
        id_field: FilterSpec field receiving the resolved IDs
        table: Entity table
        key_column: Public identifier column on the entity table
    """
    family: IdentifierFamily
    slug_field: str
    id_field: str
    table: str
    key_column: str


IDENTIFIER_SOURCES: Dict[IdentifierFamily, IdentifierSource] = {
    IdentifierFamily.ROASTER: IdentifierSource(
        IdentifierFamily.ROASTER, "roaster_slugs", "roaster_ids", "roasters", "slug"
    ),
    IdentifierFamily.REGION: IdentifierSource(
        IdentifierFamily.REGION, "region_slugs", "region_ids", "regions", "slug"
    ),
    IdentifierFamily.ESTATE: IdentifierSource(
        IdentifierFamily.ESTATE, "estate_keys", "estate_ids", "estates", "estate_key"
    ),
    IdentifierFamily.CANON_FLAVOR: IdentifierSource(
        IdentifierFamily.CANON_FLAVOR,
        "canon_flavor_slugs",
        "canon_flavor_ids",
        "canon_sensory_nodes",
        "slug",
    ),
}
