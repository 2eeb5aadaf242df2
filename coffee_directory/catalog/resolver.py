"""
Identifier resolution.

Public identifiers (roaster slugs, region slugs, estate keys, canonical
flavor slugs) are accepted at the request boundary only. The resolver turns
them into internal IDs so everything downstream works on IDs.
"""

import logging
from typing import Dict, List

from coffee_directory.catalog.concurrency import gather_fail_fast
from coffee_directory.catalog.dimensions import IDENTIFIER_SOURCES, IdentifierSource
from coffee_directory.error_handling.exceptions import CatalogQueryError
from coffee_directory.models import FilterSpec, IdentifierLookup
from coffee_directory.storage.base import CatalogStore


logger = logging.getLogger(__name__)


class IdentifierResolver:
    """Resolves public identifiers in a FilterSpec into internal IDs."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def resolve(self, spec: FilterSpec) -> FilterSpec:
        """
        Translate every public identifier family into IDs.

        Resolved IDs are merged with any IDs already present and the public
        fields are cleared. Unresolvable identifiers are dropped; if every
        identifier of a family is unresolvable and no explicit IDs exist, the
        dimension becomes unconstrained.

        Args:
            spec: Filter intent as parsed from the request

        Returns:
            FilterSpec with only internal IDs

        Raises:
            CatalogQueryError: If any lookup fails
        """
        if spec.is_resolved:
            return spec

        sources = [
            source for source in IDENTIFIER_SOURCES.values()
            if getattr(spec, source.slug_field)
        ]
        lookups = await gather_fail_fast(
            *(self._lookup(source, getattr(spec, source.slug_field)) for source in sources)
        )

        changes: Dict[str, object] = {}
        for source, lookup in zip(sources, lookups):
            if lookup.unresolved:
                logger.info(
                    f"Dropping unresolved {source.family.value} identifiers: {lookup.unresolved}"
                )
            merged: List[str] = list(getattr(spec, source.id_field) or [])
            for key in lookup.requested:
                internal_id = lookup.resolved.get(key)
                if internal_id is not None and internal_id not in merged:
                    merged.append(internal_id)
            changes[source.id_field] = merged or None
            changes[source.slug_field] = None

        return spec.with_updates(**changes)

    async def _lookup(self, source: IdentifierSource, keys: List[str]) -> IdentifierLookup:
        try:
            resolved = await self.store.resolve_identifiers(source, keys)
        except CatalogQueryError:
            raise
        except Exception as e:
            logger.error(f"Failed to resolve {source.family.value} identifiers: {e}")
            raise CatalogQueryError(str(e), stage="resolve", dimension=source.family.value) from e
        return IdentifierLookup(requested=list(keys), resolved=dict(resolved))
