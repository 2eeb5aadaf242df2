"""
In-memory catalog store.

Holds a snapshot of the directory relation and its tag entities. Used for
local runs without Postgres and by the test-suite.

Snapshot format (JSON):

    {
        "items": [{"coffee_id": "...", "name": "...", "region_ids": [...], ...}],
        "entities": {
            "regions": [{"id": "...", "key": "...", "label": "..."}],
            ...
        }
    }

Entity lists are keyed by entity table name. Roaster records may also carry
the roaster directory columns (hq_city, hq_state, hq_country, website,
avg_rating, created_at, ...); "key" and "label" stand in for slug and name.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from coffee_directory.storage.base import JoinRow, OrderTerm, Row


logger = logging.getLogger(__name__)


def sort_rows(rows: List[Row], order: Sequence[OrderTerm]) -> List[Row]:
    """Sort rows by successive stable sorts, honouring NULL placement."""
    rows = list(rows)
    for term in reversed(order):
        present = [row for row in rows if row.get(term.column) is not None]
        missing = [row for row in rows if row.get(term.column) is None]
        present.sort(key=lambda row: row[term.column], reverse=term.descending)
        rows = present + missing if term.nulls_last else missing + present
    return rows


class InMemoryCatalogStore:
    """
    Catalog store over plain Python data.

    Attributes:
        items: Rows of the directory relation
        entities: Entity records keyed by table name
    """

    def __init__(
        self,
        items: Sequence[Row],
        entities: Optional[Dict[str, Sequence[Dict[str, Any]]]] = None,
    ):
        self.items: List[Row] = [dict(item) for item in items]
        self.entities: Dict[str, List[Dict[str, Any]]] = {
            table: [dict(record) for record in records]
            for table, records in (entities or {}).items()
        }
        self._by_id = {str(item["coffee_id"]): item for item in self.items}

    @classmethod
    def from_snapshot(cls, path: str) -> "InMemoryCatalogStore":
        """
        Load a store from a JSON snapshot file.

        Args:
            path: Path to the snapshot

        Returns:
            Populated store
        """
        with open(Path(path), "r", encoding="utf-8") as f:
            data = json.load(f)
        store = cls(data.get("items", []), data.get("entities", {}))
        logger.info(f"Loaded catalog snapshot with {len(store.items)} coffees from {path}")
        return store

    def _entity_index(self, table: str, field: str) -> Dict[str, Dict[str, Any]]:
        return {
            str(record[field]): record
            for record in self.entities.get(table, [])
            if record.get(field) is not None
        }

    async def fetch_page(
        self,
        predicate,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        matching = [item for item in self.items if predicate.matches(item)]
        ordered = sort_rows(matching, order)
        return [dict(row) for row in ordered[offset:offset + limit]], len(matching)

    async def fetch_rows(self, predicate, columns: Sequence[str]) -> List[Row]:
        selected = ("coffee_id", *columns)
        return [
            {column: item.get(column) for column in selected}
            for item in self.items
            if predicate.matches(item)
        ]

    async def fetch_join_rows(self, join, item_ids: Sequence[str]) -> List[JoinRow]:
        by_id = self._entity_index(join.entity_table, "id")
        by_key = self._entity_index(join.entity_table, "key")

        rows = []
        for item_id in item_ids:
            item = self._by_id.get(str(item_id))
            if item is None:
                continue
            for tag in item.get(join.tag_column) or ():
                tag = str(tag)
                entity = (by_key if join.by_key else by_id).get(tag, {})
                rows.append(
                    JoinRow(
                        item_id=str(item_id),
                        value=tag,
                        label=entity.get("label"),
                        key=tag if join.by_key else entity.get("key"),
                    )
                )
        return rows

    async def resolve_identifiers(self, source, keys: Sequence[str]) -> Dict[str, str]:
        by_key = self._entity_index(source.table, "key")
        return {key: str(by_key[key]["id"]) for key in keys if key in by_key}

    async def count_active_roasters(self, item_ids: Sequence[str]) -> int:
        roasters = set()
        for item_id in item_ids:
            item = self._by_id.get(str(item_id))
            if item is not None and item.get("roaster_is_active") is True:
                roasters.add(item.get("roaster_id"))
        return len(roasters)

    async def fetch_search_index(self) -> List[Row]:
        ordered = sort_rows(self.items, (OrderTerm("name"), OrderTerm("coffee_id")))
        return [
            {
                "coffee_id": str(item["coffee_id"]),
                "slug": item.get("slug", ""),
                "name": item.get("name", ""),
                "roaster_name": item.get("roaster_name"),
                "flavor_keys": list(item.get("flavor_keys") or []),
            }
            for item in ordered
        ]

    def _roaster_rows(self) -> List[Row]:
        stats: Dict[str, Dict[str, float]] = {}
        for item in self.items:
            entry = stats.setdefault(
                str(item.get("roaster_id")),
                {"coffee_count": 0, "rated_coffee_count": 0, "rating_sum": 0.0, "rating_weight": 0},
            )
            entry["coffee_count"] += 1
            rating, weight = item.get("rating_avg") or 0, item.get("rating_count") or 0
            if rating > 0 and weight > 0:
                entry["rated_coffee_count"] += 1
                entry["rating_sum"] += rating * weight
                entry["rating_weight"] += weight

        rows = []
        for record in self.entities.get("roasters", []):
            row = dict(record)
            row["id"] = str(record["id"])
            row.setdefault("slug", record.get("key"))
            row.setdefault("name", record.get("label"))
            entry = stats.get(row["id"], {})
            row["coffee_count"] = int(entry.get("coffee_count", 0))
            row["rated_coffee_count"] = int(entry.get("rated_coffee_count", 0))
            weight = entry.get("rating_weight", 0)
            row["avg_coffee_rating"] = entry["rating_sum"] / weight if weight else None
            rows.append(row)
        return rows

    async def fetch_roaster_page(
        self,
        predicate,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        matching = [row for row in self._roaster_rows() if predicate.matches(row)]
        ordered = sort_rows(matching, order)
        return ordered[offset:offset + limit], len(matching)

    async def fetch_roaster_rows(self, predicate, columns: Sequence[str]) -> List[Row]:
        selected = ("id", *columns)
        return [
            {column: row.get(column) for column in selected}
            for row in self._roaster_rows()
            if predicate.matches(row)
        ]
