"""
Postgres-backed catalog store.

Reads the denormalized directory relation and the per-dimension join tables
through an asyncpg connection pool.
"""

import logging
from typing import Dict, List, Sequence, Tuple

import asyncpg

from coffee_directory.schemas.catalog import CatalogItem
from coffee_directory.storage.base import JoinRow, OrderTerm, Row


logger = logging.getLogger(__name__)

# UUID and array-of-UUID columns are read back as text
ID_COLUMNS = ("coffee_id", "roaster_id", "best_variant_id")
ID_ARRAY_COLUMNS = ("region_ids", "estate_ids", "brew_method_ids", "canon_flavor_ids", "flavor_keys")


def _column_sql(column: str) -> str:
    if column in ID_COLUMNS:
        return f"{column}::text AS {column}"
    if column in ID_ARRAY_COLUMNS:
        return f"{column}::text[] AS {column}"
    return column


PAGE_COLUMNS_SQL = ", ".join(_column_sql(name) for name in CatalogItem.model_fields)


def _order_sql(order: Sequence[OrderTerm]) -> str:
    parts = []
    for term in order:
        direction = "DESC" if term.descending else "ASC"
        nulls = "NULLS LAST" if term.nulls_last else "NULLS FIRST"
        parts.append(f"{term.column} {direction} {nulls}")
    return ", ".join(parts)


class PostgresCatalogStore:
    """
    Catalog store over an asyncpg pool.

    Attributes:
        pool: asyncpg connection pool
        relation: Name of the wide directory relation
        roaster_table: Name of the roaster table
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        relation: str = "coffee_directory_mv",
        roaster_table: str = "roasters",
    ):
        self.pool = pool
        self.relation = relation
        self.roaster_table = roaster_table

    async def fetch_page(
        self,
        predicate,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        where, params = predicate.to_sql()
        count_query = f"SELECT count(*) FROM {self.relation} WHERE {where}"
        page_query = (
            f"SELECT {PAGE_COLUMNS_SQL} FROM {self.relation} WHERE {where} "
            f"ORDER BY {_order_sql(order)} "
            f"LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}"
        )

        async with self.pool.acquire() as conn:
            total = await conn.fetchval(count_query, *params)
            records = await conn.fetch(page_query, *params, limit, offset)

        return [dict(record) for record in records], int(total or 0)

    async def fetch_rows(self, predicate, columns: Sequence[str]) -> List[Row]:
        where, params = predicate.to_sql()
        selected = ", ".join(_column_sql(column) for column in ("coffee_id", *columns))
        query = f"SELECT {selected} FROM {self.relation} WHERE {where}"

        async with self.pool.acquire() as conn:
            records = await conn.fetch(query, *params)

        return [dict(record) for record in records]

    async def fetch_join_rows(self, join, item_ids: Sequence[str]) -> List[JoinRow]:
        key_sql = f"e.{join.key_column}" if join.key_column else "NULL"
        value_sql = key_sql if join.by_key else "e.id::text"
        query = f"""
            SELECT j.coffee_id::text AS item_id,
                   {value_sql} AS value,
                   e.{join.label_column} AS label,
                   {key_sql} AS key
            FROM {join.name} j
            JOIN {join.entity_table} e ON e.id = j.{join.value_column}
            WHERE j.coffee_id::text = ANY($1::text[])
        """

        async with self.pool.acquire() as conn:
            records = await conn.fetch(query, list(item_ids))

        return [
            JoinRow(
                item_id=record["item_id"],
                value=record["value"],
                label=record["label"],
                key=record["key"],
            )
            for record in records
            if record["value"] is not None
        ]

    async def resolve_identifiers(self, source, keys: Sequence[str]) -> Dict[str, str]:
        query = f"""
            SELECT {source.key_column} AS key, id::text AS id
            FROM {source.table}
            WHERE {source.key_column} = ANY($1::text[])
        """

        async with self.pool.acquire() as conn:
            records = await conn.fetch(query, list(keys))

        return {record["key"]: record["id"] for record in records}

    async def count_active_roasters(self, item_ids: Sequence[str]) -> int:
        query = f"""
            SELECT count(DISTINCT roaster_id)
            FROM {self.relation}
            WHERE roaster_is_active IS TRUE
              AND coffee_id::text = ANY($1::text[])
        """

        async with self.pool.acquire() as conn:
            total = await conn.fetchval(query, list(item_ids))

        return int(total or 0)

    async def fetch_search_index(self) -> List[Row]:
        query = f"""
            SELECT coffee_id::text AS coffee_id, slug, name, roaster_name, flavor_keys::text[] AS flavor_keys
            FROM {self.relation}
            ORDER BY name ASC, coffee_id ASC
        """

        async with self.pool.acquire() as conn:
            records = await conn.fetch(query)

        return [dict(record) for record in records]

    def _roaster_relation_sql(self) -> str:
        """Roasters joined with per-roaster stats over their coffees."""
        return f"""
            SELECT r.id::text AS id, r.slug, r.name, r.website,
                   r.hq_city, r.hq_state, r.hq_country, r.is_active,
                   r.instagram_handle, r.is_featured, r.is_editors_pick,
                   r.avg_rating, r.total_ratings_count, r.recommend_percentage,
                   r.created_at,
                   coalesce(s.coffee_count, 0) AS coffee_count,
                   coalesce(s.rated_coffee_count, 0) AS rated_coffee_count,
                   s.avg_coffee_rating
            FROM {self.roaster_table} r
            LEFT JOIN (
                SELECT roaster_id::text AS roaster_id,
                       count(*) AS coffee_count,
                       count(*) FILTER (WHERE rating_avg > 0 AND rating_count > 0) AS rated_coffee_count,
                       sum(rating_avg * rating_count) FILTER (WHERE rating_avg > 0 AND rating_count > 0)
                         / NULLIF(sum(rating_count) FILTER (WHERE rating_avg > 0 AND rating_count > 0), 0)
                         AS avg_coffee_rating
                FROM {self.relation}
                GROUP BY roaster_id
            ) s ON s.roaster_id = r.id::text
        """

    async def fetch_roaster_page(
        self,
        predicate,
        order: Sequence[OrderTerm],
        offset: int,
        limit: int,
    ) -> Tuple[List[Row], int]:
        where, params = predicate.to_sql()
        relation = f"({self._roaster_relation_sql()}) AS roaster_directory"
        count_query = f"SELECT count(*) FROM {relation} WHERE {where}"
        page_query = (
            f"SELECT * FROM {relation} WHERE {where} "
            f"ORDER BY {_order_sql(order)} "
            f"LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}"
        )

        async with self.pool.acquire() as conn:
            total = await conn.fetchval(count_query, *params)
            records = await conn.fetch(page_query, *params, limit, offset)

        return [dict(record) for record in records], int(total or 0)

    async def fetch_roaster_rows(self, predicate, columns: Sequence[str]) -> List[Row]:
        where, params = predicate.to_sql()
        selected = ", ".join(("id", *columns))
        query = f"SELECT {selected} FROM ({self._roaster_relation_sql()}) AS roaster_directory WHERE {where}"

        async with self.pool.acquire() as conn:
            records = await conn.fetch(query, *params)

        return [dict(record) for record in records]
