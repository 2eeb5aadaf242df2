"""
Coffee directory routes.

All filter routes read the raw query string so that list-valued parameters
use the same comma-joined encoding as the browser address bar.
"""

import logging
from fastapi import APIRouter, HTTPException, Request
from typing import List

from coffee_directory.api.db import get_catalog_store
from coffee_directory.catalog import CatalogService
from coffee_directory.schemas import CatalogPage, DirectoryPayload, FilterMeta, SearchIndexEntry
from coffee_directory.url_builder import DirectoryURLBuilder

logger = logging.getLogger(__name__)

router = APIRouter()

url_builder = DirectoryURLBuilder()


@router.get("/coffees", response_model=CatalogPage)
async def list_coffees(request: Request):
    """
    List coffees matching the filters in the query string.

    Returns one page of results with the total count and page count.
    """
    spec = url_builder.parse_query_string(request.url.query)
    try:
        service = CatalogService(get_catalog_store())
        return await service.list_coffees(spec)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing coffees: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/coffees/filter-meta", response_model=FilterMeta)
async def get_filter_meta(request: Request):
    """
    Facet counts for the filters in the query string.

    Each dimension is counted with its own filter removed, so the numbers
    show what selecting another value would return.
    """
    spec = url_builder.parse_query_string(request.url.query)
    try:
        service = CatalogService(get_catalog_store())
        return await service.filter_meta(spec)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing filter meta: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/coffees/directory", response_model=DirectoryPayload)
async def get_directory(request: Request):
    """
    Result page and facet counts in a single response.

    Used to seed the directory view before any client-side interaction.
    """
    spec = url_builder.parse_query_string(request.url.query)
    try:
        service = CatalogService(get_catalog_store())
        return await service.directory(spec)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading directory: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/search-index", response_model=List[SearchIndexEntry])
async def get_search_index():
    """Entries for client-side fuzzy name search."""
    try:
        service = CatalogService(get_catalog_store())
        return await service.search_index()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading search index: {e}")
        raise HTTPException(status_code=500, detail=str(e))
