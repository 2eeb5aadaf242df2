"""
Roaster directory routes.
"""

import logging
from fastapi import APIRouter, HTTPException, Request

from coffee_directory.api.db import get_catalog_store
from coffee_directory.catalog import RoasterDirectory
from coffee_directory.schemas import RoasterFilterMeta, RoasterPage
from coffee_directory.url_builder import RoasterURLBuilder

logger = logging.getLogger(__name__)

router = APIRouter()

url_builder = RoasterURLBuilder()


@router.get("/roasters", response_model=RoasterPage)
async def list_roasters(request: Request):
    """
    List active roasters matching the filters in the query string.

    Each roaster carries its coffee count and rating aggregates.
    """
    spec = url_builder.parse_query_string(request.url.query)
    try:
        return await RoasterDirectory(get_catalog_store()).fetch(spec)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing roasters: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/roasters/filter-meta", response_model=RoasterFilterMeta)
async def get_roaster_filter_meta(request: Request):
    """City, state and country counts for the filters in the query string."""
    spec = url_builder.parse_query_string(request.url.query)
    try:
        meta = await RoasterDirectory(get_catalog_store()).filter_meta(spec)
        logger.debug(f"Roaster filter meta: {meta.totals.roasters} roasters for {spec}")
        return meta
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing roaster filter meta: {e}")
        raise HTTPException(status_code=500, detail=str(e))
