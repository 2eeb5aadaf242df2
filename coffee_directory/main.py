"""
Main entry point and CLI for the coffee directory.

Runs a directory query either against a local catalog snapshot or against a
running API, and prints the result page and facet counts.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional
from datetime import datetime

from coffee_directory.catalog import CatalogService
from coffee_directory.client import CatalogClient
from coffee_directory.config import get_catalog_settings
from coffee_directory.models import FilterSpec
from coffee_directory.schemas import CatalogPage, FilterMeta
from coffee_directory.storage import InMemoryCatalogStore
from coffee_directory.url_builder import DirectoryURLBuilder


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def format_page(page: CatalogPage) -> str:
    """
    Format a result page for console output.

    Args:
        page: Result page to format

    Returns:
        Formatted string with one block per coffee
    """
    if not page.items:
        return "No coffees found matching your filters.\n"

    lines = [f"\n{'=' * 60}", f"{page.total} coffee(s), page {page.page}/{page.total_pages}", f"{'=' * 60}\n"]
    for item in page.items:
        lines.append(f"☕ {item.name}")
        if item.roaster_name:
            lines.append(f"   Roaster: {item.roaster_name}")
        if item.best_normalized_250g is not None:
            lines.append(f"   Price (250g): {item.best_normalized_250g:.0f}")
        if item.rating_avg is not None:
            lines.append(f"   Rating: {item.rating_avg:.1f} ({item.rating_count})")
        lines.append(f"   Slug: {item.slug}")
        lines.append("")
    return "\n".join(lines)


def format_meta(meta: FilterMeta, top: int = 5) -> str:
    """
    Format facet counts for console output.

    Args:
        meta: Facet counts
        top: Number of buckets to show per dimension

    Returns:
        Formatted string with one section per non-empty dimension
    """
    data = meta.model_dump(by_alias=True)
    totals = data.pop("totals")
    lines = [f"Totals: {totals['coffees']} coffees, {totals['roasters']} roasters"]
    for dimension, buckets in data.items():
        if not buckets:
            continue
        shown = ", ".join(f"{b['label']} ({b['count']})" for b in buckets[:top])
        more = f" +{len(buckets) - top} more" if len(buckets) > top else ""
        lines.append(f"  {dimension}: {shown}{more}")
    return "\n".join(lines) + "\n"


async def run_query(
    query_string: str,
    snapshot: Optional[str] = None,
    api_url: Optional[str] = None,
    show_meta: bool = False,
    verbose: bool = False
) -> int:
    """
    Execute one directory query.

    Args:
        query_string: Filters in address-bar form, e.g. "roastLevels=light&page=2"
        snapshot: Path of a catalog snapshot to query locally
        api_url: Base URL of a running API (used when no snapshot is given)
        show_meta: Also print facet counts
        verbose: Enable verbose logging output

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    spec: FilterSpec = DirectoryURLBuilder().parse_query_string(query_string)
    logger.info(f"Filters: {DirectoryURLBuilder().build_query_string(spec) or '(none)'}")
    start_time = datetime.now()

    try:
        meta: Optional[FilterMeta] = None
        if snapshot:
            service = CatalogService(InMemoryCatalogStore.from_snapshot(snapshot))
            if show_meta:
                payload = await service.directory(spec)
                page, meta = payload.results, payload.filter_meta
            else:
                page = await service.list_coffees(spec)
        else:
            settings = get_catalog_settings()
            base_url = api_url or settings.client.base_url
            async with CatalogClient(base_url=base_url) as client:
                if show_meta:
                    payload = await client.fetch_directory(spec)
                    page, meta = payload.results, payload.filter_meta
                else:
                    page = await client.fetch_coffees(spec)

        print(format_page(page))
        if meta is not None:
            print(format_meta(meta))

        elapsed_time = (datetime.now() - start_time).total_seconds()
        logger.info(f"Query completed in {elapsed_time:.2f} seconds")
        return 0

    except KeyboardInterrupt:
        logger.info("Query interrupted by user")
        print("\n\n⚠️  Query interrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logger.exception(f"Query failed with error: {str(e)}")
        print(f"\n❌ Error: {str(e)}", file=sys.stderr)
        return 1


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="coffee-directory",
        description="Query the coffee directory with address-bar style filters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Light roasts from a local snapshot
  coffee-directory "roastLevels=light" --snapshot catalog.json

  # Cheapest in-stock coffees with facet counts from a running API
  coffee-directory "inStockOnly=1&sort=price_asc" --meta
        """
    )

    parser.add_argument(
        "query",
        nargs="?",
        default="",
        help="Filters as a query string (e.g., 'roastLevels=light,medium&page=2')"
    )

    parser.add_argument(
        "--snapshot",
        type=str,
        default=None,
        help="Catalog snapshot JSON to query locally"
    )

    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Base URL of the directory API (default: CATALOG_API_URL)"
    )

    parser.add_argument(
        "--meta",
        action="store_true",
        help="Also print facet counts"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        return asyncio.run(
            run_query(
                query_string=args.query,
                snapshot=args.snapshot,
                api_url=args.api_url,
                show_meta=args.meta,
                verbose=args.verbose
            )
        )
    except Exception as e:
        logger.exception(f"Unexpected error in main: {str(e)}")
        print(f"❌ Unexpected error: {str(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
