"""CLI entry point for the people search client."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from people_search.core.config import Settings
from people_search.core.schemas import SearchView
from people_search.pipeline.active_filters import FILTER_OPTIONS
from people_search.pipeline.fetcher import FetchCoordinator
from people_search.pipeline.session import SearchSession, export_view_json, summary_line
from people_search.state.store import QueryStateStore
from people_search.transport import available_transports, get_transport
from people_search.transport.base import TransportError

DEFAULT_CONFIG = "config/settings.yaml"


def _choices(facet: str) -> list[str]:
    return [value for value, _ in FILTER_OPTIONS[facet]]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="People search - fetch, accumulate and refine search results",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Run a search and print refined results")
    search_parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Free-text search query (optional when --state carries one)",
    )
    search_parser.add_argument(
        "--state",
        help="Shareable search URL or query string to start from (e.g. '/search?q=rust&region=europe')",
    )
    search_parser.add_argument("--filter", dest="free_text", help="Client-side text filter")
    search_parser.add_argument("--experience", choices=_choices("experience"))
    search_parser.add_argument("--region", choices=_choices("region"))
    search_parser.add_argument("--role", choices=_choices("role"))
    search_parser.add_argument("--sort", choices=_choices("sort"))
    search_parser.add_argument(
        "--pages",
        type=int,
        help="Number of pages to load (default: pagination.max_pages from config)",
    )
    search_parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG,
        help=f"Path to settings YAML file (default: {DEFAULT_CONFIG})",
    )
    search_parser.add_argument("--transport", choices=available_transports())
    search_parser.add_argument("--fixture", help="JSON corpus for the 'file' transport")
    search_parser.add_argument(
        "--export",
        choices=["json"],
        help="Export results to format (json)",
    )
    search_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the resolved state and first request without fetching",
    )
    search_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(args: argparse.Namespace) -> Settings:
    """Load YAML settings and apply command-line overrides.

    A missing default config file means built-in defaults; a missing explicit
    path is an error.
    """
    if args.config == DEFAULT_CONFIG and not Path(DEFAULT_CONFIG).exists():
        settings = Settings()
    else:
        settings = Settings.from_yaml(args.config)

    api_updates: dict[str, str] = {}
    if args.transport:
        api_updates["transport"] = args.transport
    if args.fixture:
        api_updates["fixture_path"] = args.fixture
        api_updates.setdefault("transport", "file")
    if api_updates:
        settings = settings.model_copy(
            update={"api": settings.api.model_copy(update=api_updates)},
        )
    return settings


def build_store(args: argparse.Namespace, settings: Settings) -> QueryStateStore:
    """Resolve the starting state: --state first, then explicit flags on top."""
    store = QueryStateStore.from_url(args.state or "", base_url=settings.share.base_url)
    patch: dict[str, str] = {}
    if args.query is not None:
        patch["query"] = args.query
    for field in ("free_text", "experience", "region", "role", "sort"):
        value = getattr(args, field)
        if value is not None:
            patch[field] = value
    if patch:
        store.update(**patch)
    return store


def dry_run(store: QueryStateStore, settings: Settings, pages: int) -> None:
    """Print what would happen without actually searching."""
    state = store.state
    print(f"[DRY RUN] Query: '{state.query}'")
    print(f"[DRY RUN] Filters: {state.filters.model_dump(mode='json')}")
    print(f"[DRY RUN] Share URL: {store.to_url()}")
    print(
        f"[DRY RUN] Would GET {settings.api.base_url}{settings.api.search_path}"
        f"?query={state.query}&limit={settings.pagination.page_size}&offset=0"
        f" via '{settings.api.transport}' transport, up to {pages} pages",
    )


def print_view(view: SearchView, share_url: str) -> None:
    if view.error:
        print(f"Error: {view.error}")

    if not view.items:
        print("No results." if not view.total_accumulated else "No results match the current filters.")
    for i, record in enumerate(view.items, start=1):
        location = record.location or ", ".join(p for p in (record.city, record.country) if p)
        print(f"{i:3d}. {record.name or '(unnamed)'} - {record.role or 'n/a'}")
        details = [d for d in (location, f"{record.years:g} yrs", f"score {record.relevance_score:.2f}") if d]
        print(f"     {' | '.join(details)}")

    if view.active_filters:
        labels = ", ".join(f.label for f in view.active_filters)
        print(f"\nActive filters: {labels}")
    print(f"\n{summary_line(view)}")
    if view.has_more:
        print("More results available (increase --pages).")
    print(f"Share: {share_url}")


async def run(store: QueryStateStore, settings: Settings, pages: int, export_format: str | None) -> int:
    """Run the search, load up to ``pages`` pages, print results. Returns exit code."""
    transport = get_transport(settings.api.transport, settings.api)
    try:
        session = SearchSession(
            FetchCoordinator(transport),
            store,
            page_size=settings.pagination.page_size,
            dedupe_field=settings.accumulation.dedupe_field,
        )
        view = await session.submit(store.query)
        if not session.state.buffer.loaded:
            print(f"Error: {view.error}", file=sys.stderr)
            return 1

        for _ in range(pages - 1):
            if not view.has_more:
                break
            view = await session.load_more()
            if view.error:
                break
    finally:
        await transport.aclose()

    if export_format == "json":
        print(export_view_json(view))
    else:
        print_view(view, store.to_url())
    return 0


def main() -> None:
    args = parse_args()
    setup_logging(args.verbose)

    try:
        settings = load_settings(args)
    except (FileNotFoundError, ValueError) as e:
        logging.error("%s", e)
        sys.exit(1)

    store = build_store(args, settings)
    pages = args.pages if args.pages is not None else settings.pagination.max_pages
    if pages < 1:
        logging.error("--pages must be >= 1")
        sys.exit(1)

    if args.dry_run:
        dry_run(store, settings, pages)
        return

    try:
        code = asyncio.run(run(store, settings, pages, args.export))
    except (TransportError, ValueError) as e:
        logging.error("%s", e)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
