"""Main CLI entry point."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="grants-agent",
        description="Extract grant, residency and open-call announcements and sync them to the registry",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config file; environment variables override its values",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # run
    run_parser = subparsers.add_parser("run", help="Fetch sources, extract and sync opportunities")
    run_parser.add_argument(
        "--sources",
        type=Path,
        default=None,
        help="Sources YAML (default: SOURCES_FILE or sources.yaml)",
    )
    run_parser.add_argument(
        "--state",
        type=Path,
        default=None,
        metavar="PATH",
        help="Sync state location (SQLite file or JSON directory)",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Extract and filter only; no registry calls, no state writes",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print run summary as JSON",
    )

    # extract
    extract_parser = subparsers.add_parser("extract", help="Extract a single page and print the record")
    extract_parser.add_argument("url", help="Page URL")
    extract_parser.add_argument(
        "--source-name",
        default="manual",
        help="Source name used for the external id (default: manual)",
    )

    # state
    state_parser = subparsers.add_parser("state", help="Inspect or edit sync state")
    state_parser.add_argument(
        "action",
        choices=["show", "forget", "delete"],
        help="Show counts, forget a processed id, or mark an id deleted",
    )
    state_parser.add_argument("external_id", nargs="?", default=None)
    state_parser.add_argument("--state", type=Path, default=None, metavar="PATH")

    # external-id
    id_parser = subparsers.add_parser("external-id", help="Print the external id for a source and URL")
    id_parser.add_argument("source_name")
    id_parser.add_argument("url")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from grants_agent.errors import FatalError

    try:
        if args.command == "run":
            _run_agent(args)
        elif args.command == "extract":
            _run_extract(args)
        elif args.command == "state":
            _run_state(args)
        elif args.command == "external-id":
            _run_external_id(args)
        else:
            parser.print_help()
    except FatalError as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        raise SystemExit(1)


def _load_config(args: argparse.Namespace):
    from grants_agent.config import AgentConfig

    if args.config is not None:
        config = AgentConfig.from_yaml(args.config)
    else:
        config = AgentConfig.from_env()
    if getattr(args, "state", None) is not None:
        config = config.model_copy(update={"state_path": args.state})
    return config


def _open_state(config):
    from grants_agent.store import SyncStateStore, open_backend

    return SyncStateStore(open_backend(config.state_backend, config.resolved_state_path))


def _run_agent(args: argparse.Namespace) -> None:
    """Run command."""
    from grants_agent.connectors import SourcesConfig
    from grants_agent.pipeline import run_agent

    config = _load_config(args)
    sources_path = args.sources or config.sources_file or Path("sources.yaml")
    sources = SourcesConfig.from_yaml(sources_path)

    stats = asyncio.run(run_agent(config, sources, dry_run=args.dry_run))

    if args.json:
        print(json.dumps(stats.model_dump(), indent=2))
        return
    print("\nSummary:")
    print(f"  Sources fetched: {stats.fetched}")
    print(f"  Skipped (recently processed): {stats.skipped_recent}")
    print(f"  Skipped (deleted by user): {stats.skipped_deleted}")
    print(f"  Extracted: {stats.extracted}")
    print(f"  Created: {stats.created}")
    print(f"  Updated: {stats.updated}")
    print(f"  Stale: {stats.stale}")
    print(f"  Errors: {stats.errors}")


async def _extract_one(config, url: str, source_name: str):
    from grants_agent.connectors import MarkupFetcher
    from grants_agent.errors import FatalError, FetchError
    from grants_agent.extraction import ExtractionEngine, OpenAIChatModel, RetryPolicy
    from grants_agent.filtering import RelevanceFilter
    from grants_agent.models.raw import RawItem

    model = OpenAIChatModel(config.openai_api_key or "", config.model)
    engine = ExtractionEngine(
        model,
        language=config.language,
        retry_policy=RetryPolicy(max_attempts=config.max_attempts),
    )
    try:
        async with MarkupFetcher() as fetcher:
            try:
                markup = await fetcher.fetch_article(url)
            except FetchError as e:
                raise FatalError(str(e)) from e
        record = await engine.extract(RawItem.from_page(source_name, url, markup))
    finally:
        await model.aclose()
    if record is None:
        return None, None
    return record, RelevanceFilter().check(record)


def _run_extract(args: argparse.Namespace) -> None:
    """Extract command: one page through fetch, extraction and relevance, no sync."""
    config = _load_config(args)
    config.require_runtime(sync=False)

    record, relevance = asyncio.run(_extract_one(config, args.url, args.source_name))
    if record is None:
        print(f"Extraction failed for {args.url}", file=sys.stderr)
        raise SystemExit(1)

    output = {
        "record": record.model_dump(mode="json", exclude_none=True),
        "relevance": relevance.model_dump(),
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))


def _run_state(args: argparse.Namespace) -> None:
    """State command."""
    config = _load_config(args)
    state = _open_state(config)
    try:
        if args.action == "show":
            processed = state.processed_ids()
            deleted = state.deleted_ids()
            print(f"Processed: {len(processed)}")
            print(f"Deleted: {len(deleted)}")
            if args.external_id:
                last = state.last_processed(args.external_id)
                print(f"{args.external_id}:")
                print(f"  last processed: {last.isoformat() if last else 'never'}")
                print(f"  deleted: {state.is_deleted(args.external_id)}")
            return

        if not args.external_id:
            raise SystemExit(f"state {args.action} requires an external id")
        if args.action == "forget":
            state.forget(args.external_id)
            print(f"Forgot {args.external_id}")
        elif args.action == "delete":
            state.mark_deleted(args.external_id)
            print(f"Marked {args.external_id} as deleted")
    finally:
        state.close()


def _run_external_id(args: argparse.Namespace) -> None:
    from grants_agent.models.raw import make_external_id

    print(make_external_id(args.source_name, args.url))


if __name__ == "__main__":
    main()
