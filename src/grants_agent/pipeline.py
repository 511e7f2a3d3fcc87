"""Pipeline orchestration: fetch → extract → relevance → state check → sync → state update."""

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from grants_agent.config import AgentConfig
from grants_agent.connectors import MarkupFetcher, SourcesConfig, WebSearchClient, collect_raw_items
from grants_agent.errors import ExtractionValidationError, FatalError, StaleRecordError
from grants_agent.extraction import ExtractionEngine, GenerativeModel, OpenAIChatModel, RetryPolicy
from grants_agent.filtering import RelevanceFilter
from grants_agent.ingest import IngestSynchronizer, SyncResult
from grants_agent.models.opportunity import OpportunityRecord
from grants_agent.models.raw import RawItem
from grants_agent.store import SyncStateStore, open_backend

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RunStats(BaseModel):
    """Per-run counters reported in the summary."""

    fetched: int = 0
    skipped_recent: int = 0
    skipped_deleted: int = 0
    extracted: int = 0
    created: int = 0
    updated: int = 0
    stale: int = 0
    errors: int = 0


async def _extract_relevant(
    item: RawItem,
    engine: ExtractionEngine,
    relevance: RelevanceFilter,
    max_attempts: int,
    today: Optional[date],
    stats: RunStats,
) -> OpportunityRecord:
    record = await engine.extract(item, max_attempts)
    if record is None:
        raise ExtractionValidationError(f"Extraction exhausted after {max_attempts} attempts")
    stats.extracted += 1

    result = relevance.check(record, today)
    if not result.relevant:
        raise StaleRecordError(result.reason or "Outdated opportunity")
    if result.note:
        logger.info("%s", result.note)
    return record


async def run_items(
    items: list[RawItem],
    *,
    config: AgentConfig,
    engine: ExtractionEngine,
    state: SyncStateStore,
    synchronizer: Optional[IngestSynchronizer],
    relevance: Optional[RelevanceFilter] = None,
    sleep: SleepFn = asyncio.sleep,
    clock: Callable[[], datetime] = _utcnow,
    today: Optional[date] = None,
    dry_run: bool = False,
) -> RunStats:
    """
    Process items strictly in order, one at a time. Per-item failures are
    counted and the loop moves on; FatalError aborts the run.
    """
    relevance = relevance or RelevanceFilter()
    stats = RunStats(fetched=len(items))

    for item in items:
        logger.info("Processing %s: %s", item.source_name, item.url)

        if state.is_deleted(item.external_id):
            logger.info("Previously deleted by user, skipping")
            stats.skipped_deleted += 1
            continue
        if not state.should_process(item.external_id, clock(), config.reprocess_window_hours):
            logger.info("Already processed recently, skipping")
            stats.skipped_recent += 1
            continue

        try:
            record = await _extract_relevant(
                item, engine, relevance, config.max_attempts, today, stats
            )
            if dry_run or synchronizer is None:
                logger.info("Dry run: would sync %r", record.title)
                continue
            result: SyncResult = await synchronizer.sync(record)
        except StaleRecordError as e:
            logger.info("Skipping %s", e.reason)
            stats.stale += 1
            continue
        except FatalError:
            raise
        except Exception as e:
            logger.warning("Error processing %s: %s", item.url, e)
            stats.errors += 1
            continue

        if result.action == "skipped":
            state.mark_deleted(item.external_id, clock())
            stats.skipped_deleted += 1
        else:
            state.mark_processed(item.external_id, clock())
            if result.action == "created":
                stats.created += 1
            else:
                stats.updated += 1

        if config.api_delay_seconds > 0:
            await sleep(config.api_delay_seconds)

    return stats


async def run_agent(
    config: AgentConfig,
    sources: SourcesConfig,
    *,
    dry_run: bool = False,
    model: Optional[GenerativeModel] = None,
    state: Optional[SyncStateStore] = None,
) -> RunStats:
    """
    One full pass: collect pages from sources, then run_items.
    Raises FatalError on missing configuration or when no source yields anything.
    """
    config.require_runtime(sync=not dry_run)
    state = state or SyncStateStore(
        open_backend(config.state_backend, config.resolved_state_path)
    )
    owned_model: Optional[OpenAIChatModel] = None
    if model is None:
        model = owned_model = OpenAIChatModel(config.openai_api_key or "", config.model)
    engine = ExtractionEngine(
        model,
        language=config.language,
        retry_policy=RetryPolicy(max_attempts=config.max_attempts),
    )
    search_client = WebSearchClient(config.search_endpoint, config.search_api_key)
    synchronizer = (
        None
        if dry_run
        else IngestSynchronizer(config.ingest_endpoint_url or "", config.ingest_api_key or "")
    )

    try:
        async with MarkupFetcher() as fetcher:
            items = await collect_raw_items(sources, fetcher, config.max_items, search_client)
            logger.info("Fetched %d sources", len(items))
            if not items:
                if sources.is_empty():
                    return RunStats()
                raise FatalError("No items fetched from any configured source")

            return await run_items(
                items,
                config=config,
                engine=engine,
                state=state,
                synchronizer=synchronizer,
                dry_run=dry_run,
            )
    finally:
        await search_client.aclose()
        if synchronizer is not None:
            await synchronizer.aclose()
        if owned_model is not None:
            await owned_model.aclose()
        state.close()
