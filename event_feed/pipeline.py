#!/usr/bin/env python3
"""
Event Feed Pipeline

Sequential stages for one run:
  1. harvesting     - load the listing page, collect card markup
  2. batching       - group cards into fixed-size batches
  3. extracting     - one completion call per batch, cool-down in between
  4. quality_gate   - fall back to direct extraction if the LLM under-delivers
  5. deduplicating  - one record per title, first seen wins
  6. persisting     - replace the JSON artifact

A failed harvest aborts the run and leaves the previous artifact alone.
A failed completion call only costs the batch that made it.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from .batching import batch_fragments
from .config import Config
from .errors import CompletionError, HarvestError
from .extractor import StructuredExtractor
from .fallback import extract_direct
from .harvester import PageHarvester, build_listing_url
from .llm_client import CompletionClient, get_completion_client
from .logger import get_logger
from .models import EventRecord, ExtractionResult, PipelineState, RunReport
from .storage import write_artifact

log = get_logger('pipeline')

# The LLM path must recover at least this share of harvested cards
MIN_YIELD_RATIO = 0.5


def dedupe_by_title(records: Iterable[EventRecord]) -> List[EventRecord]:
    """
    Keep the first record for each exact title; drop untitled records.

    Distinct events that share a title collapse into one.
    """
    seen = set()
    unique = []
    for record in records:
        if not record.is_valid() or record.title in seen:
            continue
        seen.add(record.title)
        unique.append(record)
    return unique


def needs_fallback(record_count: int, fragment_count: int) -> bool:
    return record_count < fragment_count * MIN_YIELD_RATIO


def apply_quality_gate(fragments: Sequence[str], records: List[EventRecord],
                       default_location: str = "") -> Tuple[List[EventRecord], bool]:
    """
    Run the direct extractor over every fragment when the LLM yield is
    below half the card count, and keep its output only if it found more.

    Returns:
        (records, used_fallback)
    """
    if not needs_fallback(len(records), len(fragments)):
        return records, False

    log.warning(f"Only extracted {len(records)} events from {len(fragments)} cards, "
                f"attempting direct HTML extraction")
    direct = extract_direct(list(fragments), default_location=default_location)

    if len(direct) > len(records):
        log.info(f"Direct extraction found {len(direct)} events vs. {len(records)} from the LLM, using direct results")
        return direct, True

    log.info(f"Direct extraction found {len(direct)} events, keeping LLM results")
    return records, False


class EventPipeline:
    """Runs harvest -> extract -> gate -> dedupe -> persist."""

    def __init__(
        self,
        harvester: PageHarvester,
        extractor: StructuredExtractor,
        output_path: str,
        url_template: str = "",
        window_hours: int = 48,
        batch_size: int = 3,
        batch_delay: float = 1.5,
        default_location: str = "",
        keep_stale_on_empty: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.harvester = harvester
        self.extractor = extractor
        self.output_path = output_path
        self.url_template = url_template
        self.window_hours = window_hours
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.default_location = default_location
        self.keep_stale_on_empty = keep_stale_on_empty
        self._sleep = sleep
        self.state: Optional[PipelineState] = None

    @classmethod
    def from_config(cls, config: Config, client: Optional[CompletionClient] = None) -> 'EventPipeline':
        """Wire the pipeline from configuration (client injectable for tests)."""
        client = client or get_completion_client(config)
        harvester = PageHarvester(
            headless=config.HEADLESS,
            navigation_timeout_ms=config.NAVIGATION_TIMEOUT_MS,
            card_wait_ms=config.CARD_WAIT_MS,
            auto_scroll=config.AUTO_SCROLL,
        )
        extractor = StructuredExtractor(
            client,
            max_chars=config.MAX_PROMPT_CHARS,
            default_location=config.DEFAULT_LOCATION,
            max_tokens=config.LLM_MAX_TOKENS,
        )
        return cls(
            harvester=harvester,
            extractor=extractor,
            output_path=config.OUTPUT_PATH,
            url_template=config.EVENTS_URL_TEMPLATE,
            window_hours=config.WINDOW_HOURS,
            batch_size=config.BATCH_SIZE,
            batch_delay=config.batch_delay_seconds,
            default_location=config.DEFAULT_LOCATION,
            keep_stale_on_empty=config.KEEP_STALE_ON_EMPTY,
        )

    def _enter(self, state: PipelineState):
        self.state = state
        log.debug(f"State -> {state.value}")

    async def harvest(self, url: Optional[str] = None, now: Optional[datetime] = None) -> Tuple[str, List[str]]:
        """Stage 1 alone. Raises HarvestError."""
        url = url or build_listing_url(self.url_template, now, self.window_hours)
        self._enter(PipelineState.HARVESTING)
        try:
            fragments = await self.harvester.harvest(url)
        except HarvestError as e:
            self._enter(PipelineState.HARVEST_FAILED)
            log.error(f"Harvest failed, artifact left untouched: {e}")
            raise
        return url, fragments

    async def run(self, url: Optional[str] = None, now: Optional[datetime] = None) -> RunReport:
        """Full run against the live listing page."""
        url, fragments = await self.harvest(url, now)
        return await self.process(fragments, url=url)

    async def process(self, fragments: Sequence[str], url: str = "") -> RunReport:
        """Stages 2-6 over already harvested fragments."""
        report = RunReport(state=PipelineState.BATCHING, url=url, fragment_count=len(fragments))

        if not fragments:
            return self._finish_empty(report)

        self._enter(PipelineState.BATCHING)
        batches = batch_fragments(fragments, self.batch_size)
        log.info(f"Processing {len(fragments)} event cards in {len(batches)} batches")

        self._enter(PipelineState.EXTRACTING)
        records: List[EventRecord] = []
        for batch in batches:
            log.info(f"Processing batch {batch.index + 1} of {len(batches)}...")
            try:
                result = await asyncio.to_thread(self.extractor.extract, batch.markup, batch.index)
            except CompletionError as e:
                log.error(f"Batch {batch.index + 1} failed, continuing: {e}")
                result = ExtractionResult.failure(batch.index, len(batch), str(e))

            report.batch_results.append(result)
            records.extend(result.records)

            if batch.index < len(batches) - 1:
                await self._sleep(self.batch_delay)

        report.llm_record_count = len(records)

        self._enter(PipelineState.QUALITY_GATE)
        if needs_fallback(len(records), len(fragments)):
            self._enter(PipelineState.FALLBACK_SWEEP)
        records, report.used_fallback = apply_quality_gate(fragments, records, self.default_location)

        self._enter(PipelineState.DEDUPLICATING)
        unique = dedupe_by_title(records)
        log.info(f"Extracted {len(unique)} unique events from {len(fragments)} cards")

        self._enter(PipelineState.PERSISTING)
        report.artifact = write_artifact(unique, self.output_path)

        self._enter(PipelineState.DONE)
        report.state = PipelineState.DONE
        return report

    def _finish_empty(self, report: RunReport) -> RunReport:
        self._enter(PipelineState.NO_EVENTS)
        report.state = PipelineState.NO_EVENTS
        if self.keep_stale_on_empty:
            log.info("No event cards found; keeping previous artifact")
            return report
        log.info("No event cards found; writing empty feed")
        report.artifact = write_artifact([], self.output_path)
        return report
