"""Run coordinator wiring together fetching, conversion, dedup and export."""

from __future__ import annotations

from concurrent.futures import Future, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Sequence

import httpx
import structlog

from .config import GlobalConfig
from .engine import (
    Accepted,
    ConvertedEntry,
    DeduplicationStore,
    FetchError,
    FetchResponse,
    Fetcher,
    RuleConverter,
    ThreadPoolManager,
)
from .engine.exporter import write_report
from .logging_conf import source_logger


class RunStatus(str, Enum):
    COMPLETED = "completed"
    NO_DATA = "no_data"


@dataclass(frozen=True, slots=True)
class SourceStat:
    """Provenance of one source for the report header."""

    source: str
    fetched_count: int = 0
    converted_count: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class RunResult:
    status: RunStatus
    stats: list[SourceStat] = field(default_factory=list)
    unique_raw_count: int = 0
    unique_converted_count: int = 0
    entries: list[ConvertedEntry] = field(default_factory=list)
    output_path: Path | None = None

    @property
    def has_data(self) -> bool:
        return self.status is RunStatus.COMPLETED

    @property
    def failed_sources(self) -> list[SourceStat]:
        return [stat for stat in self.stats if not stat.ok]


@dataclass(slots=True)
class _FetchOutcome:
    source: str
    response: FetchResponse | None = None
    error: FetchError | None = None


class Orchestrator:
    """Fetch every source concurrently, then merge, convert and dedup in one place.

    Only the calling thread touches the dedup stores and the output list;
    worker threads return their :class:`FetchResponse` and nothing else. The
    merge walks sources in configured order, so the first occurrence of a
    domain is decided by source order and then line order, never by which
    download finished first.
    """

    def __init__(
        self,
        global_config: GlobalConfig,
        thread_pool: ThreadPoolManager | None = None,
        fetcher_factory: Callable[[GlobalConfig], Fetcher] | None = None,
        converter: RuleConverter | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.global_config = global_config
        self.thread_pool = thread_pool or ThreadPoolManager(global_config.thread_pool_workers)
        self._owns_pool = thread_pool is None
        self._transport = transport
        self.fetcher_factory = fetcher_factory or self._default_fetcher
        self.converter = converter or RuleConverter()
        self.logger = structlog.get_logger("adblock2hosts.orchestrator")

    def _default_fetcher(self, global_config: GlobalConfig) -> Fetcher:
        return Fetcher(global_config, transport=self._transport)

    # ------------------------------------------------------------------
    def run(self, sources: Sequence[str] | None = None) -> RunResult:
        """Fetch and convert ``sources`` (defaults to the configured list).

        A URL listed more than once is fetched and reported once.
        """

        urls = list(dict.fromkeys(self.global_config.sources if sources is None else sources))
        self.logger.info("run_started", sources=len(urls))
        outcomes = self._fetch_all(urls)

        raw_store = DeduplicationStore()
        stats_fetched: dict[int, int] = {}
        for index, outcome in enumerate(outcomes):
            if outcome.response is None:
                continue
            stats_fetched[index] = len(outcome.response.rules)
            for rule in outcome.response.rules:
                raw_store.check_and_store(rule.text, rule.source)

        unique_raw = len(raw_store)
        self.logger.info("raw_rules_merged", unique_raw=unique_raw)

        domain_store = DeduplicationStore()
        entries: list[ConvertedEntry] = []
        converted_by_source: dict[str, int] = {}
        interval = self.global_config.progress_log_interval
        for index, text in enumerate(raw_store):
            if index and index % interval == 0:
                self.logger.info("conversion_progress", processed=index, total=unique_raw)
            result = self.converter.convert(text)
            if not isinstance(result, Accepted):
                continue
            origin = raw_store.origin(text) or ""
            if domain_store.check_and_store(result.entry.domain, origin):
                entries.append(result.entry)
                converted_by_source[origin] = converted_by_source.get(origin, 0) + 1

        stats = []
        for index, outcome in enumerate(outcomes):
            if outcome.error is not None:
                stats.append(SourceStat(outcome.source, error=outcome.error.message))
            else:
                stats.append(
                    SourceStat(
                        outcome.source,
                        fetched_count=stats_fetched.get(index, 0),
                        converted_count=converted_by_source.get(outcome.source, 0),
                    )
                )

        status = RunStatus.COMPLETED if entries else RunStatus.NO_DATA
        if status is RunStatus.NO_DATA:
            self.logger.warning("run_no_data", unique_raw=unique_raw)
        result = RunResult(
            status=status,
            stats=stats,
            unique_raw_count=unique_raw,
            unique_converted_count=len(entries),
            entries=entries,
        )
        self.logger.info(
            "run_completed",
            status=status.value,
            unique_raw=unique_raw,
            unique_converted=len(entries),
            failed_sources=len(result.failed_sources),
        )
        return result

    def run_and_write(
        self,
        sources: Sequence[str] | None = None,
        destination: Path | None = None,
        generated_at: datetime | None = None,
    ) -> RunResult:
        """Run the pipeline and persist the artifact unless there is no data.

        ``OSError`` from the writer propagates to the caller.
        """

        result = self.run(sources)
        if not result.has_data:
            self.logger.warning("report_skipped", reason="no_data")
            return result
        target = Path(destination or self.global_config.output_path)
        result.output_path = write_report(
            result,
            target,
            report=self.global_config.report,
            generated_at=generated_at,
            logger=self.logger,
        )
        return result

    def close(self) -> None:
        if self._owns_pool:
            self.thread_pool.shutdown()

    # ------------------------------------------------------------------
    def _fetch_all(self, urls: list[str]) -> list[_FetchOutcome]:
        outcomes = [_FetchOutcome(url) for url in urls]
        if not urls:
            return outcomes
        fetcher = self.fetcher_factory(self.global_config)
        try:
            executor = self.thread_pool.get()
            futures: dict[Future[FetchResponse], int] = {
                executor.submit(fetcher.fetch, url): index for index, url in enumerate(urls)
            }
            for future in as_completed(futures):
                index = futures[future]
                url = urls[index]
                try:
                    outcomes[index].response = future.result()
                except FetchError as exc:
                    source_logger(url).warning("fetch_failed", error=exc.message)
                    outcomes[index].error = exc
                except Exception as exc:  # noqa: BLE001
                    source_logger(url).error("fetch_crashed", error=str(exc))
                    outcomes[index].error = FetchError(url, f"unexpected error: {type(exc).__name__}")
        finally:
            fetcher.close()
        return outcomes


__all__ = ["Orchestrator", "RunResult", "RunStatus", "SourceStat"]
