"""Pipeline orchestrator wiring validation, dedup, acquisition and reporting."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Event, Thread
from typing import Callable, Iterable

import httpx
import structlog

from .config import KitwatchConfig
from .engine import (
    AcquireError,
    Acquirer,
    Candidate,
    CandidateResult,
    DedupStore,
    Outcome,
    Prober,
    RunSummary,
    StoreError,
    ValidationResult,
    Validator,
    WorkerPool,
)
from .engine.reporter import BaseReporter
from .infra import SQLiteManager
from .logging_conf import configure_logging


_FEED_END = object()


@dataclass(frozen=True)
class _FeedFailure:
    error: BaseException


@dataclass
class PipelineHooks:
    """Optional callbacks the CLI uses for progress display."""

    on_result: list[Callable[[CandidateResult], None]] = field(default_factory=list)

    def emit(self, result: CandidateResult) -> None:
        for callback in self.on_result:
            callback(result)


class Orchestrator:
    """Route each candidate through Validate → Dedup gate → Acquire.

    Workers share nothing but the dedup store. Results are handed to
    reporters from the thread calling :meth:`run`.
    """

    def __init__(
        self,
        config: KitwatchConfig,
        store: DedupStore,
        validator: Validator,
        acquirer: Acquirer,
        reporters: Iterable[BaseReporter] = (),
        logger: structlog.BoundLogger | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self.config = config
        self.poll_interval = poll_interval
        self.store = store
        self.validator = validator
        self.acquirer = acquirer
        self.reporters = list(reporters)
        self.logger = logger or configure_logging().bind(component="orchestrator")

    # ------------------------------------------------------------------
    def process(self, candidate: Candidate) -> CandidateResult:
        """Run one candidate to a terminal outcome. Only ``StoreError`` escapes."""

        log = self.logger.bind(url=candidate.url, identifier=candidate.identifier)
        try:
            validation = self.validator.validate(candidate)
        except Exception as exc:  # noqa: BLE001
            log.exception("validation_error")
            return CandidateResult(candidate, Outcome.VALIDATION_FAILED, error=str(exc))
        if not validation.verdict:
            return CandidateResult(
                candidate,
                Outcome.VALIDATION_FAILED,
                validation=validation,
                error=validation.error,
            )

        if not self.store.claim(
            candidate.identifier, url=candidate.url, source=candidate.source.value
        ):
            log.info("candidate_duplicate")
            return CandidateResult(candidate, Outcome.DUPLICATE, validation=validation)

        if not self.config.auto_download:
            log.info("kit_confirmed", downloaded=False)
            return CandidateResult(candidate, Outcome.REPORTED, validation=validation)

        try:
            kit = self.acquirer.acquire(candidate)
        except AcquireError as exc:
            log.warning("acquire_failed", error=exc.reason)
            return self._acquire_failed(candidate, validation, exc.reason)
        except Exception as exc:  # noqa: BLE001
            log.exception("acquire_error")
            return self._acquire_failed(candidate, validation, str(exc))
        return CandidateResult(candidate, Outcome.REPORTED, kit=kit, validation=validation)

    def _acquire_failed(
        self, candidate: Candidate, validation: ValidationResult, reason: str
    ) -> CandidateResult:
        if not self.config.remember_failed_downloads:
            self.store.forget(candidate.identifier)
        return CandidateResult(candidate, Outcome.ACQUIRE_FAILED, validation=validation, error=reason)

    # ------------------------------------------------------------------
    def run(
        self,
        source: Iterable[Candidate],
        cancel_event: Event | None = None,
        hooks: PipelineHooks | None = None,
    ) -> RunSummary:
        """Drain ``source`` through a bounded pool and return the run summary.

        The source is pulled on a feeder thread, so results are reported as
        soon as they finish even while the feed waits for its next URL.
        Setting ``cancel_event`` stops pulling new candidates; in-flight ones
        finish their whole sequence first. A ``StoreError`` halts the run the
        same way and is re-raised once the pool is drained. An exception
        raised by the source itself is re-raised the same way.
        """

        cancel = cancel_event or Event()
        hooks = hooks or PipelineHooks()
        summary = RunSummary()
        fatal: StoreError | None = None
        feed_error: BaseException | None = None
        self.logger.info("run_started", workers=self.config.threads)

        pool = WorkerPool(self.config.threads)
        inbox: Queue = Queue(maxsize=pool.max_pending)
        stopped = Event()
        feeder = Thread(
            target=self._pump,
            args=(source, inbox, cancel, stopped),
            name="kitwatch-feeder",
            daemon=True,
        )
        feeder.start()
        try:
            while not cancel.is_set():
                fatal = self._collect(pool.completed(), summary, hooks) or fatal
                if fatal is not None:
                    break
                if pool.saturated:
                    fatal = self._collect(pool.wait_any(self.poll_interval), summary, hooks) or fatal
                    continue
                try:
                    item = inbox.get(timeout=self.poll_interval)
                except Empty:
                    continue
                if item is _FEED_END:
                    break
                if isinstance(item, _FeedFailure):
                    feed_error = item.error
                    break
                pool.submit(self.process, item)
        except KeyboardInterrupt:
            cancel.set()
            self.logger.warning("run_interrupted")
        finally:
            stopped.set()
            fatal = self._collect(pool.drain(), summary, hooks) or fatal
            pool.shutdown(wait=True)
            if fatal is not None:
                cancel.set()
            summary.finish(cancelled=cancel.is_set())
            for reporter in self.reporters:
                reporter.summarize(summary)
                reporter.flush()

        self.logger.info("run_finished", **summary.to_dict())
        if fatal is not None:
            self.logger.error("store_failure", error=str(fatal))
            raise fatal
        if feed_error is not None:
            self.logger.error("feed_failure", error=str(feed_error))
            raise feed_error
        return summary

    def _pump(self, source: Iterable[Candidate], inbox: Queue, cancel: Event, stopped: Event) -> None:
        """Feeder thread body: move candidates from ``source`` into ``inbox``."""

        def halted() -> bool:
            return cancel.is_set() or stopped.is_set()

        def offer(item: object) -> None:
            while not halted():
                try:
                    inbox.put(item, timeout=self.poll_interval)
                    return
                except Full:
                    continue

        try:
            for candidate in source:
                if halted():
                    return
                offer(candidate)
        except Exception as exc:  # noqa: BLE001
            offer(_FeedFailure(exc))
            return
        offer(_FEED_END)

    def _collect(
        self, futures: list[Future], summary: RunSummary, hooks: PipelineHooks
    ) -> StoreError | None:
        fatal: StoreError | None = None
        for future in futures:
            try:
                result = future.result()
            except StoreError as exc:
                fatal = fatal or exc
                continue
            summary.add(result)
            hooks.emit(result)
            for reporter in self.reporters:
                reporter.report(result)
        return fatal

    def close(self) -> None:
        for reporter in self.reporters:
            reporter.close()


def build_orchestrator(
    config: KitwatchConfig,
    storage: SQLiteManager | None = None,
    client: httpx.Client | None = None,
    reporters: Iterable[BaseReporter] = (),
) -> Orchestrator:
    """Assemble the pipeline components from a single configuration value."""

    headers = {"User-Agent": config.user_agent} if config.user_agent else None
    client = client or httpx.Client(follow_redirects=True, timeout=config.timeout, headers=headers)
    store = DedupStore(storage or SQLiteManager(), Path(config.database))
    validator = Validator(config, Prober(client, config.timeout))
    acquirer = Acquirer(config, client)
    return Orchestrator(config, store, validator, acquirer, reporters=reporters)


__all__ = ["Orchestrator", "PipelineHooks", "build_orchestrator"]
