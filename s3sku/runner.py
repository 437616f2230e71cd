from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
import logging
import threading
import time

from .copy import AwsCliCopier, Copier, CopyTask, TaskOutcome, build_task, execute_task
from .errors import ConfigurationError
from .extract import DEFAULT_COLUMN, DEFAULT_MAX_ITEMS, extract_identifiers, read_csv_rows
from .orchestrator import default_max_workers, run_tasks, validate_max_workers
from .results import ResultLog, RunSummary, create_log_file, summarize
from .utils import ensure_dir, human_bytes, is_s3_uri, validate_dest_root

log = logging.getLogger(__name__)


@dataclass
class RunConfig:
    csv_path: str
    bucket_root: str
    dest_root: str
    column: str = DEFAULT_COLUMN
    max_workers: int = field(default_factory=default_max_workers)
    skip_existing: bool = False
    dry_run: bool = False
    max_items: int = DEFAULT_MAX_ITEMS
    timeout: Optional[float] = None
    progress: bool = False
    progress_every: int = 10


def validate_config(cfg: RunConfig) -> None:
    if not cfg.csv_path or not Path(cfg.csv_path).is_file():
        raise ConfigurationError(f"CSV file not found: {cfg.csv_path}")
    if not cfg.bucket_root or not is_s3_uri(cfg.bucket_root):
        raise ConfigurationError(f"Invalid bucket root (expected s3://bucket/prefix/): {cfg.bucket_root}")
    dest = validate_dest_root(cfg.dest_root)
    if dest.exists() and not dest.is_dir():
        raise ConfigurationError(f"Destination exists and is not a directory: {cfg.dest_root}")
    validate_max_workers(cfg.max_workers)
    if cfg.max_items < 1:
        raise ConfigurationError(f"max_items must be >= 1, got {cfg.max_items}")
    if cfg.timeout is not None and cfg.timeout <= 0:
        raise ConfigurationError(f"timeout must be positive, got {cfg.timeout}")
    if cfg.progress_every < 1:
        raise ConfigurationError(f"progress_every must be >= 1, got {cfg.progress_every}")


def load_identifiers(cfg: RunConfig) -> List[str]:
    columns, rows = read_csv_rows(cfg.csv_path)
    return extract_identifiers(rows, cfg.column, max_items=cfg.max_items, columns=columns)


def plan(cfg: RunConfig) -> List[CopyTask]:
    """Validate inputs and list the copies a run would perform. Writes nothing."""
    validate_config(cfg)
    return [build_task(sku, cfg.bucket_root, cfg.dest_root) for sku in load_identifiers(cfg)]


def run_copy(
    cfg: RunConfig,
    copier: Optional[Copier] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RunSummary:
    """
    Copy every SKU listed in the CSV from the bucket root into the
    destination tree and return the run summary.

    Configuration and input problems raise before any copy starts.
    Per-SKU failures are recorded in the log and the summary instead.
    """
    started = time.monotonic()
    tasks = plan(cfg)

    if cfg.dry_run:
        for t in tasks:
            log.info("[DRY-RUN] %s -> %s", t.source, t.dest)
        log.info("Planned: %d SKU(s) (dry-run), Dest=%s", len(tasks), cfg.dest_root)
        return RunSummary(total=len(tasks), elapsed_s=time.monotonic() - started, dry_run=True)

    copier = copier or AwsCliCopier(timeout=cfg.timeout)
    try:
        ensure_dir(cfg.dest_root)
        result_log = ResultLog(create_log_file(cfg.dest_root, datetime.now(timezone.utc)))
    except OSError as e:
        raise ConfigurationError(f"Cannot write to destination {cfg.dest_root}: {e}") from e
    by_sku = {t.sku: t for t in tasks}
    total = len(tasks)
    done = 0
    done_lock = threading.Lock()

    log.info("Copying %d SKU(s) with %d worker(s); log: %s", total, cfg.max_workers, result_log.path)

    def _task(sku: str) -> TaskOutcome:
        return execute_task(by_sku[sku], copier, skip_existing=cfg.skip_existing)

    def _on_outcome(outcome: TaskOutcome) -> None:
        nonlocal done
        result_log.record(outcome)
        with done_lock:
            done += 1
            n = done
        if n % cfg.progress_every == 0 or n == total:
            log.info("Progress: %d/%d", n, total)

    outcomes = run_tasks(
        list(by_sku),
        _task,
        max_workers=cfg.max_workers,
        on_outcome=_on_outcome,
        progress=cfg.progress,
        cancel_event=cancel_event,
    )

    summary = summarize(outcomes, time.monotonic() - started, log_path=result_log.path, total=total)
    log.info(
        "Done. Total=%d Success=%d Skipped=%d Errors=%d Files=%d Bytes=%s Elapsed=%.1fs Log=%s",
        summary.total,
        summary.succeeded,
        summary.skipped,
        summary.errors,
        summary.files,
        human_bytes(summary.bytes),
        summary.elapsed_s,
        summary.log_path,
    )
    return summary
