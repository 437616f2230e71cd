from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence
import logging
import os
import threading
import time

from tqdm import tqdm

from .copy import TaskOutcome, utc_timestamp
from .errors import ConfigurationError

log = logging.getLogger(__name__)

MIN_WORKERS = 1
MAX_WORKERS = 20


def default_max_workers() -> int:
    return min(os.cpu_count() or 1, 10)


def validate_max_workers(value: int) -> int:
    """Out-of-range values are rejected rather than clamped."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"max_workers must be an integer, got {value!r}")
    if not MIN_WORKERS <= value <= MAX_WORKERS:
        raise ConfigurationError(f"max_workers must be between {MIN_WORKERS} and {MAX_WORKERS}, got {value}")
    return value


class OutcomeCollector:
    """Thread-safe accumulator for the outcomes of one run."""

    def __init__(self):
        self._items: List[TaskOutcome] = []
        self._lock = threading.Lock()

    def add(self, outcome: TaskOutcome) -> int:
        with self._lock:
            self._items.append(outcome)
            return len(self._items)

    def snapshot(self) -> List[TaskOutcome]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def run_tasks(
    skus: Sequence[str],
    task_fn: Callable[[str], TaskOutcome],
    max_workers: int,
    on_outcome: Optional[Callable[[TaskOutcome], None]] = None,
    progress: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> List[TaskOutcome]:
    """
    Run `task_fn` once per SKU with at most `max_workers` running at a time.

    `on_outcome` is called from the worker thread as soon as its task
    finishes. If `cancel_event` gets set, no further tasks are dispatched;
    running ones are left to finish. Outcomes come back in completion order.
    """
    if max_workers < 1:
        raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")

    collector = OutcomeCollector()
    slots = threading.BoundedSemaphore(max_workers)
    bar = tqdm(total=len(skus), desc="Copy", unit="sku") if progress and skus else None

    def _do(sku: str) -> TaskOutcome:
        start = time.monotonic()
        try:
            outcome = task_fn(sku)
        except Exception as e:
            outcome = TaskOutcome(
                sku, "error", int((time.monotonic() - start) * 1000),
                error=f"{type(e).__name__}: {e}", timestamp=utc_timestamp(),
            )
        collector.add(outcome)
        if on_outcome:
            try:
                on_outcome(outcome)
            except Exception:
                log.exception("Outcome callback failed for %s", sku)
        return outcome

    def _done(_fut) -> None:
        slots.release()
        if bar:
            bar.update(1)

    futures = []
    with ThreadPoolExecutor(max_workers=max_workers) as ex:
        for sku in skus:
            slots.acquire()
            if cancel_event is not None and cancel_event.is_set():
                slots.release()
                break
            fut = ex.submit(_do, sku)
            fut.add_done_callback(_done)
            futures.append(fut)
        wait(futures)

    if bar:
        bar.close()

    not_started = len(skus) - len(futures)
    if not_started:
        log.warning("Cancelled: %d of %d task(s) were not started", not_started, len(skus))
    return collector.snapshot()
