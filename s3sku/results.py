from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
import json
import threading

from .copy import TaskOutcome

LOG_PREFIX = "s3sku-copy-"
LOG_SUFFIX = ".log.jsonl"


def log_path_for(dest_root: Path | str, started_at: Optional[datetime] = None, n: int = 0) -> Path:
    dt = started_at or datetime.now(timezone.utc)
    ts = dt.strftime("%Y%m%dT%H%M%S") + f"{dt.microsecond // 1000:03d}Z"
    suffix = f"-{n}" if n else ""
    return Path(dest_root) / f"{LOG_PREFIX}{ts}{suffix}{LOG_SUFFIX}"


def create_log_file(dest_root: Path | str, started_at: Optional[datetime] = None, attempts: int = 1000) -> Path:
    """
    Create an empty, not yet used log file for one run. Runs that start in
    the same millisecond get a `-N` suffix instead of sharing a file.
    """
    started_at = started_at or datetime.now(timezone.utc)
    for n in range(attempts):
        path = log_path_for(dest_root, started_at, n)
        try:
            with open(path, "x", encoding="utf-8"):
                pass
        except FileExistsError:
            continue
        return path
    raise FileExistsError(f"No free log file name under {dest_root}")


class ResultLog:
    """
    Append-only JSON-lines log of task outcomes, safe to share between
    worker threads. The file is opened per write so an interrupted run
    leaves only complete lines behind.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, outcome: TaskOutcome) -> None:
        line = json.dumps(outcome.to_record(), ensure_ascii=False)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()


def read_log(path: Path | str) -> List[Dict[str, Any]]:
    records = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                records.append(json.loads(line))
    return records


@dataclass
class RunSummary:
    total: int
    succeeded: int = 0
    skipped: int = 0
    errors: int = 0
    files: int = 0
    bytes: int = 0
    elapsed_s: float = 0.0
    log_path: Optional[Path] = None
    dry_run: bool = False
    failures: List[Tuple[str, str]] = field(default_factory=list)


def summarize(
    outcomes: Iterable[TaskOutcome],
    elapsed_s: float,
    log_path: Optional[Path] = None,
    total: Optional[int] = None,
) -> RunSummary:
    outcomes = list(outcomes)
    s = RunSummary(total=len(outcomes) if total is None else total, elapsed_s=elapsed_s, log_path=log_path)
    for o in outcomes:
        if o.status == "success":
            s.succeeded += 1
        elif o.status == "skipped":
            s.skipped += 1
        elif o.status == "error":
            s.errors += 1
            s.failures.append((o.sku, o.error or ""))
        s.files += o.files_transferred
        s.bytes += o.bytes_transferred
    s.failures.sort()
    return s
