from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Any, List, Literal, Optional, Sequence
import logging
import subprocess
import time

from .core import list_objects, download_file
from .errors import CopyToolError, CopyTimeoutError, TaskError, log_and_reraise
from .utils import ensure_dir, has_any_file, dir_stats, join_s3_prefix, parse_s3_uri

log = logging.getLogger(__name__)

Status = Literal["success", "skipped", "error", "planned"]

# copier(source_uri, dest_dir) -> None; raises TaskError on failure
Copier = Callable[[str, Path], None]


@dataclass(frozen=True)
class CopyTask:
    sku: str
    source: str
    dest: Path


@dataclass(frozen=True)
class TaskOutcome:
    sku: str
    status: Status
    duration_ms: int
    files_transferred: int = 0
    bytes_transferred: int = 0
    error: Optional[str] = None
    timestamp: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "sku": self.sku,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "files_transferred": self.files_transferred,
            "bytes_transferred": self.bytes_transferred,
            "error": self.error,
        }


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_task(sku: str, bucket_root: str, dest_root: Path | str) -> CopyTask:
    return CopyTask(sku=sku, source=join_s3_prefix(bucket_root, sku), dest=Path(dest_root) / sku)


# ---------------- Copy engines ----------------
class AwsCliCopier:
    """
    Copy a prefix with `aws s3 cp --recursive`. The CLI decides what to
    transfer; its exit code and stderr are the only failure signal.
    """

    def __init__(
        self,
        executable: str = "aws",
        profile: Optional[str] = None,
        region: Optional[str] = None,
        timeout: Optional[float] = None,
        extra_args: Sequence[str] = (),
    ):
        self.executable = executable
        self.profile = profile
        self.region = region
        self.timeout = timeout
        self.extra_args = list(extra_args)

    def command(self, source: str, dest: Path | str) -> List[str]:
        cmd = [
            self.executable, "s3", "cp", source, str(dest),
            "--recursive", "--only-show-errors", "--no-follow-symlinks",
        ]
        if self.profile:
            cmd += ["--profile", self.profile]
        if self.region:
            cmd += ["--region", self.region]
        cmd += self.extra_args
        return cmd

    def __call__(self, source: str, dest: Path) -> None:
        cmd = self.command(source, dest)
        log.debug("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise CopyTimeoutError(f"copy timed out after {e.timeout:g}s") from e
        except FileNotFoundError as e:
            raise CopyToolError(f"copy tool not found: {self.executable}") from e
        if proc.returncode != 0:
            msg = (proc.stderr or proc.stdout or "").strip()
            raise CopyToolError(msg or f"{self.executable} exited with code {proc.returncode}")


class Boto3Copier:
    """
    Copy a prefix with boto3. Objects whose local copy already has the same
    size are left alone.
    """

    def __init__(self, s3_client):
        self.s3 = s3_client

    @log_and_reraise(CopyToolError)
    def __call__(self, source: str, dest: Path) -> None:
        bucket, prefix = parse_s3_uri(source)
        root = Path(dest).resolve()
        for key, size in list_objects(self.s3, bucket, prefix=prefix):
            rel = key[len(prefix):].lstrip("/")
            if not rel or rel.endswith("/"):
                continue
            target = (root / rel).resolve()
            if root not in target.parents:
                raise CopyToolError(f"refusing key outside destination: {key}")
            download_file(self.s3, bucket, key, target, size=size)


# ---------------- Task execution ----------------
def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def execute_task(
    task: CopyTask,
    copier: Copier,
    skip_existing: bool = False,
    dry_run: bool = False,
) -> TaskOutcome:
    """
    Run one copy and describe what happened. Never raises: every failure
    becomes an outcome with status `error`.
    """
    start = time.monotonic()

    if dry_run:
        return TaskOutcome(task.sku, "planned", _elapsed_ms(start), timestamp=utc_timestamp())

    try:
        if skip_existing and has_any_file(task.dest):
            log.debug("%s: destination %s not empty, skipping", task.sku, task.dest)
            return TaskOutcome(task.sku, "skipped", _elapsed_ms(start), timestamp=utc_timestamp())

        ensure_dir(task.dest)
        copier(task.source, task.dest)
        # counts what is present, which may include files copied by earlier runs
        files, size = dir_stats(task.dest)
    except TaskError as e:
        return _error(task, start, str(e) or type(e).__name__)
    except OSError as e:
        return _error(task, start, f"filesystem error: {e}")
    except Exception as e:
        return _error(task, start, f"{type(e).__name__}: {e}")

    return TaskOutcome(
        task.sku, "success", _elapsed_ms(start),
        files_transferred=files, bytes_transferred=size, timestamp=utc_timestamp(),
    )


def _error(task: CopyTask, start: float, message: str) -> TaskOutcome:
    log.error("%s: %s", task.sku, message)
    return TaskOutcome(task.sku, "error", _elapsed_ms(start), error=message, timestamp=utc_timestamp())


def execute(
    sku: str,
    source_root: str,
    dest_root: Path | str,
    skip_existing: bool = False,
    dry_run: bool = False,
    copier: Optional[Copier] = None,
) -> TaskOutcome:
    task = build_task(sku, source_root, dest_root)
    return execute_task(task, copier or AwsCliCopier(), skip_existing=skip_existing, dry_run=dry_run)
