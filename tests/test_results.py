import json
import threading
from datetime import datetime, timezone
from pathlib import Path

from s3sku.copy import TaskOutcome
from s3sku.results import ResultLog, create_log_file, log_path_for, read_log, summarize


def _outcome(sku, status="success", files=1, size=10, error=None):
    return TaskOutcome(sku, status, 5, files, size, error, "2026-01-01T00:00:00.000Z")


def test_log_path_name(tmp_path):
    p = log_path_for(tmp_path, datetime(2026, 3, 4, 5, 6, 7, 89000, tzinfo=timezone.utc))
    assert p == tmp_path / "s3sku-copy-20260304T050607089Z.log.jsonl"


def test_record_appends_json_lines(tmp_path):
    log = ResultLog(tmp_path / "run.log.jsonl")
    assert not log.path.exists()
    log.record(_outcome("A"))
    log.record(_outcome("B", "error", 0, 0, "boom"))
    lines = log.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    second = json.loads(lines[1])
    assert second == {
        "timestamp": "2026-01-01T00:00:00.000Z",
        "sku": "B",
        "status": "error",
        "duration_ms": 5,
        "files_transferred": 0,
        "bytes_transferred": 0,
        "error": "boom",
    }
    assert json.loads(lines[0])["error"] is None


def test_concurrent_writers_lose_nothing(tmp_path):
    log = ResultLog(tmp_path / "run.log.jsonl")

    def write(prefix):
        for i in range(100):
            log.record(_outcome(f"{prefix}-{i}"))

    threads = [threading.Thread(target=write, args=(p,)) for p in "ABCDEFGH"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    records = read_log(log.path)
    assert len(records) == 800
    assert len({r["sku"] for r in records}) == 800


def test_summarize_counts():
    outcomes = [
        _outcome("A", files=2, size=100),
        _outcome("B", "skipped", 0, 0),
        _outcome("C", "error", 0, 0, "denied"),
        _outcome("D", files=1, size=5),
    ]
    s = summarize(outcomes, elapsed_s=1.5, log_path=Path("x.jsonl"))
    assert (s.total, s.succeeded, s.skipped, s.errors) == (4, 2, 1, 1)
    assert (s.files, s.bytes) == (3, 105)
    assert s.failures == [("C", "denied")]
    assert s.elapsed_s == 1.5
    assert s.log_path == Path("x.jsonl")


def test_summarize_explicit_total():
    s = summarize([_outcome("A")], elapsed_s=0.1, total=3)
    assert s.total == 3
    assert s.succeeded == 1


def test_create_log_file_never_reuses_a_name(tmp_path):
    at = datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    paths = [create_log_file(tmp_path, at) for _ in range(3)]
    assert [p.name for p in paths] == [
        "s3sku-copy-20260304T050607000Z.log.jsonl",
        "s3sku-copy-20260304T050607000Z-1.log.jsonl",
        "s3sku-copy-20260304T050607000Z-2.log.jsonl",
    ]
    assert all(p.exists() and p.stat().st_size == 0 for p in paths)
