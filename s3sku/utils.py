from __future__ import annotations
from typing import Dict, Any, Tuple
from pathlib import Path, PurePath, PureWindowsPath
import re
import os
import yaml

from .errors import ConfigurationError


def ensure_dir(path: Path | str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


_S3_URI_RE = re.compile(r"^s3://[a-zA-Z0-9.\-_/]+$")

def is_s3_uri(uri: str) -> bool:
    if not _S3_URI_RE.match(uri):
        return False
    bucket = uri[len("s3://"):].split("/", 1)[0]
    return bool(bucket)


def parse_s3_uri(uri: str) -> Tuple[str, str]:
    if not is_s3_uri(uri):
        raise ValueError(f"Invalid S3 URI: {uri}")
    bucket, _, key = uri.replace("s3://", "", 1).partition("/")
    return bucket, key


def join_s3_prefix(root: str, name: str) -> str:
    """`s3://bucket/path/` + `SKU001` -> `s3://bucket/path/SKU001/`."""
    return f"{root.rstrip('/')}/{name}/"


_BAD_PATH_CHARS = set('\x00<>:"|?*')

def validate_dest_root(path: str) -> Path:
    """Reject destination roots with traversal components or disallowed characters."""
    if not path or not path.strip():
        raise ConfigurationError("Destination path is empty")
    # a drive prefix such as `C:` is the only place a colon is allowed
    rest = path[len(PureWindowsPath(path).drive):]
    bad = sorted(c for c in set(rest) if c in _BAD_PATH_CHARS)
    if bad:
        raise ConfigurationError(f"Destination path contains disallowed characters {bad!r}: {path}")
    if ".." in PurePath(path.replace("\\", "/")).parts:
        raise ConfigurationError(f"Destination path must not contain '..': {path}")
    return Path(path)


def has_any_file(path: Path | str) -> bool:
    """True if `path` is a directory holding at least one file, at any depth."""
    root = Path(path)
    if not root.is_dir():
        return False
    for _dirpath, _dirnames, filenames in os.walk(root):
        if filenames:
            return True
    return False


def dir_stats(path: Path | str) -> Tuple[int, int]:
    """Return (file_count, total_bytes) for everything under `path`."""
    files = 0
    total = 0
    for dirpath, _dirnames, filenames in os.walk(path):
        for name in filenames:
            files += 1
            total += os.path.getsize(os.path.join(dirpath, name))
    return files, total


def human_bytes(n: int) -> str:
    units = ["B", "KB", "MB", "GB", "TB"]
    s = float(n)
    for u in units:
        if s < 1024 or u == units[-1]:
            return f"{s:.1f} {u}"
        s /= 1024.0
