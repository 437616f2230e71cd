from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from pathlib import Path
import logging
import re

import pandas as pd

from .errors import ConfigurationError, EmptyInputError, TooManyItemsError

log = logging.getLogger(__name__)

DEFAULT_COLUMN = "Supplier Item #"
DEFAULT_MAX_ITEMS = 10_000
MAX_SKU_LENGTH = 100

_SKU_RE = re.compile(r"[A-Za-z0-9._-]+")


def read_csv_rows(path: Path | str) -> Tuple[List[str], List[Dict[str, str]]]:
    """
    Load a CSV into (columns, rows). Every cell is read as a string so
    identifiers like `00123` keep their leading zeros.
    """
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(f"CSV file not found: {p}")
    try:
        df = pd.read_csv(p, dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        raise ConfigurationError(f"Cannot read CSV {p}: {e}") from e
    columns = [str(c) for c in df.columns]
    return columns, df.to_dict(orient="records")


def validate_identifier(value: str) -> Optional[str]:
    """Return why `value` is not a usable SKU, or None if it is."""
    if len(value) > MAX_SKU_LENGTH:
        return f"longer than {MAX_SKU_LENGTH} characters"
    if ".." in value or "/" in value or "\\" in value or value == ".":
        return "contains a path separator or traversal sequence"
    if not _SKU_RE.fullmatch(value):
        return "contains characters outside [A-Za-z0-9._-]"
    return None


def _available_columns(rows: Sequence[Mapping[str, str]]) -> List[str]:
    seen: Dict[str, None] = {}
    for row in rows:
        for k in row.keys():
            seen.setdefault(k, None)
    return list(seen)


def extract_identifiers(
    rows: Iterable[Mapping[str, str]],
    column: str = DEFAULT_COLUMN,
    max_items: int = DEFAULT_MAX_ITEMS,
    columns: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Pull the SKU column out of `rows` and return a sorted, deduplicated list
    of valid identifiers. Invalid values are dropped with a warning.

    `columns` is the header of the source table; when omitted it is derived
    from the keys of the rows themselves.
    """
    rows = list(rows)
    available = list(columns) if columns is not None else _available_columns(rows)
    if rows or columns is not None:
        if column not in available:
            raise ConfigurationError(
                f"Column {column!r} not found. Available columns: {', '.join(available) or '(none)'}"
            )

    skus = set()
    rejected = 0
    for n, row in enumerate(rows, start=1):
        raw = row.get(column)
        if raw is None:
            continue
        value = str(raw).strip()
        if not value:
            continue
        reason = validate_identifier(value)
        if reason:
            rejected += 1
            log.warning("Row %d: skipping %r (%s)", n, value[:120], reason)
            continue
        skus.add(value)

    if rejected:
        log.warning("Rejected %d invalid value(s) in column %r", rejected, column)
    if not skus:
        raise EmptyInputError(f"No valid identifiers found in column {column!r}")
    if len(skus) > max_items:
        raise TooManyItemsError(f"{len(skus)} identifiers exceed the limit of {max_items}")
    return sorted(skus)
