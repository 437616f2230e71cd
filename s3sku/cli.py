# cli.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import typer
import click
from botocore.exceptions import BotoCoreError

from .copy import AwsCliCopier, Boto3Copier
from .core import get_s3_client
from .errors import ConfigurationError, S3SkuError, setup_logging
from .extract import DEFAULT_COLUMN, DEFAULT_MAX_ITEMS
from .orchestrator import default_max_workers
from .runner import RunConfig, run_copy
from .utils import read_yaml, human_bytes

app = typer.Typer(add_completion=False, help="Copy SKU folders from S3 listed in a CSV")

# ---------------- Settings kept in Typer context ----------------
@dataclass
class Settings:
    verbose: bool = False
    aws_profile: Optional[str] = None
    aws_region: Optional[str] = None

DEFAULT_CONFIG = "config/config.yaml"

# ---------------- Helpers ----------------
def _load_cfg(config_path: Optional[str]) -> dict:
    """
    Load YAML config if present, otherwise return {}.
    Never crash on missing/empty config.
    """
    path = config_path or DEFAULT_CONFIG
    try:
        cfg = read_yaml(path)
    except FileNotFoundError:
        return {}
    if not cfg:
        return {}
    return cfg

def _client_from_cfg(cfg: dict, settings: Settings):
    """
    Resolve AWS profile/region with priority:
    CLI flags -> ENV (handled inside boto3) -> YAML.
    """
    aws = (cfg.get("aws") or {}) if cfg else {}
    try:
        return get_s3_client(
            aws_profile=settings.aws_profile or aws.get("profile"),
            region_name=settings.aws_region or aws.get("region"),
            retries_max_attempts=aws.get("retries_max_attempts", 8),
            retries_mode=aws.get("retries_mode", "standard"),
            connect_timeout=aws.get("connect_timeout", 10),
            read_timeout=aws.get("read_timeout", 60),
        )
    except BotoCoreError as e:
        raise ConfigurationError(f"Cannot create S3 client: {e}") from e

def _pick(flag, section: dict, key: str, default=None):
    """CLI flag -> YAML -> default."""
    if flag is not None:
        return flag
    return section.get(key, default)

# ---------------- Root options (global) ----------------
@app.callback()
def _root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
    profile: Optional[str] = typer.Option(None, "--profile", help="AWS profile name"),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region (e.g. us-east-1)"),
):
    """
    Set up global Settings and logging once.
    """
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    setup_logging(level=level)

    ctx.obj = Settings(
        verbose=verbose,
        aws_profile=profile,
        aws_region=region,
    )

# ---------------- COPY ----------------
@app.command("copy")
def cmd_copy(
    ctx: typer.Context,
    csv_path: Optional[str] = typer.Option(None, "--csv", help="CSV file listing the SKUs"),
    bucket_root: Optional[str] = typer.Option(None, "--bucket-root", help="S3 root holding SKU folders (e.g. s3://bucket/path/)"),
    dest: Optional[str] = typer.Option(None, "--dest", help="Local destination directory"),
    column: Optional[str] = typer.Option(None, "--column", help=f"CSV column with SKUs [default: {DEFAULT_COLUMN}]"),
    max_workers: Optional[int] = typer.Option(None, "--max-workers", help="Parallel copies (1-20)"),
    skip_existing: Optional[bool] = typer.Option(None, "--skip-existing/--no-skip-existing", help="Skip SKUs whose folder already holds files"),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run", help="Plan only; do not copy or log anything"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds before a single SKU copy is killed"),
    engine: Optional[str] = typer.Option(
        None,
        help="Copy engine [default: cli]",
        case_sensitive=False,
        click_type=click.Choice(["cli", "boto3"], case_sensitive=False),
    ),
    max_items: Optional[int] = typer.Option(None, "--max-items", help=f"Refuse CSVs with more SKUs than this [default: {DEFAULT_MAX_ITEMS}]"),
    progress: Optional[bool] = typer.Option(None, "--progress/--no-progress", help="Show progress bar"),
    show_errors: bool = typer.Option(False, "--show-errors/--no-show-errors", help="Print failed SKUs"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
):
    log = logging.getLogger("s3sku.cli.copy")
    cfg = _load_cfg(config)
    ccfg = (cfg.get("copy") or {}) if cfg else {}
    aws = (cfg.get("aws") or {}) if cfg else {}
    settings: Settings = ctx.obj

    csv_val = _pick(csv_path, ccfg, "csv")
    root_val = _pick(bucket_root, ccfg, "bucket_root")
    dest_val = _pick(dest, ccfg, "dest")
    if not csv_val or not root_val or not dest_val:
        raise typer.BadParameter("Provide --csv, --bucket-root and --dest or set copy.csv, copy.bucket_root and copy.dest in config.yaml")

    run_cfg = RunConfig(
        csv_path=csv_val,
        bucket_root=root_val,
        dest_root=dest_val,
        column=_pick(column, ccfg, "column", DEFAULT_COLUMN),
        max_workers=_pick(max_workers, ccfg, "max_workers", default_max_workers()),
        skip_existing=_pick(skip_existing, ccfg, "skip_existing", False),
        dry_run=_pick(dry_run, ccfg, "dry_run", False),
        max_items=_pick(max_items, ccfg, "max_items", DEFAULT_MAX_ITEMS),
        timeout=_pick(timeout, ccfg, "timeout"),
        progress=_pick(progress, ccfg, "progress", False),
        progress_every=ccfg.get("progress_every", 10),
    )

    engine_val = (_pick(engine, ccfg, "engine", "cli")).lower()
    try:
        if engine_val == "boto3":
            copier = Boto3Copier(_client_from_cfg(cfg, settings))
        else:
            copier = AwsCliCopier(
                executable=ccfg.get("aws_cli", "aws"),
                profile=settings.aws_profile or aws.get("profile"),
                region=settings.aws_region or aws.get("region"),
                timeout=run_cfg.timeout,
            )
        summary = run_copy(run_cfg, copier=copier)
    except S3SkuError as e:
        log.error("%s", e)
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    if summary.dry_run:
        typer.echo(f"Planned: {summary.total} SKU(s) (dry-run)")
        return

    typer.echo(
        f"Total: {summary.total}, Success: {summary.succeeded}, Skipped: {summary.skipped}, "
        f"Errors: {summary.errors}, Files: {summary.files}, Size: {human_bytes(summary.bytes)}, "
        f"Elapsed: {summary.elapsed_s:.1f}s"
    )
    if summary.log_path and summary.log_path.exists():
        typer.echo(f"Log: {summary.log_path}")

    if show_errors:
        for sku, msg in summary.failures:
            typer.secho(f"[ERROR] {sku}: {msg}", fg=typer.colors.RED)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
