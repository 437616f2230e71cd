from s3sku.runner import RunConfig, run_copy
from s3sku.errors import setup_logging
from s3sku.utils import read_yaml

CONFIG_PATH = "config/config.yaml"

if __name__ == "__main__":
    setup_logging()
    cfg = read_yaml(CONFIG_PATH)
    ex = cfg["copy"]

    summary = run_copy(RunConfig(
        csv_path=ex["csv"],
        bucket_root=ex["bucket_root"],
        dest_root=ex["dest"],
        column=ex.get("column", "Supplier Item #"),
        max_workers=int(ex.get("max_workers", 8)),
        skip_existing=bool(ex.get("skip_existing", True)),
        timeout=ex.get("timeout"),
        progress=True,
    ))

    print(f"Success: {summary.succeeded}  Skipped: {summary.skipped}  Errors: {summary.errors}")
    for sku, msg in summary.failures:
        print(f"[ERR] {sku}: {msg}")
