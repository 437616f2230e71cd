import csv

import pytest


def write_csv(path, rows, fieldnames=("Supplier Item #", "Description")):
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=list(fieldnames))
        w.writeheader()
        for r in rows:
            w.writerow(r)
    return path


@pytest.fixture
def sku_csv(tmp_path):
    rows = [
        {"Supplier Item #": "SKU001", "Description": "first"},
        {"Supplier Item #": "SKU002", "Description": "second"},
        {"Supplier Item #": "SKU001", "Description": "dup"},
    ]
    return write_csv(tmp_path / "skus.csv", rows)


class FakeCopier:
    """Writes one file per SKU instead of calling out to S3."""

    def __init__(self, fail=(), payload=b"data"):
        self.fail = set(fail)
        self.payload = payload
        self.calls = []

    def __call__(self, source, dest):
        from s3sku.errors import CopyToolError

        self.calls.append((source, dest))
        sku = dest.name
        if sku in self.fail:
            raise CopyToolError(f"fatal error: An error occurred (AccessDenied) for {source}")
        (dest / "image.jpg").write_bytes(self.payload)


@pytest.fixture
def fake_copier():
    return FakeCopier()


@pytest.fixture
def make_copier():
    return FakeCopier
