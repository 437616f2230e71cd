from pathlib import Path

import pytest

from s3sku.errors import ConfigurationError
from s3sku.utils import (
    dir_stats,
    has_any_file,
    human_bytes,
    is_s3_uri,
    join_s3_prefix,
    parse_s3_uri,
    validate_dest_root,
)


@pytest.mark.parametrize("uri", ["s3://bucket", "s3://bucket/", "s3://my.bucket-1/a/b_c/"])
def test_is_s3_uri_ok(uri):
    assert is_s3_uri(uri)


@pytest.mark.parametrize("uri", ["s3://", "s3:///path", "gs://bucket/", "s3://bucket/with space", "/local/path"])
def test_is_s3_uri_bad(uri):
    assert not is_s3_uri(uri)


def test_parse_s3_uri():
    assert parse_s3_uri("s3://bucket/path/SKU1/") == ("bucket", "path/SKU1/")
    assert parse_s3_uri("s3://bucket") == ("bucket", "")
    with pytest.raises(ValueError):
        parse_s3_uri("http://bucket/x")


def test_join_s3_prefix():
    assert join_s3_prefix("s3://bucket/path/", "SKU001") == "s3://bucket/path/SKU001/"
    assert join_s3_prefix("s3://bucket", "SKU001") == "s3://bucket/SKU001/"


def test_validate_dest_root():
    assert str(validate_dest_root("/out/data")).replace("\\", "/") == "/out/data"
    for bad in ["", "  ", "../x", "a/../b", "a\\..\\b", "x\x00y", "what?", "C:\\out|x", "out:data"]:
        with pytest.raises(ConfigurationError):
            validate_dest_root(bad)


def test_dir_helpers(tmp_path):
    assert not has_any_file(tmp_path / "missing")
    (tmp_path / "a" / "b").mkdir(parents=True)
    assert not has_any_file(tmp_path)
    (tmp_path / "a" / "b" / "f.bin").write_bytes(b"12345")
    (tmp_path / "g.bin").write_bytes(b"1")
    assert has_any_file(tmp_path)
    assert dir_stats(tmp_path) == (2, 6)


def test_human_bytes():
    assert human_bytes(512) == "512.0 B"
    assert human_bytes(2048) == "2.0 KB"


def test_validate_dest_root_windows_drive():
    assert validate_dest_root("C:\\out\\data") == Path("C:\\out\\data")
    assert validate_dest_root("D:/exports") == Path("D:/exports")
    with pytest.raises(ConfigurationError):
        validate_dest_root("C:\\out\\..\\x")
