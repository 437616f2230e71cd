from __future__ import annotations
from typing import Optional, Iterator, Tuple
from pathlib import Path
import boto3
from botocore.config import Config

from .utils import ensure_dir


def get_s3_client(
    aws_profile: Optional[str] = None,
    region_name: Optional[str] = None,
    retries_max_attempts: int = 8,
    retries_mode: str = "standard",
    connect_timeout: int = 10,
    read_timeout: int = 60,
):
    """
    Create a boto3 S3 client with retries and timeouts applied.
    Credentials come from the profile or the default boto3 chain.
    """
    cfg = Config(
        retries={"max_attempts": retries_max_attempts, "mode": retries_mode},
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
    )
    session = boto3.Session(profile_name=aws_profile, region_name=region_name)
    return session.client("s3", config=cfg)


def list_objects(s3_client, bucket: str, prefix: str = "") -> Iterator[Tuple[str, int]]:
    """
    Yield (key, size) for every object under prefix.
    """
    paginator = s3_client.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
        for obj in page.get("Contents", []) or []:
            key = obj.get("Key")
            if not key or not key.startswith(prefix):
                continue
            yield key, int(obj.get("Size") or 0)


def download_file(s3_client, bucket: str, key: str, dst_path: str | Path, size: Optional[int] = None) -> bool:
    """
    Download one object unless a local file of the same size already exists.
    Returns True when a transfer happened.
    """
    dst = Path(dst_path)
    if size is not None and dst.is_file() and dst.stat().st_size == size:
        return False
    ensure_dir(dst.parent)
    s3_client.download_file(bucket, key, str(dst))
    return True
