"""Object storage for employee documents: S3 with a local filesystem fallback."""

import asyncio
import hashlib
import logging
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from hrms_api.exceptions import NotFoundError, StorageError
from hrms_api.utils.secure_logging import log_warning

logger = logging.getLogger(__name__)


def _validate_key(key: str) -> str:
    """Reject empty keys and keys that try to escape their prefix.

    Raises:
        StorageError: If the key is unsafe
    """
    if not key or key.startswith("/") or ".." in key.split("/") or "\\" in key:
        raise StorageError("Invalid storage key", {"key": key})
    return key


class S3ObjectStore:
    """Object store backed by an S3 bucket.

    boto3 is blocking, so each call runs in the default executor. Connect and
    read timeouts are set on the botocore client.
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        connect_timeout: float = 5.0,
        read_timeout: float = 30.0,
    ) -> None:
        self.bucket = bucket
        kwargs: dict[str, Any] = {
            "region_name": region,
            "config": Config(
                connect_timeout=connect_timeout,
                read_timeout=read_timeout,
                retries={"max_attempts": 2},
            ),
        }
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        if access_key_id and secret_access_key:
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
        self._client = boto3.client("s3", **kwargs)

    async def _run(self, func: Any, *args: Any, **kwargs: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def is_available(self) -> bool:
        """Check that the bucket exists and is accessible."""
        try:
            await self._run(self._client.head_bucket, Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            log_warning(logger, f"S3 bucket {self.bucket} is not accessible", e)
            return False

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> dict[str, str]:
        _validate_key(key)
        try:
            response = await self._run(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=metadata or {},
                ServerSideEncryption="AES256",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 upload failed for {key!r}") from e
        return {"etag": response.get("ETag", "").strip('"'), "storage": "s3"}

    async def get(self, key: str) -> bytes:
        _validate_key(key)
        try:
            response = await self._run(self._client.get_object, Bucket=self.bucket, Key=key)
            return await self._run(response["Body"].read)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("Stored object not found", {"key": key}) from e
            raise StorageError(f"S3 download failed for {key!r}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 download failed for {key!r}") from e

    async def delete(self, key: str) -> None:
        _validate_key(key)
        try:
            await self._run(self._client.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 delete failed for {key!r}") from e

    async def sign(self, key: str, ttl: int = 3600) -> str:
        _validate_key(key)
        try:
            return await self._run(
                self._client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=ttl,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not sign URL for {key!r}") from e

    async def list(self, prefix: str) -> list[dict[str, Any]]:
        def _collect() -> list[dict[str, Any]]:
            entries: list[dict[str, Any]] = []
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    entries.append(
                        {
                            "key": obj["Key"],
                            "size": obj["Size"],
                            "last_modified": obj["LastModified"],
                        }
                    )
            return entries

        try:
            return await self._run(_collect)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 list failed for prefix {prefix!r}") from e


class LocalObjectStore:
    """Object store on the local filesystem, keys mapped to nested paths."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, key: str) -> Path:
        _validate_key(key)
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError("Invalid storage key", {"key": key})
        return path

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> dict[str, str]:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Local write failed for {key!r}") from e
        return {"etag": hashlib.md5(data, usedforsecurity=False).hexdigest(), "storage": "local"}

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError("Stored object not found", {"key": key})
        return path.read_bytes()

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.is_file():
            path.unlink()

    async def sign(self, key: str, ttl: int = 3600) -> str:
        path = self._path(key)
        if not path.is_file():
            raise NotFoundError("Stored object not found", {"key": key})
        return path.as_uri()

    async def list(self, prefix: str) -> list[dict[str, Any]]:
        root = self.root.resolve()
        if not root.is_dir():
            return []
        entries = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            key = path.relative_to(root).as_posix()
            if key.startswith(prefix):
                stat = path.stat()
                entries.append(
                    {
                        "key": key,
                        "size": stat.st_size,
                        "last_modified": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    }
                )
        return entries

    def has(self, key: str) -> bool:
        """Whether ``key`` exists locally."""
        return self._path(key).is_file()


class FallbackObjectStore:
    """S3 store that degrades to the local filesystem.

    The local store is used when S3 is unconfigured, when the bucket is not
    reachable (checked once, lazily) or when an individual upload fails.
    Reads prefer a local copy and only then ask S3, so objects written
    during an outage stay readable.
    """

    def __init__(self, local: LocalObjectStore, s3: S3ObjectStore | None = None) -> None:
        self.local = local
        self.s3 = s3
        self._s3_ok: bool | None = None if s3 is not None else False
        self._lock = asyncio.Lock()

    async def _use_s3(self) -> bool:
        if self._s3_ok is None:
            async with self._lock:
                if self._s3_ok is None:
                    self._s3_ok = await self.s3.is_available()
                    if not self._s3_ok:
                        logger.warning("S3 unavailable, using local storage fallback")
        return bool(self._s3_ok)

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> dict[str, str]:
        if await self._use_s3():
            try:
                return await self.s3.put(key, data, content_type, metadata)
            except StorageError as e:
                log_warning(logger, "S3 upload failed, falling back to local storage", e)
        return await self.local.put(key, data, content_type, metadata)

    async def get(self, key: str) -> bytes:
        if self.local.has(key) or not await self._use_s3():
            return await self.local.get(key)
        return await self.s3.get(key)

    async def delete(self, key: str) -> None:
        await self.local.delete(key)
        if await self._use_s3():
            await self.s3.delete(key)

    async def sign(self, key: str, ttl: int = 3600) -> str:
        if self.local.has(key) or not await self._use_s3():
            return await self.local.sign(key, ttl)
        return await self.s3.sign(key, ttl)

    async def list(self, prefix: str) -> list[dict[str, Any]]:
        entries = {entry["key"]: entry for entry in await self.local.list(prefix)}
        if await self._use_s3():
            for entry in await self.s3.list(prefix):
                entries.setdefault(entry["key"], entry)
        return [entries[key] for key in sorted(entries)]
