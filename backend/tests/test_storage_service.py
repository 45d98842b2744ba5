"""Object storage tests: local filesystem, S3 (moto) and the fallback store."""

import asyncio

import boto3
import pytest
from moto import mock_aws

from hrms_api.exceptions import NotFoundError, StorageError
from hrms_api.services.storage_service import (
    FallbackObjectStore,
    LocalObjectStore,
    S3ObjectStore,
)

BUCKET = "hrms-documents"
KEY = "employees/123/forms/sub-1/W-4.pdf"


@pytest.fixture
def aws_credentials(monkeypatch) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def s3(aws_credentials):
    with mock_aws():
        boto3.client("s3", region_name="us-east-1").create_bucket(Bucket=BUCKET)
        yield S3ObjectStore(BUCKET)


class TestLocalObjectStore:
    def test_put_get_delete(self, tmp_path) -> None:
        store = LocalObjectStore(tmp_path)

        result = asyncio.run(store.put(KEY, b"%PDF"))

        assert result["storage"] == "local"
        assert (tmp_path / KEY).read_bytes() == b"%PDF"
        assert asyncio.run(store.get(KEY)) == b"%PDF"
        asyncio.run(store.delete(KEY))
        assert not store.has(KEY)

    def test_missing_object(self, tmp_path) -> None:
        with pytest.raises(NotFoundError):
            asyncio.run(LocalObjectStore(tmp_path).get(KEY))

    @pytest.mark.parametrize("key", ["", "/etc/passwd", "../outside", "a/../../b", "a\\b"])
    def test_rejects_unsafe_keys(self, tmp_path, key: str) -> None:
        with pytest.raises(StorageError):
            asyncio.run(LocalObjectStore(tmp_path).put(key, b"x"))

    def test_list_by_prefix(self, tmp_path) -> None:
        store = LocalObjectStore(tmp_path)
        asyncio.run(store.put("employees/1/a.pdf", b"a"))
        asyncio.run(store.put("employees/2/b.pdf", b"bb"))

        entries = asyncio.run(store.list("employees/1/"))

        assert [(e["key"], e["size"]) for e in entries] == [("employees/1/a.pdf", 1)]

    def test_list_missing_root(self, tmp_path) -> None:
        assert asyncio.run(LocalObjectStore(tmp_path / "none").list("")) == []


class TestS3ObjectStore:
    def test_round_trip(self, s3) -> None:
        async def scenario():
            await s3.put(KEY, b"%PDF", content_type="application/pdf", metadata={"submission_id": "sub-1"})
            data = await s3.get(KEY)
            listed = await s3.list("employees/123/")
            url = await s3.sign(KEY, ttl=60)
            await s3.delete(KEY)
            return data, listed, url

        data, listed, url = asyncio.run(scenario())

        assert data == b"%PDF"
        assert [e["key"] for e in listed] == [KEY]
        assert BUCKET in url
        assert "W-4.pdf" in url

    def test_missing_object(self, s3) -> None:
        with pytest.raises(NotFoundError):
            asyncio.run(s3.get(KEY))

    def test_missing_bucket_is_unavailable(self, aws_credentials) -> None:
        with mock_aws():
            store = S3ObjectStore("no-such-bucket")
            assert asyncio.run(store.is_available()) is False


class TestFallbackObjectStore:
    def test_without_s3_uses_local(self, tmp_path) -> None:
        store = FallbackObjectStore(LocalObjectStore(tmp_path))

        result = asyncio.run(store.put(KEY, b"%PDF"))

        assert result["storage"] == "local"
        assert asyncio.run(store.get(KEY)) == b"%PDF"

    def test_prefers_s3_when_reachable(self, tmp_path, s3) -> None:
        store = FallbackObjectStore(LocalObjectStore(tmp_path), s3)

        result = asyncio.run(store.put(KEY, b"%PDF"))

        assert result["storage"] == "s3"
        assert not (tmp_path / KEY).exists()
        assert asyncio.run(store.get(KEY)) == b"%PDF"

    def test_unreachable_bucket_falls_back(self, tmp_path, aws_credentials) -> None:
        with mock_aws():
            store = FallbackObjectStore(LocalObjectStore(tmp_path), S3ObjectStore("no-such-bucket"))

            result = asyncio.run(store.put(KEY, b"%PDF"))

            assert result["storage"] == "local"
            assert asyncio.run(store.get(KEY)) == b"%PDF"

    def test_local_copy_wins_on_read(self, tmp_path, s3) -> None:
        local = LocalObjectStore(tmp_path)
        store = FallbackObjectStore(local, s3)
        asyncio.run(local.put(KEY, b"written during outage"))

        assert asyncio.run(store.get(KEY)) == b"written during outage"

    def test_list_merges_both_stores(self, tmp_path, s3) -> None:
        local = LocalObjectStore(tmp_path)
        store = FallbackObjectStore(local, s3)
        asyncio.run(local.put("employees/1/local.pdf", b"a"))
        asyncio.run(s3.put("employees/1/remote.pdf", b"b"))

        keys = [e["key"] for e in asyncio.run(store.list("employees/1/"))]

        assert keys == ["employees/1/local.pdf", "employees/1/remote.pdf"]
