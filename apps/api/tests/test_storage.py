"""Tests for attachment storage backends."""
import io
import os
import uuid

import boto3
import pytest
from botocore.stub import Stubber

from printshop.core.config import settings
from printshop.services.storage_service import (
    LocalStorage,
    S3Storage,
    build_storage_key,
    delete_url,
    get_storage,
    upload_bytes,
    validate_upload,
)


def test_storage_key_layout_and_sanitizing():
    job_id = uuid.uuid4()

    assert build_storage_key(job_id, "proof v2.png", now_ms=1700000000000, token="0a1b2c3d") == (
        f"jobs/{job_id}/updates/1700000000000_0a1b2c3d_proof v2.png"
    )
    assert build_storage_key(job_id, "../../etc/passwd", now_ms=1, token="t").endswith("/1_t_passwd")
    assert build_storage_key(job_id, "C:\\scans\\cover#1.pdf", now_ms=1, token="t").endswith(
        "/1_t_cover_1.pdf"
    )


def test_storage_keys_for_same_name_and_instant_differ():
    job_id = uuid.uuid4()

    first = build_storage_key(job_id, "scan.pdf", now_ms=1700000000000)
    second = build_storage_key(job_id, "scan.pdf", now_ms=1700000000000)

    assert first != second
    assert first.endswith("_scan.pdf")


def test_validate_upload(monkeypatch):
    assert validate_upload("a.pdf", 10) == (True, None)
    assert validate_upload("", 10)[0] is False

    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_BYTES", 5)
    valid, error = validate_upload("a.pdf", 10)
    assert not valid
    assert "limit" in error


def test_get_storage_follows_backend(monkeypatch):
    assert isinstance(get_storage(), LocalStorage)
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "s3")
    assert isinstance(get_storage(), S3Storage)


@pytest.mark.asyncio
async def test_local_upload_and_delete(storage):
    chunks = []

    url = await upload_bytes(storage, "jobs/1/updates/1_a b.txt", b"hello", chunks.append)

    assert url == "/files/jobs/1/updates/1_a%20b.txt"
    assert chunks == [5]
    path = storage.resolve_path("jobs/1/updates/1_a b.txt")
    with open(path, "rb") as f:
        assert f.read() == b"hello"

    await delete_url(storage, url)
    assert not os.path.exists(path)


def test_local_storage_rejects_escaping_keys(storage):
    with pytest.raises(ValueError):
        storage.resolve_path("../outside.txt")
    with pytest.raises(ValueError):
        storage.key_from_url("https://elsewhere.test/file.png")


def test_s3_storage_deletes_by_url(monkeypatch):
    monkeypatch.setattr(settings, "S3_PUBLIC_BASE_URL", "https://cdn.printshop.test/")
    client = boto3.client(
        "s3", region_name="us-east-1", aws_access_key_id="x", aws_secret_access_key="y"
    )
    storage = S3Storage(bucket="jobs-bucket", client=client)
    key = "jobs/1/updates/1_proof.png"

    with Stubber(client) as stubber:
        stubber.add_response("delete_object", {}, {"Bucket": "jobs-bucket", "Key": key})

        url = storage.public_url(key)
        assert url == f"https://cdn.printshop.test/{key}"
        assert storage.key_from_url(url) == key
        storage.delete_by_url(url)
        stubber.assert_no_pending_responses()


def test_s3_store_file_streams_with_progress_callback():
    calls = {}

    class FakeClient:
        def upload_fileobj(self, fileobj, bucket, key, Callback=None):
            calls.update(body=fileobj.read(), bucket=bucket, key=key, callback=Callback)

    storage = S3Storage(bucket="jobs-bucket", client=FakeClient())
    progress = [].append

    storage.store_file("jobs/1/updates/1_a.pdf", io.BytesIO(b"%PDF"), progress)

    assert calls == {
        "body": b"%PDF",
        "bucket": "jobs-bucket",
        "key": "jobs/1/updates/1_a.pdf",
        "callback": progress,
    }


def test_s3_default_base_url_is_virtual_hosted(monkeypatch):
    monkeypatch.setattr(settings, "S3_PUBLIC_BASE_URL", "")
    monkeypatch.setattr(settings, "S3_REGION", "eu-west-1")

    storage = S3Storage(bucket="jobs-bucket", client=object())

    assert storage.base_url == "https://jobs-bucket.s3.eu-west-1.amazonaws.com"
