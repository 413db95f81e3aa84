"""Tests for media uploads to Supabase Storage"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from fastapi import HTTPException

from mvo.config import settings
from mvo.modules.media import s3_storage
from mvo.modules.media.s3_storage import S3Storage
from mvo.modules.media.service import (
    MediaService,
    build_object_key,
    format_file_size,
    key_from_url,
    sanitize_file_name,
)


class FakeStorage:
    def __init__(self):
        self.uploads = []
        self.deleted = []

    def upload_file(self, content, key, content_type="application/octet-stream"):
        self.uploads.append((key, content_type, content))
        return f"https://demo.supabase.co/storage/v1/object/public/media/{key}"

    def delete_file(self, key):
        self.deleted.append(key)
        return True


@pytest.fixture
def storage_settings(monkeypatch):
    monkeypatch.setattr(settings, "storage_endpoint", "https://demo.supabase.co/storage/v1/s3")
    monkeypatch.setattr(settings, "storage_access_key_id", "key")
    monkeypatch.setattr(settings, "storage_secret_access_key", "secret")
    monkeypatch.setattr(settings, "storage_bucket_name", "media")


@pytest.mark.parametrize("size,expected", [
    (0, "0 Bytes"),
    (1023, "1023 Bytes"),
    (1536, "1.5 KB"),
    (50 * 1024 * 1024, "50 MB"),
    (3 * 1024 ** 3, "3 GB"),
])
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_object_keys():
    assert sanitize_file_name("my photo (1).png") == "my_photo__1_.png"
    assert build_object_key("a b.png", now_ms=1700000000000) == "uploads/1700000000000-a_b.png"
    assert build_object_key("clip.mp4", "/videos/", now_ms=5) == "videos/5-clip.mp4"
    assert build_object_key("x.png", "/", now_ms=5) == "uploads/5-x.png"


def test_key_from_url():
    url = "https://demo.supabase.co/storage/v1/object/public/media/uploads/5-x.png"
    assert key_from_url(url) == "uploads/5-x.png"


class TestMediaService:
    def test_upload(self):
        storage = FakeStorage()
        url = MediaService(storage_factory=lambda: storage).upload(b"png", "cat.png", "image/png", "ideas")
        key, content_type, content = storage.uploads[0]
        assert key.startswith("ideas/") and key.endswith("-cat.png")
        assert content_type == "image/png"
        assert url.endswith(key)

    def test_default_content_type(self):
        storage = FakeStorage()
        MediaService(storage_factory=lambda: storage).upload(b"?", "blob", None)
        assert storage.uploads[0][1] == "application/octet-stream"

    def test_oversized_upload_is_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "max_upload_bytes", 4)
        storage = FakeStorage()
        with pytest.raises(HTTPException) as exc:
            MediaService(storage_factory=lambda: storage).upload(b"12345", "big.bin")
        assert exc.value.status_code == 400
        assert exc.value.detail == "File size exceeds maximum limit of 4 Bytes"
        assert storage.uploads == []

    def test_unconfigured_storage(self):
        def factory():
            raise ValueError("not configured")

        with pytest.raises(HTTPException) as exc:
            MediaService(storage_factory=factory).upload(b"1", "a.png")
        assert exc.value.status_code == 503

    def test_storage_failure_is_500(self):
        storage = MagicMock()
        storage.upload_file.side_effect = RuntimeError("bucket missing")
        with pytest.raises(HTTPException) as exc:
            MediaService(storage_factory=lambda: storage).upload(b"1", "a.png")
        assert exc.value.status_code == 500
        assert exc.value.detail == "bucket missing"

    def test_delete_uses_key_from_url(self):
        storage = FakeStorage()
        service = MediaService(storage_factory=lambda: storage)
        assert service.delete_file("https://demo.supabase.co/storage/v1/object/public/media/uploads/5-x.png")
        assert storage.deleted == ["uploads/5-x.png"]

    def test_delete_without_storage_is_false(self):
        def factory():
            raise ValueError("not configured")

        assert MediaService(storage_factory=factory).delete_file("https://x/uploads/a.png") is False


class TestS3Storage:
    def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr(settings, "storage_bucket_name", None)
        with pytest.raises(ValueError):
            S3Storage()

    def test_upload_returns_public_url(self, storage_settings, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(s3_storage.boto3, "client", MagicMock(return_value=client))
        url = S3Storage().upload_file(b"data", "uploads/1-a.png", "image/png")
        assert url == "https://demo.supabase.co/storage/v1/object/public/media/uploads/1-a.png"
        client.put_object.assert_called_once_with(
            Bucket="media",
            Key="uploads/1-a.png",
            Body=b"data",
            ContentType="image/png",
            ACL="public-read",
        )

    def test_delete_failure_returns_false(self, storage_settings, monkeypatch):
        client = MagicMock()
        client.delete_object.side_effect = ClientError({"Error": {"Code": "NoSuchKey"}}, "DeleteObject")
        monkeypatch.setattr(s3_storage.boto3, "client", MagicMock(return_value=client))
        assert S3Storage().delete_file("uploads/1-a.png") is False
