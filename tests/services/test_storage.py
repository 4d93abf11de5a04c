"""Tests for the asset storage backends."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from minio.error import InvalidResponseError, ServerError

from buzzbyte_stage.core.errors import AssetStorageError
from buzzbyte_stage.services import storage as storage_module
from buzzbyte_stage.services.storage import (
    LocalAssetStorage,
    MinioAssetStorage,
    delete_asset_quietly,
)


class FakeS3Error(Exception):
    def __init__(self, code: str) -> None:
        super().__init__(code)
        self.code = code


@pytest.fixture
def fake_s3_error(monkeypatch):
    monkeypatch.setattr(storage_module, "S3Error", FakeS3Error)
    return FakeS3Error


def test_local_storage_round_trip(tmp_path: Path) -> None:
    storage = LocalAssetStorage(tmp_path)

    key = storage.save(b"\x89PNG", prefix="post-covers", suffix=".png", content_type="image/png")

    assert key.startswith("post-covers/") and key.endswith(".png")
    assert (tmp_path / key).read_bytes() == b"\x89PNG"

    storage.delete(key)
    assert not (tmp_path / key).exists()


def test_local_storage_ignores_missing_keys(tmp_path: Path) -> None:
    LocalAssetStorage(tmp_path).delete("post-covers/never-existed.png")


def test_local_storage_rejects_keys_outside_root(tmp_path: Path) -> None:
    with pytest.raises(AssetStorageError):
        LocalAssetStorage(tmp_path / "media").delete("../escape.txt")


def test_minio_save_uploads_object() -> None:
    client = MagicMock()
    storage = MinioAssetStorage(client, "covers")

    key = storage.save(b"data", prefix="post-covers", suffix=".jpg", content_type="image/jpeg")

    bucket, object_key, _stream = client.put_object.call_args.args
    assert (bucket, object_key) == ("covers", key)
    assert client.put_object.call_args.kwargs["length"] == 4
    assert client.put_object.call_args.kwargs["content_type"] == "image/jpeg"


def test_minio_delete_ignores_missing_objects(fake_s3_error) -> None:
    client = MagicMock()
    client.remove_object.side_effect = fake_s3_error("NoSuchKey")

    MinioAssetStorage(client, "covers").delete("post-covers/gone.jpg")


def test_minio_delete_wraps_other_errors(fake_s3_error) -> None:
    client = MagicMock()
    client.remove_object.side_effect = fake_s3_error("AccessDenied")

    with pytest.raises(AssetStorageError):
        MinioAssetStorage(client, "covers").delete("post-covers/locked.jpg")


def test_delete_asset_quietly_logs_failures(caplog) -> None:
    storage = MagicMock()
    storage.delete.side_effect = AssetStorageError("offline")

    assert delete_asset_quietly(storage, "post-covers/x.png") is False
    assert "Asset cleanup failed" in caplog.text
    assert delete_asset_quietly(storage, None) is True


@pytest.mark.parametrize(
    "error",
    [
        ServerError("server failed with HTTP status code 503", 503),
        InvalidResponseError(502, "text/html", "<html>Bad Gateway</html>"),
    ],
)
def test_minio_transport_errors_become_storage_errors(error) -> None:
    client = MagicMock()
    client.remove_object.side_effect = error
    client.put_object.side_effect = error
    storage = MinioAssetStorage(client, "covers")

    with pytest.raises(AssetStorageError):
        storage.delete("post-covers/busy.jpg")
    with pytest.raises(AssetStorageError):
        storage.save(b"data", prefix="post-covers", suffix=".jpg", content_type="image/jpeg")


def test_delete_asset_quietly_absorbs_escaping_keys(tmp_path: Path) -> None:
    storage = LocalAssetStorage(tmp_path / "media")

    assert delete_asset_quietly(storage, "../escape.txt") is False
