from __future__ import annotations

import io

import pytest
from fastapi import UploadFile

from voluntree.core.config import settings
from voluntree.core.exceptions import ValidationError
from voluntree.storage.blob import BlobStoreError, LocalBlobStore, StoredBlob, cleanup_files, discard_blobs
from voluntree.storage.uploads import save_upload


def test_local_store_upload_and_destroy(tmp_path, make_file) -> None:
    store = LocalBlobStore(str(tmp_path / "media"), "/media/")
    source = make_file("photo.PNG", b"pixels")

    blob = store.upload(source)

    assert blob.url == f"/media/{blob.key}"
    assert blob.key.endswith(".png")
    assert (tmp_path / "media" / blob.key).read_bytes() == b"pixels"
    store.destroy(blob.key)
    assert not (tmp_path / "media" / blob.key).exists()
    store.destroy(blob.key)


def test_local_store_rejects_missing_file(tmp_path) -> None:
    store = LocalBlobStore(str(tmp_path / "media"), "/media")

    with pytest.raises(BlobStoreError):
        store.upload(str(tmp_path / "missing.png"))


def test_delete_missing_local_file_is_noop(tmp_path) -> None:
    store = LocalBlobStore(str(tmp_path / "media"), "/media")

    store.delete(str(tmp_path / "missing.png"))
    store.delete(None)


def test_cleanup_helpers_never_raise(caplog) -> None:
    class BrokenStore(LocalBlobStore):
        def delete(self, local_path):
            raise OSError("disk gone")

        def destroy(self, key):
            raise BlobStoreError("bucket gone")

    store = BrokenStore("/nonexistent", "/media")

    cleanup_files(store, "/tmp/a.png", None)
    discard_blobs(store, StoredBlob(url="/media/k.png", key="k.png"), None)

    assert "Failed to delete received file" in caplog.text
    assert "Failed to destroy uploaded blob" in caplog.text


def test_save_upload_writes_into_temp_dir(tmp_path) -> None:
    upload = UploadFile(file=io.BytesIO(b"avatar-bytes"), filename="me.JPG")

    path = save_upload(upload, temp_dir=str(tmp_path))

    assert path is not None and path.endswith(".jpg")
    with open(path, "rb") as handle:
        assert handle.read() == b"avatar-bytes"
    assert save_upload(None) is None


def test_save_upload_enforces_size_limit(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
    upload = UploadFile(file=io.BytesIO(b"too large"), filename="big.png")

    with pytest.raises(ValidationError):
        save_upload(upload, temp_dir=str(tmp_path))
    assert list(tmp_path.iterdir()) == []
