"""Tests for the local disk blob store."""

import pytest

from src.shell.blob_store import BlobStoreConfig, LocalBlobStore


@pytest.fixture
def store(tmp_path):
    return LocalBlobStore(BlobStoreConfig(root=str(tmp_path / "photos")))


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    def test_put_writes_file(self, store):
        """Bytes land at the key's path, directories created."""
        assert store.put("user/entry/1_a.jpg", b"jpeg") is True
        assert store.exists("user/entry/1_a.jpg")
        with open(store.path_for("user/entry/1_a.jpg"), "rb") as f:
            assert f.read() == b"jpeg"

    def test_existing_key_not_overwritten(self, store):
        """A second put to the same key fails and keeps the first bytes."""
        store.put("user/entry/1_a.jpg", b"first")
        assert store.put("user/entry/1_a.jpg", b"second") is False
        with open(store.path_for("user/entry/1_a.jpg"), "rb") as f:
            assert f.read() == b"first"

    def test_escaping_key_rejected(self, store):
        """Keys that climb out of the root are refused."""
        assert store.put("../outside.jpg", b"x") is False
        assert store.exists("../outside.jpg") is False

    def test_default_root_from_env(self, monkeypatch, tmp_path):
        """DATA_DIR sets where photos go."""
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        assert BlobStoreConfig().root == str(tmp_path / "custody-photos")
