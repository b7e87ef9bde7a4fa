"""Tests for the episode uploader."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from showtape.storage.uploader import Uploader
from showtape.utils.errors import StorageError, UploadError


@pytest.fixture
def episode_file(tmp_path: Path) -> Path:
    path = tmp_path / "morning_show_20251107060000.mp3"
    path.write_bytes(b"ABCDABCD")
    return path


class TestUploader:
    """Test Uploader."""

    def test_upload_stores_object(self, store, no_sleep_retry, episode_file):
        stored = Uploader(store, no_sleep_retry).upload(episode_file, "shows", episode_file.name)

        assert stored.key == episode_file.name
        assert stored.size_bytes == 8
        assert (store.root / "shows" / episode_file.name).read_bytes() == b"ABCDABCD"

    def test_transient_failures_are_retried(self, store, no_sleep_retry, episode_file):
        flaky = Mock(wraps=store)
        flaky.put.side_effect = iter_then(store.put, StorageError("503"), StorageError("503"))

        stored = Uploader(flaky, no_sleep_retry).upload(episode_file, "shows", "ep.mp3")

        assert stored.key == "ep.mp3"
        assert flaky.put.call_count == 3

    def test_exhausted_retries_propagate(self, no_sleep_retry, episode_file):
        broken = Mock()
        broken.put.side_effect = StorageError("account disabled")

        with pytest.raises(StorageError, match="account disabled"):
            Uploader(broken, no_sleep_retry).upload(episode_file, "shows", "ep.mp3")

        assert broken.put.call_count == no_sleep_retry.policy.max_attempts

    def test_missing_file_fails_without_retry(self, no_sleep_retry, tmp_path: Path):
        backend = Mock()

        with pytest.raises(UploadError):
            Uploader(backend, no_sleep_retry).upload(tmp_path / "missing.mp3", "shows", "x.mp3")

        backend.put.assert_not_called()


def iter_then(action, *errors):
    """side_effect raising each error once, then delegating to action."""
    pending = list(errors)

    def side_effect(*args, **kwargs):
        if pending:
            raise pending.pop(0)
        return action(*args, **kwargs)

    return side_effect
