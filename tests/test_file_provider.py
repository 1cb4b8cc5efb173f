from __future__ import annotations

import json

import pytest

from discussion_badge.config import BadgeConfig
from discussion_badge.errors import SnapshotError
from discussion_badge.providers import get_provider
from discussion_badge.providers.file import FileSnapshotProvider


@pytest.fixture
def snapshot_file(tmp_path):
    path = tmp_path / "snapshot.json"
    payload = {
        "viewer": {"login": "octocat"},
        "items": [
            {
                "id": "D_1",
                "author": "octocat",
                "createdAt": "2025-01-01T00:00:00Z",
                "updatedAt": "2025-01-02T00:00:00Z",
                "activity": [{"timestamp": "2025-01-02T00:00:00Z", "authoredByViewer": False}],
            },
            {"id": "broken"},
        ],
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.mark.asyncio
async def test_reads_viewer_and_skips_malformed_items(snapshot_file):
    provider = FileSnapshotProvider(snapshot_file)

    user = await provider.get_current_user()
    page = await provider.get_item_snapshots()

    assert user.login == "octocat"
    assert [item.id for item in page.items] == ["D_1"]


@pytest.mark.asyncio
async def test_null_viewer_means_signed_out(tmp_path):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps({"viewer": None, "items": []}), encoding="utf-8")

    assert await FileSnapshotProvider(path).get_current_user() is None


@pytest.mark.asyncio
async def test_missing_file_raises_snapshot_error(tmp_path):
    provider = FileSnapshotProvider(tmp_path / "absent.json")

    with pytest.raises(SnapshotError):
        await provider.get_item_snapshots()


def test_registry_builds_file_provider(snapshot_file, tmp_path):
    config = BadgeConfig(provider="file", state_dir=tmp_path, snapshot_file=snapshot_file)

    provider = get_provider("file", config)

    assert isinstance(provider, FileSnapshotProvider)
    assert provider.snapshot_file == snapshot_file


def test_registry_rejects_unknown_provider(tmp_path):
    config = BadgeConfig(provider="gitlab", state_dir=tmp_path, snapshot_file=tmp_path / "s.json")

    with pytest.raises(ValueError, match="Unsupported provider 'gitlab'"):
        get_provider("gitlab", config)
