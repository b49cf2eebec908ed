import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.tubely.config import MediaPaths
from src.tubely.media.temp_media_store import TempMediaStore
from tests.mocks.media import make_upload


def build_store(tmp_path: Path, ttl: int = 60) -> TempMediaStore:
    paths = MediaPaths(root=tmp_path, temp=tmp_path / "temp")
    return TempMediaStore(paths=paths, temp_ttl_seconds=ttl)


@pytest.mark.asyncio
async def test_persist_upload_writes_into_run_directory(tmp_path: Path) -> None:
    store = build_store(tmp_path)
    upload = make_upload(b"video-bytes")

    path = await store.persist_upload("run-1", upload, "abc.mp4")

    assert path == tmp_path / "temp" / "run-1" / "abc.mp4"
    assert path.read_bytes() == b"video-bytes"
    assert await upload.read() == b"video-bytes"


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(tmp_path: Path) -> None:
    store = build_store(tmp_path)
    path = await store.persist_upload("run-1", make_upload(b"x"), "abc.mp4")
    extra = path.with_name("abc.mp4.processing")
    extra.write_bytes(b"y")

    store.cleanup("run-1", [path, extra])
    store.cleanup("run-1", [path, extra])

    assert not store.run_dir("run-1").exists()


def test_cleanup_expired_removes_only_stale_runs(tmp_path: Path) -> None:
    store = build_store(tmp_path, ttl=60)
    stale = store.ensure_structure("stale")
    (stale / "a.mp4").write_bytes(b"a")
    fresh = store.ensure_structure("fresh")
    old = (datetime.now(timezone.utc) - timedelta(hours=2)).timestamp()
    os.utime(stale, (old, old))

    assert store.list_expired() == [stale]
    removed = store.cleanup_expired()

    assert removed == 1
    assert not stale.exists()
    assert fresh.exists()


def test_cleanup_expired_without_temp_dir(tmp_path: Path) -> None:
    store = build_store(tmp_path)

    assert store.cleanup_expired() == 0


@pytest.mark.asyncio
async def test_cleanup_failure_is_logged_not_raised(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    store = build_store(tmp_path)
    path = await store.persist_upload("run-1", make_upload(b"x"), "abc.mp4")

    def fail_rmtree(directory, *args, **kwargs):
        raise PermissionError(f"cannot remove {directory}")

    monkeypatch.setattr("src.tubely.media.temp_media_store.shutil.rmtree", fail_rmtree)

    with caplog.at_level("ERROR"):
        store.cleanup("run-1", [path])

    assert not path.exists()
    assert store.run_dir("run-1").exists()
    assert any(record.msg == "media.temp.cleanup_failed" for record in caplog.records)
