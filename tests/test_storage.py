"""Tests for upload workspaces and the in-memory record store."""

import threading

import pytest

from clickquiz.models import schemas
from clickquiz.storage import IdAllocator, MemoryRecordStore


class TestUploadWorkspace:

    def test_scratch_removed_and_frames_kept_on_success(self, upload_storage):
        with upload_storage.workspace() as workspace:
            workspace.video_path(".mp4").write_bytes(b"video")
            workspace.frames_dir.mkdir(parents=True)
            (workspace.frames_dir / "click_000.png").write_bytes(b"png")

        assert not workspace.work_dir.exists()
        assert (workspace.frames_dir / "click_000.png").exists()
        assert list(upload_storage.uploads_dir.iterdir()) == []

    def test_everything_removed_on_failure(self, upload_storage):
        with pytest.raises(RuntimeError):
            with upload_storage.workspace() as workspace:
                workspace.video_path(".mov").write_bytes(b"video")
                workspace.frames_dir.mkdir(parents=True)
                (workspace.frames_dir / "click_000.png").write_bytes(b"png")
                raise RuntimeError("boom")

        assert not workspace.work_dir.exists()
        assert not workspace.frames_dir.exists()

    def test_batch_ids_are_unique(self, upload_storage):
        with upload_storage.workspace() as first, upload_storage.workspace() as second:
            assert first.batch_id != second.batch_id


class TestFramePath:

    def test_resolves_existing_frame(self, upload_storage):
        frame_dir = upload_storage.frames_dir / "abc"
        frame_dir.mkdir(parents=True)
        (frame_dir / "quick_001.png").write_bytes(b"png")

        assert upload_storage.frame_path("abc", "quick_001.png") == frame_dir / "quick_001.png"
        assert upload_storage.frame_path("abc", "quick_002.png") is None

    @pytest.mark.parametrize(
        "batch_id, filename",
        [("..", "secret.png"), ("abc", ".."), ("abc/..", "x.png"), ("abc", "../x.png")],
    )
    def test_rejects_traversal(self, upload_storage, batch_id, filename):
        assert upload_storage.frame_path(batch_id, filename) is None


def test_id_allocator_is_unique_across_threads():
    allocator = IdAllocator()
    seen = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            value = allocator.allocate()
            with lock:
                seen.append(value)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(seen) == list(range(1, 801))


class TestMemoryRecordStore:

    def _session(self, store: MemoryRecordStore) -> schemas.TestSession:
        return store.create_session(schemas.TestSessionCreate(
            test_name="Flow",
            extracted_frames=["/api/frames/b/f.png"],
            hotspot_data=[[schemas.Hotspot(id="h1", x=1, y=2)]],
            total_steps=1,
        ))

    def test_returned_records_are_copies(self):
        store = MemoryRecordStore()
        session = self._session(store)

        session.current_step = 5

        assert store.get_session(session.id).current_step == 1

    def test_update_session(self):
        store = MemoryRecordStore()
        session = self._session(store)

        updated = store.update_session(session.id, current_step=2, is_completed=True)

        assert updated.current_step == 2
        assert store.get_session(session.id).is_completed is True
        assert store.update_session(999, current_step=2) is None

    def test_injected_allocators(self):
        store = MemoryRecordStore(session_ids=IdAllocator(start=100))

        assert self._session(store).id == 100
        assert self._session(store).id == 101

    def test_attempts_listed_per_session_in_order(self):
        store = MemoryRecordStore()
        first = self._session(store)
        second = self._session(store)
        for session_id in (first.id, second.id, first.id):
            store.create_attempt(schemas.TestAttemptCreate(
                session_id=session_id,
                step_number=1,
                hotspot_id="h1",
                click_x=1,
                click_y=2,
                expected_x=1,
                expected_y=2,
                is_correct=True,
                time_spent=10,
            ))

        attempts = store.list_attempts(first.id)

        assert [a.id for a in attempts] == [1, 3]
        assert store.get_result(first.id) is None
