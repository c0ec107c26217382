from pathlib import Path
from typing import Optional

import pytest

from clickquiz.config import Settings
from clickquiz.models.schemas import Hotspot
from clickquiz.services.session_machine import TestSessionMachine
from clickquiz.services.signal_extractor import SignalStreams
from clickquiz.storage import MemoryRecordStore, UploadStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-frame"


class FakeFrameExtractor:
    """Writes a stub PNG for every timestamp except the ones told to fail."""

    def __init__(self, fail_at: Optional[set] = None, partial_on_failure: bool = False):
        self.fail_at = fail_at or set()
        self.partial_on_failure = partial_on_failure
        self.calls: list[float] = []

    def extract(self, video_path: Path, timestamp: float, output_path: Path) -> bool:
        self.calls.append(timestamp)
        if timestamp in self.fail_at:
            if self.partial_on_failure:
                output_path.write_bytes(b"")
            return False
        output_path.write_bytes(PNG_BYTES)
        return True


class FakeSignalExtractor:
    def __init__(self, streams: SignalStreams):
        self.streams = streams
        self.seen: list[Path] = []

    def extract(self, video_path: Path) -> SignalStreams:
        self.seen.append(video_path)
        assert video_path.exists()
        return self.streams


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture()
def upload_storage(settings: Settings) -> UploadStorage:
    return UploadStorage(settings.data_dir)


@pytest.fixture()
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture()
def machine(store: MemoryRecordStore) -> TestSessionMachine:
    return TestSessionMachine(store)


@pytest.fixture()
def three_steps() -> list[tuple[str, list[Hotspot]]]:
    return [
        (f"/api/frames/batch/frame_{i}.png", [Hotspot(id=f"h{i}", x=100, y=100, label=f"Click {i}")])
        for i in range(1, 4)
    ]
