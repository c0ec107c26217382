"""Tests for ffmpeg log parsing and the signal extractor."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from clickquiz.config import PipelineConfig
from clickquiz.services.events import SceneChange, SilenceKind, SilenceMarker
from clickquiz.services.signal_extractor import SignalExtractor, parse_scene_log, parse_silence_log

SILENCE_LOG = """\
Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'source.mp4':
[silencedetect @ 0x7f8] silence_start: 5
[silencedetect @ 0x7f8] silence_end: 6.25 | silence_duration: 1.25
[silencedetect @ 0x7f8] silence_start: 20.5
size=N/A time=00:00:30.00 bitrate=N/A speed= 512x
"""

METADATA_SCENE_LOG = """\
[Parsed_metadata_1 @ 0x55d] frame:0    pts:36864   pts_time:2.4
[Parsed_metadata_1 @ 0x55d] lavfi.scene_score=0.512000
[Parsed_metadata_1 @ 0x55d] frame:1    pts:153600  pts_time:10
[Parsed_metadata_1 @ 0x55d] lavfi.scene_score=0.310000
"""


class TestParseSilenceLog:

    def test_parses_markers_in_order(self):
        markers = parse_silence_log(SILENCE_LOG.splitlines())

        assert markers == [
            SilenceMarker(SilenceKind.START, 5.0),
            SilenceMarker(SilenceKind.END, 6.25),
            SilenceMarker(SilenceKind.START, 20.5),
        ]

    def test_ignores_unrelated_and_malformed_lines(self):
        lines = ["garbage", "silence_start: abc", "silence_end: 1.2.3.4"]

        assert parse_silence_log(lines) == []


class TestParseSceneLog:

    def test_metadata_print_pairs(self):
        changes = parse_scene_log(METADATA_SCENE_LOG.splitlines())

        assert changes == [SceneChange(2.4, 0.512), SceneChange(10.0, 0.31)]

    def test_single_line_form(self):
        line = "[Parsed_showinfo_1 @ 0x1] n:0 pts:1 pts_time:7.5 scene:0.82 checksum:ABC"

        assert parse_scene_log([line]) == [SceneChange(7.5, 0.82)]

    def test_score_without_timestamp_is_dropped(self):
        assert parse_scene_log(["lavfi.scene_score=0.9"]) == []


class TestSignalExtractor:

    def _completed(self, stderr: str, returncode: int = 0) -> MagicMock:
        result = MagicMock()
        result.returncode = returncode
        result.stderr = stderr
        return result

    def test_extract_parses_both_passes(self):
        outputs = [self._completed(SILENCE_LOG), self._completed(METADATA_SCENE_LOG)]

        with patch("clickquiz.services.signal_extractor.subprocess.run", side_effect=outputs) as run:
            streams = SignalExtractor().extract(Path("/videos/source.mp4"))

        assert len(streams.silence_markers) == 3
        assert len(streams.scene_changes) == 2

        audio_cmd = run.call_args_list[0].args[0]
        video_cmd = run.call_args_list[1].args[0]
        assert "silencedetect=noise=-25dB:d=1.0" in audio_cmd
        assert "-vn" in audio_cmd
        assert any("gt(scene,0.3)" in arg for arg in video_cmd)
        assert video_cmd[video_cmd.index("-fps_mode") + 1] == "vfr"
        assert "-vsync" not in video_cmd

    def test_passes_timeout_to_every_call(self):
        extractor = SignalExtractor(PipelineConfig(analysis_timeout=12.0))

        with patch(
            "clickquiz.services.signal_extractor.subprocess.run",
            return_value=self._completed(""),
        ) as run:
            extractor.extract(Path("/videos/source.mp4"))

        assert all(call.kwargs["timeout"] == 12.0 for call in run.call_args_list)

    def test_missing_ffmpeg_degrades_to_empty_streams(self):
        with patch(
            "clickquiz.services.signal_extractor.subprocess.run",
            side_effect=FileNotFoundError("ffmpeg"),
        ):
            streams = SignalExtractor().extract(Path("/videos/source.mp4"))

        assert streams.silence_markers is None
        assert streams.scene_changes == []

    def test_timeout_degrades_to_empty_streams(self):
        with patch(
            "clickquiz.services.signal_extractor.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="ffmpeg", timeout=1),
        ):
            streams = SignalExtractor().extract(Path("/videos/source.mp4"))

        assert streams.silence_markers is None
        assert streams.scene_changes == []

    def test_nonzero_exit_only_drops_that_stream(self):
        outputs = [self._completed("", returncode=1), self._completed(METADATA_SCENE_LOG)]

        with patch("clickquiz.services.signal_extractor.subprocess.run", side_effect=outputs):
            streams = SignalExtractor().extract(Path("/videos/source.mp4"))

        assert streams.silence_markers is None
        assert len(streams.scene_changes) == 2
