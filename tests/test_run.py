"""Tests for the ``run.py extract`` launcher command."""

from unittest.mock import MagicMock, patch

import pytest
import requests

import run

API_RESULT = {
    "message": "Quick extraction completed. Extracted 1 frames at 10-second intervals.",
    "frame_analysis": [{
        "timestamp": 0.0,
        "type": "quick_interval",
        "selected": True,
        "click_data": {"x": 400, "y": 300, "confidence": 0.7, "reason": "Regular interval extraction"},
    }],
}


@pytest.fixture()
def video(tmp_path):
    path = tmp_path / "demo.mp4"
    path.write_bytes(b"video")
    return path


def _rejected(detail: str) -> MagicMock:
    response = MagicMock()
    response.json.return_value = {"detail": detail}
    response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


def test_api_rejection_reports_detail_without_local_fallback(video, capsys):
    with patch("run.requests.post", return_value=_rejected("Video exceeds the 100MB upload limit")), \
            patch("run._extract_locally") as local:
        with pytest.raises(SystemExit) as exc:
            run.run_extract([str(video)])

    assert exc.value.code == 1
    local.assert_not_called()
    assert "Video exceeds the 100MB upload limit" in capsys.readouterr().out


def test_unreachable_api_falls_back_to_local_extraction(video, capsys):
    with patch("run.requests.post", side_effect=requests.ConnectionError("refused")), \
            patch("run._extract_locally", return_value=API_RESULT) as local:
        run.run_extract([str(video), "--quick"])

    local.assert_called_once_with(video, True)
    out = capsys.readouterr().out
    assert "extracting locally" in out
    assert "[00:00] quick_interval" in out


def test_successful_api_call(video, capsys):
    response = MagicMock()
    response.json.return_value = API_RESULT

    with patch("run.requests.post", return_value=response) as post:
        run.run_extract([str(video)])

    assert post.call_args.kwargs["data"] == {"quickMode": "false"}
    assert "Quick extraction completed" in capsys.readouterr().out
