#!/usr/bin/env python
"""
Quick start script for the Click Quiz service.

Usage:
    python run.py api                      # Start the FastAPI backend
    python run.py extract VIDEO [--quick]  # Extract candidate frames from a video
"""

import sys
import subprocess
from pathlib import Path

import requests

from clickquiz.errors import InvalidUploadError
from clickquiz.utils import format_timestamp

API_BASE_URL = "http://localhost:8000"

CONTENT_TYPES = {".mp4": "video/mp4", ".mov": "video/quicktime"}


def start_api():
    """Start the FastAPI server."""
    print("🚀 Starting Click Quiz API...")
    print("   URL: http://localhost:8000")
    print("   Docs: http://localhost:8000/docs")
    print("")
    subprocess.run([
        sys.executable, "-m", "uvicorn",
        "clickquiz.api:app",
        "--host", "127.0.0.1",
        "--port", "8000"
    ])


def _extract_via_api(video_path: Path, quick: bool) -> dict:
    with video_path.open("rb") as handle:
        response = requests.post(
            f"{API_BASE_URL}/api/upload-video",
            files={"video": (video_path.name, handle, CONTENT_TYPES.get(video_path.suffix.lower()))},
            data={"quickMode": str(quick).lower()},
            timeout=600,
        )
    response.raise_for_status()
    return response.json()


def _error_detail(response: requests.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text


def _extract_locally(video_path: Path, quick: bool) -> dict:
    from clickquiz.api import to_upload_response
    from clickquiz.config import Settings
    from clickquiz.logging_setup import configure_logging
    from clickquiz.models.schemas import ExtractionMode
    from clickquiz.services.pipeline import ExtractionPipeline
    from clickquiz.storage import UploadStorage

    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.json_logs)

    pipeline = ExtractionPipeline(UploadStorage(settings.data_dir), settings)
    result = pipeline.run(
        video_path.read_bytes(),
        video_path.name,
        CONTENT_TYPES.get(video_path.suffix.lower()),
        ExtractionMode.QUICK if quick else ExtractionMode.SMART,
    )
    print(f"   Frames written to {settings.frames_dir / result.batch_id}")
    return to_upload_response(result).model_dump(mode="json")


def run_extract(args: list[str]):
    """Extract frames from a video and print the frame analysis."""
    if not args:
        print_usage()
        sys.exit(1)

    video_path = Path(args[0])
    quick = "--quick" in args[1:]
    if not video_path.exists():
        print(f"❌ Video not found: {video_path}")
        sys.exit(1)

    print(f"🎬 Extracting frames from {video_path.name} ({'quick' if quick else 'smart'} mode)...")
    print("")

    try:
        result = _extract_via_api(video_path, quick)
    except requests.ConnectionError:
        print("⚠️  API not running, extracting locally...")
        try:
            result = _extract_locally(video_path, quick)
        except InvalidUploadError as e:
            print(f"❌ Video rejected: {e}")
            sys.exit(1)
    except requests.HTTPError as e:
        print(f"❌ Video rejected: {_error_detail(e.response)}")
        sys.exit(1)

    print("=" * 60)
    print("📊 EXTRACTION SUMMARY")
    print("=" * 60)
    print(f"  {result['message']}")
    print("")

    print("🖼️  FRAMES")
    print("-" * 60)
    for frame in result["frame_analysis"]:
        marker = "✅" if frame["selected"] else "⬜"
        click = frame["click_data"]
        print(
            f"  {marker} [{format_timestamp(frame['timestamp'])}] {frame['type']:<15} "
            f"({click['x']}, {click['y']})  {click['confidence']:.0%}  {click['reason']}"
        )

    print("")
    print("=" * 60)


def print_usage():
    """Print usage information."""
    print(__doc__)


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == "api":
        start_api()
    elif command == "extract":
        run_extract(sys.argv[2:])
    else:
        print(f"❌ Unknown command: {command}")
        print_usage()
        sys.exit(1)


if __name__ == "__main__":
    main()
