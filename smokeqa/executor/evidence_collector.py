"""Evidence handling: the run's screen recording."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def reset_video_dir(video_dir: Path) -> None:
    """Start each run with an empty recording directory."""
    if video_dir.exists():
        shutil.rmtree(video_dir)
    video_dir.mkdir(parents=True, exist_ok=True)


def finalize_video(video_dir: Path, filename: str = "test-video.webm") -> Optional[Path]:
    """Keep the largest recording under a canonical name.

    Playwright writes one file per page, so transient tabs leave small
    extra files next to the real run recording.
    """
    if not video_dir.exists():
        return None

    videos = sorted(
        (p for p in video_dir.glob("*.webm") if p.is_file()),
        key=lambda p: p.stat().st_size,
        reverse=True,
    )
    if not videos:
        logger.warning("No video recorded in %s", video_dir)
        return None

    target = video_dir / filename
    largest = videos[0]
    if largest != target:
        if target.exists():
            target.unlink()
        largest.rename(target)
    logger.info("Video saved to %s", target)
    return target
