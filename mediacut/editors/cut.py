"""Cut editor — keeps the given ranges of a video and joins them."""

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Protocol

from mediacut import ffutil
from mediacut.errors import ExportError
from mediacut.models import TimeRange
from mediacut.timecode import parse_time

logger = logging.getLogger(__name__)


class _Timed(Protocol):
    start: str
    end: str


def to_time_ranges(segments: Iterable[_Timed]) -> list[TimeRange]:
    """Convert text-timed segments to TimeRanges, dropping empty ones."""
    ranges = []
    for s in segments:
        start, end = parse_time(s.start), parse_time(s.end)
        if end > start:
            ranges.append(TimeRange(start=start, end=end))
    return ranges


def cut_video(
    input_path: Path,
    segments: Iterable[_Timed],
    output_path: Path,
    video: bool = True,
) -> Path:
    """Keep only ``segments`` (in the given order) and concatenate them."""
    keep_ranges = to_time_ranges(segments)

    if not keep_ranges:
        raise ValueError("No non-empty segments to keep — entire video would be removed")

    try:
        ffutil.concat_segments(input_path, keep_ranges, output_path, video=video)
    except subprocess.CalledProcessError as e:
        logger.error("Cutting %s failed: %s", input_path, e)
        raise ExportError(f"ffmpeg failed while cutting {input_path}") from e
    return output_path
