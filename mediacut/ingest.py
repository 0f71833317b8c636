"""Turning raw model responses into validated segments and clips.

Models wrap their JSON in prose or markdown fences, so the array is located by
a greedy bracket match (first ``[`` to last ``]``) before parsing.
"""

import json
import logging
import re
from typing import Any

from mediacut.errors import ResponseFormatError
from mediacut.models import Clip, ClipRange, ProcessedAudio, TranscriptSegment
from mediacut.timeline import OffsetMap, filter_silent_segments

logger = logging.getLogger(__name__)

_ARRAY_RE = re.compile(r"\[.*\]", re.DOTALL)


def extract_json_array(text: str) -> list[Any]:
    """Return the JSON array embedded in ``text``."""
    m = _ARRAY_RE.search(text or "")
    if m is None:
        raise ResponseFormatError("No JSON array found in model response")
    try:
        data = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Model response is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ResponseFormatError("Model response JSON is not an array")
    return data


def _as_text(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value
    raise ResponseFormatError(f"Expected a time code, got {value!r}")


def _to_segment(item: Any, position: int) -> TranscriptSegment:
    if not isinstance(item, dict):
        raise ResponseFormatError(f"Segment {position} is not an object")
    if "start" not in item or "end" not in item:
        raise ResponseFormatError(f"Segment {position} lacks start/end")
    return TranscriptSegment(
        start=_as_text(item["start"]),
        end=_as_text(item["end"]),
        text=str(item.get("text") or ""),
        speaker=str(item.get("speaker") or ""),
    )


def parse_segments(text: str) -> list[TranscriptSegment]:
    """Parse a model response into transcript segments.

    Either every element is a well-formed segment or the whole response is
    rejected; a partially valid result never replaces a store.
    """
    return [_to_segment(item, i) for i, item in enumerate(extract_json_array(text))]


def normalize_clip(data: dict) -> Clip:
    """Build a Clip from either payload shape.

    Older responses carry a single ``start``/``end`` pair instead of a
    ``segments`` array; those become a one-range clip.
    """
    if not isinstance(data, dict):
        raise ResponseFormatError("Clip is not an object")

    raw_ranges = data.get("segments")
    if raw_ranges is None:
        if "start" not in data or "end" not in data:
            raise ResponseFormatError("Clip has neither segments nor start/end")
        raw_ranges = [{"start": data["start"], "end": data["end"]}]
    if not isinstance(raw_ranges, list) or not raw_ranges:
        raise ResponseFormatError("Clip segments must be a non-empty array")

    ranges: list[ClipRange] = []
    for r in raw_ranges:
        if not isinstance(r, dict) or "start" not in r or "end" not in r:
            raise ResponseFormatError("Clip segment lacks start/end")
        ranges.append(ClipRange(start=_as_text(r["start"]), end=_as_text(r["end"])))

    return Clip(
        segments=ranges,
        title=str(data.get("title") or data.get("label") or ""),
        reason=str(data.get("reason") or ""),
    )


def parse_clips(text: str) -> list[Clip]:
    return [normalize_clip(item) for item in extract_json_array(text)]


def ingest_analysis(
    text: str,
    processed: ProcessedAudio | None,
    filter_silence: bool = True,
) -> list[TranscriptSegment]:
    """Parse an analysis response and move it onto the original timeline.

    ``processed`` must be the run whose audio the model actually heard; its
    offsets are the only ones that match the response's timestamps.
    """
    segments = parse_segments(text)
    if processed is None:
        return segments

    segments = OffsetMap.from_processed(processed).remap_segments(segments)
    if filter_silence:
        before = len(segments)
        segments = filter_silent_segments(segments, processed.silence_intervals)
        if len(segments) != before:
            logger.info("Dropped %d segments inside silence", before - len(segments))
    return segments


def ingest_translation(text: str, expected_count: int | None = None) -> list[TranscriptSegment]:
    segments = parse_segments(text)
    if expected_count is not None and len(segments) != expected_count:
        logger.warning(
            "Translation returned %d segments for %d originals", len(segments), expected_count
        )
    return segments
