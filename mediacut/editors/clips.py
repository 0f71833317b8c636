"""Clip editor — pads spliced clip ranges, slices subtitles, exports files."""

import logging
import re
import subprocess
from pathlib import Path
from typing import Callable, Iterable

from mediacut import ffutil
from mediacut.editors.captions import write_subtitles
from mediacut.errors import ExportError
from mediacut.models import Clip, ClipPlan, ExportProgress, TimeRange, TranscriptSegment
from mediacut.timecode import format_time, parse_time

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"[^A-Za-z0-9_-]")


def pad_ranges(
    clip: Clip,
    pre_padding: float = 0.0,
    post_padding: float = 0.0,
    media_duration: float | None = None,
) -> list[tuple[float, TimeRange]]:
    """Pad every range of ``clip`` and clamp it to the media bounds.

    Returns ``(origin, range)`` pairs where ``origin`` is the padded start
    before clamping; subtitle times are measured from it.
    """
    padded = []
    for r in clip.segments:
        start, end = parse_time(r.start), parse_time(r.end)
        origin = start - pre_padding
        new_start = max(0.0, origin)
        new_end = end + post_padding
        if media_duration is not None:
            new_end = min(media_duration, new_end)
        if new_end < new_start:
            new_end = new_start
        padded.append((origin, TimeRange(start=new_start, end=new_end)))
    return padded


def slice_cues(
    padded: list[tuple[float, TimeRange]],
    transcript: Iterable[TranscriptSegment],
) -> list[TranscriptSegment]:
    """Build the clip-local subtitle track for a spliced clip.

    Each range contributes one cue per intersecting transcript segment. The
    running offset advances by the whole range, not by the cue extent, so
    later ranges stay aligned when a segment only partly overlaps a boundary.
    """
    timed = [(s, s.start_seconds, s.end_seconds) for s in transcript]
    cues: list[TranscriptSegment] = []
    offset = 0.0

    for origin, r in padded:
        for seg, t_start, t_end in timed:
            lo = max(t_start, r.start)
            hi = min(t_end, r.end)
            if lo >= hi:
                continue
            cues.append(TranscriptSegment(
                start=format_time(offset + (lo - origin)),
                end=format_time(offset + (hi - origin)),
                text=seg.text,
                speaker=seg.speaker,
            ))
        offset += r.end - r.start

    return cues


def assemble_clip(
    clip: Clip,
    transcript: Iterable[TranscriptSegment],
    pre_padding: float = 0.0,
    post_padding: float = 0.0,
    media_duration: float | None = None,
) -> ClipPlan:
    """Turn a clip into the ranges to cut plus its own subtitle track."""
    padded = pad_ranges(clip, pre_padding, post_padding, media_duration)
    return ClipPlan(
        title=clip.title,
        reason=clip.reason,
        ranges=[r for _, r in padded],
        cues=slice_cues(padded, transcript),
    )


def assemble_clips(
    clips: list[Clip],
    transcript: Iterable[TranscriptSegment],
    pre_padding: float = 0.0,
    post_padding: float = 0.0,
    media_duration: float | None = None,
) -> list[ClipPlan]:
    transcript = list(transcript)
    return [
        assemble_clip(c, transcript, pre_padding, post_padding, media_duration)
        for c in clips
    ]


def clip_output_filename(index: int, label: str | None, ext: str = ".mp4") -> str:
    """``clip_001.mp4`` or ``clip_001_Label.mp4`` with the label sanitized."""
    suffix = _LABEL_RE.sub("", label or "")
    if suffix:
        return f"clip_{index + 1:03d}_{suffix}{ext}"
    return f"clip_{index + 1:03d}{ext}"


def export_clips(
    input_path: Path,
    plans: list[ClipPlan],
    output_dir: Path,
    fast_mode: bool = False,
    subtitle_format: str | None = "srt",
    video: bool = True,
    on_progress: Callable[[ExportProgress], None] | None = None,
) -> list[Path]:
    """Write one media file per clip plan, plus an optional subtitle sidecar.

    Fast mode stream-copies single-range clips; spliced clips are always
    re-encoded through the concat filter graph. Audio-only sources (``video``
    false) produce ``.m4a`` files.
    """
    if output_dir.exists() and not output_dir.is_dir():
        raise ExportError(f"Output path exists and is not a directory: {output_dir}")
    output_dir.mkdir(parents=True, exist_ok=True)

    def _progress(done: int, current: int, message: str) -> None:
        if on_progress:
            on_progress(ExportProgress(
                percentage=round(100.0 * done / len(plans), 1) if plans else 100.0,
                current_clip=current,
                total_clips=len(plans),
                message=message,
            ))

    outputs: list[Path] = []
    for i, plan in enumerate(plans):
        output_path = output_dir / clip_output_filename(i, plan.title, ".mp4" if video else ".m4a")
        ranges = [r for r in plan.ranges if r.end > r.start]
        if not ranges:
            raise ExportError(f"Clip {i + 1} ({plan.title!r}) has no duration")

        _progress(i, i + 1, f"Exporting clip {i + 1}/{len(plans)}: {plan.title}")
        try:
            if fast_mode and len(ranges) == 1:
                ffutil.copy_range(input_path, ranges[0], output_path)
            else:
                ffutil.concat_segments(
                    input_path,
                    ranges,
                    output_path,
                    video=video,
                    codec_args=(["-c:v", "libx264"] if video else []) + ["-c:a", "aac"],
                )
        except subprocess.CalledProcessError as e:
            logger.error("Export of clip %d failed: %s", i + 1, e)
            raise ExportError(f"ffmpeg failed while exporting clip {i + 1}") from e

        if subtitle_format and plan.cues:
            write_subtitles(plan.cues, output_path.with_suffix(f".{subtitle_format}"), subtitle_format)
        outputs.append(output_path)

    _progress(len(plans), len(plans), "Export complete")
    return outputs
