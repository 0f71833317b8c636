"""Silence removal: detect silence, compact the audio, record the breakpoints."""

import logging
from pathlib import Path

from mediacut import ffutil
from mediacut.manifest import SilenceCutConfig
from mediacut.models import ProcessedAudio, SegmentOffset, SilenceInterval, TimeRange

logger = logging.getLogger(__name__)


def plan_silence_cut(
    silent_ranges: list[TimeRange],
    duration: float,
    padding: float = 0.0,
) -> tuple[list[TimeRange], list[SilenceInterval]]:
    """Split ``[0, duration]`` into keep ranges and removable silences.

    Padding is subtracted from silence boundaries (added to keep regions).
    Returns ``(keep, silences)``; together they cover the whole file.
    """
    keep: list[TimeRange] = []
    silences: list[SilenceInterval] = []
    cursor = 0.0

    for sr in silent_ranges:
        silence_start = max(sr.start + padding, 0.0)
        silence_end = min(sr.end - padding, duration)

        if silence_start < cursor:
            silence_start = cursor
        if silence_end <= silence_start:
            continue

        if silence_start > cursor:
            keep.append(TimeRange(start=cursor, end=silence_start))

        silences.append(SilenceInterval.between(silence_start, silence_end))
        cursor = silence_end

    if cursor < duration:
        keep.append(TimeRange(start=cursor, end=duration))

    return keep, silences


def build_offsets(keep: list[TimeRange]) -> list[SegmentOffset]:
    """Breakpoints mapping the compacted timeline back to the original.

    Each keep range starts at ``cursor`` on the compacted timeline, so
    anything from there on must be shifted by ``keep.start - cursor``.
    """
    if not keep:
        return [SegmentOffset(min_time=0.0, offset=0.0)]

    offsets: list[SegmentOffset] = []
    cursor = 0.0
    for r in keep:
        offsets.append(SegmentOffset(min_time=cursor, offset=r.start - cursor))
        cursor += r.end - r.start
    return offsets


def remove_silence(audio_path: Path, config: SilenceCutConfig) -> ProcessedAudio:
    """Write ``<stem>_nosilence.ogg`` without the long silences of ``audio_path``.

    The returned intervals and offsets come from one plan, so segments timed
    against the new file can be remapped and filtered consistently.
    """
    duration = ffutil.probe(audio_path).duration
    silent_ranges = ffutil.detect_silence(
        audio_path,
        threshold_db=config.threshold_db,
        min_duration=config.min_duration,
        duration=duration,
    )

    keep, silences = plan_silence_cut(silent_ranges, duration, config.padding)

    if not silences or not keep:
        if silences:
            logger.warning("%s is entirely silent; leaving it untouched", audio_path)
        return ProcessedAudio(
            path=str(audio_path),
            silence_intervals=[],
            offsets=[SegmentOffset(min_time=0.0, offset=0.0)],
        )

    output_path = audio_path.with_name(f"{audio_path.stem}_nosilence.ogg")
    logger.info(
        "Removing %d silences (%.1fs) from %s",
        len(silences), sum(s.duration for s in silences), audio_path,
    )
    ffutil.concat_segments(
        audio_path,
        keep,
        output_path,
        video=False,
        codec_args=["-c:a", "libvorbis", "-q:a", "4"],
    )

    return ProcessedAudio(
        path=str(output_path),
        silence_intervals=silences,
        offsets=build_offsets(keep),
    )
