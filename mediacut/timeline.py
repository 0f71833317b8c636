"""Mapping compacted-audio timestamps back onto the original media timeline."""

import bisect
from dataclasses import replace

from mediacut.models import ProcessedAudio, SegmentOffset, SilenceInterval, TranscriptSegment
from mediacut.timecode import format_time


class OffsetMap:
    """Piecewise-constant shift built from silence-removal breakpoints.

    Every excised silence pushes all later compacted timestamps forward by its
    duration, so the applied offset is that of the last breakpoint at or
    before ``t``.
    """

    def __init__(self, offsets: list[SegmentOffset]):
        self._min_times = [o.min_time for o in offsets]
        self._offsets = [o.offset for o in offsets]

    @classmethod
    def from_processed(cls, processed: ProcessedAudio) -> "OffsetMap":
        return cls(processed.offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    def remap(self, t: float) -> float:
        i = bisect.bisect_right(self._min_times, t)
        if i == 0:
            return t
        return t + self._offsets[i - 1]

    def remap_segment(self, segment: TranscriptSegment) -> TranscriptSegment:
        # start and end must go through the same map
        return replace(
            segment,
            start=format_time(self.remap(segment.start_seconds)),
            end=format_time(self.remap(segment.end_seconds)),
        )

    def remap_segments(self, segments: list[TranscriptSegment]) -> list[TranscriptSegment]:
        return [self.remap_segment(s) for s in segments]


def filter_silent_segments(
    segments: list[TranscriptSegment],
    silence_intervals: list[SilenceInterval],
) -> list[TranscriptSegment]:
    """Drop segments lying entirely inside a silence interval.

    A segment that only overlaps silence is kept: its edges may still carry
    speech.
    """
    if not silence_intervals:
        return list(segments)

    kept: list[TranscriptSegment] = []
    for seg in segments:
        start, end = seg.start_seconds, seg.end_seconds
        inside = any(
            start >= interval.start and end <= interval.end
            for interval in silence_intervals
        )
        if not inside:
            kept.append(seg)
    return kept
