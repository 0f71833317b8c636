"""Immutable, ordered transcript segment collection for one language track."""

from dataclasses import replace
from typing import Iterable, Iterator

from mediacut.errors import SegmentIndexError
from mediacut.models import TranscriptSegment
from mediacut.timecode import format_time


class SegmentStore:
    """A snapshot of transcript segments.

    Every operation returns a new store and leaves the receiver untouched, so
    a reader holding an older snapshot never sees it change underneath it.
    Indices are always interpreted against this snapshot.
    """

    def __init__(self, segments: Iterable[TranscriptSegment] = ()):
        self._segments: tuple[TranscriptSegment, ...] = tuple(segments)

    @property
    def segments(self) -> tuple[TranscriptSegment, ...]:
        return self._segments

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[TranscriptSegment]:
        return iter(self._segments)

    def __getitem__(self, index: int) -> TranscriptSegment:
        self._check(index)
        return self._segments[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SegmentStore):
            return NotImplemented
        return self._segments == other._segments

    def __repr__(self) -> str:
        return f"SegmentStore({len(self._segments)} segments)"

    def _check(self, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self._segments):
            raise SegmentIndexError(
                f"Segment index {index!r} out of range for {len(self._segments)} segments"
            )

    # -- single-segment edits ------------------------------------------------

    def edit(self, index: int, segment: TranscriptSegment) -> "SegmentStore":
        """Replace one segment in place. Does not re-sort; see :meth:`sort`."""
        self._check(index)
        items = list(self._segments)
        items[index] = segment
        return SegmentStore(items)

    def delete(self, index: int) -> "SegmentStore":
        self._check(index)
        return SegmentStore(self._segments[:index] + self._segments[index + 1:])

    def delete_many(self, indices: Iterable[int]) -> "SegmentStore":
        """Remove several segments at once.

        Indices are removed from the highest down so earlier removals never
        shift the ones still pending.
        """
        targets = sorted(set(indices), reverse=True)
        for i in targets:
            self._check(i)
        items = list(self._segments)
        for i in targets:
            del items[i]
        return SegmentStore(items)

    def split(self, index: int, at: float | None = None) -> "SegmentStore":
        """Split one segment in two at ``at`` seconds (default: its midpoint).

        The text is divided at the word boundary closest to the proportional
        position of the cut. Both halves keep the speaker.
        """
        self._check(index)
        seg = self._segments[index]
        start, end = seg.start_seconds, seg.end_seconds
        if end < start:
            end = start
        if at is None:
            at = (start + end) / 2
        at = min(max(at, start), end)

        words = seg.text.split()
        fraction = (at - start) / (end - start) if end > start else 0.5
        cut = round(len(words) * fraction)
        if len(words) >= 2:
            cut = min(max(cut, 1), len(words) - 1)

        first = replace(seg, end=format_time(at), text=" ".join(words[:cut]))
        second = replace(seg, start=format_time(at), text=" ".join(words[cut:]))
        items = list(self._segments)
        items[index:index + 1] = [first, second]
        return SegmentStore(items)

    # -- merges ----------------------------------------------------------------

    def merge_down(self, index: int) -> "SegmentStore":
        """Merge segment ``index`` with the one after it. No-op on the last."""
        self._check(index)
        if index == len(self._segments) - 1:
            return self
        first, second = self._segments[index], self._segments[index + 1]
        merged = TranscriptSegment(
            start=first.start,
            end=second.end,
            text=f"{first.text} {second.text}",
            speaker=first.speaker,
        )
        items = list(self._segments)
        items[index:index + 2] = [merged]
        return SegmentStore(items)

    def merge_selected(self, indices: Iterable[int]) -> "SegmentStore":
        """Merge an arbitrary selection into one segment.

        The merged segment spans the first selected start to the last selected
        end and takes the first selected speaker. Unselected segments sitting
        in a gap are absorbed into that span but keep their place in the store
        and contribute no text.
        """
        selected = sorted(set(indices))
        if len(selected) < 2:
            return self
        for i in selected:
            self._check(i)

        chosen = [self._segments[i] for i in selected]
        merged = TranscriptSegment(
            start=chosen[0].start,
            end=chosen[-1].end,
            text=" ".join(s.text for s in chosen),
            speaker=chosen[0].speaker,
        )
        dropped = set(selected)
        items = [s for i, s in enumerate(self._segments) if i not in dropped]
        # everything before the first selected index survives, so it stays put
        items.insert(selected[0], merged)
        return SegmentStore(items)

    # -- whole-store edits ---------------------------------------------------

    def rename_speaker(self, old_name: str, new_name: str) -> "SegmentStore":
        """Relabel every segment spoken by ``old_name``.

        Renaming onto a name already in use merges two speakers irreversibly;
        check :meth:`is_lossy_rename` first and confirm with the user.
        """
        return SegmentStore(
            replace(s, speaker=new_name) if s.speaker == old_name else s
            for s in self._segments
        )

    def is_lossy_rename(self, old_name: str, new_name: str) -> bool:
        return new_name != old_name and new_name in self.speakers()

    def sort(self) -> "SegmentStore":
        """Restore non-decreasing start order (stable)."""
        return SegmentStore(sorted(self._segments, key=lambda s: s.start_seconds))

    def speakers(self) -> list[str]:
        seen: dict[str, None] = {}
        for s in self._segments:
            seen.setdefault(s.speaker, None)
        return list(seen)

    def to_list(self) -> list[dict]:
        return [s.to_dict() for s in self._segments]
