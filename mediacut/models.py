"""Shared data types used across mediacut."""

from dataclasses import asdict, dataclass, field

from mediacut.timecode import parse_time


@dataclass
class TimeRange:
    """A start/end time pair in seconds."""

    start: float
    end: float


@dataclass(frozen=True)
class TranscriptSegment:
    """One time-coded, speaker-attributed transcript line.

    Times are kept as text (``MM:SS.mmm`` and friends) because that is what
    the model emits and what the sidecar stores verbatim.
    """

    start: str
    end: str
    text: str
    speaker: str

    @property
    def start_seconds(self) -> float:
        return parse_time(self.start)

    @property
    def end_seconds(self) -> float:
        return parse_time(self.end)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptSegment":
        return cls(
            start=str(data["start"]),
            end=str(data["end"]),
            text=str(data.get("text", "")),
            speaker=str(data.get("speaker", "")),
        )


@dataclass
class SilenceInterval:
    """A detected silent span of the original audio."""

    start: float
    end: float
    duration: float

    @classmethod
    def between(cls, start: float, end: float) -> "SilenceInterval":
        return cls(start=start, end=end, duration=end - start)


@dataclass
class SegmentOffset:
    """Breakpoint: compacted timestamps >= min_time are shifted by offset."""

    min_time: float
    offset: float


@dataclass
class ProcessedAudio:
    """Result of one silence-removal run.

    ``silence_intervals`` and ``offsets`` describe the same cut plan and are
    only ever built together.
    """

    path: str
    silence_intervals: list[SilenceInterval] = field(default_factory=list)
    offsets: list[SegmentOffset] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessedAudio":
        return cls(
            path=data["path"],
            silence_intervals=[SilenceInterval(**s) for s in data.get("silence_intervals", [])],
            offsets=[SegmentOffset(**o) for o in data.get("offsets", [])],
        )


@dataclass
class AudioInfo:
    """Audio extracted for the transcription model."""

    path: str
    size: int
    duration: float


@dataclass
class ClipRange:
    start: str
    end: str


@dataclass
class Clip:
    """An ordered group of source ranges exported as one short video."""

    segments: list[ClipRange]
    title: str = ""
    reason: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ClipPlan:
    """Padded ranges to cut plus the clip-local subtitle cues."""

    title: str
    reason: str
    ranges: list[TimeRange]
    cues: list[TranscriptSegment] = field(default_factory=list)

    @property
    def duration(self) -> float:
        return sum(r.end - r.start for r in self.ranges)


@dataclass
class ExportProgress:
    percentage: float
    current_clip: int
    total_clips: int
    message: str


@dataclass
class ProbeResult:
    """Metadata extracted from a media file via ffprobe.

    Audio-only inputs (podcasts) leave the video fields unset.
    """

    duration: float
    audio_sample_rate: int
    codec_audio: str
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    codec_video: str | None = None

    @property
    def has_video(self) -> bool:
        return self.codec_video is not None
