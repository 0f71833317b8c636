"""Caption editor — renders transcript segments as SRT, VTT or plain text."""

from pathlib import Path

from mediacut.models import TranscriptSegment
from mediacut.timecode import format_timestamp

SUBTITLE_FORMATS = ("srt", "vtt", "txt")


def render_srt(segments: list[TranscriptSegment]) -> str:
    blocks = []
    for i, seg in enumerate(segments, 1):
        start = format_timestamp(seg.start_seconds, ",")
        end = format_timestamp(seg.end_seconds, ",")
        blocks.append(f"{i}\n{start} --> {end}\n{seg.speaker}: {seg.text}\n")
    return "\n".join(blocks)


def render_vtt(segments: list[TranscriptSegment]) -> str:
    blocks = []
    for seg in segments:
        start = format_timestamp(seg.start_seconds, ".")
        end = format_timestamp(seg.end_seconds, ".")
        blocks.append(f"{start} --> {end}\n<v {seg.speaker}>{seg.text}")
    return "WEBVTT\n\n" + "\n\n".join(blocks)


def render_txt(segments: list[TranscriptSegment]) -> str:
    return "\n".join(f"[{s.start} - {s.end}] {s.speaker}: {s.text}" for s in segments)


def render_subtitles(segments: list[TranscriptSegment], fmt: str = "srt") -> str:
    if fmt == "srt":
        return render_srt(segments)
    if fmt == "vtt":
        return render_vtt(segments)
    if fmt == "txt":
        return render_txt(segments)
    raise ValueError(f"Unsupported subtitle format: {fmt}")


def write_subtitles(segments: list[TranscriptSegment], path: Path, fmt: str | None = None) -> Path:
    """Write a subtitle sidecar; the format defaults to the file suffix."""
    fmt = fmt or path.suffix.lstrip(".").lower()
    path.write_text(render_subtitles(segments, fmt), encoding="utf-8")
    return path
