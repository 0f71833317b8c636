"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import re
import shutil
import subprocess
from pathlib import Path

from mediacut.models import ProbeResult, TimeRange

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class NoAudioStreamError(ValueError):
    """Raised when the input file has no audio stream."""
    pass


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe. Audio-only files are accepted."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    data = json.loads(result.stdout)

    video_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "video"), None
    )
    audio_stream = next(
        (s for s in data["streams"] if s["codec_type"] == "audio"), None
    )

    if audio_stream is None:
        raise NoAudioStreamError(
            f"No audio stream found in {input_path}; transcription requires audio"
        )

    probe_result = ProbeResult(
        duration=float(data["format"]["duration"]),
        audio_sample_rate=int(audio_stream["sample_rate"]),
        codec_audio=audio_stream["codec_name"],
    )

    if video_stream is not None:
        # Parse fps from r_frame_rate (e.g. "30/1")
        num, den = video_stream["r_frame_rate"].split("/")
        probe_result.fps = int(num) / int(den) if int(den) else 0.0
        probe_result.width = int(video_stream["width"])
        probe_result.height = int(video_stream["height"])
        probe_result.codec_video = video_stream["codec_name"]

    return probe_result


def parse_silence_ranges(stderr: str, duration: float | None = None) -> list[TimeRange]:
    """Parse silencedetect output from ffmpeg stderr into TimeRanges.

    If a silence_start has no matching silence_end (silence extends to EOF),
    ``duration`` is used as the end time. If ``duration`` is also None the
    unpaired start is dropped.
    """
    starts = [float(m) for m in re.findall(r"silence_start: (-?[\d.]+)", stderr)]
    ends = [float(m) for m in re.findall(r"silence_end: ([\d.]+)", stderr)]

    ranges: list[TimeRange] = []
    for i, start in enumerate(starts):
        # silencedetect reports tiny negative starts for silence at t=0
        start = max(start, 0.0)
        if i < len(ends):
            ranges.append(TimeRange(start=start, end=ends[i]))
        elif duration is not None:
            # unpaired silence_start: silence runs to EOF
            ranges.append(TimeRange(start=start, end=duration))
    return ranges


def detect_silence(
    input_path: Path,
    threshold_db: float,
    min_duration: float,
    duration: float | None = None,
) -> list[TimeRange]:
    """Run FFmpeg silencedetect and return silent time ranges.

    *duration* is used to cap trailing silence that extends to EOF (an unpaired
    ``silence_start`` with no matching ``silence_end``).  When not supplied, any
    unpaired trailing silence is dropped.
    """
    cmd = [
        "ffmpeg",
        "-i", str(input_path),
        "-af", f"silencedetect=noise={threshold_db}dB:d={min_duration}",
        "-f", "null", "-",
    ]
    logger.debug("Detecting silence: %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)

    if result.returncode != 0 and not result.stderr:
        raise RuntimeError(
            f"ffmpeg silencedetect failed (rc={result.returncode}) with no output"
        )

    ranges = parse_silence_ranges(result.stderr, duration=duration)
    logger.info("Found %d silent ranges in %s", len(ranges), input_path)
    return ranges


def extract_audio(
    input_path: Path, output_path: Path, sample_rate: int = 16000
) -> Path:
    """Extract audio as mono WAV at the given sample rate (for Whisper)."""
    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-vn",
        "-acodec", "pcm_s16le",
        "-ar", str(sample_rate),
        "-ac", "1",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return output_path


def encode_ogg(input_path: Path, output_path: Path) -> Path:
    """Re-encode the audio track as Ogg Vorbis, small enough to upload to a model."""
    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-vn",
        "-c:a", "libvorbis",
        "-q:a", "4",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
    return output_path


def build_filter_complex(segments: list[TimeRange], video: bool = True) -> str:
    """Build a trim/atrim + concat filter graph keeping ``segments`` in order."""
    filter_parts: list[str] = []
    stream_labels: list[str] = []

    for i, seg in enumerate(segments):
        if video:
            filter_parts.append(
                f"[0:v]trim=start={seg.start}:end={seg.end},setpts=PTS-STARTPTS[v{i}]"
            )
        filter_parts.append(
            f"[0:a]atrim=start={seg.start}:end={seg.end},asetpts=PTS-STARTPTS[a{i}]"
        )
        stream_labels.append(f"[v{i}][a{i}]" if video else f"[a{i}]")

    concat_input = "".join(stream_labels)
    if video:
        filter_parts.append(f"{concat_input}concat=n={len(segments)}:v=1:a=1[outv][outa]")
    else:
        filter_parts.append(f"{concat_input}concat=n={len(segments)}:v=0:a=1[outa]")
    return ";\n".join(filter_parts)


def concat_segments(
    input_path: Path,
    segments: list[TimeRange],
    output_path: Path,
    video: bool = True,
    codec_args: list[str] | None = None,
) -> None:
    """Concatenate keep-segments using a single ffmpeg filter_complex call.

    Uses trim/atrim + concat filters so no intermediate files are needed and
    the approach works regardless of the input codec/container. With
    ``video=False`` only the audio track is produced.
    """
    if not segments:
        raise ValueError("concat_segments called with empty segment list")

    filter_complex = build_filter_complex(segments, video=video)

    cmd = [
        "ffmpeg", "-y",
        "-i", str(input_path),
        "-filter_complex", filter_complex,
    ]
    if video:
        cmd += ["-map", "[outv]"]
    cmd += ["-map", "[outa]"]
    cmd += codec_args or []
    cmd.append(str(output_path))
    logger.debug("Concatenating %d segments into %s", len(segments), output_path)
    subprocess.run(cmd, capture_output=True, check=True)


def copy_range(input_path: Path, segment: TimeRange, output_path: Path) -> None:
    """Cut one range without re-encoding (keyframe accurate only)."""
    cmd = [
        "ffmpeg", "-y",
        "-ss", f"{segment.start:.3f}",
        "-to", f"{segment.end:.3f}",
        "-i", str(input_path),
        "-c", "copy",
        "-avoid_negative_ts", "make_zero",
        str(output_path),
    ]
    subprocess.run(cmd, capture_output=True, check=True)
