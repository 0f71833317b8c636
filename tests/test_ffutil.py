"""Unit tests for ffutil — silence parsing and subprocess wrappers."""

import json
from pathlib import Path
from unittest.mock import patch, MagicMock

import pytest

from mediacut.ffutil import (
    FFmpegNotFoundError,
    NoAudioStreamError,
    build_filter_complex,
    check_ffmpeg,
    concat_segments,
    copy_range,
    detect_silence,
    encode_ogg,
    parse_silence_ranges,
    probe,
)
from mediacut.models import TimeRange


# ---------------------------------------------------------------------------
# parse_silence_ranges (pure parsing, no subprocess)
# ---------------------------------------------------------------------------

SAMPLE_STDERR = """\
[silencedetect @ 0x...] silence_start: 11.5
[silencedetect @ 0x...] silence_end: 23.2 | silence_duration: 11.7
[silencedetect @ 0x...] silence_start: 70.0
[silencedetect @ 0x...] silence_end: 95.5 | silence_duration: 25.5
"""


class TestParseSilenceRanges:
    def test_basic_paired(self):
        assert parse_silence_ranges(SAMPLE_STDERR) == [
            TimeRange(start=11.5, end=23.2),
            TimeRange(start=70.0, end=95.5),
        ]

    def test_unpaired_trailing_silence_with_duration(self):
        stderr = (
            "[silencedetect @ 0x...] silence_start: 1.0\n"
            "[silencedetect @ 0x...] silence_end: 12.0 | silence_duration: 11.0\n"
            "[silencedetect @ 0x...] silence_start: 80.0\n"
        )
        assert parse_silence_ranges(stderr, duration=100.0) == [
            TimeRange(start=1.0, end=12.0),
            TimeRange(start=80.0, end=100.0),
        ]

    def test_unpaired_trailing_silence_without_duration(self):
        stderr = "[silencedetect @ 0x...] silence_start: 8.0\n"
        assert parse_silence_ranges(stderr, duration=None) == []

    def test_empty_stderr(self):
        assert parse_silence_ranges("") == []

    def test_negative_start_clamped(self):
        stderr = (
            "[silencedetect @ 0x...] silence_start: -0.00133\n"
            "[silencedetect @ 0x...] silence_end: 12.5 | silence_duration: 12.5\n"
        )
        assert parse_silence_ranges(stderr) == [TimeRange(start=0.0, end=12.5)]


# ---------------------------------------------------------------------------
# detect_silence (mocked subprocess)
# ---------------------------------------------------------------------------

class TestDetectSilence:
    @patch("mediacut.ffutil.subprocess.run")
    def test_returns_parsed_ranges(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stderr=SAMPLE_STDERR)
        ranges = detect_silence(Path("audio.ogg"), threshold_db=-30, min_duration=10)
        assert len(ranges) == 2
        cmd = mock_run.call_args[0][0]
        assert "silencedetect=noise=-30dB:d=10" in cmd

    @patch("mediacut.ffutil.subprocess.run")
    def test_failure_with_no_stderr_raises(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stderr="")
        with pytest.raises(RuntimeError, match="silencedetect failed"):
            detect_silence(Path("audio.ogg"), threshold_db=-30, min_duration=10)


# ---------------------------------------------------------------------------
# probe (mocked subprocess)
# ---------------------------------------------------------------------------

VIDEO_STREAM = {
    "codec_type": "video",
    "codec_name": "h264",
    "width": 1920,
    "height": 1080,
    "r_frame_rate": "30/1",
}
AUDIO_STREAM = {"codec_type": "audio", "codec_name": "aac", "sample_rate": "44100"}


def _probe_output(*streams) -> MagicMock:
    data = {"format": {"duration": "60.0"}, "streams": list(streams)}
    return MagicMock(returncode=0, stdout=json.dumps(data))


class TestProbe:
    @patch("mediacut.ffutil.subprocess.run")
    def test_video(self, mock_run):
        mock_run.return_value = _probe_output(VIDEO_STREAM, AUDIO_STREAM)
        result = probe(Path("video.mp4"))
        assert result.duration == 60.0
        assert result.width == 1920
        assert result.fps == 30.0
        assert result.has_video is True

    @patch("mediacut.ffutil.subprocess.run")
    def test_audio_only(self, mock_run):
        mock_run.return_value = _probe_output(AUDIO_STREAM)
        result = probe(Path("podcast.mp3"))
        assert result.has_video is False
        assert result.width is None
        assert result.codec_audio == "aac"

    @patch("mediacut.ffutil.subprocess.run")
    def test_no_audio_stream(self, mock_run):
        mock_run.return_value = _probe_output(VIDEO_STREAM)
        with pytest.raises(NoAudioStreamError, match="No audio stream"):
            probe(Path("video.mp4"))


class TestCheckFFmpeg:
    @patch("mediacut.ffutil.shutil.which", return_value=None)
    def test_missing(self, mock_which):
        with pytest.raises(FFmpegNotFoundError, match="ffmpeg not found"):
            check_ffmpeg()

    @patch("mediacut.ffutil.shutil.which", return_value="/usr/bin/ffmpeg")
    def test_present(self, mock_which):
        check_ffmpeg()


# ---------------------------------------------------------------------------
# command builders (mocked subprocess, verify the command shape)
# ---------------------------------------------------------------------------

class TestBuildFilterComplex:
    def test_audio_only_has_no_video_labels(self):
        fc = build_filter_complex([TimeRange(0, 5), TimeRange(8, 12)], video=False)
        assert "[0:v]" not in fc
        assert "concat=n=2:v=0:a=1[outa]" in fc


class TestConcatSegments:
    @patch("mediacut.ffutil.subprocess.run")
    def test_builds_filter_complex(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0)
        segments = [TimeRange(start=0, end=5), TimeRange(start=8, end=12)]
        concat_segments(Path("in.mp4"), segments, Path("out.mp4"))

        mock_run.assert_called_once()
        cmd = mock_run.call_args[0][0]
        fc = cmd[cmd.index("-filter_complex") + 1]
        assert "concat=n=2" in fc
        assert "[outv]" in fc
        assert "[outa]" in fc

    @patch("mediacut.ffutil.subprocess.run")
    def test_audio_only_maps_audio(self, mock_run):
        concat_segments(
            Path("in.ogg"), [TimeRange(0, 5)], Path("out.ogg"),
            video=False, codec_args=["-c:a", "libvorbis"],
        )
        cmd = mock_run.call_args[0][0]
        assert "[outv]" not in cmd
        assert cmd[-3:] == ["-c:a", "libvorbis", "out.ogg"]

    def test_empty_segments_raises(self):
        with pytest.raises(ValueError, match="empty segment list"):
            concat_segments(Path("in.mp4"), [], Path("out.mp4"))


class TestCopyRange:
    @patch("mediacut.ffutil.subprocess.run")
    def test_stream_copy(self, mock_run):
        copy_range(Path("in.mp4"), TimeRange(1.5, 4.25), Path("out.mp4"))
        cmd = mock_run.call_args[0][0]
        assert cmd[cmd.index("-ss") + 1] == "1.500"
        assert cmd[cmd.index("-to") + 1] == "4.250"
        assert cmd.index("-ss") < cmd.index("-i")
        assert cmd[cmd.index("-c") + 1] == "copy"


class TestEncodeOgg:
    @patch("mediacut.ffutil.subprocess.run")
    def test_vorbis(self, mock_run):
        encode_ogg(Path("in.mp4"), Path("in.ogg"))
        cmd = mock_run.call_args[0][0]
        assert "-vn" in cmd
        assert cmd[cmd.index("-c:a") + 1] == "libvorbis"
