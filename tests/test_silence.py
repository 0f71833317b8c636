"""Unit tests for the silence remover."""

from pathlib import Path
from unittest.mock import patch

from mediacut.analyzers.silence import build_offsets, plan_silence_cut, remove_silence
from mediacut.manifest import SilenceCutConfig
from mediacut.models import ProbeResult, SegmentOffset, SilenceInterval, TimeRange


def _make_probe(duration: float = 30.0) -> ProbeResult:
    return ProbeResult(duration=duration, audio_sample_rate=44100, codec_audio="vorbis")


CONFIG = SilenceCutConfig(enabled=True, min_duration=10.0, threshold_db=-30.0, padding=0.0)


class TestPlanSilenceCut:
    def test_no_silence(self):
        keep, silences = plan_silence_cut([], 30.0)
        assert keep == [TimeRange(0.0, 30.0)]
        assert silences == []

    def test_keep_silence_keep(self):
        keep, silences = plan_silence_cut([TimeRange(10.0, 15.0)], 30.0)
        assert keep == [TimeRange(0.0, 10.0), TimeRange(15.0, 30.0)]
        assert silences == [SilenceInterval(10.0, 15.0, 5.0)]

    def test_silence_at_start(self):
        keep, silences = plan_silence_cut([TimeRange(0.0, 3.0)], 20.0)
        assert keep == [TimeRange(3.0, 20.0)]
        assert silences[0].start == 0.0

    def test_silence_at_end(self):
        keep, _ = plan_silence_cut([TimeRange(17.0, 20.0)], 20.0)
        assert keep == [TimeRange(0.0, 17.0)]

    def test_padding_shrinks_silence(self):
        keep, silences = plan_silence_cut([TimeRange(10.0, 15.0)], 30.0, padding=0.5)
        assert keep == [TimeRange(0.0, 10.5), TimeRange(14.5, 30.0)]
        assert silences == [SilenceInterval(10.5, 14.5, 4.0)]

    def test_padding_eliminates_small_gap(self):
        keep, silences = plan_silence_cut([TimeRange(10.0, 10.5)], 30.0, padding=0.5)
        assert keep == [TimeRange(0.0, 30.0)]
        assert silences == []

    def test_padding_does_not_exceed_duration(self):
        _, silences = plan_silence_cut([TimeRange(8.0, 10.5)], 10.0, padding=0.5)
        assert all(s.end <= 10.0 for s in silences)

    def test_whole_file_silent(self):
        keep, silences = plan_silence_cut([TimeRange(0.0, 10.0)], 10.0)
        assert keep == []
        assert silences == [SilenceInterval(0.0, 10.0, 10.0)]


class TestBuildOffsets:
    def test_single_silence(self):
        offsets = build_offsets([TimeRange(0.0, 30.0), TimeRange(35.0, 60.0)])
        assert offsets == [SegmentOffset(0.0, 0.0), SegmentOffset(30.0, 5.0)]

    def test_leading_silence(self):
        offsets = build_offsets([TimeRange(3.0, 20.0)])
        assert offsets == [SegmentOffset(0.0, 3.0)]

    def test_empty_plan(self):
        assert build_offsets([]) == [SegmentOffset(0.0, 0.0)]

    def test_offsets_accumulate(self):
        offsets = build_offsets([TimeRange(0, 10), TimeRange(20, 30), TimeRange(50, 60)])
        assert [o.offset for o in offsets] == [0, 10, 30]
        assert [o.min_time for o in offsets] == [0, 10, 20]


class TestRemoveSilence:
    @patch("mediacut.analyzers.silence.ffutil.concat_segments")
    @patch("mediacut.analyzers.silence.ffutil.detect_silence", return_value=[])
    @patch("mediacut.analyzers.silence.ffutil.probe")
    def test_no_silence_keeps_original(self, mock_probe, mock_detect, mock_concat):
        mock_probe.return_value = _make_probe(30.0)
        result = remove_silence(Path("talk.ogg"), CONFIG)
        assert result.path == "talk.ogg"
        assert result.silence_intervals == []
        assert result.offsets == [SegmentOffset(0.0, 0.0)]
        mock_concat.assert_not_called()

    @patch("mediacut.analyzers.silence.ffutil.concat_segments")
    @patch("mediacut.analyzers.silence.ffutil.detect_silence")
    @patch("mediacut.analyzers.silence.ffutil.probe")
    def test_compacts_audio(self, mock_probe, mock_detect, mock_concat):
        mock_probe.return_value = _make_probe(60.0)
        mock_detect.return_value = [TimeRange(30.0, 45.0)]

        result = remove_silence(Path("/media/talk.ogg"), CONFIG)

        assert result.path == str(Path("/media/talk_nosilence.ogg"))
        assert result.silence_intervals == [SilenceInterval(30.0, 45.0, 15.0)]
        assert result.offsets == [SegmentOffset(0.0, 0.0), SegmentOffset(30.0, 15.0)]
        args, kwargs = mock_concat.call_args
        assert args[1] == [TimeRange(0.0, 30.0), TimeRange(45.0, 60.0)]
        assert kwargs["video"] is False
        assert mock_detect.call_args.kwargs["min_duration"] == 10.0

    @patch("mediacut.analyzers.silence.ffutil.concat_segments")
    @patch("mediacut.analyzers.silence.ffutil.detect_silence")
    @patch("mediacut.analyzers.silence.ffutil.probe")
    def test_entirely_silent_left_untouched(self, mock_probe, mock_detect, mock_concat):
        mock_probe.return_value = _make_probe(10.0)
        mock_detect.return_value = [TimeRange(0.0, 10.0)]
        result = remove_silence(Path("quiet.ogg"), CONFIG)
        assert result.path == "quiet.ogg"
        assert result.offsets == [SegmentOffset(0.0, 0.0)]
        mock_concat.assert_not_called()
