"""Local re-timing of a model transcript with OpenAI Whisper."""

import logging
import tempfile
from pathlib import Path

from mediacut import ffutil
from mediacut.errors import AlignmentError
from mediacut.manifest import AlignmentConfig
from mediacut.models import TranscriptSegment
from mediacut.timecode import format_time

logger = logging.getLogger(__name__)

LOCAL_SPEAKER = "Local"


def align_transcript(
    audio_path: Path,
    transcript: list[TranscriptSegment],
    config: AlignmentConfig,
) -> list[TranscriptSegment]:
    """Return segments timed by a local Whisper pass over ``audio_path``.

    The local model produces its own segmentation; its timestamps come from
    the signal rather than from the language model's estimate. Any failure is
    raised as AlignmentError.
    """
    try:
        import whisper

        with tempfile.TemporaryDirectory() as tmpdir:
            wav_path = Path(tmpdir) / "audio.wav"
            ffutil.extract_audio(audio_path, wav_path)

            model = whisper.load_model(config.model)
            result = model.transcribe(str(wav_path), language=config.language)
    except Exception as e:
        raise AlignmentError(f"Local alignment of {audio_path} failed: {e}") from e

    segments: list[TranscriptSegment] = []
    for seg in result.get("segments", []):
        text = seg["text"].strip()
        if not text:
            continue
        segments.append(
            TranscriptSegment(
                start=format_time(seg["start"]),
                end=format_time(seg["end"]),
                text=text,
                speaker=LOCAL_SPEAKER,
            )
        )

    if transcript and not segments:
        raise AlignmentError(f"Local model found no speech in {audio_path}")
    logger.info("Aligned %d model segments into %d local segments", len(transcript), len(segments))
    return segments


def align_or_keep(
    audio_path: Path,
    transcript: list[TranscriptSegment],
    config: AlignmentConfig,
) -> list[TranscriptSegment]:
    """Align, falling back to ``transcript`` unchanged when alignment fails."""
    try:
        return align_transcript(audio_path, transcript, config)
    except AlignmentError as e:
        logger.warning("%s; keeping the unaligned transcript", e)
        return list(transcript)
