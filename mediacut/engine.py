"""Orchestrator — runs the collaborators around the segment timeline."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from mediacut import ffutil
from mediacut.analyzers.align import align_or_keep
from mediacut.analyzers.silence import remove_silence
from mediacut.editors.captions import write_subtitles
from mediacut.editors.clips import assemble_clips, export_clips as export_clip_files
from mediacut.editors.cut import cut_video
from mediacut.ingest import ingest_analysis, ingest_translation
from mediacut.manifest import Manifest
from mediacut.models import AudioInfo, Clip, ClipPlan, ExportProgress, ProcessedAudio, SegmentOffset
from mediacut.session import (
    TranscriptSession,
    load_processed,
    load_session,
    save_processed,
    save_session,
)

logger = logging.getLogger(__name__)


@dataclass
class EngineResult:
    audio_path: Path
    processed: ProcessedAudio | None = None
    silences_removed: int = 0
    duration_original: float = 0.0
    duration_compacted: float = 0.0


@dataclass
class ExportResult:
    outputs: list[Path] = field(default_factory=list)
    plans: list[ClipPlan] = field(default_factory=list)


def prepare_audio_for_ai(input_path: Path) -> AudioInfo:
    """Extract the audio track as ``<stem>.ogg`` next to the media file."""
    output_path = input_path.with_suffix(".ogg")
    if output_path == input_path:
        output_path = input_path.with_name(f"{input_path.stem}_audio.ogg")
    ffutil.encode_ogg(input_path, output_path)
    return AudioInfo(
        path=str(output_path),
        size=output_path.stat().st_size,
        duration=ffutil.probe(output_path).duration,
    )


def process(
    manifest: Manifest,
    on_progress: Callable[[str, float], None] | None = None,
) -> EngineResult:
    """Prepare the audio the transcription model will hear.

    Args:
        manifest: Validated editing manifest.
        on_progress: Optional callback(stage_name, fraction_complete).
    """

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    ffutil.check_ffmpeg()

    _progress("Probing media", 0.0)
    duration_original = ffutil.probe(manifest.input).duration

    _progress("Extracting audio", 0.1)
    audio = prepare_audio_for_ai(manifest.input)

    if manifest.silence_cut.enabled:
        _progress("Removing silence", 0.4)
        processed = remove_silence(Path(audio.path), manifest.silence_cut)
    else:
        processed = ProcessedAudio(path=audio.path, offsets=[SegmentOffset(0.0, 0.0)])

    _progress("Saving cut plan", 0.9)
    # a new run invalidates any offsets from the previous one
    save_processed(manifest.input, processed)

    removed = sum(s.duration for s in processed.silence_intervals)
    _progress("Done", 1.0)
    return EngineResult(
        audio_path=Path(processed.path),
        processed=processed,
        silences_removed=len(processed.silence_intervals),
        duration_original=duration_original,
        duration_compacted=max(audio.duration - removed, 0.0),
    )


def ingest_response(manifest: Manifest, response: str) -> TranscriptSession:
    """Ingest the model's analysis of the prepared audio and persist it.

    Raises ResponseFormatError (nothing is saved) if the response holds no
    usable segment array.
    """
    processed = load_processed(manifest.input)
    if processed is None:
        logger.warning("No cut plan for %s; assuming uncompacted timestamps", manifest.input)

    segments = ingest_analysis(response, processed)

    if manifest.alignment.enabled:
        # the original media is on the original timeline already
        segments = align_or_keep(manifest.input, segments, manifest.alignment)

    session = TranscriptSession.from_analysis(segments, manifest.analysis)
    save_session(manifest.input, session)
    logger.info("Stored %d segments for %s", len(segments), manifest.input)
    return session


def import_translation(media_path: Path, language: str, response: str) -> tuple[TranscriptSession, bool]:
    """Add a translation track to the saved session.

    Returns ``(session, added)``; ``added`` is False when the language was
    already present, in which case the response is ignored.
    """
    session = require_session(media_path)
    overlay = session.overlay()
    if overlay.has(language):
        return session, False

    segments = ingest_translation(response, expected_count=len(session.segments))
    overlay.add_translation(language, segments)
    session.update_from(overlay)
    save_session(media_path, session)
    return session, True


def require_session(media_path: Path) -> TranscriptSession:
    session = load_session(media_path)
    if session is None:
        raise FileNotFoundError(f"No transcript found for {media_path}; ingest a response first")
    return session


def apply_edit(
    media_path: Path,
    operation: str,
    *args,
    language: str | None = None,
) -> TranscriptSession:
    """Apply one SegmentStore operation to a language track and persist it.

    Only the selected track (the original by default) is written.
    """
    session = require_session(media_path)
    overlay = session.overlay()
    if language and not overlay.activate(language):
        raise ValueError(f"No {language} translation to edit")

    overlay.apply(operation, *args)
    session.update_from(overlay)
    save_session(media_path, session)
    return session


def write_transcript_subtitles(
    media_path: Path,
    output_path: Path,
    fmt: str,
    language: str | None = None,
) -> Path:
    overlay = require_session(media_path).overlay()
    return write_subtitles(list(overlay.get(language)), output_path, fmt)


def cut_transcript(
    media_path: Path,
    output_path: Path,
    language: str | None = None,
) -> Path:
    """Render the media cut down to the segments of the edited transcript.

    Segments are kept in store order; deleted segments are what gets cut.
    """
    ffutil.check_ffmpeg()
    store = require_session(media_path).overlay().get(language)
    media = ffutil.probe(media_path)
    logger.info("Cutting %s to %d segments", media_path, len(store))
    return cut_video(media_path, list(store), output_path, video=media.has_video)


def export_clips(
    manifest: Manifest,
    clips: list[Clip],
    language: str | None = None,
    on_progress: Callable[[ExportProgress], None] | None = None,
) -> ExportResult:
    """Assemble and export ``clips`` of the manifest's input.

    Subtitles are sliced from the requested language track. A failed export
    raises ExportError; the transcript sidecar is never written here.
    """
    ffutil.check_ffmpeg()
    transcript = list(require_session(manifest.input).overlay().get(language))
    media = ffutil.probe(manifest.input)

    cfg = manifest.clip_export
    plans = assemble_clips(
        clips,
        transcript,
        pre_padding=cfg.pre_padding,
        post_padding=cfg.post_padding,
        media_duration=media.duration,
    )
    outputs = export_clip_files(
        manifest.input,
        plans,
        manifest.output_dir,
        fast_mode=cfg.fast_mode,
        subtitle_format=manifest.captions.output_format if cfg.include_subtitles else None,
        video=media.has_video,
        on_progress=on_progress,
    )
    return ExportResult(outputs=outputs, plans=plans)
