"""Transcript sidecar persistence (``<media>.transcript.json``)."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from mediacut.manifest import AnalysisConfig
from mediacut.models import ProcessedAudio, TranscriptSegment
from mediacut.overlay import ORIGINAL, LanguageOverlay
from mediacut.store import SegmentStore

logger = logging.getLogger(__name__)


@dataclass
class TranscriptSession:
    """Everything reloaded when a media file is reopened."""

    segments: list[TranscriptSegment] = field(default_factory=list)
    context: str = ""
    glossary: str = ""
    speaker_count: int | None = None
    remove_filler_words: bool = False
    translations: dict[str, list[TranscriptSegment]] = field(default_factory=dict)

    @classmethod
    def from_analysis(cls, segments: list[TranscriptSegment], analysis: AnalysisConfig) -> "TranscriptSession":
        return cls(
            segments=list(segments),
            context=analysis.context,
            glossary=analysis.glossary,
            speaker_count=analysis.speaker_count,
            remove_filler_words=analysis.remove_filler_words,
        )

    def overlay(self) -> LanguageOverlay:
        overlay = LanguageOverlay(SegmentStore(self.segments))
        for language, segments in self.translations.items():
            overlay.add_translation(language, segments)
        overlay.activate(ORIGINAL)
        return overlay

    def update_from(self, overlay: LanguageOverlay) -> None:
        self.segments = list(overlay.get(ORIGINAL))
        self.translations = {k: list(v) for k, v in overlay.translations().items()}

    def to_dict(self) -> dict:
        data = self.overlay().to_dict()
        data.update({
            "context": self.context,
            "glossary": self.glossary,
            "speakerCount": self.speaker_count,
            "removeFillerWords": self.remove_filler_words,
        })
        return data

    @classmethod
    def from_data(cls, data: list | dict) -> "TranscriptSession":
        """Accept the object form or the legacy bare segment array."""
        if isinstance(data, list):
            data = {"segments": data}
        if not isinstance(data, dict):
            raise ValueError("Transcript sidecar must be an array or an object")
        session = cls(
            context=data.get("context") or "",
            glossary=data.get("glossary") or "",
            speaker_count=data.get("speakerCount"),
            remove_filler_words=bool(data.get("removeFillerWords", False)),
        )
        session.update_from(LanguageOverlay.from_dict(data))
        return session


def sidecar_path(media_path: str | Path) -> Path:
    return Path(f"{media_path}.transcript.json")


def processed_path(media_path: str | Path) -> Path:
    return Path(f"{media_path}.processed.json")


def _write_json(path: Path, data: dict) -> Path:
    # readers never see a half-written sidecar
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)
    return path


def load_session(media_path: str | Path) -> TranscriptSession | None:
    path = sidecar_path(media_path)
    if not path.exists():
        return None
    return TranscriptSession.from_data(json.loads(path.read_text(encoding="utf-8")))


def save_session(media_path: str | Path, session: TranscriptSession) -> Path:
    path = _write_json(sidecar_path(media_path), session.to_dict())
    logger.debug("Saved %d segments to %s", len(session.segments), path)
    return path


def load_processed(media_path: str | Path) -> ProcessedAudio | None:
    path = processed_path(media_path)
    if not path.exists():
        return None
    return ProcessedAudio.from_dict(json.loads(path.read_text(encoding="utf-8")))


def save_processed(media_path: str | Path, processed: ProcessedAudio) -> Path:
    return _write_json(processed_path(media_path), processed.to_dict())
