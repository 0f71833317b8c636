"""JSON manifest schema — the contract between CLI/API and engine."""

import json
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class SilenceCutConfig:
    """Configuration for compacting the audio sent to the model."""

    enabled: bool = True
    min_duration: float = 10.0
    threshold_db: float = -30.0
    padding: float = 0.05


@dataclass
class CaptionConfig:
    """Subtitle output settings."""

    output_format: str = "srt"


@dataclass
class AnalysisConfig:
    """Hints handed to the transcription model, persisted with the session."""

    context: str = ""
    glossary: str = ""
    speaker_count: int | None = None
    remove_filler_words: bool = False


@dataclass
class AlignmentConfig:
    """Local Whisper re-timing of the model transcript."""

    enabled: bool = False
    model: str = "base"
    language: str | None = None


@dataclass
class ClipExportConfig:
    """Padding and encoding options for short-clip export."""

    pre_padding: float = 0.0
    post_padding: float = 0.0
    fast_mode: bool = False
    include_subtitles: bool = True


@dataclass
class Manifest:
    """Top-level editing manifest."""

    input: Path
    output_dir: Path
    version: str = "1"
    silence_cut: SilenceCutConfig = field(default_factory=SilenceCutConfig)
    captions: CaptionConfig = field(default_factory=CaptionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    alignment: AlignmentConfig = field(default_factory=AlignmentConfig)
    clip_export: ClipExportConfig = field(default_factory=ClipExportConfig)


def load_manifest(path: str | Path) -> Manifest:
    """Load and validate a manifest from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if "input" not in data or "output_dir" not in data:
        raise ValueError("Manifest must contain 'input' and 'output_dir' fields")

    captions = CaptionConfig(**data["captions"]) if "captions" in data else CaptionConfig()
    if captions.output_format not in ("srt", "vtt", "txt"):
        raise ValueError(f"Unsupported caption format: {captions.output_format}")

    return Manifest(
        version=data.get("version", "1"),
        input=Path(data["input"]),
        output_dir=Path(data["output_dir"]),
        silence_cut=SilenceCutConfig(**data.get("silence_cut", {})),
        captions=captions,
        analysis=AnalysisConfig(**data.get("analysis", {})),
        alignment=AlignmentConfig(**data.get("alignment", {})),
        clip_export=ClipExportConfig(**data.get("clip_export", {})),
    )
