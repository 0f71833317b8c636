"""Shared test fixtures."""

from pathlib import Path

import pytest

from mediacut.models import TranscriptSegment

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_path() -> Path:
    return FIXTURES_DIR / "sample_manifest.json"


@pytest.fixture
def segments() -> list[TranscriptSegment]:
    return [
        TranscriptSegment(start="00:01.000", end="00:04.000", text="Welcome back", speaker="Ann"),
        TranscriptSegment(start="00:05.000", end="00:09.000", text="Thanks for having me", speaker="Bob"),
        TranscriptSegment(start="00:10.000", end="00:14.000", text="Let's start", speaker="Ann"),
    ]
