"""Per-language segment stores with a single active track."""

import logging
from typing import Iterable

from mediacut.models import TranscriptSegment
from mediacut.store import SegmentStore

logger = logging.getLogger(__name__)

ORIGINAL = "Original"

# SegmentStore methods that produce an edited snapshot
EDIT_OPERATIONS = (
    "edit", "delete", "delete_many", "merge_down", "merge_selected",
    "split", "rename_speaker", "sort",
)


class LanguageOverlay:
    """The original transcript plus one store per completed translation.

    Reads resolve to the requested (or active) language and fall back to the
    original. Writes only ever replace the active store, so edits made while
    viewing a translation cannot leak into the source track.
    """

    def __init__(self, original: SegmentStore | None = None):
        self._stores: dict[str, SegmentStore] = {ORIGINAL: original or SegmentStore()}
        self.active_key = ORIGINAL

    def get(self, language: str | None = None) -> SegmentStore:
        key = language or self.active_key
        return self._stores.get(key, self._stores[ORIGINAL])

    def set(self, store: SegmentStore) -> None:
        self._stores[self.active_key] = store

    def apply(self, operation: str, *args) -> SegmentStore:
        """Run a SegmentStore edit on the active track and keep the result."""
        if operation not in EDIT_OPERATIONS:
            raise ValueError(f"Unknown edit operation: {operation}")
        store = getattr(self.get(), operation)(*args)
        self.set(store)
        return store

    def has(self, language: str) -> bool:
        return language in self._stores

    def languages(self) -> list[str]:
        return list(self._stores)

    def activate(self, language: str) -> bool:
        """Select ``language`` if it exists.

        Returns False, leaving the active track unchanged, when the language
        has not been translated yet.
        """
        if language not in self._stores:
            return False
        self.active_key = language
        return True

    def add_translation(self, language: str, segments: Iterable[TranscriptSegment]) -> bool:
        """Create the store for ``language`` once and make it active.

        A language that already exists is only selected; returns False then.
        """
        if language in self._stores:
            logger.info("Translation for %s already present, selecting it", language)
            self.active_key = language
            return False
        self._stores[language] = SegmentStore(segments)
        self.active_key = language
        return True

    def translations(self) -> dict[str, SegmentStore]:
        return {k: v for k, v in self._stores.items() if k != ORIGINAL}

    def to_dict(self) -> dict:
        """Sidecar form: ``segments`` plus a ``translations`` map when any exist."""
        data: dict = {"segments": self._stores[ORIGINAL].to_list()}
        translations = self.translations()
        if translations:
            data["translations"] = {lang: store.to_list() for lang, store in translations.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "LanguageOverlay":
        """Rebuild from :meth:`to_dict` output; null or missing keys read as empty.

        The original track is active afterwards.
        """
        overlay = cls(SegmentStore(TranscriptSegment.from_dict(s) for s in data.get("segments") or []))
        for language, segments in (data.get("translations") or {}).items():
            overlay._stores[language] = SegmentStore(
                TranscriptSegment.from_dict(s) for s in segments or []
            )
        return overlay
