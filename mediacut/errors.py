"""Exception hierarchy for mediacut."""


class MediaCutError(Exception):
    """Base class for mediacut errors."""
    pass


class TimecodeParseError(MediaCutError, ValueError):
    """A time code could not be read as H:M:S, M:S or seconds."""
    pass


class ResponseFormatError(MediaCutError, ValueError):
    """A model response did not contain a usable JSON array."""
    pass


class SegmentIndexError(MediaCutError, IndexError):
    """A segment store operation referenced an index outside the snapshot."""
    pass


class AlignmentError(MediaCutError):
    """The local alignment model failed."""
    pass


class ExportError(MediaCutError):
    """Cutting or exporting media failed."""
    pass
