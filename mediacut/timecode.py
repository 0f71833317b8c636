"""Time code parsing and formatting.

Model output is untrusted, so the lenient parser never raises: a malformed
field is logged and read as zero. Callers that need to reject bad input use
``strict=True``.
"""

import logging
import math
import re

from mediacut.errors import TimecodeParseError

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)")


def _parse_number(part: str, text: str, strict: bool) -> float:
    m = _NUMBER_RE.match(part.strip())
    if m is None:
        if strict:
            raise TimecodeParseError(f"Invalid time code: {text!r}")
        logger.warning("Unreadable time code %r, using 0", text)
        return 0.0
    return float(m.group(0))


def parse_time(text: str | float | int, strict: bool = False) -> float:
    """Convert ``H:M:S``, ``M:S`` or bare seconds to float seconds.

    ``00:00:01500`` (milliseconds glued onto the seconds field) reads as 1.5.
    """
    if isinstance(text, (int, float)):
        return float(text)

    raw = str(text).strip().replace(" ", "")
    parts = raw.split(":")

    millis = 0.0
    last = parts[-1]
    if len(parts) > 1 and "." not in last and len(last) > 2 and last.isdigit():
        millis = int(last[-3:]) / 1000.0
        parts[-1] = last[:-3] or "0"

    if len(parts) == 3:
        h, m, s = (_parse_number(p, raw, strict) for p in parts)
    elif len(parts) == 2:
        h = 0.0
        m, s = (_parse_number(p, raw, strict) for p in parts)
    elif len(parts) == 1:
        h = m = 0.0
        s = _parse_number(parts[0], raw, strict)
    else:
        if strict:
            raise TimecodeParseError(f"Too many fields in time code: {text!r}")
        logger.warning("Unreadable time code %r, using 0", text)
        return 0.0

    seconds = h * 3600 + m * 60 + s + millis
    if strict and seconds < 0:
        raise TimecodeParseError(f"Negative time code: {text!r}")
    return seconds


def _split_millis(seconds: float) -> tuple[int, int, int, int]:
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    total_ms = round(seconds * 1000)
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return h, m, s, ms


def format_time(seconds: float) -> str:
    """Format seconds as ``MM:SS.mmm``, or ``HH:MM:SS.mmm`` from one hour on."""
    h, m, s, ms = _split_millis(seconds)
    if h:
        return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"
    return f"{m:02d}:{s:02d}.{ms:03d}"


def format_timestamp(seconds: float, separator: str = ",") -> str:
    """Format seconds as ``HH:MM:SS,mmm`` (SRT) or ``HH:MM:SS.mmm`` (VTT)."""
    h, m, s, ms = _split_millis(seconds)
    return f"{h:02d}:{m:02d}:{s:02d}{separator}{ms:03d}"
