"""
Timecode Codec — Timing information encoded in frame-capture filenames.

Frame captures are named ``<start>__<end>.<ext>`` where each side is
``hours_minutes_seconds_milliseconds``, e.g.::

    0_00_01_000__0_00_03_500.png

Extractors sometimes append a qualifier to the end token
(``0_00_03_500_0001``); that trailing segment is dropped.
"""

import os
import re
from dataclasses import dataclass
from typing import Tuple

FILENAME_SEPARATOR = "__"
SEGMENT_SEPARATOR = "_"
TIMING_ARROW = " --> "

_NUMERIC = re.compile(r"[0-9]+")


class InvalidFilenameFormat(ValueError):
    """Raised when a filename does not carry a parseable start/end timing."""


@dataclass(frozen=True)
class Timecode:
    """A point in time as written in a filename."""
    hours: int
    minutes: int
    seconds: int
    milliseconds: int

    def __str__(self):
        return format_timecode(self)


def parse_timecode(token: str) -> Timecode:
    """
    Parse a single ``h_m_s_ms`` token.

    Raises:
        InvalidFilenameFormat: If the token does not have exactly four
            numeric segments.
    """
    parts = token.split(SEGMENT_SEPARATOR)
    if len(parts) != 4:
        raise InvalidFilenameFormat(f"Invalid time format: {token!r}")

    for part in parts:
        if not _NUMERIC.fullmatch(part):
            raise InvalidFilenameFormat(
                f"Non-numeric segment {part!r} in time token {token!r}"
            )

    hours, minutes, seconds, millis = (int(p) for p in parts)
    return Timecode(hours, minutes, seconds, millis)


def parse_filename(filename: str) -> Tuple[Timecode, Timecode]:
    """
    Extract the start and end timecodes from a capture or artifact filename.

    The extension is ignored, so ``a__b.png`` and ``a__b.txt`` parse the same.

    Args:
        filename: Base filename (no directory part).

    Returns:
        Tuple of (start, end) Timecodes.

    Raises:
        InvalidFilenameFormat: If the name does not split into exactly two
            timing tokens on ``__`` or either token is malformed.
    """
    base, _ = os.path.splitext(filename)
    tokens = base.split(FILENAME_SEPARATOR)
    if len(tokens) != 2:
        raise InvalidFilenameFormat(
            f"Filename does not contain exactly one '{FILENAME_SEPARATOR}' "
            f"separator: {filename}"
        )

    start_token, end_token = tokens
    start = parse_timecode(start_token)

    # Drop a trailing qualifier on the end token
    end_parts = end_token.split(SEGMENT_SEPARATOR)
    if len(end_parts) > 4:
        end_token = SEGMENT_SEPARATOR.join(end_parts[:-1])
    end = parse_timecode(end_token)

    return start, end


def format_timecode(tc: Timecode) -> str:
    """Render a Timecode as an SRT timestamp: ``HH:MM:SS,mmm``."""
    return (
        f"{tc.hours:02d}:{tc.minutes:02d}:{tc.seconds:02d},"
        f"{tc.milliseconds:03d}"
    )


def format_timing_line(start: Timecode, end: Timecode) -> str:
    """Render the ``start --> end`` line of an SRT block."""
    return f"{format_timecode(start)}{TIMING_ARROW}{format_timecode(end)}"
