"""Line normalization for raw TLE text.

TLE text arrives from many sources: CelesTrak downloads with CRLF line
endings, hand-edited files with tabs, copies with trailing blank lines and
``#`` comment headers. Everything here turns such input into a clean list of
data lines, and never fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

COMMENT_PREFIX = "#"

_LINE_BREAK = re.compile(r"\r\n|\r")


@dataclass(frozen=True)
class NormalizedInput:
    """Result of normalizing raw TLE text.

    Attributes:
        lines: Non-empty, trimmed data lines in input order.
        comments: Comment lines (``#...``) in input order.
    """

    lines: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)


def normalize_line_endings(text: str) -> str:
    """Collapse CRLF and bare CR line breaks into LF.

    Example:
        >>> normalize_line_endings("line1\\r\\nline2\\rline3")
        'line1\\nline2\\nline3'
    """
    return _LINE_BREAK.sub("\n", text)


def parse_tle_lines(text: str) -> list[str]:
    """Split text into trimmed, non-empty lines with tabs turned into spaces.

    Comment lines are kept; see :func:`normalize_tle_text` to separate them.
    """
    lines = []
    for raw in normalize_line_endings(text).split("\n"):
        line = raw.replace("\t", " ").strip()
        if line:
            lines.append(line)
    return lines


def is_comment(line: str) -> bool:
    return line.startswith(COMMENT_PREFIX)


def normalize_tle_text(text: str) -> NormalizedInput:
    """Normalize raw text and route comment lines to a side channel.

    Args:
        text: Arbitrary TLE text (2-line or 3-line, any line-ending style).

    Returns:
        :class:`NormalizedInput` with data lines and comments separated.
        Empty input yields zero lines.
    """
    out = NormalizedInput()
    for line in parse_tle_lines(text):
        if is_comment(line):
            out.comments.append(line)
        else:
            out.lines.append(line)
    return out
