"""NORAD modulo-10 checksum for TLE data lines.

The last column of each data line holds a checksum digit: the sum of all
digits in columns 1-68, counting each minus sign as 1 and ignoring letters,
spaces, periods and plus signs, modulo 10.

References:
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
      https://celestrak.org/columns/v04n03/
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .errors import ChecksumIssue, ErrorCode, StructuralIssue, TLEIssue

TLE_LINE_LENGTH = 69
"""Exact length of a TLE data line."""

CHECKSUM_COLUMN = TLE_LINE_LENGTH - 1
"""0-indexed position of the checksum digit."""


@dataclass(frozen=True)
class ChecksumResult:
    """Outcome of :func:`validate_checksum`.

    ``expected`` is the computed value, ``actual`` the digit found on the
    line. Either is ``None`` when it could not be determined.
    """

    is_valid: bool
    expected: Optional[int] = None
    actual: Optional[int] = None
    error: Optional[TLEIssue] = None


def calculate_checksum(line: str) -> int:
    """Compute the checksum of a TLE line.

    Every character except the final column contributes: digits add their
    value, ``-`` adds 1, anything else adds nothing.

    Args:
        line: TLE data line, normally 69 characters including the checksum.

    Returns:
        Checksum digit in 0-9.

    Example:
        >>> calculate_checksum(
        ...     "1 25544U 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996"
        ... )
        6
    """
    total = 0
    for ch in line[:-1]:
        if "0" <= ch <= "9":
            total += ord(ch) - ord("0")
        elif ch == "-":
            total += 1
    return total % 10


def validate_checksum(line: str) -> ChecksumResult:
    """Check a line's final-column digit against its computed checksum.

    The length check comes first: a line that is not exactly 69 characters
    is reported as ``INVALID_LINE_LENGTH`` and no comparison is attempted.
    """
    if len(line) != TLE_LINE_LENGTH:
        return ChecksumResult(
            is_valid=False,
            error=StructuralIssue(
                code=ErrorCode.INVALID_LINE_LENGTH,
                message=f"Line length must be {TLE_LINE_LENGTH} characters",
                field="line_length",
                expected=TLE_LINE_LENGTH,
                actual=len(line),
            ),
        )

    expected = calculate_checksum(line)
    ch = line[CHECKSUM_COLUMN]

    if not ("0" <= ch <= "9"):
        return ChecksumResult(
            is_valid=False,
            expected=expected,
            error=ChecksumIssue(
                code=ErrorCode.INVALID_CHECKSUM_CHARACTER,
                message=f"Checksum position must contain a digit (got '{ch}')",
                field="checksum",
                expected=expected,
                character=ch,
            ),
        )

    actual = int(ch)
    if actual != expected:
        return ChecksumResult(
            is_valid=False,
            expected=expected,
            actual=actual,
            error=ChecksumIssue(
                code=ErrorCode.CHECKSUM_MISMATCH,
                message=f"Checksum mismatch: expected {expected}, got {actual}",
                field="checksum",
                expected=expected,
                actual=actual,
            ),
        )

    return ChecksumResult(is_valid=True, expected=expected, actual=actual)
