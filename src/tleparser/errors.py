"""Error codes, issue records and exceptions for TLE parsing.

Every defect found while parsing a TLE is reported as an issue record: a
small frozen dataclass carrying a stable :class:`ErrorCode`, a human-readable
message and a :class:`Severity`. Errors and warnings share the same shape;
severity is the only thing that tells them apart.

Issue records come in one variant per family of checks:

    StructuralIssue:  line count, line length, line number, name line.
    ChecksumIssue:    modulo-10 checksum failures.
    CrossFieldIssue:  satellite-number consistency between the two lines.
    RangeIssue:       numeric format and range checks on single fields.
    QualityWarning:   advisory data-quality findings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Optional, Sequence


class ErrorCode(str, Enum):
    """Stable identifiers for every error and warning the parsers emit."""

    # Input
    INVALID_INPUT_TYPE = "INVALID_INPUT_TYPE"
    EMPTY_INPUT = "EMPTY_INPUT"

    # Structure
    INVALID_LINE_COUNT = "INVALID_LINE_COUNT"
    INVALID_LINE_LENGTH = "INVALID_LINE_LENGTH"
    INVALID_LINE_NUMBER = "INVALID_LINE_NUMBER"

    # Checksum
    CHECKSUM_MISMATCH = "CHECKSUM_MISMATCH"
    INVALID_CHECKSUM_CHARACTER = "INVALID_CHECKSUM_CHARACTER"

    # Fields
    SATELLITE_NUMBER_MISMATCH = "SATELLITE_NUMBER_MISMATCH"
    INVALID_SATELLITE_NUMBER = "INVALID_SATELLITE_NUMBER"
    INVALID_CLASSIFICATION = "INVALID_CLASSIFICATION"
    VALUE_OUT_OF_RANGE = "VALUE_OUT_OF_RANGE"
    INVALID_NUMBER_FORMAT = "INVALID_NUMBER_FORMAT"
    SATELLITE_NAME_TOO_LONG = "SATELLITE_NAME_TOO_LONG"
    SATELLITE_NAME_FORMAT_WARNING = "SATELLITE_NAME_FORMAT_WARNING"

    # Data quality
    CLASSIFIED_DATA_WARNING = "CLASSIFIED_DATA_WARNING"
    STALE_TLE_WARNING = "STALE_TLE_WARNING"
    HIGH_ECCENTRICITY_WARNING = "HIGH_ECCENTRICITY_WARNING"
    LOW_MEAN_MOTION_WARNING = "LOW_MEAN_MOTION_WARNING"
    DEPRECATED_EPOCH_YEAR_WARNING = "DEPRECATED_EPOCH_YEAR_WARNING"
    REVOLUTION_NUMBER_ROLLOVER_WARNING = "REVOLUTION_NUMBER_ROLLOVER_WARNING"
    NEAR_ZERO_DRAG_WARNING = "NEAR_ZERO_DRAG_WARNING"
    NON_STANDARD_EPHEMERIS_WARNING = "NON_STANDARD_EPHEMERIS_WARNING"
    NEGATIVE_DECAY_WARNING = "NEGATIVE_DECAY_WARNING"

    # State-machine parser
    PARTIAL_FIELD = "PARTIAL_FIELD"
    MISSING_FIELD = "MISSING_FIELD"
    STATE_MACHINE_LOOP = "STATE_MACHINE_LOOP"


class Severity(str, Enum):
    """Issue severity. Only ``WARNING`` is advisory."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_DESCRIPTIONS = {
    ErrorCode.INVALID_INPUT_TYPE: "Input data must be a string",
    ErrorCode.EMPTY_INPUT: "Input string is empty or contains only whitespace",
    ErrorCode.INVALID_LINE_COUNT: "TLE must contain exactly 2 or 3 lines",
    ErrorCode.INVALID_LINE_LENGTH: "TLE line must be exactly 69 characters",
    ErrorCode.INVALID_LINE_NUMBER: "Line number must be 1 or 2",
    ErrorCode.CHECKSUM_MISMATCH: "Calculated checksum does not match",
    ErrorCode.INVALID_CHECKSUM_CHARACTER: "Checksum must be a digit 0-9",
    ErrorCode.SATELLITE_NUMBER_MISMATCH: "Satellite numbers on line 1 and line 2 must match",
    ErrorCode.INVALID_SATELLITE_NUMBER: "Satellite catalog number is invalid",
    ErrorCode.INVALID_CLASSIFICATION: "Classification must be U, C, or S",
    ErrorCode.VALUE_OUT_OF_RANGE: "Field value is outside valid range",
    ErrorCode.INVALID_NUMBER_FORMAT: "Field contains invalid numeric format",
    ErrorCode.SATELLITE_NAME_TOO_LONG: "Satellite name exceeds maximum length",
    ErrorCode.SATELLITE_NAME_FORMAT_WARNING: "Satellite name contains unusual characters",
    ErrorCode.CLASSIFIED_DATA_WARNING: "TLE contains classified satellite data",
    ErrorCode.STALE_TLE_WARNING: "TLE epoch is significantly old",
    ErrorCode.HIGH_ECCENTRICITY_WARNING: "Eccentricity is unusually high",
    ErrorCode.LOW_MEAN_MOTION_WARNING: "Mean motion is unusually low",
    ErrorCode.DEPRECATED_EPOCH_YEAR_WARNING: "Epoch year is in the far past",
    ErrorCode.REVOLUTION_NUMBER_ROLLOVER_WARNING: "Revolution number may have rolled over",
    ErrorCode.NEAR_ZERO_DRAG_WARNING: "Drag coefficient is near zero",
    ErrorCode.NON_STANDARD_EPHEMERIS_WARNING: "Ephemeris type is non-standard",
    ErrorCode.NEGATIVE_DECAY_WARNING: "Mean motion decay is negative",
    ErrorCode.PARTIAL_FIELD: "Field is truncated by a short line",
    ErrorCode.MISSING_FIELD: "Field is absent because the line is too short",
    ErrorCode.STATE_MACHINE_LOOP: "Parser exceeded its iteration limit",
}

_WARNING_CODES = frozenset(
    {
        ErrorCode.SATELLITE_NAME_FORMAT_WARNING,
        ErrorCode.CLASSIFIED_DATA_WARNING,
        ErrorCode.STALE_TLE_WARNING,
        ErrorCode.HIGH_ECCENTRICITY_WARNING,
        ErrorCode.LOW_MEAN_MOTION_WARNING,
        ErrorCode.DEPRECATED_EPOCH_YEAR_WARNING,
        ErrorCode.REVOLUTION_NUMBER_ROLLOVER_WARNING,
        ErrorCode.NEAR_ZERO_DRAG_WARNING,
        ErrorCode.NON_STANDARD_EPHEMERIS_WARNING,
        ErrorCode.NEGATIVE_DECAY_WARNING,
    }
)


def is_valid_error_code(code: str) -> bool:
    """Return True if ``code`` names a member of :class:`ErrorCode`."""
    try:
        ErrorCode(code)
    except ValueError:
        return False
    return True


def describe_error_code(code: ErrorCode | str) -> str:
    """Human-readable description of an error code."""
    if not is_valid_error_code(code):
        return "Unknown error code"
    return _DESCRIPTIONS[ErrorCode(code)]


def is_warning_code(code: ErrorCode | str) -> bool:
    """Return True for codes that are advisory by nature."""
    return is_valid_error_code(code) and ErrorCode(code) in _WARNING_CODES


def is_critical_error(code: ErrorCode | str) -> bool:
    """Return True for codes that fail validation unless demoted."""
    return not is_warning_code(code)


# ── Issue records ──


@dataclass(frozen=True, kw_only=True)
class TLEIssue:
    """Base issue record shared by every variant.

    Attributes:
        code: Stable error code.
        message: Human-readable description of this occurrence.
        severity: ``warning``, ``error`` or ``critical``.
        field: Name of the offending field, if any.
        line: TLE line (1 or 2) the issue is attributed to, if any.
        state: Parser state the issue was raised in (state-machine parser only).
    """

    code: ErrorCode
    message: str
    severity: Severity = Severity.ERROR
    field: Optional[str] = None
    line: Optional[int] = None
    state: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity is not Severity.WARNING

    def demoted(self) -> TLEIssue:
        """Return a copy of this issue with warning severity."""
        return replace(self, severity=Severity.WARNING)

    def with_severity(self, severity: Severity) -> TLEIssue:
        return replace(self, severity=severity)

    def to_dict(self) -> dict[str, Any]:
        """Flat dictionary with ``None`` entries dropped, for reporting."""
        out = {}
        for key, value in asdict(self).items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            out[key] = value
        return out


@dataclass(frozen=True, kw_only=True)
class StructuralIssue(TLEIssue):
    """Line count, line length, line number or name-line problems."""

    expected: Any = None
    actual: Any = None


@dataclass(frozen=True, kw_only=True)
class ChecksumIssue(TLEIssue):
    """Checksum failure on one data line.

    ``expected`` is the computed checksum, ``actual`` the digit found in
    column 69 (``None`` when that column is not a digit).
    """

    expected: Optional[int] = None
    actual: Optional[int] = None
    character: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class CrossFieldIssue(TLEIssue):
    """Inconsistency between values found on line 1 and line 2."""

    line1_value: Optional[str] = None
    line2_value: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class RangeIssue(TLEIssue):
    """A field that is not numeric or falls outside its permitted range."""

    value: Any = None
    min: Optional[float] = None
    max: Optional[float] = None


@dataclass(frozen=True, kw_only=True)
class QualityWarning(TLEIssue):
    """Advisory data-quality finding. Never blocks parsing."""

    severity: Severity = Severity.WARNING
    value: Any = None
    detail: Optional[str] = None


# ── Exceptions ──


class TLEError(Exception):
    """Base class for exceptions raised by the functional parser."""


class TLEFormatError(TLEError, ValueError):
    """Raised when input cannot be treated as TLE text at all.

    Attributes:
        code: The :class:`ErrorCode` describing the failure.
        details: Extra context (e.g. ``{"input_length": 0}``).
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class TLEValidationError(TLEError, ValueError):
    """Raised by :func:`tleparser.parser.parse_tle` when validation fails.

    Carries both lists so callers can report every finding, not just the
    first fatal one.
    """

    def __init__(
        self,
        message: str,
        errors: Sequence[TLEIssue],
        warnings: Sequence[TLEIssue] = (),
    ):
        super().__init__(message)
        self.errors = tuple(errors)
        self.warnings = tuple(warnings)

    @property
    def codes(self) -> list[ErrorCode]:
        return [e.code for e in self.errors]
