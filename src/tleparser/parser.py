"""Functional TLE parser: ``validate_tle`` and ``parse_tle``.

Both functions are stateless and safe to call from any number of threads.
They accept raw TLE text (2-line or 3-line, any line-ending style, optional
``#`` comment lines) and apply the checks in :mod:`tleparser.validation`
under one of two policies:

    strict:      every failed check is an error.
    permissive:  checksum, satellite-number, classification and range
                 failures are demoted to warnings. Only failures that make
                 field extraction impossible (line count, line length,
                 line number) stay fatal.

Example:
    >>> from tleparser.parser import parse_tle
    >>> tle = parse_tle(open("iss.tle").read())
    >>> tle.satellite_number1
    '25544'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import (
    ErrorCode,
    Severity,
    StructuralIssue,
    TLEFormatError,
    TLEIssue,
    TLEValidationError,
)
from .normalize import normalize_tle_text
from .schema import FIELD_NAMES, extract_fields, reconstruct_lines
from .validation import (
    check_ranges,
    check_satellite_name,
    decode_epoch_year,
    epoch_to_datetime,
    parse_number,
    quality_warnings,
    validate_classification,
    validate_line_structure,
    validate_satellite_number,
)

logger = logging.getLogger(__name__)

_CHECKSUM_CODES = frozenset(
    {ErrorCode.CHECKSUM_MISMATCH, ErrorCode.INVALID_CHECKSUM_CHARACTER}
)


class Mode(str, Enum):
    """Validation policy."""

    STRICT = "strict"
    PERMISSIVE = "permissive"


def _coerce_mode(mode: Mode | str) -> Mode:
    try:
        return Mode(mode)
    except ValueError:
        raise ValueError(
            f'Mode must be either "strict" or "permissive" (got {mode!r})'
        ) from None


# ── Configuration ──


@dataclass(frozen=True)
class ValidateOptions:
    """Options for :func:`validate_tle`.

    Attributes:
        strict_checksums: In strict mode, treat checksum failures as errors.
            When False they are reported as warnings instead.
        validate_ranges: Run numeric range checks on every field.
        mode: ``strict`` or ``permissive`` (see module docstring).
    """

    strict_checksums: bool = True
    validate_ranges: bool = True
    mode: Mode = Mode.STRICT

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", _coerce_mode(self.mode))


@dataclass(frozen=True)
class ParseOptions:
    """Options for :func:`parse_tle`.

    Attributes:
        validate: Run :func:`validate_tle` first and raise on failure.
        strict_checksums: Passed through to validation.
        validate_ranges: Passed through to validation.
        include_warnings: Attach validation warnings to the result.
        include_comments: Attach ``#`` comment lines to the result.
        mode: ``strict`` or ``permissive``.
    """

    validate: bool = True
    strict_checksums: bool = True
    validate_ranges: bool = True
    include_warnings: bool = True
    include_comments: bool = True
    mode: Mode = Mode.STRICT

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", _coerce_mode(self.mode))

    @classmethod
    def strict(cls) -> ParseOptions:
        """Fail on any defect."""
        return cls()

    @classmethod
    def permissive(cls) -> ParseOptions:
        """Fail only when fields cannot be extracted; report the rest as warnings."""
        return cls(mode=Mode.PERMISSIVE)

    @classmethod
    def lenient(cls) -> ParseOptions:
        """Skip validation entirely and extract whatever the columns hold."""
        return cls(validate=False)

    def validate_options(self) -> ValidateOptions:
        return ValidateOptions(
            strict_checksums=self.strict_checksums,
            validate_ranges=self.validate_ranges,
            mode=self.mode,
        )


def _resolve(options, overrides: dict[str, Any], cls):
    if options is None:
        return cls(**overrides)
    if not isinstance(options, cls):
        raise TypeError(f"Options must be a {cls.__name__}")
    return replace(options, **overrides) if overrides else options


# ── Results ──


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of :func:`validate_tle`. Valid iff there are no errors."""

    errors: list[TLEIssue] = field(default_factory=list)
    warnings: list[TLEIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def error_codes(self) -> list[ErrorCode]:
        return [e.code for e in self.errors]

    @property
    def warning_codes(self) -> list[ErrorCode]:
        return [w.code for w in self.warnings]


@dataclass(frozen=True)
class ParsedTLE:
    """A parsed TLE record.

    Every schema field holds the trimmed raw text of its columns. Nothing is
    converted to a number, so leading zeros and signs are preserved exactly
    as transmitted (``eccentricity`` keeps its implied leading ``0.`` off).

    Attributes:
        satellite_name: Name from line 0, or None for 2-line input.
        warnings: Validation warnings, when requested.
        comments: ``#`` comment lines found in the input, when requested.
    """

    # Line 1
    line_number1: str
    satellite_number1: str
    classification: str
    intl_designator_year: str
    intl_designator_launch: str
    intl_designator_piece: str
    epoch_year: str
    epoch: str
    first_derivative: str
    second_derivative: str
    bstar: str
    ephemeris_type: str
    element_set_number: str
    checksum1: str

    # Line 2
    line_number2: str
    satellite_number2: str
    inclination: str
    right_ascension: str
    eccentricity: str
    argument_of_perigee: str
    mean_anomaly: str
    mean_motion: str
    revolution_number: str
    checksum2: str

    satellite_name: Optional[str] = None
    warnings: tuple[TLEIssue, ...] = ()
    comments: tuple[str, ...] = ()

    @classmethod
    def from_fields(
        cls,
        values: Mapping[str, str],
        satellite_name: Optional[str] = None,
        warnings: tuple[TLEIssue, ...] = (),
        comments: tuple[str, ...] = (),
    ) -> ParsedTLE:
        return cls(
            **{name: values[name] for name in FIELD_NAMES},
            satellite_name=satellite_name,
            warnings=tuple(warnings),
            comments=tuple(comments),
        )

    def fields(self) -> dict[str, str]:
        """Schema fields only, in column order."""
        return {name: getattr(self, name) for name in FIELD_NAMES}

    def to_dict(self) -> dict[str, Any]:
        """Flat dictionary of every field plus name, warnings and comments."""
        out: dict[str, Any] = {"satellite_name": self.satellite_name}
        out.update(self.fields())
        out["warnings"] = [w.to_dict() for w in self.warnings]
        out["comments"] = list(self.comments)
        return out

    def to_lines(self) -> tuple[str, str]:
        """Rebuild the two 69-column data lines (checksums recomputed)."""
        return reconstruct_lines(self.fields())

    @property
    def epoch_datetime(self) -> Optional[datetime]:
        """Epoch as a UTC datetime, or None if the epoch fields are malformed."""
        day = parse_number(self.epoch)
        year = self.epoch_year
        if not (year.isascii() and year.isdigit()) or day is None:
            return None
        if not 0.0 <= day < 367.0:
            return None
        return epoch_to_datetime(decode_epoch_year(int(year)), day)


# ── Validation ──


def _check_input(text: Any) -> None:
    if not isinstance(text, str):
        raise TypeError("TLE data must be a string")
    if not text.strip():
        raise TLEFormatError(
            "TLE string cannot be empty",
            ErrorCode.EMPTY_INPUT,
            {"input_length": len(text)},
        )


def _line_count_error(count: int) -> StructuralIssue:
    if count < 2:
        message = f"TLE must contain at least 2 lines (got {count})"
    else:
        message = f"TLE must contain 2 or 3 lines (got {count})"
    return StructuralIssue(
        code=ErrorCode.INVALID_LINE_COUNT,
        message=message,
        field="line_count",
        expected="2 or 3",
        actual=count,
    )


def validate_tle(
    text: str,
    options: Optional[ValidateOptions] = None,
    *,
    now: Optional[datetime] = None,
    **overrides: Any,
) -> ValidationResult:
    """Validate TLE text and report every error and warning found.

    Checks run in a fixed order: line count, then for each data line its
    length, line number and checksum, then satellite-number consistency,
    classification, numeric ranges and finally the quality warnings. A line
    that fails structurally ends validation there.

    Args:
        text: Raw TLE text.
        options: Validation options. Keyword overrides (``mode="permissive"``
            etc.) are applied on top.
        now: Reference time for the stale-epoch warning (default: now).

    Returns:
        :class:`ValidationResult`.

    Raises:
        TypeError: If ``text`` is not a string.
        TLEFormatError: If ``text`` is empty (code ``EMPTY_INPUT``).
    """
    _check_input(text)
    opts = _resolve(options, overrides, ValidateOptions)
    permissive = opts.mode is Mode.PERMISSIVE

    errors: list[TLEIssue] = []
    warnings: list[TLEIssue] = []

    def route(issue: TLEIssue) -> None:
        if issue.severity is Severity.WARNING:
            warnings.append(issue)
        elif permissive:
            warnings.append(issue.demoted())
        else:
            errors.append(issue)

    lines = normalize_tle_text(text).lines

    if len(lines) not in (2, 3):
        errors.append(_line_count_error(len(lines)))
        return ValidationResult(errors, warnings)

    if len(lines) == 3:
        warnings.extend(check_satellite_name(lines[0]))
    line1, line2 = lines[-2], lines[-1]

    for number, line in ((1, line1), (2, line2)):
        found = len(errors)
        for issue in validate_line_structure(line, number).errors:
            if issue.code in _CHECKSUM_CODES:
                if permissive or not opts.strict_checksums:
                    warnings.append(issue.demoted())
                else:
                    errors.append(issue)
            else:
                errors.append(issue)
        if len(errors) > found:
            logger.debug("Line %d failed structural validation", number)
            return ValidationResult(errors, warnings)

    for result in (
        validate_satellite_number(line1, line2),
        validate_classification(line1),
    ):
        if result.error is not None:
            route(result.error)

    if opts.validate_ranges:
        for issue in check_ranges(extract_fields(line1, line2)):
            route(issue)

    warnings.extend(quality_warnings(line1, line2, now=now))

    return ValidationResult(errors, warnings)


# ── Parsing ──


def parse_tle(
    text: str,
    options: Optional[ParseOptions] = None,
    *,
    now: Optional[datetime] = None,
    **overrides: Any,
) -> ParsedTLE:
    """Parse TLE text into a :class:`ParsedTLE`.

    Args:
        text: Raw TLE text (2 or 3 lines, optional comments).
        options: Parse options; keyword overrides are applied on top, e.g.
            ``parse_tle(text, mode="permissive")``.
        now: Reference time for the stale-epoch warning (default: now).

    Returns:
        The parsed record.

    Raises:
        TypeError: If ``text`` is not a string.
        TLEFormatError: If ``text`` is empty, or (without validation) does not
            hold 2 or 3 data lines.
        TLEValidationError: If validation is enabled and fails. The exception
            carries both the error and warning lists.
    """
    _check_input(text)
    opts = _resolve(options, overrides, ParseOptions)

    warnings: list[TLEIssue] = []
    if opts.validate:
        validation = validate_tle(text, opts.validate_options(), now=now)
        if not validation.is_valid:
            message = "TLE validation failed:\n" + "\n".join(
                e.message for e in validation.errors
            )
            logger.warning(
                "Rejected TLE: %d error(s), first %s",
                len(validation.errors),
                validation.errors[0].code.value,
            )
            raise TLEValidationError(message, validation.errors, validation.warnings)
        warnings = validation.warnings

    normalized = normalize_tle_text(text)
    lines = normalized.lines
    if len(lines) not in (2, 3):
        raise TLEFormatError(
            "Missing required TLE lines",
            ErrorCode.INVALID_LINE_COUNT,
            {"line_count": len(lines)},
        )

    satellite_name = lines[0] if len(lines) == 3 else None
    values = extract_fields(lines[-2], lines[-1])

    tle = ParsedTLE.from_fields(
        values,
        satellite_name=satellite_name,
        warnings=tuple(warnings) if opts.include_warnings else (),
        comments=tuple(normalized.comments) if opts.include_comments else (),
    )
    logger.debug(
        "Parsed TLE for satellite %s (%d warning(s))",
        tle.satellite_number1,
        len(warnings),
    )
    return tle
