"""Structural, semantic and data-quality checks for TLE lines.

Checks come in three groups:

    Structural:  line length, line-number prefix and checksum of one line.
    Semantic:    satellite-number consistency, classification character and
                 numeric ranges of individual fields.
    Quality:     advisory warnings (stale epoch, high eccentricity, ...).

Every function here is pure. Each returns issue records with their natural
severity; deciding whether a failure is fatal is left to the caller (see
:mod:`tleparser.parser` and :mod:`tleparser.state_machine`), so both parsers
share one implementation of every rule.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from .checksum import TLE_LINE_LENGTH, validate_checksum
from .errors import (
    CrossFieldIssue,
    ErrorCode,
    QualityWarning,
    RangeIssue,
    StructuralIssue,
    TLEIssue,
)
from .schema import FIELDS_BY_NAME, field_slice

logger = logging.getLogger(__name__)

VALID_CLASSIFICATIONS = ("U", "C", "S")

MAX_SATELLITE_NAME_LENGTH = 24

EPOCH_PIVOT_YEAR = 57
"""Two-digit epoch years at or above this are 19xx, below are 20xx."""

STALE_EPOCH_DAYS = 30.0
HIGH_ECCENTRICITY = 0.25
LOW_MEAN_MOTION = 1.0
REVOLUTION_ROLLOVER_THRESHOLD = 90000
ZERO_DRAG_VALUES = ("00000-0", "00000+0", "00000 0")


@dataclass(frozen=True)
class LineValidationResult:
    """Errors found on one data line. Valid iff ``errors`` is empty."""

    errors: list[TLEIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class FieldValidationResult:
    """Outcome of a single-field or cross-field check."""

    is_valid: bool
    error: Optional[TLEIssue] = None


@dataclass(frozen=True)
class RangeRule:
    """Permitted numeric range for one schema field.

    Attributes:
        field: Schema field name.
        label: Name used in messages.
        min: Inclusive lower bound.
        max: Inclusive upper bound.
        optional: Skip the check when the field is blank.
        warning_only: Report violations as warnings even in strict mode.
        prefix: Text prepended before parsing (eccentricity's implied "0.").
    """

    field: str
    label: str
    min: float
    max: float
    optional: bool = False
    warning_only: bool = False
    prefix: str = ""


RANGE_RULES: tuple[RangeRule, ...] = (
    RangeRule("satellite_number1", "Satellite Number", 1, 99999),
    RangeRule("intl_designator_year", "International Designator Year", 0, 99, optional=True),
    RangeRule("intl_designator_launch", "International Designator Launch Number", 1, 999, optional=True),
    RangeRule("ephemeris_type", "Ephemeris Type", 0, 9, optional=True),
    RangeRule("element_set_number", "Element Set Number", 0, 9999, optional=True),
    RangeRule("epoch_year", "Epoch Year", 0, 99),
    RangeRule("epoch", "Epoch Day", 1, 366.99999999),
    RangeRule("inclination", "Inclination", 0, 180),
    RangeRule("right_ascension", "Right Ascension", 0, 360),
    RangeRule("eccentricity", "Eccentricity", 0, 1, prefix="0."),
    RangeRule("argument_of_perigee", "Argument of Perigee", 0, 360),
    RangeRule("mean_anomaly", "Mean Anomaly", 0, 360),
    # Some satellites legitimately exceed 20 rev/day
    RangeRule("mean_motion", "Mean Motion", 0, 20, warning_only=True),
    RangeRule("revolution_number", "Revolution Number", 0, 99999, optional=True),
)


def parse_number(value: str) -> Optional[float]:
    """Parse a TLE numeric field, returning None unless it is a finite number."""
    # float() accepts digit-group underscores, TLE columns never hold them
    if "_" in value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


# ── Structural checks ──


def check_line_length(line: str, line_number: int) -> Optional[StructuralIssue]:
    if len(line) == TLE_LINE_LENGTH:
        return None
    return StructuralIssue(
        code=ErrorCode.INVALID_LINE_LENGTH,
        message=(
            f"Line {line_number} must be exactly {TLE_LINE_LENGTH} characters "
            f"(got {len(line)})"
        ),
        field="line_length",
        line=line_number,
        expected=TLE_LINE_LENGTH,
        actual=len(line),
    )


def check_line_number(line: str, line_number: int) -> Optional[StructuralIssue]:
    found = line[:1]
    if found == str(line_number):
        return None
    return StructuralIssue(
        code=ErrorCode.INVALID_LINE_NUMBER,
        message=f"Line {line_number} must start with '{line_number}' (got '{found}')",
        field="line_number",
        line=line_number,
        expected=str(line_number),
        actual=found,
    )


def check_line_checksum(line: str, line_number: int) -> Optional[TLEIssue]:
    """Checksum failure on ``line`` attributed to ``line_number``, if any."""
    result = validate_checksum(line)
    if result.is_valid or result.error is None:
        return None
    return replace(
        result.error,
        line=line_number,
        message=f"Line {line_number}: {result.error.message}",
    )


def validate_line_structure(line: str, expected_line_number: int) -> LineValidationResult:
    """Validate length, line-number prefix and checksum of one data line.

    A wrong length short-circuits the remaining checks for that line, since
    column positions are meaningless once the length is off.
    """
    length_issue = check_line_length(line, expected_line_number)
    if length_issue is not None:
        return LineValidationResult(errors=[length_issue])

    errors: list[TLEIssue] = []
    for check in (check_line_number, check_line_checksum):
        issue = check(line, expected_line_number)
        if issue is not None:
            errors.append(issue)
    return LineValidationResult(errors=errors)


# ── Semantic checks ──


def validate_satellite_number(line1: str, line2: str) -> FieldValidationResult:
    """Catalog numbers on both lines must match and be numeric."""
    sat1 = field_slice(line1, "satellite_number1")
    sat2 = field_slice(line2, "satellite_number2")

    if sat1 != sat2:
        return FieldValidationResult(
            is_valid=False,
            error=CrossFieldIssue(
                code=ErrorCode.SATELLITE_NUMBER_MISMATCH,
                message=f"Satellite numbers must match (Line 1: {sat1}, Line 2: {sat2})",
                field="satellite_number",
                line1_value=sat1,
                line2_value=sat2,
            ),
        )

    if not (sat1.isascii() and sat1.isdigit()):
        return FieldValidationResult(
            is_valid=False,
            error=CrossFieldIssue(
                code=ErrorCode.INVALID_SATELLITE_NUMBER,
                message=f"Satellite number must be numeric (got '{sat1}')",
                field="satellite_number",
                line1_value=sat1,
                line2_value=sat2,
            ),
        )

    return FieldValidationResult(is_valid=True)


def validate_classification(line1: str) -> FieldValidationResult:
    """The classification character (column 8) must be U, C or S."""
    spec = FIELDS_BY_NAME["classification"]
    classification = line1[spec.start:spec.end]
    if classification in VALID_CLASSIFICATIONS:
        return FieldValidationResult(is_valid=True)
    return FieldValidationResult(
        is_valid=False,
        error=RangeIssue(
            code=ErrorCode.INVALID_CLASSIFICATION,
            message=f"Classification must be U, C, or S (got '{classification}')",
            field="classification",
            line=1,
            value=classification,
        ),
    )


def validate_numeric_range(
    value: str,
    name: str,
    min_value: float,
    max_value: float,
    field_name: Optional[str] = None,
) -> FieldValidationResult:
    """Check that ``value`` parses as a number within ``[min_value, max_value]``.

    Args:
        value: Raw field text.
        name: Human-readable field name for the message.
        min_value: Inclusive lower bound.
        max_value: Inclusive upper bound.
        field_name: Schema field name recorded on the issue (defaults to ``name``).
    """
    spec = FIELDS_BY_NAME.get(field_name or "")
    line = spec.line if spec else None
    number = parse_number(value)

    if number is None:
        return FieldValidationResult(
            is_valid=False,
            error=RangeIssue(
                code=ErrorCode.INVALID_NUMBER_FORMAT,
                message=f"{name} must be numeric (got '{value}')",
                field=field_name or name,
                line=line,
                value=value,
            ),
        )

    if number < min_value or number > max_value:
        return FieldValidationResult(
            is_valid=False,
            error=RangeIssue(
                code=ErrorCode.VALUE_OUT_OF_RANGE,
                message=f"{name} must be between {min_value} and {max_value} (got {number})",
                field=field_name or name,
                line=line,
                value=number,
                min=min_value,
                max=max_value,
            ),
        )

    return FieldValidationResult(is_valid=True)


def check_ranges(values: Mapping[str, Optional[str]]) -> list[TLEIssue]:
    """Apply :data:`RANGE_RULES` to extracted field values.

    Fields missing from ``values`` (or ``None``) are skipped, as are blank
    optional fields. Violations of warning-only rules come back already
    demoted to warnings.
    """
    issues: list[TLEIssue] = []
    for rule in RANGE_RULES:
        raw = values.get(rule.field)
        if raw is None or (rule.optional and not raw):
            continue
        result = validate_numeric_range(
            rule.prefix + raw, rule.label, rule.min, rule.max, field_name=rule.field
        )
        if result.error is None:
            continue
        issues.append(result.error.demoted() if rule.warning_only else result.error)
    return issues


# ── Epoch helpers ──


def decode_epoch_year(two_digit_year: int) -> int:
    """Expand a two-digit TLE epoch year: 57-99 -> 1957-1999, 00-56 -> 2000-2056."""
    if two_digit_year >= EPOCH_PIVOT_YEAR:
        return 1900 + two_digit_year
    return 2000 + two_digit_year


def epoch_to_datetime(year: int, day_of_year: float) -> datetime:
    """Convert a TLE epoch (year + fractional day-of-year) to a UTC datetime.

    Args:
        year: Full 4-digit year.
        day_of_year: Fractional day of year (1.0 = midnight Jan 1).
    """
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc)
    return jan1 + timedelta(days=day_of_year - 1.0)


# ── Quality warnings ──


def check_satellite_name(name: str) -> list[TLEIssue]:
    """Warnings for a suspicious name line (line 0 of a 3-line TLE)."""
    warnings: list[TLEIssue] = []
    if name[:1] in ("1", "2"):
        warnings.append(
            QualityWarning(
                code=ErrorCode.SATELLITE_NAME_FORMAT_WARNING,
                message='Line 0 starts with "1" or "2", might be incorrectly formatted',
                field="satellite_name",
                value=name,
            )
        )
    if len(name) > MAX_SATELLITE_NAME_LENGTH:
        warnings.append(
            QualityWarning(
                code=ErrorCode.SATELLITE_NAME_TOO_LONG,
                message=(
                    f"Satellite name (Line 0) should be {MAX_SATELLITE_NAME_LENGTH} "
                    f"characters or less (got {len(name)})"
                ),
                field="satellite_name",
                value=name,
            )
        )
    return warnings


def check_classification_warnings(line1: str) -> list[TLEIssue]:
    classification = field_slice(line1, "classification")
    if classification not in ("C", "S"):
        return []
    return [
        QualityWarning(
            code=ErrorCode.CLASSIFIED_DATA_WARNING,
            message=(
                f"Classification '{classification}' is unusual in public TLE data "
                "(typically 'U' for unclassified)"
            ),
            field="classification",
            line=1,
            value=classification,
        )
    ]


def check_epoch_warnings(line1: str, now: Optional[datetime] = None) -> list[TLEIssue]:
    """Warn about pre-2000 epochs and epochs more than 30 days old.

    Args:
        line1: TLE line 1.
        now: Reference time for the staleness check (default: current UTC
            time). Naive datetimes are taken as UTC.
    """
    year_text = field_slice(line1, "epoch_year")
    day = parse_number(field_slice(line1, "epoch"))
    if not (year_text.isascii() and year_text.isdigit()) or day is None:
        return []

    two_digit = int(year_text)
    full_year = decode_epoch_year(two_digit)
    warnings: list[TLEIssue] = []

    if full_year < 2000:
        warnings.append(
            QualityWarning(
                code=ErrorCode.DEPRECATED_EPOCH_YEAR_WARNING,
                message=(
                    f"Epoch year {full_year} is in the deprecated 1900s range "
                    f"(two-digit year: {two_digit})"
                ),
                field="epoch_year",
                line=1,
                value=full_year,
            )
        )

    if not (0.0 <= day < 367.0):
        return warnings

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    epoch_dt = epoch_to_datetime(full_year, day)
    age_days = (now - epoch_dt).total_seconds() / 86400.0

    if age_days > STALE_EPOCH_DAYS:
        warnings.append(
            QualityWarning(
                code=ErrorCode.STALE_TLE_WARNING,
                message=(
                    f"TLE epoch is {math.floor(age_days)} days old "
                    f"(epoch: {epoch_dt:%Y-%m-%d}). TLE data may be stale."
                ),
                field="epoch",
                line=1,
                value=math.floor(age_days),
                detail=f"{epoch_dt:%Y-%m-%d}",
            )
        )

    return warnings


def check_orbital_parameter_warnings(line2: str) -> list[TLEIssue]:
    """High eccentricity, low mean motion and revolution-counter rollover."""
    warnings: list[TLEIssue] = []

    eccentricity = parse_number("0." + field_slice(line2, "eccentricity"))
    if eccentricity is not None and eccentricity > HIGH_ECCENTRICITY:
        warnings.append(
            QualityWarning(
                code=ErrorCode.HIGH_ECCENTRICITY_WARNING,
                message=(
                    f"Eccentricity {eccentricity:.7f} is unusually high. "
                    "This indicates a highly elliptical orbit."
                ),
                field="eccentricity",
                line=2,
                value=eccentricity,
            )
        )

    mean_motion = parse_number(field_slice(line2, "mean_motion"))
    if mean_motion is not None and mean_motion < LOW_MEAN_MOTION:
        warnings.append(
            QualityWarning(
                code=ErrorCode.LOW_MEAN_MOTION_WARNING,
                message=(
                    f"Mean motion {mean_motion:.8f} rev/day is unusually low. "
                    "This indicates a very high orbit."
                ),
                field="mean_motion",
                line=2,
                value=mean_motion,
            )
        )

    rev_text = field_slice(line2, "revolution_number")
    if rev_text.isascii() and rev_text.isdigit() and int(rev_text) > REVOLUTION_ROLLOVER_THRESHOLD:
        warnings.append(
            QualityWarning(
                code=ErrorCode.REVOLUTION_NUMBER_ROLLOVER_WARNING,
                message=(
                    f"Revolution number {int(rev_text)} is approaching rollover "
                    "limit (99999). Counter may reset soon."
                ),
                field="revolution_number",
                line=2,
                value=int(rev_text),
            )
        )

    return warnings


def check_drag_and_ephemeris_warnings(line1: str) -> list[TLEIssue]:
    """Zero B*, negative first derivative and non-standard ephemeris type."""
    warnings: list[TLEIssue] = []

    bstar = field_slice(line1, "bstar")
    if bstar in ZERO_DRAG_VALUES:
        warnings.append(
            QualityWarning(
                code=ErrorCode.NEAR_ZERO_DRAG_WARNING,
                message=(
                    "B* drag term is zero or near-zero, which is unusual for "
                    "most satellites in LEO"
                ),
                field="bstar",
                line=1,
                value=bstar,
            )
        )

    first_derivative = parse_number(field_slice(line1, "first_derivative"))
    if first_derivative is not None and first_derivative < 0:
        warnings.append(
            QualityWarning(
                code=ErrorCode.NEGATIVE_DECAY_WARNING,
                message=(
                    f"First derivative of mean motion is negative "
                    f"({first_derivative}), indicating orbital decay"
                ),
                field="first_derivative",
                line=1,
                value=first_derivative,
            )
        )

    ephemeris_type = field_slice(line1, "ephemeris_type")
    if ephemeris_type not in ("0", ""):
        warnings.append(
            QualityWarning(
                code=ErrorCode.NON_STANDARD_EPHEMERIS_WARNING,
                message=(
                    f"Ephemeris type '{ephemeris_type}' is non-standard "
                    "(expected '0' for SGP4/SDP4)"
                ),
                field="ephemeris_type",
                line=1,
                value=ephemeris_type,
            )
        )

    return warnings


def quality_warnings(
    line1: str,
    line2: str,
    now: Optional[datetime] = None,
) -> list[TLEIssue]:
    """All advisory checks, in a fixed order. Lines of the wrong length are skipped."""
    warnings: list[TLEIssue] = []
    if len(line1) == TLE_LINE_LENGTH:
        warnings.extend(check_classification_warnings(line1))
        warnings.extend(check_epoch_warnings(line1, now=now))
        warnings.extend(check_drag_and_ephemeris_warnings(line1))
    if len(line2) == TLE_LINE_LENGTH:
        warnings.extend(check_orbital_parameter_warnings(line2))
    if warnings:
        logger.debug("Quality checks raised %d warning(s)", len(warnings))
    return warnings
