"""tleparser: Two-Line Element set parsing and validation.

Parse NORAD TLE text into field records, validate it against the format's
structural and semantic rules, and diagnose damaged input with a recovering
state-machine parser.

Modules:
    errors:         Error codes, severities, issue records and exceptions.
    normalize:      Line-ending, whitespace and comment normalization.
    checksum:       NORAD modulo-10 checksum.
    schema:         Column layout, field extraction and line reconstruction.
    validation:     Structural, semantic and data-quality checks.
    parser:         Functional parser (``validate_tle`` / ``parse_tle``).
    state_machine:  State-machine parser with error recovery.
    cli:            Command-line interface.

Example:
    >>> from tleparser import parse_tle, validate_tle
    >>>
    >>> text = open("iss.tle").read()
    >>> result = validate_tle(text, mode="permissive")
    >>> for w in result.warnings:
    ...     print(w.code.value, w.message)
    >>> tle = parse_tle(text, mode="permissive")
    >>> tle.inclination
    '51.6453'
"""

from .checksum import calculate_checksum, validate_checksum
from .errors import (
    ErrorCode,
    Severity,
    TLEError,
    TLEFormatError,
    TLEIssue,
    TLEValidationError,
    describe_error_code,
    is_critical_error,
    is_valid_error_code,
    is_warning_code,
)
from .parser import (
    Mode,
    ParsedTLE,
    ParseOptions,
    ValidateOptions,
    ValidationResult,
    parse_tle,
    validate_tle,
)
from .schema import FIELD_SCHEMA, reconstruct_lines
from .state_machine import (
    ParseResult,
    ParserState,
    RecoveryAction,
    StateMachineOptions,
    TLEStateMachineParser,
    parse_with_state_machine,
)
from .validation import decode_epoch_year, epoch_to_datetime

__version__ = "0.1.0"

__all__ = [
    "FIELD_SCHEMA",
    "ErrorCode",
    "Mode",
    "ParseOptions",
    "ParseResult",
    "ParsedTLE",
    "ParserState",
    "RecoveryAction",
    "Severity",
    "StateMachineOptions",
    "TLEError",
    "TLEFormatError",
    "TLEIssue",
    "TLEStateMachineParser",
    "TLEValidationError",
    "ValidateOptions",
    "ValidationResult",
    "calculate_checksum",
    "decode_epoch_year",
    "describe_error_code",
    "epoch_to_datetime",
    "is_critical_error",
    "is_valid_error_code",
    "is_warning_code",
    "parse_tle",
    "parse_with_state_machine",
    "reconstruct_lines",
    "validate_checksum",
    "validate_tle",
]
