"""Column layout of the TLE format.

A single ordered table maps every field name to its ``(line, start, end)``
column range (0-indexed, half-open). Both parsers extract fields by walking
this table, and :func:`reconstruct_lines` walks it in reverse to rebuild the
69-column lines from extracted values.

Line 1::

    1 25544U 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996
    ^ ^^^^^^ ^^^^^^^^ ^^^^^^^^^^^^^^ ^^^^^^^^^^ ^^^^^^^^ ^^^^^^^^ ^ ^^^^^

Line 2::

    2 25544  51.6453  57.0843 0001671  64.9808  73.0513 15.49338189252428
    ^ ^^^^^ ^^^^^^^^ ^^^^^^^^ ^^^^^^^ ^^^^^^^^ ^^^^^^^^ ^^^^^^^^^^^^^^^^^
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .checksum import CHECKSUM_COLUMN, TLE_LINE_LENGTH, calculate_checksum


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One entry of the field schema.

    Attributes:
        name: Field name used as the key in parsed records.
        line: TLE line the field lives on (1 or 2).
        start: First column (0-indexed, inclusive).
        end: Last column (exclusive).
        label: Human-readable name for messages.
        align: ``"right"`` for numeric fields, ``"left"`` for text fields.
            Used when rebuilding lines from trimmed values.
    """

    name: str
    line: int
    start: int
    end: int
    label: str
    align: str = "right"

    @property
    def width(self) -> int:
        return self.end - self.start

    def extract(self, line: str) -> str:
        """Slice this field out of ``line`` and trim it."""
        return line[self.start:self.end].strip()


FIELD_SCHEMA: tuple[FieldSpec, ...] = (
    # ── Line 1 ──
    FieldSpec("line_number1", 1, 0, 1, "Line 1 number"),
    FieldSpec("satellite_number1", 1, 2, 7, "Satellite number"),
    FieldSpec("classification", 1, 7, 8, "Classification", "left"),
    FieldSpec("intl_designator_year", 1, 9, 11, "International designator year"),
    FieldSpec("intl_designator_launch", 1, 11, 14, "International designator launch number"),
    FieldSpec("intl_designator_piece", 1, 14, 17, "International designator piece", "left"),
    FieldSpec("epoch_year", 1, 18, 20, "Epoch year"),
    FieldSpec("epoch", 1, 20, 32, "Epoch day"),
    FieldSpec("first_derivative", 1, 33, 43, "First derivative of mean motion"),
    FieldSpec("second_derivative", 1, 44, 52, "Second derivative of mean motion"),
    FieldSpec("bstar", 1, 53, 61, "B* drag term"),
    FieldSpec("ephemeris_type", 1, 62, 63, "Ephemeris type"),
    FieldSpec("element_set_number", 1, 64, 68, "Element set number"),
    FieldSpec("checksum1", 1, 68, 69, "Line 1 checksum"),
    # ── Line 2 ──
    FieldSpec("line_number2", 2, 0, 1, "Line 2 number"),
    FieldSpec("satellite_number2", 2, 2, 7, "Satellite number"),
    FieldSpec("inclination", 2, 8, 16, "Inclination"),
    FieldSpec("right_ascension", 2, 17, 25, "Right ascension"),
    # Stored without its implied leading "0."
    FieldSpec("eccentricity", 2, 26, 33, "Eccentricity", "left"),
    FieldSpec("argument_of_perigee", 2, 34, 42, "Argument of perigee"),
    FieldSpec("mean_anomaly", 2, 43, 51, "Mean anomaly"),
    FieldSpec("mean_motion", 2, 52, 63, "Mean motion"),
    FieldSpec("revolution_number", 2, 63, 68, "Revolution number"),
    FieldSpec("checksum2", 2, 68, 69, "Line 2 checksum"),
)

FIELD_NAMES: tuple[str, ...] = tuple(spec.name for spec in FIELD_SCHEMA)

FIELDS_BY_NAME: Mapping[str, FieldSpec] = {spec.name: spec for spec in FIELD_SCHEMA}


def fields_for_line(line_number: int) -> tuple[FieldSpec, ...]:
    """Schema entries for one line, in column order."""
    return tuple(spec for spec in FIELD_SCHEMA if spec.line == line_number)


def field_slice(line: str, name: str) -> str:
    """Return the trimmed text of field ``name`` from ``line``."""
    return FIELDS_BY_NAME[name].extract(line)


def extract_fields(line1: str, line2: str) -> dict[str, str]:
    """Extract every schema field from a pair of data lines.

    Values are trimmed raw text; nothing is coerced to a number so leading
    zeros and signs survive exactly as transmitted.
    """
    lines = {1: line1, 2: line2}
    return {spec.name: spec.extract(lines[spec.line]) for spec in FIELD_SCHEMA}


def _render_line(line_number: int, values: Mapping[str, Optional[str]]) -> str:
    buf = [" "] * TLE_LINE_LENGTH
    for spec in fields_for_line(line_number):
        if spec.start == CHECKSUM_COLUMN:
            continue
        value = values.get(spec.name) or ""
        if len(value) > spec.width:
            raise ValueError(
                f"{spec.label} '{value}' does not fit in {spec.width} columns"
            )
        text = value.ljust(spec.width) if spec.align == "left" else value.rjust(spec.width)
        buf[spec.start:spec.end] = text
    line = "".join(buf)
    return line[:CHECKSUM_COLUMN] + str(calculate_checksum(line))


def reconstruct_lines(values: Mapping[str, Optional[str]]) -> tuple[str, str]:
    """Rebuild the two 69-column data lines from extracted field values.

    The inverse of :func:`extract_fields`. Numeric fields are right-aligned
    and text fields left-aligned within their columns; separator columns are
    blank. The checksum digit is recomputed rather than copied.

    Raises:
        ValueError: If a value is wider than its column range.
    """
    return _render_line(1, values), _render_line(2, values)
