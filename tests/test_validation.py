#!/usr/bin/env python3
"""Tests for structural, semantic and data-quality checks."""
from datetime import datetime, timezone

import pytest

from tleparser.errors import (
    ErrorCode,
    Severity,
    describe_error_code,
    is_critical_error,
    is_valid_error_code,
    is_warning_code,
)
from tleparser.schema import extract_fields, reconstruct_lines
from tleparser.validation import (
    check_drag_and_ephemeris_warnings,
    check_epoch_warnings,
    check_orbital_parameter_warnings,
    check_ranges,
    check_satellite_name,
    decode_epoch_year,
    epoch_to_datetime,
    quality_warnings,
    validate_classification,
    validate_line_structure,
    validate_numeric_range,
    validate_satellite_number,
)

from conftest import (
    GEO_LINE1,
    GPS_LINE1,
    ISS_LINE1,
    ISS_LINE1_BAD_CHECKSUM,
    ISS_LINE1_BAD_CLASSIFICATION,
    ISS_LINE1_YEAR_2000,
    ISS_LINE2,
    ISS_LINE2_HIGH_ECCENTRICITY,
    ISS_LINE2_SATNUM_MISMATCH,
    MOLNIYA_LINE2,
    NOW,
)


def _iss_with(**changes) -> tuple[str, str]:
    """ISS lines with some fields replaced and checksums recomputed."""
    values = extract_fields(ISS_LINE1, ISS_LINE2)
    values.update(changes)
    return reconstruct_lines(values)


# ═══════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════
class TestErrorCodes:
    def test_descriptions(self):
        assert describe_error_code(ErrorCode.CHECKSUM_MISMATCH) == "Calculated checksum does not match"
        assert describe_error_code("EMPTY_INPUT").startswith("Input string is empty")
        assert describe_error_code("NOT_A_CODE") == "Unknown error code"

    def test_every_code_described(self):
        for code in ErrorCode:
            assert describe_error_code(code) != "Unknown error code"

    def test_classification_helpers(self):
        assert is_valid_error_code("STALE_TLE_WARNING")
        assert not is_valid_error_code("stale")
        assert is_warning_code(ErrorCode.STALE_TLE_WARNING)
        assert not is_warning_code(ErrorCode.CHECKSUM_MISMATCH)
        assert is_critical_error(ErrorCode.CHECKSUM_MISMATCH)
        assert not is_critical_error("HIGH_ECCENTRICITY_WARNING")


# ═══════════════════════════════════════════════════════════════
# STRUCTURAL
# ═══════════════════════════════════════════════════════════════
class TestLineStructure:
    def test_valid_lines(self):
        assert validate_line_structure(ISS_LINE1, 1).is_valid
        assert validate_line_structure(ISS_LINE2, 2).is_valid

    def test_length_short_circuits(self):
        # Wrong prefix and checksum too, but only length is reported
        result = validate_line_structure("3" + ISS_LINE1[1:-2], 1)
        assert [e.code for e in result.errors] == [ErrorCode.INVALID_LINE_LENGTH]
        assert result.errors[0].line == 1

    def test_line_number_before_checksum(self):
        # Line 2 presented as line 1: wrong prefix, checksum still fine
        result = validate_line_structure(ISS_LINE2, 1)
        assert [e.code for e in result.errors] == [ErrorCode.INVALID_LINE_NUMBER]

    def test_checksum_message_names_line(self):
        result = validate_line_structure(ISS_LINE1_BAD_CHECKSUM, 1)
        assert [e.code for e in result.errors] == [ErrorCode.CHECKSUM_MISMATCH]
        assert result.errors[0].message.startswith("Line 1: ")
        assert result.errors[0].line == 1

    def test_both_prefix_and_checksum(self):
        line = "3" + ISS_LINE1[1:]
        result = validate_line_structure(line, 1)
        assert [e.code for e in result.errors] == [
            ErrorCode.INVALID_LINE_NUMBER,
            ErrorCode.CHECKSUM_MISMATCH,
        ]


# ═══════════════════════════════════════════════════════════════
# SEMANTIC
# ═══════════════════════════════════════════════════════════════
class TestSemantic:
    def test_satellite_numbers_match(self):
        assert validate_satellite_number(ISS_LINE1, ISS_LINE2).is_valid

    def test_satellite_number_mismatch(self):
        result = validate_satellite_number(ISS_LINE1, ISS_LINE2_SATNUM_MISMATCH)
        assert result.error.code == ErrorCode.SATELLITE_NUMBER_MISMATCH
        assert result.error.line1_value == "25544"
        assert result.error.line2_value == "25545"

    def test_satellite_number_not_numeric(self):
        line1 = ISS_LINE1[:2] + "2554A" + ISS_LINE1[7:]
        line2 = ISS_LINE2[:2] + "2554A" + ISS_LINE2[7:]
        result = validate_satellite_number(line1, line2)
        assert result.error.code == ErrorCode.INVALID_SATELLITE_NUMBER

    @pytest.mark.parametrize("classification", ["U", "C", "S"])
    def test_valid_classifications(self, classification):
        line1 = ISS_LINE1[:7] + classification + ISS_LINE1[8:]
        assert validate_classification(line1).is_valid

    def test_invalid_classification(self):
        result = validate_classification(ISS_LINE1_BAD_CLASSIFICATION)
        assert result.error.code == ErrorCode.INVALID_CLASSIFICATION
        assert result.error.value == "X"
        assert result.error.severity == Severity.ERROR

    def test_numeric_range(self):
        assert validate_numeric_range("51.6", "Inclination", 0, 180).is_valid
        out = validate_numeric_range("251.6", "Inclination", 0, 180, field_name="inclination")
        assert out.error.code == ErrorCode.VALUE_OUT_OF_RANGE
        assert out.error.line == 2
        assert (out.error.min, out.error.max) == (0, 180)

    @pytest.mark.parametrize("value", ["", "abc", "1.2.3", "nan", "inf", "5_1.6453"])
    def test_numeric_format(self, value):
        result = validate_numeric_range(value, "Inclination", 0, 180)
        assert result.error.code == ErrorCode.INVALID_NUMBER_FORMAT

    def test_digit_group_underscore_rejected(self):
        issues = check_ranges(extract_fields(*_iss_with(inclination="5_1.6453")))
        assert [(i.field, i.code) for i in issues] == [
            ("inclination", ErrorCode.INVALID_NUMBER_FORMAT)
        ]

    def test_ranges_clean_for_valid_tle(self):
        assert check_ranges(extract_fields(ISS_LINE1, ISS_LINE2)) == []

    def test_eccentricity_uses_implied_decimal(self):
        issues = check_ranges({"eccentricity": "9999999"})
        assert issues == []

    def test_optional_blank_fields_skipped(self):
        issues = check_ranges({"ephemeris_type": "", "revolution_number": "", "epoch_year": ""})
        assert [i.field for i in issues] == ["epoch_year"]
        assert issues[0].code == ErrorCode.INVALID_NUMBER_FORMAT

    def test_mean_motion_range_is_warning_only(self):
        """Mean motion above 20 rev/day is advisory even before mode is applied."""
        issues = check_ranges({"mean_motion": "25.49338189", "inclination": "251.6453"})
        by_field = {i.field: i for i in issues}
        assert by_field["mean_motion"].severity == Severity.WARNING
        assert by_field["inclination"].severity == Severity.ERROR


# ═══════════════════════════════════════════════════════════════
# EPOCH
# ═══════════════════════════════════════════════════════════════
class TestEpoch:
    @pytest.mark.parametrize(
        "yy,year",
        [(0, 2000), (20, 2020), (56, 2056), (57, 1957), (98, 1998), (99, 1999)],
    )
    def test_pivot(self, yy, year):
        assert decode_epoch_year(yy) == year

    def test_epoch_to_datetime(self):
        dt = epoch_to_datetime(2024, 1.5)
        assert dt == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_epoch_to_datetime_fraction(self):
        dt = epoch_to_datetime(2020, 300.83097691)
        assert (dt.year, dt.month, dt.day, dt.hour) == (2020, 10, 26, 19)


# ═══════════════════════════════════════════════════════════════
# QUALITY WARNINGS
# ═══════════════════════════════════════════════════════════════
class TestQualityWarnings:
    def test_clean_tle_has_no_warnings(self):
        assert quality_warnings(ISS_LINE1, ISS_LINE2, now=NOW) == []

    def test_all_quality_warnings_are_warnings(self):
        for w in quality_warnings(GPS_LINE1, MOLNIYA_LINE2, now=NOW):
            assert w.severity == Severity.WARNING
            assert not w.is_error

    def test_satellite_name(self):
        assert check_satellite_name("ISS (ZARYA)") == []
        codes = [w.code for w in check_satellite_name("1" + "X" * 30)]
        assert codes == [
            ErrorCode.SATELLITE_NAME_FORMAT_WARNING,
            ErrorCode.SATELLITE_NAME_TOO_LONG,
        ]

    def test_name_of_exactly_24_chars(self):
        assert check_satellite_name("A" * 24) == []

    @pytest.mark.parametrize("classification", ["C", "S"])
    def test_classified_data(self, classification):
        line1, line2 = _iss_with(classification=classification)
        codes = [w.code for w in quality_warnings(line1, line2, now=NOW)]
        assert codes == [ErrorCode.CLASSIFIED_DATA_WARNING]

    def test_stale_epoch(self):
        warnings = check_epoch_warnings(ISS_LINE1_YEAR_2000, now=NOW)
        assert [w.code for w in warnings] == [ErrorCode.STALE_TLE_WARNING]
        assert warnings[0].detail == "2000-01-01"

    def test_fresh_epoch(self):
        assert check_epoch_warnings(ISS_LINE1, now=NOW) == []

    def test_stale_boundary(self):
        # 20300.83 is 2020-10-26 19:56 UTC
        just_fresh = datetime(2020, 11, 25, 19, 0, tzinfo=timezone.utc)
        just_stale = datetime(2020, 11, 25, 21, 0, tzinfo=timezone.utc)
        assert check_epoch_warnings(ISS_LINE1, now=just_fresh) == []
        assert [w.code for w in check_epoch_warnings(ISS_LINE1, now=just_stale)] == [
            ErrorCode.STALE_TLE_WARNING
        ]

    def test_naive_now_is_utc(self):
        naive = datetime(2020, 11, 1)
        assert check_epoch_warnings(ISS_LINE1, now=naive) == []

    def test_deprecated_epoch_year(self):
        line1, _ = _iss_with(epoch_year="98")
        codes = [w.code for w in check_epoch_warnings(line1, now=NOW)]
        assert codes == [ErrorCode.DEPRECATED_EPOCH_YEAR_WARNING, ErrorCode.STALE_TLE_WARNING]

    def test_high_eccentricity(self):
        codes = [w.code for w in check_orbital_parameter_warnings(ISS_LINE2_HIGH_ECCENTRICITY)]
        assert codes == [ErrorCode.HIGH_ECCENTRICITY_WARNING]

    def test_eccentricity_at_threshold_not_flagged(self):
        _, line2 = _iss_with(eccentricity="2500000")
        assert check_orbital_parameter_warnings(line2) == []

    def test_low_mean_motion(self):
        _, line2 = _iss_with(mean_motion="0.99000000")
        codes = [w.code for w in check_orbital_parameter_warnings(line2)]
        assert codes == [ErrorCode.LOW_MEAN_MOTION_WARNING]

    def test_revolution_rollover(self):
        _, line2 = _iss_with(revolution_number="95000")
        warnings = check_orbital_parameter_warnings(line2)
        assert [w.code for w in warnings] == [ErrorCode.REVOLUTION_NUMBER_ROLLOVER_WARNING]
        assert warnings[0].value == 95000

    def test_drag_and_decay(self):
        codes = [w.code for w in check_drag_and_ephemeris_warnings(GPS_LINE1)]
        assert codes == [ErrorCode.NEAR_ZERO_DRAG_WARNING, ErrorCode.NEGATIVE_DECAY_WARNING]
        codes = [w.code for w in check_drag_and_ephemeris_warnings(GEO_LINE1)]
        assert codes == [ErrorCode.NEAR_ZERO_DRAG_WARNING, ErrorCode.NEGATIVE_DECAY_WARNING]

    def test_non_standard_ephemeris(self):
        line1, _ = _iss_with(ephemeris_type="2")
        codes = [w.code for w in check_drag_and_ephemeris_warnings(line1)]
        assert codes == [ErrorCode.NON_STANDARD_EPHEMERIS_WARNING]

    def test_wrong_length_lines_skipped(self):
        assert quality_warnings(GPS_LINE1[:60], MOLNIYA_LINE2[:60], now=NOW) == []

    def test_fixed_order(self):
        line1, line2 = _iss_with(
            classification="C",
            epoch_year="98",
            bstar="00000-0",
            eccentricity="5000000",
        )
        codes = [w.code for w in quality_warnings(line1, line2, now=NOW)]
        assert codes == [
            ErrorCode.CLASSIFIED_DATA_WARNING,
            ErrorCode.DEPRECATED_EPOCH_YEAR_WARNING,
            ErrorCode.STALE_TLE_WARNING,
            ErrorCode.NEAR_ZERO_DRAG_WARNING,
            ErrorCode.HIGH_ECCENTRICITY_WARNING,
        ]
