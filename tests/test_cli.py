#!/usr/bin/env python3
"""Tests for the tleparser command-line interface."""
import json

import pytest
from click.testing import CliRunner

from tleparser.cli import main
from tleparser.schema import extract_fields, reconstruct_lines

from conftest import (
    ISS_LINE1,
    ISS_LINE1_BAD_CHECKSUM,
    ISS_LINE2,
    tle_text,
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def iss_file(tmp_path, iss_3line):
    path = tmp_path / "iss.tle"
    path.write_text(iss_3line)
    return str(path)


@pytest.fixture
def bad_checksum_file(tmp_path):
    path = tmp_path / "bad.tle"
    path.write_text(tle_text(ISS_LINE1_BAD_CHECKSUM, ISS_LINE2))
    return str(path)


class TestParseCommand:
    def test_table(self, runner, iss_file):
        result = runner.invoke(main, ["parse", iss_file])
        assert result.exit_code == 0, result.output
        assert "ISS (ZARYA)" in result.output
        assert "25544" in result.output
        assert "satellite_number1" in result.output

    def test_json(self, runner, iss_file):
        result = runner.invoke(main, ["parse", "--format", "json", iss_file])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["satellite_name"] == "ISS (ZARYA)"
        assert data["satellite_number1"] == "25544"
        assert data["eccentricity"] == "0001671"

    def test_tle_format(self, runner, iss_file):
        result = runner.invoke(main, ["parse", "-f", "tle", iss_file])
        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["ISS (ZARYA)", ISS_LINE1, ISS_LINE2]

    def test_stdin(self, runner):
        result = runner.invoke(
            main, ["parse", "--format", "json", "-"], input=tle_text(ISS_LINE1, ISS_LINE2)
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["satellite_name"] is None

    def test_strict_failure(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["parse", bad_checksum_file])
        assert result.exit_code == 1
        assert "CHECKSUM_MISMATCH" in result.output

    def test_permissive(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["parse", "--mode", "permissive", bad_checksum_file])
        assert result.exit_code == 0, result.output
        assert "CHECKSUM_MISMATCH" in result.output

    def test_no_validate(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["parse", "--no-validate", "-f", "json", bad_checksum_file])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["checksum1"] == "5"

    def test_empty_input(self, runner):
        result = runner.invoke(main, ["parse", "-"], input="")
        assert result.exit_code == 1
        assert "EMPTY_INPUT" in result.output

    def test_out_of_range_epoch_shown_as_invalid(self, runner):
        values = extract_fields(ISS_LINE1, ISS_LINE2)
        values["epoch"] = "9999999.9999"
        text = tle_text(*reconstruct_lines(values))
        result = runner.invoke(main, ["parse", "--mode", "permissive", "-"], input=text)
        assert result.exit_code == 0, result.output
        assert "Epoch: invalid" in result.output

    def test_bad_mode(self, runner, iss_file):
        result = runner.invoke(main, ["parse", "--mode", "relaxed", iss_file])
        assert result.exit_code == 2


class TestValidateCommand:
    def test_valid(self, runner, iss_file):
        result = runner.invoke(main, ["validate", iss_file])
        assert result.exit_code == 0, result.output
        assert "VALID" in result.output
        assert "INVALID" not in result.output

    def test_invalid(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["validate", bad_checksum_file])
        assert result.exit_code == 1
        assert "INVALID" in result.output
        assert "CHECKSUM_MISMATCH" in result.output

    def test_lenient_checksums(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["validate", "--lenient-checksums", bad_checksum_file])
        assert result.exit_code == 0, result.output

    def test_line_count(self, runner):
        result = runner.invoke(main, ["validate", "-"], input=ISS_LINE1 + "\n")
        assert result.exit_code == 1
        assert "INVALID_LINE_COUNT" in result.output


class TestInspectCommand:
    def test_success(self, runner, iss_file):
        result = runner.invoke(main, ["inspect", iss_file])
        assert result.exit_code == 0, result.output
        assert "SUCCESS" in result.output
        assert "COMPLETED" in result.output
        assert "INITIAL → DETECTING_FORMAT" in result.output

    def test_recovery_trace(self, runner):
        text = tle_text(ISS_LINE1[:60], ISS_LINE2)
        result = runner.invoke(main, ["inspect", "-"], input=text)
        assert result.exit_code == 1
        assert "FAILED" in result.output
        assert "USE_DEFAULT" in result.output
        assert "SKIP_FIELD" in result.output

    def test_no_recovery(self, runner, bad_checksum_file):
        result = runner.invoke(main, ["inspect", "--no-recovery", bad_checksum_file])
        assert result.exit_code == 1
        assert "Final state: ERROR" in result.output

    def test_max_recovery(self, runner):
        text = tle_text(ISS_LINE1[:60], ISS_LINE2)
        result = runner.invoke(main, ["inspect", "--max-recovery", "1", "-"], input=text)
        assert result.exit_code == 1
        assert "ABORT" in result.output


class TestChecksumCommand:
    def test_full_line(self, runner):
        result = runner.invoke(main, ["checksum", ISS_LINE1])
        assert result.exit_code == 0
        assert result.output.splitlines()[0] == "6"

    def test_line_without_checksum(self, runner):
        result = runner.invoke(main, ["checksum", ISS_LINE1[:-1]])
        assert result.output.splitlines()[0] == "6"

    def test_mismatch_noted(self, runner):
        result = runner.invoke(main, ["checksum", ISS_LINE1_BAD_CHECKSUM])
        assert result.exit_code == 0
        assert "expected 6" in result.output
