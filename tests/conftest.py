"""Shared TLE fixtures. Every line here carries a correct checksum unless its name says otherwise."""
from datetime import datetime, timezone

import pytest


ISS_LINE1 = "1 25544U 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996"
ISS_LINE2 = "2 25544  51.6453  57.0843 0001671  64.9808  73.0513 15.49338189252428"

HUBBLE_LINE1 = "1 20580U 90037B   20300.40752066  .00000935  00000-0  51815-4 0  9990"
HUBBLE_LINE2 = "2 20580  28.4653 110.4652 0002816 193.3781 166.7519 15.09833334373268"

# 2006 epoch, negative decay, B* written as 00000+0
GPS_LINE1 = "1 28474U 04045A   06179.00000000 -.00000016  00000-0  00000+0 0  3925"
GPS_LINE2 = "2 28474  54.5647 324.8270 0116066  44.1802  48.7034  2.00575370 14430"

MOLNIYA_LINE1 = "1 36352U 10006A   20300.00000000 -.00000213  00000-0 -24234-4 0  9998"
MOLNIYA_LINE2 = "2 36352  62.0235 358.2134 7034567 256.3478  21.1234   2.0055481712347"

GEO_LINE1 = "1 41866U 16071A   20300.25000000 -.00000123  00000-0  00000-0 0  9999"
GEO_LINE2 = "2 41866   0.0234  45.6789 0001234 123.4567 236.5432  1.00273456 15675"

# Defective variants of the ISS lines
ISS_LINE1_BAD_CHECKSUM = ISS_LINE1[:-1] + "5"
ISS_LINE2_BAD_CHECKSUM = ISS_LINE2[:-1] + "0"
ISS_LINE1_BAD_CLASSIFICATION = "1 25544X 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996"
ISS_LINE2_SATNUM_MISMATCH = "2 25545  51.6453  57.0843 0001671  64.9808  73.0513 15.49338189252429"
ISS_LINE2_BAD_INCLINATION = "2 25544 251.6453  57.0843 0001671  64.9808  73.0513 15.49338189252420"
ISS_LINE2_HIGH_ECCENTRICITY = "2 25544  51.6453  57.0843 9999999  64.9808  73.0513 15.49338189252426"
ISS_LINE2_FAST_MEAN_MOTION = "2 25544  51.6453  57.0843 0001671  64.9808  73.0513 25.49338189252429"
ISS_LINE1_YEAR_2000 = "1 25544U 98067A   00001.00000000  .00003075  00000-0  59442-4 0  9994"

# Reference time a few days after the 20300 epochs above
NOW = datetime(2020, 11, 1, tzinfo=timezone.utc)


def tle_text(*lines: str) -> str:
    return "\n".join(lines) + "\n"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def iss_2line():
    return tle_text(ISS_LINE1, ISS_LINE2)


@pytest.fixture
def iss_3line():
    return tle_text("ISS (ZARYA)", ISS_LINE1, ISS_LINE2)
