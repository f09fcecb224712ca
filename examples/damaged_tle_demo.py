"""
Example: Strict, permissive and state-machine parsing of damaged TLEs.

Takes one clean ISS element set, damages it in a few typical ways
(bad checksum, truncated line, stray header lines) and shows how each
parser reports the result. No network access or data files needed.
"""

import sys
sys.path.insert(0, "src")

from tleparser import (
    TLEValidationError,
    parse_tle,
    parse_with_state_machine,
    validate_tle,
)

ISS = [
    "ISS (ZARYA)",
    "1 25544U 98067A   20300.83097691  .00001534  00000-0  35580-4 0  9996",
    "2 25544  51.6453  57.0843 0001671  64.9808  73.0513 15.49338189252428",
]

SAMPLES = {
    "clean": ISS,
    "bad checksum": [ISS[0], ISS[1][:-1] + "5", ISS[2]],
    "truncated line 1": [ISS[0], ISS[1][:60], ISS[2]],
    "header lines": ["# catalog export", "Generated 2020-10-27", *ISS],
}


def main():
    print("=" * 65)
    print("  tleparser — Damaged TLE Demo")
    print("=" * 65)

    for label, lines in SAMPLES.items():
        text = "\n".join(lines)
        print(f"\n── {label} ──")

        result = validate_tle(text, mode="permissive")
        print(f"  permissive valid: {result.is_valid}")
        for issue in result.errors + result.warnings:
            print(f"    {issue.severity.value:8s} {issue.code.value}")

        try:
            tle = parse_tle(text)
            print(f"  strict parse:     OK (NORAD {tle.satellite_number1})")
        except TLEValidationError as exc:
            print(f"  strict parse:     failed {[c.value for c in exc.codes]}")

        sm = parse_with_state_machine(text)
        actions = ", ".join(a.value for a in sm.actions) or "none"
        print(f"  state machine:    {sm.state.value} (success={sm.success})")
        print(f"    recovery: {actions}")
        print(f"    fields recovered: {len(sm.data or {})}")


if __name__ == "__main__":
    main()
