"""State-machine TLE parser with error recovery.

An alternative to :func:`tleparser.parser.parse_tle` for callers that need
partial results and a full audit trail from damaged input. The parser never
raises on bad TLE content: it walks an explicit set of states, recording
every transition, every issue (stamped with the state it was found in) and
every recovery decision, and returns a :class:`ParseResult`.

States::

    INITIAL -> DETECTING_FORMAT -> [PARSING_NAME] -> PARSING_LINE1
            -> PARSING_LINE2 -> VALIDATING -> COMPLETED

Any state may move to ``ERROR`` when a problem cannot be recovered from.

Recovery:
    When a problem is found and recovery is enabled, the parser records a
    :class:`RecoveryAction` and carries on. Each parse has a budget of
    ``max_recovery_attempts``; once it is spent, the next problem records
    ``ABORT`` and the parse ends in ``ERROR``. With recovery disabled, or in
    strict mode, the first problem aborts immediately.

Per-parse state lives in a :class:`ParseSession` created fresh by every
:meth:`TLEStateMachineParser.parse` call. The parser instance holds its
configuration plus a reference to the most recent session.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional

from .checksum import TLE_LINE_LENGTH
from .errors import ErrorCode, Severity, StructuralIssue, TLEIssue
from .normalize import normalize_tle_text
from .schema import fields_for_line
from .validation import (
    check_line_checksum,
    check_line_length,
    check_line_number,
    check_ranges,
    check_satellite_name,
    quality_warnings,
    validate_classification,
    validate_satellite_number,
)

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
"""Upper bound on state-machine steps for a single parse."""


class ParserState(str, Enum):
    INITIAL = "INITIAL"
    DETECTING_FORMAT = "DETECTING_FORMAT"
    PARSING_NAME = "PARSING_NAME"
    PARSING_LINE1 = "PARSING_LINE1"
    PARSING_LINE2 = "PARSING_LINE2"
    VALIDATING = "VALIDATING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"


TERMINAL_STATES = frozenset({ParserState.COMPLETED, ParserState.ERROR})


class RecoveryAction(str, Enum):
    """How the parser chose to proceed after a problem."""

    CONTINUE = "CONTINUE"
    SKIP_FIELD = "SKIP_FIELD"
    USE_DEFAULT = "USE_DEFAULT"
    ATTEMPT_FIX = "ATTEMPT_FIX"
    ABORT = "ABORT"


# ── Configuration ──


@dataclass(frozen=True)
class StateMachineOptions:
    """Configuration for :class:`TLEStateMachineParser`.

    The defaults are the most forgiving setting: recovery on, lenient mode,
    partial results returned.

    Attributes:
        attempt_recovery: Record a recovery action and keep going after a
            problem instead of aborting.
        max_recovery_attempts: Recovery budget per parse.
        strict_mode: Abort on the first error regardless of recovery settings.
        include_partial_results: Return extracted fields even when the parse
            did not succeed.
    """

    attempt_recovery: bool = True
    max_recovery_attempts: int = 10
    strict_mode: bool = False
    include_partial_results: bool = True

    def __post_init__(self) -> None:
        if self.max_recovery_attempts < 0:
            raise ValueError("max_recovery_attempts must be non-negative")

    @classmethod
    def forgiving(cls) -> StateMachineOptions:
        return cls()

    @classmethod
    def fail_fast(cls) -> StateMachineOptions:
        """Abort on the first error and return no partial data."""
        return cls(
            attempt_recovery=False,
            strict_mode=True,
            include_partial_results=False,
        )


# ── Records ──


@dataclass
class ParserContext:
    """Scratch state for one parse.

    ``line_count``, ``has_name`` and ``recovery_attempts`` are reported in
    the result; the rest tracks which normalized line plays which role.
    """

    line_count: int = 0
    has_name: bool = False
    recovery_attempts: int = 0
    lines: list[str] = field(default_factory=list)
    comments: list[str] = field(default_factory=list)
    name_index: Optional[int] = None
    line1_index: Optional[int] = None
    line2_index: Optional[int] = None

    def line(self, index: Optional[int]) -> Optional[str]:
        if index is None or not 0 <= index < len(self.lines):
            return None
        return self.lines[index]

    def summary(self) -> dict[str, Any]:
        return {
            "line_count": self.line_count,
            "has_name": self.has_name,
            "recovery_attempts": self.recovery_attempts,
        }


@dataclass(frozen=True)
class RecoveryRecord:
    """One entry of the recovery log. ``sequence`` orders entries within a parse."""

    action: RecoveryAction
    description: str
    state: ParserState
    sequence: int
    timestamp: float
    field: Optional[str] = None
    line: Optional[int] = None


@dataclass(frozen=True)
class StateTransition:
    from_state: ParserState
    to_state: ParserState
    reason: str = ""


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :meth:`TLEStateMachineParser.parse`.

    Attributes:
        success: True iff the parse reached ``COMPLETED`` with no errors.
        state: Terminal parser state.
        data: Extracted fields keyed by schema name (plus ``satellite_name``
            for 3-line input). None when the parse failed and partial results
            were not requested.
        errors: Error and critical issues, in the order found.
        warnings: Warning issues, in the order found.
        recovery_actions: Recovery log, in the order taken.
        transitions: Every state transition, in order.
        context: ``line_count``, ``has_name`` and ``recovery_attempts``.
        comments: ``#`` comment lines found in the input.
    """

    success: bool
    state: ParserState
    data: Optional[dict[str, str]]
    errors: list[TLEIssue]
    warnings: list[TLEIssue]
    recovery_actions: list[RecoveryRecord]
    transitions: list[StateTransition]
    context: dict[str, Any]
    comments: list[str] = field(default_factory=list)

    @property
    def actions(self) -> list[RecoveryAction]:
        return [r.action for r in self.recovery_actions]

    @property
    def error_codes(self) -> list[ErrorCode]:
        return [e.code for e in self.errors]

    @property
    def warning_codes(self) -> list[ErrorCode]:
        return [w.code for w in self.warnings]


# ── Per-parse session ──


class ParseSession:
    """Mutable state of a single parse: current state, issues and logs."""

    def __init__(self, options: StateMachineOptions):
        self.options = options
        self.state = ParserState.INITIAL
        self.errors: list[TLEIssue] = []
        self.warnings: list[TLEIssue] = []
        self.recovery_actions: list[RecoveryRecord] = []
        self.transitions: list[StateTransition] = []
        self.data: dict[str, str] = {}
        self.context = ParserContext()

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def add_issue(self, issue: TLEIssue) -> TLEIssue:
        """Stamp ``issue`` with the current state and file it by severity."""
        issue = replace(issue, state=self.state.value)
        if issue.severity is Severity.WARNING:
            self.warnings.append(issue)
        else:
            self.errors.append(issue)
        return issue

    def transition(self, new_state: ParserState, reason: str = "") -> StateTransition:
        record = StateTransition(self.state, new_state, reason)
        self.transitions.append(record)
        logger.debug("%s -> %s %s", self.state.value, new_state.value, reason)
        self.state = new_state
        return record

    def _record(self, action: RecoveryAction, description: str, **details: Any) -> None:
        self.recovery_actions.append(
            RecoveryRecord(
                action=action,
                description=description,
                state=self.state,
                sequence=len(self.recovery_actions),
                timestamp=time.time(),
                **details,
            )
        )

    def record_recovery(self, action: RecoveryAction, description: str, **details: Any) -> None:
        """Append to the recovery log and spend one unit of the budget."""
        self._record(action, description, **details)
        self.context.recovery_attempts += 1
        logger.debug("Recovery %s: %s", action.value, description)

    def abort(self, reason: str) -> None:
        self._record(RecoveryAction.ABORT, reason)
        self.transition(ParserState.ERROR, reason)

    def recover(self, action: RecoveryAction, description: str, **details: Any) -> bool:
        """Try to recover from a problem.

        Returns True if the parse may continue. Otherwise the session has
        moved to ``ERROR``.
        """
        if self.options.strict_mode or not self.options.attempt_recovery:
            self.transition(ParserState.ERROR, f"Recovery disabled: {description}")
            return False
        if self.context.recovery_attempts >= self.options.max_recovery_attempts:
            self.abort(f"Recovery budget exhausted: {description}")
            return False
        self.record_recovery(action, description, **details)
        return True

    def result(self) -> ParseResult:
        success = self.state is ParserState.COMPLETED and not self.errors
        include_data = success or self.options.include_partial_results
        return ParseResult(
            success=success,
            state=self.state,
            data=dict(self.data) if include_data else None,
            errors=list(self.errors),
            warnings=list(self.warnings),
            recovery_actions=list(self.recovery_actions),
            transitions=list(self.transitions),
            context=self.context.summary(),
            comments=list(self.context.comments),
        )


# ── State handlers ──


def _isolate_tle_lines(session: ParseSession) -> None:
    """Pick the unique line-1/line-2 pair out of input with too many lines."""
    ctx = session.context
    if not session.recover(
        RecoveryAction.ATTEMPT_FIX,
        "Attempting to identify valid TLE lines from excess lines",
    ):
        return

    line1_idx = [i for i, line in enumerate(ctx.lines) if line.startswith("1")]
    line2_idx = [i for i, line in enumerate(ctx.lines) if line.startswith("2")]

    if len(line1_idx) != 1 or len(line2_idx) != 1 or line1_idx[0] > line2_idx[0]:
        session.abort("Could not isolate a single line 1 / line 2 pair")
        return

    i1, i2 = line1_idx[0], line2_idx[0]
    picked = [ctx.lines[i1], ctx.lines[i2]]
    if i1 > 0:
        picked.insert(0, ctx.lines[i1 - 1])

    ctx.lines = picked
    ctx.line_count = len(picked)
    _assign_roles(ctx)

    session._record(
        RecoveryAction.CONTINUE,
        f"Identified TLE lines from excess input ({ctx.line_count} lines kept)",
    )


def _assign_roles(ctx: ParserContext) -> None:
    if len(ctx.lines) == 3:
        ctx.has_name = True
        ctx.name_index, ctx.line1_index, ctx.line2_index = 0, 1, 2
    else:
        ctx.has_name = False
        ctx.name_index, ctx.line1_index, ctx.line2_index = None, 0, 1


def _detect_format(session: ParseSession) -> None:
    ctx = session.context
    count = len(ctx.lines)

    if count < 2:
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.INVALID_LINE_COUNT,
                message=f"TLE must contain at least 2 lines (found {count})",
                severity=Severity.CRITICAL,
                field="line_count",
                expected="2 or 3",
                actual=count,
            )
        )
        if session.options.attempt_recovery:
            session.abort("Insufficient lines to parse TLE")
        else:
            session.transition(ParserState.ERROR, "Insufficient lines to parse TLE")
        return

    if count > 3:
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.INVALID_LINE_COUNT,
                message=f"TLE should contain 2 or 3 lines (found {count})",
                field="line_count",
                expected="2 or 3",
                actual=count,
            )
        )
        _isolate_tle_lines(session)
        if session.finished:
            return
    else:
        _assign_roles(ctx)

    if ctx.has_name:
        session.transition(ParserState.PARSING_NAME, "Name line present")
    else:
        session.transition(ParserState.PARSING_LINE1, "No name line")


def _parse_name(session: ParseSession) -> None:
    name = session.context.line(session.context.name_index)
    if name is not None:
        session.data["satellite_name"] = name
        for warning in check_satellite_name(name):
            session.add_issue(warning)
    session.transition(ParserState.PARSING_LINE1)


def _extract_line_fields(session: ParseSession, line: str, line_number: int) -> None:
    """Extract every field of one line, salvaging what a short line allows."""
    for spec in fields_for_line(line_number):
        if len(line) >= spec.end:
            session.data[spec.name] = spec.extract(line)
            continue

        if len(line) > spec.start:
            session.data[spec.name] = line[spec.start:].strip()
            session.add_issue(
                StructuralIssue(
                    code=ErrorCode.PARTIAL_FIELD,
                    message=f"{spec.label} is incomplete due to short line",
                    severity=Severity.WARNING,
                    field=spec.name,
                    line=line_number,
                    expected=(spec.start, spec.end),
                    actual=len(line),
                )
            )
            ok = session.recover(
                RecoveryAction.USE_DEFAULT,
                f"Using partial value for {spec.label}",
                field=spec.name,
                line=line_number,
            )
        else:
            session.add_issue(
                StructuralIssue(
                    code=ErrorCode.MISSING_FIELD,
                    message=f"{spec.label} is missing due to short line",
                    severity=Severity.WARNING,
                    field=spec.name,
                    line=line_number,
                    expected=(spec.start, spec.end),
                    actual=len(line),
                )
            )
            ok = session.recover(
                RecoveryAction.SKIP_FIELD,
                f"Omitting missing {spec.label}",
                field=spec.name,
                line=line_number,
            )
        if not ok:
            return


def _parse_data_line(session: ParseSession, line_number: int, next_state: ParserState) -> None:
    ctx = session.context
    index = ctx.line1_index if line_number == 1 else ctx.line2_index
    line = ctx.line(index)

    if line is None:
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.INVALID_LINE_COUNT,
                message=f"Line {line_number} is missing",
                severity=Severity.CRITICAL,
                line=line_number,
            )
        )
        session.transition(ParserState.ERROR, f"Line {line_number} missing")
        return

    length_issue = check_line_length(line, line_number)
    if length_issue is not None:
        session.add_issue(length_issue)
        if not session.recover(
            RecoveryAction.CONTINUE,
            f"Attempting to parse Line {line_number} despite incorrect length",
            line=line_number,
        ):
            return

    _extract_line_fields(session, line, line_number)
    if session.finished:
        return

    checks: list[Callable[[str, int], Optional[TLEIssue]]] = [check_line_number]
    if len(line) == TLE_LINE_LENGTH:
        checks.append(check_line_checksum)

    for check in checks:
        issue = check(line, line_number)
        if issue is None:
            continue
        session.add_issue(issue)
        if not session.recover(
            RecoveryAction.CONTINUE,
            f"Continuing despite {issue.code.value} on line {line_number}",
            line=line_number,
        ):
            return

    session.transition(next_state)


def _parse_line1(session: ParseSession) -> None:
    _parse_data_line(session, 1, ParserState.PARSING_LINE2)


def _parse_line2(session: ParseSession) -> None:
    _parse_data_line(session, 2, ParserState.VALIDATING)


def _validate(session: ParseSession) -> None:
    ctx = session.context
    line1 = ctx.line(ctx.line1_index) or ""
    line2 = ctx.line(ctx.line2_index) or ""

    for result in (
        validate_satellite_number(line1, line2),
        validate_classification(line1),
    ):
        if result.error is not None:
            session.add_issue(result.error)

    for issue in check_ranges(session.data):
        session.add_issue(issue)

    for warning in quality_warnings(line1, line2):
        session.add_issue(warning)

    if session.errors and session.options.strict_mode:
        session.transition(ParserState.ERROR, "Validation failed in strict mode")
    else:
        session.transition(ParserState.COMPLETED)


_HANDLERS: dict[ParserState, Callable[[ParseSession], None]] = {
    ParserState.DETECTING_FORMAT: _detect_format,
    ParserState.PARSING_NAME: _parse_name,
    ParserState.PARSING_LINE1: _parse_line1,
    ParserState.PARSING_LINE2: _parse_line2,
    ParserState.VALIDATING: _validate,
}


def run_state_machine(session: ParseSession, text: Any) -> ParseSession:
    """Drive ``session`` from ``INITIAL`` to a terminal state over ``text``."""
    if not isinstance(text, str):
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.INVALID_INPUT_TYPE,
                message="TLE data must be a string",
                severity=Severity.CRITICAL,
                actual=type(text).__name__,
            )
        )
        session.transition(ParserState.ERROR, "Invalid input type")
        return session

    if not text.strip():
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.EMPTY_INPUT,
                message="TLE string cannot be empty",
                severity=Severity.CRITICAL,
                actual=len(text),
            )
        )
        session.transition(ParserState.ERROR, "Empty input")
        return session

    normalized = normalize_tle_text(text)
    session.context.lines = list(normalized.lines)
    session.context.comments = list(normalized.comments)
    session.context.line_count = len(normalized.lines)
    session.transition(ParserState.DETECTING_FORMAT, "Starting parse")

    iterations = 0
    while not session.finished and iterations < MAX_ITERATIONS:
        _HANDLERS[session.state](session)
        iterations += 1

    if not session.finished:
        session.add_issue(
            StructuralIssue(
                code=ErrorCode.STATE_MACHINE_LOOP,
                message="State machine exceeded maximum iterations",
                severity=Severity.CRITICAL,
                actual=iterations,
            )
        )
        session.transition(ParserState.ERROR, "Iteration limit reached")

    return session


class TLEStateMachineParser:
    """Reusable state-machine parser.

    Example:
        >>> parser = TLEStateMachineParser(attempt_recovery=True)
        >>> result = parser.parse(text)
        >>> result.success, result.state
        (True, <ParserState.COMPLETED: 'COMPLETED'>)
    """

    def __init__(self, options: Optional[StateMachineOptions] = None, **overrides: Any):
        if options is None:
            options = StateMachineOptions(**overrides)
        elif overrides:
            options = replace(options, **overrides)
        self.options = options
        self.session = ParseSession(options)

    @property
    def state(self) -> ParserState:
        """State of the most recent parse."""
        return self.session.state

    def reset(self) -> None:
        """Discard the most recent parse's state, issues and recovery log."""
        self.session = ParseSession(self.options)

    def parse(self, text: str) -> ParseResult:
        """Parse ``text``. Never raises for malformed TLE content."""
        session = ParseSession(self.options)
        self.session = session
        run_state_machine(session, text)
        result = session.result()
        if not result.success:
            logger.debug(
                "State-machine parse ended in %s with %d error(s)",
                result.state.value,
                len(result.errors),
            )
        return result


def parse_with_state_machine(
    text: str,
    options: Optional[StateMachineOptions] = None,
    **overrides: Any,
) -> ParseResult:
    """Create a parser and parse ``text`` in one call."""
    return TLEStateMachineParser(options, **overrides).parse(text)
