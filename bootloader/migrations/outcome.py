"""
Execution outcome parsing and classification.

A migration unit may report its outcome directly ({'status': 'applied'})
or through a wrapped list of sub-results ({'migrations': [{...}]}), and
may return shapes we do not recognize at all. Raw results are parsed once
into one of three variants:

- DirectOutcome: a recognized top-level status
- WrappedOutcome: no recognized status, non-empty 'migrations' list
- UnrecognizedOutcome: anything else

classify() maps a variant onto applied / failed / skipped. Only one level
of wrapping is unwrapped.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

UNKNOWN_ERROR = 'Unknown error'
UNKNOWN_REASON = 'Unknown'


class ExecutionStatus(Enum):
    """Closed set of statuses a migration unit may report."""
    APPLIED = 'applied'
    COMPLETE = 'complete'
    ERROR = 'error'
    SKIPPED = 'skipped'

    @classmethod
    def lookup(cls, value: Any) -> Optional['ExecutionStatus']:
        """Return the matching status, or None for anything unrecognized."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None


class ClassificationKind(Enum):
    """Statistics bucket a migration ends up in."""
    APPLIED = 'applied'
    FAILED = 'failed'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class DirectOutcome:
    status: ExecutionStatus
    error: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class WrappedOutcome:
    entries: Tuple[Any, ...]


@dataclass(frozen=True)
class UnrecognizedOutcome:
    raw: Any = None


Outcome = Union[DirectOutcome, WrappedOutcome, UnrecognizedOutcome]


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one migration.

    Attributes:
        kind: Statistics bucket
        detail: Error text for failures, reason for skips, else None
        declared: False when the result shape was not recognized and the
            migration was counted as skipped by default
    """

    kind: ClassificationKind
    detail: Optional[str] = None
    declared: bool = True

    @property
    def triggers_fail_fast(self) -> bool:
        return self.kind is ClassificationKind.FAILED

    @classmethod
    def applied(cls) -> 'Classification':
        return cls(ClassificationKind.APPLIED)

    @classmethod
    def failed(cls, error: Optional[str] = None) -> 'Classification':
        return cls(ClassificationKind.FAILED, UNKNOWN_ERROR if error is None else error)

    @classmethod
    def skipped(cls, reason: Optional[str] = None) -> 'Classification':
        return cls(ClassificationKind.SKIPPED, reason)


def _field(raw: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute from an object."""
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _parse_direct(raw: Any) -> Optional[DirectOutcome]:
    status = ExecutionStatus.lookup(_field(raw, 'status'))
    if status is None:
        return None
    return DirectOutcome(
        status=status,
        error=_text(_field(raw, 'error')),
        reason=_text(_field(raw, 'reason'))
    )


def parse_outcome(raw: Any) -> Outcome:
    """
    Parse a raw execution result into an outcome variant.

    Args:
        raw: Whatever the migration unit returned (mapping, object or None)

    Returns:
        DirectOutcome, WrappedOutcome or UnrecognizedOutcome

    Example:
        >>> parse_outcome({'status': 'applied'})
        DirectOutcome(status=<ExecutionStatus.APPLIED: 'applied'>, error=None, reason=None)
        >>> parse_outcome({'migrations': [{'status': 'error'}]})
        WrappedOutcome(entries=({'status': 'error'},))
    """
    if raw is None or isinstance(raw, (str, bytes, int, float, bool)):
        return UnrecognizedOutcome(raw)

    direct = _parse_direct(raw)
    if direct is not None:
        return direct

    entries = _field(raw, 'migrations')
    if isinstance(entries, (list, tuple)) and entries:
        return WrappedOutcome(tuple(entries))

    return UnrecognizedOutcome(raw)


def _classify_direct(outcome: DirectOutcome) -> Classification:
    if outcome.status in (ExecutionStatus.APPLIED, ExecutionStatus.COMPLETE):
        return Classification.applied()
    if outcome.status is ExecutionStatus.ERROR:
        return Classification.failed(outcome.error)
    return Classification.skipped(
        UNKNOWN_REASON if outcome.reason is None else outcome.reason
    )


def classify(outcome: Outcome) -> Classification:
    """
    Map an outcome onto a statistics bucket.

    Priority order:
    1. Direct applied/complete -> applied
    2. Direct error -> failed (detail defaults to 'Unknown error')
    3. Direct skipped -> skipped (reason defaults to 'Unknown')
    4. Wrapped -> first entry re-classified by rules 1-3 only
    5. Anything else -> skipped, not declared

    Invocation failures never reach this function; the orchestrator
    classifies them as failed directly.
    """
    if isinstance(outcome, DirectOutcome):
        return _classify_direct(outcome)

    if isinstance(outcome, WrappedOutcome):
        first = outcome.entries[0]
        direct = None
        if first is not None and not isinstance(first, (str, bytes, int, float, bool)):
            direct = _parse_direct(first)
        if direct is not None:
            return _classify_direct(direct)

    return Classification(ClassificationKind.SKIPPED, declared=False)


def classify_result(raw: Any) -> Classification:
    """Parse and classify a raw execution result."""
    return classify(parse_outcome(raw))
