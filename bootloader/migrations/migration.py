"""
Migration data models for the startup bootloader.

This module defines the core data structures used during a run:
- MigrationId: Parsed '<namespace>:<name>' identifier
- Migration: A discovered migration with metadata and its runnable unit
- ExecutionOptions: Per-invocation options handed to the executor
- RunStatistics: Mutable counters owned by the orchestrator
- RunSummary: Final structured outcome of a run

Identifiers are parsed once at discovery; the orchestrator never
re-parses them inside its loop.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

# First '<non-colon>+:<non-colon>+' run anywhere in the identifier
ID_PATTERN = re.compile(r'([^:]+):([^:]+)')

DIRECTION_UP = 'up'


@dataclass(frozen=True)
class MigrationId:
    """
    Structured migration identifier.

    Attributes:
        raw: Identifier exactly as registered (key in the tracking table)
        namespace: Part before the colon, None if unparsable
        name: Part after the colon, None if unparsable

    Example:
        >>> MigrationId.parse('app.db:create_users')
        <MigrationId(app.db:create_users)>
        >>> MigrationId.parse('broken').display_name
        'unknown'
    """

    raw: str
    namespace: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> 'MigrationId':
        """Parse an identifier. Never raises; unparsable ids keep no name."""
        raw = '' if raw is None else str(raw)
        match = ID_PATTERN.search(raw)
        if not match:
            return cls(raw=raw)
        namespace, name = match.groups()
        return cls(raw=raw, namespace=namespace, name=name)

    @property
    def sort_name(self) -> str:
        """Name used as the ordering tie-breaker."""
        return self.name or ''

    @property
    def display_name(self) -> str:
        """Name used in log records."""
        return self.name or 'unknown'

    def __str__(self) -> str:
        return self.raw

    def __repr__(self) -> str:
        return f"<MigrationId({self.raw})>"


@dataclass(frozen=True)
class Migration:
    """
    A single discovered migration.

    Immutable once discovered. The registry owns it; the orchestrator
    only reads it for the duration of a run.

    Attributes:
        id: Parsed identifier
        meta: Read-only metadata (timestamp, target_db, description, ...)
        unit: Runnable unit invoked by the executor, called as
            unit(database, options). May be sync or async.

    Example:
        >>> migration = Migration.create(
        ...     'app.db:create_users',
        ...     meta={'timestamp': '2024-01-01', 'target_db': 'app.db'},
        ... )
        >>> migration.timestamp
        '2024-01-01'
    """

    id: MigrationId
    meta: Mapping[str, Any] = field(default_factory=dict)
    unit: Optional[Callable[..., Any]] = field(default=None, compare=False)

    def __post_init__(self):
        """Freeze metadata so later mutation of the source dict is ignored."""
        object.__setattr__(self, 'meta', MappingProxyType(dict(self.meta or {})))

    @classmethod
    def create(
        cls,
        migration_id: str,
        meta: Optional[Mapping[str, Any]] = None,
        unit: Optional[Callable[..., Any]] = None
    ) -> 'Migration':
        """Build a migration from a raw identifier string."""
        return cls(id=MigrationId.parse(migration_id), meta=meta or {}, unit=unit)

    @property
    def timestamp(self) -> str:
        """Sortable timestamp, empty string when absent."""
        value = self.meta.get('timestamp')
        if value is None:
            return ''
        return value if isinstance(value, str) else str(value)

    @property
    def target_db(self) -> Optional[str]:
        return self.meta.get('target_db')

    @property
    def description(self) -> Optional[str]:
        return self.meta.get('description')

    def __repr__(self) -> str:
        return f"<Migration({self.id.raw}, {self.timestamp or '-'})>"


@dataclass(frozen=True)
class ExecutionOptions:
    """
    Options for one executor invocation.

    Constructed fresh for each migration and never shared.

    Attributes:
        database_id: Target database resource identifier
        id: Raw migration identifier
        direction: Always 'up' for the bootloader
    """

    database_id: str
    id: str
    direction: str = DIRECTION_UP

    def to_dict(self) -> Dict[str, str]:
        return {
            'database_id': self.database_id,
            'direction': self.direction,
            'id': self.id,
        }


@dataclass
class RunStatistics:
    """
    Counters for one bootloader run.

    Attributes:
        total: Number of candidate migrations after ordering
        applied: Migrations applied during this run
        failed: Migrations that errored
        skipped: Migrations skipped (already applied, declared skip,
            unrecognized result, or fail-fast)
    """

    total: int = 0
    applied: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, kind: str) -> None:
        """Increment exactly one counter ('applied', 'failed' or 'skipped')."""
        if kind not in ('applied', 'failed', 'skipped'):
            raise ValueError(f"Unknown statistics counter: {kind!r}")
        setattr(self, kind, getattr(self, kind) + 1)

    def is_balanced(self) -> bool:
        return self.applied + self.failed + self.skipped == self.total

    @property
    def success(self) -> bool:
        return self.failed == 0

    def completion_message(self) -> str:
        if self.applied > 0:
            return 'Migrations complete'
        if self.failed > 0:
            return 'Migrations failed'
        return 'No migrations applied'

    def as_log_fields(self) -> Dict[str, int]:
        return {
            'applied': self.applied,
            'failed': self.failed,
            'skipped': self.skipped,
            'total': self.total,
        }

    def summarize(self) -> 'RunSummary':
        return RunSummary(
            status='success' if self.success else 'error',
            applied=self.applied,
            failed=self.failed,
            skipped=self.skipped,
            total=self.total
        )


@dataclass(frozen=True)
class RunSummary:
    """
    Structured outcome returned to the bootloader's caller.

    Example:
        >>> RunSummary('error', applied=0, failed=1, skipped=2, total=3).to_dict()
        {'status': 'error', 'applied': 0, 'failed': 1, 'skipped': 2, 'total': 3}
    """

    status: str
    applied: int
    failed: int
    skipped: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'applied': self.applied,
            'failed': self.failed,
            'skipped': self.skipped,
            'total': self.total,
        }
