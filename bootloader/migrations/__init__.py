"""
Startup migration package.

This package provides:
- Migration, MigrationId: Data model for discovered migrations
- ExecutionOptions, RunStatistics, RunSummary: Per-run values
- sort_migrations: Deterministic ordering
- MigrationLedger: Applied-migration tracking table
- MigrationRegistry: Migration source and @migration decorator
- MigrationExecutor: Invocation of migration units
- parse_outcome, classify: Result classification
- MigrationBootloader: The startup run itself
"""

from .migration import (
    ExecutionOptions,
    Migration,
    MigrationId,
    RunStatistics,
    RunSummary,
)
from .migration_bootloader import MigrationBootloader, StepResult
from .migration_executor import MigrationExecutor
from .migration_ledger import MigrationLedger
from .migration_ordering import sort_migrations
from .migration_registry import MigrationRegistry, load_migration_modules, registry
from .migration_unit import TrackedMigrationUnit
from .outcome import (
    Classification,
    ClassificationKind,
    DirectOutcome,
    ExecutionStatus,
    UnrecognizedOutcome,
    WrappedOutcome,
    classify,
    classify_result,
    parse_outcome,
)

__all__ = [
    'Classification',
    'ClassificationKind',
    'DirectOutcome',
    'ExecutionOptions',
    'ExecutionStatus',
    'Migration',
    'MigrationBootloader',
    'MigrationExecutor',
    'MigrationId',
    'MigrationLedger',
    'MigrationRegistry',
    'RunStatistics',
    'RunSummary',
    'StepResult',
    'TrackedMigrationUnit',
    'UnrecognizedOutcome',
    'WrappedOutcome',
    'classify',
    'classify_result',
    'load_migration_modules',
    'parse_outcome',
    'registry',
    'sort_migrations',
]
