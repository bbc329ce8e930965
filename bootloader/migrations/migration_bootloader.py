#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Startup migration bootloader.

Discovers the migrations targeting one database, orders them, skips the
ones already recorded in the ledger and applies the rest one at a time.
The first failure switches the run into fail-fast mode: every later
migration is counted as skipped without being executed.

run() never raises. It returns (success, summary) where summary is a
short string for configuration/connection/discovery failures and the
zero-migrations case, and a statistics dictionary otherwise.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set, Tuple, Union

from bootloader.config import APP_DB_ENV

from .migration import ExecutionOptions, Migration, RunStatistics
from .migration_ledger import MigrationLedger
from .migration_ordering import sort_migrations
from .outcome import (
    Classification,
    ClassificationKind,
    UnrecognizedOutcome,
    classify,
    parse_outcome,
)

RunResult = Tuple[bool, Union[str, Dict[str, Any]]]


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of processing one migration.

    Attributes:
        classification: Statistics bucket plus detail
        fail_fast: True if the rest of the run must be skipped
    """
    classification: Classification
    fail_fast: bool = False


class MigrationBootloader:
    """
    Applies pending migrations for one database at startup.

    All collaborators are injected; nothing is looked up globally.

    Attributes:
        database_id: Target database resource id (None if not configured)
        source: MigrationRegistry supplying candidates
        executor: MigrationExecutor invoking units
        databases: DatabaseProvider opening the connection
        ledger: MigrationLedger reporting applied ids
        logger: Logger for run events

    Example:
        bootloader = MigrationBootloader(
            database_id='app.db',
            source=registry,
            executor=MigrationExecutor(registry, provider),
            databases=provider,
        )
        success, summary = await bootloader.run()
    """

    def __init__(
        self,
        database_id: Optional[str],
        source,
        executor,
        databases,
        ledger: Optional[MigrationLedger] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.database_id = database_id
        self.source = source
        self.executor = executor
        self.databases = databases
        self.ledger = ledger or MigrationLedger()
        self.logger = logger or logging.getLogger(__name__)

    async def run(self) -> RunResult:
        """
        Run the bootloader.

        Returns:
            (success, summary) tuple; success is True iff no migration failed
        """
        self.logger.info('Initializing migration bootloader')

        if not self.database_id:
            message = f'{APP_DB_ENV} environment variable not set'
            self.logger.error(message)
            return False, message

        self.logger.info('Connecting to database', extra={'db': self.database_id})

        try:
            database = await self.databases.acquire(self.database_id)
        except Exception as e:
            self.logger.error('Connection failed: %s', e, extra={'error': str(e)})
            return False, f'Connection failed: {e}'

        try:
            return await self._run_connected(database)
        finally:
            await self._release(database)

    async def _run_connected(self, database) -> RunResult:
        self.logger.info(
            'Connected to database (%s)', database.db_type,
            extra={'type': database.db_type}
        )

        try:
            candidates = self.source.find(meta={'target_db': self.database_id})
        except Exception as e:
            self.logger.error(
                'Failed to find migrations: %s', e, extra={'error': str(e)}
            )
            return False, f'Failed to find migrations: {e}'

        migrations = sort_migrations(candidates)

        if not migrations:
            self.logger.info('No migrations to apply')
            return True, 'No migrations to apply'

        self.logger.info(
            'Found %d migrations to apply', len(migrations),
            extra={'count': len(migrations)}
        )

        applied_ids = await self.ledger.fetch_applied_ids(database)
        stats = RunStatistics(total=len(migrations))

        fail_fast = False
        for index, migration in enumerate(migrations, start=1):
            step = await self._process(
                migration, index, stats.total, applied_ids, fail_fast
            )
            stats.record(step.classification.kind.value)
            fail_fast = fail_fast or step.fail_fast

        self.logger.info(
            '%s (applied=%d, failed=%d, skipped=%d, total=%d)',
            stats.completion_message(),
            stats.applied, stats.failed, stats.skipped, stats.total,
            extra=stats.as_log_fields()
        )

        return stats.success, stats.summarize().to_dict()

    async def _process(
        self,
        migration: Migration,
        index: int,
        total: int,
        applied_ids: Set[str],
        fail_fast: bool
    ) -> StepResult:
        """
        Decide and, if needed, execute a single migration.

        Args:
            migration: Migration at this position
            index: 1-based position in the ordered run
            total: Number of candidates
            applied_ids: Identifiers already recorded as applied
            fail_fast: Whether an earlier migration failed

        Returns:
            StepResult with the classification and fail-fast signal
        """
        name = migration.id.display_name
        fields = {'migration': name, 'index': index, 'total': total}

        if fail_fast:
            self.logger.warning(
                'Skipping migration %s due to previous failure (%d/%d)',
                name, index, total, extra=fields
            )
            return StepResult(Classification.skipped('Previous migration failed'))

        if migration.id.raw in applied_ids:
            self.logger.info(
                'Skipping migration %s (already applied) (%d/%d)',
                name, index, total, extra=fields
            )
            return StepResult(Classification.skipped('Already applied'))

        self.logger.info(
            'Running migration %s (%d/%d)', name, index, total, extra=fields
        )

        options = ExecutionOptions(database_id=self.database_id, id=migration.id.raw)

        try:
            raw = await self.executor.execute(migration.id.raw, options)
        except Exception as e:
            # Any executor failure is an invocation error
            self.logger.error(
                'Execution error in migration %s: %s', name, e,
                extra={**fields, 'error': str(e)}
            )
            return StepResult(Classification.failed(str(e)), fail_fast=True)

        outcome = parse_outcome(raw)
        classification = classify(outcome)
        self._log_classification(classification, outcome, fields)
        return StepResult(classification, fail_fast=classification.triggers_fail_fast)

    def _log_classification(self, classification: Classification, outcome, fields) -> None:
        name = fields['migration']

        if classification.kind is ClassificationKind.APPLIED:
            self.logger.info(
                'Successfully applied migration %s', name, extra=fields
            )
        elif classification.kind is ClassificationKind.FAILED:
            self.logger.error(
                'Migration %s failed: %s', name, classification.detail,
                extra={**fields, 'error': classification.detail}
            )
        elif classification.declared:
            self.logger.info(
                'Migration %s skipped: %s', name, classification.detail,
                extra={**fields, 'reason': classification.detail}
            )
        elif isinstance(outcome, UnrecognizedOutcome):
            self.logger.debug(
                'Migration %s returned an unrecognized result, counted as skipped: %r',
                name, outcome.raw, extra=fields
            )
        else:
            self.logger.debug(
                'Migration %s returned an unrecognized nested result, counted as skipped',
                name, extra=fields
            )

    async def _release(self, database) -> None:
        """Release the connection; errors are logged and never raised."""
        try:
            await database.release()
        except Exception as e:
            self.logger.warning(
                'Error releasing database connection: %s', e,
                extra={'error': str(e)}
            )
