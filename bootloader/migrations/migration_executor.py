#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Migration executor.

Looks up the runnable unit registered for a migration identifier,
invokes it against the database named in the execution options and
returns the unit's raw result. Any failure to invoke the unit is raised
as MigrationInvocationError; classifying the raw result is left to
bootloader.migrations.outcome.
"""
import inspect
import logging
import time
from typing import Any, Optional

from bootloader.errors import DatabaseConnectionError, MigrationInvocationError

from .migration import ExecutionOptions


class MigrationExecutor:
    """
    Invokes migration units.

    Attributes:
        registry: MigrationRegistry used to resolve identifiers
        databases: DatabaseProvider holding the run's connection
        logger: Logger for execution tracking

    Example:
        executor = MigrationExecutor(registry, provider)
        raw = await executor.execute(
            'app.db:create_users',
            ExecutionOptions(database_id='app.db', id='app.db:create_users')
        )
    """

    def __init__(self, registry, databases, logger: Optional[logging.Logger] = None):
        """
        Initialize migration executor.

        Args:
            registry: MigrationRegistry instance
            databases: DatabaseProvider instance
            logger: Logger to use (defaults to module logger)
        """
        self.registry = registry
        self.databases = databases
        self.logger = logger or logging.getLogger(__name__)

    async def execute(self, migration_id: str, options: ExecutionOptions) -> Any:
        """
        Run the unit registered for a migration.

        Args:
            migration_id: Raw migration identifier
            options: Per-invocation options (database_id, direction, id)

        Returns:
            Whatever the unit returned (not interpreted here)

        Raises:
            MigrationInvocationError: If the unit cannot be found or raises
        """
        migration = self.registry.get(migration_id)
        if migration is None:
            raise MigrationInvocationError(
                f"Migration not registered: {migration_id}", migration_id
            )
        if migration.unit is None:
            raise MigrationInvocationError(
                f"Migration has no runnable unit: {migration_id}", migration_id
            )

        try:
            database = self.databases.get(options.database_id)
        except DatabaseConnectionError as e:
            raise MigrationInvocationError(str(e), migration_id) from e

        start_time = time.time()
        try:
            result = migration.unit(database, options)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise MigrationInvocationError(
                f"{type(e).__name__}: {e}", migration_id
            ) from e

        execution_time_ms = int((time.time() - start_time) * 1000)
        self.logger.debug(
            'Executed migration %s %s (%dms)',
            migration_id, options.direction, execution_time_ms,
            extra={'migration': migration_id, 'execution_time_ms': execution_time_ms}
        )
        return result
