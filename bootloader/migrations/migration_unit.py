"""
Runnable unit for migrations defined with @registry.migration.

Wraps a user ``up(conn)`` coroutine: runs it in one transaction together
with the tracking-table insert, and reports the outcome in the wrapped
form {'migrations': [{'id': ..., 'status': ...}]}.
"""
import inspect
import logging
import time
from typing import Any, Callable, Dict, Optional

from .migration import DIRECTION_UP, ExecutionOptions

logger = logging.getLogger(__name__)


class TrackedMigrationUnit:
    """
    Executes one migration function with transaction safety.

    Either the schema change and its ledger record are both committed,
    or both are rolled back.

    Attributes:
        migration_id: Identifier recorded in the tracking table
        func: The ``up(conn)`` function (sync or async)
        ledger: MigrationLedger used for the applied check and record
        description: Stored alongside the record
    """

    def __init__(self, migration_id: str, func: Callable, ledger,
                 description: Optional[str] = None):
        self.migration_id = migration_id
        self.func = func
        self.ledger = ledger
        self.description = description

    def _entry(self, status: str, **fields: Any) -> Dict[str, Any]:
        entry = {'id': self.migration_id, 'status': status}
        entry.update(fields)
        return {'migrations': [entry]}

    async def __call__(self, database, options: ExecutionOptions) -> Dict[str, Any]:
        """
        Apply the migration.

        Args:
            database: Connected MigrationDatabase
            options: Execution options for this invocation

        Returns:
            Wrapped result with status 'applied', 'skipped' or 'error';
            a direct 'error' result for unsupported directions
        """
        if options.direction != DIRECTION_UP:
            return {
                'status': 'error',
                'error': f"Unsupported direction: {options.direction}",
            }

        start_time = time.time()
        try:
            async with database.transaction() as conn:
                await self.ledger.ensure_table(conn)
                if await self.ledger.is_applied(conn, self.migration_id):
                    return self._entry('skipped', reason='Already applied')

                result = self.func(conn)
                if inspect.isawaitable(result):
                    await result

                await self.ledger.record(conn, self.migration_id, self.description)

        except Exception as e:
            execution_time_ms = int((time.time() - start_time) * 1000)
            logger.error(
                'Failed to apply migration %s (%dms): %s',
                self.migration_id, execution_time_ms, e
            )
            return self._entry('error', error=str(e))

        execution_time_ms = int((time.time() - start_time) * 1000)
        return self._entry('applied', execution_time_ms=execution_time_ms)

    def __repr__(self) -> str:
        return f"<TrackedMigrationUnit({self.migration_id})>"
