"""
Applied-migration ledger backed by a tracking table.

The orchestrator reads the ledger exactly once per run through
fetch_applied_ids(); a failed read (for example the tracking table does
not exist on first run) degrades to an empty set. Migration units use
ensure_table(), is_applied() and record() inside their own transaction.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, Set

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from bootloader.errors import LedgerQueryError

DEFAULT_TRACKING_TABLE = '_migrations'

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class MigrationLedger:
    """
    Reads and writes the migration tracking table.

    Attributes:
        table: Tracking table name
        logger: Logger for ledger events

    Example:
        ledger = MigrationLedger()
        applied = await ledger.fetch_applied_ids(database)
        if 'app.db:create_users' in applied:
            ...
    """

    def __init__(self, table: str = DEFAULT_TRACKING_TABLE,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize ledger.

        Args:
            table: Tracking table name (plain SQL identifier)
            logger: Logger to use (defaults to module logger)

        Raises:
            ValueError: If table is not a plain SQL identifier
        """
        if not IDENTIFIER_PATTERN.match(table or ''):
            raise ValueError(f"Invalid tracking table name: {table!r}")
        self.table = table
        self.logger = logger or logging.getLogger(__name__)

    async def query_applied_ids(self, database) -> Set[str]:
        """
        Query all recorded migration identifiers.

        Args:
            database: Connected MigrationDatabase

        Returns:
            Set of applied identifiers

        Raises:
            LedgerQueryError: If the tracking table cannot be read
        """
        try:
            rows = await database.query(f"SELECT id FROM {self.table}")
        except Exception as e:
            raise LedgerQueryError(
                f"Failed to read tracking table {self.table}: {e}"
            ) from e
        return {str(row['id']) for row in rows if row.get('id') is not None}

    async def fetch_applied_ids(self, database) -> Set[str]:
        """
        Return applied identifiers, or an empty set if the read fails.

        Args:
            database: Connected MigrationDatabase

        Returns:
            Set of applied identifiers (empty on any query failure)
        """
        try:
            applied = await self.query_applied_ids(database)
        except LedgerQueryError as e:
            self.logger.info(
                'No applied migrations recorded, treating all as pending: %s', e,
                extra={'table': self.table, 'error': str(e)}
            )
            return set()

        self.logger.debug(
            'Loaded %d applied migrations from %s', len(applied), self.table
        )
        return applied

    async def ensure_table(self, conn: AsyncConnection) -> None:
        """Create the tracking table if it doesn't exist."""
        await conn.execute(text(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id VARCHAR(255) PRIMARY KEY,
                description TEXT,
                applied_at TIMESTAMP NOT NULL
            )
        """))

    async def is_applied(self, conn: AsyncConnection, migration_id: str) -> bool:
        result = await conn.execute(
            text(f"SELECT 1 FROM {self.table} WHERE id = :id"),
            {'id': migration_id}
        )
        return result.first() is not None

    async def record(
        self,
        conn: AsyncConnection,
        migration_id: str,
        description: Optional[str] = None
    ) -> None:
        """
        Record a migration as applied.

        Does not commit (caller manages the transaction).
        """
        await conn.execute(
            text(f"""
                INSERT INTO {self.table} (id, description, applied_at)
                VALUES (:id, :description, :applied_at)
            """),
            {
                'id': migration_id,
                'description': description,
                'applied_at': datetime.now(timezone.utc).replace(tzinfo=None),
            }
        )
