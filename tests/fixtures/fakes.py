"""
Fake collaborators for bootloader tests.

Provides stand-ins for MigrationDatabase, DatabaseProvider and
MigrationExecutor that record how they were used.
"""

from typing import Any, Dict, List, Optional

from bootloader.errors import DatabaseConnectionError


class FakeDatabase:
    """Stands in for MigrationDatabase without a real connection"""

    def __init__(self, database_id: str = 'app.db', applied_rows: Optional[List[Dict]] = None,
                 query_error: Optional[Exception] = None,
                 release_error: Optional[Exception] = None):
        self.database_id = database_id
        self.db_type = 'sqlite'
        self.applied_rows = applied_rows or []
        self.query_error = query_error
        self.release_error = release_error
        self.queries: List[str] = []
        self.release_calls = 0
        self.is_connected = True

    async def query(self, sql: str, params=None) -> List[Dict[str, Any]]:
        self.queries.append(sql)
        if self.query_error is not None:
            raise self.query_error
        return list(self.applied_rows)

    async def release(self) -> None:
        self.release_calls += 1
        self.is_connected = False
        if self.release_error is not None:
            raise self.release_error


class FakeProvider:
    """Stands in for DatabaseProvider"""

    def __init__(self, database: Optional[FakeDatabase] = None,
                 connect_error: Optional[Exception] = None):
        self.database = database or FakeDatabase()
        self.connect_error = connect_error
        self.acquired: List[str] = []

    async def acquire(self, database_id: str) -> FakeDatabase:
        self.acquired.append(database_id)
        if self.connect_error is not None:
            raise self.connect_error
        return self.database

    def get(self, database_id: str) -> FakeDatabase:
        if not self.database.is_connected:
            raise DatabaseConnectionError(f"Database {database_id} has not been acquired")
        return self.database


class FakeExecutor:
    """Executor returning scripted results per migration id

    A scripted Exception instance is raised as an invocation failure.
    Ids without a script return {'status': 'applied'}.
    """

    def __init__(self, results: Optional[Dict[str, Any]] = None):
        self.results = results or {}
        self.calls: List[tuple] = []

    async def execute(self, migration_id: str, options) -> Any:
        self.calls.append((migration_id, options))
        result = self.results.get(migration_id, {'status': 'applied'})
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def executed_ids(self) -> List[str]:
        return [call[0] for call in self.calls]


