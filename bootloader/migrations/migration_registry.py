"""
Migration registry: the source of candidate migrations.

This module provides the MigrationRegistry class which handles:
- Registration of migrations (directly or via the @migration decorator)
- Discovery by importing migration modules and packages
- Lookup of candidates by metadata (e.g. target_db)

Migration modules register themselves on import:

    from bootloader.migrations import registry

    @registry.migration('app.db:create_users',
                        timestamp='2024-01-01T00:00:00',
                        target_db='app.db',
                        description='Create users table')
    async def create_users(conn):
        await conn.execute(text('CREATE TABLE users (id INTEGER PRIMARY KEY)'))
"""

import importlib
import logging
import pkgutil
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from bootloader.errors import MigrationDiscoveryError

from .migration import Migration
from .migration_ledger import MigrationLedger
from .migration_unit import TrackedMigrationUnit

logger = logging.getLogger(__name__)


class MigrationRegistry:
    """
    Holds discovered migrations in registration order.

    Example:
        >>> registry = MigrationRegistry()
        >>> _ = registry.register(Migration.create('app.db:one', {'target_db': 'app.db'}))
        >>> [m.id.raw for m in registry.find(meta={'target_db': 'app.db'})]
        ['app.db:one']
    """

    def __init__(self, ledger: Optional[MigrationLedger] = None):
        """
        Initialize registry.

        Args:
            ledger: Ledger used by migrations registered through
                the decorator (defaults to the '_migrations' table)
        """
        self.ledger = ledger or MigrationLedger()
        self._migrations: Dict[str, Migration] = {}
        self._pending_modules: List[str] = []

    def __len__(self) -> int:
        return len(self._migrations)

    def __contains__(self, migration_id: str) -> bool:
        return migration_id in self._migrations

    def register(self, migration: Migration) -> Migration:
        """
        Add a migration.

        Raises:
            MigrationDiscoveryError: If the identifier is already registered
        """
        key = migration.id.raw
        if key in self._migrations:
            raise MigrationDiscoveryError(
                f"Duplicate migration id {key!r}"
            )
        self._migrations[key] = migration
        logger.debug('Registered migration: %r', migration)
        return migration

    def migration(
        self,
        migration_id: str,
        *,
        timestamp: Optional[str] = None,
        target_db: Optional[str] = None,
        description: Optional[str] = None,
        **meta: Any
    ) -> Callable:
        """
        Decorator registering an ``async def up(conn)`` function.

        The function runs inside one transaction; the migration is
        recorded in the tracking table when it completes.
        """
        meta = dict(meta)
        if timestamp is not None:
            meta['timestamp'] = timestamp
        if target_db is not None:
            meta['target_db'] = target_db
        if description is not None:
            meta['description'] = description

        def decorator(func: Callable) -> Callable:
            unit = TrackedMigrationUnit(
                migration_id, func, ledger=self.ledger, description=description
            )
            self.register(Migration.create(migration_id, meta=meta, unit=unit))
            return func

        return decorator

    def include(self, *module_names: str) -> None:
        """
        Queue migration modules to import on the next find().

        Import errors surface from find() as MigrationDiscoveryError.
        """
        self._pending_modules.extend(module_names)

    def load_pending(self) -> None:
        """Import queued migration modules."""
        pending, self._pending_modules = self._pending_modules, []
        load_migration_modules(pending)

    def get(self, migration_id: str) -> Optional[Migration]:
        return self._migrations.get(migration_id)

    def all(self) -> List[Migration]:
        return list(self._migrations.values())

    def find(self, meta: Optional[Mapping[str, Any]] = None) -> List[Migration]:
        """
        Return migrations whose metadata matches every given key.

        Args:
            meta: Required metadata values, e.g. {'target_db': 'app.db'}

        Returns:
            Matching migrations in registration order
        """
        self.load_pending()
        criteria = dict(meta or {})
        return [
            m for m in self._migrations.values()
            if all(m.meta.get(key) == value for key, value in criteria.items())
        ]

    def clear(self) -> None:
        self._migrations.clear()
        self._pending_modules.clear()


def _iter_module_names(module) -> Iterable[str]:
    """Yield a module's name, plus all submodule names for packages."""
    yield module.__name__
    path = getattr(module, '__path__', None)
    if path is None:
        return
    for info in pkgutil.walk_packages(path, prefix=module.__name__ + '.'):
        yield info.name


def load_migration_modules(names: Iterable[str]) -> List[str]:
    """
    Import migration modules so their decorators register.

    Packages are walked recursively and every submodule is imported.

    Args:
        names: Dotted module or package names

    Returns:
        Names of all imported modules

    Raises:
        MigrationDiscoveryError: If any module fails to import
    """
    loaded = []
    for name in names:
        try:
            root = importlib.import_module(name)
            for module_name in _iter_module_names(root):
                importlib.import_module(module_name)
                loaded.append(module_name)
        except MigrationDiscoveryError:
            raise
        except Exception as e:
            raise MigrationDiscoveryError(
                f"Failed to import migration module {name}: {e}"
            ) from e
    return loaded


# Default registry used by migration modules and the CLI
registry = MigrationRegistry()
