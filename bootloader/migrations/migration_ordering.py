"""
Deterministic ordering of candidate migrations.

Migrations are ordered by timestamp, then by the name part of their
identifier. Both comparisons are plain string comparisons; a missing
timestamp or unparsable identifier compares as the empty string and so
sorts first. Fully equal keys keep discovery order (list.sort is stable).
"""

from typing import Iterable, List, Tuple

from .migration import Migration


def ordering_key(migration: Migration) -> Tuple[str, str]:
    """Sort key: (timestamp, name)."""
    return migration.timestamp, migration.id.sort_name


def sort_migrations(migrations: Iterable[Migration]) -> List[Migration]:
    """
    Return migrations in execution order.

    Args:
        migrations: Candidates in discovery order

    Returns:
        New list sorted by timestamp, then name, discovery order on ties

    Example:
        >>> ordered = sort_migrations([
        ...     Migration.create('a:one', {'timestamp': '2024-01-02'}),
        ...     Migration.create('a:two', {'timestamp': '2024-01-01'}),
        ...     Migration.create('a:three', {'timestamp': '2024-01-01'}),
        ... ])
        >>> [m.id.name for m in ordered]
        ['three', 'two', 'one']
    """
    return sorted(migrations, key=ordering_key)
