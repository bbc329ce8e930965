"""
Shared fixtures for integration tests.

Integration tests run the real registry, executor, ledger and SQLite
databases together. Only the filesystem locations are temporary.
"""

import importlib
import logging
import sys
import textwrap

import pytest

from bootloader.migrations import MigrationLedger, registry as default_registry


@pytest.fixture
def sqlite_path(tmp_path):
    """Path of a not-yet-created SQLite database file."""
    return tmp_path / 'app.db'


@pytest.fixture
def clean_default_registry():
    """Reset the module-level registry and CLI logger around a test."""
    default_registry.clear()
    yield default_registry
    default_registry.clear()
    default_registry.ledger = MigrationLedger()

    cli_logger = logging.getLogger('bootloader')
    for handler in list(cli_logger.handlers):
        cli_logger.removeHandler(handler)
        handler.close()
    cli_logger.setLevel(logging.NOTSET)


@pytest.fixture
def migration_package(tmp_path, monkeypatch, clean_default_registry):
    """
    Factory writing an importable migration package.

    Each module registers on the default registry, the way application
    migration modules do.

    Example:
        name = migration_package('boot_cli_app', {
            'm001_users': '''
                @registry.migration('app.db:users', target_db='app.db')
                async def up(conn): ...
            ''',
        })
    """
    root = tmp_path / 'migration_src'
    root.mkdir()
    monkeypatch.syspath_prepend(str(root))
    created = []

    def _create(package_name, modules):
        package_dir = root / package_name
        package_dir.mkdir()
        (package_dir / '__init__.py').write_text('', encoding='utf-8')
        header = (
            'from sqlalchemy import text\n'
            'from bootloader.migrations import registry\n\n'
        )
        for module_name, body in modules.items():
            (package_dir / f'{module_name}.py').write_text(
                header + textwrap.dedent(body), encoding='utf-8'
            )
        importlib.invalidate_caches()
        created.append(package_name)
        return package_name

    yield _create

    for name in list(sys.modules):
        if any(name == pkg or name.startswith(pkg + '.') for pkg in created):
            del sys.modules[name]
