"""
Global pytest configuration and fixtures for bootloader tests

Provides:
- Fake database / database provider
- Fake executor returning scripted results
- Migration factory
- In-memory registry
"""

import logging
from typing import Optional

import pytest

from bootloader.errors import MigrationInvocationError
from bootloader.migrations import Migration, MigrationRegistry

from tests.fixtures.fakes import FakeDatabase, FakeExecutor, FakeProvider


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


# ============================================================================
# Fake Collaborators
# ============================================================================

@pytest.fixture
def fake_database():
    return FakeDatabase()


@pytest.fixture
def fake_provider(fake_database):
    return FakeProvider(fake_database)


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def invocation_error():
    """Factory for executor invocation failures"""
    def _create(migration_id: str, message: str = 'function not found'):
        return MigrationInvocationError(message, migration_id)
    return _create


# ============================================================================
# Migrations
# ============================================================================

@pytest.fixture
def make_migration():
    """Factory for test migrations targeting app.db by default"""
    def _create(migration_id: str, timestamp: Optional[str] = None,
                target_db: Optional[str] = 'app.db', unit=None, **meta):
        if timestamp is not None:
            meta['timestamp'] = timestamp
        if target_db is not None:
            meta['target_db'] = target_db
        return Migration.create(migration_id, meta=meta, unit=unit)
    return _create


@pytest.fixture
def registry():
    """Empty registry, isolated from the module-level default"""
    return MigrationRegistry()


@pytest.fixture
def test_logger():
    """Logger that propagates to caplog"""
    logger = logging.getLogger('tests.bootloader')
    logger.setLevel(logging.DEBUG)
    return logger
