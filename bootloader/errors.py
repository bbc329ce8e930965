"""
Bootloader-specific exceptions.

This module defines the exception hierarchy for the migration bootloader.
Configuration, connection and discovery errors abort a run before any
migration work happens; the remaining classes are absorbed by the
orchestrator and only show up in the run statistics.
"""


class BootloaderError(Exception):
    """
    Base exception for bootloader errors.

    All bootloader exceptions inherit from this base class,
    allowing catch-all error handling when needed.
    """
    pass


class ConfigurationError(BootloaderError):
    """
    Bootloader configuration is invalid.

    Raised when:
    - Config file cannot be read or parsed
    - Config file has the wrong structure
    - Log level name is unknown
    """
    pass


class DatabaseConnectionError(BootloaderError):
    """
    Database connection failed.

    Raised when:
    - Unable to establish database connection
    - Database resource id cannot be resolved to a URL
    - A database is used before it was acquired or after release
    """
    pass


class MigrationDiscoveryError(BootloaderError):
    """
    Candidate migrations could not be discovered.

    Raised when:
    - A migration module fails to import
    - Two migrations register the same identifier
    - The registry lookup fails
    """
    pass


class LedgerQueryError(BootloaderError):
    """
    Tracking table could not be read.

    Raised when:
    - Tracking table does not exist yet (first run)
    - Query against the tracking table fails
    """
    pass


class MigrationInvocationError(BootloaderError):
    """
    Migration unit could not be invoked.

    Raised when:
    - No migration is registered under the identifier
    - The migration has no runnable unit
    - The unit raised instead of returning a result

    Attributes:
        migration_id: Identifier of the migration that failed
    """

    def __init__(self, message: str, migration_id: str = None):
        super().__init__(message)
        self.migration_id = migration_id
