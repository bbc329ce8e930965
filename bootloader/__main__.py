#!/usr/bin/env python3
"""
Run pending migrations at application startup.

Usage:
    APP_DB=app.db python -m bootloader --migrations myapp.migrations
    APP_DB=main BOOT_CONFIG=boot.yaml python -m bootloader

Exits 0 when every migration was applied or skipped, 1 otherwise.
"""
import argparse
import asyncio
import json
import logging
import sys

from bootloader.config import configure_logger, load_config, parse_log_level
from bootloader.database import DatabaseProvider
from bootloader.errors import BootloaderError
from bootloader.migrations import (
    MigrationBootloader,
    MigrationExecutor,
    MigrationLedger,
    registry,
)

logger = logging.getLogger('bootloader')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='python -m bootloader',
        description='Apply pending database migrations for APP_DB'
    )
    parser.add_argument('--config', help='JSON or YAML config file (default: $BOOT_CONFIG)')
    parser.add_argument('--migrations', action='append', default=[],
                        help='Migration module or package to import (repeatable)')
    parser.add_argument('--log-level', help='Log level (default: info)')
    return parser


async def boot(config, ledger) -> tuple:
    """Discover migrations and run the bootloader for a loaded config."""
    registry.ledger = ledger
    registry.include(*config.migrations)

    databases = DatabaseProvider(config.databases)
    bootloader = MigrationBootloader(
        database_id=config.database_id,
        source=registry,
        executor=MigrationExecutor(registry, databases),
        databases=databases,
        ledger=ledger,
        logger=logger
    )
    return await bootloader.run()


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(config_path=args.config)
        if args.migrations:
            config.migrations = args.migrations
        if args.log_level:
            config.log_level = parse_log_level(args.log_level)
        ledger = MigrationLedger(config.tracking_table)
    except (BootloaderError, ValueError) as e:
        print(f'Error loading config: {e}', file=sys.stderr)
        return 1

    configure_logger(
        logger,
        log_file=config.log_file,
        log_format=config.log_format,
        log_level=config.log_level
    )

    success, summary = asyncio.run(boot(config, ledger))

    if isinstance(summary, dict):
        print(json.dumps(summary))
    else:
        print(summary, file=sys.stdout if success else sys.stderr)

    return 0 if success else 1


if __name__ == '__main__':
    sys.exit(main())
