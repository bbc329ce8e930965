#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import yaml

from bootloader.errors import ConfigurationError

APP_DB_ENV = 'APP_DB'
CONFIG_ENV = 'BOOT_CONFIG'
MIGRATIONS_ENV = 'BOOT_MIGRATIONS'
LOG_LEVEL_ENV = 'BOOT_LOG_LEVEL'

DEFAULT_LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'
DEFAULT_TRACKING_TABLE = '_migrations'


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    # Create file handler if path string, otherwise stream handler
    if isinstance(log_file, str):
        handler = logging.FileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'  # Replace problematic chars
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT)

    # Get logger by name if string provided
    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def parse_log_level(name) -> int:
    """Parse a level name ('info', 'DEBUG', ...) into a logging constant

    Raises:
        ConfigurationError: If the name is not a logging level
    """
    if isinstance(name, int):
        return name
    level = getattr(logging, str(name).upper(), None)
    if not isinstance(level, int):
        raise ConfigurationError(f'Unknown log level: {name}')
    return level


@dataclass
class BootConfig:
    """Bootloader settings

    Attributes:
        database_id: Target database resource id from APP_DB (None if unset)
        databases: Resource id -> SQLAlchemy URL mapping
        migrations: Module/package names to import for discovery
        tracking_table: Ledger table name
        log_level: Logging constant
        log_file: Log file path (None for stderr)
        log_format: Logging format string
    """
    database_id: Optional[str] = None
    databases: Dict[str, str] = field(default_factory=dict)
    migrations: List[str] = field(default_factory=list)
    tracking_table: str = DEFAULT_TRACKING_TABLE
    log_level: int = logging.INFO
    log_file: Optional[str] = None
    log_format: str = DEFAULT_LOG_FORMAT


def read_config_file(config_file) -> dict:
    """Load a JSON or YAML config file

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    try:
        with open(config_file, 'r', encoding='utf-8') as fp:
            if str(config_file).endswith(('.yaml', '.yml')):
                conf = yaml.safe_load(fp)
            else:
                conf = json.load(fp)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f'Cannot load config file {config_file}: {e}') from e

    if conf is None:
        return {}
    if not isinstance(conf, dict):
        raise ConfigurationError(f'Config file {config_file} must contain a mapping')
    return conf


def _string_option(conf, key, default, label=None):
    value = conf.get(key, default)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"'{label or key}' must be a string, got {value!r}")
    return value


def _split_modules(value) -> List[str]:
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError("'migrations' must be a list of module names")
    return [name.strip() for name in value if name.strip()]


def load_config(environ: Optional[Mapping[str, str]] = None,
                config_path: Optional[str] = None) -> BootConfig:
    """Build the bootloader configuration

    Environment variables override the config file:
        APP_DB: target database resource id
        BOOT_CONFIG: path to a JSON/YAML config file
        BOOT_MIGRATIONS: comma-separated migration modules
        BOOT_LOG_LEVEL: log level name

    Args:
        environ: Environment mapping (defaults to os.environ)
        config_path: Config file path (defaults to BOOT_CONFIG)

    Returns:
        BootConfig; database_id is None when APP_DB is not set

    Raises:
        ConfigurationError: On an invalid config file or log level
    """
    environ = os.environ if environ is None else environ
    config_path = config_path or environ.get(CONFIG_ENV)
    conf = read_config_file(config_path) if config_path else {}

    databases = conf.get('databases', {}) or {}
    if not isinstance(databases, dict):
        raise ConfigurationError("'databases' must map resource ids to URLs")

    logging_config = conf.get('logging', {}) or {}
    if not isinstance(logging_config, dict):
        raise ConfigurationError("'logging' must be a mapping")

    log_level_str = environ.get(LOG_LEVEL_ENV) or logging_config.get('level', 'info')

    migrations = environ.get(MIGRATIONS_ENV)
    if migrations is None:
        migrations = conf.get('migrations') or []

    return BootConfig(
        database_id=environ.get(APP_DB_ENV) or None,
        databases={str(k): str(v) for k, v in databases.items()},
        migrations=_split_modules(migrations),
        tracking_table=_string_option(conf, 'tracking_table', DEFAULT_TRACKING_TABLE),
        log_level=parse_log_level(log_level_str),
        log_file=_string_option(logging_config, 'file', None, 'logging.file'),
        log_format=_string_option(
            logging_config, 'format', DEFAULT_LOG_FORMAT, 'logging.format'
        ) or DEFAULT_LOG_FORMAT
    )
