"""Startup schema-migration bootloader."""
from .config import BootConfig, configure_logger, load_config

__version__ = '0.1.0'

__all__ = ['BootConfig', 'configure_logger', 'load_config']
