"""Config module initialization"""

from .config_loader import (
    Config,
    DatabaseConfig,
    AuditConfig,
    LoggingConfig,
    ApiConfig,
    load_config,
    get_config,
    reload_config,
)

__all__ = [
    'Config',
    'DatabaseConfig',
    'AuditConfig',
    'LoggingConfig',
    'ApiConfig',
    'load_config',
    'get_config',
    'reload_config',
]
