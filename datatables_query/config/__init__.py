"""Configuration management."""

from .config import (
    Config,
    ColumnConfig,
    DataSourceConfig,
    LoggingConfig,
    TableConfig,
    TableDefinition,
    load_config,
)

__all__ = [
    "Config",
    "ColumnConfig",
    "DataSourceConfig",
    "LoggingConfig",
    "TableConfig",
    "TableDefinition",
    "load_config",
]
