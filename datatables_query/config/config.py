"""Configuration management for server-side table processing."""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
import yaml
from pathlib import Path

from ..catalog import Catalog, ColumnDescriptor


@dataclass(frozen=True)
class TableConfig:
    """Per-table settings passed explicitly into decoding and execution."""

    default_page_size: int = 15
    count_unfiltered_total: bool = False  # recordsTotal from a second, unfiltered COUNT
    log_queries: bool = False
    table_identifier: Optional[str] = None


@dataclass
class DataSourceConfig:
    """Configuration for a single data source."""

    name: str
    type: str  # "duckdb" or "postgresql"
    config: Dict[str, Any]


@dataclass
class ColumnConfig:
    """Declarative column entry."""

    public_name: str
    storage_path: Optional[str] = None
    output_name: Optional[str] = None
    display_name: Optional[str] = None
    searchable: bool = False
    orderable: bool = False
    search_case_insensitive: bool = False
    ordering_case_insensitive: bool = False
    search_regex: bool = False
    ordering_property: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_descriptor(self) -> ColumnDescriptor:
        return ColumnDescriptor(
            public_name=self.public_name,
            storage_path=self.storage_path,
            output_name=self.output_name,
            display_name=self.display_name,
            is_searchable=self.searchable,
            is_orderable=self.orderable,
            search_case_insensitive=self.search_case_insensitive,
            ordering_case_insensitive=self.ordering_case_insensitive,
            search_regex=self.search_regex,
            ordering_property=self.ordering_property,
            options=dict(self.options),
        )


@dataclass
class TableDefinition:
    """A table exposed to clients: where its rows live and which columns it has."""

    name: str
    datasource: str
    table: str
    schema: Optional[str] = None
    columns: List[ColumnConfig] = field(default_factory=list)
    table_config: TableConfig = field(default_factory=TableConfig)

    def build_catalog(self) -> Catalog:
        descriptors = []
        for column in self.columns:
            descriptors.append(column.to_descriptor())
        return Catalog(descriptors)


@dataclass
class LoggingConfig:
    """Configuration for logging setup."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    datasources: Dict[str, DataSourceConfig] = field(default_factory=dict)
    tables: Dict[str, TableDefinition] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        datasources:
          local_duckdb:
            type: duckdb
            path: /data/local.duckdb
            read_only: true

        tables:
          users:
            datasource: local_duckdb
            table: users
            table_config:
              default_page_size: 25
              count_unfiltered_total: true
            columns:
              - public_name: id
                storage_path: Id
                orderable: true
              - public_name: name
                storage_path: Name
                searchable: true
                orderable: true
                search_case_insensitive: true

        logging:
          level: DEBUG
          structured: false
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Parse data sources
    datasources = {}
    for name, ds_config in data.get("datasources", {}).items():
        ds_type = ds_config.pop("type")
        datasources[name] = DataSourceConfig(name=name, type=ds_type, config=ds_config)

    # Parse tables
    tables = {}
    for name, table_data in data.get("tables", {}).items():
        tables[name] = _parse_table(name, table_data)

    # Parse logging config
    logging_data = data.get("logging", {})
    logging_config = LoggingConfig(**logging_data)

    return Config(datasources=datasources, tables=tables, logging=logging_config)


def _parse_table(name: str, table_data: Dict[str, Any]) -> TableDefinition:
    """Parse one entry of the ``tables`` section."""
    columns = []
    for column_data in table_data.get("columns", []):
        columns.append(ColumnConfig(**column_data))

    table_config_data = dict(table_data.get("table_config", {}))
    table_config_data.setdefault("table_identifier", name)
    table_config = TableConfig(**table_config_data)

    return TableDefinition(
        name=name,
        datasource=table_data["datasource"],
        table=table_data.get("table", name),
        schema=table_data.get("schema"),
        columns=columns,
        table_config=table_config,
    )
