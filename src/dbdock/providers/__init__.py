"""Database engine providers."""

from .base import DatabaseProvider, ValidationResult, get_setting, volume_name
from .elasticsearch import ElasticsearchProvider
from .influxdb import InfluxDBProvider, is_influxdb_v2_or_higher
from .mariadb import MariaDBProvider
from .mongodb import MongoDBProvider
from .mysql import MySQLProvider
from .postgres import PostgresProvider
from .redis import RedisProvider
from .sqlserver import SQLServerProvider

# Registration order is the order engines are offered to operators
BUILTIN_PROVIDERS: tuple[type[DatabaseProvider], ...] = (
    PostgresProvider,
    MySQLProvider,
    RedisProvider,
    MongoDBProvider,
    MariaDBProvider,
    InfluxDBProvider,
    ElasticsearchProvider,
    SQLServerProvider,
)

__all__ = [
    "BUILTIN_PROVIDERS",
    "DatabaseProvider",
    "ElasticsearchProvider",
    "InfluxDBProvider",
    "MariaDBProvider",
    "MongoDBProvider",
    "MySQLProvider",
    "PostgresProvider",
    "RedisProvider",
    "SQLServerProvider",
    "ValidationResult",
    "get_setting",
    "is_influxdb_v2_or_higher",
    "volume_name",
]
