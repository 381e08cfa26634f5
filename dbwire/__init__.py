"""Parsers, types and encodings for MySQL and ClickHouse wire protocols."""

__version__ = "0.1.0"
__all__ = [
    "marshal",
    "mysql_commands",
    "decimal",
    "enums",
    "sql_types",
    "options",
    "query",
    "value",
    "value_ref",
    "from_sql",
]