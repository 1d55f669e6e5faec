"""
Static type lookup tables

Every table is a read-only ``MappingProxyType``; nothing here is mutated at
runtime, so the tables are safe to share between concurrent conversions.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..config import DialectType
from ..schemas.models import CanonicalType as T


# Native (relational) type name -> canonical type, matched after uppercasing
# and stripping the argument list.
NATIVE_EXACT: Mapping[str, T] = MappingProxyType({
    "INT": T.INTEGER,
    "INTEGER": T.INTEGER,
    "INT2": T.INTEGER,
    "INT4": T.INTEGER,
    "SMALLINT": T.INTEGER,
    "MEDIUMINT": T.INTEGER,
    "TINYINT": T.INTEGER,
    "YEAR": T.INTEGER,
    "SERIAL": T.INTEGER,
    "SMALLSERIAL": T.INTEGER,
    "BIGINT": T.BIGINT,
    "INT8": T.BIGINT,
    "BIGSERIAL": T.BIGINT,
    "DECIMAL": T.DECIMAL,
    "DEC": T.DECIMAL,
    "NUMERIC": T.DECIMAL,
    "NUMBER": T.DECIMAL,
    "MONEY": T.DECIMAL,
    "SMALLMONEY": T.DECIMAL,
    "FLOAT": T.FLOAT,
    "FLOAT4": T.FLOAT,
    "REAL": T.FLOAT,
    "DOUBLE": T.DOUBLE,
    "DOUBLE PRECISION": T.DOUBLE,
    "FLOAT8": T.DOUBLE,
    "BOOL": T.BOOLEAN,
    "BOOLEAN": T.BOOLEAN,
    "BIT": T.BOOLEAN,
    "CHAR": T.STRING,
    "CHARACTER": T.STRING,
    "VARCHAR": T.STRING,
    "CHARACTER VARYING": T.STRING,
    "VARCHAR2": T.STRING,
    "NCHAR": T.STRING,
    "NVARCHAR": T.STRING,
    "NVARCHAR2": T.STRING,
    "CITEXT": T.STRING,
    "TEXT": T.TEXT,
    "TINYTEXT": T.TEXT,
    "MEDIUMTEXT": T.TEXT,
    "LONGTEXT": T.TEXT,
    "NTEXT": T.TEXT,
    "CLOB": T.TEXT,
    "DATE": T.DATE,
    "DATETIME": T.DATETIME,
    "DATETIME2": T.DATETIME,
    "SMALLDATETIME": T.DATETIME,
    "DATETIMEOFFSET": T.DATETIME,
    "TIMESTAMP": T.TIMESTAMP,
    "TIMESTAMPTZ": T.TIMESTAMP,
    "TIMESTAMP WITH TIME ZONE": T.TIMESTAMP,
    "TIMESTAMP WITHOUT TIME ZONE": T.TIMESTAMP,
    "TIME": T.TIME,
    "TIMETZ": T.TIME,
    "TIME WITH TIME ZONE": T.TIME,
    "TIME WITHOUT TIME ZONE": T.TIME,
    "BLOB": T.BLOB,
    "TINYBLOB": T.BLOB,
    "MEDIUMBLOB": T.BLOB,
    "LONGBLOB": T.BLOB,
    "BINARY": T.BLOB,
    "VARBINARY": T.BLOB,
    "BYTEA": T.BLOB,
    "IMAGE": T.BLOB,
    "JSON": T.JSON,
    "JSONB": T.JSON,
    "UUID": T.UUID,
    "UNIQUEIDENTIFIER": T.UUID,
    "ENUM": T.ENUM,
})

# Native names that imply an auto-incrementing column
AUTO_INCREMENT_TYPES = frozenset({"SERIAL", "SMALLSERIAL", "BIGSERIAL"})

# Vendor constructs with no cross-model analogue; they degrade to string
UNSUPPORTED_NATIVE = frozenset({
    "GEOMETRY", "GEOGRAPHY", "POINT", "LINESTRING", "POLYGON",
    "MULTIPOINT", "MULTILINESTRING", "MULTIPOLYGON", "GEOMETRYCOLLECTION",
    "INTERVAL", "SET", "XML", "HIERARCHYID", "SQL_VARIANT", "TSVECTOR",
    "INET", "CIDR", "MACADDR",
})

# Ordered substring rules applied when no exact name matches
NATIVE_SUBSTRING_RULES = (
    ("BIGINT", T.BIGINT),
    ("INT", T.INTEGER),
    ("CHAR", T.STRING),
    ("TEXT", T.TEXT),
    ("DECIMAL", T.DECIMAL),
    ("NUMERIC", T.DECIMAL),
    ("DOUBLE", T.DOUBLE),
    ("FLOAT", T.FLOAT),
    ("BOOL", T.BOOLEAN),
    ("TIMESTAMP", T.TIMESTAMP),
    ("DATETIME", T.DATETIME),
    ("DATE", T.DATE),
    ("TIME", T.TIME),
    ("JSON", T.JSON),
    ("BLOB", T.BLOB),
    ("BINARY", T.BLOB),
)

STRING_TYPES = frozenset({T.STRING, T.TEXT, T.ENUM, T.UUID})
TEMPORAL_TYPES = frozenset({T.DATE, T.DATETIME, T.TIMESTAMP, T.TIME})
NUMERIC_TYPES = frozenset({T.INTEGER, T.BIGINT, T.DECIMAL, T.FLOAT, T.DOUBLE})


# Canonical -> native, one table per dialect. Templates are formatted with
# ``length``, ``precision``, ``scale`` and ``values``.
MYSQL_TYPES: Mapping[T, str] = MappingProxyType({
    T.STRING: "VARCHAR({length})",
    T.TEXT: "TEXT",
    T.INTEGER: "INT",
    T.BIGINT: "BIGINT",
    T.DECIMAL: "DECIMAL({precision},{scale})",
    T.FLOAT: "FLOAT",
    T.DOUBLE: "DOUBLE",
    T.BOOLEAN: "BOOLEAN",
    T.DATE: "DATE",
    T.DATETIME: "DATETIME",
    T.TIMESTAMP: "TIMESTAMP",
    T.TIME: "TIME",
    T.BLOB: "BLOB",
    T.JSON: "JSON",
    T.UUID: "CHAR(36)",
    T.ENUM: "ENUM({values})",
})

POSTGRESQL_TYPES: Mapping[T, str] = MappingProxyType({
    T.STRING: "VARCHAR({length})",
    T.TEXT: "TEXT",
    T.INTEGER: "INTEGER",
    T.BIGINT: "BIGINT",
    T.DECIMAL: "NUMERIC({precision},{scale})",
    T.FLOAT: "REAL",
    T.DOUBLE: "DOUBLE PRECISION",
    T.BOOLEAN: "BOOLEAN",
    T.DATE: "DATE",
    T.DATETIME: "TIMESTAMP",
    T.TIMESTAMP: "TIMESTAMP",
    T.TIME: "TIME",
    T.BLOB: "BYTEA",
    T.JSON: "JSONB",
    T.UUID: "UUID",
    T.ENUM: "VARCHAR({length})",
})

SQLITE_TYPES: Mapping[T, str] = MappingProxyType({
    T.STRING: "VARCHAR({length})",
    T.TEXT: "TEXT",
    T.INTEGER: "INTEGER",
    T.BIGINT: "BIGINT",
    T.DECIMAL: "DECIMAL({precision},{scale})",
    T.FLOAT: "REAL",
    T.DOUBLE: "DOUBLE",
    T.BOOLEAN: "BOOLEAN",
    T.DATE: "DATE",
    T.DATETIME: "DATETIME",
    T.TIMESTAMP: "TIMESTAMP",
    T.TIME: "TIME",
    T.BLOB: "BLOB",
    T.JSON: "TEXT",
    T.UUID: "CHAR(36)",
    T.ENUM: "VARCHAR({length})",
})

MSSQL_TYPES: Mapping[T, str] = MappingProxyType({
    T.STRING: "NVARCHAR({length})",
    T.TEXT: "NVARCHAR(MAX)",
    T.INTEGER: "INT",
    T.BIGINT: "BIGINT",
    T.DECIMAL: "DECIMAL({precision},{scale})",
    T.FLOAT: "REAL",
    T.DOUBLE: "FLOAT",
    T.BOOLEAN: "BIT",
    T.DATE: "DATE",
    T.DATETIME: "DATETIME2",
    T.TIMESTAMP: "DATETIME2",
    T.TIME: "TIME",
    T.BLOB: "VARBINARY(MAX)",
    T.JSON: "NVARCHAR(MAX)",
    T.UUID: "UNIQUEIDENTIFIER",
    T.ENUM: "NVARCHAR({length})",
})

DIALECT_TYPES: Mapping[DialectType, Mapping[T, str]] = MappingProxyType({
    DialectType.MYSQL: MYSQL_TYPES,
    DialectType.POSTGRESQL: POSTGRESQL_TYPES,
    DialectType.SQLITE: SQLITE_TYPES,
    DialectType.MSSQL: MSSQL_TYPES,
})


class DialectTraits:
    """Per-dialect spelling of constructs other than column types"""

    __slots__ = (
        "name", "native_json", "native_enum", "now", "true_literal",
        "false_literal", "quote_open", "quote_close", "if_not_exists",
    )

    def __init__(self, name, native_json, native_enum, now, true_literal,
                 false_literal, quote_open, quote_close, if_not_exists):
        self.name = name
        self.native_json = native_json
        self.native_enum = native_enum
        self.now = now
        self.true_literal = true_literal
        self.false_literal = false_literal
        self.quote_open = quote_open
        self.quote_close = quote_close
        self.if_not_exists = if_not_exists

    def quote(self, identifier: str) -> str:
        return f"{self.quote_open}{identifier}{self.quote_close}"


DIALECT_TRAITS: Mapping[DialectType, DialectTraits] = MappingProxyType({
    DialectType.MYSQL: DialectTraits(
        "mysql", True, True, "CURRENT_TIMESTAMP", "TRUE", "FALSE", "`", "`", True),
    DialectType.POSTGRESQL: DialectTraits(
        "postgresql", True, False, "NOW()", "TRUE", "FALSE", '"', '"', True),
    DialectType.SQLITE: DialectTraits(
        "sqlite", False, False, "CURRENT_TIMESTAMP", "1", "0", '"', '"', True),
    DialectType.MSSQL: DialectTraits(
        "mssql", False, False, "GETDATE()", "1", "0", "[", "]", False),
})


# Canonical -> document (BSON type names used by $jsonSchema)
DOCUMENT_TYPES: Mapping[T, str] = MappingProxyType({
    T.STRING: "string",
    T.TEXT: "string",
    T.INTEGER: "int",
    T.BIGINT: "long",
    T.DECIMAL: "decimal",
    T.FLOAT: "double",
    T.DOUBLE: "double",
    T.BOOLEAN: "bool",
    T.DATE: "date",
    T.DATETIME: "date",
    T.TIMESTAMP: "date",
    T.TIME: "string",
    T.BLOB: "binData",
    T.JSON: "object",
    T.UUID: "string",
    T.ENUM: "string",
})

# Document type names (lowercased) -> canonical
DOCUMENT_TO_CANONICAL: Mapping[str, T] = MappingProxyType({
    "string": T.STRING,
    "str": T.STRING,
    "text": T.TEXT,
    "number": T.DOUBLE,
    "int": T.INTEGER,
    "int32": T.INTEGER,
    "integer": T.INTEGER,
    "long": T.BIGINT,
    "int64": T.BIGINT,
    "double": T.DOUBLE,
    "float": T.FLOAT,
    "decimal": T.DECIMAL,
    "decimal128": T.DECIMAL,
    "bool": T.BOOLEAN,
    "boolean": T.BOOLEAN,
    "date": T.DATETIME,
    "datetime": T.DATETIME,
    "timestamp": T.TIMESTAMP,
    "time": T.TIME,
    "objectid": T.STRING,
    "bindata": T.BLOB,
    "binary": T.BLOB,
    "buffer": T.BLOB,
    "object": T.JSON,
    "mixed": T.JSON,
    "map": T.JSON,
    "array": T.JSON,
    "uuid": T.UUID,
    "enum": T.ENUM,
    "null": T.STRING,
})

# Vendor spellings of "now at creation"
NOW_SPELLINGS = frozenset({
    "CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP()", "NOW()", "GETDATE()",
    "GETUTCDATE()", "SYSDATE", "SYSDATETIME()", "CURRENT_DATE",
    "LOCALTIMESTAMP", "LOCALTIMESTAMP()", "CURRENT_TIME", "$$NOW",
    "DATE.NOW", "DATE.NOW()",
})

DOCUMENT_NOW = "$$NOW"

DEFAULT_STRING_LENGTH = 255
DEFAULT_DECIMAL_PRECISION = 10
DEFAULT_DECIMAL_SCALE = 2
