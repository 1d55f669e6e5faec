"""
Canonical Schema Model

The single in-memory representation every extractor produces and every
generator consumes. One instance is created per conversion, annotated in
place by the analyzer and discarded after generation.

Serialized keys are camelCase; this is the boundary contract shared with
callers of the conversion service.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import yaml


SCHEMA_VERSION = "1.0"


class CanonicalType(str, Enum):
    """Closed enumeration of canonical column types"""
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    BLOB = "blob"
    JSON = "json"
    UUID = "uuid"
    ENUM = "enum"


class TableKind(str, Enum):
    TABLE = "table"
    COLLECTION = "collection"
    VIEW = "view"


class ReferentialAction(str, Enum):
    """ON DELETE / ON UPDATE behaviour of a foreign key"""
    CASCADE = "cascade"
    SET_NULL = "set-null"
    RESTRICT = "restrict"
    NO_ACTION = "no-action"
    UNSPECIFIED = "unspecified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ReferentialAction":
        """Parse SQL spellings like 'SET NULL' or 'no action'"""
        if not value:
            return cls.UNSPECIFIED
        normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNSPECIFIED

    def to_sql(self) -> Optional[str]:
        if self == ReferentialAction.UNSPECIFIED:
            return None
        return self.value.replace("-", " ").upper()


class ConstraintType(str, Enum):
    CHECK = "check"
    UNIQUE = "unique"
    PRIMARY_KEY = "primary-key"
    FOREIGN_KEY = "foreign-key"


class RelationshipKind(str, Enum):
    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


class SourceKind(str, Enum):
    """Where a canonical schema came from"""
    SQL = "sql"
    DOCUMENT = "document"
    SAMPLE = "sample"
    LLM = "llm"
    CANONICAL = "canonical"


class _NowSentinel:
    """Marker for a 'current timestamp at creation' default value"""

    _instance: Optional["_NowSentinel"] = None

    def __new__(cls) -> "_NowSentinel":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOW_SENTINEL"

    def __reduce__(self):
        return (_NowSentinel, ())


NOW_SENTINEL = _NowSentinel()
NOW_SENTINEL_TOKEN = "$now"


def _default_to_dict(value: Any) -> Any:
    if value is NOW_SENTINEL:
        return NOW_SENTINEL_TOKEN
    return value


def _default_from_dict(value: Any) -> Any:
    if value == NOW_SENTINEL_TOKEN:
        return NOW_SENTINEL
    return value


def _parse_type(value: Any) -> Any:
    """Keep unknown spellings so the validator can report them"""
    if not value:
        return None
    try:
        return CanonicalType(value)
    except ValueError:
        return value


def _drop_empty(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None and v != [] and v != {}}


@dataclass
class Column:
    """A column of a table, or a field of a collection"""
    name: str
    type: CanonicalType = CanonicalType.STRING
    original_type: Optional[str] = None
    nullable: bool = True
    unique: bool = False
    auto_increment: bool = False
    default_value: Any = None
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: List[str] = field(default_factory=list)
    comment: Optional[str] = None

    # Document-shaped values
    fields: List["Column"] = field(default_factory=list)
    is_array: bool = False
    item_type: Optional[CanonicalType] = None
    reference: Optional[str] = None

    @property
    def is_nested(self) -> bool:
        """Structured value carrying its own sub-fields"""
        return bool(self.fields)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type.value if isinstance(self.type, CanonicalType) else self.type,
            "originalType": self.original_type,
            "nullable": self.nullable,
            "unique": self.unique,
            "autoIncrement": self.auto_increment,
            "defaultValue": _default_to_dict(self.default_value),
            "length": self.length,
            "precision": self.precision,
            "scale": self.scale,
            "enumValues": list(self.enum_values),
            "comment": self.comment,
            "fields": [f.to_dict() for f in self.fields],
            "isArray": self.is_array or None,
            "itemType": self.item_type.value if self.item_type else None,
            "reference": self.reference,
        }
        keep = {"name", "type", "nullable", "unique", "autoIncrement"}
        return {k: v for k, v in data.items() if k in keep or (v is not None and v != [])}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Column":
        item_type = data.get("itemType")
        return cls(
            name=data.get("name", ""),
            type=_parse_type(data.get("type")),
            original_type=data.get("originalType"),
            nullable=data.get("nullable", True),
            unique=data.get("unique", False),
            auto_increment=data.get("autoIncrement", False),
            default_value=_default_from_dict(data.get("defaultValue")),
            length=data.get("length"),
            precision=data.get("precision"),
            scale=data.get("scale"),
            enum_values=list(data.get("enumValues") or []),
            comment=data.get("comment"),
            fields=[cls.from_dict(f) for f in data.get("fields") or []],
            is_array=bool(data.get("isArray", False)),
            item_type=CanonicalType(item_type) if item_type else None,
            reference=data.get("reference"),
        )


@dataclass
class PrimaryKey:
    columns: List[str] = field(default_factory=list)
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_empty({"columns": list(self.columns), "name": self.name}) or {"columns": []}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrimaryKey":
        return cls(columns=list(data.get("columns") or []), name=data.get("name"))


@dataclass
class ForeignKey:
    columns: List[str]
    referenced_table: str
    referenced_columns: List[str] = field(default_factory=list)
    name: Optional[str] = None
    on_delete: ReferentialAction = ReferentialAction.UNSPECIFIED
    on_update: ReferentialAction = ReferentialAction.UNSPECIFIED

    def to_dict(self) -> Dict[str, Any]:
        return _drop_empty({
            "name": self.name,
            "columns": list(self.columns),
            "referencedTable": self.referenced_table,
            "referencedColumns": list(self.referenced_columns),
            "onDelete": self.on_delete.value,
            "onUpdate": self.on_update.value,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ForeignKey":
        return cls(
            name=data.get("name"),
            columns=list(data.get("columns") or []),
            referenced_table=data.get("referencedTable", ""),
            referenced_columns=list(data.get("referencedColumns") or []),
            on_delete=ReferentialAction.parse(data.get("onDelete")),
            on_update=ReferentialAction.parse(data.get("onUpdate")),
        )


@dataclass
class Index:
    name: str
    columns: List[str]
    unique: bool = False
    type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "columns": list(self.columns), "unique": self.unique}
        if self.type:
            data["type"] = self.type
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Index":
        return cls(
            name=data.get("name", ""),
            columns=list(data.get("columns") or []),
            unique=data.get("unique", False),
            type=data.get("type"),
        )


@dataclass
class Constraint:
    type: ConstraintType
    definition: str = ""
    columns: List[str] = field(default_factory=list)
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_empty({
            "name": self.name,
            "type": self.type.value,
            "definition": self.definition,
            "columns": list(self.columns),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Constraint":
        return cls(
            name=data.get("name"),
            type=ConstraintType(data.get("type", "check")),
            definition=data.get("definition", ""),
            columns=list(data.get("columns") or []),
        )


@dataclass
class Table:
    """A relational table, a document collection or a view"""
    name: str
    kind: TableKind = TableKind.TABLE
    columns: List[Column] = field(default_factory=list)
    primary_key: Optional[PrimaryKey] = None
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    comment: Optional[str] = None

    def get_column(self, name: str) -> Optional[Column]:
        """Get column by name (case-insensitive)"""
        name_lower = name.lower()
        for column in self.columns:
            if column.name.lower() == name_lower:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return self.get_column(name) is not None

    @property
    def primary_key_columns(self) -> List[str]:
        return list(self.primary_key.columns) if self.primary_key else []

    def is_primary_key_column(self, name: str) -> bool:
        return name.lower() in {c.lower() for c in self.primary_key_columns}

    def foreign_key_columns(self) -> List[str]:
        return [c for fk in self.foreign_keys for c in fk.columns]

    def unique_column_sets(self) -> List[List[str]]:
        """Every column set declared unique by an index or constraint"""
        sets = [list(idx.columns) for idx in self.indexes if idx.unique]
        sets.extend(
            list(c.columns) for c in self.constraints
            if c.type == ConstraintType.UNIQUE and c.columns
        )
        return sets

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "columns": [c.to_dict() for c in self.columns],
        }
        if self.primary_key:
            data["primaryKey"] = self.primary_key.to_dict()
        data["foreignKeys"] = [fk.to_dict() for fk in self.foreign_keys]
        data["indexes"] = [idx.to_dict() for idx in self.indexes]
        data["constraints"] = [c.to_dict() for c in self.constraints]
        if self.comment:
            data["comment"] = self.comment
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Table":
        pk_data = data.get("primaryKey")
        if isinstance(pk_data, list):
            pk_data = {"columns": pk_data}
        return cls(
            name=data.get("name", ""),
            kind=TableKind(data.get("kind", "table")),
            columns=[Column.from_dict(c) for c in data.get("columns") or []],
            primary_key=PrimaryKey.from_dict(pk_data) if pk_data else None,
            foreign_keys=[ForeignKey.from_dict(fk) for fk in data.get("foreignKeys") or []],
            indexes=[Index.from_dict(i) for i in data.get("indexes") or []],
            constraints=[Constraint.from_dict(c) for c in data.get("constraints") or []],
            comment=data.get("comment"),
        )


@dataclass
class Endpoint:
    table: str
    columns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"table": self.table, "columns": list(self.columns)}


@dataclass
class Relationship:
    """A derived relationship between two tables"""
    id: str
    kind: RelationshipKind
    from_: Endpoint
    to: Endpoint
    junction_table: Optional[str] = None
    cascade: bool = False
    is_small: bool = False
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        metadata = _drop_empty({
            "junctionTable": self.junction_table,
            "cascade": self.cascade or None,
            "isSmall": self.is_small or None,
            "description": self.description,
        })
        return {
            "id": self.id,
            "kind": self.kind.value,
            "from": self.from_.to_dict(),
            "to": self.to.to_dict(),
            "metadata": metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Relationship":
        metadata = data.get("metadata") or {}
        from_data = data.get("from") or {}
        to_data = data.get("to") or {}
        return cls(
            id=data.get("id", ""),
            kind=RelationshipKind(data.get("kind", "one_to_many")),
            from_=Endpoint(from_data.get("table", ""), list(from_data.get("columns") or [])),
            to=Endpoint(to_data.get("table", ""), list(to_data.get("columns") or [])),
            junction_table=metadata.get("junctionTable"),
            cascade=bool(metadata.get("cascade", False)),
            is_small=bool(metadata.get("isSmall", False)),
            description=metadata.get("description"),
        )


@dataclass
class SchemaMetadata:
    source_kind: SourceKind = SourceKind.CANONICAL
    extracted_at: datetime = field(default_factory=datetime.utcnow)
    extracted_by: str = "schema_converter"
    database_name: Optional[str] = None
    dialect: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_empty({
            "sourceKind": self.source_kind.value,
            "extractedAt": self.extracted_at.isoformat(),
            "extractedBy": self.extracted_by,
            "databaseName": self.database_name,
            "dialect": self.dialect,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaMetadata":
        extracted_at = data.get("extractedAt")
        return cls(
            source_kind=SourceKind(data.get("sourceKind", "canonical")),
            extracted_at=datetime.fromisoformat(extracted_at) if extracted_at else datetime.utcnow(),
            extracted_by=data.get("extractedBy", "schema_converter"),
            database_name=data.get("databaseName"),
            dialect=data.get("dialect"),
        )


@dataclass
class CanonicalSchema:
    """
    Canonical intermediate schema

    ``relationships`` is a projection of the foreign keys. It is recomputed
    by the relationship analyzer and never edited by hand.
    """
    tables: List[Table] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)
    metadata: SchemaMetadata = field(default_factory=SchemaMetadata)
    version: str = SCHEMA_VERSION

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name (case-insensitive)"""
        name_lower = name.lower()
        for table in self.tables:
            if table.name.lower() == name_lower:
                return table
        return None

    def has_table(self, name: str) -> bool:
        return self.get_table(name) is not None

    def get_relationships_for_table(self, table_name: str) -> List[Relationship]:
        """Get all relationships involving a table"""
        name_lower = table_name.lower()
        return [
            r for r in self.relationships
            if r.from_.table.lower() == name_lower or r.to.table.lower() == name_lower
        ]

    def junction_tables(self) -> List[str]:
        return [r.junction_table for r in self.relationships if r.junction_table]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "metadata": self.metadata.to_dict(),
            "tables": [t.to_dict() for t in self.tables],
            "relationships": [r.to_dict() for r in self.relationships],
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON"""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def to_yaml(self) -> str:
        """Export as YAML"""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def save(self, path: str) -> None:
        """Save schema to file (JSON or YAML based on extension)"""
        with open(path, 'w') as f:
            if path.endswith('.yaml') or path.endswith('.yml'):
                f.write(self.to_yaml())
            else:
                f.write(self.to_json())

    @classmethod
    def load(cls, path: str) -> "CanonicalSchema":
        """Load schema from file"""
        with open(path, 'r') as f:
            if path.endswith('.yaml') or path.endswith('.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CanonicalSchema":
        """Create schema from its boundary-contract dictionary"""
        return cls(
            version=data.get("version", SCHEMA_VERSION),
            metadata=SchemaMetadata.from_dict(data.get("metadata") or {}),
            tables=[Table.from_dict(t) for t in data.get("tables") or []],
            relationships=[Relationship.from_dict(r) for r in data.get("relationships") or []],
        )
