"""
Document Schema Generator

Turns an analyzed canonical schema plus its embedding plan into collections:

- every collection has an implicit ``_id``; a single auto-increment (or
  ``id``) primary key column is absorbed into it
- a foreign key planned as REFERENCE becomes an ``objectId`` field with
  ``ref`` and an index
- a foreign key planned as EMBED becomes a sub-document (one_to_one) in the
  holder, or an array of sub-documents (one_to_many) in the parent
- junction tables become link collections with a unique compound index
- every field name goes through a per-collection allocator, so timestamps
  and embedded fields can never duplicate an existing field
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from ..analysis.embedding import EmbeddingDecision, EmbeddingPlan, EmbeddingPlanner, EmbeddingStrategy
from ..schemas.models import (
    CanonicalSchema, CanonicalType, Column, ConstraintType, ForeignKey, RelationshipKind, Table, TableKind,
)
from ..type_mapping import DOCUMENT_NOW, render_document_default, to_document_type
from ..utils.errors import WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator, to_camel_case
from .base import BaseGenerator

logger = get_logger(__name__)

ID_FIELD = "_id"
OBJECT_ID = "objectId"
TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


def _field_key(name: str) -> str:
    """createdAt, created_at and CreatedAt compare equal"""
    return re.sub(r'[^a-z0-9]', '', name.lower())


@dataclass
class DocumentField:
    name: str
    type: str
    required: bool = False
    unique: bool = False
    ref: Optional[str] = None
    default: Any = None
    enum: List[Any] = field(default_factory=list)
    fields: List["DocumentField"] = field(default_factory=list)
    items: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.type, "required": self.required}
        if self.unique:
            data["unique"] = True
        if self.ref:
            data["ref"] = self.ref
        if self.default is not None:
            data["default"] = self.default
        if self.enum:
            data["enum"] = list(self.enum)
        if self.items:
            data["items"] = self.items
        if self.fields:
            data["fields"] = [f.to_dict() for f in self.fields]
        if self.description:
            data["description"] = self.description
        return data


@dataclass
class DocumentIndex:
    fields: List[str]
    unique: bool = False
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"fields": {f: 1 for f in self.fields}, "unique": self.unique}
        if self.name:
            data["name"] = self.name
        return data


@dataclass
class DocumentCollection:
    name: str
    fields: List[DocumentField] = field(default_factory=list)
    indexes: List[DocumentIndex] = field(default_factory=list)
    validator: Optional[Dict[str, Any]] = None
    source_table: Optional[str] = None
    is_link: bool = False

    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> Optional[DocumentField]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.indexes:
            data["indexes"] = [i.to_dict() for i in self.indexes]
        if self.validator:
            data["validator"] = self.validator
        if self.is_link:
            data["isLink"] = True
        return data


@dataclass
class DocumentSchema:
    """Generated document-oriented schema"""
    collections: List[DocumentCollection] = field(default_factory=list)
    relationships: List[Dict[str, Any]] = field(default_factory=list)

    def get_collection(self, name: str) -> Optional[DocumentCollection]:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collections": [c.to_dict() for c in self.collections],
            "relationships": list(self.relationships),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)


class DocumentGenerator(BaseGenerator):
    """Generates a document schema (collections, indexes, validators)"""

    target = "document"

    def _generate(self, schema: CanonicalSchema, plan: Optional[EmbeddingPlan] = None, **kwargs: Any) -> DocumentSchema:
        if plan is None:
            plan = EmbeddingPlanner.from_options(self.options).plan(schema)
        self.warnings.extend(plan.warnings)
        self._schema = schema
        self._plan = plan

        link_tables = {d.host_table.lower() for d in plan.link_decisions()}
        names = IdentifierAllocator()
        self._collection_names: Dict[str, str] = {
            t.name.lower(): names.allocate(self._case(t.name))
            for t in schema.tables if t.kind != TableKind.VIEW
        }
        self._report_renames(names, "schema")

        document = DocumentSchema()
        for table in schema.tables:
            if table.kind == TableKind.VIEW:
                self._warn(f"View '{table.name}' is not emitted as a collection", location=table.name)
                continue
            if table.name.lower() in link_tables:
                collection = self._link_collection(table)
            else:
                collection = self._collection(table)
            if self.options.generate_validator:
                collection.validator = build_validator(collection.fields)
            document.collections.append(collection)

        document.relationships = [self._relationship_entry(d) for d in plan.decisions]
        return document

    # Names

    def _case(self, name: str) -> str:
        return name if self.options.preserve_case else to_camel_case(name)

    def _collection_name(self, table_name: str) -> str:
        return self._collection_names.get(table_name.lower()) or self._case(table_name)

    def _absorbed_id(self, table: Table) -> Optional[str]:
        """Primary key column represented by _id, if any"""
        if len(table.primary_key_columns) != 1:
            return None
        column = table.get_column(table.primary_key_columns[0])
        if column is None:
            return None
        if column.auto_increment or column.name.lower() in ("id", ID_FIELD):
            return column.name.lower()
        return None

    def _foreign_key_for(self, table: Table, column: Column) -> Optional[ForeignKey]:
        for fk in table.foreign_keys:
            if column.name.lower() in (c.lower() for c in fk.columns):
                return fk
        return None

    # Collections

    def _collection(self, table: Table) -> DocumentCollection:
        collection = DocumentCollection(name=self._collection_name(table.name), source_table=table.name)
        allocator = IdentifierAllocator()
        allocator.allocate(ID_FIELD, sanitize=False)
        collection.fields.append(DocumentField(name=ID_FIELD, type=OBJECT_ID, required=True))

        absorbed = self._absorbed_id(table)
        emitted: Dict[str, str] = {}
        handled_fks: Set[int] = set()

        for column in table.columns:
            if column.name.lower() == absorbed:
                continue
            fk = self._foreign_key_for(table, column)
            if fk is not None and self._schema.has_table(fk.referenced_table):
                decision = self._plan.decision_for_foreign_key(table.name, fk.columns)
                if decision and decision.strategy == EmbeddingStrategy.EMBED and not decision.is_array:
                    if id(fk) not in handled_fks:
                        handled_fks.add(id(fk))
                        collection.fields.append(self._embedded_object(table, column, decision, allocator))
                    continue
                if len(fk.columns) == 1:
                    ref_field = self._reference_field(column, fk, allocator)
                    emitted[column.name.lower()] = ref_field.name
                    collection.fields.append(ref_field)
                    if self.options.generate_indexes:
                        self._add_index(collection, [ref_field.name], unique=column.unique)
                    continue

            doc_field = self._plain_field(column, f"{table.name}.{column.name}", allocator.allocate(self._case(column.name)))
            emitted[column.name.lower()] = doc_field.name
            collection.fields.append(doc_field)
            if column.unique and self.options.generate_indexes:
                self._add_index(collection, [doc_field.name], unique=True)

        for decision in self._plan.embeds_into(table.name):
            if decision.is_array:
                collection.fields.append(self._embedded_array(decision, allocator))

        if self.options.generate_indexes:
            self._declared_indexes(table, collection, emitted, absorbed)

        self._append_timestamps(collection, allocator)
        self._report_renames(allocator, collection.name)
        return collection

    def _link_collection(self, table: Table) -> DocumentCollection:
        collection = DocumentCollection(
            name=self._collection_name(table.name), source_table=table.name, is_link=True,
        )
        allocator = IdentifierAllocator()
        allocator.allocate(ID_FIELD, sanitize=False)
        collection.fields.append(DocumentField(name=ID_FIELD, type=OBJECT_ID, required=True))

        absorbed = self._absorbed_id(table)
        pair: List[str] = []
        fk_columns = {c.lower() for c in table.foreign_key_columns()}
        for fk in table.foreign_keys:
            for column_name in fk.columns:
                column = table.get_column(column_name) or Column(name=column_name, nullable=False)
                if len(fk.columns) == 1:
                    doc_field = self._reference_field(column, fk, allocator)
                else:
                    doc_field = self._plain_field(column, f"{table.name}.{column.name}",
                                                  allocator.allocate(self._case(column.name)))
                doc_field.required = True
                collection.fields.append(doc_field)
                pair.append(doc_field.name)

        for column in table.columns:
            if column.name.lower() in fk_columns or column.name.lower() == absorbed:
                continue
            collection.fields.append(
                self._plain_field(column, f"{table.name}.{column.name}", allocator.allocate(self._case(column.name)))
            )

        collection.indexes.append(DocumentIndex(fields=pair, unique=True))
        self._append_timestamps(collection, allocator)
        self._report_renames(allocator, collection.name)
        return collection

    # Fields

    def _plain_field(self, column: Column, location: str, name: str) -> DocumentField:
        canonical = CanonicalType(column.type)
        doc_field = DocumentField(
            name=name,
            type=to_document_type(canonical),
            required=not column.nullable,
            unique=column.unique,
            default=render_document_default(column.default_value, canonical),
            enum=list(column.enum_values) if canonical == CanonicalType.ENUM else [],
            description=column.comment,
        )
        if column.is_array:
            doc_field.type = "array"
            if column.reference:
                doc_field.items = OBJECT_ID
                doc_field.ref = self._collection_name(column.reference)
            elif column.fields:
                doc_field.items = "object"
                doc_field.fields = self._sub_fields(column.fields, location)
            else:
                doc_field.items = to_document_type(column.item_type or CanonicalType.STRING)
        elif column.fields:
            doc_field.type = "object"
            doc_field.fields = self._sub_fields(column.fields, location)
        return doc_field

    def _sub_fields(self, columns: List[Column], location: str) -> List[DocumentField]:
        allocator = IdentifierAllocator()
        fields = [
            self._plain_field(c, f"{location}.{c.name}", allocator.allocate(self._case(c.name)))
            for c in columns
        ]
        self._report_renames(allocator, location)
        return fields

    def _reference_field(self, column: Column, fk: ForeignKey, allocator: IdentifierAllocator) -> DocumentField:
        return DocumentField(
            name=allocator.allocate(self._case(column.name)),
            type=OBJECT_ID,
            required=not column.nullable,
            unique=column.unique,
            ref=self._collection_name(fk.referenced_table),
            description=column.comment,
        )

    def _embedded_fields(self, table: Table, exclude: List[str]) -> List[DocumentField]:
        """Fields of ``table`` as a sub-document, minus its _id and ``exclude``"""
        absorbed = self._absorbed_id(table)
        skipped = {c.lower() for c in exclude}
        allocator = IdentifierAllocator()
        fields = []
        for column in table.columns:
            if column.name.lower() == absorbed or column.name.lower() in skipped:
                continue
            fk = self._foreign_key_for(table, column)
            if fk is not None and len(fk.columns) == 1 and self._schema.has_table(fk.referenced_table):
                fields.append(self._reference_field(column, fk, allocator))
            else:
                fields.append(self._plain_field(column, f"{table.name}.{column.name}",
                                                allocator.allocate(self._case(column.name))))
        self._report_renames(allocator, table.name)
        return fields

    def _embedded_object(self, table: Table, column: Column, decision: EmbeddingDecision,
                         allocator: IdentifierAllocator) -> DocumentField:
        related = self._schema.get_table(decision.related_table)
        return DocumentField(
            name=allocator.allocate(self._case(decision.field_name)),
            type="object",
            required=not column.nullable,
            fields=self._embedded_fields(related, exclude=[]),
            description=f"Embedded {related.name} (one-to-one)",
        )

    def _embedded_array(self, decision: EmbeddingDecision, allocator: IdentifierAllocator) -> DocumentField:
        child = self._schema.get_table(decision.related_table)
        return DocumentField(
            name=allocator.allocate(self._case(decision.field_name)),
            type="array",
            items="object",
            fields=self._embedded_fields(child, exclude=decision.columns),
            description=f"Embedded {child.name} (one-to-many)",
        )

    def _append_timestamps(self, collection: DocumentCollection, allocator: IdentifierAllocator) -> None:
        if not self.options.include_timestamps:
            return
        existing = {_field_key(f.name) for f in collection.fields}
        for name in TIMESTAMP_FIELDS:
            if _field_key(name) in existing or allocator.is_taken(name):
                logger.debug(f"{collection.name}.{name} already present; not appended")
                continue
            collection.fields.append(DocumentField(
                name=allocator.allocate(name, sanitize=False),
                type="date",
                required=True,
                default=DOCUMENT_NOW,
            ))

    # Indexes

    def _add_index(self, collection: DocumentCollection, fields: List[str], unique: bool,
                   name: Optional[str] = None) -> None:
        for index in collection.indexes:
            if index.fields == fields:
                index.unique = index.unique or unique
                return
        collection.indexes.append(DocumentIndex(fields=list(fields), unique=unique, name=name))

    def _declared_indexes(self, table: Table, collection: DocumentCollection,
                          emitted: Dict[str, str], absorbed: Optional[str]) -> None:
        declared: List[Tuple[List[str], bool, Optional[str]]] = [
            (index.columns, index.unique, index.name) for index in table.indexes
        ]
        declared.extend(
            (c.columns, True, c.name) for c in table.constraints
            if c.type == ConstraintType.UNIQUE and c.columns
        )
        if table.primary_key_columns and absorbed is None:
            declared.append((table.primary_key_columns, True, None))

        for columns, unique, name in declared:
            if [c.lower() for c in columns] == [absorbed]:
                continue
            fields = [emitted.get(c.lower()) for c in columns]
            if not all(fields):
                self._warn(
                    f"Index over ({', '.join(columns)}) references fields not present in "
                    f"'{collection.name}'; skipped",
                    location=table.name,
                    code=WarningCode.UNSUPPORTED_CONSTRUCT,
                )
                continue
            self._add_index(collection, fields, unique, name)

    def _relationship_entry(self, decision: EmbeddingDecision) -> Dict[str, Any]:
        source_table = decision.related_table if decision.is_array else decision.host_table
        target_table = decision.host_table if decision.is_array else decision.related_table
        return {
            "id": decision.relationship_id,
            "from": f"{self._collection_name(source_table)}."
                    f"{self._case(decision.columns[0]) if decision.columns else ''}",
            "to": self._collection_name(target_table),
            "kind": RelationshipKind(decision.kind).value,
            "strategy": decision.strategy.value,
            "embedded": decision.strategy == EmbeddingStrategy.EMBED,
        }


def build_validator(fields: List[DocumentField]) -> Dict[str, Any]:
    """$jsonSchema validator: required list, bsonType per field, enum values"""
    return {"$jsonSchema": _object_schema(fields, skip_id=True)}


def _object_schema(fields: List[DocumentField], skip_id: bool = False) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for doc_field in fields:
        if skip_id and doc_field.name == ID_FIELD:
            continue
        properties[doc_field.name] = _field_schema(doc_field)
        if doc_field.required:
            required.append(doc_field.name)
    schema: Dict[str, Any] = {"bsonType": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


def _field_schema(doc_field: DocumentField) -> Dict[str, Any]:
    if doc_field.type == "array":
        if doc_field.fields:
            items = _object_schema(doc_field.fields)
        else:
            items = {"bsonType": doc_field.items or "string"}
        schema = {"bsonType": "array", "items": items}
    elif doc_field.type == "object" and doc_field.fields:
        schema = _object_schema(doc_field.fields)
    else:
        schema = {"bsonType": doc_field.type}
    if doc_field.enum:
        schema["enum"] = list(doc_field.enum)
    if doc_field.description:
        schema["description"] = doc_field.description
    return schema
