"""
Document Schema Extractor

Reads collection definitions in any of these shapes:

    {"collections": [{"name": "posts", "fields": [...], "indexes": [...]}]}
    {"posts": {"fields": [...]}, "users": {"email": "string", ...}}
    [{"name": "posts", "fields": [...]}]

or JSON/YAML text holding one of them. Field lists may be explicit or
inferred from the structure of the definition; a ``validator.$jsonSchema``
block is used when no field list is given.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    ForeignKey,
    Index,
    PrimaryKey,
    ReferentialAction,
    SourceKind,
    Table,
    TableKind,
)
from ..type_mapping import normalize_default, normalize_document_type
from ..utils.errors import ExtractionError, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator, pluralize, singularize, to_camel_case
from .base import BaseExtractor, load_structured_input, register_extractor

logger = get_logger(__name__)

_COLLECTION_KEYS = {"name", "fields", "schema", "indexes", "validator", "options", "description"}
_ID_FIELD = "_id"


@register_extractor(SourceKind.DOCUMENT)
class DocumentExtractor(BaseExtractor):
    """Extracts the canonical schema from document collection definitions"""

    source_kind = SourceKind.DOCUMENT
    extracted_by = "document_extractor"

    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        data = load_structured_input(raw_input, "document")
        schema = self._new_schema(dialect="document")

        for name, definition in self._iter_collections(data):
            schema.tables.append(self._parse_collection(name, definition))

        self._resolve_references(schema)
        return schema

    def _iter_collections(self, data: Any) -> List[Tuple[str, Dict[str, Any]]]:
        if isinstance(data, dict) and isinstance(data.get("collections"), list):
            items = data["collections"]
        elif isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            return [
                (name, definition) for name, definition in data.items()
                if isinstance(definition, dict)
            ]
        else:
            raise ExtractionError("Document schema must be a mapping or a list of collections",
                                  source_kind="document")

        collections = []
        for position, item in enumerate(items):
            if not isinstance(item, dict):
                raise ExtractionError(f"Collection #{position + 1} is not a mapping", source_kind="document")
            collections.append((item.get("name") or "", item))
        return collections

    def _parse_collection(self, name: str, definition: Dict[str, Any]) -> Table:
        table = Table(name=name, kind=TableKind.COLLECTION, comment=definition.get("description"))

        raw_fields = definition.get("fields")
        if raw_fields is None:
            raw_fields = definition.get("schema")
        if raw_fields is None and isinstance(definition.get("validator"), dict):
            raw_fields = self._fields_from_json_schema(definition["validator"].get("$jsonSchema") or {})
        if raw_fields is None:
            raw_fields = {k: v for k, v in definition.items() if k not in _COLLECTION_KEYS}

        if isinstance(raw_fields, dict):
            specs = [self._infer_spec(field_name, value) for field_name, value in raw_fields.items()]
        elif isinstance(raw_fields, list):
            specs = [self._normalize_spec(item) for item in raw_fields]
        else:
            raise ExtractionError(f"Fields of collection '{name}' must be a list or mapping",
                                  source_kind="document")

        id_spec = next((s for s in specs if s["name"] == _ID_FIELD), None) \
            or next((s for s in specs if s["name"] == "id"), None)
        table.columns.append(self._primary_key_column(id_spec))
        table.primary_key = PrimaryKey(columns=[table.columns[0].name])

        renamed: Dict[str, str] = {}
        names = IdentifierAllocator(reserved=[table.columns[0].name])
        for spec in specs:
            if spec is id_spec:
                continue
            location = f"{name}.{spec['name']}"
            column = self._spec_to_column(spec, location)
            is_reference = column.reference and not column.is_array
            if is_reference:
                column.name = self._reference_column_name(spec["name"])
            self._allocate_column_name(names, column, location)
            if is_reference:
                table.foreign_keys.append(ForeignKey(
                    columns=[column.name],
                    referenced_table=column.reference,
                    referenced_columns=["id"],
                    on_delete=ReferentialAction.CASCADE if not column.nullable else ReferentialAction.SET_NULL,
                ))
            renamed[spec["name"]] = column.name
            table.columns.append(column)

        self._parse_indexes(table, definition.get("indexes") or [], renamed)
        return table

    def _primary_key_column(self, id_spec: Optional[Dict[str, Any]]) -> Column:
        """``_id`` becomes the ``id`` key; ObjectId keys become auto-increment integers"""
        column = Column(name="id", type=CanonicalType.INTEGER, nullable=False,
                        auto_increment=True, original_type="objectId")
        if id_spec is None:
            return column
        raw_type = str(id_spec.get("type") or "objectId")
        if raw_type.lower() in ("objectid", "number", "int", "integer", "long"):
            return column
        canonical, _ = normalize_document_type(raw_type)
        return Column(name="id", type=canonical, nullable=False, original_type=raw_type)

    def _reference_column_name(self, field_name: str) -> str:
        lowered = field_name.lower()
        if lowered.endswith("_id") or (lowered.endswith("id") and field_name[-2:] == "Id"):
            return field_name
        return f"{field_name}Id"

    def _normalize_spec(self, item: Any) -> Dict[str, Any]:
        """Bring an explicit field entry into one dictionary shape"""
        if isinstance(item, str):
            return {"name": item, "type": "string"}
        if not isinstance(item, dict):
            raise ExtractionError(f"Unsupported field entry: {item!r}", source_kind="document")
        spec = dict(item)
        spec["name"] = item.get("name") or item.get("field") or ""
        return spec

    def _infer_spec(self, name: str, value: Any) -> Dict[str, Any]:
        """Infer a field entry from the structure of a definition value"""
        if isinstance(value, str):
            return {"name": name, "type": value}
        if isinstance(value, list):
            item = value[0] if value else "string"
            return {"name": name, "type": "array", "items": self._infer_item(item)}
        if isinstance(value, dict):
            if "type" in value and not isinstance(value["type"], dict):
                spec = dict(value)
                spec["name"] = name
                return spec
            return {
                "name": name,
                "type": "object",
                "fields": [self._infer_spec(k, v) for k, v in value.items()],
            }
        return {"name": name, "type": "string"}

    def _infer_item(self, item: Any) -> Any:
        if isinstance(item, str):
            return item
        if isinstance(item, dict) and "type" in item and not isinstance(item["type"], dict):
            return item
        if isinstance(item, dict):
            return {"type": "object", "fields": [self._infer_spec(k, v) for k, v in item.items()]}
        return "string"

    def _fields_from_json_schema(self, json_schema: Dict[str, Any]) -> List[Dict[str, Any]]:
        required = set(json_schema.get("required") or [])
        specs = []
        for name, prop in (json_schema.get("properties") or {}).items():
            specs.append(self._json_schema_property(name, prop, name in required))
        return specs

    def _json_schema_property(self, name: str, prop: Dict[str, Any], required: bool) -> Dict[str, Any]:
        bson_type = prop.get("bsonType") or prop.get("type") or ("object" if prop.get("properties") else "string")
        if isinstance(bson_type, list):
            bson_type = next((t for t in bson_type if t != "null"), "string")
        spec: Dict[str, Any] = {"name": name, "type": bson_type, "required": required}
        if prop.get("enum"):
            spec["enum"] = [v for v in prop["enum"] if v is not None]
        if prop.get("description"):
            spec["description"] = prop["description"]
        if bson_type == "object" and prop.get("properties"):
            spec["fields"] = self._fields_from_json_schema(prop)
        if bson_type == "array" and isinstance(prop.get("items"), dict):
            items = prop["items"]
            item_type = items.get("bsonType") or items.get("type") or "string"
            if item_type == "object" and items.get("properties"):
                spec["items"] = {"type": "object", "fields": self._fields_from_json_schema(items)}
            else:
                spec["items"] = item_type
        return spec

    def _spec_to_column(self, spec: Dict[str, Any], location: str) -> Column:
        raw_type = spec.get("type") or "string"
        nullable = True
        if isinstance(raw_type, list):
            nullable = "null" in raw_type
            raw_type = next((t for t in raw_type if t != "null"), "string")
        raw_type = str(raw_type)

        column = Column(
            name=spec["name"],
            original_type=raw_type,
            # a list here is the $jsonSchema list of required sub-fields
            nullable=nullable and spec.get("required") is not True,
            unique=bool(spec.get("unique", False)),
            comment=spec.get("description"),
        )
        reference = spec.get("ref") or spec.get("reference")

        if raw_type.lower() == "array" or spec.get("isArray"):
            column.is_array = True
            column.type = CanonicalType.JSON
            items = spec.get("items") if spec.get("items") is not None else spec.get("of", "string")
            self._apply_array_items(column, items, reference, location)
        elif reference:
            column.type = CanonicalType.INTEGER
            column.reference = str(reference)
        elif raw_type.lower() == "object" or spec.get("fields") or spec.get("properties"):
            column.type = CanonicalType.JSON
            column.fields = self._nested_columns(self._nested_specs(spec), location)
        else:
            canonical, warning = normalize_document_type(raw_type)
            if warning:
                self._warn(warning, location=location, code=WarningCode.TYPE_MAPPING_FALLBACK)
            column.type = canonical

        if spec.get("enum"):
            column.enum_values = [str(v) for v in spec["enum"]]
            if column.type in (CanonicalType.STRING, CanonicalType.TEXT):
                column.type = CanonicalType.ENUM
        if column.type == CanonicalType.STRING and spec.get("maxLength"):
            column.length = int(spec["maxLength"])
        if "default" in spec:
            column.default_value = normalize_default(spec["default"])
        return column

    def _nested_specs(self, container: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Sub-field entries of an object field; ``properties`` may use $jsonSchema keywords"""
        if container.get("fields"):
            nested = container["fields"]
            if isinstance(nested, dict):
                return [self._infer_spec(k, v) for k, v in nested.items()]
            return [self._normalize_spec(s) for s in nested]

        properties = container.get("properties") or {}
        if not isinstance(properties, dict):
            return [self._normalize_spec(s) for s in properties]
        required = container.get("required")
        required_names = set(required) if isinstance(required, list) else set()
        specs = []
        for name, prop in properties.items():
            if isinstance(prop, dict) and ("bsonType" in prop or "properties" in prop):
                specs.append(self._json_schema_property(name, prop, name in required_names))
            else:
                specs.append(self._infer_spec(name, prop))
        return specs

    def _nested_columns(self, specs: List[Dict[str, Any]], location: str) -> List[Column]:
        return [self._spec_to_column(s, f"{location}.{s['name']}") for s in specs]

    def _apply_array_items(self, column: Column, items: Any, reference: Optional[str], location: str) -> None:
        if isinstance(items, dict):
            reference = reference or items.get("ref") or items.get("reference")
            if items.get("fields") or items.get("properties"):
                column.fields = self._nested_columns(self._nested_specs(items), f"{location}[]")
                return
            items = items.get("type", "string")

        if reference:
            column.reference = str(reference)
            column.item_type = CanonicalType.INTEGER
            return

        item_type, warning = normalize_document_type(str(items))
        if warning:
            self._warn(warning, location=f"{location}[]", code=WarningCode.TYPE_MAPPING_FALLBACK)
        column.item_type = item_type

    def _parse_indexes(self, table: Table, indexes: List[Any], renamed: Dict[str, str]) -> None:
        for position, raw in enumerate(indexes):
            if not isinstance(raw, dict):
                self._warn(f"Ignoring malformed index #{position + 1}", location=table.name)
                continue
            keys = raw.get("fields") or raw.get("keys") or raw.get("key") or raw.get("columns") or {}
            names = list(keys.keys()) if isinstance(keys, dict) else list(keys)
            columns = [renamed.get(n, n) for n in names if n != _ID_FIELD]
            if not columns:
                continue
            unique = bool(raw.get("unique", False) or (raw.get("options") or {}).get("unique", False))
            if unique and len(columns) == 1 and table.get_column(columns[0]) is not None:
                table.get_column(columns[0]).unique = True
                continue
            index_type = None
            if isinstance(keys, dict) and any(v in ("text", "2dsphere", "2d", "hashed") for v in keys.values()):
                index_type = next(v for v in keys.values() if isinstance(v, str))
                self._warn(
                    f"'{index_type}' index kept as a plain index",
                    location=table.name,
                    code=WarningCode.UNSUPPORTED_CONSTRUCT,
                )
            table.indexes.append(Index(
                name=raw.get("name") or f"idx_{table.name}_{'_'.join(columns)}",
                columns=columns,
                unique=unique,
                type=index_type,
            ))

    def _resolve_references(self, schema: CanonicalSchema) -> None:
        """Point references at collection names as declared and match key types"""
        names = {t.name.lower(): t.name for t in schema.tables}

        def resolve(ref: str) -> str:
            for candidate in (ref, pluralize(ref), singularize(ref), to_camel_case(pluralize(ref))):
                if candidate.lower() in names:
                    return names[candidate.lower()]
            return ref

        for table in schema.tables:
            for column in table.columns:
                if column.reference:
                    column.reference = resolve(column.reference)
            for foreign_key in table.foreign_keys:
                foreign_key.referenced_table = resolve(foreign_key.referenced_table)
                target = schema.get_table(foreign_key.referenced_table)
                if target is None:
                    self._warn(
                        f"Reference to unknown collection '{foreign_key.referenced_table}'",
                        location=table.name,
                    )
                    continue
                key = target.get_column(target.primary_key_columns[0]) if target.primary_key_columns else None
                local = table.get_column(foreign_key.columns[0])
                if key is not None and local is not None:
                    local.type = key.type
                    local.length = key.length
