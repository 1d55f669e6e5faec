"""
Sample Data Extractor

Infers one collection from N sample records. Field names are unioned across
samples; each field's type comes from the set of primitive kinds observed
for it. A field is required only when every sample carries a non-null value.
"""
from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Set

from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    PrimaryKey,
    SourceKind,
    Table,
    TableKind,
)
from ..utils.errors import ExtractionError, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator
from .base import BaseExtractor, load_structured_input, register_extractor

logger = get_logger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Primitive kinds observed in sample values
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
OBJECT = "object"
ARRAY = "array"


def kind_of(value: Any) -> Optional[str]:
    """Primitive kind of a decoded JSON value; None for null"""
    if value is None:
        return None
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, (int, float)):
        return NUMBER
    if isinstance(value, dict):
        return OBJECT
    if isinstance(value, (list, tuple)):
        return ARRAY
    return STRING


class _FieldStats:
    """Observations collected for one field path"""

    def __init__(self, name: str):
        self.name = name
        self.kinds: Set[str] = set()
        self.present = 0
        self.non_null = 0
        self.all_ints = True
        self.min_int = 0
        self.max_int = 0
        self.values: List[Any] = []

    def observe(self, value: Any) -> None:
        self.present += 1
        kind = kind_of(value)
        if kind is None:
            return
        self.non_null += 1
        self.kinds.add(kind)
        self.values.append(value)
        if kind == NUMBER:
            if isinstance(value, float):
                self.all_ints = False
            else:
                self.min_int = min(self.min_int, value)
                self.max_int = max(self.max_int, value)


@register_extractor(SourceKind.SAMPLE)
class SampleDataExtractor(BaseExtractor):
    """Infers a collection schema from sample records"""

    source_kind = SourceKind.SAMPLE
    extracted_by = "sample_extractor"

    def __init__(self, collection_name: str = "records"):
        super().__init__()
        self.collection_name = collection_name

    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        data = load_structured_input(raw_input, "sample")
        name = hint or self.collection_name

        if isinstance(data, dict) and isinstance(data.get("samples"), list):
            name = data.get("collection") or data.get("name") or name
            data = data["samples"]
        elif isinstance(data, dict):
            data = [data]

        if not isinstance(data, list) or not data:
            raise ExtractionError("Sample input must be a non-empty list of records", source_kind="sample")
        if not all(isinstance(record, dict) for record in data):
            raise ExtractionError("Every sample record must be an object", source_kind="sample")

        table = Table(name=name, kind=TableKind.COLLECTION)
        columns = self._infer_columns(data, name)

        id_column = next((c for c in columns if c.name == "_id"), None) \
            or next((c for c in columns if c.name == "id"), None)
        if id_column is None:
            id_column = Column(name="id", type=CanonicalType.INTEGER, nullable=False,
                               auto_increment=True, original_type="objectId")
        else:
            columns.remove(id_column)
            id_column.name = "id"
            id_column.nullable = False
            if id_column.type not in (CanonicalType.INTEGER, CanonicalType.BIGINT, CanonicalType.UUID):
                id_column.type = CanonicalType.STRING
            # ObjectId hex strings are opaque; numeric ids auto-increment
            id_column.auto_increment = id_column.type in (CanonicalType.INTEGER, CanonicalType.BIGINT)

        names = IdentifierAllocator(reserved=["id"])
        for column in columns:
            self._allocate_column_name(names, column, f"{name}.{column.name}")
        table.columns = [id_column] + columns
        table.primary_key = PrimaryKey(columns=["id"])

        schema = self._new_schema(dialect="document")
        schema.tables.append(table)
        logger.debug(
            "Inferred sample schema",
            extra={"extra_fields": {"collection": name, "samples": len(data), "fields": len(table.columns)}}
        )
        return schema

    def _infer_columns(self, records: List[Dict[str, Any]], location: str) -> List[Column]:
        stats: "OrderedDict[str, _FieldStats]" = OrderedDict()
        for record in records:
            for key, value in record.items():
                if key not in stats:
                    stats[key] = _FieldStats(key)
                stats[key].observe(value)

        return [self._column_from_stats(s, len(records), f"{location}.{s.name}") for s in stats.values()]

    def _column_from_stats(self, stats: _FieldStats, total: int, location: str) -> Column:
        column = Column(name=stats.name, nullable=stats.non_null < total)

        if not stats.kinds:
            column.type = CanonicalType.STRING
            self._warn("Only null values observed; typed as string", location=location,
                       code=WarningCode.TYPE_MAPPING_FALLBACK)
            return column

        if len(stats.kinds) > 1:
            column.type = CanonicalType.STRING
            column.original_type = "|".join(sorted(stats.kinds))
            self._warn(
                f"Mixed value kinds ({', '.join(sorted(stats.kinds))}); typed as string",
                location=location,
                code=WarningCode.TYPE_MAPPING_FALLBACK,
            )
            return column

        kind = next(iter(stats.kinds))
        column.original_type = kind
        if kind == NUMBER:
            column.type = self._number_type(stats)
        elif kind == BOOLEAN:
            column.type = CanonicalType.BOOLEAN
        elif kind == STRING:
            column.type = CanonicalType.STRING
        elif kind == OBJECT:
            column.type = CanonicalType.JSON
            column.fields = self._infer_columns(stats.values, location)
        else:
            column.type = CanonicalType.JSON
            column.is_array = True
            self._infer_array_items(column, stats.values, location)
        return column

    def _number_type(self, stats: _FieldStats) -> CanonicalType:
        if not stats.all_ints:
            return CanonicalType.DOUBLE
        if stats.min_int < INT32_MIN or stats.max_int > INT32_MAX:
            return CanonicalType.BIGINT
        return CanonicalType.INTEGER

    def _infer_array_items(self, column: Column, arrays: List[List[Any]], location: str) -> None:
        items = [item for array in arrays for item in array]
        item_stats = _FieldStats("[]")
        for item in items:
            item_stats.observe(item)

        if not item_stats.kinds:
            column.item_type = CanonicalType.STRING
        elif len(item_stats.kinds) > 1:
            column.item_type = CanonicalType.STRING
            self._warn(
                f"Mixed array item kinds ({', '.join(sorted(item_stats.kinds))}); typed as string",
                location=f"{location}[]",
                code=WarningCode.TYPE_MAPPING_FALLBACK,
            )
        elif OBJECT in item_stats.kinds:
            column.fields = self._infer_columns(item_stats.values, f"{location}[]")
        elif NUMBER in item_stats.kinds:
            column.item_type = self._number_type(item_stats)
        elif BOOLEAN in item_stats.kinds:
            column.item_type = CanonicalType.BOOLEAN
        elif ARRAY in item_stats.kinds:
            column.item_type = CanonicalType.JSON
        else:
            column.item_type = CanonicalType.STRING
