"""
Relational Normalizer (document -> relational direction)

Rewrites document-shaped columns so a relational generator can emit them:

- an array of references becomes a link table with one foreign key to each
  side (classified many_to_many by the analyzer)
- an embedded object or array becomes a child table with its own surrogate
  key and a back-reference to the parent, up to ``normalization_depth``
  levels deep
- structures at depth 0, or nested beyond the configured depth, stay as an
  opaque JSON column and are reported as a normalization opportunity
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import List, Optional

from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    ForeignKey,
    Index,
    PrimaryKey,
    ReferentialAction,
    Table,
    TableKind,
)
from ..utils.errors import ConversionWarning, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator, singularize

logger = get_logger(__name__)


@dataclass
class NormalizationResult:
    schema: CanonicalSchema
    warnings: List[ConversionWarning] = field(default_factory=list)
    link_tables: List[str] = field(default_factory=list)
    child_tables: List[str] = field(default_factory=list)


class RelationalNormalizer:
    """Splits embedded structures into linked tables"""

    def __init__(self, normalization_depth: int = 1):
        if normalization_depth < 0:
            raise ValueError("normalization_depth must be >= 0")
        self.normalization_depth = normalization_depth

    def normalize(self, schema: CanonicalSchema) -> NormalizationResult:
        """Return a normalized copy of ``schema``; the input is left untouched"""
        normalized = copy.deepcopy(schema)
        normalized.relationships = []
        result = NormalizationResult(schema=normalized)
        self._table_names = IdentifierAllocator([t.name for t in normalized.tables])

        for table in list(normalized.tables):
            self._normalize_table(normalized, table, 1, result)

        logger.info(
            "Normalized document structures",
            extra={"extra_fields": {
                "depth": self.normalization_depth,
                "link_tables": len(result.link_tables),
                "child_tables": len(result.child_tables),
                "opaque": sum(1 for w in result.warnings if w.code == WarningCode.OPAQUE_STRUCTURE),
            }}
        )
        return result

    def _normalize_table(self, schema: CanonicalSchema, table: Table, level: int,
                         result: NormalizationResult) -> None:
        kept: List[Column] = []
        for column in table.columns:
            location = f"{table.name}.{column.name}"
            if column.reference and column.is_array:
                if self._create_link_table(schema, table, column, result):
                    continue
                self._make_opaque(column, location, result,
                                  f"references unknown collection '{column.reference}'")
            elif column.is_array or column.fields:
                if level <= self.normalization_depth and table.primary_key_columns:
                    self._create_child_table(schema, table, column, level, result)
                    continue
                reason = ("normalization depth is 0" if self.normalization_depth == 0
                          else f"nested deeper than normalization depth {self.normalization_depth}")
                if not table.primary_key_columns:
                    reason = f"'{table.name}' has no primary key to reference"
                self._make_opaque(column, location, result, reason)
            kept.append(column)
        table.columns = kept

    def _parent_reference_columns(self, parent: Table, prefix: str) -> List[Column]:
        columns = []
        for pk_name in parent.primary_key_columns:
            pk = parent.get_column(pk_name)
            columns.append(Column(
                name=f"{prefix}_{pk_name}",
                type=pk.type if pk else CanonicalType.INTEGER,
                length=pk.length if pk else None,
                nullable=False,
            ))
        return columns

    def _create_link_table(self, schema: CanonicalSchema, table: Table, column: Column,
                           result: NormalizationResult) -> bool:
        target = schema.get_table(column.reference)
        if target is None or not target.primary_key_columns or not table.primary_key_columns:
            return False

        name = self._table_names.allocate(f"{table.name}_{column.name}", sanitize=False)
        columns = IdentifierAllocator()
        left = self._parent_reference_columns(table, singularize(table.name))
        right = self._parent_reference_columns(target, singularize(target.name))
        for col in left + right:
            col.name = columns.allocate(col.name, sanitize=False)

        link = Table(
            name=name,
            kind=TableKind.TABLE,
            columns=left + right,
            primary_key=PrimaryKey(columns=[c.name for c in left + right]),
            foreign_keys=[
                ForeignKey(
                    columns=[c.name for c in left],
                    referenced_table=table.name,
                    referenced_columns=table.primary_key_columns,
                    on_delete=ReferentialAction.CASCADE,
                ),
                ForeignKey(
                    columns=[c.name for c in right],
                    referenced_table=target.name,
                    referenced_columns=target.primary_key_columns,
                    on_delete=ReferentialAction.CASCADE,
                ),
            ],
            comment=f"Link table for {table.name}.{column.name}",
        )
        schema.tables.append(link)
        result.link_tables.append(name)
        logger.debug(f"Created link table {name}", extra={"extra_fields": {"target": target.name}})
        return True

    def _create_child_table(self, schema: CanonicalSchema, parent: Table, column: Column,
                            level: int, result: NormalizationResult) -> None:
        name = self._table_names.allocate(f"{parent.name}_{column.name}", sanitize=False)
        back_refs = self._parent_reference_columns(parent, singularize(parent.name))

        if column.fields:
            payload = [copy.deepcopy(f) for f in column.fields]
        else:
            payload = [Column(
                name="value",
                type=column.item_type or CanonicalType.STRING,
                nullable=True,
            )]

        allocator = IdentifierAllocator(["id"] + [c.name for c in back_refs])
        for payload_column in payload:
            payload_column.name = allocator.allocate(payload_column.name, sanitize=False)

        child = Table(
            name=name,
            kind=TableKind.TABLE,
            columns=[Column(name="id", type=CanonicalType.INTEGER, nullable=False, auto_increment=True)]
            + back_refs + payload,
            primary_key=PrimaryKey(columns=["id"]),
            foreign_keys=[ForeignKey(
                columns=[c.name for c in back_refs],
                referenced_table=parent.name,
                referenced_columns=parent.primary_key_columns,
                on_delete=ReferentialAction.CASCADE,
            )],
            comment=f"Normalized from {parent.name}.{column.name}",
        )
        if not column.is_array:
            # a single embedded object: at most one child row per parent
            child.indexes.append(Index(
                name=f"uq_{name}_{'_'.join(c.name for c in back_refs)}",
                columns=[c.name for c in back_refs],
                unique=True,
            ))
            if len(back_refs) == 1:
                back_refs[0].unique = True

        schema.tables.append(child)
        result.child_tables.append(name)
        logger.debug(
            f"Created child table {name}",
            extra={"extra_fields": {"parent": parent.name, "level": level}}
        )
        self._normalize_table(schema, child, level + 1, result)

    def _make_opaque(self, column: Column, location: str, result: NormalizationResult,
                     reason: Optional[str] = None) -> None:
        shape = "array" if column.is_array else "object"
        column.type = CanonicalType.JSON
        column.original_type = column.original_type or shape
        column.fields = []
        column.is_array = False
        column.item_type = None
        column.reference = None
        message = (
            f"Embedded {shape} '{column.name}' kept as an opaque JSON column ({reason}); "
            "consider extracting it to a separate table"
        )
        result.warnings.append(ConversionWarning(
            code=WarningCode.OPAQUE_STRUCTURE,
            message=message,
            location=location,
        ))
        logger.warning(message, extra={"extra_fields": {"location": location}})
