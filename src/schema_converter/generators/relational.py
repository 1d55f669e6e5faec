"""
Relational DDL Generator

Emits one CREATE TABLE per table (columns, primary key, foreign keys,
checks) and then, in a second pass, every CREATE INDEX statement so that
indexes never reference a table that has not been created yet.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from ..config import ConversionOptions, DialectType
from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    ConstraintType,
    ForeignKey,
    ReferentialAction,
    Table,
    TableKind,
)
from ..type_mapping import (
    dialect_traits,
    quote_literal,
    render_column_type,
    render_default,
    resolve_dialect,
)
from ..utils.errors import UnsupportedConstructError, WarningCode
from ..utils.logging import get_logger
from ..utils.naming import IdentifierAllocator, to_snake_case
from .base import BaseGenerator

logger = get_logger(__name__)

INDENT = "    "

# String literals are matched first so their contents are never rewritten
_CHECK_TOKEN = re.compile(r"'(?:[^']|'')*'|\"([^\"]+)\"|`([^`]+)`|\[([^\]]+)\]|\b([A-Za-z_]\w*)\b")


class RelationalGenerator(BaseGenerator):
    """Generates DDL for one relational dialect"""

    target = "relational"

    def __init__(self, options: Optional[ConversionOptions] = None):
        super().__init__(options)
        self.dialect = resolve_dialect(self.options.dialect)
        self.traits = dialect_traits(self.dialect)
        self.target = self.dialect.value

    def _generate(self, schema: CanonicalSchema, **kwargs: Any) -> str:
        self._allocate_names(schema)
        ordered = self._creation_order(schema)

        statements: List[str] = []
        if self.options.include_comments:
            statements.append(f"-- Generated by schema_converter for {self.dialect.value}")

        if self.options.include_drop_statements:
            for table in reversed(ordered):
                statements.append(f"DROP TABLE IF EXISTS {self._table_ref(table.name)};")

        for table in ordered:
            statements.append(self._create_table(schema, table))
            statements.extend(self._comment_statements(table))

        for table in ordered:
            statements.extend(self._create_indexes(table))

        for view in (t for t in schema.tables if t.kind == TableKind.VIEW):
            self._degrade(
                UnsupportedConstructError(
                    f"View '{view.name}' has no captured definition and is not emitted",
                    construct="view",
                    fallback="omitted",
                ),
                location=view.name,
            )

        return "\n\n".join(statements) + "\n"

    # Names

    def _case(self, name: str) -> str:
        return name if self.options.preserve_case else to_snake_case(name)

    def _allocate_names(self, schema: CanonicalSchema) -> None:
        self._table_names: Dict[str, str] = {}
        self._column_names: Dict[str, Dict[str, str]] = {}
        self._index_names = IdentifierAllocator()

        tables = IdentifierAllocator()
        for table in schema.tables:
            self._table_names[table.name.lower()] = tables.allocate(self._case(table.name))
            columns = IdentifierAllocator()
            self._column_names[table.name.lower()] = {
                column.name.lower(): columns.allocate(self._case(column.name))
                for column in table.columns
            }
            self._report_renames(columns, table.name)
        self._report_renames(tables, "schema")

    def _table_name(self, name: str) -> str:
        return self._table_names.get(name.lower()) or IdentifierAllocator().allocate(self._case(name))

    def _table_ref(self, name: str) -> str:
        return self.traits.quote(self._table_name(name))

    def _column_ref(self, table: str, column: str) -> str:
        emitted = self._column_names.get(table.lower(), {}).get(column.lower())
        if emitted is None:
            emitted = IdentifierAllocator().allocate(self._case(column))
        return self.traits.quote(emitted)

    def _column_list(self, table: str, columns: List[str]) -> str:
        return ", ".join(self._column_ref(table, c) for c in columns)

    def _check_definition(self, table: Table, definition: str) -> str:
        """CHECK body with column identifiers replaced by their emitted names"""
        columns = self._column_names.get(table.name.lower(), {})

        def rewrite(match):
            token = match.group(0)
            if token.startswith("'"):
                return token
            name = next(group for group in match.groups() if group is not None)
            emitted = columns.get(name.lower())
            return token if emitted is None else self.traits.quote(emitted)

        return _CHECK_TOKEN.sub(rewrite, definition)

    def _creation_order(self, schema: CanonicalSchema) -> List[Table]:
        """Referenced tables first; declared order otherwise"""
        remaining = [t for t in schema.tables if t.kind != TableKind.VIEW]
        ordered: List[Table] = []
        placed = set()
        while remaining:
            progressed = False
            for table in list(remaining):
                dependencies = {
                    fk.referenced_table.lower() for fk in table.foreign_keys
                    if fk.referenced_table.lower() != table.name.lower() and schema.has_table(fk.referenced_table)
                }
                if dependencies <= placed:
                    ordered.append(table)
                    placed.add(table.name.lower())
                    remaining.remove(table)
                    progressed = True
            if not progressed:
                self._warn(
                    "Circular foreign keys between " + ", ".join(t.name for t in remaining)
                    + "; tables emitted in declared order",
                    location="schema",
                )
                ordered.extend(remaining)
                break
        return ordered

    # CREATE TABLE

    def _create_table(self, schema: CanonicalSchema, table: Table) -> str:
        inline_pk = self._sqlite_inline_primary_key(table)
        clauses: List[str] = []
        checks: List[str] = []

        for column in table.columns:
            clause, check = self._column_clause(table, column, inline_pk)
            clauses.append(clause)
            if check:
                checks.append(check)

        if table.primary_key_columns and inline_pk is None:
            pk = f"PRIMARY KEY ({self._column_list(table.name, table.primary_key_columns)})"
            if table.primary_key.name:
                pk = f"CONSTRAINT {self.traits.quote(table.primary_key.name)} {pk}"
            clauses.append(pk)

        for constraint in table.constraints:
            if constraint.type == ConstraintType.UNIQUE and constraint.columns:
                clause = f"UNIQUE ({self._column_list(table.name, constraint.columns)})"
            elif constraint.type == ConstraintType.CHECK and constraint.definition:
                clause = f"CHECK ({self._check_definition(table, constraint.definition)})"
            else:
                continue
            if constraint.name:
                clause = f"CONSTRAINT {self.traits.quote(constraint.name)} {clause}"
            clauses.append(clause)

        clauses.extend(checks)

        for fk in table.foreign_keys:
            clause = self._foreign_key_clause(schema, table, fk)
            if clause:
                clauses.append(clause)

        guard = ""
        if self.options.include_if_not_exists and self.traits.if_not_exists:
            guard = "IF NOT EXISTS "
        body = (",\n" + INDENT).join(clauses)
        statement = f"CREATE TABLE {guard}{self._table_ref(table.name)} (\n{INDENT}{body}\n)"
        if self.dialect == DialectType.MYSQL and self.options.include_comments and table.comment:
            statement += f" COMMENT={quote_literal(table.comment)}"
        return statement + ";"

    def _sqlite_inline_primary_key(self, table: Table) -> Optional[str]:
        """SQLite spells auto-increment as an inline INTEGER PRIMARY KEY"""
        if self.dialect != DialectType.SQLITE or len(table.primary_key_columns) != 1:
            return None
        column = table.get_column(table.primary_key_columns[0])
        if column is not None and column.auto_increment:
            return column.name
        return None

    def _column_clause(self, table: Table, column: Column, inline_pk: Optional[str]):
        location = f"{table.name}.{column.name}"
        name = self._column_ref(table.name, column.name)
        is_pk = table.is_primary_key_column(column.name)

        if column.is_array or column.fields:
            self._warn(
                f"Structured column '{column.name}' stored as JSON",
                location=location,
                code=WarningCode.OPAQUE_STRUCTURE,
            )
            column = Column(name=column.name, type=CanonicalType.JSON, nullable=column.nullable,
                            comment=column.comment)

        rendered = render_column_type(column, self.dialect)
        if rendered.warning:
            self._degrade(
                UnsupportedConstructError(rendered.warning, construct=column.type, fallback=rendered.sql),
                location=location,
            )

        parts = [name]
        if inline_pk is not None and inline_pk.lower() == column.name.lower():
            parts.append("INTEGER PRIMARY KEY AUTOINCREMENT")
            return " ".join(parts), None

        type_sql = rendered.sql
        suffix: List[str] = []
        if column.auto_increment:
            type_sql, suffix = self._auto_increment(column, type_sql, location)
        parts.append(type_sql)
        if self.dialect == DialectType.MSSQL:
            parts.extend(suffix)
        if not column.nullable or is_pk:
            parts.append("NOT NULL")
        if not column.auto_increment:
            default = render_default(column.default_value, column.type, self.dialect)
            if default is not None:
                parts.append(f"DEFAULT {default}")
        if self.dialect != DialectType.MSSQL:
            parts.extend(suffix)
        if column.unique and not is_pk:
            parts.append("UNIQUE")

        if self.dialect == DialectType.MYSQL and self.options.include_comments and column.comment:
            parts.append(f"COMMENT {quote_literal(column.comment)}")

        check = None
        if rendered.check_values:
            values = ", ".join(quote_literal(v) for v in rendered.check_values)
            check = f"CHECK ({name} IN ({values}))"
        return " ".join(parts), check

    def _auto_increment(self, column: Column, type_sql: str, location: str):
        """Returns (type, trailing keywords) for an auto-increment column"""
        canonical = CanonicalType(column.type)
        if self.dialect == DialectType.MYSQL:
            return type_sql, ["AUTO_INCREMENT"]
        if self.dialect == DialectType.POSTGRESQL:
            if canonical == CanonicalType.INTEGER:
                return "SERIAL", []
            if canonical == CanonicalType.BIGINT:
                return "BIGSERIAL", []
            return type_sql, ["GENERATED BY DEFAULT AS IDENTITY"]
        if self.dialect == DialectType.MSSQL:
            return type_sql, ["IDENTITY(1,1)"]
        self._warn(
            "SQLite auto-increment requires a single INTEGER PRIMARY KEY; emitted as a plain column",
            location=location,
        )
        return type_sql, []

    def _foreign_key_clause(self, schema: CanonicalSchema, table: Table, fk: ForeignKey) -> Optional[str]:
        target = schema.get_table(fk.referenced_table)
        if target is None:
            self._warn(
                f"Foreign key to unknown table '{fk.referenced_table}' not emitted",
                location=table.name,
            )
            return None
        referenced = fk.referenced_columns or target.primary_key_columns or ["id"]
        clause = (
            f"FOREIGN KEY ({self._column_list(table.name, fk.columns)}) "
            f"REFERENCES {self._table_ref(target.name)} ({self._column_list(target.name, referenced)})"
        )
        for event, action in (("DELETE", fk.on_delete), ("UPDATE", fk.on_update)):
            action = ReferentialAction(action)
            if action == ReferentialAction.RESTRICT and self.dialect == DialectType.MSSQL:
                action = ReferentialAction.NO_ACTION
            spelled = action.to_sql()
            if spelled:
                clause += f" ON {event} {spelled}"
        if fk.name:
            clause = f"CONSTRAINT {self.traits.quote(fk.name)} {clause}"
        return clause

    def _comment_statements(self, table: Table) -> List[str]:
        if not self.options.include_comments or self.dialect != DialectType.POSTGRESQL:
            return []
        statements = []
        if table.comment:
            statements.append(f"COMMENT ON TABLE {self._table_ref(table.name)} IS {quote_literal(table.comment)};")
        for column in table.columns:
            if column.comment:
                statements.append(
                    f"COMMENT ON COLUMN {self._table_ref(table.name)}.{self._column_ref(table.name, column.name)} "
                    f"IS {quote_literal(column.comment)};"
                )
        return statements

    # CREATE INDEX

    def _create_indexes(self, table: Table) -> List[str]:
        statements = []
        pk = sorted(c.lower() for c in table.primary_key_columns)
        for index in table.indexes:
            if not index.columns or sorted(c.lower() for c in index.columns) == pk:
                continue
            prefix = "uq" if index.unique else "idx"
            raw_name = index.name or f"{prefix}_{table.name}_{'_'.join(index.columns)}"
            name = self._index_names.allocate(self._case(raw_name))

            kind = "UNIQUE " if index.unique else ""
            if index.type in ("fulltext", "spatial") and self.dialect == DialectType.MYSQL:
                kind = f"{index.type.upper()} "
            elif index.type and index.type not in ("btree", "hash"):
                self._degrade(
                    UnsupportedConstructError(
                        f"{index.type} index '{index.name}' emitted as a plain index",
                        construct=index.type,
                        fallback="plain index",
                    ),
                    location=table.name,
                )

            guard = ""
            if self.options.include_if_not_exists and self.dialect in (DialectType.POSTGRESQL, DialectType.SQLITE):
                guard = "IF NOT EXISTS "
            statements.append(
                f"CREATE {kind}INDEX {guard}{self.traits.quote(name)} "
                f"ON {self._table_ref(table.name)} ({self._column_list(table.name, index.columns)});"
            )
        self._report_renames(self._index_names, table.name)
        return statements
