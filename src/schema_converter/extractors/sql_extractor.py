"""
Relational DDL Extractor

Parses CREATE TABLE / CREATE INDEX / CREATE VIEW / ALTER TABLE ... ADD and
COMMENT ON statements into the canonical model. Statement splitting and
comment stripping are delegated to sqlparse; clause parsing is done here so
that constraints are recognized regardless of the order they appear in.
"""
from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

import sqlparse

from ..config import DialectType
from ..schemas.models import (
    CanonicalSchema,
    CanonicalType,
    Column,
    Constraint,
    ConstraintType,
    ForeignKey,
    Index,
    PrimaryKey,
    ReferentialAction,
    SourceKind,
    Table,
    TableKind,
)
from ..type_mapping import NATIVE_EXACT, normalize_default, normalize_native_type, unquote_literal
from ..utils.errors import ExtractionError, WarningCode
from ..utils.logging import get_logger
from .base import BaseExtractor, register_extractor

logger = get_logger(__name__)

_IDENT = r'(?:`[^`]+`|"[^"]+"|\[[^\]]+\]|[A-Za-z_][\w$]*)'
_QUALIFIED = rf'{_IDENT}(?:\s*\.\s*{_IDENT})*'

_CREATE_TABLE = re.compile(
    rf'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP(?:ORARY)?\s+|UNLOGGED\s+)?'
    rf'TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?({_QUALIFIED})\s*\(',
    re.IGNORECASE | re.DOTALL,
)
_CREATE_INDEX = re.compile(
    rf'^\s*CREATE\s+(UNIQUE\s+)?(?:(CLUSTERED|NONCLUSTERED|FULLTEXT|SPATIAL)\s+)?INDEX\s+'
    rf'(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?({_QUALIFIED})\s+ON\s+(?:ONLY\s+)?({_QUALIFIED})\s*'
    rf'(?:USING\s+(\w+)\s*)?\(',
    re.IGNORECASE | re.DOTALL,
)
_CREATE_VIEW = re.compile(
    rf'^\s*CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:MATERIALIZED|TEMP(?:ORARY)?)\s+)?VIEW\s+'
    rf'(?:IF\s+NOT\s+EXISTS\s+)?({_QUALIFIED})',
    re.IGNORECASE | re.DOTALL,
)
_ALTER_ADD = re.compile(
    rf'^\s*ALTER\s+TABLE\s+(?:ONLY\s+)?(?:IF\s+EXISTS\s+)?({_QUALIFIED})\s+ADD\s+(.*)$',
    re.IGNORECASE | re.DOTALL,
)
_COMMENT_ON = re.compile(
    rf"^\s*COMMENT\s+ON\s+(TABLE|COLUMN)\s+({_QUALIFIED})\s+IS\s+('(?:[^']|'')*')",
    re.IGNORECASE | re.DOTALL,
)
_CONSTRAINT_NAME = re.compile(rf'^CONSTRAINT\s+({_IDENT})\s+(.*)$', re.IGNORECASE | re.DOTALL)
_PRIMARY_KEY = re.compile(r'^PRIMARY\s+KEY\s*(?:CLUSTERED\s+|NONCLUSTERED\s+)?\((.*)\)', re.IGNORECASE | re.DOTALL)
_FOREIGN_KEY = re.compile(
    rf'^FOREIGN\s+KEY\s*(?:{_IDENT}\s*)?\((.*?)\)\s*REFERENCES\s+({_QUALIFIED})\s*(?:\((.*?)\))?(.*)$',
    re.IGNORECASE | re.DOTALL,
)
_UNIQUE = re.compile(rf'^UNIQUE\s*(?:KEY|INDEX)?\s*(?:NONCLUSTERED\s+|CLUSTERED\s+)?({_IDENT})?\s*\((.*)\)', re.IGNORECASE | re.DOTALL)
_CHECK = re.compile(r'^CHECK\s*\((.*)\)\s*$', re.IGNORECASE | re.DOTALL)
_KEY_INDEX = re.compile(
    rf'^(?:(FULLTEXT|SPATIAL)\s+)?(?:KEY|INDEX)\s*({_IDENT})?\s*(?:USING\s+\w+\s*)?\((.*)\)',
    re.IGNORECASE | re.DOTALL,
)
_ON_ACTION = re.compile(
    r'ON\s+(DELETE|UPDATE)\s+(CASCADE|SET\s+NULL|SET\s+DEFAULT|RESTRICT|NO\s+ACTION)',
    re.IGNORECASE,
)
_IN_LIST = re.compile(rf'^\s*\(?\s*({_IDENT})\s+IN\s*\((.*)\)\s*\)?\s*$', re.IGNORECASE | re.DOTALL)
_TABLE_COMMENT = re.compile(r"COMMENT\s*=?\s*('(?:[^']|'')*')", re.IGNORECASE)

_TOKEN = re.compile(
    r"""
      '(?:[^']|'')*'          # string literal
    | `[^`]*`                 # backtick identifier
    | "[^"]*"                 # quoted identifier
    | \[[^\]]*\]              # bracket identifier or array marker
    | [A-Za-z_][\w$]*         # word
    | \d+(?:\.\d+)?           # number
    | ::                      # cast
    | \S                      # anything else
    """,
    re.VERBOSE,
)

_TYPE_CONTINUATIONS = {"PRECISION", "VARYING", "UNSIGNED", "SIGNED", "ZEROFILL"}
_MODIFIER_KEYWORDS = {
    "NOT", "NULL", "PRIMARY", "UNIQUE", "DEFAULT", "AUTO_INCREMENT", "AUTOINCREMENT",
    "IDENTITY", "REFERENCES", "CHECK", "CONSTRAINT", "COMMENT", "COLLATE", "CHARACTER",
    "CHARSET", "ON", "GENERATED", "KEY", "AS",
}
_TABLE_CLAUSE_START = re.compile(
    r'^(CONSTRAINT|PRIMARY\s+KEY|FOREIGN\s+KEY|UNIQUE\b|CHECK\b|(?:FULLTEXT\s+|SPATIAL\s+)?(?:KEY|INDEX)\b)',
    re.IGNORECASE,
)


def unquote_identifier(identifier: str) -> str:
    """Strip backticks, double quotes or brackets from one identifier"""
    identifier = identifier.strip()
    if len(identifier) >= 2 and (
        (identifier[0] == identifier[-1] and identifier[0] in '`"')
        or (identifier[0] == '[' and identifier[-1] == ']')
    ):
        return identifier[1:-1]
    return identifier


def last_name_part(qualified: str) -> str:
    """`db`.`schema`.`table` -> table"""
    parts = re.findall(_IDENT, qualified)
    return unquote_identifier(parts[-1]) if parts else unquote_identifier(qualified)


def find_closing_paren(text: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at ``open_index``; -1 if unbalanced"""
    depth = 0
    quote: Optional[str] = None
    for i in range(open_index, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', '`'):
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split on ``separator`` outside parentheses and quotes"""
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    for ch in text:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', '`'):
            quote = ch
        elif ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def tokenize(text: str) -> List[str]:
    """Tokenize a column clause; parenthesized groups stay single tokens"""
    tokens: List[str] = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        if text[pos] == '(':
            end = find_closing_paren(text, pos)
            if end == -1:
                raise ExtractionError(f"Unbalanced parentheses in: {text.strip()}", source_kind="sql")
            tokens.append(text[pos:end + 1])
            pos = end + 1
            continue
        match = _TOKEN.match(text, pos)
        tokens.append(match.group(0))
        pos = match.end()
    return tokens


def parse_column_list(text: str) -> List[str]:
    """Parse '(a, `b` DESC, c(10))' style column lists"""
    columns = []
    for part in split_top_level(text):
        part = re.sub(r'\s+(ASC|DESC)\s*$', '', part.strip(), flags=re.IGNORECASE)
        part = re.sub(r'\(\s*\d+\s*\)\s*$', '', part).strip()
        if part:
            columns.append(unquote_identifier(part))
    return columns


def is_table_clause(clause: str) -> bool:
    """True for constraint/index clauses, False for column definitions"""
    match = _TABLE_CLAUSE_START.match(clause)
    if not match:
        return False
    if re.match(r'^(?:FULLTEXT\s+|SPATIAL\s+)?(KEY|INDEX)\b', clause, re.IGNORECASE):
        # a column may itself be called "key" or "index"
        tokens = tokenize(clause)
        if len(tokens) > 1 and tokens[1].upper() in NATIVE_EXACT:
            return False
    return True


def detect_dialect(text: str) -> DialectType:
    """Guess the dialect a DDL script was written for"""
    upper = text.upper()
    if "AUTOINCREMENT" in upper and "AUTO_INCREMENT" not in upper:
        return DialectType.SQLITE
    if "AUTO_INCREMENT" in upper or "`" in text or re.search(r'\bENGINE\s*=', upper):
        return DialectType.MYSQL
    if re.search(r'\bIDENTITY\s*\(', upper) or "NVARCHAR" in upper or re.search(r'\[\w+\]', text):
        return DialectType.MSSQL
    return DialectType.POSTGRESQL


@register_extractor(SourceKind.SQL)
class SqlExtractor(BaseExtractor):
    """Extracts the canonical schema from relational DDL text"""

    source_kind = SourceKind.SQL
    extracted_by = "sql_extractor"

    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        if not isinstance(raw_input, str):
            raise ExtractionError("SQL input must be text", source_kind="sql")

        cleaned = sqlparse.format(raw_input, strip_comments=True)
        dialect = hint or detect_dialect(cleaned)
        schema = self._new_schema(dialect=DialectType(dialect).value if dialect else None)

        deferred: List[str] = []
        for statement in sqlparse.split(cleaned):
            statement = statement.strip().rstrip(';').strip()
            if not statement:
                continue

            table_match = _CREATE_TABLE.match(statement)
            if table_match:
                schema.tables.append(self._parse_create_table(statement, table_match))
                continue

            view_match = _CREATE_VIEW.match(statement)
            if view_match:
                schema.tables.append(Table(name=last_name_part(view_match.group(1)), kind=TableKind.VIEW))
                continue

            # indexes, ALTERs and comments may reference tables defined later
            deferred.append(statement)

        if not schema.tables:
            raise ExtractionError("No CREATE TABLE statements found", source_kind="sql")

        for statement in deferred:
            self._apply_statement(schema, statement)

        self._resolve_foreign_key_targets(schema)
        return schema

    def _apply_statement(self, schema: CanonicalSchema, statement: str) -> None:
        index_match = _CREATE_INDEX.match(statement)
        if index_match:
            self._parse_create_index(schema, statement, index_match)
            return

        alter_match = _ALTER_ADD.match(statement)
        if alter_match:
            table = self._require_table(schema, last_name_part(alter_match.group(1)), statement)
            if table is not None:
                clause = re.sub(r'^COLUMN\s+', '', alter_match.group(2).strip(), flags=re.IGNORECASE)
                if _TABLE_CLAUSE_START.match(clause):
                    self._parse_table_clause(table, clause)
                else:
                    table.columns.append(self._parse_column(table, clause))
                self._finalize_table(table)
            return

        comment_match = _COMMENT_ON.match(statement)
        if comment_match:
            self._apply_comment(schema, comment_match)
            return

        logger.debug(f"Skipping statement: {statement[:60]}")

    def _require_table(self, schema: CanonicalSchema, name: str, statement: str) -> Optional[Table]:
        table = schema.get_table(name)
        if table is None:
            self._warn(f"Statement references unknown table '{name}'; ignored", location=name)
        return table

    def _parse_create_table(self, statement: str, match: "re.Match") -> Table:
        name = last_name_part(match.group(1))
        open_index = match.end() - 1
        close_index = find_closing_paren(statement, open_index)
        if close_index == -1:
            raise ExtractionError(f"Unbalanced parentheses in CREATE TABLE {name}", source_kind="sql")

        table = Table(name=name)
        body = statement[open_index + 1:close_index]
        for clause in split_top_level(body):
            if is_table_clause(clause):
                self._parse_table_clause(table, clause)
            else:
                table.columns.append(self._parse_column(table, clause))

        options = statement[close_index + 1:]
        comment_match = _TABLE_COMMENT.search(options)
        if comment_match:
            table.comment = unquote_literal(comment_match.group(1))

        self._finalize_table(table)
        return table

    def _parse_column(self, table: Table, clause: str) -> Column:
        tokens = tokenize(clause)
        name = unquote_identifier(tokens[0])
        location = f"{table.name}.{name}"

        # Type: first word plus argument groups and multi-word continuations
        type_text = ""
        i = 1
        while i < len(tokens):
            token = tokens[i]
            upper = token.upper()
            if not type_text:
                if upper in _MODIFIER_KEYWORDS and upper != "CHARACTER":
                    break
                type_text = token
            elif token.startswith('(') or token == '[]':
                type_text += token
            elif upper in _TYPE_CONTINUATIONS:
                type_text += f" {token}"
            elif upper in ("WITH", "WITHOUT") and [t.upper() for t in tokens[i + 1:i + 3]] == ["TIME", "ZONE"]:
                type_text += f" {token} TIME ZONE"
                i += 2
            else:
                break
            i += 1

        mapping = normalize_native_type(type_text)
        if mapping.warning:
            code = WarningCode.UNSUPPORTED_CONSTRUCT if mapping.unsupported else WarningCode.TYPE_MAPPING_FALLBACK
            self._warn(mapping.warning, location=location, code=code)

        column = Column(
            name=name,
            type=mapping.type,
            original_type=type_text or None,
            length=mapping.length,
            precision=mapping.precision,
            scale=mapping.scale,
            enum_values=list(mapping.enum_values),
            auto_increment=mapping.auto_increment,
        )

        while i < len(tokens):
            upper = tokens[i].upper()
            following = tokens[i + 1].upper() if i + 1 < len(tokens) else ""

            if upper == "NOT" and following == "NULL":
                column.nullable = False
                i += 2
            elif upper == "NULL":
                column.nullable = True
                i += 1
            elif upper == "PRIMARY" and following == "KEY":
                if table.primary_key is None:
                    table.primary_key = PrimaryKey(columns=[])
                table.primary_key.columns.append(name)
                column.nullable = False
                i += 2
            elif upper == "UNIQUE":
                column.unique = True
                i += 2 if following == "KEY" else 1
            elif upper == "DEFAULT":
                raw_default, i = self._read_default(tokens, i + 1)
                column.default_value = normalize_default(raw_default)
            elif upper in ("AUTO_INCREMENT", "AUTOINCREMENT"):
                column.auto_increment = True
                i += 1
            elif upper == "IDENTITY":
                column.auto_increment = True
                i += 2 if following.startswith("(") else 1
            elif upper == "GENERATED":
                i = self._read_generated(tokens, i, column, location)
            elif upper == "REFERENCES":
                i = self._read_inline_reference(tokens, i + 1, table, name)
            elif upper == "CHECK" and following.startswith("("):
                table.constraints.append(Constraint(
                    type=ConstraintType.CHECK,
                    definition=tokens[i + 1][1:-1].strip(),
                    columns=[name],
                ))
                i += 2
            elif upper == "COMMENT" and i + 1 < len(tokens):
                column.comment = unquote_literal(tokens[i + 1])
                i += 2
            elif upper in ("COLLATE", "CHARSET") or (upper == "CHARACTER" and following == "SET"):
                i += 3 if upper == "CHARACTER" else 2
            elif upper == "ON" and following == "UPDATE":
                # MySQL ON UPDATE CURRENT_TIMESTAMP has no cross-model analogue
                _, i = self._read_default(tokens, i + 2)
            elif upper == "CONSTRAINT":
                i += 2
            else:
                i += 1

        return column

    def _read_default(self, tokens: List[str], i: int) -> Tuple[str, int]:
        parts: List[str] = []
        if i < len(tokens) and tokens[i] in ("-", "+"):
            parts.append(tokens[i])
            i += 1
        if i < len(tokens):
            parts.append(tokens[i])
            i += 1
        while i < len(tokens) and tokens[i].startswith("("):
            parts.append(tokens[i])
            i += 1
        if i < len(tokens) and tokens[i] == "::":
            parts.append("::")
            i += 1
            while i < len(tokens) and (tokens[i].startswith("(") or tokens[i] == "[]" or (
                    re.match(r'^[A-Za-z_]', tokens[i]) and tokens[i].upper() not in _MODIFIER_KEYWORDS)):
                parts.append(tokens[i] if tokens[i].startswith(("(", "[")) else f" {tokens[i]}")
                i += 1
        return "".join(parts).replace(":: ", "::"), i

    def _read_generated(self, tokens: List[str], i: int, column: Column, location: str) -> int:
        """GENERATED {ALWAYS|BY DEFAULT} AS IDENTITY or AS (expr) STORED"""
        j = i + 1
        while j < len(tokens) and tokens[j].upper() != "AS":
            j += 1
        if j + 1 < len(tokens) and tokens[j + 1].upper() == "IDENTITY":
            column.auto_increment = True
            j += 2
            if j < len(tokens) and tokens[j].startswith("("):
                j += 1
            return j
        self._warn(
            "Generated column expression is not carried over",
            location=location,
            code=WarningCode.UNSUPPORTED_CONSTRUCT,
        )
        j += 2
        if j < len(tokens) and tokens[j].upper() in ("STORED", "VIRTUAL", "PERSISTED"):
            j += 1
        return j

    def _read_inline_reference(self, tokens: List[str], i: int, table: Table, column_name: str) -> int:
        referenced_table = last_name_part(tokens[i]) if i < len(tokens) else ""
        i += 1
        # schema-qualified reference: schema . table
        while i + 1 < len(tokens) and tokens[i] == ".":
            referenced_table = last_name_part(tokens[i + 1])
            i += 2
        referenced_columns: List[str] = []
        if i < len(tokens) and tokens[i].startswith("("):
            referenced_columns = parse_column_list(tokens[i][1:-1])
            i += 1

        actions = " ".join(tokens[i:i + 8])
        foreign_key = ForeignKey(
            columns=[column_name],
            referenced_table=referenced_table,
            referenced_columns=referenced_columns,
        )
        self._apply_actions(foreign_key, actions, f"{table.name}.{column_name}")
        while i + 2 < len(tokens) and tokens[i].upper() == "ON" and tokens[i + 1].upper() in ("DELETE", "UPDATE"):
            i += 3
            if i < len(tokens) and tokens[i - 1].upper() in ("SET", "NO"):
                i += 1
        table.foreign_keys.append(foreign_key)
        return i

    def _apply_actions(self, foreign_key: ForeignKey, text: str, location: str) -> None:
        for event, action in _ON_ACTION.findall(text):
            parsed = ReferentialAction.parse(" ".join(action.split()))
            if parsed == ReferentialAction.UNSPECIFIED:
                self._warn(
                    f"Referential action '{action}' is not supported; left unspecified",
                    location=location,
                    code=WarningCode.UNSUPPORTED_CONSTRUCT,
                )
            if event.upper() == "DELETE":
                foreign_key.on_delete = parsed
            else:
                foreign_key.on_update = parsed

    def _parse_table_clause(self, table: Table, clause: str) -> None:
        name: Optional[str] = None
        named = _CONSTRAINT_NAME.match(clause)
        if named:
            name = unquote_identifier(named.group(1))
            clause = named.group(2).strip()

        match = _PRIMARY_KEY.match(clause)
        if match:
            table.primary_key = PrimaryKey(columns=parse_column_list(match.group(1)), name=name)
            return

        match = _FOREIGN_KEY.match(clause)
        if match:
            foreign_key = ForeignKey(
                name=name,
                columns=parse_column_list(match.group(1)),
                referenced_table=last_name_part(match.group(2)),
                referenced_columns=parse_column_list(match.group(3)) if match.group(3) else [],
            )
            self._apply_actions(foreign_key, match.group(4) or "", table.name)
            table.foreign_keys.append(foreign_key)
            return

        match = _UNIQUE.match(clause)
        if match:
            columns = parse_column_list(match.group(2))
            if match.group(1) and not name:
                name = unquote_identifier(match.group(1))
            column = table.get_column(columns[0]) if len(columns) == 1 else None
            if column is not None:
                column.unique = True
            else:
                table.constraints.append(Constraint(type=ConstraintType.UNIQUE, columns=columns, name=name))
            return

        match = _CHECK.match(clause)
        if match:
            definition = match.group(1).strip()
            columns = [c.name for c in table.columns
                       if re.search(rf'(?<![\w$]){re.escape(c.name)}(?![\w$])', definition)]
            table.constraints.append(Constraint(
                type=ConstraintType.CHECK, definition=definition, columns=columns, name=name,
            ))
            return

        match = _KEY_INDEX.match(clause)
        if match:
            index_type = match.group(1).lower() if match.group(1) else None
            columns = parse_column_list(match.group(3))
            index_name = unquote_identifier(match.group(2)) if match.group(2) else f"idx_{table.name}_{'_'.join(columns)}"
            if index_type:
                self._warn(
                    f"{index_type.upper()} index '{index_name}' kept as a plain index",
                    location=table.name,
                    code=WarningCode.UNSUPPORTED_CONSTRUCT,
                )
            table.indexes.append(Index(name=index_name, columns=columns, type=index_type))
            return

        self._warn(f"Unrecognized table clause: {clause[:60]}", location=table.name)

    def _parse_create_index(self, schema: CanonicalSchema, statement: str, match: "re.Match") -> None:
        table = self._require_table(schema, last_name_part(match.group(4)), statement)
        if table is None:
            return
        close_index = find_closing_paren(statement, match.end() - 1)
        if close_index == -1:
            raise ExtractionError("Unbalanced parentheses in CREATE INDEX", source_kind="sql")
        index_kind = (match.group(2) or "").lower()
        index_type = match.group(5).lower() if match.group(5) else None
        if index_kind in ("fulltext", "spatial"):
            index_type = index_kind
            self._warn(
                f"{index_kind.upper()} index kept as a plain index",
                location=table.name,
                code=WarningCode.UNSUPPORTED_CONSTRUCT,
            )
        table.indexes.append(Index(
            name=last_name_part(match.group(3)),
            columns=parse_column_list(statement[match.end():close_index]),
            unique=bool(match.group(1)),
            type=index_type,
        ))

    def _apply_comment(self, schema: CanonicalSchema, match: "re.Match") -> None:
        target = match.group(1).upper()
        parts = [unquote_identifier(p) for p in re.findall(_IDENT, match.group(2))]
        text = unquote_literal(match.group(3))
        if target == "TABLE":
            table = schema.get_table(parts[-1])
            if table:
                table.comment = text
        elif len(parts) >= 2:
            table = schema.get_table(parts[-2])
            column = table.get_column(parts[-1]) if table else None
            if column:
                column.comment = text

    def _finalize_table(self, table: Table) -> None:
        """Apply cross-clause effects once every clause has been read"""
        for column_name in table.primary_key_columns:
            column = table.get_column(column_name)
            if column is not None:
                column.nullable = False

        # CHECK (col IN ('a', 'b')) over a string column is an enumeration
        remaining = []
        for constraint in table.constraints:
            if constraint.type == ConstraintType.CHECK and self._absorb_enum_check(table, constraint):
                continue
            remaining.append(constraint)
        table.constraints = remaining

    def _absorb_enum_check(self, table: Table, constraint: Constraint) -> bool:
        match = _IN_LIST.match(constraint.definition)
        if not match:
            return False
        column = table.get_column(unquote_identifier(match.group(1)))
        if column is None or column.type not in (CanonicalType.STRING, CanonicalType.ENUM):
            return False
        values = [v.strip() for v in split_top_level(match.group(2))]
        if not values or not all(len(v) >= 2 and v[0] == v[-1] == "'" for v in values):
            return False
        column.type = CanonicalType.ENUM
        column.enum_values = [unquote_literal(v) for v in values]
        return True

    def _resolve_foreign_key_targets(self, schema: CanonicalSchema) -> None:
        """Fill in omitted referenced columns with the target's primary key"""
        for table in schema.tables:
            for foreign_key in table.foreign_keys:
                if foreign_key.referenced_columns:
                    continue
                target = schema.get_table(foreign_key.referenced_table)
                if target is not None and target.primary_key_columns:
                    foreign_key.referenced_columns = list(target.primary_key_columns)
                else:
                    foreign_key.referenced_columns = ["id"]
