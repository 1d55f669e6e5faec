"""
Type normalization between native, canonical and document representations
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

from ..config import DialectType
from ..schemas.models import NOW_SENTINEL, CanonicalType, Column
from ..utils.errors import ConfigurationError
from .tables import (
    AUTO_INCREMENT_TYPES,
    DEFAULT_DECIMAL_PRECISION,
    DEFAULT_DECIMAL_SCALE,
    DEFAULT_STRING_LENGTH,
    DIALECT_TRAITS,
    DIALECT_TYPES,
    DOCUMENT_NOW,
    DOCUMENT_TO_CANONICAL,
    DOCUMENT_TYPES,
    NATIVE_EXACT,
    NATIVE_SUBSTRING_RULES,
    NOW_SPELLINGS,
    NUMERIC_TYPES,
    UNSUPPORTED_NATIVE,
    DialectTraits,
)

_TYPE_PATTERN = re.compile(r'^\s*([A-Za-z_][A-Za-z0-9_ ]*)\s*(?:\((.*)\))?\s*((?:\[\])*)\s*([A-Za-z ]*)$', re.DOTALL)
_MODIFIERS = re.compile(r'\b(UNSIGNED|SIGNED|ZEROFILL)\b', re.IGNORECASE)
_CAST = re.compile(r"^('(?:[^']|'')*'|[\w.+-]+)::[\w\s\[\]()]+$")
_NUMBER = re.compile(r'^[+-]?\d+(\.\d+)?([eE][+-]?\d+)?$')
_BIT_LITERAL = re.compile(r"^[bB]'([01])'$")


@dataclass
class TypeMapping:
    """Outcome of mapping one native type name to the canonical enumeration"""
    type: CanonicalType
    original_type: str
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: List[str] = field(default_factory=list)
    auto_increment: bool = False
    fallback: bool = False
    unsupported: bool = False
    warning: Optional[str] = None


@dataclass
class RenderedType:
    """A canonical type spelled for one relational dialect"""
    sql: str
    check_values: List[str] = field(default_factory=list)
    warning: Optional[str] = None


def resolve_dialect(dialect: Union[str, DialectType]) -> DialectType:
    try:
        return DialectType(dialect)
    except ValueError as e:
        raise ConfigurationError(
            f"Unsupported dialect: {dialect}",
            config_key="dialect",
            original_error=e,
        )


def dialect_traits(dialect: Union[str, DialectType]) -> DialectTraits:
    return DIALECT_TRAITS[resolve_dialect(dialect)]


def split_arguments(args: str) -> List[str]:
    """Split a type argument list on commas outside of quotes"""
    parts: List[str] = []
    current = []
    quote: Optional[str] = None
    i = 0
    while i < len(args):
        ch = args[i]
        if quote:
            current.append(ch)
            if ch == quote:
                # doubled quote is an escaped literal quote
                if i + 1 < len(args) and args[i + 1] == quote:
                    current.append(args[i + 1])
                    i += 1
                else:
                    quote = None
        elif ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif ch == ',':
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    if "".join(current).strip():
        parts.append("".join(current).strip())
    return parts


def unquote_literal(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        quote = value[0]
        return value[1:-1].replace(quote * 2, quote)
    return value


def _int_or_none(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    value = value.strip()
    return int(value) if value.isdigit() else None


def normalize_native_type(native: str) -> TypeMapping:
    """
    Map a native relational type spelling to the canonical enumeration.

    Exact names win, then vendor constructs known to be unsupported, then the
    ordered substring rules. Anything else falls back to string and the
    mapping carries a warning; it never raises.
    """
    original = (native or "").strip()
    cleaned = _MODIFIERS.sub("", original).strip()
    match = _TYPE_PATTERN.match(cleaned)
    if match:
        base = " ".join(match.group(1).upper().split())
        args = match.group(2)
        array_suffix = match.group(3)
        trailing = " ".join(match.group(4).upper().split())
        if trailing and f"{base} {trailing}" in NATIVE_EXACT:
            base = f"{base} {trailing}"
    else:
        base, args, array_suffix = cleaned.upper(), None, ""

    if array_suffix:
        return TypeMapping(
            type=CanonicalType.JSON,
            original_type=original,
            unsupported=True,
            warning=f"Array type '{original}' stored as json",
        )

    arg_list = split_arguments(args) if args else []

    if base in NATIVE_EXACT:
        canonical = NATIVE_EXACT[base]
        mapping = TypeMapping(type=canonical, original_type=original)
    elif base in UNSUPPORTED_NATIVE:
        return TypeMapping(
            type=CanonicalType.STRING,
            original_type=original,
            unsupported=True,
            fallback=True,
            warning=f"Unsupported type '{original}' mapped to string",
        )
    else:
        canonical = None
        for needle, candidate in NATIVE_SUBSTRING_RULES:
            if needle in base:
                canonical = candidate
                break
        if canonical is None:
            return TypeMapping(
                type=CanonicalType.STRING,
                original_type=original,
                fallback=True,
                warning=f"Unrecognized type '{original}' mapped to string",
            )
        mapping = TypeMapping(type=canonical, original_type=original)

    if base in AUTO_INCREMENT_TYPES:
        mapping.auto_increment = True

    if base == "TINYINT" and arg_list == ["1"]:
        mapping.type = CanonicalType.BOOLEAN
    elif mapping.type == CanonicalType.STRING and arg_list:
        if arg_list[0].upper() == "MAX":
            mapping.type = CanonicalType.TEXT
        else:
            mapping.length = _int_or_none(arg_list[0])
    elif mapping.type == CanonicalType.DECIMAL and arg_list:
        mapping.precision = _int_or_none(arg_list[0])
        if len(arg_list) > 1:
            mapping.scale = _int_or_none(arg_list[1])
    elif mapping.type == CanonicalType.ENUM:
        mapping.enum_values = [unquote_literal(v) for v in arg_list]
    elif mapping.type == CanonicalType.BLOB and arg_list and arg_list[0].upper() != "MAX":
        mapping.length = _int_or_none(arg_list[0])

    return mapping


def normalize_document_type(name: str) -> Tuple[CanonicalType, Optional[str]]:
    """Map a document type name to canonical; returns (type, warning)"""
    key = (name or "").strip().lower()
    if key in DOCUMENT_TO_CANONICAL:
        return DOCUMENT_TO_CANONICAL[key], None
    return CanonicalType.STRING, f"Unrecognized document type '{name}' mapped to string"


def to_document_type(canonical: CanonicalType) -> str:
    return DOCUMENT_TYPES[CanonicalType(canonical)]


def render_column_type(column: Column, dialect: Union[str, DialectType]) -> RenderedType:
    """Spell a column's canonical type for a relational dialect"""
    dialect = resolve_dialect(dialect)
    traits = DIALECT_TRAITS[dialect]
    canonical = CanonicalType(column.type)
    template = DIALECT_TYPES[dialect][canonical]

    warning = None
    check_values: List[str] = []
    length = column.length or DEFAULT_STRING_LENGTH

    if canonical == CanonicalType.JSON and not traits.native_json:
        warning = f"{dialect.value} has no JSON type; '{column.name}' stored as text"
    if canonical == CanonicalType.ENUM and not column.enum_values:
        template = DIALECT_TYPES[dialect][CanonicalType.STRING]
        warning = f"Enum column '{column.name}' has no values; rendered as string"
    elif canonical == CanonicalType.ENUM and not traits.native_enum:
        # no native enum: string column plus CHECK (col IN (...))
        check_values = list(column.enum_values)
        longest = max(len(str(v)) for v in column.enum_values)
        length = column.length or max(longest, 50)

    values = ", ".join(quote_literal(v) for v in column.enum_values)
    sql = template.format(
        length=length,
        precision=column.precision or DEFAULT_DECIMAL_PRECISION,
        scale=column.scale if column.scale is not None else DEFAULT_DECIMAL_SCALE,
        values=values,
    )
    return RenderedType(sql=sql, check_values=check_values, warning=warning)


def quote_literal(value: Any) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def normalize_default(raw: Any) -> Any:
    """
    Normalize a default value to its canonical form.

    Vendor "now" spellings collapse to ``NOW_SENTINEL``; TRUE/FALSE become
    booleans; NULL becomes None; quoted literals are unquoted. Everything
    else passes through unchanged.
    """
    if raw is None or isinstance(raw, (bool, int, float)) or raw is NOW_SENTINEL:
        return raw
    value = str(raw).strip()
    # SQL Server wraps defaults in parentheses: ((0)), (getdate())
    while value.startswith("(") and value.endswith(")") and _balanced(value[1:-1]):
        value = value[1:-1].strip()
    # PostgreSQL casts: 'active'::character varying
    cast = _CAST.match(value)
    if cast:
        value = cast.group(1)

    upper = value.upper()
    if upper in NOW_SPELLINGS or re.match(r'^CURRENT_TIMESTAMP\s*\(\s*\d*\s*\)$', upper):
        return NOW_SENTINEL
    if upper == "TRUE":
        return True
    if upper == "FALSE":
        return False
    if upper == "NULL":
        return None
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return unquote_literal(value)
    return value


def _balanced(text: str) -> bool:
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _boolean_default(value: Any) -> Any:
    """Integer and bit spellings of a boolean default as a real bool"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip()
        bit = _BIT_LITERAL.match(text)
        if bit:
            text = bit.group(1)
        if text in ("0", "1"):
            return text == "1"
        if text.upper() in ("TRUE", "FALSE"):
            return text.upper() == "TRUE"
    return value


def render_default(value: Any, column_type: CanonicalType, dialect: Union[str, DialectType]) -> Optional[str]:
    """Spell a canonical default for a dialect; None means no DEFAULT clause"""
    if value is None:
        return None
    traits = dialect_traits(dialect)
    if value is NOW_SENTINEL:
        return traits.now
    canonical = CanonicalType(column_type)
    if canonical == CanonicalType.BOOLEAN:
        value = _boolean_default(value)
    if isinstance(value, bool):
        return traits.true_literal if value else traits.false_literal
    if isinstance(value, (int, float)):
        return str(value)

    text = str(value)
    if canonical in NUMERIC_TYPES and _NUMBER.match(text):
        return text
    if canonical in NUMERIC_TYPES or canonical == CanonicalType.BOOLEAN:
        # expression such as nextval(...); emit untouched
        return text
    return quote_literal(text)


def render_document_default(value: Any, column_type: CanonicalType) -> Any:
    """Default value as it appears in a document schema"""
    if value is NOW_SENTINEL:
        return DOCUMENT_NOW
    canonical = CanonicalType(column_type)
    if canonical == CanonicalType.BOOLEAN:
        return _boolean_default(value)
    if isinstance(value, str) and canonical in NUMERIC_TYPES and _NUMBER.match(value):
        return float(value) if any(c in value for c in ".eE") else int(value)
    return value
