"""
Source kind auto-detection
"""
from __future__ import annotations

import re
from typing import Any

from ..schemas.models import CanonicalSchema, SourceKind
from ..utils.errors import ExtractionError
from ..utils.logging import get_logger
from .base import load_structured_input

logger = get_logger(__name__)

_DDL_PATTERN = re.compile(r"\b(CREATE|ALTER)\s+(TEMPORARY\s+)?(TABLE|VIEW)\b", re.IGNORECASE)
_COLLECTION_KEYS = ("fields", "schema", "validator")


def _looks_like_collection(value: Any) -> bool:
    return isinstance(value, dict) and any(key in value for key in _COLLECTION_KEYS)


def detect_source_kind(raw_input: Any) -> SourceKind:
    """
    Guess which extractor understands the input

    DDL text is SQL; a ``tables`` list is canonical; ``collections`` or
    collection definitions are a document schema; any other structured data
    is treated as sample records. Text that is neither DDL nor JSON/YAML is
    left to the LLM extractor.
    """
    if isinstance(raw_input, CanonicalSchema):
        return SourceKind.CANONICAL

    if isinstance(raw_input, str):
        if _DDL_PATTERN.search(raw_input):
            return SourceKind.SQL
        try:
            data = load_structured_input(raw_input, "auto")
        except ExtractionError:
            return SourceKind.LLM
        if not isinstance(data, (dict, list)):
            return SourceKind.LLM
    else:
        data = raw_input

    kind = SourceKind.SAMPLE
    if isinstance(data, dict):
        if isinstance(data.get("tables"), list):
            kind = SourceKind.CANONICAL
        elif "collections" in data or str(data.get("type", "")).lower() == "mongodb":
            kind = SourceKind.DOCUMENT
        elif data and all(_looks_like_collection(v) for v in data.values()):
            kind = SourceKind.DOCUMENT
    elif isinstance(data, list) and data:
        if all(_looks_like_collection(item) and "name" in item for item in data):
            kind = SourceKind.DOCUMENT

    logger.debug("Detected source kind", extra={"extra_fields": {"source_kind": kind.value}})
    return kind
