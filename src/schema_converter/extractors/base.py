"""
Base Extractor Module
Defines the extractor contract using the Template Method pattern
"""
from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

import yaml

from ..schemas.models import CanonicalSchema, Column, SchemaMetadata, SourceKind
from ..utils.errors import ConversionWarning, ExtractionError, SchemaConverterError, WarningCode
from ..utils.logging import get_logger
from ..utils.metrics import ConverterMetrics
from ..utils.naming import IdentifierAllocator

logger = get_logger(__name__)


class BaseExtractor(ABC):
    """
    Abstract base class for extractors

    An extractor turns one native representation into a fresh
    ``CanonicalSchema``. Instances hold per-call warnings, so create one per
    conversion rather than sharing it between threads.

    Subclasses implement ``_extract``; ``extract`` wraps it with logging,
    metrics and error normalization.
    """

    source_kind: SourceKind = SourceKind.CANONICAL
    extracted_by: str = "schema_converter"

    def __init__(self):
        self.warnings: List[ConversionWarning] = []

    def extract(self, raw_input: Any, hint: Optional[str] = None) -> CanonicalSchema:
        """
        Extract a canonical schema from raw input

        Args:
            raw_input: Native representation (text, mapping or list of records)
            hint: Optional extractor-specific hint (dialect, collection name ...)

        Returns:
            A new CanonicalSchema with relationships left empty

        Raises:
            ExtractionError: If the input cannot be turned into a schema
        """
        self.warnings = []
        start_time = time.time()
        kind = self.source_kind.value

        logger.info(
            f"Extracting schema from {kind} input",
            extra={"extra_fields": {"source_kind": kind, "hint": hint}}
        )

        try:
            if raw_input is None or (isinstance(raw_input, str) and not raw_input.strip()):
                raise ExtractionError("Input is empty", source_kind=kind)

            schema = self._extract(raw_input, hint)
            schema.relationships = []
            schema.metadata.source_kind = self.source_kind
            schema.metadata.extracted_by = self.extracted_by

            if not schema.tables:
                raise ExtractionError("No tables or collections found in input", source_kind=kind)

        except ExtractionError:
            ConverterMetrics.record_extraction(time.time() - start_time, False, kind)
            raise
        except SchemaConverterError as e:
            ConverterMetrics.record_extraction(time.time() - start_time, False, kind)
            raise ExtractionError(str(e.message), source_kind=kind, original_error=e)
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            ConverterMetrics.record_extraction(time.time() - start_time, False, kind)
            raise ExtractionError(
                f"Could not parse {kind} input: {e}",
                source_kind=kind,
                original_error=e,
            )

        duration = time.time() - start_time
        ConverterMetrics.record_extraction(duration, True, kind)
        logger.info(
            f"Extracted {len(schema.tables)} tables",
            extra={"extra_fields": {
                "source_kind": kind,
                "tables": len(schema.tables),
                "warnings": len(self.warnings),
                "duration_ms": round(duration * 1000, 2),
            }}
        )
        return schema

    @abstractmethod
    def _extract(self, raw_input: Any, hint: Optional[str]) -> CanonicalSchema:
        """Build the schema; raise ExtractionError on malformed input"""
        pass

    def _new_schema(self, **metadata: Any) -> CanonicalSchema:
        return CanonicalSchema(metadata=SchemaMetadata(source_kind=self.source_kind, **metadata))

    def _warn(self, message: str, location: Optional[str] = None,
              code: WarningCode = WarningCode.EXTRACTION) -> None:
        self.warnings.append(ConversionWarning(code=code, message=message, location=location))
        logger.warning(message, extra={"extra_fields": {"location": location, "code": code.value}})

    def _allocate_column_name(self, names: IdentifierAllocator, column: Column, location: str) -> None:
        """Rename ``column`` when its name is already taken in the table"""
        allocated = names.allocate(column.name, sanitize=False)
        if allocated != column.name:
            self._warn(
                f"Field '{column.name}' renamed to '{allocated}' to avoid a name clash",
                location=location,
                code=WarningCode.IDENTIFIER_RENAMED,
            )
            column.name = allocated


def load_structured_input(raw_input: Any, source_kind: str) -> Any:
    """Accept a mapping/list as-is, or parse JSON/YAML text into one"""
    if not isinstance(raw_input, str):
        return raw_input
    text = raw_input.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ExtractionError(
            "Input is neither valid JSON nor valid YAML",
            source_kind=source_kind,
            original_error=e,
        )


ExtractorClass = Type[BaseExtractor]


class ExtractorRegistry:
    """Registry for extractors using Factory pattern"""

    _extractors: Dict[SourceKind, ExtractorClass] = {}
    _lock = threading.Lock()

    @classmethod
    def register(cls, source_kind: SourceKind, extractor_class: ExtractorClass) -> None:
        """Register an extractor class"""
        with cls._lock:
            cls._extractors[SourceKind(source_kind)] = extractor_class

    @classmethod
    def get_extractor_class(cls, source_kind: SourceKind) -> ExtractorClass:
        """Get extractor class for a source kind"""
        with cls._lock:
            try:
                kind = SourceKind(source_kind)
            except ValueError:
                raise ExtractionError(f"Unknown source kind: {source_kind}")
            if kind not in cls._extractors:
                raise ExtractionError(
                    f"No extractor registered for source kind: {kind.value}",
                    source_kind=kind.value,
                )
            return cls._extractors[kind]

    @classmethod
    def create_extractor(cls, source_kind: SourceKind, **kwargs: Any) -> BaseExtractor:
        """Create extractor instance"""
        extractor_class = cls.get_extractor_class(source_kind)
        return extractor_class(**kwargs)

    @classmethod
    def get_supported_kinds(cls) -> List[SourceKind]:
        """Get list of supported source kinds"""
        with cls._lock:
            return list(cls._extractors.keys())

    @classmethod
    def is_supported(cls, source_kind: SourceKind) -> bool:
        with cls._lock:
            try:
                return SourceKind(source_kind) in cls._extractors
            except ValueError:
                return False


def register_extractor(source_kind: SourceKind):
    """Decorator to register an extractor class"""
    def decorator(cls: ExtractorClass) -> ExtractorClass:
        ExtractorRegistry.register(source_kind, cls)
        return cls
    return decorator
