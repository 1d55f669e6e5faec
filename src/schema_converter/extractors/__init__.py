"""
Extractors Package
Turns native schema representations into the canonical model
"""
from .base import (
    BaseExtractor,
    ExtractorRegistry,
    load_structured_input,
    register_extractor,
)

# Import extractors to register them
from .sql_extractor import SqlExtractor
from .document_extractor import DocumentExtractor
from .sample_extractor import SampleDataExtractor
from .llm_extractor import LLMExtractor
from .canonical_extractor import CanonicalExtractor
from .detection import detect_source_kind

from ..schemas.models import SourceKind


def create_extractor(source_kind: SourceKind, **kwargs) -> BaseExtractor:
    """
    Factory function to create an extractor for a source kind

    Args:
        source_kind: Kind of raw input
        **kwargs: Extractor-specific arguments (llm_client, collection_name ...)

    Returns:
        New extractor instance

    Raises:
        ExtractionError: If no extractor handles the source kind
    """
    return ExtractorRegistry.create_extractor(source_kind, **kwargs)


def get_supported_source_kinds() -> list:
    """Get list of supported source kinds"""
    return ExtractorRegistry.get_supported_kinds()


__all__ = [
    # Base classes
    "BaseExtractor",
    "ExtractorRegistry",
    "load_structured_input",
    "register_extractor",
    # Concrete extractors
    "SqlExtractor",
    "DocumentExtractor",
    "SampleDataExtractor",
    "LLMExtractor",
    "CanonicalExtractor",
    # Helpers
    "detect_source_kind",
    "create_extractor",
    "get_supported_source_kinds",
]
