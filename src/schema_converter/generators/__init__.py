"""
Generators Package
Relational DDL and document schema output
"""
from .base import BaseGenerator, GeneratorResult
from .relational import RelationalGenerator
from .document import (
    DocumentCollection,
    DocumentField,
    DocumentGenerator,
    DocumentIndex,
    DocumentSchema,
    build_validator,
)
from .report import generate_conversion_report

__all__ = [
    "BaseGenerator",
    "GeneratorResult",
    "RelationalGenerator",
    "DocumentCollection",
    "DocumentField",
    "DocumentGenerator",
    "DocumentIndex",
    "DocumentSchema",
    "build_validator",
    "generate_conversion_report",
]
