"""
Orchestration Package for the Schema Converter
Coordinates extraction, analysis and generation
"""
from .pipeline import (
    AnalysisResult,
    ConversionPipeline,
    ConversionResult,
    create_pipeline,
)

__all__ = [
    "AnalysisResult",
    "ConversionPipeline",
    "ConversionResult",
    "create_pipeline",
]
