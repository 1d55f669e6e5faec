"""
Schema Converter System
=======================

Converts database schemas between the relational and document paradigms
through a single canonical model.

Features:
- SQL DDL extraction (MySQL, PostgreSQL, SQLite, SQL Server)
- Document schema and sample-record extraction
- AI-assisted extraction of free-form descriptions via AWS Bedrock Claude
- Relationship inference (one-to-one, one-to-many, many-to-many)
- Embed-vs-reference planning for document output
- Normalization of embedded structures for relational output
- Dialect-aware DDL generation and document schemas with validators

Quick Start:
------------

    from schema_converter import create_pipeline, TargetFormat

    pipeline = create_pipeline(dialect="postgresql")

    result = pipeline.convert(ddl_text, target=TargetFormat.DOCUMENT)
    print(result.text)
    print(result.metadata["report"])

Going the other way:
--------------------

    result = pipeline.convert(
        [{"name": "Ada", "address": {"city": "London"}}],
        target=TargetFormat.RELATIONAL,
        options={"normalizationDepth": 1},
    )
    print(result.output)
"""

__version__ = "1.0.0"
__author__ = "Schema Converter Team"

# Configuration
from .config import (
    DialectType,
    TargetFormat,
    LLMProvider,
    LogLevel,
    ConversionOptions,
    AnalyzerConfig,
    LLMConfig,
    MetricsConfig,
    SystemConfig,
    get_config,
    set_config,
    reset_config,
)

# Canonical model
from .schemas import (
    CanonicalType,
    TableKind,
    ReferentialAction,
    ConstraintType,
    RelationshipKind,
    SourceKind,
    NOW_SENTINEL,
    Column,
    PrimaryKey,
    ForeignKey,
    Index,
    Constraint,
    Table,
    Endpoint,
    Relationship,
    SchemaMetadata,
    CanonicalSchema,
)

# Extractors
from .extractors import (
    BaseExtractor,
    ExtractorRegistry,
    SqlExtractor,
    DocumentExtractor,
    SampleDataExtractor,
    LLMExtractor,
    CanonicalExtractor,
    create_extractor,
    detect_source_kind,
)

# Validation and analysis
from .validation import SchemaValidator, ValidationReport, validate_schema
from .analysis import (
    RelationshipAnalyzer,
    EmbeddingPlanner,
    EmbeddingPlan,
    EmbeddingStrategy,
    RelationalNormalizer,
    SchemaInsights,
    SchemaInspector,
)

# Generators
from .generators import (
    RelationalGenerator,
    DocumentGenerator,
    DocumentSchema,
    generate_conversion_report,
)

# LLM Client
from .llm_client import (
    BaseLLMClient,
    BedrockClaudeClient,
    LLMResponse,
    create_llm_client,
)

# Orchestration
from .orchestration import (
    ConversionPipeline,
    ConversionResult,
    create_pipeline,
)

# Utilities
from .utils import (
    setup_logging,
    get_logger,
    SchemaConverterError,
    ExtractionError,
    ValidationError,
    UnsupportedConstructError,
    ConfigurationError,
    LLMError,
    WarningCode,
    ConversionWarning,
    get_metrics_collector,
    ConverterMetrics,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "DialectType",
    "TargetFormat",
    "LLMProvider",
    "LogLevel",
    "ConversionOptions",
    "AnalyzerConfig",
    "LLMConfig",
    "MetricsConfig",
    "SystemConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Canonical model
    "CanonicalType",
    "TableKind",
    "ReferentialAction",
    "ConstraintType",
    "RelationshipKind",
    "SourceKind",
    "NOW_SENTINEL",
    "Column",
    "PrimaryKey",
    "ForeignKey",
    "Index",
    "Constraint",
    "Table",
    "Endpoint",
    "Relationship",
    "SchemaMetadata",
    "CanonicalSchema",
    # Extractors
    "BaseExtractor",
    "ExtractorRegistry",
    "SqlExtractor",
    "DocumentExtractor",
    "SampleDataExtractor",
    "LLMExtractor",
    "CanonicalExtractor",
    "create_extractor",
    "detect_source_kind",
    # Validation and analysis
    "SchemaValidator",
    "ValidationReport",
    "validate_schema",
    "RelationshipAnalyzer",
    "EmbeddingPlanner",
    "EmbeddingPlan",
    "EmbeddingStrategy",
    "RelationalNormalizer",
    "SchemaInsights",
    "SchemaInspector",
    # Generators
    "RelationalGenerator",
    "DocumentGenerator",
    "DocumentSchema",
    "generate_conversion_report",
    # LLM Client
    "BaseLLMClient",
    "BedrockClaudeClient",
    "LLMResponse",
    "create_llm_client",
    # Orchestration
    "ConversionPipeline",
    "ConversionResult",
    "create_pipeline",
    # Utilities
    "setup_logging",
    "get_logger",
    "SchemaConverterError",
    "ExtractionError",
    "ValidationError",
    "UnsupportedConstructError",
    "ConfigurationError",
    "LLMError",
    "WarningCode",
    "ConversionWarning",
    "get_metrics_collector",
    "ConverterMetrics",
]
