"""
Schema Conversion Pipeline
Coordinates extraction, validation, analysis and generation

Stages:
1. Detect the source kind (unless given) and extract a canonical schema
2. Validate it (fatal rules raise ValidationError)
3. For relational output, normalize embedded structures into tables
4. Recompute relationships
5. Plan embedding (document output) and generate the target
"""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..analysis import (
    EmbeddingPlan,
    EmbeddingPlanner,
    RelationalNormalizer,
    RelationshipAnalyzer,
    SchemaInsights,
    SchemaInspector,
    summarize_relationships,
)
from ..config import AnalyzerConfig, ConversionOptions, TargetFormat, get_config
from ..extractors import create_extractor, detect_source_kind
from ..generators import DocumentGenerator, RelationalGenerator, generate_conversion_report
from ..llm_client import BaseLLMClient
from ..schemas import CanonicalSchema, Relationship, SourceKind
from ..utils import (
    ConfigurationError,
    ConversionWarning,
    ConverterMetrics,
    ExtractionError,
    SchemaConverterError,
    get_logger,
    get_metrics_collector,
    log_context,
    log_operation,
)
from ..validation import SchemaValidator

logger = get_logger(__name__)

# Sources whose natural counterpart is the document target
_RELATIONAL_SOURCES = {SourceKind.SQL, SourceKind.CANONICAL, SourceKind.LLM}


@dataclass
class ConversionResult:
    """Outcome of one conversion request"""
    success: bool
    output: Any = None
    schema: Optional[CanonicalSchema] = None
    relationships: List[Relationship] = field(default_factory=list)
    plan: Optional[EmbeddingPlan] = None
    warnings: List[ConversionWarning] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> Optional[str]:
        if self.output is None or isinstance(self.output, str):
            return self.output
        return self.output.to_json()

    def to_dict(self) -> Dict[str, Any]:
        output = self.output
        if output is not None and not isinstance(output, str):
            output = output.to_dict()
        return {
            "success": self.success,
            "output": output,
            "schema": self.schema.to_dict() if self.schema else None,
            "relationships": [r.to_dict() for r in self.relationships],
            "plan": self.plan.to_dict() if self.plan else None,
            "warnings": [w.to_dict() for w in self.warnings],
            "errors": self.errors,
            "metadata": self.metadata,
        }


@dataclass
class AnalysisResult:
    """Annotated schema returned by ``ConversionPipeline.analyze``"""
    schema: CanonicalSchema
    relationships: List[Relationship]
    summary: Dict[str, int]
    junction_tables: List[str]
    insights: Optional[SchemaInsights] = None
    warnings: List[ConversionWarning] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema.to_dict(),
            "relationships": [r.to_dict() for r in self.relationships],
            "summary": self.summary,
            "junction_tables": self.junction_tables,
            "insights": self.insights.to_dict() if self.insights else None,
            "warnings": [w.to_dict() for w in self.warnings],
        }


class ConversionPipeline:
    """
    Main orchestration pipeline for schema conversion

    Each call builds fresh extractor/analyzer/generator instances, so one
    pipeline may serve concurrent requests.

    Usage:
        pipeline = ConversionPipeline(ConversionOptions(dialect="postgresql"))
        result = pipeline.convert(ddl_text, target=TargetFormat.DOCUMENT)
        print(result.text)
    """

    def __init__(
        self,
        options: Optional[ConversionOptions] = None,
        llm_client: Optional[BaseLLMClient] = None,
    ):
        config = get_config()
        self.options = options or config.conversion
        self.llm_client = llm_client

        collector = get_metrics_collector()
        if config.metrics.enabled:
            collector.enable()
        else:
            collector.disable()

    def _resolve_options(self, options: Union[ConversionOptions, Dict[str, Any], None]) -> ConversionOptions:
        if options is None:
            return self.options
        if isinstance(options, ConversionOptions):
            return options
        merged = self.options.model_dump()
        merged.update(ConversionOptions.model_validate(options).model_dump(exclude_unset=True))
        return ConversionOptions.model_validate(merged)

    def _resolve_target(self, target: Union[TargetFormat, str, None], source_kind: SourceKind) -> TargetFormat:
        if target is None:
            return TargetFormat.DOCUMENT if source_kind in _RELATIONAL_SOURCES else TargetFormat.RELATIONAL
        try:
            return TargetFormat(target)
        except ValueError as e:
            raise ConfigurationError(f"Unsupported target: {target}", config_key="target", original_error=e)

    def _extract(self, raw_input: Any, source_kind: Optional[Union[SourceKind, str]],
                 hint: Optional[str]) -> tuple:
        if source_kind:
            try:
                kind = SourceKind(source_kind)
            except ValueError as e:
                raise ExtractionError(f"Unknown source kind: {source_kind}", original_error=e)
        else:
            kind = detect_source_kind(raw_input)
        kwargs: Dict[str, Any] = {}
        if kind == SourceKind.LLM:
            kwargs["llm_client"] = self.llm_client
        extractor = create_extractor(kind, **kwargs)
        schema = extractor.extract(raw_input, hint)
        return schema, kind, list(extractor.warnings)

    def analyze(self, raw_input: Any, source_kind: Optional[Union[SourceKind, str]] = None,
                hint: Optional[str] = None) -> AnalysisResult:
        """Extract, validate and analyze without generating output"""
        with log_context(request_id=str(uuid.uuid4()), stage="analyze"):
            with log_operation(logger, "analyze") as ctx:
                schema, kind, warnings = self._extract(raw_input, source_kind, hint)
                warnings.extend(SchemaValidator().validate_or_raise(schema).to_warnings())
                analyzer = RelationshipAnalyzer(AnalyzerConfig.from_options(self.options))
                relationships = analyzer.analyze(schema)
                insights = SchemaInspector().inspect(schema, relationships)
                ctx["source_kind"] = kind.value
                ctx["relationships"] = len(relationships)
                ctx["recommendations"] = len(insights.recommendations)

        return AnalysisResult(
            schema=schema,
            relationships=relationships,
            summary=summarize_relationships(relationships),
            junction_tables=schema.junction_tables(),
            insights=insights,
            warnings=warnings,
        )

    def convert(
        self,
        raw_input: Any,
        source_kind: Optional[Union[SourceKind, str]] = None,
        target: Optional[Union[TargetFormat, str]] = None,
        options: Union[ConversionOptions, Dict[str, Any], None] = None,
        hint: Optional[str] = None,
        raise_on_error: bool = True,
    ) -> ConversionResult:
        """
        Convert a schema from one paradigm to the other

        Args:
            raw_input: DDL text, document schema, sample records or canonical schema
            source_kind: Kind of ``raw_input``; detected when omitted
            target: relational or document; defaults to the other paradigm
            options: Per-request options (model or camelCase/snake_case dict)
            hint: Extractor hint, e.g. the source SQL dialect
            raise_on_error: Raise fatal errors instead of returning success=False

        Returns:
            ConversionResult
        """
        opts = self._resolve_options(options)
        request_id = str(uuid.uuid4())
        start_time = time.time()
        warnings: List[ConversionWarning] = []
        schema: Optional[CanonicalSchema] = None
        target_label = "auto"

        with log_context(request_id=request_id, stage="convert"):
            try:
                with log_operation(logger, "convert", request_id=request_id) as ctx:
                    schema, kind, extract_warnings = self._extract(raw_input, source_kind, hint)
                    warnings.extend(extract_warnings)
                    resolved_target = self._resolve_target(target, kind)
                    target_label = resolved_target.value

                    warnings.extend(SchemaValidator().validate_or_raise(schema).to_warnings())

                    if resolved_target == TargetFormat.RELATIONAL and _has_document_structures(schema):
                        normalized = RelationalNormalizer(opts.normalization_depth).normalize(schema)
                        schema = normalized.schema
                        warnings.extend(normalized.warnings)

                    analyzer = RelationshipAnalyzer(AnalyzerConfig.from_options(opts))
                    relationships = analyzer.analyze(schema)

                    plan = None
                    if resolved_target == TargetFormat.DOCUMENT:
                        plan = EmbeddingPlanner.from_options(opts).plan(schema)
                        generated = DocumentGenerator(opts).generate(schema, plan=plan)
                    else:
                        generated = RelationalGenerator(opts).generate(schema)
                    warnings.extend(generated.warnings)

                    ctx.update({
                        "source_kind": kind.value,
                        "target": target_label,
                        "tables": len(schema.tables),
                        "relationships": len(relationships),
                        "warnings": len(warnings),
                    })

            except SchemaConverterError as e:
                ConverterMetrics.record_error(type(e).__name__, e.category.value)
                ConverterMetrics.record_conversion(time.time() - start_time, False, target_label)
                if raise_on_error:
                    raise
                return ConversionResult(
                    success=False,
                    schema=schema,
                    warnings=warnings,
                    errors=[e.to_dict()],
                    metadata={"request_id": request_id, "target": target_label},
                )

        duration = time.time() - start_time
        ConverterMetrics.record_conversion(duration, True, target_label)
        ConverterMetrics.record_warnings(len(warnings), target_label)

        return ConversionResult(
            success=True,
            output=generated.output,
            schema=schema,
            relationships=relationships,
            plan=plan,
            warnings=warnings,
            metadata={
                "request_id": request_id,
                "source_kind": kind.value,
                "target": target_label,
                "dialect": opts.dialect if resolved_target == TargetFormat.RELATIONAL else None,
                "tables": len(schema.tables),
                "relationship_summary": summarize_relationships(relationships),
                "duration_ms": round(duration * 1000, 2),
                "report": generate_conversion_report(schema, generated.output, plan, warnings),
            },
        )


def _has_document_structures(schema: CanonicalSchema) -> bool:
    return any(
        column.is_nested or column.is_array
        for table in schema.tables
        for column in table.columns
    )


def create_pipeline(
    options: Optional[ConversionOptions] = None,
    llm_client: Optional[BaseLLMClient] = None,
    **option_overrides: Any,
) -> ConversionPipeline:
    """
    Create a pipeline with minimal configuration

    Args:
        options: Base conversion options
        llm_client: Client for the LLM extractor (created lazily otherwise)
        **option_overrides: Individual options, e.g. ``dialect="sqlite"``

    Returns:
        Configured ConversionPipeline
    """
    if option_overrides:
        base = (options or get_config().conversion).model_dump()
        base.update(option_overrides)
        options = ConversionOptions.model_validate(base)
    return ConversionPipeline(options=options, llm_client=llm_client)
