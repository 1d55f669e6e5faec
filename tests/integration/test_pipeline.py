"""
Integration Tests for the Schema Conversion Pipeline
Tests end-to-end conversions with a mocked LLM client
"""
import json
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from schema_converter import (
    CanonicalSchema,
    ConversionOptions,
    ConversionPipeline,
    MetricsConfig,
    SystemConfig,
    TargetFormat,
    create_pipeline,
    reset_config,
    set_config,
)
from schema_converter.generators import DocumentSchema
from schema_converter.llm_client import BaseLLMClient, LLMResponse
from schema_converter.utils import ConfigurationError, ExtractionError, ValidationError, get_metrics_collector


SHOP_DDL = """
CREATE TABLE users (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    email VARCHAR(255) NOT NULL UNIQUE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE profiles (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    user_id INT NOT NULL UNIQUE,
    bio TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
);

CREATE TABLE orders (
    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
    user_id INT,
    total DECIMAL(10,2) NOT NULL,
    status VARCHAR(20) DEFAULT 'pending',
    placed_at TIMESTAMP,
    notes TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id)
);
"""

BLOG_DOCUMENTS = {"collections": [
    {"name": "users", "fields": [
        {"name": "_id", "type": "objectId"},
        {"name": "email", "type": "string", "required": True, "unique": True},
        {"name": "address", "type": "object", "fields": [
            {"name": "city", "type": "string"},
            {"name": "zip", "type": "string"},
        ]},
        {"name": "tags", "type": "array", "items": "string"},
    ]},
    {"name": "posts", "fields": [
        {"name": "_id", "type": "objectId"},
        {"name": "author", "type": "objectId", "ref": "users", "required": True},
        {"name": "title", "type": "string", "required": True},
    ]},
]}


class MockLLMClient(BaseLLMClient):
    """Mock LLM client for testing"""

    model_id = "mock-model"

    def __init__(self, responses=None):
        self.responses = responses or []
        self.call_count = 0

    def invoke(self, prompt, system_prompt=None, **kwargs):
        """Return mock response"""
        if self.call_count < len(self.responses):
            content = self.responses[self.call_count]
        else:
            content = self.responses[-1] if self.responses else ""

        self.call_count += 1

        return LLMResponse(
            content=content,
            model_id=self.model_id,
            input_tokens=100,
            output_tokens=50,
            latency_ms=100.0,
        )


@pytest.fixture
def pipeline():
    return ConversionPipeline(ConversionOptions())


class TestRelationalToDocument:
    """SQL DDL in, document schema out"""

    def test_convert(self, pipeline):
        result = pipeline.convert(SHOP_DDL)

        assert result.success
        assert isinstance(result.output, DocumentSchema)
        assert [c.name for c in result.output.collections] == ["users", "profiles", "orders"]
        assert result.metadata["source_kind"] == "sql"
        assert result.metadata["target"] == "document"
        assert result.metadata["dialect"] is None
        assert result.metadata["relationship_summary"]["total"] == 2

    def test_embedding_and_references(self, pipeline):
        output = pipeline.convert(SHOP_DDL, target=TargetFormat.DOCUMENT).output

        profiles = output.get_collection("profiles")
        assert profiles.get_field("user").type == "object"

        orders = output.get_collection("orders")
        assert orders.get_field("userId").ref == "users"
        assert orders.field_names() == ["_id", "userId", "total", "status", "placedAt", "notes"]

    def test_report(self, pipeline):
        report = pipeline.convert(SHOP_DDL).metadata["report"]
        assert report.startswith("=== Relational to Document Conversion Report ===")
        assert "Tables: 3 -> Collections: 3" in report
        assert "EMBEDDED one_to_one: profiles.user_id -> users" in report
        assert "REFERENCED one_to_many: orders.user_id -> users" in report

    def test_json_output(self, pipeline):
        data = json.loads(pipeline.convert(SHOP_DDL).text)
        assert data["collections"][0]["name"] == "users"
        assert data["relationships"][0]["strategy"] == "embed"


class TestDocumentToRelational:
    """Document schema in, DDL out"""

    def test_convert(self, pipeline):
        result = pipeline.convert(BLOG_DOCUMENTS)

        assert result.success
        assert result.metadata["source_kind"] == "document"
        assert result.metadata["target"] == "relational"
        assert result.metadata["dialect"] == "mysql"

        sql = result.output
        assert "CREATE TABLE IF NOT EXISTS `users` (" in sql
        assert "CREATE TABLE IF NOT EXISTS `users_address` (" in sql
        assert "CREATE TABLE IF NOT EXISTS `users_tags` (" in sql
        assert "FOREIGN KEY (`author_id`) REFERENCES `users` (`id`) ON DELETE CASCADE" in sql

    def test_normalized_tables_in_schema(self, pipeline):
        schema = pipeline.convert(BLOG_DOCUMENTS, target="relational").schema
        names = [t.name for t in schema.tables]
        assert "users_address" in names
        assert not any(c.is_nested or c.is_array for t in schema.tables for c in t.columns)

    def test_sample_records(self, pipeline):
        records = [
            {"name": "Ada", "address": {"city": "London"}},
            {"name": "Grace", "address": {"city": "Arlington"}},
        ]
        result = pipeline.convert(records, target=TargetFormat.RELATIONAL)
        assert result.metadata["source_kind"] == "sample"
        assert "CREATE TABLE IF NOT EXISTS `records_address` (" in result.output
        assert "REFERENCES `records` (`id`)" in result.output


class TestRoundTrip:
    """Relational -> document -> relational"""

    def test_round_trip_keeps_tables_and_references(self, pipeline):
        documents = pipeline.convert(SHOP_DDL, target="document").output.to_dict()
        result = pipeline.convert(documents, target="relational")

        assert result.success
        assert "CREATE TABLE IF NOT EXISTS `users` (" in result.output
        assert "CREATE TABLE IF NOT EXISTS `orders` (" in result.output
        assert "FOREIGN KEY (`user_id`) REFERENCES `users` (`id`)" in result.output


class TestCrossDialect:
    """Source dialect spellings re-rendered for another target"""

    FLAGS_DDL = "CREATE TABLE users (id INT AUTO_INCREMENT PRIMARY KEY, is_active TINYINT(1) NOT NULL DEFAULT 1);"

    def test_mysql_boolean_default_to_postgresql(self, pipeline):
        result = pipeline.convert(self.FLAGS_DDL, target="relational", options={"dialect": "postgresql"})
        assert '"is_active" BOOLEAN NOT NULL DEFAULT TRUE' in result.output
        assert "DEFAULT 1" not in result.output

    def test_mysql_boolean_default_to_document(self, pipeline):
        field = pipeline.convert(self.FLAGS_DDL, target="document").output.get_collection("users").get_field("isActive")
        assert field.type == "bool"
        assert field.default is True

    def test_check_constraint_follows_renamed_columns(self, pipeline):
        ddl = 'CREATE TABLE "Orders" ("orderId" INTEGER PRIMARY KEY, "unitPrice" NUMERIC(10,2), CHECK ("unitPrice" > 0));'
        sql = pipeline.convert(ddl, target="relational", options={"dialect": "postgresql"}).output
        assert '"unit_price" NUMERIC(10,2)' in sql
        assert 'CHECK ("unit_price" > 0)' in sql
        assert "unitPrice" not in sql


class TestOptions:
    """Per-request options and dialects"""

    def test_camel_case_option_dict(self, pipeline):
        result = pipeline.convert(
            SHOP_DDL,
            target="relational",
            options={"dialect": "postgres", "includeDropStatements": True},
        )
        assert result.metadata["dialect"] == "postgresql"
        assert 'DROP TABLE IF EXISTS "orders";' in result.output
        assert '"id" SERIAL NOT NULL' in result.output

    def test_request_options_do_not_leak(self, pipeline):
        pipeline.convert(SHOP_DDL, target="relational", options={"dialect": "sqlite"})
        result = pipeline.convert(SHOP_DDL, target="relational")
        assert result.metadata["dialect"] == "mysql"

    def test_create_pipeline_overrides(self):
        pipeline = create_pipeline(ConversionOptions(), dialect="mssql")
        result = pipeline.convert(SHOP_DDL, target="relational")
        assert "CREATE TABLE [users] (" in result.output

    def test_defaults_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONVERTER_DIALECT", "sqlite")
        monkeypatch.setenv("CONVERTER_SMALL_TABLE_THRESHOLD", "2")
        reset_config()
        try:
            pipeline = create_pipeline()
            assert pipeline.options.dialect == "sqlite"
            result = pipeline.convert(SHOP_DDL, target="relational")
            assert '"id" INTEGER PRIMARY KEY AUTOINCREMENT' in result.output
        finally:
            reset_config()

    def test_injected_config(self):
        set_config(SystemConfig(conversion=ConversionOptions(dialect="mssql")))
        try:
            assert ConversionPipeline().options.dialect == "mssql"
        finally:
            reset_config()

    def test_timestamps_option(self, pipeline):
        output = pipeline.convert(SHOP_DDL, options={"includeTimestamps": True}).output
        assert output.get_collection("orders").field_names()[-2:] == ["createdAt", "updatedAt"]
        # users already carries created_at
        assert output.get_collection("users").field_names().count("createdAt") == 1


class TestErrorHandling:
    """Fatal errors raise or come back as failed results"""

    INVALID = {"tables": [
        {"name": "users", "columns": [{"name": "id", "type": "integer"}], "primaryKey": ["id"]},
        {"name": "USERS", "columns": [{"name": "id", "type": "integer"}], "primaryKey": ["id"]},
    ]}

    def test_validation_error_raises(self, pipeline):
        with pytest.raises(ValidationError) as exc_info:
            pipeline.convert(self.INVALID)
        assert exc_info.value.failed_rules == ["table_unique"]

    def test_failed_result(self, pipeline):
        get_metrics_collector().reset()
        result = pipeline.convert(self.INVALID, raise_on_error=False)
        assert not result.success
        assert result.output is None
        assert result.errors[0]["error_type"] == "ValidationError"
        assert get_metrics_collector().get_counter(
            "errors_total", {"error_type": "ValidationError", "category": "validation"}
        ) == 1.0

    def test_metrics_disabled_by_config(self):
        set_config(SystemConfig(metrics=MetricsConfig(enabled=False)))
        try:
            get_metrics_collector().reset()
            ConversionPipeline().convert(self.INVALID, raise_on_error=False)
            assert not get_metrics_collector().enabled
            assert get_metrics_collector().get_counter(
                "errors_total", {"error_type": "ValidationError", "category": "validation"}
            ) == 0.0
        finally:
            reset_config()
            get_metrics_collector().enable()

    def test_unknown_source_kind(self, pipeline):
        with pytest.raises(ExtractionError):
            pipeline.convert(SHOP_DDL, source_kind="graphql")

        result = pipeline.convert(SHOP_DDL, source_kind="graphql", raise_on_error=False)
        assert not result.success
        assert result.errors[0]["error_type"] == "ExtractionError"

    def test_unknown_target(self, pipeline):
        with pytest.raises(ConfigurationError):
            pipeline.convert(SHOP_DDL, target="graph")


class TestAnalyze:
    """Analysis without generation"""

    def test_analyze(self, pipeline):
        analysis = pipeline.analyze(SHOP_DDL)
        assert isinstance(analysis.schema, CanonicalSchema)
        assert analysis.summary == {"one_to_one": 1, "one_to_many": 1, "many_to_many": 0, "total": 2}
        assert analysis.junction_tables == []
        assert analysis.to_dict()["relationships"][0]["kind"] == "one_to_one"

    def test_analyze_reports_insights(self, pipeline):
        insights = pipeline.analyze(SHOP_DDL).insights
        assert insights.summary.tables == 3
        assert [(f.table, f.columns) for f in insights.missing_indexes] == [("orders", ["user_id"])]
        assert insights.index_coverage == 50
        assert insights.circular == []

        data = pipeline.analyze(SHOP_DDL).to_dict()["insights"]
        assert data["recommendations"][0]["title"] == "Index foreign key columns"


class TestLLMSource:
    """Free-form descriptions through the mocked model"""

    def test_description_to_ddl(self):
        answer = {"tables": [
            {"name": "books", "columns": [
                {"name": "id", "type": "integer", "nullable": False, "autoIncrement": True},
                {"name": "title", "type": "string", "nullable": False},
            ], "primaryKey": {"columns": ["id"]}},
        ]}
        client = MockLLMClient(["```json\n" + json.dumps(answer) + "\n```"])
        pipeline = ConversionPipeline(ConversionOptions(dialect="sqlite"), llm_client=client)

        result = pipeline.convert("A catalogue of books with titles", source_kind="llm", target="relational")

        assert client.call_count == 1
        assert result.metadata["source_kind"] == "llm"
        assert '"id" INTEGER PRIMARY KEY AUTOINCREMENT' in result.output
