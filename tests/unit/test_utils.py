"""
Unit Tests for Naming, Error, Logging and Metrics Utilities
"""
import json
import logging
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from schema_converter.utils import (
    ConversionWarning,
    ConverterMetrics,
    ErrorCategory,
    ExtractionError,
    IdentifierAllocator,
    SchemaConverterError,
    UnsupportedConstructError,
    ValidationError,
    WarningCode,
    format_error_report,
    get_metrics_collector,
    get_request_id,
    log_context,
    pluralize,
    sanitize_identifier,
    singularize,
    to_camel_case,
    to_snake_case,
)
from schema_converter.utils.logging import StructuredFormatter


class TestCaseConversion:
    """Tests for identifier case conversion"""

    @pytest.mark.parametrize("name,expected", [
        ("student_courses", "studentCourses"),
        ("order-items", "orderItems"),
        ("userId", "userId"),
        ("ID", "id"),
        ("Users", "users"),
    ])
    def test_camel_case(self, name, expected):
        assert to_camel_case(name) == expected

    @pytest.mark.parametrize("name,expected", [
        ("authorId", "author_id"),
        ("HTTPServer", "http_server"),
        ("createdAt", "created_at"),
        ("already_snake", "already_snake"),
    ])
    def test_snake_case(self, name, expected):
        assert to_snake_case(name) == expected


class TestInflection:
    """Tests for singular/plural helpers"""

    @pytest.mark.parametrize("plural,singular", [
        ("categories", "category"),
        ("addresses", "address"),
        ("boxes", "box"),
        ("users", "user"),
        ("people", "person"),
        ("statuses", "status"),
        ("status", "status"),
    ])
    def test_singularize(self, plural, singular):
        assert singularize(plural) == singular

    @pytest.mark.parametrize("singular,plural", [
        ("category", "categories"),
        ("key", "keys"),
        ("box", "boxes"),
        ("person", "people"),
        ("Child", "Children"),
    ])
    def test_pluralize(self, singular, plural):
        assert pluralize(singular) == plural


class TestIdentifierAllocator:
    """Tests for collision-free identifier allocation"""

    def test_sanitize(self):
        assert sanitize_identifier("2fa") == "_2fa"
        assert sanitize_identifier("first name") == "first_name"
        assert sanitize_identifier("") == "_"

    def test_case_insensitive_collision(self):
        """Names differing only in case are disambiguated"""
        allocator = IdentifierAllocator()
        assert allocator.allocate("email") == "email"
        assert allocator.allocate("Email") == "Email_2"
        assert allocator.allocate("EMAIL") == "EMAIL_3"
        assert allocator.renamed == [("Email", "Email_2"), ("EMAIL", "EMAIL_3")]

    def test_sanitized_names_are_reported(self):
        allocator = IdentifierAllocator()
        assert allocator.allocate("first name") == "first_name"
        assert allocator.renamed == [("first name", "first_name")]
        assert allocator.resolve("first name") == "first_name"

    def test_reserved_names(self):
        allocator = IdentifierAllocator(reserved=["_id"])
        assert allocator.is_taken("_ID")
        assert allocator.allocate("_id") == "_id_2"


class TestErrors:
    """Tests for the error hierarchy"""

    def test_extraction_error(self):
        error = ExtractionError("bad input", source_kind="sql")
        assert isinstance(error, SchemaConverterError)
        assert error.category == ErrorCategory.EXTRACTION
        assert error.context.source_kind == "sql"
        assert str(error) == "[extraction] bad input"
        assert error.to_dict()["error_type"] == "ExtractionError"

    def test_timeout_category(self):
        error = ExtractionError("slow", category=ErrorCategory.TIMEOUT)
        assert error.category == ErrorCategory.TIMEOUT
        assert any("timed out" in s for s in error.suggestions)

    def test_validation_error_carries_rules(self):
        error = ValidationError("invalid", failed_rules=["table_name"])
        assert error.failed_rules == ["table_name"]
        assert error.recoverable is False

    def test_error_report(self):
        error = ExtractionError("bad input", original_error=ValueError("boom"))
        error.context.table = "users"
        error.context.column = "email"
        report = format_error_report(error)
        assert "Category: extraction" in report
        assert "Location: users.email" in report
        assert "Original Error: boom" in report

    def test_warning_from_error(self):
        """Recoverable errors downgrade to warnings"""
        error = UnsupportedConstructError("no analogue", construct="GEOMETRY", fallback="string")
        warning = ConversionWarning.from_error(error, location="places.shape")
        assert warning.code == WarningCode.UNSUPPORTED_CONSTRUCT
        assert str(warning) == "places.shape: no analogue"
        assert warning.to_dict()["code"] == "unsupported_construct"


class TestLogging:
    """Tests for structured logging context"""

    def test_log_context_is_restored(self):
        with log_context(request_id="outer"):
            with log_context(request_id="inner"):
                assert get_request_id() == "inner"
            assert get_request_id() == "outer"
        assert get_request_id() is None

    def test_structured_formatter_includes_context(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
        record.extra_fields = {"tables": 3}
        with log_context(request_id="req-1", stage="extract"):
            entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["request_id"] == "req-1"
        assert entry["stage"] == "extract"
        assert entry["tables"] == 3


class TestMetrics:
    """Tests for conversion metrics"""

    def setup_method(self):
        get_metrics_collector().reset()

    def test_record_conversion(self):
        ConverterMetrics.record_conversion(0.5, True, "document")
        collector = get_metrics_collector()
        labels = {"target": "document", "success": "true"}
        assert collector.get_counter("conversion_total", labels) == 1.0
        assert "conversion_duration{success=true,target=document}" in collector.get_metrics()["timers"]

    def test_record_error(self):
        ConverterMetrics.record_error("ExtractionError", "extraction")
        ConverterMetrics.record_error("ExtractionError", "extraction")
        labels = {"error_type": "ExtractionError", "category": "extraction"}
        assert get_metrics_collector().get_counter("errors_total", labels) == 2.0

    def test_singleton(self):
        assert get_metrics_collector() is get_metrics_collector()
