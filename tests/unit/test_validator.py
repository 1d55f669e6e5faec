"""
Unit Tests for the Schema Validator
"""
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from schema_converter.schemas import (
    CanonicalSchema,
    CanonicalType,
    Column,
    Endpoint,
    ForeignKey,
    PrimaryKey,
    Relationship,
    RelationshipKind,
    Table,
    TableKind,
)
from schema_converter.utils import ValidationError, WarningCode
from schema_converter.validation import SchemaValidator, validate_schema


def make_table(name, columns=("id",), pk=("id",), foreign_keys=None, kind=TableKind.TABLE):
    return Table(
        name=name,
        kind=kind,
        columns=[Column(name=c, type=CanonicalType.INTEGER) for c in columns],
        primary_key=PrimaryKey(columns=list(pk)) if pk else None,
        foreign_keys=list(foreign_keys or []),
    )


def rules(report, severity="error"):
    issues = report.errors if severity == "error" else report.warnings
    return [issue.rule for issue in issues]


class TestFatalRules:
    """Rules that abort the conversion"""

    def test_valid_schema(self):
        schema = CanonicalSchema(tables=[make_table("users")])
        report = SchemaValidator().validate(schema)
        assert report.is_valid
        assert not report.has_warnings

    def test_empty_table_name(self):
        schema = CanonicalSchema(tables=[make_table("  ")])
        assert rules(SchemaValidator().validate(schema)) == ["table_name"]

    def test_duplicate_table_names_ignore_case(self):
        schema = CanonicalSchema(tables=[make_table("users"), make_table("Users")])
        assert rules(SchemaValidator().validate(schema)) == ["table_unique"]

    def test_column_without_name(self):
        table = make_table("users")
        table.columns.append(Column(name="", type=CanonicalType.STRING))
        assert rules(SchemaValidator().validate(CanonicalSchema(tables=[table]))) == ["column_name"]

    def test_column_with_unknown_type(self):
        schema = CanonicalSchema.from_dict({
            "tables": [{"name": "t", "columns": [{"name": "a", "type": "varchar2"}], "primaryKey": ["a"]}],
        })
        report = SchemaValidator().validate(schema)
        assert rules(report) == ["column_type"]
        assert "varchar2" in report.errors[0].message
        assert report.errors[0].location == "t.a"

    def test_nested_fields_are_checked(self):
        table = make_table("users")
        table.columns.append(Column(name="address", type=CanonicalType.JSON, fields=[Column(name="", type=None)]))
        assert "column_name" in rules(SchemaValidator().validate(CanonicalSchema(tables=[table])))

    def test_relationship_endpoint(self):
        schema = CanonicalSchema(
            tables=[make_table("users")],
            relationships=[Relationship(
                id="rel_1",
                kind=RelationshipKind.ONE_TO_MANY,
                from_=Endpoint("posts", ["user_id"]),
                to=Endpoint("users", ["id"]),
            )],
        )
        assert rules(SchemaValidator().validate(schema)) == ["relationship_endpoint"]

    def test_junction_must_have_two_foreign_keys(self):
        junction = make_table(
            "student_courses",
            columns=("student_id", "course_id"),
            pk=("student_id", "course_id"),
            foreign_keys=[ForeignKey(columns=["student_id"], referenced_table="students", referenced_columns=["id"])],
        )
        schema = CanonicalSchema(
            tables=[make_table("students"), make_table("courses"), junction],
            relationships=[Relationship(
                id="rel_1",
                kind=RelationshipKind.MANY_TO_MANY,
                from_=Endpoint("students", ["id"]),
                to=Endpoint("courses", ["id"]),
                junction_table="student_courses",
            )],
        )
        assert rules(SchemaValidator().validate(schema)) == ["junction_foreign_keys"]

        schema.relationships[0].junction_table = "missing"
        assert rules(SchemaValidator().validate(schema)) == ["junction_table"]

    def test_validate_or_raise(self):
        schema = CanonicalSchema(tables=[make_table("users"), make_table("users")])
        with pytest.raises(ValidationError) as exc_info:
            SchemaValidator().validate_or_raise(schema)
        assert exc_info.value.failed_rules == ["table_unique"]
        assert "Duplicate table name" in exc_info.value.message

    def test_validate_schema_without_raising(self):
        schema = CanonicalSchema(tables=[make_table("users"), make_table("users")])
        report = validate_schema(schema, raise_on_error=False)
        assert not report.is_valid


class TestWarningRules:
    """Rules reported as warnings"""

    def test_missing_primary_key(self):
        schema = CanonicalSchema(tables=[make_table("logs", pk=None)])
        report = SchemaValidator().validate(schema)
        assert report.is_valid
        assert rules(report, "warning") == ["primary_key_missing"]

    def test_collections_and_views_may_lack_keys(self):
        schema = CanonicalSchema(tables=[
            make_table("events", pk=None, kind=TableKind.COLLECTION),
            Table(name="active_users", kind=TableKind.VIEW),
        ])
        assert not SchemaValidator().validate(schema).has_warnings

    def test_empty_table(self):
        schema = CanonicalSchema(tables=[Table(name="empty")])
        assert rules(SchemaValidator().validate(schema), "warning") == ["table_empty"]

    def test_foreign_key_checks(self):
        posts = make_table(
            "posts",
            columns=("id", "user_id"),
            foreign_keys=[
                ForeignKey(columns=["author_id"], referenced_table="users", referenced_columns=["id"]),
                ForeignKey(columns=["user_id"], referenced_table="accounts", referenced_columns=["id"]),
                ForeignKey(columns=["user_id"], referenced_table="users", referenced_columns=["uid"]),
                ForeignKey(columns=["user_id"], referenced_table="users", referenced_columns=["id", "id"]),
            ],
        )
        report = SchemaValidator().validate(CanonicalSchema(tables=[make_table("users"), posts]))
        assert report.is_valid
        assert rules(report, "warning") == [
            "foreign_key_columns",
            "foreign_key_target",
            "foreign_key_referenced_columns",
            "foreign_key_arity",
        ]

    def test_duplicate_columns_and_empty_enum(self):
        table = make_table("users", columns=("id", "ID"))
        table.columns.append(Column(name="status", type=CanonicalType.ENUM))
        report = SchemaValidator().validate(CanonicalSchema(tables=[table]))
        assert rules(report, "warning") == ["column_unique", "enum_values"]

    def test_warnings_become_conversion_warnings(self):
        report = SchemaValidator().validate(CanonicalSchema(tables=[make_table("logs", pk=None)]))
        warnings = report.to_warnings()
        assert warnings[0].code == WarningCode.VALIDATION
        assert warnings[0].location == "logs"
