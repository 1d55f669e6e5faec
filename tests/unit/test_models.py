"""
Unit Tests for the Canonical Schema Model
"""
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from schema_converter.schemas import (
    NOW_SENTINEL,
    CanonicalSchema,
    CanonicalType,
    Column,
    Constraint,
    ConstraintType,
    ForeignKey,
    Index,
    PrimaryKey,
    ReferentialAction,
    Relationship,
    RelationshipKind,
    Endpoint,
    SourceKind,
    Table,
    TableKind,
)


@pytest.fixture
def blog_schema():
    users = Table(
        name="users",
        columns=[
            Column(name="id", type=CanonicalType.INTEGER, nullable=False, auto_increment=True),
            Column(name="email", type=CanonicalType.STRING, nullable=False, unique=True, length=255),
            Column(name="created_at", type=CanonicalType.TIMESTAMP, default_value=NOW_SENTINEL),
        ],
        primary_key=PrimaryKey(columns=["id"]),
    )
    posts = Table(
        name="posts",
        columns=[
            Column(name="id", type=CanonicalType.INTEGER, nullable=False, auto_increment=True),
            Column(name="user_id", type=CanonicalType.INTEGER, nullable=False),
            Column(name="status", type=CanonicalType.ENUM, enum_values=["draft", "published"]),
        ],
        primary_key=PrimaryKey(columns=["id"]),
        foreign_keys=[ForeignKey(
            columns=["user_id"],
            referenced_table="users",
            referenced_columns=["id"],
            on_delete=ReferentialAction.CASCADE,
        )],
        indexes=[Index(name="idx_posts_status", columns=["status"])],
        constraints=[Constraint(type=ConstraintType.UNIQUE, columns=["user_id", "status"], name="uq_posts")],
    )
    return CanonicalSchema(tables=[users, posts])


class TestReferentialAction:
    """Tests for referential action parsing"""

    def test_parse_sql_spellings(self):
        """SQL spellings map onto the enumeration"""
        assert ReferentialAction.parse("CASCADE") == ReferentialAction.CASCADE
        assert ReferentialAction.parse("SET NULL") == ReferentialAction.SET_NULL
        assert ReferentialAction.parse("no action") == ReferentialAction.NO_ACTION
        assert ReferentialAction.parse("set_null") == ReferentialAction.SET_NULL

    def test_unknown_is_unspecified(self):
        """Unknown or empty actions are unspecified"""
        assert ReferentialAction.parse("SET DEFAULT") == ReferentialAction.UNSPECIFIED
        assert ReferentialAction.parse(None) == ReferentialAction.UNSPECIFIED

    def test_to_sql(self):
        """Actions spell back as SQL keywords"""
        assert ReferentialAction.SET_NULL.to_sql() == "SET NULL"
        assert ReferentialAction.UNSPECIFIED.to_sql() is None


class TestTable:
    """Tests for Table helpers"""

    def test_get_column_is_case_insensitive(self, blog_schema):
        """Column lookup ignores case"""
        users = blog_schema.get_table("USERS")
        assert users is not None
        assert users.get_column("EMAIL").name == "email"
        assert users.has_column("created_at")
        assert not users.has_column("missing")

    def test_key_helpers(self, blog_schema):
        """Primary and foreign key helpers"""
        posts = blog_schema.get_table("posts")
        assert posts.primary_key_columns == ["id"]
        assert posts.is_primary_key_column("ID")
        assert posts.foreign_key_columns() == ["user_id"]

    def test_unique_column_sets(self, blog_schema):
        """Unique indexes and unique constraints are both reported"""
        posts = blog_schema.get_table("posts")
        posts.indexes.append(Index(name="uq_title", columns=["status"], unique=True))
        assert ["user_id", "status"] in posts.unique_column_sets()
        assert ["status"] in posts.unique_column_sets()

    def test_table_without_primary_key(self):
        """A table without a primary key reports no key columns"""
        table = Table(name="logs", columns=[Column(name="line")])
        assert table.primary_key_columns == []


class TestCanonicalSchemaSerialization:
    """Tests for the boundary-contract dictionary shape"""

    def test_to_dict_uses_camel_case_keys(self, blog_schema):
        """Boundary keys are camelCase"""
        data = blog_schema.to_dict()
        users = data["tables"][0]
        assert users["primaryKey"] == {"columns": ["id"]}
        assert users["columns"][0]["autoIncrement"] is True
        posts = data["tables"][1]
        assert posts["foreignKeys"][0]["referencedTable"] == "users"
        assert posts["foreignKeys"][0]["onDelete"] == "cascade"

    def test_now_sentinel_serialized_as_token(self, blog_schema):
        """The now-at-creation sentinel survives serialization"""
        data = blog_schema.to_dict()
        created = data["tables"][0]["columns"][2]
        assert created["defaultValue"] == "$now"

        restored = CanonicalSchema.from_dict(data)
        assert restored.get_table("users").get_column("created_at").default_value is NOW_SENTINEL

    def test_from_dict_restores_structure(self, blog_schema):
        """from_dict(to_dict()) keeps tables, keys, indexes and constraints"""
        restored = CanonicalSchema.from_dict(blog_schema.to_dict())
        posts = restored.get_table("posts")
        assert posts.get_column("status").type == CanonicalType.ENUM
        assert posts.get_column("status").enum_values == ["draft", "published"]
        assert posts.foreign_keys[0].on_delete == ReferentialAction.CASCADE
        assert posts.indexes[0].name == "idx_posts_status"
        assert posts.constraints[0].type == ConstraintType.UNIQUE
        assert restored.to_dict()["tables"] == blog_schema.to_dict()["tables"]

    def test_from_dict_keeps_unknown_type_for_validation(self):
        """An unknown type string is preserved so the validator can report it"""
        schema = CanonicalSchema.from_dict({
            "tables": [{"name": "t", "columns": [{"name": "a", "type": "varchar2"}]}],
        })
        assert schema.tables[0].columns[0].type == "varchar2"

    def test_primary_key_as_list(self):
        """primaryKey may be given as a bare list"""
        schema = CanonicalSchema.from_dict({
            "tables": [{"name": "t", "columns": [{"name": "a", "type": "integer"}], "primaryKey": ["a"]}],
        })
        assert schema.tables[0].primary_key_columns == ["a"]

    def test_nested_columns_round_trip(self):
        """Document-shaped columns keep their sub-fields"""
        table = Table(
            name="users",
            kind=TableKind.COLLECTION,
            columns=[
                Column(name="address", type=CanonicalType.JSON, fields=[Column(name="city")]),
                Column(name="tags", type=CanonicalType.JSON, is_array=True, item_type=CanonicalType.STRING),
            ],
        )
        restored = CanonicalSchema.from_dict(CanonicalSchema(tables=[table]).to_dict())
        address = restored.tables[0].get_column("address")
        tags = restored.tables[0].get_column("tags")
        assert address.is_nested
        assert address.fields[0].name == "city"
        assert tags.is_array and tags.item_type == CanonicalType.STRING
        assert restored.tables[0].kind == TableKind.COLLECTION

    def test_yaml_and_file_round_trip(self, blog_schema, tmp_path):
        """save/load works for both JSON and YAML files"""
        for filename in ("schema.json", "schema.yaml"):
            path = str(tmp_path / filename)
            blog_schema.save(path)
            loaded = CanonicalSchema.load(path)
            assert [t.name for t in loaded.tables] == ["users", "posts"]
            assert loaded.get_table("posts").foreign_keys[0].referenced_table == "users"


class TestRelationshipModel:
    """Tests for the relationship projection"""

    def test_relationship_to_dict(self):
        """Junction and cascade metadata are carried in the metadata block"""
        rel = Relationship(
            id="rel_1",
            kind=RelationshipKind.MANY_TO_MANY,
            from_=Endpoint("students", ["id"]),
            to=Endpoint("courses", ["id"]),
            junction_table="student_courses",
            cascade=True,
        )
        data = rel.to_dict()
        assert data["kind"] == "many_to_many"
        assert data["metadata"]["junctionTable"] == "student_courses"
        assert data["metadata"]["cascade"] is True
        assert Relationship.from_dict(data).junction_table == "student_courses"

    def test_relationships_for_table(self, blog_schema):
        """Relationships are looked up from either endpoint"""
        blog_schema.relationships = [Relationship(
            id="rel_1",
            kind=RelationshipKind.ONE_TO_MANY,
            from_=Endpoint("posts", ["user_id"]),
            to=Endpoint("users", ["id"]),
        )]
        assert len(blog_schema.get_relationships_for_table("users")) == 1
        assert len(blog_schema.get_relationships_for_table("posts")) == 1
        assert blog_schema.junction_tables() == []

    def test_metadata_source_kind(self):
        """Metadata defaults to the canonical source kind"""
        assert CanonicalSchema().metadata.source_kind == SourceKind.CANONICAL
