"""
Unit Tests for Schema Extractors
"""
import json
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from schema_converter.extractors import (
    CanonicalExtractor,
    DocumentExtractor,
    ExtractorRegistry,
    SampleDataExtractor,
    SqlExtractor,
    create_extractor,
    detect_source_kind,
    get_supported_source_kinds,
)
from schema_converter.extractors.sql_extractor import detect_dialect, split_top_level, tokenize
from schema_converter.config import DialectType
from schema_converter.schemas import (
    NOW_SENTINEL,
    CanonicalSchema,
    CanonicalType,
    ConstraintType,
    ReferentialAction,
    SourceKind,
    TableKind,
)
from schema_converter.utils import ExtractionError, WarningCode


MYSQL_DDL = """
-- blog schema
CREATE TABLE `users` (
  `id` INT NOT NULL AUTO_INCREMENT,
  `email` VARCHAR(255) NOT NULL UNIQUE,
  `status` VARCHAR(20) DEFAULT 'active',
  `is_admin` TINYINT(1) DEFAULT FALSE,
  `created_at` TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
  PRIMARY KEY (`id`)
) ENGINE=InnoDB;

CREATE TABLE `posts` (
  `id` INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
  `user_id` INT NOT NULL,
  `title` VARCHAR(200) NOT NULL,
  `price` DECIMAL(10,2),
  `state` VARCHAR(10) CHECK (state IN ('draft', 'published')),
  CONSTRAINT `fk_posts_user` FOREIGN KEY (`user_id`) REFERENCES `users` (`id`) ON DELETE CASCADE,
  KEY `idx_posts_title` (`title`)
);

CREATE UNIQUE INDEX uq_posts_title ON posts (title);
"""


@pytest.fixture
def mysql_schema():
    return SqlExtractor().extract(MYSQL_DDL)


class TestSqlHelpers:
    """Tests for DDL parsing helpers"""

    def test_split_top_level_ignores_nested_commas(self):
        parts = split_top_level("a INT, b DECIMAL(10,2), c ENUM('x,y', 'z')")
        assert parts == ["a INT", "b DECIMAL(10,2)", "c ENUM('x,y', 'z')"]

    def test_tokenize_keeps_groups(self):
        assert tokenize("price DECIMAL(10,2) NOT NULL") == ["price", "DECIMAL", "(10,2)", "NOT", "NULL"]

    @pytest.mark.parametrize("ddl,dialect", [
        ("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT)", DialectType.SQLITE),
        ("CREATE TABLE `t` (id INT)", DialectType.MYSQL),
        ("CREATE TABLE t (id INT IDENTITY(1,1))", DialectType.MSSQL),
        ("CREATE TABLE t (id SERIAL PRIMARY KEY)", DialectType.POSTGRESQL),
    ])
    def test_detect_dialect(self, ddl, dialect):
        assert detect_dialect(ddl) == dialect


class TestSqlExtractor:
    """Tests for relational DDL extraction"""

    def test_tables_and_metadata(self, mysql_schema):
        assert [t.name for t in mysql_schema.tables] == ["users", "posts"]
        assert mysql_schema.metadata.source_kind == SourceKind.SQL
        assert mysql_schema.metadata.dialect == "mysql"
        assert mysql_schema.relationships == []

    def test_column_attributes(self, mysql_schema):
        users = mysql_schema.get_table("users")
        id_column = users.get_column("id")
        assert id_column.type == CanonicalType.INTEGER
        assert id_column.auto_increment is True
        assert id_column.nullable is False

        email = users.get_column("email")
        assert email.length == 255
        assert email.unique is True
        assert email.nullable is False

        assert users.primary_key_columns == ["id"]

    def test_defaults_are_normalized(self, mysql_schema):
        users = mysql_schema.get_table("users")
        assert users.get_column("status").default_value == "active"
        assert users.get_column("is_admin").type == CanonicalType.BOOLEAN
        assert users.get_column("is_admin").default_value is False
        assert users.get_column("created_at").default_value is NOW_SENTINEL

    def test_inline_primary_key(self, mysql_schema):
        posts = mysql_schema.get_table("posts")
        assert posts.primary_key_columns == ["id"]

    def test_decimal_precision(self, mysql_schema):
        price = mysql_schema.get_table("posts").get_column("price")
        assert price.type == CanonicalType.DECIMAL
        assert (price.precision, price.scale) == (10, 2)

    def test_enum_check_is_absorbed(self, mysql_schema):
        """CHECK (col IN (...)) on a string column becomes an enumeration"""
        posts = mysql_schema.get_table("posts")
        state = posts.get_column("state")
        assert state.type == CanonicalType.ENUM
        assert state.enum_values == ["draft", "published"]
        assert not [c for c in posts.constraints if c.type == ConstraintType.CHECK]

    def test_named_foreign_key(self, mysql_schema):
        foreign_key = mysql_schema.get_table("posts").foreign_keys[0]
        assert foreign_key.name == "fk_posts_user"
        assert foreign_key.columns == ["user_id"]
        assert foreign_key.referenced_table == "users"
        assert foreign_key.referenced_columns == ["id"]
        assert foreign_key.on_delete == ReferentialAction.CASCADE
        assert foreign_key.on_update == ReferentialAction.UNSPECIFIED

    def test_indexes(self, mysql_schema):
        posts = mysql_schema.get_table("posts")
        by_name = {i.name: i for i in posts.indexes}
        assert by_name["idx_posts_title"].columns == ["title"]
        assert by_name["idx_posts_title"].unique is False
        assert by_name["uq_posts_title"].unique is True

    def test_postgres_types_and_defaults(self):
        schema = SqlExtractor().extract(
            "CREATE TABLE orders ("
            " id SERIAL PRIMARY KEY,"
            " total NUMERIC(12,2) NOT NULL,"
            " placed_at TIMESTAMP WITH TIME ZONE DEFAULT now()"
            ");"
        )
        assert schema.metadata.dialect == "postgresql"
        orders = schema.get_table("orders")
        assert orders.get_column("id").auto_increment is True
        assert orders.get_column("total").precision == 12
        placed_at = orders.get_column("placed_at")
        assert placed_at.type == CanonicalType.TIMESTAMP
        assert placed_at.default_value is NOW_SENTINEL

    def test_mssql_identity_and_brackets(self):
        schema = SqlExtractor().extract(
            "CREATE TABLE [dbo].[accounts] ([id] INT IDENTITY(1,1) PRIMARY KEY, [name] NVARCHAR(50) NOT NULL)"
        )
        assert schema.metadata.dialect == "mssql"
        accounts = schema.get_table("accounts")
        assert accounts.get_column("id").auto_increment is True
        assert accounts.get_column("name").length == 50

    def test_inline_reference_uses_target_primary_key(self):
        """An omitted referenced column list resolves to the target's key"""
        schema = SqlExtractor().extract(
            "CREATE TABLE posts (post_key INTEGER PRIMARY KEY);"
            "CREATE TABLE comments ("
            " id INTEGER PRIMARY KEY,"
            " post_key INTEGER REFERENCES posts ON DELETE SET NULL"
            ");"
        )
        foreign_key = schema.get_table("comments").foreign_keys[0]
        assert foreign_key.referenced_table == "posts"
        assert foreign_key.referenced_columns == ["post_key"]
        assert foreign_key.on_delete == ReferentialAction.SET_NULL

    def test_table_level_unique(self):
        schema = SqlExtractor().extract(
            "CREATE TABLE members ("
            " id INTEGER PRIMARY KEY, email VARCHAR(100), org INTEGER, handle VARCHAR(30),"
            " UNIQUE (email),"
            " CONSTRAINT uq_org_handle UNIQUE (org, handle)"
            ");"
        )
        members = schema.get_table("members")
        assert members.get_column("email").unique is True
        constraint = members.constraints[0]
        assert constraint.type == ConstraintType.UNIQUE
        assert constraint.columns == ["org", "handle"]
        assert constraint.name == "uq_org_handle"

    def test_alter_table_and_comments(self):
        schema = SqlExtractor().extract(
            "CREATE TABLE users (id INTEGER PRIMARY KEY, email VARCHAR(100));"
            "CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER);"
            "ALTER TABLE posts ADD CONSTRAINT fk_user FOREIGN KEY (user_id) REFERENCES users (id);"
            "COMMENT ON COLUMN users.email IS 'Login address';"
        )
        assert schema.get_table("posts").foreign_keys[0].name == "fk_user"
        assert schema.get_table("users").get_column("email").comment == "Login address"

    def test_view_is_kept_as_view(self):
        schema = SqlExtractor().extract(
            "CREATE TABLE users (id INTEGER PRIMARY KEY);"
            "CREATE VIEW active_users AS SELECT id FROM users;"
        )
        assert schema.get_table("active_users").kind == TableKind.VIEW

    def test_unsupported_type_warns(self):
        extractor = SqlExtractor()
        schema = extractor.extract("CREATE TABLE places (id INTEGER PRIMARY KEY, shape GEOMETRY)")
        assert schema.get_table("places").get_column("shape").type == CanonicalType.STRING
        assert extractor.warnings[0].code == WarningCode.UNSUPPORTED_CONSTRUCT
        assert extractor.warnings[0].location == "places.shape"

    def test_no_tables_raises(self):
        with pytest.raises(ExtractionError):
            SqlExtractor().extract("SELECT 1;")

    def test_empty_input_raises(self):
        with pytest.raises(ExtractionError):
            SqlExtractor().extract("   ")


class TestDocumentExtractor:
    """Tests for document schema extraction"""

    @pytest.fixture
    def document_input(self):
        return {"collections": [
            {"name": "users", "fields": [
                {"name": "_id", "type": "objectId"},
                {"name": "email", "type": "string", "required": True, "unique": True},
                {"name": "address", "type": "object", "fields": [{"name": "city", "type": "string"}]},
                {"name": "tags", "type": "array", "items": "string"},
            ]},
            {"name": "posts", "fields": [
                {"name": "_id", "type": "objectId"},
                {"name": "author", "type": "objectId", "ref": "user", "required": True},
                {"name": "editor", "type": "objectId", "ref": "users"},
                {"name": "categories", "type": "array", "items": {"type": "objectId", "ref": "categories"}},
            ], "indexes": [{"fields": {"author": 1}}]},
        ]}

    def test_identifier_becomes_primary_key(self, document_input):
        schema = DocumentExtractor().extract(document_input)
        users = schema.get_table("users")
        assert users.kind == TableKind.COLLECTION
        assert users.primary_key_columns == ["id"]
        assert users.get_column("id").auto_increment is True
        assert not users.has_column("_id")

    def test_field_attributes(self, document_input):
        users = DocumentExtractor().extract(document_input).get_table("users")
        email = users.get_column("email")
        assert email.nullable is False
        assert email.unique is True

        address = users.get_column("address")
        assert address.is_nested
        assert address.fields[0].name == "city"

        tags = users.get_column("tags")
        assert tags.is_array
        assert tags.item_type == CanonicalType.STRING

    def test_references_become_foreign_keys(self, document_input):
        posts = DocumentExtractor().extract(document_input).get_table("posts")
        by_column = {fk.columns[0]: fk for fk in posts.foreign_keys}

        assert by_column["authorId"].referenced_table == "users"
        assert by_column["authorId"].on_delete == ReferentialAction.CASCADE
        assert by_column["editorId"].on_delete == ReferentialAction.SET_NULL
        assert posts.get_column("authorId").type == CanonicalType.INTEGER

    def test_array_of_references(self, document_input):
        categories = DocumentExtractor().extract(document_input).get_table("posts").get_column("categories")
        assert categories.is_array
        assert categories.reference == "categories"
        assert categories.item_type == CanonicalType.INTEGER

    def test_index_uses_renamed_field(self, document_input):
        posts = DocumentExtractor().extract(document_input).get_table("posts")
        assert posts.indexes[0].columns == ["authorId"]

    def test_inferred_field_map(self):
        """A bare field map is read from its structure"""
        schema = DocumentExtractor().extract({
            "profiles": {"email": "string", "age": "int", "bio": {"text": "string"}},
        })
        profiles = schema.get_table("profiles")
        assert profiles.get_column("age").type == CanonicalType.INTEGER
        assert profiles.get_column("bio").is_nested
        assert profiles.primary_key_columns == ["id"]

    def test_json_schema_validator(self):
        schema = DocumentExtractor().extract(json.dumps({
            "orders": {"validator": {"$jsonSchema": {
                "bsonType": "object",
                "required": ["total"],
                "properties": {
                    "total": {"bsonType": "decimal"},
                    "status": {"bsonType": "string", "enum": ["new", "paid"]},
                },
            }}},
        }))
        orders = schema.get_table("orders")
        assert orders.get_column("total").type == CanonicalType.DECIMAL
        assert orders.get_column("total").nullable is False
        assert orders.get_column("status").type == CanonicalType.ENUM
        assert orders.get_column("status").enum_values == ["new", "paid"]

    def test_explicit_field_with_json_schema_properties(self):
        users = DocumentExtractor().extract({"collections": [{"name": "users", "fields": [
            {"name": "address", "type": "object", "required": ["city"], "properties": {
                "city": {"bsonType": "string"},
                "geo": {"bsonType": "object", "properties": {"lat": {"bsonType": "double"}}},
                "zip": "string",
            }},
        ]}]}).get_table("users")
        address = users.get_column("address")
        assert address.nullable is True
        assert [f.name for f in address.fields] == ["city", "geo", "zip"]
        city = address.fields[0]
        assert city.type == CanonicalType.STRING
        assert not city.fields
        assert city.nullable is False
        assert address.fields[1].fields[0].type == CanonicalType.DOUBLE
        assert address.fields[2].type == CanonicalType.STRING

    def test_secondary_id_field_is_kept(self):
        extractor = DocumentExtractor()
        users = extractor.extract({"collections": [{"name": "users", "fields": [
            {"name": "_id", "type": "objectId"},
            {"name": "id", "type": "string"},
            {"name": "email", "type": "string"},
        ]}]}).get_table("users")
        assert [c.name for c in users.columns] == ["id", "id_2", "email"]
        assert users.get_column("id_2").type == CanonicalType.STRING
        assert extractor.warnings[0].code == WarningCode.IDENTIFIER_RENAMED
        assert extractor.warnings[0].location == "users.id"

    def test_unknown_type_warns(self):
        extractor = DocumentExtractor()
        extractor.extract({"collections": [{"name": "spots", "fields": [{"name": "where", "type": "geoPoint"}]}]})
        assert extractor.warnings[0].code == WarningCode.TYPE_MAPPING_FALLBACK

    def test_malformed_input_raises(self):
        with pytest.raises(ExtractionError):
            DocumentExtractor().extract("just a sentence")


class TestSampleDataExtractor:
    """Tests for schema inference from sample records"""

    @pytest.fixture
    def samples(self):
        return [
            {"_id": "507f1f77bcf86cd799439011", "name": "Ada", "age": 36, "score": 1.5,
             "tags": ["math"], "address": {"city": "London"}, "nickname": None, "flag": True},
            {"_id": "507f1f77bcf86cd799439012", "name": "Alan", "age": 41, "score": 2,
             "tags": [], "address": {"city": "Wilmslow", "zip": "SK9"}, "views": 5000000000, "flag": "yes"},
        ]

    def test_collection_name(self, samples):
        assert SampleDataExtractor().extract(samples).tables[0].name == "records"
        assert SampleDataExtractor().extract(samples, hint="people").tables[0].name == "people"
        wrapped = {"collection": "events", "samples": samples}
        assert SampleDataExtractor().extract(wrapped).tables[0].name == "events"

    def test_string_identifier(self, samples):
        table = SampleDataExtractor().extract(samples).tables[0]
        id_column = table.columns[0]
        assert id_column.name == "id"
        assert id_column.type == CanonicalType.STRING
        assert id_column.auto_increment is False
        assert table.primary_key_columns == ["id"]

    def test_field_types(self, samples):
        table = SampleDataExtractor().extract(samples).tables[0]
        assert table.get_column("name").type == CanonicalType.STRING
        assert table.get_column("age").type == CanonicalType.INTEGER
        assert table.get_column("score").type == CanonicalType.DOUBLE
        assert table.get_column("views").type == CanonicalType.BIGINT
        assert table.get_column("tags").is_array
        assert table.get_column("tags").item_type == CanonicalType.STRING

    def test_required_only_when_always_present(self, samples):
        table = SampleDataExtractor().extract(samples).tables[0]
        assert table.get_column("name").nullable is False
        assert table.get_column("views").nullable is True
        address = table.get_column("address")
        assert [f.name for f in address.fields] == ["city", "zip"]
        assert address.fields[0].nullable is False
        assert address.fields[1].nullable is True

    def test_ambiguous_fields_fall_back_with_warning(self, samples):
        extractor = SampleDataExtractor()
        table = extractor.extract(samples).tables[0]
        assert table.get_column("nickname").type == CanonicalType.STRING
        assert table.get_column("flag").type == CanonicalType.STRING
        locations = {w.location for w in extractor.warnings}
        assert locations == {"records.nickname", "records.flag"}
        assert all(w.code == WarningCode.TYPE_MAPPING_FALLBACK for w in extractor.warnings)

    def test_generated_identifier(self):
        table = SampleDataExtractor().extract([{"title": "x"}]).tables[0]
        assert table.columns[0].name == "id"
        assert table.columns[0].auto_increment is True

    def test_secondary_id_field_is_kept(self):
        extractor = SampleDataExtractor()
        table = extractor.extract([
            {"_id": "507f1f77bcf86cd799439011", "id": 7, "name": "Ada"},
            {"_id": "507f1f77bcf86cd799439012", "id": 8, "name": "Alan"},
        ]).tables[0]
        assert [c.name for c in table.columns] == ["id", "id_2", "name"]
        assert table.get_column("id").type == CanonicalType.STRING
        assert table.get_column("id_2").type == CanonicalType.INTEGER
        assert [w.code for w in extractor.warnings] == [WarningCode.IDENTIFIER_RENAMED]

    def test_non_object_records_raise(self):
        with pytest.raises(ExtractionError):
            SampleDataExtractor().extract([1, 2, 3])


class TestCanonicalExtractor:
    """Tests for canonical passthrough"""

    def test_reads_dict(self):
        schema = CanonicalExtractor().extract({
            "tables": [{"name": "t", "columns": [{"name": "id", "type": "integer"}], "primaryKey": ["id"]}],
        })
        assert schema.get_table("t").primary_key_columns == ["id"]
        assert schema.metadata.source_kind == SourceKind.CANONICAL

    def test_copies_schema_instance(self):
        original = CanonicalExtractor().extract({"tables": [{"name": "t", "columns": [{"name": "a", "type": "string"}]}]})
        copy = CanonicalExtractor().extract(original)
        assert copy is not original
        assert copy.tables[0] is not original.tables[0]

    def test_rejects_other_shapes(self):
        with pytest.raises(ExtractionError):
            CanonicalExtractor().extract({"collections": []})


class TestDetectionAndRegistry:
    """Tests for source kind detection and the extractor registry"""

    def test_detect_source_kind(self):
        assert detect_source_kind(MYSQL_DDL) == SourceKind.SQL
        assert detect_source_kind({"tables": []}) == SourceKind.CANONICAL
        assert detect_source_kind(CanonicalSchema()) == SourceKind.CANONICAL
        assert detect_source_kind({"collections": []}) == SourceKind.DOCUMENT
        assert detect_source_kind({"users": {"fields": []}}) == SourceKind.DOCUMENT
        assert detect_source_kind([{"name": "users", "fields": []}]) == SourceKind.DOCUMENT
        assert detect_source_kind([{"name": "Ada"}]) == SourceKind.SAMPLE
        assert detect_source_kind('[{"name": "Ada"}]') == SourceKind.SAMPLE
        assert detect_source_kind("A library has books and members who borrow them.") == SourceKind.LLM

    def test_every_kind_is_registered(self):
        assert set(get_supported_source_kinds()) == set(SourceKind)
        assert ExtractorRegistry.is_supported("sql")
        assert not ExtractorRegistry.is_supported("xml")

    def test_create_extractor(self):
        assert isinstance(create_extractor(SourceKind.SQL), SqlExtractor)
        assert isinstance(create_extractor("sample", collection_name="items"), SampleDataExtractor)

    def test_unknown_kind_raises(self):
        with pytest.raises(ExtractionError):
            create_extractor("xml")
