import pytest

from schemagen.codegen.core.generator import NameCollisionError
from schemagen.codegen.core.schema import (
    EmbeddableType,
    Field,
    FieldKind,
    RecordType,
    SchemaModel,
)
from schemagen.codegen.python.symbols import build_symbol_table


def _record(uid, fields=(), singular="item", plural="items"):
    return RecordType(
        uid=uid,
        singular_name=singular,
        plural_name=plural,
        fields={f.name: f for f in fields},
    )


def _enum(name, values):
    return Field(name=name, kind=FieldKind.ENUMERATION, enum_values=tuple(values))


class TestBuildSymbolTable:
    def test_names_for_entities(self, schema):
        symbols = build_symbol_table(schema)
        assert symbols.name_for("api::article.article") == "Article"
        assert symbols.input_name_for("api::article.article") == "ArticleInput"
        assert symbols.name_for("shared.seo") == "SharedSeo"
        assert symbols.entities["shared.seo"].is_record is False
        assert symbols.entities["api::tag.tag"].is_record is True

    def test_enum_alias(self, schema):
        symbols = build_symbol_table(schema)
        assert symbols.enum_alias("api::article.article", "status") == "ArticleStatus"
        assert symbols.enums["ArticleStatus"] == ("draft", "published")

    def test_unknown_uid_falls_back_to_derived_name(self, schema):
        symbols = build_symbol_table(schema)
        assert symbols.name_for("api::missing.missing") == "Missing"
        assert symbols.input_name_for("api::missing.missing") == "MissingInput"

    def test_declared_names(self, schema):
        names = build_symbol_table(schema).declared_names()
        assert "ArticleStatus" in names
        assert "HomepageInput" in names

    def test_two_entities_with_same_name_collide(self):
        schema = SchemaModel.build(
            [_record("api::article.article"), _record("plugin::blog.article")]
        )
        with pytest.raises(NameCollisionError) as excinfo:
            build_symbol_table(schema)
        assert excinfo.value.name == "Article"

    def test_input_name_collision(self):
        schema = SchemaModel.build(
            [_record("api::article.article"), _record("api::article-input.article-input")]
        )
        with pytest.raises(NameCollisionError) as excinfo:
            build_symbol_table(schema)
        assert excinfo.value.name == "ArticleInput"

    def test_filters_name_collision(self):
        schema = SchemaModel.build(
            [_record("api::article.article"), _record("api::article-filters.article-filters")]
        )
        with pytest.raises(NameCollisionError) as excinfo:
            build_symbol_table(schema)
        assert excinfo.value.name == "ArticleFilters"

    def test_filters_names_for_records_only(self, schema):
        symbols = build_symbol_table(schema)
        assert symbols.filters_name_for("api::article.article") == "ArticleFilters"
        assert symbols.entities["shared.seo"].filters_name is None
        assert "ArticleFilters" in symbols.declared_names()

    def test_same_alias_same_values_is_shared(self):
        schema = SchemaModel.build(
            embeddables=[
                EmbeddableType(
                    uid="shared.link",
                    fields={
                        "target": _enum("target", ["_self", "_blank"]),
                        "TARGET": _enum("TARGET", ["_self", "_blank"]),
                    },
                )
            ]
        )
        symbols = build_symbol_table(schema)
        assert symbols.enum_alias("shared.link", "target") == "SharedLinkTarget"
        assert symbols.enum_alias("shared.link", "TARGET") == "SharedLinkTarget"
        assert symbols.warnings == []


class TestGeneratedNameConflicts:
    @pytest.mark.parametrize(
        "uid,renamed",
        [
            ("api::media-file.media-file", "MediaFileEntry"),
            ("api::result.result", "ResultEntry"),
            ("api::any.any", "AnyEntry"),
            ("api::pagination.pagination", "PaginationEntry"),
            ("api::login-credentials.login-credentials", "LoginCredentialsEntry"),
        ],
    )
    def test_entity_named_like_generated_declaration_is_renamed(self, uid, renamed):
        symbols = build_symbol_table(SchemaModel.build([_record(uid)]))
        assert symbols.name_for(uid) == renamed
        assert symbols.input_name_for(uid) == f"{renamed}Input"
        assert symbols.filters_name_for(uid) == f"{renamed}Filters"
        assert len(symbols.warnings) == 1
        assert renamed in symbols.warnings[0]

    def test_entity_named_like_client_class_is_renamed(self):
        schema = SchemaModel.build([_record("api::client.client")])
        symbols = build_symbol_table(schema, reserved_names=("Client",))
        assert symbols.name_for("api::client.client") == "ClientEntry"

    def test_client_name_is_free_without_reservation(self):
        schema = SchemaModel.build([_record("api::client.client")])
        assert build_symbol_table(schema).name_for("api::client.client") == "Client"

    def test_derived_filters_name_counts(self):
        # The Media record itself is free, but MediaFilters is generated
        schema = SchemaModel.build([_record("api::media.media")])
        symbols = build_symbol_table(schema)
        assert symbols.name_for("api::media.media") == "MediaEntry"
        assert symbols.filters_name_for("api::media.media") == "MediaEntryFilters"

    def test_input_enum_field_does_not_clash_with_input_declaration(self):
        schema = SchemaModel.build(
            [_record("api::article.article", [_enum("input", ["text", "voice"])])]
        )
        symbols = build_symbol_table(schema)
        assert symbols.input_name_for("api::article.article") == "ArticleInput"
        assert symbols.enum_alias("api::article.article", "input") == "ArticleInputEnum"
        assert symbols.enums["ArticleInputEnum"] == ("text", "voice")
        assert any("ArticleInputEnum" in w for w in symbols.warnings)

    def test_filters_enum_field_is_suffixed(self):
        schema = SchemaModel.build(
            [_record("api::article.article", [_enum("filters", ["a"])])]
        )
        symbols = build_symbol_table(schema)
        assert symbols.enum_alias("api::article.article", "filters") == "ArticleFiltersEnum"

    def test_enum_alias_colliding_with_entity_is_suffixed(self):
        # "Article" + "Status" field meets the ArticleStatus record
        schema = SchemaModel.build(
            [
                _record("api::article.article", [_enum("status", ["a"])]),
                _record("api::article-status.article-status"),
            ]
        )
        symbols = build_symbol_table(schema)
        assert symbols.name_for("api::article-status.article-status") == "ArticleStatus"
        assert symbols.enum_alias("api::article.article", "status") == "ArticleStatusEnum"

    def test_same_alias_different_values_is_numbered(self):
        schema = SchemaModel.build(
            embeddables=[
                EmbeddableType(
                    uid="shared.link",
                    fields={
                        "target": _enum("target", ["_self"]),
                        "TARGET": _enum("TARGET", ["_blank"]),
                    },
                )
            ]
        )
        symbols = build_symbol_table(schema)
        aliases = {
            symbols.enum_alias("shared.link", "target"),
            symbols.enum_alias("shared.link", "TARGET"),
        }
        assert aliases == {"SharedLinkTarget", "SharedLinkTargetEnum"}
