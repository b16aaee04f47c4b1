import copy

import pytest

from schemagen.codegen.core.config import GeneratorConfig
from schemagen.codegen.core.schema import (
    convert_extra_types,
    convert_extracted_schema,
    convert_operations,
)

SCHEMA_PAYLOAD = {
    "contentTypes": {
        "api::article.article": {
            "uid": "api::article.article",
            "kind": "collectionType",
            "info": {
                "singularName": "article",
                "pluralName": "articles",
                "displayName": "Article",
            },
            "attributes": {
                "title": {"type": "string", "required": True},
                "body": {"type": "blocks"},
                "status": {"type": "enumeration", "enum": ["draft", "published"]},
                "author": {
                    "type": "relation",
                    "relation": "manyToOne",
                    "target": "api::author.author",
                },
                "tags": {
                    "type": "relation",
                    "relation": "manyToMany",
                    "target": "api::tag.tag",
                },
                "cover": {"type": "media", "multiple": False},
                "gallery": {"type": "media", "multiple": True},
                "seo": {"type": "component", "component": "shared.seo"},
                "sections": {
                    "type": "dynamiczone",
                    "components": ["shared.quote", "shared.media"],
                },
                "secret": {"type": "string", "private": True},
                "createdBy": {
                    "type": "relation",
                    "relation": "oneToOne",
                    "target": "admin::user",
                },
            },
        },
        "api::author.author": {
            "uid": "api::author.author",
            "kind": "collectionType",
            "info": {
                "singularName": "author",
                "pluralName": "authors",
                "displayName": "Author",
            },
            "attributes": {
                "name": {"type": "string", "required": True},
                "articles": {
                    "type": "relation",
                    "relation": "oneToMany",
                    "target": "api::article.article",
                },
            },
        },
        "api::tag.tag": {
            "uid": "api::tag.tag",
            "kind": "collectionType",
            "info": {"singularName": "tag", "pluralName": "tags", "displayName": "Tag"},
            "attributes": {
                "label": {"type": "string", "required": True},
                "class": {"type": "string"},
            },
        },
        "api::homepage.homepage": {
            "uid": "api::homepage.homepage",
            "kind": "singleType",
            "info": {
                "singularName": "homepage",
                "pluralName": "homepages",
                "displayName": "Homepage",
            },
            "attributes": {
                "headline": {"type": "string", "nullable": True},
                "featured": {
                    "type": "relation",
                    "relation": "oneToOne",
                    "target": "api::article.article",
                },
            },
        },
    },
    "components": {
        "shared.seo": {
            "uid": "shared.seo",
            "category": "shared",
            "info": {"displayName": "Seo"},
            "attributes": {
                "metaTitle": {"type": "string", "required": True},
                "metaDescription": {"type": "text"},
            },
        },
        "shared.quote": {
            "uid": "shared.quote",
            "category": "shared",
            "info": {"displayName": "Quote"},
            "attributes": {"text": {"type": "text", "required": True}},
        },
        "shared.media": {
            "uid": "shared.media",
            "category": "shared",
            "info": {"displayName": "Media"},
            "attributes": {"file": {"type": "media"}},
        },
    },
}

OPERATIONS_PAYLOAD = [
    {
        "method": "POST",
        "path": "/articles/:id/like",
        "handler": "article.like",
        "types": {"body": "dict[str, bool]", "response": "Article"},
    },
    {
        "method": "GET",
        "path": "/ai-studio/search",
        "handler": "ai-studio.search",
        "types": {"query": "dict[str, str]", "response": "list[Article]"},
    },
    {
        "method": "GET",
        "path": "/stats",
        "handler": "stats.summary",
    },
]

EXTRA_TYPES_PAYLOAD = [
    {
        "controller": "stats",
        "typeName": "StatsSummary",
        "typeDefinition": "dict[str, int]",
    }
]


@pytest.fixture
def schema_payload():
    return copy.deepcopy(SCHEMA_PAYLOAD)


@pytest.fixture
def schema(schema_payload):
    return convert_extracted_schema(schema_payload)


@pytest.fixture
def operations():
    return convert_operations(copy.deepcopy(OPERATIONS_PAYLOAD))


@pytest.fixture
def extra_types():
    return convert_extra_types(copy.deepcopy(EXTRA_TYPES_PAYLOAD))


@pytest.fixture
def config(tmp_path):
    return GeneratorConfig(output_dir=str(tmp_path / "cms_client"))
