import json

import pytest
import requests

from schemagen.codegen.core.schema import SchemaError
from schemagen.utils import (
    SchemaLoaderError,
    is_url,
    load_generation_inputs,
    load_json,
    load_json_from_url,
    split_endpoint_payload,
)

from .conftest import EXTRA_TYPES_PAYLOAD, OPERATIONS_PAYLOAD, SCHEMA_PAYLOAD
from .test_runtime import make_response


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(SCHEMA_PAYLOAD))
    return path


class TestLoadJson:
    def test_is_url(self):
        assert is_url("https://cms.test/api/schema")
        assert not is_url("schema.json")
        assert not is_url("ftp://cms.test/schema.json")

    def test_from_file(self, schema_file):
        source, data = load_json(schema_file)
        assert source == str(schema_file)
        assert "contentTypes" in data

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaLoaderError):
            load_json(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("{nope")
        with pytest.raises(SchemaLoaderError):
            load_json(path)

    def test_from_url_with_token(self, monkeypatch):
        calls = []

        def fake_get(url, timeout, headers):
            calls.append((url, timeout, headers))
            return make_response(200, {"contentTypes": {}})

        monkeypatch.setattr(requests, "get", fake_get)
        source, data = load_json("http://cms.test/api/schema", timeout=5, token="abc")

        assert source == "http://cms.test/api/schema"
        assert data == {"contentTypes": {}}
        assert calls[0][1] == 5
        assert calls[0][2]["Authorization"] == "Bearer abc"

    def test_url_http_error(self, monkeypatch):
        monkeypatch.setattr(
            requests, "get", lambda url, timeout, headers: make_response(404, {"error": {}})
        )
        with pytest.raises(SchemaLoaderError, match="HTTP error 404"):
            load_json_from_url("http://cms.test/api/schema")

    def test_url_timeout(self, monkeypatch):
        def slow_get(url, timeout, headers):
            raise requests.Timeout("too slow")

        monkeypatch.setattr(requests, "get", slow_get)
        with pytest.raises(SchemaLoaderError, match="timeout"):
            load_json_from_url("http://cms.test/api/schema")

    def test_invalid_url(self):
        with pytest.raises(SchemaLoaderError):
            load_json_from_url("not a url")


class TestEndpointPayload:
    def test_list(self):
        assert split_endpoint_payload([{"handler": "a.b"}]) == ([{"handler": "a.b"}], [])

    def test_mapping(self):
        endpoints, extra = split_endpoint_payload(
            {"endpoints": OPERATIONS_PAYLOAD, "extraTypes": EXTRA_TYPES_PAYLOAD}
        )
        assert len(endpoints) == 3
        assert len(extra) == 1

    def test_none(self):
        assert split_endpoint_payload(None) == ([], [])

    def test_invalid(self):
        with pytest.raises(SchemaLoaderError):
            split_endpoint_payload("endpoints")


class TestLoadGenerationInputs:
    def test_schema_only(self, schema_file):
        schema, operations, extra_types = load_generation_inputs(schema_file)
        assert len(schema.records) == 4
        assert operations == []
        assert extra_types == []

    def test_separate_endpoints_file(self, schema_file, tmp_path):
        endpoints = tmp_path / "endpoints.json"
        endpoints.write_text(
            json.dumps({"endpoints": OPERATIONS_PAYLOAD, "extraTypes": EXTRA_TYPES_PAYLOAD})
        )
        _, operations, extra_types = load_generation_inputs(schema_file, endpoints)
        assert [op.action for op in operations] == ["like", "search", "summary"]
        assert extra_types[0].type_name == "StatsSummary"

    def test_endpoints_embedded_in_schema_document(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(
            json.dumps(
                {
                    "schema": SCHEMA_PAYLOAD,
                    "endpoints": OPERATIONS_PAYLOAD,
                    "extraTypes": EXTRA_TYPES_PAYLOAD,
                }
            )
        )
        schema, operations, extra_types = load_generation_inputs(path)
        assert "api::tag.tag" in schema.records
        assert len(operations) == 3
        assert len(extra_types) == 1

    def test_malformed_schema(self, tmp_path):
        path = tmp_path / "schema.json"
        path.write_text("[]")
        with pytest.raises(SchemaError):
            load_generation_inputs(path)
