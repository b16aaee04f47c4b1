import json
import typing

import pytest
import requests

from schemagen.runtime import (
    ApiError,
    ApiRequestError,
    BaseAPI,
    BaseClient,
    ClientConfig,
    Pagination,
    QueryParams,
    Result,
    encode_query,
    parse_response,
)


def make_response(
    status=200, payload=None, text=None, content_type="application/json", reason="OK"
):
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.headers["Content-Type"] = content_type
    return response


class FakeSession:
    """Records requests and replays canned responses."""

    def __init__(self, responses=(), error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def close(self):
        self.closed = True


class TestEncodeQuery:
    def test_nested_filters(self):
        pairs = encode_query(
            {
                "filters": {"title": {"$eq": "Hello"}},
                "sort": ["title:asc", "createdAt:desc"],
                "pagination": {"page": 2, "pageSize": 10},
            }
        )
        assert pairs == [
            ("filters[title][$eq]", "Hello"),
            ("sort[0]", "title:asc"),
            ("sort[1]", "createdAt:desc"),
            ("pagination[page]", "2"),
            ("pagination[pageSize]", "10"),
        ]

    def test_booleans_and_none(self):
        assert encode_query({"preview": True, "locale": None, "draft": False}) == [
            ("preview", "true"),
            ("draft", "false"),
        ]

    def test_list_of_mappings(self):
        pairs = encode_query({"filters": {"$or": [{"a": 1}, {"b": 2}]}})
        assert pairs == [("filters[$or][0][a]", "1"), ("filters[$or][1][b]", "2")]


class TestParseResponse:
    def test_unwraps_data_and_keeps_meta(self):
        payload = {"data": [{"id": 1}], "meta": {"pagination": {"total": 1}}}
        result = parse_response(make_response(200, payload))
        assert result.ok
        assert result.value == [{"id": 1}]
        assert result.meta == {"pagination": {"total": 1}}

    def test_payload_without_envelope(self):
        result = parse_response(make_response(200, {"liked": True}))
        assert result.value == {"liked": True}
        assert result.meta is None

    def test_no_content(self):
        result = parse_response(make_response(204))
        assert result.ok
        assert result.value is None

    def test_error_envelope(self):
        payload = {
            "data": None,
            "error": {"status": 404, "name": "NotFoundError", "message": "Not Found", "details": {}},
        }
        result = parse_response(make_response(404, payload))
        assert not result.ok
        assert result.error.status == 404
        assert result.error.message == "Not Found"
        assert result.error.details == {}
        assert result.error.kind == "http"

    def test_error_without_envelope(self):
        result = parse_response(make_response(500, {"oops": True}))
        assert result.error.status == 500
        assert result.error.details == {"oops": True}

    def test_html_error_page(self):
        response = make_response(502, text="<html>Bad gateway</html>", content_type="text/html")
        result = parse_response(response)
        assert result.error.kind == "http"
        assert "HTML" in result.error.message

    def test_html_with_success_status_is_decode_error(self):
        response = make_response(200, text="<!doctype html>", content_type="text/plain")
        assert parse_response(response).error.kind == "decode"

    def test_invalid_json(self):
        result = parse_response(make_response(200, text="{not json"))
        assert result.error.kind == "decode"


class TestResultAndErrors:
    def test_unwrap(self):
        assert Result(value=3).unwrap() == 3
        with pytest.raises(ApiRequestError) as excinfo:
            Result.failure(ApiError("Forbidden", 403)).unwrap()
        assert excinfo.value.error.status == 403

    def test_user_message(self):
        assert "token" in ApiError("Unauthorized", 401).user_message
        assert "not found" in ApiError("Not Found", 404).user_message
        assert "connect" in ApiError("refused", kind="connection").user_message
        assert "in time" in ApiError("slow", kind="timeout").user_message
        assert ApiError("Teapot", 418).user_message == "Teapot"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            ApiError("odd", kind="teapot")

    def test_str(self):
        assert str(ApiError("Not Found", 404)) == "404 http error: Not Found"
        assert str(ApiError("refused", kind="connection")) == "connection error: refused"


class TestBaseClient:
    def test_request_url_headers_and_query(self):
        session = FakeSession([make_response(200, {"data": []})])
        client = BaseClient(
            ClientConfig(
                base_url="http://cms.test/",
                token="secret",
                session=session,
                headers={"X-Trace": "1"},
            )
        )
        result = client._request("GET", "/articles", params={"pagination": {"page": 1}})

        assert result.ok
        [call] = session.calls
        assert call["method"] == "GET"
        assert call["url"] == "http://cms.test/api/articles"
        assert call["params"] == [("pagination[page]", "1")]
        assert call["headers"]["Authorization"] == "Bearer secret"
        assert call["headers"]["X-Trace"] == "1"
        assert call["timeout"] == 30.0

    def test_api_prefix_from_config(self):
        session = FakeSession([make_response(204)])
        client = BaseClient(base_url="http://cms.test", api_prefix="/v2", session=session)
        client._request("DELETE", "/articles/abc")
        assert session.calls[0]["url"] == "http://cms.test/v2/articles/abc"

    def test_set_token(self):
        session = FakeSession([make_response(204), make_response(204)])
        client = BaseClient(session=session)
        client.set_token("abc")
        client._request("GET", "/x")
        client.set_token(None)
        client._request("GET", "/x")
        assert session.calls[0]["headers"]["Authorization"] == "Bearer abc"
        assert "Authorization" not in session.calls[1]["headers"]

    def test_options_override_config(self):
        config = ClientConfig(base_url="http://one.test")
        client = BaseClient(config, base_url="http://two.test")
        assert client.config.base_url == "http://two.test"
        assert config.base_url == "http://one.test"

    def test_timeout_is_reported(self):
        client = BaseClient(session=FakeSession(error=requests.Timeout("read timed out")))
        result = client._request("GET", "/slow")
        assert result.error.kind == "timeout"

    def test_connection_error_is_reported(self):
        client = BaseClient(session=FakeSession(error=requests.ConnectionError("refused")))
        result = client._request("GET", "/down")
        assert result.error.kind == "connection"
        assert result.error.status is None

    def test_close(self):
        session = FakeSession()
        BaseClient(session=session).close()
        assert session.closed


class TestBaseAPI:
    def test_delegates_to_client(self):
        session = FakeSession([make_response(200, {"data": {"ok": True}})])
        api = BaseAPI(BaseClient(session=session))
        result = api._request("POST", "/articles/1/like", json={"liked": True})
        assert result.value == {"ok": True}
        assert session.calls[0]["json"] == {"liked": True}


class TestQueryParams:
    def test_typed_dicts(self):
        assert typing.is_typeddict(QueryParams)
        assert typing.is_typeddict(Pagination)
        assert QueryParams.__total__ is False
        expected = {"filters", "sort", "pagination", "populate", "locale"}
        assert expected <= QueryParams.__optional_keys__

    def test_parameterized_params_encode(self):
        params: QueryParams[dict] = {"filters": {"id": {"$in": [1, 2]}}, "status": "draft"}
        assert encode_query(params) == [
            ("filters[id][$in][0]", "1"),
            ("filters[id][$in][1]", "2"),
            ("status", "draft"),
        ]
