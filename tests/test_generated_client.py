"""Import a generated package and drive it against a fake session."""

import importlib
import sys
import typing

import pytest

from schemagen.codegen.core.config import GeneratorConfig
from schemagen.codegen.orchestrator import Orchestrator
from schemagen.runtime import ClientConfig, Result

from .test_runtime import FakeSession, make_response

PACKAGE = "generated_cms_client"


@pytest.fixture
def package(tmp_path, monkeypatch, schema, operations, extra_types):
    config = GeneratorConfig(output_dir=str(tmp_path / PACKAGE))
    Orchestrator(config).generate(schema, operations, extra_types)
    monkeypatch.syspath_prepend(str(tmp_path))
    module = importlib.import_module(PACKAGE)
    yield module
    for name in [n for n in sys.modules if n == PACKAGE or n.startswith(f"{PACKAGE}.")]:
        del sys.modules[name]


class TestGeneratedPackage:
    def test_export_surface(self, package):
        for name in (
            "Client",
            "Article",
            "ArticleInput",
            "ArticleStatus",
            "MediaFile",
            "ArticleAPI",
            "StatsSummary",
            "Result",
            "ApiError",
        ):
            assert name in package.__all__
            assert hasattr(package, name)

    def test_declarations_are_typeddicts(self, package):
        assert typing.is_typeddict(package.Article)
        assert typing.is_typeddict(package.SharedSeo)
        assert "title" in package.Article.__required_keys__
        assert "status" in package.Article.__optional_keys__
        assert package.ArticleInput.__total__ is False
        assert typing.get_args(package.ArticleStatus) == ("draft", "published")

    def test_list_entries(self, package):
        session = FakeSession(
            [make_response(200, {"data": [{"id": 1, "title": "Hi"}], "meta": {"total": 1}})]
        )
        client = package.Client(ClientConfig(base_url="http://cms.test", session=session))
        result = client.list_articles({"sort": ["title:asc"]})

        assert isinstance(result, Result)
        assert result.value == [{"id": 1, "title": "Hi"}]
        assert session.calls[0]["url"] == "http://cms.test/api/articles"
        assert session.calls[0]["params"] == [("sort[0]", "title:asc")]

    def test_update_sends_data_envelope(self, package):
        session = FakeSession([make_response(200, {"data": {"id": 1}})])
        client = package.Client(session=session)
        client.update_article("doc-1", {"title": "New"})
        call = session.calls[0]
        assert call["method"] == "PUT"
        assert call["url"].endswith("/api/articles/doc-1")
        assert call["json"] == {"data": {"title": "New"}}

    def test_singleton(self, package):
        session = FakeSession([make_response(204)])
        client = package.Client(session=session)
        result = client.delete_homepage()
        assert result.ok
        assert session.calls[0]["url"].endswith("/api/homepage")

    def test_custom_operation(self, package):
        session = FakeSession([make_response(200, {"data": {"id": 7}})])
        client = package.Client(session=session)
        result = client.article.like("7", {"liked": True})
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"].endswith("/api/articles/7/like")
        assert call["json"] == {"liked": True}
        assert result.value == {"id": 7}

    def test_failures_are_returned(self, package):
        session = FakeSession([make_response(403, {"error": {"message": "Forbidden"}})])
        client = package.Client(session=session)
        result = client.get_article("doc-1")
        assert not result.ok
        assert result.error.status == 403

    def test_filters_declaration(self, package):
        assert typing.is_typeddict(package.ArticleFilters)
        assert package.ArticleFilters.__total__ is False
        optional = package.ArticleFilters.__optional_keys__
        assert {"title", "status", "$and", "$or", "$not"} <= optional

    def test_filtered_list(self, package):
        session = FakeSession([make_response(200, {"data": []})])
        client = package.Client(session=session)
        client.list_articles(
            {"filters": {"title": {"$containsi": "hi"}}, "pagination": {"page": 2}}
        )
        assert session.calls[0]["params"] == [
            ("filters[title][$containsi]", "hi"),
            ("pagination[page]", "2"),
        ]


class TestGeneratedAuthentication:
    def test_login_sends_credentials_without_envelope(self, package):
        payload = {"jwt": "token-1", "user": {"id": 1}}
        session = FakeSession([make_response(200, payload)])
        client = package.Client(session=session)
        result = client.authentication.login({"identifier": "ada", "password": "secret"})
        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"].endswith("/api/auth/local")
        assert call["json"] == {"identifier": "ada", "password": "secret"}
        assert result.value == payload

    def test_me_and_logout(self, package):
        session = FakeSession([make_response(200, {"id": 1}), make_response(200, {"id": 1})])
        client = package.Client(session=session, token="token-1")
        client.authentication.me()
        client.authentication.logout()
        client.authentication.me()
        assert session.calls[0]["url"].endswith("/api/users/me")
        assert session.calls[0]["headers"]["Authorization"] == "Bearer token-1"
        assert "Authorization" not in session.calls[1]["headers"]

    def test_email_confirmation(self, package):
        session = FakeSession([make_response(200, {"jwt": "t", "user": {}})])
        client = package.Client(session=session)
        client.authentication.confirm_email("abc")
        assert session.calls[0]["params"] == [("confirmation", "abc")]
