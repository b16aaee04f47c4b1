import pytest

from schemagen.codegen.core.naming import (
    NameSanitizer,
    declaration_name_for_uid,
    pluralize,
    to_pascal_case,
    to_pascal_preserve,
    to_snake_case,
)
from schemagen.codegen.python.naming import (
    create_python_sanitizer,
    is_safe_key,
    method_name,
    namespace_attribute,
    namespace_class_name,
    parameter_name,
)


class TestCaseConversion:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("blog-posts", "blog_posts"),
            ("documentId", "document_id"),
            ("HTTPServer", "http_server"),
            ("already_snake", "already_snake"),
        ],
    )
    def test_snake_case(self, name, expected):
        assert to_snake_case(name) == expected

    def test_pascal_case(self):
        assert to_pascal_case("blog-post") == "BlogPost"

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("ai-studio", "AIStudio"),
            ("team-invitation", "TeamInvitation"),
            ("api", "API"),
            ("sse", "SSE"),
            ("url-shortener", "URLShortener"),
        ],
    )
    def test_pascal_preserve(self, name, expected):
        assert to_pascal_preserve(name) == expected


class TestContentModelNames:
    @pytest.mark.parametrize(
        "uid,expected",
        [
            ("api::article.article", "Article"),
            ("api::blog-post.blog-post", "BlogPost"),
            ("plugin::users-permissions.user", "User"),
            ("shared.seo", "SharedSeo"),
            ("layout.hero-banner", "LayoutHeroBanner"),
        ],
    )
    def test_declaration_name_for_uid(self, uid, expected):
        assert declaration_name_for_uid(uid) == expected

    def test_pluralize(self):
        assert pluralize("category") == "categories"
        assert pluralize("day") == "days"
        assert pluralize("box") == "boxes"
        assert pluralize("article") == "articles"


class TestNameSanitizer:
    def test_reserved_word_gets_suffix(self):
        sanitizer = create_python_sanitizer()
        assert sanitizer.sanitize_name("class") == "class_"

    def test_leading_digit(self):
        assert NameSanitizer().sanitize_name("2fa-codes") == "_2fa_codes"

    def test_results_are_cached(self):
        sanitizer = NameSanitizer()
        assert sanitizer.sanitize_name("Blog Post") == "blog_post"
        assert sanitizer.sanitize_name("Blog Post") == "blog_post"

    def test_empty_name_falls_back(self):
        assert NameSanitizer().sanitize_name("---") == "field"


class TestPythonNames:
    @pytest.mark.parametrize(
        "key,safe",
        [
            ("title", True),
            ("documentId", True),
            ("class", False),
            ("__component", False),
            ("meta-title", False),
        ],
    )
    def test_is_safe_key(self, key, safe):
        assert is_safe_key(key) is safe

    def test_method_name(self):
        assert method_name("list", "blog-posts") == "list_blog_posts"

    def test_namespace_names(self):
        assert namespace_attribute("ai-studio") == "ai_studio"
        assert namespace_class_name("ai-studio") == "AIStudioAPI"

    def test_namespace_attribute_avoids_runtime_members(self):
        assert namespace_attribute("session") == "session_api"
        assert namespace_attribute("client") == "client_api"
        assert namespace_attribute("authentication") == "authentication_api"

    def test_parameter_name(self):
        assert parameter_name("teamId") == "team_id"
        assert parameter_name("data") == "data_"
        assert parameter_name("from") == "from_"
