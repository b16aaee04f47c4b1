"""
Python-specific naming utilities and sanitization.

Handles Python reserved words, builtins, and the identifiers used for
generated declarations and access-layer methods.
"""

import keyword

from ..core.naming import NameSanitizer, to_pascal_preserve, to_snake_case
from .config import AUTH_TYPE_NAMES, BUILTIN_EXPORTS, FILTER_OPERATOR_NAMES, TYPING_NAMES

# Python reserved keywords
PYTHON_RESERVED_WORDS = {
    "False",
    "None",
    "True",
    "and",
    "as",
    "assert",
    "async",
    "await",
    "break",
    "class",
    "continue",
    "def",
    "del",
    "elif",
    "else",
    "except",
    "finally",
    "for",
    "from",
    "global",
    "if",
    "import",
    "in",
    "is",
    "lambda",
    "nonlocal",
    "not",
    "or",
    "pass",
    "raise",
    "return",
    "try",
    "while",
    "with",
    "yield",
}

# Runtime names the generated modules import
RUNTIME_NAMES = (
    "ApiError",
    "BaseAPI",
    "BaseClient",
    "ClientConfig",
    "Pagination",
    "QueryParams",
    "Result",
)

AUTH_NAMESPACE_CLASS = "AuthAPI"
AUTH_NAMESPACE_ATTRIBUTE = "authentication"

# Names the generated modules import or define themselves
GENERATED_MODULE_NAMES = frozenset(
    {
        *TYPING_NAMES,
        *BUILTIN_EXPORTS,
        *FILTER_OPERATOR_NAMES,
        *AUTH_TYPE_NAMES,
        *RUNTIME_NAMES,
        AUTH_NAMESPACE_CLASS,
    }
)

# Declaration names an entity can never take
RESERVED_DECLARATION_NAMES = GENERATED_MODULE_NAMES | frozenset(keyword.kwlist)

# Attribute names BaseClient / BaseAPI already use
RUNTIME_MEMBER_NAMES = {
    "api_prefix",
    "client",
    "config",
    "session",
    "set_token",
    "close",
    "_request",
    "_url",
}


def create_python_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for Python."""
    return NameSanitizer(PYTHON_RESERVED_WORDS)


def is_safe_key(name: str) -> bool:
    """
    Check whether a wire key can be a TypedDict class-body member.

    Keywords cannot appear in a class body and double-underscore names are
    mangled there, so such keys need the functional TypedDict syntax.
    """
    return (
        name.isidentifier()
        and name not in PYTHON_RESERVED_WORDS
        and not name.startswith("__")
    )


def method_name(prefix: str, name: str) -> str:
    """Access-layer method name (``list`` + ``blog-posts`` -> ``list_blog_posts``)."""
    return f"{prefix}_{to_snake_case(name)}"


def namespace_attribute(controller: str) -> str:
    """Client attribute holding a controller namespace."""
    sanitizer = create_python_sanitizer()
    attr = sanitizer.sanitize_name(controller)
    if attr in RUNTIME_MEMBER_NAMES or attr == AUTH_NAMESPACE_ATTRIBUTE:
        attr = f"{attr}_api"
    return attr


def namespace_class_name(controller: str) -> str:
    """Namespace class for a controller (``ai-studio`` -> ``AIStudioAPI``)."""
    return f"{to_pascal_preserve(controller)}API"


def parameter_name(name: str) -> str:
    """Python parameter for a ``:param`` path segment."""
    sanitizer = create_python_sanitizer()
    param = sanitizer.sanitize_name(name)
    if param in ("self", "data", "params"):
        param = f"{param}_"
    return param
