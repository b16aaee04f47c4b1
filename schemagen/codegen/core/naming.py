"""
Naming utilities for safe code generation.

Handles case conversion, keyword conflicts and the content-model naming
rules: type identifiers to declaration names and plural endpoint names.
"""

import re
from typing import Dict, Optional, Set

# Abbreviations kept upper case by to_pascal_preserve
ABBREVIATIONS = ("AI", "API", "UI", "URL", "ID", "HTTP", "SSE", "SDK")


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = re.sub(r"[-\s.]+", "_", name)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"_+", "_", name.lower())
    return name.strip("_")


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return "".join(part.capitalize() for part in to_snake_case(name).split("_") if part)


def to_pascal_preserve(name: str) -> str:
    """
    PascalCase that keeps well-known abbreviations intact.

    ``ai-studio`` -> ``AIStudio``, ``team-invitation`` -> ``TeamInvitation``
    """
    result = "".join(
        part[:1].upper() + part[1:] for part in re.split(r"[-_]", name) if part
    )
    for abbr in ABBREVIATIONS:
        pattern = rf"^{abbr[0]}{abbr[1:].lower()}(?=[A-Z]|$)"
        result = re.sub(pattern, abbr, result)
    return result


def pluralize(word: str) -> str:
    """Simple English pluralization (``category`` -> ``categories``)."""
    if word.endswith("y") and not re.search(r"[aeiou]y$", word, re.IGNORECASE):
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "z", "ch", "sh")):
        return word + "es"
    return word + "s"


def declaration_name_for_uid(uid: str) -> str:
    """
    Derive the declaration name for a type identifier.

    ``api::article.article`` -> ``Article``,
    ``plugin::users-permissions.user`` -> ``User``,
    ``shared.seo`` -> ``SharedSeo`` (embeddable identifiers keep their category).
    """
    if "::" not in uid:
        return "".join(to_pascal_case(part) for part in uid.split(".") if part)

    model = uid.split("::", 1)[1].split(".")[-1]
    return to_pascal_case(model or uid)


class NameSanitizer:
    """Turns arbitrary names into safe snake_case identifiers."""

    def __init__(
        self,
        reserved_words: Optional[Set[str]] = None,
        builtin_types: Optional[Set[str]] = None,
    ):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_types: Set of builtin names that should not be shadowed
        """
        self.reserved_words = reserved_words or set()
        self.builtin_types = builtin_types or set()
        self._name_cache: Dict[str, str] = {}

    def sanitize_name(self, name: str, suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for safe use in generated code.

        Args:
            name: Original name to sanitize
            suffix_on_conflict: Suffix added when the name is reserved

        Returns:
            Sanitized snake_case name
        """
        cache_key = f"{name}_{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = to_snake_case(cleaned)

        # Identifiers cannot start with a digit
        if converted and converted[0].isdigit():
            converted = f"_{converted}"
        converted = converted or "field"

        if converted in self.reserved_words or converted in self.builtin_types:
            converted = f"{converted}{suffix_on_conflict}"

        self._name_cache[cache_key] = converted
        return converted

    def _clean_basic(self, name: str) -> str:
        """Remove characters that can never appear in an identifier."""
        cleaned = re.sub(r"[^a-zA-Z0-9_-]", "_", name)
        cleaned = cleaned.strip("_-")
        if not cleaned:
            cleaned = "field"
        return cleaned
