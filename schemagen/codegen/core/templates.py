"""
Template engine wrapper for code generation.

Provides a simple interface for Jinja2 template rendering
with common utilities for emitting Python source.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import DictLoader, Environment, FileSystemLoader, StrictUndefined

from ...logging_config import get_logger

logger = get_logger(__name__)


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


class TemplateEngine:
    """Wrapper for Jinja2 template engine with code generation utilities."""

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory containing template files
        """
        self.template_dir = template_dir
        self._env = None
        self._setup_environment()

    def _setup_environment(self):
        """Setup Jinja2 environment with code generation utilities."""
        if self.template_dir and self.template_dir.exists():
            loader = FileSystemLoader(str(self.template_dir))
        else:
            # Use in-memory templates
            loader = DictLoader({})

        # Generated Python is not markup, so nothing is escaped
        self._env = Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

        # Add custom filters for code generation
        self._env.filters["pyrepr"] = self._pyrepr_filter
        self._env.filters["comment"] = self._comment_filter
        self._env.filters["docstring"] = self._docstring_filter

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Name of template file
            context: Variables to pass to template

        Returns:
            Rendered template content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except Exception as e:
            raise TemplateError(
                f"Failed to render template {template_name}: {str(e)}"
            ) from e

    # Template filters for code generation

    def _pyrepr_filter(self, value: Any) -> str:
        """Render a value as a Python literal (double quoted for strings)."""
        if isinstance(value, str):
            return json.dumps(value, ensure_ascii=False)
        return repr(value)

    def _comment_filter(self, value: str, style: str = "#") -> str:
        """Add comment markers to each line."""
        lines = str(value).split("\n")
        return "\n".join(f"{style} {line}" if line.strip() else style for line in lines)

    def _docstring_filter(self, value: str) -> str:
        """Make text safe to place inside a triple-quoted docstring."""
        return str(value).strip().replace("\\", "\\\\").replace('"', '\\"')


def create_template_engine(template_dir: Optional[Path] = None) -> TemplateEngine:
    """
    Create a template engine, falling back to in-memory templates.

    Args:
        template_dir: Directory containing ``.j2`` files

    Returns:
        Configured TemplateEngine
    """
    if template_dir and not template_dir.exists():
        logger.warning("Template directory %s does not exist", template_dir)
    return TemplateEngine(template_dir)
