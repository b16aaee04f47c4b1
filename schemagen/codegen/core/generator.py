"""
Base generator interface for all emitters.

Defines the contract that the declaration, access-layer and export
emitters implement, the cosmetic formatter and the result container
returned by the non-raising entry points.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...logging_config import get_logger
from .templates import TemplateEngine, create_template_engine

logger = get_logger(__name__)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


class NameCollisionError(GeneratorError):
    """Two entities produced the same declaration identifier."""

    def __init__(self, name: str, owners: List[str]):
        self.name = name
        self.owners = list(owners)
        super().__init__(
            f"Declaration name {name!r} is produced by more than one entity: "
            + ", ".join(self.owners)
        )


class CodeGenerator(ABC):
    """Abstract base class for all emitters."""

    def __init__(self, add_comments: bool = True):
        """Initialize emitter."""
        self.add_comments = add_comments
        self.warnings: List[str] = []
        self._template_engine = None
        self._setup_templates()

    def _setup_templates(self):
        """Setup template engine for this emitter."""
        self._template_engine = create_template_engine(self.get_template_directory())

    @property
    @abstractmethod
    def module_name(self) -> str:
        """Return the module file name this emitter produces (e.g. 'types.py')."""
        pass

    def get_template_directory(self) -> Optional[Path]:
        """
        Return the directory containing templates for this emitter.

        Return None to use in-memory templates only.
        """
        return None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this emitter."""
        if self._template_engine is None:
            self._setup_templates()
        return self._template_engine

    @abstractmethod
    def emit(self, *args: Any, **kwargs: Any) -> str:
        """Produce the module source text."""
        pass

    def warn(self, message: str):
        """Record a non-fatal generation warning."""
        logger.warning("%s: %s", self.module_name, message)
        self.warnings.append(message)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a template with context.

        Args:
            template_name: Template file name
            context: Template variables

        Returns:
            Rendered content
        """
        return self.template_engine.render_template(template_name, context)


def format_code(code: str, max_blank_lines: int = 2) -> str:
    """
    Cosmetic formatting of generated code.

    Strips trailing whitespace, collapses runs of blank lines and ends the
    text with exactly one newline. Never changes meaning.

    Args:
        code: Raw generated code
        max_blank_lines: Longest allowed run of blank lines

    Returns:
        Formatted code
    """
    lines = code.split("\n")
    formatted_lines = []
    blank_count = 0

    for line in lines:
        stripped = line.rstrip()
        if not stripped:
            blank_count += 1
            if blank_count <= max_blank_lines:
                formatted_lines.append("")
        else:
            blank_count = 0
            formatted_lines.append(stripped)

    while formatted_lines and not formatted_lines[0]:
        formatted_lines.pop(0)
    while formatted_lines and not formatted_lines[-1]:
        formatted_lines.pop()

    return "\n".join(formatted_lines) + "\n"


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self,
        files: Dict[str, str] = None,
        warnings: List[str] = None,
        metadata: Dict[str, Any] = None,
    ):
        """
        Initialize generation result.

        Args:
            files: Generated file names mapped to their content
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.files = files or {}
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message: Optional[str] = None
        self.exception: Optional[Exception] = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls()
        result.success = False
        result.error_message = message
        result.exception = exception
        return result
