"""
Export surface emitter.

Renders the package ``__init__`` of a generated client. Both generated
modules define ``__all__``, so star re-exports give the complete surface.
"""

from pathlib import Path

from ..core.generator import CodeGenerator
from .access_layer import RUNTIME_MODULE
from .declarations import TEMPLATE_DIR

# Runtime names re-exported next to the generated ones
RUNTIME_EXPORTS = ("ApiError", "ClientConfig", "Pagination", "QueryParams", "Result")


class ExportSurfaceEmitter(CodeGenerator):
    """Emits the package entry point; its output never depends on the schema."""

    def __init__(
        self,
        types_module: str = "types",
        client_module: str = "client",
        add_comments: bool = True,
    ):
        super().__init__(add_comments=add_comments)
        self.types_module = types_module
        self.client_module = client_module

    @property
    def module_name(self) -> str:
        return "__init__.py"

    def get_template_directory(self) -> Path:
        return TEMPLATE_DIR

    def emit(self) -> str:
        return self.render_template(
            "__init__.py.j2",
            {
                "types_module": self.types_module,
                "client_module": self.client_module,
                "runtime_module": RUNTIME_MODULE,
                "runtime_exports": list(RUNTIME_EXPORTS),
            },
        )
