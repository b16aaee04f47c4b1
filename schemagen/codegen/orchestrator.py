"""
Generation orchestrator.

Runs one generation: emit the three modules, format them, compile them as
a unit and only then write the results into the output directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..logging_config import get_logger
from .compiler import CrossFileCompiler
from .core.config import ConfigError, GeneratorConfig, get_config_manager
from .core.generator import GenerationResult, format_code
from .core.schema import ExtraType, OperationDescriptor, SchemaModel
from .python.access_layer import AccessLayerEmitter
from .python.declarations import TypeDeclarationEmitter
from .python.exports import ExportSurfaceEmitter
from .python.symbols import build_symbol_table

logger = get_logger(__name__)


@dataclass(frozen=True)
class WriteOutcome:
    """Result of writing one output file."""

    path: Path
    ok: bool
    error: Optional[str] = None


@dataclass
class GenerationReport:
    """What a generation run produced."""

    output_dir: Path
    files: Dict[str, str] = field(default_factory=dict)
    outcomes: List[WriteOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def written(self) -> List[Path]:
        return [o.path for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[WriteOutcome]:
        return [o for o in self.outcomes if not o.ok]


class Orchestrator:
    """Drives emitters, formatter, compiler and file output."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or GeneratorConfig()

        problems = get_config_manager().validate_config(self.config)
        if problems:
            raise ConfigError("Invalid configuration: " + "; ".join(problems))

        self.declarations = TypeDeclarationEmitter(
            add_comments=self.config.add_comments, emit_auth=self.config.auth_api
        )
        self.access_layer = AccessLayerEmitter(
            client_class_name=self.config.client_class_name,
            api_prefix=self.config.api_prefix,
            types_module=self.config.types_module,
            add_comments=self.config.add_comments,
            emit_auth=self.config.auth_api,
        )
        self.exports = ExportSurfaceEmitter(
            types_module=self.config.types_module,
            client_module=self.config.client_module,
            add_comments=self.config.add_comments,
        )
        self.compiler = CrossFileCompiler(
            emit_declarations=self.config.emit_declarations,
            declaration_only=self.config.declaration_only,
        )
        self._symbol_warnings: List[str] = []

    def render(
        self,
        schema: SchemaModel,
        operations: Optional[Iterable[OperationDescriptor]] = None,
        extra_types: Optional[Iterable[ExtraType]] = None,
    ) -> Dict[str, str]:
        """
        Emit and format the modules of a client package, without compiling.

        Returns:
            File name to source text
        """
        symbols = build_symbol_table(
            schema, reserved_names=(self.config.client_class_name,)
        )
        self._symbol_warnings = list(symbols.warnings)
        files = {
            f"{self.config.types_module}.py": self.declarations.emit(schema, symbols),
            f"{self.config.client_module}.py": self.access_layer.emit(
                schema, operations or (), extra_types or (), symbols
            ),
            "__init__.py": self.exports.emit(),
        }
        if self.config.format_output:
            files = {name: self._format(name, text) for name, text in files.items()}
        return files

    def generate(
        self,
        schema: SchemaModel,
        operations: Optional[Iterable[OperationDescriptor]] = None,
        extra_types: Optional[Iterable[ExtraType]] = None,
    ) -> GenerationReport:
        """
        Generate, validate and write a client package.

        Emitter and compiler errors propagate before anything is written.
        Write failures are recorded per file and do not stop other writes.

        Returns:
            GenerationReport with one WriteOutcome per output file
        """
        files = self.render(schema, operations, extra_types)
        compiled = self.compiler.compile(files)

        output_dir = self.config.output_path
        output_dir.mkdir(parents=True, exist_ok=True)

        report = GenerationReport(
            output_dir=output_dir, files=dict(compiled.files), warnings=self.warnings
        )
        for name, content in compiled.files.items():
            report.outcomes.append(self._write(output_dir / name, content))

        logger.info(
            "Wrote %d of %d files to %s",
            len(report.written),
            len(report.outcomes),
            output_dir,
        )
        return report

    @property
    def warnings(self) -> List[str]:
        return [
            *self._symbol_warnings,
            *self.declarations.warnings,
            *self.access_layer.warnings,
            *self.exports.warnings,
        ]

    def _format(self, name: str, text: str) -> str:
        try:
            return format_code(text, self.config.max_blank_lines)
        except Exception as e:
            logger.warning("Formatting %s failed, keeping unformatted text: %s", name, e)
            return text

    def _write(self, path: Path, content: str) -> WriteOutcome:
        try:
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            return WriteOutcome(path=path, ok=False, error=str(e))
        logger.debug("Wrote %s", path)
        return WriteOutcome(path=path, ok=True)


def generate_client(
    schema: SchemaModel,
    operations: Optional[Iterable[OperationDescriptor]] = None,
    extra_types: Optional[Iterable[ExtraType]] = None,
    config: Optional[GeneratorConfig] = None,
    **overrides: Any,
) -> GenerationResult:
    """
    Generate a client package with error handling.

    Args:
        schema: Snapshot to generate from
        operations: Custom operation descriptors
        extra_types: Standalone controller types
        config: Generation settings
        **overrides: Settings applied on top of ``config``

    Returns:
        GenerationResult listing written files and warnings
    """
    try:
        if overrides:
            base = config.__dict__ if config else {}
            config = get_config_manager().get_config({**base, **overrides})
        orchestrator = Orchestrator(config)
        report = orchestrator.generate(schema, operations, extra_types)
    except Exception as e:
        logger.error("Client generation failed: %s", e)
        return GenerationResult.error(f"Client generation failed: {str(e)}", exception=e)

    result = GenerationResult(
        files=report.files,
        warnings=report.warnings,
        metadata={
            "output_dir": str(report.output_dir),
            "record_count": len(schema.records),
            "embeddable_count": len(schema.embeddables),
            "failed_writes": [
                {"path": str(o.path), "error": o.error} for o in report.failed
            ],
        },
    )
    if not report.success:
        result.success = False
        result.error_message = f"{len(report.failed)} file(s) could not be written"
    return result
