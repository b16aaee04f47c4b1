"""
schemagen code generation.

Compiles content-model schemas into statically-typed Python API clients.
"""

from .compiler import CompilationError, CompilationOutput, CrossFileCompiler, Diagnostic
from .core.config import GeneratorConfig, load_config
from .core.generator import GenerationResult, GeneratorError, NameCollisionError
from .core.schema import (
    SchemaError,
    SchemaModel,
    convert_extra_types,
    convert_extracted_schema,
    convert_operations,
)
from .orchestrator import GenerationReport, Orchestrator, WriteOutcome, generate_client

__all__ = [
    "CompilationError",
    "CompilationOutput",
    "CrossFileCompiler",
    "Diagnostic",
    "GeneratorConfig",
    "load_config",
    "GenerationResult",
    "GeneratorError",
    "NameCollisionError",
    "SchemaError",
    "SchemaModel",
    "convert_extracted_schema",
    "convert_operations",
    "convert_extra_types",
    "GenerationReport",
    "Orchestrator",
    "WriteOutcome",
    "generate_client",
]
