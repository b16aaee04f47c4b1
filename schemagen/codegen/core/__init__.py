"""
Core code generation components.

Provides the schema model, naming rules, configuration, templates and the
base emitter interface shared by the Python emitters.
"""

from .config import ConfigError, ConfigManager, GeneratorConfig, load_config
from .generator import (
    CodeGenerator,
    GenerationResult,
    GeneratorError,
    NameCollisionError,
    format_code,
)
from .naming import NameSanitizer, declaration_name_for_uid
from .schema import (
    EmbeddableType,
    ExtraType,
    Field,
    FieldKind,
    OperationDescriptor,
    OperationTypes,
    RecordKind,
    RecordType,
    ScalarType,
    SchemaError,
    SchemaModel,
    convert_extra_types,
    convert_extracted_schema,
    convert_operations,
    schema_fingerprint,
)
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Base emitter interface
    "CodeGenerator",
    "GeneratorError",
    "NameCollisionError",
    "GenerationResult",
    "format_code",
    # Schema model
    "SchemaModel",
    "RecordType",
    "RecordKind",
    "EmbeddableType",
    "Field",
    "FieldKind",
    "ScalarType",
    "OperationDescriptor",
    "OperationTypes",
    "ExtraType",
    "SchemaError",
    "convert_extracted_schema",
    "convert_operations",
    "convert_extra_types",
    "schema_fingerprint",
    # Naming utilities
    "NameSanitizer",
    "declaration_name_for_uid",
    # Configuration system
    "GeneratorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
