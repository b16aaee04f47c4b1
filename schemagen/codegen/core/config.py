"""
Configuration management for code generation.

Handles loading and merging configuration from JSON files, providing
defaults and validation for generator settings. Configuration is always
passed explicitly into the orchestrator.
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...logging_config import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


@dataclass
class GeneratorConfig:
    """Configuration for one generation run."""

    # Output settings
    output_dir: str = "generated"
    types_module: str = "types"
    client_module: str = "client"

    # Compilation settings
    emit_declarations: bool = True
    declaration_only: bool = False
    format_output: bool = True

    # Generated code settings
    client_class_name: str = "Client"
    api_prefix: str = "/api"
    add_comments: bool = True
    auth_api: bool = True
    max_blank_lines: int = 2

    # Custom settings
    custom: Dict[str, Any] = field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)


DEFAULT_CONFIG: Dict[str, Any] = {
    "output_dir": "generated",
    "types_module": "types",
    "client_module": "client",
    "emit_declarations": True,
    "declaration_only": False,
    "format_output": True,
    "client_class_name": "Client",
    "api_prefix": "/api",
    "add_comments": True,
    "auth_api": True,
    "max_blank_lines": 2,
}


class ConfigManager:
    """Manages configuration loading and merging."""

    def __init__(self):
        """Initialize configuration manager with defaults."""
        self._defaults: Dict[str, Any] = dict(DEFAULT_CONFIG)

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> GeneratorConfig:
        """
        Get complete configuration.

        Args:
            custom_config: Configuration overrides (highest precedence)
            config_file: Path to JSON configuration file

        Returns:
            Merged configuration
        """
        base_config = dict(self._defaults)

        if config_file:
            file_config = self._load_config_file(config_file)
            base_config.update(file_config)
            logger.debug("Loaded configuration file %s", config_file)

        if custom_config:
            base_config.update(
                {key: value for key, value in custom_config.items() if value is not None}
            )

        return self._dict_to_config(base_config)

    def _load_config_file(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        path = Path(config_path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if path.suffix.lower() != ".json":
            raise ConfigError(f"Configuration file must be JSON: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in configuration file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration file {path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a JSON object: {path}")

        return config

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> GeneratorConfig:
        """Convert dictionary to GeneratorConfig, routing unknown keys to ``custom``."""
        known_fields = {f.name for f in fields(GeneratorConfig)}

        config_args: Dict[str, Any] = {}
        custom_args: Dict[str, Any] = {}

        for key, value in config_dict.items():
            if key in known_fields:
                config_args[key] = value
            else:
                custom_args[key] = value

        if custom_args:
            existing_custom = dict(config_args.get("custom", {}))
            existing_custom.update(custom_args)
            config_args["custom"] = existing_custom

        return GeneratorConfig(**config_args)

    def validate_config(self, config: GeneratorConfig) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation warnings
        """
        warnings = []

        for attr in ("types_module", "client_module", "client_class_name"):
            value = getattr(config, attr)
            if not value.isidentifier():
                warnings.append(f"Invalid {attr}: {value!r} is not a Python identifier")

        if config.types_module == config.client_module:
            warnings.append("types_module and client_module must differ")

        if config.types_module == "__init__" or config.client_module == "__init__":
            warnings.append("__init__ is reserved for the export surface")

        if config.declaration_only and not config.emit_declarations:
            warnings.append("declaration_only requires emit_declarations")

        if config.api_prefix and not config.api_prefix.startswith("/"):
            warnings.append(f"api_prefix should start with '/': {config.api_prefix}")

        return warnings


# Global configuration manager instance
_config_manager = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> GeneratorConfig:
    """
    Convenience function to load configuration.

    Args:
        custom_config: Configuration overrides
        config_file: Path to JSON configuration file

    Returns:
        Merged configuration
    """
    return get_config_manager().get_config(custom_config, config_file)
