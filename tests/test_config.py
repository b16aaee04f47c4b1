import json

import pytest

from schemagen.codegen.core.config import (
    ConfigError,
    ConfigManager,
    GeneratorConfig,
    load_config,
)
from schemagen.codegen.core.generator import format_code
from schemagen.codegen.core.templates import TemplateEngine, TemplateError


class TestConfigManager:
    def test_defaults(self):
        config = ConfigManager().get_config()
        assert config == GeneratorConfig()
        assert config.api_prefix == "/api"
        assert config.emit_declarations is True
        assert config.auth_api is True

    def test_overrides_skip_none(self):
        config = load_config({"client_class_name": "CMSClient", "api_prefix": None})
        assert config.client_class_name == "CMSClient"
        assert config.api_prefix == "/api"

    def test_config_file_and_overrides(self, tmp_path):
        path = tmp_path / "schemagen.json"
        path.write_text(json.dumps({"output_dir": "from_file", "add_comments": False}))
        config = load_config({"output_dir": "from_cli"}, path)
        assert config.output_dir == "from_cli"
        assert config.add_comments is False

    def test_unknown_keys_go_to_custom(self, tmp_path):
        path = tmp_path / "schemagen.json"
        path.write_text(json.dumps({"watch": True}))
        assert load_config(config_file=path).custom == {"watch": True}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(config_file=tmp_path / "missing.json")

    def test_non_json_file(self, tmp_path):
        path = tmp_path / "schemagen.yaml"
        path.write_text("output_dir: x\n")
        with pytest.raises(ConfigError):
            load_config(config_file=path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "schemagen.json"
        path.write_text("{broken")
        with pytest.raises(ConfigError):
            load_config(config_file=path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "schemagen.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError):
            load_config(config_file=path)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"types_module": "my-types"},
            {"types_module": "client"},
            {"client_module": "__init__"},
            {"client_class_name": "1Client"},
            {"declaration_only": True, "emit_declarations": False},
            {"api_prefix": "api"},
        ],
    )
    def test_validate_config(self, overrides):
        config = GeneratorConfig(**overrides)
        assert ConfigManager().validate_config(config)

    def test_valid_config_has_no_warnings(self):
        assert ConfigManager().validate_config(GeneratorConfig()) == []


class TestFormatCode:
    def test_trailing_whitespace_and_blank_lines(self):
        code = "\n\nx = 1   \n\n\n\n\ny = 2\n\n\n"
        assert format_code(code) == "x = 1\n\n\ny = 2\n"

    def test_max_blank_lines(self):
        assert format_code("a = 1\n\n\n\nb = 2", max_blank_lines=1) == "a = 1\n\nb = 2\n"


def _engine(tmp_path, **templates):
    for name, source in templates.items():
        (tmp_path / f"{name}.j2").write_text(source)
    return TemplateEngine(tmp_path)


class TestTemplateEngine:
    def test_pyrepr_filter(self, tmp_path):
        engine = _engine(tmp_path, value="{{ value | pyrepr }}")
        assert engine.render_template("value.j2", {"value": 'say "hi"'}) == '"say \\"hi\\""'

    def test_comment_and_docstring_filters(self, tmp_path):
        engine = _engine(
            tmp_path, comment="{{ t | comment }}", docstring="{{ t | docstring }}"
        )
        assert engine.render_template("comment.j2", {"t": "a\n\nb"}) == "# a\n#\n# b"
        assert engine.render_template("docstring.j2", {"t": ' say "x" '}) == 'say \\"x\\"'

    def test_templates_load_from_directory(self, tmp_path):
        engine = _engine(tmp_path, greeting="Hello {{ name }}")
        assert engine.render_template("greeting.j2", {"name": "schemagen"}) == "Hello schemagen"

    def test_missing_directory_has_no_templates(self, tmp_path):
        with pytest.raises(TemplateError):
            TemplateEngine(tmp_path / "missing").render_template("greeting.j2", {})

    def test_undefined_variables_fail(self, tmp_path):
        engine = _engine(tmp_path, greeting="Hello {{ missing }}")
        with pytest.raises(TemplateError):
            engine.render_template("greeting.j2", {})
