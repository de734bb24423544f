"""
Tests for configuration loading and validation.
"""

from argparse import Namespace
from pathlib import Path

import pytest
import yaml

from entity_auto_generator.config_validation import (
    DatabaseSettings,
    ToolConfigSchema,
    load_config,
    validate_and_parse_config,
)
from entity_auto_generator.exceptions import ConfigurationError

POSTGRES = "django.db.backends.postgresql"


def raw_config(**overrides):
    values = {"databases": {"default": {"ENGINE": POSTGRES, "NAME": "shop"}}}
    values.update(overrides)
    return values


def cli_args(**overrides):
    values = {
        "config": None,
        "output_dir": None,
        "schema_name": None,
        "package_name": None,
        "continue_on_table_error": None,
        "dump_metadata": None,
        "verbose": False,
        "no_color": False,
    }
    values.update(overrides)
    return Namespace(**values)


class TestToolConfigSchema:

    def test_defaults(self):
        config = validate_and_parse_config(raw_config())

        assert config.schema_name == "public"
        assert config.package_name == "app"
        assert config.output_dir == "./generated_entities"
        assert config.include_tables is None
        assert config.continue_on_table_error is False
        assert config.format_code is True
        assert config.databases["default"].NAME == "shop"

    def test_schema_is_read_from_schema_key(self):
        config = validate_and_parse_config(raw_config(schema="inventory"))
        assert config.schema_name == "inventory"
        assert config["schema_name"] == "inventory"

    def test_table_lists_are_stripped(self):
        config = validate_and_parse_config(raw_config(include_tables=[" user ", "order"]))
        assert config.include_tables == ["user", "order"]

    def test_overlapping_filters_warn(self, caplog):
        validate_and_parse_config(raw_config(include_tables=["user"], exclude_tables=["user"]))
        assert "user" in caplog.text

    @pytest.mark.parametrize("overrides", [
        {"databases": {"replica": {"ENGINE": POSTGRES, "NAME": "shop"}}},
        {"databases": {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": "shop"}}},
        {"package_name": "class"},
        {"package_name": "my-package"},
        {"include_tables": ["user", "  "]},
        {"exclude_tables": "user"},
        {"schema": ""},
    ])
    def test_invalid_configs_exit(self, overrides, capsys):
        with pytest.raises(SystemExit) as excinfo:
            validate_and_parse_config(raw_config(**overrides))

        assert excinfo.value.code == 1
        assert "Configuration Errors" in capsys.readouterr().err

    def test_engine_hint(self, capsys):
        with pytest.raises(SystemExit):
            validate_and_parse_config(raw_config(databases={"default": {"ENGINE": "mysql", "NAME": "x"}}))
        assert POSTGRES in capsys.readouterr().err


class TestDatabaseSettings:

    @pytest.mark.parametrize("port, expected", [(5432, 5432), ("5433", 5433), ("", None), (None, None)])
    def test_valid_ports(self, port, expected):
        settings = DatabaseSettings(ENGINE=POSTGRES, NAME="shop", PORT=port)
        assert settings.PORT == expected

    @pytest.mark.parametrize("port", ["abc", 70000, -1, True, 54.32])
    def test_invalid_ports(self, port):
        with pytest.raises(ValueError):
            DatabaseSettings(ENGINE=POSTGRES, NAME="shop", PORT=port)

    def test_fields_are_attributes_only(self):
        settings = DatabaseSettings(ENGINE=POSTGRES, NAME="shop")

        assert settings.NAME == "shop"
        with pytest.raises(TypeError):
            settings["NAME"]


class TestLoadConfig:

    def write(self, tmp_path, data):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)

    def test_yaml_file(self, tmp_path):
        path = self.write(tmp_path, raw_config(schema="shop", package_name="shopgen", output_dir=str(tmp_path / "out")))

        config = load_config(path, cli_args())

        assert config.schema_name == "shop"
        assert config.package_name == "shopgen"
        assert config.output_dir == str((tmp_path / "out").resolve())

    def test_cli_overrides_file(self, tmp_path):
        path = self.write(tmp_path, raw_config(schema="shop", package_name="shopgen"))

        config = load_config(path, cli_args(schema_name="inventory", continue_on_table_error=True))

        assert config.schema_name == "inventory"
        assert config.package_name == "shopgen"
        assert config.continue_on_table_error is True

    def test_relative_output_dir_is_resolved(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = self.write(tmp_path, raw_config())

        config = load_config(path, cli_args(output_dir="build"))

        assert Path(config.output_dir) == (tmp_path / "build").resolve()

    def test_missing_file_falls_back_to_cli(self, tmp_path, caplog):
        with pytest.raises(SystemExit):
            load_config(str(tmp_path / "missing.yaml"), cli_args())
        assert "not found" in caplog.text

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("databases: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError) as excinfo:
            load_config(str(path), cli_args())

        assert excinfo.value.context["config_file"] == str(path)
        assert excinfo.value.error_code == "CONFIG_ERROR"

    def test_non_mapping_yaml_is_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(SystemExit):
            load_config(str(path), cli_args())
        assert "not a dictionary" in caplog.text

    def test_returns_schema_model(self, tmp_path):
        config = load_config(self.write(tmp_path, raw_config()), cli_args())
        assert isinstance(config, ToolConfigSchema)
