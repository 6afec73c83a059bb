"""
Tests for configuration loading and per-table resolution.
"""

from argparse import Namespace
from unittest import TestCase

import pytest

from sequelize_model_generator.config import (
    ResolvedConfig,
    build_config,
    cli_overrides,
    deep_merge,
    load_config,
)
from sequelize_model_generator.exceptions import ConfigurationError, MissingConfigError


class TestResolvedConfig(TestCase):
    """Test cases for dotted lookup and override resolution"""

    def setUp(self):
        self.config = ResolvedConfig({
            "generate": {"columnDefault": True, "prefixForBelongsTo": "related"},
            "generateOverride": {
                "orders": {"columnDefault": False},
                "sales.orders": {"prefixForBelongsTo": "linked"},
            },
            "tableOptions": {"timestamps": False},
        })

    def test_get_dotted_key(self):
        assert self.config.get("generate.columnDefault") is True
        assert self.config.get("tableOptions") == {"timestamps": False}

    def test_get_missing_key_raises(self):
        with self.assertRaises(MissingConfigError) as ctx:
            self.config.get("generate.unknown")
        assert ctx.exception.key == "generate.unknown"

    def test_get_missing_key_with_default(self):
        assert self.config.get("generate.unknown", "fallback") == "fallback"
        assert self.config.get("generate.unknown", None) is None

    def test_has(self):
        assert self.config.has("generate.columnDefault")
        assert not self.config.has("generate.columnDefault.nested")
        assert not self.config.has("output")

    def test_override_wins_over_general_value(self):
        assert self.config.resolve("orders", "generate.columnDefault") is False
        assert self.config.resolve("customers", "generate.columnDefault") is True

    def test_override_path_rewrites_first_segment_only(self):
        assert self.config.override_path("orders", "generate.columnDefault") == (
            "generateOverride", "orders", "columnDefault"
        )

    def test_table_name_with_dot_is_one_segment(self):
        assert self.config.resolve("sales.orders", "generate.prefixForBelongsTo") == "linked"
        assert self.config.resolve("orders", "generate.prefixForBelongsTo") == "related"

    def test_resolve_is_idempotent(self):
        first = self.config.resolve("orders", "generate.columnDefault")
        second = self.config.resolve("orders", "generate.columnDefault")
        assert first == second

    def test_resolve_missing_raises_with_table(self):
        with self.assertRaises(MissingConfigError) as ctx:
            self.config.resolve("orders", "generate.unknown")
        assert ctx.exception.context["table"] == "orders"

    def test_config_is_immutable(self):
        with self.assertRaises(AttributeError):
            self.config.extra = 1
        with self.assertRaises(TypeError):
            self.config.get("generate")["columnDefault"] = False

    def test_to_dict_returns_independent_copy(self):
        data = self.config.to_dict()
        data["generate"]["columnDefault"] = False
        assert self.config.get("generate.columnDefault") is True

    def test_repr_masks_password(self):
        config = build_config({"database": {"user": "app", "password": "s3cret"}})
        text = repr(config)
        assert "s3cret" not in text
        assert "'password': '********'" in text
        assert "'user': 'app'" in text
        assert config.get("database.password") == "s3cret"


class TestBuildConfig(TestCase):
    """Test cases for default merging and validation"""

    def test_defaults(self):
        config = build_config()
        assert config.get("generate.prefixForBelongsTo") == "related"
        assert config.get("generate.hasManyThrough") is False
        assert config.get("generate.belongsToMany") is True
        assert config.get("database.schema") == ("public",)
        assert config.get("database.port") == 5432
        assert config.get("output.concurrency") == 4
        assert config.get("tableOptions") == {"timestamps": False}
        assert config.get("generateOverride") == {}

    def test_overrides_are_deep_merged(self):
        config = build_config({
            "generate": {"useSchemaName": False},
            "tableOptions": {"paranoid": True},
        })
        assert config.get("generate.useSchemaName") is False
        assert config.get("generate.modelCamelCase") is True
        assert config.get("tableOptions") == {"timestamps": False, "paranoid": True}

    def test_generate_override_keeps_only_given_keys(self):
        config = build_config({"generateOverride": {"orders": {"columnDefault": False}}})
        assert config.get("generateOverride") == {"orders": {"columnDefault": False}}
        assert config.resolve("orders", "generate.columnDescription") is True

    def test_skip_list_entries_are_stripped(self):
        config = build_config({"generate": {"skipTable": [" audit_log ", "sales.orders"]}})
        assert config.get("generate.skipTable") == ("audit_log", "sales.orders")

    def test_invalid_values_raise_configuration_error(self):
        invalid = [
            {"output": {"concurrency": 0}},
            {"output": {"indent": -1}},
            {"database": {"port": "not-a-port"}},
            {"database": {"port": 70000}},
            {"generate": {"skipTable": ["  "]}},
            {"generate": {"unknownOption": True}},
            {"generateOverride": {"orders": {"skipTable": ["x"]}}},
        ]
        for overrides in invalid:
            with self.subTest(overrides=overrides):
                with self.assertRaises(ConfigurationError):
                    build_config(overrides)

    def test_unknown_top_level_keys_are_ignored(self):
        config = build_config({"somethingElse": {"a": 1}})
        assert not config.has("somethingElse")


class TestMergeHelpers(TestCase):

    def test_deep_merge_later_wins(self):
        merged = deep_merge({"a": {"b": 1, "c": 2}, "l": [1]}, {"a": {"b": 3}, "l": [2]})
        assert merged == {"a": {"b": 3, "c": 2}, "l": [2]}

    def test_deep_merge_does_not_mutate_inputs(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}

    def test_cli_overrides_ignore_unset_options(self):
        args = Namespace(host=None, port="5433", schema="public,sales", schema_file=None,
                         output="./out", verbose=True)
        assert cli_overrides(args) == {
            "database": {"port": "5433", "schema": "public,sales"},
            "output": {"folder": "./out"},
        }


def test_load_config_merges_file_and_cli(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "database:\n"
        "  host: db.local\n"
        "  port: 5432\n"
        "output:\n"
        "  folder: ./from-file\n"
        "generate:\n"
        "  skipTable: [audit_log]\n",
        encoding="utf-8",
    )
    args = Namespace(config=str(config_file), host=None, port="6543", database="shop",
                     user=None, password=None, schema="public, sales",
                     schema_file="schema.yaml", output=None)

    config = load_config(str(config_file), args)

    assert config.get("database.host") == "db.local"
    assert config.get("database.port") == 6543
    assert config.get("database.database") == "shop"
    assert config.get("database.schema") == ("public", "sales")
    assert config.get("database.snapshot") == "schema.yaml"
    assert config.get("output.folder") == "./from-file"
    assert config.get("generate.skipTable") == ("audit_log",)


def test_load_config_reads_json(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text('{"output": {"beautify": false}}', encoding="utf-8")
    config = load_config(str(config_file))
    assert config.get("output.beautify") is False


def test_load_config_without_file_uses_defaults():
    config = load_config(None, Namespace(host=None, output=None))
    assert config.get("output.folder") == "./model"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError) as exc_info:
        load_config(str(tmp_path / "missing.yaml"))
    assert exc_info.value.context["config_file"].endswith("missing.yaml")


def test_load_config_invalid_yaml(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("output: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(config_file))


def test_load_config_rejects_non_mapping(tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(config_file))
