"""
Configuration loading, validation and resolution.

Configuration is built once per run: defaults, then an optional YAML/JSON file,
then command line options, deep-merged and validated against ToolConfigSchema.
The result is a ResolvedConfig, an immutable value passed to every component
that reads settings.
"""

import copy
import logging
from argparse import Namespace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import CLI_OPTION_PATHS, DEFAULT_CONFIG, DefaultConfig, MASKED_VALUE, OVERRIDE_SUFFIX
from .exceptions import ConfigurationError, MissingConfigError

logger = logging.getLogger(__name__)

MISSING = object()


# --- Pydantic Models for Configuration Schema ---

class ConfigSection(BaseModel):
    """Base for config sections: camelCase keys on disk, unknown keys rejected."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class DatabaseSettings(ConfigSection):
    host: Optional[str] = None
    port: Optional[int] = Field(default=DefaultConfig.DATABASE_PORT)
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    schemas: List[str] = Field(
        default_factory=lambda: list(DefaultConfig.DATABASE_SCHEMAS),
        alias="schema",
        description="Schemas to generate models for.",
    )
    snapshot: Optional[str] = Field(
        default=None, description="Path to a YAML/JSON schema snapshot."
    )

    @field_validator("port", mode="before")
    @classmethod
    def validate_port(cls, v: Any) -> Optional[int]:
        """Ensure port is a number or string representation of one, and within range."""
        if v is None or v == "":
            return None
        if isinstance(v, bool):
            raise ValueError("Port must be an integer, got bool")
        if isinstance(v, str):
            if not v.isdigit():
                raise ValueError(
                    f"Port must be a number or string containing only digits, got '{v}'"
                )
            v = int(v)
        if not isinstance(v, int):
            raise ValueError(
                f"Port must be an integer or string containing digits, got {type(v).__name__}"
            )
        if not 0 <= v <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {v}")
        return v

    @field_validator("schemas", mode="before")
    @classmethod
    def split_schema_list(cls, v: Any) -> Any:
        """Accept a comma separated string, as given on the command line."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


class TemplateSettings(ConfigSection):
    folder: Optional[str] = Field(
        default=None, description="Template folder. Packaged templates when unset."
    )
    name: str = Field(default=DefaultConfig.TEMPLATE_NAME, min_length=1)


class OutputSettings(ConfigSection):
    log: bool = True
    folder: str = Field(default=DefaultConfig.OUTPUT_FOLDER, min_length=1)
    beautify: bool = True
    indent: int = Field(default=DefaultConfig.OUTPUT_INDENT, ge=0)
    preserve_new_lines: bool = False
    warning: bool = True
    concurrency: int = Field(default=DefaultConfig.OUTPUT_CONCURRENCY, ge=1)


class GenerateSettings(ConfigSection):
    strip_first_table_from_has_many: bool = True
    has_many_through: bool = False
    belongs_to_many: bool = True
    prefix_for_belongs_to: str = DefaultConfig.PREFIX_FOR_BELONGS_TO
    use_schema_name: bool = True
    model_camel_case: bool = True
    relation_accessor_camel_case: bool = True
    column_accessor_camel_case: bool = True
    column_default: bool = True
    column_description: bool = True
    column_auto_increment: bool = True
    table_description: bool = True
    data_type_variable: str = Field(default=DefaultConfig.DATA_TYPE_VARIABLE, min_length=1)
    skip_table: List[str] = Field(default_factory=list)

    @field_validator("skip_table", mode="before")
    @classmethod
    def check_table_names_list(cls, v: Any) -> List[str]:
        """Ensure items in the skip list are non-empty strings."""
        if v is None:
            return []
        if not isinstance(v, (list, tuple)):
            raise ValueError("skipTable must be a list.")
        processed_list = []
        for index, item in enumerate(v):
            if not isinstance(item, str):
                raise ValueError(
                    f"Item at index {index} must be a string, found: {type(item).__name__}"
                )
            stripped_item = item.strip()
            if not stripped_item:
                raise ValueError(
                    f"Item at index {index} cannot be empty or just whitespace."
                )
            processed_list.append(stripped_item)
        return processed_list


class GenerateOverride(ConfigSection):
    """Per-table generate settings. Unset fields fall back to the general value."""

    strip_first_table_from_has_many: Optional[bool] = None
    has_many_through: Optional[bool] = None
    belongs_to_many: Optional[bool] = None
    prefix_for_belongs_to: Optional[str] = None
    use_schema_name: Optional[bool] = None
    model_camel_case: Optional[bool] = None
    relation_accessor_camel_case: Optional[bool] = None
    column_accessor_camel_case: Optional[bool] = None
    column_default: Optional[bool] = None
    column_description: Optional[bool] = None
    column_auto_increment: Optional[bool] = None
    table_description: Optional[bool] = None
    data_type_variable: Optional[str] = None


class ToolConfigSchema(ConfigSection):
    """Pydantic schema defining the expected structure and types for the configuration."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    template: TemplateSettings = Field(default_factory=TemplateSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    generate: GenerateSettings = Field(default_factory=GenerateSettings)
    generate_override: Dict[str, GenerateOverride] = Field(default_factory=dict)
    table_options: Dict[str, Any] = Field(default_factory=dict)
    table_options_override: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    # Top level keys other tools may share the file with are ignored
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_resolved(self) -> "ResolvedConfig":
        """Build the immutable config used by the generator."""
        data = self.model_dump(by_alias=True, exclude={"generate_override"})
        data["generateOverride"] = {
            table: override.model_dump(by_alias=True, exclude_none=True)
            for table, override in self.generate_override.items()
        }
        return ResolvedConfig(data)


# --- Resolved configuration ---

def freeze(value: Any) -> Any:
    """Recursively convert mappings to read-only proxies and lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Recursively convert a frozen value back to plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


def split_key(key: str) -> Tuple[str, ...]:
    return tuple(key.split("."))


class ResolvedConfig:
    """
    Immutable, fully merged configuration.

    Keys are dotted paths such as ``generate.columnDefault``. Table specific
    values live under ``<root>Override.<table>``, e.g.
    ``generateOverride.orders.columnDefault``, and win over the general value.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]):
        object.__setattr__(self, "_data", freeze(data))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ResolvedConfig is immutable")

    def __repr__(self) -> str:
        data = thaw(self._data)
        database = data.get("database")
        if isinstance(database, dict) and database.get("password"):
            database["password"] = MASKED_VALUE
        return f"ResolvedConfig({data!r})"

    def _lookup(self, parts: Tuple[str, ...]) -> Any:
        node: Any = self._data
        for part in parts:
            if not isinstance(node, Mapping) or part not in node:
                return MISSING
            node = node[part]
        return node

    def has(self, key: str) -> bool:
        """Check whether a dotted key is present."""
        return self._lookup(split_key(key)) is not MISSING

    def get(self, key: str, default: Any = MISSING) -> Any:
        """
        Get the value at a dotted key.

        Raises:
            MissingConfigError: If the key is absent and no default is given
        """
        return self.get_path(split_key(key), default)

    def get_path(self, parts: Tuple[str, ...], default: Any = MISSING) -> Any:
        """Get the value at an explicit path; segments may contain dots."""
        value = self._lookup(tuple(parts))
        if value is MISSING:
            if default is MISSING:
                raise MissingConfigError(".".join(parts))
            return default
        return value

    def override_path(self, table: str, key: str) -> Tuple[str, ...]:
        """
        Path of the table specific value for a key.

        Example:
            >>> config.override_path("orders", "generate.columnDefault")
            ('generateOverride', 'orders', 'columnDefault')
        """
        root, *rest = split_key(key)
        return (f"{root}{OVERRIDE_SUFFIX}", table, *rest)

    def resolve(self, table: str, key: str, default: Any = MISSING) -> Any:
        """
        Get a value for a table, preferring its override over the general key.

        Args:
            table: Table name
            key: Dotted key of the general value
            default: Returned when neither value is present

        Raises:
            MissingConfigError: If neither value is present and no default is given
        """
        value = self._lookup(self.override_path(table, key))
        if value is not MISSING:
            return value
        value = self._lookup(split_key(key))
        if value is not MISSING:
            return value
        if default is MISSING:
            raise MissingConfigError(key, table=table)
        return default

    def to_dict(self) -> Dict[str, Any]:
        """Plain, mutable copy of the configuration."""
        return thaw(self._data)


# --- Loading ---

def deep_merge(base: Mapping[str, Any], *overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge mappings recursively into a new dict; later mappings win.

    Lists and scalars are replaced, not merged.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for override in overrides:
        for key, value in override.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
                merged[key] = deep_merge(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def format_validation_errors(error: ValidationError) -> List[str]:
    lines = []
    for item in error.errors():
        loc_parts = [str(loc_item) for loc_item in item.get("loc", ())]
        loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
        lines.append(f"{loc_str}: {item.get('msg', 'Unknown validation error')}")
    return lines


def build_config(overrides: Optional[Mapping[str, Any]] = None,
                 config_file: Optional[str] = None) -> ResolvedConfig:
    """
    Merge overrides over the defaults, validate and freeze the result.

    Args:
        overrides: Nested config values in the on-disk (camelCase) layout
        config_file: Source file name, used in error reports

    Raises:
        ConfigurationError: If the merged configuration is invalid
    """
    raw_config = deep_merge(DEFAULT_CONFIG, overrides or {})
    try:
        validated = ToolConfigSchema.model_validate(raw_config)
    except ValidationError as e:
        problems = format_validation_errors(e)
        logger.debug(f"Configuration validation failed: {problems}")
        raise ConfigurationError(
            "Configuration validation failed",
            config_file=config_file,
            context={"errors": "; ".join(problems)},
        ) from e
    logger.debug("Configuration dictionary parsed and validated successfully against schema.")
    return validated.to_resolved()


def read_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a YAML or JSON config file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    config_file = Path(config_path)
    if not config_file.is_file():
        raise ConfigurationError(
            f"Config file not found at {config_path}",
            config_file=str(config_path),
        )
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Error parsing config file {config_path}: {e}",
            config_file=str(config_path),
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Error reading config file {config_path}: {e}",
            config_file=str(config_path),
        ) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Content in config file {config_path} is not a mapping",
            config_file=str(config_path),
        )
    logger.debug(f"Loaded configuration from {config_path}")
    return content


def cli_overrides(cli_args: Union[Namespace, Mapping[str, Any], None]) -> Dict[str, Any]:
    """Translate explicitly given command line options into nested config values."""
    if cli_args is None:
        return {}
    values = vars(cli_args) if isinstance(cli_args, Namespace) else dict(cli_args)
    overrides: Dict[str, Any] = {}
    for option, path in CLI_OPTION_PATHS.items():
        value = values.get(option)
        # Only override if the CLI arg was actually given
        if value is None:
            continue
        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = value
    return overrides


def load_config(config_path: Optional[str],
                cli_args: Union[Namespace, Mapping[str, Any], None] = None) -> ResolvedConfig:
    """
    Load configuration from defaults, a config file and command line options.

    Args:
        config_path: Optional YAML/JSON config file
        cli_args: Parsed command line options; None values are ignored

    Returns:
        The validated, immutable configuration

    Raises:
        ConfigurationError: If the file cannot be read or the result is invalid
    """
    file_config = read_config_file(config_path) if config_path else {}
    overrides = cli_overrides(cli_args)
    if overrides:
        logger.debug(f"Overridden config keys from CLI arguments: {sorted(overrides)}")

    config = build_config(deep_merge(file_config, overrides), config_file=config_path)
    logger.info("Configuration loaded and validated successfully.")
    return config
