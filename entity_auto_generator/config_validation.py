"""
Configuration loading and validation for Entity Auto Generator.

The YAML file is merged with explicitly given CLI arguments and validated
against pydantic models before anything touches the database.
"""

from argparse import Namespace
import sys
import logging
import keyword
from typing import List, Optional, Dict, Any, Self
import yaml
from pathlib import Path

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
    ConfigDict,
)

from .constants import DefaultConfig, SupportedDatabases
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# --- Helper Functions for Validation ---


def is_valid_python_identifier(name: str) -> bool:
    """Check if a string is a valid Python identifier and not a keyword."""
    return name.isidentifier() and not keyword.iskeyword(name)


# --- Pydantic Models for Configuration Schema ---
class DatabaseSettings(BaseModel):
    """Schema for a single database connection within the DATABASES dict."""

    ENGINE: str = Field(
        ...,
        min_length=1,
        description="Django database engine (e.g., 'django.db.backends.postgresql').",
    )
    NAME: str = Field(..., min_length=1, description="Database name.")
    USER: Optional[str] = Field(default=None, description="Database user.")
    PASSWORD: Optional[str] = Field(default=None, description="Database password.")
    HOST: Optional[str] = Field(default=None, description="Database host address.")
    PORT: Optional[int] = Field(default=None, description="Database port number.")
    OPTIONS: Dict[str, Any] = Field(
        default_factory=dict, description="Database engine specific options."
    )

    @field_validator("ENGINE")
    @classmethod
    def validate_engine(cls, v: str) -> str:
        """Only PostgreSQL exposes the catalogs the schema reader queries."""
        if v not in SupportedDatabases.SUPPORTED:
            raise ValueError(
                f"Database engine: {v} is not supported. "
                f"Supported engines are: {', '.join(SupportedDatabases.SUPPORTED)}"
            )
        return v

    @field_validator("PORT", mode="before")
    @classmethod
    def validate_port(cls, v: Any) -> Optional[int]:
        """Ensure port is a number or string representation of one, and within range."""
        if v is None or v == "":
            return None
        if isinstance(v, bool):
            raise ValueError("Port must be an integer or string containing digits, got bool")
        if isinstance(v, int):
            port_num = v
        elif isinstance(v, str):
            if not v.isdigit():
                raise ValueError(
                    f"Port must be a number or string containing only digits, got '{v}'"
                )
            port_num = int(v)
        else:
            raise ValueError(
                f"Port must be an integer or string containing digits, got {type(v).__name__}"
            )

        if not 0 <= port_num <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {port_num}")
        return port_num


class ToolConfigSchema(BaseModel):
    """Pydantic schema defining the expected structure and types for the configuration."""

    databases: Dict[str, DatabaseSettings] = Field(
        ...,
        description="Django DATABASES setting dictionary. Must contain a 'default' key.",
    )
    schema_name: str = Field(
        DefaultConfig.SCHEMA,
        alias="schema",
        min_length=1,
        description="Database schema to introspect.",
    )
    output_dir: str = Field(
        DefaultConfig.OUTPUT_DIR,
        min_length=1,
        description="Directory the generated package is written into.",
    )
    package_name: str = Field(
        DefaultConfig.PACKAGE_NAME,
        min_length=1,
        description="Name of the generated Python package (Python identifier).",
    )
    include_tables: Optional[List[str]] = Field(
        default=None,
        description="Optional list of specific table names (strings) to include.",
    )
    exclude_tables: Optional[List[str]] = Field(
        default=None, description="Optional list of table names (strings) to exclude."
    )
    continue_on_table_error: bool = Field(
        default=DefaultConfig.CONTINUE_ON_TABLE_ERROR,
        description="Record tables with malformed keys as failed instead of aborting the run.",
    )
    format_code: bool = Field(
        default=DefaultConfig.FORMAT_CODE,
        description="Format generated modules with black.",
    )

    # 'schema' shadows a BaseModel attribute, so it is stored as schema_name
    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("package_name")
    @classmethod
    def check_valid_identifier(cls, v: str) -> str:
        """Validate package_name is a valid Python identifier."""
        if not is_valid_python_identifier(v):
            raise ValueError(
                f"'{v}' is not a valid Python identifier or is a reserved keyword."
            )
        return v

    @field_validator("include_tables", "exclude_tables", mode="before")
    @classmethod
    def check_table_names_list(cls, v: Optional[List[Any]]) -> Optional[List[str]]:
        """Ensure items in table lists are non-empty strings."""
        if v is None:
            return None
        if not isinstance(v, list):
            raise ValueError("include_tables/exclude_tables must be a list.")
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

    @model_validator(mode="after")
    def check_database_config(self) -> Self:
        """Perform cross-field validation checks."""
        if DefaultConfig.DB_ALIAS not in self.databases:
            raise ValueError(
                "The 'databases' configuration dictionary must contain a 'default' key."
            )

        if self.include_tables and self.exclude_tables:
            overlap = sorted(set(self.include_tables) & set(self.exclude_tables))
            if overlap:
                logger.warning(
                    f"Tables listed in both include_tables and exclude_tables will be excluded: {', '.join(overlap)}"
                )
        return self


# --- Validation Function ---
def validate_and_parse_config(config_dict: Dict[str, Any]) -> ToolConfigSchema:
    """
    Validates a raw configuration dictionary against the ToolConfigSchema.
    Exits with error messages if validation fails.
    """
    try:
        validated_config = ToolConfigSchema.model_validate(config_dict)
        logger.debug(
            "Configuration dictionary parsed and validated successfully against schema."
        )
        return validated_config
    except ValidationError as e:
        logger.critical(
            "Configuration validation failed! Please check your config file or arguments."
        )
        print("\n--- Configuration Errors ---", file=sys.stderr)
        for error in e.errors():
            loc_parts = [str(loc_item) for loc_item in error.get("loc", ())]
            loc_str = " -> ".join(loc_parts) if loc_parts else "Model Level"
            msg = error.get("msg", "Unknown validation error")
            input_value = error.get("input", "N/A")

            print(f"  - Location: '{loc_str}'", file=sys.stderr)
            print(f"    Error:    {msg}", file=sys.stderr)

            if "package_name" in loc_parts:
                print(
                    f"    Hint:     Value '{input_value}' must be a valid Python variable name.",
                    file=sys.stderr,
                )
            elif "ENGINE" in loc_parts:
                print(
                    f"    Hint:     Use '{SupportedDatabases.POSTGRESQL}'.",
                    file=sys.stderr,
                )

        print("----------------------------", file=sys.stderr)
        sys.exit(1)


def load_config(config_path: Optional[str], cli_args: Namespace) -> ToolConfigSchema:
    """
    Loads configuration from YAML file, merges with CLI arguments,
    validates the result, and returns a validated Pydantic model instance.

    Raises:
        ConfigurationError: If the file exists but cannot be read or parsed
    """
    raw_config: Dict[str, Any] = {}

    # 1. Load from YAML file if path is provided
    if config_path:
        config_file = Path(config_path)
        if config_file.is_file():
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    yaml_config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Error parsing YAML file {config_path}: {e}", config_file=config_path
                ) from e
            except OSError as e:
                raise ConfigurationError(
                    f"Error reading config file {config_path}: {e}", config_file=config_path
                ) from e

            if yaml_config and isinstance(yaml_config, dict):
                raw_config.update(yaml_config)
                logger.debug(f"Loaded configuration from {config_path}")
            elif yaml_config:
                logger.warning(
                    f"Content in config file {config_path} is not a dictionary. Ignoring file content."
                )
        else:
            logger.warning(
                f"Config file not found at {config_path}. Using defaults and CLI arguments."
            )

    # 2. Override with CLI arguments (only those explicitly provided)
    overridden_keys = set()
    fields = ToolConfigSchema.model_fields
    for key, value in vars(cli_args).items():
        if value is not None and key != "databases" and key in fields:
            raw_config[fields[key].alias or key] = value
            overridden_keys.add(key)
    if overridden_keys:
        logger.debug(f"Overridden config keys from CLI arguments: {overridden_keys}")

    logger.info("Validating final configuration...")
    validated_config = validate_and_parse_config(raw_config)

    validated_config.output_dir = str(Path(validated_config.output_dir).resolve())

    logger.info("Configuration loaded and validated successfully.")
    return validated_config
