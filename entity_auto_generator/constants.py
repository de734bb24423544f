"""
Centralized constants for Entity Auto Generator.

This module collects the fixed vocabulary shared by the introspection layer,
the entity model builder and the code emitters, so that naming policies and
defaults live in one place.
"""

from typing import List


# =============================================================================
# CORE CONFIGURATION
# =============================================================================

class DefaultConfig:
    """Default configuration values."""

    OUTPUT_DIR = "./generated_entities"
    PACKAGE_NAME = "app"
    SCHEMA = "public"
    DB_ALIAS = "default"

    CONTINUE_ON_TABLE_ERROR = False
    FORMAT_CODE = True
    BLACK_LINE_LENGTH = 120


class SupportedDatabases:
    """Supported database engines.

    The introspection queries read ``pg_catalog`` so only PostgreSQL is accepted.
    """

    POSTGRESQL = 'django.db.backends.postgresql'

    SUPPORTED: List[str] = [POSTGRESQL]


# =============================================================================
# SCHEMA VOCABULARY
# =============================================================================

class ConstraintTypes:
    """Values of ``information_schema.table_constraints.constraint_type``."""

    PRIMARY_KEY = "PRIMARY KEY"
    FOREIGN_KEY = "FOREIGN KEY"


class TableTypes:
    """Values of ``information_schema.tables.table_type``."""

    BASE_TABLE = "BASE TABLE"


class ColumnTypes:
    """Values of ``information_schema.columns.data_type`` that defer to ``udt_name``."""

    USER_DEFINED = "USER-DEFINED"
    ARRAY = "ARRAY"


# =============================================================================
# NAMING POLICY
# =============================================================================

class NamingDefaults:
    """Fixed naming conventions applied by the naming normalizer."""

    # Every primary key column becomes this field, whatever the column is called
    IDENTIFIER_FIELD_NAME = "id"
    # One-to-many fields are the singular camelCase table name plus this suffix
    PLURAL_SUFFIX = "s"


# =============================================================================
# GENERATED PACKAGE LAYOUT
# =============================================================================

class GeneratedLayout:
    """Sub-packages and class-name suffixes of the generated code."""

    ENTITIES_PACKAGE = "entities"
    REPOSITORIES_PACKAGE = "repositories"
    SERVICES_PACKAGE = "services"
    CONTROLLERS_PACKAGE = "controllers"

    REPOSITORY_SUFFIX = "Repository"
    SERVICE_SUFFIX = "Service"
    CONTROLLER_SUFFIX = "Controller"

    EXCEPTIONS_MODULE = "exceptions"
    REPOSITORY_BASE_MODULE = "repository_base"
    NOT_FOUND_ERROR = "ResourceNotFoundError"
    REPOSITORY_BASE_CLASS = "CrudRepository"

    SUB_PACKAGES: List[str] = [
        ENTITIES_PACKAGE,
        REPOSITORIES_PACKAGE,
        SERVICES_PACKAGE,
        CONTROLLERS_PACKAGE,
    ]


class HTTPStatus:
    """Status codes attached to the generated controller routes."""

    OK = 200
    CREATED = 201
    NO_CONTENT = 204
