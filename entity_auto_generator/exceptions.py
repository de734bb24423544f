"""
Custom exception hierarchy for Entity Auto Generator.

Every error carries structured context (which table, which column) and a short
list of recovery suggestions, so a failed run can be diagnosed from the log
alone without re-running with extra instrumentation.
"""

import re
from typing import Dict, Any, Optional, List


class EntityGeneratorError(Exception):
    """
    Base exception for all Entity Auto Generator errors.

    Provides rich context and error recovery guidance.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        error_code: Optional[str] = None
    ):
        """
        Initialize the exception with context and recovery suggestions.

        Args:
            message: Human-readable error message
            context: Additional context about where/why the error occurred
            suggestions: List of potential solutions or next steps
            error_code: Unique error code for programmatic handling
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        self.error_code = error_code

    def __str__(self) -> str:
        """Return formatted error message with context."""
        lines = [self.message]

        if self.error_code:
            lines.append(f"Error Code: {self.error_code}")

        if self.context:
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestions:
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  • {suggestion}")

        return "\n".join(lines)


class ConfigurationError(EntityGeneratorError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = kwargs.get('context', {})
        if config_file:
            context['config_file'] = config_file

        suggestions = kwargs.get('suggestions') or [
            "Check the configuration file syntax",
            "Verify the 'databases' section has a 'default' entry",
        ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CONFIG_ERROR"
        )


class DatabaseConnectionError(EntityGeneratorError):
    """Raised when the database connection cannot be opened."""

    def __init__(self, message: str, database_url: str = None, engine: str = None, **kwargs):
        context = kwargs.get('context', {})
        if database_url:
            context['database_url'] = self._mask_credentials(database_url)
        if engine:
            context['engine'] = engine

        suggestions = kwargs.get('suggestions') or [
            "Check database server is running",
            "Verify connection credentials",
            "Ensure the psycopg2 driver is installed",
        ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="DATABASE_CONNECTION_ERROR"
        )

    @staticmethod
    def _mask_credentials(url: str) -> str:
        """Mask the password part of a database URL."""
        return re.sub(r'://([^:/@]+):([^@]+)@', r'://\1:***@', url)


class SchemaAccessError(EntityGeneratorError):
    """Raised when an introspection query cannot be executed.

    Always fatal for the whole run: the schema is assumed stable while a run
    lasts, so there is nothing to retry.
    """

    def __init__(self, message: str, table: str = None, query: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if query:
            context['query'] = query

        suggestions = kwargs.get('suggestions') or [
            "Check database user permissions on information_schema and pg_catalog",
            "Verify the configured schema exists",
        ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="SCHEMA_ACCESS_ERROR"
        )


class MalformedConstraintError(EntityGeneratorError):
    """Raised when key-constraint metadata cannot be mapped to a consistent model.

    Fatal for the table being built. The run loop treats it as fatal for the
    whole run unless ``continue_on_table_error`` is enabled.
    """

    def __init__(self, message: str, table: str = None, column: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if column:
            context['column'] = column

        suggestions = kwargs.get('suggestions') or [
            "Inspect the table's primary and foreign key constraints",
            "Exclude the table via 'exclude_tables' or enable 'continue_on_table_error'",
        ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="MALFORMED_CONSTRAINT"
        )
        self.table = table
        self.column = column


class CodeGenerationError(EntityGeneratorError):
    """Raised when an artifact cannot be emitted."""

    def __init__(self, message: str, component: str = None, table: str = None, **kwargs):
        context = kwargs.get('context', {})
        if component:
            context['component'] = component  # e.g., 'record', 'repository', 'service'
        if table:
            context['table'] = table

        suggestions = kwargs.get('suggestions') or [
            "Check the output directory is writable",
            "Check for identifiers that cannot be expressed in Python",
        ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="CODE_GENERATION_ERROR"
        )
