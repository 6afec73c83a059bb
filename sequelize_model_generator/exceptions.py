"""
Custom exception hierarchy for the Sequelize model generator.

Every error raised by the mapping engine or the generation pipeline derives
from GeneratorError, so the CLI can report any failure through one handler
while callers that need finer control can catch the specific subclass.
"""

from typing import Dict, Any, Optional, List, Sequence


class GeneratorError(Exception):
    """
    Base exception for all generator errors.

    Carries structured context and recovery suggestions alongside the message.
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


class ConfigurationError(GeneratorError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_file: str = None, **kwargs):
        context = kwargs.get('context', {})
        if config_file:
            context['config_file'] = config_file

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the configuration file syntax",
                "Verify all required keys are present",
                "Compare your keys with the defaults in constants.DEFAULT_CONFIG",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code=kwargs.get('error_code', "CONFIG_ERROR")
        )


class MissingConfigError(ConfigurationError):
    """Raised when a configuration key has neither a value nor a default."""

    def __init__(self, key: str, table: str = None):
        context = {'key': key}
        if table:
            context['table'] = table
        super().__init__(
            f"Configuration key '{key}' is not set",
            context=context,
            suggestions=[
                f"Set '{key}' in your configuration file or on the command line",
            ],
            error_code="MISSING_CONFIG",
        )
        self.key = key


class SchemaIntrospectionError(GeneratorError):
    """Raised when the schema graph cannot be loaded or is inconsistent."""

    def __init__(self, message: str, table: str = None, column: str = None, **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if column:
            context['column'] = column

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check the schema snapshot file path and syntax",
                "Verify every referenced table and column exists in the snapshot",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="INTROSPECTION_ERROR"
        )


class UnsupportedSchemaError(GeneratorError):
    """Raised when a relation spans more than one column."""

    def __init__(self, message: str, table: str = None, constraint: str = None,
                 columns: Sequence[str] = (), **kwargs):
        context = kwargs.get('context', {})
        if table:
            context['table'] = table
        if constraint:
            context['constraint'] = constraint
        if columns:
            context['columns'] = ", ".join(columns)

        super().__init__(
            message,
            context=context,
            suggestions=[
                "Only single-column foreign keys can be mapped to associations",
                "Add the table to generate.skipTable to leave it out of generation",
            ],
            error_code="UNSUPPORTED_SCHEMA"
        )


class NamingCollisionError(GeneratorError):
    """Raised when two relations of one table resolve to the same association name."""

    def __init__(self, table: str, collisions: Dict[str, List[str]]):
        self.table = table
        self.collisions = collisions
        names = ", ".join(sorted(collisions))
        super().__init__(
            f"Table '{table}' has relations sharing the association name(s): {names}",
            context={
                name: " / ".join(relations) for name, relations in sorted(collisions.items())
            },
            suggestions=[
                "Rename one of the foreign key constraints or columns",
                "Disable generate.hasManyThrough or generate.belongsToMany for this table "
                "in generateOverride",
                "Add the conflicting table to generate.skipTable",
            ],
            error_code="NAMING_COLLISION"
        )


class OutputError(GeneratorError):
    """Raised when rendering or writing a model file fails."""

    def __init__(self, message: str, file_path: str = None, table: str = None, **kwargs):
        context = kwargs.get('context', {})
        if file_path:
            context['file_path'] = file_path
        if table:
            context['table'] = table

        suggestions = kwargs.get('suggestions', [])
        if not suggestions:
            suggestions = [
                "Check that the output folder is writable",
                "Verify the template folder and template name",
            ]

        super().__init__(
            message,
            context=context,
            suggestions=suggestions,
            error_code="OUTPUT_ERROR"
        )
