"""
Error classes for schemadeploy runs.

These error types classify failures at the run boundary:
- ClasspathError: The execution context cannot be built (fatal)
- ExportError: The run aborted; wraps the underlying cause (fatal)
- ConfigError: Configuration missing or invalid
- TypeNotFoundError: A name does not resolve inside the execution context
- DeploymentError: A deployment descriptor cannot be loaded or applied

Error handling contract:
- Per-file, per-candidate and per-descriptor failures are isolated and logged
- Only context setup and run-level failures propagate to the caller
"""


class SchemaDeployError(Exception):
    """Base exception for schemadeploy."""
    pass


class ConfigError(SchemaDeployError):
    """Configuration validation error."""
    pass


class ClasspathError(SchemaDeployError):
    """
    The isolated execution context cannot be prepared.

    Examples:
    - A declared import root does not exist
    - A declared root is a file but not a recognised archive
    - The context is used while inactive or activated twice
    """
    pass


class TypeNotFoundError(SchemaDeployError, LookupError):
    """Raised when a qualified name does not resolve in the execution context."""

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        message = f"Cannot resolve {name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DeploymentError(SchemaDeployError):
    """
    A deployment descriptor cannot be applied.

    Examples:
    - Malformed XML
    - Unknown on-exist policy or invalid table identifier
    - Database rejected a record
    """
    pass


class ExportError(SchemaDeployError):
    """The run aborted; the original exception is chained as __cause__."""
    pass
