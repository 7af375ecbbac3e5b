"""Tests for schemadeploy error classes.

Tests cover:
- Error hierarchy rooted at SchemaDeployError
- TypeNotFoundError doubling as LookupError
- Exceptions can be raised and caught
"""

import pytest
from schemadeploy.errors import (
    ClasspathError,
    ConfigError,
    DeploymentError,
    ExportError,
    SchemaDeployError,
    TypeNotFoundError,
)


class TestSchemaDeployError:
    """Tests for base SchemaDeployError."""

    def test_is_exception(self):
        assert issubclass(SchemaDeployError, Exception)

    def test_has_message(self):
        error = SchemaDeployError("my message")
        assert str(error) == "my message"

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigError, ClasspathError, TypeNotFoundError, DeploymentError, ExportError],
    )
    def test_subclasses_caught_as_base(self, error_cls):
        with pytest.raises(SchemaDeployError):
            raise error_cls("boom")


class TestTypeNotFoundError:
    """Tests for TypeNotFoundError."""

    def test_is_lookup_error(self):
        """Callers can treat a missing name like any other failed lookup."""
        with pytest.raises(LookupError):
            raise TypeNotFoundError("app.model:Missing")

    def test_message_includes_name_and_reason(self):
        error = TypeNotFoundError("app.model:Missing", "no attribute Missing")
        assert error.name == "app.model:Missing"
        assert str(error) == "Cannot resolve app.model:Missing: no attribute Missing"

    def test_message_without_reason(self):
        assert str(TypeNotFoundError("app")) == "Cannot resolve app"


class TestExportError:
    """Tests for ExportError chaining."""

    def test_preserves_cause(self):
        with pytest.raises(ExportError) as exc_info:
            try:
                raise RuntimeError("engine down")
            except RuntimeError as e:
                raise ExportError("DDL export failed.") from e
        assert isinstance(exc_info.value.__cause__, RuntimeError)
