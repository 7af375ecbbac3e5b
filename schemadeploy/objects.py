"""
Schema objects - the capability discovered in a project's build output.

A schema object is anything that can describe itself as belonging to a
named schema and can emit its own create/drop statements. The orchestrator
only reads the name and the schema; the SQL is for the DDL engine.

Projects declare schema objects either by subclassing DeclaredObject or by
providing the four methods of the SchemaObject protocol on any class:

    class Country(DeclaredObject):
        name = "country"
        create_statement = "CREATE TABLE country (code TEXT PRIMARY KEY, name TEXT)"
        drop_statement = "DROP TABLE IF EXISTS country"

A class that should be registered as a single shared object (rather than
default-constructed) exposes it through the `instance` accessor, which the
`singleton` decorator sets up.
"""

import inspect
from typing import Any, Optional, Protocol, runtime_checkable


# Class-level attribute that exposes a pre-built schema object
SINGLETON_ACCESSOR = "instance"


@runtime_checkable
class SchemaObject(Protocol):
    """Structural capability checked during discovery."""

    def object_name(self) -> str:
        ...

    def schema_name(self) -> str:
        ...

    def sql_create(self) -> str:
        ...

    def sql_drop(self) -> str:
        ...


def is_schema_object_type(cls: Any) -> bool:
    """
    Check whether a class can provide schema objects.

    The class must be concrete (no abstract methods), must not be a
    Protocol itself and must structurally satisfy SchemaObject.
    """
    if not inspect.isclass(cls):
        return False
    if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
        return False
    return issubclass(cls, SchemaObject)


def qualified_name(obj: SchemaObject) -> str:
    """Return "schema.name" for logging and identity."""
    return f"{obj.schema_name()}.{obj.object_name()}"


class DeclaredObject:
    """
    Schema object declared with class attributes.

    Attributes:
        schema: Namespace the object belongs to (default "main")
        name: Object name; defaults to the lowercased class name
        create_statement: SQL executed on create
        drop_statement: SQL executed on drop
    """
    schema: str = "main"
    name: Optional[str] = None
    create_statement: str = ""
    drop_statement: str = ""

    def object_name(self) -> str:
        return self.name or type(self).__name__.lower()

    def schema_name(self) -> str:
        return self.schema

    def sql_create(self) -> str:
        return self.create_statement

    def sql_drop(self) -> str:
        return self.drop_statement

    def __repr__(self) -> str:
        return f"{type(self).__name__}({qualified_name(self)})"


def singleton(cls):
    """Class decorator: build one instance and expose it as cls.instance."""
    setattr(cls, SINGLETON_ACCESSOR, cls())
    return cls
