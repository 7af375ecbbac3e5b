"""
SchemaObjectResolver - Turn a candidate class name into a live schema object.

Resolution order (first match wins):
1. Singleton accessor: the class itself declares `instance` (a value,
   classmethod or staticmethod) or inherits a classmethod accessor. If the
   object it yields is a concrete schema object, that shared object is used.
   A subclass of a `@singleton` class does not share its parent's object.
2. Default construction: no accessor applies and the class itself is a
   concrete schema object, so `cls()` is used.

Anything else yields None. Most scanned classes are not schema objects, so
that is not an error. Failures while importing or instantiating a single
candidate (including a module calling sys.exit on import) are logged with
its source file and also yield None.
"""

import inspect
import logging
from typing import Any, Optional

from schemadeploy.classpath import ExecutionContext
from schemadeploy.objects import SINGLETON_ACCESSOR, SchemaObject, is_schema_object_type
from schemadeploy.scanner import Candidate


logger = logging.getLogger(__name__)

_MISSING = object()


class SchemaObjectResolver:
    """Resolves candidates against an active ExecutionContext."""

    def __init__(self, context: ExecutionContext, accessor: str = SINGLETON_ACCESSOR):
        self.context = context
        self.accessor = accessor

    def resolve(self, candidate: Candidate) -> Optional[SchemaObject]:
        """
        Obtain at most one schema object for a candidate.

        Args:
            candidate: Candidate produced by the scanner

        Returns:
            The schema object, or None if the candidate does not provide one
        """
        try:
            target = self.context.resolve(candidate.name)
            obj = self.materialize(target)
        except (Exception, SystemExit) as e:
            logger.error(
                "Failed to process a file: %s (%s: %s)",
                candidate.source, candidate.name, e,
                exc_info=logger.isEnabledFor(logging.DEBUG),
                extra={"source": str(candidate.source)},
            )
            return None

        if obj is not None:
            logger.debug("Found schema object: %s", candidate.name)
        return obj

    def materialize(self, target: Any) -> Optional[SchemaObject]:
        """Apply the singleton-then-construct rule to a resolved class."""
        if not inspect.isclass(target):
            return None

        accessor = self._singleton_accessor(target)
        if accessor is not _MISSING:
            value = accessor()
            if is_schema_object_type(type(value)):
                return value
            return None

        if is_schema_object_type(target):
            return target()
        return None

    def _singleton_accessor(self, cls: type):
        """
        Return a zero-argument callable producing the singleton, or _MISSING.

        Only the class's own accessor counts; an inherited one is accepted
        when it is a classmethod, since that is bound to the subclass.
        Plain functions (instance methods) and properties are not accessors.
        """
        declared = cls.__dict__.get(self.accessor, _MISSING)
        if declared is _MISSING:
            inherited = inspect.getattr_static(cls, self.accessor, _MISSING)
            if isinstance(inherited, classmethod):
                return getattr(cls, self.accessor)
            return _MISSING
        if isinstance(declared, (classmethod, staticmethod)):
            return getattr(cls, self.accessor)
        if inspect.isfunction(declared) or isinstance(declared, property):
            return _MISSING
        return lambda: declared
