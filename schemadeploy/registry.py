"""
SchemaRegistry - Accumulate schema objects and commit them through a DDL engine.

The registry provides:
- Registration grouped by schema (namespace), in registration order
- Identity de-duplication: (schema, name) is registered once; later
  registrations of the same identity are ignored
- drop()/create() delegating to the engine and triaging its messages
- A single release of engine resources via close() or the context manager

Message triage (operators rely on it to tell failures from routine DDL):
- info        -> logged at INFO
- error       -> logged at ERROR
- diagnostic  -> logged at DEBUG
- every message also logs its SQL at DEBUG
"""

import logging
from typing import Optional

from schemadeploy.engine import DDLEngine
from schemadeploy.objects import SchemaObject
from schemadeploy.schemas import Message, MessageKind


logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Registry of schema objects for one run.

    Usage:
        with SchemaRegistry(engine) as registry:
            registry.add_object(obj)
            if registry.schemata():
                registry.create()
    """

    def __init__(self, engine: DDLEngine):
        self.engine = engine
        self._schemata: dict[str, dict[str, SchemaObject]] = {}
        self._committed = False
        self._closed = False

    def add_object(self, obj: SchemaObject) -> bool:
        """
        Register a schema object under its schema.

        Returns:
            True if registered, False if the identity was already present
        """
        schema = obj.schema_name()
        name = obj.object_name()
        objects = self._schemata.setdefault(schema, {})
        if name in objects:
            logger.debug("Schema object %s.%s already registered, ignoring", schema, name)
            return False
        if self._committed:
            # Objects added after a commit still reach the engine
            self.engine.add_object(obj)
        objects[name] = obj
        return True

    def schemata(self) -> list[str]:
        """Distinct schema names, in registration order."""
        return list(self._schemata)

    def objects(self, schema: Optional[str] = None) -> list[SchemaObject]:
        """Registered objects grouped by schema, in registration order."""
        if schema is not None:
            return list(self._schemata.get(schema, {}).values())
        return [obj for objects in self._schemata.values() for obj in objects.values()]

    def __len__(self) -> int:
        return sum(len(objects) for objects in self._schemata.values())

    def __contains__(self, identity: object) -> bool:
        if not isinstance(identity, tuple) or len(identity) != 2:
            return False
        schema, name = identity
        return name in self._schemata.get(schema, {})

    def drop(self) -> list[Message]:
        """Drop every registered object. Returns the engine's messages."""
        self._commit_objects()
        self.engine.drop()
        return self._report(self.engine.msgs())

    def create(self) -> list[Message]:
        """Create every registered object. Returns the engine's messages."""
        self._commit_objects()
        self.engine.create()
        return self._report(self.engine.msgs())

    def close(self) -> None:
        """Release engine resources. Only the first call reaches the engine."""
        if self._closed:
            return
        self._closed = True
        self.engine.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "SchemaRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _commit_objects(self) -> None:
        if self._committed:
            return
        for obj in self.objects():
            self.engine.add_object(obj)
        self._committed = True

    @staticmethod
    def _report(messages) -> list[Message]:
        messages = list(messages)
        for msg in messages:
            if msg.kind == MessageKind.INFO:
                logger.info(msg.text)
            elif msg.kind == MessageKind.ERROR:
                logger.error(msg.text)
            else:
                logger.debug(msg.text)
            logger.debug("%s", msg.sql or "", extra={"sql": msg.sql})
        return messages
