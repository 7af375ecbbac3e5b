"""
DDL engines - execute create/drop statements for registered schema objects.

The orchestrator talks to an engine only through the DDLEngine protocol.
SqliteEngine is the reference implementation over the standard library
sqlite3 module; each schema object supplies its own SQL, so the engine does
no dialect generation.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Protocol

from schemadeploy.objects import SchemaObject, qualified_name
from schemadeploy.schemas import Message


logger = logging.getLogger(__name__)


class DDLEngine(Protocol):
    """
    Engine contract consumed by SchemaRegistry.

    msgs() returns the messages of the most recent drop() or create() call,
    in execution order.
    """

    def add_object(self, obj: SchemaObject) -> None:
        ...

    def schemata(self) -> int:
        ...

    def drop(self) -> None:
        ...

    def create(self) -> None:
        ...

    def msgs(self) -> list[Message]:
        ...

    def close(self) -> None:
        ...


class SqliteEngine:
    """
    DDL engine backed by a sqlite3 database.

    create() runs objects in registration order, drop() in reverse order so
    dependants go first. A failing statement produces an error message and
    the remaining statements still run.
    """

    def __init__(self, database: str | Path = ":memory:"):
        self.database = str(database)
        self._conn: Optional[sqlite3.Connection] = None
        self._objects: list[SchemaObject] = []
        self._msgs: list[Message] = []

    @property
    def connection(self) -> sqlite3.Connection:
        """Open the database on first use."""
        if self._conn is None:
            if self.database != ":memory:":
                Path(self.database).parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Connecting to %s", self.database)
            self._conn = sqlite3.connect(self.database)
        return self._conn

    def add_object(self, obj: SchemaObject) -> None:
        self._objects.append(obj)

    def schemata(self) -> int:
        return len({obj.schema_name() for obj in self._objects})

    def create(self) -> None:
        self._msgs = []
        for obj in self._objects:
            self._execute("CREATE", obj, obj.sql_create())
        self.connection.commit()

    def drop(self) -> None:
        self._msgs = []
        for obj in reversed(self._objects):
            self._execute("DROP", obj, obj.sql_drop())
        self.connection.commit()

    def msgs(self) -> list[Message]:
        return list(self._msgs)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _execute(self, action: str, obj: SchemaObject, sql: str) -> None:
        label = f"{action} {qualified_name(obj)}"
        if not sql or not sql.strip():
            self._msgs.append(Message.diagnostic(f"{label}: no statement", sql))
            return
        try:
            self.connection.execute(sql)
        except sqlite3.Error as e:
            self._msgs.append(Message.error(f"{label}: {e}", sql))
        else:
            self._msgs.append(Message.info(f"{label}: OK", sql))
