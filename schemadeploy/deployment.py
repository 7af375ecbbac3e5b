"""
Deployment - Load seed data from deployment descriptors.

Descriptor format (*.cxd.xml):

    <deployments>
      <deployment table="country" on-exist="keep">
        <record code="ch" name="Switzerland"/>
        <record><code>de</code><name>Germany</name></record>
      </deployment>
    </deployments>

on-exist policies:
- fail     : plain INSERT, a conflicting row fails the descriptor (default)
- keep     : INSERT OR IGNORE, existing rows win
- update   : INSERT OR REPLACE, descriptor rows win
- recreate : delete all rows of the table first

A descriptor is applied in a single transaction. DeploymentApplier applies
a whole plan and isolates failures per descriptor.
"""

import logging
import re
import sqlite3
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol

from schemadeploy.errors import DeploymentError
from schemadeploy.schemas import DeploymentPlan


logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

INSERT_VERBS = {
    "fail": "INSERT",
    "keep": "INSERT OR IGNORE",
    "update": "INSERT OR REPLACE",
    "recreate": "INSERT",
}


class DataLoader(Protocol):
    """Loader contract: built from a descriptor path, applied with load_data()."""

    def load_data(self) -> int:
        ...


LoaderFactory = Callable[[Path], DataLoader]


def _quote(identifier: str) -> str:
    return ".".join(f'"{part}"' for part in identifier.split("."))


class DeploymentLoader:
    """
    Applies one XML deployment descriptor over a sqlite3 connection.

    Args:
        path: Descriptor file
        connection: Open sqlite3 connection (typically SqliteEngine.connection)
    """

    def __init__(self, path: Path | str, connection: sqlite3.Connection):
        self.path = Path(path)
        self.connection = connection

    def load_data(self) -> int:
        """
        Parse the descriptor and insert its records.

        Returns:
            Number of records inserted

        Raises:
            DeploymentError: If the descriptor is malformed or a record is rejected
            OSError: If the file cannot be read
        """
        deployments = self._parse()
        count = 0
        try:
            with self.connection:
                for element in deployments:
                    count += self._apply(element)
        except sqlite3.Error as e:
            raise DeploymentError(f"{self.path.name}: {e}") from e
        return count

    def _parse(self) -> list[ET.Element]:
        try:
            root = ET.parse(self.path).getroot()
        except ET.ParseError as e:
            raise DeploymentError(f"Malformed deployment descriptor {self.path.name}: {e}") from e

        if root.tag == "deployment":
            return [root]
        if root.tag != "deployments":
            raise DeploymentError(
                f"Unexpected root element <{root.tag}> in {self.path.name}; "
                "expected <deployments> or <deployment>"
            )
        return root.findall("deployment")

    def _apply(self, element: ET.Element) -> int:
        table = element.get("table", "")
        if not IDENTIFIER_PATTERN.match(table):
            raise DeploymentError(f"Invalid table name {table!r} in {self.path.name}")

        policy = element.get("on-exist", "fail")
        if policy not in INSERT_VERBS:
            raise DeploymentError(
                f"Unknown on-exist policy {policy!r} in {self.path.name}. "
                f"Expected one of: {', '.join(INSERT_VERBS)}"
            )

        if policy == "recreate":
            self.connection.execute(f"DELETE FROM {_quote(table)}")

        count = 0
        for record in element.findall("record"):
            values = self._record_values(record)
            if not values:
                continue
            columns = list(values)
            for column in columns:
                if not IDENTIFIER_PATTERN.match(column) or "." in column:
                    raise DeploymentError(f"Invalid column name {column!r} in {self.path.name}")
            sql = (
                f"{INSERT_VERBS[policy]} INTO {_quote(table)} "
                f"({', '.join(_quote(c) for c in columns)}) "
                f"VALUES ({', '.join('?' for _ in columns)})"
            )
            self.connection.execute(sql, [values[c] for c in columns])
            count += 1
        logger.debug("Loaded %d record(s) into %s from %s", count, table, self.path.name)
        return count

    @staticmethod
    def _record_values(record: ET.Element) -> dict[str, str]:
        values = dict(record.attrib)
        for child in record:
            values[child.tag] = (child.text or "").strip()
        return values


@dataclass
class DeploymentReport:
    """Outcome of applying a plan."""
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {"applied": self.applied, "skipped": self.skipped, "failed": self.failed}


class DeploymentApplier:
    """
    Applies planned descriptors in order.

    Missing descriptors are skipped with a warning; a failing descriptor is
    logged and never blocks the ones after it.
    """

    def __init__(self, output_root: Path | str, loader_factory: LoaderFactory):
        self.output_root = Path(output_root)
        self.loader_factory = loader_factory

    def apply(self, plan: DeploymentPlan) -> DeploymentReport:
        report = DeploymentReport()
        for descriptor in plan:
            identifier = descriptor.identifier
            path = self.output_root / identifier
            if not path.is_file():
                logger.warning("Omitting non-existent deployment %s.", identifier)
                report.skipped.append(identifier)
                continue
            try:
                self.loader_factory(path).load_data()
            except Exception as e:
                logger.error(
                    "Could not process deployment %s: %s", identifier, e,
                    exc_info=logger.isEnabledFor(logging.DEBUG),
                    extra={"deployment": identifier},
                )
                report.failed.append(identifier)
                continue
            logger.info("Deployment %s processed successfully.", identifier)
            report.applied.append(identifier)
        return report
