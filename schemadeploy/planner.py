"""
DeploymentPlanner - Decide which deployment descriptors a run applies, and in what order.

Plan order is fixed:
1. The implicit default descriptor (default.cxd.xml for the default suffix)
2. Descriptors found in each configured package directory, package by package
3. Descriptors found directly in the output root
4. Explicitly configured descriptors

Identifiers are de-duplicated keeping the first position. Within one
directory, descriptors are taken in file-name order.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from schemadeploy.scanner import package_path
from schemadeploy.schemas import DEFAULT_SUFFIX, DeploymentPlan, default_deployment
from schemadeploy.utils import list_files


logger = logging.getLogger(__name__)


class DeploymentPlanner:
    """
    Builds a DeploymentPlan from the build output directory.

    Usage:
        planner = DeploymentPlanner(output_dir)
        plan = planner.plan(["app.model"], explicit=["extra/fixtures.cxd.xml"])
    """

    def __init__(self, output_root: Path | str, suffix: str = DEFAULT_SUFFIX):
        self.output_root = Path(output_root)
        self.suffix = suffix or DEFAULT_SUFFIX

    @property
    def default_identifier(self) -> str:
        return default_deployment(self.suffix)

    def plan(
        self,
        packages: Optional[Iterable[str]] = None,
        explicit: Optional[Iterable[str]] = None,
    ) -> DeploymentPlan:
        """
        Build the ordered, de-duplicated deployment plan.

        Args:
            packages: Dotted package names in configured order (None means none)
            explicit: Extra descriptor identifiers appended last

        Returns:
            DeploymentPlan starting with the default descriptor
        """
        plan = DeploymentPlan(suffix=self.suffix)
        plan.add(self.default_identifier)

        for package in packages or []:
            plan.extend(self.discover(package_path(package)))

        plan.extend(self.discover(""))

        for identifier in explicit or []:
            plan.add(_normalize(identifier))

        logger.debug("Deployment plan: %s", ", ".join(plan.identifiers))
        return plan

    def discover(self, rel_path: str) -> list[str]:
        """
        List descriptors directly inside a directory of the output root.

        Args:
            rel_path: Relative POSIX path ("" for the root itself)

        Returns:
            Descriptor identifiers relative to the output root
        """
        directory = self.output_root / rel_path if rel_path else self.output_root
        if not directory.is_dir():
            logger.warning(
                "Could not process deployments for package %s: directory not found.",
                rel_path or ".",
            )
            return []

        found = []
        for path in list_files(directory):
            if path.name.endswith(self.suffix):
                found.append(f"{rel_path}/{path.name}" if rel_path else path.name)
        return found


def _normalize(identifier: str) -> str:
    """Normalize separators of a configured identifier to POSIX form."""
    return identifier.replace("\\", "/").lstrip("/")
