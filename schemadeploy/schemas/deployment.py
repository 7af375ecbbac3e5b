"""
Deployment schemas - descriptors and the ordered plan that applies them.

A DeploymentDescriptor names one seed-data file relative to the build
output root. A DeploymentPlan is the de-duplicated, ordered sequence of
descriptors for one run; each descriptor appears at most once.
"""

from dataclasses import dataclass, field
from typing import Iterator


DEFAULT_SUFFIX = ".cxd.xml"


def default_deployment(suffix: str = DEFAULT_SUFFIX) -> str:
    """Identifier of the implicit deployment that every plan starts with."""
    return f"default{suffix}"


@dataclass(frozen=True)
class DeploymentDescriptor:
    """
    A seed-data file to load after schema creation.

    Attributes:
        identifier: POSIX path relative to the output root (e.g. "app/model/seed.cxd.xml")
        suffix: The configured descriptor suffix
    """
    identifier: str
    suffix: str = DEFAULT_SUFFIX

    def __str__(self) -> str:
        return self.identifier


@dataclass
class DeploymentPlan:
    """Ordered, de-duplicated sequence of deployment descriptors."""
    suffix: str = DEFAULT_SUFFIX
    descriptors: list[DeploymentDescriptor] = field(default_factory=list)

    def add(self, identifier: str) -> bool:
        """
        Append a descriptor unless its identifier is already planned.

        Returns:
            True if the descriptor was appended, False for a duplicate
        """
        if identifier in self:
            return False
        self.descriptors.append(DeploymentDescriptor(identifier, self.suffix))
        return True

    def extend(self, identifiers) -> None:
        for identifier in identifiers:
            self.add(identifier)

    @property
    def identifiers(self) -> list[str]:
        return [d.identifier for d in self.descriptors]

    def __contains__(self, identifier: object) -> bool:
        if isinstance(identifier, DeploymentDescriptor):
            identifier = identifier.identifier
        return any(d.identifier == identifier for d in self.descriptors)

    def __iter__(self) -> Iterator[DeploymentDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return len(self.descriptors)
