"""
schemadeploy.schemas - Records passed between the orchestrator stages.

Message: engine output from create/drop, consumed for reporting only
DeploymentDescriptor -> DeploymentPlan: seed data applied after schema creation
"""

from .message import Message, MessageKind
from .deployment import (
    DEFAULT_SUFFIX,
    DeploymentDescriptor,
    DeploymentPlan,
    default_deployment,
)

__all__ = [
    "Message",
    "MessageKind",
    "DEFAULT_SUFFIX",
    "DeploymentDescriptor",
    "DeploymentPlan",
    "default_deployment",
]
