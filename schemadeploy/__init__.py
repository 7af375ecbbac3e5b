"""
schemadeploy - Build-time schema export and data deployment

Discovers schema objects in a project's build output, creates the schema
through a DDL engine and seeds it from deployment descriptors.
"""

__version__ = "0.1.0"


__all__ = [
    "DeployConfig",
    "load_config",
    "SchemaDeployRunner",
    "DeclaredObject",
    "SchemaObject",
    "singleton",
]

from .config import DeployConfig, load_config
from .objects import DeclaredObject, SchemaObject, singleton
from .runner import SchemaDeployRunner
