"""SchemaDeployRunner - Central dispatcher for a schemadeploy run.

This module wires the stages of a run together:
1. Builds the isolated execution context from the build output (fatal on failure)
2. Scans configured packages and resolves schema objects into the registry
3. Drops (optionally) and creates the schema through the DDL engine
4. Plans and applies deployment descriptors
5. Releases engine resources exactly once, on every exit path

Usage:
    from schemadeploy.runner import SchemaDeployRunner

    runner = SchemaDeployRunner(config)
    report = runner.generate()      # schema + deployments
    report = runner.export_schema() # schema only
    report = runner.deploy()        # deployments only
"""

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Optional

from schemadeploy.classpath import ArtifactClasspath, ExecutionContext
from schemadeploy.config import DeployConfig
from schemadeploy.deployment import (
    DeploymentApplier,
    DeploymentLoader,
    DeploymentReport,
    LoaderFactory,
)
from schemadeploy.engine import DDLEngine, SqliteEngine
from schemadeploy.errors import ClasspathError, ExportError
from schemadeploy.objects import SchemaObject, qualified_name
from schemadeploy.planner import DeploymentPlanner
from schemadeploy.registry import SchemaRegistry
from schemadeploy.resolver import SchemaObjectResolver
from schemadeploy.scanner import CandidateScanner
from schemadeploy.schemas import DeploymentPlan, Message

logger = logging.getLogger(__name__)


NO_OBJECTS_MESSAGE = "No schema objects found to export."


@dataclass
class RunReport:
    """What a run did, for the CLI and for callers."""
    objects: list[str] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    exported: bool = False
    plan: Optional[DeploymentPlan] = None
    deployments: Optional[DeploymentReport] = None
    duration_s: float = 0.0

    @property
    def errors(self) -> list[Message]:
        return [m for m in self.messages if m.is_error]

    @property
    def ok(self) -> bool:
        if self.errors:
            return False
        return self.deployments is None or self.deployments.ok

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "exported": self.exported,
            "objects": list(self.objects),
            "messages": [m.to_dict() for m in self.messages],
            "plan": self.plan.identifiers if self.plan is not None else None,
            "deployments": self.deployments.to_dict() if self.deployments is not None else None,
            "duration_s": round(self.duration_s, 3),
        }


class SchemaDeployRunner:
    """
    Runs schema discovery, export and deployment for one configuration.

    Args:
        config: Run settings
        engine: DDL engine; defaults to SqliteEngine(config.database)
        loader_factory: Builds a deployment loader for a descriptor path;
            defaults to DeploymentLoader over the engine's connection
    """

    def __init__(
        self,
        config: DeployConfig,
        engine: Optional[DDLEngine] = None,
        loader_factory: Optional[LoaderFactory] = None,
    ):
        self.config = config
        self.engine = engine if engine is not None else SqliteEngine(config.database)
        self.loader_factory = loader_factory or self._default_loader_factory

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def generate(self) -> RunReport:
        """Export the schema, then apply deployments."""
        return self._run(export=True, deploy=True)

    def export_schema(self) -> RunReport:
        """Export the schema only."""
        return self._run(export=True, deploy=False)

    def deploy(self) -> RunReport:
        """Apply deployments only."""
        return self._run(export=False, deploy=True)

    def discover(self) -> list[SchemaObject]:
        """
        Scan and resolve without sending anything to the engine.

        Raises:
            ClasspathError: If the execution context cannot be built
        """
        registry = SchemaRegistry(self.engine)
        with ExitStack() as stack:
            context = self._enter(stack, registry)
            self.collect(context, registry)
        return registry.objects()

    def plan(self) -> DeploymentPlan:
        """Build the deployment plan for the configured output directory."""
        planner = DeploymentPlanner(self.config.output_dir, self.config.deployments_suffix)
        return planner.plan(self.config.packages, self.config.deployments)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def build_context(self) -> ExecutionContext:
        classpath = ArtifactClasspath(self.config.output_dir, self.config.dependencies)
        return classpath.build()

    def collect(self, context: ExecutionContext, registry: SchemaRegistry) -> int:
        """
        Scan configured packages and register every schema object found.

        Returns:
            Number of newly registered objects
        """
        scanner = CandidateScanner(context)
        resolver = SchemaObjectResolver(context)
        count = 0
        for candidate in scanner.scan_all(self.config.packages):
            obj = resolver.resolve(candidate)
            if obj is not None and registry.add_object(obj):
                count += 1
        return count

    def commit(self, registry: SchemaRegistry, report: RunReport) -> None:
        """Drop (if configured) and create the registered schema."""
        if not registry.schemata():
            logger.info(NO_OBJECTS_MESSAGE)
            return
        if self.config.drop:
            report.messages.extend(registry.drop())
        report.messages.extend(registry.create())
        report.exported = True

    def apply_deployments(self, report: RunReport) -> None:
        report.plan = self.plan()
        applier = DeploymentApplier(self.config.output_dir, self.loader_factory)
        report.deployments = applier.apply(report.plan)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _run(self, export: bool, deploy: bool) -> RunReport:
        started = time.monotonic()
        report = RunReport()

        registry = SchemaRegistry(self.engine)

        try:
            with ExitStack() as stack:
                context = self._enter(stack, registry)
                if export:
                    self.collect(context, registry)
                    report.objects = [qualified_name(o) for o in registry.objects()]
                    self.commit(registry, report)
                if deploy:
                    self.apply_deployments(report)
        except ClasspathError:
            # Context preparation failures are fatal and reported unchanged
            raise
        except Exception as e:
            logger.error("DDL export failed: %s", e)
            raise ExportError("DDL export failed.") from e
        finally:
            report.duration_s = time.monotonic() - started

        return report

    def _enter(self, stack: ExitStack, registry: SchemaRegistry) -> ExecutionContext:
        """Register engine release first, then build and activate the context."""
        if self.config.close_engine:
            stack.callback(registry.close)
        context = self.build_context()
        stack.enter_context(context.activate())
        return context

    def _default_loader_factory(self, path):
        connection = getattr(self.engine, "connection", None)
        if connection is None:
            raise ExportError(
                "The configured DDL engine has no connection; pass a loader_factory"
            )
        return DeploymentLoader(path, connection)
