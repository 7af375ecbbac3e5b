"""
ArtifactClasspath - Isolated import context built from build artifacts.

The classpath is the ordered, de-duplicated list of import roots
(directories and archives) of the project being processed. It produces an
ExecutionContext, which resolves qualified names against those roots only
while it is active.

Activation is the only process-wide side effect of a run: the roots are
prepended to sys.path for the duration of the block. On every exit path
sys.path is restored and modules imported from the roots are dropped from
sys.modules, so scanning a different project never leaves the orchestrator
with a corrupted import state.
"""

import importlib
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Sequence

from schemadeploy.errors import ClasspathError, TypeNotFoundError
from schemadeploy.utils import list_files


logger = logging.getLogger(__name__)

# Files accepted as import roots (zipimport handles all of them)
ARCHIVE_SUFFIXES = (".zip", ".whl", ".egg", ".pyz")


def _under(location: str, roots: Sequence[str]) -> bool:
    return any(location == root or location.startswith(root + os.sep) for root in roots)


def _loaded_from(module: Any, roots: Sequence[str]) -> bool:
    """Whether a module was imported from one of the roots (files, archives, namespace dirs)."""
    location = getattr(module, "__file__", None)
    if location:
        return _under(location, roots)
    return any(_under(str(p), roots) for p in getattr(module, "__path__", None) or [])


class ArtifactClasspath:
    """
    Ordered import roots for one build unit.

    The output root always comes first; dependency roots follow in the
    order they were declared.
    """

    def __init__(self, output_root: Path | str, dependencies: Sequence[Path | str] = ()):
        self._output_root = output_root
        self._dependencies = list(dependencies or [])

    def roots(self) -> list[Path]:
        """
        Resolve every declared root to an absolute filesystem location.

        Returns:
            Absolute paths, output root first, duplicates removed

        Raises:
            ClasspathError: If a root does not exist or is an unsupported file
        """
        resolved: list[Path] = []
        for entry in [self._output_root, *self._dependencies]:
            path = self._resolve_root(entry)
            if path not in resolved:
                resolved.append(path)
        return resolved

    @staticmethod
    def _resolve_root(entry: Path | str) -> Path:
        path = Path(entry).expanduser()
        if not path.exists():
            raise ClasspathError(f"Classpath root does not exist: {entry}")
        if path.is_file() and path.suffix.lower() not in ARCHIVE_SUFFIXES:
            raise ClasspathError(
                f"Classpath root is neither a directory nor an archive: {entry}"
            )
        return path.resolve()

    def build(self) -> "ExecutionContext":
        """Construct the execution context. Does not touch sys.path."""
        roots = self.roots()
        if not roots[0].is_dir():
            raise ClasspathError(f"Output root is not a directory: {self._output_root}")
        logger.debug("Classpath: %s", ", ".join(str(r) for r in roots))
        return ExecutionContext(roots)


class ExecutionContext:
    """
    Resolves qualified names (`package.module:Qual.Name`) within a set of roots.

    Usage:
        context = ArtifactClasspath(output_dir).build()
        with context.activate():
            cls = context.resolve("app.model:Country")
    """

    def __init__(self, roots: Sequence[Path]):
        if not roots:
            raise ClasspathError("Execution context needs at least one root")
        self._roots = list(roots)
        self._active = False

    @property
    def roots(self) -> list[Path]:
        return list(self._roots)

    @property
    def output_root(self) -> Path:
        """The compiled output root (first classpath entry)."""
        return self._roots[0]

    @property
    def active(self) -> bool:
        return self._active

    @contextmanager
    def activate(self) -> Iterator["ExecutionContext"]:
        """
        Install the roots for the duration of the block.

        Raises:
            ClasspathError: If the context is already active
        """
        if self._active:
            raise ClasspathError("Execution context is already active")

        saved_path = list(sys.path)
        saved_modules = set(sys.modules)
        root_entries = [str(r) for r in self._roots]

        sys.path[:0] = root_entries
        importlib.invalidate_caches()
        self._active = True
        try:
            yield self
        finally:
            self._active = False
            sys.path[:] = saved_path
            for name in [m for m in sys.modules if m not in saved_modules]:
                if _loaded_from(sys.modules[name], root_entries):
                    del sys.modules[name]
            for entry in root_entries:
                sys.path_importer_cache.pop(entry, None)
            importlib.invalidate_caches()

    def resolve(self, name: str) -> Any:
        """
        Resolve `module:Qual.Name` (or a bare module name) to an object.

        Raises:
            ClasspathError: If the context is not active
            TypeNotFoundError: If the module or attribute does not exist
        """
        if not self._active:
            raise ClasspathError(f"Cannot resolve {name}: execution context is not active")

        module_name, _, attr_path = name.partition(":")
        try:
            target = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing target module means "not found"; a missing
            # import inside the module is that module's own failure.
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                raise TypeNotFoundError(name, f"no module named {e.name}") from e
            raise

        if not attr_path:
            return target
        for part in attr_path.split("."):
            try:
                target = getattr(target, part)
            except AttributeError as e:
                raise TypeNotFoundError(name, f"no attribute {part}") from e
        return target

    def list_files(self, directory: Path | str) -> list[Path]:
        """Immediate regular files of a directory, sorted by name."""
        return list_files(directory)

    def __repr__(self) -> str:
        return f"ExecutionContext(roots={len(self._roots)}, active={self._active})"
