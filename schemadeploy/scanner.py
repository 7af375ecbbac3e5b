"""
CandidateScanner - Find class definitions in a package of the build output.

The scanner never imports anything. It parses each module file with `ast`
and yields the qualified class names it finds, leaving resolution to the
SchemaObjectResolver. Nested and function-local classes are filtered by
name alone:

    Country                  -> kept
    Country.Meta             -> excluded (nested)
    build.<locals>.Temp      -> excluded (local)

A name is kept when the nested separator is absent or is only its final
character (a marker suffix such as "Country."). Each file is processed on
its own; a file that cannot be read or parsed is logged and skipped.
"""

import ast
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from schemadeploy.classpath import ExecutionContext


logger = logging.getLogger(__name__)

MODULE_SUFFIX = ".py"
NESTED_SEPARATOR = "."


@dataclass(frozen=True)
class Candidate:
    """
    A class name found during a scan.

    Attributes:
        name: "package.module:QualName", resolvable by ExecutionContext.resolve
        package: The configured package the scan started from
        source: The module file the class is defined in
    """
    name: str
    package: str
    source: Path

    @property
    def module(self) -> str:
        return self.name.partition(":")[0]

    @property
    def qualname(self) -> str:
        return self.name.partition(":")[2]


def is_candidate_name(name: str, separator: str = NESTED_SEPARATOR) -> bool:
    """
    Check that a class name is not a nested or synthetic construct.

    Args:
        name: Qualified class name
        separator: Nested-name separator

    Returns:
        True if the separator is absent or appears only as the last character
    """
    index = name.find(separator)
    return index == -1 or index == len(name) - 1


def package_path(package: str) -> str:
    """Translate a dotted package name to a relative path ("a.b" -> "a/b")."""
    return package.replace(".", "/")


class _ClassCollector(ast.NodeVisitor):
    """Collect every class definition with its __qualname__."""

    def __init__(self):
        self.qualnames: list[str] = []
        self._scope: list[str] = []

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self.qualnames.append(".".join([*self._scope, node.name]))
        self._scope.append(node.name)
        self.generic_visit(node)
        self._scope.pop()

    def _visit_function(self, node) -> None:
        self._scope.extend([node.name, "<locals>"])
        self.generic_visit(node)
        del self._scope[-2:]

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function


def module_name(package: str, path: Path) -> str:
    """Module name for a file directly inside `package`."""
    if path.stem == "__init__":
        return package
    return f"{package}.{path.stem}"


def read_class_names(path: Path) -> list[str]:
    """
    Parse a module file and return the qualified names of its classes.

    Raises:
        OSError, UnicodeDecodeError, SyntaxError, ValueError: On unreadable input
    """
    source = path.read_bytes()
    tree = ast.parse(source, filename=str(path))
    collector = _ClassCollector()
    collector.visit(tree)
    return collector.qualnames


class CandidateScanner:
    """
    Yields candidate class names for packages under the output root.

    Usage:
        scanner = CandidateScanner(context)
        for candidate in scanner.scan("app.model"):
            ...
    """

    def __init__(self, context: ExecutionContext, separator: str = NESTED_SEPARATOR):
        self.context = context
        self.separator = separator

    def scan(self, package: str) -> Iterator[Candidate]:
        """
        Scan one package directory.

        Args:
            package: Dotted package name (e.g. "app.model")

        Yields:
            Candidate for every top-level class of every module file
        """
        rel_path = package_path(package)
        directory = self.context.output_root / rel_path
        if not directory.is_dir():
            logger.warning("Omitting non-existent package %s", rel_path)
            return

        for path in self.context.list_files(directory):
            if path.suffix != MODULE_SUFFIX:
                continue
            yield from self._candidates_for(package, path)

    def scan_all(self, packages: Optional[Iterable[str]]) -> Iterator[Candidate]:
        """Scan several packages in order; None scans nothing."""
        if not packages:
            return
        for package in packages:
            yield from self.scan(package)

    def _candidates_for(self, package: str, path: Path) -> list[Candidate]:
        try:
            module = module_name(package, path)
            qualnames = read_class_names(path)
        except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as e:
            logger.error("Failed to process a file: %s (%s)", path, e)
            return []

        candidates = []
        for qualname in qualnames:
            if not is_candidate_name(qualname, self.separator):
                logger.debug("Skipping nested class %s:%s", module, qualname)
                continue
            candidates.append(Candidate(f"{module}:{qualname}", package, path))
        return candidates
