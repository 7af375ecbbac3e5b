import logging
import textwrap
from pathlib import Path

import pytest


COUNTRY_SOURCE = '''
from schemadeploy.objects import DeclaredObject


class Country(DeclaredObject):
    name = "country"
    create_statement = "CREATE TABLE country (code TEXT PRIMARY KEY, name TEXT)"
    drop_statement = "DROP TABLE IF EXISTS country"

    class Meta:
        pass


class City(DeclaredObject):
    name = "city"
    create_statement = "CREATE TABLE city (name TEXT PRIMARY KEY, country TEXT REFERENCES country(code))"
    drop_statement = "DROP TABLE IF EXISTS city"


class NotASchemaObject:
    pass
'''


def write_module(root: Path, package: str, filename: str, source: str) -> Path:
    """Write a module into `package` under `root`, creating __init__.py files."""
    directory = root
    for part in package.split("."):
        directory = directory / part
        directory.mkdir(exist_ok=True)
        init = directory / "__init__.py"
        if not init.exists():
            init.write_text("")
    path = directory / filename
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def output_dir(tmp_path):
    """Empty build output directory."""
    root = tmp_path / "build"
    root.mkdir()
    return root


@pytest.fixture
def model_output(output_dir):
    """Build output with one package declaring Country and City."""
    write_module(output_dir, "shopapp.model", "geo.py", COUNTRY_SOURCE)
    return output_dir


@pytest.fixture(autouse=True)
def reset_schemadeploy_logger():
    """CLI commands configure the package logger; undo it between tests."""
    yield
    logger = logging.getLogger("schemadeploy")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def module_writer():
    """Expose write_module to tests."""
    return write_module
