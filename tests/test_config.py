import os
from pathlib import Path

import pytest
import yaml

from schemadeploy.config import (
    CONFIG_FILENAME,
    DeployConfig,
    apply_env_overrides,
    find_config_path,
    load_config,
)
from schemadeploy.errors import ConfigError


ENV_VARS = ("SCHEMADEPLOY_CONFIG", "SCHEMADEPLOY_DATABASE", "SCHEMADEPLOY_DROP")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # setenv first so values loaded from .env files are removed afterwards
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def write_config(directory, data):
    path = directory / CONFIG_FILENAME
    path.write_text(yaml.dump(data))
    return path


def test_find_config_path_default(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert find_config_path() == tmp_path / CONFIG_FILENAME

def test_find_config_path_env_var(monkeypatch, tmp_path):
    monkeypatch.setenv("SCHEMADEPLOY_CONFIG", str(tmp_path / "other.yaml"))
    assert find_config_path() == tmp_path / "other.yaml"

def test_find_config_path_explicit_wins(monkeypatch, tmp_path):
    monkeypatch.setenv("SCHEMADEPLOY_CONFIG", str(tmp_path / "other.yaml"))
    assert find_config_path(tmp_path / "mine.yaml") == tmp_path / "mine.yaml"

def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Configuration file not found"):
        load_config(tmp_path / CONFIG_FILENAME)

def test_load_config_empty_file(tmp_path):
    path = tmp_path / CONFIG_FILENAME
    path.write_text("")
    with pytest.raises(ConfigError, match="empty"):
        load_config(path)

def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / CONFIG_FILENAME
    path.write_text("output_dir: [unclosed")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)

def test_load_config_requires_output_dir(tmp_path):
    path = write_config(tmp_path, {"packages": ["app.model"]})
    with pytest.raises(ConfigError, match="output_dir"):
        load_config(path)

def test_load_config_valid(tmp_path):
    path = write_config(tmp_path, {
        "output_dir": "build/lib",
        "packages": ["app.model", "app.audit"],
        "dependencies": ["libs/common.zip"],
        "drop": True,
        "database": "var/schema.db",
        "deployments": {"suffix": ".seed.xml", "extra": ["extra/more.seed.xml"]},
        "logging": {"level": "debug", "format": "structured", "file": "logs/run.log"},
    })

    cfg = load_config(path)

    base = tmp_path.resolve()
    assert isinstance(cfg, DeployConfig)
    assert cfg.output_dir == base / "build" / "lib"
    assert cfg.packages == ["app.model", "app.audit"]
    assert cfg.dependencies == [base / "libs" / "common.zip"]
    assert cfg.drop is True
    assert cfg.database == str(base / "var" / "schema.db")
    assert cfg.deployments_suffix == ".seed.xml"
    assert cfg.deployments == ["extra/more.seed.xml"]
    assert cfg.log_level == "DEBUG"
    assert cfg.log_format == "structured"
    assert cfg.log_file == base / "logs" / "run.log"

def test_load_config_defaults(tmp_path):
    cfg = load_config(write_config(tmp_path, {"output_dir": "/abs/build"}))
    assert cfg.output_dir == Path("/abs/build")
    assert cfg.packages is None
    assert cfg.drop is False
    assert cfg.close_engine is True
    assert cfg.deployments_suffix == ".cxd.xml"
    assert cfg.deployments == []
    assert cfg.log_file is None

def test_memory_database_kept(tmp_path):
    cfg = load_config(write_config(tmp_path, {"output_dir": "build", "database": ":memory:"}))
    assert cfg.database == ":memory:"

def test_single_package_string(tmp_path):
    cfg = load_config(write_config(tmp_path, {"output_dir": "build", "packages": "app.model"}))
    assert cfg.packages == ["app.model"]

@pytest.mark.parametrize("data, message", [
    ({"output_dir": "build", "packages": {"a": 1}}, "packages must be a list"),
    ({"output_dir": "build", "drop": "maybe"}, "drop must be a boolean"),
    ({"output_dir": "build", "deployments": ["x"]}, "deployments must be a mapping"),
    ({"output_dir": "build", "logging": {"format": "xml"}}, "logging.format"),
    ({"output_dir": "build", "logging": {"level": "loud"}}, "logging.level"),
    ({"output_dir": "build", "deployments": {"suffix": ""}}, "suffix"),
])
def test_load_config_rejects_invalid_values(tmp_path, data, message):
    with pytest.raises(ConfigError, match=message):
        load_config(write_config(tmp_path, data))

def test_load_config_with_env_file(tmp_path):
    (tmp_path / ".env").write_text("SCHEMADEPLOY_DATABASE=from_env.db\n")
    cfg = load_config(write_config(tmp_path, {"output_dir": "build"}))
    assert os.environ.get("SCHEMADEPLOY_DATABASE") == "from_env.db"
    assert cfg.database == str(tmp_path.resolve() / "from_env.db")

def test_env_file_does_not_override_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SCHEMADEPLOY_DATABASE", ":memory:")
    (tmp_path / ".env").write_text("SCHEMADEPLOY_DATABASE=from_env.db\n")
    cfg = load_config(write_config(tmp_path, {"output_dir": "build"}))
    assert cfg.database == ":memory:"

def test_env_drop_override(monkeypatch, tmp_path):
    monkeypatch.setenv("SCHEMADEPLOY_DROP", "yes")
    cfg = load_config(write_config(tmp_path, {"output_dir": "build", "drop": False}))
    assert cfg.drop is True

def test_apply_env_overrides_invalid_drop(monkeypatch):
    monkeypatch.setenv("SCHEMADEPLOY_DROP", "sometimes")
    with pytest.raises(ConfigError):
        apply_env_overrides(DeployConfig(output_dir=Path("build")))

def test_to_dict_round_trips_layout(tmp_path):
    cfg = DeployConfig(output_dir=tmp_path / "build", packages=["app.model"], drop=True)
    data = cfg.to_dict()
    assert data["deployments"] == {"suffix": ".cxd.xml", "extra": []}
    assert data["logging"]["file"] is None

    loaded = DeployConfig.from_dict(yaml.safe_load(yaml.safe_dump(data)), base_dir=tmp_path)
    assert loaded.output_dir == cfg.output_dir
    assert loaded.packages == ["app.model"]
    assert loaded.drop is True
    assert loaded.database == str(tmp_path / "schemadeploy.db")
