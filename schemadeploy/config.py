"""
Configuration management for schemadeploy.

Loads and validates the schemadeploy.yaml configuration file.

Lookup order for the file:
1. Explicit path (CLI --config)
2. $SCHEMADEPLOY_CONFIG
3. ./schemadeploy.yaml

Relative paths inside the file are resolved against the file's directory.
A .env file next to the config is loaded first; SCHEMADEPLOY_DATABASE and
SCHEMADEPLOY_DROP then override the file values.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from schemadeploy.errors import ConfigError
from schemadeploy.schemas import DEFAULT_SUFFIX


CONFIG_FILENAME = "schemadeploy.yaml"
CONFIG_ENV_VAR = "SCHEMADEPLOY_CONFIG"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class DeployConfig:
    """Settings for one schemadeploy run."""
    output_dir: Path
    packages: Optional[list[str]] = None
    dependencies: list[Path] = field(default_factory=list)
    drop: bool = False
    database: str = "schemadeploy.db"
    close_engine: bool = True
    deployments_suffix: str = DEFAULT_SUFFIX
    deployments: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[Path] = None

    def validate(self) -> None:
        """Validate settings that do not depend on the filesystem."""
        if not str(self.output_dir):
            raise ConfigError("output_dir is required")
        if not self.deployments_suffix:
            raise ConfigError("deployments.suffix must not be empty")
        if self.log_format not in ("pretty", "structured"):
            raise ConfigError(
                f"logging.format must be 'pretty' or 'structured', got {self.log_format!r}"
            )
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ConfigError(f"Invalid logging.level: {self.log_level}")

    def to_dict(self) -> dict[str, Any]:
        """Render in the YAML file layout."""
        return {
            "output_dir": str(self.output_dir),
            "packages": list(self.packages) if self.packages is not None else [],
            "dependencies": [str(d) for d in self.dependencies],
            "drop": self.drop,
            "database": self.database,
            "close_engine": self.close_engine,
            "deployments": {
                "suffix": self.deployments_suffix,
                "extra": list(self.deployments),
            },
            "logging": {
                "level": self.log_level,
                "format": self.log_format,
                "file": str(self.log_file) if self.log_file else None,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Optional[Path] = None) -> "DeployConfig":
        """
        Build a config from parsed YAML.

        Args:
            data: Parsed configuration mapping
            base_dir: Directory relative paths are resolved against

        Raises:
            ConfigError: If a value is missing or has the wrong type
        """
        base_dir = base_dir or Path.cwd()

        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")
        if not data.get("output_dir"):
            raise ConfigError("Missing required setting: output_dir")

        deployments = data.get("deployments") or {}
        logging_cfg = data.get("logging") or {}
        if not isinstance(deployments, dict):
            raise ConfigError("deployments must be a mapping")
        if not isinstance(logging_cfg, dict):
            raise ConfigError("logging must be a mapping")

        packages = data.get("packages")
        log_file = logging_cfg.get("file")

        config = cls(
            output_dir=_resolve_path(data["output_dir"], base_dir),
            packages=_string_list(packages, "packages") if packages is not None else None,
            dependencies=[
                _resolve_path(d, base_dir)
                for d in _string_list(data.get("dependencies"), "dependencies")
            ],
            drop=_as_bool(data.get("drop", False), "drop"),
            database=_resolve_database(str(data.get("database", "schemadeploy.db")), base_dir),
            close_engine=_as_bool(data.get("close_engine", True), "close_engine"),
            deployments_suffix=str(deployments.get("suffix", DEFAULT_SUFFIX)),
            deployments=_string_list(deployments.get("extra"), "deployments.extra"),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
            log_format=str(logging_cfg.get("format", "pretty")),
            log_file=_resolve_path(log_file, base_dir) if log_file else None,
        )
        config.validate()
        return config

    def __repr__(self) -> str:
        return (
            f"DeployConfig(output_dir={self.output_dir}, "
            f"packages={self.packages}, drop={self.drop})"
        )


def _resolve_path(value: Any, base_dir: Path) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else base_dir / path


def _resolve_database(value: str, base_dir: Path) -> str:
    if value == ":memory:":
        return value
    return str(_resolve_path(value, base_dir))


def _string_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return [str(v) for v in value]


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def find_config_path(config_path: Optional[Path] = None) -> Path:
    """Locate the configuration file (see module docstring for lookup order)."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CONFIG_FILENAME


def load_config(config_path: Optional[Path] = None) -> DeployConfig:
    """
    Load schemadeploy configuration from a YAML file.

    Args:
        config_path: Path to config file. Defaults to ./schemadeploy.yaml

    Returns:
        DeployConfig instance

    Raises:
        ConfigError: If the file is missing, empty, unparsable or invalid
    """
    path = find_config_path(config_path)
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    env_file = path.parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")
    if not data:
        raise ConfigError("Configuration file is empty")

    config = DeployConfig.from_dict(data, base_dir=path.parent.resolve())
    apply_env_overrides(config, base_dir=path.parent.resolve())
    return config


def apply_env_overrides(config: DeployConfig, base_dir: Optional[Path] = None) -> DeployConfig:
    """Apply SCHEMADEPLOY_DATABASE / SCHEMADEPLOY_DROP overrides in place."""
    database = os.environ.get("SCHEMADEPLOY_DATABASE")
    if database:
        config.database = _resolve_database(database, base_dir or Path.cwd())
    drop = os.environ.get("SCHEMADEPLOY_DROP")
    if drop:
        config.drop = _as_bool(drop, "SCHEMADEPLOY_DROP")
    return config
