"""
CLI interface for schemadeploy.

Provides commands to discover schema objects in a build output directory,
export (drop/create) the schema, and apply deployment descriptors.

Settings come from schemadeploy.yaml (see schemadeploy.config); options on
the command line override the file for a single invocation.
"""

from pathlib import Path

import click
import yaml

from schemadeploy import __version__
from schemadeploy.config import CONFIG_FILENAME, DeployConfig
from schemadeploy.errors import SchemaDeployError
from schemadeploy.utils import (
    format_duration,
    print_error,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)


@click.group()
@click.version_option(version=__version__, prog_name="schemadeploy")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Configuration file (default: ./{CONFIG_FILENAME})",
)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level (shows SQL)")
@click.pass_context
def main(ctx, config_path: Path | None, verbose: bool):
    """
    schemadeploy - Build-time schema export and data deployment.

    Discovers schema objects in compiled packages, creates the schema and
    loads deployment descriptors.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _load_config(ctx, packages: tuple[str, ...] = (), drop: bool | None = None) -> DeployConfig:
    """Load config for a command and apply CLI overrides; exit 1 on failure."""
    from schemadeploy.config import load_config

    try:
        config = load_config(ctx.obj.get("config_path"))
    except SchemaDeployError as e:
        print_error(f"Config not loaded: {e}")
        click.echo("Run 'schemadeploy init' to create a configuration file.", err=True)
        raise SystemExit(1)

    if packages:
        config.packages = list(packages)
    if drop is not None:
        config.drop = drop
    if ctx.obj.get("verbose"):
        config.log_level = "DEBUG"

    setup_logging(config.log_level, config.log_format, config.log_file)
    return config


def _run_impl(
    ctx,
    mode: str,
    packages: tuple[str, ...] = (),
    drop: bool | None = None,
    as_json: bool = False,
):
    """Run one of the runner entry points and print a summary (or the JSON report)."""
    import json

    from schemadeploy.runner import SchemaDeployRunner

    config = _load_config(ctx, packages, drop)
    runner = SchemaDeployRunner(config)

    try:
        report = getattr(runner, mode)()
    except SchemaDeployError as e:
        cause = f" ({e.__cause__})" if e.__cause__ else ""
        print_error(f"{e}{cause}")
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        return

    if mode != "deploy":
        if report.exported:
            print_info(f"{len(report.objects)} schema object(s) exported")
        else:
            print_info("No schema objects found to export.")
        for msg in report.errors:
            print_warning(msg.text)

    if report.deployments is not None:
        deployments = report.deployments
        print_info(
            f"Deployments: {len(deployments.applied)} applied, "
            f"{len(deployments.skipped)} skipped, {len(deployments.failed)} failed"
        )
        for identifier in deployments.failed:
            print_warning(f"Deployment failed: {identifier}")

    duration = format_duration(report.duration_s)
    if report.ok:
        print_success(f"{mode} completed in {duration}")
    else:
        print_warning(f"{mode} completed with errors in {duration}")


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.option("--output-dir", default="build/lib", show_default=True, help="Build output directory")
@click.pass_context
def init(ctx, force: bool, output_dir: str):
    """Initialize a schemadeploy configuration file."""
    cfg_path = ctx.obj.get("config_path") or Path.cwd() / CONFIG_FILENAME
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = DeployConfig(output_dir=Path(output_dir), packages=[]).to_dict()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    click.echo(f"Initialized schemadeploy config at {cfg_path}")
    click.echo("Add the packages that declare schema objects under 'packages'.")


@main.command("scan")
@click.option("-p", "--package", "packages", multiple=True, help="Package to scan (repeatable)")
@click.pass_context
def scan(ctx, packages: tuple[str, ...]):
    """
    List schema objects found in the configured packages.

    Nothing is written to the database.

    Examples:

        schemadeploy scan

        schemadeploy scan -p myapp.model
    """
    from schemadeploy.objects import qualified_name
    from schemadeploy.runner import SchemaDeployRunner

    config = _load_config(ctx, packages)
    try:
        objects = SchemaDeployRunner(config).discover()
    except SchemaDeployError as e:
        print_error(str(e))
        raise SystemExit(1)

    if not objects:
        click.echo("No schema objects found.")
        return
    for obj in objects:
        click.echo(f"  {qualified_name(obj)}  ({type(obj).__module__}.{type(obj).__qualname__})")


@main.command("plan")
@click.option("-p", "--package", "packages", multiple=True, help="Package to search (repeatable)")
@click.pass_context
def plan(ctx, packages: tuple[str, ...]):
    """Show the deployment descriptors a run would apply, in order."""
    from schemadeploy.runner import SchemaDeployRunner

    config = _load_config(ctx, packages)
    deployment_plan = SchemaDeployRunner(config).plan()
    for index, descriptor in enumerate(deployment_plan, start=1):
        present = (config.output_dir / descriptor.identifier).is_file()
        marker = "" if present else "  (missing)"
        click.echo(f"{index:3d}. {descriptor.identifier}{marker}")


@main.command("ddl")
@click.option("--drop/--no-drop", default=None, help="Drop the schema before creating it")
@click.option("-p", "--package", "packages", multiple=True, help="Package to scan (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the run report as JSON")
@click.pass_context
def ddl(ctx, drop: bool | None, packages: tuple[str, ...], as_json: bool):
    """
    Export the schema (drop and create) without loading deployments.

    Examples:

        schemadeploy ddl

        schemadeploy ddl --drop
    """
    _run_impl(ctx, "export_schema", packages, drop, as_json)


@main.command("generate")
@click.option("--drop/--no-drop", default=None, help="Drop the schema before creating it")
@click.option("-p", "--package", "packages", multiple=True, help="Package to scan (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the run report as JSON")
@click.pass_context
def generate(ctx, drop: bool | None, packages: tuple[str, ...], as_json: bool):
    """
    Export the schema, then apply deployment descriptors.

    Examples:

        schemadeploy generate

        schemadeploy --config build/schemadeploy.yaml generate --drop
    """
    _run_impl(ctx, "generate", packages, drop, as_json)


@main.command("deploy")
@click.option("-p", "--package", "packages", multiple=True, help="Package to search (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the run report as JSON")
@click.pass_context
def deploy(ctx, packages: tuple[str, ...], as_json: bool):
    """Apply deployment descriptors against an existing schema."""
    _run_impl(ctx, "deploy", packages, as_json=as_json)


if __name__ == "__main__":
    main()
