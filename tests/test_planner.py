"""Tests for schemadeploy.planner module.

Tests plan ordering, de-duplication and missing directories.
"""

import logging

import pytest

from schemadeploy.planner import DeploymentPlanner


@pytest.fixture
def deployments_output(output_dir):
    """Output root with descriptors in two packages and at the root."""
    (output_dir / "a" / "b").mkdir(parents=True)
    (output_dir / "a" / "c").mkdir(parents=True)
    (output_dir / "a" / "b" / "x.cxd.xml").write_text("<deployments/>")
    (output_dir / "a" / "b" / "notes.txt").write_text("ignored")
    (output_dir / "a" / "c" / "y.cxd.xml").write_text("<deployments/>")
    (output_dir / "z.cxd.xml").write_text("<deployments/>")
    (output_dir / "default.cxd.xml").write_text("<deployments/>")
    return output_dir


class TestDeploymentPlanner:
    """Tests for DeploymentPlanner.plan."""

    def test_plan_order(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(["a.b", "a.c"])
        assert plan.identifiers == [
            "default.cxd.xml",
            "a/b/x.cxd.xml",
            "a/c/y.cxd.xml",
            "z.cxd.xml",
        ]

    def test_package_order_is_configured_order(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(["a.c", "a.b"])
        assert plan.identifiers[1:3] == ["a/c/y.cxd.xml", "a/b/x.cxd.xml"]

    def test_default_always_first_even_when_missing(self, output_dir):
        plan = DeploymentPlanner(output_dir).plan([])
        assert plan.identifiers == ["default.cxd.xml"]

    def test_explicit_appended_last(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(
            ["a.b"], explicit=["extra/seed.cxd.xml"]
        )
        assert plan.identifiers[-1] == "extra/seed.cxd.xml"

    def test_duplicates_keep_first_position(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(
            ["a.b", "a.b"], explicit=["z.cxd.xml", "default.cxd.xml", "a/b/x.cxd.xml"]
        )
        assert plan.identifiers == ["default.cxd.xml", "a/b/x.cxd.xml", "z.cxd.xml"]

    def test_explicit_separators_normalized(self, output_dir):
        plan = DeploymentPlanner(output_dir).plan([], explicit=["\\extra\\seed.cxd.xml"])
        assert "extra/seed.cxd.xml" in plan

    def test_packages_absent(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(None)
        assert plan.identifiers == ["default.cxd.xml", "z.cxd.xml"]

    def test_missing_package_directory_warns(self, output_dir, caplog):
        with caplog.at_level(logging.WARNING, logger="schemadeploy"):
            plan = DeploymentPlanner(output_dir).plan(["no.such.pkg"])
        assert plan.identifiers == ["default.cxd.xml"]
        assert "no/such/pkg" in caplog.text

    def test_custom_suffix(self, output_dir):
        (output_dir / "default.seed.xml").write_text("<deployments/>")
        (output_dir / "other.seed.xml").write_text("<deployments/>")
        (output_dir / "ignored.cxd.xml").write_text("<deployments/>")
        planner = DeploymentPlanner(output_dir, suffix=".seed.xml")
        assert planner.default_identifier == "default.seed.xml"
        assert planner.plan([]).identifiers == ["default.seed.xml", "other.seed.xml"]

    def test_descriptors_carry_suffix(self, deployments_output):
        plan = DeploymentPlanner(deployments_output).plan(["a.b"])
        descriptor = list(plan)[1]
        assert descriptor.suffix == ".cxd.xml"
        assert descriptor.identifier == "a/b/x.cxd.xml"


class TestDiscover:

    def test_discover_root(self, deployments_output):
        assert DeploymentPlanner(deployments_output).discover("") == [
            "default.cxd.xml",
            "z.cxd.xml",
        ]

    def test_discover_ignores_subdirectories(self, deployments_output):
        (deployments_output / "a" / "b" / "nested.cxd.xml").mkdir()
        assert DeploymentPlanner(deployments_output).discover("a/b") == ["a/b/x.cxd.xml"]
