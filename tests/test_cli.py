"""Tests for the simple-mapper CLI."""

import json

import pytest
from click.testing import CliRunner

from simple_mapper import __version__
from simple_mapper.cli import main


@pytest.fixture
def runner():
    return CliRunner()


class TestMain:
    """Tests for the command group."""

    def test_version(self, runner):
        """Should print the package version."""
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        """Should list the plan and check commands."""
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "plan" in result.output
        assert "check" in result.output


class TestPlanCommand:
    """Tests for the plan command."""

    def test_plan_text(self, runner):
        """Should print every type pair with its member plan."""
        result = runner.invoke(main, ["plan", "tests.fixtures.profiles:order_profile"])

        assert result.exit_code == 0, result.output
        assert "Order -> OrderDto" in result.output
        assert "OrderDto -> Order (reverse)" in result.output
        assert "lines <- lines (sequence)" in result.output

    def test_plan_shows_computed_and_ignored(self, runner):
        """Should mark computed members and list ignored ones."""
        result = runner.invoke(main, ["plan", "tests.fixtures.profiles:UserProfile"])

        assert result.exit_code == 0, result.output
        assert "full_name <- <computed> (simple)" in result.output
        assert "status (ignored)" in result.output

    def test_plan_json(self, runner):
        """Should emit the plan as JSON."""
        result = runner.invoke(main, ["plan", "tests.fixtures.profiles:order_profile", "--json"])

        assert result.exit_code == 0, result.output
        plans = json.loads(result.output)
        assert [(p["source"], p["destination"]) for p in plans] == [
            ("Order", "OrderDto"),
            ("OrderDto", "Order"),
            ("OrderLine", "OrderLineDto"),
            ("OrderLineDto", "OrderLine"),
        ]
        assert plans[0]["members"][1] == {"name": "lines", "source": "lines", "computed": False, "kind": "sequence"}
        assert plans[1]["reverse"] is True

    def test_unknown_module(self, runner):
        """Should fail cleanly when the target cannot be imported."""
        result = runner.invoke(main, ["plan", "tests.fixtures.does_not_exist"])

        assert result.exit_code == 1
        assert "Error loading" in result.output

    def test_module_without_profiles(self, runner):
        """Should fail when the module defines no profiles."""
        result = runner.invoke(main, ["plan", "tests.fixtures.models"])

        assert result.exit_code == 1
        assert "No mapping profiles found" in result.output


class TestCheckCommand:
    """Tests for the check command."""

    def test_fully_mapped(self, runner):
        """Should exit 0 when every destination member is mapped."""
        result = runner.invoke(main, ["check", "tests.fixtures.profiles:order_profile"])

        assert result.exit_code == 0, result.output
        assert "4 type pair(s), all destination members mapped" in result.output

    def test_unmapped_members(self, runner):
        """Should report unmapped members and exit 1."""
        result = runner.invoke(main, ["check", "tests.fixtures.profiles"])

        assert result.exit_code == 1
        assert "UserDto -> UserEntity: unmapped first_name, last_name, password_hash" in result.output
        assert "3 unmapped member(s)" in result.output

    def test_reports_uninvertible_rules(self, runner):
        """Should report reverse rules that were dropped."""
        result = runner.invoke(main, ["check", "tests.fixtures.profiles:UserProfile"])

        assert "rule for 'full_name' dropped (computed source selector)" in result.output
