"""Unit tests for CLI interface."""

import json
import stat
import sys

import pytest
from typer.testing import CliRunner

from clint import __version__
from clint.cli import app
from clint.models.command import CommandNode, Flag
from clint.storage import save_tree

DEMO_SCRIPT = '''#!{python}
import sys

args = sys.argv[1:]
if args == ["--help"]:
    print("demo greets people.\\n\\nUsage: demo <command>\\n\\nCommands:\\n  greet   Say hello\\n")
elif args == ["greet", "--help"]:
    print("Usage: demo greet [--name <name>]\\n\\nOptions:\\n  --name <name>   Who to greet\\n")
elif args == ["--version"]:
    print("demo 1.0.0")
else:
    print("unknown command", file=sys.stderr)
    sys.exit(1)
'''


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def demo_program(tmp_path):
    """Small executable script with one subcommand."""
    path = tmp_path / "bin" / "demo"
    path.parent.mkdir()
    path.write_text(DEMO_SCRIPT.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def saved_tree(path, flags=(), commands=()):
    root = CommandNode(name="tool", command_path="tool", version="tool 1.0")
    root.merge_flags(flags)
    for name in commands:
        root.commands[name] = CommandNode(name=name, parent="tool", command_path=f"tool {name}", depth=1)
    return save_tree(root, path)


class TestCLI:
    """Test CLI commands."""

    def test_version(self, runner):
        """Test --version flag."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"clint version {__version__}" in result.stdout

    def test_help(self, runner):
        """Test the command list is shown."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("parse", "replicate", "compare"):
            assert command in result.stdout


class TestParseCommand:
    """Test the parse command."""

    def test_missing_binary(self, runner, tmp_path):
        """Test a path that does not exist is rejected."""
        result = runner.invoke(app, ["parse", str(tmp_path / "nope"), "-o", str(tmp_path / "out.json")])
        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert not (tmp_path / "out.json").exists()

    def test_invalid_override(self, runner, demo_program, tmp_path):
        """Test out-of-range options exit with an error."""
        result = runner.invoke(app, ["parse", str(demo_program), "--workers", "0"])
        assert result.exit_code == 1
        assert "Invalid option" in result.stdout

    @pytest.mark.skipif(sys.platform == "win32", reason="requires a shebang script")
    def test_parse_real_program(self, runner, demo_program, tmp_path):
        """Test an end-to-end run against a real subprocess."""
        output = tmp_path / "trees" / "parsed.json"
        result = runner.invoke(app, ["parse", str(demo_program), "-o", str(output), "--workers", "2"])
        assert result.exit_code == 0, result.stdout

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["name"] == "demo"
        assert data["version"] == "demo 1.0.0"
        assert data["description"] == "demo greets people."
        greet = data["children"]["COMMAND"]["greet"]
        assert greet["command_path"] == "demo greet"
        assert greet["description"] == "Say hello"
        assert [flag["long"] for flag in greet["children"]["FLAG"]] == ["name"]


class TestReplicateCommand:
    """Test the replicate command."""

    def test_replicate(self, runner, tmp_path):
        tree_path = saved_tree(tmp_path / "parsed.json", [Flag(long="force")], ["run"])
        out_dir = tmp_path / "replica"
        result = runner.invoke(app, ["replicate", str(tree_path), "-o", str(out_dir)])
        assert result.exit_code == 0, result.stdout
        assert (out_dir / "pyproject.toml").exists()
        assert "'--force'" in (out_dir / "src" / "tool_replica" / "cli.py").read_text()

    def test_replicate_bad_input(self, runner, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        result = runner.invoke(app, ["replicate", str(bad), "-o", str(tmp_path / "replica")])
        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestCompareCommand:
    """Test the compare command."""

    def test_no_changes(self, runner, tmp_path):
        old = saved_tree(tmp_path / "old.json", commands=["run"])
        new = saved_tree(tmp_path / "new.json", commands=["run"])
        result = runner.invoke(app, ["compare", str(old), str(new)])
        assert result.exit_code == 0
        assert "No structural changes" in result.stdout

    def test_changes_listed(self, runner, tmp_path):
        old = saved_tree(tmp_path / "old.json", [Flag(long="legacy")], ["run"])
        new = saved_tree(tmp_path / "new.json", commands=["run", "serve"])
        result = runner.invoke(app, ["compare", str(old), str(new)])
        assert result.exit_code == 0
        assert "+ Added command: serve (to tool)" in result.stdout
        assert "- Removed flag: --legacy" in result.stdout

    def test_missing_file(self, runner, tmp_path):
        new = saved_tree(tmp_path / "new.json")
        result = runner.invoke(app, ["compare", str(tmp_path / "missing.json"), str(new)])
        assert result.exit_code == 1
