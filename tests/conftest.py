"""Shared fixtures for clint tests."""

import threading

import pytest

from clint.config import TraversalConfig
from clint.errors import InvocationError
from clint.invoker import InvocationResult


class FakeInvoker:
    """In-memory stand-in for ProcessInvoker keyed by argv.

    Values are help text (exit 0), an InvocationResult, or an
    InvocationError to raise. Unknown argv exit 1 with an error on stderr.
    """

    def __init__(self, pages: dict):
        self.pages = {tuple(argv): value for argv, value in pages.items()}
        self.calls: list[tuple[str, ...]] = []
        self._lock = threading.Lock()

    def invoke(self, argv: list[str]) -> InvocationResult:
        key = tuple(argv)
        with self._lock:
            self.calls.append(key)
        value = self.pages.get(key)
        if isinstance(value, InvocationError):
            raise value
        if isinstance(value, InvocationResult):
            return value
        if value is None:
            return InvocationResult(argv=list(argv), stdout="", stderr="unknown command", returncode=1)
        return InvocationResult(argv=list(argv), stdout=value, stderr="", returncode=0)

    def help_calls(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[-1] != "--version" and call[-1] != "version"]


@pytest.fixture
def fake_invoker():
    """Factory building a FakeInvoker from a page mapping."""
    return FakeInvoker


@pytest.fixture
def traversal_config():
    """Single-worker traversal configuration with default guards."""
    return TraversalConfig(workers=1)


TOOL_A_HELP = """\
toolA does useful things.

Usage:
  toolA [flags]
  toolA [command]

Available Commands:
  sub1        First subcommand
  sub2        Second subcommand

Flags:
  -c, --config string   config file (default is $HOME/.toolA.yaml)
  -h, --help            help for toolA

Use "toolA [command] --help" for more information about a command.
"""

SUB1_HELP = """\
Usage:
  toolA sub1 --target <name> [flags]

Flags:
  -h, --help            help for sub1
  -n, --count int       How many times
  -t, --target string   Deployment target
"""

SUB2_HELP = """\
Usage:
  toolA sub2 [flags]

Flags:
  -h, --help      help for sub2
      --dry-run   Print what would happen
"""


@pytest.fixture
def tool_a_pages():
    """Help pages of a small two-level program."""
    return {
        ("toolA", "--help"): TOOL_A_HELP,
        ("toolA", "sub1", "--help"): SUB1_HELP,
        ("toolA", "sub2", "--help"): SUB2_HELP,
        ("toolA", "--version"): "toolA version 1.4.2\n",
    }
