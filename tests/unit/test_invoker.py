"""Unit tests for the process invoker, using the running interpreter as the program."""

import sys

import pytest

from clint.errors import InvocationError
from clint.invoker import NON_INTERACTIVE_ENV, InvocationResult, ProcessInvoker, is_executable


def python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestProcessInvoker:
    """Test subprocess execution and capture."""

    def test_captures_stdout(self):
        """Test stdout and a zero exit code are captured."""
        result = ProcessInvoker().invoke(python("print('hello')"))
        assert result.stdout.strip() == "hello"
        assert result.returncode == 0
        assert result.text.strip() == "hello"
        assert result.looks_like_help

    def test_nonzero_exit_is_not_an_error(self):
        """Test help printed to stderr with a failing exit code."""
        result = ProcessInvoker().invoke(
            python("import sys; sys.stderr.write('usage: tool <x>\\n'); sys.exit(2)")
        )
        assert result.returncode == 2
        assert result.stdout == ""
        assert result.text == "usage: tool <x>\n"

    def test_timeout_raises(self):
        """Test a hanging child is killed and reported."""
        invoker = ProcessInvoker(timeout=0.5)
        with pytest.raises(InvocationError) as exc_info:
            invoker.invoke(python("import time; time.sleep(30)"))
        assert exc_info.value.reason == "timeout"

    def test_missing_binary(self):
        """Test a missing program is reported as not found."""
        with pytest.raises(InvocationError) as exc_info:
            ProcessInvoker().invoke(["/nonexistent/clint-test-binary", "--help"])
        assert exc_info.value.reason == "not_found"
        assert exc_info.value.argv == ["/nonexistent/clint-test-binary", "--help"]

    def test_non_interactive_environment(self):
        """Test pager and colour variables are overridden."""
        result = ProcessInvoker().invoke(
            python("import os; print(os.environ['PAGER'], os.environ['NO_COLOR'], os.environ['TERM'])")
        )
        assert result.stdout.split() == ["cat", "1", "dumb"]

    def test_extra_environment(self):
        """Test configured variables reach the child."""
        invoker = ProcessInvoker(env={"CLINT_TEST_VALUE": "42"})
        result = invoker.invoke(python("import os; print(os.environ['CLINT_TEST_VALUE'])"))
        assert result.stdout.strip() == "42"

    def test_stdin_is_closed(self):
        """Test a child reading stdin gets end of file at once."""
        result = ProcessInvoker(timeout=5).invoke(python("import sys; print(repr(sys.stdin.read()))"))
        assert result.stdout.strip() == "''"

    def test_undecodable_output(self):
        """Test invalid UTF-8 is replaced rather than raised."""
        result = ProcessInvoker().invoke(python("import sys; sys.stdout.buffer.write(b'\\xff\\xfe ok')"))
        assert "�" in result.stdout
        assert result.stdout.endswith(" ok")

    def test_default_overrides_cover_pagers(self):
        """Test the documented overrides are all present."""
        for key in ("PAGER", "GIT_PAGER", "MANPAGER", "TERM", "NO_COLOR", "CI",
                    "GIT_TERMINAL_PROMPT", "DEBIAN_FRONTEND"):
            assert key in NON_INTERACTIVE_ENV


class TestInvocationResult:
    """Test the help text selection on results."""

    def test_blank_stdout_falls_back_to_stderr(self):
        result = InvocationResult(argv=["x"], stdout="  \n", stderr="help text", returncode=1)
        assert result.text == "help text"

    def test_empty_output_is_not_help(self):
        result = InvocationResult(argv=["x"], stdout="", stderr="", returncode=0)
        assert not result.looks_like_help


class TestIsExecutable:
    """Test binary checks used before a traversal starts."""

    def test_interpreter_is_executable(self):
        assert is_executable(sys.executable)

    def test_missing_path(self, tmp_path):
        assert not is_executable(str(tmp_path / "missing"))

    def test_plain_file_is_not_executable(self, tmp_path):
        path = tmp_path / "data.txt"
        path.write_text("x")
        assert not is_executable(str(path))
