"""Run external programs and capture their help output."""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass

from clint.errors import InvocationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# Keep children from paging, colouring or prompting.
NON_INTERACTIVE_ENV = {
    "PAGER": "cat",
    "GIT_PAGER": "cat",
    "MANPAGER": "cat",
    "TERM": "dumb",
    "NO_COLOR": "1",
    "CI": "1",
    "GIT_TERMINAL_PROMPT": "0",
    "DEBIAN_FRONTEND": "noninteractive",
}


@dataclass
class InvocationResult:
    """Captured output of a completed process."""
    argv: list[str]
    stdout: str
    stderr: str
    returncode: int

    @property
    def text(self) -> str:
        """Help text: stdout, or stderr when stdout is blank."""
        return self.stdout if self.stdout.strip() else self.stderr

    @property
    def looks_like_help(self) -> bool:
        return bool(self.text.strip())


class ProcessInvoker:
    """Invoke binaries with a timeout and a non-interactive environment."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, env: dict[str, str] | None = None):
        self.timeout = timeout
        self.env_overrides = dict(NON_INTERACTIVE_ENV)
        if env:
            self.env_overrides.update(env)

    def build_env(self) -> dict[str, str]:
        env = dict(os.environ)
        env.update(self.env_overrides)
        return env

    def invoke(self, argv: list[str]) -> InvocationResult:
        """Run ``argv`` to completion.

        A non-zero exit status is not an error; many programs exit non-zero
        after printing help.

        Raises:
            InvocationError: binary missing (``not_found``), could not be
                started (``spawn``) or killed after the timeout (``timeout``)
        """
        logger.debug(f"Invoking: {' '.join(argv)}")
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
                env=self.build_env(),
                check=False,
            )
        except FileNotFoundError as e:
            raise InvocationError(argv, "not_found", str(e)) from e
        except PermissionError as e:
            raise InvocationError(argv, "not_found", str(e)) from e
        except subprocess.TimeoutExpired as e:
            raise InvocationError(argv, "timeout", f"no exit after {self.timeout}s") from e
        except OSError as e:
            raise InvocationError(argv, "spawn", str(e)) from e

        result = InvocationResult(
            argv=list(argv),
            stdout=completed.stdout.decode("utf-8", errors="replace"),
            stderr=completed.stderr.decode("utf-8", errors="replace"),
            returncode=completed.returncode,
        )
        logger.debug(f"Exit {result.returncode} from {' '.join(argv)} ({len(result.text)} chars)")
        return result


def is_executable(path: str) -> bool:
    """Whether ``path`` names a runnable file, directly or via PATH."""
    if os.sep in path or (os.altsep and os.altsep in path):
        return os.path.isfile(path) and os.access(path, os.X_OK)
    return shutil.which(path) is not None
