"""Exception hierarchy for clint."""


class ClintError(Exception):
    """Base class for all clint errors."""


class ConfigError(ClintError):
    """Configuration file is missing, unreadable, or invalid."""


class InvocationError(ClintError):
    """An external program could not be run to completion.

    Reasons: ``not_found`` (binary missing or not executable), ``spawn``
    (the OS refused to start it), ``timeout`` (killed after the deadline).
    """

    def __init__(self, argv: list[str], reason: str, detail: str = ""):
        self.argv = list(argv)
        self.reason = reason
        self.detail = detail
        message = f"{reason}: {' '.join(self.argv)}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class StructureError(ClintError):
    """A traversal guard stopped a branch.

    Reasons: ``cycle``, ``depth``, ``budget``. Always recovered by the
    builder, which records the reason on the affected node.
    """

    def __init__(self, command_path: str, reason: str, detail: str = ""):
        self.command_path = command_path
        self.reason = reason
        self.detail = detail
        message = f"{reason} at '{command_path}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class GenerationError(ClintError):
    """Replica generation failed; nothing usable was produced."""


class StorageError(ClintError):
    """A tree file could not be read or written."""
