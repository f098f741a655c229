"""clint - CLI Navigator Toolkit.

clint introspects command-line programs through their help output and turns
them into a JSON command tree, structural diffs, and runnable Typer replicas.
"""

__version__ = "0.3.0"
__author__ = "clint contributors"
__description__ = "Introspect command-line programs from their help output"

from clint.config import ClintConfig

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "ClintConfig",
]
