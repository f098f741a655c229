"""Shared state of one traversal run."""

import logging
import threading

from clint.errors import StructureError
from clint.models.command import CommandNode

logger = logging.getLogger(__name__)


class TraversalContext:
    """Node table, invocation budget and lock for a single traversal.

    Every node of the run is registered here under its ``command_path``; the
    table is what keeps the tree acyclic. One context per traversal, shared
    by all worker threads.
    """

    def __init__(self, max_depth: int = 5, max_invocations: int = 500):
        self.max_depth = max_depth
        self.max_invocations = max_invocations
        self.nodes: dict[str, CommandNode] = {}
        self.invocations = 0
        self._lock = threading.Lock()

    def claim(self, node: CommandNode) -> bool:
        """Register ``node`` unless its path is already taken.

        Returns:
            True when the caller now owns the path and may explore it
        """
        with self._lock:
            if node.command_path in self.nodes:
                return False
            self.nodes[node.command_path] = node
            return True

    def get(self, command_path: str) -> CommandNode | None:
        with self._lock:
            return self.nodes.get(command_path)

    def reserve_invocation(self, command_path: str) -> None:
        """Take one invocation from the budget.

        Raises:
            StructureError: budget exhausted
        """
        with self._lock:
            if self.invocations >= self.max_invocations:
                raise StructureError(
                    command_path, "budget", f"invocation budget of {self.max_invocations} exhausted"
                )
            self.invocations += 1

    def check_depth(self, command_path: str, depth: int) -> None:
        if depth > self.max_depth:
            raise StructureError(command_path, "depth", f"depth {depth} exceeds limit {self.max_depth}")

    @property
    def node_count(self) -> int:
        with self._lock:
            return len(self.nodes)
