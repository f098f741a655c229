"""Command hierarchy traversal."""

from clint.traversal.builder import StructureBuilder, mark_required_flags
from clint.traversal.context import TraversalContext

__all__ = ["StructureBuilder", "TraversalContext", "mark_required_flags"]
