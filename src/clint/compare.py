"""Structural diff between two parsed command trees."""

import logging
from enum import Enum

from pydantic import BaseModel

from clint.models.command import CommandNode, Flag

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """Kinds of structural change, in display order."""
    COMMAND_ADDED = "command_added"
    COMMAND_REMOVED = "command_removed"
    FLAG_ADDED = "flag_added"
    FLAG_REMOVED = "flag_removed"
    FLAG_DESCRIPTION_CHANGED = "flag_description_changed"
    FLAG_DATA_TYPE_CHANGED = "flag_data_type_changed"


_KIND_ORDER = {kind: index for index, kind in enumerate(ChangeKind)}


class Change(BaseModel):
    """One difference between two trees.

    ``command`` is the path relative to the program root ("" for the root
    itself). For command changes ``name`` is the command added or removed
    under ``command``; for flag changes it is the flag's display form.
    """

    kind: ChangeKind
    command: str
    name: str
    old: str | None = None
    new: str | None = None

    @property
    def sort_key(self) -> tuple:
        return (self.command, _KIND_ORDER[self.kind], self.name)

    def format(self, program: str = "") -> str:
        """Human-readable description of the change."""
        where = self.command or program
        if self.kind == ChangeKind.COMMAND_ADDED:
            return f"+ Added command: {self.name} (to {where})" if where else f"+ Added command: {self.name}"
        if self.kind == ChangeKind.COMMAND_REMOVED:
            return f"- Removed command: {self.name} (from {where})" if where else f"- Removed command: {self.name}"
        if self.kind == ChangeKind.FLAG_ADDED:
            return f"+ Added flag: {self.name} (command: {where})"
        if self.kind == ChangeKind.FLAG_REMOVED:
            return f"- Removed flag: {self.name} (command: {where})"
        if self.kind == ChangeKind.FLAG_DESCRIPTION_CHANGED:
            return (
                f"~ Modified flag: {self.name} (command: {where})\n"
                f"    Description changed:\n"
                f'      Before: "{self.old or ""}"\n'
                f'      After:  "{self.new or ""}"'
            )
        return (
            f"~ Modified flag: {self.name} (command: {where})\n"
            f"    Data type changed: {self.old or 'none'} -> {self.new or 'none'}"
        )


def flag_signature(flag: Flag) -> str:
    """Comparison key: long name, falling back to short."""
    return flag.long or flag.short or ""


def compare_trees(old: CommandNode, new: CommandNode) -> list[Change]:
    """List structural changes from ``old`` to ``new``, sorted for display.

    Commands are matched by name below matching parents; a removed or added
    command is reported once, without its descendants.
    """
    changes: list[Change] = []
    _compare_node(old, new, "", changes)
    changes.sort(key=lambda change: change.sort_key)
    logger.debug(f"Compared {old.name} and {new.name}: {len(changes)} changes")
    return changes


def _compare_node(old: CommandNode, new: CommandNode, path: str, changes: list[Change]) -> None:
    _compare_flags(old, new, path, changes)

    old_names = set(old.commands)
    new_names = set(new.commands)
    for name in new_names - old_names:
        changes.append(Change(kind=ChangeKind.COMMAND_ADDED, command=path, name=name))
    for name in old_names - new_names:
        changes.append(Change(kind=ChangeKind.COMMAND_REMOVED, command=path, name=name))
    for name in old_names & new_names:
        child_path = f"{path} {name}" if path else name
        _compare_node(old.commands[name], new.commands[name], child_path, changes)


def _compare_flags(old: CommandNode, new: CommandNode, path: str, changes: list[Change]) -> None:
    old_flags = {flag_signature(flag): flag for flag in old.flags}
    new_flags = {flag_signature(flag): flag for flag in new.flags}

    for key, flag in new_flags.items():
        if key not in old_flags:
            changes.append(Change(kind=ChangeKind.FLAG_ADDED, command=path, name=flag.display))
    for key, flag in old_flags.items():
        if key not in new_flags:
            changes.append(Change(kind=ChangeKind.FLAG_REMOVED, command=path, name=flag.display))

    for key in old_flags.keys() & new_flags.keys():
        before = old_flags[key]
        after = new_flags[key]
        if (before.description or "") != (after.description or ""):
            changes.append(Change(
                kind=ChangeKind.FLAG_DESCRIPTION_CHANGED,
                command=path,
                name=after.display,
                old=before.description,
                new=after.description,
            ))
        if before.data_type != after.data_type:
            changes.append(Change(
                kind=ChangeKind.FLAG_DATA_TYPE_CHANGED,
                command=path,
                name=after.display,
                old=before.data_type,
                new=after.data_type,
            ))
