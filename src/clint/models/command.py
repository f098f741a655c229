"""Command tree models: the persisted JSON contract of a traversal."""

from collections.abc import Iterable, Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from clint.models.usage import UsageComponent

ROOT_HEADER = "root"


class NodeStatus(str, Enum):
    """Why a node stopped growing."""
    PENDING = "pending"
    EXPLORED = "explored"
    PARTIAL = "partial"
    ERRORED = "errored"
    CYCLE = "cycle"
    PRUNED = "pruned"


class ProcessOutput(BaseModel):
    """Captured output of one help invocation."""
    stdout: str = ""
    stderr: str = ""
    status: int = Field(default=-1, description="Exit code, -1 when the process did not complete")


class Flag(BaseModel):
    """A flag entry listed in a help page."""
    short: str | None = None
    long: str | None = None
    data_type: str | None = Field(default=None, description="Inferred value type, None for boolean flags")
    description: str | None = None
    parent_header: str = ROOT_HEADER
    required: bool = False

    @property
    def identity(self) -> tuple[str | None, str | None]:
        """Merge key: ``(long, short)``."""
        return (self.long, self.short)

    @property
    def is_boolean(self) -> bool:
        return self.data_type is None

    @property
    def primary_name(self) -> str:
        """Long name when present, short name otherwise."""
        return self.long or self.short or ""

    @property
    def cli_forms(self) -> list[str]:
        """Dash-prefixed spellings, long first."""
        forms = []
        if self.long:
            forms.append(f"--{self.long}")
        if self.short:
            forms.append(f"-{self.short}")
        return forms

    @property
    def display(self) -> str:
        if self.short and self.long:
            return f"-{self.short}/--{self.long}"
        if self.long:
            return f"--{self.long}"
        if self.short:
            return f"-{self.short}"
        return "unknown"


class Usage(BaseModel):
    """A usage line and its parsed grammar."""
    usage_string: str
    parent_header: str = ROOT_HEADER
    components: list[UsageComponent] = Field(default_factory=list)


class OtherLine(BaseModel):
    """A help line that did not fit any recognised section."""
    line_contents: str
    parent_header: str = ROOT_HEADER


class CommandNode(BaseModel):
    """A command in the inspected program's hierarchy."""
    name: str
    description: str | None = None
    version: str | None = None
    parent: str | None = None
    parent_header: str | None = None
    command_path: str
    depth: int = 0
    status: NodeStatus = NodeStatus.PENDING
    warnings: list[str] = Field(default_factory=list)
    outputs: dict[str, ProcessOutput] = Field(default_factory=dict)
    children: "Children" = Field(default_factory=lambda: Children())

    @property
    def commands(self) -> dict[str, "CommandNode"]:
        return self.children.commands

    @property
    def flags(self) -> list[Flag]:
        return self.children.flags

    @property
    def usages(self) -> list[Usage]:
        return self.children.usages

    @property
    def path_parts(self) -> list[str]:
        return self.command_path.split(" ")

    def add_warning(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def merge_flags(self, flags: Iterable[Flag]) -> int:
        """Merge flags by ``(long, short)``; the first description seen wins.

        Returns:
            Number of flags actually added
        """
        known = {flag.identity for flag in self.children.flags}
        added = 0
        for flag in flags:
            if flag.identity in known:
                continue
            known.add(flag.identity)
            self.children.flags.append(flag)
            added += 1
        return added

    def merge_usages(self, usages: Iterable[Usage]) -> int:
        """Merge usage entries by their raw string."""
        known = {usage.usage_string for usage in self.children.usages}
        added = 0
        for usage in usages:
            if usage.usage_string in known:
                continue
            known.add(usage.usage_string)
            self.children.usages.append(usage)
            added += 1
        return added

    def iter_nodes(self) -> Iterator["CommandNode"]:
        """Yield this node and all descendants in pre-order."""
        yield self
        for child in self.children.commands.values():
            yield from child.iter_nodes()

    def find(self, command_path: str) -> "CommandNode | None":
        for node in self.iter_nodes():
            if node.command_path == command_path:
                return node
        return None

    def to_json_dict(self) -> dict:
        """Serialise to the persisted interchange shape."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_json_dict(cls, data: dict) -> "CommandNode":
        return cls.model_validate(data)


class Children(BaseModel):
    """The four child buckets of a command node."""
    commands: dict[str, CommandNode] = Field(alias="COMMAND", default_factory=dict)
    flags: list[Flag] = Field(alias="FLAG", default_factory=list)
    usages: list[Usage] = Field(alias="USAGE", default_factory=list)
    other: list[OtherLine] = Field(alias="OTHER", default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


CommandNode.model_rebuild()
