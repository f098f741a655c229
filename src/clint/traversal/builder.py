"""Recursive, concurrent exploration of a program's command hierarchy."""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path

from clint.config import InvokerConfig, TraversalConfig
from clint.errors import InvocationError, StructureError
from clint.invoker import InvocationResult, ProcessInvoker
from clint.models.command import CommandNode, NodeStatus, ProcessOutput, Usage
from clint.parser.help_page import HelpPageParser, PartialNode
from clint.parser.usage import UsageGrammarParser, required_flag_names
from clint.traversal.context import TraversalContext

logger = logging.getLogger(__name__)

HELP_PAGE_KEY = "help_page"
HELP_COMMAND_KEY = "help_command"
UNKNOWN_VERSION = "Unknown"


@dataclass(frozen=True)
class _Ancestor:
    name: str
    help_text: str


@dataclass
class _Job:
    node: CommandNode
    argv: list[str]
    ancestors: tuple[_Ancestor, ...]


class StructureBuilder:
    """Build a CommandNode tree by invoking a program's help recursively.

    Each node is one job on a thread pool: invoke, parse, register children.
    The coordinator submits the children a finished job returns until no job
    is left. Guards (path table, ancestor names, identical help output, depth,
    invocation budget) stop branches without failing the run.
    """

    def __init__(
        self,
        invoker: ProcessInvoker | None = None,
        config: TraversalConfig | None = None,
        help_parser: HelpPageParser | None = None,
        usage_parser: UsageGrammarParser | None = None,
    ):
        self.config = config or TraversalConfig()
        if invoker is None:
            invoker_config = InvokerConfig()
            invoker = ProcessInvoker(timeout=invoker_config.timeout_seconds, env=invoker_config.env)
        self.invoker = invoker
        self.help_parser = help_parser or HelpPageParser()
        self.usage_parser = usage_parser or UsageGrammarParser()

    def build(self, binary: str) -> CommandNode:
        """Explore ``binary`` from its root command."""
        return self.explore(binary)

    def explore(self, binary: str, args: tuple[str, ...] | list[str] = (), depth: int = 0) -> CommandNode:
        """Explore the subtree reached by ``binary *args``.

        Args:
            binary: Path or name of the program
            args: Subcommand path below the program
            depth: Depth of the starting node

        Returns:
            The starting node with its explored descendants
        """
        program = Path(binary).name
        parts = [program, *args]
        root = CommandNode(
            name=parts[-1],
            parent=parts[-2] if len(parts) > 1 else None,
            command_path=" ".join(parts),
            depth=depth,
        )
        context = TraversalContext(max_depth=self.config.max_depth, max_invocations=self.config.max_invocations)
        context.claim(root)

        if not args:
            root.version = self.probe_version(binary)

        ancestors = tuple(_Ancestor(name, "") for name in parts[:-1])
        self._run(context, _Job(root, [binary, *args], ancestors))

        logger.info(
            f"Explored {root.command_path}: {context.node_count} nodes, {context.invocations} invocations"
        )
        return root

    def _run(self, context: TraversalContext, first: _Job) -> None:
        with ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="clint") as pool:
            pending: dict[Future, _Job] = {pool.submit(self._explore_node, context, first): first}
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    pending.pop(future)
                    for job in future.result():
                        pending[pool.submit(self._explore_node, context, job)] = job

    def _explore_node(self, context: TraversalContext, job: _Job) -> list[_Job]:
        """Invoke and parse one node; return jobs for its new children."""
        node = job.node
        try:
            context.reserve_invocation(node.command_path)
        except StructureError as e:
            self._stop(node, e)
            return []

        result, partial = self._read_help(context, job)
        if result is None:
            node.status = NodeStatus.ERRORED
            return []

        text = result.text
        if text.strip() and any(ancestor.help_text == text for ancestor in job.ancestors):
            self._stop(node, StructureError(node.command_path, "cycle", "help output repeats an ancestor's"))
            return []

        self._apply(node, partial)
        node.status = NodeStatus.EXPLORED if partial.is_usable else NodeStatus.PARTIAL
        if not partial.is_usable:
            node.add_warning("help output has no usage, flags or subcommands")

        ancestors = job.ancestors + (_Ancestor(node.name, text),)
        children = []
        for entry in partial.subcommands:
            if entry.name in node.commands:
                continue
            child = CommandNode(
                name=entry.name,
                description=entry.description or None,
                parent=node.name,
                parent_header=entry.parent_header,
                command_path=f"{node.command_path} {entry.name}",
                depth=node.depth + 1,
            )
            node.commands[entry.name] = child
            try:
                self._check_child(context, child, ancestors)
            except StructureError as e:
                self._stop(child, e)
                continue
            children.append(_Job(child, [*job.argv, entry.name], ancestors))
        return children

    def _check_child(self, context: TraversalContext, child: CommandNode, ancestors: tuple[_Ancestor, ...]) -> None:
        if any(ancestor.name == child.name for ancestor in ancestors):
            raise StructureError(child.command_path, "cycle", f"'{child.name}' is already an ancestor")
        context.check_depth(child.command_path, child.depth)
        if not context.claim(child):
            raise StructureError(child.command_path, "cycle", "path already explored")

    def _stop(self, node: CommandNode, error: StructureError) -> None:
        node.status = NodeStatus.CYCLE if error.reason == "cycle" else NodeStatus.PRUNED
        node.add_warning(str(error))
        if error.reason == "cycle":
            logger.debug(f"Terminal reference: {error}")
        else:
            logger.warning(f"Pruned {error}")

    def _read_help(self, context: TraversalContext, job: _Job) -> tuple[InvocationResult | None, PartialNode]:
        """Run the help flag, then the help command when the first page is unusable."""
        node = job.node
        result = self._invoke(node, HELP_PAGE_KEY, [*job.argv, self.config.help_flag])
        partial = self._parse(node, result)
        if partial.is_usable or not self.config.fallback_to_help_command:
            return result, partial

        if len(job.argv) > 1:
            fallback_argv = [*job.argv[:-1], self.config.help_command, node.name]
        else:
            fallback_argv = [*job.argv, self.config.help_command]
        try:
            context.reserve_invocation(node.command_path)
        except StructureError as e:
            node.add_warning(f"help command skipped: {e}")
            return result, partial

        fallback = self._invoke(node, HELP_COMMAND_KEY, fallback_argv)
        fallback_partial = self._parse(node, fallback)
        if fallback is not None and (fallback_partial.is_usable or result is None):
            return fallback, fallback_partial
        return result, partial

    def _invoke(self, node: CommandNode, key: str, argv: list[str]) -> InvocationResult | None:
        try:
            result = self.invoker.invoke(argv)
        except InvocationError as e:
            node.outputs[key] = ProcessOutput()
            node.add_warning(str(e))
            logger.warning(f"{node.command_path}: {e}")
            return None
        node.outputs[key] = ProcessOutput(stdout=result.stdout, stderr=result.stderr, status=result.returncode)
        return result

    def _parse(self, node: CommandNode, result: InvocationResult | None) -> PartialNode:
        if result is None:
            return PartialNode()
        return self.help_parser.parse(result.stdout, result.stderr, program=node.name)

    def _apply(self, node: CommandNode, partial: PartialNode) -> None:
        """Merge a parsed help page into its node."""
        if node.description is None:
            node.description = partial.description
        node.merge_usages(
            Usage(
                usage_string=line.text,
                parent_header=line.parent_header,
                components=self.usage_parser.parse(line.text, program=node.name),
            )
            for line in partial.usage_lines
        )
        node.merge_flags(partial.flag_entries)
        node.children.other.extend(partial.other_lines)
        mark_required_flags(node)

    def probe_version(self, binary: str) -> str:
        """First line printed by ``--version``, then by ``version``."""
        for argv in ([binary, "--version"], [binary, "version"]):
            try:
                result = self.invoker.invoke(argv)
            except InvocationError as e:
                logger.debug(f"Version probe failed: {e}")
                continue
            if result.returncode != 0:
                continue
            for line in result.text.splitlines():
                if line.strip():
                    return line.strip()
        return UNKNOWN_VERSION


def mark_required_flags(node: CommandNode) -> None:
    """Mark flags that every usage line of the node requires."""
    required = None
    for usage in node.usages:
        names = required_flag_names(usage.components)
        required = names if required is None else required & names
    if not required:
        return
    for flag in node.flags:
        if flag.long in required or flag.short in required:
            flag.required = True
