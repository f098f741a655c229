"""Help page classification.

Turns the free-form output of ``program --help`` into usage lines, flag
entries, subcommand candidates and leftover lines. The parser is a small
state machine whose state is the kind of the section currently being read.
It never raises: text it cannot place is kept as an "other" line.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from clint.models.command import ROOT_HEADER, Flag, OtherLine

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_OVERSTRIKE_RE = re.compile(r".\x08")
_INLINE_USAGE_RE = re.compile(r"^(usage|synopsis)\s*:\s*(\S.*)$", re.IGNORECASE)
_GAP_RE = re.compile(r"\s{2,}")
_OR_PREFIX_RE = re.compile(r"^or\s*:\s*", re.IGNORECASE)
_FLAG_TOKEN_RE = re.compile(r"<[^>]*>|\{[^}]*\}|\[[^\]]*\]|[^\s,]+")
_COMMAND_LINE_RE = re.compile(r"^([^\s\-][^\s,]*?)(?:,\s*[^\s,]+)*:?\s{2,}(\S.*)$")
_PLACEHOLDER_RE = re.compile(r"^(<[^>]+>|\{[^}]+\}|\[[^\]]+\]|=\S+|[A-Z][A-Z0-9_\-]*)$")

KNOWN_HEADERS = frozenset({
    "usage",
    "synopsis",
    "flags",
    "global flags",
    "options",
    "global options",
    "commands",
    "available commands",
    "subcommands",
    "examples",
    "example",
    "arguments",
    "positional arguments",
    "optional arguments",
})

_CONTINUATION_STARTS = ("[", "(", "<", "{", "-", "|")


class SectionKind(str, Enum):
    """Kinds of help page sections."""
    ROOT = "root"
    USAGE = "usage"
    FLAGS = "flags"
    COMMANDS = "commands"
    EXAMPLES = "examples"
    OTHER = "other"


def classify_section(header: str) -> SectionKind:
    """Classify a section header by keyword, case-insensitively."""
    text = header.strip().rstrip(":").strip().lower()
    if not text:
        return SectionKind.OTHER
    if "usage" in text or text == "synopsis":
        return SectionKind.USAGE
    if "example" in text:
        return SectionKind.EXAMPLES
    if "flag" in text or "option" in text:
        return SectionKind.FLAGS
    if "command" in text:
        return SectionKind.COMMANDS
    return SectionKind.OTHER


def is_header_line(line: str) -> bool:
    """Unindented line that ends with a colon or names a known section."""
    if not line or line[0].isspace() or line.lstrip().startswith("-"):
        return False
    text = line.strip()
    if text.endswith(":"):
        return True
    lowered = text.lower()
    if lowered in KNOWN_HEADERS:
        return True
    return text.isupper() and classify_section(text) != SectionKind.OTHER


@dataclass
class UsageLine:
    """Raw usage text found in a help page."""
    text: str
    parent_header: str


@dataclass
class SubcommandEntry:
    """A subcommand candidate listed in a commands section."""
    name: str
    description: str
    parent_header: str


@dataclass
class PartialNode:
    """Everything one help page says about one command."""
    description: str | None = None
    usage_lines: list[UsageLine] = field(default_factory=list)
    flag_entries: list[Flag] = field(default_factory=list)
    subcommands: list[SubcommandEntry] = field(default_factory=list)
    other_lines: list[OtherLine] = field(default_factory=list)

    @property
    def is_usable(self) -> bool:
        """Whether the page has any recognisable help structure."""
        return bool(self.usage_lines or self.flag_entries or self.subcommands)


def clean_text(text: str) -> str:
    """Drop terminal colouring and man-page overstrike."""
    return _OVERSTRIKE_RE.sub("", _ANSI_RE.sub("", text))


def _normalize_data_type(token: str) -> str | None:
    value = token.strip().lstrip("=")
    if value.endswith("..."):
        value = value[:-3]
    while len(value) >= 2 and (value[0], value[-1]) in (("<", ">"), ("{", "}"), ("[", "]")):
        value = value[1:-1].strip().lstrip("=")
    return value or None


def _split_attached_value(token: str) -> tuple[str, str | None]:
    """Split ``--out=FILE``, ``--out[=FILE]`` and ``-I<dir>`` into name and value."""
    for marker in ("[=", "=", "<"):
        index = token.find(marker)
        if index > 0:
            return token[:index], token[index:]
    return token, None


def parse_flag_line(text: str, parent_header: str) -> Flag | None:
    """Parse one flag entry such as ``-o, --output string   Output path``.

    Args:
        text: The stripped line, starting with a dash
        parent_header: Section the line was found in

    Returns:
        The Flag, or None when the line holds no flag name
    """
    parts = _GAP_RE.split(text, maxsplit=1)
    if len(parts) == 2:
        head, description = parts
    else:
        # Single-spaced entry: flag tokens and at most one placeholder lead.
        tokens = text.split()
        taken = 0
        for token in tokens:
            if token.startswith("-") or token.endswith(","):
                taken += 1
            elif taken and _PLACEHOLDER_RE.match(token):
                taken += 1
                break
            else:
                break
        head = " ".join(tokens[:taken])
        description = " ".join(tokens[taken:])

    names: list[str] = []
    data_type = None
    for token in _FLAG_TOKEN_RE.findall(head):
        if token.startswith("-") and len(token) > 1:
            name, value = _split_attached_value(token)
            if name.strip("-"):
                names.append(name)
            if value and data_type is None:
                data_type = _normalize_data_type(value)
        elif names and data_type is None:
            data_type = _normalize_data_type(token)

    if not names:
        return None

    short = None
    long = None
    if len(names) == 1:
        if names[0].startswith("--"):
            long = names[0]
        else:
            short = names[0]
    else:
        for name in sorted(names, key=len):
            if name.startswith("--") and long is None:
                long = name
            elif not name.startswith("--") and short is None:
                short = name

    return Flag(
        short=short.lstrip("-") if short else None,
        long=long.lstrip("-") if long else None,
        data_type=data_type,
        description=description.strip() or None,
        parent_header=parent_header,
    )


def _is_program_usage(stripped: str, program: str | None) -> bool:
    return bool(program) and stripped.startswith(f"{program} ") and any(char in stripped for char in "[<")


def _looks_like_flag_entry(stripped: str) -> bool:
    return (
        stripped.startswith("-")
        and len(stripped) > 1
        and not stripped[1].isspace()
        and _GAP_RE.search(stripped) is not None
    )


class HelpPageParser:
    """Classify a help page into a PartialNode."""

    def parse(
        self,
        stdout: str,
        stderr: str = "",
        parent_header: str = ROOT_HEADER,
        program: str | None = None,
    ) -> PartialNode:
        """Parse help output.

        Args:
            stdout: Captured standard output
            stderr: Captured standard error, used when stdout is blank
            parent_header: Header recorded for lines outside any section
            program: Command name; lines that start with it and carry
                     placeholders are taken as usage lines outside a bare
                     usage block

        Returns:
            PartialNode; never raises
        """
        text = stdout if stdout.strip() else stderr
        result = PartialNode()
        if not text or not text.strip():
            return result

        header = parent_header
        kind = SectionKind.ROOT
        description_lines: list[str] = []
        description_closed = False
        previous_blank = True
        # Under a bare "Usage:" header every line is usage until a blank follows one.
        usage_block = False
        last_usage: UsageLine | None = None
        last_flag: Flag | None = None
        last_flag_indent = 0
        last_command: SubcommandEntry | None = None
        last_command_indent = 0

        for raw_line in clean_text(text).splitlines():
            line = raw_line.expandtabs(8).rstrip()
            if not line.strip():
                previous_blank = True
                if description_lines:
                    description_closed = True
                if last_usage is not None:
                    usage_block = False
                last_usage = None
                last_flag = None
                last_command = None
                continue

            stripped = line.strip()
            indent = len(line) - len(line.lstrip())

            inline_usage = _INLINE_USAGE_RE.match(line) if indent == 0 else None
            if inline_usage:
                header = inline_usage.group(1).capitalize()
                kind = SectionKind.USAGE
                usage_block = False
                last_usage = self._add_usage(result, inline_usage.group(2).strip(), header)
                previous_blank = False
                last_flag = None
                last_command = None
                continue

            if is_header_line(line):
                header = stripped.rstrip(":").strip()
                kind = classify_section(header)
                usage_block = kind == SectionKind.USAGE
                if description_lines:
                    description_closed = True
                previous_blank = False
                last_usage = None
                last_flag = None
                last_command = None
                continue

            if kind == SectionKind.ROOT and _is_program_usage(stripped, program):
                last_usage = self._add_usage(result, stripped, header)
                previous_blank = False
                continue

            if (
                kind == SectionKind.ROOT
                and indent == 0
                and not stripped.startswith("-")
                and not description_closed
            ):
                description_lines.append(stripped)
                previous_blank = False
                continue

            if kind == SectionKind.USAGE:
                if (
                    last_usage is not None
                    and stripped.startswith(_CONTINUATION_STARTS)
                    and not _looks_like_flag_entry(stripped)
                ):
                    last_usage.text = f"{last_usage.text} {stripped}"
                elif _looks_like_flag_entry(stripped):
                    last_flag = self._add_flag(result, stripped, header)
                    last_flag_indent = indent
                    last_usage = None
                elif (
                    usage_block
                    or _is_program_usage(stripped, program)
                    or (last_usage is not None and _OR_PREFIX_RE.match(stripped))
                ):
                    usage = _OR_PREFIX_RE.sub("", stripped, count=1)
                    last_usage = self._add_usage(result, usage, header)
                elif not description_closed:
                    description_lines.append(stripped)
                    last_usage = None
                else:
                    result.other_lines.append(OtherLine(line_contents=line, parent_header=header))
                    last_usage = None
            elif kind == SectionKind.FLAGS:
                if stripped.startswith("-"):
                    last_flag = self._add_flag(result, stripped, header)
                    last_flag_indent = indent
                elif last_flag is not None and indent > last_flag_indent and not previous_blank:
                    last_flag.description = (
                        f"{last_flag.description} {stripped}" if last_flag.description else stripped
                    )
                else:
                    result.other_lines.append(OtherLine(line_contents=line, parent_header=header))
            elif kind == SectionKind.COMMANDS:
                match = None if stripped.startswith("-") else _COMMAND_LINE_RE.match(stripped)
                if last_command is not None and indent > last_command_indent:
                    last_command.description = (
                        f"{last_command.description} {stripped}" if last_command.description else stripped
                    )
                elif match:
                    last_command = SubcommandEntry(
                        name=match.group(1),
                        description=match.group(2).strip(),
                        parent_header=header,
                    )
                    last_command_indent = indent
                    result.subcommands.append(last_command)
                else:
                    result.other_lines.append(OtherLine(line_contents=line, parent_header=header))
            elif kind in (SectionKind.ROOT, SectionKind.OTHER) and _looks_like_flag_entry(stripped):
                last_flag = self._add_flag(result, stripped, header)
                last_flag_indent = indent
            else:
                result.other_lines.append(OtherLine(line_contents=line, parent_header=header))
            previous_blank = False

        if description_lines:
            result.description = " ".join(description_lines)
        logger.debug(
            f"Help page: {len(result.usage_lines)} usage, {len(result.flag_entries)} flags, "
            f"{len(result.subcommands)} subcommands, {len(result.other_lines)} other"
        )
        return result

    def _add_usage(self, result: PartialNode, text: str, header: str) -> UsageLine:
        usage = UsageLine(text, header)
        result.usage_lines.append(usage)
        return usage

    def _add_flag(self, result: PartialNode, stripped: str, header: str) -> Flag | None:
        flag = parse_flag_line(stripped, header)
        if flag is None:
            result.other_lines.append(OtherLine(line_contents=stripped, parent_header=header))
            return None
        result.flag_entries.append(flag)
        return flag
