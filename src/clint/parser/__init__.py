"""Parsers for help pages and usage strings."""

from clint.parser.help_page import (
    HelpPageParser,
    PartialNode,
    SectionKind,
    SubcommandEntry,
    UsageLine,
    classify_section,
    parse_flag_line,
)
from clint.parser.usage import UsageGrammarParser, required_flag_names

__all__ = [
    "HelpPageParser",
    "PartialNode",
    "SectionKind",
    "SubcommandEntry",
    "UsageLine",
    "classify_section",
    "parse_flag_line",
    "UsageGrammarParser",
    "required_flag_names",
]
