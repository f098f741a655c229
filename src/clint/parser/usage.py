"""Recursive-descent parser for usage strings.

Usage strings follow no single grammar across programs, so the parser is
total: anything it cannot balance is kept verbatim as a trailing Keyword.

    sequence  := component*
    component := '[' sequence ']'            optional Group
               | '(' sequence ')'            required Group
               | component ('|' component)+  AlternativeGroup
               | token
"""

import logging
import re
from dataclasses import dataclass

from clint.models.usage import ComponentType, UsageComponent

logger = logging.getLogger(__name__)

MAX_NESTING = 64

_USAGE_LABEL_RE = re.compile(r"^usage\s*:\s*", re.IGNORECASE)
_PROGRAM_TOKEN_RE = re.compile(r"^([^\s\[\]()<>{}|\-][^\s\[\]()<>{}|]*)")
_ALL_CAPS_RE = re.compile(r"^[A-Z][A-Z0-9_\-]*$")
_KEY_VALUE_PLACEHOLDER_RE = re.compile(r"^<[^>]+>=<[^>]+>$")

_OPENERS = {"[": "]", "(": ")"}
_CLOSERS = {"]": "[", ")": "("}
_PUNCTUATION = "[]()|"


@dataclass
class _Token:
    kind: str  # one of "[", "]", "(", ")", "|", "...", "word"
    text: str
    offset: int


class _TokenStream:
    def __init__(self, tokens: list[_Token]):
        self.tokens = tokens
        self.position = 0
        self.argument_names: set[str] = set()

    def done(self) -> bool:
        return self.position >= len(self.tokens)

    def peek(self) -> _Token | None:
        if self.done():
            return None
        return self.tokens[self.position]

    def next(self) -> _Token:
        token = self.tokens[self.position]
        self.position += 1
        return token


def tokenize(text: str) -> list[_Token]:
    """Split a usage string into punctuation, ellipsis and word tokens.

    ``<...>`` and ``{...}`` placeholders are kept whole even when they hold
    spaces or brackets; a flag's attached ``[=value]`` stays part of the flag.
    """
    tokens: list[_Token] = []
    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        if char.isspace():
            i += 1
            continue
        if text.startswith("...", i):
            tokens.append(_Token("...", "...", i))
            i += 3
            continue
        if char in _PUNCTUATION:
            tokens.append(_Token(char, char, i))
            i += 1
            continue

        start = i
        while i < length:
            char = text[i]
            if char.isspace() or char in _PUNCTUATION:
                if char == "[" and text.startswith("[=", i) and text[start] == "-":
                    close = _matching_bracket(text, i)
                    if close is not None:
                        i = close + 1
                        continue
                break
            if char in "<{":
                close = text.find(">" if char == "<" else "}", i + 1)
                if close != -1:
                    i = close + 1
                    continue
            i += 1

        word = text[start:i]
        if word.endswith("...") and len(word) > 3:
            tokens.append(_Token("word", word[:-3], start))
            tokens.append(_Token("...", "...", i - 3))
        else:
            tokens.append(_Token("word", word, start))
    return tokens


def _matching_bracket(text: str, start: int) -> int | None:
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "[":
            depth += 1
        elif text[index] == "]":
            depth -= 1
            if depth == 0:
                return index
    return None


def find_unbalanced(tokens: list[_Token]) -> int | None:
    """Index of the token where balanced parsing must stop, or None.

    That is the outermost opener still open at the first mismatch (or at the
    end), a closer with nothing to close, or the opener that exceeds
    ``MAX_NESTING``.
    """
    stack: list[int] = []
    for index, token in enumerate(tokens):
        if token.kind in _OPENERS:
            stack.append(index)
            if len(stack) > MAX_NESTING:
                return stack[0]
        elif token.kind in _CLOSERS:
            if stack and tokens[stack[-1]].kind == _CLOSERS[token.kind]:
                stack.pop()
            else:
                return stack[0] if stack else index
    return stack[0] if stack else None


def strip_placeholder(text: str) -> str:
    if len(text) >= 2 and (text[0], text[-1]) in (("<", ">"), ("{", "}")):
        return text[1:-1].strip()
    return text


class UsageGrammarParser:
    """Parse one usage string into a sequence of UsageComponent."""

    def parse(self, usage_string: str, program: str | None = None) -> list[UsageComponent]:
        """Parse a usage string.

        Args:
            usage_string: Raw usage line, optionally prefixed with ``Usage:``
            program: Name of the command the line belongs to; the line is
                     parsed from just after it. When omitted, a leading bare
                     word is taken as the program name.

        Returns:
            Root-level components; never raises
        """
        text = self._strip_prefix(usage_string, program)
        if not text:
            return []

        tokens = tokenize(text)
        cut = find_unbalanced(tokens)
        remainder = ""
        if cut is not None:
            remainder = text[tokens[cut].offset:].strip()
            tokens = tokens[:cut]
            logger.debug(f"Unbalanced usage string, keeping tail verbatim: {remainder!r}")

        stream = _TokenStream(tokens)
        components: list[UsageComponent] = []
        while not stream.done():
            components.extend(self._parse_sequence(stream, closer=None))
            if not stream.done():
                stream.next()

        if remainder:
            components.append(UsageComponent(component_type=ComponentType.KEYWORD, name=remainder))
        return components

    def _strip_prefix(self, usage_string: str, program: str | None) -> str:
        text = _USAGE_LABEL_RE.sub("", usage_string.strip(), count=1).strip()
        if program:
            match = re.search(rf"(?<![\w./-]){re.escape(program)}(?![\w-])", text)
            if match and not any(char in text[:match.start()] for char in "[]()<>{}|"):
                return text[match.end():].strip()

        match = _PROGRAM_TOKEN_RE.match(text)
        if match and not _ALL_CAPS_RE.match(match.group(1)) and "=" not in match.group(1):
            return text[match.end():].strip()
        return text

    def _parse_sequence(self, stream: _TokenStream, closer: str | None) -> list[UsageComponent]:
        items: list[UsageComponent] = []
        while not stream.done():
            token = stream.peek()
            if token.kind in _CLOSERS:
                break
            if token.kind == "|":
                stream.next()
                if not items:
                    continue
                right = self._parse_component(stream, closer)
                if right is not None:
                    items[-1] = self._alternate(items[-1], right)
                continue
            if token.kind == "...":
                stream.next()
                if items:
                    items[-1].repeatable = True
                continue
            component = self._parse_component(stream, closer)
            if component is not None:
                items.append(component)
        return items

    def _parse_component(self, stream: _TokenStream, closer: str | None) -> UsageComponent | None:
        token = stream.peek()
        if token is None or token.kind in _CLOSERS or token.kind == "|":
            return None
        stream.next()

        if token.kind in _OPENERS:
            expected = _OPENERS[token.kind]
            children = self._parse_sequence(stream, expected)
            next_token = stream.peek()
            if next_token is not None and next_token.kind == expected:
                stream.next()
            component = self._group(children, required=token.kind == "(")
        elif token.kind == "word":
            component = self._token(token.text)
        else:
            component = None

        while stream.peek() is not None and stream.peek().kind == "...":
            stream.next()
            if component is not None:
                component.repeatable = True

        if component is None:
            return None
        if component.component_type == ComponentType.KEYWORD and (
            component.repeatable or component.name in stream.argument_names
        ):
            component.component_type = ComponentType.ARGUMENT
        if component.component_type == ComponentType.ARGUMENT:
            stream.argument_names.add(component.name)
        return component

    def _group(self, children: list[UsageComponent], required: bool) -> UsageComponent | None:
        if not children:
            return None
        if len(children) == 1 and children[0].component_type == ComponentType.ALTERNATIVE_GROUP:
            alternative = children[0]
            alternative.required = required
            return alternative
        return UsageComponent(
            component_type=ComponentType.GROUP,
            required=required,
            repeatable=children[-1].repeatable,
            children=children,
        )

    def _alternate(self, left: UsageComponent, right: UsageComponent) -> UsageComponent:
        if (
            left.component_type == ComponentType.ALTERNATIVE_GROUP
            and left.required
            and not left.repeatable
        ):
            left.alternatives.append(right)
            return left
        return UsageComponent(
            component_type=ComponentType.ALTERNATIVE_GROUP,
            required=True,
            alternatives=[left, right],
        )

    def _token(self, text: str) -> UsageComponent:
        if text in ("-", "--"):
            return UsageComponent(component_type=ComponentType.KEYWORD, name=text)
        if text.startswith("-"):
            return self._flag(text)
        if _KEY_VALUE_PLACEHOLDER_RE.match(text) or (
            "=" in text and not text.startswith(("<", "{"))
        ):
            return self._key_value(text)
        if (text.startswith("<") and text.endswith(">")) or (text.startswith("{") and text.endswith("}")):
            return self._argument(strip_placeholder(text))
        if _ALL_CAPS_RE.match(text):
            return self._argument(text)
        return UsageComponent(component_type=ComponentType.KEYWORD, name=text)

    def _flag(self, text: str) -> UsageComponent:
        value = None
        optional_value = False
        head = text
        if "[=" in text and text.endswith("]"):
            head, value = text.split("[=", 1)
            value = value[:-1]
            optional_value = True
        elif "=" in text:
            head, value = text.split("=", 1)
        elif "<" in text:
            index = text.index("<")
            head, value = text[:index], text[index:]

        component = UsageComponent(component_type=ComponentType.FLAG, name=head.lstrip("-"))
        if value is not None:
            component.key_value = True
            value = strip_placeholder(value.strip())
            if value:
                component.children.append(self._argument(value, required=not optional_value))
        return component

    def _key_value(self, text: str) -> UsageComponent:
        key, _, value = text.partition("=")
        key = strip_placeholder(key)
        value = strip_placeholder(value)
        if not key:
            return UsageComponent(component_type=ComponentType.KEYWORD, name=text)
        children = [self._argument(key)]
        if value:
            children.append(self._argument(value))
        return UsageComponent(
            component_type=ComponentType.KEY_VALUE_PAIR,
            name=text,
            key_value=True,
            children=children,
        )

    def _argument(self, name: str, required: bool = True) -> UsageComponent:
        return UsageComponent(component_type=ComponentType.ARGUMENT, name=name, required=required)


def required_flag_names(components: list[UsageComponent], required: bool = True) -> set[str]:
    """Names of flags that must appear for a usage line to match.

    A flag counts when every enclosing group is required; alternatives and
    optional groups make their members optional.
    """
    names: set[str] = set()
    for component in components:
        in_required = required and component.required
        if component.component_type == ComponentType.FLAG:
            if in_required:
                names.add(component.name)
        elif component.component_type == ComponentType.GROUP:
            names |= required_flag_names(component.children, in_required)
    return names
