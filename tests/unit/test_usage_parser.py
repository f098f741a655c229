"""Unit tests for the usage grammar parser."""

import pytest

from clint.models.usage import ComponentType
from clint.parser.usage import MAX_NESTING, UsageGrammarParser, required_flag_names


@pytest.fixture
def parser():
    return UsageGrammarParser()


class TestUsageGrammar:
    """Test component trees produced from usage strings."""

    def test_optional_alternatives_and_repeatable_group(self, parser):
        """Test the canonical mixed usage line."""
        components = parser.parse("mytool [--verbose|-v] <file> [file...]")

        assert len(components) == 3
        alternative, argument, group = components

        assert alternative.component_type == ComponentType.ALTERNATIVE_GROUP
        assert alternative.required is False
        assert [a.component_type for a in alternative.alternatives] == [ComponentType.FLAG, ComponentType.FLAG]
        assert [a.name for a in alternative.alternatives] == ["verbose", "v"]

        assert argument.component_type == ComponentType.ARGUMENT
        assert argument.name == "file"
        assert argument.required is True

        assert group.component_type == ComponentType.GROUP
        assert group.required is False
        assert group.repeatable is True
        assert len(group.children) == 1
        assert group.children[0].component_type == ComponentType.ARGUMENT
        assert group.children[0].name == "file"

    def test_usage_label_and_program_are_dropped(self, parser):
        """Test that 'Usage:' and the program name are not components."""
        components = parser.parse("Usage: git remote add <name> <url>", program="add")
        assert [c.name for c in components] == ["name", "url"]
        assert all(c.component_type == ComponentType.ARGUMENT for c in components)

    def test_keywords_and_placeholders(self, parser):
        """Test bare words, angle placeholders and ALL-CAPS arguments."""
        components = parser.parse("tool run TARGET {mode} <path>")
        assert [(c.component_type, c.name) for c in components] == [
            (ComponentType.KEYWORD, "run"),
            (ComponentType.ARGUMENT, "TARGET"),
            (ComponentType.ARGUMENT, "mode"),
            (ComponentType.ARGUMENT, "path"),
        ]

    def test_required_group_with_three_alternatives(self, parser):
        """Test that '(a|b|c)' collapses into one required alternative group."""
        components = parser.parse("tool (start|stop|restart)")
        assert len(components) == 1
        group = components[0]
        assert group.component_type == ComponentType.ALTERNATIVE_GROUP
        assert group.required is True
        assert [a.name for a in group.alternatives] == ["start", "stop", "restart"]

    def test_flag_with_attached_value(self, parser):
        """Test '--flag=value' carries a nested argument."""
        flag = parser.parse("tool --output=<file>")[0]
        assert flag.component_type == ComponentType.FLAG
        assert flag.name == "output"
        assert flag.key_value is True
        assert flag.children[0].component_type == ComponentType.ARGUMENT
        assert flag.children[0].name == "file"
        assert flag.children[0].required is True

    def test_flag_with_optional_value(self, parser):
        """Test '--color[=WHEN]' marks its value optional."""
        flag = parser.parse("ls --color[=WHEN]")[0]
        assert flag.name == "color"
        assert flag.key_value is True
        assert flag.children[0].name == "WHEN"
        assert flag.children[0].required is False

    def test_key_value_pair(self, parser):
        """Test 'KEY=VALUE' words become key/value pairs."""
        pair = parser.parse("tool set KEY=VALUE")[1]
        assert pair.component_type == ComponentType.KEY_VALUE_PAIR
        assert pair.key_value is True
        assert [c.name for c in pair.children] == ["KEY", "VALUE"]

    def test_glued_and_standalone_ellipsis(self, parser):
        """Test both '<x>...' and '<x> ...' mark the component repeatable."""
        glued = parser.parse("tool <path>...")[0]
        spaced = parser.parse("tool <path> ...")[0]
        assert glued.repeatable is True
        assert spaced.repeatable is True

    def test_nested_groups(self, parser):
        """Test groups nest and keep their own required-ness."""
        components = parser.parse("tool [-o <file> [--append]]")
        outer = components[0]
        assert outer.component_type == ComponentType.GROUP
        assert outer.required is False
        assert outer.children[0].name == "o"
        assert outer.children[1].name == "file"
        inner = outer.children[2]
        assert inner.component_type == ComponentType.GROUP
        assert inner.children[0].name == "append"


class TestUsageTotality:
    """Test that malformed usage strings never raise."""

    def test_unbalanced_bracket_kept_as_keyword(self, parser):
        """Test the unbalanced tail becomes one keyword."""
        components = parser.parse("tool <cmd> [--flag <value>")
        assert components[0].name == "cmd"
        assert components[-1].component_type == ComponentType.KEYWORD
        assert components[-1].name == "[--flag <value>"

    def test_stray_closer(self, parser):
        """Test a closer with nothing to close."""
        components = parser.parse("tool a ] b")
        assert components[0].name == "a"
        assert components[-1].component_type == ComponentType.KEYWORD
        assert components[-1].name == "] b"

    def test_excessive_nesting(self, parser):
        """Test nesting past the limit is kept verbatim."""
        text = "tool " + "[" * (MAX_NESTING + 1) + "x" + "]" * (MAX_NESTING + 1)
        components = parser.parse(text)
        assert len(components) == 1
        assert components[0].component_type == ComponentType.KEYWORD

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        "Usage:",
        "|||",
        "[|]",
        "( ] [ )",
        "...",
        "tool -- -",
        "tool [a|]",
        "tool <unterminated",
        "tool =value",
        "tool {a,b} [--x=] [-y[=]]",
    ])
    def test_never_raises(self, parser, text):
        """Test parse is total over odd inputs."""
        result = parser.parse(text)
        assert isinstance(result, list)


class TestRequiredFlagNames:
    """Test required flag inference from components."""

    def test_flags_outside_optional_groups(self, parser):
        """Test only flags outside optional groups and alternatives count."""
        components = parser.parse("tool --target <name> [--force] (--a|--b) (--region <r>)")
        assert required_flag_names(components) == {"target", "region"}
