"""Replica code generator.

Reconstructs a runnable Typer package from a parsed command tree. The
replica mirrors declared structure only: commands, flags and help text.
"""

import json
import keyword
import logging
import re
import tomllib
from pathlib import Path

from clint.config import ReplicaConfig
from clint.errors import GenerationError
from clint.models.command import CommandNode, Flag

logger = logging.getLogger(__name__)

_INT_TYPE_RE = re.compile(r"^(u?int\d*|integer|number|num|n|count|uint)$")
_FLOAT_TYPE_RE = re.compile(r"^(float\d*|double|decimal)$")
_VERSION_RE = re.compile(r"\d+(?:\.\d+)+")
_NON_IDENTIFIER_RE = re.compile(r"[^0-9a-zA-Z_]+")
_OPTION_FORM_RE = re.compile(r"^--?[A-Za-z0-9][A-Za-z0-9_.:-]*$")

# Names the generated module binds at top level.
_RESERVED_NAMES = frozenset({"typer", "app", "Annotated", "Optional"})


def python_type(data_type: str | None) -> str:
    """Python annotation for a scraped flag data type."""
    if data_type is None:
        return "bool"
    lowered = data_type.strip().lower()
    if lowered in ("bool", "boolean"):
        return "bool"
    if _INT_TYPE_RE.match(lowered):
        return "int"
    if _FLOAT_TYPE_RE.match(lowered):
        return "float"
    if (
        lowered.startswith("[]")
        or lowered.endswith(("array", "slice", "list"))
        or lowered in ("strings", "ints", "uints")
    ):
        return "list[str]"
    return "str"


def to_identifier(text: str, used: set[str] | None = None) -> str:
    """Turn arbitrary text into a fresh Python identifier."""
    name = _NON_IDENTIFIER_RE.sub("_", text).strip("_") or "value"
    if name[0].isdigit():
        name = f"opt_{name}"
    if keyword.iskeyword(name) or name in _RESERVED_NAMES:
        name = f"{name}_"
    if used is not None:
        candidate = name
        suffix = 2
        while candidate in used:
            candidate = f"{name}_{suffix}"
            suffix += 1
        used.add(candidate)
        name = candidate
    return name


def _is_help_flag(flag: Flag) -> bool:
    return flag.long == "help" or (flag.long is None and flag.short == "h")


def _is_verbose_flag(flag: Flag) -> bool:
    return flag.long == "verbose" or (flag.long is None and flag.short == "v")


class ReplicaGenerator:
    """Generate a Typer replica package from a CommandNode tree."""

    def __init__(self, config: ReplicaConfig | None = None):
        self.config = config or ReplicaConfig()

    def generate(self, tree: CommandNode) -> dict[str, str]:
        """Produce the replica's source files.

        Args:
            tree: Root of a parsed command tree

        Returns:
            Mapping of relative path to file contents

        Raises:
            GenerationError: a generated artifact does not compile
        """
        package = f"{to_identifier(tree.name.lower())}_replica"
        artifacts = {
            "pyproject.toml": self._render_pyproject(tree, package),
            f"src/{package}/__init__.py": self._render_init(tree),
            f"src/{package}/__main__.py": self._render_main(tree, package),
            f"src/{package}/cli.py": self._render_cli(tree),
        }
        self._check(artifacts)
        logger.info(f"Generated replica of {tree.name} as package {package}")
        return artifacts

    def write(self, artifacts: dict[str, str], output_dir: str | Path) -> list[Path]:
        """Write artifacts below ``output_dir``, overwriting existing files.

        Raises:
            GenerationError: a file could not be written
        """
        output_dir = Path(output_dir)
        written = []
        for relative_path in sorted(artifacts):
            path = output_dir / relative_path
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(artifacts[relative_path], encoding="utf-8", newline="\n")
            except OSError as e:
                raise GenerationError(f"Failed to write {path}: {e}") from e
            written.append(path)
        return written

    def _check(self, artifacts: dict[str, str]) -> None:
        for relative_path, source in artifacts.items():
            if relative_path.endswith(".py"):
                try:
                    compile(source, relative_path, "exec")
                except (SyntaxError, ValueError) as e:
                    raise GenerationError(f"Generated {relative_path} does not compile: {e}") from e
            elif relative_path.endswith(".toml"):
                try:
                    tomllib.loads(source)
                except tomllib.TOMLDecodeError as e:
                    raise GenerationError(f"Generated {relative_path} is not valid TOML: {e}") from e

    def _render_pyproject(self, tree: CommandNode, package: str) -> str:
        lines = [
            "[build-system]",
            'requires = ["setuptools>=61.0"]',
            'build-backend = "setuptools.build_meta"',
            "",
            "[project]",
            f"name = {_toml_string(tree.name + '-replica')}",
            f"version = {_toml_string(_package_version(tree.version))}",
            f"description = {_toml_string(tree.description or f'Replica of {tree.name}')}",
            'requires-python = ">=3.10"',
            'dependencies = ["typer>=0.9.0"]',
            "",
            "[project.scripts]",
            f"{_toml_string(tree.name)} = {_toml_string(package + '.cli:app')}",
            "",
            "[tool.setuptools.packages.find]",
            'where = ["src"]',
        ]
        return "\n".join(lines) + "\n"

    def _render_init(self, tree: CommandNode) -> str:
        lines = [
            f'"""Replica of {_docstring_safe(tree.name)}."""',
            "",
            f"__version__ = {_package_version(tree.version)!r}",
        ]
        return "\n".join(lines) + "\n"

    def _render_main(self, tree: CommandNode, package: str) -> str:
        lines = [
            f"from {package}.cli import app",
            "",
            f"app(prog_name={tree.name!r})",
        ]
        return "\n".join(lines) + "\n"

    def _render_cli(self, tree: CommandNode) -> str:
        lines = [
            f'"""Command-line replica of {_docstring_safe(tree.name)}."""',
            "",
            "from typing import Annotated, Optional",
            "",
            "import typer",
            "",
        ]
        used_names: set[str] = set(_RESERVED_NAMES)

        app_options = [
            f"name={tree.name!r}",
            "add_completion=False",
        ]
        if tree.description:
            app_options.append(f"help={tree.description!r}")
        if self.config.keep_help_flags:
            app_options.append("add_help_option=False")
        lines.append(f"app = typer.Typer({', '.join(app_options)})")
        lines.append("")

        if tree.commands:
            self._render_group(tree, "app", used_names, lines)
        else:
            self._render_command(tree, "app", used_names, lines, named=False)
        return "\n".join(lines).rstrip("\n") + "\n"

    def _render_group(self, node: CommandNode, app_var: str, used_names: set[str], lines: list[str]) -> None:
        """Callback carrying the node's flags, then one entry per child."""
        function = to_identifier("_".join(node.path_parts), used_names)
        lines.append("")
        lines.append(f"@{app_var}.callback(invoke_without_command=True)")
        lines.extend(self._render_function(node, function))

        for name in sorted(node.commands):
            child = node.commands[name]
            if child.commands:
                child_var = to_identifier(f"{'_'.join(child.path_parts)}_app", used_names)
                options = [f"name={child.name!r}", "add_completion=False"]
                if child.description:
                    options.append(f"help={child.description!r}")
                if self.config.keep_help_flags:
                    options.append("add_help_option=False")
                lines.append("")
                lines.append("")
                lines.append(f"{child_var} = typer.Typer({', '.join(options)})")
                lines.append(f"{app_var}.add_typer({child_var}, name={child.name!r})")
                self._render_group(child, child_var, used_names, lines)
            else:
                self._render_command(child, app_var, used_names, lines, named=True)

    def _render_command(
        self, node: CommandNode, app_var: str, used_names: set[str], lines: list[str], named: bool
    ) -> None:
        function = to_identifier("_".join(node.path_parts), used_names)
        options = []
        if named:
            options.append(f"name={node.name!r}")
        if node.description:
            options.append(f"help={node.description!r}")
        if self.config.keep_help_flags:
            options.append("add_help_option=False")
        lines.append("")
        lines.append(f"@{app_var}.command({', '.join(options)})")
        lines.extend(self._render_function(node, function))

    def _render_function(self, node: CommandNode, function: str) -> list[str]:
        parameters = self._render_parameters(node)
        lines = []
        if parameters:
            lines.append(f"def {function}(")
            lines.extend(f"    {parameter}," for parameter in parameters)
            lines.append(") -> None:")
        else:
            lines.append(f"def {function}() -> None:")
        lines.append(f"    typer.echo({node.command_path!r})")
        lines.append("")
        return lines

    def _render_parameters(self, node: CommandNode) -> list[str]:
        parameter_names: set[str] = set()
        used_forms: set[str] = set()
        required = []
        optional = []
        for flag in sorted(self._replicated_flags(node), key=lambda f: (f.primary_name, f.display)):
            forms = [
                form for form in flag.cli_forms
                if form not in used_forms and _OPTION_FORM_RE.match(form)
            ]
            if not forms:
                continue
            used_forms.update(forms)
            name = to_identifier(flag.primary_name.lower(), parameter_names)
            py_type = python_type(flag.data_type)

            option_args = [repr(form) for form in forms]
            if flag.description:
                option_args.append(f"help={flag.description!r}")
            option = f"typer.Option({', '.join(option_args)})"

            if py_type == "bool":
                optional.append(f"{name}: Annotated[bool, {option}] = False")
            elif flag.required:
                required.append(f"{name}: Annotated[{py_type}, {option}]")
            else:
                optional.append(f"{name}: Annotated[Optional[{py_type}], {option}] = None")
        return required + optional

    def _replicated_flags(self, node: CommandNode) -> list[Flag]:
        flags = []
        for flag in node.flags:
            if not flag.cli_forms:
                continue
            if _is_help_flag(flag) and not self.config.keep_help_flags:
                continue
            if _is_verbose_flag(flag) and not self.config.keep_verbose_flags:
                continue
            flags.append(flag)
        return flags


def _toml_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _package_version(version: str | None) -> str:
    match = _VERSION_RE.search(version or "")
    return match.group(0) if match else "0.0.0"


def _docstring_safe(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', "'")
