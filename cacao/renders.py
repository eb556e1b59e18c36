"""
Default help and version collaborators (rich based).

Program.output_help / Program.output_version call these when the program did
not register its own renderer. Both follow the shape renderer(program, context)
and print to stdout; the matched command (if any) chooses the help text.

Help layout
    name/version

    usage:
      $ name <command> [options]

    commands:            (global help only)
      rm <dir>   Remove a dir

    for more info, run any command with the `--help` flag:
      $ name rm --help

    options:
      -r, --recursive   Remove recursively
      --type [type]     Choose a project type (default: node)

    examples:
       • name rm a/b -r

Version layout
    name/version python-3.x.y

Styling
- Palette keys are listed in HELP_STYLES / VERSION_STYLES; user overrides are
  read from __main__.__styles__. colorful=False suppresses every style and
  fancy=True wraps the output in a Panel.
"""
import platform
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .utils import Unset

HELP_STYLES = {
    # === Head sections ===
    "program-name": "bold #FF4D94",
    "program-version": "bold #00E6FF",
    "section-label": "bold #FFFFFF",
    "usage-section": "bold #36C5F0",
    "description-section": "italic #A3A3A3",

    # === Commands table ===
    "commands-table": "#4B5563",
    "command-name": "bold #36C5F0",
    "command-description": "#9CA3AF",

    # === Options ===
    "option-name": "bold #00E6FF",
    "option-description": "#9CA3AF",
    "option-default": "#FFD600",

    # === Examples ===
    "examples-dot": "#22C55E dim",
    "example": "#E5E7EB",

    # === Fancy panel ===
    "panel-title": "bold #FF4D94",
}

VERSION_STYLES = {
    "program-name": "bold #FF4D94",
    "program-version": "bold #00E6FF",
    "platform": "#9CA3AF",
    "panel-title": "bold #FF4D94",
}


def _stylist(program, palette):
    styles = defaultdict(str, palette | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment if program.colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if program.colorful else "")

    return text


def _heading(program, context, text):
    heading = text(context.name, "program-name")
    if version := program.global_command.version:
        heading = Text.assemble(heading, "/", text(version, "program-version"))
    return heading


def help_renderable(program, context, /):
    """
    Build the help view for the command matched in `context` (global help otherwise).
    """
    text = _stylist(program, HELP_STYLES)
    command = context.matched_command
    scope = program.global_command
    renders = [_heading(program, context, text)]

    if command is None:
        usage = scope.usage_text or ""
    else:
        usage = command.usage_text or command.raw or scope.usage_text or ""
        if command.descr:
            renders.append(Text.assemble("\n", text(command.descr, "description-section")))

    renders.append(Text.assemble(
        "\n", text("usage", "section-label"), ":\n",
        "  $ ", text(context.name, "program-name"), " ", text(usage, "usage-section"),
    ))

    if command is None and program.commands:
        table = Table(
            "name", "description",
            title=text("commands", "section-label"),
            title_justify="left",
            box=ROUNDED,
            border_style=text("", "commands-table").style or None,
        )
        for each in program.commands:
            table.add_row(text(each.raw or "[default]", "command-name"), text(each.descr, "command-description"))
        renders.append(Text(""))
        renders.append(table)

        named = [each for each in program.commands if not each.is_default]
        if named:
            lines = Text.assemble("\n", text("for more info, run any command with the `--help` flag", "section-label"), ":")
            for each in named:
                lines.append("\n  $ ").append(text(context.name, "program-name")).append(" ").append(
                    text("%s --help" % each.name, "usage-section")
                )
            renders.append(lines)

    # the command's own options win over global ones sharing a name
    options = list(command.options) if command is not None else []
    declared = {name for option in options for name in option.names}
    options += [option for option in scope.options if not declared.intersection(option.names)]

    if options:
        lines = Text.assemble("\n", text("options", "section-label"), ":")
        width = max(len(option.raw) for option in options)
        for option in options:
            lines.append("\n  ").append(text(option.raw.ljust(width), "option-name")).append("  ")
            lines.append(text(option.descr, "option-description"))
            if option.default is not Unset and not option.negated:
                lines.append(" ").append(text("(default: %s)" % (option.default,), "option-default"))
        renders.append(lines)

    examples = (command if command is not None else scope).examples
    if examples:
        lines = Text.assemble("\n", text("examples", "section-label"), ":")
        for example in examples:
            rendered = example(context.name) if callable(example) else example
            lines.append("\n").append(text(" • ", "examples-dot")).append(text(rendered, "example"))
        renders.append(lines)

    renderable = Group(*renders)
    if program.fancy:
        renderable = Panel(
            renderable,
            title=text("[ %s HELP ]" % context.name.upper(), "panel-title"),
            title_align="left",
        )
    return renderable


def version_renderable(program, context, /):
    """
    Build the version line: "name/version python-X.Y.Z".
    """
    text = _stylist(program, VERSION_STYLES)
    line = Text.assemble(
        _heading(program, context, text),
        " ",
        text("python-%s" % platform.python_version(), "platform"),
    )
    if program.fancy:
        return Panel(line, title=text("[ %s VERSION ]" % context.name.upper(), "panel-title"), title_align="left")
    return line


def render_help(program, context, /, console=Unset):
    (console or Console()).print(help_renderable(program, context))


def render_version(program, context, /, console=Unset):
    (console or Console()).print(version_renderable(program, context))


__all__ = (
    "HELP_STYLES",
    "VERSION_STYLES",
    "help_renderable",
    "version_renderable",
    "render_help",
    "render_version",
)
