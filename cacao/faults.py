"""
Cacao faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- CommandException / CommandWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/colorful/fancy).

Contract with the core
- The parser, matcher and validator only *raise* these exceptions (or emit the
  warnings through warnings.warn at registration time). They never catch,
  retry or print them.
- Presentation is left to the caller: either the caller handles the exception
  itself, or it goes through trigger(), which raises outside shell mode and
  prints with rich (then exits with status 1) in shell mode.

Integration
- Every fault accepts keyword options. The ones read by the renderer are:
  title, code, hint, prog, colorful, fancy. Any other option (input, command,
  option, ...) is kept for callers that want structured context.
- Hosts may override the palette with a __styles__ mapping and the displayed
  codes with a __codes__ mapping, both looked up in __main__.
"""
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - configuration (100xx)
      • MALFORMED_OPTION, MALFORMED_COMMAND, MALFORMED_ARGUMENTS, DUPLICATED_COMMAND
    - options (101xx)
      • UNKNOWN_OPTION, MISSING_OPTION_VALUE
    - arguments (102xx)
      • MISSING_ARGUMENTS
    - warnings (120xx)
      • AMBIGUOUS_COMMAND, DUPLICATED_OPTION

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- configuration errors (100xx) ---
    MALFORMED_OPTION            = 10001
    MALFORMED_COMMAND           = 10002
    MALFORMED_ARGUMENTS         = 10003
    DUPLICATED_COMMAND          = 10004

    # --- option errors (101xx) ---
    UNKNOWN_OPTION              = 10101
    MISSING_OPTION_VALUE        = 10102

    # --- positional errors (102xx) ---
    MISSING_ARGUMENTS           = 10201

    # --- warnings (120xx) ---
    AMBIGUOUS_COMMAND           = 12001
    DUPLICATED_OPTION           = 12002

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, kind):
    """
    Build the rich renderable shared by exceptions and warnings.

    Layout (plain)
        [ prog - code | title ]
        message
         → hint
    With fancy=True the message and hint are wrapped in a Panel titled by the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    code = options.get("code")
    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", options.get("prog") or "cli"), "prog-name"),
        " - ",
        text(code.normalize() if isinstance(code, FaultCode) else code or "?", "code"),
        " | ",
        text(str(options.get("title", kind)).title(), kind + "-title"),
        " ]",
    )
    message = text(fault.message, kind + "-message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint"), "hint"))

    if options.get("fancy", False):
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class CommandException(Exception):
    """
    Base class of every error raised while declaring or parsing commands.

    Carries a human message and a read-only mapping of options (title, code,
    hint and free-form context). str(exception) is the message.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, "error")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException): ...
class UnknownOptionError(CommandException): ...
class MissingOptionValueError(CommandException): ...
class MissingArgumentsError(CommandException): ...


class CommandWarning(ABC, Warning):
    """
    Base class of non-fatal registration diagnostics.

    Emitted through warnings.warn by the registry; renders like the errors
    but with the amber palette.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class AmbiguousCommandWarning(CommandWarning): ...
class DuplicateOptionWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console (errors then exit
      with status 1); otherwise exceptions are raised and warnings are emitted.

    typical options
    - prog, shell, fancy, colorful, and any extra context the reporter may want.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "CommandException",
    "ConfigurationError",
    "UnknownOptionError",
    "MissingOptionValueError",
    "MissingArgumentsError",
    "CommandWarning",
    "AmbiguousCommandWarning",
    "DuplicateOptionWarning",
    "trigger",
)
