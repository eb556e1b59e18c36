"""
Low-level tokenizer: split a flat argv-like list into positionals and raw flags.

What it does
- Classifies every token of an invocation (already stripped of the program
  path) as a positional token or a flag, without requiring flags to be
  declared; validation against declarations happens later (see commands).
- Uses the active option set only to answer three questions:
  • which key a flag belongs to (aliases fold onto the canonical name),
  • whether a flag is boolean (it never consumes the next token),
  • whether a value must stay a raw string (options with a coercion).

Token shapes
- "--"            first occurrence ends scanning; the rest is the passthrough tail.
- "--name"        long flag; "--name=value" carries an inline value.
- "--no-name"     sets "name" to False.
- "-x"            short flag; "-x=value" carries an inline value.
- "-abc"          grouped short flags: a and b are True, c follows the value rules.
- anything else   positional (including "-", "-5" and "--=...").

Value rules (for the last flag of a token)
- inline value present      → that string (a boolean flag maps "false" → False, else True)
- boolean flag              → True
- next token is not a flag  → the next token is consumed as the value
- otherwise                 → True (the value is missing; the validator decides)

Repetition
- boolean occurrences overwrite each other ("--color --no-color" → False);
- valued occurrences accumulate into a list in source order.

Numeric inference
- a string value that is a decimal literal ("3", "-2", "1.5", "1e3") becomes an
  int/float, unless the option declares a coercion or inference is disabled.
  Positional tokens are never converted.
"""
import re
from collections import deque
from typing import NamedTuple

from .arguments import Coercion
from .utils import camelcase

_SHORT = re.compile(r"-[^\W\d_]")
_NUMBER = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


class Tokenized(NamedTuple):
    """Raw parse of one candidate: positionals, flag values by key, passthrough tail."""
    positionals: list
    options: dict
    passthrough: list


def is_flag(token, /):
    """
    Tell whether a token has the shape of a flag ("--name", "-x", "-abc").
    """
    return (token.startswith("--") and len(token) > 2 and token[2] != "=") or bool(_SHORT.match(token))


def numeric(value, /):
    """
    Convert a decimal literal to int/float; return anything else unchanged.
    """
    if not isinstance(value, str) or not _NUMBER.fullmatch(value):
        return value
    try:
        return int(value)
    except ValueError:
        return float(value)


class _Scope:
    """
    Lookup tables derived from an option set (later declarations win).
    """

    def __init__(self, options):
        options = list(options)
        self.table = {}
        for option in options:
            for name in option.names:
                self.table[name] = option
        # a negated boolean is only boolean while no option sharing its name expects a value
        self.valued = {
            name
            for option in options if not option.boolean
            for name in option.names
        }

    def resolve(self, name):
        """
        Return (key, option) for a flag name; the key's first dot segment is
        folded onto the canonical option name when declared.
        """
        head, dot, tail = camelcase(name).partition(".")
        option = self.table.get(head)
        if option is not None:
            head = option.name
        return head + dot + tail, option

    def boolean(self, option):
        if option is None or not option.boolean:
            return False
        return not (option.negated and self.valued.intersection(option.names))


def _record(parsed, key, value):
    if key not in parsed:
        parsed[key] = value
    elif isinstance(value, bool) and isinstance(parsed[key], bool):
        parsed[key] = value
    elif isinstance(parsed[key], list):
        parsed[key].append(value)
    else:
        parsed[key] = [parsed[key], value]


def tokenize(tokens, options=(), /, *, infer_numbers=True):
    """
    Split `tokens` into a Tokenized(positionals, options, passthrough).

    Parameters
    - tokens: Iterable[str]
      invocation tokens, without the program path.
    - options: Iterable[Option]
      active option set (global ∪ candidate command options).
    - infer_numbers: bool
      convert numeric flag values to int/float (see module docstring).

    Returns
    - Tokenized with keys normalized by camelcase() and folded onto canonical
      option names; undeclared flags are recorded under their normalized name.
    """
    tokens = list(tokens)
    try:
        separator = tokens.index("--")
    except ValueError:
        passthrough = []
    else:
        tokens, passthrough = tokens[:separator], tokens[separator + 1:]

    scope = _Scope(options)
    positionals = []
    parsed = {}
    pending = deque(tokens)

    while pending:
        token = pending.popleft()

        if not is_flag(token):
            positionals.append(token)
            continue

        if token.startswith("--"):
            name, equal, value = token[2:].partition("=")
            if not equal and name.startswith("no-") and len(name) > 3:
                key, _ = scope.resolve(name[3:])
                _record(parsed, key, False)
                continue
            names = [name]
        else:
            name, equal, value = token[1:].partition("=")
            names = list(name)

        *leading, last = names
        for name in leading:
            key, _ = scope.resolve(name)
            _record(parsed, key, True)

        key, option = scope.resolve(last)
        if scope.boolean(option):
            value = value.lower() != "false" if equal else True
        elif not equal:
            if pending and not is_flag(pending[0]):
                value = pending.popleft()
            else:
                value = True

        if isinstance(value, str) and infer_numbers and getattr(option, "coercion", Coercion.NONE) is Coercion.NONE:
            value = numeric(value)
        _record(parsed, key, value)

    return Tokenized(positionals, parsed, passthrough)


__all__ = (
    "Tokenized",
    "tokenize",
    "is_flag",
    "numeric",
)
