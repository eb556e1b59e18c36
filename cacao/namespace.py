"""
Option assignment engine and the options mapping handed to handlers.

Pipeline (assign)
1. seed   every declared default (unless defaults are ignored for the command);
2. place  every raw key from the tokenizer, splitting it on "." into a nested
          path; later keys overwrite earlier ones at the same path while
          sibling paths merge ("--a.b=1 --a.c=2" → {"a": {"b": 1, "c": 2}});
3. coerce once per canonical option name, following the option's Coercion tag;
4. attach the passthrough tail under the reserved "--" key.

Namespace
- A dict keyed by canonical names (plus normalized names of undeclared flags).
- Reads (item access, get(), "in" and attribute access) also accept every
  declared alias and the hyphenated / camelCase / snake_case spellings of a
  key, so options["r"], options["recursive"], options.recursive all read one
  entry and the dict itself still compares equal to {"recursive": True, "--": []}.
- Writes and deletions use the exact key, like a plain dict.
- Attribute access on a declared option that was neither given nor defaulted
  yields None; any other missing name raises AttributeError.
"""
import copy

from .arguments import Coercion
from .utils import Unset, camelcase, set_dotted, spellings

PASSTHROUGH = "--"


class Namespace(dict):
    """
    Alias-aware options mapping (see module docstring).
    """

    def __init__(self, data=(), /, aliases=()):
        super().__init__(data)
        self._aliases = dict(aliases)

    def _resolve(self, key):
        if not isinstance(key, str) or dict.__contains__(self, key):
            return key
        if key in self._aliases:
            return self._aliases[key]
        for candidate in (camelcase(key), camelcase(key.replace("_", "-"))):
            if dict.__contains__(self, candidate):
                return candidate
            if candidate in self._aliases:
                return self._aliases[candidate]
        return key

    def __getitem__(self, key):
        return super().__getitem__(self._resolve(key))

    def __contains__(self, key):
        return super().__contains__(self._resolve(key))

    def get(self, key, default=None, /):
        return super().get(self._resolve(key), default)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        key = self._resolve(name)
        if dict.__contains__(self, key):
            return dict.__getitem__(self, key)
        if key in self._aliases.values():
            return None
        raise AttributeError("%r is not a declared option and was not given" % name)

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, dict.__repr__(self))


def coerce(option, value, /):
    """
    Apply the option's coercion strategy to a resolved value.

    - Coercion.NONE   → value unchanged
    - Coercion.SINGLE → caster(value), element-wise when value is a list
    - Coercion.ARRAY  → [caster(item) for item in value], wrapping a scalar first

    Booleans (a valued flag given without a value) are never cast, so the
    validator can still report the missing value.
    """
    def cast(item):
        return item if isinstance(item, bool) else option.caster(item)

    match option.coercion:
        case Coercion.SINGLE:
            if isinstance(value, list):
                return [cast(item) for item in value]
            return cast(value)
        case Coercion.ARRAY:
            values = value if isinstance(value, list | tuple) else [value]
            return [cast(item) for item in values]
        case _:
            return value


def aliases(options, /):
    """
    Map every spelling of every declared alias to its canonical name.
    """
    table = {}
    for option in options:
        for name in option.names:
            for spelling in spellings(name):
                table[spelling] = option.name
    return table


def assign(tokenized, options=(), /, *, ignore_defaults=False):
    """
    Turn a Tokenized parse into the final Namespace.

    Parameters
    - tokenized: Tokenized
      output of tokens.tokenize() for the same option set.
    - options: Iterable[Option]
      active option set (global ∪ matched command options).
    - ignore_defaults: bool
      skip step 1 (declared defaults are not seeded).

    Returns
    - Namespace with nested dicts for dot-path keys and the "--" tail.
    """
    options = list(options)
    # placed on a plain dict: tokenizer keys are exact, only reads resolve spellings
    placed = {PASSTHROUGH: list(tokenized.passthrough)}

    if not ignore_defaults:
        for option in options:
            if option.default is not Unset:
                # deep copy: dot-path assignment must not mutate the declared default
                placed[option.name] = copy.deepcopy(option.default)

    for key, value in tokenized.options.items():
        set_dotted(placed, key.split("."), value)

    # one strategy per canonical name (the last declaration wins), applied once
    strategies = {option.name: option for option in options if option.coercion is not Coercion.NONE}
    for name, option in strategies.items():
        if name in placed:
            placed[name] = coerce(option, placed[name])

    return Namespace(placed, aliases=aliases(options))


__all__ = (
    "PASSTHROUGH",
    "Namespace",
    "assign",
    "aliases",
    "coerce",
)
