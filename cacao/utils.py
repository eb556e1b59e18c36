"""
Cacao utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the option model, the tokenizer, the
  assignment engine and the command registry.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the higher-level arguments/commands layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent "value not provided" without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) as an immutable view.

- camelcase / spellings
  • Option name normalization: "clear-screen" → "clearScreen"; only the first dot segment is touched.

- strip_brackets(raw)
  • Drop the "<required>" / "[optional]" placeholders from a declaration string.

- set_dotted(mapping, keys, value)
  • Assign into nested dicts following a dot path, creating levels on demand.

Stability and contract
- Names listed in __all__ are supported; everything else may change without notice.
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value (e.g. an option default
    of None), but the API needs a way to distinguish "not provided" from
    "provided as None". A single instance, Unset, is exposed for use as the
    default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish "no input" from "explicitly passed None".
"""


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns `object` unless it is Unset, in which case `default` is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (updated in place)
    - rename(name)           -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, a callable that
      refuses attribute updates, or a wrong number of arguments.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" on the instance and returns an
    immutable view of container values:
    - Sequence (non-str) → tuple
    - Mapping            → MappingProxyType
    - Set                → frozenset
    - other types        → returned as-is
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        value = getattr(self, "_" + name)
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(value)
        if isinstance(value, Mapping):
            return MappingProxyType(value)
        if isinstance(value, Set):
            return frozenset(value)
        return value

    return property(getter)


def camelcase(name, /):
    """
    Normalize an option name to the stored key convention.

    Hyphen-separated words are joined without separators, the first word kept
    as written ("clear-screen" → "clearScreen"). Only the first dot segment is
    touched, so "env.API-KEY" → "env.API-KEY" and "some-env.x-y" → "someEnv.x-y".
    """
    head, dot, tail = name.partition(".")
    head = re.sub(r"([a-z0-9])-([a-z])", lambda match: match[1] + match[2].upper(), head)
    return head + dot + tail


@functools.cache
def spellings(name, /):
    """
    Return every spelling that refers to the same stored key.

    For "clearScreen" this yields ("clearScreen", "clear-screen", "clear_screen").
    Single words yield a one-element tuple.
    """
    hyphenated = re.sub(r"(?<=[a-z0-9])([A-Z])", lambda match: "-" + match[1].lower(), name)
    forms = [name, hyphenated, hyphenated.replace("-", "_"), camelcase(name)]
    return tuple(dict.fromkeys(forms))


def strip_brackets(raw, /):
    """
    Drop everything from the first placeholder bracket on.

    "rm <dir>" → "rm"; "-t, --type [type]" → "-t, --type".
    """
    return re.sub(r"[<\[].*", "", raw).strip()


def set_dotted(mapping, keys, value, /):
    """
    Assign `value` at the nested path `keys` inside `mapping`.

    Missing (or non-mapping) intermediate levels are replaced by fresh dicts,
    existing mappings are reused, so sibling paths merge:

        >>> options = {}
        >>> set_dotted(options, ["a", "b"], 1)
        >>> set_dotted(options, ["a", "c"], 2)
        >>> options
        {'a': {'b': 1, 'c': 2}}
    """
    *path, leaf = keys
    for key in path:
        level = mapping.get(key)
        if not isinstance(level, dict):
            level = mapping[key] = {}
        mapping = level
    mapping[leaf] = value


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "camelcase",
    "spellings",
    "strip_brackets",
    "set_dotted",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
