r"""
Cacao argument specifications.

Overview
- Specs
  • Option: a named option declared from a flag string such as "-r, --recursive",
    "--type <type>" or "--no-clear-screen". Boolean, required-value or
    optional-value, with an optional default and an optional coercion.
  • Argument: a positional slot declared inside a command pattern
    ("<dir>", "[dest]", "[...files]" / "[files...]").

- Enumerations
  • Shape: BOOLEAN | REQUIRED | OPTIONAL (what the flag expects after it).
  • Coercion: NONE | SINGLE | ARRAY (how the assignment engine casts values).

- Introspection & representation
  • ArgumentType metaclass exposes the fields listed in __introspectable__ as
    read-only properties and provides stable __repr__/__rich_repr__.

Declaration grammar (options)
- Aliases are separated by commas; leading "-"/"--" are stripped and the rest
  is normalized with camelcase() ("clear-screen" → "clearScreen").
- "<placeholder>" anywhere in the declaration → Shape.REQUIRED,
  "[placeholder]" → Shape.OPTIONAL, none → Shape.BOOLEAN.
- "no-" in front of an alias declares a negated boolean stored under the
  positive name; its default becomes True unless one is given.
- ".*" after an alias ("--env.* [value]") declares a dot-nested option and is dropped.
- Aliases are sorted shortest first; the last (longest) one is the canonical name.

Coercion (type=...)
- Unset            → Coercion.NONE (values are left as the tokenizer produced them)
- callable         → Coercion.SINGLE (cast the value; each element if repeated)
- [callable]       → Coercion.ARRAY (always a list, each element cast)

Quick example:
    >>> from cacao.arguments import Option
    >>> option = Option("-t, --type [type]", "Choose a project type", type=[str])
    >>> option.names, option.name, option.shape, option.coercion
    (('t', 'type'), 'type', <Shape.OPTIONAL: 'optional'>, <Coercion.ARRAY: 'array'>)
"""
import functools
import operator
import re
from enum import Enum

from rich.text import Text

from .faults import ConfigurationError, FaultCode
from .utils import *


class Shape(Enum):
    """What an option expects right after its flag."""
    BOOLEAN = "boolean"
    REQUIRED = "required"
    OPTIONAL = "optional"


class Coercion(Enum):
    """
    Tagged coercion strategy applied by the assignment engine.

    - NONE: keep the tokenizer's value.
    - SINGLE: cast the value with the caster (element-wise when it was repeated).
    - ARRAY: wrap into a list and cast every element.
    """
    NONE = "none"
    SINGLE = "single"
    ARRAY = "array"


class ArgumentType(type):
    """
    Metaclass that turns specs into introspectable, read-only descriptors.

    Responsibilities
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__ (backed by "_{name}" attributes).
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics and help output.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(names=('r', 'recursive'), name='recursive', shape=<Shape.BOOLEAN: 'boolean'>, ...)
            """
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_descr(cls, metadata, /):
    """
    Internal: normalize the 'descr' metadata shared by every spec.

    - Unset becomes an empty string (help renders nothing for it).
    - Strings and rich Text are accepted; strings are trimmed.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    if isinstance(descr, str):
        descr = descr.strip()
    metadata["descr"] = coalesce(descr, "")


def _sanitize_names(cls, metadata, /):
    """
    Internal: split an option declaration into normalized aliases.

    Fills 'names' (shortest first), 'name' (canonical, longest), 'negated' and
    'shape'. Raises ConfigurationError when the declaration yields no alias or
    an alias is empty/malformed.
    """
    if not isinstance(raw := metadata["raw"], str):
        raise TypeError(f"{cls.__typename__} declaration must be a string")

    declared = strip_brackets(raw.replace(".*", ""))
    if not declared:
        raise ConfigurationError(
            "option %r does not declare any name" % raw,
            title="malformed option",
            code=FaultCode.MALFORMED_OPTION,
            hint="declare at least one flag, for example: '-t, --type <type>'",
            input=raw,
        )

    names = []
    negated = False
    for token in declared.split(","):
        name = re.sub(r"^--?", "", token.strip())
        if name.startswith("no-"):
            negated = True
            name = name[3:]
        if not re.fullmatch(r"[^\W_][\w.-]*", name):
            raise ConfigurationError(
                "option %r has an empty or malformed name %r" % (raw, token.strip()),
                title="malformed option",
                code=FaultCode.MALFORMED_OPTION,
                hint="separate aliases with commas, for example: '-t, --type <type>'",
                input=raw,
            )
        names.append(camelcase(name))

    # stable sort: among equally long aliases the later one wins as canonical
    names = sorted(dict.fromkeys(names), key=len)
    metadata["names"] = names
    metadata["name"] = names[-1]
    metadata["negated"] = negated

    if "<" in raw:
        metadata["shape"] = Shape.REQUIRED
    elif "[" in raw:
        metadata["shape"] = Shape.OPTIONAL
    else:
        metadata["shape"] = Shape.BOOLEAN


def _sanitize_coercion(cls, metadata, /):
    """
    Internal: translate the 'type' metadata into a (Coercion, caster) pair.
    """
    type = metadata.pop("type")
    if type is Unset:
        metadata["coercion"], metadata["caster"] = Coercion.NONE, None
    elif isinstance(type, list | tuple):
        if len(type) != 1 or not callable(type[0]):
            raise TypeError(f"{cls.__typename__} array 'type' must hold exactly one callable")
        metadata["coercion"], metadata["caster"] = Coercion.ARRAY, type[0]
    elif callable(type):
        metadata["coercion"], metadata["caster"] = Coercion.SINGLE, type
    else:
        raise TypeError(f"{cls.__typename__} 'type' must be callable or a one-element list of a callable")


class Option(metaclass=ArgumentType):
    """
    Named option specification.

    Built from a declaration string (see the module docstring for the grammar)
    and immutable afterwards. The tokenizer reads 'names'/'shape'/'coercion'
    to classify flags; the assignment engine reads 'name'/'default'/'coercion';
    the validator reads 'shape'/'negated'.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "raw",
        "names",
        "name",
        "descr",
        "shape",
        "coercion",
        "caster",
        "negated",
    )

    __displayable__ = (
        "names",
        "name",
        "shape",
        "default",
        "coercion",
        "negated",
    )

    def __new__(cls, raw, descr=Unset, /, *, default=Unset, type=Unset):
        """
        Construct an Option spec.

        Parameters
        - raw: str
          Declaration such as "-r, --recursive" or "--type <type>".
        - descr: str | Text
          Short description for help output.
        - default: Any
          Value pre-seeded by the assignment engine when the flag is absent.
          Negated options default to True when left Unset.
        - type: Callable | [Callable]
          Coercion strategy (see Coercion).

        Raises
        - ConfigurationError when the declaration has no usable alias.
        - TypeError on wrongly typed metadata.
        """
        metadata = {
            "raw": raw,
            "descr": descr,
            "default": default,
            "type": type,
        }
        _sanitize_names(cls, metadata)
        _sanitize_descr(cls, metadata)
        _sanitize_coercion(cls, metadata)

        if metadata["negated"] and metadata["default"] is Unset:
            metadata["default"] = True

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def default(self):
        # not mirrored: a list default must reach the options mapping as a list
        return self._default

    @property
    def boolean(self):
        return self._shape is Shape.BOOLEAN

    @property
    def required(self):
        return self._shape is Shape.REQUIRED

    def __option__(self):
        """
        Introspection hook: identify this spec as an Option.
        """
        return self


class Argument(metaclass=ArgumentType):
    """
    Positional argument slot of a command pattern.

    - "<dir>"                 → Argument("dir", required=True)
    - "[dest]"                → Argument("dest", required=False)
    - "[...files]", "<files...>" → variadic: absorbs every remaining positional.
    """

    __introspectable__ = (
        "name",
        "required",
        "variadic",
    )

    def __new__(cls, name, /, required=True, variadic=False):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        if not (name := name.strip()):
            raise ConfigurationError(
                "positional argument name cannot be empty",
                title="malformed arguments",
                code=FaultCode.MALFORMED_ARGUMENTS,
                hint="write a name inside the brackets, for example: '<dir>'",
            )
        self = super().__new__(cls)
        self._name = name
        self._required = bool(required)
        self._variadic = bool(variadic)
        return self

    @classmethod
    def parse(cls, required, inner, /):
        """
        Build an Argument from a bracket's inner text ("dir", "...files", "files...").
        """
        variadic = inner.startswith("...") or inner.endswith("...")
        return cls(inner.strip("."), required, variadic)

    def __argument__(self):
        """
        Introspection hook: identify this spec as an Argument.
        """
        return self


__all__ = (
    # Public API surface for consumers of cacao.arguments.
    # These names are re-exported from the package __init__.

    # Enumerations
    "Shape",
    "Coercion",

    # Classes (specifications)
    "Option",
    "Argument",
)
