"""
Cacao command layer: declare, match, validate and dispatch CLI commands.

What this module provides
- Command: a command declared from a name pattern ("rm <dir>",
  "copy <src> [dest...]", "" for the default command) with its own options,
  aliases, usage/examples metadata and an optional handler.
- GlobalCommand: the command-like scope holding global options, the global
  usage text and examples, and the version string.
- Program: the registry. It owns the global scope and the ordered list of
  commands, matches an invocation to one of them, short-circuits help/version,
  validates and dispatches.
- Context: the per-parse record (env, raw_args, name, args, options,
  matched_command, matched_command_name, result).
- validate()/dispatch(): the last two pipeline stages, usable on their own.
- cli(name): factory; invoke(program, prompt): runner that reads sys.argv,
  accepts shell-like strings and presents faults (rich) in shell mode.

Matching precedence (Program.match)
1. non-default commands in registration order: tokenize with global ∪ command
   options; the first whose literal segments (or an alias) lead the positional
   tokens wins, and those segments are dropped from args;
2. otherwise the default command (empty name pattern), if any;
3. otherwise no command, tokenized with the global options only.

Quick start
    from cacao import cli

    program = cli("fs")

    rm = program.command("rm <dir>", "Remove a dir")
    rm.option("-r, --recursive", "Remove recursively")

    @rm.action
    def remove(env, dir, options):
        return "remove %s%s" % (dir, " recursively" if options.recursive else "")

    program.help()
    context = program.parse(None, ["rm", "a/b", "-r"])
    context.result  # 'remove a/b recursively'

Design notes
- Commands never reference the program; the global scope is passed explicitly
  to matching and validation.
- The core raises faults (see cacao.faults) and never catches handler errors.
- Handlers returning awaitables are not awaited; the value is stored as-is.
- A matched command without a handler is neither validated nor dispatched;
  its parse result is still returned in the Context.
"""
import functools
import operator
import os.path
import re
import shlex
import sys
import warnings
from collections import defaultdict
from collections.abc import Iterable
from typing import NamedTuple

from rich.text import Text

from .arguments import Argument, Option
from .faults import *
from .namespace import PASSTHROUGH, assign
from .tokens import tokenize
from .utils import *


class CommandType(type):
    """
    Metaclass giving commands read-only introspection and stable representations.

    - Every name in __introspectable__ becomes a read-only property mirroring "_{name}".
    - __repr__/__rich_repr__ list __displayable__ (or __introspectable__) fields.
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
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__())),
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _process_pattern(cls, metadata):
    """
    Split a command pattern into literal segments and positional arguments.

    Rules
    - segments wrapped in <> are required positionals, in [] optional ones;
      "..." at either end of the inner name marks a variadic positional.
    - literal segments must all come before the first positional.
    - at most one variadic, and it must be the last positional.
    - a required positional cannot follow an optional one.

    Raises ConfigurationError on any violation.
    """
    if not isinstance(raw := metadata["raw"], str):
        raise TypeError(f"{cls.__typename__} pattern must be a string")

    segments = []
    arguments = []
    for part in raw.split():
        if part[0] in "<[":
            match = re.fullmatch(r"<([^>]*)>|\[([^\]]*)\]", part)
            if not match:
                raise ConfigurationError(
                    "command %r has a malformed positional %r" % (raw, part),
                    title="malformed command",
                    code=FaultCode.MALFORMED_COMMAND,
                    hint="close every bracket, for example: 'copy <src> [dest...]'",
                    input=raw,
                )
            required = match[1] is not None
            arguments.append(Argument.parse(required, match[1] if required else match[2]))
        elif arguments:
            raise ConfigurationError(
                "command %r has the literal %r after a positional argument" % (raw, part),
                title="malformed command",
                code=FaultCode.MALFORMED_COMMAND,
                hint="put the command name first, for example: 'remote add <name>'",
                input=raw,
            )
        else:
            segments.append(part)

    if sum(argument.variadic for argument in arguments) > 1:
        raise ConfigurationError(
            "command %r declares more than one variadic argument" % raw,
            title="malformed arguments",
            code=FaultCode.MALFORMED_ARGUMENTS,
            hint="keep a single '...' argument at the end of the pattern",
            input=raw,
        )

    optional = False
    for index, argument in enumerate(arguments):
        if argument.variadic and index != len(arguments) - 1:
            raise ConfigurationError(
                "variadic argument %r of command %r must be the last one" % (argument.name, raw),
                title="malformed arguments",
                code=FaultCode.MALFORMED_ARGUMENTS,
                hint="move the '...' argument to the end of the pattern",
                input=raw,
            )
        if argument.required and optional:
            raise ConfigurationError(
                "required argument %r of command %r follows an optional one" % (argument.name, raw),
                title="malformed arguments",
                code=FaultCode.MALFORMED_ARGUMENTS,
                hint="declare every <required> argument before the [optional] ones",
                input=raw,
            )
        optional |= not argument.required

    metadata["segments"] = segments
    metadata["name"] = " ".join(segments)
    metadata["arguments"] = arguments


class Command(metaclass=CommandType):
    """
    A declared command.

    Lifecycle
    - Built once from its pattern; options, aliases, usage, examples and the
      handler are added incrementally before the first parse.

    Configuration
    - ignore_option_default_value: do not seed option defaults for this command's parse.
    - allow_unknown_options: skip the unknown-option check for this command.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "raw",
        "name",
        "segments",
        "aliases",
        "arguments",
        "options",
        "descr",
        "examples",
        "ignore_option_default_value",
        "allow_unknown_options",
    )

    __displayable__ = (
        "raw",
        "name",
        "aliases",
        "arguments",
        "options",
    )

    def __new__(cls, raw="", descr=Unset, /, *, ignore_option_default_value=False, allow_unknown_options=False):
        """
        Construct a Command from its name pattern.

        Parameters
        - raw: str
          "rm <dir>", "copy <src> [dest...]", "remote add <name>" or "" (default command).
        - descr: str | Text
          Short description for help output.
        - ignore_option_default_value: bool
        - allow_unknown_options: bool

        Raises
        - ConfigurationError when the pattern is malformed (see _process_pattern).
        """
        if not isinstance(descr, str | Text | UnsetType):
            raise TypeError(f"{cls.__typename__} 'descr' must be a string")

        metadata = {
            "raw": raw,
            "descr": coalesce(descr, ""),
            "aliases": [],
            "options": [],
            "examples": [],
            "ignore_option_default_value": bool(ignore_option_default_value),
            "allow_unknown_options": bool(allow_unknown_options),
        }
        _process_pattern(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._usage = Unset
        self._handler = Unset
        return self

    @property
    def handler(self):
        return coalesce(self._handler)

    @property
    def usage_text(self):
        return coalesce(self._usage)

    @property
    def is_default(self):
        return not self._segments

    @property
    def literals(self):
        """
        Every literal segment tuple this command answers to (name first, then aliases).
        """
        if self.is_default:
            return ()
        return (tuple(self._segments),) + tuple(tuple(alias.split()) for alias in self._aliases)

    def option(self, raw, descr=Unset, /, **config):
        """
        Declare an option local to this command (see Option for the grammar).

        A name already declared on this command is shadowed by the new option
        (the latest declaration wins for lookup); a DuplicateOptionWarning is emitted.
        """
        option = Option(raw, descr, **config)
        for other in self._options:
            if shared := set(other.names) & set(option.names):
                warnings.warn(DuplicateOptionWarning(
                    "option %r redeclares %s already declared by %r" % (raw, ", ".join(sorted(shared)), other.raw),
                    title="duplicated option",
                    code=FaultCode.DUPLICATED_OPTION,
                    hint="rename one of the options; the latest declaration wins",
                ), stacklevel=2)
        self._options.append(option)
        return self

    def alias(self, name, /):
        """
        Add an alternative literal name (one or more space-separated words).
        """
        if not isinstance(name, str) or not name.split():
            raise TypeError(f"{type(self).__typename__} alias must be a non-empty string")
        if self.is_default:
            raise ConfigurationError(
                "the default command cannot have aliases",
                title="malformed command",
                code=FaultCode.MALFORMED_COMMAND,
                hint="give the command a name before adding aliases",
            )
        self._aliases.append(" ".join(name.split()))
        return self

    def usage(self, text, /):
        self._usage = text
        return self

    def example(self, example, /):
        """
        Add a help example: a string, or a callable receiving the program name.
        """
        if not isinstance(example, str) and not callable(example):
            raise TypeError(f"{type(self).__typename__} example must be a string or a callable")
        self._examples.append(example)
        return self

    def allow_unknown(self):
        self._allow_unknown_options = True
        return self

    def ignore_defaults(self):
        self._ignore_option_default_value = True
        return self

    def action(self, handler, /):
        """
        Bind the handler and return it, so this works as a decorator.

        The handler is called as handler(env, *positionals, options).
        """
        if not callable(handler):
            raise TypeError(f"{type(self).__typename__} action must be callable")
        self._handler = handler
        return handler

    def match(self, positionals, /):
        """
        Return the literal segments leading `positionals`, or None.
        """
        for literal in self.literals:
            if tuple(positionals[:len(literal)]) == literal:
                return literal
        return None


class GlobalCommand(Command):
    """
    Options, usage and examples that apply to every parse, plus the version.
    """

    def __new__(cls):
        self = super().__new__(cls, "", "")
        self._usage = "<command> [options]"
        self._version = Unset
        return self

    @property
    def version(self):
        return coalesce(self._version)

    @property
    def literals(self):
        return ()


class Context:
    """
    Per-parse record, created fresh by Program.parse and filled stage by stage.
    """

    __slots__ = (
        "env",
        "raw_args",
        "name",
        "args",
        "options",
        "matched_command",
        "matched_command_name",
        "result",
    )

    def __init__(self, env, raw_args, name):
        self.env = env
        self.raw_args = raw_args
        self.name = name
        self.args = []
        self.options = {}
        self.matched_command = None
        self.matched_command_name = None
        self.result = None

    def __rich_repr__(self):
        for name in self.__slots__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "context(%s)" % ", ".join("%s=%r" % pair for pair in self.__rich_repr__())


class Match(NamedTuple):
    """Outcome of Program.match()."""
    command: Command | None
    name: str | None
    args: list
    options: dict


def _flag(name):
    # spellings() lists the hyphenated form second whenever it differs
    return ("--" if len(name) > 1 else "-") + spellings(name)[:2][-1]


def validate(command, context, global_command, /):
    """
    Check a matched command's constraints against the parse result.

    Raises
    - UnknownOptionError: a key (first dot segment, "--" excluded) declared
      neither globally nor by the command, unless the command allows unknown options.
    - MissingOptionValueError: a required-value option given without a value.
    - MissingArgumentsError: fewer positionals than required (non-variadic) arguments.
    """
    options = [*global_command.options, *command.options]
    declared = {name for option in options for name in option.names}

    if not command.allow_unknown_options:
        for key in dict.keys(context.options):
            if key != PASSTHROUGH and (head := key.split(".")[0]) not in declared:
                raise UnknownOptionError(
                    "unknown option %r" % _flag(head),
                    title="unknown option",
                    code=FaultCode.UNKNOWN_OPTION,
                    hint="run with --help to see the options of %r" % (command.name or context.name),
                    input=_flag(head),
                    command=command,
                )

    negated = {name for option in options if option.negated for name in option.names}
    for option in options:
        if not option.required:
            continue
        value = dict.get(context.options, option.name.split(".")[0], Unset)
        if (
            value is True or
            (value is False and option.name not in negated) or
            (isinstance(value, list) and any(item is True for item in value))
        ):
            raise MissingOptionValueError(
                "option %r value is missing" % option.raw,
                title="missing option value",
                code=FaultCode.MISSING_OPTION_VALUE,
                hint="pass a value after the flag, for example: %s <value>" % _flag(option.name),
                option=option,
                command=command,
            )

    minimum = sum(argument.required and not argument.variadic for argument in command.arguments)
    if len(context.args) < minimum:
        raise MissingArgumentsError(
            "missing required arguments for command %r" % command.raw,
            title="missing arguments",
            code=FaultCode.MISSING_ARGUMENTS,
            hint="expected at least %d positional argument%s" % (minimum, "s" * (minimum != 1)),
            command=command,
            given=len(context.args),
        )


def dispatch(command, context, /):
    """
    Invoke the command's handler as handler(env, *positionals, options).

    - a variadic argument receives the remaining positionals as a list;
    - an absent optional argument receives None;
    - the return value is stored in context.result (awaitables are not awaited).
    Handler exceptions propagate unchanged. Commands without a handler return None.
    """
    if command.handler is None:
        return None

    parameters = [context.env]
    for index, argument in enumerate(command.arguments):
        if argument.variadic:
            parameters.append(list(context.args[index:]))
        else:
            parameters.append(context.args[index] if index < len(context.args) else None)
    parameters.append(context.options)

    context.result = command.handler(*parameters)
    return context.result


class Program(metaclass=CommandType):
    """
    Registry of commands plus the global scope; entry point of a parse.

    Configuration
    - name: program name shown in help/version (falls back to sys.argv[0]'s
      basename when parsing the live argv, "cli" otherwise).
    - infer_numbers: numeric flag values become int/float (see cacao.tokens).
    - shell / colorful / fancy: how invoke() presents faults.

    Registration must be complete before parse() is called; a program is not
    meant to be mutated and parsed concurrently.
    """

    __introspectable__ = (
        "name",
        "commands",
        "infer_numbers",
        "shell",
        "colorful",
        "fancy",
    )

    def __init__(self, name="", /, *, infer_numbers=True, shell=False, colorful=True, fancy=False):
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        self._name = name
        self._commands = []
        self._global = GlobalCommand()
        self._listeners = defaultdict(list)
        self._infer_numbers = bool(infer_numbers)
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)
        self._helper = Unset
        self._versioner = Unset
        self._help_option = Unset
        self._version_option = Unset

    @property
    def global_command(self):
        return self._global

    # ── registration ──────────────────────────────────────────────────────────

    def option(self, raw, descr=Unset, /, **config):
        """
        Declare a global option (applies to every command and to unmatched parses).
        """
        self._global.option(raw, descr, **config)
        return self

    def usage(self, text, /):
        self._global.usage(text)
        return self

    def example(self, example, /):
        self._global.example(example)
        return self

    def ignore_defaults(self):
        """
        Do not seed option defaults unless a matched command says otherwise.
        """
        self._global.ignore_defaults()
        return self

    def command(self, raw, descr=Unset, /, **config):
        """
        Declare and register a command; returns it for further configuration.

        Raises
        - ConfigurationError when the name (or an alias) is already taken, or
          when a second default command is registered.

        Warns
        - AmbiguousCommandWarning when the new command extends the literal
          segments of an earlier one ("remote add" after "remote"): the earlier
          command matches first, so the new one can be shadowed.
        """
        command = Command(raw, descr, **config)
        self._check([*self._commands, command])

        for other in self._commands:
            for mine in command.literals:
                for theirs in other.literals:
                    if len(mine) > len(theirs) and mine[:len(theirs)] == theirs:
                        warnings.warn(AmbiguousCommandWarning(
                            "command %r is shadowed by the earlier command %r" % (" ".join(mine), " ".join(theirs)),
                            title="ambiguous command",
                            code=FaultCode.AMBIGUOUS_COMMAND,
                            hint="register %r before %r" % (" ".join(mine), " ".join(theirs)),
                        ), stacklevel=2)

        self._commands.append(command)
        return command

    def _check(self, commands):
        defaults = [command for command in commands if command.is_default]
        if len(defaults) > 1:
            raise ConfigurationError(
                "only one default command can be registered",
                title="duplicated command",
                code=FaultCode.DUPLICATED_COMMAND,
                hint="give %r a name" % defaults[-1].raw,
            )
        taken = {}
        for command in commands:
            for literal in command.literals:
                if taken.setdefault(literal, command) is not command:
                    raise ConfigurationError(
                        "command name %r is already in use" % " ".join(literal),
                        title="duplicated command",
                        code=FaultCode.DUPLICATED_COMMAND,
                        hint="choose another name or alias for %r" % command.raw,
                        input=" ".join(literal),
                    )

    def help(self, renderer=Unset, /):
        """
        Enable "-h, --help": when set, the help collaborator runs instead of the handler.

        renderer(program, context) defaults to cacao.renders.render_help.
        """
        if not self._help_option:
            self._help_option = Option("-h, --help", "Display this message")
            self._global._options.append(self._help_option)
        self._helper = renderer
        return self

    def version(self, version, /, flags="-v, --version", renderer=Unset):
        """
        Enable the version flags: when set (and no command name matched), the
        version collaborator runs instead of the handler.

        renderer(program, context) defaults to cacao.renders.render_version.
        """
        self._global._version = version
        self._version_option = Option(flags, "Display version number")
        self._global._options.append(self._version_option)
        self._versioner = renderer
        return self

    def on(self, event, callback=Unset, /):
        """
        Subscribe to a match event; usable as a decorator.

        Events
        - "command:<name>" right after a named command matched, keyed by the
          name or alias as typed ("command:i" for an alias "i");
        - "command:!" right after the default command matched;
        - "command:*" at the end of the parse, when no command is matched
          (none matched, or help/version cleared it) but positionals were given.
        Callbacks receive the Context synchronously.
        """
        if callback is Unset:
            return functools.partial(self.on, event)
        if not callable(callback):
            raise TypeError(f"{type(self).__typename__} listener must be callable")
        self._listeners[event].append(callback)
        return callback

    def emit(self, event, context, /):
        for callback in list(self._listeners.get(event, ())):
            callback(context)

    # ── collaborators ─────────────────────────────────────────────────────────

    def output_help(self, context):
        from .renders import render_help
        coalesce(self._helper, render_help)(self, context)

    def output_version(self, context):
        from .renders import render_version
        coalesce(self._versioner, render_version)(self, context)

    # ── parsing ───────────────────────────────────────────────────────────────

    def match(self, tokens, /):
        """
        Find the command for `tokens` (see the module docstring for precedence).

        Returns a Match(command, name, args, options); the tokenizer runs once
        per candidate with that candidate's option set.
        """
        tokens = list(tokens)
        scope = self._global.options

        def parse(command):
            options = [*scope, *(command.options if command else ())]
            tokenized = tokenize(tokens, options, infer_numbers=self._infer_numbers)
            ignore = bool(command and command.ignore_option_default_value) or self._global.ignore_option_default_value
            return tokenized, assign(tokenized, options, ignore_defaults=ignore)

        for command in self._commands:
            if command.is_default:
                continue
            tokenized, namespace = parse(command)
            if (literal := command.match(tokenized.positionals)) is not None:
                return Match(command, " ".join(literal), tokenized.positionals[len(literal):], namespace)

        for command in self._commands:
            if command.is_default:
                tokenized, namespace = parse(command)
                return Match(command, None, tokenized.positionals, namespace)

        tokenized, namespace = parse(None)
        return Match(None, None, tokenized.positionals, namespace)

    def parse(self, env=None, argv=Unset, /, *, run=True):
        """
        Run the whole pipeline and return the Context.

        Parameters
        - env: Any
          passed untouched to the handler as its first argument.
        - argv: Iterable[str]
          invocation tokens without the program path; sys.argv[1:] when Unset.
        - run: bool
          validate and dispatch the matched command.

        Order
        match → command events → help short-circuit → version short-circuit →
        validate and dispatch (only when the command has a handler) → "command:*".
        """
        if argv is Unset:
            argv = sys.argv[1:]
            name = self._name or os.path.basename(sys.argv[0]) or "cli"
        else:
            name = self._name or "cli"
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("parse() argv must be an iterable of strings")
        argv = list(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argv must be an iterable of strings")

        self._check(self._commands)

        context = Context(env, argv, name)
        match = self.match(argv)
        context.args = match.args
        context.options = match.options
        context.matched_command = match.command
        context.matched_command_name = match.name

        if match.command is not None:
            self.emit("command:!" if match.command.is_default else "command:%s" % match.name, context)

        if self._help_option and context.options.get(self._help_option.name):
            self.output_help(context)
            run = False
            context.matched_command = context.matched_command_name = None

        if (
            self._version_option and
            context.options.get(self._version_option.name) and
            context.matched_command_name is None
        ):
            self.output_version(context)
            run = False
            context.matched_command = context.matched_command_name = None

        # a command without a handler only shapes the parse result
        if run and context.matched_command is not None and context.matched_command.handler is not None:
            validate(context.matched_command, context, self._global)
            dispatch(context.matched_command, context)

        if context.matched_command is None and context.args:
            self.emit("command:*", context)

        return context


def cli(name="", /, **config):
    """
    Create a Program (see Program for the configuration keywords).
    """
    return Program(name, **config)


def invoke(program, prompt=Unset, /, env=None, *, run=True):
    """
    Convenience runner: parse a prompt and present faults.

    Parameters
    - program: Program
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string; split with shlex.split.
      • Iterable[str]: pre-tokenized sequence.
    - env, run: forwarded to Program.parse.

    Behavior
    - In shell mode (program.shell) a CommandException is printed with rich to
      stderr and the process exits with status 1; otherwise it is raised.

    Returns
    - the Context of the parse.
    """
    if not isinstance(program, Program):
        raise TypeError("invoke() first argument must be a program")
    if isinstance(prompt, str):
        prompt = shlex.split(prompt)
    try:
        return program.parse(env, prompt, run=run)
    except CommandException as exception:
        trigger(
            exception,
            prog=program.name or os.path.basename(sys.argv[0]) or "cli",
            shell=program.shell,
            colorful=program.colorful,
            fancy=program.fancy,
        )


__all__ = (
    # Public API surface for consumers of cacao.commands.
    # These names are re-exported from the package __init__.
    "Command",
    "GlobalCommand",
    "Program",
    "Context",
    "Match",
    "validate",
    "dispatch",
    "cli",
    "invoke",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del CommandType
