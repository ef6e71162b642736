"""
Optline parser engine: register options, parse argv, check requirements, render help.

What this module provides
- CommandLineParser: an ordered registry of Option descriptors built through a
  fluent API, plus the single-pass engine that walks an argument vector and
  writes converted values into caller-owned storage.

Quick start
    from optline import CommandLineParser, Value

    help = Value(bool, False)
    level = Value(int)
    paths = []

    parser = (
        CommandLineParser()
        .add_flag(help, "help,h", "print help")
        .add(level, "+compression,c,level", "compression level")
        .add(paths, "+,,path", "file path(s)", -1)
    )
    if not parser.parse() or not (help.value or parser.check_required()):
        parser.fail()

Token grammar
- "--name", "--name=value", "--name value": long options.
- "-c", "-c=value", "-c value": single short flag.
- "-abc": cluster of presence-only flags (no values allowed).
- anything else: a value for the pending option, or the next positional.
- "", "-" and "--" are ignored.

Outcome
- parse() and check_required() never raise on bad input: they return False and
  leave the exact message in .error and the structured fault in .fault.
  Values bound before a failure stay bound.
"""
import shlex
import sys
from collections import defaultdict
from collections.abc import Iterable, MutableSequence

from rich.console import Console
from rich.text import Text

from .faults import *
from .options import Kind, Option
from .storage import ConversionError, Value
from .utils import *

# Longest label the help columns are padded to.
LABEL_WIDTH = 30


class CommandLineParser:
    """
    Option registry and parser engine.

    Lifecycle
    - Register options (add_flag/add), then call parse() once.
    - check_required() is meaningful only after a successful parse().
    - get_help() may be called at any time; it does not depend on parsing.

    Notes
    - Descriptors keep their "parsed" state after parse(); the registry is
      designed for a single parse.
    - Lookups are linear scans in registration order, so the first matching
      descriptor wins (this also applies to duplicated positional slots).
    """

    def __init__(self, program=Unset, *, skip_unknown=False, colorful=True):
        """
        Parameters
        - program: Unset | str
          Display name for usage/help. Replaced by the basename of argv[0]
          on every parse().
        - skip_unknown: bool
          Tolerate unknown options (and discard a value token following them)
          instead of failing.
        - colorful: bool
          Style rich renderings (help and faults).
        """
        if not isinstance(program, str | Unset):
            raise TypeError("CommandLineParser 'program' must be a string")
        self._program = coalesce(program, "")
        self._skip_unknown = bool(skip_unknown)
        self._colorful = bool(colorful)
        self._options = []
        self._fault = None

    # --- registration ---

    def add_flag(self, storage, spec, descr=Unset):
        """
        Register a presence-only flag bound to a Value (set to True when seen).
        """
        return self._register(Option(Kind.FLAG, storage, spec, descr))

    def add(self, storage, spec, descr=Unset, position=0, *, type=Unset):
        """
        Register a value-bearing option or positional argument.

        The kind follows the storage: a Value gives a scalar option, a mutable
        sequence gives a list option accumulating every value it receives.

        Parameters
        - storage: Value | MutableSequence
        - spec: "[+]name[,flags[,hint]]"
        - descr: help text
        - position: 0 (named only), positive fixed slot, or -1 (catch-all)
        - type: converter override; defaults to storage.type for a Value and
          to str for a sequence
        """
        if isinstance(storage, Value):
            kind = Kind.VALUE
        elif isinstance(storage, MutableSequence):
            kind = Kind.LIST
        else:
            raise TypeError("add() storage must be a Value or a mutable sequence")
        return self._register(Option(kind, storage, spec, descr, position, type=type))

    def _register(self, option):
        if option.position > 0 and any(other.position == option.position for other in self._options):
            trigger(DuplicatedPositionWarning(
                "positional slot %d is already taken; %r will never receive a value" % (
                    option.position, option.label
                ),
                title="duplicated positional slot",
                hint="give each positional argument its own slot or use -1 for a catch-all",
                prog=self._program,
                shell=False,
            ))
        self._options.append(option)
        return self

    def set_program(self, name, /):
        if not isinstance(name, str):
            raise TypeError("set_program() argument must be a string")
        self._program = name
        return self

    def skip_unknown(self, value=True, /):
        self._skip_unknown = bool(value)
        return self

    # --- introspection ---

    @property
    def options(self):
        return tuple(self._options)

    @property
    def program(self):
        return self._program

    @property
    def skips_unknown(self):
        return self._skip_unknown

    @property
    def colorful(self):
        return self._colorful

    @property
    def fault(self):
        """
        Last CommandLineError raised by parse()/check_required(), or None.
        """
        return self._fault

    @property
    def error(self):
        """
        Exact text of the last failure ("" until something fails).
        """
        return str(self._fault) if self._fault is not None else ""

    def __repr__(self):
        return "command-line-parser(program=%r, options=%d, skip_unknown=%r)" % (
            self._program, len(self._options), self._skip_unknown
        )

    def __rich_repr__(self):
        yield "program", self._program
        yield "skip_unknown", self._skip_unknown
        yield "options", self.options

    # --- lookups ---

    def _find_position(self, position):
        catchall = None
        for option in self._options:
            if option.matches(position=position):
                return option
            if option.position == -1 and catchall is None:
                catchall = option
        return catchall

    def _find_flag(self, flag):
        for option in self._options:
            if option.matches(flag=flag):
                return option
        if not self._skip_unknown:
            raise UnknownOptionError(
                "unknown option: -" + flag,
                title="unknown option",
                hint="run with --help to see all available options",
                input="-" + flag,
            )
        return None

    def _find_name(self, name):
        for option in self._options:
            if option.matches(name=name):
                return option
        if not self._skip_unknown:
            raise UnknownOptionError(
                "unknown option: --" + name,
                title="unknown option",
                hint="run with --help to see all available options",
                input="--" + name,
            )
        return None

    # --- parsing ---

    @staticmethod
    def _tokenize(argv):
        if argv is Unset:
            tokens = list(sys.argv)
        elif isinstance(argv, str):
            tokens = shlex.split(argv)
        elif isinstance(argv, Iterable):
            tokens = list(argv)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        else:
            raise TypeError("parse() argument must be a string or an iterable of strings")
        if not tokens:
            raise ValueError("parse() argument must start with the program path")
        return tokens

    def _bind(self, option, token):
        try:
            option.consume(token)
        except ConversionError:
            raise InvalidOptionValueError(
                "invalid option value: " + token,
                title="invalid option value",
                hint="expected a value of type %s for %s" % (
                    getattr(option.slot.type, "__name__", option.slot.type), option.label
                ),
                input=token,
            ) from None

    def parse(self, argv=Unset, /):
        """
        Walk argv and bind values into the registered storages.

        Parameters
        - argv: Unset (sys.argv) | str (split with shlex) | Iterable[str].
          The first element is the program path.

        Returns
        - True on success; False otherwise, with .error/.fault describing the
          failure. Parsing stops at the first failure.
        """
        tokens = self._tokenize(argv)
        try:
            self._parseargs(tokens)
        except CommandLineError as fault:
            self._fault = fault
            return False
        return True

    def _parseargs(self, tokens):
        """
        Single pass over tokens[1:]; raises the first CommandLineError met.

        A catch-all alone does not stop greedy list continuation; only fixed
        positionals (position > 0) do, so "--include a b" keeps both values.
        """
        self._program = basename(tokens[0])

        # Greedy list continuation is only allowed without fixed positionals.
        positionals = any(option.position > 0 for option in self._options)

        position = 0
        pending = None
        skipping = False

        for token in tokens[1:]:
            if not token:
                continue

            if not token.startswith("-"):
                if skipping:
                    skipping = False
                elif pending is not None:
                    self._bind(pending, token)
                    if pending.kind is not Kind.LIST or positionals:
                        pending = None
                else:
                    position += 1
                    option = self._find_position(position)
                    if option is None:
                        raise PositionalArgNotAllowedError(
                            "positional arg not allowed: " + token,
                            title="positional arg not allowed",
                            hint="remove the extra argument or pass it as an option value",
                            input=token,
                        )
                    self._bind(option, token)
                continue

            pending = None
            skipping = False

            name = token[1:]
            long = name.startswith("-")
            if long:
                name = name[1:]
            if not name:
                continue

            name, assignment, value = name.partition("=")
            if assignment and not name:
                raise MissingOptionNameError(
                    "missing option name: " + token,
                    title="missing option name",
                    hint="write the option name before '=' (for example: --name=value)",
                    input=token,
                )

            if long:
                option = self._find_name(name)
            elif len(name) == 1:
                option = self._find_flag(name)
            elif assignment:
                raise FlagValueMixError(
                    "flag/argument mix disallowed: " + token,
                    title="flag/argument mix disallowed",
                    hint="combined flags cannot take a value; pass the option separately",
                    input=token,
                )
            else:
                for flag in name:
                    option = self._find_flag(flag)
                    if option is None:
                        continue
                    if option.kind is not Kind.FLAG:
                        raise OptionRequiresValueError(
                            "option requires value: " + flag,
                            title="option requires value",
                            hint="pass -%s separately, followed by its value" % flag,
                            input=flag,
                        )
                    option.consume()
                continue

            if option is None:
                skipping = True
                continue

            if option.kind is Kind.FLAG:
                if assignment:
                    raise OptionValueUnexpectedError(
                        "option value unexpected: " + token,
                        title="option value unexpected",
                        hint="remove everything from '=' (flags take no value)",
                        input=token,
                    )
                option.consume()
                continue

            if not assignment:
                pending = option
                continue

            self._bind(option, value)
            if option.kind is Kind.LIST and not positionals:
                pending = option

        if pending is not None and not pending.parsed:
            raise OptionRequiresValueError(
                "option requires value: " + tokens[-1],
                title="option requires value",
                hint="add a value after %s" % pending.label.split(" ", 1)[0],
                input=tokens[-1],
            )

    def check_required(self):
        """
        Return True when every required option was parsed; otherwise record a
        RequiredOptionMissingError naming the first missing one.
        """
        for option in self._options:
            if not option.required or option.parsed:
                continue
            self._fault = RequiredOptionMissingError(
                "required option missing: " + option.label,
                title="required option missing",
                hint="provide %s" % option.label,
                input=option.label,
            )
            return False
        return True

    # --- help ---

    def _layout(self):
        named = [option for option in self._options if not option.positional]
        positional = [option for option in self._options if option.positional]
        width = min(max((len(option.label) for option in named), default=0), LABEL_WIDTH)
        argwidth = min(max((len(option.label) for option in positional), default=0), LABEL_WIDTH)
        return named, positional, width, argwidth

    @staticmethod
    def _placeholder(option):
        placeholder = option.label
        if option.kind is Kind.LIST:
            placeholder += "..."
        if not option.required:
            placeholder = "[" + placeholder + "]"
        return placeholder

    def get_help(self):
        """
        Render usage and the option/positional tables as plain text.
        """
        named, positional, width, argwidth = self._layout()

        lines = ["usage: " + self._program + " [options]"]
        for option in positional:
            lines[0] += " " + self._placeholder(option)

        for title, group, pad in (
            ("allowed options:", named, width),
            ("positional arguments:", positional, argwidth),
        ):
            if not group:
                continue
            lines.append(title)
            for option in group:
                line = "  " + option.label.ljust(pad)
                if option.descr:
                    line += " : " + option.descr
                lines.append(line)

        return "\n".join(lines) + "\n"

    def __rich__(self):
        """
        Styled rendering of get_help(); same layout, palette from __styles__.
        """
        styles = defaultdict(str, {
            "usage-label": "bold #00E6FF",
            "program-name": "bold #FF4D94",
            "group-label": "bold #FFFFFF",
            "option-name": "bold #00E6FF",
            "flag-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "argument-description": "#9CA3AF",
        } | getattr(__import__("__main__"), "__styles__", {}))

        def styler(style):
            return styles[style] if self._colorful else ""

        named, positional, width, argwidth = self._layout()

        render = Text()
        render.append("usage", styler("usage-label")).append(": ")
        render.append(self._program, styler("program-name")).append(" [options]")
        for option in positional:
            render.append(" ").append(self._placeholder(option), styler("metavar"))
        render.append("\n")

        for title, group, pad in (
            ("allowed options:", named, width),
            ("positional arguments:", positional, argwidth),
        ):
            if not group:
                continue
            render.append(title, styler("group-label")).append("\n")
            for option in group:
                style = "metavar" if option.positional else "flag-name" if option.kind is Kind.FLAG else "option-name"
                render.append("  ").append(option.label.ljust(pad), styler(style))
                if option.descr:
                    render.append(" : ").append(option.descr, styler("argument-description"))
                render.append("\n")

        render.rstrip()
        return render

    def print_help(self, *, stderr=False):
        Console(stderr=stderr).print(self)

    def fail(self, status=1):
        """
        Print the help and then the last fault to stderr, and exit with status.
        """
        self.print_help(stderr=True)
        if self._fault is not None:
            trigger(self._fault, prog=self._program, colorful=self._colorful, status=status)
        sys.exit(status)


__all__ = (
    "CommandLineParser",
    "LABEL_WIDTH",
)
