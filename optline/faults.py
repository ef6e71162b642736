"""
Optline faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing issue.
- CommandLineError / CommandLineWarning: base types that carry the exact
  message plus options (code, title, hint, input) and know how to render
  themselves through rich.
- trigger(): central entry point to surface a fault (print-and-exit in shell
  mode, raise/warn otherwise).

Messages
- str(error) is always the exact engine message, e.g. "unknown option: --name"
  or "required option missing: -c [ --compression ] level". Callers that only
  need text read CommandLineParser.error; the structured fault is kept on
  CommandLineParser.fault.

Integration
- The engine raises these errors internally and converts them into a boolean
  outcome at the parse()/check_required() boundary.
- Hosts may customize rendering with __styles__, __codes__ and __prog__
  defined in __main__.
"""
import inspect
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - tokens (1111x): MISSING_OPTION_NAME, UNKNOWN_OPTION, OPTION_VALUE_UNEXPECTED,
      FLAG_VALUE_MIX
    - values (1112x): OPTION_REQUIRES_VALUE, INVALID_OPTION_VALUE
    - positionals (1113x): POSITIONAL_ARG_NOT_ALLOWED
    - requirements (1114x): REQUIRED_OPTION_MISSING
    - warnings (12xxx): DUPLICATED_POSITION
    """
    # --- token errors (1111x) ---
    MISSING_OPTION_NAME         = 11111
    UNKNOWN_OPTION              = 11112
    OPTION_VALUE_UNEXPECTED     = 11113
    FLAG_VALUE_MIX              = 11114

    # --- value errors (1112x) ---
    OPTION_REQUIRES_VALUE       = 11121
    INVALID_OPTION_VALUE        = 11122

    # --- positional errors (1113x) ---
    POSITIONAL_ARG_NOT_ALLOWED  = 11131

    # --- requirement errors (1114x) ---
    REQUIRED_OPTION_MISSING     = 11141

    # --- warnings (12xxx) ---
    DUPLICATED_POSITION         = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _palette(defaults):
    return defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))


def _render(fault, styles, kind):
    """
    build the rich renderable shared by errors and warnings.
    """
    colorful = fault.options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        return Text(str(fragment), styles[style])

    prog = getattr(__import__("__main__"), "__prog__", fault.options.get("prog", ""))
    code = fault.options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog or "?", "prog-name"),
        " — ",
        text(code.normalize() if code is not None else "", "code"),
        " | ",
        text(fault.options.get("title", kind).title(), kind + "-title"),
        " ]"
    )
    renders = [header, text(fault.message, kind + "-message")]
    if hint := fault.options.get("hint"):
        renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    return Group(*renders)


class CommandLineError(Exception):
    """
    base class for every parse/check failure.

    options
    - code: FaultCode
    - title: short lowercase title used in the rendered header
    - hint: one actionable sentence
    - input: the offending token (when there is one)
    - prog / colorful / shell: rendering context, supplied by trigger()
    """
    code = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": self.code} | options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        return _render(self, _palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }), "error")

    def __trigger__(self) -> None:
        if not self.options.get("shell", True):
            raise self from None
        console.print(self)
        sys.exit(self.options.get("status", 1))

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownOptionError(CommandLineError):
    code = FaultCode.UNKNOWN_OPTION


class MissingOptionNameError(CommandLineError):
    code = FaultCode.MISSING_OPTION_NAME


class FlagValueMixError(CommandLineError):
    code = FaultCode.FLAG_VALUE_MIX


class OptionRequiresValueError(CommandLineError):
    code = FaultCode.OPTION_REQUIRES_VALUE


class OptionValueUnexpectedError(CommandLineError):
    code = FaultCode.OPTION_VALUE_UNEXPECTED


class InvalidOptionValueError(CommandLineError):
    code = FaultCode.INVALID_OPTION_VALUE


class PositionalArgNotAllowedError(CommandLineError):
    code = FaultCode.POSITIONAL_ARG_NOT_ALLOWED


class RequiredOptionMissingError(CommandLineError):
    code = FaultCode.REQUIRED_OPTION_MISSING


class CommandLineWarning(Warning):
    """
    base class for registration-time warnings (non-fatal).
    """
    code = Unset

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType({"code": self.code} | options)

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        return _render(self, _palette({
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }), "warning")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicatedPositionWarning(CommandLineWarning):
    code = FaultCode.DUPLICATED_POSITION


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into a copy of the fault via __replace__ before triggering.
    - errors: shell=True (default) prints through rich and exits with the given
      status; shell=False re-raises.
    - warnings: shell=True prints; otherwise they go through warnings.warn.
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
    "CommandLineError",
    "UnknownOptionError",
    "MissingOptionNameError",
    "FlagValueMixError",
    "OptionRequiresValueError",
    "OptionValueUnexpectedError",
    "InvalidOptionValueError",
    "PositionalArgNotAllowedError",
    "RequiredOptionMissingError",
    "CommandLineWarning",
    "DuplicatedPositionWarning",
    "trigger",
)
