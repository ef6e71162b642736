r"""
Optline storages, converters and slots.

Overview
- Value[_T]
  • Caller-owned box for a scalar. The registry writes into .value and never
    owns the box. A box whose default is None models an optional scalar.
- convert(type, token)
  • Strict textual conversion: numbers must consume the whole token
    ("12x" fails, "12" and "-12" pass), str accepts anything verbatim,
    other callables are trusted and their ValueError/TypeError mean failure.
- Slots
  • FlagSlot / ValueSlot / ListSlot: the single "consume a token" capability a
    descriptor holds, one per storage kind.

Quick example:
    >>> level = Value(int)
    >>> ValueSlot(level, int).consume("5")
    >>> level.value
    5
    >>> paths = []
    >>> ListSlot(paths, str).consume("a.txt")
    >>> paths
    ['a.txt']
"""
import math
import re
from collections.abc import MutableSequence

from rich.text import Text

from .utils import *


_INTEGER = re.compile(r"-?[0-9]+", re.ASCII)
_FLOATING = re.compile(
    r"-?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.ASCII | re.IGNORECASE
)
_BOOLEANS = {"true": True, "1": True, "false": False, "0": False}


class ConversionError(ValueError):
    """
    Raised when a token is not compatible with the target type.
    """

    def __init__(self, token, type, /):
        super().__init__(f"cannot convert {token!r} to {getattr(type, '__name__', type)}")
        self.token = token
        self.type = type


def _integer(token):
    if not _INTEGER.fullmatch(token):
        raise ValueError(token)
    return int(token)


def _floating(token):
    if not _FLOATING.fullmatch(token):
        raise ValueError(token)
    result = float(token)
    # out of range: overflow to inf or underflow to zero
    mantissa = re.split(r"[eE]", token.lstrip("-"), maxsplit=1)[0]
    if math.isinf(result) and mantissa.lower() not in ("inf", "infinity"):
        raise ValueError(token)
    if result == 0.0 and mantissa.strip("0."):
        raise ValueError(token)
    return result


def _boolean(token):
    return _BOOLEANS[token.lower()]


# bool first: it is a subclass of int and must not take the integer path
_STRICT = {
    bool: _boolean,
    int: _integer,
    float: _floating,
    str: str,
}


def convert(type, token, /):
    """
    Convert one textual token into type, or raise ConversionError.

    Strict whole-token rules apply to the built-in scalars:
    - int: optional '-', ASCII digits only (no '+', spaces or underscores)
    - float: optional '-', decimal or scientific notation, inf/infinity/nan
    - bool: true/false/1/0, case-insensitive
    - str: the token verbatim
    Any other callable is called with the token.
    """
    if not isinstance(token, str):
        raise TypeError("convert() token must be a string")
    converter = _STRICT.get(type, type)
    try:
        return converter(token)
    except (ValueError, TypeError, KeyError, ArithmeticError):
        raise ConversionError(token, type) from None


class Value[_T]:
    """
    Caller-owned storage for a single value.

    Parameters
    - type: Callable
      Target type; also the default converter when bound with add().
    - default: Any
      Initial content. None (the default) makes this an optional scalar,
      which stays None until the option is parsed.
    """

    __slots__ = ("type", "value")

    def __init__(self, type=str, default=None):
        if not callable(type):
            raise TypeError("Value 'type' must be callable")
        self.type = type
        self.value = default

    def __eq__(self, other):
        if isinstance(other, Value):
            return self.type is other.type and self.value == other.value
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        return f"Value({getattr(self.type, '__name__', self.type)}, {self.value!r})"

    def __rich__(self):
        if self.value is None:
            return Text("(unset)", style="dim")
        return Text(repr(self.value), style="bold")


class Slot:
    """
    Settable capability stored in a descriptor: consume(token) writes a
    converted token into the bound storage.
    """

    __slots__ = ("storage", "type")

    def __init__(self, storage, type=str):
        self.storage = storage
        self.type = type

    def consume(self, token):
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}({self.storage!r})"


class FlagSlot(Slot):
    """
    Presence-only: any appearance stores True, the token is ignored.
    """

    __slots__ = ()

    def __init__(self, storage):
        if not isinstance(storage, Value):
            raise TypeError("flag storage must be a Value")
        super().__init__(storage, bool)

    def consume(self, token=""):
        self.storage.value = True


class ValueSlot(Slot):
    """
    Scalar: every token replaces the stored value (last one wins).
    """

    __slots__ = ()

    def __init__(self, storage, type=Unset):
        if not isinstance(storage, Value):
            raise TypeError("value storage must be a Value")
        super().__init__(storage, coalesce(type, storage.type))

    def consume(self, token):
        self.storage.value = convert(self.type, token)


class ListSlot(Slot):
    """
    List: every token is appended, in argument order.
    """

    __slots__ = ()

    def __init__(self, storage, type=Unset):
        if not isinstance(storage, MutableSequence):
            raise TypeError("list storage must be a mutable sequence")
        super().__init__(storage, coalesce(type, str))

    def consume(self, token):
        self.storage.append(convert(self.type, token))


__all__ = (
    # Errors
    "ConversionError",

    # Functions
    "convert",

    # Storages
    "Value",

    # Slots
    "Slot",
    "FlagSlot",
    "ValueSlot",
    "ListSlot",
)
