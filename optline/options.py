r"""
Optline option descriptors.

Overview
- Kind: how an option consumes tokens
  • VALUE: one value, later occurrences overwrite the stored one.
  • FLAG: presence-only, never reads a following token.
  • LIST: every value token is appended to the bound sequence.

- Option: one registered option or positional argument
  • Built from a spec string "[+]name[,flags[,hint]]" plus a help text and a
    position (0 = named only, >0 = fixed positional slot, -1 = catch-all).
  • Holds the caller-owned storage and the Slot that writes into it.
  • Exposes its sanitized metadata through read-only properties; only
    "parsed" flips, and only through consume().

Spec strings
- "+compression,c,level" → required, name "compression", flags "c", hint "level"
- "help,h"               → name "help", flags "h"
- ",v"                   → flags "v" only
- "+,,path"              → required positional displayed as "path"

Labels
- Named: "-c [ --compression ] level", "--out arg", "-v"
- Positional: the hint, or "arg" + position when no hint was given
  (an unhinted catch-all therefore reads "arg-1").
"""
import enum
import functools
import operator
import re

from .storage import *
from .utils import *


class Kind(enum.Enum):
    """
    Token consumption policy of an option.
    """
    VALUE = "value"
    FLAG = "flag"
    LIST = "list"


class OptionType(type):
    """
    Metaclass exposing the names listed in __introspectable__ as read-only
    properties and providing stable __repr__/__rich_repr__ implementations.
    """

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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__displayable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Option(metaclass=OptionType):
    """
    A registered option or positional argument.

    The descriptor never owns its storage: it only writes converted tokens
    into it through its slot. Descriptors are appended during registration
    and are never structurally modified afterwards.
    """

    __introspectable__ = (
        "kind",
        "parsed",
        "required",
        "storage",
        "slot",
        "name",
        "flags",
        "descr",
        "hint",
        "position",
    )

    __displayable__ = (
        "kind",
        "name",
        "flags",
        "hint",
        "position",
        "required",
        "parsed",
    )

    def __init__(self, kind, storage, spec, descr=Unset, position=0, *, type=Unset):
        """
        Construct a descriptor.

        Parameters
        - kind: Kind
        - storage: Value (VALUE/FLAG) or mutable sequence (LIST)
        - spec: str, "[+]name[,flags[,hint]]"
        - descr: Unset | str, help text (empty means none)
        - position: int, 0 / positive slot / -1 catch-all
        - type: Unset | Callable, converter override (defaults to the
          storage's type for VALUE and to str for LIST)

        Raises
        - TypeError: wrong argument types or storage kind.
        - ValueError: malformed spec or inconsistent addressing.
        """
        if not isinstance(kind, Kind):
            raise TypeError(f"{_typename(self)} 'kind' must be a Kind")

        required, name, flags, hint = self.parse_spec(spec)

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{_typename(self)} 'descr' must be a string")
        if isinstance(position, bool) or not isinstance(position, int):
            raise TypeError(f"{_typename(self)} 'position' must be an integer")
        if position < -1:
            raise ValueError(f"{_typename(self)} 'position' must be 0, positive, or -1")

        if "=" in name:
            raise ValueError(f"{_typename(self)} name cannot contain '='")
        if re.search(r"[\s=-]", flags):
            raise ValueError(f"{_typename(self)} flags cannot contain whitespace, '-' or '='")

        if position and (name or flags):
            raise ValueError(f"positional {_typename(self)} cannot have a name or flags")
        if not (position or name or flags):
            raise ValueError(f"{_typename(self)} must have a name, flags, or a position")
        if kind is Kind.FLAG and position:
            raise ValueError(f"flag {_typename(self)} cannot be positional")

        if type is not Unset and not callable(type):
            raise TypeError(f"{_typename(self)} 'type' must be callable")

        match kind:
            case Kind.FLAG:
                if type is not Unset:
                    raise TypeError(f"flag {_typename(self)} cannot specify a 'type'")
                slot = FlagSlot(storage)
            case Kind.VALUE:
                slot = ValueSlot(storage, type)
            case Kind.LIST:
                slot = ListSlot(storage, type)

        self._kind = kind
        self._parsed = False
        self._required = required
        self._storage = storage
        self._slot = slot
        self._name = name
        self._flags = flags
        self._descr = coalesce(descr) or None
        self._hint = hint
        self._position = position

    @staticmethod
    def parse_spec(spec, /):
        """
        Split a spec string into (required, name, flags, hint).

        A leading '+' marks the option as required; the rest is split on the
        first two commas. The hint keeps any further commas verbatim.
        """
        if not isinstance(spec, str):
            raise TypeError("option spec must be a string")
        required = spec.startswith("+")
        if required:
            spec = spec[1:]
        name, _, rest = spec.partition(",")
        flags, _, hint = rest.partition(",")
        return required, name, flags, hint

    @property
    def positional(self):
        """
        True when addressed by position only (no long name, no short flags).
        """
        return not (self._name or self._flags)

    @property
    def label(self):
        """
        Display name used by help and by "required option missing" errors.
        """
        if self.positional:
            return self._hint or "arg" + str(self._position)

        label = ""
        if self._flags:
            label += "-" + self._flags
        if self._name:
            if self._flags:
                label += " [ --" + self._name + " ]"
            else:
                label += "--" + self._name
        if self._kind is not Kind.FLAG:
            label += " " + (self._hint or "arg")
        return label

    def matches(self, *, name=Unset, flag=Unset, position=Unset):
        """
        Lookup predicate used by the engine: exact long name, membership of
        one short-flag character, or exact position.
        """
        if name is not Unset:
            return bool(self._name) and self._name == name
        if flag is not Unset:
            return flag in self._flags
        if position is not Unset:
            return self._position == position
        return False

    def consume(self, token=""):
        """
        Mark the option parsed and write one token into its storage.

        Raises ConversionError when the token does not fit the storage type;
        the option stays marked as parsed.
        """
        self._parsed = True
        self._slot.consume(token)


def _typename(object, /):
    return type(object).__typename__


__all__ = (
    "Kind",
    "Option",
)

del OptionType
