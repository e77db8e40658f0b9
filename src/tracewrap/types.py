"""Option enums and event values shared by the tracewrap modules.

:class:`MethodKind` and :class:`Visibility` are the two ``wrap`` options.
Both accept either the enum member or its string value, so
``visibility="private"`` and ``visibility=Visibility.PRIVATE`` are
interchangeable.  Unknown values raise
:class:`~tracewrap.exceptions.InvalidOptionError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

from tracewrap.exceptions import InvalidOptionError


class MethodKind(enum.Enum):
    """Which methods of a receiver are wrapped.

    Members:
        SELF:     methods called directly on the receiver
                  (module functions, class/static methods, an object's own
                  bound methods).
        INSTANCE: methods called on instances of the receiver class.
        ALL:      both of the above.
    """

    SELF = "methods"
    INSTANCE = "instance_methods"
    ALL = "all"

    @classmethod
    def parse(cls, value: Union["MethodKind", str]) -> "MethodKind":
        """Return the member for *value*, raising ``InvalidOptionError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidOptionError(
                "method_type", value, tuple(m.value for m in cls)
            ) from None

    def expand(self) -> tuple["MethodKind", ...]:
        """The concrete kinds (``SELF`` and/or ``INSTANCE``) to install."""
        if self is MethodKind.ALL:
            return (MethodKind.SELF, MethodKind.INSTANCE)
        return (self,)

    @property
    def separator(self) -> str:
        """``.`` for methods on the receiver, ``#`` for instance methods."""
        return "#" if self is MethodKind.INSTANCE else "."


class Visibility(enum.Enum):
    """Cumulative visibility threshold.

    ``PROTECTED`` selects public and protected names, ``PRIVATE`` selects
    everything.  Members compare by rank through :meth:`includes`.
    """

    PUBLIC = "public"
    PROTECTED = "protected"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: Union["Visibility", str]) -> "Visibility":
        """Return the member for *value*, raising ``InvalidOptionError``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidOptionError(
                "visibility", value, tuple(m.value for m in cls)
            ) from None

    @property
    def rank(self) -> int:
        return _VISIBILITY_RANKS[self]

    def includes(self, other: "Visibility") -> bool:
        """True if a name of visibility *other* passes this threshold."""
        return other.rank <= self.rank


_VISIBILITY_RANKS = {
    Visibility.PUBLIC: 0,
    Visibility.PROTECTED: 1,
    Visibility.PRIVATE: 2,
}


@dataclass(frozen=True)
class CallRecord:
    """One intercepted invocation, as handed to the tracer hooks.

    Attributes:
        receiver:  The object the interception was installed on.
        separator: ``.`` or ``#`` (see :attr:`MethodKind.separator`).
        name:      The method name as selected.
        args:      Positional arguments exactly as received (without the
                   bound ``self``/``cls``).
        kwargs:    Keyword arguments exactly as received, in call order.
    """

    receiver: Any
    separator: str
    name: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
