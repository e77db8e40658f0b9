"""Choosing which method names of a receiver get wrapped.

Visibility follows Python's naming conventions:

* ``_Class__name`` (a name mangled from ``__name`` inside ``Class``) and
  ``__name`` at module level are *private*;
* any other name with a leading underscore is *protected*;
* everything else, dunder protocol methods included, is *public*.

Names that :class:`object` itself defines (``__init__``, ``__repr__``,
``__eq__``, ...) are never selected.
"""

from __future__ import annotations

import inspect
from typing import Any, Iterator, Union

from tracewrap.types import MethodKind, Visibility

ROOT_NAMES = frozenset(dir(object))


def _classes_of(receiver: Any) -> tuple[type, ...]:
    cls = receiver if inspect.isclass(receiver) else type(receiver)
    return tuple(klass for klass in cls.__mro__ if klass is not object)


def _is_mangled(name: str, classes: tuple[type, ...]) -> bool:
    for klass in classes:
        stem = klass.__name__.lstrip("_")
        if not stem:
            continue
        prefix = f"_{stem}__"
        if name.startswith(prefix) and len(name) > len(prefix):
            return True
    return False


def visibility_of(name: str, receiver: Any = None) -> Visibility:
    """Visibility of attribute *name* as seen on *receiver*."""
    if name.startswith("__") and name.endswith("__") and len(name) > 4:
        return Visibility.PUBLIC
    if name.startswith("__"):
        return Visibility.PRIVATE
    if receiver is not None and not inspect.ismodule(receiver):
        if _is_mangled(name, _classes_of(receiver)):
            return Visibility.PRIVATE
    if name.startswith("_"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _candidates(receiver: Any, kind: MethodKind) -> Iterator[str]:
    """Callable names for *kind*, most specific definition first."""
    if kind is MethodKind.SELF and inspect.ismodule(receiver):
        for name, value in vars(receiver).items():
            if inspect.isfunction(value) and value.__module__ == receiver.__name__:
                yield name
        return

    if kind is MethodKind.INSTANCE:
        if not inspect.isclass(receiver):
            return
        wanted = inspect.isfunction
    elif inspect.isclass(receiver):
        def wanted(raw: Any) -> bool:
            return isinstance(raw, (classmethod, staticmethod))
    else:
        def wanted(raw: Any) -> bool:
            return inspect.isfunction(raw) or isinstance(raw, (classmethod, staticmethod))

    seen: set[str] = set()
    for klass in _classes_of(receiver):
        for name, raw in vars(klass).items():
            if name in seen:
                continue
            # a subclass attribute hides the base definition even if it is
            # not itself wrappable
            seen.add(name)
            if wanted(raw):
                yield name


def select(
    receiver: Any,
    kind: Union[MethodKind, str],
    visibility: Union[Visibility, str] = Visibility.PROTECTED,
) -> tuple[str, ...]:
    """Names of the methods to wrap on *receiver*.

    Parameters:
        receiver:   A module, class or any other object.
        kind:       ``MethodKind.SELF`` or ``MethodKind.INSTANCE``
                    (``ALL`` yields both, Self names first, without repeats).
        visibility: Cumulative threshold (see :class:`Visibility`).

    Returns:
        Distinct names in definition order.

    Raises:
        InvalidOptionError: If *kind* or *visibility* is not recognised.
    """
    kind = MethodKind.parse(kind)
    threshold = Visibility.parse(visibility)
    names: dict[str, None] = {}
    for concrete in kind.expand():
        for name in _candidates(receiver, concrete):
            if name in ROOT_NAMES:
                continue
            if threshold.includes(visibility_of(name, receiver)):
                names.setdefault(name, None)
    return tuple(names)
