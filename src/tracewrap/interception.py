"""Installing and removing tracing proxies.

:func:`install` replaces each selected method with a proxy that reports the
call to a *hooks* object, forwards the call unchanged, reports the result
and hands it back.  Each proxy belongs to a *layer* that remembers what it
displaced on its owner:

* the previous attribute value (the original function, or an older proxy
  when the same name is wrapped more than once), or
* nothing, when the method was inherited; the proxy then forwards to the
  next definition along the MRO at call time.

Removing a layer restores the displaced value when the layer is outermost,
or splices it out from under the newer layer otherwise, so any order of
uninstalling leaves the remaining layers working.

The *hooks* object is duck-typed (see :class:`tracewrap.Tracer`)::

    trace_call(record) -> context or None
    trace_return(record, result, context)
    trace_failure(record, context)

``trace_call`` returning ``None`` means "do not trace this call"; the proxy
still forwards it.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Optional, Union

from tracewrap.exceptions import InvalidOptionError
from tracewrap.selector import select
from tracewrap.types import CallRecord, MethodKind, Visibility

logger = logging.getLogger(__name__)

LAYER_ATTR = "__tracewrap_layer__"

_MISSING = object()

# proxy calling conventions
_INSTANCE = "instance"
_CLASS = "classmethod"
_STATIC = "staticmethod"
_NAMESPACE = "namespace"

_KEYWORD_KINDS = (
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
    inspect.Parameter.VAR_KEYWORD,
)


def _bind(raw: Any, instance: Any, cls: type) -> Any:
    getter = getattr(type(raw), "__get__", None)
    if getter is None:
        return raw
    return getter(raw, instance, cls)


def _inherited(cls: type, owner: Any, name: str) -> Any:
    """Raw attribute *name* from the first class after *owner* in ``cls``'s MRO."""
    mro = cls.__mro__
    start = mro.index(owner) + 1 if owner in mro else 0
    for klass in mro[start:]:
        namespace = vars(klass)
        if name in namespace:
            return namespace[name]
    raise AttributeError(f"{cls.__qualname__!r} has no inherited attribute {name!r}")


def _function_of(raw: Any) -> Any:
    if isinstance(raw, (classmethod, staticmethod)):
        return raw.__func__
    return raw


def _layer_of(raw: Any) -> Optional["_Layer"]:
    if raw is _MISSING:
        return None
    return getattr(_function_of(raw), LAYER_ATTR, None)


def accepts_keywords(func: Callable[..., Any], skip_first: bool = False) -> bool:
    """True if *func* can take keyword arguments.

    *skip_first* ignores the first parameter (``self``/``cls`` of an unbound
    function).  Callables without an introspectable signature are assumed to
    accept keywords.
    """
    try:
        params = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return True
    if skip_first:
        params = params[1:]
    return any(param.kind in _KEYWORD_KINDS for param in params)


class _Layer:
    """One proxy installed for one name on one owner."""

    def __init__(
        self,
        owner: Any,
        name: str,
        previous: Any,
        binds: bool,
        receiver: Any,
        separator: str,
        keywords: bool,
    ) -> None:
        self.owner = owner
        self.name = name
        self.previous = previous
        self.binds = binds
        self.receiver = receiver
        self.separator = separator
        self.keywords = keywords
        self.removed = False

    def resolve(self, instance: Any, cls: type) -> Callable[..., Any]:
        """The callable the proxy forwards to for this particular call."""
        previous = self.previous
        if previous is _MISSING:
            return _bind(_inherited(cls, self.owner, self.name), instance, cls)
        if self.binds:
            return _bind(previous, instance, cls)
        return previous

    def call(self, hooks: Any, target: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        record = CallRecord(self.receiver, self.separator, self.name, args, kwargs)
        ctx = hooks.trace_call(record)
        try:
            if kwargs or self.keywords:
                result = target(*args, **kwargs)
            else:
                result = target(*args)
        except BaseException:
            if ctx is not None:
                hooks.trace_failure(record, ctx)
            raise
        if ctx is not None:
            hooks.trace_return(record, result, ctx)
        return result

    def detach(self) -> None:
        """Remove this layer, restoring or splicing around what it displaced."""
        if self.removed:
            return
        self.removed = True
        current = vars(self.owner).get(self.name, _MISSING)
        if _layer_of(current) is self:
            if self.previous is _MISSING:
                delattr(self.owner, self.name)
            else:
                setattr(self.owner, self.name, self.previous)
            return
        above = _layer_of(current)
        while above is not None:
            if _layer_of(above.previous) is self:
                above.previous = self.previous
                logger.debug("spliced out inner layer for %s", self.name)
                return
            above = _layer_of(above.previous)
        logger.debug("%s was replaced outside tracewrap; leaving it alone", self.name)


def _make_proxy(layer: _Layer, hooks: Any, style: str, wrapped: Any) -> Any:
    owner = layer.owner

    if style == _INSTANCE:
        def proxy(self, /, *args, **kwargs):
            return layer.call(hooks, layer.resolve(self, type(self)), args, kwargs)
    elif style == _CLASS:
        def proxy(cls, /, *args, **kwargs):
            return layer.call(hooks, layer.resolve(None, cls), args, kwargs)
    elif style == _STATIC:
        def proxy(*args, **kwargs):
            return layer.call(hooks, layer.resolve(None, owner), args, kwargs)
    else:
        def proxy(*args, **kwargs):
            return layer.call(hooks, layer.resolve(owner, type(owner)), args, kwargs)

    functools.update_wrapper(proxy, wrapped)
    setattr(proxy, LAYER_ATTR, layer)
    if style == _CLASS:
        return classmethod(proxy)
    if style == _STATIC:
        return staticmethod(proxy)
    return proxy


def _attach(receiver: Any, kind: MethodKind, name: str, hooks: Any) -> _Layer:
    is_class = inspect.isclass(receiver)
    previous = vars(receiver).get(name, _MISSING)

    if is_class:
        source = previous if previous is not _MISSING else _inherited(receiver, receiver, name)
        wrapped = _function_of(source)
        if kind is MethodKind.INSTANCE:
            style = _INSTANCE
            keywords = accepts_keywords(wrapped, skip_first=True)
        else:
            style = _CLASS if isinstance(source, classmethod) else _STATIC
            keywords = accepts_keywords(getattr(receiver, name))
    else:
        # module function, or the object's method as bound through its class
        wrapped = getattr(receiver, name)
        style = _NAMESPACE
        keywords = accepts_keywords(wrapped)

    layer = _Layer(
        owner=receiver,
        name=name,
        previous=previous,
        binds=is_class,
        receiver=receiver,
        separator=kind.separator,
        keywords=keywords,
    )
    setattr(receiver, name, _make_proxy(layer, hooks, style, wrapped))
    return layer


class Interception:
    """The proxies one :func:`install` call put on one receiver.

    Attributes:
        receiver:   The wrapped module, class or object.
        kind:       ``MethodKind.SELF`` or ``MethodKind.INSTANCE``.
        visibility: The threshold used for selection.
    """

    def __init__(
        self,
        receiver: Any,
        kind: MethodKind,
        visibility: Visibility,
        layers: list[_Layer],
    ) -> None:
        self.receiver = receiver
        self.kind = kind
        self.visibility = visibility
        self._layers = layers
        self._installed = True

    def __repr__(self) -> str:
        state = "active" if self.active else "removed"
        return (
            f"<Interception {self.kind.value} of {self.receiver!r} "
            f"{list(self.names)} {state}>"
        )

    @property
    def names(self) -> tuple[str, ...]:
        """The method names this interception wrapped."""
        return tuple(layer.name for layer in self._layers)

    @property
    def active(self) -> bool:
        """True until :meth:`uninstall` is called, even if no name was selected."""
        return self._installed

    def uninstall(self) -> None:
        """Remove exactly the proxies this interception installed.

        Calling it again is a no-op.
        """
        if not self._installed:
            return
        self._installed = False
        for layer in reversed(self._layers):
            layer.detach()
        logger.debug("unwrapped %d methods on %r", len(self._layers), self.receiver)


def install(
    receiver: Any,
    kind: Union[MethodKind, str],
    visibility: Union[Visibility, str],
    hooks: Any,
) -> Interception:
    """Wrap the methods of *receiver* selected by *kind* and *visibility*.

    Parameters:
        receiver:   Module, class or object to wrap.
        kind:       ``MethodKind.SELF`` or ``MethodKind.INSTANCE``.
        visibility: Cumulative visibility threshold.
        hooks:      Receives the call/return/failure events.

    Returns:
        An :class:`Interception` whose :meth:`~Interception.uninstall`
        removes the proxies again.

    Raises:
        InvalidOptionError: For an unrecognised *kind* or *visibility*, or
            ``MethodKind.ALL`` (install each concrete kind separately).
        TypeError, AttributeError: If a proxy cannot be set on *receiver*;
            proxies already installed by this call are removed first.
    """
    kind = MethodKind.parse(kind)
    visibility = Visibility.parse(visibility)
    if kind is MethodKind.ALL:
        raise InvalidOptionError(
            "method_type", kind.value, (MethodKind.SELF.value, MethodKind.INSTANCE.value)
        )

    layers: list[_Layer] = []
    try:
        for name in select(receiver, kind, visibility):
            layers.append(_attach(receiver, kind, name, hooks))
    except Exception:
        for layer in reversed(layers):
            layer.detach()
        raise
    logger.debug("wrapped %d %s on %r", len(layers), kind.value, receiver)
    return Interception(receiver, kind, visibility, layers)
