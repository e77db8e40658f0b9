"""The :class:`Tracer` and the :func:`trace` convenience.

Typical use::

    tracer = Tracer(colour=False, output=sys.stderr)
    tracer.wrap(my_module, method_type="methods")
    tracer.wrap(MyClass)
    ...
    tracer.unwrap()

or, scoped to a block::

    with tracewrap.trace(my_module, MyClass):
        ...
"""

from __future__ import annotations

import contextlib
import logging
import sys
import threading
from typing import Any, Iterator, Optional, TextIO, Union

from tracewrap.config import resolve_colour
from tracewrap.context import ContextTracker, ExecutionContext
from tracewrap.formatter import Formatter
from tracewrap.interception import Interception, install
from tracewrap.types import CallRecord, MethodKind, Visibility

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"


class Tracer:
    """Writes a call/return tree for the methods it wraps.

    Parameters:
        output: Text sink the trace is written to (anything with
            ``write(str)``).  Defaults to ``sys.stdout`` at construction.
        colour: ``True``/``False`` to force ANSI colours on/off, ``None``
            to decide from ``TRACEWRAP_COLOUR``, ``NO_COLOR`` and whether
            *output* is a TTY.

    The thread that constructs the tracer is the *main* context; lines from
    any other thread or process are prefixed with an identity tag.
    """

    def __init__(
        self,
        output: Optional[TextIO] = None,
        colour: Union[bool, str, None] = None,
    ) -> None:
        self._output = output if output is not None else sys.stdout
        self._tracker = ContextTracker()
        self._formatter = Formatter(self._tracker, colour=resolve_colour(colour, self._output))
        self._interceptions: list[Interception] = []
        # installed by wrapped() blocks that have not exited yet
        self._scoped: list[Interception] = []
        self._write_lock = threading.RLock()

    def __repr__(self) -> str:
        return f"<Tracer {self.state} interceptions={len(self._interceptions)}>"

    def __enter__(self) -> "Tracer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unwrap()

    # --- Properties ---

    @property
    def output(self) -> Any:
        return self._output

    @property
    def colour(self) -> bool:
        """Whether this tracer writes ANSI colour sequences."""
        return self._formatter.colour_enabled

    @property
    def interceptions(self) -> tuple[Interception, ...]:
        """Interceptions registered by :meth:`wrap` and not yet unwrapped."""
        return tuple(self._interceptions)

    @property
    def active(self) -> bool:
        """True while any interception made by this tracer is installed."""
        return any(
            interception.active
            for interception in self._interceptions + self._scoped
        )

    @property
    def state(self) -> str:
        """``"active"`` while registered interceptions remain, else ``"idle"``."""
        return ACTIVE if self.active else IDLE

    @property
    def contexts(self) -> ContextTracker:
        return self._tracker

    # --- Lifecycle ---

    def wrap(
        self,
        *receivers: Any,
        method_type: Union[MethodKind, str] = MethodKind.ALL,
        visibility: Union[Visibility, str] = Visibility.PROTECTED,
    ) -> "Tracer":
        """Wrap methods on *receivers* until :meth:`unwrap` is called.

        Parameters:
            receivers:   Modules, classes or objects.
            method_type: ``"methods"`` (called on the receiver),
                ``"instance_methods"`` (called on instances of a receiver
                class) or ``"all"``.
            visibility:  ``"public"``, ``"protected"`` or ``"private"``;
                cumulative.

        Returns:
            This tracer, so calls can be chained.

        Raises:
            InvalidOptionError: If an option is not recognised; nothing is
                wrapped in that case.
        """
        self._interceptions.extend(self._install(receivers, method_type, visibility))
        return self

    @contextlib.contextmanager
    def wrapped(
        self,
        *receivers: Any,
        method_type: Union[MethodKind, str] = MethodKind.ALL,
        visibility: Union[Visibility, str] = Visibility.PROTECTED,
    ) -> Iterator["Tracer"]:
        """Like :meth:`wrap`, but only for the duration of a ``with`` block.

        Yields this tracer, so more receivers can be wrapped inside the
        block.  Only the interceptions made by this call are removed on
        exit; exceptions from the block propagate unchanged.
        """
        interceptions = self._install(receivers, method_type, visibility)
        self._scoped.extend(interceptions)
        try:
            yield self
        finally:
            for interception in reversed(interceptions):
                interception.uninstall()
                self._scoped.remove(interception)

    def unwrap(self) -> None:
        """Remove every interception registered by :meth:`wrap`.

        Safe to call repeatedly or when nothing is wrapped.
        """
        interceptions, self._interceptions = self._interceptions, []
        if interceptions:
            logger.debug("unwrapping %d interceptions", len(interceptions))
        for interception in reversed(interceptions):
            interception.uninstall()

    def _install(
        self,
        receivers: tuple[Any, ...],
        method_type: Union[MethodKind, str],
        visibility: Union[Visibility, str],
    ) -> list[Interception]:
        kinds = MethodKind.parse(method_type).expand()
        threshold = Visibility.parse(visibility)
        installed: list[Interception] = []
        try:
            for receiver in receivers:
                for kind in kinds:
                    installed.append(install(receiver, kind, threshold, self))
        except Exception:
            for interception in reversed(installed):
                interception.uninstall()
            raise
        return installed

    # --- Hooks called by the proxies ---

    def trace_call(self, record: CallRecord) -> Optional[ExecutionContext]:
        ctx = self._tracker.current()
        if ctx.muted:
            return None
        with self._muted(ctx):
            line = self._formatter.render_call(
                record.receiver, record.separator, record.name,
                record.args, record.kwargs, ctx,
            )
            self._writeln(line)
        return ctx

    def trace_return(self, record: CallRecord, result: Any, ctx: ExecutionContext) -> None:
        with self._muted(ctx):
            line = self._formatter.render_return(
                record.receiver, record.separator, record.name, result, ctx,
            )
            self._writeln(line)

    def trace_failure(self, record: CallRecord, ctx: ExecutionContext) -> None:
        self._formatter.render_failure(ctx)

    @contextlib.contextmanager
    def _muted(self, ctx: ExecutionContext) -> Iterator[None]:
        ctx.muted = True
        try:
            yield
        finally:
            ctx.muted = False

    def _writeln(self, text: str) -> None:
        # callers hold the context muted, so a traced sink is written untraced
        with self._write_lock:
            self._output.write(f"{text}\n")
            flush = getattr(self._output, "flush", None)
            if flush is not None:
                flush()


@contextlib.contextmanager
def trace(
    *receivers: Any,
    output: Optional[TextIO] = None,
    colour: Union[bool, str, None] = None,
    method_type: Union[MethodKind, str] = MethodKind.ALL,
    visibility: Union[Visibility, str] = Visibility.PROTECTED,
) -> Iterator[Tracer]:
    """Trace *receivers* with a new :class:`Tracer` for the ``with`` block.

    Receivers wrapped through the yielded tracer inside the block are
    unwrapped on exit as well.

    Example::

        with tracewrap.trace(MyModule, MyClass):
            MyClass.meaning(x=40)
    """
    tracer = Tracer(output=output, colour=colour)
    with tracer, tracer.wrapped(*receivers, method_type=method_type, visibility=visibility):
        yield tracer
