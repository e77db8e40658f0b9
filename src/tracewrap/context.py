"""Per-thread trace state.

Every (process, thread) pair that emits a trace line gets its own
:class:`ExecutionContext` holding the current nesting depth and a display
colour.  Keeping depth per context means two threads calling traced code at
the same time each produce a correctly nested tree, however their lines
interleave.

The context that was current when the :class:`ContextTracker` was created is
the *main* context; its lines carry no identity tag.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Iterator, Optional

from tracewrap.shell import CONTEXT_PALETTE

logger = logging.getLogger(__name__)

TAG_THREAD_CHARS = 4


@dataclass(frozen=True)
class ContextId:
    """Identity of one thread of execution.

    Attributes:
        process: OS process id.
        thread:  ``threading.get_ident()`` of the thread.
        primary: True if the thread is its process's main thread.
    """

    process: int
    thread: int
    primary: bool = False

    @classmethod
    def current(cls) -> "ContextId":
        """Identity of the calling thread."""
        return cls(
            process=os.getpid(),
            thread=threading.get_ident(),
            primary=threading.current_thread() is threading.main_thread(),
        )

    @property
    def key(self) -> tuple[int, int]:
        return (self.process, self.thread)


@dataclass
class ExecutionContext:
    """Mutable trace state for one :class:`ContextId`.

    Attributes:
        ident:  The identity this state belongs to.
        colour: Palette colour name used for the identity tag.
        depth:  Current nesting depth, never negative.
        muted:  True while this context is rendering a line; traced calls
                made during rendering are not traced.
    """

    ident: ContextId
    colour: str
    depth: int = 0
    muted: bool = False


class ContextTracker:
    """Registry of :class:`ExecutionContext` objects keyed by process/thread.

    Parameters:
        main: Identity of the main context.  Defaults to the calling thread.
    """

    def __init__(self, main: Optional[ContextId] = None) -> None:
        self._main = main if main is not None else ContextId.current()
        self._contexts: dict[tuple[int, int], ExecutionContext] = {}
        self._lock = threading.Lock()

    @property
    def main(self) -> ContextId:
        return self._main

    def __len__(self) -> int:
        return len(self._contexts)

    def __iter__(self) -> Iterator[ExecutionContext]:
        return iter(list(self._contexts.values()))

    def current(self, ident: Optional[ContextId] = None) -> ExecutionContext:
        """Return the context for *ident* (default: calling thread), creating it.

        New contexts take the next palette colour in first-seen order,
        cycling once the palette is exhausted.
        """
        if ident is None:
            ident = ContextId.current()
        ctx = self._contexts.get(ident.key)
        if ctx is not None:
            return ctx
        with self._lock:
            ctx = self._contexts.get(ident.key)
            if ctx is None:
                colour = CONTEXT_PALETTE[len(self._contexts) % len(CONTEXT_PALETTE)]
                ctx = ExecutionContext(ident=ident, colour=colour)
                self._contexts[ident.key] = ctx
                logger.debug("new execution context %s (%s)", ident.key, colour)
        return ctx

    def is_main(self, ctx: ExecutionContext) -> bool:
        return ctx.ident.key == self._main.key

    def identity_tag(self, ctx: ExecutionContext) -> Optional[str]:
        """Short label for *ctx*, or ``None`` for the main context.

        * main process, its primary thread: the process id alone;
        * main process, another thread: the last 4 characters of the
          thread id;
        * another process: ``"{pid}:{last 4 of thread id}"``.
        """
        if self.is_main(ctx):
            return None
        ident = ctx.ident
        same_process = ident.process == self._main.process
        if same_process and ident.primary:
            return str(ident.process)
        thread_tag = str(ident.thread)[-TAG_THREAD_CHARS:]
        if same_process:
            return thread_tag
        return f"{ident.process}:{thread_tag}"

    def indent(self, ctx: ExecutionContext) -> int:
        return ctx.depth

    def increment(self, ctx: ExecutionContext) -> None:
        ctx.depth += 1

    def decrement(self, ctx: ExecutionContext) -> None:
        ctx.depth = max(ctx.depth - 1, 0)
