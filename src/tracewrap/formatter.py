"""Rendering of call and return events into trace lines.

A call line looks like::

    {indent}[{tag}] {receiver}{separator}{name}({args})

and the matching return line like::

    {indent}[{tag}] {receiver}{separator}{name} return {result}

where the indent is two spaces per nesting level (plus one level), and the
``[tag] `` prefix only appears for contexts other than the main one.
"""

from __future__ import annotations

import inspect
import logging
import sys
from typing import Any, Mapping, Optional, Sequence

from tracewrap.context import ContextTracker, ExecutionContext
from tracewrap.shell import ELLIPSIS, TOKEN_COLOURS, paint

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 20
INDENT = "  "


def short_inspect(value: Any, limit: int = PREVIEW_LIMIT) -> str:
    """``repr(value)``, shortened to *limit* characters.

    Longer representations keep their first *limit* characters, then an
    ellipsis, then their last character so closing brackets and quotes
    survive: ``[1, 2, 3, 4, 5, 6, 7…]``.
    """
    try:
        text = repr(value)
    except Exception:
        logger.debug("repr() failed for %s", type(value).__qualname__, exc_info=True)
        text = object.__repr__(value)
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS + text[-1]


def is_global_receiver(receiver: Any) -> bool:
    """True for the ``__main__`` module, the program's top-level namespace."""
    return inspect.ismodule(receiver) and receiver is sys.modules.get("__main__")


def display_name(receiver: Any) -> str:
    """Name used for *receiver* in trace lines."""
    if inspect.ismodule(receiver):
        return receiver.__name__
    if inspect.isclass(receiver):
        return receiver.__qualname__
    return short_inspect(receiver)


class Formatter:
    """Builds trace lines and keeps each context's depth in step.

    Parameters:
        tracker: The tracker owning the contexts passed to the render methods.
        colour:  Whether lines contain ANSI colour sequences.
    """

    def __init__(self, tracker: ContextTracker, colour: bool = False) -> None:
        self._tracker = tracker
        self._colour = colour

    @property
    def colour_enabled(self) -> bool:
        return self._colour

    def colour(self, text: str, category: str) -> str:
        """Paint *text* in the colour of a token *category*."""
        if not self._colour:
            return text
        return paint(text, TOKEN_COLOURS[category])

    def render_call(
        self,
        receiver: Any,
        separator: str,
        name: str,
        args: Sequence[Any],
        kwargs: Mapping[str, Any],
        ctx: ExecutionContext,
    ) -> str:
        """Line for a call event; the context goes one level deeper afterwards."""
        line = (
            f"{self.prefix(ctx)}{self.function(receiver, separator, name)}"
            f"({self.show_args(args, kwargs)})"
        )
        self._tracker.increment(ctx)
        return line

    def render_return(
        self,
        receiver: Any,
        separator: str,
        name: str,
        result: Any,
        ctx: ExecutionContext,
    ) -> str:
        """Line for a return event, rendered after leaving the call's level."""
        self._tracker.decrement(ctx)
        return (
            f"{self.prefix(ctx)}{self.function(receiver, separator, name)} "
            f"{self.colour('return', 'return')} "
            f"{self.colour(short_inspect(result), 'value')}"
        )

    def prefix(self, ctx: ExecutionContext) -> str:
        """Indentation followed by the identity tag, if any."""
        indent = INDENT * (self._tracker.indent(ctx) + 1)
        tag = self._tracker.identity_tag(ctx)
        if tag is None:
            return indent
        if self._colour:
            tag = paint(tag, ctx.colour)
        return f"{indent}[{tag}] "

    def function(self, receiver: Any, separator: str, name: str) -> str:
        if is_global_receiver(receiver):
            return self.colour(name, "method")
        return (
            f"{self.colour(display_name(receiver), 'receiver')}"
            f"{separator}{self.colour(name, 'method')}"
        )

    def show_args(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> str:
        parts = [self.colour(short_inspect(value), "value") for value in args]
        parts += [
            f"{key}: {self.colour(short_inspect(value), 'value')}"
            for key, value in kwargs.items()
        ]
        return ", ".join(parts)

    def render_failure(self, ctx: ExecutionContext) -> None:
        """Close the level opened by a call whose method raised.

        No line is produced for failures.
        """
        self._tracker.decrement(ctx)
