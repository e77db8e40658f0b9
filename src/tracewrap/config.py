"""Colour-mode resolution.

The ``colour`` construction option is tri-state: ``True`` forces ANSI
colour, ``False`` disables it and ``None`` resolves it from the
environment and the output sink.  The environment is consulted in this
order:

1. ``TRACEWRAP_COLOUR`` - ``1``/``true``/``yes``/``on``/``always`` or
   ``0``/``false``/``no``/``off``/``never``; ``auto`` (or empty) defers.
2. ``NO_COLOR`` - any non-empty value disables colour
   (https://no-color.org).
3. ``output.isatty()`` - colour only for interactive terminals.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional, Union

from tracewrap.exceptions import InvalidOptionError

COLOUR_ENV = "TRACEWRAP_COLOUR"
NO_COLOR_ENV = "NO_COLOR"

_TRUTHY = frozenset({"1", "true", "yes", "on", "always"})
_FALSY = frozenset({"0", "false", "no", "off", "never"})
_AUTO = frozenset({"", "auto"})


def parse_colour(value: Union[bool, str, None], option: str = "colour") -> Optional[bool]:
    """Normalise a colour setting to ``True``, ``False`` or ``None`` (auto)."""
    if value is None or isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUTHY:
        return True
    if normalized in _FALSY:
        return False
    if normalized in _AUTO:
        return None
    raise InvalidOptionError(
        option, value, tuple(sorted(_TRUTHY | _FALSY | {"auto"}))
    )


def is_interactive(output: Any) -> bool:
    """True if *output* reports itself as a TTY."""
    isatty = getattr(output, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        # Closed or detached streams.
        return False


def resolve_colour(
    colour: Union[bool, str, None],
    output: Any,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Decide whether trace lines written to *output* are coloured.

    Parameters:
        colour:  Explicit setting; only ``None`` consults the environment.
        output:  The sink the trace will be written to.
        environ: Mapping used instead of :data:`os.environ` (tests).

    Raises:
        InvalidOptionError: If *colour* or ``TRACEWRAP_COLOUR`` holds an
            unrecognised value.
    """
    explicit = parse_colour(colour)
    if explicit is not None:
        return explicit

    env = os.environ if environ is None else environ
    from_env = parse_colour(env.get(COLOUR_ENV), option=COLOUR_ENV)
    if from_env is not None:
        return from_env
    if env.get(NO_COLOR_ENV):
        return False
    return is_interactive(output)
