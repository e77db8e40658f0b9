"""Shell colours used by the trace output.

Escape sequences come from ``colored`` and are computed once at import.
Static tokens use :data:`TOKEN_COLOURS`; execution contexts pick their tag
colour from :data:`CONTEXT_PALETTE`, which shares no colour with the tokens.
"""

from __future__ import annotations

from colored import fg, style  # noqa

BOLD = style("bold")
RESET = style("reset")

COLOURS = {
    "red": fg("red"),
    "b_red": BOLD + fg("red"),
    "green": fg("green"),
    "b_green": BOLD + fg("green"),
    "orange": fg("dark_orange"),
    "yellow": fg("yellow"),
    "b_yellow": BOLD + fg("yellow"),
    "blue": fg("blue"),
    "b_blue": BOLD + fg("blue"),
    "purple": fg("magenta"),
    "b_purple": BOLD + fg("magenta"),
    "teal": fg("cyan"),
    "cyan": BOLD + fg("cyan"),
}

# token category -> colour name
TOKEN_COLOURS = {
    "receiver": "b_green",
    "method": "teal",
    "value": "purple",
    "return": "b_yellow",
}

# first-seen order; wraps around when exhausted
CONTEXT_PALETTE = (
    "red",
    "orange",
    "b_blue",
    "b_purple",
    "cyan",
    "b_red",
    "green",
    "blue",
    "yellow",
)

ELLIPSIS = "\u2026"


def paint(text: str, colour: str) -> str:
    """Wrap *text* in the start sequence for *colour* and a reset."""
    return f"{COLOURS[colour]}{text}{RESET}"
