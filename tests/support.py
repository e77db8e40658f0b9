"""Shared helpers for the tracewrap tests."""

from __future__ import annotations

import re

from tracewrap.shell import TOKEN_COLOURS, paint

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")


class Output:
    """Minimal write-only sink recording every write."""

    def __init__(self) -> None:
        self.output: list[str] = []

    def write(self, text) -> None:
        if not isinstance(text, str):
            text = str(text)
        self.output.append(text)

    @property
    def text(self) -> str:
        return "".join(self.output)

    @property
    def lines(self) -> list[str]:
        return self.text.splitlines()


class TTYOutput(Output):
    def isatty(self) -> bool:
        return True


class RecordingHooks:
    """Stands in for a Tracer: records events instead of formatting them."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def trace_call(self, record):
        self.events.append(("call", record.name, record.args, dict(record.kwargs)))
        return self

    def trace_return(self, record, result, ctx) -> None:
        self.events.append(("return", record.name, result))

    def trace_failure(self, record, ctx) -> None:
        self.events.append(("failure", record.name))


def strip_colour(text: str) -> str:
    return ANSI_PATTERN.sub("", text)


def receiver(text: str) -> str:
    return paint(text, TOKEN_COLOURS["receiver"])


def method(text: str) -> str:
    return paint(text, TOKEN_COLOURS["method"])


def value(text: str) -> str:
    return paint(text, TOKEN_COLOURS["value"])


RETURN = paint("return", TOKEN_COLOURS["return"])

__all__ = [
    "ANSI_PATTERN",
    "Output",
    "RETURN",
    "RecordingHooks",
    "TTYOutput",
    "method",
    "receiver",
    "strip_colour",
    "value",
]
