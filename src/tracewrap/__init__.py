"""tracewrap: print a nested call/return tree for wrapped methods.

Wrap the methods of modules, classes or objects, run some code, and every
call and return is written as an indented, optionally coloured line.
"""

import logging

from tracewrap.tracer import Tracer, trace
from tracewrap.types import CallRecord, MethodKind, Visibility
from tracewrap.interception import Interception, install
from tracewrap.selector import select
from tracewrap.formatter import short_inspect
from tracewrap.exceptions import (
    InvalidOptionError,
    TraceWrapError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "Tracer",
    "trace",
    "CallRecord",
    "MethodKind",
    "Visibility",
    "Interception",
    "install",
    "select",
    "short_inspect",
    "InvalidOptionError",
    "TraceWrapError",
]
