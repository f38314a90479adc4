"""Tuenti authentication for XMPP over BOSH."""

from tuenti_bosh.adapters import ConnectionAdapter, TuentiAdapter
from tuenti_bosh.bosh import Connection, Continuation, Request
from tuenti_bosh.core.constants import Status

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ConnectionAdapter",
    "Continuation",
    "Request",
    "Status",
    "TuentiAdapter",
    "__version__",
]
