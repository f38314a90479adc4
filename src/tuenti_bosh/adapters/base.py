"""Base adapter interface: an authentication scheme plugged into a Connection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from tuenti_bosh.bosh.connection import Connection
from tuenti_bosh.bosh.request import Request


class ConnectionAdapter(ABC):
    """Interface for connection adapters. Start a session, consume the first reply."""

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier (e.g. 'tuenti')."""
        ...

    @abstractmethod
    def connect(self, *args: Any, **kwargs: Any) -> None:
        """Reset state and submit the session-request body."""
        ...

    @abstractmethod
    def on_initial_response(self, request: Request) -> None:
        """Continuation for the session-request response."""
        ...
