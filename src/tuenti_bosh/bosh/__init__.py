"""BOSH plumbing: envelopes, requests, handlers, connection state."""

from tuenti_bosh.bosh.body import Builder
from tuenti_bosh.bosh.connection import Connection, SetOnce, Transport
from tuenti_bosh.bosh.handler import Handler
from tuenti_bosh.bosh.request import Continuation, Request

__all__ = ["Builder", "Connection", "Continuation", "Handler", "Request", "SetOnce", "Transport"]
