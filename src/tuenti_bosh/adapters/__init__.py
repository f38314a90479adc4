"""Connection adapters. Each implements base.ConnectionAdapter."""

from tuenti_bosh.adapters.base import ConnectionAdapter
from tuenti_bosh.adapters.tuenti import TuentiAdapter, build_plain_auth

__all__ = ["ConnectionAdapter", "TuentiAdapter", "build_plain_auth"]
