"""Realtime socket relay."""

from .registry import Connection, ConnectionRegistry
from .relay import MessageRelay

__all__ = ["Connection", "ConnectionRegistry", "MessageRelay"]
