"""Shared in-memory state primitives."""

from adaptive_engine.state.keyed_store import KeyedStateStore

__all__ = ["KeyedStateStore"]
