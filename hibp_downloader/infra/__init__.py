"""Infra layer utilities (checkpoint and lock files)."""

from .checkpoint import Checkpoint, CheckpointError, CheckpointStore
from .lockfile import LockHeld, ProcessLock

__all__ = ["Checkpoint", "CheckpointError", "CheckpointStore", "LockHeld", "ProcessLock"]
