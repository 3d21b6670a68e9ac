"""Isolated execution of snippet records."""

from .executor import ExecutionResult, IsolationExecutor

__all__ = ["ExecutionResult", "IsolationExecutor"]
