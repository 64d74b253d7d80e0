"""FastAPI dependencies."""

from __future__ import annotations

from pipewright.config import Settings
from pipewright.runs.manager import RunManager

_run_manager: RunManager | None = None


def init_run_manager(settings: Settings, manager: RunManager | None = None) -> RunManager:
    """Initialize the global RunManager (called at app startup)."""
    global _run_manager
    _run_manager = manager or RunManager(settings)
    return _run_manager


def get_run_manager() -> RunManager:
    """Dependency that provides the RunManager instance."""
    if _run_manager is None:
        raise RuntimeError("RunManager not initialized; call init_run_manager() first")
    return _run_manager
