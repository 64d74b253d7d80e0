"""Run management for the pipewright API."""

from pipewright.runs.manager import RunManager

__all__ = ["RunManager"]
