"""Command-line comparison workflow."""

from .runner import main, run

__all__ = ["main", "run"]
