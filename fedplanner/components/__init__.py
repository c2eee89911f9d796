"""Expose component submodules for convenience."""

from .insights import generate_insights

__all__ = ["generate_insights"]
