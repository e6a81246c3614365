"""Exceptions shared across the search."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A missing or malformed prerequisite (template, solver, solver log)."""


__all__ = ["ConfigurationError"]
