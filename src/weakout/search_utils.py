"""Helpers for the branch-and-bound search."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


def format_runtime(seconds: float) -> str:
    return f"{seconds:g}"


def format_bound(bound: Optional[float]) -> str:
    if bound is None:
        return "-1"
    return format_runtime(bound)


def format_fields(fields: Sequence[Tuple[str, object]]) -> str:
    """Render 'key : value , key : value' log lines."""
    parts = []
    for key, value in fields:
        if isinstance(value, float):
            value = format_runtime(value)
        parts.append(f"{key} : {value}")
    return " , ".join(parts)


def should_prune(cur_total_runtime: float, best: Optional[float]) -> bool:
    if best is None:
        return False
    return cur_total_runtime >= best


def too_many_unsat(unsat_inst: int, max_unsat: int) -> bool:
    return unsat_inst > max_unsat


__all__ = [
    "format_bound",
    "format_fields",
    "format_runtime",
    "should_prune",
    "too_many_unsat",
]
