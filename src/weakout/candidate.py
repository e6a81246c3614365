"""Random regular outputs: 8 random bits followed by their complement."""

from __future__ import annotations

import random

from .stages import HASH_LEN

SUBSEQ_LEN_1 = 8
SUBSEQ_LEN_2 = 16


def worker_rng(worker_id: int) -> random.Random:
    """Return the random source of a worker, seeded with its id."""
    if worker_id < 0:
        raise ValueError("worker_id must be nonnegative.")
    return random.Random(worker_id)


def rand_output(rng: random.Random, length: int = HASH_LEN) -> str:
    """Generate a random regular output of `length` bits as a '0'/'1' string."""
    if length <= 0 or length % SUBSEQ_LEN_2 != 0:
        raise ValueError(f"length must be a positive multiple of {SUBSEQ_LEN_2}.")
    blocks = []
    for _ in range(length // SUBSEQ_LEN_2):
        half = "".join(str(rng.randint(0, 1)) for _ in range(SUBSEQ_LEN_1))
        inverse = "".join("0" if b == "1" else "1" for b in half)
        blocks.append(half + inverse)
    return "".join(blocks)


def is_regular_output(bits: str, length: int = HASH_LEN) -> bool:
    if len(bits) != length or set(bits) - {"0", "1"}:
        return False
    for start in range(0, length, SUBSEQ_LEN_2):
        first = bits[start : start + SUBSEQ_LEN_1]
        second = bits[start + SUBSEQ_LEN_1 : start + SUBSEQ_LEN_2]
        if any(a == b for a, b in zip(first, second)):
            return False
    return True


__all__ = ["worker_rng", "rand_output", "is_regular_output"]
