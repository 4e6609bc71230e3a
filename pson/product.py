"""Mixed-radix enumeration of index vectors (an odometer)."""

from __future__ import annotations

from typing import Iterator, Sequence


def product_indices(radices: Sequence[int]) -> Iterator[tuple[int, ...]]:
    """Yield every index vector idx with 0 <= idx[i] < radices[i].

    Enumeration starts at all zeros and digit 0 turns fastest, like the
    right-hand wheel of an odometer read from the left. An empty radix list
    yields one empty vector; any zero radix yields nothing. Call again to
    restart.
    """
    if any(radix <= 0 for radix in radices):
        return
    idx = [0] * len(radices)
    while True:
        yield tuple(idx)
        for i, radix in enumerate(radices):
            idx[i] = (idx[i] + 1) % radix
            if idx[i] != 0:
                break
        else:
            return


def product_size(radices: Sequence[int]) -> int:
    total = 1
    for radix in radices:
        total *= max(radix, 0)
    return total
