"""Decides whether two cart lines describe the same purchasable configuration."""
from __future__ import annotations

from typing import List, Optional, Sequence

from .dtos import CartLine


def _same_sequence(a: Sequence, b: Sequence, *, ordered: bool) -> bool:
    if len(a) != len(b):
        return False
    if ordered:
        return all(x == y for x, y in zip(a, b))
    return sorted(a) == sorted(b)


def same_configuration(a: CartLine, b: CartLine, *, ordered: bool = True) -> bool:
    """Product, variant, specification (id, value) pairs and colors must all agree.

    With ``ordered=True`` selections are compared position by position, so the
    same options submitted in a different order form a different line.
    """
    if a.product_id != b.product_id:
        return False
    if (a.variant or None) != (b.variant or None):
        return False
    specs_a = [s.key for s in a.selected_specifications]
    specs_b = [s.key for s in b.selected_specifications]
    if not _same_sequence(specs_a, specs_b, ordered=ordered):
        return False
    return _same_sequence(list(a.selected_colors), list(b.selected_colors), ordered=ordered)


def find_matching_line(
    lines: List[CartLine], candidate: CartLine, *, ordered: bool = True
) -> Optional[int]:
    for index, line in enumerate(lines):
        if same_configuration(line, candidate, ordered=ordered):
            return index
    return None
