"""Stable multi-key ordering of variant statistics.

The natural order is (pos, ref, alt). Requested keys that repeat a prefix
of the natural order are dropped; the rest are applied as stable sorts in
reverse declared order, so the first declared key ends up primary.
"""

from __future__ import annotations

from collections.abc import Sequence

from assocquery.core.errors import RequestShapeError
from assocquery.regression.base import VariantStat

SORT_KEYS = ("pos", "ref", "alt", "p-value")
DEFAULT_ORDER = ("pos", "ref", "alt")

# Outside [0, 1] so missing p-values sort last ascending
MISSING_P_VALUE = 2.0

_KEY_FUNCS = {
    "pos": lambda s: s.pos,
    "ref": lambda s: s.ref,
    "alt": lambda s: s.alt,
    "p-value": lambda s: MISSING_P_VALUE if s.p_value is None else s.p_value,
}


def validate_sort_keys(keys: Sequence[str] | None) -> tuple[str, ...]:
    """Check a requested sort-key list.

    Raises:
        RequestShapeError: Repeated keys, or a key outside SORT_KEYS.
    """
    if keys is None:
        return ()
    if len(set(keys)) != len(keys):
        raise RequestShapeError("sort_by arguments must be distinct")
    for key in keys:
        if key not in _KEY_FUNCS:
            raise RequestShapeError(
                "Valid sort_by arguments are `pos', `ref', `alt', and `p-value': "
                f"got {key}"
            )
    return tuple(keys)


def _strip_default_prefix(keys: Sequence[str]) -> list[str]:
    keys = list(keys)
    for default in DEFAULT_ORDER:
        if not keys or keys[0] != default:
            break
        keys.pop(0)
    return keys


def sort_stats(stats: Sequence[VariantStat], keys: Sequence[str] = ()) -> list[VariantStat]:
    """Return ``stats`` in natural order refined by the requested keys."""
    ordered = sorted(stats, key=lambda s: (s.pos, s.ref, s.alt))
    for key in reversed(_strip_default_prefix(keys)):
        ordered.sort(key=_KEY_FUNCS[key])
    return ordered
