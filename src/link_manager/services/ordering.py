"""Lexicographic order keys for user-defined item ordering.

Items in an ordered collection carry a short string key; sorting by that key
yields the display order. A new key can be produced strictly between any two
neighbors, so inserting or moving an item never rewrites its siblings. Keys
only grow when the same gap is split repeatedly, and ``rebalance`` compacts a
whole collection back to short, evenly spaced keys.

Keys use the symbols ``a``..``z`` and compare with plain string ordering, so
the storage column must use byte-wise collation. Shorter keys sort before
their extensions, which acts as if they were padded with a symbol below
``a``. Generated keys never end in the minimum symbol, which keeps room
below every key. The two exceptions are the rebalanced head key ``"a"`` and
a key below a run of minimum symbols (``"aa"``), where ``"a"`` is the only
key that sorts lower.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Final

MIN_SYMBOL: Final[str] = "a"
MAX_SYMBOL: Final[str] = "z"
MID_SYMBOL: Final[str] = "n"
BASE: Final[int] = ord(MAX_SYMBOL) - ord(MIN_SYMBOL) + 1

DEFAULT_REBALANCE_THRESHOLD: Final[int] = 20
DEFAULT_REBALANCE_SPACING: Final[int] = 10

__all__ = [
    "InvalidOrderError",
    "between",
    "end",
    "generate_keys",
    "needs_rebalance",
    "rebalance",
    "start",
]


class InvalidOrderError(ValueError):
    """Raised when no key can sort strictly between the given bounds.

    This means the caller passed bounds that are equal or reversed, usually
    because it read stale neighbors. Re-read the neighbors and retry.
    """

    def __init__(self, before: str | None, after: str | None, reason: str | None = None) -> None:
        self.before = before
        self.after = after
        message = reason or f"before ({before!r}) must be less than after ({after!r})"
        super().__init__(f"invalid order: {message}")


def start() -> str:
    """Return the key for the first item of an empty collection."""
    return MID_SYMBOL


def end() -> str:
    """Return a key sorting after every standard position."""
    return MAX_SYMBOL


def _shift(symbol: str, delta: int) -> str:
    return chr(ord(symbol) + delta)


def _key_below(key: str) -> str | None:
    """Return a key sorting before ``key``, or None if nothing does.

    Only runs of the minimum symbol have nothing below them (besides shorter
    runs), so the first symbol above the minimum decides the result.
    """
    for index, symbol in enumerate(key):
        if symbol == MIN_SYMBOL:
            continue
        gap = ord(symbol) - ord(MIN_SYMBOL)
        if gap > 1:
            return key[:index] + _shift(symbol, -1)
        return key[:index] + MIN_SYMBOL + MID_SYMBOL
    # All minimum symbols: only a shorter run sorts lower.
    return key[:-1] or None


def between(before: str | None, after: str | None) -> str:
    """Return a key sorting strictly between ``before`` and ``after``.

    Args:
        before: Key of the preceding item; ``None`` or ``""`` for the start.
        after: Key of the following item; ``None`` or ``""`` for the end.

    Returns:
        A key ``k`` with ``before < k < after``.

    Raises:
        InvalidOrderError: If ``before >= after``, or if no key fits, which
            only happens when ``after`` extends ``before`` with minimum
            symbols (``"a"``/``"aa"``) or ``after`` is ``"a"``.
    """
    if not before and not after:
        return start()
    if not before:
        candidate = _key_below(after)
        if candidate is None:
            raise InvalidOrderError(before, after, f"no key sorts before {after!r}")
        return candidate
    if not after:
        return before + MID_SYMBOL

    if before >= after:
        raise InvalidOrderError(before, after)

    pos = 0
    shortest = min(len(before), len(after))
    while pos < shortest and before[pos] == after[pos]:
        pos += 1

    if pos == len(before):
        # before is a prefix of after: extend it below after's remainder.
        suffix = _key_below(after[pos:])
        if suffix is None:
            raise InvalidOrderError(
                before, after, f"no key fits between {before!r} and {after!r}"
            )
        return before + suffix

    if pos == len(after):  # pragma: no cover - excluded by the comparison above
        raise AssertionError(f"after ({after!r}) is a prefix of before ({before!r})")

    low, high = before[pos], after[pos]
    if ord(high) - ord(low) > 1:
        return before[:pos] + _shift(low, 1)

    # Adjacent symbols: make room inside before's tail.
    for index in range(pos + 1, len(before)):
        if before[index] < MAX_SYMBOL:
            return before[:index] + _shift(before[index], 1)
    return before + MID_SYMBOL


def needs_rebalance(key: str, threshold: int = DEFAULT_REBALANCE_THRESHOLD) -> bool:
    """Return True if ``key`` grew past ``threshold`` symbols.

    A non-positive threshold falls back to the default of 20.
    """
    if threshold <= 0:
        threshold = DEFAULT_REBALANCE_THRESHOLD
    return len(key) > threshold


def _encode(value: int, width: int) -> str:
    """Return ``value`` as a fixed-width numeral without trailing minimum symbols."""
    digits = []
    for _ in range(width):
        value, digit = divmod(value, BASE)
        digits.append(_shift(MIN_SYMBOL, digit))
    return "".join(reversed(digits)).rstrip(MIN_SYMBOL)


def generate_keys(count: int, spacing: int = DEFAULT_REBALANCE_SPACING) -> list[str]:
    """Return ``count`` strictly increasing keys, ``spacing`` steps apart.

    Item ``i`` is placed ``i * spacing`` steps above the minimum key in a
    fixed-width numeral over the key alphabet; the width is the smallest one
    that holds the whole collection. Index 0 is always ``"a"``. A larger
    spacing leaves more keys free between neighbors for later insertions.
    """
    if spacing <= 0:
        spacing = DEFAULT_REBALANCE_SPACING
    if count <= 0:
        return []

    highest = (count - 1) * spacing
    width = 1
    while BASE**width <= highest:
        width += 1

    keys = [MIN_SYMBOL]
    keys.extend(_encode(index * spacing, width) for index in range(1, count))
    return keys


def rebalance(
    keys: Sequence[str], spacing: int = DEFAULT_REBALANCE_SPACING
) -> dict[str, str]:
    """Map every key of a collection to a fresh, evenly spaced key.

    Args:
        keys: The collection's current keys in display order.
        spacing: Density knob; non-positive values fall back to 10.

    Returns:
        A mapping from each old key to its new key. Read in the input order,
        the new keys are strictly increasing.
    """
    return dict(zip(keys, generate_keys(len(keys), spacing)))
