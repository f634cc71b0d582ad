"""Unit tests for the order-key allocator."""

import random
import string

import pytest

from link_manager.services.ordering import (
    InvalidOrderError,
    between,
    end,
    generate_keys,
    needs_rebalance,
    rebalance,
    start,
)


def _random_key(rng: random.Random) -> str:
    """Return a random key that, like every allocated key, does not end in 'a'."""
    body = "".join(rng.choice(string.ascii_lowercase) for _ in range(rng.randint(0, 5)))
    return body + rng.choice(string.ascii_lowercase[1:])


class TestBoundaries:
    """Fixed keys and open-ended bounds."""

    def test_start_and_end(self):
        assert start() == "n"
        assert end() == "z"

    def test_both_bounds_absent_returns_start(self):
        assert between("", "") == start()
        assert between(None, None) == "n"

    def test_before_absent_decrements_first_symbol(self):
        assert between("", "p") == "o"
        assert between(None, "p") < "p"

    def test_before_absent_with_symbol_one_above_minimum(self):
        assert between(None, "b") == "an"
        assert between(None, "ab") == "aan"

    def test_before_absent_with_low_first_symbol(self):
        for after in ("b", "ab", "aab", "aan", "azz"):
            key = between(None, after)
            assert "" < key < after

    def test_after_absent_appends_middle_symbol(self):
        assert between("m", "") == "mn"
        assert between("m", None) > "m"

    def test_nothing_sorts_before_minimum_key(self):
        with pytest.raises(InvalidOrderError):
            between(None, "a")

    def test_before_run_of_minimum_symbols_returns_shorter_run(self):
        assert between(None, "aa") == "a"
        assert between(None, "aaa") == "aa"


class TestBetween:
    """Keys strictly between two present bounds."""

    @pytest.mark.parametrize(
        "before,after",
        [("a", "c"), ("a", "b"), ("m", "o"), ("n", "z"), ("ay", "b"), ("azz", "b")],
    )
    def test_simple_inserts(self, before, after):
        key = between(before, after)
        assert before < key < after

    @pytest.mark.parametrize(
        "before,after",
        [("a", "ab"), ("a", "az"), ("abc", "abcd"), ("a", "aab"), ("n", "nb")],
    )
    def test_prefix_cases(self, before, after):
        key = between(before, after)
        assert before < key < after

    def test_wide_gap_uses_next_symbol(self):
        assert between("a", "c") == "b"
        assert between("ab", "ad") == "ac"

    def test_adjacent_symbols_extend_before(self):
        assert between("a", "b") == "an"

    def test_adjacent_symbols_increment_tail(self):
        assert between("an", "b") == "ao"
        assert between("azn", "b") == "azo"

    @pytest.mark.parametrize("before,after", [("a", "a"), ("b", "a"), ("abc", "ab")])
    def test_invalid_order(self, before, after):
        with pytest.raises(InvalidOrderError) as exc_info:
            between(before, after)
        assert exc_info.value.before == before
        assert exc_info.value.after == after

    def test_invalid_order_is_a_value_error(self):
        with pytest.raises(ValueError, match="invalid order"):
            between("b", "a")

    def test_no_room_after_minimum_extension(self):
        with pytest.raises(InvalidOrderError):
            between("a", "aa")

    def test_deterministic(self):
        assert between("abc", "abd") == between("abc", "abd")
        assert between(None, "q") == between(None, "q")

    def test_density_over_random_pairs(self):
        rng = random.Random(20240601)
        for _ in range(2000):
            first, second = _random_key(rng), _random_key(rng)
            if first == second:
                continue
            low, high = sorted((first, second))
            key = between(low, high)
            assert low < key < high, (low, high, key)
            assert not key.endswith("a")


class TestInsertionSequences:
    """Repeated insertions keep the collection sorted."""

    def test_multiple_insertions_between_last_two(self):
        positions = ["a", "z"]
        for _ in range(12):
            mid = between(positions[-2], positions[-1])
            positions.insert(len(positions) - 1, mid)
            assert positions == sorted(positions)
        assert len(set(positions)) == len(positions)

    def test_sequential_appends(self):
        positions = [start()]
        for _ in range(25):
            positions.append(between(positions[-1], ""))
        assert all(a < b for a, b in zip(positions, positions[1:]))

    def test_dense_inserts_between_adjacent_symbols(self):
        before, after = "a", "b"
        positions = [before]
        for _ in range(40):
            before = between(before, after)
            positions.append(before)
        positions.append(after)
        assert all(a < b for a, b in zip(positions, positions[1:]))

    def test_dense_inserts_towards_the_front(self):
        after = "n"
        positions = [after]
        for _ in range(40):
            after = between(None, after)
            positions.insert(0, after)
        assert all(a < b for a, b in zip(positions, positions[1:]))

    def test_random_insertions_stay_sorted(self):
        rng = random.Random(7)
        positions = [start()]
        for _ in range(300):
            slot = rng.randint(0, len(positions))
            before = positions[slot - 1] if slot > 0 else None
            after = positions[slot] if slot < len(positions) else None
            positions.insert(slot, between(before, after))
        assert positions == sorted(positions)
        assert len(set(positions)) == len(positions)


class TestNeedsRebalance:
    """Key length threshold checks."""

    @pytest.mark.parametrize(
        "key,threshold,expected",
        [
            ("a", 20, False),
            ("abcdefghij", 20, False),
            ("abcdefghijklmnopqrst", 20, False),
            ("abcdefghijklmnopqrstu", 20, True),
            ("abcde", 3, True),
            ("abcdefghijklmnopqrstuv", 0, True),
            ("abcdefghij", -5, False),
        ],
    )
    def test_threshold(self, key, threshold, expected):
        assert needs_rebalance(key, threshold) is expected

    def test_default_threshold(self):
        assert needs_rebalance("x" * 21) is True
        assert needs_rebalance("x" * 10) is False


class TestRebalance:
    """Bulk regeneration of a collection's keys."""

    def test_preserves_order_and_coverage(self):
        old = ["a", "aan", "aanm", "aanmz", "b"]
        mapping = rebalance(old, 10)
        assert set(mapping) == set(old)
        new = [mapping[key] for key in old]
        assert all(a < b for a, b in zip(new, new[1:]))

    def test_first_key_is_minimum(self):
        mapping = rebalance(["x", "y", "z"])
        assert mapping["x"] == "a"

    def test_example_spacing(self):
        assert generate_keys(5, 10) == ["a", "ak", "au", "be", "bo"]

    def test_empty_input(self):
        assert rebalance([]) == {}
        assert generate_keys(0) == []

    def test_non_positive_spacing_uses_default(self):
        keys = ["c", "d", "e", "f"]
        assert rebalance(keys, 0) == rebalance(keys, 10)
        assert rebalance(keys, -3) == rebalance(keys, 10)

    def test_deterministic(self):
        keys = ["b", "bn", "c"]
        assert rebalance(keys, 7) == rebalance(keys, 7)

    def test_larger_spacing_spreads_keys(self):
        assert generate_keys(3, 1) == ["a", "b", "c"]
        assert generate_keys(3, 10) == ["a", "k", "u"]

    def test_large_collections_stay_short(self):
        keys = generate_keys(5000, 10)
        assert all(a < b for a, b in zip(keys, keys[1:]))
        assert max(len(key) for key in keys) <= 4
        assert not any(needs_rebalance(key) for key in keys)
        assert not any(key.endswith("a") for key in keys[1:])

    def test_rebalanced_keys_leave_room_between_neighbors(self):
        keys = generate_keys(50, 10)
        for low, high in zip(keys, keys[1:]):
            assert low < between(low, high) < high
