"""Tests for the deterministic RNG used by tournament brackets and matches.

Tests cover:
- Determinism (same seed -> same result)
- Variety (different seeds -> different results)
- Dice notation parsing and validation
- Deterministic shuffling
- Property-based tests
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from myrefell.utils.rng import generate_seed, roll_dice, shuffled


class TestGenerateSeed:
    """Tests for generate_seed function."""

    def test_basic_seed_generation(self):
        seed = generate_seed("match", 7, 1, 2, 3)
        assert seed == "match:7:1:2:3"

    def test_namespace_only(self):
        assert generate_seed("bracket") == "bracket"

    def test_mixed_part_types(self):
        seed = generate_seed("tournament", 7, "round", 1)
        assert seed.split(":") == ["tournament", "7", "round", "1"]

    def test_different_parameters_produce_different_seeds(self):
        seeds = {
            generate_seed("match", 1, 1, 1),
            generate_seed("match", 2, 1, 1),
            generate_seed("match", 1, 2, 1),
            generate_seed("match", 1, 1, 2),
            generate_seed("bracket", 1, 1, 1),
        }
        assert len(seeds) == 5, "All seeds should be unique"

    def test_empty_namespace_raises_error(self):
        with pytest.raises(ValueError, match="namespace must not be empty"):
            generate_seed("", 1)

    def test_negative_part_raises_error(self):
        with pytest.raises(ValueError, match="non-negative"):
            generate_seed("match", -1)

    def test_zero_parts_allowed(self):
        assert generate_seed("match", 0, 0) == "match:0:0"

    @given(
        tournament_id=st.integers(min_value=0, max_value=10000),
        round_number=st.integers(min_value=0, max_value=64),
    )
    def test_seed_generation_properties(self, tournament_id, round_number):
        """Property-based test: seed generation always produces valid format."""
        seed = generate_seed("match", tournament_id, round_number)
        assert seed == f"match:{tournament_id}:{round_number}"


class TestRollDice:
    """Tests for roll_dice function."""

    def test_determinism_same_seed_same_result(self):
        seed = generate_seed("match", 1, 1, 1, 1)

        assert roll_dice(seed, "1d100") == roll_dice(seed, "1d100")

    def test_different_seeds_different_results(self):
        differences = 0
        for exchange in range(10):
            first = roll_dice(generate_seed("match", 1, 1, 1, exchange, 1), "1d100")
            second = roll_dice(generate_seed("match", 1, 1, 1, exchange, 2), "1d100")
            if first["total"] != second["total"]:
                differences += 1
        assert differences > 0, "Different seeds should produce some different results"

    def test_1d100_notation(self):
        seed = generate_seed("match", 3, 1, 1, 1)
        result = roll_dice(seed, "1d100")

        assert result["notation"] == "1d100"
        assert len(result["rolls"]) == 1
        assert 1 <= result["total"] <= 100
        assert result["seed"] == seed

    def test_default_notation_is_1d100(self):
        result = roll_dice(generate_seed("match", 4))
        assert result["notation"] == "1d100"
        assert len(result["rolls"]) == 1

    def test_invalid_notation_raises_error(self):
        seed = generate_seed("match", 5)
        for notation in ["2x6", "d6", "2d", "2.5d6", "", "abc", "-2d6"]:
            with pytest.raises(ValueError, match="Invalid dice notation"):
                roll_dice(seed, notation)

    def test_zero_dice_raises_error(self):
        with pytest.raises(ValueError, match="Number of dice must be positive"):
            roll_dice(generate_seed("match", 6), "0d6")

    def test_zero_sides_raises_error(self):
        with pytest.raises(ValueError, match="Number of sides must be positive"):
            roll_dice(generate_seed("match", 7), "2d0")

    def test_case_insensitive(self):
        seed = generate_seed("match", 8)
        assert roll_dice(seed, "2d6")["rolls"] == roll_dice(seed, "2D6")["rolls"]

    @given(
        num_dice=st.integers(min_value=1, max_value=10),
        num_sides=st.integers(min_value=2, max_value=100),
    )
    def test_dice_roll_properties(self, num_dice, num_sides):
        """Property-based test: dice rolls are always in valid range."""
        result = roll_dice(generate_seed("property", 1), f"{num_dice}d{num_sides}")

        assert len(result["rolls"]) == num_dice
        assert all(1 <= roll <= num_sides for roll in result["rolls"])
        assert num_dice <= result["total"] <= num_dice * num_sides


class TestShuffled:
    """Tests for shuffled function."""

    def test_same_seed_same_order(self):
        items = list(range(16))
        seed = generate_seed("bracket", 12)
        assert shuffled(seed, items) == shuffled(seed, items)

    def test_input_is_not_modified(self):
        items = ["a", "b", "c", "d"]
        shuffled(generate_seed("bracket", 1), items)
        assert items == ["a", "b", "c", "d"]

    def test_different_seeds_give_some_different_orders(self):
        items = list(range(8))
        orders = {tuple(shuffled(generate_seed("bracket", i), items)) for i in range(10)}
        assert len(orders) > 1

    def test_empty_list(self):
        assert shuffled(generate_seed("bracket", 1), []) == []

    @given(st.lists(st.integers(), max_size=40), st.integers(min_value=0, max_value=1000))
    def test_shuffle_is_a_permutation(self, items, tournament_id):
        result = shuffled(generate_seed("bracket", tournament_id), items)
        assert sorted(result) == sorted(items)
