"""
Reward parser tests: flat magnitudes, composite decomposition, type tags.
"""

import pytest

from quest_engine.schemas import RewardKind, RewardOperation, RewardType
from quest_engine.services import parse_magnitude, parse_reward, resolve_reward


def op(kind, magnitude):
    return RewardOperation(kind=kind, magnitude=magnitude)


# ============================================================================
# MAGNITUDES
# ============================================================================

class TestParseMagnitude:
    """Digits with an optional K/M suffix."""

    @pytest.mark.parametrize("token,expected", [
        ("0", 0),
        ("1000", 1000),
        ("15K", 15_000),
        ("2M", 2_000_000),
        (" 7K ", 7_000),
    ])
    def test_valid_tokens(self, token, expected):
        assert parse_magnitude(token) == expected

    @pytest.mark.parametrize("token", ["garbage", "", "1.5K", "-5", "5k", "K", "10KM", None])
    def test_unparsable_tokens_are_zero(self, token):
        assert parse_magnitude(token) == 0


# ============================================================================
# parse_reward
# ============================================================================

class TestParseReward:
    """Decoding without the type tag."""

    def test_composite_energy_and_coins(self):
        assert parse_reward("15_energy_1K_coins") == [
            op(RewardKind.RESOURCE_POINTS, 15),
            op(RewardKind.COINS, 1000),
        ]

    def test_composite_energy_and_money(self):
        assert parse_reward("30_energy_2M_money") == [
            op(RewardKind.RESOURCE_POINTS, 30),
            op(RewardKind.CURRENCY, 2_000_000),
        ]

    def test_flat_spec(self):
        assert parse_reward("2M") == [op(RewardKind.FLAT, 2_000_000)]

    def test_garbage_is_flat_zero(self):
        assert parse_reward("garbage") == [op(RewardKind.FLAT, 0)]

    def test_composite_without_secondary(self):
        """Only the resource points survive when the secondary part is missing."""
        assert parse_reward("20_energy_") == [op(RewardKind.RESOURCE_POINTS, 20)]

    def test_composite_unknown_secondary_type(self):
        assert parse_reward("20_energy_5K_gems") == [op(RewardKind.RESOURCE_POINTS, 20)]

    def test_composite_extra_segments_ignored(self):
        assert parse_reward("10_energy_1K_coins_5_money") == [
            op(RewardKind.RESOURCE_POINTS, 10),
            op(RewardKind.COINS, 1000),
        ]

    def test_composite_bad_points_are_zero(self):
        assert parse_reward("abc_energy_1K_coins") == [
            op(RewardKind.RESOURCE_POINTS, 0),
            op(RewardKind.COINS, 1000),
        ]


# ============================================================================
# resolve_reward
# ============================================================================

class TestResolveReward:
    """Type tag picks the grammar branch and the wallet operation."""

    def test_money_is_currency(self):
        assert resolve_reward(RewardType.MONEY, "1K") == [op(RewardKind.CURRENCY, 1000)]

    def test_coins(self):
        assert resolve_reward(RewardType.COINS, "500") == [op(RewardKind.COINS, 500)]

    def test_energy_is_resource_points(self):
        assert resolve_reward(RewardType.ENERGY, "25") == [op(RewardKind.RESOURCE_POINTS, 25)]

    def test_mixed_uses_composite_grammar(self):
        assert resolve_reward(RewardType.MIXED, "15_energy_1K_coins") == [
            op(RewardKind.RESOURCE_POINTS, 15),
            op(RewardKind.COINS, 1000),
        ]

    def test_mixed_without_marker_yields_nothing(self):
        assert resolve_reward(RewardType.MIXED, "1K") == []

    def test_wheel_yields_nothing(self):
        assert resolve_reward(RewardType.WHEEL, "random") == []

    def test_accepts_plain_string_tag(self):
        assert resolve_reward("coins", "3K") == [op(RewardKind.COINS, 3000)]

    def test_flat_type_with_composite_spec_is_zero(self):
        assert resolve_reward(RewardType.COINS, "15_energy_1K_coins") == [op(RewardKind.COINS, 0)]

    def test_unknown_type_tag_raises(self):
        with pytest.raises(ValueError):
            resolve_reward("gems", "100")
