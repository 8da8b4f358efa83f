"""
Reward Parser - разбор строки награды.

Two shapes are recognized:
    flat       "1000", "15K", "2M"
    composite  "<points>_energy_<amount><K|M>_<coins|money>"

Pure functions, no I/O.
"""

import logging
import re
from typing import List

from ..schemas import RewardKind, RewardOperation, RewardType

logger = logging.getLogger("reward_parser")

MAGNITUDE_PATTERN = re.compile(r"^(\d+)([KM]?)$")
SUFFIX_MULTIPLIERS = {"": 1, "K": 1_000, "M": 1_000_000}

COMPOSITE_MARKER = "_energy_"
SECONDARY_KINDS = {
    "coins": RewardKind.COINS,
    "money": RewardKind.CURRENCY,
}

FLAT_KINDS = {
    RewardType.MONEY: RewardKind.CURRENCY,
    RewardType.COINS: RewardKind.COINS,
    RewardType.ENERGY: RewardKind.RESOURCE_POINTS,
}


def parse_magnitude(token: str) -> int:
    """
    Parse a magnitude token.

    Args:
        token: digits optionally followed by K (x1,000) or M (x1,000,000)

    Returns:
        int: magnitude, 0 when the token is not parsable
    """
    match = MAGNITUDE_PATTERN.match((token or "").strip())
    if not match:
        logger.warning(f"⚠️ Unparsable reward magnitude: {token!r}")
        return 0
    digits, suffix = match.groups()
    return int(digits) * SUFFIX_MULTIPLIERS[suffix]


def is_composite(spec: str) -> bool:
    return COMPOSITE_MARKER in (spec or "")


def parse_composite(spec: str) -> List[RewardOperation]:
    """
    Decompose "<points>_energy_<amount>_<type>" positionally.

    Only one secondary reward is understood; trailing segments are ignored
    and logged.
    """
    parts = spec.split("_")
    operations = [RewardOperation(kind=RewardKind.RESOURCE_POINTS, magnitude=parse_magnitude(parts[0]))]

    if len(parts) < 4:
        logger.warning(f"⚠️ Composite reward without secondary part: {spec!r}")
        return operations
    if len(parts) > 4:
        logger.warning(f"⚠️ Composite reward has extra segments, ignoring {parts[4:]}: {spec!r}")

    secondary_kind = SECONDARY_KINDS.get(parts[3])
    if secondary_kind is None:
        logger.warning(f"⚠️ Unknown secondary reward type {parts[3]!r} in {spec!r}")
        return operations

    operations.append(RewardOperation(kind=secondary_kind, magnitude=parse_magnitude(parts[2])))
    return operations


def parse_reward(spec: str) -> List[RewardOperation]:
    """Decode a reward string without looking at its type tag."""
    if is_composite(spec):
        return parse_composite(spec)
    return [RewardOperation(kind=RewardKind.FLAT, magnitude=parse_magnitude(spec))]


def resolve_reward(reward_type: RewardType, spec: str) -> List[RewardOperation]:
    """
    Turn a stored (type tag, spec) pair into wallet operations.

    money/coins/energy read the spec as a flat magnitude, mixed uses the
    composite grammar, wheel yields nothing here and is delegated to the
    prize wheel by the caller.
    """
    reward_type = RewardType(reward_type)

    if reward_type == RewardType.WHEEL:
        return []

    if reward_type == RewardType.MIXED:
        if not is_composite(spec):
            logger.warning(f"⚠️ Mixed reward without composite marker: {spec!r}")
            return []
        return parse_composite(spec)

    return [RewardOperation(kind=FLAT_KINDS[reward_type], magnitude=parse_magnitude(spec))]
