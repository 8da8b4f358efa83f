"""Typed outcome of a lifecycle operation."""

from dataclasses import dataclass, field
from typing import Optional, List

from exceptions import QuestRejectedError
from ..schemas import QuestSchema, RewardOperation


@dataclass
class QuestResult:
    """
    Either a successful outcome (quest and optionally a replenished
    new_quest) or the expected rejection that prevented it.
    """
    quest: Optional[QuestSchema] = None
    new_quest: Optional[QuestSchema] = None
    rewards: List[RewardOperation] = field(default_factory=list)
    wheel_spin: bool = False
    error: Optional[QuestRejectedError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def rejected(cls, error: QuestRejectedError) -> "QuestResult":
        return cls(error=error)
