"""
Eligibility Gate - можно ли выдать квест этого типа сейчас.

Checks run in order and stop at the first failure:
    1. an active quest of the same type exists
    2. cooldown since the last completion (cooldown_minutes > 0)
    3. daily cap on completions (max_per_day is set)

Quests that expired without completion count against neither cooldown
nor the daily cap.

The clock returns naive UTC; the daily cap resets at midnight in the
configured zone.
"""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional

from db_service import QuestRepository, REJECT_DUPLICATE, utc_now

logger = logging.getLogger("eligibility_gate")

REASON_DUPLICATE = REJECT_DUPLICATE
REASON_COOLDOWN = "cooldown"
REASON_DAILY_CAP = "daily_cap"


class EligibilityGate:
    """Decides whether a new quest of a given type may be issued to a user."""

    def __init__(self, quests: QuestRepository, clock: Callable[[], datetime] = utc_now,
                 day_zone: tzinfo = timezone.utc):
        self.quests = quests
        self.clock = clock
        self.day_zone = day_zone

    def check(self, user_id: str, quest_type: str, cooldown_minutes: int = 0,
              max_per_day: Optional[int] = None) -> Optional[str]:
        """
        Run the gate.

        Returns:
            None when the quest may be issued, otherwise the rejection reason
        """
        if self.quests.has_active_type(user_id, quest_type):
            logger.info(f"⛔ User {user_id} already has an active {quest_type} quest")
            return REASON_DUPLICATE

        now = self.clock()

        if cooldown_minutes and cooldown_minutes > 0:
            cutoff = now - timedelta(minutes=cooldown_minutes)
            if self.quests.count_completed_since(user_id, quest_type, cutoff) > 0:
                logger.info(f"⛔ User {user_id} is in cooldown for quest type {quest_type}")
                return REASON_COOLDOWN

        if max_per_day is not None:
            start_of_day = local_start_of_day(now, self.day_zone)
            completed_today = self.quests.count_completed_since(user_id, quest_type, start_of_day)
            if completed_today >= max_per_day:
                logger.info(
                    f"⛔ User {user_id} reached daily limit for {quest_type} "
                    f"({completed_today}/{max_per_day})"
                )
                return REASON_DAILY_CAP

        return None

    def can_issue(self, user_id: str, quest_type: str, cooldown_minutes: int = 0,
                  max_per_day: Optional[int] = None) -> bool:
        return self.check(user_id, quest_type, cooldown_minutes, max_per_day) is None


def local_start_of_day(now: datetime, zone: tzinfo) -> datetime:
    """Midnight of `now`'s calendar day in `zone`, as naive UTC."""
    local = now.replace(tzinfo=timezone.utc).astimezone(zone)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc).replace(tzinfo=None)
