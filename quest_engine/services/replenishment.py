"""
Replenishment - пополнение пула активных квестов.

Each missing slot gets up to `max_attempts` rarity-weighted draws. A slot
that finds no eligible template stays empty; that is the normal state once
cooldowns have exhausted the catalog.
"""

import logging
from typing import List, TYPE_CHECKING

from exceptions import IneligibleError, PoolFullError, TemplateNotFoundError
from .catalog import QuestCatalog
from .results import QuestResult
from ..schemas import QuestSchema

if TYPE_CHECKING:
    from .quest_service import QuestService

logger = logging.getLogger("quest_replenisher")


class QuestReplenisher:
    """Refills a user's pool from the catalog through the eligibility gate."""

    def __init__(self, service: "QuestService", catalog: QuestCatalog, max_attempts: int = 10):
        self.service = service
        self.catalog = catalog
        self.max_attempts = max_attempts

    def fill_slot(self, user_id: str) -> QuestResult:
        """Try to issue one quest; returns the created quest or the reason none was."""
        for attempt in range(1, self.max_attempts + 1):
            template = self.catalog.random_by_rarity()
            if template is None:
                logger.warning("⚠️ Quest catalog is empty, nothing to draw")
                return QuestResult.rejected(TemplateNotFoundError("Quest catalog is empty"))

            result = self.service.create(user_id, template)
            if result.ok:
                logger.debug(f"Slot filled for user {user_id} on attempt {attempt} ({template.quest_type})")
                return result
            if isinstance(result.error, PoolFullError):
                return result

        logger.info(f"🕳️ No eligible template for user {user_id} after {self.max_attempts} draws")
        return QuestResult.rejected(IneligibleError(
            "No eligible quest available right now",
            context={"reason": "catalog_exhausted", "attempts": self.max_attempts},
        ))

    def fill(self, user_id: str) -> List[QuestSchema]:
        """Fill every free slot; returns the quests that were created."""
        deficit = self.service.max_active - self.service.quests.count_active(user_id)
        created: List[QuestSchema] = []

        for _ in range(max(0, deficit)):
            result = self.fill_slot(user_id)
            if result.ok:
                created.append(result.quest)
            elif isinstance(result.error, (PoolFullError, TemplateNotFoundError)):
                break

        if deficit > 0:
            logger.info(f"🔄 Replenished {len(created)}/{deficit} slot(s) for user {user_id}")
        return created
