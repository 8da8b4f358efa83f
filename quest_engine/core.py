"""
Engine Core - сборка сервисов движка квестов.

Builds the connection pool, repositories, catalog and services once and
hands them to the API layer.
"""

import logging
import random
from datetime import datetime, timezone, tzinfo
from typing import Optional, Callable
from zoneinfo import ZoneInfo

import config
from db_service import (
    DatabaseConnectionPool, QuestRepository, WalletRepository, NotificationRepository,
    init_pool, utc_now,
)
from .services import QuestService, QuestCatalog, WalletService, NotificationService, load_catalog

logger = logging.getLogger("engine_core")


def load_zone(name: str) -> tzinfo:
    """Zone in which the daily cap resets; UTC needs no tz database."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


class QuestEngineCore:
    """Central wiring for the quest engine."""

    def __init__(
        self,
        pool: Optional[DatabaseConnectionPool] = None,
        catalog: Optional[QuestCatalog] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        if pool is None:
            pool = init_pool(config.DATABASE_PATH, config.DATABASE_TIMEOUT)
        if catalog is None:
            catalog = load_catalog(config.QUEST_CATALOG_PATH, rng=rng)
        self.pool = pool
        self.catalog = catalog
        self.clock = clock

        self.quest_repository = QuestRepository(self.pool)
        self.wallet_service = WalletService(WalletRepository(self.pool), config.ENERGY_CYCLE_SIZE)
        self.notification_service = NotificationService(NotificationRepository(self.pool), clock)
        self.quest_service = QuestService(
            quests=self.quest_repository,
            catalog=self.catalog,
            wallet=self.wallet_service,
            notifier=self.notification_service,
            max_active=config.MAX_ACTIVE_QUESTS,
            replenish_attempts=config.REPLENISH_MAX_ATTEMPTS,
            notifiable_types=config.NOTIFIABLE_QUEST_TYPES,
            default_icon=config.DEFAULT_QUEST_ICON,
            clock=clock,
            day_zone=load_zone(config.QUEST_TIMEZONE),
        )
        logger.info(
            f"📊 Quest engine ready: {len(self.catalog)} templates, "
            f"pool size {config.MAX_ACTIVE_QUESTS}, db {self.pool.db_path}"
        )

    def shutdown(self) -> None:
        self.pool.close_all()
        logger.info("🛑 Quest engine stopped")


# Global engine instance
_engine_core_instance: Optional[QuestEngineCore] = None


def get_engine_core() -> QuestEngineCore:
    """Get or create engine core instance."""
    global _engine_core_instance
    if _engine_core_instance is None:
        _engine_core_instance = QuestEngineCore()
    return _engine_core_instance


def set_engine_core(core: Optional[QuestEngineCore]) -> None:
    """Replace the global instance (startup wiring and tests)."""
    global _engine_core_instance
    _engine_core_instance = core
