"""
pytest configuration и fixtures для всех тестов
"""

import os
import random
import sys
from datetime import datetime, timedelta

import pytest

# Добавляем путь к коду
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from db_service import (
    DatabaseConnectionPool, QuestRepository, WalletRepository, NotificationRepository,
    init_database, to_db_time,
)
from quest_engine.services import (
    QuestCatalog, QuestService, WalletService, NotificationService, build_templates,
)

NOW = datetime(2026, 10, 17, 12, 0, 0)

TEST_TEMPLATES = [
    {
        "template_id": "coin-bonus",
        "quest_type": "coin-bonus",
        "title": "Coin bonus",
        "description": "Collect bonus coins",
        "reward_type": "coins",
        "reward_spec": "500",
        "progress_target": 1,
        "category": "daily",
        "expires_in_hours": 6,
        "cooldown_minutes": 60,
        "max_per_day": 3,
        "rarity_weight": 10,
    },
    {
        "template_id": "cash-drop",
        "quest_type": "cash-drop",
        "title": "Cash drop",
        "reward_type": "money",
        "reward_spec": "1K",
        "progress_target": 1,
        "category": "daily",
        "expires_in_hours": None,
        "cooldown_minutes": 0,
        "max_per_day": None,
        "rarity_weight": 10,
    },
    {
        "template_id": "energy-boost",
        "quest_type": "energy-boost",
        "title": "Energy boost",
        "reward_type": "energy",
        "reward_spec": "20",
        "progress_target": 1,
        "category": "energy",
        "expires_in_hours": 8,
        "cooldown_minutes": 30,
        "max_per_day": 5,
        "rarity_weight": 10,
    },
    {
        "template_id": "active-trader",
        "quest_type": "active-trader",
        "title": "Active trader",
        "description": "Make 3 trades",
        "reward_type": "mixed",
        "reward_spec": "15_energy_1K_coins",
        "progress_target": 3,
        "category": "trade",
        "rarity": "rare",
        "expires_in_hours": 12,
        "cooldown_minutes": 60,
        "max_per_day": 2,
        "rarity_weight": 10,
    },
    {
        "template_id": "lucky-spin",
        "quest_type": "lucky-spin",
        "title": "Lucky spin",
        "reward_type": "wheel",
        "reward_spec": "random",
        "progress_target": 1,
        "category": "premium",
        "rarity": "epic",
        "expires_in_hours": 2,
        "cooldown_minutes": 45,
        "max_per_day": 3,
        "rarity_weight": 10,
    },
    {
        "template_id": "profile-check",
        "quest_type": "profile-check",
        "title": "Profile check",
        "reward_type": "coins",
        "reward_spec": "75",
        "progress_target": 1,
        "category": "social",
        "expires_in_hours": 18,
        "cooldown_minutes": 90,
        "max_per_day": 3,
        "rarity_weight": 10,
    },
]


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ==================== GLOBAL FIXTURES ====================

@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def pool(tmp_path):
    """Файловая БД на тест (потоки должны видеть одну базу)"""
    db_pool = DatabaseConnectionPool(str(tmp_path / "quests.db"), timeout=5)
    init_database(db_pool)
    yield db_pool
    db_pool.close_all()


@pytest.fixture
def quest_repository(pool):
    return QuestRepository(pool)


@pytest.fixture
def catalog():
    return QuestCatalog(build_templates(TEST_TEMPLATES), rng=random.Random(42))


@pytest.fixture
def wallet_service(pool):
    return WalletService(WalletRepository(pool), energy_cycle_size=100)


@pytest.fixture
def notification_service(pool, clock):
    return NotificationService(NotificationRepository(pool), clock)


@pytest.fixture
def quest_service(quest_repository, catalog, wallet_service, notification_service, clock):
    return QuestService(
        quests=quest_repository,
        catalog=catalog,
        wallet=wallet_service,
        notifier=notification_service,
        max_active=3,
        replenish_attempts=30,
        notifiable_types={"lucky-spin"},
        clock=clock,
    )


@pytest.fixture
def insert_quest(quest_repository, clock):
    """Вставляет строку квеста напрямую, минуя сервис"""

    def _insert(user_id="user-1", quest_type="coin-bonus", status="active", created_at=None,
                completed_at=None, expires_at=None, progress_target=1, reward_type="coins",
                reward_spec="500"):
        return quest_repository.create(
            user_id=user_id,
            template_id=quest_type,
            quest_type=quest_type,
            title=quest_type.title(),
            description="",
            reward_type=reward_type,
            reward_spec=reward_spec,
            progress_current=progress_target if status == "completed" else 0,
            progress_target=progress_target,
            status=status,
            icon=None,
            created_at=to_db_time(created_at or clock()),
            expires_at=to_db_time(expires_at),
            completed_at=to_db_time(completed_at),
        )

    return _insert


# ==================== MARKERS ====================

def pytest_configure(config):
    """Регистрируем custom markers"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Модифицируем items для добавления маркеров"""
    for item in items:
        if "api_endpoints" in item.nodeid or "end_to_end" in item.nodeid:
            item.add_marker(pytest.mark.integration)
