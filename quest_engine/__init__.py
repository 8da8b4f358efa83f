"""
Quest Engine Package.

Issues, tracks, expires, replenishes and rewards a bounded pool of
time-limited quests per user.

Structure:
├── services/         # Lifecycle, catalog, eligibility, rewards, wallet, notifications
├── schemas/          # Pydantic data models
├── interfaces.py     # Wallet / Notifier collaborator contracts
├── catalog_data.py   # Built-in quest templates
├── core.py           # Service wiring
└── __init__.py       # Package exports
"""

from .core import QuestEngineCore, get_engine_core, set_engine_core
from .interfaces import Wallet, Notifier, EnergyResult
from .services import (
    QuestService, QuestCatalog, QuestReplenisher, EligibilityGate, QuestResult,
    WalletService, NotificationService, load_catalog, parse_reward, resolve_reward,
)
from .schemas import (
    QuestStatus, RewardType, RewardKind, RewardOperation,
    QuestTemplateSchema, QuestSchema, WalletSchema,
)

__version__ = "1.0.0"
__all__ = [
    # Core
    "QuestEngineCore",
    "get_engine_core",
    "set_engine_core",
    # Interfaces
    "Wallet",
    "Notifier",
    "EnergyResult",
    # Services
    "QuestService",
    "QuestCatalog",
    "QuestReplenisher",
    "EligibilityGate",
    "QuestResult",
    "WalletService",
    "NotificationService",
    "load_catalog",
    "parse_reward",
    "resolve_reward",
    # Schemas
    "QuestStatus",
    "RewardType",
    "RewardKind",
    "RewardOperation",
    "QuestTemplateSchema",
    "QuestSchema",
    "WalletSchema",
]
