"""
Services package initialization.

Exports all service classes for easy importing.
"""

from .reward_parser import parse_magnitude, parse_reward, resolve_reward
from .catalog import QuestCatalog, load_catalog, build_templates
from .eligibility import EligibilityGate
from .results import QuestResult
from .replenishment import QuestReplenisher
from .quest_service import QuestService, UserLocks
from .wallet_service import WalletService
from .notification_service import NotificationService

__all__ = [
    "parse_magnitude",
    "parse_reward",
    "resolve_reward",
    "QuestCatalog",
    "load_catalog",
    "build_templates",
    "EligibilityGate",
    "QuestResult",
    "QuestReplenisher",
    "QuestService",
    "UserLocks",
    "WalletService",
    "NotificationService",
]
