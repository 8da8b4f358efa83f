"""
Quest Engine Pydantic Schemas for type safety and validation.

This module defines all data models used throughout the engine.
Single source of truth for data structures.
"""

from .quest_schema import (
    QuestStatus, RewardType, RewardKind, RewardOperation,
    QuestTemplateSchema, QuestSchema,
)
from .wallet_schema import WalletSchema
from .api_schema import (
    CreateQuestPayload, ProgressPayload,
    QuestListResponse, QuestResponse, QuestCountResponse, ProgressResponse,
    CompleteResponse, ReplaceResponse, DeleteResponse, RefillResponse,
    TemplateListResponse, ErrorResponse, HealthResponse,
)

__all__ = [
    "QuestStatus",
    "RewardType",
    "RewardKind",
    "RewardOperation",
    "QuestTemplateSchema",
    "QuestSchema",
    "WalletSchema",
    "CreateQuestPayload",
    "ProgressPayload",
    "QuestListResponse",
    "QuestResponse",
    "QuestCountResponse",
    "ProgressResponse",
    "CompleteResponse",
    "ReplaceResponse",
    "DeleteResponse",
    "RefillResponse",
    "TemplateListResponse",
    "ErrorResponse",
    "HealthResponse",
]
