"""Request and response models for the quest HTTP surface."""

from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from .quest_schema import QuestSchema, QuestTemplateSchema, RewardOperation


class CreateQuestPayload(BaseModel):
    """Body of POST /quests; without template_id a random template is drawn."""
    template_id: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ProgressPayload(BaseModel):
    progress: int = Field(..., ge=0)


class QuestListResponse(BaseModel):
    quests: List[QuestSchema] = Field(default_factory=list)
    count: int = 0
    max_quests: int


class QuestResponse(BaseModel):
    quest: QuestSchema


class QuestCountResponse(BaseModel):
    count: int
    max_quests: int


class ProgressResponse(BaseModel):
    quest: QuestSchema
    is_ready_to_claim: bool
    reward_claimed: bool = False


class CompleteResponse(BaseModel):
    success: bool = True
    completed_quest: QuestSchema
    new_quest: Optional[QuestSchema] = None
    rewards: List[RewardOperation] = Field(default_factory=list)
    wheel_spin: bool = False


class ReplaceResponse(BaseModel):
    success: bool = True
    new_quest: Optional[QuestSchema] = None


class DeleteResponse(BaseModel):
    success: bool


class RefillResponse(BaseModel):
    created: List[QuestSchema] = Field(default_factory=list)
    quests: List[QuestSchema] = Field(default_factory=list)
    count: int = 0
    max_quests: int


class TemplateListResponse(BaseModel):
    templates: List[QuestTemplateSchema] = Field(default_factory=list)
    count: int = 0


class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: str = ""
    context: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    max_quests: int
    catalog_size: int
    uptime_seconds: Optional[float] = None
