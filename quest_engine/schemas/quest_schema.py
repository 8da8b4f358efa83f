"""Quest-related Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field, computed_field, field_validator

from db_service import from_db_time


class QuestStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


class RewardType(str, Enum):
    """Type tag stored on the instance; selects the reward grammar branch."""
    MONEY = "money"
    COINS = "coins"
    ENERGY = "energy"
    MIXED = "mixed"
    WHEEL = "wheel"


class RewardKind(str, Enum):
    FLAT = "flat"
    CURRENCY = "currency"
    COINS = "coins"
    RESOURCE_POINTS = "resource-points"


class RewardOperation(BaseModel):
    """One typed reward operation produced by the reward parser."""
    kind: RewardKind
    magnitude: int = Field(default=0, ge=0)

    class Config:
        frozen = True


class QuestTemplateSchema(BaseModel):
    """Read-only quest blueprint owned by the catalog."""
    template_id: str = Field(..., min_length=1)
    quest_type: str = Field(..., min_length=1)
    title: str
    description: str = ""
    reward_type: RewardType
    reward_spec: str
    progress_target: int = Field(..., ge=1)
    icon: Optional[str] = None
    category: str = Field(default="daily", pattern="^(daily|video|trade|social|premium|crypto|energy)$")
    rarity: str = Field(default="common", pattern="^(common|rare|epic|legendary)$")
    expires_in_hours: Optional[float] = Field(default=None, gt=0)
    cooldown_minutes: int = Field(default=0, ge=0)
    max_per_day: Optional[int] = Field(default=None, ge=0)
    rarity_weight: float = Field(..., gt=0)

    class Config:
        frozen = True
        from_attributes = True


class QuestSchema(BaseModel):
    """Per-user quest instance as returned to callers."""
    id: int
    user_id: str
    template_id: Optional[str] = None
    quest_type: str
    title: str
    description: str = ""
    reward_type: RewardType
    reward_spec: str
    progress_current: int = Field(default=0, ge=0)
    progress_target: int = Field(..., ge=1)
    status: QuestStatus = QuestStatus.ACTIVE
    icon: Optional[str] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    time_remaining: Optional[int] = Field(default=None, description="Seconds until expiry")

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return v or ""

    @computed_field
    @property
    def is_ready_to_claim(self) -> bool:
        """Derived on read, never stored."""
        return self.status == QuestStatus.ACTIVE and self.progress_current >= self.progress_target

    @classmethod
    def from_row(cls, row: Dict[str, Any], now: Optional[datetime] = None) -> "QuestSchema":
        expires_at = from_db_time(row.get("expires_at"))
        time_remaining = None
        if expires_at is not None and now is not None:
            time_remaining = max(0, int((expires_at - now).total_seconds()))

        return cls(
            id=row["id"],
            user_id=row["user_id"],
            template_id=row.get("template_id"),
            quest_type=row["quest_type"],
            title=row["title"],
            description=row.get("description"),
            reward_type=row["reward_type"],
            reward_spec=row["reward_spec"],
            progress_current=row.get("progress_current") or 0,
            progress_target=row["progress_target"],
            status=row["status"],
            icon=row.get("icon"),
            created_at=from_db_time(row["created_at"]),
            expires_at=expires_at,
            completed_at=from_db_time(row.get("completed_at")),
            time_remaining=time_remaining,
        )

    class Config:
        from_attributes = True
