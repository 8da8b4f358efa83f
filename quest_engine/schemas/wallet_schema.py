"""Wallet-related Pydantic schemas."""

from pydantic import BaseModel, Field, field_validator


class WalletSchema(BaseModel):
    """Snapshot of a user's wallet."""
    user_id: str
    balance: float = Field(default=0.0)
    coins: int = Field(default=0)
    energy: int = Field(default=0, description="Progress towards the next energy cycle")
    energy_cycles: int = Field(default=0)

    @field_validator('coins', 'energy', 'energy_cycles')
    @classmethod
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError('Value must be non-negative')
        return v

    class Config:
        from_attributes = True
