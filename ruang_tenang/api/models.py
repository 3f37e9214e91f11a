"""Pydantic models for API request/response validation"""
from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from ruang_tenang.models.gamification import ExpHistoryRecord, LeaderboardEntry, LevelConfig


class UserLevelResponse(BaseModel):
    """Level and badge for a user's profile"""
    user_id: int
    level: int = Field(..., description="Current level number")
    badge_name: str
    badge_icon: str
    current_exp: int = Field(..., description="Total EXP balance")
    next_level_exp: Optional[int] = Field(
        default=None,
        description="EXP threshold of the next level (null at the top of the ladder)"
    )
    exp_to_next_level: Optional[int] = Field(
        default=None,
        description="EXP still needed for the next level"
    )
    is_default: bool = Field(
        default=False,
        description="True when the level table could not place this balance"
    )


class ExpHistoryResponse(BaseModel):
    """One page of EXP history"""
    data: List[ExpHistoryRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class ActivityTypesResponse(BaseModel):
    """Activity types present in EXP history"""
    activity_types: List[str]


class LevelConfigRequest(BaseModel):
    """Request to create or replace a level"""
    level: int = Field(..., ge=1, description="Level number")
    min_exp: int = Field(..., ge=0, description="EXP needed to reach this level")
    badge_name: str = Field(..., min_length=1, max_length=100)
    badge_icon: str = Field(..., min_length=1, max_length=50)

    def to_config(self) -> LevelConfig:
        return LevelConfig(**self.model_dump())


class LevelConfigResponse(BaseModel):
    """A configured level"""
    id: Optional[int] = None
    level: int
    min_exp: int
    badge_name: str
    badge_icon: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_config(cls, config: LevelConfig) -> "LevelConfigResponse":
        return cls(**config.model_dump())


class LevelConfigListResponse(BaseModel):
    """All configured levels, level ascending"""
    levels: List[LevelConfigResponse]
    count: int


class LeaderboardResponse(BaseModel):
    """Top users by EXP"""
    entries: List[LeaderboardEntry]
    count: int


class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    timestamp: datetime = Field(..., description="Check timestamp")

