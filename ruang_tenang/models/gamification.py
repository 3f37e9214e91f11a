"""Gamification Pydantic models"""
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ActivityType(str, Enum):
    """User actions that can grant EXP"""
    CHAT_AI = "chat_ai"
    UPLOAD_ARTICLE = "upload_article"
    FORUM_COMMENT = "forum_comment"


class ActivityRule(BaseModel):
    """Points and daily cap for one activity type"""
    model_config = ConfigDict(frozen=True)

    points: int = Field(..., gt=0)
    daily_limit: Optional[int] = Field(default=None, ge=0)  # 0 or None = uncapped
    description: str = "Aktivitas lainnya"

    @property
    def is_capped(self) -> bool:
        return bool(self.daily_limit)


class LevelConfig(BaseModel):
    """One rung of the level ladder"""
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    level: int = Field(..., ge=1)
    min_exp: int = Field(..., ge=0)
    badge_name: str = Field(..., min_length=1, max_length=100)
    badge_icon: str = Field(..., min_length=1, max_length=50)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LevelView(BaseModel):
    """Resolved level for an EXP balance"""
    current_exp: int
    current_level: LevelConfig
    next_level: Optional[LevelConfig] = None
    exp_to_next_level: Optional[int] = None
    is_default: bool = False  # True when the level table could not place this balance


class AwardResult(BaseModel):
    """Outcome of one award attempt"""
    user_id: int
    activity_type: ActivityType
    day: date
    awarded: bool
    points: int = 0
    daily_count: Optional[int] = None  # None for uncapped activities
    daily_limit: Optional[int] = None
    new_total_exp: Optional[int] = None
    history_id: Optional[int] = None


class ExpHistoryRecord(BaseModel):
    """Immutable audit row for an accepted award"""
    id: Optional[int] = None
    user_id: int
    activity_type: str
    points: int
    description: str
    created_at: datetime


class ExpHistoryFilter(BaseModel):
    """Filters for EXP history listing"""
    user_id: int
    activity_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None  # inclusive
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ExpHistoryPage(BaseModel):
    """One page of EXP history"""
    data: list[ExpHistoryRecord]
    total: int
    page: int
    limit: int
    total_pages: int


class LeaderboardEntry(BaseModel):
    """User ranked by EXP with their level badge"""
    rank: int
    user_id: int
    name: str
    avatar: Optional[str] = None
    exp: int
    level: int
    badge_name: str
    badge_icon: str
