from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime

from fxjournal.services.goal_service import GOAL_TARGET_TYPES

TargetType = Literal[GOAL_TARGET_TYPES]
Priority = Literal["low", "medium", "high"]


class MilestoneBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_value: float


class MilestoneCreate(MilestoneBase):
    pass


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    target_value: Optional[float] = None
    is_completed: Optional[bool] = None


class GoalBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    target_type: TargetType
    target_value: float
    start_date: datetime
    end_date: datetime
    color: Optional[str] = None
    priority: Priority = "medium"

    @model_validator(mode='after')
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must not be before start_date')
        return self


class GoalCreate(GoalBase):
    user_id: int
    milestones: List[MilestoneCreate] = []


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    target_type: Optional[TargetType] = None
    target_value: Optional[float] = None
    current_value: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_completed: Optional[bool] = None
    color: Optional[str] = None
    priority: Optional[Priority] = None
