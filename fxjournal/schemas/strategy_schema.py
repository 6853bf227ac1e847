from pydantic import BaseModel, Field
from typing import Optional, List


class StrategyCondition(BaseModel):
    id: Optional[str] = None
    label: str
    indicator: Optional[str] = None
    timeframe: Optional[str] = None
    expected_value: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None


class StrategyBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    rules: List[StrategyCondition] = []
    entry_conditions: List[StrategyCondition] = []
    exit_conditions: List[StrategyCondition] = []
    timeframes: List[str] = []
    risk_reward_ratio: Optional[float] = None
    notes: Optional[str] = None
    is_default: bool = False


class StrategyCreate(StrategyBase):
    user_id: int


class StrategyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    rules: Optional[List[StrategyCondition]] = None
    entry_conditions: Optional[List[StrategyCondition]] = None
    exit_conditions: Optional[List[StrategyCondition]] = None
    timeframes: Optional[List[str]] = None
    risk_reward_ratio: Optional[float] = None
    notes: Optional[str] = None
    is_default: Optional[bool] = None


class DefaultStrategiesRequest(BaseModel):
    user_id: int
