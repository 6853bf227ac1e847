from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from fxjournal.services.forex_calculator import normalize_pair

IMAGE_FIELDS = ("entry_image", "entry_image_m15", "exit_image", "exit_image_m15")

# May be omitted from an update but never cleared
REQUIRED_TRADE_FIELDS = ("pair", "direction", "entry_price", "stop_loss", "take_profit", "lot_size", "entry_date")


class ConditionCheck(BaseModel):
    condition_id: str
    label: Optional[str] = None
    checked: bool = False
    passed: bool = False
    notes: Optional[str] = None


class StrategyChecks(BaseModel):
    rules: List[ConditionCheck] = []
    entry_conditions: List[ConditionCheck] = []
    exit_conditions: List[ConditionCheck] = []


def _direction(v):
    if v is None:
        return v
    v = v.strip().upper()
    if v not in ("BUY", "SELL"):
        raise ValueError("direction must be BUY or SELL")
    return v


class TradeBase(BaseModel):
    pair: str
    direction: str
    entry_price: float
    stop_loss: float
    take_profit: float
    lot_size: float = Field(..., gt=0)
    entry_date: datetime
    close_date: Optional[datetime] = None
    exit_price: Optional[float] = None
    result: Optional[str] = None
    pips: Optional[float] = None
    profit_loss: Optional[float] = None
    closing_note: Optional[str] = None

    strategy: Optional[str] = None
    strategy_id: Optional[int] = None
    strategy_checks: Optional[StrategyChecks] = None
    tech_pattern: Optional[str] = None
    market_condition: Optional[str] = None
    session_type: Optional[str] = None
    has_news: bool = False
    notes: Optional[str] = None

    # Psychology / discipline
    emotion: Optional[str] = None
    followed_plan: bool = True
    entered_early: bool = False
    revenge: bool = False
    over_leveraged: bool = False
    moved_stop_loss: bool = False

    # Chart images (H4 and M15)
    entry_image: Optional[str] = None
    entry_image_m15: Optional[str] = None
    exit_image: Optional[str] = None
    exit_image_m15: Optional[str] = None

    @field_validator('pair')
    def validate_pair(cls, v):
        v = normalize_pair(v)
        if not v:
            raise ValueError('pair is required')
        return v

    @field_validator('direction')
    def validate_direction(cls, v):
        return _direction(v)


class TradeCreate(TradeBase):
    user_id: int


class TradeUpdate(BaseModel):
    """Partial update: only the fields sent are changed"""
    pair: Optional[str] = None
    direction: Optional[str] = None
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    lot_size: Optional[float] = Field(None, gt=0)
    entry_date: Optional[datetime] = None
    close_date: Optional[datetime] = None
    exit_price: Optional[float] = None
    result: Optional[str] = None
    pips: Optional[float] = None
    profit_loss: Optional[float] = None
    closing_note: Optional[str] = None
    strategy: Optional[str] = None
    strategy_id: Optional[int] = None
    strategy_checks: Optional[StrategyChecks] = None
    tech_pattern: Optional[str] = None
    market_condition: Optional[str] = None
    session_type: Optional[str] = None
    has_news: Optional[bool] = None
    notes: Optional[str] = None
    emotion: Optional[str] = None
    followed_plan: Optional[bool] = None
    entered_early: Optional[bool] = None
    revenge: Optional[bool] = None
    over_leveraged: Optional[bool] = None
    moved_stop_loss: Optional[bool] = None
    entry_image: Optional[str] = None
    entry_image_m15: Optional[str] = None
    exit_image: Optional[str] = None
    exit_image_m15: Optional[str] = None

    @field_validator(*REQUIRED_TRADE_FIELDS, mode="before")
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator('pair')
    def validate_pair(cls, v):
        return normalize_pair(v) if v is not None else v

    @field_validator('direction')
    def validate_direction(cls, v):
        return _direction(v)


class TradeClose(BaseModel):
    exit_price: float
    result: str
    close_date: Optional[datetime] = None
    closing_note: Optional[str] = None
    pips: Optional[float] = None
    profit_loss: Optional[float] = None
    exit_image: Optional[str] = None
    exit_image_m15: Optional[str] = None
