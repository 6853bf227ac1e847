from pydantic import BaseModel, field_validator
from typing import Optional, Literal

from fxjournal.services.forex_calculator import normalize_pair


class CaptureRequest(BaseModel):
    pair: str
    timeframe: Literal["H4", "M15"] = "H4"
    userId: Optional[str] = None
    tradeId: Optional[str] = None

    @field_validator('pair')
    def validate_pair(cls, v):
        v = normalize_pair(v)
        if not v:
            raise ValueError('pair is required')
        return v


class CaptureAllRequest(BaseModel):
    pair: str
    userId: Optional[str] = None
    tradeId: Optional[str] = None

    @field_validator('pair')
    def validate_pair(cls, v):
        v = normalize_pair(v)
        if not v:
            raise ValueError('pair is required')
        return v


class ImageDeleteRequest(BaseModel):
    publicId: Optional[str] = None
    imageUrl: Optional[str] = None
