from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Dict, Any


class UserBase(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    display_name: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)
    initial_balance: float = 10000.0
    settings: Optional[Dict[str, Any]] = None


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    display_name: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)
    initial_balance: Optional[float] = None
    settings: Optional[Dict[str, Any]] = None


class UserLogin(BaseModel):
    username: str
    password: str
