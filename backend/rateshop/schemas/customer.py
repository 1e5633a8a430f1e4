"""
Customer schemas.
"""
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional


class CustomerCreate(BaseModel):
    name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    margin_percentage: Optional[float] = Field(default=None, gt=-100)
    minimum_profit: Optional[float] = Field(default=None, ge=0)


class CustomerUpdate(BaseModel):
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    margin_percentage: Optional[float] = Field(default=None, gt=-100)
    minimum_profit: Optional[float] = Field(default=None, ge=0)


class CustomerResponse(BaseModel):
    id: UUID
    name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    margin_percentage: Optional[float] = None
    minimum_profit: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True
