"""
Carrier directory schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class CarrierInfo(BaseModel):
    id: str
    name: str
    scac: Optional[str] = None
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    account_code: Optional[str] = None


class CarrierGroup(BaseModel):
    group_code: str
    group_name: str
    carriers: List[CarrierInfo] = Field(default_factory=list)


class ServiceLevelInfo(BaseModel):
    code: str
    description: Optional[str] = None
    carrier_code: Optional[str] = None
