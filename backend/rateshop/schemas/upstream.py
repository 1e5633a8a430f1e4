"""
Wire-level response shapes for the two upstream quoting networks.

These are validated at the client boundary; anything that does not fit is
dropped with a warning instead of being passed around as a loose dict.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RateCharge(_Wire):
    code: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = 0.0


class RateQuoteDetail(_Wire):
    total: Optional[float] = None
    subtotal: Optional[float] = None
    charges: List[RateCharge] = Field(default_factory=list)


class ServiceLevelRef(_Wire):
    code: Optional[str] = None
    description: Optional[str] = None


class TransitDaysRangeRef(_Wire):
    minimum: Optional[int] = None
    maximum: Optional[int] = None


class Project44RateQuote(_Wire):
    id: Optional[str] = None
    carrier_code: Optional[str] = None
    service_level: Optional[ServiceLevelRef] = None
    transit_days: Optional[int] = None
    transit_days_range: Optional[TransitDaysRangeRef] = None
    rate_quote_detail: Optional[RateQuoteDetail] = None
    contract_id: Optional[str] = None
    currency_code: Optional[str] = None
    lane_type: Optional[str] = None
    quote_effective_date_time: Optional[str] = None
    quote_expiration_date_time: Optional[str] = None
    delivery_date_time: Optional[str] = None

    @property
    def total(self) -> Optional[float]:
        return self.rate_quote_detail.total if self.rate_quote_detail else None


class FreshXQuote(_Wire):
    id: Optional[str] = None
    carrier_name: Optional[str] = None
    scac: Optional[str] = None
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    service_level: Optional[str] = None
    base_rate: Optional[float] = None
    fuel_surcharge: Optional[float] = None
    accessorial_charges: List[RateCharge] = Field(default_factory=list)
    total: Optional[float] = None
    currency: Optional[str] = None
    transit_days: Optional[int] = None
    estimated_delivery_date: Optional[str] = None
    expires_at: Optional[str] = None


class OAuthTokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: Optional[str] = "Bearer"
    expires_in: int = 3600
