"""
Quote schemas - one priced offer for one shipment from one carrier/service level.
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class QuoteCarrier(BaseModel):
    name: str
    scac: Optional[str] = None
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None


class ServiceLevel(BaseModel):
    code: str
    description: Optional[str] = None


class TransitDaysRange(BaseModel):
    minimum: Optional[int] = None
    maximum: Optional[int] = None


class QuoteLocation(BaseModel):
    city: str = ""
    state: str = ""
    zip: str


class AccessorialCharge(BaseModel):
    code: Optional[str] = None
    description: str
    amount: float


class Quote(BaseModel):
    # Provider-assigned id (opaque). quote_id is a display sequence only.
    id: Optional[str] = None
    quote_id: int

    carrier: QuoteCarrier
    carrier_code: Optional[str] = None
    service_level: Optional[ServiceLevel] = None
    transit_days: Optional[int] = None
    transit_days_range: Optional[TransitDaysRange] = None

    # Commercial
    base_rate: float = 0.0
    fuel_surcharge: float = 0.0
    accessorial: List[AccessorialCharge] = Field(default_factory=list)
    premiums_and_discounts: float = 0.0
    total: float
    # Itemized charges as reported by the network, before pricing
    charges: List[AccessorialCharge] = Field(default_factory=list)
    currency_code: str = "USD"
    contract_id: Optional[str] = None
    lane_type: Optional[str] = None

    # Temporal
    quote_effective_date_time: Optional[str] = None
    quote_expiration_date_time: Optional[str] = None
    estimated_delivery_date: Optional[str] = None

    # Shipment-derived
    ready_by_date: Optional[str] = None
    weight: Optional[float] = None
    pallets: Optional[int] = None
    stackable: Optional[bool] = None
    temperature: Optional[str] = None
    commodity: Optional[str] = None
    food_grade: Optional[bool] = None
    pickup: Optional[QuoteLocation] = None
    dropoff: Optional[QuoteLocation] = None

    # Provenance
    submitted_by: str
    submission_datetime: str
    quote_mode: Optional[str] = None
    quote_mode_label: Optional[str] = None

    # Filled in by the pricing step
    carrier_total_rate: Optional[float] = None
    customer_price: Optional[float] = None
    profit: Optional[float] = None
    applied_margin_percentage: Optional[float] = None
