"""
Quote Run schemas.
"""
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional, List, Dict, Any
from rateshop.models.quote_run import QuoteRunStatus


class QuoteRunSummary(BaseModel):
    id: UUID
    name: str
    customer_id: Optional[UUID] = None
    strategy: str
    status: QuoteRunStatus
    shipment_count: int
    success_count: int
    error_count: int
    total_quotes_received: int
    best_total_price: Optional[float] = None
    total_profit: Optional[float] = None
    created_at: datetime

    class Config:
        from_attributes = True


class QuoteResultResponse(BaseModel):
    id: UUID
    row_index: int
    status: str
    error: Optional[str] = None
    routing_decision: Optional[str] = None
    routing_reason: Optional[str] = None
    from_zip: Optional[str] = None
    to_zip: Optional[str] = None
    quote_count: int
    best_carrier: Optional[str] = None
    best_price: Optional[float] = None
    shipment: Dict[str, Any]
    quotes: Optional[List[Dict[str, Any]]] = None

    class Config:
        from_attributes = True


class QuoteRunResponse(QuoteRunSummary):
    pricing_settings: Optional[Dict[str, Any]] = None
    selected_carrier_ids: Optional[List[str]] = None
    summary_metrics: Optional[Dict[str, Any]] = None
    results: List[QuoteResultResponse] = []
