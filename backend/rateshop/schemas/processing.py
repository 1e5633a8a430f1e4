"""
Batch processing schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from enum import Enum

from rateshop.db.database import settings
from rateshop.schemas.quote import Quote
from rateshop.schemas.shipment import ShipmentRecord


class RoutingNetwork(str, Enum):
    REEFER = "reefer"
    STANDARD = "standard"
    DUAL = "dual"


class RoutingDecision(BaseModel):
    network: RoutingNetwork
    reason: str


class ProcessingStatus(str, Enum):
    PROCESSING = "processing"
    SUCCESS = "success"
    SUCCESS_UNPRICED = "success_unpriced"
    ERROR = "error"


class SchedulingStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


class ProcessingResult(BaseModel):
    row_index: int
    original_data: ShipmentRecord
    quotes: List[Quote] = Field(default_factory=list)
    status: ProcessingStatus = ProcessingStatus.PROCESSING
    error: Optional[str] = None
    routing_decision: Optional[RoutingNetwork] = None
    routing_reason: Optional[str] = None


def _default_batch_size() -> int:
    # QUOTE_BATCH_SIZE, held to the accepted 1-10 range
    return min(max(settings.quote_batch_size, 1), 10)


class BatchOptions(BaseModel):
    strategy: SchedulingStrategy = SchedulingStrategy.PARALLEL
    batch_size: int = Field(default_factory=_default_batch_size, ge=1, le=10)
    sequential_delay: float = Field(default=0.1, ge=0)
    batch_delay: float = Field(default=0.2, ge=0)
    selected_carrier_ids: List[str] = Field(default_factory=list)


class BatchQuoteRequest(BaseModel):
    shipments: List[ShipmentRecord]
    options: BatchOptions = Field(default_factory=BatchOptions)
    customer_id: Optional[str] = None
    run_name: Optional[str] = None
    save: bool = True


class BatchQuoteResponse(BaseModel):
    run_id: Optional[str] = None
    total: int
    succeeded: int
    failed: int
    results: List[ProcessingResult]


class SpotQuoteRequest(BaseModel):
    shipment: ShipmentRecord
    selected_carrier_ids: List[str] = Field(default_factory=list)
    customer_id: Optional[str] = None
