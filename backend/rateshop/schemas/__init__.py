from .customer import CustomerCreate, CustomerUpdate, CustomerResponse
from .shipment import ShipmentRecord, LineItem, HazmatDetail, EmergencyContact, Temperature, assign_row_indexes
from .quote import Quote, QuoteCarrier, ServiceLevel, AccessorialCharge
from .carrier import CarrierInfo, CarrierGroup, ServiceLevelInfo
from .processing import (
    RoutingNetwork,
    RoutingDecision,
    ProcessingStatus,
    ProcessingResult,
    SchedulingStrategy,
    BatchOptions,
    BatchQuoteRequest,
    BatchQuoteResponse,
    SpotQuoteRequest,
)
from .quote_run import QuoteRunSummary, QuoteRunResponse, QuoteResultResponse

__all__ = [
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerResponse",
    "ShipmentRecord",
    "LineItem",
    "HazmatDetail",
    "EmergencyContact",
    "Temperature",
    "assign_row_indexes",
    "Quote",
    "QuoteCarrier",
    "ServiceLevel",
    "AccessorialCharge",
    "CarrierInfo",
    "CarrierGroup",
    "ServiceLevelInfo",
    "RoutingNetwork",
    "RoutingDecision",
    "ProcessingStatus",
    "ProcessingResult",
    "SchedulingStrategy",
    "BatchOptions",
    "BatchQuoteRequest",
    "BatchQuoteResponse",
    "SpotQuoteRequest",
    "QuoteRunSummary",
    "QuoteRunResponse",
    "QuoteResultResponse",
]

