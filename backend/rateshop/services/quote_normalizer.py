"""
Quote normalizer - turns raw network responses into Quote records.

Each upstream quote is validated against its DTO on its own; a quote that
does not fit is dropped with a warning, and a payload that is not a quote
list yields an empty list.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from rateshop.config.reference_loader import get_carrier_name_for_scac
from rateshop.schemas.quote import (
    AccessorialCharge,
    Quote,
    QuoteCarrier,
    QuoteLocation,
    ServiceLevel,
    TransitDaysRange,
)
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.schemas.upstream import FreshXQuote, Project44RateQuote
from rateshop.services.request_builders import QuoteMode

logger = logging.getLogger(__name__)

UNKNOWN_CARRIER = "Unknown Carrier"
FRESHX_SUBMITTED_BY = "FreshX Reefer Network"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def carrier_display_name(carrier_code: Optional[str]) -> str:
    if not carrier_code:
        return UNKNOWN_CARRIER
    return get_carrier_name_for_scac(carrier_code) or carrier_code


def dedupe_quotes(rate_quotes: List[Project44RateQuote]) -> List[Project44RateQuote]:
    """
    Keep the cheapest quote per (carrier, service level).

    Quotes without a strictly positive total are dropped. Ties keep the
    first quote seen. Group order follows first appearance.
    """
    best: Dict[Tuple[str, str], Project44RateQuote] = {}
    for rate_quote in rate_quotes:
        total = rate_quote.total
        if total is None or total <= 0:
            continue
        key = (
            rate_quote.carrier_code or "UNKNOWN",
            (rate_quote.service_level.code if rate_quote.service_level else None) or "STD",
        )
        current = best.get(key)
        if current is None or total < current.total:
            best[key] = rate_quote
    return list(best.values())


def _shipment_fields(shipment: ShipmentRecord) -> Dict[str, Any]:
    return {
        "ready_by_date": shipment.from_date,
        "weight": shipment.gross_weight,
        "pallets": shipment.pallets,
        "stackable": shipment.is_stackable,
        "commodity": shipment.commodity,
        "food_grade": shipment.is_food_grade,
        "pickup": QuoteLocation(
            city=shipment.origin_city or "",
            state=shipment.origin_state or "",
            zip=shipment.from_zip,
        ),
        "dropoff": QuoteLocation(
            city=shipment.destination_city or "",
            state=shipment.destination_state or "",
            zip=shipment.to_zip,
        ),
    }


def _parse_project44(raw: Any) -> List[Project44RateQuote]:
    """Validate each rate quote on its own; a malformed quote is skipped, not the response."""
    if isinstance(raw, dict):
        items = raw.get("rateQuotes", [])
    else:
        items = raw
    if not isinstance(items, list):
        logger.warning("Unexpected Project44 rate payload type: %s", type(items).__name__)
        return []

    rate_quotes = []
    for position, item in enumerate(items):
        try:
            rate_quotes.append(Project44RateQuote.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping malformed Project44 rate quote at position %d: %s", position, e)
    return rate_quotes


def normalize_project44(raw: Any, shipment: ShipmentRecord, mode: QuoteMode) -> List[Quote]:
    """
    Normalize a Project44 `{rateQuotes: [...]}` response.

    Args:
        raw: decoded JSON body (may be None for an empty response)
        shipment: the shipment the quotes were requested for
        mode: the quote mode that produced the response

    Returns:
        one Quote per distinct carrier/service level, cheapest first-seen wins
    """
    if raw is None:
        return []
    rate_quotes = _parse_project44(raw)
    unique = dedupe_quotes(rate_quotes)
    logger.info(
        "Filtered %d %s quotes down to %d unique carrier/service combinations",
        len(rate_quotes), mode.label, len(unique),
    )

    submitted_at = _utc_now_iso()
    quotes = []
    for index, rate_quote in enumerate(unique):
        detail = rate_quote.rate_quote_detail
        service_level = None
        if rate_quote.service_level and rate_quote.service_level.code:
            service_level = ServiceLevel(
                code=rate_quote.service_level.code,
                description=rate_quote.service_level.description,
            )
        transit_range = None
        if rate_quote.transit_days_range:
            transit_range = TransitDaysRange(
                minimum=rate_quote.transit_days_range.minimum,
                maximum=rate_quote.transit_days_range.maximum,
            )

        quotes.append(Quote(
            id=rate_quote.id,
            quote_id=index + 1,
            carrier=QuoteCarrier(
                name=carrier_display_name(rate_quote.carrier_code),
                scac=rate_quote.carrier_code or "",
            ),
            carrier_code=rate_quote.carrier_code,
            service_level=service_level,
            transit_days=rate_quote.transit_days,
            transit_days_range=transit_range,
            premiums_and_discounts=rate_quote.total,
            total=rate_quote.total,
            charges=[
                AccessorialCharge(code=c.code, description=c.description or c.code or "Freight Charge", amount=c.amount or 0.0)
                for c in (detail.charges if detail else [])
            ],
            currency_code=rate_quote.currency_code or "USD",
            contract_id=rate_quote.contract_id,
            lane_type=rate_quote.lane_type,
            quote_effective_date_time=rate_quote.quote_effective_date_time,
            quote_expiration_date_time=rate_quote.quote_expiration_date_time,
            estimated_delivery_date=rate_quote.delivery_date_time,
            submitted_by=f"Project44 {mode.label}",
            submission_datetime=submitted_at,
            **_shipment_fields(shipment),
        ))
    return quotes


def normalize_freshx(raw: Any, shipment: ShipmentRecord) -> List[Quote]:
    """Map a FreshX quote array; the network already returns one quote per carrier."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning("FreshX returned a non-array payload (%s); treating as no quotes", type(raw).__name__)
        return []

    submitted_at = _utc_now_iso()
    quotes = []
    for item in raw:
        try:
            record = FreshXQuote.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping malformed FreshX quote: %s", e)
            continue
        if not record.carrier_name or record.total is None or record.total <= 0:
            logger.warning("Skipping incomplete FreshX quote %s", record.id)
            continue

        charges = [
            AccessorialCharge(code=c.code, description=c.description or c.code or "Accessorial", amount=c.amount or 0.0)
            for c in record.accessorial_charges
        ]
        quotes.append(Quote(
            id=record.id,
            quote_id=len(quotes) + 1,
            carrier=QuoteCarrier(
                name=record.carrier_name,
                scac=record.scac,
                mc_number=record.mc_number,
                dot_number=record.dot_number,
            ),
            carrier_code=record.scac,
            service_level=ServiceLevel(code=record.service_level) if record.service_level else None,
            transit_days=record.transit_days,
            base_rate=record.base_rate or 0.0,
            fuel_surcharge=record.fuel_surcharge or 0.0,
            accessorial=list(charges),
            charges=charges,
            premiums_and_discounts=record.total,
            total=record.total,
            currency_code=record.currency or "USD",
            quote_expiration_date_time=record.expires_at,
            estimated_delivery_date=record.estimated_delivery_date,
            temperature=shipment.temperature.value if shipment.temperature else None,
            submitted_by=FRESHX_SUBMITTED_BY,
            submission_datetime=submitted_at,
            **_shipment_fields(shipment),
        ))
    return quotes
