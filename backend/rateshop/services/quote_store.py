"""
Persistence of finished quote batches.

The batch engine never touches the database; callers hand the finished
ProcessingResults to save_quote_run.
"""
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from rateshop.models import QuoteRun, QuoteRunStatus, QuoteResult
from rateshop.schemas.processing import ProcessingResult, ProcessingStatus
from rateshop.schemas.quote import Quote
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.services.pricing import PricingSettings

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = (ProcessingStatus.SUCCESS, ProcessingStatus.SUCCESS_UNPRICED)


def quote_price(quote: Quote) -> float:
    """Customer price when priced, otherwise the carrier total."""
    return quote.customer_price if quote.customer_price is not None else quote.total


def best_quote(quotes: Sequence[Quote]) -> Optional[Quote]:
    if not quotes:
        return None
    return min(quotes, key=quote_price)


def calculate_batch_summary(results: Sequence[ProcessingResult]) -> Dict[str, Any]:
    """Aggregate counts plus best-price and profit totals over a batch."""
    successful = [r for r in results if r.status in SUCCESS_STATUSES]
    with_quotes = [r for r in successful if r.quotes]

    best_total_price = 0.0
    total_profit = 0.0
    for result in with_quotes:
        best = best_quote(result.quotes)
        best_total_price += quote_price(best)
        total_profit += best.profit or 0.0

    return {
        "shipment_count": len(results),
        "success_count": len(successful),
        "unpriced_count": sum(1 for r in results if r.status == ProcessingStatus.SUCCESS_UNPRICED),
        "error_count": sum(1 for r in results if r.status == ProcessingStatus.ERROR),
        "total_quotes_received": sum(len(r.quotes) for r in successful),
        "best_total_price": round(best_total_price, 2),
        "total_profit": round(total_profit, 2),
        "routing": {
            network: sum(1 for r in results if r.routing_decision and r.routing_decision.value == network)
            for network in ("reefer", "standard", "dual")
        },
    }


def save_quote_run(
    db: Session,
    results: Sequence[ProcessingResult],
    name: str,
    strategy: str = "parallel",
    customer_id: Optional[str] = None,
    pricing_settings: Optional[PricingSettings] = None,
    selected_carrier_ids: Optional[List[str]] = None,
    cancelled: bool = False,
) -> QuoteRun:
    """
    Persist one finished batch and its per-shipment results.

    Returns:
        the committed QuoteRun
    """
    summary = calculate_batch_summary(results)
    run = QuoteRun(
        name=name,
        customer_id=customer_id,
        strategy=strategy,
        status=(QuoteRunStatus.CANCELLED if cancelled else QuoteRunStatus.COMPLETED).value,
        shipment_count=summary["shipment_count"],
        success_count=summary["success_count"],
        error_count=summary["error_count"],
        total_quotes_received=summary["total_quotes_received"],
        best_total_price=summary["best_total_price"],
        total_profit=summary["total_profit"],
        pricing_settings=asdict(pricing_settings) if pricing_settings else None,
        selected_carrier_ids=list(selected_carrier_ids or []),
        summary_metrics=summary,
    )
    db.add(run)
    db.flush()

    for result in results:
        best = best_quote(result.quotes)
        db.add(QuoteResult(
            quote_run_id=run.id,
            row_index=result.row_index,
            status=result.status.value,
            error=result.error,
            routing_decision=result.routing_decision.value if result.routing_decision else None,
            routing_reason=result.routing_reason,
            from_zip=result.original_data.from_zip,
            to_zip=result.original_data.to_zip,
            quote_count=len(result.quotes),
            best_carrier=best.carrier.name if best else None,
            best_price=quote_price(best) if best else None,
            shipment=result.original_data.model_dump(mode="json"),
            quotes=[q.model_dump(mode="json") for q in result.quotes],
        ))

    db.commit()
    db.refresh(run)
    logger.info("Saved quote run %s (%d shipments)", run.id, summary["shipment_count"])
    return run


def load_results(run: QuoteRun) -> List[ProcessingResult]:
    """Rebuild ProcessingResults from a saved run, ordered by row_index."""
    results = []
    for row in sorted(run.results, key=lambda r: r.row_index):
        results.append(ProcessingResult(
            row_index=row.row_index,
            original_data=ShipmentRecord.model_validate(row.shipment),
            quotes=[Quote.model_validate(q) for q in (row.quotes or [])],
            status=ProcessingStatus(row.status),
            error=row.error,
            routing_decision=row.routing_decision,
            routing_reason=row.routing_reason,
        ))
    return results
