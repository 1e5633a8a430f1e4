"""
Quoting API endpoints (batch, spot, routing preview).
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging
from rateshop.api.deps import get_quote_session, session_for_customer, to_http_exception
from rateshop.db.database import get_db
from rateshop.schemas.processing import (
    BatchOptions,
    BatchQuoteRequest,
    BatchQuoteResponse,
    ProcessingResult,
    ProcessingStatus,
    SchedulingStrategy,
    SpotQuoteRequest,
)
from rateshop.schemas.shipment import ShipmentRecord, assign_row_indexes
from rateshop.services.batch_orchestrator import BatchOrchestrator
from rateshop.services.classifier import classify
from rateshop.services.quote_session import QuoteSession
from rateshop.services.quote_store import save_quote_run

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/batch", response_model=BatchQuoteResponse)
async def quote_batch(
    request: BatchQuoteRequest,
    db: Session = Depends(get_db),
    session: QuoteSession = Depends(get_quote_session),
):
    """Quote a batch of shipments and optionally save the run."""
    try:
        run_session = session_for_customer(session, db, request.customer_id)
        orchestrator = BatchOrchestrator(run_session, request.options)
        results = await orchestrator.process_all(request.shipments)
    except Exception as e:
        raise to_http_exception(e, "processing quote batch")

    run_id = None
    if request.save:
        # A failed save still returns the quotes; run_id stays empty
        try:
            run = save_quote_run(
                db,
                results,
                name=request.run_name or f"Batch of {len(results)} shipments",
                strategy=request.options.strategy.value,
                customer_id=request.customer_id,
                pricing_settings=run_session.pricing_settings,
                selected_carrier_ids=request.options.selected_carrier_ids,
            )
            run_id = str(run.id)
        except Exception:
            db.rollback()
            logger.exception("Failed to save quote run of %d shipments", len(results))

    failed = sum(1 for r in results if r.status == ProcessingStatus.ERROR)
    return BatchQuoteResponse(
        run_id=run_id,
        total=len(results),
        succeeded=len(results) - failed,
        failed=failed,
        results=results,
    )


@router.post("/spot", response_model=ProcessingResult)
async def quote_spot(
    request: SpotQuoteRequest,
    db: Session = Depends(get_db),
    session: QuoteSession = Depends(get_quote_session),
):
    """Quote a single shipment."""
    try:
        run_session = session_for_customer(session, db, request.customer_id)
        options = BatchOptions(
            strategy=SchedulingStrategy.SEQUENTIAL,
            selected_carrier_ids=request.selected_carrier_ids,
        )
        results = await BatchOrchestrator(run_session, options).process_all([request.shipment])
    except Exception as e:
        raise to_http_exception(e, "processing spot quote")
    return results[0]


@router.post("/classify")
async def classify_shipments(shipments: List[ShipmentRecord]):
    """Preview how each shipment would be routed."""
    try:
        records = assign_row_indexes(shipments)
    except ValueError as e:
        raise to_http_exception(e, "classifying shipments")

    decisions = []
    for shipment in records:
        decision = classify(shipment)
        decisions.append({
            "row_index": shipment.row_index,
            "network": decision.network.value,
            "reason": decision.reason,
        })
    return decisions
