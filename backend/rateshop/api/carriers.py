"""
Carrier directory API endpoints.
"""
from fastapi import APIRouter, Depends
from typing import List
from rateshop.api.deps import get_quote_session, to_http_exception
from rateshop.schemas.carrier import CarrierGroup, ServiceLevelInfo
from rateshop.services.quote_session import QuoteSession
from rateshop.services.request_builders import QuoteMode

router = APIRouter()


@router.get("/groups", response_model=List[CarrierGroup])
async def list_carrier_groups(
    mode: QuoteMode = QuoteMode.STANDARD,
    session: QuoteSession = Depends(get_quote_session),
):
    """List contracted carriers grouped by account group."""
    try:
        return await session.project44.directory.list_carriers_by_group(mode)
    except Exception as e:
        raise to_http_exception(e, "loading carriers")


@router.get("/service-levels", response_model=List[ServiceLevelInfo])
async def list_service_levels(
    mode: QuoteMode = QuoteMode.STANDARD,
    session: QuoteSession = Depends(get_quote_session),
):
    try:
        return await session.project44.directory.get_service_levels(mode)
    except Exception as e:
        raise to_http_exception(e, "loading service levels")


@router.post("/cache/clear")
async def clear_carrier_cache(session: QuoteSession = Depends(get_quote_session)):
    """Force the next listing to reload carriers from the network."""
    session.project44.directory.clear_cache()
    return {"status": "cleared"}
