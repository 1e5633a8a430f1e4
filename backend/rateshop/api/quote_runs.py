"""
Saved quote runs: listing, detail, export, RFQ template download and RFQ file import.
"""
from fastapi import APIRouter, Depends, HTTPException, status, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from pathlib import Path
import shutil
import time
import logging
from rateshop.api.deps import to_http_exception
from rateshop.db.database import get_db, settings
from rateshop.models import QuoteRun
from rateshop.schemas.quote_run import QuoteRunSummary, QuoteRunResponse
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.services.excel_export import generate_csv, generate_excel_report, generate_rfq_template
from rateshop.services.file_parser import infer_file_type, parse_shipment_file
from rateshop.services.quote_store import load_results
from rateshop.services.request_builders import Network

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_run_or_404(db: Session, run_id: UUID) -> QuoteRun:
    run = db.query(QuoteRun).filter(QuoteRun.id == run_id).first()
    if not run:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Quote run {run_id} not found"
        )
    return run


@router.post("/parse", response_model=List[ShipmentRecord])
async def parse_rfq_file(
    file: UploadFile = FastAPIFile(...),
    network: Network = Network.PROJECT44,
):
    """Upload an RFQ template (CSV/XLSX) and return validated shipment records."""
    file_type = infer_file_type(file.filename or "")
    if file_type not in ("csv", "xlsx"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type: {file_type}"
        )

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    file_path = upload_dir / f"{int(time.time() * 1000)}_{Path(file.filename).name}"
    with open(file_path, "wb") as buffer:
        shutil.copyfileobj(file.file, buffer)

    timer = time.perf_counter()
    try:
        records = parse_shipment_file(str(file_path), file_type, network)
    except Exception as e:
        raise to_http_exception(e, "parsing RFQ file")
    finally:
        file_path.unlink(missing_ok=True)

    logger.info("Parsed %d shipments from %s in %.2fs", len(records), file.filename, time.perf_counter() - timer)
    return records


@router.get("/template")
async def download_rfq_template(network: Network = Network.PROJECT44):
    """Download a blank RFQ workbook with sample rows for the chosen network."""
    try:
        file_path = generate_rfq_template(network)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating RFQ template: {str(e)}"
        )
    return FileResponse(
        file_path,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"rfq_template_{network.value}.xlsx"
    )


@router.get("/", response_model=List[QuoteRunSummary])
async def list_quote_runs(
    customer_id: Optional[UUID] = None,
    db: Session = Depends(get_db)
):
    """List saved quote runs, newest first."""
    query = db.query(QuoteRun)
    if customer_id:
        query = query.filter(QuoteRun.customer_id == customer_id)
    return query.order_by(QuoteRun.created_at.desc()).all()


@router.get("/{run_id}", response_model=QuoteRunResponse)
async def get_quote_run(
    run_id: UUID,
    db: Session = Depends(get_db)
):
    return _get_run_or_404(db, run_id)


@router.delete("/{run_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quote_run(
    run_id: UUID,
    db: Session = Depends(get_db)
):
    run = _get_run_or_404(db, run_id)
    db.delete(run)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{run_id}/excel")
async def download_excel(
    run_id: UUID,
    db: Session = Depends(get_db)
):
    """Download the run as an Excel workbook (Summary, Quotes, Errors)."""
    run = _get_run_or_404(db, run_id)
    try:
        file_path = generate_excel_report(load_results(run), run_name=run.name)
        return FileResponse(
            file_path,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            filename=f"quote_run_{run_id}.xlsx"
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating Excel report: {str(e)}"
        )


@router.get("/{run_id}/csv")
async def download_csv(
    run_id: UUID,
    db: Session = Depends(get_db)
):
    run = _get_run_or_404(db, run_id)
    try:
        content = generate_csv(load_results(run))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating CSV export: {str(e)}"
        )
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="quote_run_{run_id}.csv"'},
    )
