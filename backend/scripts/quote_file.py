"""
Script to quote an RFQ file from the command line and write an Excel report.

Usage:
    python scripts/quote_file.py shipments.xlsx [--sequential] [--batch-size 5] [--out report.xlsx]

Credentials come from the same environment variables as the API
(PROJECT44_CLIENT_ID, PROJECT44_CLIENT_SECRET, FRESHX_API_KEY).
"""
import sys
import os
import argparse
import asyncio
import logging
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from rateshop.db.database import settings
from rateshop.schemas.processing import BatchOptions, ProcessingStatus, SchedulingStrategy
from rateshop.services.batch_orchestrator import BatchOrchestrator
from rateshop.services.errors import QuotingError
from rateshop.services.excel_export import generate_excel_report
from rateshop.services.file_parser import parse_shipment_file
from rateshop.services.quote_session import QuoteSession

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def print_progress(processed, total, message):
    print(f"[{processed}/{total}] {message}")


async def quote_file(path, strategy, batch_size, out_path):
    shipments = parse_shipment_file(path)
    print(f"Parsed {len(shipments)} shipments from {path}")

    session = QuoteSession.from_settings(settings)
    options = BatchOptions(strategy=strategy, batch_size=batch_size)
    results = await BatchOrchestrator(session, options).process_all(shipments, progress=print_progress)

    failed = [r for r in results if r.status == ProcessingStatus.ERROR]
    for result in failed:
        print(f"Row {result.row_index + 1}: {result.error}")

    report = generate_excel_report(results, run_name=os.path.basename(path), file_path=out_path)
    print(f"Quoted {len(results) - len(failed)}/{len(results)} shipments. Report: {report}")


def main():
    parser = argparse.ArgumentParser(description="Quote an RFQ file")
    parser.add_argument("path", help="CSV or XLSX RFQ file")
    parser.add_argument("--sequential", action="store_true", help="Quote one shipment at a time")
    parser.add_argument("--batch-size", type=int, default=settings.quote_batch_size)
    parser.add_argument("--out", default=None, help="Excel report path")
    args = parser.parse_args()

    strategy = SchedulingStrategy.SEQUENTIAL if args.sequential else SchedulingStrategy.PARALLEL
    try:
        asyncio.run(quote_file(args.path, strategy, args.batch_size, args.out))
    except (QuotingError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
