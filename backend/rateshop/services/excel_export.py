"""
Excel / CSV export of batch quoting results, and the downloadable RFQ template.
"""
import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from rateshop.schemas.processing import ProcessingResult, ProcessingStatus
from rateshop.services.file_parser import accessorial_columns
from rateshop.services.pricing import format_currency
from rateshop.services.quote_store import calculate_batch_summary
from rateshop.services.request_builders import Network

QUOTE_COLUMNS = [
    "Row", "Routing", "Origin ZIP", "Destination ZIP", "Pickup Date", "Pallets", "Weight (lbs)",
    "Carrier", "SCAC", "Service Level", "Quote Mode", "Transit Days", "Carrier Total",
    "Customer Price", "Profit", "Margin %", "Currency", "Estimated Delivery", "Quote Expires",
]
ERROR_COLUMNS = ["Row", "Origin ZIP", "Destination ZIP", "Routing", "Error"]


def build_quote_rows(results: Sequence[ProcessingResult]) -> List[Dict[str, Any]]:
    """Flatten results into one row per quote."""
    rows = []
    for result in results:
        shipment = result.original_data
        for quote in result.quotes:
            rows.append({
                "Row": result.row_index + 1,
                "Routing": result.routing_decision.value if result.routing_decision else "",
                "Origin ZIP": shipment.from_zip,
                "Destination ZIP": shipment.to_zip,
                "Pickup Date": shipment.from_date,
                "Pallets": shipment.pallets,
                "Weight (lbs)": shipment.gross_weight,
                "Carrier": quote.carrier.name,
                "SCAC": quote.carrier.scac or quote.carrier_code or "",
                "Service Level": quote.service_level.description or quote.service_level.code if quote.service_level else "",
                "Quote Mode": quote.quote_mode_label or "",
                "Transit Days": quote.transit_days,
                "Carrier Total": quote.carrier_total_rate if quote.carrier_total_rate is not None else quote.total,
                "Customer Price": quote.customer_price,
                "Profit": quote.profit,
                "Margin %": quote.applied_margin_percentage,
                "Currency": quote.currency_code,
                "Estimated Delivery": quote.estimated_delivery_date or "",
                "Quote Expires": quote.quote_expiration_date_time or "",
            })
    return rows


def build_error_rows(results: Sequence[ProcessingResult]) -> List[Dict[str, Any]]:
    return [
        {
            "Row": r.row_index + 1,
            "Origin ZIP": r.original_data.from_zip,
            "Destination ZIP": r.original_data.to_zip,
            "Routing": r.routing_decision.value if r.routing_decision else "",
            "Error": r.error or "",
        }
        for r in results
        if r.status == ProcessingStatus.ERROR
    ]


def generate_excel_report(
    results: Sequence[ProcessingResult],
    run_name: str = "Quote Run",
    file_path: Optional[Path] = None,
) -> str:
    """
    Generate Excel report with multiple sheets:
    - Summary
    - Quotes
    - Errors
    """
    if file_path is None:
        temp_dir = tempfile.gettempdir()
        safe_name = "".join(ch if ch.isalnum() else "_" for ch in run_name)
        file_path = Path(temp_dir) / f"quote_run_{safe_name}.xlsx"

    summary = calculate_batch_summary(results)
    with pd.ExcelWriter(file_path, engine='openpyxl') as writer:
        summary_data = {
            "Metric": [
                "Quote Run",
                "Total Shipments",
                "Successful",
                "Unpriced",
                "Failed",
                "Quotes Received",
                "Best Total Price",
                "Total Profit",
                "Reefer / Standard / Dual",
            ],
            "Value": [
                run_name,
                summary["shipment_count"],
                summary["success_count"],
                summary["unpriced_count"],
                summary["error_count"],
                summary["total_quotes_received"],
                format_currency(summary["best_total_price"]),
                format_currency(summary["total_profit"]),
                "{reefer} / {standard} / {dual}".format(**summary["routing"]),
            ],
        }
        pd.DataFrame(summary_data).to_excel(writer, sheet_name="Summary", index=False)

        quote_rows = build_quote_rows(results)
        pd.DataFrame(quote_rows, columns=QUOTE_COLUMNS).to_excel(writer, sheet_name="Quotes", index=False)

        error_rows = build_error_rows(results)
        pd.DataFrame(error_rows, columns=ERROR_COLUMNS).to_excel(writer, sheet_name="Errors", index=False)

    return str(file_path)


def generate_csv(results: Sequence[ProcessingResult]) -> str:
    return pd.DataFrame(build_quote_rows(results), columns=QUOTE_COLUMNS).to_csv(index=False)


TEMPLATE_SHEET = "RFQ Template"
TEMPLATE_COLUMNS = [
    "From Date", "From Zip", "To Zip", "Pallets", "Gross Weight", "Temperature", "Commodity",
    "Is Food Grade", "Is Stackable", "Is Reefer", "Origin City", "Origin State",
    "Destination City", "Destination State", "Freight Class", "Total Linear Feet",
]

# Sample shipments written under the header; dates are filled in relative to today
TEMPLATE_SAMPLES = {
    Network.PROJECT44: [
        {"From Zip": "60607", "To Zip": "30033", "Pallets": 3, "Gross Weight": 2500,
         "Origin City": "Chicago", "Origin State": "IL", "Destination City": "Decatur", "Destination State": "GA",
         "Is Stackable": "FALSE", "accessorials": ["LGDEL"]},
        {"From Zip": "90210", "To Zip": "10001", "Pallets": 12, "Gross Weight": 18000,
         "Origin City": "Beverly Hills", "Origin State": "CA", "Destination City": "New York", "Destination State": "NY",
         "Is Stackable": "TRUE", "accessorials": ["APPTDEL"]},
        {"From Zip": "33101", "To Zip": "75201", "Pallets": 5, "Gross Weight": 4500,
         "Temperature": "CHILLED", "Commodity": "FOODSTUFFS", "Is Food Grade": "TRUE", "Is Reefer": "TRUE",
         "Origin City": "Miami", "Origin State": "FL", "Destination City": "Dallas", "Destination State": "TX"},
    ],
    Network.FRESHX: [
        {"From Zip": "60607", "To Zip": "30033", "Pallets": 2, "Gross Weight": 2000,
         "Temperature": "CHILLED", "Commodity": "FOODSTUFFS", "Is Food Grade": "TRUE", "Is Reefer": "TRUE",
         "accessorials": ["LIFTGATE_DROPOFF"]},
        {"From Zip": "90210", "To Zip": "10001", "Pallets": 5, "Gross Weight": 5000,
         "Temperature": "FROZEN", "Commodity": "ICE_CREAM", "Is Food Grade": "TRUE", "Is Reefer": "TRUE"},
        {"From Zip": "33101", "To Zip": "75201", "Pallets": 1, "Gross Weight": 800,
         "Temperature": "AMBIENT", "Commodity": "PRODUCE", "Is Food Grade": "TRUE"},
    ],
}

TEMPLATE_INSTRUCTIONS = [
    ("From Date", "Pickup date, YYYY-MM-DD (required)"),
    ("From Zip / To Zip", "5-digit US ZIP or Canadian postal code (required)"),
    ("Pallets", "Whole number from 1 to 100 (required)"),
    ("Gross Weight", "Pounds, 1 to 100000 (required)"),
    ("Temperature", "AMBIENT, CHILLED or FROZEN"),
    ("Commodity", "Free text, upper-cased on import"),
    ("Is Food Grade / Is Stackable / Is Reefer", "TRUE, YES, Y or 1 to set; Is Reefer rows go to the reefer network"),
    ("Origin / Destination City and State", "Optional; sent with the address when present"),
    ("Freight Class / Total Linear Feet", "Optional; default class and pallet-based footage when blank"),
    ("Accessorial columns", "One column per accessorial code; mark TRUE to request it"),
]


def generate_rfq_template(network: Network = Network.PROJECT44, file_path: Optional[Path] = None) -> str:
    """
    Generate a downloadable RFQ workbook for the given network.

    The first sheet is the upload template: the shipment columns, one boolean
    column per accessorial code the network accepts, and a few sample rows.
    A second sheet describes each column. The workbook reads back through
    parse_shipment_file unchanged.
    """
    if file_path is None:
        file_path = Path(tempfile.gettempdir()) / f"rfq_template_{network.value}.xlsx"

    codes = accessorial_columns(network)
    today = date.today()
    rows = []
    for offset, sample in enumerate(TEMPLATE_SAMPLES[network], start=7):
        row = {column: sample.get(column, "") for column in TEMPLATE_COLUMNS}
        row["From Date"] = (today + timedelta(days=offset)).isoformat()
        selected = set(sample.get("accessorials", ()))
        row.update({code: "TRUE" if code in selected else "" for code in codes})
        rows.append(row)

    with pd.ExcelWriter(file_path, engine='openpyxl') as writer:
        pd.DataFrame(rows, columns=TEMPLATE_COLUMNS + codes).to_excel(writer, sheet_name=TEMPLATE_SHEET, index=False)
        pd.DataFrame(TEMPLATE_INSTRUCTIONS, columns=["Column", "Description"]).to_excel(
            writer, sheet_name="Instructions", index=False
        )

    return str(file_path)
