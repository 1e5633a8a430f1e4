"""
RFQ file parsing - turns an uploaded CSV/XLSX into ShipmentRecords.
"""
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from rateshop.config.reference_loader import get_freshx_accessorials, get_project44_accessorials
from rateshop.schemas.shipment import ShipmentRecord, Temperature
from rateshop.services.request_builders import Network


# Column aliases after header normalization (lowercase, no whitespace).
# First alias with a non-empty value wins.
COLUMN_ALIASES = {
    "from_date": ["fromdate", "pickupdate", "date"],
    "from_zip": ["fromzip", "pickupzip", "originzip"],
    "to_zip": ["tozip", "deliveryzip", "destinationzip"],
    "pallets": ["pallets", "palletcount"],
    "gross_weight": ["grossweight", "weight"],
    "temperature": ["temperature"],
    "commodity": ["commodity"],
    "is_food_grade": ["isfoodgrade", "foodgrade"],
    "is_stackable": ["isstackable", "stackable"],
    "is_reefer": ["isreefer", "reefer"],
    "accessorials": ["accessorial", "accessories"],
    # Optional route/freight detail
    "origin_city": ["origincity", "fromcity", "pickupcity"],
    "origin_state": ["originstate", "fromstate", "pickupstate"],
    "destination_city": ["destinationcity", "tocity", "deliverycity"],
    "destination_state": ["destinationstate", "tostate", "deliverystate"],
    "freight_class": ["freightclass", "class"],
    "total_linear_feet": ["totallinearfeet", "linearfeet"],
}

TRUE_VALUES = {"true", "1", "yes", "y"}

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
US_ZIP_PATTERN = re.compile(r"^\d{5}$")
CA_POSTAL_PATTERN = re.compile(r"^[A-Z]\d[A-Z]\s?\d[A-Z]\d$")
# Excel dates read as text come through as "2025-01-15 00:00:00"
EXCEL_DATETIME_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})[ T]00:00:00$")

MAX_PALLETS = 100
MAX_WEIGHT = 100000


def infer_file_type(filename: str) -> str:
    """Infer file type from extension."""
    ext = Path(filename).suffix.lower()
    if ext == ".xlsx" or ext == ".xls":
        return "xlsx"
    elif ext == ".csv":
        return "csv"
    else:
        return ext.lstrip(".")


def read_file(file_path: str, file_type: str) -> pd.DataFrame:
    """Read the first sheet / the CSV with every cell as text."""
    if file_type == "xlsx":
        df = pd.read_excel(file_path, sheet_name=0, dtype=str)
    elif file_type == "csv":
        # Try different encodings
        for encoding in ["utf-8", "latin-1", "cp1252"]:
            try:
                df = pd.read_csv(file_path, encoding=encoding, dtype=str, keep_default_na=False)
                break
            except UnicodeDecodeError:
                continue
        else:
            raise ValueError("Could not decode CSV file")
    else:
        raise ValueError(f"Unsupported file type: {file_type}")

    df = df.fillna("")
    if df.empty:
        raise ValueError("File must contain at least a header row and one data row")
    return df


def normalize_header(header: Any) -> str:
    return re.sub(r"\s+", "", str(header).strip().lower())


def parse_boolean(value: Any) -> bool:
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def parse_accessorial_list(value: str) -> List[str]:
    if not value:
        return []
    return [code.strip().upper() for code in re.split(r"[,;]", value) if code.strip()]


def is_valid_date(value: str) -> bool:
    if not DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_valid_zip(value: str) -> bool:
    return bool(US_ZIP_PATTERN.match(value) or CA_POSTAL_PATTERN.match(value.upper()))


def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _lookup(row: Dict[str, str], field: str) -> str:
    for alias in COLUMN_ALIASES[field]:
        value = row.get(alias, "")
        if value:
            return value
    return ""


def accessorial_columns(network: Network) -> List[str]:
    """Accessorial codes read as one boolean column each, for the given network."""
    codes = get_project44_accessorials() if network == Network.PROJECT44 else get_freshx_accessorials()
    return sorted(codes)


def parse_row(
    row: Dict[str, str],
    index: int,
    network: Network = Network.PROJECT44,
    line_number: Optional[int] = None,
) -> ShipmentRecord:
    """
    Validate and convert one normalized row.

    Raises:
        ValueError: "Row N: ..." listing every problem with the row; N is
            line_number when given (the data row in the source file), else index + 1
    """
    errors = []

    from_date = _lookup(row, "from_date")
    excel_date = EXCEL_DATETIME_PATTERN.match(from_date)
    if excel_date:
        from_date = excel_date.group(1)
    from_zip = _lookup(row, "from_zip")
    to_zip = _lookup(row, "to_zip")
    pallets = _to_int(_lookup(row, "pallets"))
    gross_weight = _to_int(_lookup(row, "gross_weight"))
    temperature = _lookup(row, "temperature").upper()
    commodity = _lookup(row, "commodity").upper()

    legacy_accessorials = _lookup(row, "accessorials")
    if legacy_accessorials:
        accessorials = parse_accessorial_list(legacy_accessorials)
    else:
        # One boolean column per accessorial code
        accessorials = [code for code in accessorial_columns(network) if parse_boolean(row.get(code.lower()))]

    if not from_date or not is_valid_date(from_date):
        errors.append("Invalid or missing fromDate")
    if not from_zip or not is_valid_zip(from_zip):
        errors.append("Invalid or missing fromZip")
    if not to_zip or not is_valid_zip(to_zip):
        errors.append("Invalid or missing toZip")
    if not pallets or pallets < 1 or pallets > MAX_PALLETS:
        errors.append(f"Pallets must be between 1 and {MAX_PALLETS}")
    if not gross_weight or gross_weight < 1 or gross_weight > MAX_WEIGHT:
        errors.append(f"Gross weight must be between 1 and {MAX_WEIGHT}")
    if temperature and temperature not in Temperature.__members__:
        errors.append(f"Invalid temperature '{temperature}'")

    if errors:
        raise ValueError(f"Row {line_number or index + 1}: {', '.join(errors)}")

    linear_feet = _to_int(_lookup(row, "total_linear_feet"))
    return ShipmentRecord(
        row_index=index,
        from_date=from_date,
        from_zip=from_zip.upper(),
        to_zip=to_zip.upper(),
        pallets=pallets,
        gross_weight=gross_weight,
        temperature=temperature or None,
        commodity=commodity or None,
        is_food_grade=parse_boolean(_lookup(row, "is_food_grade")),
        is_stackable=parse_boolean(_lookup(row, "is_stackable")),
        is_reefer=parse_boolean(_lookup(row, "is_reefer")),
        accessorials=accessorials,
        origin_city=_lookup(row, "origin_city") or None,
        origin_state=_lookup(row, "origin_state") or None,
        destination_city=_lookup(row, "destination_city") or None,
        destination_state=_lookup(row, "destination_state") or None,
        freight_class=_lookup(row, "freight_class") or None,
        total_linear_feet=linear_feet or None,
    )


def parse_dataframe(df: pd.DataFrame, network: Network = Network.PROJECT44) -> List[ShipmentRecord]:
    df = df.rename(columns=normalize_header)
    records = []
    for position, (_, series) in enumerate(df.iterrows()):
        row = {column: str(value).strip() for column, value in series.items()}
        if not any(row.values()):
            continue
        # row_index counts kept records only; errors cite the source row
        records.append(parse_row(row, len(records), network, line_number=position + 1))
    return records


def parse_shipment_file(
    file_path: str,
    file_type: Optional[str] = None,
    network: Network = Network.PROJECT44,
) -> List[ShipmentRecord]:
    """Read and validate an RFQ template file."""
    file_type = file_type or infer_file_type(file_path)
    return parse_dataframe(read_file(file_path, file_type), network)
