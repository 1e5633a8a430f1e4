"""
Shipment request (RFQ row) schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Sequence
from enum import Enum


class Temperature(str, Enum):
    AMBIENT = "AMBIENT"
    CHILLED = "CHILLED"
    FROZEN = "FROZEN"


class WeightUnit(str, Enum):
    LB = "LB"
    KG = "KG"


class EmergencyContact(BaseModel):
    contact_name: Optional[str] = None
    phone_number: Optional[str] = None
    company_name: Optional[str] = None


class HazmatDetail(BaseModel):
    hazard_class: str = ""
    identification_number: str = ""
    packing_group: str = "III"
    proper_shipping_name: str = ""
    emergency_contact: Optional[EmergencyContact] = None


class LineItem(BaseModel):
    """One handling unit line as sent to the general network."""
    id: Optional[str] = None
    total_weight: float
    package_length: Optional[float] = None
    package_width: Optional[float] = None
    package_height: Optional[float] = None
    freight_class: Optional[str] = None
    description: Optional[str] = None
    nmfc_item_code: Optional[str] = None
    nmfc_sub_code: Optional[str] = None
    commodity_type: Optional[str] = None
    country_of_manufacture: Optional[str] = None
    package_type: Optional[str] = None
    stackable: Optional[bool] = None
    total_packages: Optional[int] = None
    total_pieces: Optional[int] = None
    total_value: Optional[float] = None
    insurance_amount: Optional[float] = None
    harmonized_code: Optional[str] = None
    hazmat_detail: Optional[HazmatDetail] = None


class ShipmentRecord(BaseModel):
    """
    Canonical representation of one requested shipment.

    row_index is the only correlation key between a request and its
    result; it is assigned once (by the parser or the batch orchestrator)
    and never changed afterwards.
    """
    row_index: Optional[int] = None

    # Route
    from_date: str
    from_zip: str
    to_zip: str
    origin_city: Optional[str] = None
    origin_state: Optional[str] = None
    origin_country: Optional[str] = None
    origin_address_lines: List[str] = Field(default_factory=list)
    destination_city: Optional[str] = None
    destination_state: Optional[str] = None
    destination_country: Optional[str] = None
    destination_address_lines: List[str] = Field(default_factory=list)

    # Physical
    pallets: int = Field(ge=1)
    gross_weight: float = Field(gt=0)
    weight_unit: WeightUnit = WeightUnit.LB
    is_stackable: bool = False
    total_linear_feet: Optional[int] = None
    package_length: Optional[float] = None
    package_width: Optional[float] = None
    package_height: Optional[float] = None
    freight_class: Optional[str] = None
    package_type: Optional[str] = None
    total_packages: Optional[int] = None
    total_pieces: Optional[int] = None
    total_value: Optional[float] = None
    insurance_amount: Optional[float] = None
    commodity_description: Optional[str] = None
    commodity_type: Optional[str] = None
    nmfc_code: Optional[str] = None
    nmfc_sub_code: Optional[str] = None
    country_of_manufacture: Optional[str] = None
    harmonized_code: Optional[str] = None

    # Temperature context
    temperature: Optional[Temperature] = None
    commodity: Optional[str] = None
    is_food_grade: bool = False

    # Routing control - primary network selector, independent of temperature
    is_reefer: bool = False

    line_items: Optional[List[LineItem]] = None
    accessorials: List[str] = Field(default_factory=list)

    # Hazmat (applies to the synthesized line item)
    hazmat: bool = False
    hazmat_class: Optional[str] = None
    hazmat_id_number: Optional[str] = None
    hazmat_packing_group: Optional[str] = None
    hazmat_proper_shipping_name: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    emergency_contact_company: Optional[str] = None

    # Time windows
    pickup_start_time: Optional[str] = None
    pickup_end_time: Optional[str] = None
    delivery_date: Optional[str] = None
    delivery_start_time: Optional[str] = None
    delivery_end_time: Optional[str] = None

    # Request preferences
    enable_unit_conversion: bool = True
    fall_back_to_default_account_group: bool = True
    api_timeout_ms: int = 30000
    direction: Optional[str] = None
    payment_terms: Optional[str] = None
    preferred_currency: str = "USD"
    preferred_system_of_measurement: str = "IMPERIAL"
    length_unit: str = "IN"


def assign_row_indexes(shipments: Sequence[ShipmentRecord]) -> List[ShipmentRecord]:
    """
    Give every record without a row_index its batch position.

    Existing indexes are kept as-is; a duplicate index raises ValueError
    because results could no longer be correlated.
    """
    seen = set()
    for position, shipment in enumerate(shipments):
        if shipment.row_index is None:
            shipment.row_index = position
        if shipment.row_index in seen:
            raise ValueError(f"Duplicate row index {shipment.row_index} in shipment batch")
        seen.add(shipment.row_index)
    return list(shipments)
