"""
Request builders - pure transforms from a ShipmentRecord to network payloads.

Key business rules:
1. Addresses default to country "US"
2. Without explicit line items, one line item is synthesized from the
   pallet/weight fields using a standard 48x40x48 in pallet and class 70
3. Reefer-only accessorials never reach the general network
4. Time windows are omitted unless at least one time field is present;
   missing times default to 08:00-17:00
5. Volume (VLTL) requests always carry totalLinearFeet
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from rateshop.config.reference_loader import (
    get_freshx_accessorials,
    get_reefer_only_accessorials,
)
from rateshop.schemas.shipment import EmergencyContact, HazmatDetail, LineItem, ShipmentRecord

STANDARD_PALLET_LENGTH_IN = 48
STANDARD_PALLET_WIDTH_IN = 40
STANDARD_PALLET_HEIGHT_IN = 48
DEFAULT_FREIGHT_CLASS = "70"
DEFAULT_PACKING_GROUP = "III"
DEFAULT_WINDOW_START = "08:00"
DEFAULT_WINDOW_END = "17:00"


class Network(str, Enum):
    PROJECT44 = "project44"
    FRESHX = "freshx"


class QuoteMode(str, Enum):
    STANDARD = "standard"
    VOLUME = "volume"
    TRUCKLOAD = "truckload"

    @property
    def path_segment(self) -> str:
        return {"standard": "ltl", "volume": "vltl", "truckload": "truckload"}[self.value]

    @property
    def label(self) -> str:
        return {
            "standard": "Standard LTL",
            "volume": "Volume LTL (VLTL)",
            "truckload": "Full Truckload",
        }[self.value]


def linear_feet(pallets: int, pallet_length_in: float = STANDARD_PALLET_LENGTH_IN) -> int:
    """Each pallet occupies one pallet-length of trailer floor."""
    return int(math.ceil(pallets * pallet_length_in / 12))


def build_address(shipment: ShipmentRecord, side: str) -> Dict[str, Any]:
    if side == "origin":
        return {
            "addressLines": list(shipment.origin_address_lines),
            "city": shipment.origin_city or "",
            "country": shipment.origin_country or "US",
            "postalCode": shipment.from_zip,
            "state": shipment.origin_state or "",
        }
    if side == "destination":
        return {
            "addressLines": list(shipment.destination_address_lines),
            "city": shipment.destination_city or "",
            "country": shipment.destination_country or "US",
            "postalCode": shipment.to_zip,
            "state": shipment.destination_state or "",
        }
    raise ValueError(f"Unknown address side: {side}")


def _hazmat_payload(detail: HazmatDetail) -> Dict[str, Any]:
    payload = {
        "hazardClass": detail.hazard_class or "",
        "identificationNumber": detail.identification_number or "",
        "packingGroup": detail.packing_group or DEFAULT_PACKING_GROUP,
        "properShippingName": detail.proper_shipping_name or "",
    }
    contact = detail.emergency_contact
    if contact and (contact.contact_name or contact.phone_number):
        payload["emergencyContact"] = {
            "contactName": contact.contact_name,
            "phoneNumber": contact.phone_number,
            "companyName": contact.company_name,
        }
    return payload


def _line_item_payload(item: LineItem) -> Dict[str, Any]:
    payload = {
        "totalWeight": item.total_weight,
        "packageDimensions": {
            "length": item.package_length,
            "width": item.package_width,
            "height": item.package_height,
        },
        "freightClass": item.freight_class,
        "description": item.description,
        "nmfcItemCode": item.nmfc_item_code,
        "nmfcSubCode": item.nmfc_sub_code,
        "commodityType": item.commodity_type,
        "countryOfManufacture": item.country_of_manufacture,
        "id": item.id,
        "insuranceAmount": item.insurance_amount,
        "packageType": item.package_type,
        "stackable": item.stackable,
        "totalPackages": item.total_packages,
        "totalPieces": item.total_pieces,
        "totalValue": item.total_value,
        "harmonizedCode": item.harmonized_code,
    }
    if item.hazmat_detail:
        payload["hazmatDetail"] = _hazmat_payload(item.hazmat_detail)
    return payload


def build_line_items(shipment: ShipmentRecord) -> List[Dict[str, Any]]:
    if shipment.line_items:
        return [_line_item_payload(item) for item in shipment.line_items]

    synthesized = LineItem(
        total_weight=shipment.gross_weight,
        package_length=shipment.package_length or STANDARD_PALLET_LENGTH_IN,
        package_width=shipment.package_width or STANDARD_PALLET_WIDTH_IN,
        package_height=shipment.package_height or STANDARD_PALLET_HEIGHT_IN,
        freight_class=shipment.freight_class or DEFAULT_FREIGHT_CLASS,
        description=shipment.commodity_description,
        nmfc_item_code=shipment.nmfc_code,
        nmfc_sub_code=shipment.nmfc_sub_code,
        commodity_type=shipment.commodity_type,
        country_of_manufacture=shipment.country_of_manufacture,
        package_type=shipment.package_type,
        stackable=shipment.is_stackable,
        total_packages=shipment.total_packages or shipment.pallets,
        total_pieces=shipment.total_pieces or shipment.pallets,
        total_value=shipment.total_value,
        insurance_amount=shipment.insurance_amount or None,
        harmonized_code=shipment.harmonized_code,
        hazmat_detail=_synthesized_hazmat(shipment),
    )
    return [_line_item_payload(synthesized)]


def _synthesized_hazmat(shipment: ShipmentRecord) -> Optional[HazmatDetail]:
    if not shipment.hazmat:
        return None
    contact = None
    if shipment.emergency_contact_name or shipment.emergency_contact_phone:
        contact = EmergencyContact(
            contact_name=shipment.emergency_contact_name,
            phone_number=shipment.emergency_contact_phone,
            company_name=shipment.emergency_contact_company,
        )
    return HazmatDetail(
        hazard_class=shipment.hazmat_class or "",
        identification_number=shipment.hazmat_id_number or "",
        packing_group=shipment.hazmat_packing_group or DEFAULT_PACKING_GROUP,
        proper_shipping_name=shipment.hazmat_proper_shipping_name or "",
        emergency_contact=contact,
    )


def filter_accessorials(codes: Sequence[str], network: Network) -> List[str]:
    """Normalize, de-duplicate and restrict accessorial codes to one network."""
    reefer_only = get_reefer_only_accessorials()
    freshx_vocabulary = get_freshx_accessorials()
    seen = set()
    result: List[str] = []
    for raw in codes:
        code = (raw or "").strip().upper()
        if not code or code in seen:
            continue
        if network == Network.PROJECT44 and code in reefer_only:
            continue
        if network == Network.FRESHX and freshx_vocabulary and code not in freshx_vocabulary:
            continue
        seen.add(code)
        result.append(code)
    return result


def build_accessorial_services(shipment: ShipmentRecord, network: Network = Network.PROJECT44) -> List[Dict[str, str]]:
    # Temperature-control services are never added for the general network,
    # whatever the shipment's temperature (see DESIGN.md).
    return [{"code": code} for code in filter_accessorials(shipment.accessorials, network)]


def build_pickup_window(shipment: ShipmentRecord) -> Optional[Dict[str, str]]:
    if not shipment.pickup_start_time and not shipment.pickup_end_time:
        return None
    return {
        "date": shipment.from_date,
        "startTime": shipment.pickup_start_time or DEFAULT_WINDOW_START,
        "endTime": shipment.pickup_end_time or DEFAULT_WINDOW_END,
    }


def build_delivery_window(shipment: ShipmentRecord) -> Optional[Dict[str, str]]:
    if not shipment.delivery_date and not shipment.delivery_start_time and not shipment.delivery_end_time:
        return None
    return {
        "date": shipment.delivery_date or shipment.from_date,
        "startTime": shipment.delivery_start_time or DEFAULT_WINDOW_START,
        "endTime": shipment.delivery_end_time or DEFAULT_WINDOW_END,
    }


def build_account_group_filter(carrier_ids: Sequence[str], directory) -> Optional[Dict[str, Any]]:
    """
    Restrict a rate query to the selected carrier accounts.

    The group code is resolved from the first selected carrier through the
    directory's cached groups. No selection means no filter.
    """
    if not carrier_ids:
        return None
    group_code = directory.find_group_code_for_carrier(carrier_ids[0])
    return {
        "code": group_code,
        "accounts": [{"code": carrier_id} for carrier_id in carrier_ids],
    }


def build_rate_request(
    shipment: ShipmentRecord,
    mode: QuoteMode,
    account_group: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the rate-query body for the general network."""
    payload: Dict[str, Any] = {
        "originAddress": build_address(shipment, "origin"),
        "destinationAddress": build_address(shipment, "destination"),
        "lineItems": build_line_items(shipment),
        "accessorialServices": build_accessorial_services(shipment, Network.PROJECT44),
        "apiConfiguration": {
            "accessorialServiceConfiguration": {
                "allowUnacceptedAccessorials": False,
                "fetchAllGuaranteed": False,
                "fetchAllInsideDelivery": False,
                "fetchAllServiceLevels": False,
            },
            "enableUnitConversion": shipment.enable_unit_conversion,
            "fallBackToDefaultAccountGroup": shipment.fall_back_to_default_account_group,
            "timeout": shipment.api_timeout_ms,
        },
        "lengthUnit": shipment.length_unit or "IN",
        "preferredCurrency": shipment.preferred_currency or "USD",
        "preferredSystemOfMeasurement": shipment.preferred_system_of_measurement or "IMPERIAL",
        "weightUnit": shipment.weight_unit.value,
    }

    pickup_window = build_pickup_window(shipment)
    if pickup_window:
        payload["pickupWindow"] = pickup_window
    delivery_window = build_delivery_window(shipment)
    if delivery_window:
        payload["deliveryWindow"] = delivery_window
    if shipment.direction:
        payload["directionOverride"] = shipment.direction
    if shipment.payment_terms:
        payload["paymentTermsOverride"] = shipment.payment_terms

    if mode == QuoteMode.VOLUME:
        payload["totalLinearFeet"] = shipment.total_linear_feet or linear_feet(
            shipment.pallets, shipment.package_length or STANDARD_PALLET_LENGTH_IN
        )

    if account_group:
        payload["capacityProviderAccountGroup"] = account_group

    return payload


def build_reefer_request(shipment: ShipmentRecord) -> Dict[str, Any]:
    """Build the quote body for the refrigerated network."""
    return {
        "fromDate": shipment.from_date,
        "fromZip": shipment.from_zip,
        "toZip": shipment.to_zip,
        "pallets": shipment.pallets,
        "grossWeight": _format_weight(shipment.gross_weight),
        "temperature": shipment.temperature.value if shipment.temperature else None,
        "commodity": shipment.commodity,
        "isFoodGrade": shipment.is_food_grade,
        "isStackable": shipment.is_stackable,
        "accessorial": filter_accessorials(shipment.accessorials, Network.FRESHX),
    }


def _format_weight(weight: float) -> str:
    return str(int(weight)) if float(weight).is_integer() else str(weight)
