"""
Shipment classifier - decides which network(s) quote a shipment.

Business rules:
1. is_reefer=True -> refrigerated network only
2. pallets >= 10 or weight >= 15,000 lbs -> general network, volume and
   standard rates side by side
3. Everything else -> general network, standard LTL
"""
from rateshop.schemas.processing import RoutingDecision, RoutingNetwork
from rateshop.schemas.shipment import ShipmentRecord

DUAL_MODE_MIN_PALLETS = 10
DUAL_MODE_MIN_WEIGHT = 15000


def _format_weight(weight: float) -> str:
    return f"{weight:,.0f}" if float(weight).is_integer() else f"{weight:,}"


def classify(shipment: ShipmentRecord) -> RoutingDecision:
    if shipment.is_reefer:
        return RoutingDecision(
            network=RoutingNetwork.REEFER,
            reason="Marked as reefer shipment (isReefer=TRUE) - quoted through FreshX reefer network",
        )

    summary = f"{shipment.pallets} pallets, {_format_weight(shipment.gross_weight)} lbs"
    if shipment.pallets >= DUAL_MODE_MIN_PALLETS or shipment.gross_weight >= DUAL_MODE_MIN_WEIGHT:
        return RoutingDecision(
            network=RoutingNetwork.DUAL,
            reason=(
                f"Large shipment ({summary}) - quoted through both Project44 "
                f"Volume LTL and Standard LTL for comparison"
            ),
        )

    return RoutingDecision(
        network=RoutingNetwork.STANDARD,
        reason=f"Standard shipment ({summary}) - quoted through Project44 Standard LTL",
    )
