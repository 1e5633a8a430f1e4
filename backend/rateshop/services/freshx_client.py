"""
Client for the refrigerated (reefer) carrier network.

Authenticates with a static API key; there is no token exchange.
"""
import logging
from typing import List, Optional

import requests

from rateshop.schemas.quote import Quote
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.services.errors import UpstreamError
from rateshop.services.http_transport import DEFAULT_TIMEOUT, new_http_session, response_json, send
from rateshop.services.quote_normalizer import normalize_freshx
from rateshop.services.request_builders import build_reefer_request

logger = logging.getLogger(__name__)


class FreshXClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        http: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http = http or new_http_session()
        self.timeout = timeout

    async def get_quotes(self, shipment: ShipmentRecord) -> List[Quote]:
        payload = build_reefer_request(shipment)
        logger.info(
            "Requesting FreshX quotes for row %s: %s -> %s, %s pallets, %s",
            shipment.row_index, shipment.from_zip, shipment.to_zip,
            shipment.pallets, payload.get("temperature"),
        )

        response = await send(
            self.http,
            "POST",
            f"{self.base_url}/v1/quotes",
            timeout=self.timeout,
            json=payload,
            headers={
                "x-api-key": self.api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        if response.status_code == 204:
            logger.info("FreshX returned no quotes for row %s", shipment.row_index)
            return []
        if not response.ok:
            body = response.text or ""
            logger.error("FreshX quote request failed: %s %s", response.status_code, body)
            raise UpstreamError(
                f"FreshX quote request failed: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )

        quotes = normalize_freshx(response_json(response), shipment)
        logger.info("Received %d FreshX quotes for row %s", len(quotes), shipment.row_index)
        return quotes
