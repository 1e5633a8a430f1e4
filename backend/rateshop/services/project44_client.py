"""
Client for the primary carrier network (LTL, volume LTL and truckload).
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from rateshop.schemas.quote import Quote
from rateshop.schemas.shipment import ShipmentRecord
from rateshop.services.carrier_directory import CarrierDirectory
from rateshop.services.errors import ConfigurationError, CredentialError, QuotingError, UpstreamError
from rateshop.services.http_transport import DEFAULT_TIMEOUT, new_http_session, response_json, send
from rateshop.services.quote_normalizer import normalize_project44
from rateshop.services.request_builders import (
    QuoteMode,
    build_account_group_filter,
    build_rate_request,
)
from rateshop.services.token_manager import Project44Credentials, TokenManager

logger = logging.getLogger(__name__)


class Project44Client:
    def __init__(
        self,
        credentials: Project44Credentials,
        base_url: str,
        http: Optional[requests.Session] = None,
        oauth_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        token_manager: Optional[TokenManager] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.http = http or new_http_session()
        self.timeout = timeout
        self.token_manager = token_manager or TokenManager(
            credentials,
            self.http,
            oauth_url or f"{self.base_url}/oauth2/token",
            timeout=timeout,
        )
        self.directory = CarrierDirectory(self)

    @property
    def credentials(self) -> Project44Credentials:
        return self.token_manager.credentials

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        token = await self.token_manager.get_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
        if method != "GET":
            headers["Content-Type"] = "application/json"

        response = await send(self.http, method, f"{self.base_url}{path}", timeout=self.timeout, headers=headers, **kwargs)
        if not response.ok:
            body = response.text or ""
            logger.error("Project44 %s %s failed: %s %s", method, path, response.status_code, body)
            if response.status_code == 401:
                # Token rejected; the next call exchanges credentials again
                self.token_manager.invalidate()
            raise UpstreamError(
                f"Project44 request {method} {path} failed: {response.status_code} - {body}",
                status_code=response.status_code,
                body=body,
            )
        return response_json(response)

    async def fetch_account_groups(self) -> Any:
        return await self._request("GET", "/capacityprovideraccountgroups")

    async def fetch_accounts(self, group_code: str) -> Any:
        return await self._request("GET", "/capacityprovideraccounts", params={"accountGroupCode": group_code})

    async def fetch_capacity_providers(self) -> Any:
        return await self._request("GET", "/capacity-providers")

    async def fetch_service_levels(self, mode: QuoteMode) -> Any:
        return await self._request("GET", f"/{mode.path_segment}/service-levels")

    async def _query_rates(self, shipment: ShipmentRecord, mode: QuoteMode, payload: Dict[str, Any]) -> List[Quote]:
        logger.info(
            "Requesting %s quotes for row %s: %s -> %s, %s pallets, %s lbs",
            mode.label, shipment.row_index, shipment.from_zip, shipment.to_zip,
            shipment.pallets, shipment.gross_weight,
        )
        data = await self._request("POST", f"/{mode.path_segment}/quotes/rates/query", json=payload)
        quotes = normalize_project44(data, shipment, mode)
        logger.info("Received %d %s quotes for row %s", len(quotes), mode.label, shipment.row_index)
        return quotes

    async def _warm_directory(self, mode: QuoteMode) -> None:
        """Load the carrier groups so selected carriers resolve to their real group code."""
        try:
            await self.directory.list_carriers_by_group(mode)
        except (ConfigurationError, CredentialError):
            raise
        except QuotingError as e:
            logger.warning("Carrier directory unavailable (%s); using the default account group", e)

    async def get_quotes(
        self,
        shipment: ShipmentRecord,
        mode: QuoteMode = QuoteMode.STANDARD,
        carrier_ids: Sequence[str] = (),
    ) -> List[Quote]:
        """Rate a shipment, optionally restricted to the selected carrier accounts."""
        if carrier_ids:
            await self._warm_directory(mode)
        account_group = build_account_group_filter(list(carrier_ids), self.directory)
        payload = build_rate_request(shipment, mode, account_group)
        return await self._query_rates(shipment, mode, payload)

    async def get_quotes_for_account_group(
        self,
        shipment: ShipmentRecord,
        group_code: str,
        mode: QuoteMode = QuoteMode.STANDARD,
    ) -> List[Quote]:
        """Rate a shipment against every carrier in one account group."""
        payload = build_rate_request(shipment, mode, {"code": group_code})
        return await self._query_rates(shipment, mode, payload)
