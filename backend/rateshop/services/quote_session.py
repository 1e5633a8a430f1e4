"""
Quote session - the explicit context object a batch runs against.

Owns the network clients (and through them the cached token and carrier
directory), the pricing function and the pricing inputs. Nothing here is
module-level state; two sessions never share caches.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from rateshop.schemas.quote import Quote
from rateshop.services.errors import ConfigurationError
from rateshop.services.freshx_client import FreshXClient
from rateshop.services.http_transport import new_http_session
from rateshop.services.pricing import PricingSettings, price
from rateshop.services.project44_client import Project44Client
from rateshop.services.token_manager import Project44Credentials

logger = logging.getLogger(__name__)

PriceFunction = Callable[[Quote, PricingSettings, Any], Quote]


@dataclass
class LoadedCredentials:
    project44: Project44Credentials
    freshx_api_key: str = ""


def load_credentials(settings) -> LoadedCredentials:
    """Read network credentials from the environment-backed settings object."""
    return LoadedCredentials(
        project44=Project44Credentials(
            client_id=settings.project44_client_id or "",
            client_secret=settings.project44_client_secret or "",
        ),
        freshx_api_key=settings.freshx_api_key or "",
    )


@dataclass
class QuoteSession:
    project44: Project44Client
    freshx: Optional[FreshXClient] = None
    pricing_settings: PricingSettings = field(default_factory=PricingSettings)
    customer: Any = None
    price_quote: PriceFunction = price

    def ensure_configured(self) -> None:
        if not self.project44.credentials.is_configured:
            raise ConfigurationError(
                "Project44 client credentials are not configured. "
                "Set PROJECT44_CLIENT_ID and PROJECT44_CLIENT_SECRET."
            )

    @classmethod
    def from_settings(
        cls,
        settings,
        pricing_settings: Optional[PricingSettings] = None,
        customer: Any = None,
        http: Optional[requests.Session] = None,
    ) -> "QuoteSession":
        credentials = load_credentials(settings)
        http = http or new_http_session()
        project44 = Project44Client(
            credentials.project44,
            settings.project44_base_url,
            http=http,
            oauth_url=settings.project44_oauth_url,
            timeout=settings.request_timeout,
        )
        freshx = None
        if credentials.freshx_api_key:
            freshx = FreshXClient(
                credentials.freshx_api_key,
                settings.freshx_base_url,
                http=http,
                timeout=settings.request_timeout,
            )
        else:
            logger.warning("FRESHX_API_KEY not set; reefer shipments will not be quoted")

        return cls(
            project44=project44,
            freshx=freshx,
            pricing_settings=pricing_settings or PricingSettings(),
            customer=customer,
        )
