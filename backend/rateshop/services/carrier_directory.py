"""
Carrier/group directory for the primary network.

Lists contracted carriers grouped by capacity provider account group, with
a flat capacity-provider fallback when no groups are available. Results are
cached per mode for the lifetime of the directory; call clear_cache() to
force a reload.
"""
import asyncio
import logging
import re
from functools import lru_cache
from typing import Any, Dict, List, Optional

from rateshop.config.reference_loader import get_carrier_name_for_scac, get_default_group_code
from rateshop.schemas.carrier import CarrierGroup, CarrierInfo, ServiceLevelInfo
from rateshop.services.errors import ConfigurationError, CredentialError, QuotingError
from rateshop.services.request_builders import QuoteMode

logger = logging.getLogger(__name__)

UNKNOWN_CARRIER = "Unknown Carrier"
CARRIER_NAME_CACHE_SIZE = 512

_SCAC_PATTERN = re.compile(r"^[A-Z]{4}$")
_LEGAL_SUFFIX_PATTERN = re.compile(r"\b(inc|llc|ltd|corp|corporation)\b", re.IGNORECASE)

# Service modes a capacity provider must support to be listed in the fallback
_FALLBACK_MODES = {
    QuoteMode.VOLUME: {"VOLUME_LTL", "LTL"},
    QuoteMode.STANDARD: {"LTL"},
    QuoteMode.TRUCKLOAD: None,
}


def clean_carrier_name(name: str) -> str:
    """Drop legal-entity suffixes and collapse whitespace."""
    name = _LEGAL_SUFFIX_PATTERN.sub("", name or "")
    return re.sub(r"\s+", " ", name).strip()


def _carrier_id_from_name(name: str) -> str:
    return re.sub(r"\s+", "_", name).upper()


def _identifier(identifiers: List[Dict[str, Any]], kind: str) -> Optional[str]:
    for ident in identifiers or []:
        if isinstance(ident, dict) and ident.get("type") == kind:
            return ident.get("value")
    return None


def _as_list(data: Any, key: str) -> List[Dict[str, Any]]:
    """Accept either a bare array or an object wrapping the array under key."""
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = data.get(key) or []
    else:
        items = []
    return [item for item in items if isinstance(item, dict)]


class CarrierDirectory:
    def __init__(self, client):
        self.client = client
        self._groups_by_mode: Dict[QuoteMode, List[CarrierGroup]] = {}
        self._load_lock = asyncio.Lock()
        self._resolve_name = lru_cache(maxsize=CARRIER_NAME_CACHE_SIZE)(self._resolve_name_uncached)

    def clear_cache(self) -> None:
        self._groups_by_mode.clear()
        self._resolve_name.cache_clear()
        logger.info("Carrier directory cache cleared")

    def resolve_carrier_name(self, scac: Optional[str] = None, account_code: Optional[str] = None) -> str:
        return self._resolve_name(scac or None, account_code or None)

    @staticmethod
    def _resolve_name_uncached(scac: Optional[str], account_code: Optional[str]) -> str:
        mapped = get_carrier_name_for_scac(scac)
        if mapped:
            return mapped
        # Account codes longer than a SCAC are usually a readable company name
        if account_code and len(account_code) > 4 and not _SCAC_PATTERN.match(account_code):
            cleaned = clean_carrier_name(account_code)
            if cleaned:
                return cleaned
        return scac or account_code or UNKNOWN_CARRIER

    async def list_carriers_by_group(self, mode: QuoteMode = QuoteMode.STANDARD) -> List[CarrierGroup]:
        cached = self._groups_by_mode.get(mode)
        if cached is not None:
            return cached

        async with self._load_lock:
            # Another caller may have loaded this mode while we waited
            cached = self._groups_by_mode.get(mode)
            if cached is not None:
                return cached
            return await self._load_groups(mode)

    async def _load_groups(self, mode: QuoteMode) -> List[CarrierGroup]:
        try:
            groups = await self._load_account_groups(mode)
        except (ConfigurationError, CredentialError):
            raise
        except QuotingError as e:
            logger.warning("Account group listing failed (%s); falling back to capacity providers", e)
            groups = []

        if not groups:
            groups = await self._load_without_groups(mode)

        self._groups_by_mode[mode] = groups
        total = sum(len(g.carriers) for g in groups)
        logger.info("Loaded %d carrier groups with %d carriers for %s", len(groups), total, mode.label)
        return groups

    async def _load_account_groups(self, mode: QuoteMode) -> List[CarrierGroup]:
        account_groups = _as_list(await self.client.fetch_account_groups(), "groups")
        if not account_groups:
            logger.info("No account groups found")
            return []

        groups: List[CarrierGroup] = []
        for group in account_groups:
            code = group.get("code")
            if not code:
                continue
            try:
                accounts = _as_list(await self.client.fetch_accounts(code), "accounts")
            except (ConfigurationError, CredentialError):
                raise
            except QuotingError as e:
                logger.warning("Error loading accounts for group %s: %s", code, e)
                continue

            carriers = [self._carrier_from_account(account) for account in accounts]
            if not carriers:
                logger.info("No accounts found for group %s", code)
                continue
            groups.append(CarrierGroup(
                group_code=code,
                group_name=f"{group.get('name') or code} ({mode.label})",
                carriers=sorted(carriers, key=lambda c: c.name.lower()),
            ))

        return sorted(groups, key=lambda g: g.group_name.lower())

    def _carrier_from_account(self, account: Dict[str, Any]) -> CarrierInfo:
        identifier = account.get("capacityProviderIdentifier") or {}
        kind = identifier.get("type")
        value = identifier.get("value")
        scac = value if kind == "SCAC" else None
        account_code = account.get("code")
        name = self.resolve_carrier_name(scac, account_code)
        return CarrierInfo(
            id=account_code or scac or _carrier_id_from_name(name),
            name=name,
            scac=scac,
            mc_number=value if kind == "MC_NUMBER" else None,
            dot_number=value if kind == "DOT_NUMBER" else None,
            account_code=account_code,
        )

    async def _load_without_groups(self, mode: QuoteMode) -> List[CarrierGroup]:
        logger.info("Using capacity provider listing for %s", mode.label)
        providers = _as_list(await self.client.fetch_capacity_providers(), "capacityProviders")

        required = _FALLBACK_MODES.get(mode)
        if required:
            providers = [p for p in providers if self._supports(p, required)]

        carriers = []
        for provider in providers:
            identifiers = provider.get("capacityProviderIdentifiers") or []
            scac = _identifier(identifiers, "SCAC")
            provider_name = provider.get("name") or ""
            name = get_carrier_name_for_scac(scac) or clean_carrier_name(provider_name) or scac or UNKNOWN_CARRIER
            carriers.append(CarrierInfo(
                id=scac or _carrier_id_from_name(provider_name or name),
                name=name,
                scac=scac,
                mc_number=_identifier(identifiers, "MC_NUMBER"),
                dot_number=_identifier(identifiers, "DOT_NUMBER"),
            ))

        return [CarrierGroup(
            group_code=get_default_group_code(),
            group_name=f"{mode.label} Carriers",
            carriers=sorted(carriers, key=lambda c: c.name.lower()),
        )]

    @staticmethod
    def _supports(provider: Dict[str, Any], required_modes) -> bool:
        services = provider.get("supportedServices")
        # No service information at all: keep the carrier
        if services is None:
            return True
        return any(isinstance(s, dict) and s.get("mode") in required_modes for s in services)

    def find_group_code_for_carrier(self, carrier_id: str) -> str:
        for groups in self._groups_by_mode.values():
            for group in groups:
                if any(c.id == carrier_id for c in group.carriers):
                    return group.group_code
        return get_default_group_code()

    async def get_service_levels(self, mode: QuoteMode = QuoteMode.STANDARD) -> List[ServiceLevelInfo]:
        data = await self.client.fetch_service_levels(mode)
        levels: List[ServiceLevelInfo] = []
        for entry in _as_list(data, "serviceLevels"):
            for level in entry.get("serviceLevels") or []:
                if isinstance(level, dict) and level.get("code"):
                    levels.append(ServiceLevelInfo(
                        code=level["code"],
                        description=level.get("description"),
                        carrier_code=entry.get("carrierCode") or level.get("carrierCode"),
                    ))
        logger.info("Found %d %s service levels", len(levels), mode.label)
        return levels
