"""
Utilities for loading static carrier/accessorial reference configuration.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "carrier_reference.yaml"

DEFAULT_GROUP_CODE = "Default"

# Used when the YAML file is absent (e.g. a trimmed deployment image)
_BUILTIN_SCAC_NAMES = {
    "FXFE": "FedEx Freight",
    "ODFL": "Old Dominion Freight Line",
    "SAIA": "Saia LTL Freight",
    "RLCA": "R+L Carriers",
    "ABFS": "ABF Freight",
    "EXLA": "Estes Express Lines",
    "SEFL": "Southeastern Freight Lines",
}
_BUILTIN_TEMPERATURE_CODES = ["TEMP_CONTROLLED", "REEFER", "FROZEN_PROTECT", "TEMP_PROTECT"]


@lru_cache()
def load_reference_config() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    with open(CONFIG_PATH, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def get_scac_names() -> Dict[str, str]:
    config = load_reference_config()
    return dict(config.get("scac_names") or _BUILTIN_SCAC_NAMES)


def get_carrier_name_for_scac(scac: Optional[str]) -> Optional[str]:
    if not scac:
        return None
    return get_scac_names().get(scac.upper().strip())


def _accessorial_section(name: str) -> FrozenSet[str]:
    section = load_reference_config().get("accessorials", {}) or {}
    return frozenset(code.upper() for code in section.get(name, []) or [])


def get_project44_accessorials() -> FrozenSet[str]:
    return _accessorial_section("project44")


def get_freshx_accessorials() -> FrozenSet[str]:
    return _accessorial_section("freshx")


def get_temperature_accessorials() -> FrozenSet[str]:
    codes = _accessorial_section("temperature_controlled")
    return codes or frozenset(_BUILTIN_TEMPERATURE_CODES)


def get_reefer_only_accessorials() -> FrozenSet[str]:
    """Codes that must never reach the general (Project44) network."""
    return (get_freshx_accessorials() - get_project44_accessorials()) | get_temperature_accessorials()


def get_default_group_code() -> str:
    return load_reference_config().get("default_group_code") or DEFAULT_GROUP_CODE
