from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class ScenarioId(str, Enum):
    SN001 = "SN001"
    SN002 = "SN002"
    SN003 = "SN003"
    SN004 = "SN004"
    SN005 = "SN005"
    SN006 = "SN006"
    SN007 = "SN007"
    SN008 = "SN008"
    SN009 = "SN009"
    SN010 = "SN010"
    SN011 = "SN011"
    SN012 = "SN012"
    SN013 = "SN013"
    SN014 = "SN014"
    SN015 = "SN015"
    SN016 = "SN016"
    SN017 = "SN017"
    SN018 = "SN018"
    SN019 = "SN019"
    SN020 = "SN020"
    SN021 = "SN021"
    SN022 = "SN022"
    SN023 = "SN023"
    SN024 = "SN024"
    SN025 = "SN025"
    SN026 = "SN026"
    SN027 = "SN027"
    SN028 = "SN028"


ScenarioLike = Union[ScenarioId, str, None]

DEFAULT_SCENARIO = ScenarioId.SN001


@dataclass(frozen=True)
class ScenarioProfile:
    sale_type: str
    default_rate: str
    requires_withholding_tax: bool = False
    is_exempt_or_zero_rated: bool = False
    supports_third_schedule: bool = False
    requires_fed_payable: bool = False
    is_retail: bool = False
    is_services: bool = False


# Canonical saleType labels and default rates accepted by the FBR sandbox.
# Per-item overrides (taxPercentage / saleType) take precedence over these.
SCENARIO_REGISTRY: Dict[ScenarioId, ScenarioProfile] = {
    ScenarioId.SN001: ScenarioProfile("Goods at standard rate (default)", "18%"),
    ScenarioId.SN002: ScenarioProfile("Goods at standard rate (default)", "18%", requires_withholding_tax=True),
    ScenarioId.SN003: ScenarioProfile("Goods at standard rate (default)", "18%"),
    ScenarioId.SN004: ScenarioProfile("Goods at standard rate (default)", "18%"),
    ScenarioId.SN005: ScenarioProfile("Goods at Reduced Rate", "1%"),
    ScenarioId.SN006: ScenarioProfile("Exempt goods", "Exempt", is_exempt_or_zero_rated=True),
    ScenarioId.SN007: ScenarioProfile("Goods at zero-rate", "0%", is_exempt_or_zero_rated=True),
    ScenarioId.SN008: ScenarioProfile("3rd Schedule Goods", "18%", supports_third_schedule=True),
    ScenarioId.SN009: ScenarioProfile("Cotton ginners", "18%"),
    ScenarioId.SN010: ScenarioProfile("Ship breaking", "18%"),
    ScenarioId.SN011: ScenarioProfile("Steel Melters / Re-Rollers", "18%"),
    ScenarioId.SN012: ScenarioProfile("Petroleum products", "18%"),
    ScenarioId.SN013: ScenarioProfile("Natural Gas / CNG", "18%"),
    ScenarioId.SN014: ScenarioProfile("Electric power / Electricity", "18%"),
    ScenarioId.SN015: ScenarioProfile("Telecommunication services", "18%", is_services=True),
    ScenarioId.SN016: ScenarioProfile("Processing/Conversion of Goods", "18%"),
    ScenarioId.SN017: ScenarioProfile("Goods (FED in ST Mode)", "8%", requires_fed_payable=True),
    ScenarioId.SN018: ScenarioProfile("Services (FED in ST Mode)", "8%", requires_fed_payable=True, is_services=True),
    ScenarioId.SN019: ScenarioProfile("Services", "Exempt", is_exempt_or_zero_rated=True, is_services=True),
    ScenarioId.SN020: ScenarioProfile("Mobile phones (9th Schedule)", "18%"),
    ScenarioId.SN021: ScenarioProfile("Drugs at fixed rate (Eighth Schedule)", "18%"),
    ScenarioId.SN022: ScenarioProfile("Services (ICT Ordinance)", "18%", is_services=True),
    ScenarioId.SN023: ScenarioProfile("Services (FED in ST Mode)", "8%", requires_fed_payable=True, is_services=True),
    ScenarioId.SN024: ScenarioProfile("Goods as per SRO.297(|)/2023", "25%"),
    ScenarioId.SN025: ScenarioProfile("Non-Adjustable Supplies", "0%", is_exempt_or_zero_rated=True, requires_fed_payable=True),
    ScenarioId.SN026: ScenarioProfile("Goods at standard rate (default)", "18%"),
    ScenarioId.SN027: ScenarioProfile("3rd Schedule Goods", "18%", supports_third_schedule=True, is_retail=True),
    ScenarioId.SN028: ScenarioProfile("Goods at Reduced Rate", "18%", is_retail=True),
}

ALL_SCENARIOS: List[ScenarioId] = list(ScenarioId)


def resolve_scenario(scenario_id: ScenarioLike) -> ScenarioId:
    """
    Normalises a scenario code to ``ScenarioId``.

    FBR publishes new scenarios faster than this table is updated, so an
    unknown code maps to SN001 (standard rate) with a warning instead of
    failing the invoice.
    """
    if isinstance(scenario_id, ScenarioId):
        return scenario_id
    code = str(scenario_id or "").strip().upper()
    try:
        return ScenarioId(code)
    except ValueError:
        logger.warning(f"⚠️ Unmapped FBR scenario '{scenario_id}', falling back to {DEFAULT_SCENARIO.value}")
        return DEFAULT_SCENARIO


def get_scenario_profile(scenario_id: ScenarioLike) -> ScenarioProfile:
    return SCENARIO_REGISTRY[resolve_scenario(scenario_id)]


def get_sale_type_for_scenario(scenario_id: ScenarioLike) -> str:
    return get_scenario_profile(scenario_id).sale_type


def get_default_rate_for_scenario(scenario_id: ScenarioLike) -> str:
    return get_scenario_profile(scenario_id).default_rate


def requires_withholding_tax(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).requires_withholding_tax


def is_exempt_or_zero_rated(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).is_exempt_or_zero_rated


def supports_third_schedule(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).supports_third_schedule


def requires_fed_payable(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).requires_fed_payable


def is_retail_scenario(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).is_retail


def is_services_scenario(scenario_id: ScenarioLike) -> bool:
    return get_scenario_profile(scenario_id).is_services


def scenarios_where(flag: str) -> List[ScenarioId]:
    """Lists the scenarios whose profile has ``flag`` set, e.g. ``scenarios_where("is_retail")``."""
    return [sid for sid, profile in SCENARIO_REGISTRY.items() if getattr(profile, flag)]


def describe_scenario(scenario_id: ScenarioLike) -> Dict[str, Optional[str]]:
    sid = resolve_scenario(scenario_id)
    profile = SCENARIO_REGISTRY[sid]
    return {
        "scenarioId": sid.value,
        "saleType": profile.sale_type,
        "defaultRate": profile.default_rate,
    }
