# FBR Digital Invoicing integration
from .sale_types import (
    ScenarioId,
    ScenarioProfile,
    SCENARIO_REGISTRY,
    ALL_SCENARIOS,
    resolve_scenario,
    get_scenario_profile,
    get_sale_type_for_scenario,
    get_default_rate_for_scenario,
    requires_withholding_tax,
    is_exempt_or_zero_rated,
    supports_third_schedule,
    requires_fed_payable,
    is_retail_scenario,
    is_services_scenario,
)
from .rates import parse_rate, format_rate, round_to_fbr_precision, rate_label_for_item
from .json_utils import sanitize, repair_json_text, parse_fbr_response
from .mapper import (
    ItemTax,
    calculate_item_tax,
    map_order_item_to_fbr_item,
    map_order_to_fbr_invoice,
    create_test_fbr_invoice,
    resolve_seller_info,
    resolve_buyer_info,
    resolve_sale_type,
    resolve_rate_label_from_fbr,
)
from .validator import validate_order_for_fbr
from .client import FbrClient, validate_fbr_config


def get_fbr_client(config=None, transport=None) -> FbrClient:
    """Client built from the process settings unless a config is given."""
    from fbr_invoicing.config import FbrConfig, settings
    return FbrClient(config or FbrConfig.from_settings(settings), transport=transport)


__all__ = [
    'ScenarioId', 'ScenarioProfile', 'SCENARIO_REGISTRY', 'ALL_SCENARIOS',
    'resolve_scenario', 'get_scenario_profile', 'get_sale_type_for_scenario',
    'get_default_rate_for_scenario', 'requires_withholding_tax', 'is_exempt_or_zero_rated',
    'supports_third_schedule', 'requires_fed_payable', 'is_retail_scenario', 'is_services_scenario',
    'parse_rate', 'format_rate', 'round_to_fbr_precision', 'rate_label_for_item',
    'sanitize', 'repair_json_text', 'parse_fbr_response',
    'ItemTax', 'calculate_item_tax', 'map_order_item_to_fbr_item', 'map_order_to_fbr_invoice',
    'create_test_fbr_invoice', 'resolve_seller_info', 'resolve_buyer_info', 'resolve_sale_type',
    'resolve_rate_label_from_fbr', 'validate_order_for_fbr',
    'FbrClient', 'validate_fbr_config', 'get_fbr_client',
]
