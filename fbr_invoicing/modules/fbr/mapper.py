"""
Order -> FBR invoice mapping.

Pure apart from the optional SaleTypeToRate cross-check, which needs a client
and never fails the mapping.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from fbr_invoicing.config.settings import Settings, settings as default_settings
from fbr_invoicing.core.exceptions import FbrPreconditionError
from fbr_invoicing.models.fbr import BuyerInfo, FbrInvoice, FbrItem, SellerInfo
from fbr_invoicing.models.order import Order, OrderItem
from fbr_invoicing.modules.fbr.rates import parse_rate, rate_label_for_item, round_to_fbr_precision
from fbr_invoicing.modules.fbr.sale_types import (
    ScenarioId,
    ScenarioLike,
    get_default_rate_for_scenario,
    get_sale_type_for_scenario,
    is_exempt_or_zero_rated,
    requires_fed_payable,
    requires_withholding_tax,
    resolve_scenario,
    supports_third_schedule,
)

if TYPE_CHECKING:
    from fbr_invoicing.modules.fbr.client import FbrClient

logger = logging.getLogger(__name__)

DEFAULT_HS_CODE = "2710.1991"
DEFAULT_UOM = "PCS"
WEIGHT_UOM = "KG"
WITHHOLDING_RATE = 0.02
DEBIT_NOTE = "Debit Note"
SALE_INVOICE = "Sale Invoice"

DEFAULT_BUYER_NTNCNIC = "1234567890123"
DEFAULT_BUYER_NAME = "Customer"
DEFAULT_BUYER_PROVINCE = "Punjab"
DEFAULT_BUYER_ADDRESS = "Customer Address"
DEFAULT_REGISTRATION_TYPE = "Unregistered"


@dataclass(frozen=True)
class ItemTax:
    base_amount: float
    tax_rate: float
    sales_tax_applicable: float
    sales_tax_withheld_at_source: float
    fed_payable: float


def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _positive_or_zero(value: Optional[float]) -> float:
    # 0 and unset are indistinguishable on the wire
    if value is not None and value > 0:
        return float(value)
    return 0.0


def item_base_amount(item: OrderItem) -> float:
    if item.total_price is not None:
        return float(item.total_price)
    return float(item.price or 0) * float(item.quantity or 0)


def calculate_item_tax(item: OrderItem, scenario_id: ScenarioLike) -> ItemTax:
    """
    Per-item tax figures (unrounded).

    Exempt / zero-rated scenarios never carry sales tax, whatever the item's
    ``tax_percentage`` says. ``tax_amount`` on the item is informational only.
    """
    scenario = resolve_scenario(scenario_id)
    base = item_base_amount(item)

    if item.tax_percentage is not None:
        tax_rate = item.tax_percentage / 100
    else:
        tax_rate = parse_rate(get_default_rate_for_scenario(scenario))

    sales_tax = 0.0 if is_exempt_or_zero_rated(scenario) else base * tax_rate
    withheld = base * WITHHOLDING_RATE if requires_withholding_tax(scenario) else 0.0
    fed = float(item.fed_payable_tax or 0) if requires_fed_payable(scenario) else 0.0

    return ItemTax(
        base_amount=base,
        tax_rate=tax_rate,
        sales_tax_applicable=sales_tax,
        sales_tax_withheld_at_source=withheld,
        fed_payable=fed,
    )


def _quantity_and_uom(item: OrderItem):
    # weight_quantity is in grams; FBR gets kilograms
    if item.is_weight_based and item.weight_quantity:
        return float(item.weight_quantity) / 1000, item.uom or WEIGHT_UOM
    return float(item.quantity or 0), item.uom or DEFAULT_UOM


def map_order_item_to_fbr_item(item: OrderItem, scenario_id: ScenarioLike, sale_type: str) -> FbrItem:
    scenario = resolve_scenario(scenario_id)
    tax = calculate_item_tax(item, scenario)
    quantity, uom = _quantity_and_uom(item)

    fixed_value = 0.0
    if supports_third_schedule(scenario):
        fixed_value = _positive_or_zero(item.fixed_notified_value_or_retail_price)

    return FbrItem(
        hs_code=item.hs_code or DEFAULT_HS_CODE,
        product_description=item.product_description or item.product_name or "",
        rate=rate_label_for_item(item, scenario),
        uom=uom,
        quantity=round_to_fbr_precision(quantity, is_quantity=True),
        value_sales_excluding_st=round_to_fbr_precision(tax.base_amount),
        total_values=round_to_fbr_precision(tax.base_amount + tax.sales_tax_applicable),
        fixed_notified_value_or_retail_price=round_to_fbr_precision(fixed_value),
        sales_tax_applicable=round_to_fbr_precision(tax.sales_tax_applicable),
        sales_tax_withheld_at_source=round_to_fbr_precision(_positive_or_zero(tax.sales_tax_withheld_at_source)),
        extra_tax=round_to_fbr_precision(_positive_or_zero(item.extra_tax)),
        further_tax=round_to_fbr_precision(_positive_or_zero(item.further_tax)),
        sro_schedule_no=item.sro_schedule_number or "",
        fed_payable=round_to_fbr_precision(_positive_or_zero(tax.fed_payable)),
        discount=round_to_fbr_precision(_positive_or_zero(item.discount)),
        sale_type=item.sale_type or sale_type,
        sro_item_serial_no=item.item_serial_number or "",
    )


def resolve_seller_info(
    order: Order,
    seller_info: Optional[SellerInfo] = None,
    app_settings: Optional[Settings] = None,
) -> SellerInfo:
    """Order-level seller, then the explicit one, then configured defaults. No merging."""
    if order.seller_ntncnic or order.seller_business_name:
        return SellerInfo(
            ntncnic=order.seller_ntncnic or "",
            business_name=order.seller_business_name or "",
            province=order.seller_province or "",
            address=order.seller_address or "",
        )
    if seller_info is not None:
        return seller_info

    cfg = app_settings or default_settings
    return SellerInfo(
        ntncnic=cfg.FBR_SELLER_NTNCNIC,
        business_name=cfg.FBR_SELLER_BUSINESS_NAME,
        province=cfg.FBR_SELLER_PROVINCE,
        address=cfg.FBR_SELLER_ADDRESS,
    )


def resolve_buyer_info(order: Order) -> BuyerInfo:
    street = order.shipping_address1 or order.billing_address1 or ""
    city = order.shipping_city or order.billing_city or ""
    composed_address = f"{street} {city}".strip()

    return BuyerInfo(
        ntncnic=order.buyer_ntncnic or DEFAULT_BUYER_NTNCNIC,
        business_name=order.buyer_business_name or order.email or DEFAULT_BUYER_NAME,
        province=(
            order.buyer_province
            or order.shipping_state
            or order.billing_state
            or DEFAULT_BUYER_PROVINCE
        ),
        address=order.buyer_address or composed_address or DEFAULT_BUYER_ADDRESS,
        registration_type=order.buyer_registration_type or DEFAULT_REGISTRATION_TYPE,
    )


def _sale_type_entries(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return [entry for entry in data if isinstance(entry, dict)]
    return []


async def resolve_sale_type(
    scenario_id: ScenarioLike,
    invoice_date: Optional[str] = None,
    client: Optional["FbrClient"] = None,
) -> str:
    """
    Local saleType for the scenario, replaced by FBR's label when the
    SaleTypeToRate table has a matching entry. Lookup failures keep the local label.
    """
    scenario = resolve_scenario(scenario_id)
    sale_type = get_sale_type_for_scenario(scenario)
    if client is None or not invoice_date:
        return sale_type

    lookup = await client.get_sale_type_to_rate(invoice_date)
    if lookup.is_failure():
        logger.warning(f"⚠️ Could not verify saleType against FBR data: {lookup.error}")
        return sale_type

    for entry in _sale_type_entries(lookup.unwrap()):
        if entry.get("scenarioId") == scenario.value or entry.get("saleType") == sale_type:
            if entry.get("saleType"):
                return entry["saleType"]
            break
    return sale_type


async def resolve_rate_label_from_fbr(
    scenario_id: ScenarioLike,
    sale_type: str,
    invoice_date: Optional[str],
    client: Optional["FbrClient"],
) -> str:
    """FBR-published rate label for a sale type, or the scenario default."""
    default_rate = get_default_rate_for_scenario(scenario_id)
    if client is None or not invoice_date:
        return default_rate

    entries = _sale_type_entries((await client.get_sale_type_to_rate(invoice_date)).unwrap_or(None))
    target = sale_type.lower()
    for entry in entries:
        desc = str(entry.get("transactionTypeDesc") or entry.get("saleType") or "").lower()
        if not desc or (desc not in target and target not in desc):
            continue
        label = entry.get("rateDesc") or entry.get("rateText") or entry.get("rate") or entry.get("display")
        if label:
            logger.info(f"✅ Using FBR-verified rate for {resolve_scenario(scenario_id).value} ({sale_type}): {label}")
            return str(label)
    return default_rate


def coerce_order(order: Union[Order, Dict[str, Any]]) -> Order:
    if isinstance(order, Order):
        return order
    return Order.model_validate(order)


async def map_order_to_fbr_invoice(
    order: Union[Order, Dict[str, Any]],
    seller_info: Optional[SellerInfo] = None,
    *,
    client: Optional["FbrClient"] = None,
    app_settings: Optional[Settings] = None,
) -> FbrInvoice:
    """
    Maps an order to the FBR invoice payload.

    Raises:
        FbrPreconditionError: no scenario id or no items (checked before any lookup).
    """
    order = coerce_order(order)
    if not order.scenario_id:
        raise FbrPreconditionError("Order must have a scenarioId for FBR integration")
    if not order.items:
        raise FbrPreconditionError("Order must have at least one item for FBR integration")

    seller = resolve_seller_info(order, seller_info, app_settings)
    buyer = resolve_buyer_info(order)
    scenario = resolve_scenario(order.scenario_id)
    invoice_date = order.invoice_date or today_iso()
    invoice_type = order.invoice_type or SALE_INVOICE

    sale_type = await resolve_sale_type(scenario, invoice_date, client)
    items = [map_order_item_to_fbr_item(item, scenario, sale_type) for item in order.items]

    return FbrInvoice(
        invoice_type=invoice_type,
        invoice_date=invoice_date,
        seller_ntncnic=seller.ntncnic,
        seller_business_name=seller.business_name,
        seller_province=seller.province,
        seller_address=seller.address,
        buyer_ntncnic=buyer.ntncnic,
        buyer_business_name=buyer.business_name,
        buyer_province=buyer.province,
        buyer_address=buyer.address,
        buyer_registration_type=buyer.registration_type,
        invoice_ref_no=(order.invoice_ref_no or "") if invoice_type == DEBIT_NOTE else "",
        # FBR knows scenarios newer than the local table, so send the code as given
        scenario_id=str(order.scenario_id).strip().upper(),
        items=items,
    )


def build_test_order(scenario_id: ScenarioLike) -> Order:
    """Single 1000 PKR item at 18%, unregistered buyer."""
    scenario = resolve_scenario(scenario_id)
    return Order(
        email="test@example.com",
        scenario_id=scenario.value,
        invoice_type=SALE_INVOICE,
        subtotal=1000,
        total_amount=1180,
        buyer_registration_type=DEFAULT_REGISTRATION_TYPE,
        items=[
            OrderItem(
                product_id="test-product-1",
                product_name="Test Product",
                product_description="Test product for FBR integration",
                hs_code="1234567890",
                uom="PCS",
                quantity=1,
                price=1000,
                total_price=1000,
                tax_percentage=18,
            )
        ],
    )


async def create_test_fbr_invoice(
    scenario_id: Union[ScenarioId, str],
    seller_info: Optional[SellerInfo] = None,
    *,
    client: Optional["FbrClient"] = None,
    app_settings: Optional[Settings] = None,
) -> FbrInvoice:
    return await map_order_to_fbr_invoice(
        build_test_order(scenario_id), seller_info, client=client, app_settings=app_settings
    )
