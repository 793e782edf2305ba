from __future__ import annotations

import asyncio
import logging
from typing import Any, List

import pytest

from fbr_invoicing.config.settings import Settings
from fbr_invoicing.core.exceptions import FbrPreconditionError
from fbr_invoicing.core.result import failure, success
from fbr_invoicing.models.fbr import SellerInfo
from fbr_invoicing.models.order import Order, OrderItem
from fbr_invoicing.modules.fbr.json_utils import sanitize
from fbr_invoicing.modules.fbr.mapper import (
    calculate_item_tax,
    create_test_fbr_invoice,
    map_order_item_to_fbr_item,
    map_order_to_fbr_invoice,
    resolve_buyer_info,
    resolve_rate_label_from_fbr,
    resolve_sale_type,
    resolve_seller_info,
)


class _FakeLookupClient:
    """Stands in for FbrClient.get_sale_type_to_rate."""

    def __init__(self, result: Any):
        self.result = result
        self.calls: List[str] = []

    async def get_sale_type_to_rate(self, day, token=None, base_url=None):
        self.calls.append(day)
        return self.result


def _item(**overrides: Any) -> OrderItem:
    data = dict(product_name="Widget", quantity=1, price=1000, total_price=1000)
    data.update(overrides)
    return OrderItem(**data)


def _order(**overrides: Any) -> Order:
    data = dict(
        email="buyer@example.com",
        scenario_id="SN001",
        invoice_date="2025-01-15",
        items=[_item(tax_percentage=18)],
    )
    data.update(overrides)
    return Order(**data)


def _settings() -> Settings:
    return Settings(
        FBR_SELLER_NTNCNIC="7000000000001",
        FBR_SELLER_BUSINESS_NAME="Configured Seller",
        FBR_SELLER_PROVINCE="Sindh",
        FBR_SELLER_ADDRESS="Karachi",
    )


# -----------------------
# Tax calculation
# -----------------------
def test_standard_rate_uses_scenario_default():
    tax = calculate_item_tax(_item(), "SN001")
    assert tax.base_amount == 1000
    assert tax.tax_rate == pytest.approx(0.18)
    assert tax.sales_tax_applicable == pytest.approx(180)
    assert tax.sales_tax_withheld_at_source == 0
    assert tax.fed_payable == 0


def test_tax_percentage_overrides_default_rate():
    tax = calculate_item_tax(_item(tax_percentage=5), "SN001")
    assert tax.sales_tax_applicable == pytest.approx(50)


@pytest.mark.parametrize("scenario", ["SN006", "SN007", "SN019", "SN025"])
def test_exempt_scenarios_never_carry_sales_tax(scenario):
    tax = calculate_item_tax(_item(tax_percentage=18), scenario)
    assert tax.sales_tax_applicable == 0


def test_withholding_is_two_percent_of_base():
    tax = calculate_item_tax(_item(), "SN002")
    assert tax.sales_tax_withheld_at_source == pytest.approx(20)


def test_fed_payable_only_in_fed_scenarios():
    assert calculate_item_tax(_item(fed_payable_tax=50), "SN017").fed_payable == 50
    assert calculate_item_tax(_item(fed_payable_tax=50), "SN001").fed_payable == 0
    assert calculate_item_tax(_item(), "SN017").fed_payable == 0


def test_base_falls_back_to_price_times_quantity():
    tax = calculate_item_tax(_item(total_price=None, price=250, quantity=4), "SN001")
    assert tax.base_amount == 1000


# -----------------------
# Item mapping
# -----------------------
def test_item_defaults_and_totals():
    fbr_item = map_order_item_to_fbr_item(_item(), "SN001", "Goods at standard rate (default)")
    assert fbr_item.hs_code == "2710.1991"
    assert fbr_item.uom == "PCS"
    assert fbr_item.product_description == "Widget"
    assert fbr_item.rate == "18%"
    assert fbr_item.quantity == 1
    assert fbr_item.value_sales_excluding_st == 1000
    assert fbr_item.sales_tax_applicable == 180
    assert fbr_item.total_values == 1180
    assert fbr_item.sro_schedule_no == ""
    assert fbr_item.sro_item_serial_no == ""
    assert fbr_item.discount == 0
    assert fbr_item.extra_tax == 0


def test_optional_numerics_only_set_when_positive():
    fbr_item = map_order_item_to_fbr_item(
        _item(extra_tax=0, further_tax=12.5, discount=-3), "SN001", "x"
    )
    assert fbr_item.extra_tax == 0
    assert fbr_item.further_tax == 12.5
    assert fbr_item.discount == 0


def test_fixed_retail_price_only_for_third_schedule():
    item = _item(fixed_notified_value_or_retail_price=1200)
    assert map_order_item_to_fbr_item(item, "SN008", "3rd Schedule Goods").fixed_notified_value_or_retail_price == 1200
    assert map_order_item_to_fbr_item(item, "SN001", "x").fixed_notified_value_or_retail_price == 0
    assert map_order_item_to_fbr_item(_item(), "SN008", "x").fixed_notified_value_or_retail_price == 0


def test_item_overrides_win():
    item = _item(
        hs_code="0101.2100",
        uom="Numbers, pieces, units",
        product_description="Imported widget",
        sale_type="Custom sale type",
        sro_schedule_number="SRO 123",
        item_serial_number="7",
    )
    fbr_item = map_order_item_to_fbr_item(item, "SN001", "Goods at standard rate (default)")
    assert fbr_item.hs_code == "0101.2100"
    assert fbr_item.uom == "Numbers, pieces, units"
    assert fbr_item.product_description == "Imported widget"
    assert fbr_item.sale_type == "Custom sale type"
    assert fbr_item.sro_schedule_no == "SRO 123"
    assert fbr_item.sro_item_serial_no == "7"


def test_weight_based_items_report_kilograms():
    item = _item(is_weight_based=True, weight_quantity=1500, quantity=1)
    fbr_item = map_order_item_to_fbr_item(item, "SN001", "x")
    assert fbr_item.quantity == 1.5
    assert fbr_item.uom == "KG"


def test_item_amounts_are_rounded():
    fbr_item = map_order_item_to_fbr_item(_item(total_price=100.005, tax_percentage=0), "SN001", "x")
    assert fbr_item.value_sales_excluding_st == 100.01
    assert fbr_item.rate == "0%"


# -----------------------
# Seller / buyer
# -----------------------
def test_seller_resolution_order():
    explicit = SellerInfo(ntncnic="111", business_name="Explicit", province="KPK", address="Peshawar")
    order_level = _order(seller_business_name="Order Seller")

    assert resolve_seller_info(order_level, explicit, _settings()).business_name == "Order Seller"
    assert resolve_seller_info(_order(), explicit, _settings()) == explicit
    assert resolve_seller_info(_order(), None, _settings()).business_name == "Configured Seller"


def test_buyer_defaults():
    buyer = resolve_buyer_info(Order(items=[_item()]))
    assert buyer.ntncnic == "1234567890123"
    assert buyer.business_name == "Customer"
    assert buyer.province == "Punjab"
    assert buyer.address == "Customer Address"
    assert buyer.registration_type == "Unregistered"


def test_buyer_fallbacks_from_addresses():
    order = _order(
        shipping_address1="1 Mall Road",
        billing_city="Lahore",
        billing_state="Punjab",
        shipping_state="Sindh",
    )
    buyer = resolve_buyer_info(order)
    assert buyer.business_name == "buyer@example.com"
    assert buyer.province == "Sindh"
    assert buyer.address == "1 Mall Road Lahore"


# -----------------------
# Invoice mapping
# -----------------------
def test_map_order_to_fbr_invoice():
    invoice = asyncio.run(map_order_to_fbr_invoice(_order(), app_settings=_settings()))
    assert invoice.invoice_type == "Sale Invoice"
    assert invoice.invoice_date == "2025-01-15"
    assert invoice.scenario_id == "SN001"
    assert invoice.seller_ntncnic == "7000000000001"
    assert invoice.invoice_ref_no == ""
    assert len(invoice.items) == 1
    assert invoice.items[0].sale_type == "Goods at standard rate (default)"

    payload = sanitize(invoice.to_payload())
    assert payload["invoiceRefNo"] == ""
    assert payload["sellerBusinessName"] == "Configured Seller"
    assert payload["items"][0]["valueSalesExcludingST"] == 1000
    assert payload["items"][0]["uoM"] == "PCS"


def test_map_order_accepts_camel_case_dict():
    data = {
        "email": "x@example.com",
        "scenarioId": "SN008",
        "invoiceDate": "2025-02-01",
        "items": [{"productName": "Tea", "quantity": 2, "price": 500, "fixedNotifiedValueOrRetailPrice": 1200}],
    }
    invoice = asyncio.run(map_order_to_fbr_invoice(data, app_settings=_settings()))
    assert invoice.items[0].value_sales_excluding_st == 1000
    assert invoice.items[0].fixed_notified_value_or_retail_price == 1200


def test_invoice_date_defaults_to_today():
    invoice = asyncio.run(map_order_to_fbr_invoice(_order(invoice_date=None), app_settings=_settings()))
    assert len(invoice.invoice_date) == 10
    assert invoice.invoice_date[4] == "-"


def test_invoice_ref_only_sent_for_debit_notes():
    debit = asyncio.run(map_order_to_fbr_invoice(
        _order(invoice_type="Debit Note", invoice_ref_no="INV-1"), app_settings=_settings()
    ))
    sale = asyncio.run(map_order_to_fbr_invoice(_order(invoice_ref_no="INV-1"), app_settings=_settings()))
    assert debit.invoice_ref_no == "INV-1"
    assert sale.invoice_ref_no == ""


@pytest.mark.parametrize("overrides", [{"scenario_id": None}, {"items": []}])
def test_preconditions_checked_before_any_lookup(overrides):
    client = _FakeLookupClient(success([]))
    with pytest.raises(FbrPreconditionError):
        asyncio.run(map_order_to_fbr_invoice(_order(**overrides), client=client, app_settings=_settings()))
    assert client.calls == []


def test_create_test_fbr_invoice():
    invoice = asyncio.run(create_test_fbr_invoice("SN026", app_settings=_settings()))
    assert invoice.scenario_id == "SN026"
    assert invoice.buyer_business_name == "test@example.com"
    assert invoice.items[0].hs_code == "1234567890"
    assert invoice.items[0].total_values == 1180


# -----------------------
# SaleTypeToRate lookups
# -----------------------
def test_resolve_sale_type_without_client_uses_registry():
    assert asyncio.run(resolve_sale_type("SN006", "2025-01-15")) == "Exempt goods"


def test_resolve_sale_type_prefers_fbr_label():
    client = _FakeLookupClient(success([{"scenarioId": "SN005", "saleType": "Goods at Reduced Rate (FBR)"}]))
    assert asyncio.run(resolve_sale_type("SN005", "2025-01-15", client)) == "Goods at Reduced Rate (FBR)"
    assert client.calls == ["2025-01-15"]


def test_resolve_sale_type_ignores_lookup_failure(caplog):
    client = _FakeLookupClient(failure("HTTP 500"))
    with caplog.at_level(logging.WARNING):
        assert asyncio.run(resolve_sale_type("SN008", "2025-01-15", client)) == "3rd Schedule Goods"
    assert "Could not verify saleType" in caplog.text


def test_resolve_rate_label_from_fbr():
    client = _FakeLookupClient(success([{"transactionTypeDesc": "Goods at Reduced Rate", "rateDesc": "5%"}]))
    assert asyncio.run(resolve_rate_label_from_fbr("SN005", "Goods at Reduced Rate", "2025-01-15", client)) == "5%"
    assert asyncio.run(resolve_rate_label_from_fbr("SN005", "Goods at Reduced Rate", None, client)) == "1%"
    failing = _FakeLookupClient(failure("boom"))
    assert asyncio.run(resolve_rate_label_from_fbr("SN005", "Goods at Reduced Rate", "2025-01-15", failing)) == "1%"
