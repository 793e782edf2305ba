# fbr_invoicing/models/order.py
#
# Order shapes handed over by the CRUD layer. Everything is optional: the
# validator decides what is actually required, the mapper decides defaults.

from __future__ import annotations
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class OrderItemAddon(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    addon_id: Optional[str] = Field(None, alias="addonId")
    title: Optional[str] = None
    price: float = 0.0
    quantity: float = 1.0


class OrderItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    product_id: Optional[str] = Field(None, alias="productId")
    variant_id: Optional[str] = Field(None, alias="variantId")
    product_name: Optional[str] = Field(None, alias="productName")
    product_description: Optional[str] = Field(None, alias="productDescription")
    variant_title: Optional[str] = Field(None, alias="variantTitle")
    sku: Optional[str] = None
    hs_code: Optional[str] = Field(None, alias="hsCode")
    price: Optional[float] = None
    quantity: Optional[float] = None
    total_price: Optional[float] = Field(None, alias="totalPrice")

    # Weight-based products (weight_quantity is in grams)
    weight_quantity: Optional[float] = Field(None, alias="weightQuantity")
    weight_unit: Optional[str] = Field(None, alias="weightUnit")
    is_weight_based: bool = Field(False, alias="isWeightBased")

    uom: Optional[str] = None
    item_serial_number: Optional[str] = Field(None, alias="itemSerialNumber")
    sro_schedule_number: Optional[str] = Field(None, alias="sroScheduleNumber")

    # Per-item tax overrides
    tax_amount: Optional[float] = Field(None, alias="taxAmount")
    tax_percentage: Optional[float] = Field(None, alias="taxPercentage")
    price_including_tax: Optional[float] = Field(None, alias="priceIncludingTax")
    price_excluding_tax: Optional[float] = Field(None, alias="priceExcludingTax")
    extra_tax: Optional[float] = Field(None, alias="extraTax")
    further_tax: Optional[float] = Field(None, alias="furtherTax")
    fed_payable_tax: Optional[float] = Field(None, alias="fedPayableTax")
    discount: Optional[float] = None
    fixed_notified_value_or_retail_price: Optional[float] = Field(None, alias="fixedNotifiedValueOrRetailPrice")
    sale_type: Optional[str] = Field(None, alias="saleType")

    addons: List[OrderItemAddon] = Field(default_factory=list)


class Order(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    order_number: Optional[str] = Field(None, alias="orderNumber")
    user_id: Optional[str] = Field(None, alias="userId")
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = Field(None, alias="paymentStatus")

    # Totals
    subtotal: float = 0.0
    tax_amount: Optional[float] = Field(None, alias="taxAmount")
    shipping_amount: Optional[float] = Field(None, alias="shippingAmount")
    discount_amount: Optional[float] = Field(None, alias="discountAmount")
    total_amount: float = Field(0.0, alias="totalAmount")
    currency: Optional[str] = None

    # Invoice / FBR bookkeeping
    invoice_type: Optional[str] = Field(None, alias="invoiceType")
    invoice_ref_no: Optional[str] = Field(None, alias="invoiceRefNo")
    scenario_id: Optional[str] = Field(None, alias="scenarioId")
    invoice_number: Optional[str] = Field(None, alias="invoiceNumber")
    invoice_date: Optional[str] = Field(None, alias="invoiceDate")
    validation_response: Optional[str] = Field(None, alias="validationResponse")

    # Billing address
    billing_first_name: Optional[str] = Field(None, alias="billingFirstName")
    billing_last_name: Optional[str] = Field(None, alias="billingLastName")
    billing_address1: Optional[str] = Field(None, alias="billingAddress1")
    billing_address2: Optional[str] = Field(None, alias="billingAddress2")
    billing_city: Optional[str] = Field(None, alias="billingCity")
    billing_state: Optional[str] = Field(None, alias="billingState")
    billing_postal_code: Optional[str] = Field(None, alias="billingPostalCode")
    billing_country: Optional[str] = Field(None, alias="billingCountry")

    # Shipping address
    shipping_first_name: Optional[str] = Field(None, alias="shippingFirstName")
    shipping_last_name: Optional[str] = Field(None, alias="shippingLastName")
    shipping_address1: Optional[str] = Field(None, alias="shippingAddress1")
    shipping_address2: Optional[str] = Field(None, alias="shippingAddress2")
    shipping_city: Optional[str] = Field(None, alias="shippingCity")
    shipping_state: Optional[str] = Field(None, alias="shippingState")
    shipping_postal_code: Optional[str] = Field(None, alias="shippingPostalCode")
    shipping_country: Optional[str] = Field(None, alias="shippingCountry")

    # Buyer (selected customer)
    buyer_ntncnic: Optional[str] = Field(None, alias="buyerNTNCNIC")
    buyer_business_name: Optional[str] = Field(None, alias="buyerBusinessName")
    buyer_province: Optional[str] = Field(None, alias="buyerProvince")
    buyer_address: Optional[str] = Field(None, alias="buyerAddress")
    buyer_registration_type: Optional[str] = Field(None, alias="buyerRegistrationType")

    # Seller (tenant identity)
    seller_ntncnic: Optional[str] = Field(None, alias="sellerNTNCNIC")
    seller_business_name: Optional[str] = Field(None, alias="sellerBusinessName")
    seller_province: Optional[str] = Field(None, alias="sellerProvince")
    seller_address: Optional[str] = Field(None, alias="sellerAddress")

    # Per-tenant credentials
    fbr_sandbox_token: Optional[str] = Field(None, alias="fbrSandboxToken")
    fbr_base_url: Optional[str] = Field(None, alias="fbrBaseUrl")

    items: List[OrderItem] = Field(default_factory=list)

    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
