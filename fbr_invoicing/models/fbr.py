from __future__ import annotations
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, ConfigDict

from .order import Order


# -----------------------
# Identity blocks
# -----------------------
class SellerInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    ntncnic: str = ""
    business_name: str = Field("", alias="businessName")
    province: str = ""
    address: str = ""


class BuyerInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    ntncnic: str
    business_name: str = Field(alias="businessName")
    province: str
    address: str
    registration_type: str = Field("Unregistered", alias="registrationType")


# -----------------------
# Wire format (exact FBR field names live in the aliases)
# -----------------------
class FbrItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    hs_code: str = Field(alias="hsCode")
    product_description: str = Field("", alias="productDescription")
    rate: str
    uom: str = Field(alias="uoM")
    quantity: float
    value_sales_excluding_st: float = Field(alias="valueSalesExcludingST")
    total_values: float = Field(alias="totalValues")
    fixed_notified_value_or_retail_price: float = Field(0.0, alias="fixedNotifiedValueOrRetailPrice")
    sales_tax_applicable: float = Field(alias="salesTaxApplicable")
    sales_tax_withheld_at_source: float = Field(0.0, alias="salesTaxWithheldAtSource")
    extra_tax: float = Field(0.0, alias="extraTax")
    further_tax: float = Field(0.0, alias="furtherTax")
    sro_schedule_no: str = Field("", alias="sroScheduleNo")
    fed_payable: float = Field(0.0, alias="fedPayable")
    discount: float = 0.0
    sale_type: str = Field(alias="saleType")
    sro_item_serial_no: str = Field("", alias="sroItemSerialNo")


class FbrInvoice(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    invoice_type: str = Field("Sale Invoice", alias="invoiceType")
    invoice_date: str = Field(alias="invoiceDate")
    seller_ntncnic: str = Field(alias="sellerNTNCNIC")
    seller_business_name: str = Field(alias="sellerBusinessName")
    seller_province: str = Field(alias="sellerProvince")
    seller_address: str = Field(alias="sellerAddress")
    buyer_ntncnic: Optional[str] = Field(None, alias="buyerNTNCNIC")
    buyer_business_name: Optional[str] = Field(None, alias="buyerBusinessName")
    buyer_province: Optional[str] = Field(None, alias="buyerProvince")
    buyer_address: Optional[str] = Field(None, alias="buyerAddress")
    buyer_registration_type: str = Field("Unregistered", alias="buyerRegistrationType")
    invoice_ref_no: str = Field("", alias="invoiceRefNo")
    scenario_id: str = Field(alias="scenarioId")
    items: List[FbrItem]

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with FBR field names (not yet sanitized)."""
        return self.model_dump(by_alias=True, mode="json")


# -----------------------
# Results
# -----------------------
class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class SubmissionResult(BaseModel):
    """Outcome of the validate-then-post flow, shaped like the submit endpoint response."""
    model_config = ConfigDict(populate_by_name=True)
    step: str  # validation / mapping / validate / post / error
    ok: bool
    response: Dict[str, Any] = Field(default_factory=dict)
    validation: Optional[Dict[str, Any]] = None
    fbr_invoice: Optional[Dict[str, Any]] = Field(None, alias="fbrInvoice")
    error: Optional[str] = None
    # submitted order with invoice_number and validation_response written back
    order: Optional[Order] = Field(None, exclude=True)


# -----------------------
# Response helpers (FBR bodies are open-ended dicts)
# -----------------------
FbrValidationResponse = Dict[str, Any]
FbrPostResponse = Dict[str, Any]


def validation_status(response: Optional[FbrValidationResponse]) -> Optional[str]:
    block = (response or {}).get("validationResponse") or {}
    if not isinstance(block, dict):
        return None
    return block.get("status")


def validation_errors(response: Optional[FbrValidationResponse]) -> List[str]:
    """
    Collects the top-level error and any per-item errors nested under
    ``validationResponse.invoiceStatuses[].error``.
    """
    block = (response or {}).get("validationResponse") or {}
    if not isinstance(block, dict):
        return []
    errors: List[str] = []
    if block.get("error"):
        errors.append(str(block["error"]))
    for status in block.get("invoiceStatuses") or []:
        if isinstance(status, dict) and status.get("error"):
            item_sno = status.get("itemSNo")
            prefix = f"Item {item_sno}: " if item_sno else ""
            errors.append(f"{prefix}{status['error']}")
    return errors
