from .order import Order, OrderItem, OrderItemAddon
from .fbr import (
    SellerInfo, BuyerInfo, FbrItem, FbrInvoice,
    ValidationResult, SubmissionResult, FbrValidationResponse, FbrPostResponse,
    validation_status, validation_errors,
)

__all__ = [
    'Order', 'OrderItem', 'OrderItemAddon',
    'SellerInfo', 'BuyerInfo', 'FbrItem', 'FbrInvoice',
    'ValidationResult', 'SubmissionResult', 'FbrValidationResponse', 'FbrPostResponse',
    'validation_status', 'validation_errors',
]
