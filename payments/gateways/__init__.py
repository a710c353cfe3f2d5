"""
Payment gateway abstraction layer.

Provides a unified interface for interacting with different payment providers.
"""

from .base import (
    BasePaymentGateway,
    GatewayException,
    GatewayConfigurationError,
    InvalidAmount,
    PaymentMethodTokenizeRequest,
    PaymentMethodTokenizeResponse,
    PaymentMethodType,
    PaymentRequest,
    PaymentResponse,
    RefundRequest,
    RefundResponse,
    TokenizationError,
    UnsupportedCurrency,
    WebhookEvent,
)
from .status import PaymentStatus, RefundStatus, map_payment_status, map_refund_status
from .razorpay_gateway import RazorpayGateway
from .factory import get_gateway, register_gateway, list_available_gateways, clear_gateway_cache

__all__ = [
    'BasePaymentGateway',
    'GatewayException',
    'GatewayConfigurationError',
    'InvalidAmount',
    'PaymentMethodTokenizeRequest',
    'PaymentMethodTokenizeResponse',
    'PaymentMethodType',
    'PaymentRequest',
    'PaymentResponse',
    'PaymentStatus',
    'RefundRequest',
    'RefundResponse',
    'RefundStatus',
    'TokenizationError',
    'UnsupportedCurrency',
    'WebhookEvent',
    'RazorpayGateway',
    'get_gateway',
    'register_gateway',
    'list_available_gateways',
    'clear_gateway_cache',
    'map_payment_status',
    'map_refund_status',
]
