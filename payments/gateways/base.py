"""
Base classes for payment gateway abstraction.

This module defines the contract that every payment provider adapter must
implement, along with the request/response objects passed across it. The
checkout and order services depend only on this module, so providers
(Razorpay, PayU, Cashfree, Stripe, etc.) can be swapped without touching them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any, Union

from .status import PaymentStatus, RefundStatus


DEFAULT_TIMEOUT = 30


class PaymentMethodType(str, Enum):
    CARD = 'CARD'
    UPI = 'UPI'
    WALLET = 'WALLET'
    NET_BANKING = 'NET_BANKING'
    EMI = 'EMI'
    PAY_LATER = 'PAY_LATER'


class GatewayException(Exception):
    """
    Custom exception for payment gateway errors.

    Carries a machine-readable error code and, when available, the raw
    provider response.
    """
    def __init__(self, message: str, error_code: Optional[str] = None, gateway_response: Optional[Dict] = None):
        self.message = message
        self.error_code = error_code
        self.gateway_response = gateway_response
        super().__init__(self.message)


class GatewayConfigurationError(GatewayException):
    """Raised when a gateway cannot be built from settings."""


class UnsupportedCurrency(GatewayException):
    """Raised for ISO currency codes with no known minor-unit exponent."""


class InvalidAmount(GatewayException):
    """Raised for negative, non-numeric or non-finite amounts."""


class TokenizationError(GatewayException):
    """
    Raised when a payment method cannot be tokenized.

    Unlike payments and refunds, a failed tokenization blocks the caller's
    save operation, so it is signalled as an exception rather than a status.
    """


def mask_instrument(number: Optional[str]) -> Optional[str]:
    """
    Return a display-safe version of an instrument number.

    Only the last four characters are kept. Inputs shorter than four
    characters have no masked form and yield None.
    """
    if not number:
        return None
    digits = str(number).replace(' ', '').replace('-', '')
    if len(digits) < 4:
        return None
    return '****' + digits[-4:]


@dataclass(frozen=True)
class PaymentRequest:
    """
    Request to collect a payment.

    Attributes:
        amount: Amount in major currency units (e.g. rupees, dollars)
        currency: ISO 4217 currency code
        method_type: Payment method the customer chose
        upi_id: Customer VPA for UPI collect flows
        card_token: Saved card token for CARD payments
        wallet: Wallet provider code for WALLET payments
        bank_code: Bank code for NET_BANKING payments
        order_id: Platform order reference, used as the provider receipt
        notes: Extra key/value metadata forwarded to the provider
    """
    amount: Decimal
    currency: str
    method_type: PaymentMethodType
    upi_id: Optional[str] = None
    card_token: Optional[str] = None
    wallet: Optional[str] = None
    bank_code: Optional[str] = None
    order_id: Optional[str] = None
    notes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentResponse:
    """
    Normalized result of a payment or status call.

    On failure only `status` (FAILED), `error_message` and, for status
    fetches, `transaction_id` are populated.
    """
    transaction_id: Optional[str]
    payment_id: Optional[str]
    status: PaymentStatus
    payment_link: Optional[str] = None
    qr_code: Optional[str] = None
    error_message: Optional[str] = None
    gateway_response: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def success(self) -> bool:
        return self.error_message is None

    @classmethod
    def failed(cls, message: str, transaction_id: Optional[str] = None) -> 'PaymentResponse':
        return cls(
            transaction_id=transaction_id,
            payment_id=None,
            status=PaymentStatus.FAILED,
            error_message=message
        )


@dataclass(frozen=True)
class RefundRequest:
    payment_id: str
    amount: Decimal
    currency: str = 'INR'
    reason: Optional[str] = None


@dataclass(frozen=True)
class RefundResponse:
    refund_id: Optional[str]
    status: RefundStatus
    error_message: Optional[str] = None
    gateway_response: Optional[Dict[str, Any]] = field(default=None, compare=False, repr=False)

    @property
    def success(self) -> bool:
        return self.error_message is None

    @classmethod
    def failed(cls, message: str) -> 'RefundResponse':
        return cls(refund_id=None, status=RefundStatus.FAILED, error_message=message)


@dataclass(frozen=True)
class PaymentMethodTokenizeRequest:
    """
    Raw card details to be exchanged for a reusable token.

    The full card number and CVV are only ever forwarded to the provider;
    they are never logged or returned.
    """
    customer_id: Optional[str]
    card_number: Optional[str] = field(repr=False)
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None
    cardholder_name: Optional[str] = None
    cvv: Optional[str] = field(default=None, repr=False)
    method_type: PaymentMethodType = PaymentMethodType.CARD


@dataclass(frozen=True)
class PaymentMethodTokenizeResponse:
    token: str
    masked_number: Optional[str] = None
    card_network: Optional[str] = None
    expiry_month: Optional[int] = None
    expiry_year: Optional[int] = None


@dataclass(frozen=True)
class WebhookEvent:
    """
    Standardized view of a provider webhook body.

    Statuses are canonical; `data` keeps the provider entities untouched.
    """
    event_type: Optional[str]
    event_id: Optional[str]
    payment_status: Optional[PaymentStatus] = None
    refund_status: Optional[RefundStatus] = None
    data: Dict[str, Any] = field(default_factory=dict)


class BasePaymentGateway(ABC):
    """
    Abstract base class for payment gateway implementations.

    Contract:
        - process_payment / process_refund / get_payment_status never raise;
          every failure comes back as a FAILED response with a message.
        - tokenize_payment_method raises TokenizationError on failure.
        - verify_webhook_signature is a predicate and fails closed.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        webhook_secret: Optional[str] = None,
        timeout: Union[int, float] = DEFAULT_TIMEOUT
    ):
        """
        Initialize the payment gateway.

        Args:
            api_key: Public API key / key id
            api_secret: Secret API key
            webhook_secret: Shared secret for verifying webhook signatures
            timeout: Seconds to wait on each outbound provider call
        """
        self.api_key = api_key
        self.api_secret = api_secret
        self.webhook_secret = webhook_secret
        self.timeout = timeout

    @abstractmethod
    def process_payment(self, request: PaymentRequest) -> PaymentResponse:
        """
        Create a payment with the provider.

        Args:
            request: Payment request with amount, currency and method details

        Returns:
            PaymentResponse with gateway references and canonical status
        """
        pass

    @abstractmethod
    def process_refund(self, request: RefundRequest) -> RefundResponse:
        """
        Refund (part of) a captured payment.

        Args:
            request: Refund request with gateway payment id and amount

        Returns:
            RefundResponse with refund id and canonical status
        """
        pass

    @abstractmethod
    def tokenize_payment_method(self, request: PaymentMethodTokenizeRequest) -> PaymentMethodTokenizeResponse:
        """
        Exchange raw card details for a reusable provider token.

        Raises:
            TokenizationError: If the method cannot be tokenized
        """
        pass

    @abstractmethod
    def get_payment_status(self, transaction_id: str) -> PaymentResponse:
        """
        Fetch the current status of a payment for reconciliation.

        The supplied transaction id is echoed back even on failure.
        """
        pass

    @abstractmethod
    def verify_webhook_signature(self, payload: Union[bytes, str], signature: str) -> bool:
        """
        Verify that a webhook body was signed by the provider.

        Args:
            payload: Raw webhook body, exactly as received
            signature: Signature from the webhook headers

        Returns:
            True only if the signature matches; False on any error
        """
        pass

    @abstractmethod
    def parse_webhook_event(self, payload: Union[bytes, str, Dict]) -> WebhookEvent:
        """
        Parse a verified webhook body into a WebhookEvent.
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """
        Provider identifier used by callers for routing and logging.
        """
        pass

    def __repr__(self):
        return f"<{self.__class__.__name__}(provider={self.get_provider_name()})>"
