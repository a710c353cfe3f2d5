"""
Razorpay payment gateway implementation.

Implements the BasePaymentGateway contract for Razorpay: order creation,
refunds, card tokenization, payment status reconciliation and webhooks.
"""

import json
import logging
import threading
import uuid
from typing import Optional, Dict, Any, Union

import razorpay

from .base import (
    DEFAULT_TIMEOUT,
    BasePaymentGateway,
    GatewayException,
    PaymentMethodTokenizeRequest,
    PaymentMethodTokenizeResponse,
    PaymentMethodType,
    PaymentRequest,
    PaymentResponse,
    RefundRequest,
    RefundResponse,
    TokenizationError,
    WebhookEvent,
    mask_instrument,
)
from .currency import to_minor_units
from .signatures import verify_signature
from .status import map_payment_status, map_refund_status

logger = logging.getLogger(__name__)

PROVIDER = 'razorpay'

# Method type -> (razorpay method, PaymentRequest attribute, order field)
METHOD_FIELDS = {
    PaymentMethodType.CARD: ('card', 'card_token', 'token'),
    PaymentMethodType.UPI: ('upi', 'upi_id', 'upi_id'),
    PaymentMethodType.WALLET: ('wallet', 'wallet', 'wallet'),
    PaymentMethodType.NET_BANKING: ('netbanking', 'bank_code', 'bank'),
    PaymentMethodType.EMI: ('emi', None, None),
    PaymentMethodType.PAY_LATER: ('paylater', None, None),
}

# Razorpay rejects receipts longer than 40 characters
MAX_RECEIPT_LENGTH = 40


def generate_receipt() -> str:
    return f"receipt_{uuid.uuid4().hex}"


class RazorpayGateway(BasePaymentGateway):
    """
    Razorpay gateway implementation.

    The Razorpay client can be injected (tests, shared sessions); otherwise
    it is created on first use and reused for the lifetime of the gateway.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        webhook_secret: Optional[str] = None,
        timeout: Union[int, float] = DEFAULT_TIMEOUT,
        client: Optional[razorpay.Client] = None
    ):
        """
        Initialize Razorpay gateway.

        Args:
            api_key: Razorpay Key ID (starts with rzp_test_ or rzp_live_)
            api_secret: Razorpay Key Secret
            webhook_secret: Webhook secret for signature verification
            timeout: Seconds to wait on each Razorpay API call
            client: Pre-built razorpay.Client to use instead of creating one
        """
        super().__init__(api_key, api_secret, webhook_secret, timeout)
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def client(self) -> razorpay.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = razorpay.Client(auth=(self.api_key, self.api_secret))
        return self._client

    def get_provider_name(self) -> str:
        return 'RAZORPAY'

    # Payments

    def build_order_data(self, request: PaymentRequest) -> Dict[str, Any]:
        """
        Translate a PaymentRequest into a Razorpay order payload.
        """
        receipt = str(request.order_id) if request.order_id else generate_receipt()
        if len(receipt) > MAX_RECEIPT_LENGTH:
            raise GatewayException(
                message=f"Receipt must be at most {MAX_RECEIPT_LENGTH} characters",
                error_code='invalid_receipt'
            )

        order_data = {
            'amount': to_minor_units(request.amount, request.currency),
            'currency': request.currency.upper(),
            'receipt': receipt,
        }

        method_type = PaymentMethodType(request.method_type)
        method, attribute, order_field = METHOD_FIELDS[method_type]
        order_data['method'] = method
        if attribute:
            value = getattr(request, attribute)
            if value:
                order_data[order_field] = value

        if request.notes:
            order_data['notes'] = dict(request.notes)

        return order_data

    def process_payment(self, request: PaymentRequest) -> PaymentResponse:
        """
        Create a Razorpay order for the payment.

        Razorpay uses the order id as the payment reference until a payment
        is captured against it, so both ids in the response are the order id.
        """
        try:
            order_data = self.build_order_data(request)
            if order_data['amount'] <= 0:
                raise GatewayException(
                    message="Payment amount must be greater than zero",
                    error_code='invalid_amount'
                )

            order = self.client.order.create(data=order_data, timeout=self.timeout)

            order_id = order['id']
            status = order.get('status')

            logger.info(
                "Razorpay order created",
                extra={'order_id': order_id, 'status': status, 'receipt': order_data['receipt']}
            )

            payment_link = None
            if request.method_type == PaymentMethodType.UPI:
                payment_link = order.get('short_url')

            return PaymentResponse(
                transaction_id=order_id,
                payment_id=order_id,
                status=map_payment_status(status, PROVIDER),
                payment_link=payment_link,
                qr_code=None,
                gateway_response=order
            )

        except razorpay.errors.BadRequestError as e:
            logger.warning(
                "Razorpay payment processing failed",
                extra={'order_id': request.order_id, 'error': str(e)}
            )
            return PaymentResponse.failed(str(e))
        except (razorpay.errors.GatewayError, razorpay.errors.ServerError) as e:
            logger.error(
                "Razorpay payment processing failed",
                extra={'order_id': request.order_id, 'error': str(e)}
            )
            return PaymentResponse.failed(str(e))
        except GatewayException as e:
            logger.warning(
                "Rejected payment request",
                extra={'order_id': request.order_id, 'error_code': e.error_code, 'error': e.message}
            )
            return PaymentResponse.failed(e.message)
        except Exception as e:
            logger.error(
                "Unexpected error processing payment",
                extra={'error': str(e)},
                exc_info=True
            )
            return PaymentResponse.failed(f"Payment processing failed: {str(e)}")

    # Refunds

    def process_refund(self, request: RefundRequest) -> RefundResponse:
        """
        Create a refund against a captured Razorpay payment.
        """
        try:
            refund_data = {
                'payment_id': request.payment_id,
                'amount': to_minor_units(request.amount, request.currency),
            }
            if refund_data['amount'] <= 0:
                raise GatewayException(
                    message="Refund amount must be greater than zero",
                    error_code='invalid_amount'
                )
            if request.reason:
                refund_data['notes'] = {'reason': request.reason}

            refund = self.client.refund.create(data=refund_data, timeout=self.timeout)

            refund_id = refund['id']
            status = refund.get('status')

            logger.info(
                "Razorpay refund created",
                extra={'refund_id': refund_id, 'payment_id': request.payment_id, 'status': status}
            )

            return RefundResponse(
                refund_id=refund_id,
                status=map_refund_status(status, PROVIDER),
                gateway_response=refund
            )

        except (razorpay.errors.BadRequestError, razorpay.errors.GatewayError, razorpay.errors.ServerError) as e:
            logger.warning(
                "Razorpay refund processing failed",
                extra={'payment_id': request.payment_id, 'error': str(e)}
            )
            return RefundResponse.failed(str(e))
        except GatewayException as e:
            logger.warning(
                "Rejected refund request",
                extra={'payment_id': request.payment_id, 'error_code': e.error_code, 'error': e.message}
            )
            return RefundResponse.failed(e.message)
        except Exception as e:
            logger.error(
                "Unexpected error processing refund",
                extra={'error': str(e)},
                exc_info=True
            )
            return RefundResponse.failed(f"Refund processing failed: {str(e)}")

    # Tokenization

    def tokenize_payment_method(self, request: PaymentMethodTokenizeRequest) -> PaymentMethodTokenizeResponse:
        """
        Save a card with Razorpay's token API.

        Razorpay tokens belong to a customer, so a gateway customer id is
        required alongside the card details.
        """
        if request.method_type != PaymentMethodType.CARD:
            raise TokenizationError(
                message=f"Tokenization is not supported for {request.method_type}",
                error_code='tokenization_unsupported'
            )
        if not request.customer_id:
            raise TokenizationError(
                message="A customer id is required to tokenize a card",
                error_code='tokenization_failed'
            )
        masked_number = mask_instrument(request.card_number)
        if masked_number is None:
            raise TokenizationError(
                message="A valid card number is required to tokenize a card",
                error_code='tokenization_failed'
            )

        card = {'number': str(request.card_number).replace(' ', '').replace('-', '')}
        if request.expiry_month is not None:
            card['expiry_month'] = request.expiry_month
        if request.expiry_year is not None:
            card['expiry_year'] = request.expiry_year
        if request.cardholder_name:
            card['name'] = request.cardholder_name
        if request.cvv:
            card['cvv'] = request.cvv

        token_data = {
            'customer_id': request.customer_id,
            'method': 'card',
            'card': card,
            'authentication': {'provider': 'razorpay'},
        }

        try:
            token = self.client.token.create(data=token_data, timeout=self.timeout)
        except Exception as e:
            logger.error(
                "Razorpay tokenization failed",
                extra={'customer_id': request.customer_id, 'error': str(e)},
                exc_info=True
            )
            raise TokenizationError(
                message=f"Tokenization failed: {str(e)}",
                error_code='tokenization_failed',
                gateway_response=e.args[0] if e.args and isinstance(e.args[0], dict) else None
            ) from e

        token_id = token.get('id') if isinstance(token, dict) else None
        if not token_id:
            raise TokenizationError(
                message="Razorpay did not return a token id",
                error_code='tokenization_failed',
                gateway_response=token if isinstance(token, dict) else None
            )

        card_details = token.get('card') or {}
        logger.info(
            "Razorpay card tokenized",
            extra={'customer_id': request.customer_id, 'token_id': token_id}
        )

        return PaymentMethodTokenizeResponse(
            token=token_id,
            masked_number=masked_number,
            card_network=card_details.get('network'),
            expiry_month=request.expiry_month,
            expiry_year=request.expiry_year
        )

    # Status

    def get_payment_status(self, transaction_id: str) -> PaymentResponse:
        """
        Fetch a Razorpay payment and map its status.
        """
        try:
            payment = self.client.payment.fetch(transaction_id, timeout=self.timeout)

            return PaymentResponse(
                transaction_id=transaction_id,
                payment_id=payment.get('id'),
                status=map_payment_status(payment.get('status'), PROVIDER),
                gateway_response=payment
            )

        except (razorpay.errors.BadRequestError, razorpay.errors.GatewayError, razorpay.errors.ServerError) as e:
            logger.warning(
                "Failed to fetch Razorpay payment status",
                extra={'transaction_id': transaction_id, 'error': str(e)}
            )
            return PaymentResponse.failed(str(e), transaction_id=transaction_id)
        except Exception as e:
            logger.error(
                "Unexpected error fetching payment status",
                extra={'transaction_id': transaction_id, 'error': str(e)},
                exc_info=True
            )
            return PaymentResponse.failed(
                f"Payment status fetch failed: {str(e)}",
                transaction_id=transaction_id
            )

    # Webhooks

    def verify_webhook_signature(self, payload: Union[bytes, str], signature: str) -> bool:
        """
        Verify a Razorpay webhook signature (HMAC SHA256 of the raw body).
        """
        return verify_signature(payload, signature, self.webhook_secret)

    def parse_webhook_event(self, payload: Union[bytes, str, Dict]) -> WebhookEvent:
        """
        Parse Razorpay webhook event into a WebhookEvent.

        Razorpay webhooks have structure:
        {
            "event": "payment.captured",
            "payload": {"payment": {"entity": {...}}, "refund": {"entity": {...}}}
        }
        """
        if isinstance(payload, (bytes, bytearray, str)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise GatewayException(
                    message=f"Failed to parse webhook event: {str(e)}",
                    error_code='webhook_parsing_failed'
                )

        if not isinstance(payload, dict):
            raise GatewayException(
                message="Webhook payload must be a JSON object",
                error_code='webhook_parsing_failed'
            )

        try:
            event_payload = payload.get('payload') or {}
            payment_entity = (event_payload.get('payment') or {}).get('entity') or {}
            refund_entity = (event_payload.get('refund') or {}).get('entity') or {}
            order_entity = (event_payload.get('order') or {}).get('entity') or {}

            event_id = refund_entity.get('id') or payment_entity.get('id') or order_entity.get('id')

            return WebhookEvent(
                event_type=payload.get('event'),
                event_id=event_id,
                payment_status=map_payment_status(payment_entity['status'], PROVIDER)
                if payment_entity.get('status') else None,
                refund_status=map_refund_status(refund_entity['status'], PROVIDER)
                if refund_entity.get('status') else None,
                data={
                    'payment': payment_entity,
                    'refund': refund_entity,
                    'order': order_entity,
                    'raw_payload': event_payload
                }
            )

        except Exception as e:
            raise GatewayException(
                message=f"Failed to parse webhook event: {str(e)}",
                error_code='webhook_parsing_failed'
            )
