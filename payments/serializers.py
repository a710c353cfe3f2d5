from decimal import Decimal

from rest_framework import serializers

from .gateways.base import (
    PaymentMethodTokenizeRequest,
    PaymentMethodType,
    PaymentRequest,
    RefundRequest,
)
from .gateways.currency import CURRENCY_EXPONENTS, get_exponent


def _validate_currency(value):
    code = value.strip().upper()
    if code not in CURRENCY_EXPONENTS:
        raise serializers.ValidationError(f"Unsupported currency: {value}")
    return code


def _quantize(amount, currency):
    return amount.quantize(Decimal(1).scaleb(-get_exponent(currency)))


def _validate_amount_precision(amount, currency):
    exponent = get_exponent(currency)
    if amount.normalize().as_tuple().exponent < -exponent:
        raise serializers.ValidationError({
            'amount': f"{currency} amounts support at most {exponent} decimal places"
        })


class PaymentRequestSerializer(serializers.Serializer):
    """
    Validates an inbound payment payload and builds a PaymentRequest.
    Method-specific fields are checked against the chosen method type.
    """
    amount = serializers.DecimalField(max_digits=15, decimal_places=3)
    currency = serializers.CharField(max_length=3)
    method_type = serializers.ChoiceField(choices=[m.value for m in PaymentMethodType])
    upi_id = serializers.CharField(required=False, allow_blank=False, max_length=255)
    card_token = serializers.CharField(required=False, allow_blank=False, max_length=255)
    wallet = serializers.CharField(required=False, allow_blank=False, max_length=50)
    bank_code = serializers.CharField(required=False, allow_blank=False, max_length=20)
    order_id = serializers.CharField(required=False, allow_blank=False, max_length=40)
    notes = serializers.DictField(child=serializers.CharField(max_length=256), required=False)

    def validate_currency(self, value):
        return _validate_currency(value)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero")
        return value

    def validate(self, attrs):
        _validate_amount_precision(attrs['amount'], attrs['currency'])

        method_type = attrs['method_type']
        if method_type == PaymentMethodType.WALLET and not attrs.get('wallet'):
            raise serializers.ValidationError({'wallet': "Wallet is required for WALLET payments"})
        if method_type == PaymentMethodType.NET_BANKING and not attrs.get('bank_code'):
            raise serializers.ValidationError({'bank_code': "Bank code is required for NET_BANKING payments"})
        return attrs

    def to_request(self) -> PaymentRequest:
        data = self.validated_data
        return PaymentRequest(
            amount=_quantize(data['amount'], data['currency']),
            currency=data['currency'],
            method_type=PaymentMethodType(data['method_type']),
            upi_id=data.get('upi_id'),
            card_token=data.get('card_token'),
            wallet=data.get('wallet'),
            bank_code=data.get('bank_code'),
            order_id=data.get('order_id'),
            notes=data.get('notes', {})
        )


class RefundRequestSerializer(serializers.Serializer):
    """
    Validates an inbound refund payload and builds a RefundRequest.
    """
    payment_id = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=15, decimal_places=3)
    currency = serializers.CharField(max_length=3, default='INR')
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_currency(self, value):
        return _validate_currency(value)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Refund amount must be greater than zero")
        return value

    def validate(self, attrs):
        _validate_amount_precision(attrs['amount'], attrs['currency'])
        return attrs

    def to_request(self) -> RefundRequest:
        data = self.validated_data
        return RefundRequest(
            payment_id=data['payment_id'],
            amount=_quantize(data['amount'], data['currency']),
            currency=data['currency'],
            reason=data.get('reason') or None
        )


class PaymentMethodTokenizeRequestSerializer(serializers.Serializer):
    """
    Validates card details for tokenization.
    The card number and CVV are write-only and never rendered back.
    """
    customer_id = serializers.CharField(max_length=100)
    card_number = serializers.RegexField(r'^[0-9 \-]{12,23}$', write_only=True)
    expiry_month = serializers.IntegerField(min_value=1, max_value=12)
    expiry_year = serializers.IntegerField(min_value=2000, max_value=2100)
    cardholder_name = serializers.CharField(required=False, max_length=100)
    cvv = serializers.RegexField(r'^[0-9]{3,4}$', required=False, write_only=True)

    def to_request(self) -> PaymentMethodTokenizeRequest:
        data = self.validated_data
        return PaymentMethodTokenizeRequest(
            customer_id=data['customer_id'],
            card_number=data['card_number'],
            expiry_month=data['expiry_month'],
            expiry_year=data['expiry_year'],
            cardholder_name=data.get('cardholder_name'),
            cvv=data.get('cvv')
        )


class PaymentResponseSerializer(serializers.Serializer):
    """Renders a PaymentResponse for API clients."""
    transaction_id = serializers.CharField(allow_null=True)
    payment_id = serializers.CharField(allow_null=True)
    status = serializers.CharField(source='status.value')
    payment_link = serializers.URLField(allow_null=True)
    qr_code = serializers.CharField(allow_null=True)
    error_message = serializers.CharField(allow_null=True)
    success = serializers.BooleanField(read_only=True)


class RefundResponseSerializer(serializers.Serializer):
    """Renders a RefundResponse for API clients."""
    refund_id = serializers.CharField(allow_null=True)
    status = serializers.CharField(source='status.value')
    error_message = serializers.CharField(allow_null=True)
    success = serializers.BooleanField(read_only=True)


class PaymentMethodTokenizeResponseSerializer(serializers.Serializer):
    token = serializers.CharField()
    masked_number = serializers.CharField(allow_null=True)
    card_network = serializers.CharField(allow_null=True)
    expiry_month = serializers.IntegerField(allow_null=True)
    expiry_year = serializers.IntegerField(allow_null=True)
