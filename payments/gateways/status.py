"""
Canonical payment/refund statuses and provider status mapping.

Each provider describes payments and refunds in its own vocabulary. The
tables in this module translate those raw strings into the platform's
canonical enums. Adding a provider means adding a table, not a branch.

Unrecognized raw statuses always map to PROCESSING: they are never dropped
and never reported as a terminal success or failure.
"""

from enum import Enum
from typing import Any, Dict


class PaymentStatus(str, Enum):
    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'
    REFUNDED = 'REFUNDED'

    @property
    def is_terminal(self) -> bool:
        return self in (PaymentStatus.SUCCESS, PaymentStatus.FAILED, PaymentStatus.REFUNDED)


class RefundStatus(str, Enum):
    PENDING = 'PENDING'
    PROCESSING = 'PROCESSING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'

    @property
    def is_terminal(self) -> bool:
        return self in (RefundStatus.SUCCESS, RefundStatus.FAILED)


# Raw provider status (lower-case) -> canonical status, keyed by provider
PAYMENT_STATUS_MAPS: Dict[str, Dict[str, PaymentStatus]] = {
    'razorpay': {
        'created': PaymentStatus.PENDING,
        'authorized': PaymentStatus.PENDING,
        'captured': PaymentStatus.SUCCESS,
        'failed': PaymentStatus.FAILED,
        'refunded': PaymentStatus.REFUNDED,
    },
}

REFUND_STATUS_MAPS: Dict[str, Dict[str, RefundStatus]] = {
    'razorpay': {
        'pending': RefundStatus.PENDING,
        'processed': RefundStatus.SUCCESS,
        'failed': RefundStatus.FAILED,
    },
}


def _normalize(raw_status: Any) -> str:
    if not isinstance(raw_status, str):
        return ''
    return raw_status.strip().lower()


def map_payment_status(raw_status: Any, provider: str = 'razorpay') -> PaymentStatus:
    """
    Translate a raw provider payment status into a PaymentStatus.

    Matching is case-insensitive. None, non-string values, unknown statuses
    and unknown providers all yield PaymentStatus.PROCESSING.
    """
    table = PAYMENT_STATUS_MAPS.get(_normalize(provider), {})
    return table.get(_normalize(raw_status), PaymentStatus.PROCESSING)


def map_refund_status(raw_status: Any, provider: str = 'razorpay') -> RefundStatus:
    """
    Translate a raw provider refund status into a RefundStatus.

    Same fallback rules as map_payment_status.
    """
    table = REFUND_STATUS_MAPS.get(_normalize(provider), {})
    return table.get(_normalize(raw_status), RefundStatus.PROCESSING)


def register_status_maps(
    provider: str,
    payment_map: Dict[str, PaymentStatus],
    refund_map: Dict[str, RefundStatus]
):
    """
    Register status tables for a new provider.

    Keys are normalized to lower case so lookups stay case-insensitive.
    """
    provider = _normalize(provider)
    PAYMENT_STATUS_MAPS[provider] = {
        _normalize(raw): PaymentStatus(status) for raw, status in payment_map.items()
    }
    REFUND_STATUS_MAPS[provider] = {
        _normalize(raw): RefundStatus(status) for raw, status in refund_map.items()
    }
