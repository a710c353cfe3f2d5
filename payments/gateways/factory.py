"""
Payment gateway factory.

Maps provider names to gateway classes and builds configured instances from
Django settings. Instances are cached per provider so each process keeps a
single client handle per gateway.
"""

import threading
from typing import Optional

from django.conf import settings

from .base import BasePaymentGateway, DEFAULT_TIMEOUT, GatewayException, GatewayConfigurationError
from .razorpay_gateway import RazorpayGateway


# Gateway registry - maps gateway names to their classes
GATEWAY_REGISTRY = {
    'razorpay': RazorpayGateway,
}

# Gateway name -> (key id setting, key secret setting, webhook secret setting)
GATEWAY_SETTINGS = {
    'razorpay': ('RAZORPAY_KEY_ID', 'RAZORPAY_KEY_SECRET', 'RAZORPAY_WEBHOOK_SECRET'),
}

_instances = {}
_instances_lock = threading.Lock()


def _build_gateway(gateway_name: str) -> BasePaymentGateway:
    gateway_class = GATEWAY_REGISTRY[gateway_name]

    if gateway_name not in GATEWAY_SETTINGS:
        raise GatewayConfigurationError(
            message=f"Configuration not found for gateway: {gateway_name}",
            error_code='gateway_config_missing'
        )

    key_setting, secret_setting, webhook_setting = GATEWAY_SETTINGS[gateway_name]
    api_key = getattr(settings, key_setting, None)
    api_secret = getattr(settings, secret_setting, None)
    if not api_key or not api_secret:
        missing = key_setting if not api_key else secret_setting
        raise GatewayConfigurationError(
            message=f"Missing configuration for {gateway_name}: {missing}",
            error_code='gateway_config_missing'
        )

    return gateway_class(
        api_key=api_key,
        api_secret=api_secret,
        webhook_secret=getattr(settings, webhook_setting, None),
        timeout=getattr(settings, 'PAYMENT_GATEWAY_TIMEOUT', DEFAULT_TIMEOUT)
    )


def get_gateway(gateway_name: Optional[str] = None) -> BasePaymentGateway:
    """
    Get a payment gateway instance.

    Args:
        gateway_name: Name of the gateway ('razorpay', etc.)
                     If None, uses DEFAULT_PAYMENT_GATEWAY from settings

    Returns:
        Configured payment gateway instance, shared across calls

    Raises:
        GatewayException: If gateway is not supported
        GatewayConfigurationError: If its credentials are missing

    Example:
        >>> gateway = get_gateway('razorpay')
        >>> response = gateway.get_payment_status('pay_29QQoUBi66xm2f')
    """
    if gateway_name is None:
        gateway_name = getattr(settings, 'DEFAULT_PAYMENT_GATEWAY', 'razorpay')

    gateway_name = gateway_name.lower().strip()

    if gateway_name not in GATEWAY_REGISTRY:
        supported = ', '.join(GATEWAY_REGISTRY.keys())
        raise GatewayException(
            message=f"Unsupported payment gateway: {gateway_name}. Supported gateways: {supported}",
            error_code='unsupported_gateway'
        )

    gateway = _instances.get(gateway_name)
    if gateway is None:
        with _instances_lock:
            gateway = _instances.get(gateway_name)
            if gateway is None:
                gateway = _build_gateway(gateway_name)
                _instances[gateway_name] = gateway
    return gateway


def register_gateway(name: str, gateway_class: type, settings_names: Optional[tuple] = None):
    """
    Register a new payment gateway.

    Args:
        name: Gateway identifier (e.g., 'cashfree')
        gateway_class: Gateway class that extends BasePaymentGateway
        settings_names: (key id, key secret, webhook secret) setting names

    Example:
        >>> register_gateway('cashfree', CashfreeGateway,
        ...                  ('CASHFREE_APP_ID', 'CASHFREE_SECRET', 'CASHFREE_WEBHOOK_SECRET'))
    """
    if not isinstance(gateway_class, type) or not issubclass(gateway_class, BasePaymentGateway):
        raise GatewayException(
            message="Gateway class must extend BasePaymentGateway",
            error_code='invalid_gateway_class'
        )

    name = name.lower().strip()
    GATEWAY_REGISTRY[name] = gateway_class
    if settings_names is not None:
        GATEWAY_SETTINGS[name] = tuple(settings_names)
    with _instances_lock:
        _instances.pop(name, None)


def list_available_gateways():
    """
    List all registered payment gateways.

    Returns:
        List of gateway names
    """
    return list(GATEWAY_REGISTRY.keys())


def clear_gateway_cache():
    """
    Drop cached gateway instances so the next get_gateway() rereads settings.
    """
    with _instances_lock:
        _instances.clear()
