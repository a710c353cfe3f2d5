import pytest
from unittest.mock import MagicMock

from payments.gateways.factory import clear_gateway_cache
from payments.gateways.razorpay_gateway import RazorpayGateway


@pytest.fixture(autouse=True)
def reset_gateway_cache():
    """Cached gateway instances must not leak settings between tests"""
    clear_gateway_cache()
    yield
    clear_gateway_cache()


@pytest.fixture
def mock_client():
    """Stand-in for razorpay.Client"""
    return MagicMock()


@pytest.fixture
def razorpay_gateway(mock_client):
    """Razorpay gateway with an injected mock client"""
    return RazorpayGateway(
        api_key='rzp_test_dummy_key',
        api_secret='dummy_secret',
        webhook_secret='whsec_test',
        timeout=10,
        client=mock_client
    )
