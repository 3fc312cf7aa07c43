from unittest.mock import patch

import pytest
from django.apps import apps
from django.test import SimpleTestCase
from django.test import override_settings

from payment_gateways import signals
from payment_gateways.exceptions import ConfigurationError
from payment_gateways.gateways.registry import GatewayRegistry
from payment_gateways.manager import PaymentManager
from payment_gateways.tests import fakes
from payment_gateways.tests.factories import PaymentRequestFactory

RECEIVER_PATH = "payment_gateways.tests.fakes.record_event"


class ConnectListenersTest(SimpleTestCase):
    """Test suite for wiring configured listeners to payment signals."""

    def setUp(self):
        fakes.received_events.clear()
        registry = GatewayRegistry(default="fake")
        registry.register("fake", fakes.FakeGateway)
        self.manager = PaymentManager(registry)

    def tearDown(self):
        for name, signal in signals.SIGNALS.items():
            signal.disconnect(dispatch_uid=f"{name}:{RECEIVER_PATH}")
        fakes.received_events.clear()

    def test_listener_receives_signal(self):
        """Test that a configured listener is called on payment success."""
        signals.connect_listeners({"payment_succeeded": [RECEIVER_PATH]})

        response = self.manager.pay("fake", PaymentRequestFactory())

        assert len(fakes.received_events) == 1
        sender, kwargs = fakes.received_events[0]
        assert sender is fakes.FakeGateway
        assert kwargs["response"] is response

    def test_listener_connected_once(self):
        """Test that connecting the same listener twice is idempotent."""
        signals.connect_listeners({"payment_succeeded": [RECEIVER_PATH]})
        signals.connect_listeners({"payment_succeeded": [RECEIVER_PATH]})

        self.manager.pay("fake", PaymentRequestFactory())

        assert len(fakes.received_events) == 1

    def test_unknown_signal(self):
        """Test that unknown signal names raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            signals.connect_listeners({"payment_exploded": [RECEIVER_PATH]})

    def test_unimportable_listener(self):
        """Test that bad dotted paths raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            signals.connect_listeners({"payment_failed": ["payment_gateways.tests.fakes.missing"]})

    @override_settings(PAYMENTS={"listeners": {"payment_refunded": [RECEIVER_PATH]}})
    def test_app_ready_connects_configured_listeners(self):
        """Test that the app config wires PAYMENTS['listeners'] on ready()."""
        with patch.object(signals, "connect_listeners", wraps=signals.connect_listeners) as mock_connect:
            apps.get_app_config("payment_gateways").ready()

        mock_connect.assert_called_once_with({"payment_refunded": [RECEIVER_PATH]})
        response = self.manager.pay("fake", PaymentRequestFactory(amount="10.00"))
        self.manager.refund("fake", response.transaction_id, "10.00")
        assert [kwargs["transaction_id"] for _, kwargs in fakes.received_events] == [response.transaction_id]
