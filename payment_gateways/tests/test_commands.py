import json
from io import StringIO

import pytest
from django.core.management import CommandError
from django.core.management import call_command
from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.test import APIClient

from payment_gateways.gateways.hosted import BkashGateway
from payment_gateways.management.commands.payments_list import FULLY_CONFIGURED
from payment_gateways.management.commands.payments_list import NOT_CONFIGURED
from payment_gateways.management.commands.payments_list import PARTIALLY_CONFIGURED
from payment_gateways.management.commands.payments_list import configuration_status
from payment_gateways.management.commands.payments_test import mask
from payment_gateways.manager import get_manager
from payment_gateways.manager import reset_manager
from payment_gateways.tests.utils import payments_urls


def run(command, *args, **options):
    out = StringIO()
    call_command(command, *args, stdout=out, no_color=True, **options)
    return out.getvalue()


class PaymentsListCommandTest(SimpleTestCase):
    """Test suite for the payments_list command."""

    def setUp(self):
        reset_manager()

    def tearDown(self):
        reset_manager()

    def test_lists_configured_gateways(self):
        """Test that only configured gateways are shown by default."""
        output = run("payments_list")

        assert "STRIPE" in output
        assert "PAYPAL" in output
        assert "RAZORPAY" not in output
        assert "Default gateway: stripe" in output

    def test_lists_all_gateways(self):
        """Test that --all shows unconfigured gateways."""
        output = run("payments_list", all=True)

        assert "RAZORPAY" in output
        assert NOT_CONFIGURED in output
        assert "TELR" not in output
        assert "Total gateways: 20" in output

    def test_configuration_status(self):
        """Test full, partial and missing credential detection."""
        assert configuration_status(get_manager().gateway("stripe")) == FULLY_CONFIGURED
        assert configuration_status(BkashGateway({"sandbox": {"app_key": "k"}})) == PARTIALLY_CONFIGURED
        assert configuration_status(BkashGateway()) == NOT_CONFIGURED


class PaymentsTestCommandTest(SimpleTestCase):
    """Test suite for the payments_test command."""

    def setUp(self):
        reset_manager()

    def tearDown(self):
        reset_manager()

    def test_single_gateway(self):
        """Test a sandbox payment and refund against Stripe."""
        output = run("payments_test", "stripe", amount="20.00")

        assert "Testing STRIPE" in output
        assert "Transaction ID: pi_" in output
        assert "Refund test: success" in output
        assert "sk_test_123456789" not in output
        assert "6789" in output

    def test_redirect_gateway(self):
        """Test that hosted-checkout gateways report the redirect URL."""
        output = run("payments_test", "paypal")

        assert "Redirect URL: https://www.sandbox.paypal.com/checkoutnow?" in output

    def test_unconfigured_gateway(self):
        """Test that missing credentials are reported, not raised."""
        output = run("payments_test", "razorpay", currency="INR")

        assert "Error: Missing sandbox credentials" in output
        assert "1 failing gateway" in output

    def test_mode_override(self):
        """Test that --mode runs the gateway in the requested mode."""
        output = run("payments_test", "stripe", mode="live")

        assert "Mode: live" in output
        assert "Missing live credentials" in output
        assert get_manager().gateway("stripe").is_sandbox() is True

    def test_unknown_gateway(self):
        """Test that unknown gateways raise CommandError."""
        with pytest.raises(CommandError):
            run("payments_test", "nonexistent")

    def test_disabled_gateway(self):
        """Test that disabled gateways raise CommandError."""
        with pytest.raises(CommandError):
            run("payments_test", "telr")

    def test_invalid_amount(self):
        """Test that a non-numeric amount raises CommandError."""
        with pytest.raises(CommandError):
            run("payments_test", "stripe", amount="lots")

    def test_mask(self):
        """Test masking of credentials."""
        assert mask("sk_test_123456789") == "*************6789"
        assert mask("abc") == "****abc"


class PaymentsWebhookUrlCommandTest(SimpleTestCase):
    """Test suite for the payments_webhook_url command."""

    def setUp(self):
        reset_manager()

    def tearDown(self):
        reset_manager()

    def test_webhook_urls(self):
        """Test that each available gateway gets a webhook URL."""
        output = run("payments_webhook_url")

        assert "http://localhost/payments/webhook/<gateway>" in output
        assert "http://localhost/payments/webhook/stripe" in output
        assert "http://localhost/payments/webhook/telr" not in output

    def test_custom_base_url_and_prefix(self):
        """Test that the printed URLs match the routes installed for the configured prefix."""
        payments = {"webhook": {"base_url": "https://shop.example.com/", "prefix": "/hooks/"}}
        with payments_urls(payments):
            output = run("payments_webhook_url")
            response = APIClient().post(
                "/hooks/paypal",
                data=json.dumps({"resource": {"status": "COMPLETED", "id": "PAY-1"}}),
                content_type="application/json",
            )

        assert "https://shop.example.com/hooks/<gateway>" in output
        assert "https://shop.example.com/hooks/paypal" in output
        assert response.status_code == status.HTTP_200_OK

    def test_disabled_routes(self):
        """Test that the configured URLs are still printed when routes are disabled."""
        with payments_urls({"webhook": {"enabled": "false"}}):
            output = run("payments_webhook_url")
            response = APIClient().post("/payments/webhook/stripe", data="{}", content_type="application/json")

        assert "Webhook routes are disabled" in output
        assert "http://localhost/payments/webhook/stripe" in output
        assert response.status_code == status.HTTP_404_NOT_FOUND
