import time
from decimal import Decimal
from decimal import InvalidOperation
from uuid import uuid4

from django.core.management.base import BaseCommand
from django.core.management.base import CommandError

from payment_gateways.exceptions import PaymentGatewayError
from payment_gateways.manager import get_manager
from payment_gateways.types import GatewayMode
from payment_gateways.types import PaymentRequest

SENSITIVE_KEYS = ("secret", "key", "password")


def mask(value: str) -> str:
    return "*" * max(4, len(value) - 4) + value[-4:]


class Command(BaseCommand):
    help = "Run a sandbox payment (and refund, where supported) against payment gateways."

    def add_arguments(self, parser):
        parser.add_argument("gateway", nargs="?", help="Gateway to test (default: all)")
        parser.add_argument("--amount", default="100.00", help="Amount to charge")
        parser.add_argument("--currency", default="USD", help="Currency code")
        parser.add_argument("--email", default="test@example.com", help="Customer email")
        parser.add_argument(
            "--mode",
            choices=[mode.value for mode in GatewayMode],
            help="Override the configured gateway mode",
        )

    def handle(self, *args, **options):
        manager = get_manager()
        available = manager.get_available_gateways()

        try:
            amount = Decimal(options["amount"])
        except InvalidOperation as e:
            msg = f"Invalid amount '{options['amount']}'"
            raise CommandError(msg) from e

        gateway = options["gateway"]
        if gateway and not manager.has_gateway(gateway):
            msg = f"Gateway '{gateway}' is not available. Available gateways: {', '.join(available)}"
            raise CommandError(msg)

        self.stdout.write(self.style.SUCCESS("Payment gateway test"))
        self.stdout.write(f"Default gateway: {manager.get_default_gateway() or 'Not set'}")

        failures = 0
        for name in [gateway] if gateway else available:
            if not self.test_gateway(manager, name.lower(), amount, options):
                failures += 1

        if failures:
            self.stdout.write(self.style.WARNING(f"Testing completed with {failures} failing gateway(s)"))
        else:
            self.stdout.write(self.style.SUCCESS("Testing completed"))

    def test_gateway(self, manager, name, amount, options) -> bool:
        self.stdout.write("")
        self.stdout.write(self.style.MIGRATE_HEADING(f"Testing {name.upper()}"))

        # Fresh instance so the override mode and test charges stay local
        config = manager.registry.get_config(name).as_dict()
        if options["mode"]:
            config["mode"] = options["mode"]
        gateway = manager.registry.get_factory(name)(config)

        self.stdout.write(f"  Mode: {gateway.get_mode()}")
        self.stdout.write(f"  Refunds: {'yes' if gateway.supports_refund() else 'no'}")
        for key, value in gateway.get_config(gateway.get_mode(), {}).items():
            if isinstance(value, str) and value:
                shown = mask(value) if any(word in key.lower() for word in SENSITIVE_KEYS) else value
                self.stdout.write(f"  {key}: {shown}")

        try:
            request = PaymentRequest(
                order_id=f"TEST_{int(time.time())}_{uuid4().hex[:8]}",
                amount=amount,
                currency=options["currency"],
                customer_email=options["email"],
                callback_url="https://example.com/callback",
                webhook_url="https://example.com/webhook",
                description=f"Test payment for {name} gateway",
            )
            response = gateway.pay(request)
        except PaymentGatewayError as e:
            self.stdout.write(self.style.ERROR(f"  Error: {e.message}"))
            return False

        style = self.style.SUCCESS if response.success else self.style.ERROR
        self.stdout.write(style(f"  Success: {'yes' if response.success else 'no'}"))
        self.stdout.write(f"  Status: {response.status}")
        if response.transaction_id:
            self.stdout.write(f"  Transaction ID: {response.transaction_id}")
        if response.redirect_url:
            self.stdout.write(f"  Redirect URL: {response.redirect_url}")
        if response.message:
            self.stdout.write(f"  Message: {response.message}")

        if response.success and gateway.supports_refund() and response.transaction_id:
            try:
                refunded = gateway.refund(response.transaction_id, amount / 2)
            except PaymentGatewayError as e:
                self.stdout.write(self.style.WARNING(f"  Refund test failed: {e.message}"))
            else:
                self.stdout.write(f"  Refund test: {'success' if refunded else 'declined'}")
        return response.success
