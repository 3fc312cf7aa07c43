from django.core.management.base import BaseCommand
from django.urls import NoReverseMatch
from django.urls import reverse

from payment_gateways.conf import payments_settings
from payment_gateways.conf import webhook_prefix
from payment_gateways.manager import get_manager
from payment_gateways.utils import to_bool


def webhook_path(gateway: str) -> str:
    """Path of the installed webhook route, or of the configured one when no route is installed."""
    try:
        return reverse("payment_gateways:webhook", kwargs={"gateway": gateway})
    except NoReverseMatch:
        prefix = webhook_prefix()
        return f"/{prefix}/{gateway}" if prefix else f"/{gateway}"


class Command(BaseCommand):
    help = "Show webhook URLs for payment gateways."

    def handle(self, *args, **options):
        webhook = payments_settings()["webhook"]
        base_url = webhook.get("base_url", "http://localhost").rstrip("/")
        base_path = webhook_path("gateway").rsplit("/", 1)[0]

        if not to_bool(webhook.get("enabled"), default=True):
            self.stdout.write(self.style.WARNING("Webhook routes are disabled (PAYMENTS['webhook']['enabled'])"))

        self.stdout.write(self.style.SUCCESS("Base webhook URL:"))
        self.stdout.write(f"  {base_url}{base_path}/<gateway>")
        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS("Gateway webhook URLs:"))
        for name in get_manager().get_available_gateways():
            self.stdout.write(f"  {name:<14}{base_url}{webhook_path(name)}")

        self.stdout.write("")
        self.stdout.write("Test a webhook with curl:")
        self.stdout.write(f"  curl -X POST {base_url}{webhook_path('stripe')} \\")
        self.stdout.write("       -H 'Content-Type: application/json' \\")
        self.stdout.write(
            '       -d \'{"type":"payment_intent.succeeded","data":{"object":{"id":"pi_test","amount":1000}}}\'',
        )
