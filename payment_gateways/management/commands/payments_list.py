from django.core.management.base import BaseCommand

from payment_gateways.exceptions import PaymentGatewayError
from payment_gateways.manager import get_manager

FULLY_CONFIGURED = "Fully configured"
PARTIALLY_CONFIGURED = "Partially configured"
NOT_CONFIGURED = "Not configured"


def configuration_status(gateway) -> str:
    required = gateway.required_credentials
    missing = gateway.missing_credentials()
    if not missing:
        return FULLY_CONFIGURED
    if len(missing) < len(required):
        return PARTIALLY_CONFIGURED
    return NOT_CONFIGURED


class Command(BaseCommand):
    help = "List available payment gateways and their configuration status."

    def add_arguments(self, parser):
        parser.add_argument(
            "--all",
            action="store_true",
            help="Show all gateways, including those without credentials",
        )

    def handle(self, *args, **options):
        manager = get_manager()
        gateways = manager.get_available_gateways()
        default = manager.get_default_gateway()

        self.stdout.write(self.style.SUCCESS("Payment gateways"))
        if not options["all"]:
            self.stdout.write("Showing configured gateways only. Use --all to show all.")

        header = f"{'Gateway':<14}{'Mode':<9}{'Refunds':<9}{'Default':<9}Configuration"
        self.stdout.write(header)
        self.stdout.write("-" * len(header))

        refundable = 0
        for name in gateways:
            try:
                gateway = manager.gateway(name)
            except PaymentGatewayError as e:
                self.stdout.write(self.style.ERROR(f"{name.upper():<14}error: {e.message}"))
                continue

            if gateway.supports_refund():
                refundable += 1
            config_status = configuration_status(gateway)
            if not options["all"] and config_status == NOT_CONFIGURED:
                continue

            line = (
                f"{name.upper():<14}"
                f"{gateway.get_mode():<9}"
                f"{'yes' if gateway.supports_refund() else 'no':<9}"
                f"{'yes' if name == default else 'no':<9}"
                f"{config_status}"
            )
            style = self.style.SUCCESS if config_status == FULLY_CONFIGURED else self.style.WARNING
            self.stdout.write(style(line))

        self.stdout.write("")
        self.stdout.write(f"Total gateways: {len(gateways)}")
        self.stdout.write(f"Default gateway: {default or 'Not set'}")
        self.stdout.write(f"With refund support: {refundable}")
