from django.apps import AppConfig


class PaymentGatewaysConfig(AppConfig):
    name = "payment_gateways"
    verbose_name = "Payment Gateways"

    def ready(self):
        """Connect the listeners configured in ``PAYMENTS["listeners"]``."""
        from payment_gateways import manager  # noqa: F401
        from payment_gateways.conf import payments_settings
        from payment_gateways.signals import connect_listeners

        connect_listeners(payments_settings()["listeners"])
