"""
Webhook routes. Include them at the project root:

    path("", include("payment_gateways.urls"))

The route is ``<PAYMENTS["webhook"]["prefix"]>/<gateway>``. No routes are
installed when ``PAYMENTS["webhook"]["enabled"]`` is false.
"""

from django.urls import path

from payment_gateways.conf import payments_settings
from payment_gateways.conf import webhook_prefix
from payment_gateways.utils import to_bool
from payment_gateways.views import WebhookView

app_name = "payment_gateways"


def webhook_urlpatterns():
    webhook = payments_settings()["webhook"]
    if not to_bool(webhook.get("enabled"), default=True):
        return []

    prefix = webhook_prefix(webhook)
    route = f"{prefix}/<str:gateway>" if prefix else "<str:gateway>"
    return [path(route, WebhookView.as_view(), name="webhook")]


urlpatterns = webhook_urlpatterns()
