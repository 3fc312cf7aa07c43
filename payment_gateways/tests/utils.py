import importlib
from contextlib import contextmanager

from django.test import override_settings
from django.urls import clear_url_caches

import payment_gateways.urls
from payment_gateways.tests import urls as test_urls


def reload_urlconf():
    """Rebuild the webhook routes from the current PAYMENTS settings."""
    importlib.reload(payment_gateways.urls)
    importlib.reload(test_urls)
    clear_url_caches()


@contextmanager
def payments_urls(payments):
    """Run a block with ``PAYMENTS`` overridden and the routes rebuilt to match."""
    try:
        with override_settings(PAYMENTS=payments):
            reload_urlconf()
            yield
    finally:
        reload_urlconf()
