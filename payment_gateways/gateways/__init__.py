"""Payment gateway implementations."""

from collections.abc import Mapping
from typing import Any

from django.utils.module_loading import import_string

from payment_gateways.conf import gateway_env_config
from payment_gateways.conf import payments_settings
from payment_gateways.exceptions import ConfigurationError
from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.gateways.base import SignedWebhookMixin
from payment_gateways.gateways.hosted import HOSTED_GATEWAYS
from payment_gateways.gateways.hosted import HostedCheckoutGateway
from payment_gateways.gateways.registry import GatewayRegistry
from payment_gateways.gateways.stripe import StripeGateway
from payment_gateways.utils import deep_merge

BUILTIN_GATEWAYS: tuple[type[PaymentGatewayBase], ...] = (StripeGateway, *HOSTED_GATEWAYS)


def build_registry(options: Mapping[str, Any] | None = None) -> GatewayRegistry:
    """
    Create a registry holding every built-in gateway.

    Args:
        options: Payments settings in the shape of ``settings.PAYMENTS``.
            Defaults to the merged project settings.
    """
    options = payments_settings() if options is None else options
    overrides = options.get("gateways") or {}

    registry = GatewayRegistry(default=options.get("default"), mode=options.get("mode", "sandbox"))
    for gateway_class in BUILTIN_GATEWAYS:
        name = gateway_class.name
        config = deep_merge(
            gateway_env_config(name, gateway_class.required_credentials),
            overrides.get(name) or {},
        )
        registry.register(name, gateway_class, config)

    # Project gateways: {"acme": {"class": "myproject.payments.AcmeGateway", ...}}
    for name, config in overrides.items():
        gateway_path = (config or {}).get("class")
        if gateway_path:
            try:
                gateway_class = import_string(gateway_path)
            except ImportError as e:
                msg = f"Cannot import gateway class '{gateway_path}' for '{name}'"
                raise ConfigurationError(msg, gateway=name, original_error=e) from e
            registry.register(name, gateway_class, config)
    return registry


__all__ = [
    "BUILTIN_GATEWAYS",
    "GatewayRegistry",
    "HostedCheckoutGateway",
    "PaymentGatewayBase",
    "SignedWebhookMixin",
    "StripeGateway",
    "build_registry",
]
