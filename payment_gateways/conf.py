"""
Settings for the payment_gateways app.

Projects configure the app through a ``PAYMENTS`` dict in their Django
settings; anything they leave out falls back to the defaults below, which
read the same environment variables as the gateway dashboards suggest:

    PAYMENTS = {
        "default": "stripe",
        "mode": "sandbox",
        "gateways": {
            "stripe": {
                "sandbox": {"secret_key": "sk_test_...", "api_key": "pk_test_..."},
                "webhook_secret": "whsec_...",
            },
            "telr": {"enabled": False},
        },
    }
"""

import os
from collections.abc import Iterable
from typing import Any

from django.conf import settings

from payment_gateways.types import GatewayMode
from payment_gateways.utils import deep_merge

DEFAULTS: dict[str, Any] = {
    "default": "stripe",
    "mode": GatewayMode.SANDBOX.value,
    "webhook": {
        "enabled": True,
        "prefix": "payments/webhook",
        "base_url": "http://localhost",
    },
    "gateways": {},
    "listeners": {},
}


def env_defaults() -> dict[str, Any]:
    return {
        "default": os.environ.get("PAYMENT_GATEWAY", DEFAULTS["default"]),
        "mode": os.environ.get("PAYMENT_MODE", DEFAULTS["mode"]),
    }


def gateway_env_config(name: str, credential_keys: Iterable[str]) -> dict[str, Any]:
    """
    Config for one gateway read from the environment.

    ``gateway_env_config("stripe", ["secret_key"])`` reads ``STRIPE_MODE``,
    ``STRIPE_SANDBOX_SECRET_KEY``, ``STRIPE_LIVE_SECRET_KEY`` and
    ``STRIPE_WEBHOOK_SECRET``. Unset variables are left out.
    """
    prefix = name.upper()
    config: dict[str, Any] = {}

    mode = os.environ.get(f"{prefix}_MODE")
    if mode:
        config["mode"] = mode

    for mode_name in (GatewayMode.SANDBOX.value, GatewayMode.LIVE.value):
        section = {
            key: os.environ[f"{prefix}_{mode_name.upper()}_{key.upper()}"]
            for key in credential_keys
            if os.environ.get(f"{prefix}_{mode_name.upper()}_{key.upper()}")
        }
        if section:
            config[mode_name] = section

    webhook_secret = os.environ.get(f"{prefix}_WEBHOOK_SECRET")
    if webhook_secret:
        config["webhook_secret"] = webhook_secret
    return config


def payments_settings() -> dict[str, Any]:
    """Package defaults, then environment, then ``settings.PAYMENTS``."""
    merged = deep_merge(DEFAULTS, env_defaults())
    return deep_merge(merged, getattr(settings, "PAYMENTS", {}) or {})


def webhook_prefix(webhook: dict[str, Any] | None = None) -> str:
    """The webhook route prefix without surrounding slashes."""
    webhook = payments_settings()["webhook"] if webhook is None else webhook
    return (webhook.get("prefix") or "").strip("/")
