"""Gateway registry: maps gateway names to factories and cached instances."""

import logging
import threading
from collections.abc import Callable
from collections.abc import Mapping
from typing import Any

from payment_gateways.exceptions import ConfigurationError
from payment_gateways.exceptions import GatewayNotFoundError
from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.types import GatewayConfig
from payment_gateways.types import GatewayMode

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[dict[str, Any]], PaymentGatewayBase]


class GatewayRegistry:
    """
    Registry of payment gateways.

    Gateways are built lazily on first ``resolve`` and cached, so every name
    maps to a single live instance for the lifetime of the registry.
    Construction of a given name is serialized, concurrent first lookups
    build it only once.
    """

    def __init__(
        self,
        configs: Mapping[str, Mapping[str, Any]] | None = None,
        default: str | None = None,
        mode: str = GatewayMode.SANDBOX.value,
    ) -> None:
        self._mode = GatewayMode.parse(mode).value
        self._configs: dict[str, Mapping[str, Any]] = {
            self._normalize(name): config for name, config in (configs or {}).items()
        }
        self._factories: dict[str, GatewayFactory] = {}
        self._instances: dict[str, PaymentGatewayBase] = {}
        self._build_locks: dict[str, threading.Lock] = {}
        self._lock = threading.RLock()
        self._default = self._normalize(default) if default else None

    @staticmethod
    def _normalize(name: str | None) -> str:
        return (name or "").strip().lower()

    def register(
        self,
        name: str,
        factory: GatewayFactory,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Register or override a payment gateway.

        Args:
            name: The gateway identifier (e.g., 'stripe', 'paypal').
            factory: Callable taking the gateway's config dict and returning a
                gateway instance, typically a PaymentGatewayBase subclass.
            config: Optional config, replacing any config given at
                construction for this name.

        Raises:
            ConfigurationError: If the name is empty or factory not callable.
        """
        key = self._normalize(name)
        if not key:
            msg = "Gateway name cannot be empty"
            raise ConfigurationError(msg)
        if not callable(factory):
            msg = f"Factory for gateway '{key}' must be callable"
            raise ConfigurationError(msg, gateway=key)

        with self._lock:
            self._factories[key] = factory
            if config is not None:
                self._configs[key] = config
            self._instances.pop(key, None)

    def get_config(self, name: str) -> GatewayConfig:
        key = self._normalize(name)
        with self._lock:
            values = self._configs.get(key, {})
        return GatewayConfig(name=key, values=values, default_mode=self._mode)

    def get_factory(self, name: str) -> GatewayFactory | None:
        return self._factories.get(self._normalize(name))

    def is_registered(self, name: str) -> bool:
        return self._normalize(name) in self._factories

    def has_gateway(self, name: str) -> bool:
        """True if the gateway is registered and enabled."""
        return self.is_registered(name) and self.get_config(name).enabled

    def resolve(self, name: str) -> PaymentGatewayBase:
        """
        Return the configured gateway instance for ``name``.

        Raises:
            GatewayNotFoundError: If the gateway is unknown or disabled.
            ConfigurationError: If the factory does not produce a gateway.
        """
        key = self._normalize(name)
        instance = self._instances.get(key)
        if instance is not None:
            return instance

        with self._lock:
            factory = self._factories.get(key)
            if factory is None:
                logger.warning("Requested unknown payment gateway '%s'", name)
                raise GatewayNotFoundError.create(key or str(name))
            config = self.get_config(key)
            if not config.enabled:
                logger.warning("Requested disabled payment gateway '%s'", key)
                raise GatewayNotFoundError.create(key, "is disabled")
            build_lock = self._build_locks.setdefault(key, threading.Lock())

        with build_lock:
            instance = self._instances.get(key)
            if instance is None:
                instance = self._build(key, factory, config)
                with self._lock:
                    # register() may have swapped the factory meanwhile
                    if self._factories.get(key) is factory:
                        self._instances[key] = instance
        return instance

    def _build(self, key: str, factory: GatewayFactory, config: GatewayConfig) -> PaymentGatewayBase:
        instance = factory(config.as_dict())
        if not isinstance(instance, PaymentGatewayBase):
            msg = f"Gateway '{key}' must be a PaymentGatewayBase, got {type(instance).__name__}"
            raise ConfigurationError(msg, gateway=key)

        if not instance.name:
            instance.name = key
        instance.set_mode(config.mode)
        logger.info("Resolved payment gateway '%s' in %s mode", key, config.mode.value)
        return instance

    def available_gateways(self) -> list[str]:
        """Enabled gateway names in registration order."""
        with self._lock:
            names = list(self._factories)
        return [name for name in names if self.get_config(name).enabled]

    def set_default(self, name: str) -> None:
        if not self.has_gateway(name):
            raise GatewayNotFoundError.create(self._normalize(name) or str(name))
        self._default = self._normalize(name)

    def get_default(self) -> str | None:
        return self._default

    def clear_cache(self) -> None:
        """Drop every cached instance; the next resolve rebuilds them."""
        with self._lock:
            self._instances.clear()
