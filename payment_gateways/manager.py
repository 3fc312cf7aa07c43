import logging
import threading
from collections.abc import Callable
from collections.abc import Mapping
from typing import Any

from django.core.signals import setting_changed
from django.dispatch import receiver

from payment_gateways import signals
from payment_gateways.context import PaymentContext
from payment_gateways.exceptions import ConfigurationError
from payment_gateways.exceptions import GatewayError
from payment_gateways.exceptions import InvalidSignatureError
from payment_gateways.exceptions import PaymentGatewayError
from payment_gateways.exceptions import RefundError
from payment_gateways.gateways import build_registry
from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.gateways.base import SignedWebhookMixin
from payment_gateways.gateways.registry import GatewayRegistry
from payment_gateways.types import PaymentRequest
from payment_gateways.types import PaymentResponse
from payment_gateways.types import WebhookPayload

logger = logging.getLogger(__name__)


class PaymentManager:
    """
    Entry point for payment operations.

    Resolves gateways through the registry and dispatches to them. Errors
    raised by payment_gateways itself propagate unchanged; anything else a
    gateway raises is wrapped in ``GatewayError``.
    """

    def __init__(self, registry: GatewayRegistry) -> None:
        self.registry = registry

    def gateway(self, name: str | None = None) -> PaymentGatewayBase:
        if name is None:
            name = self.get_default_gateway()
            if not name:
                msg = "No default payment gateway configured"
                raise ConfigurationError(msg)
        return self.registry.resolve(name)

    def has_gateway(self, name: str) -> bool:
        return self.registry.has_gateway(name)

    def get_available_gateways(self) -> list[str]:
        return self.registry.available_gateways()

    def set_default_gateway(self, name: str) -> "PaymentManager":
        self.registry.set_default(name)
        return self

    def get_default_gateway(self) -> str | None:
        return self.registry.get_default()

    def supports_refund(self, gateway: str) -> bool:
        return self.gateway(gateway).supports_refund()

    def context(self) -> PaymentContext:
        return PaymentContext(self)

    def pay(self, gateway: str, request: PaymentRequest) -> PaymentResponse:
        """
        Process a payment using the given gateway.

        Returns:
            PaymentResponse: ``success=False`` for declined or otherwise
            unsuccessful payments.

        Raises:
            GatewayNotFoundError: If the gateway is unknown or disabled
            PaymentGatewayError: For structural failures, unexpected provider
                errors are wrapped in GatewayError
        """
        instance = self.gateway(gateway)
        sender = type(instance)
        signals.payment_initiated.send(sender=sender, gateway=instance, request=request)

        try:
            response = self._call(instance, "payment", instance.pay, request)
        except PaymentGatewayError as e:
            signals.payment_failed.send(
                sender=sender,
                gateway=instance,
                request=request,
                response=PaymentResponse.failure(str(e), gateway_reference=request.order_id),
                exception=e,
            )
            raise

        if response.success:
            logger.info(
                "Payment %s initiated on %s (%s)",
                request.order_id,
                instance.gateway_name(),
                response.status,
            )
            signals.payment_succeeded.send(
                sender=sender,
                gateway=instance,
                request=request,
                response=response,
            )
        else:
            logger.info(
                "Payment %s failed on %s: %s",
                request.order_id,
                instance.gateway_name(),
                response.message,
            )
            signals.payment_failed.send(
                sender=sender,
                gateway=instance,
                request=request,
                response=response,
                exception=None,
            )
        return response

    def pay_with_default(self, request: PaymentRequest) -> PaymentResponse:
        default = self.get_default_gateway()
        if not default:
            msg = "No default payment gateway configured"
            raise ConfigurationError(msg)
        return self.pay(default, request)

    def verify(
        self,
        gateway: str,
        payload: WebhookPayload | Mapping[str, Any],
    ) -> PaymentResponse:
        """
        Verify a webhook/callback for the given gateway.

        A declared signature is checked before the payload reaches the
        gateway, for gateways that sign their webhooks.

        Raises:
            InvalidSignatureError: If the gateway rejects the signature
        """
        instance = self.gateway(gateway)
        if not isinstance(payload, WebhookPayload):
            payload = WebhookPayload(gateway=gateway, payload=payload)

        self.check_signature(instance, payload)
        response = self._call(instance, "verification", instance.verify, payload.payload)

        signals.webhook_verified.send(
            sender=type(instance),
            gateway=instance,
            payload=payload,
            response=response,
        )
        return response

    def check_signature(self, instance: PaymentGatewayBase, payload: WebhookPayload) -> None:
        if not payload.has_signature() or not isinstance(instance, SignedWebhookMixin):
            return

        valid = self._call(instance, "signature validation", instance.validate_webhook_signature, payload)
        if not valid:
            logger.warning("Rejected webhook with invalid signature for %s", instance.gateway_name())
            raise InvalidSignatureError.for_gateway(instance.gateway_name())

    def refund(self, gateway: str, transaction_id: str, amount) -> bool:
        """
        Refund a transaction.

        Returns:
            bool: False only when the gateway declined the refund.

        Raises:
            RefundError: If refunds are not supported, or the refund failed
        """
        instance = self.gateway(gateway)
        if not instance.supports_refund():
            raise RefundError.not_supported(instance.gateway_name())

        refunded = self._call(instance, "refund", instance.refund, transaction_id, amount)
        if refunded:
            logger.info("Refunded %s on %s for %s", transaction_id, instance.gateway_name(), amount)
            signals.payment_refunded.send(
                sender=type(instance),
                gateway=instance,
                transaction_id=transaction_id,
                amount=amount,
            )
        return refunded

    @staticmethod
    def _call(instance: PaymentGatewayBase, operation: str, func: Callable, *args):
        try:
            return func(*args)
        except PaymentGatewayError:
            raise
        except Exception as e:
            logger.exception("Unexpected %s error on gateway %s", operation, instance.gateway_name())
            msg = f"{operation.capitalize()} failed: {e}"
            raise GatewayError(msg, gateway=instance.gateway_name(), original_error=e) from e


_manager: PaymentManager | None = None
_manager_lock = threading.Lock()


def get_manager() -> PaymentManager:
    """Process-wide manager built from ``settings.PAYMENTS`` on first use."""
    global _manager  # noqa: PLW0603
    if _manager is None:
        with _manager_lock:
            if _manager is None:
                _manager = PaymentManager(build_registry())
    return _manager


def reset_manager() -> None:
    global _manager  # noqa: PLW0603
    with _manager_lock:
        _manager = None


@receiver(setting_changed)
def reload_payments_settings(*args, setting=None, **kwargs):
    if setting == "PAYMENTS":
        reset_manager()
