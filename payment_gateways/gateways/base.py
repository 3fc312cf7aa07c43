import logging
import threading
from abc import ABC
from abc import abstractmethod
from collections.abc import Mapping
from decimal import ROUND_HALF_UP
from decimal import Decimal
from decimal import InvalidOperation
from typing import Any
from uuid import uuid4

from payment_gateways import signatures
from payment_gateways.exceptions import ConfigurationError
from payment_gateways.exceptions import RefundError
from payment_gateways.exceptions import ValidationError
from payment_gateways.types import GatewayMode
from payment_gateways.types import PaymentRequest
from payment_gateways.types import PaymentResponse
from payment_gateways.types import PaymentStatus
from payment_gateways.types import WebhookPayload
from payment_gateways.utils import data_get
from payment_gateways.utils import deep_merge

logger = logging.getLogger(__name__)


class PaymentGatewayBase(ABC):
    """
    Abstract base class for payment gateway implementations.
    All payment gateways must implement these methods.

    Subclasses declare their identity and webhook format through class
    attributes and override ``pay`` (and ``verify`` when the default field
    lookup does not fit the provider's payload).
    """

    name: str = ""
    required_credentials: tuple[str, ...] = ()
    refundable: bool = False

    # Webhook payload lookups, dotted paths into the notification body.
    status_field: str = "status"
    transaction_field: str = "transaction_id"
    success_statuses: frozenset[str] = frozenset({"success", "completed", "paid"})

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        self._config: dict[str, Any] = dict(config or {})
        self._mode = GatewayMode.parse(self._config.get("mode") or GatewayMode.SANDBOX)
        self._config["mode"] = self._mode.value
        self._charges: dict[str, Decimal] = {}
        self._charges_lock = threading.Lock()

    def __repr__(self):
        return f"<{type(self).__name__} {self.gateway_name()} ({self._mode.value})>"

    @abstractmethod
    def pay(self, request: PaymentRequest) -> PaymentResponse:
        """
        Initiate a payment.

        Args:
            request: The validated payment request

        Returns:
            PaymentResponse: a redirect to hosted checkout, an immediate
            success, or a failure for expected business outcomes (declined,
            unsupported currency, ...).

        Raises:
            ConfigurationError: If credentials for the current mode are missing
            GatewayError: If the provider fails unexpectedly
        """

    def verify(self, payload: Mapping[str, Any]) -> PaymentResponse:
        """
        Normalize a webhook/callback payload into a response.

        The payload has already been signature-checked by the dispatcher.
        """
        status = data_get(payload, self.status_field)
        status = str(status).lower() if status is not None else PaymentStatus.UNKNOWN.value
        transaction_id = data_get(payload, self.transaction_field) or payload.get("id")
        transaction_id = str(transaction_id) if transaction_id is not None else None

        if status in self.success_statuses:
            return PaymentResponse.successful(
                transaction_id=transaction_id,
                status=status,
                data=payload,
                message="Payment verified",
            )
        return PaymentResponse.failure(
            f"Payment not completed (status: {status})",
            transaction_id=transaction_id,
            status=status,
            data=payload,
        )

    def refund(self, transaction_id: str, amount) -> bool:
        """
        Refund a previous charge.

        Returns:
            bool: True when refunded, False when the refund was declined
            (the charge has no refundable balance left).

        Raises:
            RefundError: If refunds are unsupported, the transaction is
                unknown or the amount exceeds the refundable balance
            ValidationError: If the amount is not positive
        """
        if not self.supports_refund():
            raise RefundError.not_supported(self.gateway_name())

        try:
            amount = Decimal(str(amount))
        except (InvalidOperation, ValueError) as e:
            msg = f"Invalid refund amount '{amount}'"
            raise ValidationError(msg, errors={"amount": msg}, gateway=self.gateway_name()) from e
        if not amount.is_finite() or amount <= 0:
            msg = "Refund amount must be greater than zero"
            raise ValidationError(msg, errors={"amount": msg}, gateway=self.gateway_name())

        with self._charges_lock:
            balance = self._charges.get(transaction_id)
            if balance is None:
                raise RefundError.failed(self.gateway_name(), transaction_id, "unknown transaction")
            if balance == 0:
                self.log(logging.INFO, "Refund declined, charge fully refunded", transaction_id=transaction_id)
                return False
            if amount > balance:
                raise RefundError.amount_mismatch(self.gateway_name(), transaction_id, amount, balance)
            self._charges[transaction_id] = balance - amount

        self.log(logging.INFO, "Refund processed", transaction_id=transaction_id, amount=str(amount))
        return True

    def supports_refund(self) -> bool:
        return self.refundable

    def gateway_name(self) -> str:
        return self.name

    def get_mode(self) -> str:
        return self._mode.value

    def set_mode(self, mode: "str | GatewayMode") -> "PaymentGatewayBase":
        self._mode = GatewayMode.parse(mode)
        self._config["mode"] = self._mode.value
        return self

    def is_sandbox(self) -> bool:
        return self._mode is GatewayMode.SANDBOX

    def is_live(self) -> bool:
        return self._mode is GatewayMode.LIVE

    def get_config(self, key: str | None = None, default: Any = None) -> Any:
        if key is None:
            return dict(self._config)
        return data_get(self._config, key, default)

    def set_config(self, config: Mapping[str, Any]) -> "PaymentGatewayBase":
        self._config = deep_merge(self._config, config)
        self._mode = GatewayMode.parse(self._config.get("mode") or GatewayMode.SANDBOX)
        self._config["mode"] = self._mode.value
        return self

    def get_mode_config(self, key: str, default: Any = None) -> Any:
        """Value for the current mode (``<mode>.<key>``), falling back to ``key``."""
        value = data_get(self._config, f"{self._mode.value}.{key}")
        if value in (None, ""):
            value = data_get(self._config, key, default)
        return value

    def missing_credentials(self) -> list[str]:
        return [key for key in self.required_credentials if not self.get_mode_config(key)]

    def ensure_configured(self) -> None:
        missing = self.missing_credentials()
        if missing:
            msg = (
                f"Missing {self._mode.value} credentials for gateway "
                f"'{self.gateway_name()}': {', '.join(missing)}"
            )
            raise ConfigurationError(msg, gateway=self.gateway_name())

    def format_amount(self, amount: Decimal) -> int:
        """Amount in minor units. Override for zero-decimal providers."""
        return int((Decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))

    def generate_transaction_id(self) -> str:
        return f"{self.gateway_name()}_{uuid4().hex[:16]}"

    def record_charge(self, transaction_id: str, amount: Decimal) -> None:
        """Remember a charge so it can be refunded later in this process."""
        with self._charges_lock:
            self._charges[transaction_id] = Decimal(amount)

    def log(self, level: int, message: str, **context) -> None:
        context["gateway"] = self.gateway_name()
        context["mode"] = self._mode.value
        logger.log(level, "[Payments] %s %s", message, context)


class SignedWebhookMixin:
    """
    Capability marker for gateways that sign their webhooks.

    The dispatcher only asks gateways carrying this mixin to validate a
    declared signature.
    """

    signature_header: str | None = None
    # None tries every algorithm in signatures.DEFAULT_ALGORITHMS.
    signature_algorithm: str | None = "sha256"
    signature_prefix: str = ""

    def webhook_secret(self) -> str | None:
        return self.get_mode_config("webhook_secret")

    def validate_webhook_signature(self, payload: WebhookPayload) -> bool:
        """
        Validate a webhook signature from the gateway.

        Args:
            payload: The received webhook, including its declared signature

        Returns:
            bool: True if signature is valid, False otherwise

        Raises:
            ConfigurationError: If webhook secret is not configured
        """
        secret = self.webhook_secret()
        if not secret:
            msg = f"Webhook secret is not configured for gateway '{self.gateway_name()}'"
            raise ConfigurationError(msg, gateway=self.gateway_name())

        signature = signatures.extract_signature_from_header(
            payload.signature or "",
            self.signature_prefix,
        )
        content = payload.signed_content()

        if self.signature_algorithm is None:
            return signatures.verify_webhook(content, signature, secret)
        return signatures.verify_hmac(content, signature, secret, self.signature_algorithm)
