"""Type definitions for payment gateways."""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from decimal import ROUND_HALF_UP
from decimal import Decimal
from decimal import InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import URLValidator
from django.core.validators import validate_email

from payment_gateways.exceptions import ConfigurationError
from payment_gateways.exceptions import ValidationError
from payment_gateways.utils import data_get
from payment_gateways.utils import to_bool

SIGNATURE_HEADERS = ("signature", "x-signature", "webhook-signature")


class GatewayMode(str, Enum):
    """Operating mode of a gateway."""

    SANDBOX = "sandbox"
    LIVE = "live"

    @classmethod
    def parse(cls, value: "str | GatewayMode") -> "GatewayMode":
        try:
            return cls(str(getattr(value, "value", value)).strip().lower())
        except ValueError as e:
            msg = f"Invalid gateway mode '{value}'. Expected 'sandbox' or 'live'."
            raise ConfigurationError(msg) from e


class PaymentStatus(str, Enum):
    """Standard payment status across all gateways."""

    PENDING = "pending"
    SUCCESS = "success"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"
    UNKNOWN = "unknown"


def _freeze(value: Mapping | None) -> Mapping:
    return MappingProxyType(dict(value or {}))


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class PaymentRequest:
    """Data for initiating a payment. Validated on construction."""

    order_id: str
    amount: Decimal
    currency: str
    customer_email: str
    callback_url: str
    webhook_url: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    description: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    custom_data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        errors: dict[str, str] = {}

        if not isinstance(self.order_id, str) or not self.order_id.strip():
            errors["order_id"] = "Order ID is required"

        try:
            amount = _to_decimal(self.amount)
        except (InvalidOperation, ValueError, TypeError):
            errors["amount"] = f"Invalid amount '{self.amount}'"
        else:
            if not amount.is_finite() or amount <= 0:
                errors["amount"] = "Amount must be greater than zero"
            object.__setattr__(self, "amount", amount)

        currency = self.currency if isinstance(self.currency, str) else ""
        if len(currency) != 3 or not currency.isalpha():  # noqa: PLR2004
            errors["currency"] = f"Invalid currency code '{self.currency}'"
        else:
            object.__setattr__(self, "currency", currency.upper())

        try:
            validate_email(self.customer_email)
        except DjangoValidationError:
            errors["customer_email"] = f"Invalid email '{self.customer_email}'"

        url_validator = URLValidator()
        for name in ("callback_url", "webhook_url"):
            value = getattr(self, name)
            if value is None and name == "webhook_url":
                continue
            try:
                url_validator(value)
            except DjangoValidationError:
                errors[name] = f"Invalid URL '{value}'"

        if errors:
            msg = "Invalid payment request: " + ", ".join(sorted(errors))
            raise ValidationError(msg, errors=errors)

        object.__setattr__(self, "metadata", _freeze(self.metadata))
        object.__setattr__(self, "custom_data", _freeze(self.custom_data))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentRequest":
        missing = [
            key
            for key in ("order_id", "amount", "currency", "customer_email", "callback_url")
            if key not in data
        ]
        if missing:
            msg = "Missing payment request fields: " + ", ".join(missing)
            raise ValidationError(msg, errors={key: "This field is required" for key in missing})

        return cls(
            order_id=data["order_id"],
            amount=data["amount"],
            currency=data["currency"],
            customer_email=data["customer_email"],
            callback_url=data["callback_url"],
            webhook_url=data.get("webhook_url"),
            customer_name=data.get("customer_name"),
            customer_phone=data.get("customer_phone"),
            description=data.get("description"),
            metadata=data.get("metadata") or {},
            custom_data=data.get("custom_data") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "amount": self.amount,
            "currency": self.currency,
            "customer_email": self.customer_email,
            "callback_url": self.callback_url,
            "webhook_url": self.webhook_url,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "description": self.description,
            "metadata": dict(self.metadata),
            "custom_data": dict(self.custom_data),
        }

    def amount_in_minor_units(self) -> int:
        """Amount in the smallest currency unit (cents, paise, ...)."""
        return int((self.amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))

    def get_meta(self, key: str, default: Any = None) -> Any:
        return data_get(self.metadata, key, default)

    def get_custom_data(self, key: str, default: Any = None) -> Any:
        return data_get(self.custom_data, key, default)


@dataclass(frozen=True)
class PaymentResponse:
    """
    Standardized result of a gateway operation.

    Business outcomes (declined card, failed verification) are represented by
    ``success=False``; structural problems are raised as exceptions instead.
    Use the ``successful``, ``failure`` and ``redirect`` constructors rather
    than building instances by hand.
    """

    success: bool
    transaction_id: str | None = None
    redirect_url: str | None = None
    message: str | None = None
    status: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    gateway_reference: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.redirect_url and not self.success:
            msg = "A failed payment response cannot carry a redirect URL"
            raise ValidationError(msg, errors={"redirect_url": msg})
        if self.amount is not None:
            object.__setattr__(self, "amount", _to_decimal(self.amount))
        object.__setattr__(self, "data", _freeze(self.data))
        object.__setattr__(self, "meta", _freeze(self.meta))

    @classmethod
    def successful(cls, **fields) -> "PaymentResponse":
        fields.setdefault("message", "Payment processed successfully")
        fields.setdefault("status", PaymentStatus.SUCCESS.value)
        return cls(success=True, **fields)

    @classmethod
    def failure(cls, message: str, **fields) -> "PaymentResponse":
        fields.pop("redirect_url", None)
        fields.setdefault("status", PaymentStatus.FAILED.value)
        return cls(success=False, message=message, **fields)

    @classmethod
    def redirect(cls, url: str, **fields) -> "PaymentResponse":
        fields.setdefault("message", "Redirect to payment page")
        fields.setdefault("status", PaymentStatus.PENDING.value)
        return cls(success=True, redirect_url=url, **fields)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PaymentResponse":
        return cls(
            success=bool(data.get("success", False)),
            transaction_id=data.get("transaction_id"),
            redirect_url=data.get("redirect_url"),
            message=data.get("message"),
            status=data.get("status"),
            data=data.get("data") or {},
            gateway_reference=data.get("gateway_reference"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            meta=data.get("meta") or {},
        )

    def requires_redirect(self) -> bool:
        return self.success and bool(self.redirect_url)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "transaction_id": self.transaction_id,
            "redirect_url": self.redirect_url,
            "message": self.message,
            "status": self.status,
            "data": dict(self.data),
            "gateway_reference": self.gateway_reference,
            "amount": self.amount,
            "currency": self.currency,
            "meta": dict(self.meta),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), cls=DjangoJSONEncoder)

    def get_data(self, key: str, default: Any = None) -> Any:
        return data_get(self.data, key, default)

    def get_meta(self, key: str, default: Any = None) -> Any:
        return data_get(self.meta, key, default)


@dataclass(frozen=True)
class WebhookPayload:
    """Webhook or callback notification received from a gateway."""

    gateway: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, Any] = field(default_factory=dict)
    signature: str | None = None
    raw_body: bytes = b""

    def __post_init__(self):
        headers = {str(key).lower(): value for key, value in dict(self.headers).items()}
        object.__setattr__(self, "headers", MappingProxyType(headers))
        object.__setattr__(self, "payload", _freeze(self.payload))

    @classmethod
    def from_request(
        cls,
        gateway: str,
        payload: Mapping[str, Any],
        headers: Mapping[str, Any] | None = None,
        raw_body: bytes = b"",
        signature_header: str | None = None,
    ) -> "WebhookPayload":
        lowered = {str(key).lower(): value for key, value in (headers or {}).items()}
        candidates = (signature_header.lower(),) if signature_header else ()
        signature = next(
            (lowered[name] for name in candidates + SIGNATURE_HEADERS if lowered.get(name)),
            None,
        )
        return cls(
            gateway=gateway,
            payload=payload,
            headers=lowered,
            signature=signature,
            raw_body=raw_body or b"",
        )

    def has_signature(self) -> bool:
        return bool(self.signature)

    def get(self, key: str, default: Any = None) -> Any:
        return data_get(self.payload, key, default)

    def get_header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name.lower(), default)

    def signed_content(self) -> bytes:
        """Bytes the gateway signed: the raw body when known, else canonical JSON."""
        if self.raw_body:
            return self.raw_body
        return json.dumps(
            dict(self.payload),
            sort_keys=True,
            separators=(",", ":"),
            cls=DjangoJSONEncoder,
        ).encode()

    def to_dict(self) -> dict[str, Any]:
        return {
            "gateway": self.gateway,
            "payload": dict(self.payload),
            "signature": self.signature,
            "headers": dict(self.headers),
        }


@dataclass(frozen=True)
class GatewayConfig:
    """Per-gateway settings: enabled flag, mode, credentials per mode."""

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)
    default_mode: str = GatewayMode.SANDBOX.value

    def __post_init__(self):
        if not isinstance(self.values, Mapping):
            msg = f"Configuration for gateway '{self.name}' must be a mapping"
            raise ConfigurationError(msg, gateway=self.name)
        object.__setattr__(self, "values", _freeze(self.values))
        object.__setattr__(
            self,
            "_enabled",
            to_bool(self.values.get("enabled"), default=True, name=f"gateway '{self.name}' enabled"),
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def mode(self) -> GatewayMode:
        return GatewayMode.parse(self.values.get("mode") or self.default_mode)

    def get(self, key: str, default: Any = None) -> Any:
        return data_get(self.values, key, default)

    def as_dict(self) -> dict[str, Any]:
        values = dict(self.values)
        values["mode"] = self.mode.value
        return values
