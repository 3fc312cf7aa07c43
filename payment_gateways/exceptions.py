"""Payment gateway exceptions."""

from typing import Any


class PaymentGatewayError(Exception):
    """Base exception for all payment gateway errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        gateway: str | None = None,
        original_error: Exception | None = None,
        transaction_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.gateway = gateway
        self.original_error = original_error
        self.transaction_id = transaction_id
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "message": self.message,
            "code": self.status_code,
            "gateway": self.gateway,
            "transaction_id": self.transaction_id,
            "context": self.context,
        }


class GatewayNotFoundError(PaymentGatewayError):
    """Raised when a gateway name is unknown or disabled."""

    status_code = 404

    @classmethod
    def create(cls, gateway: str, reason: str = "not found or not configured"):
        return cls(f"Payment gateway '{gateway}' {reason}", gateway=gateway)


class ConfigurationError(PaymentGatewayError):
    """Raised when payment gateway configuration is invalid or missing."""


class InvalidSignatureError(PaymentGatewayError):
    """Raised when webhook signature verification fails."""

    status_code = 401

    @classmethod
    def for_gateway(cls, gateway: str):
        return cls(f"Invalid webhook signature for gateway '{gateway}'", gateway=gateway)


class RefundError(PaymentGatewayError):
    """Raised when a refund cannot be carried out."""

    NOT_SUPPORTED = "not_supported"
    FAILED = "failed"
    AMOUNT_MISMATCH = "amount_mismatch"

    status_code = 400

    def __init__(self, message: str, reason: str = FAILED, **kwargs) -> None:
        self.reason = reason
        super().__init__(message, **kwargs)
        if reason == self.NOT_SUPPORTED:
            self.status_code = 501

    @classmethod
    def not_supported(cls, gateway: str):
        return cls(
            f"Refunds are not supported by gateway '{gateway}'",
            reason=cls.NOT_SUPPORTED,
            gateway=gateway,
        )

    @classmethod
    def failed(cls, gateway: str, transaction_id: str, reason: str):
        return cls(
            f"Refund failed for transaction '{transaction_id}' "
            f"on gateway '{gateway}': {reason}",
            reason=cls.FAILED,
            gateway=gateway,
            transaction_id=transaction_id,
        )

    @classmethod
    def amount_mismatch(cls, gateway: str, transaction_id: str, requested, allowed):
        return cls(
            f"Refund amount mismatch for transaction '{transaction_id}'. "
            f"Requested: {requested}, Allowed: {allowed}",
            reason=cls.AMOUNT_MISMATCH,
            gateway=gateway,
            transaction_id=transaction_id,
            context={"requested_amount": str(requested), "allowed_amount": str(allowed)},
        )


class ValidationError(PaymentGatewayError):
    """Raised when payment request fields are malformed."""

    status_code = 422

    def __init__(self, message: str, errors: dict[str, str] | None = None, **kwargs):
        self.errors = errors or {}
        kwargs.setdefault("context", {"errors": self.errors})
        super().__init__(message, **kwargs)


class GatewayError(PaymentGatewayError):
    """Raised when the payment provider fails unexpectedly."""

    status_code = 502


class NetworkError(GatewayError):
    """Raised when the payment provider cannot be reached."""

    status_code = 503
