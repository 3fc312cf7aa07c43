import logging
from collections.abc import Mapping
from decimal import Decimal
from decimal import InvalidOperation
from typing import Any
from uuid import uuid4

import stripe

from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.gateways.base import SignedWebhookMixin
from payment_gateways.types import PaymentRequest
from payment_gateways.types import PaymentResponse
from payment_gateways.types import PaymentStatus
from payment_gateways.types import WebhookPayload

logger = logging.getLogger(__name__)

# event type -> (normalized status, success, field holding the PaymentIntent id)
STRIPE_EVENTS = {
    "payment_intent.succeeded": (PaymentStatus.COMPLETED, True, "id"),
    "payment_intent.payment_failed": (PaymentStatus.FAILED, False, "id"),
    "payment_intent.canceled": (PaymentStatus.CANCELED, False, "id"),
    "charge.succeeded": (PaymentStatus.COMPLETED, True, "payment_intent"),
    "charge.failed": (PaymentStatus.FAILED, False, "payment_intent"),
}


class StripeGateway(SignedWebhookMixin, PaymentGatewayBase):
    """Stripe payment gateway implementation."""

    name = "stripe"
    required_credentials = ("secret_key", "api_key")
    refundable = True
    signature_header = "stripe-signature"

    DEFAULT_TOLERANCE = 300

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        """Create a PaymentIntent-style charge for client-side confirmation."""
        self.ensure_configured()

        payment_intent_id = f"pi_{uuid4().hex[:24]}"
        self.record_charge(payment_intent_id, request.amount)
        self.log(
            logging.INFO,
            "Stripe PaymentIntent created",
            payment_intent_id=payment_intent_id,
            amount=str(request.amount),
            currency=request.currency,
        )

        return PaymentResponse.successful(
            transaction_id=payment_intent_id,
            status="requires_payment_method",
            message="PaymentIntent created successfully",
            amount=request.amount,
            currency=request.currency.lower(),
            gateway_reference=request.order_id,
            data={
                "payment_intent_id": payment_intent_id,
                "client_secret": f"{payment_intent_id}_secret_{uuid4().hex[:24]}",
                "amount": self.format_amount(request.amount),
                "publishable_key": self.get_mode_config("api_key"),
            },
            meta=dict(request.metadata),
        )

    def verify(self, payload: Mapping[str, Any]) -> PaymentResponse:
        """Process Stripe webhook event."""
        event_type = payload.get("type") or ""
        data = payload.get("data")
        data_object = data.get("object") if isinstance(data, Mapping) else None
        if not isinstance(data_object, Mapping):
            logger.warning("Stripe event %s has no data object", event_type or "unknown")
            return PaymentResponse.failure(
                f"Stripe event {event_type or 'unknown'} has no data object",
                status=PaymentStatus.UNKNOWN.value,
                data=payload,
            )

        if event_type in STRIPE_EVENTS:
            status, success, id_field = STRIPE_EVENTS[event_type]
            transaction_id = data_object.get(id_field)
        else:
            status, success = PaymentStatus.UNKNOWN, False
            transaction_id = data_object.get("id") or data_object.get("payment_intent")

        amount = data_object.get("amount")
        if amount is not None:
            try:
                amount = Decimal(amount) / 100
            except (InvalidOperation, TypeError, ValueError):
                amount = None
            if amount is None or not amount.is_finite():
                logger.warning("Stripe event %s has an invalid amount", event_type)
                return PaymentResponse.failure(
                    f"Stripe event {event_type or 'unknown'} has an invalid amount",
                    transaction_id=transaction_id,
                    status=PaymentStatus.UNKNOWN.value,
                    data=payload,
                )

        metadata = data_object.get("metadata")
        fields = {
            "transaction_id": transaction_id,
            "status": status.value,
            "data": payload,
            "amount": amount,
            "currency": data_object.get("currency"),
            "meta": metadata if isinstance(metadata, Mapping) else {},
        }

        if success:
            return PaymentResponse.successful(message=f"Stripe event {event_type}", **fields)
        return PaymentResponse.failure(f"Stripe event {event_type or 'unknown'}", **fields)

    def validate_webhook_signature(self, payload: WebhookPayload) -> bool:
        """Validate Stripe webhook signature."""

        secret = self.webhook_secret()
        if not secret:
            return super().validate_webhook_signature(payload)

        try:
            stripe.WebhookSignature.verify_header(
                payload.signed_content().decode("utf-8"),
                payload.signature,
                secret,
                tolerance=self.get_config("webhook_tolerance", self.DEFAULT_TOLERANCE),
            )
            return True  # noqa: TRY300
        except stripe.SignatureVerificationError as e:
            logger.warning("Stripe webhook signature validation failed: %s", str(e))
            return False
        except UnicodeDecodeError:
            logger.warning("Stripe webhook body is not valid UTF-8")
            return False
