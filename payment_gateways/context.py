"""Fluent builder for a single payment call."""

from enum import Enum
from typing import TYPE_CHECKING

from payment_gateways.exceptions import ConfigurationError
from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.types import PaymentRequest
from payment_gateways.types import PaymentResponse

if TYPE_CHECKING:
    from payment_gateways.manager import PaymentManager


class ContextState(str, Enum):
    EMPTY = "empty"
    GATEWAY_SELECTED = "gateway_selected"
    READY = "ready"
    EXECUTED = "executed"


class PaymentContext:
    """
    Accumulates a gateway and a request before a single ``execute()``.

        response = manager.context().using("stripe").with_request(request).execute()

    A context is single-use: once executed, call ``reset()`` to reuse it.
    """

    def __init__(self, manager: "PaymentManager") -> None:
        self._manager = manager
        self._gateway: PaymentGatewayBase | None = None
        self._gateway_name: str | None = None
        self._request: PaymentRequest | None = None
        self._state = ContextState.EMPTY

    @property
    def state(self) -> ContextState:
        return self._state

    @property
    def gateway(self) -> PaymentGatewayBase | None:
        return self._gateway

    @property
    def gateway_name(self) -> str | None:
        """The name the gateway was selected under."""
        return self._gateway_name

    @property
    def request(self) -> PaymentRequest | None:
        return self._request

    def _ensure_not_executed(self) -> None:
        if self._state is ContextState.EXECUTED:
            msg = "Payment context has already been executed. Call reset() to reuse it."
            raise ConfigurationError(msg)

    def using(self, gateway: str) -> "PaymentContext":
        """Select the gateway. Raises GatewayNotFoundError for unknown names."""
        self._ensure_not_executed()
        self._gateway = self._manager.gateway(gateway)
        self._gateway_name = gateway
        self._state = ContextState.READY if self._request is not None else ContextState.GATEWAY_SELECTED
        return self

    def with_request(self, request: PaymentRequest) -> "PaymentContext":
        self._ensure_not_executed()
        if not isinstance(request, PaymentRequest):
            msg = f"Expected a PaymentRequest, got {type(request).__name__}"
            raise ConfigurationError(msg)
        self._request = request
        if self._gateway is not None:
            self._state = ContextState.READY
        return self

    def execute(self) -> PaymentResponse:
        self._ensure_not_executed()
        if self._state is not ContextState.READY:
            msg = "Payment context is incomplete. Call using() and with_request() before execute()."
            raise ConfigurationError(msg)

        response = self._manager.pay(self._gateway_name, self._request)
        self._state = ContextState.EXECUTED
        return response

    def refund(self, transaction_id: str, amount) -> bool:
        if self._gateway is None:
            msg = "No gateway selected. Call using() before refund()."
            raise ConfigurationError(msg)
        return self._manager.refund(self._gateway_name, transaction_id, amount)

    def reset(self) -> "PaymentContext":
        self._gateway = None
        self._gateway_name = None
        self._request = None
        self._state = ContextState.EMPTY
        return self
