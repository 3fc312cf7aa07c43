"""
Payment outcome signals.

Every signal is sent with the gateway class as ``sender`` and the gateway
instance as the ``gateway`` keyword argument:

- payment_initiated: request
- payment_succeeded: request, response
- payment_failed: request, response, exception (None for business failures)
- payment_refunded: transaction_id, amount
- webhook_verified: payload, response
"""

import logging
from collections.abc import Mapping
from collections.abc import Sequence

from django.dispatch import Signal
from django.utils.module_loading import import_string

from payment_gateways.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

payment_initiated = Signal()
payment_succeeded = Signal()
payment_failed = Signal()
payment_refunded = Signal()
webhook_verified = Signal()

SIGNALS = {
    "payment_initiated": payment_initiated,
    "payment_succeeded": payment_succeeded,
    "payment_failed": payment_failed,
    "payment_refunded": payment_refunded,
    "webhook_verified": webhook_verified,
}


def connect_listeners(listeners: Mapping[str, Sequence[str]]) -> None:
    """
    Connect receivers configured as dotted paths.

    Args:
        listeners: Signal name -> list of dotted paths to receiver functions,
            as in ``PAYMENTS["listeners"]``.

    Raises:
        ConfigurationError: If a signal name is unknown or a path cannot
            be imported.
    """
    for signal_name, paths in listeners.items():
        signal = SIGNALS.get(signal_name)
        if signal is None:
            msg = f"Unknown payment signal '{signal_name}'. Available: {', '.join(SIGNALS)}"
            raise ConfigurationError(msg)

        for path in paths:
            try:
                receiver = import_string(path)
            except ImportError as e:
                msg = f"Cannot import payment listener '{path}'"
                raise ConfigurationError(msg, original_error=e) from e
            signal.connect(receiver, weak=False, dispatch_uid=f"{signal_name}:{path}")
            logger.debug("Connected %s to %s", path, signal_name)
