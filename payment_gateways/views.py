import logging
from collections.abc import Mapping

from rest_framework import status
from rest_framework.exceptions import ParseError
from rest_framework.response import Response
from rest_framework.views import APIView

from payment_gateways.exceptions import GatewayNotFoundError
from payment_gateways.exceptions import InvalidSignatureError
from payment_gateways.exceptions import PaymentGatewayError
from payment_gateways.manager import get_manager
from payment_gateways.types import WebhookPayload

logger = logging.getLogger(__name__)


class WebhookView(APIView):
    authentication_classes = []
    permission_classes = []

    def post(self, request, gateway):
        """
        Handle a webhook request from any payment gateway.

        The gateway name comes from the URL; the signature, when the gateway
        declares one, is read from its own header.
        """
        manager = get_manager()

        try:
            instance = manager.gateway(gateway)

            # Body must be read before request.data consumes the stream
            raw_body = request.body
            data = request.data
            if hasattr(data, "dict"):
                data = data.dict()
            if not isinstance(data, Mapping):
                msg = "Webhook body must be an object"
                raise ParseError(msg)  # noqa: TRY301

            payload = WebhookPayload.from_request(
                gateway=gateway,
                payload=data,
                headers=dict(request.headers),
                raw_body=raw_body,
                signature_header=getattr(instance, "signature_header", None),
            )
            response = manager.verify(gateway, payload)

        except ParseError as e:
            logger.warning("Malformed webhook body for %s: %s", gateway, e)
            return Response({"status": "failed", "message": str(e.detail)}, status=status.HTTP_400_BAD_REQUEST)
        except GatewayNotFoundError as e:
            return Response(
                {"error": "Gateway not found", "message": e.message},
                status=status.HTTP_404_NOT_FOUND,
            )
        except InvalidSignatureError as e:
            logger.error("Webhook signature verification failed for %s", gateway)  # noqa: TRY400
            return Response(
                {"error": "Invalid signature", "message": e.message},
                status=status.HTTP_401_UNAUTHORIZED,
            )
        except PaymentGatewayError as e:
            logger.error("Webhook processing failed for %s: %s", gateway, e.message)  # noqa: TRY400
            return Response(
                {"error": "Processing failed", "message": e.message},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error processing webhook for %s", gateway)
            return Response(
                {"error": "Processing failed", "message": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if response.success:
            return Response({"status": "success"}, status=status.HTTP_200_OK)
        return Response({"status": "failed"}, status=status.HTTP_400_BAD_REQUEST)
