"""
Hosted-checkout gateways.

Each provider here follows the same flow: the customer is redirected to the
provider's checkout page for the active mode, and the provider later posts
a notification that ``verify`` normalizes. Providers differ only in their
credentials, URLs, currencies and webhook field names, so they are declared
as attribute-only subclasses of ``HostedCheckoutGateway``.
"""

import logging
from urllib.parse import urlencode

from payment_gateways.gateways.base import PaymentGatewayBase
from payment_gateways.gateways.base import SignedWebhookMixin
from payment_gateways.types import GatewayMode
from payment_gateways.types import PaymentRequest
from payment_gateways.types import PaymentResponse


class HostedCheckoutGateway(PaymentGatewayBase):
    checkout_urls: dict[str, str] = {}
    # None accepts any currency.
    supported_currencies: frozenset[str] | None = None

    def checkout_url(self) -> str:
        return self.get_config("checkout_url") or self.checkout_urls[self.get_mode()]

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        self.ensure_configured()

        if self.supported_currencies is not None and request.currency not in self.supported_currencies:
            return PaymentResponse.failure(
                f"Currency {request.currency} is not supported by {self.gateway_name()}",
                gateway_reference=request.order_id,
                amount=request.amount,
                currency=request.currency,
            )

        transaction_id = self.generate_transaction_id()
        self.record_charge(transaction_id, request.amount)

        query = {
            "reference": transaction_id,
            "order_id": request.order_id,
            "amount": str(request.amount),
            "currency": request.currency,
            "email": request.customer_email,
            "callback_url": request.callback_url,
        }
        if request.webhook_url:
            query["notify_url"] = request.webhook_url
        url = f"{self.checkout_url()}?{urlencode(query)}"

        self.log(
            logging.INFO,
            "Checkout created",
            order_id=request.order_id,
            transaction_id=transaction_id,
        )
        return PaymentResponse.redirect(
            url,
            transaction_id=transaction_id,
            gateway_reference=request.order_id,
            amount=request.amount,
            currency=request.currency,
            data={"checkout_url": url},
            meta=dict(request.metadata),
        )


def _urls(sandbox: str, live: str | None = None) -> dict[str, str]:
    return {GatewayMode.SANDBOX.value: sandbox, GatewayMode.LIVE.value: live or sandbox}


class PaypalGateway(HostedCheckoutGateway):
    name = "paypal"
    required_credentials = ("client_id", "client_secret")
    refundable = True
    checkout_urls = _urls(
        "https://www.sandbox.paypal.com/checkoutnow",
        "https://www.paypal.com/checkoutnow",
    )
    status_field = "resource.status"
    transaction_field = "resource.id"
    success_statuses = frozenset({"completed", "approved"})


class RazorpayGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "razorpay"
    required_credentials = ("key_id", "key_secret")
    refundable = True
    supported_currencies = frozenset({"INR", "USD", "EUR", "GBP", "SGD", "AED"})
    checkout_urls = _urls("https://api.razorpay.com/v1/checkout/embedded")
    status_field = "payload.payment.entity.status"
    transaction_field = "payload.payment.entity.id"
    success_statuses = frozenset({"captured", "authorized"})
    signature_header = "x-razorpay-signature"


class PaystackGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "paystack"
    required_credentials = ("secret_key",)
    refundable = True
    supported_currencies = frozenset({"NGN", "GHS", "ZAR", "KES", "USD"})
    checkout_urls = _urls("https://checkout.paystack.com")
    status_field = "data.status"
    transaction_field = "data.reference"
    success_statuses = frozenset({"success"})
    signature_header = "x-paystack-signature"
    signature_algorithm = "sha512"


class PaytmGateway(HostedCheckoutGateway):
    name = "paytm"
    required_credentials = ("merchant_id", "merchant_key")
    refundable = True
    supported_currencies = frozenset({"INR"})
    checkout_urls = _urls(
        "https://securegw-stage.paytm.in/theia/processTransaction",
        "https://securegw.paytm.in/theia/processTransaction",
    )
    status_field = "STATUS"
    transaction_field = "TXNID"
    success_statuses = frozenset({"txn_success"})


class FlutterwaveGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "flutterwave"
    required_credentials = ("public_key", "secret_key")
    refundable = True
    checkout_urls = _urls("https://checkout.flutterwave.com/v3/hosted/pay")
    status_field = "data.status"
    transaction_field = "data.id"
    success_statuses = frozenset({"successful"})
    signature_header = "flutterwave-signature"


class SslcommerzGateway(HostedCheckoutGateway):
    name = "sslcommerz"
    required_credentials = ("store_id", "store_password")
    refundable = True
    supported_currencies = frozenset({"BDT", "USD", "EUR", "GBP"})
    checkout_urls = _urls(
        "https://sandbox.sslcommerz.com/gwprocess/v4/api.php",
        "https://securepay.sslcommerz.com/gwprocess/v4/api.php",
    )
    transaction_field = "tran_id"
    success_statuses = frozenset({"valid", "validated"})


class MollieGateway(HostedCheckoutGateway):
    name = "mollie"
    required_credentials = ("api_key",)
    refundable = True
    checkout_urls = _urls("https://www.mollie.com/checkout")
    transaction_field = "id"
    success_statuses = frozenset({"paid"})


class SenangpayGateway(HostedCheckoutGateway):
    name = "senangpay"
    required_credentials = ("merchant_id", "secret_key")
    supported_currencies = frozenset({"MYR"})
    checkout_urls = _urls(
        "https://sandbox.senangpay.my/payment",
        "https://app.senangpay.my/payment",
    )
    status_field = "status_id"
    success_statuses = frozenset({"1"})


class BkashGateway(HostedCheckoutGateway):
    name = "bkash"
    required_credentials = ("app_key", "app_secret", "username", "password")
    refundable = True
    supported_currencies = frozenset({"BDT"})
    checkout_urls = _urls(
        "https://tokenized.sandbox.bka.sh/v1.2.0-beta/tokenized/checkout",
        "https://tokenized.pay.bka.sh/v1.2.0-beta/tokenized/checkout",
    )
    status_field = "transactionStatus"
    transaction_field = "trxID"
    success_statuses = frozenset({"completed"})


class MercadopagoGateway(HostedCheckoutGateway):
    name = "mercadopago"
    required_credentials = ("client_id", "client_secret")
    refundable = True
    checkout_urls = _urls(
        "https://sandbox.mercadopago.com/checkout/v1/redirect",
        "https://www.mercadopago.com/checkout/v1/redirect",
    )
    transaction_field = "data.id"
    success_statuses = frozenset({"approved"})


class CashfreeGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "cashfree"
    required_credentials = ("app_id", "secret_key")
    refundable = True
    supported_currencies = frozenset({"INR"})
    checkout_urls = _urls(
        "https://sandbox.cashfree.com/pg/orders",
        "https://api.cashfree.com/pg/orders",
    )
    status_field = "data.payment.payment_status"
    transaction_field = "data.payment.cf_payment_id"
    success_statuses = frozenset({"success"})
    signature_header = "x-webhook-signature"


class PayfastGateway(HostedCheckoutGateway):
    name = "payfast"
    required_credentials = ("merchant_id", "merchant_key", "pass_phrase")
    supported_currencies = frozenset({"ZAR"})
    checkout_urls = _urls(
        "https://sandbox.payfast.co.za/eng/process",
        "https://www.payfast.co.za/eng/process",
    )
    status_field = "payment_status"
    transaction_field = "pf_payment_id"
    success_statuses = frozenset({"complete"})


class SkrillGateway(HostedCheckoutGateway):
    name = "skrill"
    required_credentials = ("merchant_email", "api_password")
    checkout_urls = _urls("https://pay.skrill.com")
    transaction_field = "mb_transaction_id"
    success_statuses = frozenset({"2"})


class PhonepeGateway(HostedCheckoutGateway):
    name = "phonepe"
    required_credentials = ("client_id", "merchant_user_id", "key_index", "secret_key")
    refundable = True
    supported_currencies = frozenset({"INR"})
    checkout_urls = _urls(
        "https://api-preprod.phonepe.com/apis/pg-sandbox/pg/v1/pay",
        "https://api.phonepe.com/apis/hermes/pg/v1/pay",
    )
    status_field = "code"
    transaction_field = "data.transactionId"
    success_statuses = frozenset({"payment_success"})


class TelrGateway(HostedCheckoutGateway):
    name = "telr"
    required_credentials = ("store_id", "store_auth_key")
    checkout_urls = _urls("https://secure.telr.com/gateway/order.json")
    status_field = "order.status.text"
    transaction_field = "order.ref"
    success_statuses = frozenset({"paid"})


class IyzicoGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "iyzico"
    required_credentials = ("api_key", "secret_key")
    refundable = True
    checkout_urls = _urls("https://sandbox-api.iyzipay.com", "https://api.iyzipay.com")
    transaction_field = "paymentId"
    success_statuses = frozenset({"success"})
    signature_header = "x-iyz-signature-v3"


class PesapalGateway(HostedCheckoutGateway):
    name = "pesapal"
    required_credentials = ("consumer_key", "consumer_secret", "ipn_id")
    supported_currencies = frozenset({"KES", "UGX", "TZS", "USD"})
    checkout_urls = _urls("https://cybqa.pesapal.com/pesapalv3", "https://pay.pesapal.com/v3")
    status_field = "payment_status_description"
    transaction_field = "order_tracking_id"
    success_statuses = frozenset({"completed"})


class MidtransGateway(HostedCheckoutGateway):
    name = "midtrans"
    required_credentials = ("server_key", "client_key")
    refundable = True
    supported_currencies = frozenset({"IDR"})
    checkout_urls = _urls(
        "https://app.sandbox.midtrans.com/snap/v2/vtweb",
        "https://app.midtrans.com/snap/v2/vtweb",
    )
    status_field = "transaction_status"
    success_statuses = frozenset({"settlement", "capture"})


class MyfatoorahGateway(SignedWebhookMixin, HostedCheckoutGateway):
    name = "myfatoorah"
    required_credentials = ("api_key",)
    refundable = True
    supported_currencies = frozenset({"KWD", "SAR", "AED", "QAR", "BHD", "OMR", "EGP", "JOD"})
    checkout_urls = _urls(
        "https://demo.myfatoorah.com/En/KWT/PayInvoice",
        "https://portal.myfatoorah.com/En/KWT/PayInvoice",
    )
    status_field = "Data.TransactionStatus"
    transaction_field = "Data.InvoiceId"
    success_statuses = frozenset({"success", "paid"})
    signature_header = "myfatoorah-signature"


class EasypaisaGateway(HostedCheckoutGateway):
    name = "easypaisa"
    required_credentials = ("store_id", "hash_key", "username", "password")
    supported_currencies = frozenset({"PKR"})
    checkout_urls = _urls(
        "https://easypaystg.easypaisa.com.pk/easypay/Index.jsf",
        "https://easypay.easypaisa.com.pk/easypay/Index.jsf",
    )
    transaction_field = "transactionRefNumber"
    success_statuses = frozenset({"paid", "success"})


HOSTED_GATEWAYS = (
    PaypalGateway,
    RazorpayGateway,
    PaystackGateway,
    PaytmGateway,
    FlutterwaveGateway,
    SslcommerzGateway,
    MollieGateway,
    SenangpayGateway,
    BkashGateway,
    MercadopagoGateway,
    CashfreeGateway,
    PayfastGateway,
    SkrillGateway,
    PhonepeGateway,
    TelrGateway,
    IyzicoGateway,
    PesapalGateway,
    MidtransGateway,
    MyfatoorahGateway,
    EasypaisaGateway,
)
