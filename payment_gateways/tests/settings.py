SECRET_KEY = "payment-gateways-tests"  # noqa: S105
DEBUG = False
USE_TZ = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "payment_gateways",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    },
}

ROOT_URLCONF = "payment_gateways.tests.urls"

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "UNAUTHENTICATED_USER": None,
}

PAYMENTS = {
    "default": "stripe",
    "mode": "sandbox",
    "gateways": {
        "stripe": {
            "sandbox": {
                "secret_key": "sk_test_123456789",
                "api_key": "pk_test_123456789",
            },
            "webhook_secret": "whsec_test",
        },
        "paypal": {
            "sandbox": {
                "client_id": "paypal-client",
                "client_secret": "paypal-secret",
            },
        },
        "paystack": {
            "sandbox": {"secret_key": "sk_test_paystack"},
            "webhook_secret": "paystack_webhook_secret",
        },
        "telr": {"enabled": False},
    },
}
