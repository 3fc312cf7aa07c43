from unittest.mock import patch

import pytest
from django.test import SimpleTestCase
from django.test import override_settings

from payment_gateways.conf import gateway_env_config
from payment_gateways.conf import payments_settings
from payment_gateways.conf import webhook_prefix
from payment_gateways.exceptions import ConfigurationError
from payment_gateways.utils import data_get
from payment_gateways.utils import deep_merge
from payment_gateways.utils import to_bool


class PaymentsSettingsTest(SimpleTestCase):
    """Test suite for settings resolution."""

    @override_settings(PAYMENTS={"mode": "live", "webhook": {"prefix": "hooks"}})
    def test_settings_merge_over_defaults(self):
        """Test that partial settings keep the remaining defaults."""
        options = payments_settings()

        assert options["mode"] == "live"
        assert options["default"] == "stripe"
        assert options["webhook"] == {
            "enabled": True,
            "prefix": "hooks",
            "base_url": "http://localhost",
        }
        assert options["listeners"] == {}

    @override_settings(PAYMENTS={})
    def test_environment_defaults(self):
        """Test that PAYMENT_GATEWAY and PAYMENT_MODE are honoured."""
        with patch.dict("os.environ", {"PAYMENT_GATEWAY": "paypal", "PAYMENT_MODE": "live"}):
            options = payments_settings()

        assert options["default"] == "paypal"
        assert options["mode"] == "live"

    def test_settings_win_over_environment(self):
        """Test that settings.PAYMENTS overrides environment variables."""
        with patch.dict("os.environ", {"PAYMENT_GATEWAY": "paypal"}):
            assert payments_settings()["default"] == "stripe"

    def test_gateway_env_config(self):
        """Test reading per-gateway credentials from the environment."""
        env = {
            "RAZORPAY_MODE": "live",
            "RAZORPAY_SANDBOX_KEY_ID": "rzp_test",
            "RAZORPAY_LIVE_KEY_ID": "rzp_live",
            "RAZORPAY_LIVE_KEY_SECRET": "live_secret",
            "RAZORPAY_WEBHOOK_SECRET": "hook",
        }
        with patch.dict("os.environ", env):
            config = gateway_env_config("razorpay", ("key_id", "key_secret"))

        assert config == {
            "mode": "live",
            "sandbox": {"key_id": "rzp_test"},
            "live": {"key_id": "rzp_live", "key_secret": "live_secret"},
            "webhook_secret": "hook",
        }

    def test_gateway_env_config_empty(self):
        """Test that unset variables are left out."""
        assert gateway_env_config("nonexistent", ("api_key",)) == {}


class UtilsTest(SimpleTestCase):
    """Test suite for the dict helpers."""

    def test_data_get(self):
        """Test dotted lookups."""
        data = {"data": {"object": {"id": 1}}, "a.b": "verbatim"}

        assert data_get(data, "data.object.id") == 1
        assert data_get(data, "a.b") == "verbatim"
        assert data_get(data, "data.missing", "default") == "default"
        assert data_get(data, "data.object.id.deeper") is None
        assert data_get(None, "a", "default") == "default"

    def test_deep_merge(self):
        """Test recursive merging without mutating the inputs."""
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        override = {"a": {"y": 3}, "c": 4}

        merged = deep_merge(base, override)

        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
        assert base == {"a": {"x": 1, "y": 2}, "b": 1}

    def test_to_bool(self):
        """Test parsing of boolean flags."""
        assert to_bool(True) is True
        assert to_bool("yes") is True
        assert to_bool(1) is True
        assert to_bool("FALSE") is False
        assert to_bool(0) is False
        assert to_bool(None, default=True) is True
        assert to_bool("", default=True) is True

        with pytest.raises(ConfigurationError):
            to_bool("sometimes")
        with pytest.raises(ConfigurationError):
            to_bool(2)

    def test_webhook_prefix(self):
        """Test that the prefix is stripped of surrounding slashes."""
        assert webhook_prefix() == "payments/webhook"
        assert webhook_prefix({"prefix": "/hooks/"}) == "hooks"
        assert webhook_prefix({"prefix": None}) == ""
