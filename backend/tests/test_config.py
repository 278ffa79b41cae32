"""
Configuration tests: values are read from the environment at call time.
"""

import os
from unittest.mock import patch

from app.config import (
    get_basic_auth,
    get_delivery_timeout,
    get_destination_webhook_url,
    get_log_level,
)


class TestConfig:

    def test_reads_secrets_from_environment(self):
        with patch.dict(os.environ, {
            "CLOUDMAILIN_BASIC_AUTH": "user:pass",
            "DISCORD_WEBHOOK_URL": "https://discord.example/webhook",
        }):
            assert get_basic_auth() == "user:pass"
            assert get_destination_webhook_url() == "https://discord.example/webhook"

    def test_empty_webhook_url_is_treated_as_unset(self):
        with patch.dict(os.environ, {"DISCORD_WEBHOOK_URL": ""}):
            assert get_destination_webhook_url() is None

    def test_delivery_timeout_default(self):
        with patch.dict(os.environ, {"DELIVERY_TIMEOUT_SECONDS": ""}):
            assert get_delivery_timeout() == 10.0

    def test_delivery_timeout_override(self):
        with patch.dict(os.environ, {"DELIVERY_TIMEOUT_SECONDS": "2.5"}):
            assert get_delivery_timeout() == 2.5

    def test_invalid_delivery_timeout_falls_back_to_default(self):
        for raw in ("soon", "0", "-1"):
            with patch.dict(os.environ, {"DELIVERY_TIMEOUT_SECONDS": raw}):
                assert get_delivery_timeout() == 10.0

    def test_log_level_is_upper_cased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug"}):
            assert get_log_level() == "DEBUG"
