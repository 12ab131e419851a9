"""Tests for environment settings"""

import pytest

from config import Settings
from provisioning.errors import ConfigError

VALID = {
    "CLIENT_ID": "11111111-1111-1111-1111-111111111111",
    "CLIENT_SECRET": "secret",
    "TENANT_ID": "22222222-2222-2222-2222-222222222222",
    "SUBSCRIPTION_ID": "33333333-3333-3333-3333-333333333333",
}


class TestSettingsFromEnviron:
    def test_required_and_defaults(self):
        settings = Settings.from_environ(VALID)
        assert settings.client_id == VALID["CLIENT_ID"]
        assert settings.client_secret == "secret"
        assert settings.region == "eastus"
        assert settings.stack_name == "dev"
        assert settings.backend_url == "file://~"
        assert settings.passphrase == ""
        assert settings.log_format == "console"
        assert settings.log_level == "info"

    def test_overrides(self):
        env = {**VALID, "AZURE_REGION": "westeurope", "LOG_FORMAT": "JSON", "LOG_LEVEL": "debug"}
        settings = Settings.from_environ(env)
        assert settings.region == "westeurope"
        assert settings.log_format == "json"
        assert settings.log_level == "debug"

    @pytest.mark.parametrize("key", sorted(VALID))
    def test_missing_credential(self, key):
        env = {k: v for k, v in VALID.items() if k != key}
        with pytest.raises(ConfigError, match=key):
            Settings.from_environ(env)

    def test_blank_is_missing(self):
        with pytest.raises(ConfigError, match="CLIENT_SECRET"):
            Settings.from_environ({**VALID, "CLIENT_SECRET": "  "})

    @pytest.mark.parametrize("key", ["CLIENT_ID", "TENANT_ID", "SUBSCRIPTION_ID"])
    def test_ids_must_be_guids(self, key):
        with pytest.raises(ConfigError, match="GUID"):
            Settings.from_environ({**VALID, key: "not-a-guid"})

    def test_bad_log_format(self):
        with pytest.raises(ConfigError, match="LOG_FORMAT"):
            Settings.from_environ({**VALID, "LOG_FORMAT": "xml"})

    def test_secret_not_in_repr(self):
        assert "secret" not in repr(Settings.from_environ(VALID)).replace("client_secret", "")
