"""
Run settings loaded from environment variables.

Provides a typed, immutable view of the settings one run needs. Credentials
(CLIENT_ID, CLIENT_SECRET, TENANT_ID, SUBSCRIPTION_ID) are required and the
three ids must be GUIDs; everything else has a default. Used by
provisioning.runner.run() before any provider client is built, so a bad
environment fails the run before any resource exists.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from provisioning.errors import ConfigError

_MISSING = object()


def _require_str(environ: Mapping[str, str], key: str, default: Any = _MISSING) -> str:
    raw = environ.get(key, "").strip()
    if raw:
        return raw
    if default is _MISSING:
        raise ConfigError(f"environment variable {key} is not set")
    return default


def _require_guid(environ: Mapping[str, str], key: str, default: Any = _MISSING) -> str:
    raw = _require_str(environ, key, default)
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise ConfigError(f"environment variable {key} is not a GUID: {raw!r}") from None


def _choice(*allowed: str) -> Callable[[Mapping[str, str], str, Any], str]:
    def parse(environ: Mapping[str, str], key: str, default: Any = _MISSING) -> str:
        raw = _require_str(environ, key, default)
        if raw.lower() not in allowed:
            raise ConfigError(f"environment variable {key} must be one of {allowed}, got {raw!r}")
        return raw.lower()

    return parse


# (field, environment variable, parser, default); no default means required.
_CONFIG_SPEC: list[tuple[str, str, Callable[..., Any], Any]] = [
    ("client_id", "CLIENT_ID", _require_guid, _MISSING),
    ("client_secret", "CLIENT_SECRET", _require_str, _MISSING),
    ("tenant_id", "TENANT_ID", _require_guid, _MISSING),
    ("subscription_id", "SUBSCRIPTION_ID", _require_guid, _MISSING),
    ("region", "AZURE_REGION", _require_str, "eastus"),
    ("stack_name", "PULUMI_STACK", _require_str, "dev"),
    ("backend_url", "PULUMI_BACKEND_URL", _require_str, "file://~"),
    ("passphrase", "PULUMI_CONFIG_PASSPHRASE", _require_str, ""),
    ("log_format", "LOG_FORMAT", _choice("console", "json"), "console"),
    ("log_level", "LOG_LEVEL", _choice("debug", "info", "warning", "error"), "info"),
]


@dataclass(frozen=True)
class Settings:
    """
    Run settings from the environment.

    Attributes:
        client_id: Service principal application id (required).
        client_secret: Service principal secret (required).
        tenant_id: Azure AD tenant id (required).
        subscription_id: Subscription that is billed for the run (required).
        region: Azure region for every regional resource.
        stack_name: Pulumi stack holding the run's resources.
        backend_url: Pulumi state backend.
        passphrase: Pulumi secrets passphrase for self-managed backends.
        log_format: "console" or "json".
        log_level: debug, info, warning or error.
    """

    client_id: str
    client_secret: str
    tenant_id: str
    subscription_id: str
    region: str
    stack_name: str
    backend_url: str
    passphrase: str
    log_format: str
    log_level: str

    def __repr__(self) -> str:
        return (
            f"Settings(client_id={self.client_id!r}, tenant_id={self.tenant_id!r}, "
            f"subscription_id={self.subscription_id!r}, region={self.region!r})"
        )

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> "Settings":
        """
        Build Settings from environ. Raises ConfigError naming the first bad key.
        """
        kwargs = {
            field: parser(environ, key, default)
            for field, key, parser, default in _CONFIG_SPEC
        }
        return cls(**kwargs)
