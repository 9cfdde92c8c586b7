"""
config.py

Responsibility: Loads runtime settings from environment variables and fails
fast when the record coordinates or API token are absent.
Does NOT: talk to Cloudflare, schedule updates, or configure logging handlers.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from exceptions import ConfigLoadError

# NOTE: Order matters only for the error message listing missing variables.
_REQUIRED = ("API_TOKEN", "ZONE_ID", "RECORD_ID", "RECORD_NAME")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_IP_PROVIDER_URL = "https://api.ipify.org"


@dataclass(frozen=True)
class Settings:
    """
    Immutable runtime configuration for one managed A-record.
    """

    # Cloudflare API token with DNS edit permission on the zone
    api_token: str

    # Cloudflare zone identifier
    zone_id: str

    # Cloudflare identifier of the managed A-record
    record_id: str

    # Fully-qualified name written back with every update, e.g. "home.example.com"
    record_name: str

    # HTTP status/control server bind address
    host: str = "0.0.0.0"
    port: int = 3000

    log_level: str = "INFO"

    # Plain-text endpoint returning the caller's public IPv4
    ip_provider_url: str = DEFAULT_IP_PROVIDER_URL

    # Start the update loop as soon as the app is up
    autostart: bool = True

    # Alert e-mail delivery; alerts are disabled unless user and password are set
    mail_user: str = ""
    mail_password: str = ""
    mail_from: str = ""
    mail_to: str = ""
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465

    # Retry policy timings in seconds
    update_interval: float = 600.0
    api_retry_delay: float = 120.0
    network_retry_delay: float = 1800.0

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_user and self.mail_password)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigLoadError(f"{name} must be a boolean, got {value!r}.")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigLoadError(f"{name} must be an integer, got {value!r}.") from exc


def _parse_seconds(name: str, value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise ConfigLoadError(f"{name} must be a number of seconds, got {value!r}.") from exc
    if seconds < 0:
        raise ConfigLoadError(f"{name} must not be negative, got {value!r}.")
    return seconds


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Builds Settings from the process environment.

    Args:
        environ: Mapping to read instead of os.environ (used by tests).

    Returns:
        A populated Settings instance.

    Raises:
        ConfigLoadError: If API_TOKEN, ZONE_ID, RECORD_ID or RECORD_NAME is
                         missing, or an optional value is malformed.
    """
    env = os.environ if environ is None else environ

    missing = [name for name in _REQUIRED if not env.get(name, "").strip()]
    if missing:
        raise ConfigLoadError(
            "Please set the required environment variables: " + ", ".join(missing)
        )

    optional: dict[str, object] = {}

    if env.get("HOST"):
        optional["host"] = env["HOST"]
    if env.get("PORT"):
        optional["port"] = _parse_int("PORT", env["PORT"])
    if env.get("LOG_LEVEL"):
        optional["log_level"] = env["LOG_LEVEL"].upper()
    if env.get("IP_PROVIDER_URL"):
        optional["ip_provider_url"] = env["IP_PROVIDER_URL"]
    if env.get("AUTOSTART"):
        optional["autostart"] = _parse_bool("AUTOSTART", env["AUTOSTART"])

    mail_user = env.get("MAIL_USER", "")
    optional["mail_user"] = mail_user
    optional["mail_password"] = env.get("MAIL_PASSWORD", "")
    optional["mail_from"] = env.get("MAIL_FROM") or mail_user
    optional["mail_to"] = env.get("MAIL_TO") or mail_user
    if env.get("SMTP_HOST"):
        optional["smtp_host"] = env["SMTP_HOST"]
    if env.get("SMTP_PORT"):
        optional["smtp_port"] = _parse_int("SMTP_PORT", env["SMTP_PORT"])

    for field_name, var in (
        ("update_interval", "UPDATE_INTERVAL"),
        ("api_retry_delay", "API_RETRY_DELAY"),
        ("network_retry_delay", "NETWORK_RETRY_DELAY"),
    ):
        if env.get(var):
            optional[field_name] = _parse_seconds(var, env[var])

    return Settings(
        api_token=env["API_TOKEN"].strip(),
        zone_id=env["ZONE_ID"].strip(),
        record_id=env["RECORD_ID"].strip(),
        record_name=env["RECORD_NAME"].strip(),
        **optional,  # type: ignore[arg-type]
    )
