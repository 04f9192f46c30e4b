# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Load transport configuration from an INI file with environment fallbacks."""

from __future__ import annotations

import configparser
import os
import shlex
from pathlib import Path
from typing import Optional

from .logger import get_logger
from .models import SendmailConfig, Settings, SMTPConfig
from .transports import SendmailTransport, SMTPTransport, TransportRegistry

logger = get_logger("MailComposer.config")

DEFAULT_CONFIG_PATH = "mail-composer.ini"
TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


def load_settings(config_path: Optional[str] = None) -> Settings:
    """Load configuration from an INI file with environment variables as fallbacks.

    Environment variables (all prefixed with MC_):
      MC_CONFIG - Path to the INI file (default: mail-composer.ini)
      MC_SMTP_HOST, MC_SMTP_PORT, MC_SMTP_USER, MC_SMTP_PASSWORD,
      MC_SMTP_USE_TLS, MC_SMTP_START_TLS, MC_SMTP_HOSTNAME, MC_SMTP_TIMEOUT
      MC_SENDMAIL_PATH, MC_SENDMAIL_ARGS
      MC_CHARSET, MC_ENCODING, MC_DEBUG
      MC_LOG_LEVEL, MC_LOG_DELIVERY_ACTIVITY

    Config file sections/keys:
      [smtp] host, port, user, password, use_tls, start_tls, hostname, timeout
      [sendmail] path, args
      [message] charset, encoding, debug
      [logging] level, delivery_activity

    Values in the file win over the environment.
    """
    path = Path(config_path or os.getenv("MC_CONFIG", DEFAULT_CONFIG_PATH))
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path)
        logger.debug("Loaded configuration from %s", path)
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {path}")

    def get(section: str, option: str, env: str) -> Optional[str]:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return os.getenv(env)

    def get_int(section: str, option: str, env: str, default: int) -> int:
        value = get(section, option, env)
        if value is None or not value.strip():
            return default
        return int(value)

    def get_float(section: str, option: str, env: str, default: float) -> float:
        value = get(section, option, env)
        if value is None or not value.strip():
            return default
        return float(value)

    def get_bool(section: str, option: str, env: str, default: bool) -> bool:
        value = get(section, option, env)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in TRUE_VALUES:
            return True
        if normalized in FALSE_VALUES:
            return False
        logger.warning("Ignoring invalid boolean %r for [%s] %s", value, section, option)
        return default

    smtp = None
    host = get("smtp", "host", "MC_SMTP_HOST")
    if host and host.strip():
        smtp = SMTPConfig(
            host=host.strip(),
            port=get_int("smtp", "port", "MC_SMTP_PORT", 25),
            user=get("smtp", "user", "MC_SMTP_USER") or None,
            password=get("smtp", "password", "MC_SMTP_PASSWORD") or None,
            use_tls=get_bool("smtp", "use_tls", "MC_SMTP_USE_TLS", False),
            start_tls=get_bool("smtp", "start_tls", "MC_SMTP_START_TLS", False),
            hostname=get("smtp", "hostname", "MC_SMTP_HOSTNAME") or None,
            timeout=get_float("smtp", "timeout", "MC_SMTP_TIMEOUT", 10.0),
        )

    sendmail = None
    sendmail_path = get("sendmail", "path", "MC_SENDMAIL_PATH")
    if sendmail_path and sendmail_path.strip():
        options = {"path": sendmail_path.strip()}
        args = get("sendmail", "args", "MC_SENDMAIL_ARGS")
        if args is not None:
            options["args"] = shlex.split(args)
        sendmail = SendmailConfig(**options)

    return Settings(
        smtp=smtp,
        sendmail=sendmail,
        charset=get("message", "charset", "MC_CHARSET") or "UTF-8",
        encoding=get("message", "encoding", "MC_ENCODING") or "quoted-printable",
        debug=get_bool("message", "debug", "MC_DEBUG", False),
        log_level=(get("logging", "level", "MC_LOG_LEVEL") or "INFO").upper(),
        log_delivery_activity=get_bool("logging", "delivery_activity", "MC_LOG_DELIVERY_ACTIVITY", False),
    )


def build_registry(settings: Settings, registry: Optional[TransportRegistry] = None) -> TransportRegistry:
    """Register the configured transports, SMTP first, then sendmail.

    The order matters: a message without its own transport uses the first
    configured entry.
    """
    registry = registry if registry is not None else TransportRegistry()
    if settings.smtp is not None:
        registry.register("smtp", SMTPTransport(settings.smtp, log_delivery_activity=settings.log_delivery_activity))
    if settings.sendmail is not None:
        registry.register(
            "sendmail", SendmailTransport(settings.sendmail, log_delivery_activity=settings.log_delivery_activity)
        )
    logger.debug("Registered transports: %s", ", ".join(registry.names()) or "none")
    return registry
