"""
Configuration loading and validation.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from planningalerts.digest.composer import DEFAULT_SENDER, DEFAULT_SENDER_NAME
from planningalerts.digest.links import DEFAULT_BASE_URL


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class SiteConfig:
    """Public site settings used in digest content."""

    base_url: str = DEFAULT_BASE_URL
    sender_email: str = DEFAULT_SENDER
    sender_name: str = DEFAULT_SENDER_NAME


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: str = "data/planningalerts.db"


@dataclass
class EmailNotificationConfig:
    """SMTP delivery settings."""

    enabled: bool = True
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    use_tls: bool = True


@dataclass
class WebhookNotificationConfig:
    """Webhook delivery settings."""

    enabled: bool = False
    url: str = ""
    timeout: float = 10


@dataclass
class NotificationsConfig:
    """Notifications configuration."""

    email: EmailNotificationConfig = field(default_factory=EmailNotificationConfig)
    webhook: WebhookNotificationConfig = field(
        default_factory=WebhookNotificationConfig
    )


@dataclass
class AdvancedConfig:
    """Advanced configuration."""

    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration."""

    site: SiteConfig = field(default_factory=SiteConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)

    def notifier_configs(self) -> list[dict[str, Any]]:
        """Enabled transports as NotifierFactory configs."""
        configs = []
        email = self.notifications.email
        if email.enabled:
            configs.append({
                "type": "email",
                "smtp_host": email.smtp_host,
                "smtp_port": email.smtp_port,
                "smtp_user": email.smtp_user,
                "smtp_password": email.smtp_password,
                "use_tls": email.use_tls,
            })
        webhook = self.notifications.webhook
        if webhook.enabled:
            configs.append({
                "type": "webhook",
                "url": webhook.url,
                "timeout": webhook.timeout,
            })
        return configs


def _substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in string values."""
    if isinstance(value, str):
        # Match ${VAR_NAME} pattern
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values."""
    db_config = config_dict.get("database") or {}
    if "path" in db_config and not db_config["path"]:
        raise ConfigValidationError("Database path is required")

    site = config_dict.get("site") or {}
    base_url = site.get("base_url", DEFAULT_BASE_URL)
    if not re.match(r"^https?://[^/]+", base_url or ""):
        raise ConfigValidationError(f"Site base_url must be an http(s) URL: {base_url!r}")

    if "sender_email" in site and not site["sender_email"]:
        raise ConfigValidationError("Sender email cannot be empty")

    webhook = (config_dict.get("notifications") or {}).get("webhook") or {}
    if webhook.get("enabled") and not webhook.get("url"):
        raise ConfigValidationError("Webhook notifications enabled without a url")


def load_config(config_path: str) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        AppConfig instance

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If config file doesn't exist
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    config_dict = _substitute_env_vars(raw_config)

    _validate_config(config_dict)

    notif_dict = config_dict.get("notifications") or {}
    notifications = NotificationsConfig(
        email=EmailNotificationConfig(**(notif_dict.get("email") or {})),
        webhook=WebhookNotificationConfig(**(notif_dict.get("webhook") or {})),
    )

    return AppConfig(
        site=SiteConfig(**(config_dict.get("site") or {})),
        database=DatabaseConfig(**(config_dict.get("database") or {})),
        notifications=notifications,
        advanced=AdvancedConfig(**(config_dict.get("advanced") or {})),
    )
