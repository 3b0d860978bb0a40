"""Configuration management for courtbook."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from courtbook.utils.exceptions import ConfigurationError

DEFAULT_AUTH_URL = "https://mcp-tennis-auth.pages.dev/login"


@dataclass
class AppConfig:
    """Application configuration."""

    site_email: str | None = None
    site_password: str | None = None
    authorized_emails: list[str] = field(default_factory=list)
    auth_url: str = DEFAULT_AUTH_URL
    browser_endpoint: str | None = None
    local_browser: bool = False
    headless: bool = True
    redis_url: str | None = None
    anthropic_api_key: str | None = None
    summary_model: str = "claude-3-5-haiku-latest"
    timezone: str = "America/Los_Angeles"
    default_court: str = "DuPont"
    session_freshness: int = 300  # seconds
    auth_ttl: int = 3600  # seconds
    page_timeout: int = 12000  # ms
    navigation_timeout: int = 20000  # ms
    element_timeout: int = 8000  # ms
    confirm_timeout: int = 180000  # 3 minutes for SMS confirmation
    history_days: int = 30
    log_level: str = "INFO"

    def is_authorized_email(self, email: str) -> bool:
        """Check an email against the allow-list, ignoring case and spaces."""
        allowed = {item.strip().lower() for item in self.authorized_emails}
        return email.strip().lower() in allowed

    def missing_site_credentials(self) -> list[str]:
        """Return the names of unset site credential variables."""
        missing = []
        if not self.site_email:
            missing.append("COURTBOOK_SITE_EMAIL")
        if not self.site_password:
            missing.append("COURTBOOK_SITE_PASSWORD")
        return missing


class ConfigLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load() -> AppConfig:
        """Load configuration from environment.

        Raises:
            ConfigurationError: If required configuration is missing or invalid.
        """
        load_dotenv()  # Load .env file if present

        return AppConfig(
            site_email=os.environ.get("COURTBOOK_SITE_EMAIL"),
            site_password=os.environ.get("COURTBOOK_SITE_PASSWORD"),
            authorized_emails=ConfigLoader._get_list_env(
                "COURTBOOK_AUTHORIZED_EMAILS"
            ),
            auth_url=os.environ.get("COURTBOOK_AUTH_URL", DEFAULT_AUTH_URL),
            browser_endpoint=os.environ.get("COURTBOOK_BROWSER_ENDPOINT") or None,
            local_browser=ConfigLoader._get_bool_env("COURTBOOK_LOCAL_BROWSER", False),
            headless=ConfigLoader._get_bool_env("COURTBOOK_HEADLESS", True),
            redis_url=os.environ.get("COURTBOOK_REDIS_URL") or None,
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY"),
            summary_model=os.environ.get(
                "COURTBOOK_SUMMARY_MODEL", "claude-3-5-haiku-latest"
            ),
            timezone=os.environ.get("COURTBOOK_TIMEZONE", "America/Los_Angeles"),
            default_court=os.environ.get("COURTBOOK_DEFAULT_COURT", "DuPont"),
            session_freshness=ConfigLoader._get_int_env(
                "COURTBOOK_SESSION_FRESHNESS", 300
            ),
            auth_ttl=ConfigLoader._get_int_env("COURTBOOK_AUTH_TTL", 3600),
            page_timeout=ConfigLoader._get_int_env("COURTBOOK_PAGE_TIMEOUT", 12000),
            navigation_timeout=ConfigLoader._get_int_env(
                "COURTBOOK_NAVIGATION_TIMEOUT", 20000
            ),
            element_timeout=ConfigLoader._get_int_env(
                "COURTBOOK_ELEMENT_TIMEOUT", 8000
            ),
            confirm_timeout=ConfigLoader._get_int_env(
                "COURTBOOK_CONFIRM_TIMEOUT", 180000
            ),
            history_days=ConfigLoader._get_int_env("COURTBOOK_HISTORY_DAYS", 30),
            log_level=os.environ.get("COURTBOOK_LOG_LEVEL", "INFO").upper(),
        )

    @staticmethod
    def _get_int_env(name: str, default: int) -> int:
        """Get an integer environment variable.

        Args:
            name: The environment variable name.
            default: The default value if not set.

        Returns:
            The integer value.

        Raises:
            ConfigurationError: If the value is not a valid integer.
        """
        value = os.environ.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid value for {name}: '{value}' is not a valid integer"
            ) from e

    @staticmethod
    def _get_bool_env(name: str, default: bool) -> bool:
        """Get a boolean environment variable.

        Accepts 1/0, true/false, yes/no and on/off in any case.

        Raises:
            ConfigurationError: If the value is not a recognised boolean.
        """
        value = os.environ.get(name)
        if value is None or value.strip() == "":
            return default
        normalized = value.strip().lower()
        if normalized in ("1", "true", "yes", "on"):
            return True
        if normalized in ("0", "false", "no", "off"):
            return False
        raise ConfigurationError(
            f"Invalid value for {name}: '{value}' is not a valid boolean"
        )

    @staticmethod
    def _get_list_env(name: str) -> list[str]:
        """Get a comma-separated email list, lower-cased and stripped."""
        value = os.environ.get(name, "")
        return [item.strip().lower() for item in value.split(",") if item.strip()]
