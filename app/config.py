"""Configuration management using Pydantic BaseSettings with JSON file support."""
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

LOCAL_DEV_ORIGINS = [f"http://localhost:{port}" for port in range(3000, 3010)]


def flatten_json_config(config: dict[str, Any]) -> dict[str, Any]:
    """Flatten nested JSON config into flat key-value pairs.

    Supports nested structures like:
    {
        "google": {"google_client_id": "...", "google_client_secret": "..."},
        "server": {"server_port": 5000}
    }

    Becomes:
    {"google_client_id": "...", "google_client_secret": "...", "server_port": 5000}

    Keys starting with "_" (like "_comment") are skipped.
    """
    result = {}

    for key, value in config.items():
        if key.startswith("_"):
            continue

        if isinstance(value, dict):
            result.update(flatten_json_config(value))
        else:
            result[key] = value

    return result


def load_json_config(config_file: Optional[str] = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    Args:
        config_file: Path to JSON config file. If None, checks CONFIG_FILE env var.

    Returns:
        Dictionary of configuration values (flattened), or empty dict if no file found.
    """
    file_path = config_file or os.getenv("CONFIG_FILE")

    if not file_path:
        return {}

    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)
            logger.info(f"Loaded configuration from: {file_path}")
            return flatten_json_config(config)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in config file {file_path}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Error reading config file {file_path}: {e}")
        return {}


class Settings(BaseSettings):
    """Application configuration with JSON file and environment variable support.

    Configuration priority (highest to lowest):
    1. Environment variables
    2. JSON config file (specified via CONFIG_FILE env var)
    3. Default values
    """

    # Server Configuration
    server_port: int = 5000
    log_level: str = "INFO"
    run_mode: str = "LOCAL"  # LOCAL or AZURE
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"
    backend_url: str = ""
    azure_allowed_origins: list[str] = [
        "https://polite-wave-08ec8c90f.1.azurestaticapps.net",
        "https://scale12345-hccmcmf7g3bwbvd0.canadacentral-01.azurewebsites.net",
    ]
    website_hostname: str = ""  # Set by Azure App Service

    # Google OAuth Configuration
    google_client_id: str = ""
    google_client_secret: str = ""
    google_redirect_uri: str = ""
    google_oauth_scopes: list[str] = [
        "https://www.googleapis.com/auth/business.manage",
        "https://www.googleapis.com/auth/plus.business.manage",
        "profile",
        "email",
    ]
    google_api_timeout_seconds: float = 15.0

    # Redis Configuration
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_password: str = ""
    redis_db: int = 0

    # Content generation (Azure OpenAI preferred, plain OpenAI as alternative)
    azure_openai_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_deployment: str = ""
    azure_openai_api_version: str = ""
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    content_request_timeout_seconds: float = 30.0
    content_min_request_interval_seconds: float = 1.0

    # Review auto-reply poller
    review_automation_enabled: bool = True
    review_check_interval_seconds: int = 60

    # Auto-posting poller
    auto_posting_enabled: bool = True
    auto_posting_check_interval_seconds: int = 30
    auto_post_max_attempts: int = 2
    auto_post_retry_delay_seconds: float = 5.0

    # Cross-replica tick lock; keep above the longest expected tick
    automation_lock_ttl_seconds: int = 120
    # Timezone used to interpret schedule times like "09:00"
    scheduler_timezone: str = "UTC"

    # If True, failed Google calls return mock/simulated data instead of errors
    simulate_on_api_failure: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def __init__(self, **kwargs):
        """Initialize settings from JSON file and environment variables.

        Priority: env vars > JSON config > defaults
        """
        json_config = load_json_config()
        merged_kwargs = {**json_config, **kwargs}
        super().__init__(**merged_kwargs)

        if not self.backend_url:
            self.backend_url = f"http://localhost:{self.server_port}"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_local(self) -> bool:
        return self.run_mode.upper() == "LOCAL" or self.environment.lower() == "development"

    @property
    def is_azure(self) -> bool:
        return self.run_mode.upper() == "AZURE" or self.is_production

    @property
    def google_redirect_uri_resolved(self) -> str:
        """Redirect URI registered with Google, defaulting to the frontend callback page."""
        return self.google_redirect_uri or f"{self.frontend_url}/auth/google/callback"

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins for the current run mode."""
        origins: list[str] = []

        if self.is_local:
            origins.extend(LOCAL_DEV_ORIGINS)

        if self.is_azure:
            origins.extend(self.azure_allowed_origins)
            if self.website_hostname:
                origins.append(f"https://{self.website_hostname}")

        origins.append(self.frontend_url)

        # Preserve order, drop blanks and duplicates
        return list(dict.fromkeys(o for o in origins if o))

    @property
    def azure_openai_configured(self) -> bool:
        return all(
            [
                self.azure_openai_key,
                self.azure_openai_endpoint,
                self.azure_openai_deployment,
                self.azure_openai_api_version,
            ]
        )

    @property
    def content_generation_configured(self) -> bool:
        return self.azure_openai_configured or bool(self.openai_api_key)

    def missing_required(self) -> list[str]:
        """Names of settings the OAuth flow cannot work without."""
        required = {
            "GOOGLE_CLIENT_ID": self.google_client_id,
            "GOOGLE_CLIENT_SECRET": self.google_client_secret,
            "FRONTEND_URL": self.frontend_url,
        }
        return [name for name, value in required.items() if not value]

    def get_summary(self) -> dict[str, Any]:
        """Configuration summary for startup logs (no secrets)."""
        return {
            "mode": "LOCAL" if self.is_local else "AZURE",
            "environment": self.environment,
            "port": self.server_port,
            "frontend_url": self.frontend_url,
            "backend_url": self.backend_url,
            "redirect_uri": self.google_redirect_uri_resolved,
            "allowed_origins": self.allowed_origins,
            "has_google_client_id": bool(self.google_client_id),
            "has_google_client_secret": bool(self.google_client_secret),
            "content_generation": self.content_generation_configured,
            "azure_hostname": self.website_hostname or "not-detected",
        }

    @property
    def redis_address(self) -> str:
        """Get Redis connection address in host:port format."""
        return f"{self.redis_host}:{self.redis_port}"


# Global settings instance
settings = Settings()
