"""
Configuration management for services.
"""

import json
import os
from typing import Any

import yaml

from dotenv import load_dotenv


class ServiceConfig:
    """Configuration management for services using environment variables."""

    def __init__(self) -> None:
        """Initialize configuration by loading environment variables."""
        # Always load .env from backend directory (where app.py is located)
        env_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.env"))
        load_dotenv(dotenv_path=env_path, override=False)
        self.config: dict[str, Any] = {}
        self.settings: dict[str, Any] = {}
        self.settings_path = os.getenv(
            "SETTINGS_PATH",
            os.path.join(os.path.dirname(__file__), "../../config/settings.yaml"),
        )
        self.load_from_env()
        self.load_settings()

    def load_from_env(self) -> None:
        """Load configuration from environment variables."""
        self.config = {
            "database_url": os.getenv("DATABASE_URL"),
            "secret_key": os.getenv("SECRET_KEY", "supersecret"),
            "media_root": os.getenv("MEDIA_ROOT", "/app/media"),
            "public_base_url": os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            "storage_bucket": os.getenv("STORAGE_BUCKET", "presentation-images"),
            "debug": os.getenv("DEBUG", "false").lower() == "true",
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "allowed_origins": json.loads(os.getenv("ALLOWED_ORIGINS", '["*"]')),
            "auth_session_expire_minutes": int(os.getenv("AUTH_SESSION_EXPIRE_MINUTES", "1440")),
            "auth_min_password_length": int(os.getenv("AUTH_MIN_PASSWORD_LENGTH", "6")),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key
            default: Default value if key not found

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value.

        Args:
            key: Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def reload(self) -> None:
        """Reload configuration from environment variables."""
        self.load_from_env()
        self.load_settings()

    def load_settings(self) -> None:
        """Load upload and player tunables from the YAML settings file."""
        path = os.path.abspath(self.settings_path)
        try:
            with open(path, "r", encoding="utf-8") as stream:
                data = yaml.safe_load(stream) or {}
        except FileNotFoundError:
            data = {}
        self.settings = data

    def get_setting(self, path: str, default: Any = None) -> Any:
        """Retrieve a settings value via dotted path (``upload.max_upload_bytes``)."""
        env_override_key = f"SETTING_{path.replace('.', '_').upper()}"
        env_value = os.getenv(env_override_key)
        if env_value is not None:
            return self._coerce_env_value(env_value, default)

        node: Any = self.settings
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node if node is not None else default

    @staticmethod
    def _coerce_env_value(raw: str, default: Any) -> Any:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        if lowered.replace(".", "", 1).isdigit():
            try:
                return float(lowered) if "." in lowered else int(lowered)
            except ValueError:
                return raw
        return raw or default


# Global configuration instance
config = ServiceConfig()

ALGORITHM = "HS256"
SECRET_KEY = config.get("secret_key")
