import copy
import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "conf/cromatizate.yaml"
CONFIG_PATH_ENV = "CROMATIZATE_CONFIG"


class AppConfig:
    """Configuration manager for the adaptation service"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML, layered over the defaults"""
        defaults = self._get_default_config()
        try:
            if os.path.exists(self.config_path):
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
                logger.info(f"[config] Loaded config from {self.config_path}")
                return _deep_merge(defaults, loaded)
            logger.warning(
                f"[config] Config not found at {self.config_path}, using defaults"
            )
            return defaults
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"[config] Failed to load config: {e}, using defaults")
            return defaults

    def _get_default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            "server": {
                "host": "127.0.0.1",
                "port": 8008,
                "log_level": "info",
                "allow_external_bind": False,
            },
            "security": {
                "admin_token_env": "ADMIN_TOKEN",
                "default_token": "default-admin-token-change-me",
                "rate_limiting": {
                    "enabled": True,
                    "api_requests_per_minute": 120,
                    "interactions_per_minute": 30,
                },
                "cors": {
                    "enabled": False,
                    "allow_origins": [],
                    "allow_credentials": True,
                    "allow_methods": ["GET", "POST", "PUT"],
                    "allow_headers": ["*"],
                    "expose_headers": [],
                    "max_age": 86400,
                },
                "security_headers": {
                    "enabled": True,
                    "content_security_policy": "default-src 'self'",
                    "x_content_type_options": "nosniff",
                    "x_frame_options": "DENY",
                },
            },
            "storage": {
                "db_path": "cromatizate.db",
            },
            "identity": {
                "cookie": "visitor_id",
                "legacy_cookie": "user_id",
                "header": "x-user-id",
            },
            "interactions": {
                "recommendation_window": 100,
                "ontology_window": 50,
                "stored_recommendations": 20,
                "semantic_outputs": 10,
            },
            "analyzer": {
                "api_url": None,
                "api_key_env": "HUGGINGFACE_API_KEY",
                "timeout_sec": 10,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key path (e.g., 'server.port')"""
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def reload(self):
        """Reload configuration from file"""
        self.config = self._load_config()
        logger.info("[config] Config reloaded")

    def get_sanitized_config(self) -> Dict[str, Any]:
        """Get configuration without sensitive information"""
        config_copy = copy.deepcopy(self.config)

        security = config_copy.get("security", {})
        if "default_token" in security:
            security["default_token"] = "[REDACTED]"
        analyzer = config_copy.get("analyzer", {})
        if analyzer.get("api_key_env"):
            analyzer["api_key_env"] = "[REDACTED]"

        return config_copy

    def validate_config(self) -> Dict[str, Any]:
        """Validate configuration and return validation results"""
        validation_results = {
            "valid": True,
            "errors": [],
            "warnings": [],
        }

        host = self.get("server.host", "127.0.0.1")
        allow_external = self.get("server.allow_external_bind", False)
        if not allow_external and host not in ["127.0.0.1", "localhost", "::1"]:
            validation_results["errors"].append(
                f"External binding not allowed but host is {host}"
            )
            validation_results["valid"] = False

        port = self.get("server.port", 8008)
        if not isinstance(port, int) or port < 1 or port > 65535:
            validation_results["errors"].append(f"Invalid server port: {port}")
            validation_results["valid"] = False

        token_env = self.get("security.admin_token_env", "ADMIN_TOKEN")
        if not os.getenv(token_env or "ADMIN_TOKEN") and (
            self.get("security.default_token") == "default-admin-token-change-me"
        ):
            validation_results["warnings"].append(
                "Using default admin token - change this in production"
            )

        for window in ("recommendation_window", "ontology_window", "stored_recommendations"):
            value = self.get(f"interactions.{window}")
            if not isinstance(value, int) or value <= 0:
                validation_results["errors"].append(
                    f"interactions.{window} must be a positive integer, got {value!r}"
                )
                validation_results["valid"] = False

        db_path = self.get("storage.db_path", "cromatizate.db")
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            validation_results["warnings"].append(
                f"Database directory does not exist: {db_dir}"
            )

        return validation_results


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
