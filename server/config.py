"""
Server Configuration

Loads configuration from environment variables and provides defaults.
A .env file at the project root is loaded first via python-dotenv.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

root_env = BASE_DIR / ".env"
if root_env.exists():
    load_dotenv(root_env)


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    # Signal store (SQLite locally, PostgreSQL in production)
    database_url: str = "sqlite:///./discovery.db"
    db_timeout_seconds: float = 5.0

    # Catalog: JSON file with contents, users and follows; empty catalog when unset
    catalog_json_path: Optional[Path] = None
    # Engine tuning: JSON file merged into DiscoveryConfig defaults
    discovery_config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cors_origins=origins or ["*"],
            database_url=os.getenv("DATABASE_URL", "sqlite:///./discovery.db"),
            db_timeout_seconds=float(os.getenv("DB_TIMEOUT_SECONDS", "5")),
            catalog_json_path=_path_env("CATALOG_JSON_PATH"),
            discovery_config_path=_path_env("DISCOVERY_CONFIG_PATH"),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if not self.database_url.startswith(("sqlite", "postgresql")):
            errors.append(f"Unsupported DATABASE_URL (sqlite or postgresql only): {self.database_url}")

        if self.db_timeout_seconds <= 0:
            errors.append(f"DB_TIMEOUT_SECONDS must be positive, got {self.db_timeout_seconds}")

        if self.catalog_json_path and not self.catalog_json_path.is_file():
            errors.append(f"Catalog file not found: {self.catalog_json_path}")

        if self.discovery_config_path and not self.discovery_config_path.is_file():
            errors.append(f"Discovery config file not found: {self.discovery_config_path}")

        return len(errors) == 0, errors


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
