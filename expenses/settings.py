"""Application settings loaded from config.yaml with environment overrides."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from expenses.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


@dataclass(frozen=True)
class AppSettings:
    """Application-wide settings."""

    app_name: str
    api_base_url: str
    api_timeout_seconds: float
    log_level: str
    log_file: Optional[str]
    page_size: int
    recent_count: int
    currency_symbol: str

    @classmethod
    def load(cls, config_path: Optional[Path] = None, env_file: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML, then apply EXPENSES_* environment variables."""
        config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        load_dotenv(env_file)

        with open(config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        try:
            app = config.get("app", {})
            api = config["api"]
            logging_cfg = config.get("logging", {})
            ui = config.get("ui", {})

            settings = cls(
                app_name=app.get("name", "Expense Tracker"),
                api_base_url=os.getenv("EXPENSES_API_URL", api["base_url"]).rstrip("/"),
                api_timeout_seconds=float(os.getenv("EXPENSES_API_TIMEOUT", api.get("timeout_seconds", 10))),
                log_level=os.getenv("EXPENSES_LOG_LEVEL", logging_cfg.get("level", "INFO")),
                log_file=logging_cfg.get("file"),
                page_size=int(ui.get("page_size", 10)),
                recent_count=int(ui.get("recent_count", 5)),
                currency_symbol=ui.get("currency_symbol", "₹"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Malformed configuration in {config_path}: {e}") from e

        if settings.page_size < 1:
            raise ConfigError("ui.page_size must be at least 1")
        return settings


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings
