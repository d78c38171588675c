"""Configuration management for Auryn."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

AURYN_HOME = Path(os.environ.get("AURYN_HOME", Path.home() / "auryn"))
CONFIG_FILE = AURYN_HOME / "config" / "auryn.conf"
DATA_DIR = AURYN_HOME / "data"

MATON_GATEWAY_URL = "https://gateway.maton.ai/google-calendar/calendar/v3"
CALENDAR_BACKENDS = ("maton", "google", "none")


@dataclass
class Config:
    """Auryn configuration."""

    timezone: str = "Asia/Tokyo"
    tasks_file: str = ""
    host: str = "127.0.0.1"
    port: int = 9092
    updated_by: str = "auryn-tasks"
    static_dir: str = ""
    api_url: str = ""
    # External calendar
    calendar_backend: str = "maton"
    calendar_id: str = "primary"
    calendar_timeout: float = 10.0
    maton_api_key: str = ""
    maton_gateway_url: str = MATON_GATEWAY_URL
    google_config_folder: str = ""
    google_client_secret_file: str = ""

    @property
    def tasks_path(self) -> Path:
        """Resolved path of the task document."""
        if self.tasks_file:
            return Path(self.tasks_file).expanduser()
        return DATA_DIR / "tasks.json"

    @property
    def base_url(self) -> str:
        """Base URL the client uses to reach the server."""
        return self.api_url or f"http://{self.host}:{self.port}"


def _unquote(value: str) -> str:
    """Strip surrounding quotes, or an inline comment from unquoted values."""
    if value[:1] in ('"', "'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from auryn.conf, then apply environment overrides."""
    config = Config()
    path = path or CONFIG_FILE

    if path.exists():
        for line in path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip().lower()
            value = _unquote(value.strip())

            match key:
                case "timezone":
                    config.timezone = value
                case "tasks_file":
                    config.tasks_file = value
                case "host":
                    config.host = value
                case "port":
                    try:
                        config.port = int(value)
                    except ValueError:
                        logger.warning(f"Ignoring invalid PORT value: {value!r}")
                case "updated_by":
                    config.updated_by = value
                case "static_dir":
                    config.static_dir = value
                case "api_url":
                    config.api_url = value.rstrip("/")
                case "calendar_backend":
                    if value.lower() in CALENDAR_BACKENDS:
                        config.calendar_backend = value.lower()
                    else:
                        logger.warning(f"Unknown CALENDAR_BACKEND {value!r}, keeping {config.calendar_backend}")
                case "calendar_id":
                    config.calendar_id = value
                case "calendar_timeout":
                    try:
                        config.calendar_timeout = float(value)
                    except ValueError:
                        logger.warning(f"Ignoring invalid CALENDAR_TIMEOUT value: {value!r}")
                case "maton_api_key":
                    config.maton_api_key = value
                case "maton_gateway_url":
                    config.maton_gateway_url = value.rstrip("/")
                case "google_config_folder":
                    config.google_config_folder = value
                case "google_client_secret_file":
                    config.google_client_secret_file = value

    # Secrets and the listen port usually come from the process manager
    if os.environ.get("MATON_API_KEY"):
        config.maton_api_key = os.environ["MATON_API_KEY"]
    if os.environ.get("PORT"):
        try:
            config.port = int(os.environ["PORT"])
        except ValueError:
            logger.warning(f"Ignoring invalid PORT environment value: {os.environ['PORT']!r}")

    return config
