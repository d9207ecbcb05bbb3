"""Configuration management for Cadence."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

CADENCE_HOME = Path(os.environ.get("CADENCE_HOME", Path.home() / "cadence"))
CONFIG_FILE = CADENCE_HOME / "config" / "cadence.conf"
DATA_DIR = CADENCE_HOME / "data"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Cadence configuration."""

    owner_id: str = "me"
    timezone: str = "UTC"
    data_dir: Path = field(default_factory=lambda: DATA_DIR)
    log_level: str = "WARNING"
    # Raise on internal invariant failures instead of logging them
    strict: bool = False
    calendar_days: int = 7


def _parse_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes", "on")


def _strip_value(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith(('"', "'")):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from cadence.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "owner_id":
                config.owner_id = value
            case "timezone":
                try:
                    ZoneInfo(value)
                except (ZoneInfoNotFoundError, ValueError):
                    logger.warning(f"Unknown timezone {value!r}, keeping {config.timezone}")
                else:
                    config.timezone = value
            case "data_dir":
                config.data_dir = Path(value).expanduser()
            case "log_level":
                if value.upper() in _LOG_LEVELS:
                    config.log_level = value.upper()
                else:
                    logger.warning(f"Unknown log level {value!r}, keeping {config.log_level}")
            case "strict":
                config.strict = _parse_bool(value)
            case "calendar_days":
                try:
                    days = int(value)
                except ValueError:
                    days = 0
                if days >= 1:
                    config.calendar_days = days
                else:
                    logger.warning(f"Invalid calendar_days {value!r}, keeping {config.calendar_days}")

    return config
