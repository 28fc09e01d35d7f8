from __future__ import annotations

from pathlib import Path

import yaml

from .models import Config

DEFAULT_CONFIG_DIR = Path.home() / ".daily_timelog"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_LOG_DIR = DEFAULT_CONFIG_DIR / "logs"
DEFAULT_DATE_FORMAT = "%b %d, %Y"
DEFAULT_MAX_MINUTES_PER_ENTRY = 480
EXPORT_FORMATS = ("csv", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class ConfigError(ValueError):
    pass


def default_config() -> Config:
    return Config(
        date_format=DEFAULT_DATE_FORMAT,
        max_minutes_per_entry=DEFAULT_MAX_MINUTES_PER_ENTRY,
        log_dir=DEFAULT_LOG_DIR,
        log_level="WARNING",
        default_export_format="csv",
    )


def load_config(path: Path) -> Config:
    if not path.exists():
        return default_config()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config at {path} is not valid YAML: {exc}") from exc
    if data is None:
        return default_config()
    if not isinstance(data, dict):
        raise ConfigError(f"Config at {path} must be a mapping of settings.")

    export_format = str(data.get("default_export_format", "csv")).lower()
    if export_format not in EXPORT_FORMATS:
        raise ConfigError(
            f"default_export_format must be one of {', '.join(EXPORT_FORMATS)}."
        )
    log_level = str(data.get("log_level", "WARNING")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}.")
    try:
        max_minutes = int(data.get("max_minutes_per_entry", DEFAULT_MAX_MINUTES_PER_ENTRY))
    except (TypeError, ValueError) as exc:
        raise ConfigError("max_minutes_per_entry must be an integer.") from exc

    return Config(
        date_format=str(data.get("date_format", DEFAULT_DATE_FORMAT)),
        max_minutes_per_entry=max_minutes,
        log_dir=Path(data.get("log_dir", DEFAULT_LOG_DIR)).expanduser(),
        log_level=log_level,
        default_export_format=export_format,
    )


def save_config(path: Path, config: Config) -> None:
    payload = {
        "date_format": config.date_format,
        "max_minutes_per_entry": config.max_minutes_per_entry,
        "log_dir": str(config.log_dir),
        "log_level": config.log_level,
        "default_export_format": config.default_export_format,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
