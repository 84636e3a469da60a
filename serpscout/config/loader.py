"""Configuration loading utilities."""

import json
import re
from pathlib import Path
from typing import Any

from loguru import logger

from serpscout.config.schema import Config


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".serpscout" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            data = _migrate_config(data)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Failed to load config from {}: {}", path, e)
            logger.warning("Using default configuration.")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case recursively."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase recursively."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    search_cfg = data.setdefault("search", {})

    # Move search.resultsPerQuery -> search.maxResults
    legacy_count = search_cfg.pop("resultsPerQuery", None)
    if legacy_count is not None and "maxResults" not in search_cfg:
        search_cfg["maxResults"] = legacy_count

    # Move search.domainFilters -> search.filters
    legacy_filters = search_cfg.pop("domainFilters", None)
    if legacy_filters and "filters" not in search_cfg:
        search_cfg["filters"] = legacy_filters

    # Move system.loggingLevel -> logging.level
    system_cfg = data.pop("system", None) or {}
    legacy_level = system_cfg.get("loggingLevel")
    logging_cfg = data.setdefault("logging", {})
    if legacy_level and "level" not in logging_cfg:
        logging_cfg["level"] = str(legacy_level).upper()
    if "maxConcurrentJobs" in system_cfg and "maxConcurrentSearches" not in search_cfg:
        search_cfg["maxConcurrentSearches"] = system_cfg["maxConcurrentJobs"]

    # Fill the default engine endpoint when missing/empty
    fetcher_cfg = data.setdefault("fetcher", {})
    if not fetcher_cfg.get("baseUrl"):
        fetcher_cfg["baseUrl"] = "https://html.duckduckgo.com/html/"

    return data
