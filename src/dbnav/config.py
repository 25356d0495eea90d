"""
Configuration for dbnav.

Settings are resolved in order of increasing precedence: built-in defaults,
an optional YAML config file, environment variables (a ``.env`` file in the
working directory is loaded first), then explicit overrides such as CLI
options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from dbnav.exceptions import ConfigError

logger = logging.getLogger(__name__)

# setting name -> environment variable
ENV_VARS = {
    "database_url": "DATABASE_URL",
    "schema": "DBNAV_SCHEMA",
    "history_file": "DBNAV_HISTORY_FILE",
    "statement_timeout_ms": "DBNAV_STATEMENT_TIMEOUT_MS",
}


@dataclass
class Settings:
    """Runtime settings."""
    database_url: Optional[str] = None
    schema: str = "public"
    history_file: Path = Path(".dbnav_history")
    statement_timeout_ms: Optional[int] = None

    def __post_init__(self):
        if isinstance(self.history_file, str):
            self.history_file = Path(self.history_file)
        if self.statement_timeout_ms is not None:
            try:
                self.statement_timeout_ms = int(self.statement_timeout_ms)
            except (TypeError, ValueError):
                raise ConfigError(
                    f"statement_timeout_ms must be an integer, got {self.statement_timeout_ms!r}"
                )

    def require_database_url(self) -> str:
        """Return the database URL or fail if it is not configured."""
        if not self.database_url:
            raise ConfigError(
                "No database URL configured. Use --db-url or set DATABASE_URL"
            )
        return self.database_url


def _load_config_file(path: Path) -> Dict[str, Any]:
    """Load settings from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")

    known = {f.name for f in fields(Settings)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(sorted(unknown))}")

    logger.debug(f"Loaded config from {path}")
    return {k: v for k, v in data.items() if k in known}


def _load_env() -> Dict[str, Any]:
    values = {}
    for name, var in ENV_VARS.items():
        value = os.getenv(var)
        if value is not None and value.strip() != "":
            values[name] = value
    return values


def load_settings(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """
    Resolve settings from all sources.

    Args:
        config_file: Optional YAML file with setting names as keys
        **overrides: Explicit values; ``None`` means "not given"

    Returns:
        Settings instance
    """
    load_dotenv(find_dotenv(usecwd=True))

    values: Dict[str, Any] = {}
    if config_file:
        values.update(_load_config_file(config_file))
    values.update(_load_env())
    values.update({k: v for k, v in overrides.items() if v is not None})

    return Settings(**values)
