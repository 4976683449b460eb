"""Configuration loader — YAML file + env override."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from paycron.core.config.schema import Config
from paycron.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.yaml")

DEFAULT_CONFIG_TEMPLATE = """\
# LND REST endpoint and credentials ("~" is expanded)
server_url: "https://localhost:8080"
cert_path: "~/.lnd/tls.cert"
macaroon_path: "~/.lnd/data/chain/bitcoin/mainnet/admin.macaroon"

# Cron fields: sec min hour day month day_of_week [year]
jobs:
#  - name: "My first job"
#    cron_expression: "0 30 9 1,15 May-Aug mon,wed,fri"
#    amount_sats: 10000
#    ln_address_or_lnurl: "nick@domain.com"
#    max_fee_sats: 5
#    memo: "Scheduled payment coming your way!"
"""


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Load configuration.

    Resolution order for config file:
        1. Explicit ``config_path`` argument
        2. ``PAYCRON_CONFIG`` env variable
        3. ``./config.yaml`` in cwd

    Raises ``ConfigurationError`` when the YAML or its contents are invalid.
    """
    yaml_data = _load_yaml(_resolve_path(config_path))
    try:
        return Config(**yaml_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config: {e}") from e


def load_job_config(config_path: str | Path | None = None) -> Config:
    """Load configuration for a scheduler run.

    A missing file is replaced by the default template first, so a fresh
    install ends with a file to edit. A config without jobs is an error.
    """
    path = _resolve_path(config_path) or DEFAULT_CONFIG_PATH
    if not path.exists():
        write_default_config(path)
    config = load_config(path)
    if not config.jobs:
        raise ConfigurationError(f"No jobs to run. Add a job in {path}")
    return config


def write_default_config(path: str | Path) -> Path:
    """Write the commented default template to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    logger.info(f"Default config written to {path}")
    return path


def _resolve_path(config_path: str | Path | None = None) -> Path | None:
    """Resolve config file path."""
    if config_path:
        return Path(config_path)

    env = os.environ.get("PAYCRON_CONFIG")
    if env:
        return Path(env)

    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def _load_yaml(path: Path | None) -> dict[str, Any]:
    """Load YAML file, return empty dict if not found."""
    if not path or not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config {path} must be a mapping")
    # ``jobs:`` with every entry commented out parses as None
    if data.get("jobs") is None:
        data.pop("jobs", None)
    return data
