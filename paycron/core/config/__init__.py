"""Configuration module."""

from paycron.core.config.loader import load_config, load_job_config
from paycron.core.config.schema import Config, ConnectionConfig

__all__ = ["Config", "ConnectionConfig", "load_config", "load_job_config"]
