"""Utility to load application configuration."""

import configparser
import os
from pathlib import Path

CONFIG_ENV_VAR = "FLIGHT_SIM_CONFIG"


def default_config_path() -> Path:
    # an explicit environment override wins over data/config.cfg
    override = os.getenv(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    project_root = Path(__file__).parent.parent
    return project_root / "data" / "config.cfg"


def load_config(path: str | None = None) -> configparser.ConfigParser:
    parser = configparser.ConfigParser()
    cfg_path = Path(path) if path else default_config_path()
    # a missing file leaves an empty parser; callers read with fallbacks
    parser.read(cfg_path)
    return parser


# Load default configuration at import time
CONFIG = load_config()
