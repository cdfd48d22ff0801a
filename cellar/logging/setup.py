import os
import logging
import logging.config
from pathlib import Path
from typing import Iterable

import yaml

from cellar.config import DEBUG, INSTANCE_DIR

CONFIG_PATH = Path(__file__).with_name("logging.yaml")
LOGS_DIR = Path(INSTANCE_DIR) / "logs"


def setup_logging(
    global_level: int = None,
    enabled_loggers: Iterable[str] = None,
    disabled_loggers: Iterable[str] = None,
    level_overrides: dict[str, int] = None,
    no_debug: bool = False
):
    """Configure logging from ``logging.yaml``.

    Logger names in the arguments are the aliases used in the YAML file
    (``database``, ``services``, ``manage``...), resolved to ``cellar.<alias>``.
    """
    with open(CONFIG_PATH, "rt") as f:
        config = yaml.safe_load(f)

    os.makedirs(LOGS_DIR, exist_ok=True)

    for handler in config.get("handlers", {}).values():
        if "filename" in handler:
            handler["filename"] = str(LOGS_DIR / Path(handler["filename"]).name)

    loggers_config: dict[str, dict] = config.get("loggers", {})

    def resolve(alias: str) -> str:
        return alias if alias in loggers_config else f"cellar.{alias}"

    if global_level is not None:
        if "root" in config:
            config["root"]["level"] = logging.getLevelName(global_level)

        for name in loggers_config:
            loggers_config[name]["level"] = logging.getLevelName(global_level)

    if enabled_loggers is not None:
        enabled = {resolve(alias) for alias in enabled_loggers}

        for name in loggers_config:
            if name not in enabled:
                loggers_config[name]["handlers"] = []
                loggers_config[name]["propagate"] = False

        if "root" in config:
            config["root"]["handlers"] = []

    if disabled_loggers is not None:
        for alias in disabled_loggers:
            if (name := resolve(alias)) in loggers_config:
                loggers_config[name]["handlers"] = []
                loggers_config[name]["propagate"] = False

    if level_overrides is not None:
        for alias, level in level_overrides.items():
            if (name := resolve(alias)) in loggers_config:
                loggers_config[name]["level"] = logging.getLevelName(level)

    if no_debug:
        for name, logger_config in loggers_config.items():
            if logger_config.get("level") == "DEBUG":
                logger_config["level"] = "INFO"
    elif DEBUG:
        for name in loggers_config:
            if name.startswith("cellar"):
                loggers_config[name]["level"] = "DEBUG"

    logging.config.dictConfig(config)
