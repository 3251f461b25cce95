from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_LOG_LEVEL = logging.WARNING

# Client libraries that log a lot at INFO/DEBUG.
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "kazoo", "azure", "httpx", "httpcore", "pymongo", "psycopg.pool")


def _level_from_config(config_path: Path) -> Optional[int]:
    try:
        with config_path.open("r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return None
    lvl = cfg.get("log_level") if isinstance(cfg, dict) else None
    if not isinstance(lvl, str):
        return None
    numeric = getattr(logging, lvl.upper(), None)
    return numeric if isinstance(numeric, int) else None


def configure_logging(level: Optional[str | int] = None, config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for the command-line tool.

    The level comes from `level` when given, else from the ``log_level``
    key of the YAML config at `config_path`, else WARNING. Returns a module
    logger for the caller.
    """
    resolved = DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        resolved = level
    elif isinstance(level, str):
        resolved = getattr(logging, level.upper(), DEFAULT_LOG_LEVEL)
    elif config_path is not None and config_path.exists():
        resolved = _level_from_config(config_path) or DEFAULT_LOG_LEVEL

    # Reconfigure root handlers to use the selected level and format
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=resolved, format="%(asctime)s %(levelname)s [%(name)s]: %(message)s")

    # Keep known noisy libraries quiet unless explicitly debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    logger = logging.getLogger(__name__)
    logger.debug("Log level set to %s", logging.getLevelName(resolved))
    return logger
