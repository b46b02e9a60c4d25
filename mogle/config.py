# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle config — user settings file, environment overrides, logging setup.
"""

import logging
import os
from typing import Optional

from mogle.paths import get_paths
from mogle.schemas import MogleConfig, load_validated

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Environment variable -> MogleConfig field
ENV_OVERRIDES = {
    "MOGLE_OLLAMA_URL": "bridge_url",
    "MOGLE_MODEL": "bridge_model",
}


def load_config() -> MogleConfig:
    """Load mogle-config.json, falling back to defaults, then apply env."""
    config = load_validated(get_paths().config_file, MogleConfig)
    updates = {}
    for env, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env)
        if value:
            updates[field_name] = value
    if updates:
        config = config.model_copy(update=updates)
    return config


def setup_logging(level: Optional[str] = None, stderr: bool = True) -> logging.Logger:
    """Configure mogle logging to file + stderr. Safe to call twice."""
    p = get_paths()
    p.data_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("mogle")
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    # Re-running (tests, --data-dir switch) replaces our own handlers
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # File handler: append to mogle.log
    fh = logging.FileHandler(str(p.log_file), mode="a", encoding="utf-8")
    fh.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(fh)

    # Stderr handler, warnings only unless verbose
    if stderr:
        sh = logging.StreamHandler()
        sh.setLevel(logger.level if logger.level <= logging.DEBUG else logging.WARNING)
        sh.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(sh)

    return logger
