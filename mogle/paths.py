# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Paths — single source of truth for all data file locations.

Resolution order:
  1. configure(data_dir) (CLI --data-dir, tests)
  2. MOGLE_DATA_DIR environment variable
  3. Default: ~/.mogle/

Usage:
    from mogle.paths import get_paths
    p = get_paths()
    p.db_file           # ~/.mogle/mogle.db
    p.backup_dir        # ~/.mogle/mogle-backup/

For tests:
    from mogle.paths import configure
    configure(tmp_path)  # all paths now rooted under tmp_path
"""

import os
from pathlib import Path
from typing import Optional


class MoglePaths:
    """Central registry of every file and directory Mogle uses."""

    def __init__(self, data_dir: Optional[Path] = None):
        if data_dir is not None:
            self._root = Path(data_dir)
        else:
            env = os.environ.get("MOGLE_DATA_DIR")
            if env:
                self._root = Path(env).expanduser()
            else:
                self._root = Path.home() / ".mogle"

    # ------------------------------------------------------------------
    # Root
    # ------------------------------------------------------------------
    @property
    def data_dir(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Storage tiers
    # ------------------------------------------------------------------
    @property
    def db_file(self) -> Path:
        """Primary tier: SQLite database holding both collections."""
        return self._root / "mogle.db"

    @property
    def backup_dir(self) -> Path:
        """Secondary tier: mirrored copy refreshed on every successful save."""
        return self._root / "mogle-backup"

    @property
    def fallback_dir(self) -> Path:
        """Last-resort tier: written only when the primary write fails."""
        return self._root / "mogle-fallback"

    # ------------------------------------------------------------------
    # Config, logs, exports
    # ------------------------------------------------------------------
    @property
    def config_file(self) -> Path:
        return self._root / "mogle-config.json"

    @property
    def log_file(self) -> Path:
        return self._root / "mogle.log"

    @property
    def exports_dir(self) -> Path:
        return self._root / "exports"

    # ------------------------------------------------------------------
    # Directory creation
    # ------------------------------------------------------------------
    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in (self.data_dir, self.backup_dir, self.fallback_dir, self.exports_dir):
            d.mkdir(parents=True, exist_ok=True)


# ===========================================================================
# Singleton
# ===========================================================================

_instance: Optional[MoglePaths] = None


def get_paths() -> MoglePaths:
    """Return the global MoglePaths singleton (lazy-init)."""
    global _instance
    if _instance is None:
        _instance = MoglePaths()
    return _instance


def configure(data_dir: Path) -> MoglePaths:
    """
    Override the global paths singleton. Used by tests and CLI --data-dir.

    Returns the new instance for convenience.
    """
    global _instance
    _instance = MoglePaths(data_dir=data_dir)
    return _instance


def reset() -> None:
    """Reset singleton so next get_paths() re-reads env."""
    global _instance
    _instance = None
