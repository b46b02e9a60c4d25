# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""Tests for paths resolution, config loading and logging setup."""

import logging
from pathlib import Path

from mogle.config import load_config, setup_logging
from mogle.paths import MoglePaths, configure, get_paths, reset
from mogle.schemas import atomic_write_json


class TestPaths:

    def test_configure_routes_everything(self, tmp_path):
        p = configure(tmp_path / "data")
        assert get_paths() is p
        assert p.db_file == tmp_path / "data" / "mogle.db"
        assert p.backup_dir.parent == p.data_dir
        assert p.fallback_dir.name == "mogle-fallback"

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MOGLE_DATA_DIR", str(tmp_path / "env"))
        reset()
        assert get_paths().data_dir == tmp_path / "env"

    def test_default_home(self, monkeypatch):
        monkeypatch.delenv("MOGLE_DATA_DIR", raising=False)
        assert MoglePaths().data_dir == Path.home() / ".mogle"

    def test_ensure_dirs(self, tmp_path):
        p = MoglePaths(tmp_path / "fresh")
        p.ensure_dirs()
        assert p.backup_dir.is_dir() and p.fallback_dir.is_dir() and p.exports_dir.is_dir()


class TestLoadConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("MOGLE_OLLAMA_URL", raising=False)
        monkeypatch.delenv("MOGLE_MODEL", raising=False)
        cfg = load_config()
        assert cfg.bridge_url == "http://localhost:11434"
        assert cfg.log_level == "INFO"

    def test_file_values(self, isolated_paths, monkeypatch):
        monkeypatch.delenv("MOGLE_MODEL", raising=False)
        atomic_write_json(isolated_paths.config_file,
                          {"bridge_enabled": False, "bridge_model": "phi3:mini"})
        cfg = load_config()
        assert cfg.bridge_enabled is False
        assert cfg.bridge_model == "phi3:mini"

    def test_env_wins_over_file(self, isolated_paths, monkeypatch):
        atomic_write_json(isolated_paths.config_file, {"bridge_model": "phi3:mini"})
        monkeypatch.setenv("MOGLE_MODEL", "qwen2.5:3b")
        monkeypatch.setenv("MOGLE_OLLAMA_URL", "http://gpu-box:11434")
        cfg = load_config()
        assert cfg.bridge_model == "qwen2.5:3b"
        assert cfg.bridge_url == "http://gpu-box:11434"


class TestSetupLogging:

    def test_writes_log_file(self, isolated_paths):
        logger = setup_logging("INFO", stderr=False)
        logging.getLogger("mogle.store").info("hello from the store")
        for h in logger.handlers:
            h.flush()
        text = isolated_paths.log_file.read_text()
        assert "[INFO] mogle.store: hello from the store" in text

    def test_idempotent(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 2

    def test_level(self):
        assert setup_logging("debug", stderr=False).level == logging.DEBUG
