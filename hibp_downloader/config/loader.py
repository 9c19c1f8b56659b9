"""Configuration loading helpers for hibp-downloader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from ..infra.checkpoint import DEFAULT_CHECKPOINT_FILENAME
from ..infra.lockfile import DEFAULT_LOCK_FILENAME
from .models import DownloaderConfig

CONFIG_FILENAME = "config.yaml"
HOME_ENV_VAR = "HIBP_DOWNLOADER_HOME"
DEFAULT_HOME_DIRNAME = ".hibpdl"


def _read_file(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        yaml.safe_dump(payload, stream, sort_keys=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve the home directory and the files kept in it."""

    home_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if self.home_dir is not None:
            root = Path(self.home_dir).expanduser()
        elif env_root:
            root = Path(env_root).expanduser()
        else:
            root = Path.home() / DEFAULT_HOME_DIRNAME
        self.home_dir = root.resolve()
        self.logs_dir = (self.home_dir / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.home_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.home_dir / CONFIG_FILENAME

    def checkpoint_path(self) -> Path:
        return self.home_dir / DEFAULT_CHECKPOINT_FILENAME

    def lock_path(self) -> Path:
        return self.home_dir / DEFAULT_LOCK_FILENAME


class ConfigRepository:
    """Load and persist :class:`DownloaderConfig` as YAML."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: DownloaderConfig | None = None

    def load_config(self) -> DownloaderConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            config = DownloaderConfig.model_validate(_read_file(path))
        else:
            config = DownloaderConfig()
            self.save_config(config)
        self._cache = config
        return config

    def save_config(self, config: DownloaderConfig) -> None:
        _write_file(self.locator.config_path(), config.model_dump(mode="json"))
        self._cache = config


__all__ = ["CONFIG_FILENAME", "ConfigLocator", "ConfigRepository", "HOME_ENV_VAR"]
