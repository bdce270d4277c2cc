"""
Economy config file with hot reload.

Holds the live EconomyConfig backed by a JSON file. Admin edits go through
update_config(); edits made to the file directly are picked up by reload().
Either way every registered observer (the running service) receives the
new config.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, List

from .config import EconomyConfig

logger = logging.getLogger(__name__)

ConfigObserver = Callable[[EconomyConfig], None]


class EconomyConfigManager:
    """
    Live EconomyConfig backed by ``config_path``.

    A missing file is created with defaults; an unreadable or invalid one
    is left untouched and defaults are used until it is fixed and
    reloaded. Observers run synchronously, outside the lock.
    """

    def __init__(self, config_path: str):
        self.path = Path(config_path)
        self._lock = threading.RLock()
        self._observers: List[ConfigObserver] = []
        self._config = self._initial_config()
        logger.info(
            f"Economy config at {self.path}: enabled={self._config.enabled}, "
            f"timeout={self._config.confirmation_timeout_seconds}s, "
            f"pricing tiers={sorted(self._config.price_permissions)}"
        )

    def _parse_file(self) -> EconomyConfig:
        return EconomyConfig.model_validate(json.loads(self.path.read_text()))

    def _initial_config(self) -> EconomyConfig:
        if not self.path.exists():
            defaults = EconomyConfig()
            self._write(defaults)
            logger.info(f"Wrote default economy config to {self.path}")
            return defaults
        try:
            return self._parse_file()
        except (OSError, ValueError) as e:
            logger.warning(f"Economy config {self.path} is invalid, using defaults: {e}")
            return EconomyConfig()

    def get_config(self) -> EconomyConfig:
        with self._lock:
            return self._config

    def update_config(self, new_config: EconomyConfig) -> None:
        """Make ``new_config`` live, save it, and push it to observers."""
        with self._lock:
            self._config = new_config
            self._write(new_config)
        logger.info(
            f"Economy config updated: enabled={new_config.enabled}, "
            f"horizontal={new_config.horizontal_price}, vertical={new_config.vertical_price}"
        )
        self._publish(new_config)

    def reload(self) -> EconomyConfig:
        """
        Re-read the file. On a missing or invalid file the live config is
        kept and observers are not called.
        """
        with self._lock:
            try:
                config = self._parse_file()
            except (OSError, ValueError) as e:
                logger.error(f"Economy config reload from {self.path} failed, keeping live config: {e}")
                return self._config
            self._config = config
        logger.info(f"Economy config reloaded from {self.path}")
        self._publish(config)
        return config

    def register_observer(self, callback: ConfigObserver) -> None:
        with self._lock:
            self._observers.append(callback)

    def _write(self, config: EconomyConfig) -> None:
        """Replace the file atomically; failures are logged, the live config still changes."""
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".economy-", suffix=".json")
            with os.fdopen(fd, "w") as f:
                f.write(config.model_dump_json(indent=2))
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Could not save economy config to {self.path}: {e}")
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _publish(self, config: EconomyConfig) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(config)
            except Exception as e:
                # Remaining observers still run
                logger.error(f"Economy config observer {observer!r} failed: {e}", exc_info=True)
