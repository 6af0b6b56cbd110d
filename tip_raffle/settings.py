"""
Page Configuration Manager
Loads the configuration blob once and persists changes through a debounced flush

Usage:
    manager = ConfigManager(store, debounce_seconds=0.5)
    manager.update(max_daily_wins=2)
    manager.flush()             # skipped until the debounce interval has passed
    manager.flush(force=True)   # always writes when dirty
"""

import logging
import threading
import time
from typing import Any, Dict, Optional

from .config import CONFIG_FLUSH_DEBOUNCE_SECONDS
from .errors import StoreError
from .models import PageConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    def __init__(self, store, debounce_seconds: float = CONFIG_FLUSH_DEBOUNCE_SECONDS,
                 monotonic=time.monotonic):
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._monotonic = monotonic
        self._config = PageConfig()
        self._dirty = False
        self._changed_at: Optional[float] = None
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def load(self) -> PageConfig:
        """Read the stored blob over the defaults"""
        blob = self.store.load_config_blob()
        with self._lock:
            self._config = PageConfig.from_dict(blob)
            self._dirty = False
            self._changed_at = None
        if blob is None:
            logger.info("No stored configuration, using defaults")
        else:
            logger.info("✅ Loaded page configuration")
        return self._config

    @property
    def config(self) -> PageConfig:
        """Snapshot of the current configuration"""
        with self._lock:
            return self._config.copy()

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _replace(self, new_config: PageConfig):
        with self._lock:
            self._config = new_config
            self._dirty = True
            self._changed_at = self._monotonic()

    def update(self, **changes: Any) -> PageConfig:
        return self.update_from_dict(changes)

    def update_from_dict(self, changes: Dict[str, Any]) -> PageConfig:
        """Apply a partial update (blob keys or attribute names); validation errors leave config unchanged"""
        with self._lock:
            new_config = self._config.merged(changes or {})
            self._replace(new_config)
            return new_config.copy()

    def reset(self) -> PageConfig:
        self._replace(PageConfig())
        logger.info("Configuration reset to defaults")
        return self.config

    def flush(self, force: bool = False) -> bool:
        """
        Persist pending changes

        Args:
            force: write now even if the debounce interval has not elapsed

        Returns:
            bool: True if a write happened
        """
        with self._lock:
            if not self._dirty:
                return False
            elapsed = self._monotonic() - (self._changed_at or 0)
            if not force and elapsed < self.debounce_seconds:
                return False
            blob = self._config.to_dict()
            changed_at = self._changed_at

        self.store.save_config_blob(blob)

        with self._lock:
            # A change made while writing stays pending
            if self._changed_at == changed_at:
                self._dirty = False
        logger.debug("💾 Configuration saved")
        return True

    def _autoflush_loop(self, interval):
        while not self._stop.wait(interval):
            try:
                self.flush()
            except StoreError as e:
                logger.error(f"Configuration flush failed, will retry: {e}")

    def start_autoflush(self, interval: Optional[float] = None):
        """Flush on a background timer every `interval` seconds (default: the debounce)"""
        if self._thread is not None:
            return
        interval = interval or max(self.debounce_seconds, 0.1)
        self._stop.clear()
        self._thread = threading.Thread(target=self._autoflush_loop, args=(interval,),
                                        name="config-flush", daemon=True)
        self._thread.start()

    def stop_autoflush(self, final_flush: bool = True):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        if final_flush:
            self.flush(force=True)
