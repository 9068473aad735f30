from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from modmail.util.logger import get_logger

logger = get_logger("app_configuration")


# Relative to the project base directory
CONFIG_PATH = Path("config") / "app_config.yml"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    Caches the contents of ``./config/app_config.yml`` and exposes typed
    shortcuts for the database and relay sections. Every shortcut falls back
    to a sensible default so a missing or partial file still yields a working
    bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.warning("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and replace the in-memory cache."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def database_path(self) -> Path:
        """Path of the SQLite file holding conversations and settings."""
        return Path(str(self._section("database").get("path", "./data/modmail.db"))).resolve()

    @property
    def codename_attempts(self) -> int:
        """How many times the router retries after a codename collision."""
        return max(1, int(self._section("relay").get("codename_attempts", 5)))

    @property
    def codename_separator(self) -> str:
        return str(self._section("relay").get("codename_separator", " "))

    @property
    def generator_attempts(self) -> int:
        """Random draws the codename generator makes before scanning for a free pair."""
        return max(1, int(self._section("relay").get("generator_attempts", 64)))

    @property
    def worker_idle_seconds(self) -> float:
        """Seconds a conversation worker waits for more events before exiting."""
        return float(self._section("relay").get("worker_idle_seconds", 300.0))

    @property
    def max_message_length(self) -> int:
        """Longest single message sent to Discord; longer content is split."""
        return max(1, min(2000, int(self._section("relay").get("max_message_length", 2000))))

