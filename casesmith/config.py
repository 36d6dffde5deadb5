"""Loading of the optional ``config.toml`` blob and the settings it carries."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import toml
from loguru import logger

from .parser_loader import LANGUAGE_EXTENSIONS
from .processing.parallel_processor import DEFAULT_IGNORE_DIRS, EXECUTORS, RESULTS_DIR_NAME

DEFAULT_CONFIG_PATH = Path("config.toml")
SETTINGS_TABLE = "casesmith"


@dataclass
class Settings:
    """Run settings read from the ``[casesmith]`` table of the config blob."""

    workers: int | None = None
    executor: str = "process"
    extensions: dict[str, str] = field(default_factory=lambda: dict(LANGUAGE_EXTENSIONS))
    ignore_dirs: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE_DIRS))
    results_dir: str = RESULTS_DIR_NAME

    @classmethod
    def from_text(cls, text: str) -> "Settings":
        """Parse settings from a TOML blob; invalid or missing values keep their defaults."""
        settings = cls()
        if not text.strip():
            return settings

        try:
            data = toml.loads(text)
        except toml.TomlDecodeError as e:
            logger.warning(f"Ignoring invalid config: {e}")
            return settings

        table = data.get(SETTINGS_TABLE, {})
        if not isinstance(table, dict):
            logger.warning(f"Ignoring [{SETTINGS_TABLE}]: expected a table")
            return settings

        settings._apply(table)
        return settings

    def _apply(self, table: dict[str, Any]) -> None:
        workers = table.get("workers")
        if isinstance(workers, int) and workers > 0:
            self.workers = workers
        elif workers is not None:
            logger.warning(f"Ignoring workers={workers!r}: expected a positive integer")

        executor = table.get("executor")
        if executor in EXECUTORS:
            self.executor = executor
        elif executor is not None:
            logger.warning(f"Ignoring executor={executor!r}: expected one of {EXECUTORS}")

        extensions = table.get("extensions")
        if isinstance(extensions, list):
            # Every configured extension is parsed with the grammar its suffix maps to
            self.extensions = {
                ext.lower(): LANGUAGE_EXTENSIONS.get(ext.lower(), "typescript")
                for ext in extensions
                if isinstance(ext, str) and ext.startswith(".")
            }

        ignore_dirs = table.get("ignore_dirs")
        if isinstance(ignore_dirs, list):
            self.ignore_dirs = {d.lower() for d in ignore_dirs if isinstance(d, str)}
            self.ignore_dirs.add(self.results_dir.lower())

        results_dir = table.get("results_dir")
        if isinstance(results_dir, str) and results_dir:
            self.results_dir = results_dir
            self.ignore_dirs.add(results_dir.lower())


def load_config_text(path: str | Path = DEFAULT_CONFIG_PATH) -> str:
    """Read the raw config blob; a missing or unreadable file yields an empty string."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return ""
