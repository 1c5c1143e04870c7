"""
Key -> text storage for level files and saved solutions.

Levels are read-only; solutions are the raw program text a player last
typed for a level.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class LevelProvider:
    """Abstract interface."""

    def get(self, _key: str) -> Optional[str]:
        raise NotImplementedError


class FileSystemLevelProvider(LevelProvider):
    """Reads ``<key>.txt`` from a directory."""

    def __init__(self, directory: PathLike):
        self.directory = Path(directory)

    def get(self, key: str) -> Optional[str]:
        path = self.directory / f"{key}.txt"
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("cannot read level %s: %s", path, e)
            return None


class MemoryLevelProvider(LevelProvider):
    def __init__(self, levels: Dict[str, str]):
        self.levels = dict(levels)

    def get(self, key: str) -> Optional[str]:
        return self.levels.get(key)


class SolutionStore:
    """Abstract interface. Unknown keys read as an empty program."""

    def get(self, _key: str) -> str:
        raise NotImplementedError

    def put(self, _key: str, _text: str) -> None:
        raise NotImplementedError


class FileSystemSolutionStore(SolutionStore):
    """One ``<key>_solution.txt`` per level in a directory."""

    def __init__(self, directory: PathLike):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}_solution.txt"

    def get(self, key: str) -> str:
        try:
            return self._path(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""

    def put(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(text, encoding="utf-8")
        logger.debug("saved %d byte(s) for %s", len(text.encode("utf-8")), key)


class MemorySolutionStore(SolutionStore):
    def __init__(self, solutions: Optional[Dict[str, str]] = None):
        self.solutions = dict(solutions or {})

    def get(self, key: str) -> str:
        return self.solutions.get(key, "")

    def put(self, key: str, text: str) -> None:
        self.solutions[key] = text
