"""
Driver control surface: one level, one run at a time.

    session = Session(level_text)
    session.start("f(A):sf(A-1)\\nf(3)")
    while (snap := session.next()) is not None:
        draw(snap)

``cancel()`` is honoured between snapshots. ``state`` is always the last
snapshot handed out, so stopping early leaves a consistent board.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from config import GRID_SIZE, MAX_DEPTH, MAX_STEPS
from engine import Simulation, start
from level import GameState, initialize_game
from storage import LevelProvider

logger = logging.getLogger(__name__)


def program_size(text: str) -> int:
    """Size metric shown to players: UTF-8 bytes of the program text."""
    return len(text.encode("utf-8"))


class Session:
    def __init__(
        self,
        level_text: str,
        *,
        max_depth: int = MAX_DEPTH,
        max_steps: int = MAX_STEPS,
        size: int = GRID_SIZE,
    ):
        self.level_text = level_text
        self.max_depth = max_depth
        self.max_steps = max_steps
        self.size = size
        self.state: GameState = initialize_game(level_text, size)
        self.simulation: Optional[Simulation] = None

    @classmethod
    def load(cls, provider: LevelProvider, key: str, **kwargs) -> "Session":
        text = provider.get(key)
        if text is None:
            raise KeyError(key)
        return cls(text, **kwargs)

    @property
    def running(self) -> bool:
        return self.simulation is not None and not self.simulation.done

    def reset(self) -> GameState:
        """Drop the current run and rebuild the board from the level text."""
        if self.simulation is not None:
            self.simulation.cancel()
            self.simulation = None
        self.state = initialize_game(self.level_text, self.size)
        return self.state

    def start(self, program_text: str) -> None:
        """Begin a new run from a fresh board; nothing is applied until ``next()``."""
        initial = self.reset()
        logger.debug("starting run: %d byte program", program_size(program_text))
        self.simulation = start(program_text, initial, max_depth=self.max_depth, max_steps=self.max_steps)

    def next(self) -> Optional[GameState]:
        """Advance one snapshot; None once the run is finished or cancelled."""
        if self.simulation is None:
            return None
        try:
            snap = next(self.simulation)
        except StopIteration:
            return None
        self.state = snap
        return snap

    def cancel(self) -> None:
        if self.simulation is not None:
            self.simulation.cancel()

    def play(
        self,
        program_text: str,
        on_snapshot: Optional[Callable[[GameState], None]] = None,
        delay: float = 0.0,
    ) -> GameState:
        """Run to completion (or ``cancel()`` from the callback), pacing by ``delay`` seconds."""
        self.start(program_text)
        while True:
            snap = self.next()
            if snap is None:
                break
            if on_snapshot is not None:
                on_snapshot(snap)
            if snap.is_game_over:
                break
            if delay > 0:
                time.sleep(delay)
        return self.state
