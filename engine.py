"""
Step-by-step maze simulation over an expanded instruction string.

``Simulation`` is a pull iterator: every ``next()`` applies at most one
primitive instruction and returns an independent snapshot. The first
snapshot is the untouched starting state.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterator, Optional

from config import MAX_DEPTH, MAX_STEPS
from errors import InterpreterError
from expander import PRIMITIVES, expand_program
from level import EMPTY, CellKind, GameState, Outcome, cell_kind

logger = logging.getLogger(__name__)

MSG_HIT_WALL = "Robot hit the wall!"
MSG_HIT_BOMB = "Robot hit a bomb!"
MSG_WON = "You collected all points! You won!"


def _finish(state: GameState, outcome: Outcome, message: str) -> None:
    state.is_game_over = True
    state.is_won = outcome is Outcome.won
    state.outcome = outcome
    state.message = message


def apply_instruction(state: GameState, instruction: str) -> None:
    """Apply one primitive instruction to ``state`` in place. Terminal states are left alone."""
    if state.is_game_over:
        return
    if instruction not in PRIMITIVES:
        raise ValueError(f"not a primitive instruction: {instruction!r}")

    state.steps += 1
    robot = state.robot

    if instruction == "l":
        state.robot = replace(robot, direction=robot.direction.turn_left())
        return
    if instruction == "r":
        state.robot = replace(robot, direction=robot.direction.turn_right())
        return

    x, y = robot.ahead()
    if not state.in_bounds(x, y):
        _finish(state, Outcome.hit_wall, MSG_HIT_WALL)
        return

    kind = cell_kind(state.cell(x, y))
    if kind is CellKind.wall:
        # blocked for this step only
        return

    state.robot = replace(robot, x=x, y=y)

    if kind is CellKind.bomb:
        _finish(state, Outcome.hit_bomb, MSG_HIT_BOMB)
    elif kind is CellKind.point:
        state.grid[y][x] = EMPTY
        state.points_collected += 1
        if state.points_collected == state.total_points:
            _finish(state, Outcome.won, MSG_WON)


class Simulation:
    """
    Replays ``instructions`` against a private copy of ``initial``.

    Iteration ends after a terminal snapshot, once the instructions run out,
    or after ``cancel()``. Going past ``max_steps`` ends the run with a final
    ``max_steps`` snapshot.
    """

    def __init__(self, instructions: str, initial: GameState, max_steps: int = MAX_STEPS):
        self.instructions = instructions
        self.max_steps = max_steps
        self.error: Optional[InterpreterError] = None
        self._state = initial.copy()
        self._pos = 0
        self._started = False
        self._done = False
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done or self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def __iter__(self) -> Iterator[GameState]:
        return self

    def __next__(self) -> GameState:
        if self.done:
            raise StopIteration

        if not self._started:
            self._started = True
            if self._state.is_game_over:
                self._done = True
            return self._state.copy()

        state = self._state
        # skip anything the expander would never emit
        while self._pos < len(self.instructions) and self.instructions[self._pos] not in PRIMITIVES:
            self._pos += 1

        if self._pos >= len(self.instructions):
            self._done = True
            logger.info("instructions exhausted after %d step(s); %d/%d points",
                        state.steps, state.points_collected, state.total_points)
            raise StopIteration

        if state.steps >= self.max_steps:
            _finish(state, Outcome.max_steps,
                    f"Maximum steps ({self.max_steps}) reached. Check for infinite loops.")
            self._done = True
            logger.info("step cap of %d reached", self.max_steps)
            return state.copy()

        apply_instruction(state, self.instructions[self._pos])
        self._pos += 1
        if state.is_game_over:
            self._done = True
            logger.info("run ended: %s after %d step(s)", state.outcome.value, state.steps)
        return state.copy()


def failed_state(initial: GameState, message: str) -> GameState:
    state = initial.copy()
    _finish(state, Outcome.error, message)
    return state


def start(
    program_text: str,
    initial: GameState,
    *,
    max_depth: int = MAX_DEPTH,
    max_steps: int = MAX_STEPS,
) -> Simulation:
    """
    Expand ``program_text`` and return a simulation over the result.

    Expansion stops once it has produced more instructions than ``max_steps``
    allows; the simulation never reads past ``max_steps + 1`` of them.

    Expansion errors abort before any instruction runs: the simulation then
    produces a single terminal snapshot of ``initial`` carrying the error
    message, and keeps the exception on ``error``.
    """
    try:
        instructions = expand_program(program_text, max_depth, limit=max_steps + 1)
    except InterpreterError as e:
        logger.info("expansion failed: %s", e)
        sim = Simulation("", failed_state(initial, str(e)), max_steps)
        sim.error = e
        return sim
    return Simulation(instructions, initial, max_steps)


def simulate(program_text: str, initial: GameState, **kwargs) -> Iterator[GameState]:
    """Snapshots of a fresh run; see ``start`` for the keyword arguments."""
    return iter(start(program_text, initial, **kwargs))


def run_to_end(program_text: str, initial: GameState, **kwargs) -> Optional[GameState]:
    """Drain ``simulate`` and return the last snapshot."""
    last = None
    for last in simulate(program_text, initial, **kwargs):
        pass
    return last
