"""
Maze level model: cells, robot, game state and the grid builder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Tuple

from config import GRID_SIZE

logger = logging.getLogger(__name__)

EMPTY = "."
BOMB = "*"
POINT = "o"
ROBOT_START = "u"
WALLS = frozenset("ABCDEFGHIJK")

Grid = List[List[str]]


class CellKind(Enum):
    empty = auto()
    bomb = auto()
    point = auto()
    wall = auto()


def cell_kind(code: str) -> CellKind:
    if code == BOMB:
        return CellKind.bomb
    if code == POINT:
        return CellKind.point
    if code in WALLS:
        return CellKind.wall
    return CellKind.empty


class Direction(str, Enum):
    up = "up"
    right = "right"
    down = "down"
    left = "left"

    def turn_left(self) -> "Direction":
        return DIRS[(DIRS.index(self) - 1) % 4]

    def turn_right(self) -> "Direction":
        return DIRS[(DIRS.index(self) + 1) % 4]


# clockwise; turning right walks forward through this list
DIRS = [Direction.up, Direction.right, Direction.down, Direction.left]
OFF = {
    Direction.up: (0, -1),
    Direction.right: (1, 0),
    Direction.down: (0, 1),
    Direction.left: (-1, 0),
}


class Outcome(str, Enum):
    running = "running"
    won = "won"
    hit_wall = "hit_wall"
    hit_bomb = "hit_bomb"
    max_steps = "max_steps"
    error = "error"


@dataclass(frozen=True)
class Robot:
    x: int
    y: int
    direction: Direction = Direction.up

    @property
    def position(self) -> Tuple[int, int]:
        return self.x, self.y

    def ahead(self) -> Tuple[int, int]:
        dx, dy = OFF[self.direction]
        return self.x + dx, self.y + dy


@dataclass
class GameState:
    grid: Grid
    robot: Robot
    initial_robot: Robot
    total_points: int
    points_collected: int = 0
    is_game_over: bool = False
    is_won: bool = False
    message: str = ""
    steps: int = 0
    outcome: Outcome = Outcome.running

    def copy(self) -> "GameState":
        """Independent snapshot; robots are frozen so only the grid needs copying."""
        return GameState(
            grid=[list(row) for row in self.grid],
            robot=self.robot,
            initial_robot=self.initial_robot,
            total_points=self.total_points,
            points_collected=self.points_collected,
            is_game_over=self.is_game_over,
            is_won=self.is_won,
            message=self.message,
            steps=self.steps,
            outcome=self.outcome,
        )

    def cell(self, x: int, y: int) -> str:
        return self.grid[y][x]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= y < len(self.grid) and 0 <= x < len(self.grid[0])


def build_grid(level_text: str, size: int = GRID_SIZE) -> Tuple[Grid, Tuple[int, int]]:
    """
    Turn raw level text into a ``size`` x ``size`` grid and the robot start.

    Rows are padded with empty cells or cut to ``size``, then the row list is
    padded with empty rows or cut the same way. Robot markers are cleared; the
    last one that survives truncation is the start. Without one the robot
    starts at the origin.
    """
    lines = level_text.strip("\r\n").splitlines() if level_text else []
    start = (0, 0)
    found = False
    grid: Grid = []

    for y, line in enumerate(lines[:size]):
        row: List[str] = []
        for x, ch in enumerate(line[:size]):
            if ch == ROBOT_START:
                if found:
                    logger.warning("extra robot marker at (%d, %d); using the later one", x, y)
                start, found = (x, y), True
                row.append(EMPTY)
            elif ch == EMPTY or ch == BOMB or ch == POINT or ch in WALLS:
                row.append(ch)
            else:
                logger.warning("unknown cell code %r at (%d, %d) treated as empty", ch, x, y)
                row.append(EMPTY)
        row.extend(EMPTY for _ in range(size - len(row)))
        grid.append(row)

    while len(grid) < size:
        grid.append([EMPTY] * size)

    if not found:
        logger.warning("level has no robot marker %r; starting at origin", ROBOT_START)
    return grid, start


def count_points(grid: Grid) -> int:
    return sum(row.count(POINT) for row in grid)


def initialize_game(level_text: str, size: int = GRID_SIZE) -> GameState:
    grid, (x, y) = build_grid(level_text, size)
    robot = Robot(x, y, Direction.up)
    total = count_points(grid)
    logger.debug("level ready: %dx%d, robot at (%d, %d), %d points", size, size, x, y, total)
    return GameState(grid=grid, robot=robot, initial_robot=robot, total_points=total)
