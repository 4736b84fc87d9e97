GRID_SIZE = 4
TARGET_VALUE = 2048

type Line = list[int | None]
type Grid = list[Line]

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Protocol

from pydantic import BaseModel, Field, field_validator

from storage import BestScoreStore


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value) -> "Direction | None":
        """Accept a Direction or its name in any case; anything else is None."""
        if isinstance(value, Direction):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class GameStatus(Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"


class Position(NamedTuple):
    row: int
    col: int


class RandomSource(Protocol):
    """The part of random.Random the engine draws from."""

    def random(self) -> float: ...

    def choice(self, seq): ...


class GameConfig(BaseModel):
    """Rules for a single game."""

    grid_size: int = Field(GRID_SIZE, ge=2)
    target_value: int = TARGET_VALUE
    four_probability: float = Field(0.2, ge=0.0, le=1.0)  # chance a spawn is a 4
    start_tiles: int = Field(2, ge=0)

    @field_validator("target_value")
    @classmethod
    def _target_is_power_of_two(cls, value: int) -> int:
        if value < 4 or value & (value - 1):
            raise ValueError("target_value must be a power of two >= 4")
        return value


@dataclass(frozen=True)
class MoveOutcome:
    """
    Everything a renderer needs to animate one move.

    `grid` is pre-spawn when produced by Game2048.apply_move and post-spawn
    when returned from Game2048.move.
    """

    grid: Grid
    changed: bool
    merged: frozenset[Position] = frozenset()
    spawned: Position | None = None
    score_delta: int = 0
    direction: Direction | None = None
    spawned_value: int | None = None
    status: GameStatus | None = None

    def to_dict(self) -> dict:
        return {
            "grid": [row[:] for row in self.grid],
            "changed": self.changed,
            "merged": [list(pos) for pos in sorted(self.merged)],
            "spawned": list(self.spawned) if self.spawned is not None else None,
            "spawned_value": self.spawned_value,
            "score_delta": self.score_delta,
            "direction": self.direction.value if self.direction else None,
            "status": self.status.value if self.status else None,
        }


@dataclass(frozen=True)
class TileView:
    value: int
    position: Position
    is_new: bool = False
    is_merged: bool = False

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "row": self.position.row,
            "col": self.position.col,
            "is_new": self.is_new,
            "is_merged": self.is_merged,
        }


@dataclass(frozen=True)
class Snapshot:
    """The single saved (grid, score) pair that undo restores."""

    grid: Grid
    score: int


class Game2048:
    """
    A single game session.

    The grid stores real tile values (2, 4, 8, ...) and None for empty cells.
    Randomness and best-score persistence are injected so that a test can
    replay an exact sequence of spawns.
    """

    grid_size: int

    def __init__(
        self,
        state: Grid | None = None,
        score: int = 0,
        config: GameConfig | None = None,
        rng: RandomSource | None = None,
        best_store: BestScoreStore | None = None,
    ):
        self.config = config or GameConfig()
        self.grid_size = self.config.grid_size
        self.rng = rng if rng is not None else random.Random()
        self.best_store = best_store

        self._best = max(0, best_store.load()) if best_store is not None else 0
        self._history: Snapshot | None = None
        self._new_tiles: set[Position] = set()
        self._merged_tiles: set[Position] = set()

        if state is None:
            self._grid = self.empty_grid(self.grid_size)
            self._score = 0
            return

        # otherwise we have to validate the game state
        self.validate_grid(state, self.grid_size)
        if score < 0:
            raise ValueError(f"score must be non-negative, got {score}")
        self._grid = [row[:] for row in state]
        self._score = score
        # a seeded score raises best but is only persisted on the next increase
        self._best = max(self._best, score)

    # ------------------------------------------------------------------
    # grid helpers

    @staticmethod
    def empty_grid(size: int = GRID_SIZE) -> Grid:
        return [[None for _ in range(size)] for _ in range(size)]

    @staticmethod
    def validate_grid(state: Grid, size: int) -> None:
        if len(state) != size or any(len(row) != size for row in state):
            raise ValueError(f"expected a {size}x{size} grid")
        for row in state:
            for value in row:
                if value is None:
                    continue
                if (
                    not isinstance(value, int)
                    or isinstance(value, bool)
                    or value < 2
                    or value & (value - 1)
                ):
                    raise ValueError(f"invalid tile value: {value!r}")

    @staticmethod
    def empty_positions(grid: Grid) -> list[Position]:
        return [
            Position(i, j)
            for i, row in enumerate(grid)
            for j, value in enumerate(row)
            if value is None
        ]

    @staticmethod
    def has_available_move(grid: Grid) -> bool:
        """True when a cell is empty or two orthogonal neighbours are equal."""
        size = len(grid)
        for i in range(size):
            for j in range(size):
                current = grid[i][j]
                if current is None:
                    return True
                if j + 1 < size and grid[i][j + 1] == current:
                    return True
                if i + 1 < size and grid[i + 1][j] == current:
                    return True
        return False

    # ------------------------------------------------------------------
    # move resolution

    @staticmethod
    def compress_line(line: Line) -> tuple[Line, frozenset[int], int]:
        """
        Slide a line toward index 0, merging equal neighbours.

        Pairs are taken greedily from the front and a merged tile never merges
        again in the same pass, so [2, 2, 2, 2] becomes [4, 4] rather than [8].
        Returns (new_line, indices_of_merged_tiles, score_gained).
        """
        filled = [value for value in line if value is not None]

        merged: Line = []
        merged_indices = set()
        score = 0
        i = 0
        while i < len(filled):
            if i + 1 < len(filled) and filled[i] == filled[i + 1]:
                new_value = filled[i] * 2
                merged_indices.add(len(merged))
                merged.append(new_value)
                score += new_value  # points = value of merged tile
                i += 2
            else:
                merged.append(filled[i])
                i += 1

        padding = [None] * (len(line) - len(merged))
        return merged + padding, frozenset(merged_indices), score

    @staticmethod
    def apply_move(grid: Grid, direction) -> MoveOutcome:
        """
        Resolve a move without spawning and without touching `grid`.

        Rows are compressed for LEFT/RIGHT and columns for UP/DOWN. RIGHT and
        DOWN reverse each line first so the compressor always works toward
        index 0, then reverse the result back.
        """
        new_grid = [row[:] for row in grid]
        direction = Direction.parse(direction)
        if direction is None:
            return MoveOutcome(grid=new_grid, changed=False)

        size = len(grid)
        horizontal = direction in (Direction.LEFT, Direction.RIGHT)
        reverse = direction in (Direction.RIGHT, Direction.DOWN)

        changed = False
        merged = set()
        total_score = 0
        for index in range(size):
            if horizontal:
                original = new_grid[index][:]
            else:
                original = [new_grid[row][index] for row in range(size)]

            oriented = original[::-1] if reverse else original
            compressed, merged_indices, score = Game2048.compress_line(oriented)
            result = compressed[::-1] if reverse else compressed

            total_score += score
            if result != original:
                changed = True

            for merged_index in merged_indices:
                offset = size - 1 - merged_index if reverse else merged_index
                if horizontal:
                    merged.add(Position(index, offset))
                else:
                    merged.add(Position(offset, index))

            # write the line back
            if horizontal:
                new_grid[index] = result
            else:
                for row in range(size):
                    new_grid[row][index] = result[row]

        return MoveOutcome(
            grid=new_grid,
            changed=changed,
            merged=frozenset(merged),
            score_delta=total_score,
            direction=direction,
        )

    @staticmethod
    def spawn_tile(
        grid: Grid, rng: RandomSource, four_probability: float = 0.2
    ) -> tuple[Position, int] | None:
        """
        Place a 2 or a 4 on a uniformly chosen empty cell, in place.
        Returns (position, value), or None when the grid is full.
        """
        empty_cells = Game2048.empty_positions(grid)
        if not empty_cells:
            return None

        row, col = rng.choice(empty_cells)
        value = 2 if rng.random() < 1 - four_probability else 4
        grid[row][col] = value
        return Position(row, col), value

    @staticmethod
    def evaluate_status(grid: Grid, target_value: int = TARGET_VALUE) -> GameStatus:
        # a win takes priority even on a full, locked grid
        if any(value == target_value for row in grid for value in row):
            return GameStatus.WON
        if Game2048.has_available_move(grid):
            return GameStatus.IN_PROGRESS
        return GameStatus.LOST

    # ------------------------------------------------------------------
    # session

    @property
    def grid(self) -> Grid:
        return [row[:] for row in self._grid]

    @property
    def score(self) -> int:
        return self._score

    @property
    def best_score(self) -> int:
        return self._best

    @property
    def can_undo(self) -> bool:
        return self._history is not None

    @property
    def max_tile(self) -> int:
        return max((value for row in self._grid for value in row if value), default=0)

    def new_game(self) -> tuple[Grid, int]:
        """Reset score and history and place the starting tiles."""
        self._score = 0
        self._history = None
        self._merged_tiles = set()
        self._new_tiles = set()
        self._grid = self.empty_grid(self.grid_size)

        for _ in range(self.config.start_tiles):
            spawned = self.spawn_tile(self._grid, self.rng, self.config.four_probability)
            if spawned is not None:
                self._new_tiles.add(spawned[0])

        return self.grid, self._score

    def move(self, direction) -> MoveOutcome:
        """
        Play a move. A move that changes nothing, including an unknown
        direction, leaves grid, score, best and history untouched.
        """
        outcome = self.apply_move(self._grid, direction)
        if not outcome.changed:
            return replace(outcome, status=self.get_status())

        self._history = Snapshot(grid=self.grid, score=self._score)
        self._grid = [row[:] for row in outcome.grid]

        spawned = self.spawn_tile(self._grid, self.rng, self.config.four_probability)
        spawned_position, spawned_value = spawned if spawned else (None, None)

        self._score += outcome.score_delta
        self._update_best()

        self._merged_tiles = set(outcome.merged)
        self._new_tiles = {spawned_position} if spawned_position else set()

        return replace(
            outcome,
            grid=self.grid,
            spawned=spawned_position,
            spawned_value=spawned_value,
            status=self.get_status(),
        )

    def undo(self) -> tuple[Grid, int]:
        """Restore the position before the last move. Only one level is kept."""
        if self._history is None:
            return self.grid, self._score

        self._grid = [row[:] for row in self._history.grid]
        self._score = self._history.score
        self._history = None
        self._merged_tiles = set()
        self._new_tiles = set()
        return self.grid, self._score

    def get_status(self) -> GameStatus:
        return self.evaluate_status(self._grid, self.config.target_value)

    def valid_directions(self) -> list[Direction]:
        return [d for d in Direction if self.apply_move(self._grid, d).changed]

    def tiles(self) -> list[TileView]:
        """Occupied cells with the new/merged flags from the last move."""
        return [
            TileView(
                value=value,
                position=Position(i, j),
                is_new=(i, j) in self._new_tiles,
                is_merged=(i, j) in self._merged_tiles,
            )
            for i, row in enumerate(self._grid)
            for j, value in enumerate(row)
            if value is not None
        ]

    def snapshot(self) -> dict:
        return {
            "grid": self.grid,
            "score": self._score,
            "best": self._best,
            "status": self.get_status().value,
            "can_undo": self.can_undo,
            "max_tile": self.max_tile,
        }

    def _update_best(self) -> None:
        if self._score > self._best:
            self._best = self._score
            if self.best_store is not None:
                self.best_store.save(self._best)
