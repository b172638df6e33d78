"""Board generation, win detection and number draws for bingo.

There are two win rules and they are intentionally kept apart:

- check_lines is the strict rule: a line counts only when all five of its
  cells are marked (the free square is always marked).
- validate_call is the rule applied to live bingo calls: the free square is
  dropped from every line and a line qualifies when at least four of its
  remaining cells are marked.

"""
import random
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .bingo_state import (
    BOARD_SIZE, FREE_INDEX, FREE_LABEL,
    BingoBoard, BingoCell, CallResult, DrawnNumber, GameMode, WinResult,
    NumberPoolExhaustedError,
)


class InsufficientPoolError(ValueError):
    """Exception raised when there are too few items to fill a board.

    Attributes
    ----------
    pool_size : int
        Number of items that were offered
    """

    def __init__(self, pool_size: int):
        self.pool_size = pool_size
        message = (f"Not enough items to generate a bingo board "
                   f"(need {BOARD_SIZE - 1} + Free space, got {pool_size})")
        super().__init__(message)


CLASSIC_NUMBERS = [str(n) for n in range(1, 76)]

BUSINESS_TERMS = [
    'Synergy', 'Disruption', 'Leverage', 'Scalability', 'Optimization',
    'Pivot', 'Innovation', 'Agility', 'Velocity', 'Framework',
    'Cloud-based', 'Analytics', 'Blockchain', 'AI-driven', 'Machine Learning',
    'SaaS', 'API', 'DevOps', 'Scrum', 'Kanban', 'ROI', 'KPIs', 'OKRs',
    'Stakeholder', 'Alignment', 'Roadmap', 'Milestone', 'Deliverable',
    'Scalable', 'Robust', 'Enterprise', 'Solution', 'Integration',
    'Workflow', 'Pipeline', 'Infrastructure', 'Architecture', 'Protocol',
]

# Rows, then columns, then the two diagonals.
WIN_PATTERNS = np.array([
    [0, 1, 2, 3, 4],
    [5, 6, 7, 8, 9],
    [10, 11, 12, 13, 14],
    [15, 16, 17, 18, 19],
    [20, 21, 22, 23, 24],
    [0, 5, 10, 15, 20],
    [1, 6, 11, 16, 21],
    [2, 7, 12, 17, 22],
    [3, 8, 13, 18, 23],
    [4, 9, 14, 19, 24],
    [0, 6, 12, 18, 24],
    [4, 8, 12, 16, 20],
], dtype=int)

CALL_THRESHOLD = 4


def pool_for_mode(game_mode: GameMode) -> List[str]:
    """Returns a fresh copy of the candidate pool for the given mode."""
    if game_mode == GameMode.CLASSIC:
        return list(CLASSIC_NUMBERS)
    if game_mode == GameMode.BUSINESS:
        return list(BUSINESS_TERMS)
    raise ValueError(f"Unknown game mode: {game_mode!r}")


def generate_board_from_items(items: Sequence[str],
                              rng: Optional[random.Random] = None) -> BingoBoard:
    """Build a randomized 5x5 board from the given items.

    The items are shuffled on a copy, the first 24 fill every position but
    the center, and the center becomes the permanently marked free square.

    Parameters
    ----------
    items : Sequence[str]
        Candidate contents; at least 24 are required
    rng : random.Random, optional
        Random source.  Defaults to the module-level generator.

    Returns
    -------
    BingoBoard
        A new list of 25 cells owned by the caller

    Raises
    ------
    InsufficientPoolError
        If fewer than 24 items are given

    """
    if len(items) < BOARD_SIZE - 1:
        raise InsufficientPoolError(len(items))

    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    selected = iter(shuffled[:BOARD_SIZE - 1])

    board = []
    for i in range(BOARD_SIZE):
        if i == FREE_INDEX:
            board.append(BingoCell(id=f"cell-{i}", content=FREE_LABEL,
                                   marked=True, is_free=True))
        else:
            board.append(BingoCell(id=f"cell-{i}", content=next(selected)))
    return board


def generate_board(game_mode: GameMode,
                   rng: Optional[random.Random] = None) -> BingoBoard:
    """Build a randomized board from the pool of the given game mode."""
    return generate_board_from_items(pool_for_mode(game_mode), rng=rng)


def check_lines(board: BingoBoard) -> WinResult:
    """Strict line check over a board.

    Parameters
    ----------
    board : BingoBoard
        The 25 cells to inspect.  The free square counts as marked even if
        its marked flag was cleared.

    Returns
    -------
    WinResult
        has_bingo is True if at least one line is fully marked, and
        winning_indices holds every index of every such line, without
        duplicates and in the order they were first seen

    Raises
    ------
    ValueError
        If the board does not have exactly 25 cells

    """
    if len(board) != BOARD_SIZE:
        raise ValueError(f"Board must have {BOARD_SIZE} cells, got {len(board)}")

    mask = np.array([cell.marked or cell.is_free for cell in board], dtype=bool)
    complete = mask[WIN_PATTERNS].all(axis=1)

    winning = {}
    for pattern in WIN_PATTERNS[complete]:
        for index in pattern.tolist():
            winning.setdefault(index, None)

    return WinResult(has_bingo=bool(complete.any()),
                     winning_indices=list(winning))


def validate_call(marked_indices: Iterable[int]) -> CallResult:
    """Validate a bingo call against the indices the caller has marked.

    For each line the free square is dropped and the line qualifies when at
    least CALL_THRESHOLD of the remaining indices are marked.  Every
    qualifying line contributes the list of its marked non-free indices;
    overlapping lines are reported separately.  Indices outside the board
    are ignored.

    """
    marked = np.zeros(BOARD_SIZE, dtype=bool)
    for index in marked_indices:
        if 0 <= index < BOARD_SIZE:
            marked[index] = True

    winning_lines = []
    for pattern in WIN_PATTERNS:
        candidates = pattern[pattern != FREE_INDEX]
        hits = candidates[marked[candidates]]
        if len(hits) >= CALL_THRESHOLD:
            winning_lines.append(hits.tolist())

    return CallResult(is_valid=len(winning_lines) > 0,
                      winning_lines=winning_lines)


def draw_number(game_mode: GameMode, drawn: Iterable[DrawnNumber],
                rng: Optional[random.Random] = None) -> DrawnNumber:
    """Draw a value from the mode's pool that has not been drawn yet.

    Raises
    ------
    NumberPoolExhaustedError
        If every value of the pool is already in drawn

    """
    pool = pool_for_mode(game_mode)
    used = {d.pool_index for d in drawn}
    available = [i for i in range(len(pool)) if i not in used]

    if not available:
        if game_mode == GameMode.BUSINESS:
            raise NumberPoolExhaustedError("All business terms have been generated")
        raise NumberPoolExhaustedError("All numbers have been generated")

    index = (rng or random).choice(available)
    return DrawnNumber(value=pool[index], pool_index=index)
