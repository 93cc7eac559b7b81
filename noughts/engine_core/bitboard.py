"""
Bitboard helpers - 3x3 board stored as two 9-bit masks.

Cell layout (bit index):

    0 | 1 | 2
    ---------
    3 | 4 | 5
    ---------
    6 | 7 | 8

Each mark owns one mask; bit i set means the mark holds cell i.
Only the low 9 bits are ever used (BOARD_MASK).
"""

from __future__ import annotations


CELL_COUNT = 9
BOARD_MASK = 0x1FF

# Rows, columns, diagonals
WIN_LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

WIN_MASKS: tuple[int, ...] = tuple(
    (1 << a) | (1 << b) | (1 << c) for a, b, c in WIN_LINES
)


def is_valid_position(position: int) -> bool:
    """Check that a position addresses one of the nine cells."""
    return 0 <= position < CELL_COUNT


def cell_bit(position: int) -> int:
    """Mask with only the given cell set."""
    if not is_valid_position(position):
        raise ValueError(f"Position {position} is outside the board")
    return (1 << position) & BOARD_MASK


def popcount(board: int) -> int:
    """Number of cells set in a board."""
    return bin(board & BOARD_MASK).count("1")


def winning_mask(board: int) -> int | None:
    """
    Return the first winning mask fully covered by the board.

    Scans WIN_MASKS in table order and stops at the first match, so a
    move completing two lines at once reports only the first of them.
    """
    for mask in WIN_MASKS:
        if board & mask == mask:
            return mask
    return None


def is_full(x_board: int, o_board: int) -> bool:
    """True when every cell is taken."""
    return (x_board | o_board) & BOARD_MASK == BOARD_MASK


def cells(x_board: int, o_board: int) -> list[str | None]:
    """Per-cell view: "X", "O" or None."""
    result: list[str | None] = []
    for position in range(CELL_COUNT):
        bit = 1 << position
        if x_board & bit:
            result.append("X")
        elif o_board & bit:
            result.append("O")
        else:
            result.append(None)
    return result


def render(x_board: int, o_board: int) -> str:
    """
    Render the board as a 3x3 text grid.

    Empty cells show their position number so a player can pick one.
    """
    marks = cells(x_board, o_board)
    rows = []
    for row in range(3):
        row_cells = []
        for col in range(3):
            position = row * 3 + col
            row_cells.append(marks[position] or str(position))
        rows.append(" | ".join(row_cells))
    return "\n---------\n".join(rows)
