"""
Helpers for move tokens: plain English descriptions and inverses.
"""

from typing import List, Sequence

from Cube import parse_move

FACE_DESCRIPTIONS = {
    "D": "bottom",
    "U": "top",
    "B": "back",
    "F": "front",
    "L": "left",
    "R": "right",
}


def describe_move(move: str) -> str:
    """
    Describe a move for someone following along on a real cube.

    Example:
        >>> describe_move("R'")
        'Rotate the right face counterclockwise'
    """
    if move == "":
        return ""
    face, prime, double = parse_move(move)
    description = f"Rotate the {FACE_DESCRIPTIONS[face]} face"
    if double:
        description += " 180 degrees"
    elif prime:
        description += " counterclockwise"
    else:
        description += " clockwise"
    return description


def invert_move(move: str) -> str:
    if move == "":
        return ""
    face, prime, double = parse_move(move)
    if double:
        return face + "2"
    return face if prime else face + "'"


def invert_moves(moves: Sequence[str]) -> List[str]:
    """The sequence that undoes ``moves``."""
    return [invert_move(m) for m in reversed(moves)]


def split_moves(text: str) -> List[str]:
    """Split "R U R' U'" into tokens, rejecting anything that is not a move."""
    moves = text.split()
    for move in moves:
        parse_move(move)
    return moves
