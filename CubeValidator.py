"""
Legality and solvability checks for a facelet.

Two gates run in order and stop at the first failure:

1. Legality: every colour appears 8 times and every piece is a real piece.
2. Solvability: permutation parity, corner twist and edge flip.

Each failure is an InvalidCubeError subclass carrying a message that can be
shown to the user as is. ``validate`` turns the outcome into a
ValidationResult instead of raising.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from Cube import (Colour, Cube, InvalidPieceSequenceError,
                  POLE_COLOURS, calculate_orientation, find_home_colours,
                  find_home_index)
from Facelet_to_Cube import EDGE_FACELETS, FACE_COUNT, facelet_to_cube

_LOGGER = logging.getLogger(__name__)

STICKERS_PER_COLOUR = 8

# One sticker of every edge. Together with its partner sticker it tells
# whether the edge is flipped relative to the rest of the cube.
KEY_INDEXES = (12, 11, 25, 27, 28, 30, 4, 3, 22, 20, 19, 17)
KEY_COLOURS = (Colour.BLUE, Colour.GREEN)


def _edge_partners():
    partners = {}
    for first, second in EDGE_FACELETS:
        partners[int(first)] = int(second)
        partners[int(second)] = int(first)
    return partners


_EDGE_PARTNERS = _edge_partners()


def _colour_name(colour) -> str:
    try:
        return Colour(int(colour)).name.lower()
    except ValueError:
        return str(colour)


def _join_names(names: List[str]) -> str:
    if len(names) <= 2:
        return " and ".join(names)
    return ", ".join(names[:-1]) + ", and " + names[-1]


class InvalidCubeError(Exception):
    """Base class for a facelet that cannot be solved."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class IllegalCubeError(InvalidCubeError):
    """The stickers do not describe a physical cube."""


class ColourFrequencyError(IllegalCubeError):
    def __init__(self, colour, count: int = STICKERS_PER_COLOUR + 1):
        self.colour = colour
        self.count = count
        amount = "too many" if count > STICKERS_PER_COLOUR else "not enough"
        super().__init__(
            f"There are {amount} {_colour_name(colour)} stickers on the cube. "
            "Please make sure each color appears the correct number of times.")


class ImpossiblePieceError(IllegalCubeError):
    def __init__(self, colours: Sequence[int]):
        self.colours = tuple(colours)
        names = _join_names([_colour_name(c) for c in colours])
        super().__init__(
            f"The piece with the {names} stickers is not valid. "
            "Please check this piece.")


class UnsolvableCubeError(InvalidCubeError):
    """A physical cube that no sequence of turns can solve."""


class ImpossibleCubeConfigurationError(UnsolvableCubeError):
    def __init__(self):
        super().__init__("The cube appears to be unsolvable. "
                         "It may have been reassembled incorrectly.")


class TwistedCornerError(UnsolvableCubeError):
    def __init__(self):
        super().__init__("The cube appears to be unsolvable. "
                         "You may have twisted a corner.")


class FlippedEdgeError(UnsolvableCubeError):
    def __init__(self):
        super().__init__("The cube appears to be unsolvable. "
                         "You may have twisted an edge.")


class Verdict(Enum):
    OK = "ok"
    SOLVED = "solved"
    ILLEGAL = "illegal"
    UNSOLVABLE = "unsolvable"


ALREADY_SOLVED_MESSAGE = "The cube is already solved!"


@dataclass
class ValidationResult:
    verdict: Verdict
    error: Optional[InvalidCubeError] = None

    @property
    def ok(self) -> bool:
        """True when the cube can be handed to the solver."""
        return self.verdict in (Verdict.OK, Verdict.SOLVED)

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        if self.verdict is Verdict.SOLVED:
            return ALREADY_SOLVED_MESSAGE
        return ""


def check_colour_frequency(facelet):
    """
    Raise ColourFrequencyError unless each colour appears exactly 8 times.

    The error names the colour furthest from 8, an excess winning a tie.
    """
    flat = np.asarray(facelet, dtype=int).reshape(-1)
    known = flat[(flat >= 0) & (flat < FACE_COUNT)]
    counts = np.bincount(known, minlength=FACE_COUNT)
    deviation = counts - STICKERS_PER_COLOUR
    if deviation.any():
        score = 2 * np.abs(deviation) + (deviation > 0)
        colour = int(np.argmax(score))
        raise ColourFrequencyError(Colour(colour), int(counts[colour]))


def check_pieces(cube: Cube):
    """
    Raise ImpossiblePieceError for the first piece that does not exist.

    Args:
        cube: Piece model built without orientation, colours as read
    """
    seen = set()
    for piece in cube.corners + cube.edges:
        home = find_home_colours(piece.colours)
        if home is None:
            raise ImpossiblePieceError(piece.colours)
        try:
            calculate_orientation(home, piece.colours)
        except InvalidPieceSequenceError:
            raise ImpossiblePieceError(piece.colours) from None
        if home in seen:
            raise ImpossiblePieceError(piece.colours)
        seen.add(home)


def check_legal(facelet) -> Cube:
    """
    Run the legality gate.

    Returns:
        The oriented piece model of the facelet

    Raises:
        ColourFrequencyError, ImpossiblePieceError
    """
    check_colour_frequency(facelet)
    check_pieces(facelet_to_cube(facelet, orientate=False))
    return facelet_to_cube(facelet)


def permutation_swaps(pieces) -> int:
    """Swaps needed to send every piece to its home slot."""
    homes = [find_home_index(p.colours) for p in pieces]
    swaps = 0
    for slot in range(len(homes)):
        while homes[slot] != slot:
            target = homes[slot]
            homes[slot], homes[target] = homes[target], homes[slot]
            swaps += 1
    return swaps


def permutation_parity(cube: Cube) -> int:
    return (permutation_swaps(cube.corners) + permutation_swaps(cube.edges)) % 2


def corner_twist(cube: Cube) -> int:
    return sum(c.orientation for c in cube.corners) % 3


def edge_orientation_parity(cube: Cube) -> int:
    return sum(e.orientation for e in cube.edges) % 2


def superkey_count(facelet) -> int:
    """
    Count key squares that hold a pole colour, or a key colour next to a
    non-pole partner. The count is even exactly when the edge orientation
    sum is even.
    """
    flat = np.asarray(facelet, dtype=int).reshape(-1)
    hits = 0
    for index in KEY_INDEXES:
        square = flat[index]
        partner = flat[_EDGE_PARTNERS[index]]
        if square in POLE_COLOURS:
            hits += 1
        elif partner not in POLE_COLOURS and square in KEY_COLOURS:
            hits += 1
    return hits


def check_solvable(cube: Cube, facelet):
    """
    Run the solvability gate on a legal cube.

    Raises:
        ImpossibleCubeConfigurationError, TwistedCornerError, FlippedEdgeError
    """
    if permutation_parity(cube) != 0:
        raise ImpossibleCubeConfigurationError()
    if corner_twist(cube) != 0:
        raise TwistedCornerError()
    if superkey_count(facelet) % 2 != 0:
        raise FlippedEdgeError()


def assert_valid(facelet) -> Cube:
    """Both gates in raising form. Returns the oriented piece model."""
    cube = check_legal(facelet)
    check_solvable(cube, facelet)
    return cube


def validate(facelet) -> ValidationResult:
    try:
        cube = assert_valid(facelet)
    except IllegalCubeError as e:
        _LOGGER.info("Illegal cube: %s", e.message)
        return ValidationResult(Verdict.ILLEGAL, e)
    except UnsolvableCubeError as e:
        _LOGGER.info("Unsolvable cube: %s", e.message)
        return ValidationResult(Verdict.UNSOLVABLE, e)
    if cube.is_solved():
        return ValidationResult(Verdict.SOLVED)
    return ValidationResult(Verdict.OK)

