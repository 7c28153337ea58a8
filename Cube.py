"""
Piece model of a 3x3 Rubik's cube.

The cube is stored as 8 corner slots and 12 edge slots. Each slot holds a
Piece: the piece's home colour sequence plus an orientation, the cyclic
offset of its stickers from that home order.

Corner slots:  0 URF  1 UFL  2 ULB  3 UBR  4 DFR  5 DLF  6 DBL  7 DRB
Edge slots:    0 UR   1 UF   2 UL   3 UB   4 DR   5 DF   6 DL   7 DB
               8 FR   9 FL  10 BL  11 BR
"""

import logging
from enum import IntEnum
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

_LOGGER = logging.getLogger(__name__)


class Colour(IntEnum):
    """Sticker colours. Each colour names the face whose centre carries it."""
    WHITE = 0
    YELLOW = 1
    GREEN = 2
    BLUE = 3
    ORANGE = 4
    RED = 5

    @property
    def letter(self) -> str:
        return COLOUR_LETTERS[self]

    @property
    def face(self) -> str:
        return COLOUR_FACES[self]

    @classmethod
    def from_letter(cls, letter: str) -> "Colour":
        try:
            return cls(COLOUR_LETTERS.index(letter.upper()))
        except ValueError:
            raise ValueError(f"Unknown colour letter: {letter!r}") from None

    @classmethod
    def from_face(cls, face: str) -> "Colour":
        try:
            return cls(COLOUR_FACES.index(face))
        except ValueError:
            raise ValueError(f"Unknown face: {face!r}") from None


W, Y, G, B, O, R = (Colour.WHITE, Colour.YELLOW, Colour.GREEN,
                    Colour.BLUE, Colour.ORANGE, Colour.RED)

COLOUR_LETTERS = "WYGBOR"
COLOUR_FACES = "DUBFLR"

# Side faces in the order of the top layer edge slots 0..3 (UR UF UL UB)
SIDE_FACES = (R, B, O, G)
POLE_COLOURS = (W, Y)

# Orientation of a piece that could not be matched against a home piece
UNRESOLVED = -1


class Piece(NamedTuple):
    colours: Tuple[Colour, ...]
    orientation: int = 0

    @property
    def arity(self) -> int:
        return len(self.colours)

    def sticker(self, position: int) -> Colour:
        """Colour shown at a sticker position of the slot holding this piece."""
        if self.orientation == UNRESOLVED:
            return self.colours[position]
        return self.colours[(position - self.orientation) % self.arity]

    def __str__(self):
        letters = "".join(COLOUR_LETTERS[c] if 0 <= c < len(COLOUR_LETTERS) else "?"
                          for c in self.colours)
        return f"{letters}/{self.orientation}"


IDENTITY_CORNERS = (
    Piece((Y, R, B)),
    Piece((Y, B, O)),
    Piece((Y, O, G)),
    Piece((Y, G, R)),
    Piece((W, B, R)),
    Piece((W, O, B)),
    Piece((W, G, O)),
    Piece((W, R, G)),
)

IDENTITY_EDGES = (
    Piece((Y, R)),
    Piece((Y, B)),
    Piece((Y, O)),
    Piece((Y, G)),
    Piece((W, R)),
    Piece((W, B)),
    Piece((W, O)),
    Piece((W, G)),
    Piece((B, R)),
    Piece((B, O)),
    Piece((G, O)),
    Piece((G, R)),
)

# face -> (slots cycled by a clockwise turn, orientation delta per slot)
CORNER_MOVES = {
    "U": ((0, 1, 2, 3), (0, 0, 0, 0)),
    "D": ((7, 6, 5, 4), (0, 0, 0, 0)),
    "R": ((3, 7, 4, 0), (1, 2, 1, 2)),
    "L": ((1, 5, 6, 2), (1, 2, 1, 2)),
    "F": ((0, 4, 5, 1), (1, 2, 1, 2)),
    "B": ((2, 3, 7, 6), (1, 2, 1, 2)),
}

EDGE_MOVES = {
    "U": ((0, 1, 2, 3), (0, 0, 0, 0)),
    "D": ((7, 6, 5, 4), (0, 0, 0, 0)),
    "R": ((0, 11, 4, 8), (0, 0, 0, 0)),
    "L": ((9, 6, 10, 2), (0, 0, 0, 0)),
    "F": ((1, 8, 5, 9), (1, 1, 1, 1)),
    "B": ((3, 11, 7, 10), (1, 1, 1, 1)),
}

FACES = "UDFBLR"
MODIFIERS = ("", "'", "2")
MOVES = [face + mod for face in FACES for mod in MODIFIERS]


class PieceNotFoundError(ValueError):
    """No identity piece has the given colour combination."""


class InvalidPieceSequenceError(ValueError):
    """The colours match a piece by content but never align by rotation."""


def _home_key(colours: Sequence[int]) -> Tuple[int, ...]:
    return tuple(sorted(int(c) for c in colours))


_HOME_SLOTS: Dict[Tuple[int, ...], int] = {}
for _pieces in (IDENTITY_CORNERS, IDENTITY_EDGES):
    for _slot, _piece in enumerate(_pieces):
        _HOME_SLOTS[_home_key(_piece.colours)] = _slot


def _identity_for(colours: Sequence[int]) -> Tuple[Piece, ...]:
    if len(colours) == 3:
        return IDENTITY_CORNERS
    if len(colours) == 2:
        return IDENTITY_EDGES
    raise ValueError("Impossible piece")


def find_home_index(colours: Sequence[int]) -> int:
    """
    Find the identity slot that holds a piece with the same colours.

    Args:
        colours: Colour sequence of a corner (3) or an edge (2), any order

    Returns:
        Slot index of the piece in the solved cube

    Raises:
        PieceNotFoundError: No identity piece has these colours
        ValueError: The sequence is neither a corner nor an edge
    """
    _identity_for(colours)
    try:
        return _HOME_SLOTS[_home_key(colours)]
    except KeyError:
        raise PieceNotFoundError(f"Piece not found: {list(colours)}") from None


def find_home_colours(colours: Sequence[int]) -> Optional[Tuple[Colour, ...]]:
    """Identity colour sequence for these colours, or None if there is none."""
    if len(colours) not in (2, 3):
        return None
    slot = _HOME_SLOTS.get(_home_key(colours))
    if slot is None:
        return None
    return _identity_for(colours)[slot].colours


def find_home_orientation(colours: Sequence[int]) -> int:
    return _identity_for(colours)[find_home_index(colours)].orientation


def calculate_orientation(home: Sequence[int], colours: Sequence[int]) -> int:
    """
    Count the left rotations that turn ``colours`` into ``home``.

    Args:
        home: Identity colour sequence of the piece
        colours: Colours as read from the cube, in sticker position order

    Returns:
        Orientation of the piece, in [0, arity)

    Raises:
        InvalidPieceSequenceError: No rotation of ``colours`` equals ``home``
    """
    home = [int(c) for c in home]
    rotated = [int(c) for c in colours]
    for rotations in range(len(rotated)):
        if rotated == home:
            return rotations
        rotated = rotated[1:] + rotated[:1]
    raise InvalidPieceSequenceError(
        f"Colours {list(colours)} cannot be rotated onto {list(home)}")


def parse_move(move: str) -> Tuple[str, bool, bool]:
    """
    Split a move token into (face, prime, double).

    Raises:
        ValueError: Unknown face or modifier, including prime and double together
    """
    if not move or move[0] not in FACES:
        raise ValueError(f"Invalid move: {move!r}")
    modifier = move[1:]
    prime = "'" in modifier
    double = "2" in modifier
    if prime and double:
        raise ValueError(f"Move cannot be both prime and double: {move!r}")
    if modifier not in MODIFIERS:
        raise ValueError(f"Invalid move: {move!r}")
    return move[0], prime, double


def _reorient(piece: Piece, delta: int) -> Piece:
    if delta == 0:
        return piece
    return Piece(piece.colours, (piece.orientation + delta) % piece.arity)


def _rotate(pieces: List[Piece], slots: Sequence[int], deltas: Sequence[int],
            prime: bool, double: bool):
    if prime and double:
        raise ValueError("A turn cannot be both prime and double")
    p = pieces
    if double:
        p[slots[0]], p[slots[2]] = p[slots[2]], p[slots[0]]
        p[slots[1]], p[slots[3]] = p[slots[3]], p[slots[1]]
    elif prime:
        first = p[slots[0]]
        for i in range(3):
            p[slots[i]] = _reorient(p[slots[i + 1]], deltas[i])
        p[slots[3]] = _reorient(first, deltas[3])
    else:
        last = p[slots[3]]
        for i in range(3, 0, -1):
            p[slots[i]] = _reorient(p[slots[i - 1]], deltas[i])
        p[slots[0]] = _reorient(last, deltas[0])


class Cube:
    def __init__(self, corners, edges):
        # corners = [Piece, ... length 8]
        # edges   = [Piece, ... length 12]
        if len(corners) != 8 or len(edges) != 12:
            raise ValueError("A cube has 8 corners and 12 edges")
        self.corners = [Piece(tuple(c), o) for c, o in corners]
        self.edges = [Piece(tuple(c), o) for c, o in edges]

    @classmethod
    def identity(cls) -> "Cube":
        return cls(IDENTITY_CORNERS, IDENTITY_EDGES)

    @classmethod
    def random(cls, seed=None) -> "Cube":
        cube = cls.identity()
        cube.scramble(np.random.default_rng(seed))
        return cube

    def log_cube(self, level=logging.DEBUG):
        _LOGGER.log(level, "corners %s", " ".join(str(c) for c in self.corners))
        _LOGGER.log(level, "edges %s", " ".join(str(e) for e in self.edges))

    def clone(self) -> "Cube":
        # Pieces are immutable tuples, copying the lists is enough
        return Cube(self.corners, self.edges)

    def apply_move(self, move: str):
        """Apply one move token such as "R", "U'" or "F2". "" is a no-op."""
        if move == "":
            return
        face, prime, double = parse_move(move)
        slots, deltas = CORNER_MOVES[face]
        _rotate(self.corners, slots, deltas, prime, double)
        slots, deltas = EDGE_MOVES[face]
        _rotate(self.edges, slots, deltas, prime, double)

    def apply_moves(self, moves: Union[str, Sequence[str]]):
        if isinstance(moves, str):
            moves = moves.split()
        for move in moves:
            self.apply_move(move)

    def is_solved(self) -> bool:
        return (tuple(self.corners) == IDENTITY_CORNERS and
                tuple(self.edges) == IDENTITY_EDGES)

    def scramble(self, rng: Optional[np.random.Generator] = None) -> List[str]:
        """
        Apply 60 to 79 random turns, never turning the same face twice in a row.

        Args:
            rng: numpy random generator, a fresh unseeded one when None

        Returns:
            The list of move tokens that were applied
        """
        if rng is None:
            rng = np.random.default_rng()
        total = int(rng.integers(60, 80))
        moves = []
        last_face = None
        while len(moves) < total:
            face = FACES[int(rng.integers(len(FACES)))]
            if face == last_face:
                continue
            roll = int(rng.integers(10))
            if roll < 3:
                move = face + "'"
            elif roll == 3:
                move = face + "2"
            else:
                move = face
            self.apply_move(move)
            moves.append(move)
            last_face = face
        _LOGGER.debug("Scrambled with %d moves: %s", len(moves), " ".join(moves))
        return moves

    def __eq__(self, other):
        if not isinstance(other, Cube):
            return NotImplemented
        return self.corners == other.corners and self.edges == other.edges

    def __repr__(self):
        return (f"Cube(corners=[{' '.join(str(c) for c in self.corners)}], "
                f"edges=[{' '.join(str(e) for e in self.edges)}])")
