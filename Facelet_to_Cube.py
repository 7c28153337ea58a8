"""
Conversion between the facelet (sticker) view of a cube and the piece model.

A facelet is a (6, 8) integer array. Rows are faces, indexed by the colour of
their centre (D U B F L R). Each row holds the 8 non-centre squares of that
face in the local order

    0 1 2
    3 . 4
    5 6 7

as seen on the unfolded net below. ``face * 8 + square`` is the flat index
used by the tables in this module.

                  .------------.
                  | 15  14  13 |
                  | 12  U   11 |
                  | 10  09  08 |
     .------------+------------+------------.
     | 32  33  34 | 24  25  26 | 40  41  42 |
     | 35  L   36 | 27  F   28 | 43  R   44 |
     | 37  38  39 | 29  30  31 | 45  46  47 |
     '------------+------------+------------'
                  | 07  06  05 |
                  | 04  D   03 |
                  | 02  01  00 |
                  +------------+
                  | 23  22  21 |
                  | 20  B   19 |
                  | 18  17  16 |
                  '------------'
"""

from typing import Dict, List

import numpy as np

from Cube import (COLOUR_FACES, COLOUR_LETTERS, Colour, Cube, Piece, UNRESOLVED,
                  InvalidPieceSequenceError, calculate_orientation,
                  find_home_colours)

FACE_COUNT = 6
SQUARES_PER_FACE = 8
FACELET_SHAPE = (FACE_COUNT, SQUARES_PER_FACE)

# Facelet indexes of each corner slot, in sticker position order
CORNER_FACELETS = np.array([
    [8, 40, 26],    # URF
    [10, 24, 34],   # UFL
    [15, 32, 18],   # ULB
    [13, 16, 42],   # UBR
    [5, 31, 45],    # DFR
    [7, 39, 29],    # DLF
    [2, 23, 37],    # DBL
    [0, 47, 21],    # DRB
])

# Facelet indexes of each edge slot, in sticker position order
EDGE_FACELETS = np.array([
    [11, 41],   # UR
    [9, 25],    # UF
    [12, 33],   # UL
    [14, 17],   # UB
    [3, 46],    # DR
    [6, 30],    # DF
    [4, 38],    # DL
    [1, 22],    # DB
    [28, 43],   # FR
    [27, 36],   # FL
    [20, 35],   # BL
    [19, 44],   # BR
])

CORNER, EDGE = 0, 1


def _build_facelet_sources():
    """For every flat index: (piece type, slot, sticker position)."""
    sources = np.full((FACE_COUNT * SQUARES_PER_FACE, 3), -1, dtype=int)
    for kind, table in ((CORNER, CORNER_FACELETS), (EDGE, EDGE_FACELETS)):
        for slot, indexes in enumerate(table):
            for position, index in enumerate(indexes):
                sources[index] = (kind, slot, position)
    assert (sources >= 0).all(), "facelet tables do not cover every square"
    return sources


FACELET_SOURCES = _build_facelet_sources()

# Net squares (row-major, centre skipped) for each local square index.
# U, D and B are drawn rotated half a turn relative to their local order.
_ROW_MAJOR = [0, 1, 2, 3, 5, 6, 7, 8]
_REVERSED_FACES = ("U", "D", "B")


def _colour(value) -> int:
    value = int(value)
    if 0 <= value < FACE_COUNT:
        return Colour(value)
    return value


def _read_piece(colours, orientate: bool) -> Piece:
    colours = tuple(_colour(c) for c in colours)
    if not orientate:
        return Piece(colours, 0)
    home = find_home_colours(colours)
    if home is None:
        return Piece(colours, UNRESOLVED)
    try:
        return Piece(home, calculate_orientation(home, colours))
    except InvalidPieceSequenceError:
        return Piece(colours, UNRESOLVED)


def facelet_to_cube(facelet, orientate: bool = True) -> Cube:
    """
    Build the piece model of a facelet.

    Args:
        facelet: (6, 8) array of colours, or anything reshapeable to 48 values
        orientate: Resolve each piece to its home colours and orientation.
            When False the colours are kept as read with orientation 0, which
            is what legality checks want before a piece is known to exist.

    Returns:
        Cube whose unresolvable pieces carry orientation UNRESOLVED
    """
    flat = np.asarray(facelet, dtype=int).reshape(-1)
    if flat.size != FACE_COUNT * SQUARES_PER_FACE:
        raise ValueError(f"A facelet has 48 squares, got {flat.size}")
    corners = [_read_piece(c, orientate) for c in flat[CORNER_FACELETS]]
    edges = [_read_piece(e, orientate) for e in flat[EDGE_FACELETS]]
    return Cube(corners, edges)


def cube_to_facelet(cube: Cube) -> np.ndarray:
    """Sticker colours of a cube as a (6, 8) array."""
    flat = np.empty(FACE_COUNT * SQUARES_PER_FACE, dtype=int)
    pieces = (cube.corners, cube.edges)
    for index, (kind, slot, position) in enumerate(FACELET_SOURCES):
        flat[index] = pieces[kind][slot].sticker(position)
    return flat.reshape(FACELET_SHAPE)


def solved_facelet() -> np.ndarray:
    return cube_to_facelet(Cube.identity())


def _face_squares(face: str) -> List[int]:
    if face in _REVERSED_FACES:
        return _ROW_MAJOR[::-1]
    return _ROW_MAJOR


def facelet_from_net(faces: Dict[str, str]) -> np.ndarray:
    """
    Build a facelet from faces drawn as on the net.

    Args:
        faces: Face letter (U D F B L R) -> 9 colour letters read row by row
            as the face is drawn on the net. The centre letter is ignored.

    Returns:
        (6, 8) facelet array
    """
    facelet = np.empty(FACELET_SHAPE, dtype=int)
    for face in COLOUR_FACES:
        letters = "".join(faces[face].split())
        if len(letters) != 9:
            raise ValueError(f"Face {face} needs 9 squares, got {len(letters)}")
        row = Colour.from_face(face)
        for local, square in enumerate(_face_squares(face)):
            facelet[row, local] = Colour.from_letter(letters[square])
    return facelet


def _letter(value) -> str:
    value = int(value)
    if 0 <= value < FACE_COUNT:
        return COLOUR_LETTERS[value]
    return "?"


def _face_rows(facelet: np.ndarray, face: str) -> List[str]:
    row = Colour.from_face(face)
    grid = [COLOUR_LETTERS[row]] * 9
    for local, square in enumerate(_face_squares(face)):
        grid[square] = _letter(facelet[row, local])
    return [" ".join(grid[i:i + 3]) for i in (0, 3, 6)]


def net_to_string(facelet) -> str:
    """Draw a facelet as an unfolded net of colour letters."""
    facelet = np.asarray(facelet, dtype=int).reshape(FACELET_SHAPE)
    pad = " " * 8
    lines = [pad + line for line in _face_rows(facelet, "U")]
    for left, front, right in zip(_face_rows(facelet, "L"),
                                  _face_rows(facelet, "F"),
                                  _face_rows(facelet, "R")):
        lines.append(f"{left}   {front}   {right}")
    lines += [pad + line for line in _face_rows(facelet, "D")]
    lines += [pad + line for line in _face_rows(facelet, "B")]
    return "\n".join(lines)


def parse_facelet(text: str) -> np.ndarray:
    """Read 48 colour letters in flat index order. Whitespace is ignored."""
    letters = "".join(text.split())
    if len(letters) != FACE_COUNT * SQUARES_PER_FACE:
        raise ValueError(f"A facelet has 48 squares, got {len(letters)}")
    return np.array([Colour.from_letter(c) for c in letters],
                    dtype=int).reshape(FACELET_SHAPE)


def format_facelet(facelet) -> str:
    """Inverse of parse_facelet, one group of 8 letters per face."""
    facelet = np.asarray(facelet, dtype=int).reshape(FACELET_SHAPE)
    return " ".join("".join(_letter(v) for v in row) for row in facelet)
