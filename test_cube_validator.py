"""
Tests for the legality and solvability gates.

Each crafted facelet breaks exactly one rule so that the gate order can be
checked as well.
"""

import numpy as np
import pytest

import CubeValidator
from Cube import IDENTITY_CORNERS, IDENTITY_EDGES, Colour, Cube, Piece
from CubeValidator import (ColourFrequencyError, FlippedEdgeError, IllegalCubeError,
                           ImpossibleCubeConfigurationError, ImpossiblePieceError,
                           TwistedCornerError, UnsolvableCubeError, Verdict,
                           assert_valid, check_pieces, corner_twist,
                           edge_orientation_parity, permutation_parity,
                           permutation_swaps, superkey_count, validate)
from Facelet_to_Cube import FACELET_SHAPE, cube_to_facelet, solved_facelet

W, Y, G, B, O, R = (Colour.WHITE, Colour.YELLOW, Colour.GREEN,
                    Colour.BLUE, Colour.ORANGE, Colour.RED)


def crafted(**squares):
    """Solved facelet with some flat indexes recoloured: crafted(s8=W, s0=Y)."""
    flat = solved_facelet().reshape(-1)
    for name, colour in squares.items():
        flat[int(name[1:])] = colour
    return flat.reshape(FACELET_SHAPE)


def test_solved_cube_is_solved_verdict():
    result = validate(solved_facelet())
    assert result.verdict is Verdict.SOLVED
    assert result.ok
    assert result.message == "The cube is already solved!"


def test_scrambled_cubes_are_ok():
    for seed in range(30):
        result = validate(cube_to_facelet(Cube.random(seed=seed)))
        assert result.verdict is Verdict.OK
        assert result.ok and result.error is None


def test_colour_frequency_is_checked_first(monkeypatch):
    # One yellow sticker painted white: 9 white, 7 yellow
    facelet = crafted(s8=W)

    def no_pieces(*args, **kwargs):
        raise AssertionError("pieces built before the frequency check")

    monkeypatch.setattr(CubeValidator, "facelet_to_cube", no_pieces)
    result = validate(facelet)
    assert result.verdict is Verdict.ILLEGAL
    assert isinstance(result.error, ColourFrequencyError)
    assert result.error.colour is W
    assert "too many white stickers" in result.message


def test_mirrored_corner_is_impossible():
    # Two stickers of URF swapped: right colours, wrong handedness
    facelet = crafted(s40=B, s26=R)
    with pytest.raises(ImpossiblePieceError) as info:
        assert_valid(facelet)
    assert info.value.colours == (Y, B, R)
    assert "yellow, blue, and red" in info.value.message


def test_unknown_edge_is_impossible():
    # UR becomes red-red, DR becomes white-yellow
    facelet = crafted(s11=R, s46=Y)
    result = validate(facelet)
    assert result.verdict is Verdict.ILLEGAL
    assert isinstance(result.error, ImpossiblePieceError)


def test_duplicate_piece_is_impossible():
    corners = list(IDENTITY_CORNERS)
    corners[1] = corners[0]
    with pytest.raises(ImpossiblePieceError):
        check_pieces(Cube(corners, IDENTITY_EDGES))


def test_two_swapped_edges_break_permutation_parity():
    # UR and UF exchanged, both upright
    facelet = crafted(s41=B, s25=R)
    result = validate(facelet)
    assert result.verdict is Verdict.UNSOLVABLE
    assert isinstance(result.error, ImpossibleCubeConfigurationError)
    assert "reassembled" in result.message


def test_twisted_corner():
    # URF turned a third in place
    facelet = crafted(s8=B, s40=Y, s26=R)
    result = validate(facelet)
    assert result.verdict is Verdict.UNSOLVABLE
    assert isinstance(result.error, TwistedCornerError)


def test_flipped_edge():
    facelet = crafted(s11=R, s41=Y)
    result = validate(facelet)
    assert result.verdict is Verdict.UNSOLVABLE
    assert isinstance(result.error, FlippedEdgeError)


def test_two_flipped_edges_are_fine():
    facelet = crafted(s11=R, s41=Y, s9=B, s25=Y)
    assert validate(facelet).verdict is Verdict.OK


def test_error_hierarchy():
    assert issubclass(ColourFrequencyError, IllegalCubeError)
    assert issubclass(ImpossiblePieceError, IllegalCubeError)
    for error in (ImpossibleCubeConfigurationError, TwistedCornerError, FlippedEdgeError):
        assert issubclass(error, UnsolvableCubeError)


def test_permutation_swaps():
    cube = Cube.identity()
    assert permutation_swaps(cube.corners) == 0
    cube.apply_move("U")
    # A 4-cycle takes three swaps, for corners and for edges
    assert permutation_swaps(cube.corners) == 3
    assert permutation_swaps(cube.edges) == 3
    assert permutation_parity(cube) == 0


def test_parities_of_scrambles_are_even():
    for seed in range(30):
        cube = Cube.random(seed=seed)
        assert permutation_parity(cube) == 0
        assert corner_twist(cube) == 0
        assert edge_orientation_parity(cube) == 0


def test_superkey_matches_edge_orientation_parity():
    rng = np.random.default_rng(0)
    for i in range(400):
        cube = Cube.identity()
        cube.scramble(rng)
        if i % 2:
            slot = int(rng.integers(12))
            edge = cube.edges[slot]
            cube.edges[slot] = Piece(edge.colours, 1 - edge.orientation)
        assert superkey_count(cube_to_facelet(cube)) % 2 == edge_orientation_parity(cube)


def test_superkey_of_solved_cube():
    assert superkey_count(solved_facelet()) == 8


def test_missing_colour_is_named():
    # A white sticker that could not be read at all
    facelet = solved_facelet()
    facelet[W, 0] = 9
    with pytest.raises(ColourFrequencyError) as info:
        assert_valid(facelet)
    assert info.value.colour is W
    assert info.value.count == 7
    assert "not enough white stickers" in info.value.message


def test_excess_colour_wins_a_tie():
    # A white sticker painted yellow: 7 white, 9 yellow
    facelet = crafted(s0=Y)
    with pytest.raises(ColourFrequencyError) as info:
        assert_valid(facelet)
    assert info.value.colour is Y
    assert "too many yellow stickers" in info.value.message
