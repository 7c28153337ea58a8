"""
Tests for failure log records and the move notation helpers.
"""

from datetime import datetime

import numpy as np
import pytest

from Cube import Cube
from CubeFile import LOG_FILE, CubeFile, find_logs, write_log
from Facelet_to_Cube import cube_to_facelet, solved_facelet
from MoveNotation import describe_move, invert_move, invert_moves, split_moves

STAMP = datetime(2024, 3, 5, 14, 7, 9)


def make_record(trial_id=3, outcome="TIMED_OUT"):
    facelet = cube_to_facelet(Cube.random(seed=trial_id))
    return CubeFile(facelet, ["R", "U'", "F2"], trial_id, outcome, STAMP)


def test_json_round_trip():
    record = make_record()
    loaded = CubeFile.from_json(record.to_json())
    assert np.array_equal(loaded.start_state, record.start_state)
    assert loaded.moves == record.moves
    assert loaded.trial_id == 3
    assert loaded.outcome == "TIMED_OUT"
    assert loaded.timestamp == STAMP


def test_flat_start_state_is_reshaped():
    record = CubeFile(solved_facelet().reshape(-1), [])
    assert record.start_state.shape == (6, 8)
    assert record.trial_id == -1
    assert record.outcome == "FAILED"


def test_to_facelet_is_a_copy():
    record = make_record()
    facelet = record.to_facelet()
    facelet[0, 0] = 5
    assert not np.array_equal(facelet, record.start_state)


def test_filename():
    assert make_record().filename == "[2024-03-05 14-07-09] test no3 TIMED_OUT.cube"


def test_text_form():
    text = str(make_record())
    assert text.startswith("Trial Number: 3")
    assert "R U' F2" in text
    assert "Outcome: TIMED_OUT" in text
    assert "=" * 51 in text


def test_write_and_find_logs(tmp_path):
    log_dir = str(tmp_path / "log")
    first = write_log(make_record(1), log_dir)
    write_log(make_record(2, "FAILED"), log_dir)
    assert find_logs(1, log_dir) == [first]
    assert CubeFile.load(first).trial_id == 1
    assert find_logs(4, log_dir) == []
    with open(tmp_path / "log" / LOG_FILE) as f:
        text = f.read()
    assert text.count("Trial Number:") == 2


def test_find_logs_without_directory(tmp_path):
    assert find_logs(1, str(tmp_path / "missing")) == []


def test_find_logs_does_not_match_prefixes(tmp_path):
    write_log(make_record(12), str(tmp_path))
    assert find_logs(1, str(tmp_path)) == []


@pytest.mark.parametrize("move, inverse", [("R", "R'"), ("U'", "U"), ("F2", "F2")])
def test_invert_move(move, inverse):
    assert invert_move(move) == inverse


def test_invert_moves_undoes_them():
    moves = Cube.identity().scramble(np.random.default_rng(1))
    cube = Cube.identity()
    cube.apply_moves(moves)
    cube.apply_moves(invert_moves(moves))
    assert cube.is_solved()


def test_split_and_describe():
    assert split_moves("R  U' \n F2") == ["R", "U'", "F2"]
    assert describe_move("R") != describe_move("R'")
    with pytest.raises(ValueError):
        describe_move("Q")
