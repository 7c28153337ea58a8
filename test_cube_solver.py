"""
Tests for the time-boxed solver.

Two fixtures never finish a single stage on their own:
 * YELLOW_CORNERS on a cube with one U turn keeps cycling the top corners
   forever, so it always runs into the time budget.
 * YELLOW_CROSS on a cube with one R turn gives up after four passes.
"""

import threading
import time

import numpy as np
import pytest

from Cube import Cube
from CubeSolver import (CubeSolver, Outcome, SolverState, _OutcomeFlag, solve,
                        solve_facelet)
from CubeValidator import FlippedEdgeError, InvalidCubeError
from Facelet_to_Cube import cube_to_facelet, facelet_to_cube, solved_facelet
from LBLSolver import MiddleLayer, SolveCancelled, SolverInvariantError, Stage


def never_finishing_cube():
    cube = Cube.identity()
    cube.apply_move("U")
    return cube


def test_sexy_move_is_solved():
    cube = Cube.identity()
    cube.apply_moves("R U R' U'")
    result = solve(cube)
    assert result.outcome is Outcome.SUCCEEDED
    assert result.succeeded
    assert result.error is None
    assert result.cube.is_solved()
    cube.apply_moves(result.moves)
    assert cube.is_solved()


def test_identity_is_solved_without_moves():
    result = solve(Cube.identity())
    assert result.outcome is Outcome.SUCCEEDED
    assert result.moves == []
    assert result.sequences == []


def test_random_cubes_are_solved_within_budget():
    for seed in range(20):
        cube = Cube.random(seed=seed)
        result = solve(cube, timeout=5.0)
        assert result.succeeded
        cube.apply_moves(result.moves)
        assert cube.is_solved()


def test_input_is_left_untouched():
    cube = Cube.random(seed=3)
    before = cube.clone()
    result = CubeSolver().solve(cube)
    assert cube == before
    assert result.cube is not cube


def test_solve_in_place():
    cube = Cube.random(seed=3)
    result = CubeSolver(timeout=5.0).solve(cube, copy=False)
    assert result.cube is cube
    assert cube.is_solved()


def test_timeout_returns_partial_moves():
    records = []
    solver = CubeSolver(timeout=0.05, trial_id=7, log_sink=records.append)
    started = time.perf_counter()
    result = solver.solve(never_finishing_cube(), Stage.YELLOW_CORNERS)
    assert time.perf_counter() - started < 1.0
    assert result.outcome is Outcome.TIMED_OUT
    assert len(result.moves) > 0
    assert solver.state is SolverState.TIMED_OUT

    assert len(records) == 1
    record = records[0]
    assert record.trial_id == 7
    assert record.outcome == "TIMED_OUT"
    assert record.moves == result.moves
    assert np.array_equal(record.start_state, cube_to_facelet(never_finishing_cube()))


def test_outcome_flag_keeps_first_claim():
    flag = _OutcomeFlag()
    assert flag.value is None
    assert flag.claim(Outcome.SUCCEEDED)
    assert not flag.claim(Outcome.TIMED_OUT)
    assert not flag.claim(Outcome.FAILED)
    assert flag.value is Outcome.SUCCEEDED


def test_late_cancellation_does_not_replace_timeout(monkeypatch):
    def stalling_solve(self):
        self.perform_moves(["U", "U", "U"])
        # Sleeps until the timer cancels, then stops like every stage does
        self.cancel_event.wait(5.0)
        self.check_cancelled()

    monkeypatch.setattr(MiddleLayer, "solve", stalling_solve)
    records = []
    solver = CubeSolver(timeout=0.05, log_sink=records.append)
    result = solver.solve(Cube.identity(), Stage.MIDDLE_LAYER)

    assert result.outcome is Outcome.TIMED_OUT
    assert result.moves == ["U", "U", "U"]
    assert isinstance(result.error, SolveCancelled)
    assert solver.state is SolverState.TIMED_OUT
    assert [r.outcome for r in records] == ["TIMED_OUT"]
    assert records[0].moves == ["U", "U", "U"]


def test_finished_worker_keeps_its_outcome():
    records = []
    result = CubeSolver(timeout=5.0, log_sink=records.append).solve(
        Cube.random(seed=11), Stage.WHITE_CROSS)
    assert result.outcome is Outcome.SUCCEEDED
    assert records == []


def test_invariant_error_fails_the_solve():
    records = []
    cube = Cube.identity()
    cube.apply_move("R")
    solver = CubeSolver(log_sink=records.append)
    result = solver.solve(cube, Stage.YELLOW_CROSS)
    assert result.outcome is Outcome.FAILED
    assert isinstance(result.error, SolverInvariantError)
    assert solver.state is SolverState.FAILED
    assert records[0].outcome == "FAILED"


def test_success_is_not_logged():
    records = []
    solve(Cube.random(seed=5), log_sink=records.append)
    assert records == []


def test_move_sink_always_receives_moves():
    received = []
    solver = CubeSolver(timeout=0.05, move_sink=received.append)
    first = solver.solve(Cube.random(seed=9), Stage.WHITE_CROSS)
    second = solver.solve(never_finishing_cube(), Stage.YELLOW_CORNERS)
    assert received == [first.moves, second.moves]


def test_single_stage():
    cube = Cube.random(seed=6)
    result = solve(cube, Stage.WHITE_CROSS)
    assert result.succeeded
    assert result.stage is Stage.WHITE_CROSS
    assert {s.step.index for s in result.sequences} <= {0, 1}


def test_cancel_from_another_thread():
    solver = CubeSolver(timeout=10.0)
    results = []
    worker = threading.Thread(
        target=lambda: results.append(solver.solve(never_finishing_cube(),
                                                   Stage.YELLOW_CORNERS)))
    worker.start()
    deadline = time.perf_counter() + 5.0
    while solver.state is not SolverState.RUNNING and time.perf_counter() < deadline:
        time.sleep(0.001)
    time.sleep(0.02)
    solver.cancel()
    worker.join(5.0)
    assert not worker.is_alive()
    assert results[0].outcome is Outcome.FAILED
    assert isinstance(results[0].error, SolveCancelled)


def test_solver_is_reusable():
    solver = CubeSolver(timeout=0.05)
    assert solver.solve(never_finishing_cube(), Stage.YELLOW_CORNERS).outcome is Outcome.TIMED_OUT
    assert solver.solve(Cube.random(seed=2), Stage.WHITE_CROSS).succeeded


def test_solve_facelet():
    cube = Cube.random(seed=4)
    facelet = cube_to_facelet(cube)
    result = solve_facelet(facelet, timeout=5.0)
    assert result.succeeded
    replay = facelet_to_cube(facelet)
    replay.apply_moves(result.moves)
    assert replay.is_solved()


def test_solve_facelet_rejects_invalid_cube():
    facelet = solved_facelet().reshape(-1)
    facelet[[11, 41]] = facelet[[41, 11]]
    sink = []
    with pytest.raises(FlippedEdgeError):
        solve_facelet(facelet, move_sink=sink.append)
    assert sink == []
    assert issubclass(FlippedEdgeError, InvalidCubeError)
