"""
Runs the layer-by-layer stages under a time budget.

The stages run on a background thread while the calling thread waits for at
most ``timeout`` seconds. If the budget runs out first the solver sets the
cancellation event, which the stages poll between algorithm steps, and the
solve is reported as timed out. Whatever the outcome, the moves played so
far are returned.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from Cube import Cube
from CubeFile import CubeFile
from CubeValidator import assert_valid
from Facelet_to_Cube import cube_to_facelet
from LBLSolver import (MoveLog, MoveSequence, SolveCancelled,
                       SolverInvariantError, Stage, run_stages)

_LOGGER = logging.getLogger(__name__)

SOLVE_TIMEOUT = 0.5         # seconds
CANCEL_GRACE = 1.0          # seconds to wait for a cancelled worker


class Outcome(Enum):
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed out"
    FAILED = "failed"


class SolverState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    TIMED_OUT = "timed out"
    FAILED = "failed"


class _OutcomeFlag:
    """Keeps the first outcome written to it, later writes are ignored."""

    def __init__(self):
        self._lock = threading.Lock()
        self._outcome: Optional[Outcome] = None

    def claim(self, outcome: Outcome) -> bool:
        with self._lock:
            if self._outcome is not None:
                return False
            self._outcome = outcome
            return True

    @property
    def value(self) -> Optional[Outcome]:
        return self._outcome


@dataclass
class SolveResult:
    outcome: Outcome
    moves: List[str]
    sequences: List[MoveSequence] = field(default_factory=list)
    error: Optional[BaseException] = None
    cube: Optional[Cube] = None
    elapsed: float = 0.0
    stage: Stage = Stage.FULL

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCEEDED


class CubeSolver:
    """
    Solves one cube at a time.

    Args:
        timeout: Time budget in seconds
        trial_id: Number written to the failure log, -1 outside of trials
        move_sink: Called with the list of moves after every solve
        log_sink: Called with a CubeFile after every solve that did not succeed
    """

    def __init__(self, timeout: float = SOLVE_TIMEOUT, trial_id: int = -1,
                 move_sink: Optional[Callable[[List[str]], None]] = None,
                 log_sink: Optional[Callable[[CubeFile], None]] = None):
        self.timeout = timeout
        self.trial_id = trial_id
        self.move_sink = move_sink
        self.log_sink = log_sink
        self.state = SolverState.IDLE
        self._cancel_event = threading.Event()

    def cancel(self):
        """Ask the running solve to stop at its next check."""
        self._cancel_event.set()

    def solve(self, cube: Cube, stage: Stage = Stage.FULL, copy: bool = True) -> SolveResult:
        """
        Solve a cube, or run a single stage of the method on it.

        Args:
            cube: A cube that passed validation
            stage: Stage.FULL, or one stage to run on its own
            copy: Work on a clone and leave ``cube`` untouched

        Returns:
            SolveResult with the moves played so far, whatever the outcome
        """
        if self.state is SolverState.RUNNING:
            raise RuntimeError("This solver is already running")
        stage = Stage(stage)
        work = cube.clone() if copy else cube
        start_state = cube_to_facelet(work)
        log = MoveLog()
        flag = _OutcomeFlag()
        errors: List[BaseException] = []
        cancel_event = self._cancel_event = threading.Event()

        def run():
            try:
                run_stages(work, stage, log, cancel_event)
                if cancel_event.is_set():
                    raise SolveCancelled("Cancelled after the last stage")
            except SolveCancelled as e:
                errors.append(e)
                flag.claim(Outcome.FAILED)
            except SolverInvariantError as e:
                _LOGGER.exception("Solver invariant broken in trial %d", self.trial_id)
                errors.append(e)
                flag.claim(Outcome.FAILED)
            except Exception as e:
                _LOGGER.exception("Solver failed in trial %d", self.trial_id)
                errors.append(e)
                flag.claim(Outcome.FAILED)
            else:
                flag.claim(Outcome.SUCCEEDED)

        self.state = SolverState.RUNNING
        started = time.perf_counter()
        worker = threading.Thread(target=run, name=f"solver-{self.trial_id}", daemon=True)
        worker.start()
        worker.join(self.timeout)

        if worker.is_alive():
            # Claim before cancelling so the stopped worker cannot claim first
            if flag.claim(Outcome.TIMED_OUT):
                _LOGGER.warning("[TIME OUT] Trial %d not solved within %.0f ms",
                                self.trial_id, self.timeout * 1000)
            cancel_event.set()
            worker.join(CANCEL_GRACE)
            if worker.is_alive():
                _LOGGER.error("Solver thread of trial %d ignored cancellation",
                              self.trial_id)

        outcome = flag.value
        elapsed = time.perf_counter() - started
        moves = log.moves
        self.state = SolverState[outcome.name]
        result = SolveResult(outcome=outcome, moves=moves, sequences=log.sequences(),
                             error=errors[0] if errors else None, cube=work,
                             elapsed=elapsed, stage=stage)
        _LOGGER.info("Trial %d %s in %.1f ms with %d moves", self.trial_id,
                     outcome.value, elapsed * 1000, len(moves))

        if self.move_sink is not None:
            self.move_sink(moves)
        if outcome is not Outcome.SUCCEEDED and self.log_sink is not None:
            self.log_sink(CubeFile(start_state, moves, self.trial_id, outcome.name))
        return result


def solve(cube: Cube, stage: Stage = Stage.FULL, **kwargs) -> SolveResult:
    """Solve a copy of ``cube``. Keyword arguments go to CubeSolver."""
    return CubeSolver(**kwargs).solve(cube, stage)


def solve_facelet(facelet, stage: Stage = Stage.FULL, **kwargs) -> SolveResult:
    """
    Validate a facelet, then solve it.

    Raises:
        InvalidCubeError: The facelet is illegal or unsolvable. Nothing is
            solved in that case.
    """
    cube = assert_valid(facelet)
    return CubeSolver(**kwargs).solve(cube, stage, copy=False)
