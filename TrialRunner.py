"""
Randomised regression trials.

Each trial scrambles its own solved cube and solves it with its own solver.
At most ``limit`` trials run at the same time: a new trial is only admitted
once a running one has finished, whatever way it finished.
"""

import functools
import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

from Cube import Cube
from CubeFile import write_log
from CubeSolver import SOLVE_TIMEOUT, CubeSolver, Outcome

_LOGGER = logging.getLogger(__name__)

MAX_CONCURRENT_TRIALS = 6


@dataclass
class TrialResult:
    trial_id: int
    scramble: List[str]
    outcome: Optional[Outcome]
    moves: List[str] = field(default_factory=list)
    error: Optional[BaseException] = None
    start_cube: Optional[Cube] = None


@dataclass
class TrialSummary:
    results: List[TrialResult]

    @property
    def counts(self) -> Dict[str, int]:
        """Number of trials per outcome name. "ERROR" counts crashed trials."""
        return dict(Counter(r.outcome.name if r.outcome else "ERROR"
                            for r in self.results))

    @property
    def succeeded(self) -> int:
        return self.counts.get(Outcome.SUCCEEDED.name, 0)

    @property
    def timed_out(self) -> int:
        return self.counts.get(Outcome.TIMED_OUT.name, 0)

    @property
    def failed(self) -> int:
        return self.counts.get(Outcome.FAILED.name, 0)

    @property
    def errors(self) -> int:
        return self.counts.get("ERROR", 0)

    def __str__(self):
        return (f"{len(self.results)} trials: {self.succeeded} succeeded, "
                f"{self.timed_out} timed out, {self.failed} failed, "
                f"{self.errors} errors")


def run_trial(trial_id: int, seed=None, timeout: float = SOLVE_TIMEOUT,
              log_sink=None) -> TrialResult:
    """Scramble a fresh cube and solve it."""
    cube = Cube.identity()
    scramble = cube.scramble(np.random.default_rng(seed))
    start_cube = cube.clone()
    result = CubeSolver(timeout=timeout, trial_id=trial_id, log_sink=log_sink).solve(cube)
    return TrialResult(trial_id, scramble, result.outcome, result.moves,
                       result.error, start_cube)


def run_random_trials(count: int, limit: int = MAX_CONCURRENT_TRIALS,
                      timeout: float = SOLVE_TIMEOUT, seed=None,
                      log_dir: Optional[str] = None,
                      progress: bool = True) -> TrialSummary:
    """
    Run ``count`` scramble-and-solve trials, ``limit`` at a time.

    Args:
        count: Number of trials
        limit: Maximum number of trials running at once
        timeout: Time budget of each solve, in seconds
        seed: Seed for the scrambles, a random one when None
        log_dir: Directory for failure logs, nothing is written when None
        progress: Show a tqdm progress bar

    Returns:
        TrialSummary with one TrialResult per trial, in trial order
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    semaphore = threading.BoundedSemaphore(limit)
    seeds = np.random.SeedSequence(seed).spawn(count)
    log_sink = functools.partial(write_log, log_dir=log_dir) if log_dir else None
    results: List[Optional[TrialResult]] = [None] * count

    def guarded(trial_id: int) -> TrialResult:
        try:
            return run_trial(trial_id, seeds[trial_id], timeout, log_sink)
        except Exception as e:
            _LOGGER.exception("Trial %d failed", trial_id)
            return TrialResult(trial_id, [], None, error=e)
        finally:
            semaphore.release()

    with ThreadPoolExecutor(max_workers=limit) as pool, \
            tqdm(total=count, desc="Trials", disable=not progress) as bar:
        futures = {}
        for trial_id in range(count):
            semaphore.acquire()
            future = pool.submit(guarded, trial_id)
            future.add_done_callback(lambda _: bar.update(1))
            futures[future] = trial_id
        for future in as_completed(futures):
            results[futures[future]] = future.result()

    summary = TrialSummary(results)
    _LOGGER.info("%s", summary)
    return summary
