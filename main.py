"""
Rubik's Cube Solver - Command Line

Modes:
1. scramble  - Scramble a solved cube and print the result
2. validate  - Check that a cube is legal and solvable
3. solve     - Solve a cube with the layer-by-layer method
4. trials    - Run many random solves, a few at a time

A cube is given either as 48 colour letters (W Y G B O R) in facelet order,
one group of 8 per face in the order D U B F L R, or as a net file with one
line per face:

    U: YYY YYY YYY
    L: OOO OOO OOO
    ...

Usage:
    python main.py scramble [--seed N]
    python main.py validate FACELET | --net FILE
    python main.py solve [FACELET | --net FILE | --scramble] [--stage STAGE]
    python main.py trials N [--limit 6] [--log-dir log]
"""

import argparse
import logging
import sys

import numpy as np

from Cube import Cube
from CubeFile import LOG_DIR, write_log
from CubeSolver import SOLVE_TIMEOUT, CubeSolver
from CubeValidator import validate
from Facelet_to_Cube import (cube_to_facelet, facelet_from_net, facelet_to_cube,
                             format_facelet, net_to_string, parse_facelet)
from LBLSolver import Stage
from MoveNotation import describe_move
from TrialRunner import MAX_CONCURRENT_TRIALS, run_random_trials


def read_net_file(path):
    """
    Read a net file: one "FACE: letters" line per face.

    Returns:
        (6, 8) facelet array
    """
    faces = {}
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            face, _, letters = line.partition(":")
            faces[face.strip().upper()] = letters
    return facelet_from_net(faces)


def load_facelet(args):
    if getattr(args, "net", None):
        return read_net_file(args.net)
    if getattr(args, "facelet", None):
        return parse_facelet(" ".join(args.facelet))
    return None


def print_cube(facelet):
    print(net_to_string(facelet))
    print(f"\nFacelet: {format_facelet(facelet)}")


def scramble_mode(args):
    cube = Cube.identity()
    moves = cube.scramble(np.random.default_rng(args.seed))
    print(f"Scramble ({len(moves)} moves): {' '.join(moves)}\n")
    print_cube(cube_to_facelet(cube))
    return 0


def validate_mode(args):
    facelet = load_facelet(args)
    if facelet is None:
        print("Error: give a facelet or --net FILE")
        return 2
    result = validate(facelet)
    print(f"Verdict: {result.verdict.value}")
    if result.message:
        print(result.message)
    return 0 if result.ok else 1


def solve_mode(args):
    if args.scramble:
        cube = Cube.identity()
        moves = cube.scramble(np.random.default_rng(args.seed))
        print(f"Scramble: {' '.join(moves)}\n")
        facelet = cube_to_facelet(cube)
    else:
        facelet = load_facelet(args)
        if facelet is None:
            print("Error: give a facelet, --net FILE or --scramble")
            return 2

    print_cube(facelet)
    validation = validate(facelet)
    if not validation.ok:
        print(f"\n{validation.message}")
        return 1
    if validation.message:
        print(f"\n{validation.message}")

    log_sink = None
    if args.log_dir:
        log_sink = lambda record: write_log(record, args.log_dir)
    solver = CubeSolver(timeout=args.timeout, log_sink=log_sink)
    result = solver.solve(facelet_to_cube(facelet), Stage.parse(args.stage))

    print(f"\nOutcome: {result.outcome.value} ({result.elapsed * 1000:.1f} ms, "
          f"{len(result.moves)} moves)")
    if result.error is not None:
        print(f"Error: {result.error}")
    for sequence in result.sequences:
        print(f"\n{sequence.step.index}. {sequence.step.name} - "
              f"{sequence.step.friendly_name}")
        if args.describe:
            for move in sequence.moves:
                print(f"   {move:<3} {describe_move(move)}")
        else:
            print("   " + " ".join(sequence.moves))
    return 0 if result.succeeded else 1


def trials_mode(args):
    print("=" * 50)
    print(f"  RUNNING {args.count} RANDOM TRIALS ({args.limit} at a time)")
    print("=" * 50)
    summary = run_random_trials(args.count, limit=args.limit, timeout=args.timeout,
                                seed=args.seed, log_dir=args.log_dir)
    print(f"\n{summary}")
    if args.log_dir and summary.succeeded != len(summary.results):
        print(f"Failure logs written to {args.log_dir}/")
    return 0 if summary.succeeded == len(summary.results) else 1


def build_parser():
    parser = argparse.ArgumentParser(
        description="Rubik's Cube Solver",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '--verbose', '-v',
        action='count',
        default=0,
        help='Log solver progress (-vv for every move)'
    )
    modes = parser.add_subparsers(dest='mode', required=True)

    scramble = modes.add_parser('scramble', help='Scramble a solved cube')
    scramble.add_argument('--seed', type=int, default=None, help='Random seed')
    scramble.set_defaults(func=scramble_mode)

    check = modes.add_parser('validate', help='Check a cube for legality and solvability')
    check.add_argument('facelet', nargs='*', help='48 colour letters')
    check.add_argument('--net', help='Net file with one "FACE: letters" line per face')
    check.set_defaults(func=validate_mode)

    solve = modes.add_parser('solve', help='Solve a cube')
    solve.add_argument('facelet', nargs='*', help='48 colour letters')
    solve.add_argument('--net', help='Net file with one "FACE: letters" line per face')
    solve.add_argument('--scramble', action='store_true', help='Solve a random scramble')
    solve.add_argument('--seed', type=int, default=None, help='Random seed for --scramble')
    solve.add_argument('--stage', default='full',
                       help='Stage to run: full, or 1-7 / white-cross ... yellow-corner-orientation')
    solve.add_argument('--timeout', type=float, default=SOLVE_TIMEOUT,
                       help=f'Time budget in seconds (default: {SOLVE_TIMEOUT})')
    solve.add_argument('--describe', action='store_true', help='Describe every move')
    solve.add_argument('--log-dir', default=None, help='Write a failure log here')
    solve.set_defaults(func=solve_mode)

    trials = modes.add_parser('trials', help='Run random scramble-and-solve trials')
    trials.add_argument('count', type=int, help='Number of trials')
    trials.add_argument('--limit', type=int, default=MAX_CONCURRENT_TRIALS,
                        help=f'Trials running at once (default: {MAX_CONCURRENT_TRIALS})')
    trials.add_argument('--timeout', type=float, default=SOLVE_TIMEOUT,
                        help=f'Time budget per solve in seconds (default: {SOLVE_TIMEOUT})')
    trials.add_argument('--seed', type=int, default=None, help='Random seed')
    trials.add_argument('--log-dir', default=LOG_DIR,
                        help=f'Failure log directory (default: {LOG_DIR})')
    trials.set_defaults(func=trials_mode)
    return parser


def main(argv=None):
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    try:
        return args.func(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
