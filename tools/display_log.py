#!/usr/bin/env python3
"""
Display a logged solve and replay its moves.

Usage:
    python tools/display_log.py <trial number | path to .cube file>
    python tools/display_log.py 17
    python tools/display_log.py "log/[2026-01-01 10-00-00] test no17 TIMED_OUT.cube"
"""

import os
import sys

# Add parent directory to path so we can import from project root
script_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(script_dir)
sys.path.insert(0, parent_dir)

from CubeFile import LOG_DIR, CubeFile, find_logs
from CubeValidator import validate
from Facelet_to_Cube import cube_to_facelet, facelet_to_cube, net_to_string
from LBLSolver import check_solved


def replay(record: CubeFile):
    """Apply the logged moves to the logged start state and show the result."""
    cube = facelet_to_cube(record.to_facelet())
    for i, move in enumerate(record.moves):
        try:
            cube.apply_move(move)
        except ValueError as e:
            print(f"  Move {i} ({move!r}) could not be applied: {e}")
            return
    print("\nAfter replaying the moves:")
    print(net_to_string(cube_to_facelet(cube)))
    print(f"\nSolved: {check_solved(cube)}")


def main():
    if len(sys.argv) < 2:
        print("Usage: python tools/display_log.py <trial number | .cube file>")
        print("Example: python tools/display_log.py 17")
        sys.exit(1)

    target = sys.argv[1]
    if os.path.isfile(target):
        paths = [target]
    else:
        try:
            trial_id = int(target)
        except ValueError:
            print(f"No such file: {target}")
            sys.exit(1)
        print(f"Looking for logs of trial {trial_id} in {LOG_DIR}/")
        paths = find_logs(trial_id, LOG_DIR)

    if not paths:
        print("No logs found")
        sys.exit(1)

    for path in paths:
        print(f"\n{path}")
        record = CubeFile.load(path)
        print(record)
        result = validate(record.to_facelet())
        print(f"Start state: {result.verdict.value}")
        if result.message:
            print(f"  {result.message}")
        if result.ok:
            replay(record)


if __name__ == "__main__":
    main()
