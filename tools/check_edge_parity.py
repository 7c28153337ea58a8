#!/usr/bin/env python3
"""
Compare the superkey edge flip check with the edge orientation sum.

Scrambles random cubes, flips a random edge in place on every other one,
and checks that both parity tests agree.

Usage:
    python tools/check_edge_parity.py [--count 10000] [--seed 0]
"""

import argparse
import os
import sys

# Add parent directory to path so we can import from project root
script_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(script_dir)
sys.path.insert(0, parent_dir)

import numpy as np
from tqdm import tqdm

from Cube import Cube, Piece
from CubeValidator import edge_orientation_parity, superkey_count
from Facelet_to_Cube import cube_to_facelet


def flip_random_edge(cube: Cube, rng: np.random.Generator):
    slot = int(rng.integers(12))
    edge = cube.edges[slot]
    cube.edges[slot] = Piece(edge.colours, 1 - edge.orientation)


def main():
    parser = argparse.ArgumentParser(description='Check the superkey edge flip test')
    parser.add_argument('--count', '-n', type=int, default=10000,
                        help='Number of random cubes (default: 10000)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    mismatches = 0
    for i in tqdm(range(args.count), desc="Cubes"):
        cube = Cube.identity()
        cube.scramble(rng)
        if i % 2:
            flip_random_edge(cube, rng)
        superkey = superkey_count(cube_to_facelet(cube)) % 2
        orientation = edge_orientation_parity(cube)
        if superkey != orientation:
            mismatches += 1
            print(f"\nMismatch: superkey {superkey}, orientation sum {orientation}")
            print(cube)

    print(f"\n{args.count} cubes checked, {mismatches} mismatches")
    sys.exit(1 if mismatches else 0)


if __name__ == "__main__":
    main()
