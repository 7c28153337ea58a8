"""
Layer-by-layer solving stages.

The cube is solved with white on the bottom (D) and yellow on top (U), the
way the beginner method is taught:

    1. White cross (built as a daisy around the yellow centre first)
    2. White corners
    3. Middle layer edges
    4. Yellow cross
    5. Yellow edges
    6. Yellow corner placement
    7. Yellow corner orientation

Every stage is a greedy loop that polls a cancellation event at the top of
each iteration. A short algorithm (an insertion, a corner cycle) is always
applied as a whole, never interrupted halfway.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Type

from Cube import (Colour, Cube, Piece, SIDE_FACES, find_home_index,
                  find_home_orientation)
from Facelet_to_Cube import cube_to_facelet

_LOGGER = logging.getLogger(__name__)

W, Y, G = Colour.WHITE, Colour.YELLOW, Colour.GREEN

U_TURNS = {1: "U", 2: "U2", 3: "U'"}


class SolveCancelled(Exception):
    """The solve was cancelled between two algorithm steps."""


class SolverInvariantError(RuntimeError):
    """The solver reached a state a valid cube can never produce."""


class Stage(IntEnum):
    FULL = 0
    WHITE_CROSS = 1
    WHITE_CORNERS = 2
    MIDDLE_LAYER = 3
    YELLOW_CROSS = 4
    YELLOW_EDGES = 5
    YELLOW_CORNERS = 6
    YELLOW_CORNER_ORIENTATION = 7

    @classmethod
    def parse(cls, text: str) -> "Stage":
        """Accept a number ("3") or a name ("middle-layer", "MIDDLE_LAYER")."""
        text = text.strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"Unknown stage: {text!r}") from None


@dataclass(frozen=True)
class Step:
    """One step of the tutorial, used to group the moves of a solution."""
    index: int
    name: str
    friendly_name: str
    description: str


STEPS = (
    Step(0, "White Daisy", "Make a White Daisy",
         "Place the white edge pieces around the yellow center piece on the "
         "top face to create a daisy pattern."),
    Step(1, "White Cross", "Flip the Petals",
         "Align each white edge with its matching center color and rotate it "
         "down to the white face to form a full cross."),
    Step(2, "White Corners", "Finish the White Face",
         "Insert the white corner pieces between the matching side colors to "
         "complete the white face."),
    Step(3, "Middle Layer Edges", "Solve the Middle Belt",
         "Move the non-yellow edge pieces into the middle layer to connect the "
         "first and second layers properly."),
    Step(4, "Yellow Cross", "Make a Yellow Plus Sign",
         "Create a yellow '+' on the top face by correctly orienting the "
         "yellow edge pieces."),
    Step(5, "Yellow Edges", "Match the Yellow Plus",
         "Rotate the yellow edges until they align with the correct center "
         "colors on the side faces."),
    Step(6, "Yellow Corners Placement", "Put Yellow Corners in Place",
         "Position all yellow corner pieces in the correct locations, even if "
         "their orientations are incorrect."),
    Step(7, "Yellow Corners Orientation", "Turn the Yellow Corners",
         "Rotate the yellow corner pieces one by one to complete the yellow "
         "face and solve the cube."),
)

WHITE_DAISY = STEPS[0]


@dataclass
class MoveSequence:
    step: Step
    moves: List[str] = field(default_factory=list)


class MoveLog:
    """Moves played by the solver, each tagged with the step that played it."""

    def __init__(self):
        self._moves: List[str] = []
        self._steps: List[Step] = []

    def append(self, move: str, step: Step):
        self._moves.append(move)
        self._steps.append(step)

    def remove_last(self, count: int):
        if count > len(self._moves):
            raise ValueError(f"Cannot remove {count} of {len(self._moves)} moves")
        if count > 0:
            del self._moves[-count:]
            del self._steps[-count:]

    @property
    def moves(self) -> List[str]:
        return list(self._moves)

    def sequences(self) -> List[MoveSequence]:
        """Consecutive moves of the same step, in play order."""
        sequences: List[MoveSequence] = []
        for move, step in zip(list(self._moves), list(self._steps)):
            if not sequences or sequences[-1].step != step:
                sequences.append(MoveSequence(step))
            sequences[-1].moves.append(move)
        return sequences

    def __len__(self):
        return len(self._moves)


def _is_white(piece: Piece) -> bool:
    return W in piece.colours


def _is_upright_white(piece: Piece) -> bool:
    return _is_white(piece) and piece.orientation == 0


def _side_index(colour) -> int:
    return SIDE_FACES.index(colour)


class StageSolver:
    """
    Base class of the stages.

    Args:
        cube: Cube to solve, mutated in place
        log: Move log shared by all stages of one solve
        cancel_event: Set by another thread to stop the solve
    """
    stage: Stage = Stage.FULL

    def __init__(self, cube: Cube, log: MoveLog,
                 cancel_event: Optional[threading.Event] = None):
        self.cube = cube
        self.log = log
        self.cancel_event = cancel_event or threading.Event()
        self.step = STEPS[self.stage]

    def check_cancelled(self):
        if self.cancel_event.is_set():
            raise SolveCancelled(f"{self.stage.name} cancelled")

    def perform_move(self, move: str):
        self.cube.apply_move(move)
        self.log.append(move, self.step)

    def perform_moves(self, moves: Sequence[str]):
        for move in moves:
            self.perform_move(move)

    def turn(self, colour, prime: bool):
        self.perform_move(Colour(colour).face + ("'" if prime else ""))

    def turn_u(self, clockwise: bool):
        self.perform_move("U" if clockwise else "U'")

    def do_u_turns(self, turns: int):
        move = U_TURNS.get(turns)
        if move:
            self.perform_move(move)

    def solve(self):
        raise NotImplementedError


class WhiteCross(StageSolver):
    stage = Stage.WHITE_CROSS

    def solve(self):
        if self._is_solved():
            return
        self.step = WHITE_DAISY
        self._solve_daisy()
        self.step = STEPS[self.stage]
        self._solve_cross()

    def _is_solved(self) -> bool:
        for slot, edge in enumerate(self.cube.edges):
            if _is_white(edge) and (find_home_index(edge.colours) != slot
                                    or edge.orientation != 0):
                return False
        return True

    def _solve_daisy(self):
        petals = []
        while len(petals) < 4:
            self.check_cancelled()
            for slot, edge in enumerate(self.cube.edges):
                if not _is_white(edge) or edge.colours in petals:
                    continue
                if slot < 4 and edge.orientation != 0:
                    self._flip_edge(slot)
                elif slot > 7:
                    self._middle_to_top(slot, edge)
                elif 4 <= slot < 8:
                    self._bottom_to_top(slot, edge)
                petals.append(edge.colours)
                break

    def _flip_edge(self, slot: int):
        face = SIDE_FACES[slot]
        left = SIDE_FACES[(slot + 1) % 4]
        self.turn(face, prime=face != G)
        # Keep the petal that the first turn lifted next to us
        if _is_upright_white(self.cube.edges[(slot + 1) % 4]):
            self.perform_move("U")
        self.turn(left, prime=left != G)

    def _middle_to_top(self, slot: int, edge: Piece):
        # Index of the face showing the non-white sticker
        increment = 1 - edge.orientation if slot % 2 == 1 else edge.orientation
        face_index = (slot - 8 + increment) % 4
        face = SIDE_FACES[face_index]
        self._find_empty_u_slot(face_index)
        prime = not ((slot % 2 != edge.orientation) != (face != G))
        self.turn(face, prime)

    def _bottom_to_top(self, slot: int, edge: Piece):
        face_index = (slot - 4) % 4
        face = SIDE_FACES[face_index]
        self._find_empty_u_slot(face_index)
        if edge.orientation == 0:
            self.perform_move(face.face + "2")
            return
        self.turn(face, prime=face == G)
        if _is_upright_white(self.cube.edges[(face_index + 1) % 4]):
            self.perform_move("U")
        left = SIDE_FACES[(face_index + 1) % 4]
        self.turn(left, prime=left != G)

    def _find_empty_u_slot(self, face_index: int):
        occupied = face_index
        turns = 0
        while _is_upright_white(self.cube.edges[occupied]):
            turns += 1
            occupied = (occupied - 1) % 4
        self.do_u_turns(turns)

    def _solve_cross(self):
        crossed = []
        while len(crossed) < 4:
            self.check_cancelled()
            for slot, edge in enumerate(self.cube.edges):
                if not _is_white(edge) or edge.colours in crossed:
                    continue
                side = edge.colours[1]
                self.do_u_turns((_side_index(side) - slot + 4) % 4)
                self.perform_move(Colour(side).face + "2")
                crossed.append(edge.colours)
                break


class WhiteCorners(StageSolver):
    stage = Stage.WHITE_CORNERS

    def solve(self):
        solved = []
        current = None
        while len(solved) < 4:
            self.check_cancelled()
            for slot, corner in enumerate(self.cube.corners):
                colours = corner.colours
                if W not in colours or colours in solved:
                    continue
                if find_home_index(colours) == slot and corner.orientation == 0:
                    solved.append(colours)
                    current = None
                    continue
                # One corner at a time
                if current is None:
                    current = colours
                if colours != current:
                    continue

                at_top = slot < 4
                if at_top:
                    turns = (find_home_index(colours) - slot + 4) % 4
                    self.do_u_turns(turns)
                    if turns != 0:
                        break

                if at_top and corner.orientation == 0:
                    self._yellow_to_white(slot)
                else:
                    self._insert(slot, corner, at_top)

                if at_top:
                    solved.append(colours)
                    current = None
                break

    def _yellow_to_white(self, slot: int):
        """White sticker facing up: turn it towards a side first."""
        face = SIDE_FACES[slot]
        right = SIDE_FACES[(slot + 3) % 4]
        self.turn(face, prime=face == G)
        self.turn(right, prime=right == G)
        self.perform_move("U2")
        self.turn(right, prime=right != G)
        self.turn(face, prime=face != G)

    def _insert(self, slot: int, corner: Piece, at_top: bool):
        # A corner in the bottom layer is lifted out as if it had orientation 1
        orientation = corner.orientation if at_top else 1
        offset = 0 if at_top else -4
        face = SIDE_FACES[(slot + (orientation - 1) + offset + 4) % 4]
        prime = not ((face == G) != (orientation == 1))
        self.turn(face, prime)
        self.perform_move("U'" if orientation == 2 else "U")
        self.turn(face, not prime)


class MiddleLayer(StageSolver):
    stage = Stage.MIDDLE_LAYER

    def solve(self):
        solved = []
        current = None
        while len(solved) < 4:
            self.check_cancelled()
            for slot, edge in enumerate(self.cube.edges):
                colours = edge.colours
                if colours in solved or W in colours or Y in colours:
                    continue
                if current is None:
                    current = colours
                if colours != current:
                    continue

                if (edge.orientation == find_home_orientation(colours)
                        and slot == find_home_index(colours)):
                    solved.append(colours)
                    current = None
                    break

                # A misplaced middle edge is pushed out to the top and stays
                # the target until it is inserted from there
                inserted = self._insert_edge(slot, edge)
                if slot < 4 and inserted:
                    solved.append(colours)
                    current = None
                break

    def _insert_edge(self, slot: int, edge: Piece) -> bool:
        """
        Insert an edge from the top layer, or eject a middle layer edge.

        Returns:
            False when the top layer had to be turned first

        Raises:
            SolverInvariantError: The edge sits in the bottom layer, which
                only happens when the white layer is not solved
        """
        self.check_cancelled()
        if 4 <= slot < 8:
            raise SolverInvariantError(
                f"Middle layer edge {edge} found in the bottom layer")
        at_top = slot < 4
        if at_top:
            main = edge.colours[edge.orientation]
            side = edge.colours[1 - edge.orientation]
        else:
            main = SIDE_FACES[slot - 8]
            side = SIDE_FACES[(slot - 8 + 1) % 4]
        main_index = _side_index(main)
        side_index = _side_index(side)

        if at_top:
            turns = (side_index - slot + 4) % 4
            self.do_u_turns(turns)
            if turns != 0:
                return False

        right = (main_index - side_index + 4) % 4 == 3
        face_prime = (side == G) != right
        side_face = SIDE_FACES[(side_index + (3 if right else 1)) % 4]
        side_face_prime = (side_face == G) != (not right)

        self.turn_u(right)
        self.turn(side_face, side_face_prime)
        self.turn_u(not right)
        self.turn(side_face, not side_face_prime)

        self.turn_u(not right)
        self.turn(side, face_prime)
        self.turn_u(right)
        self.turn(side, not face_prime)
        return True


class YellowCross(StageSolver):
    stage = Stage.YELLOW_CROSS

    # Squares of the top face that are yellow, most advanced pattern first
    PATTERNS = (
        (1, 3, 4, 6),   # cross
        (3, 4),         # line
        (4, 6),         # L
        (),             # dot
    )
    ALGORITHM = ("F", "R", "U", "R'", "U'", "F'")
    MAX_PASSES = 4

    def solve(self):
        for _ in range(self.MAX_PASSES):
            self.check_cancelled()
            if self._try_rotations():
                return
        raise SolverInvariantError(
            f"Yellow cross needed more than {self.MAX_PASSES} passes")

    def _try_rotations(self) -> bool:
        for rotations in range(4):
            self.check_cancelled()
            top = cube_to_facelet(self.cube)[Y]
            matched, solved = self._match(top, rotations)
            if matched:
                if solved:
                    return True
                if rotations == 3:
                    # U U U was played while searching, log it as U'
                    self.log.remove_last(3)
                    self.log.append("U'", self.step)
                self.perform_moves(self.ALGORITHM)
                return False
            self.perform_move("U")
        return False

    def _match(self, top, rotations: int):
        """Returns (matched, already solved) for the top face squares."""
        for index, pattern in enumerate(self.PATTERNS):
            if not pattern:
                # The dot is only assumed once every rotation was tried
                return rotations == 3, False
            if all(top[square] == Y for square in pattern):
                return True, index == 0
        return False, False


class YellowEdges(StageSolver):
    stage = Stage.YELLOW_EDGES

    SWAP = ("R", "U", "R'", "U", "R", "U2", "R'")

    def solve(self):
        while True:
            self.check_cancelled()
            solved = self._solved_edge_indexes()
            if len(solved) == 0:
                self.perform_moves(self.SWAP)
            elif len(solved) == 2:
                self._swap_pair(solved[0])
                return
            else:
                self._align(solved[0])
                return

    def _solved_edge_indexes(self) -> List[int]:
        """Pairs (next, current) of top edges whose sides follow each other."""
        edges = self.cube.edges
        solved = []
        for current in range(4):
            following = (current + 1) % 4
            difference = (_side_index(edges[following].colours[1])
                          - _side_index(edges[current].colours[1]))
            if difference in (1, -3):
                solved += [following, current]
        return solved

    def _swap_pair(self, first: int):
        # The two solved edges are always neighbours, first being the later one
        self.do_u_turns((0 - first + 4) % 4)
        self.perform_moves(self.SWAP)
        self.do_u_turns(_side_index(self.cube.edges[0].colours[1]) % 4)

    def _align(self, index: int):
        face_index = _side_index(self.cube.edges[index].colours[1])
        self.do_u_turns((face_index - index + 4) % 4)


class YellowCorners(StageSolver):
    stage = Stage.YELLOW_CORNERS

    CYCLE = ("U", "R", "U'", "L'", "U", "R'", "U'", "L")

    def solve(self):
        while True:
            self.check_cancelled()
            positioned = [i for i in range(4)
                          if find_home_index(self.cube.corners[i].colours) == i]
            if len(positioned) == 4:
                return
            if len(positioned) == 3:
                raise SolverInvariantError("Three yellow corners in place")
            if positioned:
                corner = positioned[0]
                self.do_u_turns((4 - corner) % 4)
                self._cycle()
                self.do_u_turns(corner % 4)
            else:
                self._cycle()

    def _cycle(self):
        self.perform_moves(self.CYCLE)
        self.perform_moves(self.CYCLE)


class YellowCornerOrientation(StageSolver):
    stage = Stage.YELLOW_CORNER_ORIENTATION

    ALGORITHM = ("R'", "D'", "R", "D", "R'", "D'", "R", "D")

    def solve(self):
        solved = []
        i = 0
        while i < 4:
            self.check_cancelled()
            if len(solved) == 4:
                break
            corner = self.cube.corners[i]
            if corner.colours in solved:
                i += 1
                continue
            if corner.orientation == 0:
                solved.append(corner.colours)
                i += 1
                continue
            # Bring the corner to URF, twist it, then scan again
            self.do_u_turns(4 - i)
            self.perform_moves(self.ALGORITHM)
            i = 0

        self.do_u_turns(_side_index(self.cube.edges[0].colours[1]) % 4)


STAGE_SOLVERS: Dict[Stage, Type[StageSolver]] = {
    Stage.WHITE_CROSS: WhiteCross,
    Stage.WHITE_CORNERS: WhiteCorners,
    Stage.MIDDLE_LAYER: MiddleLayer,
    Stage.YELLOW_CROSS: YellowCross,
    Stage.YELLOW_EDGES: YellowEdges,
    Stage.YELLOW_CORNERS: YellowCorners,
    Stage.YELLOW_CORNER_ORIENTATION: YellowCornerOrientation,
}


def check_solved(cube: Cube) -> bool:
    """Every slot holds its home piece with orientation 0."""
    for slot, piece in enumerate(cube.corners):
        if piece.orientation != 0 or find_home_index(piece.colours) != slot:
            return False
    for slot, piece in enumerate(cube.edges):
        if piece.orientation != 0 or find_home_index(piece.colours) != slot:
            return False
    return True


def run_stages(cube: Cube, stage: Stage, log: MoveLog,
               cancel_event: Optional[threading.Event] = None):
    """
    Run one stage, or all of them for Stage.FULL.

    Raises:
        SolveCancelled: cancel_event was set
        SolverInvariantError: A stage or the final check failed
    """
    stage = Stage(stage)
    stages = list(STAGE_SOLVERS) if stage == Stage.FULL else [stage]
    for current in stages:
        before = len(log)
        STAGE_SOLVERS[current](cube, log, cancel_event).solve()
        _LOGGER.debug("%s done with %d moves", current.name, len(log) - before)
    if stage == Stage.FULL and not check_solved(cube):
        raise SolverInvariantError("Cube not solved after the last stage")
